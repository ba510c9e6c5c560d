"""Smartcat integration API client (team roster, completed jobs, payments).

Calls are not retried: Smartcat is slow and payment creation is not
idempotent on their side, so a failure goes straight back to the operator
as a PlatformError carrying the raw response text.
"""

from __future__ import annotations

import asyncio
import logging
from datetime import date, datetime, time, timezone
from typing import Any, Optional

import requests

from payrecon.core.config import SmartcatConfig
from payrecon.core.exceptions import ConfigurationError, PlatformError
from payrecon.models.payments import PaymentCreationResult, PaymentPayload
from payrecon.models.vendors import CompletedJob, CompletedJobsResult, RosterMember

logger = logging.getLogger(__name__)

ERROR_BODY_LIMIT = 300


def _parse_iso(value: Any) -> Optional[datetime]:
    if not value or not isinstance(value, str):
        return None
    normalized = value[:-1] + "+00:00" if value.endswith("Z") else value
    try:
        parsed = datetime.fromisoformat(normalized)
    except ValueError:
        return None
    if parsed.tzinfo is None:
        return parsed.replace(tzinfo=timezone.utc)
    return parsed


def _day_bounds(date_from: date, date_to: date) -> tuple[datetime, datetime]:
    start = datetime.combine(date_from, time.min, tzinfo=timezone.utc)
    end = datetime.combine(date_to, time.max, tzinfo=timezone.utc)
    return start, end


def member_from_json(data: dict[str, Any]) -> Optional[RosterMember]:
    """Map one ``account/myTeam`` entry; entries without any id are skipped."""
    external_id = data.get("id") or data.get("externalId") or data.get("userId")
    if not external_id:
        return None
    name = data.get("name") or f"{data.get('firstName') or ''} {data.get('lastName') or ''}".strip()
    languages: list[str] = []
    for lang in data.get("languages") or []:
        if isinstance(lang, str):
            languages.append(lang)
        elif isinstance(lang, dict) and lang.get("targetLanguage"):
            languages.append(str(lang["targetLanguage"]))
    return RosterMember(
        external_id=str(external_id),
        name=name,
        email=data.get("email") or "",
        supplier_type=data.get("supplierType") or "freelancer",
        languages=languages,
    )


class SmartcatClient:
    """Blocking HTTP core plus the async IPaymentPlatform surface."""

    def __init__(
        self,
        *,
        base_url: str,
        account_id: str,
        api_key: str,
        timeout: int = 60,
        max_projects_scanned: int = 30,
        session: requests.Session | None = None,
    ) -> None:
        self._base_url = base_url.rstrip("/")
        self._account_id = account_id
        self._api_key = api_key
        self._timeout = timeout
        self._max_projects = max_projects_scanned
        self._session = session or requests.Session()

    @classmethod
    def from_settings(cls, config: SmartcatConfig, session: requests.Session | None = None) -> SmartcatClient:
        return cls(
            base_url=config.base_url,
            account_id=config.account_id,
            api_key=config.api_key,
            timeout=config.timeout,
            max_projects_scanned=config.max_projects_scanned,
            session=session,
        )

    def _auth(self) -> tuple[str, str]:
        if not self._account_id:
            raise ConfigurationError("Missing Configuration: SMARTCAT_ACCOUNT_ID")
        if not self._api_key:
            raise ConfigurationError("Missing Configuration: SMARTCAT_API_KEY")
        return self._account_id, self._api_key

    def _request(
        self,
        method: str,
        endpoint: str,
        *,
        params: dict[str, Any] | None = None,
        json_body: Any = None,
    ) -> Any:
        auth = self._auth()
        url = endpoint if endpoint.startswith("http") else f"{self._base_url}{endpoint}"
        logger.info("Smartcat request method=%s url=%s", method, url)
        try:
            response = self._session.request(
                method=method,
                url=url,
                params=params,
                json=json_body,
                auth=auth,
                headers={"Accept": "application/json"},
                timeout=self._timeout,
            )
        except requests.RequestException as exc:
            logger.error("Smartcat request failed method=%s url=%s error=%s", method, url, exc)
            raise PlatformError(str(exc)) from exc

        text = response.text
        if not response.ok:
            logger.error("Smartcat error status=%s url=%s body=%s", response.status_code, url, text[:ERROR_BODY_LIMIT])
            raise PlatformError(text[:ERROR_BODY_LIMIT], status_code=response.status_code)
        try:
            return response.json()
        except ValueError:
            return text

    # ---- blocking operations ----

    def get_team(self) -> list[RosterMember]:
        data = self._request("GET", "/v1/account/myTeam")
        members = [member_from_json(m) for m in data or [] if isinstance(m, dict)]
        return [m for m in members if m is not None]

    def get_completed_jobs(self, date_from: date, date_to: date) -> CompletedJobsResult:
        """Roster members with completed stages in projects created in the range.

        At most ``max_projects_scanned`` projects are opened. A project whose
        detail call fails is skipped and logged; the project list call failing
        aborts the whole fetch.
        """
        start, end = _day_bounds(date_from, date_to)
        projects = self._request("GET", "/v1/project/list")
        in_range = []
        for project in projects if isinstance(projects, list) else []:
            created = _parse_iso(project.get("creationDate")) or _parse_iso(project.get("deadline"))
            if created is not None and start <= created <= end:
                in_range.append(project)
        scanned = in_range[: self._max_projects]

        members: dict[str, RosterMember] = {}
        jobs: list[CompletedJob] = []
        for project in scanned:
            try:
                details = self._request("GET", f"/v1/project/{project['id']}")
            except PlatformError as exc:
                logger.warning("Skipping project id=%s error=%s", project.get("id"), exc)
                continue
            for doc in details.get("documents") or []:
                for stage in doc.get("workflowStages") or []:
                    if stage.get("status") != "completed" and (stage.get("progress") or 0) < 100:
                        continue
                    words = int(stage.get("wordsTranslated") or doc.get("wordsCount") or 0)
                    for executive in stage.get("executives") or []:
                        assignee_id = executive.get("id")
                        if not assignee_id:
                            continue
                        member = members.get(assignee_id)
                        if member is None:
                            member = RosterMember(
                                external_id=str(assignee_id),
                                name=executive.get("supplierName") or "Unknown",
                            )
                            members[assignee_id] = member
                        member.completed_units += words
                        target = doc.get("targetLanguageId") or ""
                        if target and target not in member.languages:
                            member.languages.append(target)
                        jobs.append(CompletedJob(
                            assignee_id=str(assignee_id),
                            project_id=str(project["id"]),
                            project_name=project.get("name") or "",
                            document_name=doc.get("name") or "",
                            stage_type=stage.get("stageType") or "",
                            source_language=details.get("sourceLanguageId") or "",
                            target_language=target,
                            words_count=words,
                            deadline=project.get("deadline"),
                        ))
        logger.info(
            "Completed jobs fetched projects=%d members=%d jobs=%d",
            len(scanned), len(members), len(jobs),
        )
        return CompletedJobsResult(members=list(members.values()), jobs=jobs, projects_processed=len(scanned))

    def post_payments(self, payloads: list[PaymentPayload]) -> PaymentCreationResult:
        if not payloads:
            return PaymentCreationResult(created=0)
        result = self._request("POST", "/v2/invoice/jobs", json_body=[p.to_wire() for p in payloads])
        if isinstance(result, list):
            return PaymentCreationResult(
                created=len(result),
                payments=[r for r in result if isinstance(r, dict)],
            )
        return PaymentCreationResult(created=1, payments=[result] if isinstance(result, dict) else [])

    # ---- IPaymentPlatform ----

    async def fetch_team_roster(self) -> list[RosterMember]:
        return await asyncio.to_thread(self.get_team)

    async def fetch_completed_jobs(self, date_from: date, date_to: date) -> CompletedJobsResult:
        return await asyncio.to_thread(self.get_completed_jobs, date_from, date_to)

    async def create_payments(self, payloads: list[PaymentPayload]) -> PaymentCreationResult:
        return await asyncio.to_thread(self.post_payments, payloads)
