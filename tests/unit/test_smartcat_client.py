"""Tests for SmartcatClient against a stubbed requests session."""

from __future__ import annotations

import asyncio
import json
from datetime import date
from decimal import Decimal
from typing import Any
from unittest.mock import MagicMock

import pytest
import requests

from payrecon.core.config import SmartcatConfig
from payrecon.core.exceptions import ConfigurationError, PlatformError
from payrecon.models.payments import PaymentPayload
from payrecon.platform.smartcat_client import SmartcatClient, member_from_json

BASE = "https://smartcat.test/api/integration"


def _response(status: int = 200, payload: Any = None, text: str | None = None) -> MagicMock:
    resp = MagicMock()
    resp.status_code = status
    resp.ok = 200 <= status < 300
    resp.text = text if text is not None else json.dumps(payload)
    if payload is None and text is not None:
        resp.json.side_effect = ValueError("not json")
    else:
        resp.json.return_value = payload
    return resp


def _client(routes: dict[str, Any], **kwargs) -> tuple[SmartcatClient, MagicMock]:
    session = MagicMock()

    def request(method, url, **_):
        route = routes[url[len(BASE):]]
        if isinstance(route, Exception):
            raise route
        return route

    session.request.side_effect = request
    client = SmartcatClient(
        base_url=BASE, account_id=kwargs.pop("account_id", "acct"),
        api_key=kwargs.pop("api_key", "key"), session=session, **kwargs,
    )
    return client, session


def _payload(code: str = "INV001") -> PaymentPayload:
    return PaymentPayload(
        supplier_email="jane@example.com", supplier_name="Jane Doe", service_type="Translation",
        job_description=f"Invoice: {code}", units_type="Words", units_amount=Decimal("1000"),
        price_per_unit=Decimal("0.1"), currency="USD", external_number=code,
        pay_until_date="2024-01-31T00:00:00+00:00",
    )


# ---------- configuration ----------


class TestConfiguration:
    def test_from_settings(self):
        client = SmartcatClient.from_settings(SmartcatConfig(account_id="a", api_key="k", timeout=5))
        assert client._timeout == 5

    def test_missing_account_id(self):
        client, session = _client({}, account_id="")
        with pytest.raises(ConfigurationError, match="SMARTCAT_ACCOUNT_ID"):
            client.get_team()
        session.request.assert_not_called()

    def test_missing_api_key(self):
        client, _ = _client({}, api_key="")
        with pytest.raises(ConfigurationError, match="SMARTCAT_API_KEY"):
            client.get_team()


# ---------- team roster ----------


class TestTeamRoster:
    def test_maps_members(self):
        client, session = _client({"/v1/account/myTeam": _response(payload=[
            {"id": "u1", "firstName": "Jane", "lastName": "Doe", "email": "jane@example.com",
             "languages": ["tr", {"targetLanguage": "de"}]},
            {"externalId": "u2", "name": "John Smith", "supplierType": "company"},
            {"email": "no-id@example.com"},
        ])})
        members = asyncio.run(client.fetch_team_roster())
        assert [m.external_id for m in members] == ["u1", "u2"]
        assert members[0].name == "Jane Doe"
        assert members[0].languages == ["tr", "de"]
        assert members[1].supplier_type == "company"
        _, kwargs = session.request.call_args
        assert kwargs["auth"] == ("acct", "key")

    def test_member_from_json_defaults(self):
        member = member_from_json({"userId": "u3"})
        assert member.supplier_type == "freelancer"
        assert member.email == ""


# ---------- errors ----------


class TestErrors:
    def test_http_error_carries_raw_body(self):
        client, _ = _client({"/v1/account/myTeam": _response(401, text="Unauthorized: bad key")})
        with pytest.raises(PlatformError) as exc_info:
            client.get_team()
        assert exc_info.value.status_code == 401
        assert exc_info.value.reason == "Unauthorized: bad key"

    def test_body_truncated(self):
        client, _ = _client({"/v1/account/myTeam": _response(500, text="x" * 1000)})
        with pytest.raises(PlatformError) as exc_info:
            client.get_team()
        assert len(exc_info.value.reason) == 300

    def test_network_error(self):
        client, _ = _client({"/v1/account/myTeam": requests.ConnectionError("timed out")})
        with pytest.raises(PlatformError, match="timed out"):
            client.get_team()

    def test_no_retry(self):
        client, session = _client({"/v1/account/myTeam": _response(503, text="busy")})
        with pytest.raises(PlatformError):
            client.get_team()
        assert session.request.call_count == 1


# ---------- completed jobs ----------


def _project(pid: str, created: str) -> dict:
    return {"id": pid, "name": f"Project {pid}", "creationDate": created, "deadline": None}


def _details(stages: list[dict], target: str = "de") -> dict:
    return {
        "sourceLanguageId": "en",
        "documents": [{"name": "doc.docx", "wordsCount": 500, "targetLanguageId": target, "workflowStages": stages}],
    }


class TestCompletedJobs:
    def test_groups_completed_stages_by_assignee(self):
        client, _ = _client({
            "/v1/project/list": _response(payload=[
                _project("p1", "2024-01-10T09:00:00Z"),
                _project("p2", "2023-12-01T09:00:00Z"),
            ]),
            "/v1/project/p1": _response(payload=_details([
                {"status": "completed", "stageType": "translation", "wordsTranslated": 400,
                 "executives": [{"id": "u1", "supplierName": "Jane Doe"}]},
                {"status": "inProgress", "progress": 100, "stageType": "editing",
                 "executives": [{"id": "u1"}, {"id": "u2", "supplierName": "John"}]},
                {"status": "inProgress", "progress": 40, "executives": [{"id": "u3"}]},
            ])),
        })
        result = asyncio.run(client.fetch_completed_jobs(date(2024, 1, 1), date(2024, 1, 31)))
        assert result.projects_processed == 1
        members = {m.external_id: m for m in result.members}
        assert set(members) == {"u1", "u2"}
        assert members["u1"].completed_units == 900
        assert members["u1"].languages == ["de"]
        assert members["u2"].completed_units == 500
        assert len(result.jobs) == 3
        assert result.jobs[0].source_language == "en"
        assert result.total_words == 1400

    def test_caps_projects_scanned(self):
        projects = [_project(f"p{i}", "2024-01-10T09:00:00Z") for i in range(5)]
        routes: dict[str, Any] = {"/v1/project/list": _response(payload=projects)}
        for i in range(5):
            routes[f"/v1/project/p{i}"] = _response(payload=_details([]))
        client, session = _client(routes, max_projects_scanned=2)
        result = client.get_completed_jobs(date(2024, 1, 1), date(2024, 1, 31))
        assert result.projects_processed == 2
        assert session.request.call_count == 3

    def test_failed_project_is_skipped(self):
        client, _ = _client({
            "/v1/project/list": _response(payload=[
                _project("p1", "2024-01-10T09:00:00Z"), _project("p2", "2024-01-11T09:00:00Z"),
            ]),
            "/v1/project/p1": _response(500, text="boom"),
            "/v1/project/p2": _response(payload=_details([
                {"status": "completed", "executives": [{"id": "u9", "supplierName": "Z"}]},
            ])),
        })
        result = client.get_completed_jobs(date(2024, 1, 1), date(2024, 1, 31))
        assert [m.external_id for m in result.members] == ["u9"]

    def test_project_list_failure_propagates(self):
        client, _ = _client({"/v1/project/list": _response(502, text="gateway")})
        with pytest.raises(PlatformError):
            client.get_completed_jobs(date(2024, 1, 1), date(2024, 1, 31))


# ---------- payments ----------


class TestCreatePayments:
    def test_posts_wire_payloads(self):
        client, session = _client({"/v2/invoice/jobs": _response(payload=[{"id": "j1"}, {"id": "j2"}])})
        result = asyncio.run(client.create_payments([_payload("A"), _payload("B")]))
        assert result.created == 2
        _, kwargs = session.request.call_args
        assert kwargs["method"] == "POST"
        assert kwargs["json"][0]["externalNumber"] == "A"
        assert kwargs["json"][0]["pricePerUnit"] == 0.1

    def test_single_object_response(self):
        client, _ = _client({"/v2/invoice/jobs": _response(payload={"id": "j1"})})
        assert client.post_payments([_payload()]).created == 1

    def test_empty_batch_not_sent(self):
        client, session = _client({})
        assert client.post_payments([]).created == 0
        session.request.assert_not_called()

    def test_rejection_surfaces_reason(self):
        client, _ = _client({"/v2/invoice/jobs": _response(400, text="Supplier email not found")})
        with pytest.raises(PlatformError, match="Supplier email not found"):
            asyncio.run(client.create_payments([_payload()]))
