"""TemplateManager: named mapping templates and the single-default rule."""

from __future__ import annotations

import logging
from datetime import datetime, timezone
from typing import Callable

from payrecon.core.exceptions import (
    CacheError,
    DefaultTemplateError,
    StoreError,
    TemplateNotFoundError,
    TemplateValidationError,
)
from payrecon.core.protocols import ITemplateStore
from payrecon.models.mapping import MappingDefaults, MappingTemplate

logger = logging.getLogger(__name__)


def _utcnow() -> datetime:
    return datetime.now(timezone.utc)


class TemplateManager:
    """Business rules on top of a plain-CRUD template store.

    The store knows nothing about defaults; exclusivity of ``is_default`` is
    enforced here by :meth:`set_default`.
    """

    def __init__(
        self,
        store: ITemplateStore,
        *,
        default_swap_attempts: int = 2,
        clock: Callable[[], datetime] = _utcnow,
    ) -> None:
        self._store = store
        self._attempts = max(1, default_swap_attempts)
        self._clock = clock
        self._revision = 0

    @property
    def revision(self) -> int:
        """Bumped after every write that can change which mapping is the default."""
        return self._revision

    # ---- queries ----

    def list_templates(self) -> list[MappingTemplate]:
        return [MappingTemplate.from_item(item) for item in self._store.list()]

    def get_template(self, template_id: str) -> MappingTemplate:
        for template in self.list_templates():
            if template.id == template_id:
                return template
        raise TemplateNotFoundError(template_id)

    def default_template(self) -> MappingTemplate | None:
        """The template flagged as default, or None."""
        for template in self.list_templates():
            if template.is_default:
                return template
        return None

    # ---- loading (touches last_used_at) ----

    def load_template(self, template_id: str) -> MappingTemplate:
        """Return a copy of the template's mapping/defaults and record the use."""
        template = self.get_template(template_id)
        return self._touch(template)

    def load_default_template(self) -> MappingTemplate | None:
        template = self.default_template()
        if template is None:
            return None
        return self._touch(template)

    def _touch(self, template: MappingTemplate) -> MappingTemplate:
        now = self._clock()
        self._store.update(template.id, {"last_used_date": now.isoformat()})
        logger.info("Loaded mapping template id=%s name=%s", template.id, template.name)
        return template.model_copy(update={"last_used_at": now}, deep=True)

    # ---- writes ----

    def save_template(
        self,
        name: str,
        mapping: dict[str, str],
        defaults: MappingDefaults | None = None,
        *,
        description: str = "",
        make_default: bool = False,
    ) -> MappingTemplate:
        """Persist a mapping as a new template. A non-blank name is required."""
        if not name or not name.strip():
            raise TemplateValidationError("Please enter a template name")
        template = MappingTemplate(
            name=name.strip(),
            description=description.strip(),
            mapping={k: v for k, v in mapping.items()},
            defaults=defaults or MappingDefaults(),
            is_default=False,
        )
        item = self._store.create(template.to_item())
        created = MappingTemplate.from_item(item)
        logger.info("Saved mapping template id=%s name=%s", created.id, created.name)
        if make_default:
            return self.set_default(created.id)
        return created

    def update_template(self, template_id: str, patch: dict) -> MappingTemplate:
        """Edit a template. ``is_default`` cannot be changed here; use set_default."""
        if "is_default" in patch:
            raise TemplateValidationError("Use set_default to change the default template")
        if "name" in patch and not str(patch["name"]).strip():
            raise TemplateValidationError("Please enter a template name")
        try:
            return MappingTemplate.from_item(self._store.update(template_id, patch))
        finally:
            self._revision += 1

    def delete_template(self, template_id: str) -> None:
        try:
            self._store.delete(template_id)
        finally:
            self._revision += 1
        logger.info("Deleted mapping template id=%s", template_id)

    def set_default(self, template_id: str) -> MappingTemplate:
        """Make ``template_id`` the only default template.

        Clear-then-set, run as one retryable unit: every other default is
        cleared before the target is set, so an interruption leaves at most
        one default. If setting the target fails, the target is cleared again
        (its write may have landed) before the next attempt.
        """
        try:
            return self._swap_default(template_id)
        finally:
            self._revision += 1

    def _swap_default(self, template_id: str) -> MappingTemplate:
        last_error: Exception | None = None
        for attempt in range(1, self._attempts + 1):
            try:
                templates = self.list_templates()
                if not any(t.id == template_id for t in templates):
                    raise TemplateNotFoundError(template_id)
                for other in templates:
                    if other.is_default and other.id != template_id:
                        self._store.update(other.id, {"is_default": False})
            except (StoreError, CacheError) as exc:
                last_error = exc
                logger.warning(
                    "Clearing defaults failed template_id=%s attempt=%d/%d error=%s",
                    template_id, attempt, self._attempts, exc,
                )
                continue

            try:
                item = self._store.update(template_id, {"is_default": True})
            except (StoreError, CacheError) as exc:
                last_error = exc
                logger.warning(
                    "Setting default failed template_id=%s attempt=%d/%d error=%s",
                    template_id, attempt, self._attempts, exc,
                )
                self._compensate(template_id)
                continue

            logger.info("Default mapping template is now id=%s", template_id)
            return MappingTemplate.from_item(item)

        raise DefaultTemplateError(template_id, self._attempts, str(last_error)) from last_error

    def _compensate(self, template_id: str) -> None:
        try:
            self._store.update(template_id, {"is_default": False})
        except (StoreError, CacheError) as exc:
            logger.error("Compensating clear failed template_id=%s error=%s", template_id, exc)
