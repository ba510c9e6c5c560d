"""payrecon exception hierarchy."""

from __future__ import annotations


class PayReconError(Exception):
    """Base exception for all payrecon errors."""


class ConfigurationError(PayReconError):
    """Required configuration is missing."""


class TemplateError(PayReconError):
    """Mapping template operation failed."""


class TemplateValidationError(TemplateError):
    """Template data is not acceptable (e.g. blank name)."""


class TemplateNotFoundError(TemplateError):
    """No mapping template with the given id."""

    def __init__(self, template_id: str) -> None:
        self.template_id = template_id
        super().__init__(f"Mapping template {template_id!r} not found")


class DefaultTemplateError(TemplateError):
    """Setting the default template failed after all attempts."""

    def __init__(self, template_id: str, attempts: int, message: str) -> None:
        self.template_id = template_id
        self.attempts = attempts
        super().__init__(
            f"Could not set template {template_id!r} as default after {attempts} attempt(s): {message}"
        )


class StoreError(PayReconError):
    """Entity store (DynamoDB/S3) operation failed."""


class CacheError(PayReconError):
    """Redis cache operation failed."""


class PlatformError(PayReconError):
    """External payment platform call failed.

    ``reason`` carries the raw failure text so it can be shown to the operator as-is.
    """

    def __init__(self, reason: str, status_code: int | None = None) -> None:
        self.reason = reason
        self.status_code = status_code
        if status_code is None:
            super().__init__(f"Smartcat API error: {reason}")
        else:
            super().__init__(f"Smartcat API error {status_code}: {reason}")


class BatchValidationError(PayReconError):
    """A payment batch was blocked because at least one selected record is not payable."""

    def __init__(self, problems: dict[int, list[str]], message: str | None = None) -> None:
        self.problems = problems
        super().__init__(
            message or f"Payment batch blocked: {len(problems)} selected record(s) failed validation"
        )
