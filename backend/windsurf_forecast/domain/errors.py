from __future__ import annotations

from typing import Iterable, Optional


class ForecastError(Exception):
    """Base class for every recoverable error raised by windsurf-forecast."""


class DuplicateBackendError(RuntimeError):
    """Two backend modules registered the same name.

    A programming error rather than a user error: it does not derive from
    ``ForecastError`` and the CLI never catches it.
    """

    def __init__(self, name: str, first, second) -> None:
        self.name = name
        self.first = first
        self.second = second
        super().__init__(
            f"FATAL: Duplicate backend name '{name}' detected in registry!\n"
            "Two backend modules registered with the same name.\n"
            f"First registration: {first.description} ({first.credential_var}) in {first.module}\n"
            f"Second registration: {second.description} ({second.credential_var}) in {second.module}"
        )


class CredentialError(ForecastError):
    """A backend factory could not find its credential."""

    def __init__(self, variable: str, backend: str) -> None:
        self.variable = variable
        self.backend = backend
        super().__init__(
            f"{variable} not found. Please set it in your .env file or environment "
            f"to use the '{backend}' backend."
        )


class BackendError(ForecastError):
    """A backend failed to fetch or decode forecast data."""

    def __init__(self, backend: str, message: str, status_code: Optional[int] = None) -> None:
        self.backend = backend
        self.status_code = status_code
        prefix = f"{backend} API error"
        if status_code is not None:
            prefix += f" (HTTP {status_code})"
        super().__init__(f"{prefix}: {message}")


class TimestampParseError(ForecastError, ValueError):
    def __init__(self, raw, source: str, reason: str = "") -> None:
        self.raw = raw
        self.source = source
        detail = f": {reason}" if reason else ""
        super().__init__(f"Failed to parse timestamp {raw!r} from {source}{detail}")


class ConfigFileError(ForecastError):
    """The persisted configuration file exists but cannot be used."""

    def __init__(self, path, reason: str, *, action: str = "parse") -> None:
        self.path = path
        self.reason = reason
        super().__init__(f"Failed to {action} config file {path}: {reason}")


class ConfigValidationError(ForecastError, ValueError):
    """A resolved configuration value broke a validation rule.

    Carries everything needed to tell the user what went wrong and how to fix
    it: the field, the offending value, which source supplied it, the rule and
    a suggestion.
    """

    def __init__(
        self,
        field: str,
        value,
        provenance=None,
        *,
        rule: str,
        suggestion: str = "",
    ) -> None:
        self.field = field
        self.value = value
        self.provenance = provenance
        self.rule = rule
        self.suggestion = suggestion
        super().__init__(self._render())

    def _render(self) -> str:
        origin = f" (from {self.provenance})" if self.provenance is not None else ""
        message = f"Invalid {self.field}: {self.value!r}{origin}. {self.rule}"
        if self.suggestion:
            message += f"\nHint: {self.suggestion}"
        return message


class MissingFieldError(ConfigValidationError):
    def __init__(self, field: str, *, label: str = "", rule: str, suggestion: str = "") -> None:
        self.label = label or field
        super().__init__(field, None, None, rule=rule, suggestion=suggestion)

    def _render(self) -> str:
        message = f"{self.label} not specified. {self.rule}"
        if self.suggestion:
            message += f"\nHint: {self.suggestion}"
        return message


class OutOfRangeError(ConfigValidationError):
    pass


class CrossFieldError(ConfigValidationError):
    pass


class InvalidTimezoneError(ConfigValidationError):
    pass


class HostTimezoneError(InvalidTimezoneError):
    """``LOCAL`` was requested but the host's current timezone could not be determined."""

    def __init__(self, provenance=None) -> None:
        super().__init__(
            "timezone",
            "LOCAL",
            provenance,
            rule="Failed to detect system timezone.",
            suggestion="Pass an explicit identifier such as 'Europe/London' with --timezone "
            "or set 'general.timezone' in the config file.",
        )


class UnknownBackendError(ConfigValidationError):
    def __init__(self, name: str, available: Iterable[str], provenance=None) -> None:
        self.available = list(available)
        super().__init__(
            "provider",
            name,
            provenance,
            rule=f"Unknown provider '{name}'. Available providers: {', '.join(self.available)}",
            suggestion="Pick one of the available providers with --provider.",
        )


class ReportWriteError(ForecastError):
    """The JSON report could not be written."""

    def __init__(self, path, reason: str) -> None:
        self.path = path
        self.reason = reason
        super().__init__(f"Failed to write report {path}: {reason}")
