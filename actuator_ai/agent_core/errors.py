from __future__ import annotations

from .schemas.domain import ErrorCode


class ActuatorError(Exception):
    pass


class ToolExecutionError(ActuatorError):
    """Raised inside an executor to produce a structured failed result.

    ``BaseToolExecutor.execute`` converts it into ``ExecutionResult.error``;
    it never escapes the executor boundary.
    """

    def __init__(self, code: ErrorCode | str, message: str, *, recoverable: bool = True) -> None:
        super().__init__(message)
        self.code = str(getattr(code, "value", code))
        self.message = message
        self.recoverable = recoverable


class NotConfiguredError(ToolExecutionError):
    def __init__(self, integration: str) -> None:
        super().__init__(ErrorCode.NOT_CONFIGURED, f"{integration} is not configured", recoverable=False)


class LLMProviderError(ActuatorError):
    def __init__(self, message: str, *, status_code: int | None = None) -> None:
        super().__init__(f"LLM provider request failed: {message}")
        self.status_code = status_code


class IntentParseError(ActuatorError):
    def __init__(self, message: str) -> None:
        super().__init__(f"Could not parse model output: {message}")
        self.message = message


class ConfigurationError(ActuatorError):
    def __init__(self, setting: str, message: str) -> None:
        super().__init__(f"Invalid configuration for '{setting}': {message}")
