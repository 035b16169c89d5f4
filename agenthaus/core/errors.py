from __future__ import annotations

from agenthaus.schemas.skill import ErrorKind


class SkillError(Exception):
    """Base for failures a skill execution reports as a value, not a crash."""

    kind: ErrorKind = ErrorKind.execution_error

    def __init__(self, message: str):
        super().__init__(message)
        self.message = message


class InvalidParamsError(SkillError):
    kind = ErrorKind.validation_error


class MissingConfigurationError(SkillError):
    kind = ErrorKind.configuration_error


class SafetyViolationError(SkillError):
    kind = ErrorKind.safety_violation


class ExecutionFailedError(SkillError):
    kind = ErrorKind.execution_error


class RegistryInconsistencyError(SkillError):
    """A command was matched against a skill the registry cannot resolve."""

    kind = ErrorKind.internal
