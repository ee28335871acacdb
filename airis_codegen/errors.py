"""Exception hierarchy for the generation pipeline."""


class CodegenError(Exception):
    """Base class for all pipeline errors."""


class ConfigError(CodegenError):
    """Raised when a configuration file cannot be read."""


class InvalidInputError(CodegenError):
    """The design document reference is missing or unusable."""


class DispatchError(CodegenError):
    """A background task could not produce a result."""


class TaskTimeoutError(DispatchError):
    """A dispatched task did not answer before its deadline."""

    def __init__(self, task_id: str, task_type: str, timeout: float):
        super().__init__(f"Worker task timeout: {task_type} ({task_id}) after {timeout:g}s")
        self.task_id = task_id
        self.task_type = task_type
        self.timeout = timeout


class TaskFailedError(DispatchError):
    """The background unit reported an error for a task."""

    def __init__(self, task_id: str, task_type: str, message: str):
        super().__init__(message)
        self.task_id = task_id
        self.task_type = task_type


class DispatcherUnavailableError(DispatchError):
    """The dispatcher is not running (never started, or closed)."""


class AdaptationError(CodegenError):
    """The framework adapter failed; aborts the session."""
