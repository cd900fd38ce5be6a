"""Exceptions raised by the grading engine."""


class GradingError(Exception):
    """Base exception for all grading errors."""

    def __init__(self, message: str = "Grading failed") -> None:
        self.message = message
        super().__init__(self.message)


class UnsafeSubmission(GradingError):
    """Raised when the source text matches the denylist; fatal to the whole run."""

    def __init__(self, pattern: str) -> None:
        super().__init__(f"Unsafe code detected: {pattern}")
        self.pattern = pattern


class ExecutionTimeout(GradingError):
    """Raised when one invocation exceeds its time budget."""

    def __init__(self, timeout_ms: int) -> None:
        super().__init__(f"Execution timeout ({timeout_ms / 1000:g} seconds)")
        self.timeout_ms = timeout_ms


class RuntimeFault(GradingError):
    """Raised when the submission raises while executing."""

    def __init__(self, message: str = "Runtime error", stdout: str = "") -> None:
        super().__init__(message)
        self.stdout = stdout


class CompilationFault(RuntimeFault):
    """Raised when the submission does not parse or has no entry point."""


class ServiceUnavailable(GradingError):
    """Raised when the remote execution service cannot be reached."""

    def __init__(self, message: str = "Execution service unavailable") -> None:
        super().__init__(message)


class ServiceTimeout(GradingError):
    """Raised when the remote execution service does not answer in time."""

    def __init__(self, message: str = "Execution service timed out") -> None:
        super().__init__(message)


class UnsupportedLanguage(GradingError):
    """Raised when no executor is registered for a language."""

    def __init__(self, language: str) -> None:
        super().__init__(f"Unsupported language: {language}")
        self.language = language
