from __future__ import annotations
from typing import Optional


class TutorialError(Exception):
    """Base class for every failure that aborts a document."""

    def __init__(self, message: str) -> None:
        super().__init__(message)
        self.message = message
        self.where: Optional[str] = None

    def at(self, where: str) -> "TutorialError":
        # first location wins, nested handlers re-raise through the walker
        if self.where is None:
            self.where = where
        return self

    def __str__(self) -> str:
        if self.where:
            return f"{self.where}: {self.message}"
        return self.message


class ValidationError(TutorialError):
    """Malformed arguments, tags or scripts. Raised before any side effect."""


class PreconditionError(TutorialError):
    """The world is not in the state the document expects."""


class ResourceError(TutorialError):
    """A required resource (basename, directory) is missing or unusable."""


class ExecutionError(TutorialError):
    def __init__(self, command: str, returncode: int, output: str = "") -> None:
        tail = (output or "").strip()[-2000:]
        message = f"`{command}` exited with status {returncode}"
        if tail:
            message += f"\n{tail}"
        super().__init__(message)
        self.command = command
        self.returncode = returncode
        self.output = output


class StepTimeoutError(TutorialError):
    def __init__(self, what: str, seconds: float) -> None:
        super().__init__(f"{what} did not finish within {seconds:g}s")
        self.seconds = seconds
