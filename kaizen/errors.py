from __future__ import annotations


class KaizenError(Exception):
    """Base class for errors raised by kaizen."""


class SchedulingError(KaizenError, ValueError):
    """The project definition cannot be turned into a task chain."""


class InvalidDeadline(SchedulingError):
    pass


class InvalidStep(SchedulingError):
    pass


class RecordCreationFailed(KaizenError):
    """A single task record could not be persisted."""

    def __init__(self, name: str, reason: str) -> None:
        super().__init__(f"{name}: {reason}")
        self.name = name
        self.reason = reason


class RecordAlreadyExists(RecordCreationFailed):
    def __init__(self, project: str, name: str) -> None:
        super().__init__(name, f"task already exists in project {project!r}")
        self.project = project
