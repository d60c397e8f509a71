"""
Pipeline errors

Every error raised by this package derives from PipelineError.
Errors coming from the collaborators (transformers, torch) are not wrapped.
"""

from typing import Iterable


class PipelineError(Exception):
    """Base class for all pipeline errors"""


class UnsupportedTaskError(PipelineError, ValueError):
    """Requested task (or alias) has no registered descriptor"""

    def __init__(self, task: str, supported: Iterable[str]):
        self.task = task
        self.supported = list(supported)
        super().__init__(
            f"Unsupported pipeline: {task}. Must be one of [{', '.join(self.supported)}]"
        )


class ValidationError(PipelineError, ValueError):
    """Invalid option combination or input shape"""


class UnsupportedSubtaskError(ValidationError):
    """Segmentation subtask that cannot be post-processed"""

    def __init__(self, subtask):
        self.subtask = subtask
        if subtask == "semantic":
            message = "semantic segmentation not yet supported."
        else:
            message = f"Subtask {subtask} not supported."
        super().__init__(message)


class MissingTokenError(PipelineError, LookupError):
    """Expected special token is absent from an encoded sequence"""


class CollaboratorLoadError(PipelineError, RuntimeError):
    """Loader adapter could not resolve the collaborator class to load"""
