"""
Progress Errors - Error kinds raised by the progress tracking core.

- InvalidArgument: rejected input, raised before any write
- NotFound: a referenced document (lesson, vocabulary item, progress) is absent
- StorageUnavailable: the document store failed to read or write
- AttemptStepFailed: one step of a practice attempt failed after earlier
  steps were already applied
"""


class ProgressError(Exception):
    """Base class for all progress tracking errors"""


class InvalidArgument(ProgressError, ValueError):
    """Input rejected before touching storage"""


class NotFound(ProgressError, LookupError):
    """Referenced document does not exist"""


class StorageUnavailable(ProgressError, RuntimeError):
    """Document store read or write failed"""


class AttemptStepFailed(ProgressError):
    """
    Raised by RewardCoordinator when one of its steps fails.

    Steps that ran before `step` remain applied. The original error is
    available as `__cause__`.
    """

    def __init__(self, step: str, completed_steps: list):
        self.step = step
        self.completed_steps = list(completed_steps)
        super().__init__(f"Practice attempt failed at step '{step}'")


def require_id(name: str, value) -> str:
    """Reject a missing or blank identifier"""
    if not isinstance(value, str) or not value.strip():
        raise InvalidArgument(f"{name} is required")
    return value
