"""Error taxonomy for the plan generation pipeline."""
from __future__ import annotations


class PlanningError(Exception):
    """Base class for every failure the pipeline surfaces to callers."""

    retryable: bool = False


class GoalValidationError(PlanningError):
    """The caller supplied an absent or blank goal."""


class BackendError(PlanningError):
    """The generative backend failed or could not be reached."""


class BackendAuthError(BackendError):
    """The backend rejected our credentials, or none are configured."""


class BackendRateLimitError(BackendError):
    """The backend is throttling requests; back off and retry."""

    retryable = True


class BackendTimeoutError(BackendError):
    """The backend round trip exceeded its timeout."""

    retryable = True


class EmptyResponseError(PlanningError):
    """The backend answered without any content."""


class MalformedResponseError(PlanningError):
    """The backend content is not a JSON object."""
