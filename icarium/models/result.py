"""Models for build outcomes."""

from dataclasses import dataclass
from typing import Literal


@dataclass(frozen=True, kw_only=True)
class BuildOutcome:
    """Terminal state of one handled build trigger.

    Failures are raised, not returned; an outcome is either a published
    image or a recognized reason for not building.
    """

    status: Literal["built", "skipped"]
    repository: str
    ref: str
    commit: str
    image: str | None = None
    reason: str | None = None
