"""Data models describing a publishing run."""

from collections.abc import Callable
from enum import Enum
from pathlib import Path
from typing import Any

from pydantic import BaseModel, ConfigDict

from castfeed.feeds.models import FeedDocument, PublicationTarget, TargetKind

ProgressCallback = Callable[[str, dict[str, Any]], None]


class RunState(str, Enum):
    """Stages a run moves through."""

    PLANNING = "planning"
    EXTRACTING = "extracting"
    ASSEMBLING = "assembling"
    UPLOADING = "uploading"
    DONE = "done"


class RunStatus(str, Enum):
    """Overall result of a completed run."""

    SUCCESS = "success"
    PARTIAL_FAILURE = "partial_failure"
    CANCELLED = "cancelled"


class OutcomeStatus(str, Enum):
    """Result of one upload."""

    SUCCEEDED = "succeeded"
    FAILED = "failed"
    SKIPPED = "skipped"


class TargetOutcome(BaseModel):
    """What happened to one publication target."""

    model_config = ConfigDict(frozen=True)

    target: PublicationTarget
    status: OutcomeStatus
    url: str | None = None
    error: str | None = None


class RunResult(BaseModel):
    """Structured result of a run, consumed by the CLI for reporting.

    Example:
        >>> result = await publisher.run(paths, publish=True)
        >>> result.status
        <RunStatus.PARTIAL_FAILURE: 'partial_failure'>
        >>> [o.target.key for o in result.failed]
        ['episode-2.mp3']
    """

    model_config = ConfigDict(frozen=True)

    status: RunStatus
    feed: FeedDocument
    outcomes: tuple[TargetOutcome, ...] = ()
    output_path: Path | None = None
    published: bool = False

    @property
    def ok(self) -> bool:
        """True when everything requested was done."""
        return self.status is RunStatus.SUCCESS

    @property
    def succeeded(self) -> list[TargetOutcome]:
        return [o for o in self.outcomes if o.status is OutcomeStatus.SUCCEEDED]

    @property
    def failed(self) -> list[TargetOutcome]:
        return [o for o in self.outcomes if o.status is OutcomeStatus.FAILED]

    @property
    def skipped(self) -> list[TargetOutcome]:
        return [o for o in self.outcomes if o.status is OutcomeStatus.SKIPPED]

    @property
    def feed_url(self) -> str | None:
        """URL of the uploaded feed, if the feed upload succeeded."""
        for outcome in self.succeeded:
            if outcome.target.kind is TargetKind.FEED:
                return outcome.url
        return None
