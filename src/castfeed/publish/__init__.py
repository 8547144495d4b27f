"""Publishing pipeline for castfeed."""

from castfeed.publish.models import (
    OutcomeStatus,
    ProgressCallback,
    RunResult,
    RunState,
    RunStatus,
    TargetOutcome,
)
from castfeed.publish.publisher import Publisher
from castfeed.publish.targets import feed_target, media_target, object_key, plan_targets

__all__ = [
    "Publisher",
    "RunResult",
    "RunState",
    "RunStatus",
    "OutcomeStatus",
    "TargetOutcome",
    "ProgressCallback",
    "feed_target",
    "media_target",
    "object_key",
    "plan_targets",
]
