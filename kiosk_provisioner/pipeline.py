from __future__ import annotations

import enum
import logging
from dataclasses import dataclass, field
from typing import List, Protocol, Sequence

from .config_store import ConfigSnapshot
from .context import ExecutionContext
from .errors import StepError
from .progress import ProgressTracker

logger = logging.getLogger(__name__)


class Policy(str, enum.Enum):
    FATAL = "fatal"
    BEST_EFFORT = "best_effort"


class Step(Protocol):
    """A single idempotent step."""

    step_id: str
    label: str
    policy: Policy

    def run(self, ctx: ExecutionContext, config: ConfigSnapshot) -> None:
        ...


@dataclass
class PipelineResult:
    ran_steps: List[str] = field(default_factory=list)
    degraded: List[str] = field(default_factory=list)


def run_pipeline(
    *,
    ctx: ExecutionContext,
    config: ConfigSnapshot,
    steps: Sequence[Step],
    progress: ProgressTracker,
) -> PipelineResult:
    """Run steps once, in order, applying each step's failure policy.

    A FATAL step failure raises StepError and nothing after it runs. A
    BEST_EFFORT failure is logged and recorded as degraded.
    """

    result = PipelineResult()
    progress.init(len(steps))

    for step in steps:
        progress.advance(step.label)
        logger.info("Running step %s (%s)", step.step_id, step.label)
        try:
            step.run(ctx, config)
        except Exception as e:
            if step.policy is Policy.FATAL:
                logger.error("Step %s failed: %s", step.step_id, e)
                raise StepError(step.step_id, str(e)) from e
            logger.warning("Non-fatal: step %s failed (%s); continuing", step.step_id, e)
            result.degraded.append(step.step_id)
        result.ran_steps.append(step.step_id)

    return result
