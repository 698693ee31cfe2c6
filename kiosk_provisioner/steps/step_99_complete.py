from __future__ import annotations

import logging
from collections import Counter

from ..config_store import ConfigSnapshot
from ..context import ExecutionContext
from ..pipeline import Policy

logger = logging.getLogger(__name__)


class CompleteStep:
    step_id = "99_complete"
    label = "Setup complete"
    policy = Policy.BEST_EFFORT

    def run(self, ctx: ExecutionContext, config: ConfigSnapshot) -> None:
        counts = Counter(d.outcome.value for d in ctx.decisions)
        logger.info(
            "Decisions: %d changed, %d would change, %d unchanged",
            counts["changed"],
            counts["would_change"],
            counts["noop"],
        )
        if ctx.pending_restarts:
            logger.warning("Services still awaiting restart: %s", ", ".join(ctx.pending_restarts))
