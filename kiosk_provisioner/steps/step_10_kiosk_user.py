from __future__ import annotations

import logging

from ..config_store import ConfigSnapshot
from ..context import ExecutionContext
from ..pipeline import Policy
from ..reconcile import CommandAction, reconcile_command

logger = logging.getLogger(__name__)


class KioskUserStep:
    step_id = "10_kiosk_user"
    label = "Ensuring kiosk user"
    policy = Policy.FATAL

    def run(self, ctx: ExecutionContext, config: ConfigSnapshot) -> None:
        user = config.kiosk_user
        if ctx.probe.user_exists(user):
            logger.info("User %s already exists", user)
            return

        reconcile_command(
            ctx,
            CommandAction(f"Create user {user}", ["useradd", "-m", "-s", "/bin/bash", user]),
        )
        logger.info("Created user %s", user)
