from __future__ import annotations

import logging

from ..config_store import ConfigSnapshot
from ..context import ExecutionContext
from ..pipeline import Policy
from ..reconcile import CommandAction, run_best_effort

logger = logging.getLogger(__name__)

ENABLED_SERVICES = ("apache2",)


class EnableServicesStep:
    step_id = "90_enable_services"
    label = "Enabling services"
    policy = Policy.BEST_EFFORT

    def run(self, ctx: ExecutionContext, config: ConfigSnapshot) -> None:
        if not ctx.probe.command_exists("systemctl"):
            logger.info("systemctl not available; skipping service enablement")
            return

        for service in ENABLED_SERVICES:
            run_best_effort(ctx, CommandAction(f"Enable {service}", ["systemctl", "enable", "--now", service]))

        if not ctx.pending_restarts:
            logger.info("No configuration changes require a service restart")
            return
        for service in list(ctx.pending_restarts):
            if run_best_effort(ctx, CommandAction(f"Restart {service}", ["systemctl", "restart", service])):
                ctx.pending_restarts.remove(service)
