from __future__ import annotations

import logging

from ..config_store import ConfigSnapshot
from ..context import ExecutionContext
from ..lib.env import PATHS
from ..pipeline import Policy
from ..reconcile import CommandAction, reconcile_line_presence, run_best_effort
from ..templates import XSET_DISABLE_LINES

logger = logging.getLogger(__name__)

CONSOLE_BLANKING_LINES = ("BLANK_TIME=0", "POWERDOWN_TIME=0")


class EnergySavingStep:
    step_id = "60_energy_saving"
    label = "Disabling energy saving"
    policy = Policy.BEST_EFFORT

    def run(self, ctx: ExecutionContext, config: ConfigSnapshot) -> None:
        if not config.disable_energy_saving:
            logger.info("DISABLE_ENERGY_SAVING is false; leaving power management alone")
            return

        # Virtual console
        for line in CONSOLE_BLANKING_LINES:
            reconcile_line_presence(ctx, PATHS.kbd_config, line)

        # X session
        if not ctx.path(config.home_dir).is_dir():
            logger.info("%s does not exist yet; skipping .xprofile", config.home_dir)
            return

        xprofile = f"{config.home_dir}/.xprofile"
        changed = [reconcile_line_presence(ctx, xprofile, line).changed for line in XSET_DISABLE_LINES]
        if any(changed):
            user = config.kiosk_user
            run_best_effort(ctx, CommandAction(f"Give {xprofile} to {user}", ["chown", f"{user}:{user}", xprofile]))
