from __future__ import annotations

import logging

from ..config_store import ConfigSnapshot
from ..context import ExecutionContext
from ..pipeline import Policy
from ..reconcile import CommandAction, reconcile_file_content, run_best_effort
from ..templates import KioskLauncher, Xinitrc

logger = logging.getLogger(__name__)

EXECUTABLE = 0o755


class KioskLauncherStep:
    step_id = "80_kiosk_launcher"
    label = "Installing kiosk launcher"
    policy = Policy.FATAL

    def run(self, ctx: ExecutionContext, config: ConfigSnapshot) -> None:
        launcher = KioskLauncher()
        reconcile_file_content(ctx, launcher.path(config), launcher.render(config), mode=EXECUTABLE)

        xinitrc = Xinitrc()
        xinit_path = xinitrc.path(config)
        if reconcile_file_content(ctx, xinit_path, xinitrc.render(config), mode=EXECUTABLE).changed:
            user = config.kiosk_user
            run_best_effort(ctx, CommandAction(f"Give {xinit_path} to {user}", ["chown", f"{user}:{user}", xinit_path]))
