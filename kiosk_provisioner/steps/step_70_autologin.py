from __future__ import annotations

import logging

from ..config_store import ConfigSnapshot
from ..context import ExecutionContext
from ..pipeline import Policy
from ..reconcile import CommandAction, reconcile_file_content, reconcile_line_presence, run_best_effort
from ..templates import GettyAutologinOverride, KioskSessionSnippet

logger = logging.getLogger(__name__)


class AutologinStep:
    step_id = "70_autologin"
    label = "Configuring autologin and X init"
    policy = Policy.FATAL

    def run(self, ctx: ExecutionContext, config: ConfigSnapshot) -> None:
        override = GettyAutologinOverride()
        getty = f"getty@{config.tty_autologin}.service"

        if reconcile_file_content(ctx, override.path(config), override.render(config)).changed:
            if ctx.probe.command_exists("systemctl"):
                run_best_effort(ctx, CommandAction("Reload systemd units", ["systemctl", "daemon-reload"]))
                run_best_effort(ctx, CommandAction(f"Restart {getty}", ["systemctl", "restart", getty]))
            else:
                logger.info("systemctl not available; %s picks up the override on next boot", getty)
        else:
            logger.info("Autologin for %s already configured", getty)

        # Start X on login, but only on the autologin tty.
        snippet = KioskSessionSnippet()
        profile = f"{config.home_dir}/.profile"
        outcomes = [
            reconcile_file_content(ctx, snippet.path(config), snippet.render(config)),
            reconcile_line_presence(ctx, profile, snippet.source_line(config)),
        ]
        if any(o.changed for o in outcomes):
            user = config.kiosk_user
            run_best_effort(
                ctx,
                CommandAction(
                    f"Give session files to {user}",
                    ["chown", f"{user}:{user}", snippet.path(config), profile],
                ),
            )
