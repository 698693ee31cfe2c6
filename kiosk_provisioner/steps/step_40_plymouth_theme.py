from __future__ import annotations

import logging
from typing import Optional

from ..config_store import ConfigSnapshot
from ..context import ExecutionContext, Outcome
from ..pipeline import Policy
from ..reconcile import CommandAction, reconcile_file_content, run_best_effort
from ..templates import PLACEHOLDER_LOGO_PNG, PlymouthScript, PlymouthThemeFile, plymouth_theme_dir

logger = logging.getLogger(__name__)

PLYMOUTHD_CONF = "/etc/plymouth/plymouthd.conf"


def current_default_theme(ctx: ExecutionContext) -> Optional[str]:
    p = ctx.path(PLYMOUTHD_CONF)
    if not p.exists():
        return None
    for line in p.read_text(encoding="utf-8", errors="replace").splitlines():
        key, sep, value = line.strip().partition("=")
        if sep and key.strip() == "Theme":
            return value.strip()
    return None


class PlymouthThemeStep:
    step_id = "40_plymouth_theme"
    label = "Configuring Plymouth theme"
    policy = Policy.BEST_EFFORT

    def _ensure_logo(self, ctx: ExecutionContext, config: ConfigSnapshot, logo_path: str) -> Outcome:
        source = ctx.path(config.boot_logo_path)
        if source.is_file():
            return reconcile_file_content(ctx, logo_path, source.read_bytes())

        if ctx.path(logo_path).exists():
            logger.info("Boot logo %s not found; keeping existing %s", config.boot_logo_path, logo_path)
            return ctx.record(Outcome.NOOP, "file", str(ctx.path(logo_path)))

        if ctx.probe.command_exists("convert"):
            generate = CommandAction(
                "Generate placeholder boot logo",
                [
                    "convert", "-size", "400x200", "xc:black", "-gravity", "center",
                    "-pointsize", "24", "-fill", "white", "-annotate", "0", "Kiosk", logo_path,
                ],
            )
            if run_best_effort(ctx, generate):
                return Outcome.WOULD_CHANGE if ctx.dry_run else Outcome.CHANGED
        return reconcile_file_content(ctx, logo_path, PLACEHOLDER_LOGO_PNG)

    def run(self, ctx: ExecutionContext, config: ConfigSnapshot) -> None:
        theme = config.plymouth_theme
        theme_file = PlymouthThemeFile()
        script = PlymouthScript()

        outcomes = [
            reconcile_file_content(ctx, theme_file.path(config), theme_file.render(config)),
            reconcile_file_content(ctx, script.path(config), script.render(config)),
            self._ensure_logo(ctx, config, f"{plymouth_theme_dir(config)}/logo.png"),
        ]

        if not ctx.probe.command_exists("plymouth-set-default-theme"):
            logger.info("plymouth-set-default-theme not available; theme files written only")
            return

        # -R rebuilds the initramfs, which is slow: only do it when something moved.
        if any(o.changed for o in outcomes) or current_default_theme(ctx) != theme:
            run_best_effort(
                ctx,
                CommandAction(f"Set default Plymouth theme {theme}", ["plymouth-set-default-theme", "-R", theme]),
            )
        else:
            logger.info("Plymouth theme %s already active", theme)
