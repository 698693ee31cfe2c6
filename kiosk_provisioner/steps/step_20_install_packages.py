from __future__ import annotations

import logging

from ..config_store import ConfigSnapshot
from ..context import ExecutionContext
from ..pipeline import Policy
from ..reconcile import CommandAction, FallbackChain, reconcile_command, run_best_effort, run_fallback_chain

logger = logging.getLogger(__name__)

BASE_PACKAGES = [
    "apache2",
    "php",
    "libapache2-mod-php",
    "xserver-xorg",
    "xinit",
    "openbox",
    "x11-xserver-utils",
    "xdotool",
    "plymouth",
    "plymouth-themes",
    "ca-certificates",
    "curl",
    "jq",
]

# Keep existing config files on upgrade instead of prompting.
APT_INSTALL = [
    "apt-get",
    "install",
    "-y",
    "-o",
    "Dpkg::Options::=--force-confdef",
    "-o",
    "Dpkg::Options::=--force-confold",
]

SNAP_CHROMIUM = "/snap/bin/chromium"
CHROMIUM_LINK = "/usr/local/bin/chromium"


def chromium_available(ctx: ExecutionContext) -> bool:
    return ctx.probe.command_exists("chromium") or ctx.probe.command_exists("chromium-browser")


class InstallPackagesStep:
    step_id = "20_install_packages"
    label = "Installing packages"
    policy = Policy.FATAL

    def _browser_chain(self, ctx: ExecutionContext) -> FallbackChain:
        attempts = [CommandAction("Install Chromium from apt", [*APT_INSTALL, "chromium-browser"])]
        if ctx.probe.command_exists("snap"):
            attempts.append(CommandAction("Install Chromium from snap", ["snap", "install", "chromium"]))
        else:
            logger.info("snap not available; Chromium can only come from apt")
        return FallbackChain(
            feature="Chromium",
            attempts=attempts,
            satisfied=lambda: chromium_available(ctx),
            required=False,
        )

    def run(self, ctx: ExecutionContext, config: ConfigSnapshot) -> None:
        if not ctx.probe.command_exists("apt-get"):
            logger.info("apt-get is unavailable. Skipping package installation.")
            return

        reconcile_command(ctx, CommandAction("Refresh package lists", ["apt-get", "update"]))
        reconcile_command(ctx, CommandAction("Install base packages", [*APT_INSTALL, *BASE_PACKAGES]))

        if not run_fallback_chain(ctx, self._browser_chain(ctx)):
            logger.warning("Chromium not installed; kiosk may not start.")
            return

        snap_bin = ctx.path(SNAP_CHROMIUM)
        link = ctx.path(CHROMIUM_LINK)
        if snap_bin.exists() and not (link.exists() or link.is_symlink()):
            run_best_effort(
                ctx,
                CommandAction("Link snap Chromium into PATH", ["ln", "-sf", SNAP_CHROMIUM, CHROMIUM_LINK]),
            )
