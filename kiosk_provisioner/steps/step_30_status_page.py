from __future__ import annotations

import logging
import re

from ..config_store import ConfigSnapshot
from ..context import ExecutionContext
from ..lib.env import PATHS
from ..pipeline import Policy
from ..reconcile import CommandAction, reconcile_command, reconcile_file_content, run_best_effort
from ..templates import DIRECTORY_INDEX, StatusPage

logger = logging.getLogger(__name__)

_DIRECTORY_INDEX_RE = re.compile(r"DirectoryIndex .*$", re.MULTILINE)


def prefer_index_php(dir_conf_text: str) -> str:
    """Rewrite every DirectoryIndex directive so index.php is served first."""
    return _DIRECTORY_INDEX_RE.sub(DIRECTORY_INDEX, dir_conf_text)


class StatusPageStep:
    step_id = "30_status_page"
    label = "Configuring Apache/PHP status page"
    policy = Policy.BEST_EFFORT

    def run(self, ctx: ExecutionContext, config: ConfigSnapshot) -> None:
        page = StatusPage()
        reconcile_file_content(ctx, page.path(config), page.render(config))

        dir_conf = ctx.path(PATHS.apache_dir_conf)
        if dir_conf.exists():
            current = dir_conf.read_text(encoding="utf-8", errors="replace")
            outcome = reconcile_file_content(ctx, PATHS.apache_dir_conf, prefer_index_php(current))
            if outcome.changed:
                ctx.request_restart("apache2")
        else:
            logger.info("%s not found; leaving DirectoryIndex alone", dir_conf)

        # The stock Apache page would shadow index.php.
        default_index = f"{config.apache_docroot.rstrip('/')}/index.html"
        if ctx.path(default_index).exists():
            reconcile_command(ctx, CommandAction(f"Remove {default_index}", ["rm", "-f", default_index]))

        mods_enabled = ctx.path("/etc/apache2/mods-enabled")
        if mods_enabled.is_dir() and any(mods_enabled.glob("php*.load")):
            logger.info("Apache PHP module already enabled")
        elif ctx.probe.command_exists("a2enmod"):
            if run_best_effort(ctx, CommandAction("Enable Apache PHP module", ["sh", "-c", "a2enmod php*"])):
                ctx.request_restart("apache2")
        else:
            logger.info("a2enmod not available; skipping PHP module enablement")
