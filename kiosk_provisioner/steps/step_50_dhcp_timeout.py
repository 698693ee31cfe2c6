from __future__ import annotations

import logging
import re

from ..config_store import ConfigSnapshot
from ..context import ExecutionContext
from ..lib.env import PATHS
from ..pipeline import Policy
from ..reconcile import reconcile_file_content, reconcile_line_presence
from ..templates import DhclientTimeout

logger = logging.getLogger(__name__)

_TIMEOUT_RE = re.compile(r"^[ \t]*timeout[ \t]+\d+;[ \t]*$", re.MULTILINE)


class DhcpTimeoutStep:
    step_id = "50_dhcp_timeout"
    label = "Configuring DHCP timeout"
    policy = Policy.BEST_EFFORT

    def run(self, ctx: ExecutionContext, config: ConfigSnapshot) -> None:
        line = DhclientTimeout().render(config)
        conf = ctx.path(PATHS.dhclient_conf)

        if not conf.exists():
            reconcile_file_content(ctx, PATHS.dhclient_conf, line + "\n")
            return

        text = conf.read_text(encoding="utf-8", errors="replace")
        if _TIMEOUT_RE.search(text):
            reconcile_file_content(ctx, PATHS.dhclient_conf, _TIMEOUT_RE.sub(line, text))
        else:
            reconcile_line_presence(ctx, PATHS.dhclient_conf, line)
