from __future__ import annotations

import logging

from ..config_store import ConfigSnapshot
from ..context import ExecutionContext
from ..pipeline import Policy
from .step_20_install_packages import chromium_available

logger = logging.getLogger(__name__)


class VerifyBrowserStep:
    step_id = "95_verify_browser"
    label = "Verifying Chromium presence"
    policy = Policy.BEST_EFFORT

    def run(self, ctx: ExecutionContext, config: ConfigSnapshot) -> None:
        if chromium_available(ctx):
            logger.info("Chromium is available.")
        else:
            logger.warning("Chromium is not installed; please ensure chromium is available.")
