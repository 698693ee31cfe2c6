from __future__ import annotations

import argparse
import logging
from typing import Any, Callable, List, Mapping, Optional, TextIO

from .config_store import ConfigSnapshot, parse_overrides, resolve, validate_overrides
from .context import ExecutionContext
from .errors import ConfigError, PreconditionError, ProvisionError
from .lib.command import CmdResult, run_cmd
from .lib.env import PATHS
from .logging_utils import attach_log_file, buffer_records, configure_logging
from .pipeline import PipelineResult, Step, run_pipeline
from .progress import ProgressTracker
from .steps import (
    AutologinStep,
    CompleteStep,
    DhcpTimeoutStep,
    EnableServicesStep,
    EnergySavingStep,
    InstallPackagesStep,
    KioskLauncherStep,
    KioskUserStep,
    PlymouthThemeStep,
    StatusPageStep,
    VerifyBrowserStep,
)

logger = logging.getLogger(__name__)

DEFAULT_CONFIG_PATH = PATHS.config_default

EXIT_OK = 0
EXIT_FAILED = 1
EXIT_USAGE = 2


def build_steps() -> List[Step]:
    return [
        KioskUserStep(),
        InstallPackagesStep(),
        StatusPageStep(),
        PlymouthThemeStep(),
        DhcpTimeoutStep(),
        EnergySavingStep(),
        AutologinStep(),
        KioskLauncherStep(),
        EnableServicesStep(),
        VerifyBrowserStep(),
        CompleteStep(),
    ]


def require_privileges(ctx: ExecutionContext) -> None:
    if ctx.dry_run:
        logger.info("Running in dry-run mode; root is not required.")
        return
    if not ctx.probe.is_root():
        raise PreconditionError("This script must be run as root. Use sudo.")


def run(
    *,
    config_path: str = DEFAULT_CONFIG_PATH,
    dry_run: bool = False,
    overrides: Optional[Mapping[str, Any]] = None,
    root: str = PATHS.target_root,
    runner: Callable[..., CmdResult] = run_cmd,
    probe: Any = None,
    progress_stream: Optional[TextIO] = None,
    persist_log: bool = True,
) -> PipelineResult:
    """Provision the machine once, start to finish.

    Raises ConfigError for a bad override and PreconditionError when not root
    in a real run, both before touching anything. Raises StepError when a
    fatal step fails.
    """

    if overrides:
        validate_overrides(overrides)

    ctx = ExecutionContext(
        dry_run=dry_run,
        root=root,
        runner=runner,
        probe=probe,
        progress_stream=progress_stream,
    )
    require_privileges(ctx)
    logger.info("Starting kiosk setup (dry-run=%s)", "true" if dry_run else "false")

    # Simulation never touches persistent artifacts, the log file included.
    buffered = buffer_records() if (persist_log and not dry_run) else None
    log_file = PATHS.log_default
    try:
        config: ConfigSnapshot = resolve(config_path, ctx, overrides)
        log_file = config.log_file
    finally:
        if buffered is not None:
            attach_log_file(str(ctx.path(log_file)), buffered=buffered)

    result = run_pipeline(ctx=ctx, config=config, steps=build_steps(), progress=ProgressTracker(ctx))
    if result.degraded:
        logger.warning("Degraded steps: %s", ", ".join(result.degraded))
    return result


def main(argv: Optional[list[str]] = None) -> int:
    p = argparse.ArgumentParser(
        prog="kiosk-setup",
        description="Provision this machine as a browser kiosk. Safe to re-run.",
    )
    p.add_argument("--dry-run", action="store_true", help="Report intended changes without making any")
    p.add_argument("--config", default=DEFAULT_CONFIG_PATH, help="Path to kiosk config (KEY=value or yaml)")
    p.add_argument(
        "--set",
        action="append",
        default=[],
        metavar="KEY=VALUE",
        help="Override a config value for this run (repeatable)",
    )
    p.add_argument("--root", default=PATHS.target_root, help="Provision a target root instead of /")
    p.add_argument("-v", "--verbose", action="store_true", help="Debug logging")

    args = p.parse_args(argv)
    configure_logging(logging.DEBUG if args.verbose else logging.INFO)

    try:
        overrides = parse_overrides(args.set)
    except ConfigError as e:
        p.error(str(e))

    try:
        run(
            config_path=args.config,
            dry_run=bool(args.dry_run),
            overrides=overrides,
            root=args.root,
        )
    except ConfigError as e:
        logger.error("Kiosk setup failed: %s", e)
        return EXIT_USAGE
    except (ProvisionError, OSError) as e:
        logger.error("Kiosk setup failed: %s", e)
        return EXIT_FAILED

    logger.info("Kiosk setup completed successfully. Reboot to apply Plymouth theme and autologin.")
    return EXIT_OK


if __name__ == "__main__":
    raise SystemExit(main())
