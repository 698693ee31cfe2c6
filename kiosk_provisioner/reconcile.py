"""Idempotent primitives: the only code that mutates the machine.

Each primitive compares what is there with what should be there and applies
the smallest change that closes the gap. In dry-run mode the same comparison
runs, the intended change is logged, and nothing is touched.
"""

from __future__ import annotations

import os
import stat
import tempfile
from dataclasses import dataclass
from pathlib import Path
from typing import Callable, Optional, Tuple, Union

from .context import ExecutionContext, Outcome
from .errors import CommandError, StepError
from .lib.command import fmt_argv

DEFAULT_FILE_MODE = 0o644


@dataclass(frozen=True)
class FileContent:
    path: str
    content: Union[str, bytes]
    mode: Optional[int] = None


@dataclass(frozen=True)
class LineInFile:
    path: str
    line: str


@dataclass(frozen=True)
class CommandAction:
    description: str
    argv: Tuple[str, ...]
    timeout: Optional[float] = None

    def __post_init__(self) -> None:
        object.__setattr__(self, "argv", tuple(self.argv))


ReconciliationTarget = Union[FileContent, LineInFile, CommandAction]


@dataclass(frozen=True)
class FallbackChain:
    """Ordered alternatives for getting one feature onto the machine."""

    feature: str
    attempts: Tuple[CommandAction, ...]
    satisfied: Optional[Callable[[], bool]] = None
    required: bool = False

    def __post_init__(self) -> None:
        object.__setattr__(self, "attempts", tuple(self.attempts))


def _as_bytes(content: Union[str, bytes]) -> bytes:
    if isinstance(content, bytes):
        return content
    return content.encode("utf-8")


def _atomic_write(path: Path, data: bytes, mode: int) -> None:
    path.parent.mkdir(parents=True, exist_ok=True)
    fd, temp_path = tempfile.mkstemp(dir=path.parent, prefix=f".{path.name}.", suffix=".tmp")
    try:
        with os.fdopen(fd, "wb") as f:
            f.write(data)
            f.flush()
            os.fsync(f.fileno())
        os.chmod(temp_path, mode)
        os.replace(temp_path, path)
    except BaseException:
        if os.path.exists(temp_path):
            os.unlink(temp_path)
        raise


def reconcile_file_content(
    ctx: ExecutionContext,
    path: str,
    content: Union[str, bytes],
    *,
    mode: Optional[int] = None,
) -> Outcome:
    """Make the file at path hold exactly content (and mode, when given).

    A missing file counts as empty, so desired empty content on a missing
    file is already satisfied.
    """

    p = ctx.path(path)
    desired = _as_bytes(content)
    exists = p.exists()
    current = p.read_bytes() if exists else b""
    current_mode = stat.S_IMODE(p.stat().st_mode) if exists else None

    if current == desired:
        if mode is None or not exists or current_mode == mode:
            ctx.log.info("Unchanged %s", p)
            return ctx.record(Outcome.NOOP, "file", str(p))
        if ctx.dry_run:
            ctx.log.info("[DRY-RUN] Would chmod %s to %o", p, mode)
            return ctx.record(Outcome.WOULD_CHANGE, "file_mode", str(p), f"{mode:o}")
        os.chmod(p, mode)
        ctx.log.info("Changed mode of %s to %o", p, mode)
        return ctx.record(Outcome.CHANGED, "file_mode", str(p), f"{mode:o}")

    if ctx.dry_run:
        ctx.log.info("[DRY-RUN] Would write %s (%d bytes)", p, len(desired))
        ctx.log.debug("[DRY-RUN] Content for %s:\n%s", p, desired.decode("utf-8", errors="replace"))
        return ctx.record(Outcome.WOULD_CHANGE, "file", str(p), f"{len(desired)} bytes")

    if mode is None:
        mode = current_mode if current_mode is not None else DEFAULT_FILE_MODE
    _atomic_write(p, desired, mode)
    ctx.log.info("Wrote %s (%d bytes)", p, len(desired))
    return ctx.record(Outcome.CHANGED, "file", str(p), f"{len(desired)} bytes")


def reconcile_line_presence(ctx: ExecutionContext, path: str, line: str) -> Outcome:
    """Ensure line appears verbatim as a whole line of the file.

    Other lines are left alone: nothing is removed or de-duplicated.
    """

    if "\n" in line or "\r" in line:
        raise ValueError(f"line must not contain a newline: {line!r}")

    p = ctx.path(path)
    text = p.read_text(encoding="utf-8", errors="replace") if p.exists() else ""
    if line in text.split("\n"):
        ctx.log.info("Line already present in %s: %s", p, line)
        return ctx.record(Outcome.NOOP, "line", str(p), line)

    if ctx.dry_run:
        ctx.log.info("[DRY-RUN] Would append to %s: %s", p, line)
        return ctx.record(Outcome.WOULD_CHANGE, "line", str(p), line)

    p.parent.mkdir(parents=True, exist_ok=True)
    prefix = "\n" if text and not text.endswith("\n") else ""
    with p.open("a", encoding="utf-8") as f:
        f.write(prefix + line + "\n")
    ctx.log.info("Appended to %s: %s", p, line)
    return ctx.record(Outcome.CHANGED, "line", str(p), line)


def reconcile_command(ctx: ExecutionContext, action: CommandAction) -> Outcome:
    """Run a command action; dry-run only reports it.

    Commands are never considered already satisfied. Whether running one again
    is harmless is up to the command itself.
    """

    argv = ctx.command_argv(action.argv)
    text = fmt_argv(argv)
    if ctx.dry_run:
        ctx.log.info("[DRY-RUN] %s: %s", action.description, text)
        return ctx.record(Outcome.WOULD_CHANGE, "command", text, action.description)

    ctx.log.info("%s", action.description)
    ctx.runner(argv, env=ctx.env, timeout=action.timeout)
    return ctx.record(Outcome.CHANGED, "command", text, action.description)


def apply_target(ctx: ExecutionContext, target: ReconciliationTarget) -> Outcome:
    if isinstance(target, FileContent):
        return reconcile_file_content(ctx, target.path, target.content, mode=target.mode)
    if isinstance(target, LineInFile):
        return reconcile_line_presence(ctx, target.path, target.line)
    if isinstance(target, CommandAction):
        return reconcile_command(ctx, target)
    raise TypeError(f"Unsupported reconciliation target: {type(target).__name__}")


def run_best_effort(ctx: ExecutionContext, action: CommandAction) -> bool:
    """Run a command whose failure should only be logged."""
    try:
        reconcile_command(ctx, action)
    except CommandError as e:
        ctx.log.warning("Non-fatal: %s failed (%s)", action.description, e)
        return False
    return True


def run_fallback_chain(ctx: ExecutionContext, chain: FallbackChain) -> bool:
    """Try each attempt in order until the feature is in place.

    Returns True once satisfied. On exhaustion a required chain raises
    StepError; an optional one logs the degraded feature and returns False.
    """

    for action in chain.attempts:
        if chain.satisfied is not None and chain.satisfied():
            ctx.log.info("%s already available", chain.feature)
            return True
        if not run_best_effort(ctx, action):
            continue
        if ctx.dry_run or chain.satisfied is None or chain.satisfied():
            return True
        ctx.log.warning("%s still unavailable after: %s", chain.feature, action.description)

    if chain.satisfied is not None and chain.satisfied():
        return True

    if chain.required:
        raise StepError(chain.feature, "every fallback was exhausted")
    ctx.log.warning("Degraded: %s could not be installed; continuing without it", chain.feature)
    return False

