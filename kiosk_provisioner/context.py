from __future__ import annotations

import enum
import logging
import sys
from dataclasses import dataclass, field
from pathlib import Path
from typing import Any, Callable, Dict, List, Optional, Sequence, TextIO

from .lib.command import CmdResult, run_cmd
from .lib.env import NONINTERACTIVE_ENV, PATHS
from .lib.probe import SystemProbe

logger = logging.getLogger("kiosk_provisioner")


class Outcome(str, enum.Enum):
    NOOP = "noop"
    WOULD_CHANGE = "would_change"
    CHANGED = "changed"

    @property
    def changed(self) -> bool:
        """True when a real run mutated, or a dry run would have."""
        return self is not Outcome.NOOP


@dataclass(frozen=True)
class Decision:
    outcome: Outcome
    kind: str
    subject: str
    detail: str = ""


@dataclass
class ExecutionContext:
    """Per-run state handed to every reconciliation and sequencing call.

    Created once at startup. dry_run is fixed for the whole run; the step
    counter, decision log and pending restarts are mutated as the run goes.
    """

    dry_run: bool = False
    root: str = PATHS.target_root
    log: logging.Logger = logger
    runner: Callable[..., CmdResult] = run_cmd
    probe: Any = None
    env: Dict[str, str] = field(default_factory=lambda: dict(NONINTERACTIVE_ENV))
    progress_stream: Optional[TextIO] = None
    step_index: int = 0
    total_steps: int = 0
    decisions: List[Decision] = field(default_factory=list)
    pending_restarts: List[str] = field(default_factory=list)

    def __post_init__(self) -> None:
        if self.probe is None:
            self.probe = SystemProbe(self.root)

    def path(self, p: str | Path) -> Path:
        """Map an absolute machine path onto the target root."""
        if self.root in ("", "/"):
            return Path(p)
        return Path(self.root) / str(p).lstrip("/")

    def command_argv(self, argv: Sequence[str]) -> List[str]:
        """Commands for a target root run inside it via chroot."""
        if self.root in ("", "/"):
            return list(argv)
        return ["chroot", self.root, *argv]

    def record(self, outcome: Outcome, kind: str, subject: str, detail: str = "") -> Outcome:
        self.decisions.append(Decision(outcome=outcome, kind=kind, subject=subject, detail=detail))
        return outcome

    def mutations(self) -> List[Decision]:
        return [d for d in self.decisions if d.outcome is Outcome.CHANGED]

    def request_restart(self, service: str) -> None:
        if service not in self.pending_restarts:
            self.pending_restarts.append(service)

    @property
    def stream(self) -> TextIO:
        return self.progress_stream if self.progress_stream is not None else sys.stdout
