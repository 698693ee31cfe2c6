from __future__ import annotations

import os
from pathlib import Path
from typing import Callable, Dict, Iterable, List, Optional, Sequence

from kiosk_provisioner.errors import CommandError
from kiosk_provisioner.lib.command import CmdResult


class FakeProbe:
    def __init__(
        self,
        commands: Iterable[str] = (),
        users: Iterable[str] = (),
        root: bool = True,
    ) -> None:
        self.commands = set(commands)
        self.users = set(users)
        self.root = root

    def command_exists(self, name: str) -> bool:
        return name in self.commands

    def user_exists(self, name: str) -> bool:
        return name in self.users

    def is_root(self) -> bool:
        return self.root


class FakeRunner:
    """Records commands instead of running them.

    fail_when(argv) returning True makes that call exit non-zero.
    """

    def __init__(self, fail_when: Optional[Callable[[List[str]], bool]] = None) -> None:
        self.calls: List[List[str]] = []
        self.envs: List[Dict[str, str]] = []
        self.fail_when = fail_when

    def __call__(self, argv: Sequence[str], *, env=None, timeout=None, check: bool = True, **kwargs) -> CmdResult:
        argv_list = list(argv)
        self.calls.append(argv_list)
        self.envs.append(dict(env or {}))
        if self.fail_when is not None and self.fail_when(strip_chroot(argv_list)):
            if check:
                raise CommandError(argv_list, 1, "simulated failure")
            return CmdResult(argv=argv_list, returncode=1, stdout="", stderr="simulated failure")
        return CmdResult(argv=argv_list, returncode=0, stdout="", stderr="")

    def commands(self) -> List[List[str]]:
        return [strip_chroot(c) for c in self.calls]


def strip_chroot(argv: List[str]) -> List[str]:
    if len(argv) >= 2 and argv[0] == "chroot":
        return argv[2:]
    return argv


def tree_snapshot(root: str) -> Dict[str, tuple]:
    """Every path under root with its bytes and mtime."""
    out: Dict[str, tuple] = {}
    for dirpath, dirnames, filenames in os.walk(root):
        for d in dirnames:
            p = Path(dirpath) / d
            out[str(p)] = ("dir", p.stat().st_mtime_ns)
        for f in filenames:
            p = Path(dirpath) / f
            out[str(p)] = (p.read_bytes(), p.stat().st_mtime_ns, p.stat().st_mode)
    return out
