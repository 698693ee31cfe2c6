from __future__ import annotations

import os
import pwd
import shutil
from pathlib import Path

# Where commands are looked up inside a target root.
TARGET_PATH_DIRS = ("/usr/local/sbin", "/usr/local/bin", "/usr/sbin", "/usr/bin", "/sbin", "/bin", "/snap/bin")


class SystemProbe:
    """Read-only questions about the machine being provisioned.

    Nothing here writes or spawns; steps use it to decide what to reconcile.
    With a target root other than "/", users and commands are looked up
    inside that root. Tests substitute their own object with the same methods.
    """

    def __init__(self, root: str = "/") -> None:
        self.root = root

    @property
    def _in_target(self) -> bool:
        return self.root not in ("", "/")

    def command_exists(self, name: str) -> bool:
        if not self._in_target:
            return shutil.which(name) is not None
        search = os.pathsep.join(str(Path(self.root) / d.lstrip("/")) for d in TARGET_PATH_DIRS)
        return shutil.which(name, path=search) is not None

    def user_exists(self, name: str) -> bool:
        if not self._in_target:
            try:
                pwd.getpwnam(name)
            except KeyError:
                return False
            return True

        passwd = Path(self.root) / "etc/passwd"
        if not passwd.exists():
            return False
        for line in passwd.read_text(encoding="utf-8", errors="replace").splitlines():
            if line.split(":", 1)[0] == name:
                return True
        return False

    def is_root(self) -> bool:
        return os.geteuid() == 0
