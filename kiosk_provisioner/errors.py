from __future__ import annotations

from typing import Sequence


class ProvisionError(RuntimeError):
    """Base class for failures the kiosk setup reports instead of crashing."""


class PreconditionError(ProvisionError):
    pass


class ConfigError(ProvisionError):
    pass


class CommandError(ProvisionError):
    def __init__(self, argv: Sequence[str], returncode: int, stderr: str = "") -> None:
        self.argv = list(argv)
        self.returncode = returncode
        self.stderr = stderr
        msg = f"Command failed ({returncode}): {' '.join(self.argv)}"
        if stderr.strip():
            msg += f"\n{stderr.strip()}"
        super().__init__(msg)


class StepError(ProvisionError):
    def __init__(self, step_id: str, message: str) -> None:
        self.step_id = step_id
        super().__init__(f"{step_id}: {message}")
