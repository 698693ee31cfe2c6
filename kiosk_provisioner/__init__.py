"""Kiosk provisioner (Python-first, re-runnable).

Core design goals:
- Idempotent reconciliation: only the missing delta is applied
- Dry-run uses the same decisions and mutates nothing
- Layered configuration: defaults < config file < command line
- Headless: nothing ever waits on a prompt
- Centralized logging
"""

__all__ = []
