from __future__ import annotations

from typing import List

from .context import ExecutionContext

BAR_WIDTH = 50


def render_progress(current: int, total: int, label: str, width: int = BAR_WIDTH) -> str:
    """Render one progress line, e.g. ``[#####     ]  50% Installing``."""

    if total < 1:
        raise ValueError("total must be at least 1")
    percent = current * 100 // total
    filled = percent * width // 100
    return f"[{'#' * filled}{' ' * (width - filled)}] {percent:3d}% {label}"


class ProgressTracker:
    """Step N of T bar, redrawn in place on the context's progress stream."""

    def __init__(self, ctx: ExecutionContext, width: int = BAR_WIDTH) -> None:
        self.ctx = ctx
        self.width = width
        self.rendered: List[str] = []

    def init(self, total: int) -> None:
        if total < 1:
            raise ValueError("total must be at least 1")
        self.ctx.total_steps = total
        self.ctx.step_index = 0
        self.rendered = []

    def advance(self, label: str) -> str:
        ctx = self.ctx
        if ctx.step_index >= ctx.total_steps:
            raise RuntimeError(f"progress already at {ctx.step_index}/{ctx.total_steps}")
        ctx.step_index += 1
        line = render_progress(ctx.step_index, ctx.total_steps, label, self.width)

        # Pad so a shorter label fully covers the previous render.
        previous = len(self.rendered[-1]) if self.rendered else 0
        out = ctx.stream
        out.write("\r" + line.ljust(previous))
        if ctx.step_index == ctx.total_steps:
            out.write("\n")
        out.flush()

        self.rendered.append(line)
        return line
