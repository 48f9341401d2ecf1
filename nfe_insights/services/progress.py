from __future__ import annotations

import sys
from typing import Any

from tqdm import tqdm
from tqdm.std import tqdm as TqdmType

"""Progress display service with tqdm (TTY only).

The load pipeline reports overall progress as a percentage (0-100). This
module turns those callbacks into a single tqdm bar when stdout is a
terminal; in non-TTY environments (CI, notebooks redirected to files) it
only records the last value so no ANSI control sequences are emitted.
"""

__all__ = [
    "ProgressTracker",
    "is_tty_enabled",
]


def is_tty_enabled() -> bool:
    """Check if TTY output is enabled.

    Returns:
        True if stdout is a TTY and progress should be displayed, False otherwise
    """
    return sys.stdout.isatty()


class ProgressTracker:
    """Percentage progress bar driven by `update_to(percent)` callbacks.

    Values never move backwards: a callback lower than the current position
    is ignored, so the bar is monotonically non-decreasing.
    """

    def __init__(self, *, description: str = "Processando dados") -> None:
        self.description = description
        self.percent = 0.0

        self.enabled = is_tty_enabled()
        self.pbar: TqdmType[Any] | None
        if self.enabled:
            self.pbar = tqdm(
                total=100,
                desc=description,
                unit="%",
                disable=False,
                leave=True,
                position=0,
                ncols=80,
                ascii=True,
                bar_format="{l_bar}{bar}| {n:.0f}%",
            )
        else:
            self.pbar = None

    def update_to(self, percent: float) -> None:
        """Move the bar to `percent` (clamped to 0-100)."""
        percent = max(0.0, min(100.0, float(percent)))
        if percent <= self.percent:
            return
        delta = percent - self.percent
        self.percent = percent
        if self.enabled and self.pbar is not None:
            self.pbar.update(delta)

    def __call__(self, percent: float) -> None:
        self.update_to(percent)

    def set_stage(self, stage: str) -> None:
        """Show the current pipeline stage next to the bar."""
        if self.enabled and self.pbar is not None:
            self.pbar.set_postfix_str(stage)

    def close(self) -> None:
        """Close the progress bar."""
        if self.enabled and self.pbar is not None:
            self.pbar.close()
            self.pbar = None

    def __enter__(self) -> ProgressTracker:
        return self

    def __exit__(self, exc_type: Any, exc_val: Any, exc_tb: Any) -> None:
        self.close()
