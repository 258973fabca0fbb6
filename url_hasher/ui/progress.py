"""Terminal progress for a hashing run, rendered with Rich on stderr."""

from __future__ import annotations

import threading
from dataclasses import dataclass

from rich.console import Console
from rich.errors import LiveError
from rich.progress import (
    BarColumn,
    Progress,
    ProgressColumn,
    SpinnerColumn,
    Task,
    TaskID,
    TaskProgressColumn,
    TextColumn,
    TimeElapsedColumn,
)
from rich.text import Text


@dataclass
class ProgressState:
    total: int
    success: int = 0
    failed: int = 0
    current_url: str | None = None

    @property
    def done(self) -> int:
        return self.success + self.failed


class RateColumn(ProgressColumn):
    """Render the number of URLs hashed per second."""

    def render(self, task: Task) -> Text:
        speed = task.finished_speed or task.speed
        if speed is None:
            return Text("", style="progress.percentage")
        return Text(f"{speed:.1f} url/s", style="progress.percentage")


class ProgressReporter:
    """Render progress and maintain counters for CLI feedback."""

    def __init__(self, enabled: bool = True, console: Console | None = None) -> None:
        self.enabled = enabled
        self._console = console
        self._progress: Progress | None = None
        self._task_id: TaskID | None = None
        self.state: ProgressState | None = None
        self._lock = threading.Lock()

    def start(self, total: int) -> None:
        self.state = ProgressState(total=total)
        if not self.enabled:
            return
        if self._console is None:
            self._console = Console(stderr=True)
        if not self._console.is_terminal:
            # non-interactive output: keep counting, skip rendering
            self.enabled = False
            return
        self._progress = Progress(
            SpinnerColumn(style="cyan"),
            BarColumn(bar_width=None, complete_style="green", finished_style="green"),
            TaskProgressColumn(show_speed=False),
            TimeElapsedColumn(),
            RateColumn(),
            TextColumn("[green]✓{task.fields[success]:>4}", justify="right"),
            TextColumn("[red]✗{task.fields[failed]:>4}", justify="right"),
            TextColumn("[dim]{task.fields[current_url]}", justify="left"),
            expand=True,
            transient=True,
            console=self._console,
        )
        try:
            self._progress.start()
        except LiveError:
            # another live display owns the console
            self.enabled = False
            self._progress = None
            return
        self._task_id = self._progress.add_task(
            "hash", total=total, success=0, failed=0, current_url=""
        )

    def advance(self, success: bool, current_url: str | None = None) -> None:
        if not self.state:
            raise RuntimeError("ProgressReporter.start must be called before advance")
        # callbacks arrive from worker threads
        with self._lock:
            if current_url:
                self.state.current_url = current_url
            if success:
                self.state.success += 1
            else:
                self.state.failed += 1
            if self._progress is not None and self._task_id is not None:
                display_url = self.state.current_url or ""
                if len(display_url) > 60:
                    display_url = display_url[:57] + "..."
                self._progress.update(
                    self._task_id,
                    advance=1,
                    success=self.state.success,
                    failed=self.state.failed,
                    current_url=display_url,
                )

    def close(self) -> None:
        if self._progress is not None:
            self._progress.stop()
            self._progress = None
        self._task_id = None

    def summary(self) -> dict[str, int]:
        if not self.state:
            return {"success": 0, "failed": 0, "pending": 0}
        return {
            "success": self.state.success,
            "failed": self.state.failed,
            "pending": self.state.total - self.state.done,
        }


__all__ = ["ProgressReporter", "ProgressState", "RateColumn"]
