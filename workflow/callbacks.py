"""Progress callbacks for monitoring generation runs."""

import logging
from typing import Optional, Protocol, runtime_checkable

from models.book import Book
from models.enums import BookStatus, NodeStatus

logger = logging.getLogger(__name__)


@runtime_checkable
class ProgressCallback(Protocol):
    """Protocol for ``on_progress`` handlers.

    Called with a fresh snapshot of the book after every state transition.
    The snapshot is safe to persist or keep.
    """

    def __call__(self, book: Book) -> None:
        ...


class LoggingProgress:
    """Lightweight callback that logs section counts to the standard logger."""

    def __init__(self):
        self._last_completed = -1

    def __call__(self, book: Book) -> None:
        done = book.count_sections(NodeStatus.COMPLETED)
        total = book.count_sections()
        if done != self._last_completed:
            self._last_completed = done
            logger.info("'%s': %d/%d sections complete", book.title, done, total)
        if book.status == BookStatus.COMPLETED:
            logger.info("'%s' complete", book.title)


class RichProgress:
    """Progress callback that renders a Rich live progress display in the terminal."""

    def __init__(self, console=None):
        """
        Args:
            console: Rich Console instance. Creates one if not provided.
        """
        self._console = console
        self._progress = None
        self._task_id = None

    def start(self):
        """Start the progress display. Call before running the pipeline."""
        from rich.console import Console
        from rich.progress import (
            Progress, SpinnerColumn, TextColumn, BarColumn, TaskProgressColumn,
        )

        console = self._console or Console()
        self._progress = Progress(
            SpinnerColumn("dots"),
            TextColumn("[progress.description]{task.description}"),
            BarColumn(),
            TaskProgressColumn(),
            console=console,
        )
        self._progress.start()
        self._task_id = self._progress.add_task("Waiting to start...", total=None)

    def stop(self):
        """Stop the progress display."""
        if self._progress:
            self._progress.stop()
            self._progress = None

    def __enter__(self):
        self.start()
        return self

    def __exit__(self, exc_type, exc, tb):
        self.stop()

    def _current_label(self, book: Book) -> str:
        for chapter, section in book.iter_sections():
            if section.status == NodeStatus.GENERATING:
                return f"{chapter.title} / {section.title}"
        return "Outlining chapters"

    def __call__(self, book: Book) -> None:
        if not self._progress:
            return
        total = book.count_sections() or None
        done = book.count_sections(NodeStatus.COMPLETED)
        if book.status == BookStatus.COMPLETED:
            description = f"[bold green]Done! {done} sections[/]"
        else:
            description = f"[dim]{self._current_label(book)}[/]"
        self._progress.update(self._task_id, total=total, completed=done, description=description)


def chain_progress(*callbacks: Optional[ProgressCallback]) -> ProgressCallback:
    """Combine several handlers into one; ``None`` entries are skipped."""
    active = [cb for cb in callbacks if cb is not None]

    def _on_progress(book: Book) -> None:
        for cb in active:
            cb(book)

    return _on_progress
