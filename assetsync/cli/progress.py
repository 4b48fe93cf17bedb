"""Progress display for pack transfers using rich."""

from typing import Optional

from rich import filesize
from rich.console import Console
from rich.progress import (
    BarColumn,
    Progress,
    SpinnerColumn,
    TextColumn,
    TimeElapsedColumn,
)
from rich.table import Table

from assetsync.model import IndexerProgress


class TransferProgressDisplay:
    """
    Renders IndexerProgress snapshots as two bars: bytes received and objects indexed.

    Use the instance itself as the progress callback:

        with TransferProgressDisplay("en/cards") as display:
            sync.download("en", "cards", on_progress=display)
    """

    def __init__(self, description: str, console: Optional[Console] = None):
        self.console = console or Console(stderr=True)
        self.description = description
        self._progress: Optional[Progress] = None
        self._receive_task = None
        self._index_task = None
        self.last: Optional[IndexerProgress] = None

    def __enter__(self):
        self._progress = Progress(
            SpinnerColumn(),
            TextColumn("[bold blue]{task.description}"),
            BarColumn(),
            TextColumn("{task.fields[detail]}"),
            TimeElapsedColumn(),
            console=self.console,
            refresh_per_second=10,
            transient=True,
        )
        self._progress.start()
        # Git contacts the server before the first snapshot arrives
        self._receive_task = self._progress.add_task(
            f"{self.description}: preparing", total=None, detail=""
        )
        return self

    def __exit__(self, exc_type, exc, tb):
        if self._progress:
            self._progress.stop()
            self._progress = None

    def __call__(self, stats: IndexerProgress) -> bool:
        self.last = stats
        if self._progress is None:
            return True

        self._progress.update(
            self._receive_task,
            description=f"{self.description}: receiving",
            completed=stats.received_bytes,
            detail=filesize.decimal(stats.received_bytes),
        )
        if stats.received_objects:
            if self._index_task is None:
                self._index_task = self._progress.add_task(
                    f"{self.description}: indexing", total=stats.total_objects, detail=""
                )
            self._progress.update(
                self._index_task,
                total=stats.total_objects,
                completed=stats.indexed_objects,
                detail=f"{stats.indexed_objects}/{stats.total_objects} objects",
            )
        return True

    def summary(self) -> None:
        if self.last is None:
            return
        table = Table(show_header=False, box=None, padding=(0, 2))
        table.add_column(style="dim")
        table.add_column()
        table.add_row("objects:", str(self.last.total_objects))
        table.add_row("deltas:", str(self.last.total_deltas))
        table.add_row("local objects:", str(self.last.local_objects))
        table.add_row("received bytes:", str(self.last.received_bytes))
        self.console.print(table)
