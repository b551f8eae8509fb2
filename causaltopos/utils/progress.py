from contextlib import contextmanager
from typing import Callable, Iterator, Tuple

from rich.progress import BarColumn, Progress, TextColumn, TimeElapsedColumn, TimeRemainingColumn


def create_progress(description: str, total: int) -> Tuple[Progress, int]:
    """Return a ``Progress`` instance and task ID for ``description``."""
    progress = Progress(
        TextColumn("[progress.description]{task.description}"),
        BarColumn(),
        TextColumn("[progress.percentage]{task.percentage:>3.0f}%"),
        TimeElapsedColumn(),
        TimeRemainingColumn(),
    )
    task_id = progress.add_task(description, total=total)
    return progress, task_id


@contextmanager
def progress_context(description: str, total: int):
    """Yield a started progress bar and stop it afterwards."""
    progress, task_id = create_progress(description, total)
    progress.start()
    try:
        yield progress, task_id
    finally:
        progress.stop()


@contextmanager
def refinement_progress(
    description: str = "Refining embeddings",
) -> Iterator[Callable[[int, str], None]]:
    """Yield an ``on_progress`` callback that drives a rich progress bar.

    The callback accepts the percentage checkpoints and phase labels reported
    by :class:`~causaltopos.analysis.transformer.EmbeddingRefiner`.
    """
    with progress_context(description, total=100) as (progress, task_id):

        def _update(percent: int, phase: str) -> None:
            label = getattr(phase, "value", phase)
            progress.update(task_id, completed=percent, description=f"{description}: {label}")

        yield _update
