import math
import queue
import threading
from dataclasses import dataclass

from tqdm import tqdm


@dataclass(frozen=True)
class ProgressEvent:
    partition_id: int
    delta: int
    message: str = ""


def progress_interval(limit: int, epochs: int) -> int:
    """Records between two progress events for a partition of ``limit`` records."""
    return max(1, math.ceil(limit / epochs))


class ProgressAggregator:
    """Single consumer of progress events published by the workers.

    Workers keep their own counters and only send deltas. The running totals
    and one progress bar per partition live on the consumer thread, so the
    bars are never drawn from two threads at once.
    """

    def __init__(self, disable: bool = False) -> None:
        self._disable = disable
        self._queue: queue.Queue[ProgressEvent | None] = queue.Queue()
        self._totals: dict[int, int] = {}
        self._limits: dict[int, int] = {}
        self._bars: dict[int, tqdm] = {}
        self._thread: threading.Thread | None = None

    def start(self, limits: dict[int, int] | None = None) -> None:
        self._limits = dict(limits or {})
        self._thread = threading.Thread(target=self._consume, name="progress", daemon=True)
        self._thread.start()

    def stop(self) -> None:
        if self._thread is None:
            return
        self._queue.put(None)
        self._thread.join()
        self._thread = None
        for bar in self._bars.values():
            bar.close()
        self._bars = {}

    def publish(self, event: ProgressEvent) -> None:
        self._queue.put(event)

    def totals(self) -> dict[int, int]:
        """Per-partition totals; only stable after ``stop()``."""
        return dict(self._totals)

    def _bar(self, partition_id: int) -> tqdm:
        bar = self._bars.get(partition_id)
        if bar is None:
            bar = tqdm(
                total=self._limits.get(partition_id) or None,
                desc=f"Partition {partition_id}",
                unit="docs",
                unit_scale=True,
                position=partition_id,
                leave=True,
                dynamic_ncols=True,
                disable=self._disable,
            )
            self._bars[partition_id] = bar
        return bar

    def _consume(self) -> None:
        while True:
            event = self._queue.get()
            if event is None:
                return
            self._totals[event.partition_id] = (
                self._totals.get(event.partition_id, 0) + event.delta
            )
            bar = self._bar(event.partition_id)
            bar.update(event.delta)
            if event.message:
                bar.set_postfix_str(event.message)
