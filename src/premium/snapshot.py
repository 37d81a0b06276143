from __future__ import annotations

"""
Current-dataset holder for long-running callers.

A reload validates the new raw dataset off to the side and publishes it in
one reference swap. Readers that already took a snapshot keep using it.
"""

import threading

from .dataset import load_dataset
from .errors import DatasetError
from .models import Dataset


class DatasetStore:
    """
    Thread-safe holder of the published dataset snapshot.
    """

    def __init__(self, initial: Dataset | None = None) -> None:
        self._current = initial
        self._generation = 0 if initial is None else 1
        self._lock = threading.Lock()

    def current(self) -> Dataset | None:
        with self._lock:
            return self._current

    @property
    def generation(self) -> int:
        with self._lock:
            return self._generation

    def publish(self, dataset: Dataset) -> None:
        with self._lock:
            self._current = dataset
            self._generation += 1

    def reload(self, raw: object) -> Dataset | DatasetError:
        """
        Validate `raw` and publish it if accepted.

        On rejection the previously published snapshot stays in effect.
        """
        result = load_dataset(raw)
        if isinstance(result, DatasetError):
            return result
        self.publish(result)
        return result
