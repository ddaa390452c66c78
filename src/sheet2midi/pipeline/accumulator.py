"""Incremental accumulation of detected musical elements."""

import threading
from collections.abc import Iterable, Mapping

from sheet2midi.models.elements import DetectedElements


class ElementAccumulator:
    """Holds the partial DetectedElements record of the active job.

    Merges are last-writer-wins per field: a field present in a partial update
    replaces the accumulated value, absent fields are left alone, so a field
    once set is never unset. Readers get copies taken under the same lock the
    writers hold, so a snapshot never sees a half-applied merge.
    """

    def __init__(self):
        self._lock = threading.Lock()
        self._fields: dict = {}

    def merge(self, partial: DetectedElements | Mapping) -> DetectedElements:
        """Apply a partial update and return the new accumulated record."""
        if not isinstance(partial, DetectedElements):
            partial = DetectedElements.model_validate(dict(partial))
        update = partial.present_fields()
        with self._lock:
            if update:
                merged = {**self._fields, **update}
                # validate the combined record before publishing it
                DetectedElements.model_validate(merged)
                self._fields = merged
            return DetectedElements.model_validate(self._fields)

    def snapshot(self) -> DetectedElements:
        with self._lock:
            fields = dict(self._fields)
        return DetectedElements.model_validate(fields)

    def missing(self, fields: Iterable[str]) -> list[str]:
        """Names from ``fields`` that no stage has set yet."""
        with self._lock:
            return [name for name in fields if name not in self._fields]

    def clear(self) -> None:
        with self._lock:
            self._fields = {}
