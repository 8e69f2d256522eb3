from __future__ import annotations

from collections import deque
from threading import Lock

from office_dashboard.models import ChangeRecord, ChangesResponse
from office_dashboard.repository import ChangeEvent


class ChangeFeed:
    """
    Keeps the latest store changes so clients can poll for them and refetch
    whatever they display.
    """

    def __init__(self, maxlen: int = 500) -> None:
        self._revision = 0
        self._changes: deque[ChangeRecord] = deque(maxlen=maxlen)
        self._lock = Lock()

    def __call__(self, event: ChangeEvent) -> None:
        with self._lock:
            self._revision += 1
            self._changes.append(
                ChangeRecord(
                    revision=self._revision,
                    table=event.table,
                    action=event.action,
                    record_id=event.record_id,
                )
            )

    @property
    def revision(self) -> int:
        return self._revision

    def since(self, revision: int) -> ChangesResponse:
        with self._lock:
            return ChangesResponse(
                revision=self._revision,
                changes=[change for change in self._changes if change.revision > revision],
            )
