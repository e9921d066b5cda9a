import threading
from typing import Dict, Optional, Tuple, Type, TypeVar

from pydantic import BaseModel

StateT = TypeVar("StateT", bound=BaseModel)


class ResourceStateStore:
    """
    Minimal thread-safe in-memory store for flat resource state records.

    Records are kept in their JSON form so every load rebuilds the typed
    snapshot, the same way a state file would be read back.
    Replace with a persistent backend when state must survive restarts.
    """

    def __init__(self) -> None:
        self._lock = threading.Lock()
        self._records: Dict[Tuple[str, str], Dict] = {}

    def load(
        self, kind: str, resource_id: str, model: Type[StateT]
    ) -> Optional[StateT]:
        """Return the stored snapshot for ``(kind, resource_id)`` if any."""
        with self._lock:
            record = self._records.get((kind, resource_id))
        if record is None:
            return None
        return model.model_validate(record)

    def persist(self, kind: str, resource_id: str, state: BaseModel) -> None:
        """Store the latest snapshot."""
        record = state.model_dump(mode="json")
        with self._lock:
            self._records[(kind, resource_id)] = record

    def discard(self, kind: str, resource_id: str) -> None:
        """Forget a resource; used when it was deleted or vanished remotely."""
        with self._lock:
            self._records.pop((kind, resource_id), None)
