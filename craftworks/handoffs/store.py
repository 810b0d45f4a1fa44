# craftworks/handoffs/store.py
"""
Handoff storage.

HandoffStore is the repository interface the service talks to. The
in-memory implementation is the default; craftworks.db.repositories
provides a SQLAlchemy-backed one with the same contract.

Records are copied on the way in and out so a caller holding a Handoff
cannot mutate stored state without going through the service.
"""

import copy
from abc import ABC, abstractmethod
from typing import Dict, List, Optional

from .models import Handoff, StateChange


class HandoffStore(ABC):
    """Repository interface for handoffs and their audit trail."""

    @abstractmethod
    def get(self, handoff_id: str) -> Optional[Handoff]:
        ...

    @abstractmethod
    def put(self, handoff: Handoff) -> None:
        ...

    @abstractmethod
    def delete(self, handoff_id: str) -> bool:
        """Delete a handoff and its state changes."""

    @abstractmethod
    def list(self) -> List[Handoff]:
        ...

    @abstractmethod
    def put_transition(self, handoff: Handoff, change: StateChange) -> bool:
        """
        Store the updated handoff and append its state change in one step.

        The write only happens while the stored status still equals
        change.from_state. Returns False, writing nothing, otherwise.
        """

    @abstractmethod
    def list_state_changes(self, handoff_id: str) -> List[StateChange]:
        ...

    @abstractmethod
    def clear(self) -> None:
        ...


class InMemoryHandoffStore(HandoffStore):
    """
    Process-local handoff store.

    Each worker process holds its own copy; there is no cross-process
    consistency.
    """

    def __init__(self):
        self._handoffs: Dict[str, Handoff] = {}
        self._state_changes: Dict[str, List[StateChange]] = {}

    def get(self, handoff_id: str) -> Optional[Handoff]:
        handoff = self._handoffs.get(handoff_id)
        return copy.deepcopy(handoff) if handoff else None

    def put(self, handoff: Handoff) -> None:
        self._handoffs[handoff.handoff_id] = copy.deepcopy(handoff)
        self._state_changes.setdefault(handoff.handoff_id, [])

    def delete(self, handoff_id: str) -> bool:
        self._state_changes.pop(handoff_id, None)
        return self._handoffs.pop(handoff_id, None) is not None

    def list(self) -> List[Handoff]:
        return [copy.deepcopy(h) for h in self._handoffs.values()]

    def put_transition(self, handoff: Handoff, change: StateChange) -> bool:
        current = self._handoffs.get(handoff.handoff_id)
        if current is None or current.status != change.from_state:
            return False
        self._handoffs[handoff.handoff_id] = copy.deepcopy(handoff)
        self._state_changes.setdefault(handoff.handoff_id, []).append(change)
        return True

    def list_state_changes(self, handoff_id: str) -> List[StateChange]:
        return list(self._state_changes.get(handoff_id, []))

    def clear(self) -> None:
        self._handoffs.clear()
        self._state_changes.clear()
