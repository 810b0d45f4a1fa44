# craftworks/governance/store.py
"""
Dial storage.

DialStore is keyed by (owner, repo). Records are overwritten in place,
never versioned.
"""

import copy
from abc import ABC, abstractmethod
from typing import Dict, List, Optional, Tuple

from .models import DialRecord


class DialStore(ABC):
    """Repository interface for dial records."""

    @abstractmethod
    def get(self, owner: str, repo: str) -> Optional[DialRecord]:
        ...

    @abstractmethod
    def put(self, record: DialRecord) -> None:
        ...

    @abstractmethod
    def delete(self, owner: str, repo: str) -> bool:
        ...

    @abstractmethod
    def list(self) -> List[DialRecord]:
        ...

    @abstractmethod
    def clear(self) -> None:
        ...


class InMemoryDialStore(DialStore):
    """Process-local dial store."""

    def __init__(self):
        self._records: Dict[Tuple[str, str], DialRecord] = {}

    def get(self, owner: str, repo: str) -> Optional[DialRecord]:
        record = self._records.get((owner, repo))
        return copy.copy(record) if record else None

    def put(self, record: DialRecord) -> None:
        self._records[(record.repo_owner, record.repo_name)] = copy.copy(record)

    def delete(self, owner: str, repo: str) -> bool:
        return self._records.pop((owner, repo), None) is not None

    def list(self) -> List[DialRecord]:
        return [copy.copy(r) for r in self._records.values()]

    def clear(self) -> None:
        self._records.clear()
