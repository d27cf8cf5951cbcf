"""In-memory storage backend, used by tests and throwaway sessions."""

import copy
from typing import Optional

from shopledger.storage.interface import Collection, CollectionBackend


class InMemoryBackend(CollectionBackend):
    """
    Keeps collections in a dict.

    Records are deep-copied in and out, so callers can never mutate
    stored state without going through save().
    """

    def __init__(self, initial: Optional[dict[Collection, list[dict]]] = None):
        self._collections: dict[Collection, list[dict]] = {}
        for collection, records in (initial or {}).items():
            self._collections[Collection(collection)] = copy.deepcopy(records)
        self.save_count = 0

    def load(self, collection: Collection) -> list[dict]:
        return copy.deepcopy(self._collections.get(Collection(collection), []))

    def save(self, collection: Collection, records: list[dict]) -> None:
        self._collections[Collection(collection)] = copy.deepcopy(records)
        self.save_count += 1

    def commit(self, changes: dict[Collection, list[dict]]) -> None:
        staged = {
            Collection(collection): copy.deepcopy(records)
            for collection, records in changes.items()
        }
        self._collections.update(staged)
        self.save_count += len(staged)
