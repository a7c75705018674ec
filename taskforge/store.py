"""
Entity storage: key-value store and per-owner index.

KeyValueStore and OwnerIndexStore are the ports for a backing store; the
in-memory implementations are the defaults. OwnedCollection pairs one of each
for an entity type and is the only code that writes to them, so the owner
index always matches the stored entities.
"""
import copy
from abc import ABC, abstractmethod
from typing import Callable, Dict, Generic, List, Optional, TypeVar

from taskforge.exceptions import NotFoundError

V = TypeVar("V")
E = TypeVar("E")


class KeyValueStore(ABC, Generic[V]):
    """Id -> value storage."""

    @abstractmethod
    def get(self, key: str) -> Optional[V]:
        pass

    @abstractmethod
    def insert(self, key: str, value: V) -> None:
        pass

    @abstractmethod
    def remove(self, key: str) -> Optional[V]:
        pass

    def contains(self, key: str) -> bool:
        return self.get(key) is not None


class OwnerIndexStore(ABC):
    """Owner -> set of entity ids."""

    @abstractmethod
    def add(self, owner_id: str, entity_id: str) -> None:
        pass

    @abstractmethod
    def remove(self, owner_id: str, entity_id: str) -> None:
        pass

    @abstractmethod
    def ids(self, owner_id: str) -> List[str]:
        pass


class InMemoryKeyValueStore(KeyValueStore[V]):
    """
    Dict-backed store.

    Values are copied on the way in and out, so a caller mutating a loaded
    entity changes nothing until it writes the entity back.
    """

    def __init__(self):
        self._items: Dict[str, V] = {}

    def get(self, key: str) -> Optional[V]:
        value = self._items.get(key)
        return copy.deepcopy(value) if value is not None else None

    def insert(self, key: str, value: V) -> None:
        self._items[key] = copy.deepcopy(value)

    def remove(self, key: str) -> Optional[V]:
        return self._items.pop(key, None)

    def contains(self, key: str) -> bool:
        return key in self._items

    def __len__(self) -> int:
        return len(self._items)


class InMemoryOwnerIndex(OwnerIndexStore):
    """Insertion-ordered id sets per owner; empty sets are dropped."""

    def __init__(self):
        self._index: Dict[str, Dict[str, None]] = {}

    def add(self, owner_id: str, entity_id: str) -> None:
        self._index.setdefault(owner_id, {})[entity_id] = None

    def remove(self, owner_id: str, entity_id: str) -> None:
        ids = self._index.get(owner_id)
        if ids is None:
            return
        ids.pop(entity_id, None)
        if not ids:
            del self._index[owner_id]

    def ids(self, owner_id: str) -> List[str]:
        return list(self._index.get(owner_id, {}))


class OwnedCollection(Generic[E]):
    """
    Entities of one type plus their owner index.

    Inserts write the store before the index; removals delete from the store
    before the index.
    """

    def __init__(
        self,
        entity_name: str,
        store: Optional[KeyValueStore[E]] = None,
        index: Optional[OwnerIndexStore] = None,
    ):
        self.entity_name = entity_name
        self._store: KeyValueStore[E] = store if store is not None else InMemoryKeyValueStore()
        self._index: OwnerIndexStore = index if index is not None else InMemoryOwnerIndex()

    def get(self, entity_id: str) -> Optional[E]:
        return self._store.get(entity_id)

    def require(self, entity_id: str, entity_name: Optional[str] = None) -> E:
        entity = self._store.get(entity_id)
        if entity is None:
            raise NotFoundError(entity_name or self.entity_name, entity_id)
        return entity

    def exists(self, entity_id: str) -> bool:
        return self._store.contains(entity_id)

    def insert(self, entity: E) -> None:
        self._store.insert(entity.id, entity)
        self._index.add(entity.owner_id, entity.id)

    def replace(self, entity: E) -> None:
        """Write back an entity that is already stored. Owners never change."""
        if not self._store.contains(entity.id):
            raise NotFoundError(self.entity_name, entity.id)
        self._store.insert(entity.id, entity)

    def remove(self, entity: E) -> None:
        self._store.remove(entity.id)
        self._index.remove(entity.owner_id, entity.id)

    def ids_for(self, owner_id: str) -> List[str]:
        return self._index.ids(owner_id)

    def list_for(self, owner_id: str, predicate: Optional[Callable[[E], bool]] = None) -> List[E]:
        """Dereference the owner's ids; dangling ids are skipped."""
        entities = []
        for entity_id in self._index.ids(owner_id):
            entity = self._store.get(entity_id)
            if entity is None:
                continue
            if predicate is None or predicate(entity):
                entities.append(entity)
        return entities

    def find_for(self, owner_id: str, predicate: Callable[[E], bool]) -> Optional[E]:
        matches = self.list_for(owner_id, predicate)
        return matches[0] if matches else None
