"""
repositories/dataset_repo.py
----------------------------
In-memory repository for one content collection (tools, guides, or blog).

The repository exclusively owns its record list. Every accepted mutation is
written through to the persistent store, then published to other contexts,
then announced to change listeners (which re-render the views), in that
order and without interleaving.
"""

import dataclasses
import time
from typing import Any, Callable, Iterable, Mapping, Optional

from models.datasets import DatasetSpec
from repositories.persistent_store import PersistentStore
from utils.logger import get_logger

logger = get_logger(__name__)

ChangeListener = Callable[[str], None]


class IdFactory:
    """
    Wall-clock (millisecond) id generator.

    Two creations inside the same millisecond would collide on a raw
    timestamp; the factory bumps the candidate past the last id it issued
    and past any id already taken, so ids from one process never repeat.
    """

    def __init__(self, clock: Optional[Callable[[], int]] = None):
        self._clock = clock or (lambda: int(time.time() * 1000))
        self._last = 0

    def next_id(self, taken: Iterable[Any] = ()) -> int:
        taken = set(taken)
        candidate = max(int(self._clock()), self._last + 1)
        while candidate in taken:
            candidate += 1
        self._last = candidate
        return candidate


def same_id(a: Any, b: Any) -> bool:
    """Ids from JSON may be ints or strings; '17' and 17 name the same record."""
    if a is None or b is None:
        return False
    return a == b or str(a) == str(b)


def records_from_json(spec: DatasetSpec, items: Iterable[Any]) -> list:
    """
    Convert JSON objects (or existing models) into model instances.

    Raises:
        ValueError: If an element is neither a JSON object nor a model.
    """
    records = []
    for index, item in enumerate(items):
        if isinstance(item, spec.record_type):
            records.append(dataclasses.replace(item))
        elif isinstance(item, Mapping):
            records.append(spec.from_dict(item))
        else:
            raise ValueError(f"item {index} is not a JSON object")
    return records


class DatasetRepository:
    """
    Holds the authoritative record list of one collection.

    Args:
        spec: The collection this repository serves.
        store: Persistent store adapter (write-through target).
        snapshots: Read-only source of the bundled JSON snapshot.
        notifier: Publishes write-throughs to other contexts (optional).
        id_factory: Id generator, shared by the repositories of a workspace.
    """

    def __init__(self, spec: DatasetSpec, store: PersistentStore, snapshots=None,
                 notifier=None, id_factory: Optional[IdFactory] = None):
        self.spec = spec
        self.store = store
        self.snapshots = snapshots
        self.notifier = notifier
        self.id_factory = id_factory or IdFactory()
        self.source: Optional[str] = None
        self._records: list = []
        self._listeners: list[ChangeListener] = []

    @property
    def name(self) -> str:
        return self.spec.name

    # ── INIT ──────────────────────────────────────────────

    def initialize(self) -> str:
        """
        Load the collection from the first available source.

        Priority: persisted store, then the bundled snapshot, then empty.
        Exactly one source wins; nothing is merged. An empty persisted array
        counts as a hit.

        Returns:
            'persisted', 'remote', or 'empty'.
        """
        records = self._load_persisted()
        source = "persisted"
        if records is None:
            records = self._load_snapshot()
            source = "remote"
        if records is None:
            records = []
            source = "empty"

        self._records = records
        self.source = source
        logger.info(f"Loaded {len(records)} {self.spec.plural} from {source} source.")
        self._changed()
        return source

    def _load_persisted(self) -> Optional[list]:
        raw = self.store.read(self.spec.storage_key)
        if raw is None:
            return None
        try:
            return records_from_json(self.spec, raw)
        except ValueError as e:
            logger.error(f"Stored {self.spec.plural} are malformed, ignoring them: {e}")
            return None

    def _load_snapshot(self) -> Optional[list]:
        if self.snapshots is None:
            return None
        raw = self.snapshots.fetch(self.spec)
        if raw is None:
            return None
        try:
            return records_from_json(self.spec, raw)
        except ValueError as e:
            logger.warning(f"Bundled {self.spec.plural} snapshot is malformed: {e}")
            return None

    # ── READ ──────────────────────────────────────────────

    def all(self) -> list:
        return list(self._records)

    def get(self, record_id: Any) -> Optional[Any]:
        for record in self._records:
            if same_id(record.id, record_id):
                return record
        return None

    def ids(self) -> list:
        return [r.id for r in self._records]

    def to_json(self) -> list[dict]:
        return [r.to_dict() for r in self._records]

    def __len__(self) -> int:
        return len(self._records)

    # ── WRITE ─────────────────────────────────────────────

    def create(self, record: Any) -> Any:
        """
        Append a new record under a freshly assigned id.

        Returns:
            The stored record (a copy of `record` carrying its new id).
        """
        stored = dataclasses.replace(record, id=self.id_factory.next_id(self.ids()))
        self._records = self._records + [stored]
        self._commit()
        logger.info(f"Created {self.spec.label} #{stored.id}")
        return stored

    def update(self, record_id: Any, record: Any) -> bool:
        """
        Replace the record with `record_id`, keeping its position.

        Returns:
            False (and changes nothing) when the id does not exist.
        """
        if self.get(record_id) is None:
            logger.warning(f"Update skipped: {self.spec.label} #{record_id} not found")
            return False
        current_id = self.get(record_id).id
        replacement = dataclasses.replace(record, id=current_id)
        self._records = [replacement if same_id(r.id, record_id) else r for r in self._records]
        self._commit()
        logger.info(f"Updated {self.spec.label} #{current_id}")
        return True

    def delete(self, record_id: Any) -> bool:
        """
        Remove every record with `record_id`.

        Returns:
            False (and changes nothing) when no record matched.
        """
        remaining = [r for r in self._records if not same_id(r.id, record_id)]
        if len(remaining) == len(self._records):
            return False
        self._records = remaining
        self._commit()
        logger.info(f"Deleted {self.spec.label} #{record_id}")
        return True

    def replace_all(self, items: Any) -> list:
        """
        Swap the whole collection (the import path).

        Records without an id (or with a falsy one) get a new id. The list is
        built completely before it replaces the current one.

        Raises:
            TypeError: If `items` is not a list.
            ValueError: If an element is not a JSON object.
        """
        if not isinstance(items, list):
            raise TypeError("JSON must be an array")
        records = records_from_json(self.spec, items)
        taken = [r.id for r in records if r.id]
        for record in records:
            if not record.id:
                record.id = self.id_factory.next_id(taken)
                taken.append(record.id)
        self._records = records
        self._commit()
        logger.info(f"Replaced {self.spec.plural} with {len(records)} records")
        return self.all()

    # ── SYNC ──────────────────────────────────────────────

    def apply_external(self, items: list, persist: bool) -> None:
        """
        Adopt a collection received from another context.

        Never re-broadcasts. With `persist`, the data is also written to the
        store (the broadcast path); storage events skip that because the
        store already holds the value.

        Raises:
            ValueError: If an element is not a JSON object.
        """
        records = records_from_json(self.spec, items)
        self._records = records
        if persist:
            self.store.write(self.spec.storage_key, self.to_json())
        self._changed()

    def reload(self) -> bool:
        """Re-read the persisted collection. An absent or corrupt value changes nothing."""
        records = self._load_persisted()
        if records is None:
            return False
        self._records = records
        self._changed()
        return True

    # ── LISTENERS ─────────────────────────────────────────

    def add_listener(self, listener: ChangeListener) -> None:
        self._listeners.append(listener)

    def _commit(self) -> None:
        data = self.to_json()
        self.store.write(self.spec.storage_key, data)
        if self.notifier is not None:
            self.notifier.publish(self.spec.name, data)
        self._changed()

    def _changed(self) -> None:
        for listener in list(self._listeners):
            try:
                listener(self.spec.name)
            except Exception as e:
                logger.error(f"Change listener failed for {self.spec.plural}: {e}")
