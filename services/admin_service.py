"""
services/admin_service.py
-------------------------
The admin workspace: one per bot process.

Owns the three collection repositories, the cross-process notifier and the
sync status line, and offers the admin operations (save, delete, import,
refresh). Every operation that changes data ends with exactly one full
re-render of the views that registered with `add_render_listener`.
"""

import json
import secrets
from datetime import datetime
from typing import Any, Callable, Optional

from db.kv_store import KeyValueStore
from db.pubsub import BroadcastChannel
from models.datasets import DATASETS, get_spec
from repositories.dataset_repo import DatasetRepository, IdFactory
from repositories.persistent_store import PersistentStore
from services.form_service import FormSession, ValidationError, validate
from services.snapshot_service import SnapshotSource
from services.sync_service import CrossContextNotifier
from utils.logger import get_logger

logger = get_logger(__name__)

RenderListener = Callable[[set], None]


def _clock() -> str:
    return datetime.now().strftime("%H:%M:%S")


class AdminSession:
    """
    Editor state of one admin chat: active section, one form per
    collection, and a delete waiting for confirmation.
    """

    def __init__(self):
        self.active_section = "tools"
        self.forms: dict[str, FormSession] = {name: FormSession(spec) for name, spec in DATASETS.items()}
        self.pending_delete: Optional[tuple[str, Any]] = None

    @property
    def form(self) -> FormSession:
        return self.forms[self.active_section]

    def select(self, dataset: str) -> FormSession:
        self.active_section = get_spec(dataset).name
        return self.form


class AdminWorkspace:
    """
    Args:
        backend: Shared key-value store.
        channel: Broadcast channel to other processes, or None.
        snapshots: Source of the bundled JSON used when nothing is persisted.
        origin_id: Identity of this process; random when omitted.
        id_factory: Id generator shared by the three repositories.
    """

    def __init__(self, backend: KeyValueStore, channel: Optional[BroadcastChannel] = None,
                 snapshots: Optional[SnapshotSource] = None, origin_id: Optional[str] = None,
                 id_factory: Optional[IdFactory] = None):
        self.origin_id = origin_id or getattr(backend, "origin_id", "") or secrets.token_hex(8)
        self.store = PersistentStore(backend)
        self.notifier = CrossContextNotifier(self.origin_id, channel, self.store)
        self.notifier.on_applied(self._on_external_update)
        self.id_factory = id_factory or IdFactory()
        self.status = "Loading..."
        self.repositories: dict[str, DatasetRepository] = {}
        self._dirty: set = set()
        self._render_listeners: list[RenderListener] = []

        for spec in DATASETS.values():
            repository = DatasetRepository(spec, self.store, snapshots, self.notifier, self.id_factory)
            repository.add_listener(self._dirty.add)
            self.notifier.register(repository)
            self.repositories[spec.name] = repository

    def repository(self, dataset: str) -> DatasetRepository:
        return self.repositories[get_spec(dataset).name]

    # ── lifecycle ─────────────────────────────────────────

    def start(self) -> dict[str, str]:
        """
        Subscribe to the inbound channels and load all collections.

        Returns:
            {dataset: source} where source is persisted, remote, or empty.
        """
        self.notifier.start()
        sources = {name: repo.initialize() for name, repo in self.repositories.items()}
        for name, source in sources.items():
            if source == "empty":
                logger.warning(f"No {name} available from storage or snapshot; starting empty.")
        self.status = "Ready"
        self._flush()
        return sources

    def poll(self) -> int:
        """Apply pending updates from other processes, then re-render once."""
        seen = self.notifier.poll()
        self._flush()
        return seen

    def stop(self) -> None:
        self.notifier.stop()

    # ── views ─────────────────────────────────────────────

    def add_render_listener(self, listener: RenderListener) -> None:
        """`listener(datasets)` runs after each accepted change."""
        self._render_listeners.append(listener)

    def stats(self) -> dict[str, int]:
        return {name: len(repo) for name, repo in self.repositories.items()}

    def _flush(self) -> None:
        if not self._dirty:
            return
        changed = set(self._dirty)
        self._dirty.clear()
        for listener in list(self._render_listeners):
            try:
                listener(changed)
            except Exception as e:
                logger.error(f"Render listener failed: {e}")

    def _on_external_update(self, dataset: str, via: str) -> None:
        if via == "peer":
            self.status = f"Updated {dataset} from peer @ {_clock()}"
        else:
            self.status = f"Storage sync {dataset} @ {_clock()}"

    # ── editing ───────────────────────────────────────────

    def start_edit(self, session: FormSession, record_id: Any) -> dict:
        """Load a record into `session`. The id must exist."""
        record = self.repository(session.spec.name).get(record_id)
        if record is None:
            return {"success": False, "message": f"⚠️ {session.spec.label.capitalize()} #{record_id} not found."}
        session.start_edit(record)
        return {"success": True, "message": f"✏️ Editing {session.spec.label} #{record.id}"}

    def save(self, session: FormSession) -> dict:
        """
        Create or update from the form, depending on its edit mode.

        Validation failures change nothing and keep the form as it is.
        Any completed save clears the edit mode and blanks the form.

        Returns:
            Dict with 'success', 'message' and, on success, 'record'.
        """
        spec = session.spec
        repository = self.repository(spec.name)
        record = session.bind()
        try:
            validate(record, spec)
        except ValidationError as e:
            return {"success": False, "message": f"⚠️ {e}"}

        label = spec.label.capitalize()
        if session.editing_id is not None:
            current = repository.get(session.editing_id)
            if current is None:
                session.reset()
                return {"success": False, "message": f"⚠️ {label} #{record.id} no longer exists."}
            record.extras = dict(current.extras)
            repository.update(current.id, record)
            stored = repository.get(current.id)
        else:
            stored = repository.create(record)

        session.reset()
        self.status = f"Synced {spec.name} @ {_clock()}"
        self._flush()
        return {"success": True, "message": f"✅ {label} saved (#{stored.id})", "record": stored}

    def delete(self, dataset: str, record_id: Any) -> dict:
        """Remove a record. Confirmation is the caller's job. Unknown ids are a no-op."""
        spec = get_spec(dataset)
        label = spec.label.capitalize()
        if not self.repository(spec.name).delete(record_id):
            return {"success": False, "message": f"⚠️ {label} #{record_id} not found."}
        self.status = f"Synced {spec.name} @ {_clock()}"
        self._flush()
        return {"success": True, "message": f"🗑️ {label} #{record_id} deleted."}

    # ── import / export / refresh ─────────────────────────

    def export_json(self, dataset: str) -> str:
        """The collection as a pretty-printed JSON array that import_json accepts."""
        return json.dumps(self.repository(dataset).to_json(), ensure_ascii=False, indent=2)

    def import_json(self, dataset: str, text: str) -> dict:
        """
        Replace a whole collection with a JSON array.

        Any parse or shape error aborts the import before anything is written.
        """
        spec = get_spec(dataset)
        try:
            data = json.loads(text)
            if not isinstance(data, list):
                raise ValueError("JSON must be an array")
            records = self.repository(spec.name).replace_all(data)
        except (ValueError, TypeError) as e:
            logger.warning(f"Import into {spec.name} failed: {e}")
            return {"success": False, "message": f"❌ Failed to import: {e}"}
        self.status = f"Synced {spec.name} @ {_clock()}"
        self._flush()
        return {"success": True, "message": f"📥 Imported {len(records)} {spec.plural}"}

    def force_refresh(self) -> dict[str, bool]:
        """Re-read every collection from storage, then re-render everything."""
        reloaded = {name: repo.reload() for name, repo in self.repositories.items()}
        self._dirty.update(self.repositories)
        self.status = "Refreshed from local storage"
        self._flush()
        return reloaded
