"""Key-value stores holding the serialized profile and completion map."""

from __future__ import annotations

import json
import logging
import os
import threading
from pathlib import Path
from typing import Dict, Optional, Protocol

from sqlalchemy import delete, select
from sqlalchemy.orm import Session, sessionmaker

from .config import Settings, get_settings
from .db.models import StoredValueModel
from .db.session import get_engine, get_session_factory, session_scope

logger = logging.getLogger(__name__)


class KeyValueStore(Protocol):
    """Opaque string store used for planner state."""

    def get(self, key: str) -> Optional[str]:  # pragma: no cover - protocol definition
        ...

    def set(self, key: str, value: str) -> None:  # pragma: no cover - protocol definition
        ...

    def clear(self) -> None:  # pragma: no cover - protocol definition
        ...


class InMemoryKeyValueStore:
    """Process-local store, used by tests and the ``memory`` persistence mode."""

    def __init__(self, initial: Optional[Dict[str, str]] = None) -> None:
        self._values: Dict[str, str] = dict(initial or {})

    def get(self, key: str) -> Optional[str]:
        return self._values.get(key)

    def set(self, key: str, value: str) -> None:
        self._values[key] = value

    def clear(self) -> None:
        self._values.clear()

    def snapshot(self) -> Dict[str, str]:
        return dict(self._values)


class JsonFileKeyValueStore:
    """Single JSON document on local disk mapping keys to stored strings."""

    def __init__(self, path: Path) -> None:
        self._path = path.expanduser()
        self._lock = threading.RLock()

    @property
    def path(self) -> Path:
        return self._path

    def _load_unlocked(self) -> Dict[str, str]:
        if not self._path.exists():
            return {}
        try:
            with self._path.open("r", encoding="utf-8") as handle:
                raw = json.load(handle)
        except ValueError:
            logger.warning("State file %s is not valid JSON; treating it as empty", self._path)
            return {}
        if not isinstance(raw, dict):
            logger.warning("State file %s does not hold an object; treating it as empty", self._path)
            return {}
        return {key: value for key, value in raw.items() if isinstance(value, str)}

    def _write_unlocked(self, values: Dict[str, str]) -> None:
        self._path.parent.mkdir(parents=True, exist_ok=True)
        tmp_path = self._path.with_name(self._path.name + ".tmp")
        with tmp_path.open("w", encoding="utf-8") as handle:
            json.dump(values, handle, indent=2, sort_keys=True)
        os.replace(tmp_path, self._path)

    def get(self, key: str) -> Optional[str]:
        with self._lock:
            return self._load_unlocked().get(key)

    def set(self, key: str, value: str) -> None:
        with self._lock:
            values = self._load_unlocked()
            values[key] = value
            self._write_unlocked(values)

    def clear(self) -> None:
        with self._lock:
            if self._path.exists():
                self._path.unlink()


class DatabaseKeyValueStore:
    """SQLAlchemy-backed store, one row per key."""

    def __init__(self, session_factory: Optional[sessionmaker[Session]] = None) -> None:
        self._session_factory = session_factory

    def _factory(self) -> sessionmaker[Session]:
        return self._session_factory or get_session_factory()

    def get(self, key: str) -> Optional[str]:
        with session_scope(self._factory(), commit=False) as session:
            stmt = select(StoredValueModel.value).where(StoredValueModel.key == key)
            return session.execute(stmt).scalar_one_or_none()

    def set(self, key: str, value: str) -> None:
        with session_scope(self._factory()) as session:
            model = session.get(StoredValueModel, key)
            if model is None:
                session.add(StoredValueModel(key=key, value=value))
            else:
                model.value = value

    def clear(self) -> None:
        with session_scope(self._factory()) as session:
            session.execute(delete(StoredValueModel))


def build_store(settings: Optional[Settings] = None) -> KeyValueStore:
    """Instantiate the store selected by ``PATHWAY_PERSISTENCE_MODE``."""
    resolved = settings or get_settings()
    mode = resolved.persistence_mode
    if mode == "memory":
        return InMemoryKeyValueStore()
    if mode == "database":
        get_engine(resolved)
        return DatabaseKeyValueStore(get_session_factory())
    return JsonFileKeyValueStore(resolved.state_path)


__all__ = [
    "DatabaseKeyValueStore",
    "InMemoryKeyValueStore",
    "JsonFileKeyValueStore",
    "KeyValueStore",
    "build_store",
]
