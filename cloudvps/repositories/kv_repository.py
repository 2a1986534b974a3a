"""
Key/value repository - Data access layer for the persisted state blobs.
PersistentStore is durable (SQLite via SQLAlchemy); SessionStore lives for one process run.
Both degrade to the fallback / a False flag instead of raising.
"""
import json
import logging
from typing import Any, Callable, Dict, Optional

from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.orm import Session

from cloudvps.models import KeyValue

logger = logging.getLogger("cloudvps.store")


class KeyValueRepository:
    """Repository for KeyValue data access"""

    @staticmethod
    def get(db: Session, key: str) -> Optional[KeyValue]:
        return db.query(KeyValue).filter(KeyValue.key == key).first()

    @staticmethod
    def upsert(db: Session, key: str, value: str) -> KeyValue:
        """Insert or replace the raw value stored under key"""
        row = db.query(KeyValue).filter(KeyValue.key == key).first()
        if row:
            row.value = value
        else:
            row = KeyValue(key=key, value=value)
            db.add(row)
        db.commit()
        return row

    @staticmethod
    def delete(db: Session, key: str) -> bool:
        """Delete the row stored under key. Returns False if there was none"""
        deleted = db.query(KeyValue).filter(KeyValue.key == key).delete()
        db.commit()
        return deleted > 0


class PersistentStore:
    """Durable JSON blob storage backed by the kv_store table"""

    def __init__(self, session_factory: Callable[[], Session]):
        self.session_factory = session_factory
        self.repo = KeyValueRepository()

    def load(self, key: str, fallback: Any = None) -> Any:
        """
        Load previously saved data for key.

        Args:
            key: Storage key
            fallback: Returned when the key is absent, corrupt or storage is unavailable

        Returns:
            Decoded JSON value or fallback
        """
        db = None
        try:
            db = self.session_factory()
            row = self.repo.get(db, key)
            if not row or not row.value:
                return fallback
            return json.loads(row.value)
        except (SQLAlchemyError, json.JSONDecodeError) as e:
            logger.warning(f"Failed to load {key!r}, using fallback: {e}")
            return fallback
        finally:
            if db is not None:
                db.close()

    def save(self, key: str, value: Any) -> bool:
        """
        Persist value under key.

        Returns:
            True on success, False if storage failed (the caller keeps going in memory)
        """
        db = None
        try:
            raw = json.dumps(value)
            db = self.session_factory()
            self.repo.upsert(db, key, raw)
            return True
        except (SQLAlchemyError, TypeError, ValueError) as e:
            if db is not None:
                db.rollback()
            logger.warning(f"Failed to save {key!r}: {e}")
            return False
        finally:
            if db is not None:
                db.close()

    def delete(self, key: str) -> bool:
        """
        Remove a single key.

        Returns:
            True if storage was reachable (a missing key counts as removed), False otherwise
        """
        db = None
        try:
            db = self.session_factory()
            self.repo.delete(db, key)
            return True
        except SQLAlchemyError as e:
            if db is not None:
                db.rollback()
            logger.warning(f"Failed to delete {key!r}: {e}")
            return False
        finally:
            if db is not None:
                db.close()


class SessionStore:
    """Non-durable store with the same contract, scoped to the current process"""

    def __init__(self):
        self._data: Dict[str, str] = {}

    def load(self, key: str, fallback: Any = None) -> Any:
        raw = self._data.get(key)
        if raw is None:
            return fallback
        try:
            return json.loads(raw)
        except json.JSONDecodeError:
            return fallback

    def save(self, key: str, value: Any) -> bool:
        try:
            self._data[key] = json.dumps(value)
            return True
        except (TypeError, ValueError) as e:
            logger.warning(f"Failed to save session key {key!r}: {e}")
            return False

    def delete(self, key: str) -> bool:
        self._data.pop(key, None)
        return True
