"""Contact store with Protocol pattern for dependency injection.

Provides RedisContactStore (redis protocol, one key per contact),
RestKvContactStore (same layout over the hosted service's REST API) and
FileContactStore (one local JSON document). The backend is chosen once at
startup by create_contact_store().
"""

import json
import logging
import os
import tempfile
from dataclasses import dataclass
from datetime import UTC, datetime
from pathlib import Path
from typing import Protocol

import httpx
import redis
from upstash_redis import Redis as UpstashRedis
from upstash_redis.errors import UpstashError

from ..config import Settings
from .schemas import ContactRecord
from .service import derive_contact_id

logger = logging.getLogger(__name__)

MSG_CREATED = "New contact saved."
MSG_UPDATED = "Contact updated."
MSG_SAVE_FAILED = "An error occurred while saving the contact."
MSG_DELETED = "Contact deleted."
MSG_NOT_FOUND = "Contact not found."
MSG_DELETE_FAILED = "An error occurred while deleting the contact."


@dataclass
class StoreResult:
    success: bool
    message: str
    contact: ContactRecord | None = None
    not_found: bool = False


def _now_iso() -> str:
    return datetime.now(UTC).isoformat(timespec="milliseconds").replace("+00:00", "Z")


def _stamp(record: ContactRecord, existing: ContactRecord | None) -> ContactRecord:
    """Assign the id and timestamps; an existing record keeps its createdAt."""
    now = _now_iso()
    return record.model_copy(
        update={
            "id": derive_contact_id(record),
            "created_at": existing.created_at if existing and existing.created_at else now,
            "updated_at": now,
        }
    )


class ContactStore(Protocol):
    """Contact store interface."""

    backend: str

    def list_all(self) -> dict[str, ContactRecord]: ...
    def get(self, contact_id: str) -> ContactRecord | None: ...
    def put(self, record: ContactRecord) -> StoreResult: ...
    def delete(self, contact_id: str) -> StoreResult: ...
    def ping(self) -> bool: ...


class FileContactStore:
    """Whole database kept as a single JSON document on local disk."""

    backend = "file"

    def __init__(self, path: str | Path) -> None:
        self._path = Path(path)

    @property
    def path(self) -> Path:
        return self._path

    def _read(self) -> dict[str, ContactRecord]:
        raw = json.loads(self._path.read_text(encoding="utf-8"))
        return {cid: ContactRecord.model_validate(data) for cid, data in raw.items()}

    def _write(self, contacts: dict[str, ContactRecord]) -> None:
        """Replace the document atomically: write a sibling temp file, then rename it over."""
        self._path.parent.mkdir(parents=True, exist_ok=True)
        payload = {cid: c.to_json() for cid, c in contacts.items()}
        fd, tmp_name = tempfile.mkstemp(dir=self._path.parent, prefix=f".{self._path.name}.", suffix=".tmp")
        try:
            with os.fdopen(fd, "w", encoding="utf-8") as fh:
                json.dump(payload, fh, ensure_ascii=False, indent=2)
            os.replace(tmp_name, self._path)
        except BaseException:
            Path(tmp_name).unlink(missing_ok=True)
            raise

    def list_all(self) -> dict[str, ContactRecord]:
        try:
            return self._read()
        except FileNotFoundError:
            logger.debug("Contacts file %s not found, returning empty database", self._path)
            return {}
        except (OSError, ValueError, AttributeError):
            logger.exception("Failed to read contacts file %s", self._path)
            return {}

    def get(self, contact_id: str) -> ContactRecord | None:
        return self.list_all().get(contact_id)

    def put(self, record: ContactRecord) -> StoreResult:
        try:
            try:
                contacts = self._read()
            except FileNotFoundError:
                logger.info("Creating new contacts file at %s", self._path)
                contacts = {}
            stamped = _stamp(record, contacts.get(derive_contact_id(record)))
            is_update = stamped.id in contacts
            contacts[stamped.id] = stamped
            self._write(contacts)
        except Exception:
            logger.exception("Failed to save contact to file %s", self._path)
            return StoreResult(success=False, message=MSG_SAVE_FAILED)
        return StoreResult(success=True, message=MSG_UPDATED if is_update else MSG_CREATED, contact=stamped)

    def delete(self, contact_id: str) -> StoreResult:
        try:
            contacts = self._read()
            if contact_id not in contacts:
                return StoreResult(success=False, message=MSG_NOT_FOUND, not_found=True)
            del contacts[contact_id]
            self._write(contacts)
        except FileNotFoundError:
            return StoreResult(success=False, message=MSG_NOT_FOUND, not_found=True)
        except Exception:
            logger.exception("Failed to delete contact %r from file %s", contact_id, self._path)
            return StoreResult(success=False, message=MSG_DELETE_FAILED)
        return StoreResult(success=True, message=MSG_DELETED)

    def ping(self) -> bool:
        folder = self._path.parent
        if not folder.exists():
            return True
        return folder.is_dir() and os.access(folder, os.W_OK)


class RedisContactStore:
    """Hosted key-value backend: one JSON value per contact under a key prefix."""

    backend = "kv"
    # Client failures that mean "store unavailable" rather than a bug.
    errors: tuple[type[Exception], ...] = (redis.RedisError,)

    def __init__(self, redis_url: str, prefix: str = "contacts:", client=None) -> None:
        self._client = client if client is not None else redis.from_url(redis_url, decode_responses=True)
        self._prefix = prefix

    def _key(self, contact_id: str) -> str:
        return f"{self._prefix}{contact_id}"

    def _iter_keys(self):
        return self._client.scan_iter(match=f"{self._prefix}*")

    def _load(self, key: str) -> ContactRecord | None:
        raw = self._client.get(key)
        if raw is None:
            return None
        return ContactRecord.model_validate_json(raw)

    def list_all(self) -> dict[str, ContactRecord]:
        try:
            contacts: dict[str, ContactRecord] = {}
            for key in self._iter_keys():
                contact = self._load(key)
                if contact is not None:
                    contacts[key[len(self._prefix):]] = contact
            return contacts
        except (*self.errors, ValueError):
            logger.exception("Failed to list contacts from key-value store")
            return {}

    def get(self, contact_id: str) -> ContactRecord | None:
        try:
            return self._load(self._key(contact_id))
        except (*self.errors, ValueError):
            logger.exception("Failed to read contact %r from key-value store", contact_id)
            return None

    def put(self, record: ContactRecord) -> StoreResult:
        try:
            key = self._key(derive_contact_id(record))
            existing = self._load(key)
            stamped = _stamp(record, existing)
            self._client.set(key, json.dumps(stamped.to_json(), ensure_ascii=False))
        except (*self.errors, ValueError):
            logger.exception("Failed to save contact to key-value store")
            return StoreResult(success=False, message=MSG_SAVE_FAILED)
        return StoreResult(
            success=True,
            message=MSG_UPDATED if existing is not None else MSG_CREATED,
            contact=stamped,
        )

    def delete(self, contact_id: str) -> StoreResult:
        try:
            key = self._key(contact_id)
            if self._client.get(key) is None:
                return StoreResult(success=False, message=MSG_NOT_FOUND, not_found=True)
            self._client.delete(key)
        except self.errors:
            logger.exception("Failed to delete contact %r from key-value store", contact_id)
            return StoreResult(success=False, message=MSG_DELETE_FAILED)
        return StoreResult(success=True, message=MSG_DELETED)

    def ping(self) -> bool:
        try:
            return bool(self._client.ping())
        except self.errors:
            return False


class RestKvContactStore(RedisContactStore):
    """Same key layout as RedisContactStore, spoken over the hosted service's REST API.

    Used when only the REST endpoint and token are configured; that token is
    not a redis protocol password.
    """

    errors = (UpstashError, httpx.HTTPError)

    def __init__(self, rest_url: str, token: str, prefix: str = "contacts:", client=None) -> None:
        super().__init__(
            rest_url,
            prefix=prefix,
            client=client if client is not None else UpstashRedis(url=rest_url, token=token),
        )

    def _iter_keys(self):
        cursor = 0
        while True:
            cursor, keys = self._client.scan(cursor, match=f"{self._prefix}*")
            yield from keys
            if int(cursor) == 0:
                return


def create_contact_store(config: Settings) -> ContactStore:
    """Factory: hosted key-value store when credentials are configured, local file otherwise."""
    if config.kv_url:
        logger.info("Using redis key-value contact store (prefix=%s)", config.kv_prefix)
        return RedisContactStore(config.kv_url, prefix=config.kv_prefix)
    if config.uses_rest_kv:
        logger.info("Using REST key-value contact store at %s (prefix=%s)", config.kv_rest_api_url, config.kv_prefix)
        return RestKvContactStore(config.kv_rest_api_url, config.kv_rest_api_token, prefix=config.kv_prefix)
    logger.info("Using file contact store at %s", config.contacts_file)
    return FileContactStore(config.contacts_file)
