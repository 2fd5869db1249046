"""Connection registry for SchemaSmith.

The registry is the in-memory map of connection id to :class:`Session`
and the only owner of the persisted connection list. Passwords are
decrypted once when the file is loaded and encrypted again on every save;
plaintext never reaches the file.

Serialization:
    * one ``asyncio.Lock`` per connection id, taken by the session manager
      around state transitions (``lock_for``)
    * one registry-level lock around map mutation and file writes
    * reads (``get``, ``all``, ``sessions``) are lock-free snapshots
"""

import asyncio
import json
from datetime import datetime
from pathlib import Path
from typing import Any, Dict, List, Optional

from pydantic import SecretStr
from pydantic import ValidationError as PydanticValidationError

from ..config.models import ConnectionConfig, StorageConfig, format_validation_errors
from ..core.exceptions import (
    DecryptionError,
    ErrorCodes,
    ErrorKind,
    NotFoundError,
    PersistenceError,
)
from ..core.utils import atomic_write
from ..logging import get_logger
from ..security.vault import CredentialVault
from .models import Session

_RUNTIME_FIELDS = ("last_used",)


class ConnectionRegistry:
    """In-memory registry of sessions with JSON persistence.

    Example:
        >>> registry = ConnectionRegistry(vault, StorageConfig())
        >>> await registry.load()
        >>> session = registry.get("connection_6f1c...")
    """

    def __init__(self, vault: CredentialVault, storage: Optional[StorageConfig] = None) -> None:
        self.vault = vault
        self._storage = storage or StorageConfig()
        self.path = Path(self._storage.connections_path)
        self._sessions: Dict[str, Session] = {}
        self._locks: Dict[str, asyncio.Lock] = {}
        self._registry_lock = asyncio.Lock()
        # Ciphertexts that failed to decrypt at load, written back unchanged
        self._undecryptable: Dict[str, str] = {}
        self.logger = get_logger("database.registry")

    def lock_for(self, connection_id: str) -> asyncio.Lock:
        """Return the lock that serializes state changes for one id."""
        lock = self._locks.get(connection_id)
        if lock is None:
            lock = self._locks.setdefault(connection_id, asyncio.Lock())
        return lock

    async def load(self) -> int:
        """Load the persisted connection list.

        A missing file yields an empty registry. Records whose password
        cannot be decrypted load with no password and a warning.

        Returns:
            Number of connections loaded

        Raises:
            PersistenceError: If the file exists but cannot be read or parsed
        """
        if not self.path.exists():
            self.logger.info("No connection registry file found", path=str(self.path))
            return 0

        try:
            raw = await asyncio.to_thread(self.path.read_text, encoding="utf-8")
            records = json.loads(raw) if raw.strip() else []
        except (OSError, ValueError) as e:
            raise PersistenceError(
                f"Cannot read connection registry: {e}",
                code=ErrorCodes.CONFIG_INVALID,
                context={"path": str(self.path)},
                cause=e,
            ) from e

        if not isinstance(records, list):
            raise PersistenceError(
                "Connection registry must contain a list of records",
                code=ErrorCodes.CONFIG_INVALID,
                context={"path": str(self.path)},
            )

        sessions: Dict[str, Session] = {}
        undecryptable: Dict[str, str] = {}
        for record in records:
            session = self._session_from_record(dict(record), undecryptable)
            if session is not None:
                sessions[session.id] = session

        async with self._registry_lock:
            self._sessions = sessions
            self._undecryptable = undecryptable

        self.logger.info("Connection registry loaded", path=str(self.path), connections=len(sessions))
        return len(sessions)

    def _session_from_record(
        self, record: Dict[str, Any], undecryptable: Dict[str, str]
    ) -> Optional[Session]:
        ciphertext = record.pop("password", "") or ""
        runtime = {name: record.pop(name, None) for name in _RUNTIME_FIELDS}
        record.pop("is_active", None)

        try:
            config = ConnectionConfig.model_validate(record)
        except PydanticValidationError as e:
            self.logger.warning(
                "Skipping invalid connection record",
                connection_id=record.get("id"),
                errors=format_validation_errors(e),
            )
            return None

        if not config.id:
            self.logger.warning("Skipping connection record without id", name=config.name)
            return None

        try:
            password = self.vault.decrypt(ciphertext)
        except DecryptionError as e:
            self.logger.warning(
                "Stored password could not be decrypted; loading without password",
                connection_id=config.id,
                error_kind=ErrorKind.DECRYPTION_FAILED.value,
                error=e.message,
            )
            undecryptable[config.id] = ciphertext
            password = ""

        config = config.model_copy(update={"password": SecretStr(password) if password else None})
        session = Session(config=config)
        if runtime.get("last_used"):
            session.last_used = _parse_timestamp(runtime["last_used"])
        return session

    def _record_for(self, session: Session) -> Dict[str, Any]:
        config = session.config
        if config.id in self._undecryptable and not config.password_value:
            encrypted = self._undecryptable[config.id]
        else:
            encrypted = self.vault.encrypt(config.password_value)
        record = config.to_record(encrypted)
        record["last_used"] = session.last_used.isoformat() if session.last_used else None
        return record

    async def save(self) -> bool:
        """Persist every connection record.

        Write failures are logged and reported through the return value;
        in-memory state is left as is.

        Returns:
            True when the file was written
        """
        async with self._registry_lock:
            try:
                records = [self._record_for(session) for session in self._sessions.values()]
                payload = json.dumps(records, indent=2).encode("utf-8")
                await asyncio.to_thread(atomic_write, self.path, payload)
            except (OSError, PersistenceError) as e:
                self.logger.error(
                    "Failed to persist connection registry",
                    path=str(self.path),
                    error_kind=ErrorKind.PERSISTENCE_FAILED.value,
                    error_code=ErrorCodes.REGISTRY_WRITE_FAILED,
                    error=str(e),
                )
                return False

        self.logger.debug("Connection registry saved", path=str(self.path), connections=len(records))
        return True

    async def upsert(self, config: ConnectionConfig) -> Session:
        """Insert a new session or replace the config of an existing one.

        The existing session keeps its pool and state.

        Args:
            config: Connection configuration with an assigned id

        Returns:
            The registered session
        """
        if not config.id:
            raise ValueError("Connection config must have an id before registration")

        async with self._registry_lock:
            session = self._sessions.get(config.id)
            if session is None:
                session = Session(config=config)
                self._sessions[config.id] = session
            else:
                session.config = config
            if config.password_value:
                self._undecryptable.pop(config.id, None)
        return session

    async def remove(self, connection_id: str) -> Session:
        """Remove a session from the map.

        Raises:
            NotFoundError: If the id is unknown
        """
        async with self._registry_lock:
            session = self._sessions.pop(connection_id, None)
            self._undecryptable.pop(connection_id, None)
        if session is None:
            raise self._not_found(connection_id)
        self._locks.pop(connection_id, None)
        return session

    def get(self, connection_id: str) -> Session:
        """Look up a session.

        Raises:
            NotFoundError: If the id is unknown
        """
        session = self._sessions.get(connection_id)
        if session is None:
            raise self._not_found(connection_id)
        return session

    def sessions(self) -> List[Session]:
        """Snapshot of all sessions in registration order."""
        return list(self._sessions.values())

    def all(self) -> List[Dict[str, Any]]:
        """Caller-safe view of every connection, passwords redacted."""
        return [session.to_dict() for session in self.sessions()]

    def verify_credentials(self) -> List[str]:
        """Check every stored password ciphertext on disk.

        Returns:
            Ids whose ciphertext fails authentication under the held keys

        Raises:
            PersistenceError: If the registry file cannot be read
        """
        if not self.path.exists():
            return []
        try:
            records = json.loads(self.path.read_text(encoding="utf-8") or "[]")
        except (OSError, ValueError) as e:
            raise PersistenceError(
                f"Cannot read connection registry: {e}",
                code=ErrorCodes.CONFIG_INVALID,
                context={"path": str(self.path)},
                cause=e,
            ) from e

        failing = []
        for record in records:
            try:
                self.vault.verify(record.get("password") or "")
            except DecryptionError as e:
                self.logger.error(
                    "Stored password failed integrity check",
                    connection_id=record.get("id"),
                    error=e.message,
                )
                failing.append(record.get("id"))
        return failing

    async def reencrypt_all(self) -> bool:
        """Re-save every record so passwords are encrypted under the primary key.

        Ciphertexts that could not be decrypted at load are re-encrypted when
        a held key can read them, otherwise kept unchanged.
        """
        async with self._registry_lock:
            for connection_id, ciphertext in list(self._undecryptable.items()):
                try:
                    self._undecryptable[connection_id] = self.vault.reencrypt(ciphertext)
                except DecryptionError:
                    self.logger.warning(
                        "Cannot re-encrypt undecryptable password", connection_id=connection_id
                    )
        return await self.save()

    def _not_found(self, connection_id: str) -> NotFoundError:
        return NotFoundError(
            f"Connection not found: {connection_id}",
            code=ErrorCodes.CONNECTION_NOT_FOUND,
            context={"connection_id": connection_id},
        )

    def __len__(self) -> int:
        return len(self._sessions)

    def __contains__(self, connection_id: str) -> bool:
        return connection_id in self._sessions


def _parse_timestamp(value: Any) -> Optional[datetime]:
    try:
        return datetime.fromisoformat(str(value))
    except ValueError:
        return None
