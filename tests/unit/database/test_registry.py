"""Unit tests for the connection registry."""

import json

import pytest

from schemasmith.config.models import ConnectionConfig, StorageConfig, VaultConfig
from schemasmith.core.exceptions import ErrorCodes, NotFoundError, PersistenceError
from schemasmith.database.registry import ConnectionRegistry
from schemasmith.security.vault import CredentialVault


def _config(connection_id="connection_1", **overrides):
    data = {
        "id": connection_id,
        "name": "Inventory",
        "engine": "firebird",
        "host": "db.example.com",
        "database": "/data/inventory.fdb",
        "username": "SYSDBA",
        "password": "masterkey",
    }
    data.update(overrides)
    return ConnectionConfig(**data)


class TestPersistence:
    """Test loading and saving the registry file."""

    @pytest.mark.asyncio
    async def test_load_missing_file(self, registry):
        """Test a missing file yields an empty registry."""
        assert await registry.load() == 0
        assert len(registry) == 0

    @pytest.mark.asyncio
    async def test_round_trip(self, registry, vault):
        """Test saved connections load back with their passwords."""
        await registry.upsert(_config())
        assert await registry.save() is True

        reloaded = ConnectionRegistry(vault, StorageConfig(connections_path=registry.path))

        assert await reloaded.load() == 1
        config = reloaded.get("connection_1").config
        assert config.password_value == "masterkey"
        assert config.host == "db.example.com"
        assert config.is_active is False

    @pytest.mark.asyncio
    async def test_round_trip_special_characters(self, registry, vault, monkeypatch):
        """Test $, braces and colons in names and passwords survive reload."""
        monkeypatch.setenv("X", "expanded")
        await registry.upsert(
            _config(name="Sales ${X} {eu}: main", password="pa${X}ss:{x}$", database="C:\\data\\db.fdb")
        )
        await registry.save()

        reloaded = ConnectionRegistry(vault, StorageConfig(connections_path=registry.path))
        await reloaded.load()
        config = reloaded.get("connection_1").config

        assert config.name == "Sales ${X} {eu}: main"
        assert config.password_value == "pa${X}ss:{x}$"
        assert config.database == "C:\\data\\db.fdb"
        assert "expanded" not in registry.path.read_text(encoding="utf-8")

    @pytest.mark.asyncio
    async def test_password_encrypted_on_disk(self, registry):
        """Test plaintext never reaches the file."""
        await registry.upsert(_config())
        await registry.save()

        content = registry.path.read_text(encoding="utf-8")
        records = json.loads(content)

        assert "masterkey" not in content
        assert records[0]["password"].startswith("gAAAAA")
        assert "is_active" not in records[0]

    @pytest.mark.asyncio
    async def test_empty_password_stored_empty(self, registry):
        """Test a missing password is persisted as an empty string."""
        await registry.upsert(_config(password=None))
        await registry.save()

        assert json.loads(registry.path.read_text(encoding="utf-8"))[0]["password"] == ""

    @pytest.mark.asyncio
    async def test_corrupt_file(self, registry):
        """Test unparseable JSON raises PersistenceError."""
        registry.path.write_text("{not json", encoding="utf-8")

        with pytest.raises(PersistenceError):
            await registry.load()

    @pytest.mark.asyncio
    async def test_invalid_records_skipped(self, registry):
        """Test records failing validation are skipped."""
        registry.path.write_text(
            json.dumps(
                [
                    {"id": "connection_bad", "name": "", "host": "x", "database": "y"},
                    {"name": "No id", "host": "x", "database": "y"},
                    _config().to_record(""),
                ]
            ),
            encoding="utf-8",
        )

        assert await registry.load() == 1
        assert "connection_1" in registry

    @pytest.mark.asyncio
    async def test_undecryptable_password(self, registry, temp_dir):
        """Test a record from a foreign key loads without a password."""
        foreign = CredentialVault(VaultConfig(key_path=temp_dir / "foreign.key"))
        token = foreign.encrypt("masterkey")
        registry.path.write_text(json.dumps([_config().to_record(token)]), encoding="utf-8")

        assert await registry.load() == 1
        assert registry.get("connection_1").config.password is None

        # The original ciphertext is written back untouched
        await registry.save()
        assert json.loads(registry.path.read_text(encoding="utf-8"))[0]["password"] == token

    @pytest.mark.asyncio
    async def test_save_failure_reported(self, registry, temp_dir):
        """Test write failures return False instead of raising."""
        blocker = temp_dir / "blocker"
        blocker.write_text("file, not a directory", encoding="utf-8")
        registry.path = blocker / "connections.json"
        await registry.upsert(_config())

        assert await registry.save() is False

    @pytest.mark.asyncio
    async def test_verify_credentials(self, registry, temp_dir):
        """Test failing ciphertexts are reported by id."""
        foreign = CredentialVault(VaultConfig(key_path=temp_dir / "foreign.key"))
        records = [
            _config("connection_ok").to_record(registry.vault.encrypt("masterkey")),
            _config("connection_bad").to_record(foreign.encrypt("masterkey")),
        ]
        registry.path.write_text(json.dumps(records), encoding="utf-8")

        assert registry.verify_credentials() == ["connection_bad"]


class TestMapOperations:
    """Test in-memory registry operations."""

    @pytest.mark.asyncio
    async def test_upsert_requires_id(self, registry):
        """Test configs must carry an id."""
        with pytest.raises(ValueError):
            await registry.upsert(_config(connection_id=None))

    @pytest.mark.asyncio
    async def test_upsert_replaces_config_keeps_session(self, registry):
        """Test re-registering an id keeps the same session object."""
        session = await registry.upsert(_config())
        updated = await registry.upsert(_config(name="Renamed"))

        assert updated is session
        assert session.config.name == "Renamed"

    @pytest.mark.asyncio
    async def test_get_unknown(self, registry):
        """Test unknown ids raise NotFoundError."""
        with pytest.raises(NotFoundError) as exc_info:
            registry.get("connection_missing")

        assert exc_info.value.code == ErrorCodes.CONNECTION_NOT_FOUND

    @pytest.mark.asyncio
    async def test_remove(self, registry):
        """Test removal and removal of an unknown id."""
        await registry.upsert(_config())

        await registry.remove("connection_1")

        assert "connection_1" not in registry
        with pytest.raises(NotFoundError):
            await registry.remove("connection_1")

    @pytest.mark.asyncio
    async def test_all_is_redacted(self, registry):
        """Test the caller view never exposes the password."""
        await registry.upsert(_config())

        views = registry.all()

        assert views[0]["password"] == "***"
        assert views[0]["is_connected"] is False
        assert views[0]["state"] == "disconnected"

    def test_lock_for_is_stable(self, registry):
        """Test the same lock is returned for the same id."""
        assert registry.lock_for("connection_1") is registry.lock_for("connection_1")
        assert registry.lock_for("connection_1") is not registry.lock_for("connection_2")

    @pytest.mark.asyncio
    async def test_reencrypt_all_after_rotation(self, registry, vault):
        """Test stored passwords move to the new key."""
        await registry.upsert(_config())
        await registry.save()
        vault.rotate()

        assert await registry.reencrypt_all() is True
        vault.retire_previous_keys()

        token = json.loads(registry.path.read_text(encoding="utf-8"))[0]["password"]
        assert vault.decrypt(token) == "masterkey"
