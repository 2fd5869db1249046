"""Credential vault for stored connection passwords.

Passwords are encrypted with Fernet (AES-128-CBC with HMAC-SHA256). Every
token carries its own random IV and timestamp, so encrypting the same
password twice yields different tokens and decryption never depends on the
order in which tokens were produced.

The master key is 32 random bytes stored raw in a file readable only by
the owner. It is generated on first use. During rotation the outgoing key
is kept in ``<key>.previous`` so tokens written before the rotation stay
readable until the registry has been re-encrypted.

Classes:
    CredentialVault: Encrypts, decrypts and rotates stored secrets

Example:
    >>> vault = CredentialVault(VaultConfig(key_path=Path("data/master.key")))
    >>> token = vault.encrypt("masterkey")
    >>> vault.decrypt(token)
    'masterkey'
"""

import base64
import secrets
from pathlib import Path
from typing import List, Optional

from cryptography.fernet import Fernet, InvalidToken, MultiFernet

from ..config.models import REDACTION_MARKER, VaultConfig
from ..core.exceptions import DecryptionError, ErrorCodes, PersistenceError, SecurityError
from ..core.utils import atomic_write
from ..logging import get_logger

KEY_SIZE = 32
PREVIOUS_SUFFIX = ".previous"


def _fernet_for(raw_key: bytes) -> Fernet:
    return Fernet(base64.urlsafe_b64encode(raw_key))


def _write_key_file(path: Path, raw_key: bytes) -> None:
    atomic_write(path, raw_key, permissions=0o600)


class CredentialVault:
    """Symmetric encryption of stored connection passwords.

    The empty string and the redaction marker are treated as "no password":
    encrypting an empty string returns an empty string and decrypting
    either returns an empty string.

    Attributes:
        key_path: File holding the current master key
    """

    def __init__(self, config: Optional[VaultConfig] = None) -> None:
        """Initialize the vault.

        The key is not read until the first encrypt or decrypt call.

        Args:
            config: Vault configuration (defaults to ``data/master.key``)
        """
        self._config = config or VaultConfig()
        self.key_path = Path(self._config.key_path)
        self._keys: List[bytes] = []
        self._cipher: Optional[MultiFernet] = None
        self._logger = get_logger(__name__)

    @property
    def previous_key_path(self) -> Path:
        return self.key_path.with_name(self.key_path.name + PREVIOUS_SUFFIX)

    @staticmethod
    def _read_key(path: Path) -> bytes:
        raw_key = path.read_bytes()
        if len(raw_key) != KEY_SIZE:
            raise SecurityError(
                f"Master key file has invalid length: {path}",
                code=ErrorCodes.KEY_INVALID,
                context={"path": str(path), "length": len(raw_key)},
            )
        return raw_key

    def _load_keys(self) -> None:
        keys: List[bytes] = []

        if self.key_path.exists():
            keys.append(self._read_key(self.key_path))
        else:
            raw_key = secrets.token_bytes(KEY_SIZE)
            try:
                _write_key_file(self.key_path, raw_key)
            except OSError as e:
                raise PersistenceError(
                    f"Cannot persist master key: {e}",
                    code=ErrorCodes.KEY_PERSIST_FAILED,
                    context={"path": str(self.key_path)},
                    cause=e,
                ) from e
            keys.append(raw_key)
            self._logger.info("Generated new master key", path=str(self.key_path))

        # Left behind by a rotation that did not finish retiring the old key
        if self.previous_key_path.exists():
            keys.append(self._read_key(self.previous_key_path))
            self._logger.warning(
                "Previous master key still present", path=str(self.previous_key_path)
            )

        self._set_keys(keys)

    def _set_keys(self, keys: List[bytes]) -> None:
        self._keys = keys
        self._cipher = MultiFernet([_fernet_for(key) for key in keys])

    def _ensure_cipher(self) -> MultiFernet:
        if self._cipher is None:
            self._load_keys()
        if self._cipher is None:
            raise SecurityError(
                "Master key could not be loaded",
                code=ErrorCodes.KEY_INVALID,
                context={"path": str(self.key_path)},
            )
        return self._cipher

    @property
    def has_previous_key(self) -> bool:
        self._ensure_cipher()
        return len(self._keys) > 1

    def encrypt(self, plaintext: str) -> str:
        """Encrypt a password.

        Args:
            plaintext: Password to encrypt

        Returns:
            Fernet token as text, or an empty string for an empty password
        """
        if not plaintext:
            return ""
        return self._ensure_cipher().encrypt(plaintext.encode("utf-8")).decode("ascii")

    def decrypt(self, ciphertext: str) -> str:
        """Decrypt a stored password.

        Args:
            ciphertext: Fernet token produced by :meth:`encrypt`

        Returns:
            Plaintext password, or an empty string for empty input or the
            redaction marker

        Raises:
            DecryptionError: If the token is corrupt or was produced under a
                key this vault does not hold
        """
        if not ciphertext or ciphertext == REDACTION_MARKER:
            return ""
        try:
            plaintext = self._ensure_cipher().decrypt(ciphertext.encode("ascii"))
        except (InvalidToken, UnicodeEncodeError) as e:
            raise DecryptionError(
                "Stored secret could not be decrypted",
                code=ErrorCodes.DECRYPTION_FAILED,
                cause=e,
            ) from e
        return plaintext.decode("utf-8")

    def verify(self, ciphertext: str) -> None:
        """Check that a stored token authenticates under a held key.

        Raises:
            DecryptionError: If the token cannot be decrypted
        """
        self.decrypt(ciphertext)

    def reencrypt(self, ciphertext: str) -> str:
        """Re-encrypt a token under the current primary key.

        Raises:
            DecryptionError: If the token cannot be decrypted
        """
        if not ciphertext or ciphertext == REDACTION_MARKER:
            return ""
        try:
            token = self._ensure_cipher().rotate(ciphertext.encode("ascii"))
        except (InvalidToken, UnicodeEncodeError) as e:
            raise DecryptionError(
                "Stored secret could not be re-encrypted",
                code=ErrorCodes.DECRYPTION_FAILED,
                cause=e,
            ) from e
        return token.decode("ascii")

    def rotate(self) -> None:
        """Generate a new master key and make it primary.

        The outgoing key is written to ``<key>.previous`` first and stays
        usable for decryption until :meth:`retire_previous_keys` is called.

        Raises:
            PersistenceError: If either key file cannot be written; the old
                key then remains in effect
        """
        self._ensure_cipher()
        current_key = self._keys[0]
        new_key = secrets.token_bytes(KEY_SIZE)

        try:
            _write_key_file(self.previous_key_path, current_key)
            _write_key_file(self.key_path, new_key)
        except OSError as e:
            self._logger.error(
                "Master key rotation failed", path=str(self.key_path), error=str(e)
            )
            raise PersistenceError(
                f"Cannot persist rotated master key: {e}",
                code=ErrorCodes.KEY_PERSIST_FAILED,
                context={"path": str(self.key_path)},
                cause=e,
            ) from e

        self._set_keys([new_key, current_key])
        self._logger.info("Master key rotated", path=str(self.key_path))

    def retire_previous_keys(self) -> None:
        """Forget every key except the primary and delete ``<key>.previous``.

        Raises:
            PersistenceError: If the previous key file cannot be removed
        """
        self._ensure_cipher()
        try:
            if self.previous_key_path.exists():
                self.previous_key_path.unlink()
        except OSError as e:
            raise PersistenceError(
                f"Cannot remove previous master key: {e}",
                code=ErrorCodes.KEY_PERSIST_FAILED,
                context={"path": str(self.previous_key_path)},
                cause=e,
            ) from e
        self._set_keys(self._keys[:1])
        self._logger.info("Previous master key retired")
