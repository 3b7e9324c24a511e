# Vault - Password Store
#
# The whole vault is one JSON blob in an injected BlobStore.
# Every operation: read blob -> compute -> write blob, under one lock.
#
# Security:
# - password and notes encrypted per field with AES-256-GCM (fresh nonce each)
# - master password never stored, only a separately-derived verification hash
# - a field that fails authentication decrypts to "" and is audit-logged;
#   the rest of the list still loads
# - re-keying builds the complete new record in memory and writes it once

import asyncio
import logging
import threading
import time
import uuid
from dataclasses import replace
from typing import TYPE_CHECKING, Callable, List, Optional, Tuple, TypeVar

from ..core.audit_log import AuditLogger, EventSeverity, EventType, get_audit_logger
from ..core.config import STORAGE_KEY, VaultSettings
from .encryption import EncryptionService
from .errors import InvalidInputError, PersistenceError
from .lookup import favicon_url
from .models import (
    Credential,
    CredentialCategory,
    CredentialInput,
    CredentialUpdate,
    DecryptResult,
    DetectedLogin,
    EncryptedField,
    StoredCredential,
    VaultRecord,
)

if TYPE_CHECKING:
    from ..core.blob_store import BlobStore

logger = logging.getLogger(__name__)

T = TypeVar("T")


def _now_ms() -> int:
    return int(time.time() * 1000)


def _new_id() -> str:
    # 122 random bits; collisions are not a practical concern, ids are never reused
    return uuid.uuid4().hex


def seal_credential(cred: Credential, key: bytes) -> StoredCredential:
    """Encrypt a decrypted credential's sensitive fields under key."""
    return StoredCredential(
        id=cred.id,
        website=cred.website,
        username=cred.username,
        password=EncryptionService.encrypt(cred.password, key),
        category=cred.category,
        created_at=cred.created_at,
        updated_at=cred.updated_at,
        notes=EncryptionService.encrypt(cred.notes, key) if cred.notes else None,
        favicon=cred.favicon,
    )


def open_credential(stored: StoredCredential, key: bytes) -> Tuple[Credential, List[str]]:
    """
    Decrypt a stored credential.

    Returns:
        (credential, names of fields that failed authentication).
        Failed fields are "" in the returned credential.
    """
    failed: List[str] = []

    password_result = (
        EncryptionService.try_decrypt(stored.password, key)
        if stored.password.value else DecryptResult.success("")
    )
    if not password_result.ok:
        failed.append("password")

    notes: Optional[str] = None
    if stored.notes is not None:
        notes_result = EncryptionService.try_decrypt(stored.notes, key)
        if not notes_result.ok:
            failed.append("notes")
        notes = notes_result.or_empty()

    credential = Credential(
        id=stored.id,
        website=stored.website,
        username=stored.username,
        password=password_result.or_empty(),
        category=stored.category,
        created_at=stored.created_at,
        updated_at=stored.updated_at,
        notes=notes,
        favicon=stored.favicon,
    )
    return credential, failed


class PasswordVault:
    """
    Encrypted credential vault for one browser profile.

    Public operations are coroutines; key derivation and AES-GCM run in a
    worker thread. Each operation holds the vault lock for its whole
    read-modify-write, so a re-key is never observed half done.

    Outcomes that are not errors:
    - no vault yet -> [] / False / None
    - wrong master password -> False / None
    - corrupted field -> "" for that field

    Errors:
    - PersistenceError (and VaultFormatError) from the blob store
    - InvalidInputError for an empty new master password
    """

    def __init__(
        self,
        store: "BlobStore",
        storage_key: str = STORAGE_KEY,
        audit_logger: Optional[AuditLogger] = None,
    ):
        """
        Args:
            store: Blob store holding the serialized vault
            storage_key: Key of the vault blob in the store
            audit_logger: Audit logger (default: global audit logger)
        """
        self.store = store
        self.storage_key = storage_key
        self._audit = audit_logger
        self._lock = threading.RLock()

    @classmethod
    def from_settings(cls, settings: Optional[VaultSettings] = None) -> "PasswordVault":
        """Vault backed by the profile's SQLite file."""
        from ..core.blob_store import SQLiteBlobStore
        from ..core.config import get_settings

        settings = settings or get_settings()
        return cls(SQLiteBlobStore(settings.db_path), storage_key=settings.storage_key)

    @property
    def audit(self) -> AuditLogger:
        if self._audit is None:
            self._audit = get_audit_logger()
        return self._audit

    # ── Storage ──────────────────────────────────────────────────────

    def _read(self) -> Optional[VaultRecord]:
        blob = self.store.get(self.storage_key)
        if blob is None:
            return None
        return VaultRecord.from_json(blob)

    def _write(self, record: VaultRecord) -> None:
        try:
            self.store.set(self.storage_key, record.to_json())
        except PersistenceError as e:
            self.audit.log_event(
                event_type=EventType.VAULT_ERROR,
                severity=EventSeverity.CRITICAL,
                message=f"Failed to save vault: {e}",
            )
            raise

    async def _run(self, func: Callable[..., T], *args) -> T:
        return await asyncio.to_thread(func, *args)

    # ── Verification ─────────────────────────────────────────────────

    def _check_password(self, record: VaultRecord, master_password: str) -> bool:
        if not master_password:
            return False
        candidate = EncryptionService.hash_master_password(master_password, record.salt)
        return EncryptionService.hashes_match(candidate, record.master_password_hash)

    def _verify_or_log(self, record: VaultRecord, master_password: str) -> bool:
        if self._check_password(record, master_password):
            return True
        self.audit.log_event(
            event_type=EventType.VAULT_UNLOCK_FAILED,
            severity=EventSeverity.INVESTIGATE,
            message="Vault: incorrect master password",
        )
        return False

    # ── Sync implementations ─────────────────────────────────────────

    def _vault_exists(self) -> bool:
        with self._lock:
            return self.store.get(self.storage_key) is not None

    def _create_vault(self, master_password: str) -> bool:
        with self._lock:
            if self.store.get(self.storage_key) is not None:
                logger.info("Vault already exists under %s", self.storage_key)
                return False

            salt = EncryptionService.generate_salt()
            record = VaultRecord(
                salt=salt,
                master_password_hash=EncryptionService.hash_master_password(master_password, salt),
            )
            self._write(record)

        self.audit.log_vault_event(EventType.VAULT_CREATED, "created with master password")
        return True

    def _verify_master_password(self, master_password: str) -> bool:
        if not master_password:
            return False
        with self._lock:
            record = self._read()
            if record is None:
                return False
            if not self._verify_or_log(record, master_password):
                return False
        self.audit.log_vault_event(EventType.VAULT_UNLOCKED, "master password verified")
        return True

    def _load_credentials(self, master_password: str) -> List[Credential]:
        if not master_password:
            return []
        with self._lock:
            record = self._read()
            if record is None:
                return []
            key = EncryptionService.derive_key(master_password, record.salt)
            stored = list(record.credentials)

        credentials = []
        corrupted = []
        for item in stored:
            credential, failed = open_credential(item, key)
            if failed:
                corrupted.append((item, failed))
            credentials.append(credential)

        # Nothing authenticated: tell a wrong master password apart from
        # genuine corruption before deciding what to log
        if (corrupted and len(corrupted) == len(stored)
                and not self._check_password(record, master_password)):
            self.audit.log_event(
                event_type=EventType.VAULT_UNLOCK_FAILED,
                severity=EventSeverity.INVESTIGATE,
                message="Vault: no credential could be decrypted",
                details={"credential_count": len(stored)},
            )
        else:
            for item, failed in corrupted:
                self._report_corruption(item, failed)
        return credentials

    def _report_corruption(self, stored: StoredCredential, fields: List[str]) -> None:
        logger.warning(
            "Credential %s: %s failed authentication, showing empty value",
            stored.id, ", ".join(fields),
        )
        self.audit.log_event(
            event_type=EventType.CREDENTIAL_CORRUPTED,
            severity=EventSeverity.ALERT,
            message="Vault: credential field failed authentication",
            details={"credential_id": stored.id, "fields": fields},
        )

    def _save_credential(self, master_password: str, new: CredentialInput) -> Optional[Credential]:
        with self._lock:
            record = self._read()
            if record is None:
                return None
            if not self._verify_or_log(record, master_password):
                return None

            key = EncryptionService.derive_key(master_password, record.salt)
            return self._append_credential(record, key, new)

    def _append_credential(self, record: VaultRecord, key: bytes, new: CredentialInput) -> Credential:
        """Seal a new credential under key, append it and persist the record."""
        now = _now_ms()
        credential = Credential(
            id=_new_id(),
            website=new.website,
            username=new.username,
            password=new.password,
            category=CredentialCategory(new.category),
            created_at=now,
            updated_at=now,
            notes=new.notes or None,
            favicon=new.favicon,
        )
        record.credentials.append(seal_credential(credential, key))
        self._write(record)

        self.audit.log_event(
            event_type=EventType.CREDENTIAL_ADDED,
            severity=EventSeverity.INFO,
            message=f"Vault: credential added for {credential.website}",
            details={"credential_id": credential.id, "category": credential.category.value},
        )
        return credential

    def _update_credential(self, master_password: str, credential_id: str, updates: CredentialUpdate) -> bool:
        with self._lock:
            record = self._read()
            if record is None:
                return False
            index = record.find(credential_id)
            if index is None:
                return False
            if not self._verify_or_log(record, master_password):
                return False

            key = EncryptionService.derive_key(master_password, record.salt)
            record.credentials[index] = self._apply_update(record.credentials[index], updates, key)
            self._write(record)

        self.audit.log_event(
            event_type=EventType.CREDENTIAL_UPDATED,
            severity=EventSeverity.INFO,
            message="Vault: credential updated",
            details={"credential_id": credential_id},
        )
        return True

    @staticmethod
    def _apply_update(current: StoredCredential, updates: CredentialUpdate, key: bytes) -> StoredCredential:
        # Unchanged sensitive fields keep their existing ciphertext
        password = current.password
        # An empty password is not a change
        if updates.password:
            password = EncryptionService.encrypt(updates.password, key)

        notes: Optional[EncryptedField] = current.notes
        if updates.notes is not None:
            notes = EncryptionService.encrypt(updates.notes, key) if updates.notes else None

        return replace(
            current,
            website=current.website if updates.website is None else updates.website,
            username=current.username if updates.username is None else updates.username,
            password=password,
            notes=notes,
            category=current.category if updates.category is None else CredentialCategory(updates.category),
            favicon=current.favicon if updates.favicon is None else updates.favicon,
            updated_at=max(_now_ms(), current.updated_at),
        )

    def _delete_credential(self, credential_id: str) -> bool:
        with self._lock:
            record = self._read()
            if record is None:
                return False
            index = record.find(credential_id)
            if index is None:
                return False
            del record.credentials[index]
            self._write(record)

        self.audit.log_event(
            event_type=EventType.CREDENTIAL_DELETED,
            severity=EventSeverity.INFO,
            message="Vault: credential deleted",
            details={"credential_id": credential_id},
        )
        return True

    def _change_master_password(self, old_password: str, new_password: str) -> bool:
        with self._lock:
            record = self._read()
            if record is None:
                return False
            if not self._verify_or_log(record, old_password):
                return False

            old_key = EncryptionService.derive_key(old_password, record.salt)
            decrypted = []
            for item in record.credentials:
                credential, failed = open_credential(item, old_key)
                if failed:
                    self._report_corruption(item, failed)
                decrypted.append(credential)

            new_salt = EncryptionService.generate_salt()
            new_key = EncryptionService.derive_key(new_password, new_salt)
            rekeyed = VaultRecord(
                salt=new_salt,
                master_password_hash=EncryptionService.hash_master_password(new_password, new_salt),
                credentials=[seal_credential(c, new_key) for c in decrypted],
            )
            # Single write: the old record stays intact until this succeeds
            self._write(rekeyed)

        self.audit.log_vault_event(
            EventType.VAULT_REKEYED,
            "master password changed, all credentials re-encrypted",
            details={"credential_count": len(decrypted)},
        )
        return True

    def _delete_vault(self) -> None:
        with self._lock:
            self.store.remove(self.storage_key)
        self.audit.log_event(
            event_type=EventType.VAULT_DELETED,
            severity=EventSeverity.ALERT,
            message="Vault: deleted with all credentials",
        )

    def _save_detected_login(self, master_password: str, login: DetectedLogin) -> Optional[Credential]:
        with self._lock:
            record = self._read()
            if record is None:
                return None
            if not self._verify_or_log(record, master_password):
                return None

            key = EncryptionService.derive_key(master_password, record.salt)
            for index, stored in enumerate(record.credentials):
                if stored.website != login.website or stored.username != login.username:
                    continue

                existing, _ = open_credential(stored, key)
                if existing.password == login.password:
                    return existing

                updated = self._apply_update(stored, CredentialUpdate(password=login.password), key)
                record.credentials[index] = updated
                self._write(record)
                self.audit.log_event(
                    event_type=EventType.CREDENTIAL_UPDATED,
                    severity=EventSeverity.INFO,
                    message=f"Vault: saved login updated for {login.website}",
                    details={"credential_id": stored.id},
                )
                return replace(existing, password=login.password, updated_at=updated.updated_at)

            return self._append_credential(record, key, CredentialInput(
                website=login.website,
                username=login.username,
                password=login.password,
                category=CredentialCategory.LOGIN,
                favicon=favicon_url(login.website),
            ))

    # ── Public API ───────────────────────────────────────────────────

    async def vault_exists(self) -> bool:
        """True if a vault blob is stored. No decryption."""
        return await self._run(self._vault_exists)

    async def create_vault(self, master_password: str) -> bool:
        """
        Create an empty vault protected by master_password.

        Returns:
            False if a vault already exists (it is left untouched)

        Raises:
            InvalidInputError: empty master password
        """
        if not master_password:
            raise InvalidInputError("Master password must not be empty")
        return await self._run(self._create_vault, master_password)

    async def verify_master_password(self, master_password: str) -> bool:
        """Check an unlock attempt against the stored verification hash."""
        return await self._run(self._verify_master_password, master_password)

    async def load_credentials(self, master_password: str) -> List[Credential]:
        """
        Decrypt and return every credential.

        Not pre-verified: under a wrong password every sensitive field fails
        authentication and comes back as "".
        """
        return await self._run(self._load_credentials, master_password)

    async def save_credential(self, master_password: str, credential: CredentialInput) -> Optional[Credential]:
        """
        Encrypt and append a new credential.

        Returns:
            The saved credential with plaintext fields, or None if there is
            no vault or the master password is wrong
        """
        return await self._run(self._save_credential, master_password, credential)

    async def update_credential(self, master_password: str, credential_id: str, updates: CredentialUpdate) -> bool:
        """Apply a partial update. False if the id, vault or password is wrong."""
        return await self._run(self._update_credential, master_password, credential_id, updates)

    async def delete_credential(self, credential_id: str) -> bool:
        """Remove a credential by id. No master password needed."""
        return await self._run(self._delete_credential, credential_id)

    async def change_master_password(self, old_password: str, new_password: str) -> bool:
        """
        Re-key the vault: new salt, new verification hash, every credential
        re-encrypted under the new key, persisted in one write.

        Returns:
            False if there is no vault or old_password is wrong

        Raises:
            InvalidInputError: empty new password
        """
        if not new_password:
            raise InvalidInputError("New master password must not be empty")
        return await self._run(self._change_master_password, old_password, new_password)

    async def delete_vault(self) -> None:
        """Irreversibly remove the stored vault."""
        await self._run(self._delete_vault)

    async def save_detected_login(self, master_password: str, login: DetectedLogin) -> Optional[Credential]:
        """
        Store a login captured from a page.

        Same website and username as an existing entry updates that entry's
        password instead of adding a duplicate.
        """
        return await self._run(self._save_detected_login, master_password, login)
