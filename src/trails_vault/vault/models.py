# Vault - Data Model
#
# Two credential types on purpose:
#   Credential       - decrypted working set, plain str fields, memory only
#   StoredCredential - persisted form, sensitive fields are EncryptedField
# Only StoredCredential can go into a VaultRecord, so plaintext never reaches
# the blob store.

import json
from dataclasses import dataclass, field
from enum import Enum
from typing import Any, Dict, List, Optional

from .errors import VaultFormatError

VAULT_VERSION = 1


class CredentialCategory(str, Enum):
    """Informational category of a saved secret."""
    LOGIN = "login"
    NOTE = "note"
    CARD = "card"


@dataclass(frozen=True)
class EncryptedField:
    """Hex-encoded nonce || ciphertext || tag for one sensitive field."""
    value: str

    def __repr__(self) -> str:
        return f"EncryptedField(<{len(self.value) // 2} bytes>)"


@dataclass(frozen=True)
class DecryptResult:
    """Outcome of decrypting one field: plaintext, or an integrity failure."""
    ok: bool
    plaintext: str = ""

    @classmethod
    def success(cls, plaintext: str) -> "DecryptResult":
        return cls(ok=True, plaintext=plaintext)

    @classmethod
    def integrity_failed(cls) -> "DecryptResult":
        return cls(ok=False)

    def or_empty(self) -> str:
        """Collapse to the display value ("" on integrity failure)."""
        return self.plaintext if self.ok else ""


@dataclass
class CredentialInput:
    """A new credential as supplied by the caller (no id or timestamps yet)."""
    website: str
    username: str
    password: str
    notes: Optional[str] = None
    category: CredentialCategory = CredentialCategory.LOGIN
    favicon: Optional[str] = None


@dataclass
class CredentialUpdate:
    """Partial update. ``None`` leaves a field unchanged; ``notes=""`` clears notes."""
    website: Optional[str] = None
    username: Optional[str] = None
    password: Optional[str] = None
    notes: Optional[str] = None
    category: Optional[CredentialCategory] = None
    favicon: Optional[str] = None


@dataclass
class DetectedLogin:
    """Login form submission reported by the page-instrumentation layer."""
    website: str
    url: str
    username: str
    password: str


@dataclass
class Credential:
    """Decrypted credential. Never serialized to storage."""
    id: str
    website: str
    username: str
    password: str
    category: CredentialCategory
    created_at: int
    updated_at: int
    notes: Optional[str] = None
    favicon: Optional[str] = None

    def to_dict(self) -> Dict[str, Any]:
        data: Dict[str, Any] = {
            "id": self.id,
            "website": self.website,
            "username": self.username,
            "password": self.password,
            "category": self.category.value,
            "createdAt": self.created_at,
            "updatedAt": self.updated_at,
        }
        if self.notes is not None:
            data["notes"] = self.notes
        if self.favicon is not None:
            data["favicon"] = self.favicon
        return data

    def __repr__(self) -> str:
        return (
            f"Credential(id={self.id!r}, website={self.website!r}, "
            f"username={self.username!r}, category={self.category.value!r})"
        )


@dataclass
class StoredCredential:
    """Credential as persisted: password and notes are ciphertext."""
    id: str
    website: str
    username: str
    password: EncryptedField
    category: CredentialCategory
    created_at: int
    updated_at: int
    notes: Optional[EncryptedField] = None
    favicon: Optional[str] = None

    def to_record(self) -> Dict[str, Any]:
        record: Dict[str, Any] = {
            "id": self.id,
            "website": self.website,
            "username": self.username,
            "password": self.password.value,
            "category": self.category.value,
            "createdAt": self.created_at,
            "updatedAt": self.updated_at,
        }
        if self.notes is not None:
            record["notes"] = self.notes.value
        if self.favicon is not None:
            record["favicon"] = self.favicon
        return record

    @classmethod
    def from_record(cls, record: Dict[str, Any]) -> "StoredCredential":
        try:
            notes = record.get("notes")
            return cls(
                id=str(record["id"]),
                website=str(record.get("website", "")),
                username=str(record.get("username", "")),
                password=EncryptedField(str(record.get("password", ""))),
                category=CredentialCategory(record.get("category", "login")),
                created_at=int(record["createdAt"]),
                updated_at=int(record.get("updatedAt", record["createdAt"])),
                notes=EncryptedField(str(notes)) if notes else None,
                favicon=record.get("favicon"),
            )
        except (KeyError, TypeError, ValueError) as e:
            raise VaultFormatError(f"Malformed credential record: {e}", e) from e


def _is_hex(value: Any, length: int) -> bool:
    if not isinstance(value, str) or len(value) != length * 2:
        return False
    try:
        bytes.fromhex(value)
    except ValueError:
        return False
    return True


def migrate_record(data: Dict[str, Any]) -> Dict[str, Any]:
    """
    Bring a raw vault blob up to VAULT_VERSION.

    Runs before any other field is trusted. Blobs written before the
    version field existed are treated as version 1.

    Raises:
        VaultFormatError: unknown (newer) or invalid version
    """
    version = data.get("version", 1)
    if not isinstance(version, int) or isinstance(version, bool) or version < 1:
        raise VaultFormatError(f"Invalid vault version: {version!r}")
    if version > VAULT_VERSION:
        raise VaultFormatError(
            f"Vault version {version} is newer than supported version {VAULT_VERSION}"
        )
    # Version 1 is current; future migrations chain here.
    migrated = dict(data)
    migrated["version"] = VAULT_VERSION
    return migrated


@dataclass
class VaultRecord:
    """The persisted vault container."""
    salt: str
    master_password_hash: str
    credentials: List[StoredCredential] = field(default_factory=list)
    version: int = VAULT_VERSION

    def find(self, credential_id: str) -> Optional[int]:
        """Index of the credential with this id, or None."""
        for index, cred in enumerate(self.credentials):
            if cred.id == credential_id:
                return index
        return None

    def to_json(self) -> str:
        return json.dumps({
            "credentials": [c.to_record() for c in self.credentials],
            "salt": self.salt,
            "masterPasswordHash": self.master_password_hash,
            "version": self.version,
        })

    @classmethod
    def from_json(cls, blob: str) -> "VaultRecord":
        """
        Parse and validate a stored vault blob.

        Raises:
            VaultFormatError: not JSON, wrong shape, bad salt/hash, or
                unsupported version
        """
        try:
            data = json.loads(blob)
        except (TypeError, ValueError) as e:
            raise VaultFormatError(f"Vault blob is not valid JSON: {e}", e) from e

        if not isinstance(data, dict):
            raise VaultFormatError("Vault blob is not a JSON object")

        data = migrate_record(data)

        salt = data.get("salt")
        master_hash = data.get("masterPasswordHash")
        if not _is_hex(salt, 32):
            raise VaultFormatError("Vault salt missing or malformed")
        if not _is_hex(master_hash, 32):
            raise VaultFormatError("Vault master password hash missing or malformed")

        raw_credentials = data.get("credentials", [])
        if not isinstance(raw_credentials, list):
            raise VaultFormatError("Vault credentials is not a list")
        for raw in raw_credentials:
            if not isinstance(raw, dict):
                raise VaultFormatError("Credential entry is not an object")

        return cls(
            salt=salt,
            master_password_hash=master_hash,
            credentials=[StoredCredential.from_record(raw) for raw in raw_credentials],
            version=data["version"],
        )
