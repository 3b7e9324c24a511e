# Vault Module - Local Credential Vault
#
# Encrypted password storage for the browser profile.
# Master password with PBKDF2 key derivation, AES-256-GCM per field.

from .encryption import EncryptionService, PBKDF2_ITERATIONS
from .errors import (
    DecryptionError,
    InvalidInputError,
    PersistenceError,
    VaultError,
    VaultFormatError,
)
from .generator import (
    PasswordOptions,
    calculate_password_strength,
    generate_password,
    get_strength_color,
    get_strength_label,
)
from .lookup import favicon_url, search_credentials, website_from_url
from .models import (
    VAULT_VERSION,
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
from .password_store import PasswordVault

__all__ = [
    "PasswordVault",
    "EncryptionService",
    "PBKDF2_ITERATIONS",
    "VAULT_VERSION",
    # Records
    "Credential",
    "CredentialCategory",
    "CredentialInput",
    "CredentialUpdate",
    "DecryptResult",
    "DetectedLogin",
    "EncryptedField",
    "StoredCredential",
    "VaultRecord",
    # Generator
    "PasswordOptions",
    "generate_password",
    "calculate_password_strength",
    "get_strength_label",
    "get_strength_color",
    # Lookup
    "search_credentials",
    "website_from_url",
    "favicon_url",
    # Errors
    "VaultError",
    "InvalidInputError",
    "PersistenceError",
    "VaultFormatError",
    "DecryptionError",
]
