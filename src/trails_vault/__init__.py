# Trails Vault - Main Package
#
# Local, single-user credential vault for the Trails browser.
# Version: 0.1.0

__version__ = "0.1.0"
__author__ = "Trails Team"
__description__ = "Local encrypted credential vault for the Trails browser"

from .vault import (
    Credential,
    CredentialInput,
    CredentialUpdate,
    DetectedLogin,
    PasswordVault,
    generate_password,
    calculate_password_strength,
)
from .core import (
    MemoryBlobStore,
    SQLiteBlobStore,
    VaultSettings,
    get_audit_logger,
)

__all__ = [
    "__version__",
    "PasswordVault",
    "Credential",
    "CredentialInput",
    "CredentialUpdate",
    "DetectedLogin",
    "generate_password",
    "calculate_password_strength",
    "MemoryBlobStore",
    "SQLiteBlobStore",
    "VaultSettings",
    "get_audit_logger",
]
