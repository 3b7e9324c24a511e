# Core Module - Shared Infrastructure
#
# - Audit logging (structlog)
# - Blob storage for the persisted vault
# - Settings

from .audit_log import (
    AuditLogger,
    EventSeverity,
    EventType,
    get_audit_logger,
    set_audit_logger,
)
from .blob_store import BlobStore, MemoryBlobStore, SQLiteBlobStore
from .config import VaultSettings, get_settings, set_settings

__all__ = [
    # Audit Logging
    "AuditLogger",
    "EventType",
    "EventSeverity",
    "get_audit_logger",
    "set_audit_logger",
    # Storage
    "BlobStore",
    "MemoryBlobStore",
    "SQLiteBlobStore",
    # Settings
    "VaultSettings",
    "get_settings",
    "set_settings",
]
