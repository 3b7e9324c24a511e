"""
Shared pytest fixtures for the Trails Vault test suite.

Autouse fixtures below isolate tests from the live profile data:
  - Audit logger -> temp directory  (prevents test events in real audit logs)
  - Settings     -> temp directory  (prevents a real data/vault.db)
"""

import pytest

from trails_vault.core.audit_log import AuditLogger, set_audit_logger
from trails_vault.core.blob_store import MemoryBlobStore
from trails_vault.core.config import VaultSettings, set_settings
from trails_vault.vault.encryption import EncryptionService
from trails_vault.vault.password_store import PasswordVault


@pytest.fixture(autouse=True)
def _isolate_audit_logs(tmp_path):
    """Point the global AuditLogger at a temp directory for every test."""
    logger = AuditLogger(log_dir=tmp_path / "audit_logs")
    set_audit_logger(logger)
    yield logger
    set_audit_logger(None)


@pytest.fixture(autouse=True)
def _isolate_settings(tmp_path):
    """Default settings resolve inside the test's temp directory."""
    set_settings(VaultSettings(data_dir=tmp_path / "data"))
    yield
    set_settings(None)


@pytest.fixture
def fast_kdf(monkeypatch):
    """Cut PBKDF2 work for multi-step vault scenarios.

    Each vault operation runs one or two full derivations; at 310k
    iterations a scenario-heavy module would take minutes.
    """
    monkeypatch.setattr(EncryptionService, "PBKDF2_ITERATIONS", 1_000)


@pytest.fixture
def store():
    return MemoryBlobStore()


@pytest.fixture
def audit_logger(_isolate_audit_logs):
    return _isolate_audit_logs


@pytest.fixture
def vault(store, audit_logger, fast_kdf):
    """PasswordVault over an in-memory store with a reduced-cost KDF."""
    return PasswordVault(store, audit_logger=audit_logger)
