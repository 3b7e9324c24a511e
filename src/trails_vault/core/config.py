# Core Module - Settings
#
# Where the profile's vault and audit logs live. Values come from the
# environment when set, otherwise from the defaults below.
# The KDF iteration count is deliberately not a setting.

import os
from dataclasses import dataclass, field
from pathlib import Path
from typing import Optional

STORAGE_KEY = "trails_password_vault_v1"
DEFAULT_DATA_DIR = "data"
DEFAULT_DB_FILENAME = "vault.db"


@dataclass
class VaultSettings:
    """Storage locations for one browser profile."""
    data_dir: Path = field(default_factory=lambda: Path(DEFAULT_DATA_DIR))
    db_filename: str = DEFAULT_DB_FILENAME
    storage_key: str = STORAGE_KEY
    audit_log_dir: Optional[Path] = None

    def __post_init__(self):
        self.data_dir = Path(self.data_dir)
        if self.audit_log_dir is None:
            self.audit_log_dir = self.data_dir / "audit_logs"
        else:
            self.audit_log_dir = Path(self.audit_log_dir)

    @property
    def db_path(self) -> Path:
        return self.data_dir / self.db_filename

    @classmethod
    def from_env(cls) -> "VaultSettings":
        """Build settings from TRAILS_DATA_DIR / TRAILS_AUDIT_LOG_DIR."""
        audit_dir = os.environ.get("TRAILS_AUDIT_LOG_DIR", "")
        return cls(
            data_dir=Path(os.environ.get("TRAILS_DATA_DIR", DEFAULT_DATA_DIR)),
            audit_log_dir=Path(audit_dir) if audit_dir else None,
        )


_settings: Optional[VaultSettings] = None


def get_settings() -> VaultSettings:
    """Get or create the singleton settings (read from the environment once)."""
    global _settings
    if _settings is None:
        _settings = VaultSettings.from_env()
    return _settings


def set_settings(instance: Optional[VaultSettings]) -> None:
    """Replace the singleton (for testing)."""
    global _settings
    _settings = instance
