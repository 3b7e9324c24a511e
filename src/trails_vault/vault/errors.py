# Vault - Error Taxonomy
#
# Only hard failures are exceptions. "Vault not found", "wrong master
# password" and single-field integrity failures are ordinary outcomes and
# come back as empty / False / None / "" from PasswordVault.

from typing import Optional


class VaultError(Exception):
    """Base class for all vault errors."""


class InvalidInputError(VaultError, ValueError):
    """Rejected input (e.g. empty master password), raised before any key derivation."""


class PersistenceError(VaultError):
    """The blob store could not read or write the vault.

    Kept distinct from a wrong master password so the UI can say
    "couldn't save" instead of "incorrect password".
    """

    def __init__(self, message: str, cause: Optional[BaseException] = None):
        super().__init__(message)
        self.cause = cause


class VaultFormatError(PersistenceError):
    """The stored vault blob is unreadable or has an unsupported version."""


class DecryptionError(VaultError):
    """Authenticated decryption of a single field failed.

    Raised by the low-level primitive only. The vault layer degrades it to an
    empty string for that field.
    """
