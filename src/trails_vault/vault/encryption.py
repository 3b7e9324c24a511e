# Vault - Encryption Service
#
# Master password -> encryption key (PBKDF2-HMAC-SHA256, 310k iterations)
# Master password -> verification hash (same KDF, distinct password/salt suffixes)
# Field encryption: AES-256-GCM, stored as hex(nonce || ciphertext || tag)

import hmac
import os

from cryptography.exceptions import InvalidTag
from cryptography.hazmat.backends import default_backend
from cryptography.hazmat.primitives import hashes
from cryptography.hazmat.primitives.ciphers.aead import AESGCM
from cryptography.hazmat.primitives.kdf.pbkdf2 import PBKDF2HMAC

from .errors import DecryptionError
from .models import DecryptResult, EncryptedField

# Changing this invalidates every existing vault; bump VAULT_VERSION and migrate.
PBKDF2_ITERATIONS = 310_000


class EncryptionService:
    """
    Key derivation and field encryption for the password vault.

    Flow:
    1. User enters master password
    2. PBKDF2 derives a 256-bit key from password + vault salt
    3. AES-256-GCM encrypts/decrypts each sensitive field
    4. Each field gets its own random 96-bit nonce

    Unlock attempts are checked against a verification hash produced with
    the same KDF over (password + VERIFY_PASSWORD_SUFFIX,
    salt + VERIFY_SALT_SUFFIX). The hash is never usable as the key.
    """

    PBKDF2_ITERATIONS = PBKDF2_ITERATIONS
    KEY_LENGTH = 32  # 256 bits for AES-256
    SALT_LENGTH = 32  # 256-bit salt
    NONCE_LENGTH = 12  # 96-bit nonce for GCM
    TAG_LENGTH = 16  # 128-bit GCM tag

    VERIFY_PASSWORD_SUFFIX = ":verification"
    VERIFY_SALT_SUFFIX = b"verify"

    @staticmethod
    def _pbkdf2(secret: bytes, salt: bytes) -> bytes:
        kdf = PBKDF2HMAC(
            algorithm=hashes.SHA256(),
            length=EncryptionService.KEY_LENGTH,
            salt=salt,
            iterations=EncryptionService.PBKDF2_ITERATIONS,
            backend=default_backend()
        )
        return kdf.derive(secret)

    @staticmethod
    def derive_key(master_password: str, salt: str) -> bytes:
        """
        Derive the AES-256 encryption key from the master password.

        Args:
            master_password: User's master password
            salt: Hex-encoded vault salt

        Returns:
            256-bit encryption key
        """
        return EncryptionService._pbkdf2(
            master_password.encode('utf-8'), bytes.fromhex(salt)
        )

    @staticmethod
    def hash_master_password(master_password: str, salt: str) -> str:
        """
        Derive the hex verification hash stored as ``masterPasswordHash``.

        Uses different password and salt contexts than derive_key(), so the
        stored hash reveals nothing about the encryption key.
        """
        secret = (master_password + EncryptionService.VERIFY_PASSWORD_SUFFIX).encode('utf-8')
        salt_bytes = bytes.fromhex(salt) + EncryptionService.VERIFY_SALT_SUFFIX
        return EncryptionService._pbkdf2(secret, salt_bytes).hex()

    @staticmethod
    def hashes_match(candidate: str, stored: str) -> bool:
        """Constant-time comparison over the full length of both hashes."""
        return hmac.compare_digest(candidate.encode('ascii'), stored.encode('ascii'))

    @staticmethod
    def generate_salt() -> str:
        """Generate a cryptographically random hex-encoded salt."""
        return os.urandom(EncryptionService.SALT_LENGTH).hex()

    @staticmethod
    def encrypt(plaintext: str, key: bytes) -> EncryptedField:
        """
        Encrypt plaintext using AES-256-GCM.

        Args:
            plaintext: Password or note to encrypt
            key: 256-bit encryption key (from derive_key)

        Returns:
            EncryptedField holding hex(nonce || ciphertext || tag)
        """
        # Fresh nonce for every encryption, never reused under one key
        nonce = os.urandom(EncryptionService.NONCE_LENGTH)

        aesgcm = AESGCM(key)
        ciphertext = aesgcm.encrypt(nonce, plaintext.encode('utf-8'), None)

        return EncryptedField((nonce + ciphertext).hex())

    @staticmethod
    def decrypt(field: EncryptedField, key: bytes) -> str:
        """
        Decrypt a stored field using AES-256-GCM.

        Raises:
            DecryptionError: malformed hex, truncated data, wrong key or
                tampered ciphertext (authentication tag mismatch)
        """
        try:
            combined = bytes.fromhex(field.value)
        except ValueError as e:
            raise DecryptionError("Ciphertext is not valid hex") from e

        # Only canonical lowercase hex is ever written; "a" -> "A" is tampering too
        if combined.hex() != field.value:
            raise DecryptionError("Ciphertext is not canonical hex")

        if len(combined) < EncryptionService.NONCE_LENGTH + EncryptionService.TAG_LENGTH:
            raise DecryptionError("Ciphertext too short")

        nonce = combined[:EncryptionService.NONCE_LENGTH]
        data = combined[EncryptionService.NONCE_LENGTH:]

        try:
            plaintext_bytes = AESGCM(key).decrypt(nonce, data, None)
        except InvalidTag as e:
            raise DecryptionError("Authentication tag mismatch") from e

        try:
            return plaintext_bytes.decode('utf-8')
        except UnicodeDecodeError as e:
            raise DecryptionError("Decrypted data is not UTF-8") from e

    @staticmethod
    def try_decrypt(field: EncryptedField, key: bytes) -> DecryptResult:
        """Like decrypt(), but reports integrity failure as a tagged result."""
        try:
            return DecryptResult.success(EncryptionService.decrypt(field, key))
        except DecryptionError:
            return DecryptResult.integrity_failed()
