"""
Credential encryption
Integration credentials are stored encrypted with Fernet (AES-128-CBC + HMAC).
"""
import json
from typing import Dict, Optional

from cryptography.fernet import Fernet, InvalidToken
from flask import current_app

# Every Fernet token starts with the version byte 0x80, i.e. 'gAAAAA' in base64
FERNET_TOKEN_PREFIX = 'gAAAAA'


class CredentialCryptoError(Exception):
    """Raised when credentials cannot be encrypted or decrypted"""


class CredentialCrypto:
    """
    Encrypt / decrypt credential dictionaries

    Values written by older versions as plaintext JSON are still readable.
    """

    def __init__(self, key: Optional[str] = None):
        self._fernet = None
        if key:
            try:
                self._fernet = Fernet(key.encode('utf-8') if isinstance(key, str) else key)
            except (ValueError, TypeError) as e:
                raise CredentialCryptoError(f'Invalid CREDENTIAL_ENCRYPTION_KEY: {e}') from e

    @property
    def is_secure(self) -> bool:
        """Whether an encryption key is configured"""
        return self._fernet is not None

    @staticmethod
    def is_encrypted(stored: str) -> bool:
        return bool(stored) and stored.startswith(FERNET_TOKEN_PREFIX)

    def encrypt_credentials(self, credentials: Dict[str, str]) -> str:
        """
        Serialize and encrypt a credentials mapping

        Raises:
            CredentialCryptoError: no key configured
        """
        if not self._fernet:
            raise CredentialCryptoError('CREDENTIAL_ENCRYPTION_KEY is not configured')
        payload = json.dumps(credentials, separators=(',', ':'))
        return self._fernet.encrypt(payload.encode('utf-8')).decode('utf-8')

    def decrypt_credentials(self, stored: str) -> Dict[str, str]:
        """
        Decrypt a stored credentials value

        Raises:
            CredentialCryptoError: wrong key, missing key or corrupt value
        """
        if not stored:
            return {}

        if self.is_encrypted(stored):
            if not self._fernet:
                raise CredentialCryptoError('CREDENTIAL_ENCRYPTION_KEY is not configured')
            try:
                plaintext = self._fernet.decrypt(stored.encode('utf-8')).decode('utf-8')
            except InvalidToken as e:
                raise CredentialCryptoError('Stored credentials could not be decrypted') from e
        else:
            # Legacy plaintext JSON
            plaintext = stored

        try:
            data = json.loads(plaintext)
        except json.JSONDecodeError as e:
            raise CredentialCryptoError('Stored credentials are corrupt') from e

        if not isinstance(data, dict):
            raise CredentialCryptoError('Stored credentials are corrupt')
        return data

    @staticmethod
    def generate_key() -> str:
        """Generate a new Fernet key"""
        return Fernet.generate_key().decode('utf-8')


def get_crypto() -> CredentialCrypto:
    """The CredentialCrypto owned by the current application"""
    return current_app.extensions['credential_crypto']
