"""
Utility modules
"""
from .responses import ApiResponse
from .crypto import CredentialCrypto, CredentialCryptoError, get_crypto
from .logger import setup_logger, get_logger

__all__ = [
    'ApiResponse',
    'CredentialCrypto',
    'CredentialCryptoError',
    'get_crypto',
    'setup_logger',
    'get_logger',
]
