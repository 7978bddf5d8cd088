"""Encryption of secrets stored in the settings database.

The Fernet key is derived from ``LDAPAUTH_SECRET_KEY``; changing that key
makes previously stored secrets unreadable.
"""

from __future__ import annotations

import base64
import hashlib

from cryptography.fernet import Fernet, InvalidToken

from .env_settings import get_env

_KEY_CONTEXT = b"ldap-auth:settings-secret:"


class SecretDecryptError(ValueError):
    """A stored secret was written under another secret key or is corrupt."""


def _fernet() -> Fernet:
    secret = get_env().secret_key.encode("utf-8")
    key = base64.urlsafe_b64encode(hashlib.sha256(_KEY_CONTEXT + secret).digest())
    return Fernet(key)


def encrypt_secret(value: str) -> str:
    if not value:
        return ""
    return _fernet().encrypt(value.encode("utf-8")).decode("utf-8")


def decrypt_secret(token: str) -> str:
    """Decrypt a token from `encrypt_secret`; an empty token yields ""."""
    if not token:
        return ""
    try:
        return _fernet().decrypt(token.encode("utf-8")).decode("utf-8")
    except InvalidToken as e:
        raise SecretDecryptError("stored secret cannot be decrypted with the current secret key") from e
