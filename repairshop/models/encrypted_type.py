"""SQLAlchemy TypeDecorator for transparent Fernet encryption of string columns."""

from __future__ import annotations

from cryptography.fernet import InvalidToken
from sqlalchemy import String, TypeDecorator


class EncryptedString(TypeDecorator):
    """Encrypts on write, decrypts on read. Stores plaintext when FERNET_KEY is unset."""

    impl = String
    cache_ok = True

    def process_bind_param(self, value, dialect):
        if value is None or value == "":
            return value
        from repairshop.services.encryption import encrypt_value, EncryptionNotConfigured
        try:
            return encrypt_value(value)
        except EncryptionNotConfigured:
            return value

    def process_result_value(self, value, dialect):
        if value is None or value == "":
            return value
        from repairshop.services.encryption import decrypt_value, EncryptionNotConfigured
        try:
            return decrypt_value(value)
        except (EncryptionNotConfigured, InvalidToken):
            # Row written before a key was configured.
            return value
