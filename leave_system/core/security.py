import logging
from cryptography.fernet import Fernet, InvalidToken
from leave_system.core.config import settings

logger = logging.getLogger(__name__)

# Account passwords are stored encrypted, not hashed: administrators are shown
# them verbatim in the account list and the CSV export.
_cipher = Fernet(settings.encryption_key)


def encrypt_data(data: str) -> str:
    """Encrypt sensitive string data."""
    if not data:
        return data
    try:
        return _cipher.encrypt(data.encode()).decode()
    except Exception as e:
        logger.error(f"Encryption failed: {e}")
        raise ValueError(f"Encryption failed, refusing to store plaintext: {e}") from e


def decrypt_data(encrypted_data: str) -> str:
    """Decrypt sensitive string data."""
    if not encrypted_data:
        return encrypted_data
    try:
        return _cipher.decrypt(encrypted_data.encode()).decode()
    except InvalidToken:
        logger.warning("Decryption failed (possibly not encrypted)")
        return encrypted_data
