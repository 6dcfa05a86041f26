import base64

from cryptography.fernet import Fernet, InvalidToken
from cryptography.hazmat.primitives import hashes
from cryptography.hazmat.primitives.kdf.pbkdf2 import PBKDF2HMAC
from loguru import logger

from app.core.config import settings


def redact_token(token: str | None) -> str:
    """
    Redact a token for logging purposes.
    Shows the first 6 characters followed by ***.
    """
    if not token:
        return "None"
    if len(token) <= 6:
        return token
    return f"{token[:6]}***"


class ApiKeyCipher:
    """Symmetric cipher for API keys kept in the user library."""

    _SALT = b"Qm7tR2vXk9LpZ4wYc8NdE3sHf6JbU1aG"

    def __init__(self, secret: str | None = None):
        self.secret = secret if secret is not None else settings.TOKEN_SALT
        if not self.secret or self.secret == "change-me":
            logger.warning(
                "TOKEN_SALT is missing or using the default placeholder. Stored API keys are weakly protected."
            )
        self._fernet: Fernet | None = None

    def _get_cipher(self) -> Fernet:
        if self._fernet is None:
            kdf = PBKDF2HMAC(
                algorithm=hashes.SHA256(),
                length=32,
                salt=self._SALT,
                iterations=200_000,
            )
            key = base64.urlsafe_b64encode(kdf.derive(self.secret.encode("utf-8")))
            self._fernet = Fernet(key)
        return self._fernet

    def encrypt(self, api_key: str) -> str:
        return self._get_cipher().encrypt(api_key.encode("utf-8")).decode("utf-8")

    def decrypt(self, encrypted: str) -> str | None:
        """Return the plaintext key, or None when the value cannot be decrypted."""
        try:
            return self._get_cipher().decrypt(encrypted.encode("utf-8")).decode("utf-8")
        except (InvalidToken, ValueError) as e:
            logger.warning(f"Failed to decrypt stored API key: {type(e).__name__}")
            return None
