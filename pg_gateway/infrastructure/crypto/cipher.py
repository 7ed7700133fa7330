"""AES-256-GCM envelope for approval provider payloads.

The remote provider expects request bodies encrypted with a key derived from
the partner API key and an IV shared out of band. This is a protocol transform,
not a security boundary: when the API key or IV is missing or malformed, fixed
simulation values are substituted so local development never fails here.
"""

import base64
import binascii
import hashlib
import logging
from typing import Optional

from cryptography.exceptions import InvalidTag
from cryptography.hazmat.primitives.ciphers.aead import AESGCM

logger = logging.getLogger(__name__)

# Simulation defaults (dev/test only)
SIMULATION_KEY = b"test-pg-simulation-key-32bytes!!"  # 32 bytes
SIMULATION_IV = b"test-pg-iv-1"  # 12 bytes

# AESGCM accepts nonces between 8 and 128 bytes; the provider uses 12
MIN_IV_BYTES = 8
MAX_IV_BYTES = 128


class PayloadCipherError(Exception):
    """Ciphertext could not be produced or authenticated"""

    pass


def b64url_encode(data: bytes) -> str:
    return base64.urlsafe_b64encode(data).decode("ascii").rstrip("=")


def b64url_decode(text: str) -> bytes:
    padded = text + "=" * (-len(text) % 4)
    return base64.b64decode(padded, altchars=b"-_", validate=True)


class PayloadCipher:
    """Encrypt/decrypt provider payloads (AES-256-GCM, 128-bit tag, base64url)"""

    def encrypt(self, plaintext: str, api_key: Optional[str], iv: Optional[str]) -> str:
        """
        Encrypt a plaintext payload.

        Args:
            plaintext: JSON (or any text) to protect
            api_key: Provider API key; SHA-256 of it is the AES key
            iv: Base64url-encoded nonce

        Returns:
            Base64url (no padding) ciphertext with the GCM tag appended

        Raises:
            PayloadCipherError: plaintext cannot be encoded as UTF-8
        """
        aead = AESGCM(self._derive_key(api_key))
        try:
            data = plaintext.encode("utf-8")
        except UnicodeEncodeError as e:
            raise PayloadCipherError(f"Plaintext is not encodable as UTF-8: {e}") from e
        return b64url_encode(aead.encrypt(self._resolve_iv(iv), data, None))

    def decrypt(self, ciphertext: str, api_key: Optional[str], iv: Optional[str]) -> str:
        """
        Decrypt a payload produced by :meth:`encrypt` with the same key and IV.

        Raises:
            PayloadCipherError: ciphertext is not base64url or fails authentication
        """
        aead = AESGCM(self._derive_key(api_key))
        try:
            raw = b64url_decode(ciphertext)
            return aead.decrypt(self._resolve_iv(iv), raw, None).decode("utf-8")
        except (binascii.Error, ValueError) as e:
            raise PayloadCipherError(f"Malformed ciphertext: {e}") from e
        except InvalidTag as e:
            raise PayloadCipherError("Ciphertext failed authentication") from e

    @staticmethod
    def _derive_key(api_key: Optional[str]) -> bytes:
        if api_key:
            return hashlib.sha256(api_key.encode("utf-8")).digest()
        return SIMULATION_KEY

    @staticmethod
    def _resolve_iv(iv: Optional[str]) -> bytes:
        if not iv:
            return SIMULATION_IV

        try:
            decoded = b64url_decode(iv)
        except (binascii.Error, ValueError):
            logger.warning("IV is not valid base64url, using simulation IV", extra={"iv_length": len(iv)})
            return SIMULATION_IV

        if not MIN_IV_BYTES <= len(decoded) <= MAX_IV_BYTES:
            logger.warning("IV has unusable length, using simulation IV", extra={"iv_bytes": len(decoded)})
            return SIMULATION_IV

        return decoded
