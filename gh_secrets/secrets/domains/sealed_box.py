"""Sealed-box encryption of secret values against a GitHub public key."""
import base64
import binascii
import logging

from nacl import exceptions as nacl_exceptions
from nacl import public

logger = logging.getLogger(__name__)


class EncryptionError(Exception):
    """Secret value could not be encrypted."""
    pass


class InvalidKeyError(EncryptionError):
    """Public key is not valid base64 or has the wrong length."""
    pass


def _decode_public_key(public_key_b64: str) -> public.PublicKey:
    try:
        raw_key = base64.b64decode(public_key_b64, validate=True)
    except (binascii.Error, ValueError, TypeError) as e:
        raise InvalidKeyError(f"Public key is not valid base64: {e}") from e

    if len(raw_key) != public.PublicKey.SIZE:
        raise InvalidKeyError(
            f"Public key must be {public.PublicKey.SIZE} bytes, got {len(raw_key)}"
        )
    return public.PublicKey(raw_key)


def encrypt_secret(value: str, public_key_b64: str) -> str:
    """
    Encrypt a secret value with an anonymous libsodium sealed box.

    Only the holder of the matching private key (GitHub) can decrypt the
    result. Each call uses a fresh ephemeral key, so the output differs
    between calls for the same input.

    Args:
        value: Plaintext secret value
        public_key_b64: Base64 public key returned by the public-key endpoint

    Returns:
        Base64 encoded ciphertext

    Raises:
        InvalidKeyError: If the public key cannot be decoded
        EncryptionError: If encryption fails
    """
    key = _decode_public_key(public_key_b64)

    try:
        sealed = public.SealedBox(key).encrypt(value.encode("utf-8"))
    except nacl_exceptions.CryptoError as e:
        logger.debug(f"Sealed box encryption failed: {e}")
        raise EncryptionError(f"Encryption failed: {e}") from e

    return base64.b64encode(sealed).decode("utf-8")
