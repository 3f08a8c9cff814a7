"""Token Cipher — AES-256-CTR encryption of stored session values.

Invariants:
    - Keys are exactly 32 bytes (AES-256); anything else raises InvalidKeyError
    - Initial counter block is the integer 1 as a 16-byte big-endian block,
      so ciphertext is byte-compatible with aes-js ModeOfOperation.ctr(key, Counter(1))
    - Ciphertext and keys cross the storage boundary as lowercase hex strings
    - Plaintext is UTF-8; undecodable output raises CipherError

Design Decisions:
    - A fresh random key per stored value; the key lives in a different store
      than the ciphertext
"""

import binascii
import os

from cryptography.hazmat.primitives.ciphers import Cipher, algorithms, modes

KEY_SIZE = 32
_INITIAL_COUNTER = (1).to_bytes(16, "big")


class CipherError(ValueError):
    """Ciphertext or key could not be decoded."""


class InvalidKeyError(CipherError):
    """Encryption key has the wrong length."""


def generate_key() -> bytes:
    """Return a new random 256-bit key."""
    return os.urandom(KEY_SIZE)


def key_to_hex(key: bytes) -> str:
    return key.hex()


def key_from_hex(key_hex: str) -> bytes:
    try:
        return bytes.fromhex(key_hex)
    except ValueError as e:
        raise CipherError(f"Encryption key is not valid hex: {e}") from e


def _cipher(key: bytes) -> Cipher:
    if len(key) != KEY_SIZE:
        raise InvalidKeyError(
            f"Encryption key must be {KEY_SIZE} bytes, got {len(key)}",
        )
    return Cipher(algorithms.AES(key), modes.CTR(_INITIAL_COUNTER))


def encrypt(key: bytes, plaintext: str) -> str:
    """Encrypt UTF-8 text, returning hex ciphertext."""
    encryptor = _cipher(key).encryptor()
    data = encryptor.update(plaintext.encode("utf-8")) + encryptor.finalize()
    return data.hex()


def decrypt(key: bytes, ciphertext_hex: str) -> str:
    """Decrypt hex ciphertext back to UTF-8 text."""
    decryptor = _cipher(key).decryptor()
    try:
        raw = binascii.unhexlify(ciphertext_hex)
    except (binascii.Error, ValueError) as e:
        raise CipherError(f"Ciphertext is not valid hex: {e}") from e
    data = decryptor.update(raw) + decryptor.finalize()
    try:
        return data.decode("utf-8")
    except UnicodeDecodeError as e:
        raise CipherError("Decrypted bytes are not valid UTF-8") from e
