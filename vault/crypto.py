"""AES-256-CBC codec for file contents at rest."""

import hashlib
import os
from typing import Tuple

from cryptography.hazmat.primitives import padding
from cryptography.hazmat.primitives.ciphers import Cipher, algorithms, modes

from common.constants import AES_BLOCK_SIZE_BYTES, AES_KEY_SIZE_BYTES, IV_SIZE_BYTES
from vault.exceptions import DecryptionError


def derive_key(passphrase: str) -> bytes:
    """
    Derive the 32-byte AES key from a passphrase.

    The derivation is unsalted so the same configuration always yields the
    same key across restarts.

    Args:
        passphrase: Configured secret

    Returns:
        32-byte SHA-256 digest of the passphrase
    """
    return hashlib.sha256(passphrase.encode('utf-8')).digest()


def encrypt(plaintext: bytes, key: bytes) -> Tuple[bytes, bytes]:
    """
    Encrypt a buffer with a fresh random IV.

    Args:
        plaintext: Bytes to encrypt (any length, including 0)
        key: 32-byte AES key

    Returns:
        Tuple of (iv, ciphertext)
    """
    iv = os.urandom(IV_SIZE_BYTES)

    padder = padding.PKCS7(AES_BLOCK_SIZE_BYTES * 8).padder()
    padded = padder.update(plaintext) + padder.finalize()

    encryptor = Cipher(algorithms.AES(key), modes.CBC(iv)).encryptor()
    ciphertext = encryptor.update(padded) + encryptor.finalize()
    return iv, ciphertext


def decrypt(ciphertext: bytes, iv: bytes, key: bytes) -> bytes:
    """
    Decrypt a buffer produced by encrypt().

    Args:
        ciphertext: Encrypted bytes
        iv: 16-byte IV used for encryption
        key: 32-byte AES key

    Returns:
        Plaintext bytes

    Raises:
        DecryptionError: If the IV or ciphertext length is invalid or the padding does not check out
    """
    if len(iv) != IV_SIZE_BYTES:
        raise DecryptionError(f"IV must be {IV_SIZE_BYTES} bytes, got {len(iv)}")

    if not ciphertext or len(ciphertext) % AES_BLOCK_SIZE_BYTES:
        raise DecryptionError(
            f"Ciphertext length {len(ciphertext)} is not a positive multiple of {AES_BLOCK_SIZE_BYTES}"
        )

    decryptor = Cipher(algorithms.AES(key), modes.CBC(iv)).decryptor()
    padded = decryptor.update(ciphertext) + decryptor.finalize()

    unpadder = padding.PKCS7(AES_BLOCK_SIZE_BYTES * 8).unpadder()
    try:
        return unpadder.update(padded) + unpadder.finalize()
    except ValueError as e:
        raise DecryptionError("Invalid padding: wrong key or corrupted ciphertext") from e


class BlockCipherCodec:
    """
    Encrypts and decrypts buffers under one key fixed at construction.

    Usage:
        codec = BlockCipherCodec.from_passphrase(SECRET_KEY)
        iv, ciphertext = codec.encrypt(data)
        data = codec.decrypt(ciphertext, iv)
    """

    def __init__(self, key: bytes):
        if len(key) != AES_KEY_SIZE_BYTES:
            raise ValueError(f"Key must be {AES_KEY_SIZE_BYTES} bytes, got {len(key)}")
        self._key = key

    @classmethod
    def from_passphrase(cls, passphrase: str) -> 'BlockCipherCodec':
        return cls(derive_key(passphrase))

    def encrypt(self, plaintext: bytes) -> Tuple[bytes, bytes]:
        return encrypt(plaintext, self._key)

    def decrypt(self, ciphertext: bytes, iv: bytes) -> bytes:
        return decrypt(ciphertext, iv, self._key)
