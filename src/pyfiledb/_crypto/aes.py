"""AES-256-CBC encryption of store payloads.

Payloads are written as ``<ivHex>:<cipherHex>`` with a fresh random IV
per call, both segments lowercase hex.
"""

from __future__ import annotations

import secrets

from cryptography.hazmat.primitives import padding
from cryptography.hazmat.primitives.ciphers import Cipher, algorithms, modes

from pyfiledb.exceptions import FileDbCryptoError

IV_SIZE = 16
KEY_SIZE = 32
_DELIMITER = ":"


def _parse_hex_bytes(
    value: str,
    *,
    name: str,
    allowed_nbytes: set[int] | None = None,
) -> bytes:
    text = value.strip()
    if not text:
        raise FileDbCryptoError(f"{name} is empty")
    if len(text) % 2 != 0:
        raise FileDbCryptoError(f"{name} hex length must be even (got {len(text)})")
    try:
        data = bytes.fromhex(text)
    except ValueError as exc:
        raise FileDbCryptoError(f"{name} must be hex-encoded") from exc

    if allowed_nbytes is not None and len(data) not in allowed_nbytes:
        allowed = ", ".join(str(n) for n in sorted(allowed_nbytes))
        raise FileDbCryptoError(f"{name} must be {allowed} bytes (got {len(data)})")
    return data


def _check_key(key: bytes) -> None:
    if len(key) != KEY_SIZE:
        raise FileDbCryptoError(f"AES key must be {KEY_SIZE} bytes (got {len(key)})")


def aes_encrypt_payload(plaintext: str, key: bytes) -> str:
    """AES-256-CBC encrypt with a random IV.

    Parameters
    ----------
    plaintext : str
        UTF-8 string to encrypt.
    key : bytes
        32-byte key, see :func:`pyfiledb._crypto.hashing.derive_key`.

    Returns
    -------
    str
        ``<ivHex>:<cipherHex>`` in lowercase hex.

    Raises
    ------
    FileDbCryptoError
        If encryption fails.
    """
    _check_key(key)
    try:
        iv = secrets.token_bytes(IV_SIZE)
        padder = padding.PKCS7(128).padder()
        padded = padder.update(plaintext.encode("utf-8")) + padder.finalize()
        encryptor = Cipher(algorithms.AES(key), modes.CBC(iv)).encryptor()
        ct = encryptor.update(padded) + encryptor.finalize()
    except Exception as exc:
        raise FileDbCryptoError(f"AES encryption failed: {exc}") from exc
    return f"{iv.hex()}{_DELIMITER}{ct.hex()}"


def aes_decrypt_payload(payload: str, key: bytes) -> str:
    """Decrypt an ``<ivHex>:<cipherHex>`` payload into a UTF-8 string.

    The payload is split on the first delimiter; everything after it is the
    ciphertext, re-joined on the delimiter.

    Raises
    ------
    FileDbCryptoError
        If the payload is malformed or decryption fails (wrong key,
        damaged ciphertext, invalid padding).
    """
    _check_key(key)
    parts = payload.split(_DELIMITER)
    if len(parts) < 2:
        raise FileDbCryptoError("Encrypted payload is missing the IV delimiter")
    iv = _parse_hex_bytes(parts.pop(0), name="AES IV", allowed_nbytes={IV_SIZE})
    ct = _parse_hex_bytes(_DELIMITER.join(parts), name="AES ciphertext")
    if len(ct) % IV_SIZE != 0:
        raise FileDbCryptoError(f"AES ciphertext length must be a multiple of {IV_SIZE} (got {len(ct)})")
    try:
        decryptor = Cipher(algorithms.AES(key), modes.CBC(iv)).decryptor()
        padded = decryptor.update(ct) + decryptor.finalize()
        unpadder = padding.PKCS7(128).unpadder()
        plaintext = unpadder.update(padded) + unpadder.finalize()
        return plaintext.decode("utf-8")
    except Exception as exc:
        raise FileDbCryptoError(f"AES decryption failed: {exc}") from exc
