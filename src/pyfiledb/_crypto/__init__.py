"""Cryptographic primitives for encryption at rest."""

from __future__ import annotations

from pyfiledb._crypto.aes import aes_decrypt_payload, aes_encrypt_payload
from pyfiledb._crypto.hashing import derive_key

__all__ = [
    "aes_decrypt_payload",
    "aes_encrypt_payload",
    "derive_key",
]
