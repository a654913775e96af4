"""Passphrase key derivation."""

from __future__ import annotations

import hashlib


def derive_key(passphrase: str) -> bytes:
    """Derive the 32-byte AES key from a passphrase.

    A single unsalted SHA-256 of the UTF-8 passphrase, so one passphrase
    always maps to the same key and files stay readable across processes.

    Parameters
    ----------
    passphrase : str
        The caller-supplied passphrase.

    Returns
    -------
    bytes
        32-byte digest.
    """
    return hashlib.sha256(passphrase.encode("utf-8")).digest()[:32]
