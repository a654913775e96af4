"""Encode/decode of the store root, with optional encryption at rest."""

from __future__ import annotations

import json
from dataclasses import dataclass
from typing import Any

from pyfiledb._crypto.aes import aes_decrypt_payload, aes_encrypt_payload
from pyfiledb._crypto.hashing import derive_key
from pyfiledb.exceptions import FileDbDecodeError, FileDbValueError

_PRETTY_INDENT = "\t"
_COMPACT_SEPARATORS = (",", ":")
_LEGACY_PREFIX = "{"


def _reject_constant(name: str) -> Any:
    raise ValueError(f"non-finite number {name} is not allowed")


@dataclass(frozen=True)
class DecodedPayload:
    """Result of decoding raw file content."""

    data: dict[str, Any]
    migrated: bool = False
    """True when a plaintext file was read with a passphrase configured."""


class Codec:
    """JSON codec with optional AES-256-CBC encryption.

    Pretty-printing only applies to plaintext output; while a passphrase is
    configured the ``pretty`` request is ignored.
    """

    def __init__(self, crypt_key: str | None = None, *, pretty: bool = False) -> None:
        self._key = derive_key(crypt_key) if crypt_key is not None else None
        self._pretty = pretty and self._key is None

    @property
    def encrypted(self) -> bool:
        return self._key is not None

    @property
    def pretty(self) -> bool:
        """Effective pretty-print setting."""
        return self._pretty

    def serialize(self, data: Any) -> str:
        try:
            if self._pretty:
                return json.dumps(data, indent=_PRETTY_INDENT, ensure_ascii=False, allow_nan=False)
            return json.dumps(data, separators=_COMPACT_SEPARATORS, ensure_ascii=False, allow_nan=False)
        except (TypeError, ValueError) as exc:
            raise FileDbValueError(f"Store content is not JSON-safe: {exc}") from exc

    def encode(self, data: dict[str, Any]) -> str:
        """Serialize *data* and encrypt it when a passphrase is configured."""
        text = self.serialize(data)
        if self._key is not None:
            return aes_encrypt_payload(text, self._key)
        return text

    def decode(self, raw: str) -> DecodedPayload:
        """Decrypt (when configured) and parse raw file content.

        Raises
        ------
        FileDbCryptoError
            If decryption fails.
        FileDbDecodeError
            If the content is not a JSON object.
        """
        if self._key is not None and raw.startswith(_LEGACY_PREFIX):
            return DecodedPayload(data=self._parse(raw), migrated=True)
        text = aes_decrypt_payload(raw, self._key) if self._key is not None else raw
        return DecodedPayload(data=self._parse(text))

    @staticmethod
    def _parse(text: str) -> dict[str, Any]:
        try:
            parsed = json.loads(text, parse_constant=_reject_constant)
        except ValueError as exc:
            raise FileDbDecodeError(f"Store content is not valid JSON: {exc}") from exc
        if not isinstance(parsed, dict):
            raise FileDbDecodeError(f"Store root must be a JSON object, got {type(parsed).__name__}")
        return parsed
