"""Store configuration for pyfiledb."""

from __future__ import annotations

import dataclasses
import os
from collections.abc import Mapping
from typing import Any


def _env_bool(value: str | None, default: bool) -> bool:
    if value is None:
        return default
    normalized = value.strip().lower()
    if normalized in {"1", "true", "yes", "y", "on"}:
        return True
    if normalized in {"0", "false", "no", "n", "off"}:
        return False
    return default


@dataclasses.dataclass(frozen=True)
class FileDbConfig:
    """Store configuration.

    Parameters
    ----------
    template : Mapping or None
        Initial root used only when the backing file does not exist yet.
        The template is deep-copied; later mutations never touch it.
    crypt_key : str or None
        Passphrase enabling AES-256-CBC encryption at rest. The key is
        ``SHA-256(crypt_key)``. An existing plaintext file is migrated to
        the encrypted format on first read.
    pretty : bool
        Tab-indent the JSON output. Ignored while ``crypt_key`` is set.
    force_create : bool
        Write the file at construction time if it does not exist, instead
        of waiting for the first mutation.
    update_on_external_changes : bool
        Watch the file and merge edits made by other processes into the
        live root. Implies ``force_create``.
    debounce_seconds : float
        Quiet period after the last change notification before the file
        timestamp is checked.
    poll_interval : float
        Stat interval of the default polling change notifier.
    """

    template: Mapping[str, Any] | None = None
    crypt_key: str | None = dataclasses.field(default=None, repr=False)
    pretty: bool = False
    force_create: bool = False
    update_on_external_changes: bool = False
    debounce_seconds: float = 0.1
    poll_interval: float = 0.25

    @property
    def encrypted(self) -> bool:
        """Whether content is encrypted at rest."""
        return self.crypt_key is not None

    def as_log_dict(self) -> dict[str, Any]:
        """Field values for debug logging; pass through ``redact_for_log``."""
        values = {f.name: getattr(self, f.name) for f in dataclasses.fields(self)}
        values["template"] = dict(self.template) if self.template is not None else None
        return values

    @classmethod
    def from_env(cls, **overrides: Any) -> FileDbConfig:
        """Create configuration from environment variables.

        Reads ``FILEDB_CRYPT_KEY``, ``FILEDB_PRETTY``, ``FILEDB_FORCE_CREATE``,
        ``FILEDB_UPDATE_ON_EXTERNAL_CHANGES``, ``FILEDB_DEBOUNCE_SECONDS`` and
        ``FILEDB_POLL_INTERVAL``. Explicit keyword arguments override
        environment values.

        Parameters
        ----------
        **overrides
            Explicit field values that take precedence over env vars.

        Returns
        -------
        FileDbConfig
            Populated configuration.
        """
        env = os.environ
        config_kwargs: dict[str, Any] = {}

        crypt_key = env.get("FILEDB_CRYPT_KEY")
        if crypt_key:
            config_kwargs["crypt_key"] = crypt_key

        _ENV_BOOL_MAP = {
            "FILEDB_PRETTY": "pretty",
            "FILEDB_FORCE_CREATE": "force_create",
            "FILEDB_UPDATE_ON_EXTERNAL_CHANGES": "update_on_external_changes",
        }
        for env_key, field_name in _ENV_BOOL_MAP.items():
            if field_name not in overrides:
                config_kwargs[field_name] = _env_bool(env.get(env_key), False)

        debounce_env = env.get("FILEDB_DEBOUNCE_SECONDS")
        if debounce_env is not None and "debounce_seconds" not in overrides:
            config_kwargs["debounce_seconds"] = float(debounce_env)

        poll_env = env.get("FILEDB_POLL_INTERVAL")
        if poll_env is not None and "poll_interval" not in overrides:
            config_kwargs["poll_interval"] = float(poll_env)

        config_kwargs.update(overrides)

        return cls(**config_kwargs)
