"""Bridge configuration loaded from FISHBRIDGE_* environment variables."""

from __future__ import annotations

from typing import Literal

from pydantic_settings import BaseSettings, SettingsConfigDict

from fishbridge.client.models.enums import FallbackPolicy


class BridgeSettings(BaseSettings):
    """fishbridge settings.

    All fields are read from environment variables with the ``FISHBRIDGE_``
    prefix.  For example, ``FISHBRIDGE_LOG_LEVEL=DEBUG`` maps to ``log_level``.
    List fields take JSON (``FISHBRIDGE_SCRATCH_DIRS='["/tmp", "/var/tmp"]'``).

    Variables read by ``fish-lsp`` itself (``fish_lsp_all_indexed_paths`` and
    friends) are **not** managed here -- they come from the fish environment,
    see ``fishbridge.client.environment``.
    """

    model_config = SettingsConfigDict(
        env_prefix="FISHBRIDGE_",
        env_file=".env",
        env_file_encoding="utf-8",
        case_sensitive=False,
    )

    # -- Logging ---------------------------------------------------------------
    log_level: str = "INFO"
    trace: Literal["off", "messages", "verbose"] = "off"
    """Verbosity of language-server traffic in the log."""

    # -- Executables -----------------------------------------------------------
    executable_path: str = ""
    """Explicit path to the ``fish-lsp`` executable.  Overrides everything else."""

    use_global_executable: bool = True
    """Look ``fish-lsp`` up on ``PATH`` when no explicit path is configured."""

    fish_path: str = ""
    """Path to ``fish``.  Looked up on ``PATH`` when empty."""

    # -- Workspaces ------------------------------------------------------------
    enable_workspace_folders: bool = True
    """When disabled, fish's default indexed paths seed the initial workspaces."""

    scratch_dirs: list[str] = ["/tmp"]
    """Scratch areas: every path under one of these is its own workspace root."""

    fallback: FallbackPolicy = FallbackPolicy.SKIP
    """What to do with a path that has no marker anywhere up the tree."""

    language_id: str = "fish"
    """Only documents with this language id are synchronized."""

    # -- Helper processes ------------------------------------------------------
    helper_timeout: float = 2.0
    """Seconds to wait for ``fish -c ...`` helper calls before giving up."""


def get_settings() -> BridgeSettings:
    """Return a cached settings instance.

    Reads from environment variables and ``.env`` on first call, then returns
    the same object.  Call ``get_settings.cache_clear()`` in tests to force a
    re-read after overriding env vars.
    """
    return _get_settings_cached()


def _get_settings_cached() -> BridgeSettings:
    """Inner function wrapped by lru_cache (allows type-safe cache_clear)."""
    return BridgeSettings()


# Apply lru_cache at runtime so the function is only called once.
from functools import lru_cache  # noqa: E402

_get_settings_cached = lru_cache(maxsize=1)(_get_settings_cached)
