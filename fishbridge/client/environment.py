"""Executable lookup and fish environment queries.

Everything here shells out: ``which`` to find executables, and ``fish -c``
to read fish's own view of the environment.  fish autoloads variables such as
``__fish_config_dir`` and ``__fish_data_dir`` that the bridge process never
sees, and users reference them in ``fish_lsp_all_indexed_paths``.

Helper calls are bounded by ``helper_timeout``.  A helper that fails or times
out yields nothing -- the bridge then runs without environment-augmented
indexed paths rather than failing to start.
"""

from __future__ import annotations

import os
from typing import TYPE_CHECKING

import anyio
from loguru import logger

if TYPE_CHECKING:
    from collections.abc import Mapping, Sequence

    from fishbridge.client.settings import BridgeSettings

SERVER_EXECUTABLE = "fish-lsp"
FISH_EXECUTABLE = "fish"

INDEXED_PATHS_VAR = "fish_lsp_all_indexed_paths"
DEFAULT_INDEXED_VARS: tuple[str, ...] = ("__fish_config_dir", "__fish_data_dir")


class StartupValidationError(RuntimeError):
    """Raised when a required executable is missing or not executable."""


# ---------------------------------------------------------------------------
# Process helper
# ---------------------------------------------------------------------------


async def _run(command: Sequence[str], *, timeout: float) -> str | None:
    """Run *command* and return its stdout, or ``None`` on failure / timeout."""
    try:
        with anyio.fail_after(timeout):
            result = await anyio.run_process(list(command), check=False)
    except TimeoutError:
        logger.warning("Helper timed out after {}s: {}", timeout, command[0])
        return None
    except OSError as exc:
        logger.debug("Helper failed to run {}: {}", command[0], exc)
        return None
    if result.returncode != 0:
        logger.debug("Helper {} exited with {}", command[0], result.returncode)
        return None
    return result.stdout.decode(errors="replace")


# ---------------------------------------------------------------------------
# Executables
# ---------------------------------------------------------------------------


async def find_executable(name: str, *, timeout: float = 2.0) -> str | None:
    """Locate *name* on ``PATH`` via ``which``.  Returns the first match."""
    stdout = await _run(["which", name], timeout=timeout)
    if not stdout:
        return None
    first = stdout.strip().splitlines()
    return first[0] if first else None


def is_executable(path: str | None) -> bool:
    return bool(path) and os.path.isfile(path) and os.access(path, os.X_OK)


async def resolve_server_path(settings: BridgeSettings) -> str:
    """Pick the ``fish-lsp`` executable.

    An explicit ``executable_path`` always wins; otherwise, if allowed, the
    one found on ``PATH``.  Raises ``StartupValidationError`` if the result is
    missing or not executable.
    """
    if settings.executable_path.strip():
        server_path = settings.executable_path.strip()
        logger.info("Using configured fish-lsp at {}", server_path)
    elif settings.use_global_executable:
        server_path = await find_executable(SERVER_EXECUTABLE, timeout=settings.helper_timeout) or ""
        logger.info("Using fish-lsp found on PATH at {}", server_path or "<not found>")
    else:
        msg = "No fish-lsp executable configured (set FISHBRIDGE_EXECUTABLE_PATH or FISHBRIDGE_USE_GLOBAL_EXECUTABLE)"
        raise StartupValidationError(msg)

    if not is_executable(server_path):
        msg = f"fish-lsp executable not found or not executable: {server_path or SERVER_EXECUTABLE}"
        raise StartupValidationError(msg)
    return server_path


async def resolve_fish_path(settings: BridgeSettings) -> str:
    """Pick the ``fish`` executable.  Falls back to bare ``fish`` with a warning."""
    fish_path = settings.fish_path.strip() or await find_executable(FISH_EXECUTABLE, timeout=settings.helper_timeout)
    if not is_executable(fish_path):
        logger.warning("fish executable may not be accessible: {}", fish_path or FISH_EXECUTABLE)
        return fish_path or FISH_EXECUTABLE
    return fish_path


# ---------------------------------------------------------------------------
# Fish environment
# ---------------------------------------------------------------------------


def parse_env_output(stdout: str) -> dict[str, str]:
    """Parse ``env`` output (``KEY=VALUE`` per line).  Values may contain ``=``."""
    env: dict[str, str] = {}
    for line in stdout.splitlines():
        key, sep, value = line.partition("=")
        if key and sep:
            env[key] = value
    return env


async def fish_environment(fish_path: str = FISH_EXECUTABLE, *, timeout: float = 2.0) -> dict[str, str]:
    """Environment as fish sees it, overlaid with this process's own environment.

    Returns a copy of ``os.environ`` if fish cannot be queried.
    """
    stdout = await _run([fish_path, "-c", "env"], timeout=timeout)
    fish_env = parse_env_output(stdout) if stdout else {}
    logger.debug("Fish environment: {} variables", len(fish_env))
    return {**fish_env, **os.environ}


async def fish_value(name: str, fish_path: str = FISH_EXECUTABLE, *, timeout: float = 2.0) -> str | None:
    """Value of fish variable *name*, or ``None`` if it is unset or empty."""
    stdout = await _run([fish_path, "-c", f"echo (set -q {name}; and echo ${name})"], timeout=timeout)
    if stdout is None:
        return None
    return stdout.strip() or None


async def default_indexed_paths(
    env: Mapping[str, str],
    fish_path: str = FISH_EXECUTABLE,
    *,
    timeout: float = 2.0,
) -> list[str]:
    """Directories fish-lsp indexes by default.

    Items come from ``fish_lsp_all_indexed_paths`` (space separated) or, when
    that is unset, ``__fish_config_dir`` and ``__fish_data_dir``.  An item is
    either a path or the name of a fish variable holding one.  Only existing
    directories are returned.
    """
    items = env.get(INDEXED_PATHS_VAR, "").split() or list(DEFAULT_INDEXED_VARS)
    logger.info("Default indexed paths: {}", ", ".join(items))

    paths: list[str] = []
    for item in items:
        if "/" in item or item.startswith("~"):
            value: str | None = os.path.expanduser(item)
        else:
            value = await fish_value(item, fish_path, timeout=timeout)
        if value and os.path.isdir(value):
            if value not in paths:
                paths.append(value)
        else:
            logger.warning("Default indexed path {!r} is not a valid directory: {}", item, value)
    return paths
