"""Unit tests for executable lookup and fish environment helpers.

Helper processes are mocked at ``_run`` except for a couple of tests that
exercise the process runner itself with standard POSIX tools.
"""

from __future__ import annotations

import os
from pathlib import Path
from unittest.mock import AsyncMock, patch

import pytest

from fishbridge.client import environment
from fishbridge.client.environment import (
    StartupValidationError,
    default_indexed_paths,
    find_executable,
    fish_environment,
    fish_value,
    is_executable,
    parse_env_output,
    resolve_fish_path,
    resolve_server_path,
)
from fishbridge.client.settings import BridgeSettings


@pytest.fixture
def fake_server(tmp_path: Path) -> Path:
    server = tmp_path / "bin" / "fish-lsp"
    server.parent.mkdir()
    server.write_text("#!/bin/sh\n")
    server.chmod(0o755)
    return server


# ---------------------------------------------------------------------------
# Process runner
# ---------------------------------------------------------------------------


async def test_run_returns_none_for_missing_command() -> None:
    assert await environment._run(["fishbridge-definitely-not-a-command"], timeout=2.0) is None


async def test_run_times_out() -> None:
    assert await environment._run(["sleep", "5"], timeout=0.1) is None


async def test_run_returns_stdout() -> None:
    assert await environment._run(["echo", "hello"], timeout=5.0) == "hello\n"


# ---------------------------------------------------------------------------
# Executables
# ---------------------------------------------------------------------------


async def test_find_executable_takes_first_match() -> None:
    with patch.object(environment, "_run", AsyncMock(return_value="/usr/bin/fish\n/bin/fish\n")) as run:
        assert await find_executable("fish") == "/usr/bin/fish"
    assert run.await_args.args[0] == ["which", "fish"]


async def test_find_executable_not_found() -> None:
    with patch.object(environment, "_run", AsyncMock(return_value=None)):
        assert await find_executable("fish-lsp") is None


def test_is_executable(fake_server: Path, tmp_path: Path) -> None:
    plain = tmp_path / "plain"
    plain.write_text("")
    assert is_executable(str(fake_server))
    assert not is_executable(str(plain))
    assert not is_executable(str(tmp_path))
    assert not is_executable(None)


async def test_resolve_server_path_explicit(fake_server: Path) -> None:
    settings = BridgeSettings(executable_path=str(fake_server), use_global_executable=False)
    assert await resolve_server_path(settings) == str(fake_server)


async def test_resolve_server_path_global(fake_server: Path) -> None:
    with patch.object(environment, "find_executable", AsyncMock(return_value=str(fake_server))):
        assert await resolve_server_path(BridgeSettings()) == str(fake_server)


async def test_resolve_server_path_not_executable(tmp_path: Path) -> None:
    settings = BridgeSettings(executable_path=str(tmp_path / "missing"))
    with pytest.raises(StartupValidationError, match="not found or not executable"):
        await resolve_server_path(settings)


async def test_resolve_server_path_global_missing() -> None:
    with (
        patch.object(environment, "find_executable", AsyncMock(return_value=None)),
        pytest.raises(StartupValidationError),
    ):
        await resolve_server_path(BridgeSettings())


async def test_resolve_server_path_nothing_configured() -> None:
    with pytest.raises(StartupValidationError, match="No fish-lsp executable configured"):
        await resolve_server_path(BridgeSettings(use_global_executable=False))


async def test_resolve_fish_path_falls_back_to_bare_name() -> None:
    with patch.object(environment, "find_executable", AsyncMock(return_value=None)):
        assert await resolve_fish_path(BridgeSettings()) == "fish"


# ---------------------------------------------------------------------------
# Fish environment
# ---------------------------------------------------------------------------


def test_parse_env_output() -> None:
    stdout = "HOME=/home/u\nfish_lsp_all_indexed_paths=/a /b\nEQ=a=b\nnot a var\n"
    assert parse_env_output(stdout) == {
        "HOME": "/home/u",
        "fish_lsp_all_indexed_paths": "/a /b",
        "EQ": "a=b",
    }


async def test_fish_environment_process_env_wins(monkeypatch: pytest.MonkeyPatch) -> None:
    monkeypatch.setenv("FISHBRIDGE_TEST_VAR", "from-process")
    stdout = "FISHBRIDGE_TEST_VAR=from-fish\n__fish_data_dir=/usr/share/fish\n"
    with patch.object(environment, "_run", AsyncMock(return_value=stdout)):
        env = await fish_environment("fish")

    assert env["FISHBRIDGE_TEST_VAR"] == "from-process"
    assert env["__fish_data_dir"] == "/usr/share/fish"


async def test_fish_environment_without_fish() -> None:
    with patch.object(environment, "_run", AsyncMock(return_value=None)):
        assert await fish_environment("fish") == dict(os.environ)


async def test_fish_value() -> None:
    with patch.object(environment, "_run", AsyncMock(return_value="/usr/share/fish\n")) as run:
        assert await fish_value("__fish_data_dir", "/usr/bin/fish") == "/usr/share/fish"
    command = run.await_args.args[0]
    assert command[:2] == ["/usr/bin/fish", "-c"]
    assert "__fish_data_dir" in command[2]

    with patch.object(environment, "_run", AsyncMock(return_value="\n")):
        assert await fish_value("unset_var") is None


async def test_default_indexed_paths_from_fish_variables(tmp_path: Path) -> None:
    config_dir = tmp_path / "config"
    config_dir.mkdir()
    values = {"__fish_config_dir": str(config_dir), "__fish_data_dir": str(tmp_path / "missing")}

    async def _fake_value(name: str, fish_path: str = "fish", *, timeout: float = 2.0) -> str | None:
        return values.get(name)

    with patch.object(environment, "fish_value", _fake_value):
        assert await default_indexed_paths({}) == [str(config_dir)]


async def test_default_indexed_paths_from_env_var(tmp_path: Path) -> None:
    a = tmp_path / "a"
    b = tmp_path / "b"
    a.mkdir()
    b.mkdir()
    env = {"fish_lsp_all_indexed_paths": f"{a} {b} {a}"}

    fish_value_mock = AsyncMock()
    with patch.object(environment, "fish_value", fish_value_mock):
        assert await default_indexed_paths(env) == [str(a), str(b)]
    fish_value_mock.assert_not_awaited()


async def test_default_indexed_paths_all_helpers_fail() -> None:
    with patch.object(environment, "fish_value", AsyncMock(return_value=None)):
        assert await default_indexed_paths({}) == []
