"""Tests for CLI entry point."""
import os
import base64

import orjson
import pytest
from click.testing import CliRunner

from tenant_session.__main__ import cli
from tenant_session.manager import SessionManager
from tenant_session.storage import MemorySecretStore, MemoryStateStore

SESSIONS_KEY = "augment.sessions"
STORED = (
    '{"accessToken":"ABCDEFGHIJKLMNOPQRSTUVWXYZ",'
    '"tenantURL":"https://x.example/","scopes":["a"]}'
)


@pytest.fixture
def secrets():
    return MemorySecretStore({SESSIONS_KEY: STORED})


@pytest.fixture
def state():
    return MemoryStateStore()


@pytest.fixture
def manager(secrets, state):
    return SessionManager(secrets, state)


@pytest.fixture
def runner():
    return CliRunner()


class TestCLI:
    """Test CLI commands."""

    def test_help(self, runner):
        result = runner.invoke(cli, ["--help"])
        assert result.exit_code == 0
        assert "set-token" in result.output
        assert "rotate-device" in result.output

    def test_version(self, runner):
        result = runner.invoke(cli, ["--version"])
        assert result.exit_code == 0
        assert "0.3.0" in result.output

    def test_show_masks_token(self, runner, manager):
        result = runner.invoke(cli, ["show"], obj=manager)
        assert result.exit_code == 0
        assert "accessToken: ABCDEFGH...STUVWXYZ" in result.output
        assert "tenantURL: https://x.example/" in result.output
        assert "IJKLMNOPQR" not in result.output

    def test_show_full(self, runner, manager):
        result = runner.invoke(cli, ["show", "--full"], obj=manager)
        assert result.exit_code == 0
        assert orjson.loads(result.output) == orjson.loads(STORED)

    def test_show_without_session(self, runner, state):
        manager = SessionManager(MemorySecretStore(), state)
        result = runner.invoke(cli, ["show"], obj=manager)
        assert result.exit_code == 1
        assert "no session data found" in result.output

    def test_set_token_argument(self, runner, manager, secrets):
        result = runner.invoke(cli, ["set-token", "newToken1234"], obj=manager)
        assert result.exit_code == 0
        assert "updated successfully" in result.output
        assert orjson.loads(secrets._data[SESSIONS_KEY]) == {
            "accessToken": "newToken1234",
            "tenantURL": "https://x.example/",
            "scopes": ["a"],
        }

    def test_set_token_rejected(self, runner, manager, secrets):
        result = runner.invoke(cli, ["set-token", "short"], obj=manager)
        assert result.exit_code == 1
        assert "accessToken too short" in result.output
        assert secrets._data[SESSIONS_KEY] == STORED

    def test_set_token_prompt_reprompts(self, runner, manager, secrets):
        result = runner.invoke(
            cli, ["set-token"], obj=manager, input="short\nnewToken1234\n",
        )
        assert result.exit_code == 0
        assert "current: ABCDEFGH...STUVWXYZ" in result.output
        assert orjson.loads(secrets._data[SESSIONS_KEY])["accessToken"] == "newToken1234"

    def test_set_token_abandoned(self, runner, manager, secrets):
        """EOF at the prompt aborts without writing."""
        result = runner.invoke(cli, ["set-token"], obj=manager, input="")
        assert result.exit_code == 1
        assert secrets._data[SESSIONS_KEY] == STORED

    def test_set_session_arguments(self, runner, manager, secrets):
        result = runner.invoke(
            cli,
            ["set-session", "--tenant-url", "https://new.example/", "brandnewtoken123"],
            obj=manager,
        )
        assert result.exit_code == 0
        assert orjson.loads(secrets._data[SESSIONS_KEY]) == {
            "accessToken": "brandnewtoken123",
            "tenantURL": "https://new.example/",
            "scopes": ["a"],
        }

    def test_set_session_prompt_uses_current_url(self, runner, manager, secrets):
        result = runner.invoke(
            cli, ["set-session"], obj=manager, input="\nbrandnewtoken123\n",
        )
        assert result.exit_code == 0
        stored = orjson.loads(secrets._data[SESSIONS_KEY])
        assert stored["tenantURL"] == "https://x.example/"
        assert stored["accessToken"] == "brandnewtoken123"

    def test_set_session_invalid_url(self, runner, manager, secrets):
        result = runner.invoke(
            cli, ["set-session", "--tenant-url", "not a url", "brandnewtoken123"], obj=manager,
        )
        assert result.exit_code == 1
        assert "must be a valid URL" in result.output
        assert secrets._data[SESSIONS_KEY] == STORED

    def test_rotate_device(self, runner, manager, state):
        result = runner.invoke(cli, ["rotate-device"], obj=manager)
        assert result.exit_code == 0
        assert "previous: not set" in result.output
        assert f"sessionId updated: {state._data['sessionId']}" in result.output
        assert "Restart" in result.output

    def test_generate_key(self, runner):
        result = runner.invoke(cli, ["generate-key"])
        assert result.exit_code == 0
        assert len(base64.b64decode(result.output.strip())) == 32

    def test_file_backed_default(self, runner, monkeypatch, tmp_path):
        """Without an injected manager the CLI uses the file stores."""
        monkeypatch.setenv("TENANT_SESSION_HOME", str(tmp_path))
        monkeypatch.setenv("SESSION_MASTER_KEY_v1", base64.b64encode(b"\x05" * 32).decode())
        monkeypatch.setenv("SESSION_ACTIVE_KEY_ID", "1")
        result = runner.invoke(cli, ["set-token", "newToken1234"], obj={})
        assert result.exit_code == 0
        assert (tmp_path / "secrets.json").exists()
        result = runner.invoke(cli, ["show"], obj={})
        assert result.exit_code == 0
        assert "accessToken: newToken1234" in result.output

    def test_rotate_device_needs_no_master_keys(self, runner, monkeypatch, tmp_path):
        monkeypatch.setenv("TENANT_SESSION_HOME", str(tmp_path))
        for name in list(os.environ):
            if name.startswith("SESSION_MASTER_KEY_v"):
                monkeypatch.delenv(name)
        result = runner.invoke(cli, ["rotate-device"], obj={})
        assert result.exit_code == 0
        assert "sessionId updated:" in result.output
        assert orjson.loads((tmp_path / "state.json").read_bytes())["sessionId"]

    def test_unreadable_record_is_kept(self, runner, monkeypatch, tmp_path):
        """Losing the sealing key fails the update instead of resetting the record."""
        monkeypatch.setenv("TENANT_SESSION_HOME", str(tmp_path))
        monkeypatch.setenv("SESSION_MASTER_KEY_v1", base64.b64encode(b"\x05" * 32).decode())
        monkeypatch.setenv("SESSION_ACTIVE_KEY_ID", "1")
        assert runner.invoke(cli, ["set-token", "newToken1234"], obj={}).exit_code == 0
        before = (tmp_path / "secrets.json").read_bytes()

        monkeypatch.delenv("SESSION_MASTER_KEY_v1")
        monkeypatch.setenv("SESSION_MASTER_KEY_v2", base64.b64encode(b"\x06" * 32).decode())
        monkeypatch.setenv("SESSION_ACTIVE_KEY_ID", "2")
        result = runner.invoke(cli, ["set-token", "otherToken5678"], obj={})
        assert result.exit_code == 1
        result = runner.invoke(cli, ["set-token"], input="otherToken5678\n", obj={})
        assert result.exit_code == 1
        assert "cannot be decrypted" in result.output
        assert (tmp_path / "secrets.json").read_bytes() == before
