"""Tests for the tg command line interface."""

import json

import httpx
import pytest
import yaml
from click.testing import CliRunner

from tgcli.cli import cli
from tgcli.config import ConfigManager, TokenStore
from tgcli.constants import VERSION_COMMITS
from tgcli.models import MachineConfig


@pytest.fixture
def runner():
    return CliRunner()


@pytest.fixture
def invoke(runner, config_dir):
    """Run ``tg`` with an isolated config dir and an optional mock server."""

    def _invoke(args, handler=None, input=None):
        obj = {}
        if handler is not None:
            obj["transport"] = httpx.MockTransport(handler)
        return runner.invoke(
            cli, ["--config-dir", str(config_dir)] + args, obj=obj, input=input
        )

    return _invoke


@pytest.fixture
def saved_alias(config_dir):
    manager = ConfigManager(config_dir)
    manager.load()
    manager.add_machine(
        "prod",
        MachineConfig(host="https://prod.example.com", user="admin", password="pw"),
        make_default=True,
    )
    return manager


def _gsql_server(chunks_by_command, accepted_commit=VERSION_COMMITS[0][1]):
    """Handler emulating the GSQL login and file endpoints."""
    seen = []

    def handler(request):
        seen.append(request)
        if request.url.path.endswith("/login"):
            commit = json.loads(request.headers["Cookie"])["clientCommit"]
            body = {
                "isClientCompatible": commit == accepted_commit,
                "error": False,
                "message": "",
                "welcomeMessage": "Welcome to TigerGraph.",
            }
            return httpx.Response(200, json=body)
        command = request.content.decode()
        return httpx.Response(200, content=chunks_by_command.get(command, b""))

    return handler, seen


class TestRootCommand:
    def test_help_without_subcommand(self, invoke):
        result = invoke([])

        assert result.exit_code == 0
        assert "cloud" in result.output
        assert "server" in result.output
        assert "conf" in result.output

    def test_version(self, invoke):
        result = invoke(["version"])

        assert result.exit_code == 0
        assert "Version Installed: 0.1.1" in result.output


class TestConfCommands:
    """tg conf add/list/delete."""

    def test_add_with_flags(self, invoke, config_dir):
        result = invoke(
            [
                "conf",
                "add",
                "--alias",
                "prod",
                "--host",
                "https://prod.example.com",
                "--user",
                "admin",
                "--password",
                "pw",
                "--gsPort",
                "14240",
                "--restPort",
                "9000",
                "--default",
                "y",
            ]
        )

        assert result.exit_code == 0, result.output
        assert "Setting up the alias prod as default: success" in result.output
        assert "Saving alias prod: success" in result.output

        data = yaml.safe_load((config_dir / "config.yml").read_text())
        assert data["default"] == "prod"
        assert data["machines"]["prod"]["host"] == "https://prod.example.com"

    def test_add_rejects_existing_alias(self, invoke, saved_alias):
        result = invoke(
            ["conf", "add", "-a", "prod", "-p", "pw", "-d", "n"],
            input="\n\n\n\n",
        )

        assert result.exit_code != 0
        assert "already exists" in result.output

    def test_list_masks_passwords(self, invoke, saved_alias):
        result = invoke(["conf", "list"])

        assert result.exit_code == 0
        assert "Machine: alias = prod (default)" in result.output
        assert "password: p*" not in result.output
        assert "password: **" in result.output
        assert "tgcloud user not set" in result.output

    def test_list_without_machines(self, invoke):
        result = invoke(["conf", "list"])

        assert result.exit_code == 0
        assert "No conf available. Use: tg conf add" in result.output

    def test_delete_alias(self, invoke, config_dir):
        manager = ConfigManager(config_dir)
        manager.load()
        manager.add_machine("dev", MachineConfig())

        result = invoke(["conf", "delete", "--alias", "dev"])

        assert result.exit_code == 0
        assert "Alias deleted!" in result.output
        assert not ConfigManager(config_dir).has_machine("dev")

    def test_delete_unknown_alias(self, invoke):
        result = invoke(["conf", "delete", "--alias", "nope"])

        assert result.exit_code == 1
        assert "Alias not found!" in result.output

    def test_delete_default_alias_can_be_aborted(
        self, invoke, saved_alias, config_dir
    ):
        result = invoke(["conf", "delete", "--alias", "prod"], input="n\n")

        assert result.exit_code == 0
        assert "Aborting..." in result.output
        assert ConfigManager(config_dir).has_machine("prod")

    def test_delete_default_alias_when_confirmed(
        self, invoke, saved_alias, config_dir
    ):
        result = invoke(["conf", "delete", "--alias", "prod"], input="y\n")

        assert result.exit_code == 0
        reloaded = ConfigManager(config_dir).load()
        assert reloaded.machines == {}
        assert reloaded.default == ""


class TestCloudCommands:
    """tg cloud login/list/start."""

    def test_login_json_output(self, invoke, config_dir):
        def handler(request):
            return httpx.Response(200, json={"token": "Bearer tok"})

        result = invoke(
            ["cloud", "login", "-e", "me@example.com", "-p", "pw", "-o", "json"],
            handler=handler,
        )

        assert result.exit_code == 0
        assert json.loads(result.output) == {
            "error": False,
            "message": "Login successful",
            "token": "tok",
        }
        assert TokenStore(config_dir).read() == "tok"

    def test_login_failure_json_output(self, invoke):
        result = invoke(
            ["cloud", "login", "-e", "me@example.com", "-p", "bad", "-o", "json"],
            handler=lambda request: httpx.Response(401, text="denied"),
        )

        assert result.exit_code == 1
        assert json.loads(result.output) == {"error": True, "message": "Login failed"}

    def test_login_saves_credentials(self, invoke, config_dir):
        result = invoke(
            ["cloud", "login", "-e", "me@example.com", "-p", "pw", "-s", "y"],
            handler=lambda request: httpx.Response(200, json={"token": "Bearer t"}),
        )

        assert result.exit_code == 0
        assert "Login Successful!" in result.output
        assert ConfigManager(config_dir).load().tgcloud.user == "me@example.com"

    def test_list_json_output(self, invoke, config_dir):
        TokenStore(config_dir).write("tok")

        def handler(request):
            return httpx.Response(
                200,
                json={
                    "Error": False,
                    "Result": [
                        {"ID": "m1", "Name": "a", "Tag": "t", "State": "ready"}
                    ],
                },
            )

        result = invoke(["cloud", "list", "-o", "json"], handler=handler)

        assert result.exit_code == 0
        payload = json.loads(result.output)
        assert payload["result"][0]["ID"] == "m1"

    def test_list_expired_token_json(self, invoke, config_dir):
        TokenStore(config_dir).write("tok")

        result = invoke(
            ["cloud", "list", "-o", "json"],
            handler=lambda request: httpx.Response(401),
        )

        assert result.exit_code == 1
        assert json.loads(result.output)["message"] == "Re-Login to tgcloud"

    def test_start_prints_tgcloud_response(self, invoke, config_dir):
        TokenStore(config_dir).write("tok")

        result = invoke(
            ["cloud", "start", "--id", "m1"],
            handler=lambda request: httpx.Response(200, json={"Message": "Starting"}),
        )

        assert result.exit_code == 0
        assert "tgcloud response: Starting" in result.output

    def test_start_requires_id(self, invoke):
        result = invoke(["cloud", "start"])

        assert result.exit_code == 2


class TestServerGsqlCommand:
    """tg server gsql."""

    def test_session_runs_commands_until_quit(self, invoke):
        handler, seen = _gsql_server({"ls": b"Vertex Types:\n"})

        result = invoke(
            ["server", "gsql", "--host", "http://tg.example.com", "-p", "pw"],
            handler=handler,
            input="ls\nquit\n",
        )

        assert result.exit_code == 0, result.output
        assert "Welcome to TigerGraph." in result.output
        assert "Connected to TigerGraph at http://tg.example.com:14240" in result.output
        assert "Vertex Types:" in result.output
        assert "Goodbye!" in result.output
        file_requests = [r for r in seen if r.url.path.endswith("/file")]
        assert len(file_requests) == 1

    def test_default_alias_is_used(self, invoke, saved_alias):
        handler, seen = _gsql_server({})

        result = invoke(["server", "gsql"], handler=handler, input="exit\n")

        assert result.exit_code == 0, result.output
        assert seen[0].url.host == "prod.example.com"

    def test_explicit_flags_bypass_default_alias(self, invoke, saved_alias):
        handler, seen = _gsql_server({})

        result = invoke(
            ["server", "gsql", "--host", "http://other.example.com"],
            handler=handler,
            input="exit\n",
        )

        assert result.exit_code == 0, result.output
        assert seen[0].url.host == "other.example.com"

    def test_unknown_alias(self, invoke):
        result = invoke(["server", "gsql", "--alias", "nope"])

        assert result.exit_code == 1
        assert "Alias nope not found. Try: tg conf list" in result.output

    def test_incompatible_server(self, invoke):
        handler, seen = _gsql_server({}, accepted_commit="0" * 40)

        result = invoke(["server", "gsql"], handler=handler)

        assert result.exit_code == 1
        assert "Unable to establish compatible connection" in result.output
        assert len(seen) == len(VERSION_COMMITS)

    def test_rejected_credentials(self, invoke):
        def handler(request):
            return httpx.Response(
                200,
                json={
                    "isClientCompatible": True,
                    "error": True,
                    "message": "Invalid username or password",
                },
            )

        result = invoke(["server", "gsql"], handler=handler)

        assert result.exit_code == 1
        assert "Invalid username or password" in result.output


class TestServerAdminCommands:
    """tg server services/backup."""

    @staticmethod
    def _portal(request):
        if request.url.path == "/api/auth/login":
            return httpx.Response(200, headers={"Set-Cookie": "s=1; Path=/"})
        if request.url.path == "/api/log":
            return httpx.Response(
                200, json={"results": [{"path": "/data/tg/log/gsql/log.INFO"}]}
            )
        return httpx.Response(200, json={"message": "Services started"})

    def test_services_start(self, invoke):
        result = invoke(["server", "services", "--ops", "start"], handler=self._portal)

        assert result.exit_code == 0, result.output
        assert "Services started" in result.output

    def test_backup_reports_plan(self, invoke):
        result = invoke(["server", "backup", "-t", "SCHEMA"], handler=self._portal)

        assert result.exit_code == 0, result.output
        assert "Starting backup with type: SCHEMA -S" in result.output
        assert "Using TigerGraph path: /data/tg" in result.output

    def test_services_login_failure(self, invoke):
        result = invoke(
            ["server", "services"], handler=lambda request: httpx.Response(403)
        )

        assert result.exit_code == 1
        assert "Authentication failed with status: 403" in result.output
