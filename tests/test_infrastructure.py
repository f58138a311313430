# ============================================================================
# INFRASTRUCTURE TESTS
# ============================================================================
# EPOCH: 2 - LIFECYCLE RECONCILIATION
# STATUS: Tests - Readiness, tool runner and secret stores
# PURPOSE: Verify backoff bounds, subprocess boundary and credential parsing
# CREATED: 17 OCT 2026
# ============================================================================
"""
Infrastructure Tests

Covers:
1. ReadinessWaiter: first-success, bounded backoff, deadline
2. ToolRunner: stderr capture, exit codes, missing binary, timeout
3. Secret stores: environment, Key Vault (mocked client), parsing

Run with:
    pytest tests/test_infrastructure.py -v
"""

import json
import subprocess
from types import SimpleNamespace
from unittest.mock import MagicMock, patch

import pytest
from azure.core.exceptions import ResourceNotFoundError

from core.config.defaults import ReadinessDefaults, SecretStoreDefaults
from core.errors import CredentialFetchError, ExternalToolError, RequestValidationError, UnreachableResourceError
from infrastructure.readiness import ReadinessWaiter, parse_host_port
from infrastructure.secrets import (
    EnvironmentSecretStore,
    KeyVaultSecretStore,
    get_secret_store,
    parse_credentials,
)
from infrastructure.tools import ToolRunner


# ============================================================================
# READINESS
# ============================================================================

class FakeClock:
    def __init__(self):
        self.now = 0.0
        self.sleeps = []

    def __call__(self):
        return self.now

    def sleep(self, seconds):
        self.sleeps.append(seconds)
        self.now += seconds


class FakeSocket:
    def close(self):
        pass


def _connect_failing(times, calls):
    def connect(address, timeout):
        calls.append(address)
        if len(calls) <= times:
            raise ConnectionRefusedError("refused")
        return FakeSocket()
    return connect


class TestReadinessWaiter:

    def test_reachable_first_try(self):
        clock, calls = FakeClock(), []
        waiter = ReadinessWaiter(connect=_connect_failing(0, calls), sleep=clock.sleep, clock=clock)

        assert waiter.wait_until_reachable("db.internal", 3306) == 1
        assert calls == [("db.internal", 3306)]
        assert clock.sleeps == []

    def test_backoff_grows_until_reachable(self):
        clock, calls = FakeClock(), []
        waiter = ReadinessWaiter(connect=_connect_failing(3, calls), sleep=clock.sleep, clock=clock)

        attempts = waiter.wait_until_reachable("db.internal", 3306)

        assert attempts == 4
        assert clock.sleeps == [0.5, 1.0, 2.0]

    def test_delay_capped(self):
        clock, calls = FakeClock(), []
        defaults = ReadinessDefaults(timeout_seconds=60, max_delay_seconds=3.0)
        waiter = ReadinessWaiter(defaults, _connect_failing(6, calls), clock.sleep, clock)

        waiter.wait_until_reachable("db.internal", 3306)

        assert max(clock.sleeps) == 3.0

    def test_deadline_raises_unreachable(self):
        clock, calls = FakeClock(), []
        defaults = ReadinessDefaults(timeout_seconds=2.0)
        waiter = ReadinessWaiter(defaults, _connect_failing(100, calls), clock.sleep, clock)

        with pytest.raises(UnreachableResourceError) as exc_info:
            waiter.wait_until_reachable("db.internal", 3306)

        assert exc_info.value.host == "db.internal"
        assert exc_info.value.attempts == len(calls)
        assert sum(clock.sleeps) == pytest.approx(2.0)

    def test_explicit_timeout_overrides_default(self):
        clock, calls = FakeClock(), []
        waiter = ReadinessWaiter(connect=_connect_failing(100, calls), sleep=clock.sleep, clock=clock)

        with pytest.raises(UnreachableResourceError):
            waiter.wait_until_reachable("db.internal", 3306, timeout=1.0)

        assert clock.now == pytest.approx(1.0)

    def test_backoff_from_env(self, monkeypatch):
        monkeypatch.setenv("READINESS_INITIAL_DELAY_SECONDS", "1.0")
        monkeypatch.setenv("READINESS_BACKOFF_MULTIPLIER", "3.0")
        monkeypatch.setenv("READINESS_MAX_DELAY_SECONDS", "100")
        clock, calls = FakeClock(), []
        waiter = ReadinessWaiter(ReadinessDefaults.from_env(), _connect_failing(3, calls), clock.sleep, clock)

        waiter.wait_until_reachable("db.internal", 3306)

        assert ReadinessDefaults.from_env().backoff_multiplier == 3.0
        assert clock.sleeps == [1.0, 3.0, 9.0]

    def test_wait_for_address(self):
        clock, calls = FakeClock(), []
        waiter = ReadinessWaiter(connect=_connect_failing(0, calls), sleep=clock.sleep, clock=clock)

        waiter.wait_for_address("frontend.internal:7233")

        assert calls == [("frontend.internal", 7233)]

    @pytest.mark.parametrize("address", ["frontend", "frontend:", ":7233", "frontend:abc"])
    def test_malformed_address(self, address):
        with pytest.raises(RequestValidationError):
            parse_host_port(address)


# ============================================================================
# TOOL RUNNER
# ============================================================================

class TestToolRunner:

    @patch("infrastructure.tools.subprocess.run")
    def test_success_captures_stderr_only(self, mock_run):
        mock_run.return_value = SimpleNamespace(returncode=0, stderr="warning: deprecated flag")

        result = ToolRunner(timeout_seconds=30).run(["tctl", "namespace", "list"])

        assert result.ok
        assert result.stderr == "warning: deprecated flag"
        kwargs = mock_run.call_args.kwargs
        assert kwargs["stdout"] == subprocess.DEVNULL
        assert kwargs["stderr"] == subprocess.PIPE
        assert kwargs["timeout"] == 30

    @patch("infrastructure.tools.subprocess.run")
    def test_extra_environment_passed(self, mock_run):
        mock_run.return_value = SimpleNamespace(returncode=0, stderr="")

        ToolRunner().run(["temporal-sql-tool"], env={"SQL_PASSWORD": "pw"})

        env = mock_run.call_args.kwargs["env"]
        assert env["SQL_PASSWORD"] == "pw"
        assert "PATH" in env

    @patch("infrastructure.tools.subprocess.run")
    def test_nonzero_exit_raises_when_checked(self, mock_run):
        mock_run.return_value = SimpleNamespace(returncode=1, stderr="boom\nlast line")

        with pytest.raises(ExternalToolError) as exc_info:
            ToolRunner().run(["tctl", "x"])

        assert exc_info.value.returncode == 1
        assert str(exc_info.value).endswith("last line")

    @patch("infrastructure.tools.subprocess.run")
    def test_nonzero_exit_returned_when_unchecked(self, mock_run):
        mock_run.return_value = SimpleNamespace(returncode=1, stderr="AlreadyExists")

        result = ToolRunner().run(["tctl", "x"], check=False)

        assert not result.ok
        assert result.stderr == "AlreadyExists"

    @patch("infrastructure.tools.subprocess.run", side_effect=FileNotFoundError(2, "No such file", "tctl"))
    def test_missing_binary(self, mock_run):
        with pytest.raises(ExternalToolError) as exc_info:
            ToolRunner().run(["tctl"])

        assert exc_info.value.returncode == 127

    @patch(
        "infrastructure.tools.subprocess.run",
        side_effect=subprocess.TimeoutExpired(["tctl"], 5, stderr=b"stuck"),
    )
    def test_timeout(self, mock_run):
        with pytest.raises(ExternalToolError) as exc_info:
            ToolRunner(timeout_seconds=5).run(["tctl"])

        assert "timed out" in exc_info.value.stderr


# ============================================================================
# SECRETS
# ============================================================================

class TestSecrets:

    def test_parse_credentials(self):
        credentials = parse_credentials("s", json.dumps({"username": "u", "password": "hunter2"}))

        assert credentials.username == "u"
        assert credentials.password == "hunter2"
        assert "hunter2" not in repr(credentials)

    @pytest.mark.parametrize("value", [None, "", "not json", "[1, 2]", '{"username": "u"}'])
    def test_parse_failures(self, value):
        with pytest.raises(CredentialFetchError):
            parse_credentials("s", value)

    def test_environment_store(self):
        store = EnvironmentSecretStore({
            "SECRET_ORDERS_DB": json.dumps({"username": "temporal", "password": "pw"}),
        })

        assert store.get_credentials("orders-db").username == "temporal"
        with pytest.raises(CredentialFetchError):
            store.get_credentials("missing")

    def test_key_vault_store(self):
        client = MagicMock()
        client.get_secret.return_value = SimpleNamespace(
            value=json.dumps({"username": "temporal", "password": "pw"}),
        )
        store = KeyVaultSecretStore("https://vault.example", client=client)

        credentials = store.get_credentials("orders-db")

        client.get_secret.assert_called_once_with("orders-db")
        assert credentials.password == "pw"

    def test_key_vault_errors_wrapped(self):
        client = MagicMock()
        client.get_secret.side_effect = ResourceNotFoundError("gone")
        store = KeyVaultSecretStore("https://vault.example", client=client)

        with pytest.raises(CredentialFetchError) as exc_info:
            store.get_credentials("orders-db")

        assert exc_info.value.secret_id == "orders-db"

    def test_key_vault_requires_url(self):
        with pytest.raises(ValueError):
            KeyVaultSecretStore("")

    def test_factory(self):
        assert isinstance(get_secret_store(SecretStoreDefaults(backend="env")), EnvironmentSecretStore)
        assert isinstance(
            get_secret_store(SecretStoreDefaults(backend="keyvault", vault_url="https://v")),
            KeyVaultSecretStore,
        )
        with pytest.raises(ValueError):
            get_secret_store(SecretStoreDefaults(backend="vault9000"))
