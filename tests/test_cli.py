# Copyright (c) Syntropy Systems
"""Tests for raven CLI commands."""

import base64
import json

import httpx
import pytest
from typer.testing import CliRunner

from raven_http import __version__
from raven_http.cli import common
from raven_http.cli.main import app
from raven_http.transport import new_http_client

from conftest import TARGET_URL

runner = CliRunner()


@pytest.fixture
def mock_target(monkeypatch, in_temp_dir, handler_for):
    """Route the CLI's HTTP client to a MockTransport handler."""

    def install(respond):
        handler = handler_for(respond)

        def fake_client(cutoff):
            return new_http_client(cutoff, transport=httpx.MockTransport(handler))

        monkeypatch.setattr(common, "new_http_client", fake_client)
        return handler

    return install


class TestVersionCommand:
    """Tests for raven version."""

    def test_version(self):
        """version prints the package version."""
        result = runner.invoke(app, ["version"])

        assert result.exit_code == 0
        assert __version__ in result.output


class TestGlobalOptions:
    """Tests for options shared by all commands."""

    def test_verbose_and_raw_conflict(self, mock_target):
        """verbose and raw cannot be combined."""
        handler = mock_target(lambda _n, _r: httpx.Response(200))

        result = runner.invoke(app, ["-v", "-r", "json", "do", "1", "GET", TARGET_URL])

        assert result.exit_code == 1
        assert "cannot use 'verbose' and 'raw'" in result.output
        assert handler.calls == 0

    def test_unknown_raw_format(self, mock_target):
        """Only the known raw formats are accepted."""
        mock_target(lambda _n, _r: httpx.Response(200))

        result = runner.invoke(app, ["-r", "xml", "do", "1", "GET", TARGET_URL])

        assert result.exit_code == 1
        assert "invalid format: xml" in result.output

    def test_bad_auth(self, mock_target):
        """Malformed credentials stop the run before any request."""
        handler = mock_target(lambda _n, _r: httpx.Response(200))

        result = runner.invoke(app, ["-a", "nocolon", "do", "3", "GET", TARGET_URL])

        assert result.exit_code == 1
        assert "username:password" in result.output
        assert handler.calls == 0

    def test_headers_are_sent(self, mock_target):
        """--header values reach the target."""
        handler = mock_target(lambda _n, _r: httpx.Response(200))

        result = runner.invoke(
            app,
            ["-H", "X-Run: cli", "-r", "json", "do", "2", "get", TARGET_URL],
        )

        assert result.exit_code == 0
        assert all(r.headers["X-Run"] == "cli" for r in handler.requests)

    @pytest.mark.parametrize("flag", ["-a", "--auth", "--authentication"])
    def test_auth_flags(self, mock_target, flag):
        """Every spelling of the credentials option sends basic auth."""
        handler = mock_target(lambda _n, _r: httpx.Response(200))
        expected = "Basic " + base64.b64encode(b"alice:secret").decode()

        result = runner.invoke(
            app,
            [flag, "alice:secret", "-r", "json", "do", "2", "GET", TARGET_URL],
        )

        assert result.exit_code == 0
        assert handler.calls == 2
        assert all(r.headers["Authorization"] == expected for r in handler.requests)

    def test_unencodable_header(self, mock_target):
        """A header value httpx cannot send is rejected up front."""
        handler = mock_target(lambda _n, _r: httpx.Response(200))

        result = runner.invoke(app, ["-H", "X-Name:café", "do", "2", "GET", TARGET_URL])

        assert result.exit_code == 1
        assert "invalid header" in result.output
        assert handler.calls == 0


class TestDoCommand:
    """Tests for raven do."""

    def test_do_summary(self, mock_target):
        """20 requests against a healthy target."""
        handler = mock_target(lambda _n, _r: httpx.Response(200))

        result = runner.invoke(app, ["do", "20", "GET", TARGET_URL])

        assert result.exit_code == 0
        assert handler.calls == 20
        assert "Total requests" in result.output
        assert "20" in result.output
        assert "HTTP 200" in result.output

    def test_do_raw_json(self, mock_target):
        """--raw json prints one record per request."""
        mock_target(lambda _n, _r: httpx.Response(204))

        result = runner.invoke(app, ["--raw", "json", "do", "4", "DELETE", TARGET_URL])

        assert result.exit_code == 0
        records = json.loads(result.output)
        assert [r["index"] for r in records] == [0, 1, 2, 3]
        assert {r["status"] for r in records} == {204}
        assert {r["method"] for r in records} == {"DELETE"}

    def test_do_raw_to_file(self, mock_target, in_temp_dir):
        """--output writes the raw data to a file."""
        mock_target(lambda _n, _r: httpx.Response(200))
        out = in_temp_dir / "results.csv"

        result = runner.invoke(
            app, ["-r", "csv", "-o", str(out), "do", "3", "GET", TARGET_URL]
        )

        assert result.exit_code == 0
        lines = out.read_text().splitlines()
        assert lines[0].startswith("index,step,method,url,status")
        assert len(lines) == 4

    def test_do_with_failures_completes(self, mock_target):
        """Transport failures are reported, not fatal."""

        def refuse(_n, request):
            raise httpx.ConnectError("refused", request=request)

        mock_target(refuse)

        result = runner.invoke(app, ["-r", "json", "do", "3", "GET", TARGET_URL])

        assert result.exit_code == 0
        records = json.loads(result.output)
        assert all(r["error"] for r in records)

    def test_do_invalid_url(self, mock_target):
        """A relative URL is a configuration error."""
        handler = mock_target(lambda _n, _r: httpx.Response(200))

        result = runner.invoke(app, ["do", "3", "GET", "not-a-url"])

        assert result.exit_code == 1
        assert "Error" in result.output
        assert handler.calls == 0


class TestStressCommand:
    """Tests for raven stress."""

    def test_stress_status_run(self, mock_target):
        """The ramp halts once the target starts failing."""
        # baseline (5) + steps 1..3 succeed
        handler = mock_target(lambda n, _r: httpx.Response(200 if n <= 35 else 500))

        result = runner.invoke(
            app,
            [
                "-r", "json",
                "stress", "status", "GET", TARGET_URL,
                "-i", "5", "-t", "0", "-d", "0",
            ],
        )

        assert result.exit_code == 0
        records = json.loads(result.output)
        assert len(records) == 50
        assert sorted({r["step"] for r in records}) == [1, 2, 3, 4]
        assert handler.calls == 55

    def test_stress_summary(self, mock_target):
        """Without --raw the step breakdown is printed."""
        mock_target(lambda n, _r: httpx.Response(200 if n <= 2 else 503))

        result = runner.invoke(
            app,
            ["stress", "status", "GET", TARGET_URL, "-i", "2", "-t", "0", "-d", "0"],
        )

        assert result.exit_code == 0
        assert "Step Breakdown" in result.output
        assert "Max step reached" in result.output

    def test_invalid_stop_type(self, mock_target):
        """Only duration and status are accepted."""
        handler = mock_target(lambda _n, _r: httpx.Response(200))

        result = runner.invoke(app, ["stress", "latency", "GET", TARGET_URL])

        assert result.exit_code == 1
        assert handler.calls == 0

    def test_zero_iterations(self, mock_target):
        """Zero iterations never reaches the network."""
        handler = mock_target(lambda _n, _r: httpx.Response(200))

        result = runner.invoke(
            app, ["stress", "duration", "GET", TARGET_URL, "-i", "0"]
        )

        assert result.exit_code == 1
        assert "iterations" in result.output
        assert handler.calls == 0

    def test_config_file_defaults(self, mock_target, in_temp_dir):
        """Stress defaults come from .raven/config.yaml."""
        raven_dir = in_temp_dir / ".raven"
        raven_dir.mkdir()
        (raven_dir / "config.yaml").write_text("iterations: 1\ndelay_ms: 0\nthreshold: 0\n")
        handler = mock_target(lambda _n, _r: httpx.Response(500))

        result = runner.invoke(app, ["-r", "json", "stress", "status", "GET", TARGET_URL])

        assert result.exit_code == 0
        # 1 baseline request, step 1 (1) continues, step 2 (2) halts
        assert handler.calls == 4
