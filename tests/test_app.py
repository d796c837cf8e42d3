# =============================================================================
# KOALA WEB TOOLKIT - APPLICATION TESTS
# =============================================================================
# File: tests/test_app.py
# Description: Application flags, server port resolution and startup
# =============================================================================

from typing import Any, Dict, List

import pytest

from koala import App, Config, Module, Router, new_application
from koala.app import parse_flags, split_address
from koala.core.exceptions import IllegalArgumentError, IllegalStateError


class RecordingModule(Module):
    """Module recording its startup."""

    def __init__(self, started: List[str], name: str):
        self.started = started
        self.name = name

    def up(self) -> None:
        self.started.append(self.name)


@pytest.fixture
def uvicorn_calls(monkeypatch) -> List[Dict[str, Any]]:
    calls: List[Dict[str, Any]] = []

    def fake_run(app, **kwargs):
        calls.append({"app": app, **kwargs})

    monkeypatch.setattr("koala.app.uvicorn.run", fake_run)
    monkeypatch.delenv("PORT", raising=False)
    return calls


def hello(response, request):
    return response.ok(b"hello")


@pytest.fixture
def router() -> Router:
    router = Router()
    router.add_routes("koalas", router.get("hello", "/hello", hello))
    return router


class TestFlags:
    """Test suite for the command line flags."""

    def test_defaults(self):
        flags = parse_flags([])

        assert flags.koala_server_port is None
        assert flags.koala_config_filename is None
        assert flags.koala_knife_supress_error is False

    def test_unknown_flags_ignored(self):
        flags = parse_flags(["--koala_server_port", ":8080", "--workers", "2", "--koala_knife_supress_error"])

        assert flags.koala_server_port == ":8080"
        assert flags.koala_knife_supress_error is True

    def test_split_address(self):
        assert split_address(":9003") == ("0.0.0.0", 9003)
        assert split_address("8080") == ("0.0.0.0", 8080)
        assert split_address("127.0.0.1:5000") == ("127.0.0.1", 5000)

    def test_split_invalid_address(self):
        with pytest.raises(IllegalArgumentError):
            split_address(":http")


class TestApp:
    """Test suite for App.run."""

    def test_run_without_router(self, uvicorn_calls):
        with pytest.raises(IllegalStateError) as exc_info:
            new_application().run([])

        assert exc_info.value.message == "Set a not nil router to run."
        assert uvicorn_calls == []

    def test_default_port(self, router, uvicorn_calls):
        app = App(router, Config())
        app.run([])

        assert app.server_port == ":9003"
        assert uvicorn_calls[0]["host"] == "0.0.0.0"
        assert uvicorn_calls[0]["port"] == 9003
        assert uvicorn_calls[0]["log_level"] == "info"

    def test_port_from_env(self, router, uvicorn_calls, monkeypatch):
        monkeypatch.setenv("PORT", "8080")

        App(router, Config()).run([])

        assert uvicorn_calls[0]["port"] == 8080

    def test_port_from_app(self, router, uvicorn_calls, monkeypatch):
        monkeypatch.setenv("PORT", "8080")

        App(router, Config(), server_port=":7000").run([])

        assert uvicorn_calls[0]["port"] == 7000

    def test_port_flag_wins(self, router, uvicorn_calls, monkeypatch):
        monkeypatch.setenv("PORT", "8080")

        App(router, Config(), server_port=":7000").run(["--koala_server_port", ":6000"])

        assert uvicorn_calls[0]["port"] == 6000

    def test_modules_started_in_order(self, router, uvicorn_calls):
        started: List[str] = []
        app = App(router, Config())
        app.add_module(RecordingModule(started, "users"))
        app.add_modules([RecordingModule(started, "koalas"), RecordingModule(started, "trees")])

        app.run([])

        assert started == ["users", "koalas", "trees"]

    def test_router_settings(self, router, uvicorn_calls):
        App(router, Config(debug=True, cors=True)).run(["--koala_knife_supress_error"])

        assert router.debug is True
        assert router.cors is True
        assert router.suppress_error is True

    def test_loads_config_file(self, router, uvicorn_calls, tmp_path, monkeypatch):
        (tmp_path / "config").mkdir()
        (tmp_path / "config" / "koala.yml").write_text("debug: true\nlog_level: warning\n")
        monkeypatch.chdir(tmp_path)

        app = App(router)
        app.run(["--koala_config_filename", "koala.yml"])

        assert app.config.debug is True
        assert uvicorn_calls[0]["log_level"] == "warning"
