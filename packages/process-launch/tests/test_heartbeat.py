"""Tests for the heartbeat (liveness) server."""

from __future__ import annotations

import socket
from unittest.mock import patch

import httpx
import pytest
from fastapi.testclient import TestClient
from relay_process_launch.heartbeat import HeartbeatServer, create_app
from relay_shared.errors import ConfigurationError, ProgrammingError
from relay_shared.log_context import LOG_CONTEXT, bind


@pytest.fixture
def server():
    heartbeat = HeartbeatServer(port=0, host="127.0.0.1")
    yield heartbeat
    heartbeat.stop()


class TestApp:
    @pytest.mark.parametrize("path", ["/", "/health"])
    def test_reports_alive(self, path):
        response = TestClient(create_app()).get(path)
        assert response.status_code == 200
        assert response.json() == {"status": "alive"}


class TestHeartbeatServer:
    def test_serves_on_background_thread(self, server):
        server.start()
        assert server.is_running
        response = httpx.get(f"http://127.0.0.1:{server.bound_port}/")
        assert response.json() == {"status": "alive"}

    def test_stop(self, server):
        server.start()
        server.stop()
        assert not server.is_running

    def test_start_twice_is_programming_error(self, server):
        server.start()
        with pytest.raises(ProgrammingError):
            server.start()

    def test_port_in_use_is_fatal(self):
        with socket.socket(socket.AF_INET, socket.SOCK_STREAM) as blocker:
            blocker.bind(("127.0.0.1", 0))
            blocker.listen()
            port = blocker.getsockname()[1]

            heartbeat = HeartbeatServer(port=port, host="127.0.0.1")
            with pytest.raises(ConfigurationError, match="failed to start"):
                heartbeat.start()

    def test_runs_in_callers_log_context(self, server):
        seen: dict[str, str] = {}

        def fake_run(*args, **kwargs):
            seen.update(LOG_CONTEXT.get())
            server._server.started = True

        with patch.object(server._server, "run", side_effect=fake_run), bind(version="1.2.3"):
            server.start()

        assert seen == {"version": "1.2.3"}
