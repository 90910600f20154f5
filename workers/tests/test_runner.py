"""Tests for the process entrypoint: every fatal error is logged, then exit 1."""

import logging
from types import SimpleNamespace
from unittest.mock import patch

import pytest
from relay_shared.errors import ConfigurationError, RelayError
from relay_workers import runner

SETTINGS = SimpleNamespace(
    log_level="INFO",
    relay_version="test",
    worker_environment=SimpleNamespace(value="docker"),
)


def _main_with(run_worker_error: BaseException):
    async def run_worker(settings):
        raise run_worker_error

    with (
        patch.object(runner, "load_settings", return_value=SETTINGS),
        patch.object(runner, "configure_logging"),
        patch.object(runner, "run_worker", run_worker),
    ):
        runner.main()


@pytest.mark.parametrize(
    ("error", "logged"),
    [
        (RelayError("handler construction failed"), "handler construction failed"),
        (RuntimeError("Failed client connect"), "unexpected error"),
    ],
)
def test_fatal_errors_are_logged_and_exit_1(caplog, error, logged):
    caplog.set_level(logging.INFO)

    with pytest.raises(SystemExit) as exc:
        _main_with(error)

    assert exc.value.code == 1
    errors = [r for r in caplog.records if r.levelno == logging.ERROR]
    assert logged in errors[-1].getMessage()


def test_unexpected_error_keeps_its_traceback(caplog):
    with pytest.raises(SystemExit):
        _main_with(RuntimeError("Failed client connect"))

    record = next(r for r in caplog.records if r.levelno == logging.ERROR)
    assert record.exc_info[1].args == ("Failed client connect",)


def test_interrupt_exits_cleanly():
    _main_with(KeyboardInterrupt())


def test_invalid_configuration_exits_1(caplog):
    with (
        patch.object(runner, "load_settings", side_effect=ConfigurationError("bad TEMPORAL_HOST")),
        patch.object(runner, "configure_logging"),
        pytest.raises(SystemExit) as exc,
    ):
        runner.main()

    assert exc.value.code == 1
    assert "bad TEMPORAL_HOST" in caplog.text
