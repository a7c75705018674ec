import logging

import pytest

from taskforge import paths
from taskforge.config_manager import SystemConfig, get_config
from taskforge.exceptions import (
    AccessError,
    OperationError,
    StateError,
    StorageError,
    TaskforgeError,
)
from taskforge.logger import ROOT_LOGGER_NAME, get_logger, setup_logging
from taskforge.providers import StaticBalanceOracle, StaticIdentity, SystemClock


def test_defaults_when_file_missing(tmp_path):
    cfg = get_config(tmp_path / "missing.yaml")

    assert cfg == SystemConfig()
    assert cfg.TASK_MAX_STORAGE == 4096
    assert cfg.POINTS_CEILING == 2**32 - 1


def test_yaml_overrides_known_keys_only(tmp_path):
    path = tmp_path / "runtime.yaml"
    path.write_text("MAX_FUTURE_DAYS: 30\nUNKNOWN_KEY: 1\nmax_future_nanos: 5\n", encoding="utf-8")

    cfg = get_config(path)

    assert cfg.MAX_FUTURE_DAYS == 30
    assert not hasattr(cfg, "UNKNOWN_KEY")
    assert cfg.max_future_nanos == 30 * 86400 * 1_000_000_000


def test_broken_yaml_falls_back_to_defaults(tmp_path):
    path = tmp_path / "runtime.yaml"
    path.write_text("MAX_MINUTES: [unclosed\n", encoding="utf-8")

    assert get_config(path) == SystemConfig()


def test_config_path_from_env(tmp_path, monkeypatch):
    path = tmp_path / "custom.yaml"
    path.write_text("MINUTES_PER_POINT: 60\n", encoding="utf-8")
    monkeypatch.setenv("TASKFORGE_CONFIG", str(path))

    assert get_config().MINUTES_PER_POINT == 60


def test_data_dir_from_env(tmp_path, monkeypatch):
    monkeypatch.setenv("TASKFORGE_DATA_DIR", str(tmp_path))
    assert paths.get_data_dir() == tmp_path

    monkeypatch.setenv("TASKFORGE_DATA_DIR", "")
    assert paths.get_data_dir() == paths.PROJECT_ROOT / "data"


def test_setup_logging_writes_rotating_files(tmp_path):
    logger = setup_logging(logs_dir=tmp_path)
    try:
        get_logger("engine").info("hello from engine")
        get_logger("ledger").error("ledger broke")
        for handler in logger.handlers:
            handler.flush()

        assert logger.name == ROOT_LOGGER_NAME
        assert "hello from engine" in (tmp_path / "system.log").read_text(encoding="utf-8")
        error_log = (tmp_path / "error.log").read_text(encoding="utf-8")
        assert "ledger broke" in error_log
        assert "hello from engine" not in error_log
    finally:
        for handler in list(logger.handlers):
            handler.close()
        logger.handlers.clear()


def test_setup_logging_is_repeatable(tmp_path):
    logger = setup_logging(logs_dir=tmp_path)
    logger = setup_logging(logs_dir=tmp_path)
    try:
        assert len(logger.handlers) == 3
    finally:
        for handler in list(logger.handlers):
            handler.close()
        logger.handlers.clear()


def test_get_logger_names():
    assert get_logger("engine").name == "taskforge.engine"
    assert get_logger().name == "taskforge"


def test_error_payloads_are_tagged():
    errors = [
        StorageError.exceeds_max_size(5000, 4096),
        AccessError(),
        StateError("Reward", "Completed", "Update", "Invalid action for current state"),
        OperationError("Points addition would overflow"),
    ]

    payloads = [e.to_payload() for e in errors]

    assert [p["kind"] for p in payloads] == ["storage", "access", "state", "operation"]
    assert payloads[0]["size"] == 5000
    assert payloads[0]["max_allowed"] == 4096
    assert payloads[1]["reason"] == "not_owner"
    assert payloads[2]["current_state"] == "Completed"
    assert all(isinstance(e, TaskforgeError) for e in errors)


def test_user_message_with_hint():
    error = OperationError("Nothing to do", hint="Try again later")
    assert error.get_user_message() == "Operation error: Nothing to do\nHint: Try again later"


def test_default_providers():
    identity = StaticIdentity("alice")
    identity.act_as("bob")
    assert identity.caller_id() == "bob"

    assert SystemClock().now() > 0

    oracle = StaticBalanceOracle(available=5)
    assert oracle.available_balance() == 5
    assert oracle.cost_per_byte() == SystemConfig().DEFAULT_COST_PER_BYTE


def test_logging_level_filters_console(tmp_path, capsys):
    logger = setup_logging(console_level=logging.ERROR, logs_dir=tmp_path)
    try:
        get_logger("engine").warning("quiet warning")
        get_logger("engine").error("loud error")
        captured = capsys.readouterr()
        assert "loud error" in captured.err
        assert "quiet warning" not in captured.err
    finally:
        for handler in list(logger.handlers):
            handler.close()
        logger.handlers.clear()


@pytest.fixture(autouse=True)
def _restore_taskforge_logger():
    yield
    logging.getLogger(ROOT_LOGGER_NAME).setLevel(logging.NOTSET)
