"""Settings, diagnostic logging and the command line."""
from __future__ import annotations

import json
import logging
from unittest.mock import MagicMock

import pytest
from botocore.exceptions import NoRegionError
from typer.testing import CliRunner

from cirrus import __version__, cli
from cirrus.config import ConfigStore, Preferences
from cirrus.logging import setup_logging
from cirrus.services import clients
from cirrus.settings import Settings, load_settings

runner = CliRunner()


@pytest.fixture
def dirs(tmp_path, monkeypatch):
    monkeypatch.setenv("CIRRUS_CONFIG_DIR", str(tmp_path / "cfg"))
    monkeypatch.setenv("CIRRUS_LOG_DIR", str(tmp_path / "logs"))
    return tmp_path


@pytest.fixture
def restore_logging():
    root = logging.getLogger()
    handlers, level = root.handlers[:], root.level
    yield
    for handler in root.handlers:
        if handler not in handlers:
            handler.close()
    root.handlers = handlers
    root.setLevel(level)


# ═══════════════════════════════════════════════════════════════════════════════
# SETTINGS
# ═══════════════════════════════════════════════════════════════════════════════

def test_defaults():
    s = Settings()

    assert s.CIRRUS_ENV == "dev"
    assert s.CIRRUS_LOG_WINDOW_MINUTES == 10
    assert s.CIRRUS_LOG_EVENT_LIMIT == 500
    assert s.CIRRUS_SEARCH_TOOL == "rg"
    assert s.config_path.name == "config.json"


def test_env_vars_and_dotenv(tmp_path, monkeypatch):
    (tmp_path / ".env").write_text("CIRRUS_RESOURCE_PREFIX=shop-\n", encoding="utf-8")
    monkeypatch.setenv("CIRRUS_ENV", "prod")

    s = Settings()

    assert s.CIRRUS_ENV == "prod"
    assert s.CIRRUS_RESOURCE_PREFIX == "shop-"
    assert s.log_group_pattern == "shop-"


def test_log_group_pattern_override():
    s = Settings(CIRRUS_RESOURCE_PREFIX="shop-", CIRRUS_LOG_GROUP_PATTERN="/aws/lambda/shop")

    assert s.log_group_pattern == "/aws/lambda/shop"


def test_load_settings_ignores_none_and_creates_dirs(dirs):
    s = load_settings(CIRRUS_ENV=None, CIRRUS_AWS_REGION="eu-west-1")

    assert s.CIRRUS_ENV == "dev"
    assert s.CIRRUS_AWS_REGION == "eu-west-1"
    assert (dirs / "cfg").is_dir()
    assert (dirs / "logs").is_dir()


def test_setup_logging_writes_file(dirs, restore_logging):
    log_file = setup_logging(load_settings(CIRRUS_LOG_LEVEL="debug"))

    logging.getLogger("cirrus.test").debug("hello from test")
    for handler in logging.getLogger().handlers:
        handler.flush()

    content = log_file.read_text(encoding="utf-8")
    assert "| DEBUG | cirrus.test | hello from test" in content
    assert logging.getLogger("botocore").level == logging.WARNING


def test_setup_logging_twice_keeps_one_handler(dirs, restore_logging):
    settings = load_settings()
    setup_logging(settings)
    setup_logging(settings)

    assert len(logging.getLogger().handlers) == 1


def test_build_clients_uses_profile_and_region(monkeypatch):
    session = MagicMock()
    factory = MagicMock(return_value=session)
    monkeypatch.setattr(clients.boto3, "Session", factory)

    dynamodb, logs = clients.build_clients(Settings(CIRRUS_AWS_PROFILE="ops", CIRRUS_AWS_REGION="us-west-2"))

    factory.assert_called_once_with(profile_name="ops", region_name="us-west-2")
    assert [c.args[0] for c in session.client.call_args_list] == ["dynamodb", "logs"]


# ═══════════════════════════════════════════════════════════════════════════════
# CLI
# ═══════════════════════════════════════════════════════════════════════════════

def test_version():
    result = runner.invoke(cli.app, ["version"])

    assert result.exit_code == 0
    assert __version__ in result.output


def test_prefs_without_file(dirs):
    result = runner.invoke(cli.app, ["prefs"])

    assert result.exit_code == 0
    assert "No preferences saved yet" in result.output


def test_prefs_for_one_table(dirs):
    prefs = Preferences()
    prefs.set_table_columns("orders", ["pk", "status"])
    ConfigStore(dirs / "cfg" / "config.json").save(prefs)

    result = runner.invoke(cli.app, ["prefs", "--table", "orders"])

    assert result.exit_code == 0
    assert '"status"' in result.output
    assert '"orders"' in result.output


def test_prefs_malformed_file_exits_nonzero(dirs):
    path = dirs / "cfg" / "config.json"
    path.parent.mkdir(parents=True)
    path.write_text("{oops", encoding="utf-8")

    result = runner.invoke(cli.app, ["prefs"])

    assert result.exit_code == 1
    assert "malformed" in result.output


def test_no_subcommand_launches_with_overrides(dirs, monkeypatch):
    launched = []
    monkeypatch.setattr(cli, "launch", launched.append)

    result = runner.invoke(cli.app, ["--env", "stg", "--prefix", "shop-"])

    assert result.exit_code == 0
    assert launched[0].CIRRUS_ENV == "stg"
    assert launched[0].CIRRUS_RESOURCE_PREFIX == "shop-"


def test_bootstrap_failure_is_fatal(dirs, monkeypatch):
    monkeypatch.setattr(cli, "setup_logging", lambda settings: dirs / "cirrus.log")

    def no_region(settings):
        raise NoRegionError()

    monkeypatch.setattr(clients, "build_clients", no_region)

    result = runner.invoke(cli.app, [])

    assert result.exit_code == 1
    assert "Could not create AWS clients" in result.output


def test_prefs_output_is_json(dirs):
    prefs = Preferences()
    prefs.set_table_columns("a", ["x"])
    ConfigStore(dirs / "cfg" / "config.json").save(prefs)

    result = runner.invoke(cli.app, ["prefs"])
    body = result.output[result.output.index("{"):]

    assert json.loads(body)["dynamodb"]["table_column_preferences"] == {"a": ["x"]}


def test_prefs_error_detail_is_printed_verbatim(dirs):
    path = dirs / "cfg" / "config.json"
    path.parent.mkdir(parents=True)
    path.write_text('{"dynamodb": {"table_column_preferences": 5}}', encoding="utf-8")

    result = runner.invoke(cli.app, ["prefs"])

    assert result.exit_code == 1
    assert "[type=dict_type" in result.output
