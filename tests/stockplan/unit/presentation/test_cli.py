"""Tests for the stockplan CLI."""

import re
from unittest.mock import AsyncMock, patch

from typer.testing import CliRunner

from stockplan.application.services import CleanupResult
from stockplan.presentation.cli.app import app
from stockplan_config.settings import Settings
from tests.shared.fixtures.auth import TEST_JWT_SECRET

runner = CliRunner()


def _settings() -> Settings:
    return Settings(_env_file=None, jwt_secret_key=TEST_JWT_SECRET)


def test_secrets_generate_prints_fresh_secrets():
    first = runner.invoke(app, ["secrets", "generate"])
    second = runner.invoke(app, ["secrets", "generate"])

    assert first.exit_code == 0
    secret = re.search(r"JWT_SECRET_KEY=(\S+)", first.stdout).group(1)
    assert len(secret) >= 64
    assert "POSTGRES_PASSWORD=" in first.stdout
    assert secret not in second.stdout


def test_tokens_cleanup_reports_counts():
    with (
        patch("stockplan.presentation.cli.app.get_settings", return_value=_settings()),
        patch(
            "stockplan.presentation.cli.app._run_cleanup",
            new=AsyncMock(return_value=CleanupResult(3, 5)),
        ) as run_cleanup,
    ):
        result = runner.invoke(app, ["tokens", "cleanup"])

    assert result.exit_code == 0
    assert "3 reset token(s)" in result.stdout
    assert "5 refresh token(s)" in result.stdout
    run_cleanup.assert_awaited_once()


def test_db_init_creates_schema():
    with (
        patch("stockplan.presentation.cli.app.get_settings", return_value=_settings()),
        patch(
            "stockplan.presentation.cli.app._init_schema",
            new=AsyncMock(),
        ) as init_schema,
    ):
        result = runner.invoke(app, ["db", "init"])

    assert result.exit_code == 0
    assert "up to date" in result.stdout
    init_schema.assert_awaited_once()


def test_no_args_shows_help():
    result = runner.invoke(app, [])

    assert "secrets" in result.stdout
    assert "tokens" in result.stdout
