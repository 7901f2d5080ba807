"""Root pytest configuration for test discovery and auto-skip behavior.

Test Structure:
    tests/
    ├── stockplan/             # Application, infrastructure and API tests
    │   ├── unit/              # Fast, isolated tests (in-memory repository)
    │   └── integration/       # Tests with Testcontainers PostgreSQL
    ├── stockplan_auth/        # Auth core: crypto services and repositories
    │   ├── unit/
    │   └── integration/
    └── shared/                # Shared fixtures and utilities

Environment Variables:
    RUN_INTEGRATION=1    Run @pytest.mark.integration tests
    RUN_ALL_TESTS=1      Run all tests (overrides other settings)

Pytest Options:
    --run-integration    Run integration tests
    --run-all            Run all tests
"""

import os
from pathlib import Path

import pytest
from dotenv import load_dotenv

from stockplan_config import clear_settings_cache

PROJECT_ROOT = Path(__file__).resolve().parents[1]

# Load .env.dev for tests (same as local development)
CONFIG_DIR = PROJECT_ROOT / "config"
if (CONFIG_DIR / ".env.dev").exists():
    load_dotenv(CONFIG_DIR / ".env.dev")
elif (CONFIG_DIR / ".env").exists():
    load_dotenv(CONFIG_DIR / ".env")


def pytest_addoption(parser):
    """Add custom command line options."""
    parser.addoption(
        "--run-integration",
        action="store_true",
        default=False,
        help="Run tests marked with @pytest.mark.integration",
    )
    parser.addoption(
        "--run-all",
        action="store_true",
        default=False,
        help="Run all tests regardless of markers",
    )


def pytest_configure(config):
    """Register custom markers."""
    config.addinivalue_line(
        "markers",
        "integration: Tests that verify database/persistence behavior (auto-skipped)",
    )
    config.addinivalue_line(
        "markers",
        "slow: Tests that take more than 1 second",
    )


def _enabled(value: str) -> bool:
    return value.lower() in ("1", "true", "yes")


def pytest_collection_modifyitems(config, items):
    """Auto-skip integration tests unless explicitly enabled."""
    run_all = config.getoption("--run-all") or _enabled(
        os.environ.get("RUN_ALL_TESTS", ""),
    )
    if run_all:
        return

    run_integration = config.getoption("--run-integration") or _enabled(
        os.environ.get("RUN_INTEGRATION", ""),
    )

    skip_integration = pytest.mark.skip(
        reason="Integration test - run with --run-integration or RUN_INTEGRATION=1",
    )

    for item in items:
        item_markers = {mark.name for mark in item.iter_markers()}
        if not run_integration and "integration" in item_markers:
            item.add_marker(skip_integration)


@pytest.fixture(scope="session", autouse=True)
def configure_app_settings():
    """Clear cached settings so each session loads a fresh configuration."""
    clear_settings_cache()
    yield
    clear_settings_cache()
