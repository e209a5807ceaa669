"""
Pytest configuration and fixtures for triton-client-core tests.
"""

import json
import os
from pathlib import Path

import pytest
import responses as responses_lib

from triton_client.api import CloudApi
from triton_client.core.config import CloudApiConfig
from triton_client.core.logging.config import LoggingConfig

DATA_DIR = Path(__file__).parent / "data"

INSTANCE_ID = "c872d3bf-cbaa-4165-8e18-f6e3e1d94da9"


def read_fixture(name: str) -> str:
    """Raw text of tests/data/<name>."""
    return (DATA_DIR / name).read_text(encoding="utf-8")


def load_fixture(name: str):
    """Parsed JSON of tests/data/<name>."""
    return json.loads(read_fixture(name))


@pytest.fixture
def base_url():
    """Base URL for testing."""
    return "https://api.example.com"


@pytest.fixture
def account():
    return "testaccount"


@pytest.fixture
def machines_url(base_url, account):
    """URL of the instances collection."""
    return f"{base_url}/{account}/machines"


@pytest.fixture
def instance_url(machines_url):
    return f"{machines_url}/{INSTANCE_ID}"


@pytest.fixture
def config(base_url, account):
    """Unsigned config: no key material needed."""
    return CloudApiConfig.create(url=base_url, account=account, no_auth=True)


@pytest.fixture
def cloud_api(config):
    """CloudApi instance for testing."""
    api = CloudApi(config)
    yield api
    api.close()


@pytest.fixture
def mock_responses():
    """Mock HTTP responses using responses library."""
    with responses_lib.RequestsMock() as rsps:
        yield rsps


@pytest.fixture
def clean_env(monkeypatch, tmp_path):
    """
    Environment without TRITON_* / SDC_* variables and without a .env file.
    """
    for name in list(os.environ):
        if name.upper().startswith(("TRITON_", "SDC_")):
            monkeypatch.delenv(name, raising=False)
    monkeypatch.chdir(tmp_path)
    return monkeypatch


@pytest.fixture
def logging_config_with_file(tmp_path):
    """
    LoggingConfig fixture with file logging enabled.

    Uses temporary directory for log files to avoid cleanup issues.
    """
    log_file = tmp_path / "logs" / "triton.log"
    return LoggingConfig.create(
        level="DEBUG",
        format="json",
        enable_console=False,
        enable_file=True,
        file_path=str(log_file)
    )
