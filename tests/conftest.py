"""Shared test fixtures for the av_inventory test suite."""

import json
import os
import pytest

from av_inventory.inventory.loader import load_default_dictionary


@pytest.fixture
def dictionary():
    """The reference table bundled with the package."""
    return load_default_dictionary()


@pytest.fixture
def sample_table():
    """A small well-formed table in the reference document shape."""
    return {
        "Acme": {
            "Services": [
                {
                    "SvcName": "Acme Shield",
                    "Executable": "shield.exe",
                    "Description": "On-access scanner",
                },
                {
                    "SvcName": "Acme Updater",
                    "Executable": "bin\\update.exe",
                    "Description": "Definition updates",
                },
            ]
        },
        "Globex": {
            "Services": [
                {
                    "SvcName": "Globex Sensor",
                    "Executable": "shield.exe",
                    "Description": "EDR sensor",
                }
            ]
        },
    }


@pytest.fixture
def write_table(tmp_path):
    """Write a table (dict or raw text) to a temporary JSON file and return its path."""

    def _write(table, name="services.json"):
        path = tmp_path / name
        text = table if isinstance(table, str) else json.dumps(table)
        path.write_text(text, encoding="utf-8")
        return path

    return _write


@pytest.fixture(autouse=True)
def quiet_env(monkeypatch):
    """Keep host AVI_* settings out of the tests."""
    for key in list(os.environ):
        if key.startswith("AVI_"):
            monkeypatch.delenv(key, raising=False)
