"""Pytest configuration and fixtures."""

import base64
import json
from datetime import datetime, timedelta, timezone

import pytest

from git_assure.config import Settings
from git_assure.models import RepositoryIdentity


def ago(days: float = 0, hours: float = 0) -> str:
    """GitHub-style timestamp ``days``/``hours`` before now."""
    moment = datetime.now(timezone.utc) - timedelta(days=days, hours=hours)
    return moment.strftime("%Y-%m-%dT%H:%M:%SZ")


def contents_payload(text: str, **extra) -> dict:
    """A GitHub contents-API response for a file with ``text``."""
    raw = text.encode("utf-8")
    payload = {
        "type": "file",
        "encoding": "base64",
        "size": len(raw),
        "content": base64.b64encode(raw).decode("ascii"),
    }
    payload.update(extra)
    return payload


def package_json_payload(dependencies: dict, dev: dict | None = None) -> dict:
    return contents_payload(
        json.dumps({"name": "demo", "dependencies": dependencies, "devDependencies": dev or {}})
    )


@pytest.fixture
def identity():
    return RepositoryIdentity(owner="owner", name="repo")


@pytest.fixture
def settings():
    """Settings with no pause between batches and no .env lookup."""
    return Settings(_env_file=None, github_token=None, batch_pause=0.0)
