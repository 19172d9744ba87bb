"""
Shared fixtures: temporary manifest directories, task databases, and app factories
"""

import shutil
from pathlib import Path
from typing import Any, Dict, Optional

import pytest
import yaml
from fastapi.testclient import TestClient

from trunk_api.app.core.feature_flags import MANIFEST_FILES, FeatureFlagResolver, ManifestLoader
from trunk_api.app.core.settings import DEFAULT_TASKS_DB, Settings
from trunk_api.app.main import create_app
from trunk_api.app.models.feature_flags import Environment


def manifest_dict(environment: str, **flags: bool) -> Dict[str, Any]:
    return {
        "environment": environment,
        "features": {
            name: {"enabled": enabled, "description": f"{name} feature", "owner": "test", "status": "live"}
            for name, enabled in flags.items()
        },
    }


def write_manifest(config_dir: Path, environment: Environment, content: Any) -> Path:
    """Write a manifest; dicts are dumped as YAML, strings written verbatim"""
    path = config_dir / MANIFEST_FILES[environment]
    if isinstance(content, str):
        path.write_text(content, encoding="utf-8")
    else:
        path.write_text(yaml.safe_dump(content, sort_keys=False), encoding="utf-8")
    return path


@pytest.fixture
def flags_dir(tmp_path):
    config_dir = tmp_path / "config"
    config_dir.mkdir()
    return config_dir


@pytest.fixture
def tasks_db(tmp_path):
    db_path = tmp_path / "db.json"
    shutil.copy(DEFAULT_TASKS_DB, db_path)
    return db_path


@pytest.fixture
def make_resolver(flags_dir):
    def _make(environment: Environment = Environment.STAGE, content: Optional[Any] = None) -> FeatureFlagResolver:
        if content is not None:
            write_manifest(flags_dir, environment, content)
        return FeatureFlagResolver(environment, ManifestLoader(flags_dir))
    return _make


@pytest.fixture
def make_client(flags_dir, tasks_db):
    """Build a TestClient for an app started against a given manifest"""
    def _make(
        environment: Environment = Environment.PRODUCTION,
        content: Optional[Any] = None,
        capabilities=None,
    ) -> TestClient:
        if content is not None:
            write_manifest(flags_dir, environment, content)
        settings = Settings(environment=environment, flags_dir=flags_dir, tasks_db_path=tasks_db)
        return TestClient(create_app(settings, capabilities))
    return _make
