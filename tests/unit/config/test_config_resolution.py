"""Unit tests for configuration resolution and validation.

These tests verify the core behaviors of the configuration module:
- Defaults when no source provides a value.
- Loading and coercing QUIZ_WORKER_* environment variables.
- Validation errors surface as ValueError with context.
"""

import os
from unittest.mock import patch

import pytest

from quiz_worker.config import (
    FrozenConfig,
    WorkerSettings,
    resolve_config,
)

pytestmark = pytest.mark.unit

def test_defaults_when_no_sources():
    resolved = resolve_config()

    assert resolved.to_frozen() == FrozenConfig()
    assert set(resolved.origin.values()) == {"default"}

def test_environment_values_are_coerced():
    with patch.dict(
        os.environ,
        {
            "QUIZ_WORKER_TIMEOUT": "15",
            "QUIZ_WORKER_RETRY": "0",
            "QUIZ_WORKER_STOP_WHEN_ERROR": "true",
            "QUIZ_WORKER_UPLOAD": "80",
        },
    ):
        resolved = resolve_config()

    assert resolved.timeout == 15.0
    assert resolved.retry == 0
    assert resolved.stop_when_error is True
    assert resolved.upload == "80"
    assert resolved.origin["timeout"] == "env"
    assert resolved.origin["period"] == "default"

def test_invalid_environment_value_raises():
    with (
        patch.dict(os.environ, {"QUIZ_WORKER_RETRY": "-1"}),
        pytest.raises(ValueError, match="QUIZ_WORKER_RETRY"),
    ):
        resolve_config()

def test_invalid_programmatic_value_raises():
    with pytest.raises(ValueError, match="validation failed"):
        resolve_config({"timeout": 0})

def test_unknown_programmatic_fields_are_ignored():
    resolved = resolve_config({"retry": 1, "model": "ignored"})
    assert resolved.retry == 1
    assert "model" not in resolved.origin

def test_env_file_is_loaded(tmp_path):
    env_file = tmp_path / ".env"
    env_file.write_text('# comment\nQUIZ_WORKER_PERIOD="0.5"\n')

    with patch.dict(os.environ):
        resolved = resolve_config(use_env_file=env_file)

    assert resolved.period == 0.5
    assert resolved.origin["period"] == "env"

def test_missing_env_file_raises(tmp_path):
    with pytest.raises(ValueError, match="Environment configuration error"):
        resolve_config(use_env_file=tmp_path / "missing.env")

@pytest.mark.parametrize("policy", ["nomove", "force", "save", "80", 75])
def test_upload_policy_accepted(policy):
    assert WorkerSettings(upload=policy).upload == str(policy)

def test_upload_policy_rejected():
    with pytest.raises(ValueError, match="Invalid upload policy"):
        WorkerSettings(upload="sometimes")

def test_audit_names_sources(monkeypatch):
    monkeypatch.setenv("QUIZ_WORKER_RETRY", "3")
    audit = resolve_config({"timeout": 5}).audit()

    assert "timeout: programmatic:5.0" in audit
    assert "retry: env:QUIZ_WORKER_RETRY=3" in audit
    assert "period: default:3.0" in audit
