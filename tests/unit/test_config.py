"""Unit tests for verifier configuration."""

from __future__ import annotations

from unittest.mock import patch

import pytest

from addon_verify.config import VerifierConfig, load_config
from addon_verify.errors import ConfigError


@pytest.fixture
def no_config_file(tmp_path):
    """Point the default config path at a missing file."""
    with patch("addon_verify.config.get_config_path", return_value=tmp_path / "missing.yaml"):
        yield


@pytest.fixture
def clean_env(monkeypatch):
    """Remove ADDON_VERIFY_* variables."""
    from addon_verify.config import ENV_VARS

    for env_var in ENV_VARS.values():
        monkeypatch.delenv(env_var, raising=False)


class TestVerifierConfig:
    """Tests for VerifierConfig."""

    def test_defaults(self):
        """Test default timeouts and polling interval."""
        config = VerifierConfig()
        assert config.namespace == "tkg-system"
        assert config.ready_timeout == 20 * 60
        assert config.get_resource_timeout == 60
        assert config.poll_interval == 30
        assert config.excluded_packages == ["tkg-storageclass"]
        assert config.concurrency == 1
        assert config.strict_references is True

    def test_excluded_packages_not_shared(self):
        """Test each config gets its own exclusion list."""
        first = VerifierConfig()
        first.excluded_packages.append("other")
        assert VerifierConfig().excluded_packages == ["tkg-storageclass"]

    @pytest.mark.parametrize(
        "kwargs",
        [
            {"ready_timeout": 0},
            {"poll_interval": -1},
            {"get_resource_timeout": 0},
            {"concurrency": 0},
            {"mismatch_grace": -0.5},
            {"namespace": ""},
        ],
    )
    def test_validate(self, kwargs):
        """Test out-of-range values are rejected."""
        with pytest.raises(ConfigError):
            VerifierConfig(**kwargs).validate()

    def test_with_overrides(self):
        """Test CLI overrides replace given values only."""
        config = VerifierConfig().with_overrides(ready_timeout=5.0, poll_interval=None)
        assert config.ready_timeout == 5.0
        assert config.poll_interval == 30
        assert config.get_source("ready_timeout") == "command line"
        assert config.get_source("poll_interval") == "default"

    def test_with_overrides_empty_exclusions(self):
        """Test an empty exclusion list is an override, not a skip."""
        config = VerifierConfig().with_overrides(excluded_packages=[])
        assert config.excluded_packages == []

    def test_with_overrides_unknown_key(self):
        """Test unknown override keys are rejected."""
        with pytest.raises(ConfigError):
            VerifierConfig().with_overrides(bogus=1)


class TestLoadConfig:
    """Tests for load_config."""

    def test_defaults_without_file(self, no_config_file, clean_env):
        """Test defaults when no file or env is present."""
        config = load_config()
        assert config.ready_timeout == 1200
        assert config.get_source("ready_timeout") == "default"

    def test_file_values(self, tmp_path, clean_env):
        """Test values from an explicit config file."""
        path = tmp_path / "config.yaml"
        path.write_text(
            "ready_timeout: 600\n"
            "poll_interval: 10\n"
            "excluded_packages: []\n"
            "concurrency: 4\n"
            "mismatch_grace: 120\n"
            "fail_on_reconcile_failure: true\n"
        )
        config = load_config(path)

        assert config.ready_timeout == 600.0
        assert config.poll_interval == 10.0
        assert config.excluded_packages == []
        assert config.concurrency == 4
        assert config.mismatch_grace == 120.0
        assert config.fail_on_reconcile_failure is True
        assert config.get_source("concurrency") == "config file"

    def test_default_file_location(self, tmp_path, clean_env):
        """Test the default config file is read when present."""
        path = tmp_path / "config.yaml"
        path.write_text("namespace: addons\n")
        with patch("addon_verify.config.get_config_path", return_value=path):
            config = load_config()
        assert config.namespace == "addons"

    def test_env_overrides_file(self, tmp_path, clean_env, monkeypatch):
        """Test environment variables take precedence over the file."""
        path = tmp_path / "config.yaml"
        path.write_text("ready_timeout: 600\n")
        monkeypatch.setenv("ADDON_VERIFY_READY_TIMEOUT", "90")
        monkeypatch.setenv("ADDON_VERIFY_EXCLUDED_PACKAGES", "a, b")
        monkeypatch.setenv("ADDON_VERIFY_STRICT_REFERENCES", "no")

        config = load_config(path)

        assert config.ready_timeout == 90.0
        assert config.excluded_packages == ["a", "b"]
        assert config.strict_references is False
        assert config.get_source("ready_timeout") == "environment"

    def test_invalid_env_ignored(self, no_config_file, clean_env, monkeypatch):
        """Test unparseable environment values fall back."""
        monkeypatch.setenv("ADDON_VERIFY_CONCURRENCY", "many")
        config = load_config()
        assert config.concurrency == 1
        assert config.get_source("concurrency") == "default"

    def test_missing_explicit_file(self, tmp_path, clean_env):
        """Test an explicit config path must exist."""
        with pytest.raises(ConfigError, match="not found"):
            load_config(tmp_path / "nope.yaml")

    def test_unknown_key(self, tmp_path, clean_env):
        """Test unknown keys in the file are rejected."""
        path = tmp_path / "config.yaml"
        path.write_text("readyTimeout: 10\n")
        with pytest.raises(ConfigError, match="Unknown config key"):
            load_config(path)

    def test_invalid_value(self, tmp_path, clean_env):
        """Test bad values in the file are rejected."""
        path = tmp_path / "config.yaml"
        path.write_text("poll_interval: soon\n")
        with pytest.raises(ConfigError, match="poll_interval"):
            load_config(path)

    def test_not_a_mapping(self, tmp_path, clean_env):
        """Test a non-mapping document is rejected."""
        path = tmp_path / "config.yaml"
        path.write_text("- a\n- b\n")
        with pytest.raises(ConfigError, match="mapping"):
            load_config(path)
