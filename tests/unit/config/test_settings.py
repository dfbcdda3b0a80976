# tests/unit/config/test_settings.py — v1
"""Tests for config/settings.py — typed Settings and validation rules."""

from __future__ import annotations

import pytest

from groupavail.config.settings import ConfigurationError, Settings, load_settings


class TestSettingsDefaults:
    def test_default_provider(self):
        s = Settings(_env_file=None)
        assert s.provider_base_url == "https://api-au.cronofy.com"
        assert s.provider_timeout_seconds == 25.0
        assert s.provider_batch_size == 5
        assert s.provider_max_results == 512

    def test_default_cache(self):
        s = Settings(_env_file=None)
        assert s.cache_backend == "memory"
        assert s.cache_ttl_seconds == 3600.0
        assert s.cache_sweep_interval_seconds == 0.0
        assert s.cache_key_scope == "bucket"
        assert s.cache_coverage_policy == "asked"

    def test_default_logging(self):
        s = Settings(_env_file=None)
        assert s.log_level == "INFO"
        assert s.log_format == "json"
        assert s.log_file is None


class TestSettingsEnvironment:
    def test_reads_env(self, monkeypatch):
        monkeypatch.setenv("PROVIDER_API_TOKEN", "secret")
        monkeypatch.setenv("CACHE_TTL_SECONDS", "120")
        monkeypatch.setenv("PROVIDER_BASE_URL", "https://api.cronofy.com/ ")
        s = Settings(_env_file=None)
        assert s.require_provider_token() == "secret"
        assert s.cache_ttl_seconds == 120.0
        assert s.provider_base_url == "https://api.cronofy.com"

    def test_reads_env_file(self, tmp_path):
        env = tmp_path / ".env"
        env.write_text("PROVIDER_BATCH_SIZE=3\nUNRELATED=1\n", encoding="utf-8")
        s = Settings(_env_file=env)
        assert s.provider_batch_size == 3

    def test_token_not_in_repr(self):
        s = Settings(_env_file=None, provider_api_token="secret")
        assert "secret" not in repr(s)


class TestSettingsValidation:
    def test_batch_size_above_provider_limit(self):
        with pytest.raises(ConfigurationError, match="PROVIDER_BATCH_SIZE"):
            Settings(_env_file=None, provider_batch_size=11)

    def test_batch_size_at_provider_limit(self):
        assert Settings(_env_file=None, provider_batch_size=10).provider_batch_size == 10

    def test_sweep_longer_than_ttl(self):
        with pytest.raises(ConfigurationError, match="CACHE_SWEEP_INTERVAL_SECONDS"):
            Settings(_env_file=None, cache_ttl_seconds=60, cache_sweep_interval_seconds=120)

    @pytest.mark.parametrize(
        "field",
        ["provider_timeout_seconds", "provider_batch_size", "provider_max_results", "cache_ttl_seconds"],
    )
    def test_non_positive(self, field):
        with pytest.raises(ValueError, match=field):
            Settings(_env_file=None, **{field: 0})

    def test_negative_sweep_interval(self):
        with pytest.raises(ValueError, match="cache_sweep_interval_seconds"):
            Settings(_env_file=None, cache_sweep_interval_seconds=-1)

    def test_unknown_backend(self):
        with pytest.raises(ValueError):
            Settings(_env_file=None, cache_backend="redis")

    def test_unknown_coverage_policy(self):
        with pytest.raises(ValueError):
            Settings(_env_file=None, cache_coverage_policy="everything")


class TestSettingsHelpers:
    def test_has_provider_token(self):
        assert Settings(_env_file=None, provider_api_token="t").has_provider_token
        assert not Settings(_env_file=None, provider_api_token="  ").has_provider_token

    def test_require_provider_token_missing(self):
        with pytest.raises(ConfigurationError, match="PROVIDER_API_TOKEN"):
            Settings(_env_file=None).require_provider_token()


class TestLoadSettings:
    def test_with_overrides(self):
        s = load_settings(_env_file=None, log_level="DEBUG", cache_ttl_seconds=60)
        assert s.log_level == "DEBUG"
        assert s.cache_ttl_seconds == 60
