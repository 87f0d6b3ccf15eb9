"""
Tests for configuration: env-backed Settings, YAML defaults and the typed
stats engine config built from both.
"""

import textwrap

import pytest
from pydantic import ValidationError


class TestSettings:
    def test_defaults(self, monkeypatch):
        from src.core.config import Settings

        monkeypatch.delenv("TIMEZONE", raising=False)
        monkeypatch.delenv("DATABASE_URL", raising=False)
        settings = Settings(_env_file=None)

        assert settings.database_url.startswith("sqlite+aiosqlite:///")
        assert settings.timezone == "America/Sao_Paulo"
        assert settings.stats_write_max_attempts == 3

    def test_env_override(self, monkeypatch):
        from src.core.config import Settings

        monkeypatch.setenv("STATS_WRITE_MAX_ATTEMPTS", "7")
        monkeypatch.setenv("TIMEZONE", "UTC")
        settings = Settings(_env_file=None)

        assert settings.stats_write_max_attempts == 7
        assert settings.timezone == "UTC"
        assert "timezone" in settings.model_fields_set

    def test_get_settings_is_cached(self):
        from src.core.config import get_settings

        assert get_settings() is get_settings()


class TestDefaultsLoader:
    """Test YAML loading and merging."""

    def setup_method(self):
        from src.core.defaults_loader import clear_cache

        clear_cache()

    def teardown_method(self):
        from src.core.defaults_loader import clear_cache

        clear_cache()

    def test_missing_file_is_empty(self, tmp_path):
        from src.core.defaults_loader import load_yaml_file

        assert load_yaml_file(tmp_path / "missing.yaml") == {}

    def test_deep_merge(self):
        from src.core.defaults_loader import deep_merge

        base = {"stats": {"timezone": "UTC", "write_max_attempts": 3}, "other": 1}
        override = {"stats": {"write_max_attempts": 5}}
        merged = deep_merge(base, override)

        assert merged == {
            "stats": {"timezone": "UTC", "write_max_attempts": 5},
            "other": 1,
        }
        assert base["stats"]["write_max_attempts"] == 3

    def test_get_nested(self):
        from src.core.defaults_loader import get_nested

        config = {"stats": {"timezone": "UTC"}}
        assert get_nested(config, "stats.timezone") == "UTC"
        assert get_nested(config, "stats.missing", "x") == "x"
        assert get_nested(config, "stats.timezone.deeper", None) is None

    def test_settings_yaml_overrides_defaults(self, tmp_path):
        from src.core.defaults_loader import load_defaults

        defaults = tmp_path / "defaults.yaml"
        defaults.write_text("stats:\n  timezone: UTC\n  write_max_attempts: 3\n")
        settings = tmp_path / "settings.yaml"
        settings.write_text("stats:\n  write_max_attempts: 9\n")

        config = load_defaults(defaults, settings, reload=True)
        assert config["stats"] == {"timezone": "UTC", "write_max_attempts": 9}

    def test_cached_until_reload(self, tmp_path):
        from src.core.defaults_loader import load_defaults

        defaults = tmp_path / "defaults.yaml"
        defaults.write_text("stats:\n  timezone: UTC\n")
        first = load_defaults(defaults, tmp_path / "none.yaml")

        defaults.write_text("stats:\n  timezone: Europe/Lisbon\n")
        assert load_defaults(defaults, tmp_path / "none.yaml") is first
        reloaded = load_defaults(defaults, tmp_path / "none.yaml", reload=True)
        assert reloaded["stats"]["timezone"] == "Europe/Lisbon"

    def test_real_defaults_have_stats_section(self):
        from src.core.defaults_loader import get_stats_option

        assert get_stats_option("timezone") == "America/Sao_Paulo"
        assert get_stats_option("missing", 42) == 42


class TestStatsEngineConfig:
    def test_defaults(self):
        from src.core.typed_config import DEFAULT_TIMEZONE, StatsEngineConfig

        config = StatsEngineConfig()
        assert config.timezone == DEFAULT_TIMEZONE
        assert config.write_max_attempts == 3
        assert config.include_selected_date_habits is True

    def test_frozen(self):
        from src.core.typed_config import StatsEngineConfig

        config = StatsEngineConfig()
        with pytest.raises(ValidationError):
            config.timezone = "UTC"

    @pytest.mark.parametrize(
        "field,value",
        [
            ("timezone", "Mars/Olympus_Mons"),
            ("write_max_attempts", 0),
            ("write_base_delay", -1.0),
        ],
    )
    def test_invalid_values(self, field, value):
        from src.core.typed_config import StatsEngineConfig

        with pytest.raises(ValidationError):
            StatsEngineConfig(**{field: value})


class TestLoadStatsEngineConfig:
    def _settings(self, monkeypatch, **env):
        from src.core.config import Settings

        for name in ("TIMEZONE", "STATS_WRITE_MAX_ATTEMPTS", "STATS_WRITE_BASE_DELAY"):
            monkeypatch.delenv(name, raising=False)
        for name, value in env.items():
            monkeypatch.setenv(name, value)
        return Settings(_env_file=None)

    def test_reads_stats_section(self, tmp_path, monkeypatch):
        from src.core.typed_config_loader import load_stats_engine_config

        yaml_file = tmp_path / "defaults.yaml"
        yaml_file.write_text(textwrap.dedent("""\
            stats:
              timezone: Europe/Lisbon
              write_max_attempts: 5
              include_selected_date_habits: false
            """))

        config = load_stats_engine_config(yaml_file, self._settings(monkeypatch))
        assert config.timezone == "Europe/Lisbon"
        assert config.write_max_attempts == 5
        assert config.include_selected_date_habits is False

    def test_env_wins_over_yaml(self, tmp_path, monkeypatch):
        from src.core.typed_config_loader import load_stats_engine_config

        yaml_file = tmp_path / "defaults.yaml"
        yaml_file.write_text("stats:\n  timezone: Europe/Lisbon\n")

        settings = self._settings(monkeypatch, TIMEZONE="UTC")
        config = load_stats_engine_config(yaml_file, settings)
        assert config.timezone == "UTC"

    def test_missing_file_uses_defaults(self, tmp_path, monkeypatch):
        from src.core.typed_config import StatsEngineConfig
        from src.core.typed_config_loader import load_stats_engine_config

        config = load_stats_engine_config(
            tmp_path / "nope.yaml", self._settings(monkeypatch)
        )
        assert config == StatsEngineConfig()

    def test_cached_singleton(self):
        from src.core.typed_config_loader import _clear_caches, get_stats_engine_config

        _clear_caches()
        try:
            assert get_stats_engine_config() is get_stats_engine_config()
        finally:
            _clear_caches()
