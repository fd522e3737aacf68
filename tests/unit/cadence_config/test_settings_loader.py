"""Unit tests for configuration loading and the Settings model."""

from pathlib import Path

import pytest

from cadence.bootstrap import bootstrap, create_clock
from cadence.clock import SystemClock, VirtualClock
from cadence.config import get_settings, reload_settings
from cadence.config.loader import config_layers, deep_merge, get_environment, load_config, load_toml
from cadence.config.models import DispatcherConfig
from cadence.config.settings import Settings
from cadence.observability.metrics import MetricsHook
from cadence.scheduler import WorkerPoolDispatcher


class TestDeepMerge:
    """Tests for deep_merge function."""

    def test_merge_nested_dicts(self) -> None:
        """Nested dictionaries are merged recursively."""
        base = {"scheduler": {"clock": "system", "dispatcher": {"workers": 4}}}
        override = {"scheduler": {"dispatcher": {"workers": 8}}}
        result = deep_merge(base, override)
        assert result == {"scheduler": {"clock": "system", "dispatcher": {"workers": 8}}}

    def test_base_unmodified(self) -> None:
        """Original base dictionary is not modified."""
        base = {"a": {"x": 1}}
        deep_merge(base, {"a": {"x": 2}})
        assert base == {"a": {"x": 1}}


class TestLoadConfig:
    """Tests for TOML loading."""

    def test_load_missing_file_raises(self, tmp_path: Path) -> None:
        """Missing file raises FileNotFoundError."""
        with pytest.raises(FileNotFoundError):
            load_toml(tmp_path / "nonexistent.toml")

    def test_environment_file_overrides_default(self, test_config_dir, mock_toml_files, env_override) -> None:
        """config/{env}.toml is merged over default.toml."""
        mock_toml_files({
            "default.toml": "[scheduler.dispatcher]\nworkers = 4\nqueue_size = 10",
            "staging.toml": "[scheduler.dispatcher]\nworkers = 16",
        })
        with env_override({"CADENCE_CONFIG_DIR": str(test_config_dir), "CADENCE_ENV": "staging"}):
            config = load_config()

        assert config["scheduler"]["dispatcher"] == {"workers": 16, "queue_size": 10}

    def test_missing_files_are_optional(self, test_config_dir, env_override) -> None:
        """An empty config directory yields an empty config."""
        with env_override({"CADENCE_CONFIG_DIR": str(test_config_dir)}):
            assert load_config() == {}

    def test_missing_config_dir_raises(self, tmp_path: Path, env_override) -> None:
        with env_override({"CADENCE_CONFIG_DIR": str(tmp_path / "absent")}):
            with pytest.raises(FileNotFoundError):
                load_config()

    def test_default_environment(self, monkeypatch) -> None:
        monkeypatch.delenv("CADENCE_ENV", raising=False)
        assert get_environment() == "development"

    def test_explicit_directory_and_environment(self, tmp_path: Path) -> None:
        """Arguments take precedence over the environment variables."""
        (tmp_path / "default.toml").write_text('app_name = "base"\n[scheduler]\nclock = "system"\n')
        (tmp_path / "test.toml").write_text('[scheduler]\nclock = "virtual"\n')

        config = load_config(tmp_path, "test")

        assert config == {"app_name": "base", "scheduler": {"clock": "virtual"}}

    def test_layers_skip_missing_files(self, tmp_path: Path) -> None:
        (tmp_path / "production.toml").write_text("")
        assert config_layers(tmp_path, "production") == [tmp_path / "production.toml"]
        assert config_layers(tmp_path, "staging") == []


class TestSettings:
    """Tests for Settings model and get_settings."""

    def test_default_values(self) -> None:
        """Settings has sensible defaults."""
        settings = Settings()
        assert settings.app_name == "cadence"
        assert settings.scheduler.clock == "system"
        assert settings.scheduler.dispatcher.workers == 4
        assert settings.observability.logging.level == "INFO"
        assert settings.observability.metrics.enabled is True

    def test_toml_values_loaded(self, test_config_dir, mock_toml_files, env_override) -> None:
        mock_toml_files({"default.toml": "app_name = 'reports'\n[scheduler]\nclock = 'virtual'"})
        with env_override({"CADENCE_CONFIG_DIR": str(test_config_dir), "CADENCE_ENV": "test"}):
            settings = get_settings()

        assert settings.app_name == "reports"
        assert settings.scheduler.clock == "virtual"

    def test_env_overrides_toml(self, test_config_dir, mock_toml_files, env_override) -> None:
        """CADENCE_* variables win over TOML, with __ for nesting."""
        mock_toml_files({"default.toml": "[scheduler.dispatcher]\nworkers = 2"})
        with env_override({
            "CADENCE_CONFIG_DIR": str(test_config_dir),
            "CADENCE_ENV": "test",
            "CADENCE_SCHEDULER__DISPATCHER__WORKERS": "12",
        }):
            settings = get_settings()

        assert settings.scheduler.dispatcher.workers == 12

    def test_get_settings_is_cached(self, test_config_dir, env_override) -> None:
        with env_override({"CADENCE_CONFIG_DIR": str(test_config_dir)}):
            first = get_settings()
            assert get_settings() is first
            assert reload_settings() is not first

    def test_validation(self) -> None:
        with pytest.raises(ValueError):
            DispatcherConfig(workers=0)


class TestBootstrap:
    """Tests for building a scheduler from settings."""

    def test_create_clock(self) -> None:
        assert isinstance(create_clock(Settings()), SystemClock)
        assert isinstance(create_clock(Settings(scheduler={"clock": "virtual"})), VirtualClock)

    async def test_bootstrap_wires_dispatcher_and_metrics(self) -> None:
        settings = Settings(scheduler={"dispatcher": {"workers": 3, "queue_size": 5}})

        scheduler = await bootstrap(settings, configure_logging=False)

        assert isinstance(scheduler.dispatcher, WorkerPoolDispatcher)
        assert scheduler.dispatcher.loads == [0, 0, 0]
        assert scheduler.global_hooks.has(MetricsHook)
        assert not scheduler.running

    async def test_bootstrap_without_metrics(self) -> None:
        settings = Settings(observability={"metrics": {"enabled": False}})
        scheduler = await bootstrap(settings, configure_logging=False)
        assert not scheduler.global_hooks.has(MetricsHook)
