"""Unit tests for tree-service settings."""
from __future__ import annotations

import pytest
from pydantic import ValidationError

from tree_service.core.settings import (
    DatabaseSettings,
    LoggingSettings,
    TreeSettings,
    clear_all_caches,
    get_db_settings,
    get_logging_settings,
    get_tree_settings,
)
from tree_service.core.settings.yaml_sources import ConfDYamlConfigSettingsSource


@pytest.mark.unit
class TestTreeSettings:
    """Test suite for TreeSettings."""

    def test_defaults(self):
        settings = TreeSettings()

        assert settings.primary_key == "id"
        assert settings.foreign_key == "parent_id"
        assert settings.order is None
        assert settings.max_depth == 100_000
        assert settings.cascade_on_delete is True

    def test_env_prefix(self, monkeypatch):
        monkeypatch.setenv("TREE_FOREIGN_KEY", "up_id")
        monkeypatch.setenv("TREE_CASCADE_ON_DELETE", "false")

        settings = TreeSettings()

        assert settings.foreign_key == "up_id"
        assert settings.cascade_on_delete is False

    def test_frozen(self):
        settings = TreeSettings()

        with pytest.raises(ValidationError):
            settings.max_depth = 5

    @pytest.mark.parametrize(
        "kwargs",
        [{"max_depth": 0}, {"foreign_key": "bad name"}, {"order": "name sideways"}],
    )
    def test_invalid(self, kwargs):
        with pytest.raises(ValidationError):
            TreeSettings(**kwargs)

    def test_blank_order_is_none(self):
        assert TreeSettings(order="  ").order is None

    def test_yaml_conf_d(self, monkeypatch, tmp_path):
        (tmp_path / "tree.yaml").write_text("foreign_key: up_id\nmax_depth: 10\n")
        confd = tmp_path / "tree.d"
        confd.mkdir()
        (confd / "10-order.yaml").write_text("order: name desc\n")
        (confd / "20-depth.yaml").write_text("max_depth: 20\n")
        monkeypatch.setenv("TREE_CONFIG_DIR", str(tmp_path))

        settings = TreeSettings()

        assert settings.foreign_key == "up_id"
        assert settings.order == "name desc"
        assert settings.max_depth == 20

    def test_yaml_source_lists_files(self, monkeypatch, tmp_path):
        (tmp_path / "tree.yaml").write_text("max_depth: 3\n")
        monkeypatch.setenv("TREE_CONFIG_DIR", str(tmp_path))

        source = ConfDYamlConfigSettingsSource(
            TreeSettings, yaml_file="tree.yaml", confd_dir="tree.d", config_dir_env="TREE_CONFIG_DIR"
        )

        assert source.yaml_files == [tmp_path / "tree.yaml"]
        assert "tree.yaml" in repr(source)


@pytest.mark.unit
class TestDatabaseSettings:
    """Test suite for DatabaseSettings."""

    def test_default_is_sqlite(self, monkeypatch):
        monkeypatch.delenv("DB_DSN", raising=False)
        monkeypatch.delenv("DATABASE_URL", raising=False)

        settings = DatabaseSettings()

        assert settings.dsn.startswith("sqlite+aiosqlite://")
        assert settings.is_sqlite is True
        assert settings.echo is False

    def test_database_url_alias(self, monkeypatch):
        monkeypatch.delenv("DB_DSN", raising=False)
        monkeypatch.setenv("DATABASE_URL", "postgresql+psycopg://u:p@db/tree")

        settings = DatabaseSettings()

        assert settings.dsn == "postgresql+psycopg://u:p@db/tree"
        assert settings.is_sqlite is False

    def test_init_value(self):
        assert DatabaseSettings(dsn="sqlite+aiosqlite:///:memory:").dsn == "sqlite+aiosqlite:///:memory:"

    def test_rejects_non_url(self):
        with pytest.raises(ValidationError):
            DatabaseSettings(dsn="tree.db")


@pytest.mark.unit
class TestLoggingSettings:
    """Test suite for LoggingSettings."""

    def test_defaults(self):
        settings = LoggingSettings()

        assert settings.service_name == "tree-service"
        assert settings.level == "WARNING"
        assert settings.effective_file_path is None

    def test_level_normalized(self):
        settings = LoggingSettings(level="debug")

        assert settings.level == "DEBUG"
        assert settings.level_int == 10

    def test_json_alias(self, monkeypatch):
        monkeypatch.setenv("LOG_JSON", "true")

        assert LoggingSettings().json_logs is True

    def test_to_logging_kwargs(self, tmp_path):
        path = tmp_path / "tree.jsonl"
        settings = LoggingSettings(file_enabled=True, file_path=path, level="INFO")

        kwargs = settings.to_logging_kwargs()

        assert kwargs["log_level"] == "INFO"
        assert kwargs["file_path"] == str(path)
        assert kwargs["service_name"] == "tree-service"


@pytest.mark.unit
class TestLoaders:
    """Cached settings loaders."""

    def test_cached(self):
        assert get_tree_settings() is get_tree_settings()
        assert get_db_settings() is get_db_settings()
        assert get_logging_settings() is get_logging_settings()

    def test_clear_all_caches(self, monkeypatch):
        first = get_tree_settings()
        monkeypatch.setenv("TREE_MAX_DEPTH", "9")

        assert get_tree_settings() is first
        clear_all_caches()
        assert get_tree_settings().max_depth == 9
