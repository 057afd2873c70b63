"""配置模块测试

测试 TaggingSettings 默认值、验证、环境变量以及进程级默认配置
"""

import pytest
from pydantic import ValidationError

from ytag.config import (
    AppSettings,
    DatabaseSettings,
    LoggingSettings,
    TaggingSettings,
    configure_tagging,
    get_tagging_settings,
    reset_tagging_settings,
)
from ytag.orm.taggable import TagList, parse_tag_name


class TestTaggingSettings:
    """标签配置测试"""

    def test_defaults(self):
        settings = TaggingSettings()
        assert settings.namespace_separator == ":"
        assert settings.tag_list_delimiter == ", "
        assert settings.destroy_unused is False
        assert settings.cached_tag_list_column == "cached_tag_list"
        assert settings.find_or_create_max_attempts == 3
        assert settings.merge_max_attempts == 3

    def test_empty_separator_rejected(self):
        with pytest.raises(ValidationError):
            TaggingSettings(namespace_separator="")
        with pytest.raises(ValidationError):
            TaggingSettings(tag_list_delimiter="")

    def test_attempts_must_be_positive(self):
        with pytest.raises(ValidationError):
            TaggingSettings(find_or_create_max_attempts=0)
        with pytest.raises(ValidationError):
            TaggingSettings(merge_max_attempts=-1)

    @pytest.mark.parametrize("column", ["", "   ", None])
    def test_blank_cache_column_disables_caching(self, column):
        assert TaggingSettings(cached_tag_list_column=column).cached_tag_list_column is None

    def test_environment_variables(self, monkeypatch):
        monkeypatch.setenv("YTAG_TAG_NAMESPACE_SEPARATOR", "/")
        monkeypatch.setenv("YTAG_TAG_DESTROY_UNUSED", "true")
        settings = TaggingSettings()
        assert settings.namespace_separator == "/"
        assert settings.destroy_unused is True


class TestAppSettings:
    """聚合配置测试"""

    def test_defaults(self):
        settings = AppSettings()
        assert isinstance(settings.tagging, TaggingSettings)
        assert isinstance(settings.database, DatabaseSettings)
        assert isinstance(settings.logging, LoggingSettings)
        assert settings.logging.level == "INFO"

    def test_nested_values(self):
        settings = AppSettings(tagging={"namespace_separator": "/"}, database={"url": "sqlite://"})
        assert settings.tagging.namespace_separator == "/"
        assert settings.database.url == "sqlite://"

    def test_environment_read_at_instantiation(self, monkeypatch):
        monkeypatch.setenv("YTAG_DB_URL", "sqlite:///env.db")
        assert AppSettings().database.url == "sqlite:///env.db"


class TestDefaultTaggingSettings:
    """进程级默认配置测试"""

    def test_lazily_created(self):
        assert get_tagging_settings() is get_tagging_settings()

    def test_configure_with_overrides(self):
        configure_tagging(namespace_separator="/")
        configure_tagging(destroy_unused=True)

        settings = get_tagging_settings()
        assert settings.namespace_separator == "/"
        assert settings.destroy_unused is True

    def test_configure_with_settings_object(self):
        replacement = TaggingSettings(tag_list_delimiter="; ")
        assert configure_tagging(replacement) is replacement
        assert get_tagging_settings() is replacement

    def test_invalid_override_rejected(self):
        with pytest.raises(ValidationError):
            configure_tagging(namespace_separator="")
        assert get_tagging_settings().namespace_separator == ":"

    def test_reset(self):
        configure_tagging(namespace_separator="/")
        reset_tagging_settings()
        assert get_tagging_settings().namespace_separator == ":"

    def test_affects_subsequent_parsing(self):
        configure_tagging(namespace_separator="/", tag_list_delimiter="; ")
        assert parse_tag_name("music/cajun") == ("music", "cajun")
        assert parse_tag_name("music:cajun") == ("music:cajun", None)
        assert TagList.from_string("a; b") == ["a", "b"]
