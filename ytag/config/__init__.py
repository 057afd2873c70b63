"""配置模块

提供配置管理功能：
- TaggingSettings: 标签配置（分隔符、缓存列、自动清理等）
- AppSettings: 聚合配置，支持 YAML + 环境变量
- ConfigLoader: YAML 配置加载器
- 进程级默认标签配置

快速开始:
    from ytag.config import AppSettings, load_yaml_config, configure_tagging

    settings = load_yaml_config("config/settings.yaml", AppSettings)
    configure_tagging(settings.tagging)

配置来源: YAML 文件中的段 > 环境变量 > 默认值
"""

from .settings import (
    AppSettings,
    TaggingSettings,
    DatabaseSettings,
    LoggingSettings,
    get_tagging_settings,
    configure_tagging,
    reset_tagging_settings,
)

from .loader import (
    ConfigLoader,
    load_yaml_config,
)

__all__ = [
    "AppSettings",
    "TaggingSettings",
    "DatabaseSettings",
    "LoggingSettings",
    "get_tagging_settings",
    "configure_tagging",
    "reset_tagging_settings",
    "ConfigLoader",
    "load_yaml_config",
]
