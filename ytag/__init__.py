"""
ytag - 基于 SQLAlchemy 的命名空间标签库

提供标签名称解析、标签列表、按标签查询、标签统计、保存时同步、标签合并等功能
"""

from .version import __version__, __author__, __description__

# 导出异常
from .exceptions import (
    ErrorCode,
    TaggingException,
    ValidationException,
    UnsupportedOperationException,
    ConstraintRaceException,
    TransactionFailureException,
    Err,
)

# 导出配置
from .config import (
    TaggingSettings,
    AppSettings,
    get_tagging_settings,
    configure_tagging,
    reset_tagging_settings,
    load_yaml_config,
)

# 导出日志
from .log import setup_logger, setup_root_logger, get_logger

# 导出ORM与标签系统
from .orm import (
    Base,
    CoreModel,
    init_database,
    get_engine,
    db_session_scope,
    transaction,
    TagName,
    parse_tag_name,
    format_tag_name,
    TagList,
    AbstractTag,
    AbstractTagging,
    TagQueryBuilder,
    TagStore,
    TaggingLifecycle,
    TaggableSync,
    SyncResult,
    SyncState,
    TaggableMixin,
)

__all__ = [
    "__version__",
    "__author__",
    "__description__",
    "ErrorCode",
    "TaggingException",
    "ValidationException",
    "UnsupportedOperationException",
    "ConstraintRaceException",
    "TransactionFailureException",
    "Err",
    "TaggingSettings",
    "AppSettings",
    "get_tagging_settings",
    "configure_tagging",
    "reset_tagging_settings",
    "load_yaml_config",
    "setup_logger",
    "setup_root_logger",
    "get_logger",
    "Base",
    "CoreModel",
    "init_database",
    "get_engine",
    "db_session_scope",
    "transaction",
    "TagName",
    "parse_tag_name",
    "format_tag_name",
    "TagList",
    "AbstractTag",
    "AbstractTagging",
    "TagQueryBuilder",
    "TagStore",
    "TaggingLifecycle",
    "TaggableSync",
    "SyncResult",
    "SyncState",
    "TaggableMixin",
]
