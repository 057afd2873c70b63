"""ORM 模块

- Base / IdModel / CoreModel: 声明基类与基础模型
- db_session: 引擎与会话管理
- transaction: 事务与唯一约束冲突重试
- taggable: 标签系统
"""

from .id_model import Base, IdModel
from .core_model import CoreModel
from .db_session import (
    db_manager,
    init_database,
    get_engine,
    db_session_scope,
    enable_sqlite_savepoints,
)
from .transaction import transaction, call_with_conflict_retry, conflict_retry
from .taggable import (
    TagName,
    parse_tag_name,
    format_tag_name,
    TagList,
    AbstractTag,
    AbstractTagging,
    get_taggable_type,
    TagQueryBuilder,
    TagStore,
    TaggingLifecycle,
    TaggableSync,
    SyncResult,
    SyncState,
    TaggableMixin,
)

__all__ = [
    "Base",
    "IdModel",
    "CoreModel",
    "db_manager",
    "init_database",
    "get_engine",
    "db_session_scope",
    "enable_sqlite_savepoints",
    "transaction",
    "call_with_conflict_retry",
    "conflict_retry",
    "TagName",
    "parse_tag_name",
    "format_tag_name",
    "TagList",
    "AbstractTag",
    "AbstractTagging",
    "get_taggable_type",
    "TagQueryBuilder",
    "TagStore",
    "TaggingLifecycle",
    "TaggableSync",
    "SyncResult",
    "SyncState",
    "TaggableMixin",
]
