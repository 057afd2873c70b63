"""标签模型定义

提供标签系统的抽象模型定义。具体表名由业务项目决定。

使用示例:
    from ytag.orm import CoreModel
    from ytag.orm.taggable import AbstractTag, AbstractTagging

    class Tag(CoreModel, AbstractTag):
        __tablename__ = "tags"

    class Tagging(CoreModel, AbstractTagging):
        __tablename__ = "taggings"
"""

from typing import Any, Optional

from sqlalchemy import Index, Integer, String, UniqueConstraint, text
from sqlalchemy.orm import Mapped, declared_attr, mapped_column, validates

from ytag.exceptions import Err
from .tag_name import format_tag_name, parse_tag_name

# 支持部分（带 WHERE）唯一索引的数据库
PARTIAL_INDEX_DIALECTS = ("sqlite", "postgresql", "mssql")


class AbstractTag:
    """标签抽象模型

    标签由命名空间和可选的短名称组成，(namespace, short_name) 唯一，
    包括短名称为空（仅命名空间标签）的情况。

    字段说明:
        - namespace: 命名空间（不能为空白）
        - short_name: 短名称，空字符串规范化为 NULL

    使用示例:
        class Tag(CoreModel, AbstractTag):
            __tablename__ = "tags"

        tag = Tag(name="music:cajun")
        tag.namespace    # "music"
        tag.short_name   # "cajun"
        tag.name         # "music:cajun"
    """

    # 命名空间
    namespace: Mapped[str] = mapped_column(
        String(255),
        nullable=False,
        index=True,
        comment="命名空间"
    )

    # 短名称（仅命名空间标签为 NULL）
    short_name: Mapped[Optional[str]] = mapped_column(
        String(255),
        nullable=True,
        comment="短名称"
    )

    @declared_attr.directive
    def __table_args__(cls):
        table = cls.__tablename__
        return (
            UniqueConstraint("namespace", "short_name", name=f"uq_{table}_namespace_short_name"),
            # 多数数据库认为 NULL 互不相等，仅命名空间的标签需要单独的部分唯一索引；
            # 不支持部分索引的数据库不创建该索引
            Index(
                f"uq_{table}_namespace_only",
                "namespace",
                unique=True,
                sqlite_where=text("short_name IS NULL"),
                postgresql_where=text("short_name IS NULL"),
                mssql_where=text("short_name IS NULL"),
            ).ddl_if(dialect=PARTIAL_INDEX_DIALECTS),
        )

    @validates("namespace")
    def _validate_namespace(self, key: str, value: Optional[str]) -> str:
        if value is None or not value.strip():
            raise Err.blank("标签命名空间不能为空")
        return value.strip()

    @validates("short_name")
    def _validate_short_name(self, key: str, value: Optional[str]) -> Optional[str]:
        if value is None or not value.strip():
            return None
        return value.strip()

    # ==================== 名称 ====================

    @property
    def name(self) -> str:
        """完整名称（使用进程级默认分隔符）"""
        return format_tag_name(self.namespace, self.short_name)

    @name.setter
    def name(self, value: str) -> None:
        parsed = parse_tag_name(value)
        self.namespace = parsed.namespace
        self.short_name = parsed.short_name

    def full_name(self, separator: Optional[str] = None) -> str:
        """使用指定分隔符的完整名称"""
        return format_tag_name(self.namespace, self.short_name, separator)

    def __str__(self) -> str:
        return self.name


class AbstractTagging:
    """标签关联抽象模型（多态关联）

    通过 taggable_type + taggable_id 实现多态关联，
    任意带整数主键的模型都可以使用同一套标签系统。

    字段说明:
        - tag_id: 标签ID
        - taggable_type: 被标记模型的类型（见 get_taggable_type）
        - taggable_id: 被标记记录的ID

    索引:
        - (taggable_id, taggable_type): 快速查询某记录的所有标签
        - (tag_id, taggable_type, taggable_id) 唯一: 同一记录不会被同一标签标记两次

    使用示例:
        class Tagging(CoreModel, AbstractTagging):
            __tablename__ = "taggings"
    """

    # 标签ID
    tag_id: Mapped[int] = mapped_column(
        Integer,
        nullable=False,
        index=True,
        comment="标签ID"
    )

    # 被标记记录ID
    taggable_id: Mapped[int] = mapped_column(
        Integer,
        nullable=False,
        comment="被标记记录ID"
    )

    # 被标记模型类型
    taggable_type: Mapped[str] = mapped_column(
        String(100),
        nullable=False,
        comment="被标记模型类型"
    )

    @declared_attr.directive
    def __table_args__(cls):
        table = cls.__tablename__
        return (
            Index(f"ix_{table}_taggable", "taggable_id", "taggable_type"),
            UniqueConstraint("tag_id", "taggable_type", "taggable_id", name=f"uq_{table}_tag_taggable"),
        )


def get_taggable_type(taggable: Any) -> str:
    """被标记模型的类型标识

    优先使用类属性 __taggable_type__，否则使用类名。

    Args:
        taggable: 模型类或实例
    """
    cls = taggable if isinstance(taggable, type) else type(taggable)
    return getattr(cls, "__taggable_type__", None) or cls.__name__


__all__ = [
    "AbstractTag",
    "AbstractTagging",
    "get_taggable_type",
]
