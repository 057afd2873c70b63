"""
ORM基础模型

提供主键、创建时间和自动表名
"""

from __future__ import annotations

from datetime import datetime

from sqlalchemy import DateTime
from sqlalchemy.orm import Mapped, mapped_column, declared_attr

from .id_model import IdModel
from .utils import to_snake_case


class CoreModel(IdModel):
    """ORM基础模型类

    继承自 IdModel，提供功能：
    - 整数自增主键（继承自 IdModel）
    - 自动表名生成（驼峰转下划线）
    - 创建时间字段

    使用示例:
        from ytag.orm import CoreModel, AbstractTag, AbstractTagging

        class Tag(CoreModel, AbstractTag):
            __tablename__ = "tags"

        class Tagging(CoreModel, AbstractTagging):
            __tablename__ = "taggings"

        class Post(CoreModel):          # 表名自动生成为 "post"
            text: Mapped[str] = mapped_column(Text)
    """
    __abstract__ = True

    # 自动根据类名创建表名
    @declared_attr.directive
    def __tablename__(cls) -> str:
        """驼峰命名转下划线（支持 E2E、API 等缩写）"""
        name = cls.__name__
        if '_' in name:
            raise ValueError(f'{name}字符中包含下划线，无法转换')
        return to_snake_case(name)

    # 显式赋值优先；未赋值时使用本地时间，便于按时间区间统计
    created_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=False),
        default=datetime.now,
        nullable=False,
        comment="创建时间"
    )

    def __repr__(self):
        return f"<{self.__class__.__name__} id={self.id}>"
