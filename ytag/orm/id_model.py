"""ID模型基类

提供声明基类和自增主键。

使用说明：
    IdModel 是 CoreModel 的父类，专门负责 ID 相关的功能。
    一般情况下，用户应该使用 CoreModel，而不是直接使用 IdModel。
"""

from __future__ import annotations

from sqlalchemy import Integer
from sqlalchemy.orm import DeclarativeBase, Mapped, mapped_column


class Base(DeclarativeBase):
    """声明基类"""


class IdModel(Base):
    """ID模型基类

    提供功能：
    - 整数自增主键（标签关联表的 taggable_id 依赖整数主键）

    使用示例:
        class Photo(IdModel):
            __tablename__ = "photo"
            title = mapped_column(String(200))
    """
    __abstract__ = True

    id: Mapped[int] = mapped_column(Integer, primary_key=True, autoincrement=True, comment="主键")
