"""测试模型定义"""

from typing import Optional

from sqlalchemy import String
from sqlalchemy.orm import Mapped, mapped_column

from ytag.orm import CoreModel
from ytag.orm.taggable import AbstractTag, AbstractTagging, TaggableMixin


class Tag(CoreModel, AbstractTag):
    """标签模型"""
    __tablename__ = "tags"


class Tagging(CoreModel, AbstractTagging):
    """标签关联模型"""
    __tablename__ = "taggings"


class Post(CoreModel, TaggableMixin):
    """文章模型（带标签列表缓存列）"""
    __tag_model__ = Tag
    __tagging_model__ = Tagging

    title: Mapped[str] = mapped_column(String(200))
    cached_tag_list: Mapped[Optional[str]] = mapped_column(String(500), nullable=True)


class Photo(CoreModel, TaggableMixin):
    """图片模型（无缓存列），与 Post 共享标签表"""
    __tag_model__ = Tag
    __tagging_model__ = Tagging

    title: Mapped[str] = mapped_column(String(200))


class Video(CoreModel):
    """不使用 Mixin 的模型，自定义类型标识"""
    __taggable_type__ = "media.video"

    title: Mapped[str] = mapped_column(String(200))
