"""测试辅助工具模块

提供测试共用的模型和数据准备函数。
"""

from .models import Tag, Tagging, Post, Photo, Video
from .tagging_helpers import (
    create_post,
    tag_record,
    tag_names,
    tagging_rows,
)

__all__ = [
    'Tag',
    'Tagging',
    'Post',
    'Photo',
    'Video',
    'create_post',
    'tag_record',
    'tag_names',
    'tagging_rows',
]
