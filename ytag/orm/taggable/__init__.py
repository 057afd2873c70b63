"""标签系统模块

提供带命名空间的标签功能："music" 是仅命名空间的标签，"music:cajun" 是带短名称的标签。
查询时仅命名空间的标签匹配其自身和其下所有子标签。

导出:
    - TagName / parse_tag_name / format_tag_name: 名称解析与格式化
    - TagList: 有序、忽略大小写去重的标签列表
    - AbstractTag / AbstractTagging: 标签和关联的抽象模型
    - TagStore: 查找、创建、重命名、删除、合并标签
    - TagQueryBuilder: 构建按标签查询和标签统计的 Select
    - TaggableSync / TaggingLifecycle: 保存时同步关联、删除后清理
    - TaggableMixin: 业务模型上的便捷方法

使用示例:
    from ytag.orm import CoreModel
    from ytag.orm.taggable import AbstractTag, AbstractTagging, TaggableMixin

    # 1. 定义标签模型（项目级别，一次性）
    class Tag(CoreModel, AbstractTag):
        __tablename__ = "tags"

    class Tagging(CoreModel, AbstractTagging):
        __tablename__ = "taggings"

    # 2. 业务模型使用 TaggableMixin
    class Post(CoreModel, TaggableMixin):
        __tag_model__ = Tag
        __tagging_model__ = Tagging

        title = mapped_column(String(200))

    # 3. 使用标签功能
    post.tag_list = "music:cajun, jazz"
    post.save_tags()

    Post.find_tagged_with(session, "music")                 # 匹配 music:cajun
    Post.find_tagged_with(session, "jazz", exclude=True)
    session.execute(Post.tag_counts_query(at_least=2)).all()
"""

from .tag_name import TagName, parse_tag_name, format_tag_name
from .tag_list import TagList
from .tag_model import AbstractTag, AbstractTagging, get_taggable_type
from .query_builder import TagQueryBuilder, exact_name_condition
from .tag_store import TagStore
from .lifecycle import TaggingLifecycle
from .taggable_sync import TaggableSync, SyncResult, SyncState
from .taggable_mixin import TaggableMixin

__all__ = [
    "TagName",
    "parse_tag_name",
    "format_tag_name",
    "TagList",
    "AbstractTag",
    "AbstractTagging",
    "get_taggable_type",
    "TagQueryBuilder",
    "exact_name_condition",
    "TagStore",
    "TaggingLifecycle",
    "TaggableSync",
    "SyncResult",
    "SyncState",
    "TaggableMixin",
]
