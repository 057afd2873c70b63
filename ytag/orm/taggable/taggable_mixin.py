"""标签管理 Mixin

把 TagStore、TagQueryBuilder 和 TaggableSync 包装成业务模型上的方法。
记录通过 object_session() 获取所属的 Session。

使用示例:
    from ytag.orm import CoreModel
    from ytag.orm.taggable import TaggableMixin, AbstractTag, AbstractTagging

    # 定义标签模型
    class Tag(CoreModel, AbstractTag):
        __tablename__ = "tags"

    class Tagging(CoreModel, AbstractTagging):
        __tablename__ = "taggings"

    # 业务模型使用
    class Post(CoreModel, TaggableMixin):
        __tag_model__ = Tag
        __tagging_model__ = Tagging

        title = mapped_column(String(200))
        cached_tag_list = mapped_column(String(500), nullable=True)

    # 使用
    post = Post(title="Zydeco")
    session.add(post)
    session.flush()

    post.tag_list = "music:cajun, jazz"
    post.save_tags()
    post.has_tag("Jazz")                           # True

    Post.find_tagged_with(session, "music")        # [post]
"""

from typing import Any, List, Optional, Type, Union

from sqlalchemy import Select
from sqlalchemy.orm import Session, object_session

from ytag.config import TaggingSettings
from ytag.exceptions import Err
from .query_builder import TagQueryBuilder
from .tag_list import TagList
from .tag_store import TagStore
from .taggable_sync import SyncResult, TaggableSync


class TaggableMixin:
    """标签管理 Mixin

    配置属性:
        __tag_model__: 标签模型类（必须设置）
        __tagging_model__: 标签关联模型类（必须设置）
        __taggable_type__: 关联表中的类型标识，默认为类名
        __tag_settings__: 标签配置，默认使用进程级配置

    宿主在保存流程中调用:
        post.write_cached_tag_list()   # flush 之前
        post.save_tags()               # flush 之后
        post.destroy_taggings()        # 删除记录之后
        post.reload_tag_list()         # 重新加载记录之后
    """

    # ==================== 配置 ====================

    __tag_model__: Optional[Type] = None

    __tagging_model__: Optional[Type] = None

    __taggable_type__: Optional[str] = None

    __tag_settings__: Optional[TaggingSettings] = None

    # ==================== 内部方法 ====================

    @classmethod
    def _tag_models(cls):
        tag_model = getattr(cls, "__tag_model__", None)
        if tag_model is None:
            raise Err.not_configured(f"{cls.__name__} 必须设置 __tag_model__ 属性")
        tagging_model = getattr(cls, "__tagging_model__", None)
        if tagging_model is None:
            raise Err.not_configured(f"{cls.__name__} 必须设置 __tagging_model__ 属性")
        return tag_model, tagging_model

    @classmethod
    def tag_query_builder(cls) -> TagQueryBuilder:
        tag_model, tagging_model = cls._tag_models()
        return TagQueryBuilder(tag_model, tagging_model, cls.__tag_settings__)

    @classmethod
    def tag_store(cls, session: Session) -> TagStore:
        tag_model, tagging_model = cls._tag_models()
        return TagStore(session, tag_model, tagging_model, cls.__tag_settings__)

    def _tag_sync(self, require_session: bool = False) -> TaggableSync:
        session = object_session(self)
        if session is None and require_session:
            raise Err.invalid(f"{self.__class__.__name__} 记录尚未加入 Session")
        return TaggableSync(self.tag_store(session), settings=self.__tag_settings__)

    # ==================== 标签列表 ====================

    @property
    def tag_list(self) -> TagList:
        """标签列表（读写都会使下一次 save_tags() 执行同步）"""
        return self._tag_sync().tag_list(self)

    @tag_list.setter
    def tag_list(self, tags: Union[str, List[str], TagList]) -> None:
        self._tag_sync().set_tag_list(self, tags)

    def add_tags(self, *names: str) -> TagList:
        """追加标签，保存后生效

        Example:
            post.add_tags("music:cajun", "jazz")
        """
        return self.tag_list.add(*names)

    def remove_tags(self, *names: str) -> TagList:
        """移除标签（忽略大小写），保存后生效"""
        return self.tag_list.remove(*names)

    def has_tag(self, name: str) -> bool:
        """是否带有该标签（忽略大小写）"""
        return self.tag_list.contains(name)

    # ==================== 生命周期 ====================

    def write_cached_tag_list(self) -> None:
        self._tag_sync().write_cached_tag_list(self)

    def save_tags(self) -> SyncResult:
        return self._tag_sync(require_session=True).save_tags(self)

    def reload_tag_list(self) -> None:
        self._tag_sync().reload(self)

    def destroy_taggings(self) -> List[int]:
        return self._tag_sync(require_session=True).destroy_taggings(self)

    def tag_counts(self, **options: Any) -> List:
        """本记录所带标签在同类记录上的使用次数

        参数同 tag_counts_query()，额外条件会与本记录的标签条件一起以 AND 连接。
        """
        sync = self._tag_sync(require_session=True)
        builder = self.tag_query_builder()
        conditions = [builder.match_predicate(sync.tag_list(self))]
        extra = options.pop("conditions", None)
        if extra is not None:
            conditions.extend(extra if isinstance(extra, (list, tuple)) else [extra])
        stmt = builder.tag_counts(type(self), conditions=conditions, **options)
        return list(sync.session.execute(stmt).all())

    # ==================== 类方法：查询 ====================

    @classmethod
    def tagged_with(cls, tags, **options: Any) -> Select:
        """带有指定标签的记录查询，参数同 TagQueryBuilder.find_tagged_with()"""
        return cls.tag_query_builder().find_tagged_with(cls, tags, **options)

    @classmethod
    def find_tagged_with(cls, session: Session, tags, **options: Any) -> List:
        """带有指定标签的记录

        Example:
            Post.find_tagged_with(session, "music")                  # 包含 music:cajun
            Post.find_tagged_with(session, "music:cajun, jazz", match_all=True)
            Post.find_tagged_with(session, ["music"], exclude=True)
        """
        return list(session.scalars(cls.tagged_with(tags, **options)).all())

    @classmethod
    def tag_counts_query(cls, **options: Any) -> Select:
        """标签使用次数查询，参数同 TagQueryBuilder.tag_counts()"""
        return cls.tag_query_builder().tag_counts(cls, **options)

    @classmethod
    def count_by_tag(cls, session: Session, tag) -> int:
        """带有该标签的记录数"""
        return cls.tag_query_builder().count_for_tag(session, tag, cls)


__all__ = ["TaggableMixin"]
