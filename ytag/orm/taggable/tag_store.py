"""标签存储

标签的查找、创建、重命名、删除与合并。所有操作使用调用方传入的 Session，
不会提交调用方的外层事务。

使用示例:
    store = TagStore(session, Tag, Tagging)

    tag = store.find_or_create_by_name("music:cajun")
    store.namespaces()                      # ["music"]

    # 把 "music:zydeco" 合并到 "music:cajun"
    store.merge(store.find_by_name("music:zydeco"), "music:cajun")
"""

from typing import List, Optional, Type

from sqlalchemy import delete, func, select, update
from sqlalchemy.exc import IntegrityError
from sqlalchemy.orm import Session, aliased

from ytag.config import TaggingSettings, get_tagging_settings
from ytag.exceptions import Err
from ytag.log import tagging_logger
from ..transaction import call_with_conflict_retry, conflict_retry, transaction
from .query_builder import TagQueryBuilder, exact_name_condition
from .tag_model import get_taggable_type
from .tag_name import TagName, parse_tag_name

logger = tagging_logger.getChild("store")


class TagStore:
    """标签存储

    Args:
        session: 数据库会话
        tag_model: 标签模型类（继承 AbstractTag）
        tagging_model: 标签关联模型类（继承 AbstractTagging）
        settings: 标签配置，None 表示每次调用时读取进程级默认配置
    """

    def __init__(
        self,
        session: Session,
        tag_model: Type,
        tagging_model: Type,
        settings: Optional[TaggingSettings] = None,
    ):
        self.session = session
        self.tag_model = tag_model
        self.tagging_model = tagging_model
        self._settings = settings
        self.queries = TagQueryBuilder(tag_model, tagging_model, settings)

    @property
    def settings(self) -> TaggingSettings:
        return self._settings if self._settings is not None else get_tagging_settings()

    def parse(self, name: str) -> TagName:
        return parse_tag_name(name, self.settings.namespace_separator)

    def tag_name(self, tag) -> str:
        """标签的完整名称（使用本存储的分隔符）"""
        return tag.full_name(self.settings.namespace_separator)

    # ==================== 查找 ====================

    def _by_name(self, name: str):
        parsed = self.parse(name)
        if not parsed.namespace:
            return None
        Tag = self.tag_model
        return select(Tag).where(exact_name_condition(Tag, parsed)).order_by(Tag.id)

    def find_by_name(self, name: str):
        """按名称查找标签（忽略大小写）

        仅命名空间的名称只匹配 short_name 为空的标签，不匹配其下的子标签。
        """
        stmt = self._by_name(name)
        if stmt is None:
            return None
        return self.session.scalars(stmt.limit(1)).first()

    def find_all_by_name(self, name: str) -> List:
        """按名称查找所有匹配的标签（忽略大小写）"""
        stmt = self._by_name(name)
        if stmt is None:
            return []
        return list(self.session.scalars(stmt).all())

    def namespaces(self) -> List[str]:
        """所有命名空间，去重后升序排列"""
        Tag = self.tag_model
        stmt = select(Tag.namespace).where(Tag.namespace.is_not(None)).distinct().order_by(Tag.namespace)
        return list(self.session.scalars(stmt).all())

    def tagging_count(self, tag) -> int:
        """指向该标签的关联数量"""
        Tagging = self.tagging_model
        stmt = select(func.count()).select_from(Tagging).where(Tagging.tag_id == tag.id)
        return self.session.scalar(stmt) or 0

    def tags_for(self, taggable) -> List:
        """某条记录当前的标签，按关联创建顺序排列"""
        Tag, Tagging = self.tag_model, self.tagging_model
        stmt = (
            select(Tag)
            .join(Tagging, Tagging.tag_id == Tag.id)
            .where(
                Tagging.taggable_id == taggable.id,
                Tagging.taggable_type == get_taggable_type(taggable),
            )
            .order_by(Tagging.id)
        )
        return list(self.session.scalars(stmt).unique().all())

    # ==================== 创建 ====================

    def _insert(self, parsed: TagName):
        tag = self.tag_model(namespace=parsed.namespace, short_name=parsed.short_name)
        with self.session.begin_nested():
            self.session.add(tag)
        return tag

    def find_or_create_by_name(self, name: str):
        """查找标签，不存在时创建

        插入在保存点中进行。唯一索引冲突说明其他写入者已经创建了同名标签，
        回滚保存点后重新查找并返回那一行。

        Raises:
            ValidationException: 名称为空
            ConstraintRaceException: 重试次数用尽仍然冲突
        """
        parsed = self.parse(name)
        if not parsed.namespace:
            raise Err.blank()

        def attempt():
            tag = self.find_by_name(name)
            if tag is not None:
                return tag
            tag = self._insert(parsed)
            logger.info(f"创建标签: {self.tag_name(tag)} (id={tag.id})")
            return tag

        return call_with_conflict_retry(
            attempt,
            max_attempts=self.settings.find_or_create_max_attempts,
            name=f"find_or_create_by_name({name!r})",
        )

    def create(self, name: str):
        """创建标签

        Raises:
            ValidationException: 名称为空（BLANK_NAME）或已存在（DUPLICATE_ENTRY）
        """
        parsed = self.parse(name)
        if not parsed.namespace:
            raise Err.blank()
        if self.find_by_name(name) is not None:
            raise Err.duplicate(f"标签已存在: {name}", field="name")
        try:
            tag = self._insert(parsed)
        except IntegrityError as e:
            raise Err.duplicate(f"标签已存在: {name}", field="name") from e
        logger.info(f"创建标签: {self.tag_name(tag)} (id={tag.id})")
        return tag

    def rename(self, tag, new_name: str):
        """重命名标签

        Raises:
            ValidationException: 新名称为空，或已被其他标签使用
        """
        parsed = self.parse(new_name)
        if not parsed.namespace:
            raise Err.blank()
        existing = self.find_by_name(new_name)
        if existing is not None and existing.id != tag.id:
            raise Err.duplicate(f"标签已存在: {new_name}", field="name")

        old_name = self.tag_name(tag)
        try:
            with self.session.begin_nested():
                tag.namespace = parsed.namespace
                tag.short_name = parsed.short_name
        except IntegrityError as e:
            raise Err.duplicate(f"标签已存在: {new_name}", field="name") from e
        logger.info(f"重命名标签: {old_name} → {self.tag_name(tag)}")
        return tag

    # ==================== 删除与合并 ====================

    def delete(self, tag) -> None:
        """删除标签及其所有关联"""
        Tagging = self.tagging_model
        name = self.tag_name(tag)
        with transaction(self.session, "delete_tag"):
            removed = self.session.execute(delete(Tagging).where(Tagging.tag_id == tag.id)).rowcount
            self.session.delete(tag)
            self.session.flush()
        logger.info(f"删除标签: {name}，同时删除 {removed} 条关联")

    def merge(self, source, target_name: str):
        """把 source 合并到名为 target_name 的标签

        目标不存在或就是 source 时不做任何事，返回 source。
        否则在一个事务中:
            1. 删除 source 上、记录已带有目标标签的关联（每条记录只保留一条）
            2. 其余关联改为指向目标标签
            3. 删除 source

        改指向时如果并发写入造成唯一约束冲突，回滚保存点并重新计算。

        Returns:
            目标标签，或未合并时的 source
        """
        session = self.session
        Tagging = self.tagging_model
        other = aliased(Tagging)
        source_name = self.tag_name(source)

        @conflict_retry(max_attempts=self.settings.merge_max_attempts, name="merge")
        def repoint(target):
            with session.begin_nested():
                already_tagged = (
                    select(other.id)
                    .where(
                        other.tag_id == target.id,
                        other.taggable_id == Tagging.taggable_id,
                        other.taggable_type == Tagging.taggable_type,
                    )
                    .exists()
                )
                dropped = session.execute(
                    delete(Tagging)
                    .where(Tagging.tag_id == source.id, already_tagged)
                    .execution_options(synchronize_session="fetch")
                ).rowcount
                moved = session.execute(
                    update(Tagging)
                    .where(Tagging.tag_id == source.id)
                    .values(tag_id=target.id)
                    .execution_options(synchronize_session="fetch")
                ).rowcount
            return dropped, moved

        with transaction(session, "merge"):
            target = self.find_by_name(target_name)
            if target is None or target.id == source.id:
                logger.debug(f"合并跳过: 目标 {target_name!r} 不存在或与源标签相同")
                return source
            dropped, moved = repoint(target)
            session.delete(source)
            session.flush()

        logger.info(
            f"合并标签: {source_name} → {self.tag_name(target)}，"
            f"改指向 {moved} 条关联，丢弃重复关联 {dropped} 条"
        )
        return target


__all__ = ["TagStore"]
