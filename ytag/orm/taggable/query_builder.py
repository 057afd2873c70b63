"""标签查询构建器

只构建查询（SQLAlchemy Select），不执行。调用方用自己的 Session 执行：

    builder = TagQueryBuilder(Tag, Tagging)
    posts = session.scalars(builder.find_tagged_with(Post, "music")).all()
    rows = session.execute(builder.tag_counts(Post, at_least=2)).all()

所有调用方传入的值都以绑定参数的形式出现在查询中。

匹配规则:
    - 带短名称的标签（"music:cajun"）只匹配该命名空间下的该短名称
    - 仅命名空间的标签（"music"）匹配命名空间本身及其下所有短名称
    - 比较忽略大小写，"%" 和 "_" 按字面匹配
"""

from datetime import datetime
from typing import Any, Iterable, Optional, Sequence, Type, Union

from sqlalchemy import Select, and_, false, func, inspect, or_, select
from sqlalchemy.orm import Session, aliased
from sqlalchemy.sql.elements import ColumnElement

from ytag.config import TaggingSettings, get_tagging_settings
from ytag.exceptions import Err
from ytag.log import tagging_logger
from ..utils import LIKE_ESCAPE, escape_like
from .tag_list import TagList
from .tag_model import AbstractTag, get_taggable_type
from .tag_name import TagName, parse_tag_name

logger = tagging_logger.getChild("query")

TagsArg = Union[str, Iterable[Union[str, AbstractTag]], TagList]
ConditionsArg = Union[ColumnElement, Sequence[ColumnElement], None]


def _ilike(column, value: str) -> ColumnElement:
    return column.ilike(escape_like(value), escape=LIKE_ESCAPE)


def exact_name_condition(tag_entity, tag_name: TagName) -> ColumnElement:
    """按标签身份精确匹配（忽略大小写）

    与 match_predicate 不同，仅命名空间的名称只匹配 short_name 为 NULL 的行。
    """
    namespace_clause = _ilike(tag_entity.namespace, tag_name.namespace)
    if tag_name.is_bare:
        return and_(namespace_clause, tag_entity.short_name.is_(None))
    return and_(namespace_clause, _ilike(tag_entity.short_name, tag_name.short_name))


def _apply_conditions(stmt: Select, conditions: ConditionsArg) -> Select:
    if conditions is None:
        return stmt
    if isinstance(conditions, (list, tuple)):
        return stmt.where(*conditions)
    return stmt.where(conditions)


class TagQueryBuilder:
    """标签查询构建器

    Args:
        tag_model: 标签模型类（继承 AbstractTag）
        tagging_model: 标签关联模型类（继承 AbstractTagging）
        settings: 标签配置，None 表示每次调用时读取进程级默认配置
    """

    def __init__(self, tag_model: Type, tagging_model: Type, settings: Optional[TaggingSettings] = None):
        self.tag_model = tag_model
        self.tagging_model = tagging_model
        self._settings = settings

    @property
    def settings(self) -> TaggingSettings:
        return self._settings if self._settings is not None else get_tagging_settings()

    # ==================== 名称处理 ====================

    def parse(self, name: str) -> TagName:
        return parse_tag_name(name, self.settings.namespace_separator)

    def normalize_tags(self, tags: TagsArg) -> TagList:
        """把字符串、名称序列或标签对象序列统一为 TagList

        单个字符串按标签列表分隔符解析。
        """
        settings = self.settings
        if isinstance(tags, TagList):
            return tags
        if tags is None:
            return TagList(delimiter=settings.tag_list_delimiter)
        if isinstance(tags, str):
            return TagList.from_string(tags, delimiter=settings.tag_list_delimiter)
        names = [
            tag.full_name(settings.namespace_separator) if isinstance(tag, AbstractTag) else str(tag)
            for tag in tags
        ]
        return TagList(names, delimiter=settings.tag_list_delimiter)

    @staticmethod
    def _primary_key(taggable_model: Type):
        return inspect(taggable_model).primary_key[0]

    # ==================== 匹配条件 ====================

    def match_predicate(self, tags: TagsArg, tag_entity: Any = None) -> ColumnElement:
        """标签匹配条件

        每个名称生成一个子句，子句之间用 OR 连接，整体带括号。

        Args:
            tags: 标签名称
            tag_entity: 标签模型或其别名，默认为 tag_model

        Returns:
            条件表达式；名称为空时为恒假条件
        """
        entity = tag_entity if tag_entity is not None else self.tag_model
        clauses = []
        for name in self.normalize_tags(tags):
            parsed = self.parse(name)
            if parsed.is_bare:
                clauses.append(_ilike(entity.namespace, parsed.namespace))
            else:
                clauses.append(and_(
                    _ilike(entity.namespace, parsed.namespace),
                    _ilike(entity.short_name, parsed.short_name),
                ))
        if not clauses:
            return false()
        return or_(*clauses).self_group()

    # ==================== 按标签查询记录 ====================

    def find_tagged_with(
        self,
        taggable_model: Type,
        tags: TagsArg,
        exclude: bool = False,
        match_all: bool = False,
        conditions: ConditionsArg = None,
    ) -> Select:
        """查询带有指定标签的记录

        三种模式:
            - 默认（任意匹配）: 带有任意一个标签的记录，结果去重
            - exclude: 不带有任何一个标签的记录
            - match_all: 带有全部标签的记录，只支持带短名称的标签

        Args:
            taggable_model: 被标记的模型类
            tags: 标签名称（字符串按分隔符解析）
            exclude: 排除模式
            match_all: 全部匹配模式
            conditions: 额外条件，以 AND 连接

        Returns:
            Select 对象；tags 为空时返回恒为空结果的查询

        Raises:
            UnsupportedOperationException: exclude 与 match_all 同时指定，
                或 match_all 中含有仅命名空间的标签
        """
        names = self.normalize_tags(tags)

        if exclude and match_all:
            raise Err.unsupported("exclude 和 match_all 不能同时使用")
        if match_all:
            bare = [name for name in names if self.parse(name).is_bare]
            if bare:
                raise Err.unsupported(
                    "match_all 不支持仅命名空间的标签，一个命名空间可能匹配多个标签",
                    details=bare,
                )

        if not names:
            return select(taggable_model).where(false())

        Tag, Tagging = self.tag_model, self.tagging_model
        taggable_type = get_taggable_type(taggable_model)
        pk = self._primary_key(taggable_model)

        if exclude:
            tagged_ids = (
                select(Tagging.taggable_id)
                .join(Tag, Tag.id == Tagging.tag_id)
                .where(Tagging.taggable_type == taggable_type, self.match_predicate(names))
            )
            stmt = select(taggable_model).where(pk.not_in(tagged_ids))
        elif match_all:
            identities = {(p.namespace.lower(), p.short_name.lower()) for p in map(self.parse, names)}
            matched = (
                select(func.count(Tagging.id))
                .select_from(Tagging)
                .join(Tag, Tag.id == Tagging.tag_id)
                .where(
                    Tagging.taggable_id == pk,
                    Tagging.taggable_type == taggable_type,
                    self.match_predicate(names),
                )
                .scalar_subquery()
            )
            stmt = select(taggable_model).where(matched == len(identities))
        else:
            table = inspect(taggable_model).local_table.name
            taggings = aliased(Tagging, name=f"{table}_taggings")
            tags_alias = aliased(Tag, name=f"{table}_tags")
            stmt = (
                select(taggable_model)
                .join(taggings, and_(taggings.taggable_id == pk, taggings.taggable_type == taggable_type))
                .join(tags_alias, tags_alias.id == taggings.tag_id)
                .where(self.match_predicate(names, tags_alias))
                .distinct()
            )

        mode = "exclude" if exclude else ("match_all" if match_all else "any")
        logger.debug(f"构建 find_tagged_with 查询: {taggable_type} mode={mode} tags={names.to_list()}")
        return _apply_conditions(stmt, conditions)

    # ==================== 标签统计 ====================

    def tag_counts(
        self,
        taggable_model: Type,
        start_at: Optional[datetime] = None,
        end_at: Optional[datetime] = None,
        at_least: Optional[int] = None,
        at_most: Optional[int] = None,
        conditions: ConditionsArg = None,
        order_by: Any = None,
        limit: Optional[int] = None,
    ) -> Select:
        """统计每个标签在某类记录上的使用次数

        结果行为 (id, namespace, short_name, count)，只包含 count > 0 的分组。
        带短名称的标签不会计入其命名空间标签的次数。

        Args:
            taggable_model: 被标记的模型类
            start_at: 只统计此时间（含）之后创建的关联
            end_at: 只统计此时间（含）之前创建的关联
            at_least: 排除次数小于该值的标签
            at_most: 排除次数大于该值的标签
            conditions: 额外条件，以 AND 连接
            order_by: 排序表达式或表达式列表，可使用标签 "count"
            limit: 最多返回的行数

        使用示例:
            stmt = builder.tag_counts(Post, at_least=2, order_by=desc("count"), limit=10)
            for tag_id, namespace, short_name, count in session.execute(stmt):
                ...
        """
        Tag, Tagging = self.tag_model, self.tagging_model
        taggable_type = get_taggable_type(taggable_model)
        pk = self._primary_key(taggable_model)
        count = func.count()

        stmt = (
            select(Tag.id, Tag.namespace, Tag.short_name, count.label("count"))
            .select_from(Tag)
            .join(Tagging, Tag.id == Tagging.tag_id)
            .join(taggable_model, and_(pk == Tagging.taggable_id, Tagging.taggable_type == taggable_type))
        )
        if start_at is not None:
            stmt = stmt.where(Tagging.created_at >= start_at)
        if end_at is not None:
            stmt = stmt.where(Tagging.created_at <= end_at)
        stmt = _apply_conditions(stmt, conditions)

        stmt = stmt.group_by(Tag.id, Tag.namespace, Tag.short_name).having(count > 0)
        if at_least is not None:
            stmt = stmt.having(count >= at_least)
        if at_most is not None:
            stmt = stmt.having(count <= at_most)

        if order_by is not None:
            if isinstance(order_by, (list, tuple)):
                stmt = stmt.order_by(*order_by)
            else:
                stmt = stmt.order_by(order_by)
        if limit is not None:
            stmt = stmt.limit(limit)

        logger.debug(
            f"构建 tag_counts 查询: {taggable_type} at_least={at_least} at_most={at_most} "
            f"start_at={start_at} end_at={end_at}"
        )
        return stmt

    def count_for_tag_query(self, tag: Union[str, AbstractTag], taggable_model: Type) -> Select:
        """单个标签的统计查询，按标签身份精确匹配"""
        if isinstance(tag, AbstractTag):
            condition = self.tag_model.id == tag.id
        else:
            condition = exact_name_condition(self.tag_model, self.parse(tag))
        return self.tag_counts(taggable_model, conditions=condition)

    def count_for_tag(self, session: Session, tag: Union[str, AbstractTag], taggable_model: Type) -> int:
        """某个标签标记了多少条记录，没有匹配的分组时返回 0"""
        row = session.execute(self.count_for_tag_query(tag, taggable_model)).first()
        return row[3] if row is not None else 0


__all__ = [
    "TagQueryBuilder",
    "exact_name_condition",
]
