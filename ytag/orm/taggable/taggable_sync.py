"""标签同步

把记录上期望的标签列表与已存储的关联对齐。

宿主在自己的保存流程中显式调用:
    - 保存前: write_cached_tag_list(record)   写入缓存列（如果启用）
    - 保存后: save_tags(record)               同步关联
    - 删除后: destroy_taggings(record)        删除该记录的全部关联
    - 重新加载: reload(record)                丢弃内存中的标签列表

同步状态: IDLE → DIFFING → PERSISTING → COMMITTED / FAILED

使用示例:
    store = TagStore(session, Tag, Tagging)
    sync = TaggableSync(store)

    sync.set_tag_list(post, "music:cajun, jazz")
    result = sync.save(post)
    result.added        # ["music:cajun", "jazz"]
"""

from dataclasses import dataclass, field
from typing import List, Optional, Set, Tuple

from sqlalchemy import delete, select

from ytag.config import TaggingSettings
from ytag.exceptions import Err
from ytag.log import tagging_logger
from ..transaction import SyncState, transaction
from .lifecycle import TaggingLifecycle
from .tag_list import TagList
from .tag_model import get_taggable_type
from .tag_store import TagStore

logger = tagging_logger.getChild("sync")

# 实例上保存标签列表的属性名，存在即表示本次工作单元读写过标签列表
_MEMO_ATTR = "_ytag_tag_list"

Identity = Tuple[str, Optional[str]]


@dataclass
class SyncResult:
    """一次同步的结果"""
    state: SyncState = SyncState.IDLE
    added: List[str] = field(default_factory=list)
    removed: List[str] = field(default_factory=list)
    skipped: bool = False

    @property
    def changed(self) -> bool:
        return bool(self.added or self.removed)


class TaggableSync:
    """记录标签同步

    Args:
        store: TagStore
        lifecycle: 关联删除后的清理，默认基于同一个 store 创建
        settings: 标签配置，None 表示使用 store 的配置
    """

    def __init__(
        self,
        store: TagStore,
        lifecycle: Optional[TaggingLifecycle] = None,
        settings: Optional[TaggingSettings] = None,
    ):
        self.store = store
        self.lifecycle = lifecycle if lifecycle is not None else TaggingLifecycle(store, settings)
        self._settings = settings
        self.last_result: Optional[SyncResult] = None

    @property
    def settings(self) -> TaggingSettings:
        return self._settings if self._settings is not None else self.store.settings

    @property
    def session(self):
        return self.store.session

    # ==================== 缓存列 ====================

    def caching_enabled(self, taggable) -> bool:
        """配置了缓存列名，且模型上有该列"""
        column = self.settings.cached_tag_list_column
        return bool(column) and hasattr(type(taggable), column)

    def write_cached_tag_list(self, taggable) -> None:
        """保存前调用：把标签列表序列化写入缓存列"""
        if self.caching_enabled(taggable):
            setattr(taggable, self.settings.cached_tag_list_column, self.tag_list(taggable).to_string())

    # ==================== 读写标签列表 ====================

    def _new_list(self, names=()) -> TagList:
        return TagList(names, delimiter=self.settings.tag_list_delimiter)

    def tag_list(self, taggable) -> TagList:
        """记录的标签列表

        优先使用内存中的列表；其次是缓存列的值；都没有时从关联表读取。
        结果保存在实例上，直到 reload() 或 destroy_taggings()。

        Raises:
            ValidationException: 需要读取关联表但没有可用的 Session
        """
        memo = getattr(taggable, _MEMO_ATTR, None)
        if memo is not None:
            return memo

        cached = None
        if self.caching_enabled(taggable):
            cached = getattr(taggable, self.settings.cached_tag_list_column)
        if cached is not None:
            tag_list = TagList.from_string(cached, delimiter=self.settings.tag_list_delimiter)
        elif taggable.id is None:
            tag_list = self._new_list()
        else:
            if self.session is None:
                raise Err.invalid(f"{get_taggable_type(taggable)}#{taggable.id} 不在 Session 中，无法读取已存储的标签")
            tag_list = self._new_list(self.store.tag_name(tag) for tag in self.store.tags_for(taggable))

        setattr(taggable, _MEMO_ATTR, tag_list)
        return tag_list

    def set_tag_list(self, taggable, tags) -> TagList:
        """设置期望的标签列表，字符串按分隔符解析"""
        normalized = self.store.queries.normalize_tags(tags)
        tag_list = self._new_list(normalized)
        setattr(taggable, _MEMO_ATTR, tag_list)
        return tag_list

    def reload(self, taggable) -> None:
        """丢弃内存中的标签列表"""
        if _MEMO_ATTR in vars(taggable):
            delattr(taggable, _MEMO_ATTR)

    # ==================== 同步 ====================

    def _identity(self, name: str) -> Identity:
        parsed = self.store.parse(name)
        return parsed.namespace.lower(), parsed.short_name.lower() if parsed.short_name else None

    def save_tags(self, taggable) -> SyncResult:
        """保存后调用：同步关联

        本次工作单元没有读写过标签列表时跳过（状态保持 IDLE）。
        删除和新增在同一个事务中执行，失败时整体回滚并抛出异常。

        Raises:
            ValidationException: 记录尚未保存
            TaggingException: 同步失败（已回滚）
        """
        result = SyncResult()
        self.last_result = result

        desired: Optional[TagList] = getattr(taggable, _MEMO_ATTR, None)
        if desired is None:
            result.skipped = True
            logger.debug(f"{get_taggable_type(taggable)}#{taggable.id} 标签列表未变动，跳过同步")
            return result
        if taggable.id is None:
            raise Err.invalid("记录必须先保存才能同步标签")

        session = self.session
        Tagging = self.store.tagging_model
        taggable_type = get_taggable_type(taggable)
        label = f"{taggable_type}#{taggable.id}"

        try:
            with transaction(session, "save_tags"):
                result.state = SyncState.DIFFING
                current = self.store.tags_for(taggable)
                desired_keys = {self._identity(name) for name in desired}
                current_keys = {self._identity(self.store.tag_name(tag)) for tag in current}

                to_remove = [tag for tag in current if self._identity(self.store.tag_name(tag)) not in desired_keys]
                to_add: List[str] = []
                pending: Set[Identity] = set(current_keys)
                for name in desired:
                    key = self._identity(name)
                    if key not in pending:
                        pending.add(key)
                        to_add.append(name)
                logger.debug(f"{label} 标签差异: 新增 {to_add}，移除 {[self.store.tag_name(t) for t in to_remove]}")

                result.state = SyncState.PERSISTING
                if to_remove:
                    removed_ids = [tag.id for tag in to_remove]
                    result.removed = [self.store.tag_name(tag) for tag in to_remove]
                    session.execute(
                        delete(Tagging)
                        .where(
                            Tagging.taggable_id == taggable.id,
                            Tagging.taggable_type == taggable_type,
                            Tagging.tag_id.in_(removed_ids),
                        )
                        .execution_options(synchronize_session="fetch")
                    )
                    self.lifecycle.after_taggings_removed(removed_ids)

                kept_ids = {tag.id for tag in current if tag not in to_remove}
                for name in to_add:
                    tag = self.store.find_or_create_by_name(name)
                    if tag.id in kept_ids:
                        continue
                    kept_ids.add(tag.id)
                    session.add(Tagging(tag_id=tag.id, taggable_id=taggable.id, taggable_type=taggable_type))
                    result.added.append(name)
                session.flush()
        except Exception:
            result.state = SyncState.FAILED
            logger.warning(f"{label} 标签同步失败，已回滚")
            raise

        result.state = SyncState.COMMITTED
        if result.changed:
            logger.info(f"{label} 标签已同步: 新增 {result.added}，移除 {result.removed}")
        return result

    def save(self, taggable) -> SyncResult:
        """写缓存列、保存记录并同步关联，全部在一个事务中"""
        session = self.session
        with transaction(session, "save"):
            self.write_cached_tag_list(taggable)
            session.add(taggable)
            session.flush()
            return self.save_tags(taggable)

    def destroy_taggings(self, taggable) -> List[int]:
        """删除后调用：删除记录的全部关联并清理无关联的标签

        Returns:
            被删除关联所指向的标签ID
        """
        session = self.session
        Tagging = self.store.tagging_model
        scope = (
            Tagging.taggable_id == taggable.id,
            Tagging.taggable_type == get_taggable_type(taggable),
        )
        with transaction(session, "destroy_taggings"):
            tag_ids = list(session.scalars(select(Tagging.tag_id).where(*scope)).all())
            session.execute(delete(Tagging).where(*scope).execution_options(synchronize_session="fetch"))
            self.lifecycle.after_taggings_removed(tag_ids)
        self.reload(taggable)
        logger.debug(f"{get_taggable_type(taggable)}#{taggable.id} 已删除 {len(tag_ids)} 条关联")
        return tag_ids


__all__ = [
    "TaggableSync",
    "SyncResult",
    "SyncState",
]
