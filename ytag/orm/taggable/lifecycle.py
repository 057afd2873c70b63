"""标签关联删除后的清理

开启 destroy_unused 后，标签的最后一条关联被删除时同时删除标签本身。
检查与删除必须和关联的删除处于同一个事务中。
"""

from typing import Iterable, List, Optional

from sqlalchemy import delete, select

from ytag.config import TaggingSettings
from ytag.log import tagging_logger
from ..transaction import transaction

logger = tagging_logger.getChild("lifecycle")


class TaggingLifecycle:
    """标签关联生命周期

    Args:
        store: TagStore
        settings: 标签配置，None 表示使用 store 的配置
    """

    def __init__(self, store, settings: Optional[TaggingSettings] = None):
        self.store = store
        self._settings = settings

    @property
    def settings(self) -> TaggingSettings:
        return self._settings if self._settings is not None else self.store.settings

    def after_taggings_removed(self, tag_ids: Iterable[int]) -> List[int]:
        """删除关联后调用，清理已无关联的标签

        必须在删除关联的同一事务中调用。

        Args:
            tag_ids: 被删除关联所指向的标签ID

        Returns:
            被删除的标签ID；未开启 destroy_unused 时为空列表
        """
        if not self.settings.destroy_unused:
            return []
        ids = list(dict.fromkeys(tag_id for tag_id in tag_ids if tag_id is not None))
        if not ids:
            return []

        session = self.store.session
        Tag, Tagging = self.store.tag_model, self.store.tagging_model
        unused = ~select(Tagging.id).where(Tagging.tag_id == Tag.id).exists()

        doomed = list(session.scalars(select(Tag.id).where(Tag.id.in_(ids), unused)).all())
        if doomed:
            session.execute(
                delete(Tag)
                .where(Tag.id.in_(doomed), unused)
                .execution_options(synchronize_session="fetch")
            )
            logger.info(f"删除无关联的标签: {doomed}")
        return doomed

    def remove_tagging(self, tagging) -> List[int]:
        """删除一条关联，并在同一事务中清理无关联的标签

        Returns:
            被删除的标签ID
        """
        session = self.store.session
        with transaction(session, "remove_tagging"):
            tag_id = tagging.tag_id
            session.delete(tagging)
            session.flush()
            return self.after_taggings_removed([tag_id])


__all__ = ["TaggingLifecycle"]
