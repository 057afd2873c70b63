"""标签关联生命周期测试

测试场景：
1. 未开启 destroy_unused 时保留标签
2. 开启后最后一条关联删除时删除标签
3. 仍有关联的标签保留
"""

import pytest
from sqlalchemy import select

from ytag.config import TaggingSettings, configure_tagging
from ytag.orm.taggable import TaggableSync, TaggingLifecycle, TagStore

from tests.helpers import Tag, Tagging, create_post, tag_record, tagging_rows


@pytest.fixture
def destroying_store(db_session):
    return TagStore(db_session, Tag, Tagging, TaggingSettings(destroy_unused=True))


class TestAfterTaggingsRemoved:
    """清理测试"""

    def test_disabled_by_default(self, store, db_session):
        post = create_post(db_session)
        tag_record(db_session, post, "jazz")
        tag = store.find_by_name("jazz")
        db_session.delete(tagging_rows(db_session, post)[0])
        db_session.flush()

        assert TaggingLifecycle(store).after_taggings_removed([tag.id]) == []
        assert store.find_by_name("jazz") is not None

    def test_deletes_unused_tags(self, destroying_store, db_session):
        post = create_post(db_session)
        tag_record(db_session, post, "jazz")
        tag = destroying_store.find_by_name("jazz")
        db_session.delete(tagging_rows(db_session, post)[0])
        db_session.flush()

        removed = TaggingLifecycle(destroying_store).after_taggings_removed([tag.id, tag.id, None])

        assert removed == [tag.id]
        assert destroying_store.find_by_name("jazz") is None

    def test_keeps_tags_still_in_use(self, destroying_store, db_session):
        first = create_post(db_session, "first")
        second = create_post(db_session, "second")
        tag_record(db_session, first, "jazz")
        tag_record(db_session, second, "jazz")
        tag = destroying_store.find_by_name("jazz")
        db_session.delete(tagging_rows(db_session, first)[0])
        db_session.flush()

        assert TaggingLifecycle(destroying_store).after_taggings_removed([tag.id]) == []
        assert destroying_store.find_by_name("jazz") is not None

    def test_empty_ids(self, destroying_store):
        assert TaggingLifecycle(destroying_store).after_taggings_removed([]) == []

    def test_explicit_settings_override_store(self, store, db_session):
        post = create_post(db_session)
        tag_record(db_session, post, "jazz")
        tag = store.find_by_name("jazz")
        db_session.delete(tagging_rows(db_session, post)[0])
        db_session.flush()

        lifecycle = TaggingLifecycle(store, TaggingSettings(destroy_unused=True))
        assert lifecycle.after_taggings_removed([tag.id]) == [tag.id]


class TestRemoveTagging:
    """删除单条关联测试"""

    def test_remove_last_tagging(self, destroying_store, db_session):
        post = create_post(db_session)
        tag_record(db_session, post, "jazz, blues")
        jazz = destroying_store.find_by_name("jazz")
        tagging = next(row for row in tagging_rows(db_session, post) if row.tag_id == jazz.id)

        removed = TaggingLifecycle(destroying_store).remove_tagging(tagging)

        assert removed == [jazz.id]
        assert destroying_store.find_by_name("jazz") is None
        assert destroying_store.find_by_name("blues") is not None
        assert len(tagging_rows(db_session, post)) == 1


class TestSyncWithDestroyUnused:
    """同步与删除流程中的清理"""

    def test_sync_removal_deletes_unused_tag(self, db_session):
        configure_tagging(destroy_unused=True)
        store = TagStore(db_session, Tag, Tagging)
        sync = TaggableSync(store)
        post = create_post(db_session)
        sync.set_tag_list(post, "jazz, blues")
        sync.save_tags(post)

        sync.set_tag_list(post, "blues")
        sync.save_tags(post)

        assert store.find_by_name("jazz") is None
        assert store.find_by_name("blues") is not None

    def test_shared_tag_survives_sync_removal(self, destroying_store, db_session):
        sync = TaggableSync(destroying_store)
        first = create_post(db_session, "first")
        second = create_post(db_session, "second")
        for post in (first, second):
            sync.set_tag_list(post, "jazz")
            sync.save_tags(post)

        sync.set_tag_list(first, "")
        sync.save_tags(first)

        assert destroying_store.find_by_name("jazz") is not None

    def test_destroy_taggings_deletes_unused_tags(self, destroying_store, db_session):
        sync = TaggableSync(destroying_store)
        post = create_post(db_session)
        sync.set_tag_list(post, "jazz, blues")
        sync.save_tags(post)

        sync.destroy_taggings(post)

        assert db_session.scalars(select(Tag)).all() == []
