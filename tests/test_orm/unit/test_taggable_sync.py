"""标签同步测试

测试场景：
1. 未读写标签列表时跳过同步
2. 新增、移除差异与幂等性
3. 失败时整体回滚
4. 缓存列读写
5. save / destroy_taggings / reload
"""

import pytest
from sqlalchemy.exc import OperationalError

from ytag.config import TaggingSettings
from ytag.exceptions import TransactionFailureException, ValidationException
from ytag.orm.taggable import SyncState, TaggableSync, TagList, TagStore

from tests.helpers import Photo, Post, Tag, Tagging, create_post, tag_names, tagging_rows


class TestSaveTags:
    """同步测试"""

    def test_untouched_list_is_skipped(self, sync, db_session):
        post = create_post(db_session)
        result = sync.save_tags(post)
        assert result.skipped
        assert result.state == SyncState.IDLE
        assert tagging_rows(db_session) == []

    def test_adds_taggings(self, sync, db_session):
        post = create_post(db_session)
        sync.set_tag_list(post, "music:cajun, jazz")

        result = sync.save_tags(post)

        assert result.state == SyncState.COMMITTED
        assert result.added == ["music:cajun", "jazz"]
        assert result.removed == []
        assert tag_names(db_session, post) == ["music:cajun", "jazz"]

    def test_diff_adds_and_removes(self, sync, db_session):
        post = create_post(db_session)
        sync.set_tag_list(post, "music:cajun, jazz")
        sync.save_tags(post)

        sync.set_tag_list(post, "jazz, food:gumbo")
        result = sync.save_tags(post)

        assert result.added == ["food:gumbo"]
        assert result.removed == ["music:cajun"]
        assert tag_names(db_session, post) == ["jazz", "food:gumbo"]

    def test_resave_is_idempotent(self, sync, db_session):
        post = create_post(db_session)
        sync.set_tag_list(post, "music:cajun, jazz")
        sync.save_tags(post)
        before = [row.id for row in tagging_rows(db_session, post)]

        result = sync.save_tags(post)

        assert result.state == SyncState.COMMITTED
        assert not result.changed
        assert [row.id for row in tagging_rows(db_session, post)] == before

    def test_case_change_is_noop(self, sync, db_session):
        post = create_post(db_session)
        sync.set_tag_list(post, "music:cajun, jazz")
        sync.save_tags(post)

        sync.set_tag_list(post, "MUSIC:Cajun, Jazz")
        result = sync.save_tags(post)

        assert not result.changed
        assert tag_names(db_session, post) == ["music:cajun", "jazz"]

    def test_reuses_existing_tags(self, sync, store, db_session):
        existing = store.find_or_create_by_name("music:cajun")
        post = create_post(db_session)
        sync.set_tag_list(post, "Music:Cajun")
        sync.save_tags(post)

        assert tagging_rows(db_session, post)[0].tag_id == existing.id
        assert len(store.find_all_by_name("music:cajun")) == 1

    def test_clearing_the_list(self, sync, db_session):
        post = create_post(db_session)
        sync.set_tag_list(post, "music:cajun, jazz")
        sync.save_tags(post)

        sync.set_tag_list(post, "")
        result = sync.save_tags(post)

        assert sorted(result.removed) == ["jazz", "music:cajun"]
        assert tagging_rows(db_session, post) == []

    def test_unsaved_record_rejected(self, sync):
        post = Post(title="draft")
        sync.set_tag_list(post, "jazz")
        with pytest.raises(ValidationException):
            sync.save_tags(post)

    def test_failure_rolls_back_everything(self, sync, store, db_session, monkeypatch):
        post = create_post(db_session)
        sync.set_tag_list(post, "music:cajun")
        sync.save_tags(post)

        def broken(name):
            raise OperationalError("INSERT INTO tags", {}, Exception("disk I/O error"))

        monkeypatch.setattr(store, "find_or_create_by_name", broken)
        sync.set_tag_list(post, "jazz")

        with pytest.raises(TransactionFailureException) as exc_info:
            sync.save_tags(post)

        assert isinstance(exc_info.value.original_error, OperationalError)
        assert sync.last_result.state == SyncState.FAILED
        assert tag_names(db_session, post) == ["music:cajun"]

    def test_custom_separator_and_delimiter(self, db_session):
        settings = TaggingSettings(namespace_separator="/", tag_list_delimiter="; ")
        store = TagStore(db_session, Tag, Tagging, settings)
        sync = TaggableSync(store)
        post = create_post(db_session)

        sync.set_tag_list(post, "music/cajun; jazz")
        sync.save_tags(post)

        tag = store.find_by_name("music/cajun")
        assert (tag.namespace, tag.short_name) == ("music", "cajun")
        assert [store.tag_name(t) for t in store.tags_for(post)] == ["music/cajun", "jazz"]

    def test_taggable_types_do_not_interfere(self, sync, db_session):
        post = create_post(db_session)
        photo = Photo(title="photo")
        db_session.add(photo)
        db_session.flush()

        sync.set_tag_list(post, "jazz")
        sync.save_tags(post)
        sync.set_tag_list(photo, "blues")
        sync.save_tags(photo)

        assert tag_names(db_session, post) == ["jazz"]
        assert tag_names(db_session, photo) == ["blues"]


class TestTagList:
    """标签列表读取测试"""

    def test_loaded_from_taggings(self, sync, db_session):
        post = create_post(db_session)
        sync.set_tag_list(post, "music:cajun, jazz")
        sync.save_tags(post)
        sync.reload(post)

        assert sync.tag_list(post) == ["music:cajun", "jazz"]

    def test_new_record_is_empty(self, sync):
        assert len(sync.tag_list(Post(title="draft"))) == 0

    def test_memoized_until_reload(self, sync, db_session):
        post = create_post(db_session)
        tag_list = sync.tag_list(post)
        tag_list.add("jazz")

        assert sync.tag_list(post) is tag_list
        sync.reload(post)
        assert sync.tag_list(post) is not tag_list
        assert len(sync.tag_list(post)) == 0

    def test_reading_marks_list_as_touched(self, sync, db_session):
        post = create_post(db_session)
        sync.tag_list(post).add("jazz")

        result = sync.save_tags(post)

        assert not result.skipped
        assert result.added == ["jazz"]

    def test_set_accepts_sequences(self, sync, db_session):
        post = create_post(db_session)
        assert sync.set_tag_list(post, ["jazz", " ", "JAZZ", "blues"]) == ["jazz", "blues"]
        assert isinstance(sync.tag_list(post), TagList)


class TestCachedTagList:
    """缓存列测试"""

    def test_write_and_read(self, sync, db_session):
        post = create_post(db_session)
        sync.set_tag_list(post, "music:cajun, jazz")
        sync.write_cached_tag_list(post)
        assert post.cached_tag_list == "music:cajun, jazz"

        # 缓存列优先于关联表
        post.cached_tag_list = "blues"
        sync.reload(post)
        assert sync.tag_list(post) == ["blues"]

    def test_disabled_by_settings(self, store, db_session):
        sync = TaggableSync(store, settings=TaggingSettings(cached_tag_list_column=None))
        post = create_post(db_session)
        sync.set_tag_list(post, "jazz")
        sync.write_cached_tag_list(post)

        assert not sync.caching_enabled(post)
        assert post.cached_tag_list is None

    def test_model_without_column(self, sync, db_session):
        photo = Photo(title="photo")
        db_session.add(photo)
        db_session.flush()
        sync.set_tag_list(photo, "jazz")
        sync.write_cached_tag_list(photo)

        assert not sync.caching_enabled(photo)
        assert not hasattr(photo, "cached_tag_list")


class TestSaveAndDestroy:
    """保存与删除测试"""

    def test_save_persists_record_cache_and_taggings(self, sync, db_session):
        post = Post(title="draft")
        sync.set_tag_list(post, "music:cajun, jazz")

        result = sync.save(post)

        assert post.id is not None
        assert post.cached_tag_list == "music:cajun, jazz"
        assert result.added == ["music:cajun", "jazz"]
        assert tag_names(db_session, post) == ["music:cajun", "jazz"]

    def test_destroy_taggings(self, sync, store, db_session):
        post = create_post(db_session)
        sync.set_tag_list(post, "music:cajun, jazz")
        sync.save_tags(post)
        expected = sorted(t.id for t in store.tags_for(post))

        tag_ids = sync.destroy_taggings(post)

        assert sorted(tag_ids) == expected
        assert tagging_rows(db_session, post) == []
        # 标签本身默认保留
        assert store.find_by_name("jazz") is not None

    def test_destroy_clears_memo(self, sync, db_session):
        post = create_post(db_session)
        sync.set_tag_list(post, "jazz")
        sync.save_tags(post)

        sync.destroy_taggings(post)

        assert len(sync.tag_list(post)) == 0
