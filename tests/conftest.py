"""
Pytest 公共配置和 Fixtures

提供测试所需的公共资源：
- 数据库连接（SQLite 内存库，支持 SAVEPOINT）
- 标签存储、同步组件
- 临时文件
"""

import os
import tempfile
from typing import Generator

import pytest
from sqlalchemy import create_engine
from sqlalchemy.orm import Session, sessionmaker
from sqlalchemy.pool import StaticPool

from ytag.config import ConfigLoader, reset_tagging_settings
from ytag.orm import Base, enable_sqlite_savepoints
from ytag.orm.taggable import TaggableSync, TagQueryBuilder, TagStore

from tests.helpers.models import Tag, Tagging


# ==================== 全局状态 ====================

@pytest.fixture(autouse=True)
def reset_global_settings():
    """每个测试前后恢复默认标签配置与配置缓存"""
    reset_tagging_settings()
    ConfigLoader.clear_cache()
    yield
    reset_tagging_settings()
    ConfigLoader.clear_cache()


# ==================== 基础 Fixtures ====================

@pytest.fixture(scope="session")
def temp_dir():
    """创建临时目录"""
    with tempfile.TemporaryDirectory() as tmpdir:
        yield tmpdir


@pytest.fixture
def temp_file(temp_dir):
    """创建临时文件的工厂函数"""
    created_files = []

    def _create_file(filename: str, content: str = "") -> str:
        filepath = os.path.join(temp_dir, filename)
        if os.path.dirname(filepath):
            os.makedirs(os.path.dirname(filepath), exist_ok=True)
        with open(filepath, "w", encoding="utf-8") as f:
            f.write(content)
        created_files.append(filepath)
        return filepath

    yield _create_file

    # 清理
    for f in created_files:
        if os.path.exists(f):
            os.remove(f)


# ==================== 数据库 Fixtures ====================

@pytest.fixture(scope="function")
def memory_engine():
    """创建内存数据库引擎

    使用 StaticPool 和 check_same_thread=False 确保：
    1. 所有操作使用同一个连接（StaticPool）
    2. 允许跨线程访问（check_same_thread=False）
    并修正 pysqlite 的事务行为，使保存点可用。
    """
    engine = create_engine(
        "sqlite:///:memory:",
        echo=False,
        connect_args={"check_same_thread": False},
        poolclass=StaticPool,
    )
    enable_sqlite_savepoints(engine)
    Base.metadata.create_all(bind=engine)
    yield engine
    engine.dispose()


@pytest.fixture
def db_session(memory_engine) -> Generator[Session, None, None]:
    """创建数据库会话"""
    SessionLocal = sessionmaker(autoflush=True, bind=memory_engine)
    session = SessionLocal()
    try:
        yield session
    finally:
        session.close()


# ==================== 标签 Fixtures ====================

@pytest.fixture
def store(db_session) -> TagStore:
    """使用进程级默认配置的标签存储"""
    return TagStore(db_session, Tag, Tagging)


@pytest.fixture
def sync(store) -> TaggableSync:
    return TaggableSync(store)


@pytest.fixture
def builder() -> TagQueryBuilder:
    return TagQueryBuilder(Tag, Tagging)


# ==================== 配置 Fixtures ====================

@pytest.fixture
def sample_yaml_config(temp_file):
    """创建示例 YAML 配置文件"""
    yaml_content = """
tagging:
  namespace_separator: " > "
  tag_list_delimiter: "; "
  destroy_unused: true
  cached_tag_list_column: "tag_cache"

database:
  url: "sqlite:///test.db"
  echo: false

logging:
  level: "DEBUG"
  file_path: "logs/test.log"
"""
    return temp_file("config/settings.yaml", yaml_content)


# ==================== 日志 Fixtures ====================

@pytest.fixture
def log_dir(temp_dir):
    """创建日志目录"""
    log_path = os.path.join(temp_dir, "logs")
    os.makedirs(log_path, exist_ok=True)
    return log_path
