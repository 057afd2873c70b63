"""
数据库会话管理模块

提供数据库引擎创建、会话管理等功能。标签核心组件只接收调用方传入的 Session，
本模块供脚本、测试和没有自有会话管理的宿主使用。

公开 API:
- db_manager: 数据库管理器单例
- init_database(): 初始化数据库连接
- get_engine(): 获取数据库引擎
- db_session_scope(): 上下文管理器，自动提交/回滚/关闭
- enable_sqlite_savepoints(): 让 pysqlite 正确支持 SAVEPOINT
"""

from contextlib import contextmanager
from typing import Any, Generator, Optional

from sqlalchemy import create_engine, event
from sqlalchemy.engine import Engine
from sqlalchemy.orm import Session, sessionmaker
from sqlalchemy.pool import StaticPool

from ytag.log import orm_logger

_logger = orm_logger.getChild("session")

__all__ = [
    'db_manager',
    'init_database',
    'get_engine',
    'db_session_scope',
    'enable_sqlite_savepoints',
]


def enable_sqlite_savepoints(engine: Engine) -> Engine:
    """修正 pysqlite 的事务行为，使 begin_nested() 可用

    pysqlite 默认延迟发出 BEGIN，导致 SAVEPOINT 与其内部事务状态不一致。
    这里关闭驱动自身的事务处理，由 SQLAlchemy 显式发出 BEGIN。

    Args:
        engine: SQLite 引擎

    Returns:
        同一个引擎，便于链式调用
    """

    @event.listens_for(engine, "connect")
    def _on_connect(dbapi_connection, connection_record):
        dbapi_connection.isolation_level = None

    @event.listens_for(engine, "begin")
    def _on_begin(conn):
        conn.exec_driver_sql("BEGIN")

    return engine


class DatabaseManager:
    """数据库管理器（单例）

    使用示例:
        from ytag.orm import db_manager

        db_manager.init(database_url="sqlite:///./tags.db")
        engine = db_manager.engine
        session = db_manager.create_session()
    """
    _instance = None

    def __new__(cls):
        if cls._instance is None:
            cls._instance = super().__new__(cls)
            cls._instance._initialized = False
        return cls._instance

    def __init__(self):
        if self._initialized:
            return
        self._engine: Optional[Engine] = None
        self._session_maker: Optional[sessionmaker] = None
        self._initialized = True

    @property
    def engine(self) -> Engine:
        """获取数据库引擎（只读）

        Raises:
            RuntimeError: 数据库未初始化时
        """
        if self._engine is None:
            raise RuntimeError("数据库未初始化，请先调用 init_database()")
        return self._engine

    @property
    def is_initialized(self) -> bool:
        """检查数据库是否已初始化"""
        return self._engine is not None

    def init(
        self,
        database_url: str = None,
        echo: bool = False,
        config: Any = None,
    ) -> Engine:
        """初始化数据库连接

        Args:
            database_url: 数据库连接URL（如果提供 config 则忽略）
            echo: 是否输出SQL语句（如果提供 config 则忽略）
            config: 数据库配置对象（DatabaseSettings）

        Returns:
            数据库引擎
        """
        if config is not None:
            database_url = getattr(config, "url", database_url)
            echo = getattr(config, "echo", echo)

        if not database_url:
            raise ValueError("database_url 是必需的，请通过参数或 config 提供")

        _logger.info(f"数据库配置URL: {database_url}")

        if database_url.startswith("sqlite"):
            is_memory_db = database_url in ("sqlite://", "sqlite:///:memory:")
            if is_memory_db:
                # 内存数据库：使用 StaticPool（单连接）
                engine = create_engine(
                    database_url,
                    echo=echo,
                    connect_args={"check_same_thread": False},
                    poolclass=StaticPool,
                )
                _logger.info("SQLite内存数据库引擎创建成功（StaticPool）")
            else:
                engine = create_engine(
                    database_url,
                    echo=echo,
                    connect_args={"check_same_thread": False},
                )
                _logger.info("SQLite文件数据库引擎创建成功")
            enable_sqlite_savepoints(engine)
        else:
            engine = create_engine(database_url, echo=echo, pool_pre_ping=True)
            _logger.info("数据库引擎创建成功")

        self._engine = engine
        self._session_maker = sessionmaker(bind=engine, autoflush=True)
        return engine

    def create_session(self) -> Session:
        """创建新的 Session，调用方负责关闭"""
        if self._session_maker is None:
            raise RuntimeError("数据库未初始化，请先调用 init_database()")
        return self._session_maker()

    def dispose(self) -> None:
        """释放连接池并重置状态"""
        if self._engine is not None:
            self._engine.dispose()
        self._engine = None
        self._session_maker = None


# 全局单例
db_manager = DatabaseManager()


def init_database(database_url: str = None, echo: bool = False, config: Any = None) -> Engine:
    """初始化数据库连接

    使用示例:
        from ytag.orm import init_database, db_session_scope, Base

        engine = init_database("sqlite:///./tags.db")
        Base.metadata.create_all(engine)
    """
    return db_manager.init(database_url=database_url, echo=echo, config=config)


def get_engine() -> Engine:
    """获取数据库引擎"""
    return db_manager.engine


@contextmanager
def db_session_scope(auto_commit: bool = True) -> Generator[Session, None, None]:
    """session 上下文管理器

    自动管理 session 生命周期：正常结束时提交，异常时回滚，最后关闭。

    Args:
        auto_commit: 是否自动提交，默认 True

    使用示例:
        with db_session_scope() as session:
            store = TagStore(session, Tag, Tagging)
            store.find_or_create_by_name("music:cajun")
        # 自动提交并关闭
    """
    session = db_manager.create_session()
    try:
        yield session
        if auto_commit:
            session.commit()
    except Exception:
        session.rollback()
        raise
    finally:
        session.close()
