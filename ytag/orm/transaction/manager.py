"""事务管理

提供多语句标签操作的原子执行入口
"""

from __future__ import annotations

from contextlib import contextmanager
from typing import Generator

from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.orm import Session

from ytag.exceptions import TaggingException, TransactionFailureException
from ytag.log import transaction_logger as logger


@contextmanager
def transaction(session: Session, name: str = "tagging") -> Generator[Session, None, None]:
    """在一个事务中执行多条语句

    - session 没有进行中的事务时，开启新事务，正常结束时提交
    - session 已在事务中时，创建保存点（SAVEPOINT），正常结束时释放，
      最终提交由调用方负责

    任何异常都会回滚本层事务或保存点。存储层的 SQLAlchemyError 统一转换为
    TransactionFailureException，标签异常原样抛出。

    Args:
        session: 数据库会话
        name: 工作单元名称，仅用于日志

    使用示例:
        with transaction(session, "merge"):
            session.execute(update(...))
            session.delete(tag)
    """
    nested = session.in_transaction()
    ctx = session.begin_nested() if nested else session.begin()
    logger.debug(f"[{name}] {'创建保存点' if nested else '开启事务'}")
    try:
        with ctx:
            yield session
    except TaggingException as e:
        logger.warning(f"[{name}] 已回滚: {e.message}")
        raise
    except SQLAlchemyError as e:
        logger.warning(f"[{name}] 存储错误，已回滚: {type(e).__name__}: {e}")
        raise TransactionFailureException(
            f"{name} 执行失败，已回滚",
            original_error=e,
        ) from e
    logger.debug(f"[{name}] {'保存点已释放' if nested else '事务已提交'}")
