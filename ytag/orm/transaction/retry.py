"""唯一约束冲突重试

并发写入者抢先插入同一行时，唯一索引会拒绝后到者。
此时重新读取胜出者写入的行即可，无需把冲突暴露给调用方。
"""

import functools
from typing import Callable, Optional, Tuple, Type, TypeVar

from sqlalchemy.exc import IntegrityError

from ytag.exceptions import ConstraintRaceException
from ytag.log import transaction_logger as logger

T = TypeVar('T')


def call_with_conflict_retry(
    func: Callable[[], T],
    max_attempts: int = 3,
    retry_on: Tuple[Type[Exception], ...] = (IntegrityError,),
    name: str = "operation",
) -> T:
    """执行 func，遇到唯一约束冲突时重试

    func 必须自行把写入放在保存点中，这样冲突只回滚保存点，
    外层事务仍可继续使用。

    Args:
        func: 无参可调用对象，每次尝试都会重新执行（包括重新查询）
        max_attempts: 最大尝试次数（包括首次）
        retry_on: 视为冲突的异常类型
        name: 操作名称，仅用于日志

    Returns:
        func 的返回值

    Raises:
        ConstraintRaceException: 尝试次数用尽仍然冲突
    """
    for attempt in range(1, max_attempts + 1):
        try:
            return func()
        except retry_on as e:
            if attempt < max_attempts:
                logger.warning(
                    f"{name} 唯一约束冲突 (尝试 {attempt}/{max_attempts})，重新读取后重试. "
                    f"异常: {type(e).__name__}"
                )
                continue
            logger.error(f"{name} 重试 {max_attempts} 次后仍冲突. 异常: {type(e).__name__}: {e}")
            raise ConstraintRaceException(
                f"{name} 在 {max_attempts} 次尝试后仍发生唯一约束冲突",
                attempts=max_attempts,
            ) from e
    raise ConstraintRaceException(f"{name} 未执行", attempts=max_attempts)


def conflict_retry(
    max_attempts: int = 3,
    retry_on: Tuple[Type[Exception], ...] = (IntegrityError,),
    name: Optional[str] = None,
):
    """唯一约束冲突重试装饰器

    call_with_conflict_retry 的装饰器形式，被装饰函数的每次调用都会独立重试。

    使用示例:
        @conflict_retry(max_attempts=settings.merge_max_attempts, name="merge")
        def repoint():
            with session.begin_nested():
                session.execute(update(...))

        repoint()
    """
    def decorator(func: Callable[..., T]) -> Callable[..., T]:
        @functools.wraps(func)
        def wrapper(*args, **kwargs) -> T:
            return call_with_conflict_retry(
                lambda: func(*args, **kwargs),
                max_attempts=max_attempts,
                retry_on=retry_on,
                name=name or func.__name__,
            )
        return wrapper
    return decorator
