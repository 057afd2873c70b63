"""异常处理模块

提供标签库统一的异常体系：
- TaggingException: 异常基类
- ValidationException: 数据验证失败（空名称、重复名称）
- UnsupportedOperationException: 不支持的查询组合
- ConstraintRaceException: 唯一约束竞争重试耗尽
- TransactionFailureException: 事务失败（已回滚）

使用示例:
    from ytag.exceptions import Err, ErrorCode, TaggingException

    try:
        store.create("")
    except TaggingException as e:
        print(e.code, e.to_dict())
"""

from .exceptions import (
    ErrorCode,
    ErrorCodeType,
    TaggingException,
    ValidationException,
    UnsupportedOperationException,
    ConstraintRaceException,
    TransactionFailureException,
    Err,
)

__all__ = [
    "ErrorCode",
    "ErrorCodeType",
    "TaggingException",
    "ValidationException",
    "UnsupportedOperationException",
    "ConstraintRaceException",
    "TransactionFailureException",
    "Err",
]
