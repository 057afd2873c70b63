"""标签异常类定义

定义标签库使用的异常类体系。
"""

import copy
from enum import Enum
from typing import Any, Dict, List, Optional, Union


class ErrorCode(str, Enum):
    """错误代码枚举

    继承自 str，可以直接作为字符串使用。

    使用示例:
        from ytag.exceptions import ErrorCode, ValidationException

        raise ValidationException("标签名称不能为空", code=ErrorCode.BLANK_NAME)

        if exc.code == ErrorCode.DUPLICATE_ENTRY:
            ...
    """

    # ==================== 通用错误 ====================
    TAGGING_ERROR = "TAGGING_ERROR"
    MODEL_NOT_CONFIGURED = "MODEL_NOT_CONFIGURED"

    # ==================== 验证相关 ====================
    VALIDATION_ERROR = "VALIDATION_ERROR"
    BLANK_NAME = "BLANK_NAME"
    DUPLICATE_ENTRY = "DUPLICATE_ENTRY"

    # ==================== 查询相关 ====================
    UNSUPPORTED_OPERATION = "UNSUPPORTED_OPERATION"

    # ==================== 存储相关 ====================
    CONSTRAINT_RACE = "CONSTRAINT_RACE"
    TRANSACTION_FAILED = "TRANSACTION_FAILED"


# 类型别名，支持枚举和字符串
ErrorCodeType = Union[str, ErrorCode]


class TaggingException(Exception):
    """标签异常基类

    所有标签相关的异常都继承此类。

    属性:
        message: 错误消息
        code: 错误代码（支持 ErrorCode 枚举或字符串）
        details: 详细错误信息列表
        extra: 额外的上下文信息
    """

    def __init__(
        self,
        message: str,
        code: ErrorCodeType = ErrorCode.TAGGING_ERROR,
        details: Optional[List[str]] = None,
        **extra: Any
    ):
        self.message = message
        self.code = code
        self.details = details or []
        self.extra = extra
        super().__init__(message)

    def to_dict(self) -> Dict[str, Any]:
        """转换为字典格式

        Returns:
            包含异常信息的字典
        """
        return {
            "message": self.message,
            "code": self.code,
            # 返回深拷贝，避免调用方修改返回值反向污染异常对象内部状态
            "details": copy.deepcopy(self.details),
            "extra": copy.deepcopy(self.extra)
        }

    def __repr__(self) -> str:
        return (
            f"{self.__class__.__name__}("
            f"message={self.message!r}, "
            f"code={self.code!r})"
        )


class ValidationException(TaggingException):
    """数据验证异常

    标签名称为空、(namespace, short_name) 重复等情况抛出，不会产生部分写入。
    """

    def __init__(
        self,
        message: str = "数据验证失败",
        code: ErrorCodeType = ErrorCode.VALIDATION_ERROR,
        details: Optional[List[str]] = None,
        field: Optional[str] = None,
        **extra: Any
    ):
        if field:
            extra["field"] = field
        super().__init__(message=message, code=code, details=details, **extra)


class UnsupportedOperationException(TaggingException):
    """不支持的操作

    例如 match_all 查询中混入了仅有命名空间的标签。抛出时不会执行任何查询。
    """

    def __init__(
        self,
        message: str = "不支持的操作",
        code: ErrorCodeType = ErrorCode.UNSUPPORTED_OPERATION,
        details: Optional[List[str]] = None,
        **extra: Any
    ):
        super().__init__(message=message, code=code, details=details, **extra)


class ConstraintRaceException(TaggingException):
    """唯一约束竞争异常

    并发写入导致的唯一索引冲突在限定次数的重试后仍未解决时抛出，
    说明存储处于持续不一致状态。
    """

    def __init__(
        self,
        message: str = "唯一约束冲突重试次数已用尽",
        code: ErrorCodeType = ErrorCode.CONSTRAINT_RACE,
        attempts: Optional[int] = None,
        **extra: Any
    ):
        if attempts is not None:
            extra["attempts"] = attempts
        super().__init__(message=message, code=code, **extra)


class TransactionFailureException(TaggingException):
    """事务失败异常

    多语句操作中途发生存储错误时抛出，整个工作单元已回滚。

    Attributes:
        original_error: 原始的存储层异常
    """

    def __init__(
        self,
        message: str = "事务执行失败，已回滚",
        code: ErrorCodeType = ErrorCode.TRANSACTION_FAILED,
        original_error: Optional[BaseException] = None,
        **extra: Any
    ):
        self.original_error = original_error
        details = [f"{type(original_error).__name__}: {original_error}"] if original_error else None
        super().__init__(message=message, code=code, details=details, **extra)


class Err:
    """异常快捷创建类

    提供统一入口，只需导入一个类即可创建所有类型的标签异常。

    使用示例:
        from ytag.exceptions import Err

        raise Err.blank("标签名称不能为空")
        raise Err.duplicate("标签已存在", field="name")
        raise Err.unsupported("match_all 不支持命名空间标签")
    """

    @staticmethod
    def invalid(message: str = "数据验证失败", details: Optional[List[str]] = None, **extra) -> ValidationException:
        """数据验证失败"""
        return ValidationException(message, details=details, **extra)

    @staticmethod
    def blank(message: str = "标签名称不能为空", **extra) -> ValidationException:
        """名称为空"""
        return ValidationException(message, code=ErrorCode.BLANK_NAME, field="name", **extra)

    @staticmethod
    def duplicate(message: str = "标签已存在", **extra) -> ValidationException:
        """名称重复"""
        return ValidationException(message, code=ErrorCode.DUPLICATE_ENTRY, **extra)

    @staticmethod
    def unsupported(message: str = "不支持的操作", **extra) -> UnsupportedOperationException:
        """不支持的操作"""
        return UnsupportedOperationException(message, **extra)

    @staticmethod
    def not_configured(message: str, **extra) -> TaggingException:
        """模型未配置"""
        return TaggingException(message, code=ErrorCode.MODEL_NOT_CONFIGURED, **extra)
