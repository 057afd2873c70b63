"""日志模块

提供日志配置与管理：
- 日志记录器创建（控制台 + 文件）
- 模块名自动推断
- 微秒精度格式化

使用示例:
    from ytag.log import setup_logger, get_logger

    # 配置 ytag 命名空间下的所有日志
    setup_logger("ytag", level="DEBUG", log_file="logs/tagging.log")

    # 在模块中获取日志器
    logger = get_logger()
"""

from .logger import (
    setup_logger,
    setup_root_logger,
    create_formatter,
    MicrosecondFormatter,
    DEFAULT_LOG_FORMAT,
    orm_logger,
    tagging_logger,
    transaction_logger,
    get_logger,
)

__all__ = [
    "setup_logger",
    "setup_root_logger",
    "create_formatter",
    "MicrosecondFormatter",
    "DEFAULT_LOG_FORMAT",
    "orm_logger",
    "tagging_logger",
    "transaction_logger",
    "get_logger",
]
