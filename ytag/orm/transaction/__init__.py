"""事务管理模块

提供标签写操作所需的事务工具：
- transaction(): 开启事务或保存点，存储错误统一转换为 TransactionFailureException
- call_with_conflict_retry(): 唯一约束冲突的有限次重试
- SyncState: 标签同步工作单元的状态

使用示例:
    from ytag.orm.transaction import transaction, call_with_conflict_retry

    with transaction(session, "sync"):
        ...

    tag = call_with_conflict_retry(lambda: _find_or_insert(name), max_attempts=3)
"""

from .state import SyncState
from .manager import transaction
from .retry import call_with_conflict_retry, conflict_retry

__all__ = [
    "SyncState",
    "transaction",
    "call_with_conflict_retry",
    "conflict_retry",
]
