"""事务状态枚举

定义标签同步工作单元的生命周期状态
"""

from enum import Enum


class SyncState(str, Enum):
    """同步状态

    状态转换图:

        IDLE → DIFFING → PERSISTING → COMMITTED
                              ↓
                            FAILED

    状态说明:
        - IDLE: 未开始，或标签列表未被读写过而跳过同步
        - DIFFING: 正在计算需要新增和移除的标签
        - PERSISTING: 正在事务中写入关联
        - COMMITTED: 写入完成（外层事务由调用方提交时，在其提交后可见）
        - FAILED: 写入失败，事务已回滚
    """

    IDLE = "idle"
    DIFFING = "diffing"
    PERSISTING = "persisting"
    COMMITTED = "committed"
    FAILED = "failed"

    @property
    def is_finished(self) -> bool:
        """是否为终止状态"""
        return self in (SyncState.COMMITTED, SyncState.FAILED)
