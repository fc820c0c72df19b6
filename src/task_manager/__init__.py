"""タスク管理ライブラリ - 検証付きタスク、JSONスナップショット保存、インメモリサービス"""

from .exceptions import StorageError, TaskManagerError, TaskValidationError
from .models import Priority, Status, Task
from .repository import TaskRepository
from .service import UNSET, TaskService

__all__ = [
    "Priority",
    "Status",
    "StorageError",
    "Task",
    "TaskManagerError",
    "TaskRepository",
    "TaskService",
    "TaskValidationError",
    "UNSET",
]
