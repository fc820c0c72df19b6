"""
タスクサービス - TaskRepository のスナップショットファイルを使うインメモリ管理

サービスが唯一の可変タスク一覧を保持します。変更操作のたびに一覧全体を
リポジトリへ書き戻します。書き込みに失敗した場合はログを出力し、メモリ上の
変更はそのまま残すため、次に保存が成功するまでメモリとファイルは一致しません。

スレッドセーフではありません。複数の書き込み元が同じファイルを扱うと最後の
保存が勝ちます。必要な場合はロックや単一ライターのキューで包んでください。
"""

from __future__ import annotations

import logging
import uuid
from collections.abc import Callable, Hashable
from typing import Any, Dict, List, Optional, TypeVar, Union

from .exceptions import StorageError
from .models import DEFAULT_CATEGORY, DateLike, Priority, Status, Task
from .repository import TaskRepository

logger = logging.getLogger(__name__)

UNSET: Any = object()
DEFAULT_BACKUP_SUFFIX = ".bak"

TaskId = Union[uuid.UUID, str, None]
K = TypeVar("K", bound=Hashable)


def _coerce_id(task_id: TaskId) -> Optional[uuid.UUID]:
    if task_id is None or isinstance(task_id, uuid.UUID):
        return task_id
    try:
        return uuid.UUID(str(task_id))
    except ValueError:
        return None


class TaskService:
    """タスクのCRUD・絞り込み・グループ化を提供するサービス"""

    def __init__(self, repository: Optional[TaskRepository] = None):
        self.repository = repository if repository is not None else TaskRepository()
        self._tasks: List[Task] = self._load_tasks()

    def _load_tasks(self) -> List[Task]:
        try:
            tasks = self.repository.load()
        except StorageError:
            logger.exception(
                "Failed to load tasks from %s; starting with an empty list",
                self.repository.path,
            )
            return []
        logger.info("Loaded %d tasks from %s", len(tasks), self.repository.path)
        return tasks

    def _persist(self) -> None:
        try:
            self.repository.save(self._tasks)
        except StorageError:
            logger.exception(
                "Failed to save tasks to %s; in-memory changes are kept",
                self.repository.path,
            )

    # ---- CRUD ----

    def create_task(
        self,
        title: str,
        description: Optional[str],
        due_date: DateLike,
        category: str = DEFAULT_CATEGORY,
        priority: Union[Priority, str] = Priority.MEDIUM,
        status: Union[Status, str] = Status.PENDING,
    ) -> Task:
        task = Task(title, description, due_date, category, priority, status)
        self._tasks.append(task)
        self._persist()
        logger.debug("Task created id=%s title=%s", task.id, task.title)
        return task

    def get_task_by_id(self, task_id: TaskId) -> Optional[Task]:
        wanted = _coerce_id(task_id)
        if wanted is None:
            return None
        for task in self._tasks:
            if task.id == wanted:
                return task
        return None

    def get_all_tasks(self) -> List[Task]:
        return list(self._tasks)

    def update_task(
        self,
        task_id: TaskId,
        title: str,
        description: Optional[str],
        due_date: DateLike,
        *,
        category: Any = UNSET,
        priority: Any = UNSET,
        status: Any = UNSET,
    ) -> Optional[Task]:
        """タスクを更新する

        category/priority/status は省略時のみ現状維持（明示的な None は検証エラー）。
        全フィールドを検証してから反映するため、失敗時にタスクは変更されません。

        Returns:
            更新後のTask、存在しない場合はNone

        Raises:
            TaskValidationError: いずれかのフィールドが不正な場合
        """
        task = self.get_task_by_id(task_id)
        if task is None:
            return None

        fields: Dict[str, Any] = {
            "title": title,
            "description": description,
            "due_date": due_date,
        }
        if category is not UNSET:
            fields["category"] = category
        if priority is not UNSET:
            fields["priority"] = priority
        if status is not UNSET:
            fields["status"] = status

        task.update(**fields)
        self._persist()
        return task

    def update_task_status(self, task_id: TaskId, status: Union[Status, str]) -> Optional[Task]:
        task = self.get_task_by_id(task_id)
        if task is None:
            return None
        task.status = status
        self._persist()
        return task

    def update_task_priority(
        self, task_id: TaskId, priority: Union[Priority, str]
    ) -> Optional[Task]:
        task = self.get_task_by_id(task_id)
        if task is None:
            return None
        task.priority = priority
        self._persist()
        return task

    def update_task_category(self, task_id: TaskId, category: str) -> Optional[Task]:
        task = self.get_task_by_id(task_id)
        if task is None:
            return None
        task.category = category
        self._persist()
        return task

    def delete_task(self, task_id: TaskId) -> bool:
        task = self.get_task_by_id(task_id)
        if task is None:
            return False
        self._tasks.remove(task)
        self._persist()
        return True

    # ---- filtering ----

    def get_tasks_by_category(self, category: Optional[str]) -> List[Task]:
        if category is None:
            return []
        wanted = category.lower()
        return [task for task in self._tasks if task.category.lower() == wanted]

    def get_tasks_by_priority(self, priority: Optional[Priority]) -> List[Task]:
        if priority is None:
            return []
        return [task for task in self._tasks if task.priority == priority]

    def get_tasks_by_status(self, status: Optional[Status]) -> List[Task]:
        if status is None:
            return []
        return [task for task in self._tasks if task.status == status]

    # ---- grouping ----

    def _group_by(self, key: Callable[[Task], K]) -> Dict[K, List[Task]]:
        groups: Dict[K, List[Task]] = {}
        for task in self._tasks:
            groups.setdefault(key(task), []).append(task)
        return groups

    def get_tasks_grouped_by_category(self) -> Dict[str, List[Task]]:
        return self._group_by(lambda task: task.category)

    def get_tasks_grouped_by_priority(self) -> Dict[Priority, List[Task]]:
        return self._group_by(lambda task: task.priority)

    def get_tasks_grouped_by_status(self) -> Dict[Status, List[Task]]:
        return self._group_by(lambda task: task.status)

    # ---- repository ----

    def create_backup(self, suffix: Optional[str] = DEFAULT_BACKUP_SUFFIX) -> bool:
        try:
            backup_path = self.repository.backup(suffix)
        except StorageError:
            logger.exception("Failed to create backup of %s", self.repository.path)
            return False
        logger.info("Backup created: %s", backup_path)
        return True

    def repository_info(self) -> str:
        size = self.repository.size()
        size_text = f"{size} bytes" if size >= 0 else "n/a"
        return (
            f"File: {self.repository.path} | "
            f"Exists: {'yes' if self.repository.exists() else 'no'} | "
            f"Size: {size_text}"
        )
