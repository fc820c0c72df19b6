"""データファイル上のタスク文書を表す pydantic スキーマ"""

from __future__ import annotations

from typing import List, Optional
from uuid import UUID

from pydantic import BaseModel, ConfigDict, Field, TypeAdapter

from .models import Priority, Status, Task


class TaskRecord(BaseModel):
    """データファイルに保存されるJSON配列の1要素"""

    model_config = ConfigDict(populate_by_name=True, extra="ignore")

    id: Optional[UUID] = None
    title: str
    description: Optional[str] = None
    due_date: str = Field(..., alias="dueDate", description="ISO date (YYYY-MM-DD)")
    category: str
    priority: Priority
    status: Status

    @classmethod
    def from_task(cls, task: Task) -> "TaskRecord":
        return cls(
            id=task.id,
            title=task.title,
            description=task.description,
            due_date=task.due_date,
            category=task.category,
            priority=task.priority,
            status=task.status,
        )

    def to_task(self) -> Task:
        """ドメインの Task を復元する（フィールドの検証は Task 側で行う）"""
        return Task.restore(
            self.id,
            self.title,
            self.description,
            self.due_date,
            self.category,
            self.priority,
            self.status,
        )

    def to_json_dict(self) -> dict:
        return self.model_dump(mode="json", by_alias=True)


# トップレベルの null は空の一覧として扱う
TaskDocument = TypeAdapter(Optional[List[TaskRecord]])
