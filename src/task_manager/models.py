"""タスクのドメインモデル

Task はIDだけが不変で、残りのフィールドはプロパティ経由で検証しながら更新します。
"""

from __future__ import annotations

import re
import uuid
from datetime import date
from enum import Enum
from typing import Any, Dict, Optional, Union

from .exceptions import TaskValidationError

MAX_TITLE_LENGTH = 100
MAX_DESCRIPTION_LENGTH = 500
MAX_CATEGORY_LENGTH = 50
DEFAULT_CATEGORY = "General"

_DUE_DATE_PATTERN = re.compile(r"^\d{4}-\d{2}-\d{2}$")

DateLike = Union[str, date]


class Priority(str, Enum):
    """タスクの優先度。宣言順が低→高の順序になる。"""

    LOW = "LOW"
    MEDIUM = "MEDIUM"
    HIGH = "HIGH"
    URGENT = "URGENT"

    @property
    def display_name(self) -> str:
        return self.value.capitalize()

    @property
    def level(self) -> int:
        return list(Priority).index(self)


class Status(str, Enum):
    """タスクの進行状況"""

    PENDING = "PENDING"
    IN_PROGRESS = "IN_PROGRESS"
    COMPLETED = "COMPLETED"

    @property
    def display_name(self) -> str:
        return self.value.replace("_", " ").title()


def _require_text(field: str, label: str, value: Any, max_length: int) -> str:
    if value is None or not isinstance(value, str) or not value.strip():
        raise TaskValidationError(field, f"{label} cannot be null or empty")
    text = value.strip()
    if len(text) > max_length:
        raise TaskValidationError(field, f"{label} cannot exceed {max_length} characters")
    return text


def validate_title(value: Any) -> str:
    return _require_text("title", "Title", value, MAX_TITLE_LENGTH)


def validate_description(value: Any) -> Optional[str]:
    if value is None:
        return None
    if not isinstance(value, str):
        raise TaskValidationError("description", "Description must be a string")
    text = value.strip()
    if len(text) > MAX_DESCRIPTION_LENGTH:
        raise TaskValidationError(
            "description", f"Description cannot exceed {MAX_DESCRIPTION_LENGTH} characters"
        )
    return text


def validate_due_date(value: Any, *, allow_past: bool = False) -> str:
    """期限日を検証し、YYYY-MM-DD形式の文字列で返す

    Args:
        value: 期限日（文字列または date）
        allow_past: True の場合は過去日チェックを行わない（永続化済みデータの復元用）
    """
    if isinstance(value, date):
        value = value.isoformat()
    if value is None or not isinstance(value, str) or not value.strip():
        raise TaskValidationError("due_date", "Due date cannot be null or empty")

    text = value.strip()
    parsed: Optional[date] = None
    if _DUE_DATE_PATTERN.match(text):
        try:
            parsed = date.fromisoformat(text)
        except ValueError:
            pass
    if parsed is None:
        raise TaskValidationError(
            "due_date", "Due date must be in the format YYYY-MM-DD and be a valid date"
        )

    if not allow_past and parsed < date.today():
        raise TaskValidationError("due_date", "Due date cannot be in the past")
    return text


def validate_category(value: Any) -> str:
    return _require_text("category", "Category", value, MAX_CATEGORY_LENGTH)


def validate_priority(value: Any) -> Priority:
    if value is None:
        raise TaskValidationError("priority", "Priority cannot be null")
    if isinstance(value, Priority):
        return value
    try:
        return Priority(str(value).strip().upper())
    except ValueError:
        raise TaskValidationError(
            "priority", f"Priority must be one of {', '.join(p.value for p in Priority)}"
        ) from None


def validate_status(value: Any) -> Status:
    if value is None:
        raise TaskValidationError("status", "Status cannot be null")
    if isinstance(value, Status):
        return value
    try:
        return Status(str(value).strip().upper())
    except ValueError:
        raise TaskValidationError(
            "status", f"Status must be one of {', '.join(s.value for s in Status)}"
        ) from None


_VALIDATORS = {
    "title": validate_title,
    "description": validate_description,
    "due_date": validate_due_date,
    "category": validate_category,
    "priority": validate_priority,
    "status": validate_status,
}


class Task:
    """単一のタスク

    IDは生成時に決まり変更できません。同一性はIDで判定します。
    各セッターは自フィールドだけを検証し、失敗時はそのフィールドを変更しません。
    """

    __slots__ = ("_id", "_title", "_description", "_due_date", "_category", "_priority", "_status")

    def __init__(
        self,
        title: str,
        description: Optional[str],
        due_date: DateLike,
        category: str = DEFAULT_CATEGORY,
        priority: Union[Priority, str] = Priority.MEDIUM,
        status: Union[Status, str] = Status.PENDING,
    ) -> None:
        self._id = uuid.uuid4()
        self.title = title
        self.description = description
        self.due_date = due_date
        self.category = category
        self.priority = priority
        self.status = status

    @classmethod
    def restore(
        cls,
        task_id: Optional[uuid.UUID],
        title: str,
        description: Optional[str],
        due_date: DateLike,
        category: str,
        priority: Union[Priority, str],
        status: Union[Status, str],
    ) -> "Task":
        """永続化済みのタスクを復元する

        期限日の過去日チェックのみ省略します（形式と日付の妥当性は検証）。
        task_id が None の場合は新しいIDを採番します。
        """
        task = cls.__new__(cls)
        task._id = task_id if task_id is not None else uuid.uuid4()
        task.title = title
        task.description = description
        task._due_date = validate_due_date(due_date, allow_past=True)
        task.category = category
        task.priority = priority
        task.status = status
        return task

    @property
    def id(self) -> uuid.UUID:
        return self._id

    @property
    def title(self) -> str:
        return self._title

    @title.setter
    def title(self, value: str) -> None:
        self._title = validate_title(value)

    @property
    def description(self) -> Optional[str]:
        return self._description

    @description.setter
    def description(self, value: Optional[str]) -> None:
        self._description = validate_description(value)

    @property
    def due_date(self) -> str:
        return self._due_date

    @due_date.setter
    def due_date(self, value: DateLike) -> None:
        self._due_date = validate_due_date(value)

    @property
    def category(self) -> str:
        return self._category

    @category.setter
    def category(self, value: str) -> None:
        self._category = validate_category(value)

    @property
    def priority(self) -> Priority:
        return self._priority

    @priority.setter
    def priority(self, value: Union[Priority, str]) -> None:
        self._priority = validate_priority(value)

    @property
    def status(self) -> Status:
        return self._status

    @status.setter
    def status(self, value: Union[Status, str]) -> None:
        self._status = validate_status(value)

    def update(self, **fields: Any) -> None:
        """複数フィールドをまとめて更新する

        全フィールドを先に検証し、すべて妥当な場合のみ反映します。
        途中で失敗した場合、タスクは一切変更されません。
        """
        unknown = set(fields) - set(_VALIDATORS)
        if unknown:
            raise TypeError(f"Unknown task fields: {', '.join(sorted(unknown))}")

        validated: Dict[str, Any] = {}
        for name in _VALIDATORS:
            if name in fields:
                validated[name] = _VALIDATORS[name](fields[name])

        for name, value in validated.items():
            setattr(self, f"_{name}", value)

    def __eq__(self, other: object) -> bool:
        if not isinstance(other, Task):
            return NotImplemented
        return self._id == other._id

    def __hash__(self) -> int:
        return hash(self._id)

    def __repr__(self) -> str:
        return (
            f"Task(id={self._id}, title={self._title!r}, due_date={self._due_date}, "
            f"category={self._category!r}, priority={self._priority.value}, "
            f"status={self._status.value})"
        )
