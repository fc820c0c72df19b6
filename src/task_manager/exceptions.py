"""Task Managerのカスタム例外定義

入力値の検証エラーと、JSONファイルの読み書きエラーを区別します。
"""

from __future__ import annotations

from pathlib import Path
from typing import Optional, Union


class TaskManagerError(Exception):
    """Task Manager基底例外"""

    pass


class TaskValidationError(TaskManagerError, ValueError):
    """タスクのフィールド値が不正

    Attributes:
        field: 違反したフィールド名（title, due_date など）
    """

    def __init__(self, field: str, message: str) -> None:
        super().__init__(message)
        self.field = field

    def __str__(self) -> str:
        return f"{self.field}: {self.args[0]}"


class StorageError(TaskManagerError):
    """タスクファイルの保存・読み込み・バックアップの失敗

    元の例外は ``raise ... from exc`` で ``__cause__`` に保持されます。
    """

    def __init__(self, message: str, path: Optional[Union[str, Path]] = None) -> None:
        super().__init__(message)
        self.path = str(path) if path is not None else None
