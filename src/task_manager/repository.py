from __future__ import annotations

import json
import logging
import os
from pathlib import Path
from typing import Iterable, List, Optional, Union

from pydantic import ValidationError

from .exceptions import StorageError, TaskValidationError
from .models import Task
from .schemas import TaskDocument, TaskRecord

logger = logging.getLogger(__name__)

DEFAULT_FILE_PATH = "tasks.json"
DATA_FILE_ENV = "TASK_MANAGER_DATA_FILE"
MISSING_FILE_SIZE = -1


class TaskRepository:
    """JSONファイルベースのタスク永続化。

    呼び出しごとにファイル全体を読み書きし、タスク一覧への参照は保持しません。
    """

    def __init__(self, file_path: Optional[Union[str, Path]] = None):
        env_path = os.getenv(DATA_FILE_ENV)
        if file_path:
            self._path = str(file_path)
        elif env_path:
            self._path = env_path
        else:
            self._path = DEFAULT_FILE_PATH
        self.file_path = Path(self._path)

    @property
    def path(self) -> str:
        return self._path

    def save(self, tasks: Optional[Iterable[Task]]) -> None:
        """タスク一覧でファイルを上書き保存する

        Args:
            tasks: 保存するタスク（None は空リストとして扱う）

        Raises:
            StorageError: ディレクトリ作成または書き込みに失敗した場合
        """
        records = [TaskRecord.from_task(task).to_json_dict() for task in tasks or []]
        try:
            self.file_path.parent.mkdir(parents=True, exist_ok=True)
            self.file_path.write_text(
                json.dumps(records, ensure_ascii=False, indent=2) + "\n",
                encoding="utf-8",
            )
        except OSError as exc:
            raise StorageError(f"Failed to save tasks to file: {self._path}", self._path) from exc
        logger.debug("Saved %d tasks to %s", len(records), self._path)

    def load(self) -> List[Task]:
        """ファイルからタスク一覧を読み込む

        ファイルが存在しない、または0バイトの場合は空リストを返します。

        Raises:
            StorageError: 読み込み失敗、不正なJSON、フィールド検証エラーの場合
        """
        if not self.file_path.exists():
            logger.debug("Task file %s does not exist; starting empty", self._path)
            return []

        try:
            if self.file_path.stat().st_size == 0:
                return []
            raw = self.file_path.read_bytes()
            records = TaskDocument.validate_json(raw) or []
            tasks = [record.to_task() for record in records]
        except (OSError, ValidationError, TaskValidationError) as exc:
            raise StorageError(f"Failed to load tasks from file: {self._path}", self._path) from exc

        logger.debug("Loaded %d tasks from %s", len(tasks), self._path)
        return tasks

    def exists(self) -> bool:
        return self.file_path.exists()

    def size(self) -> int:
        """ファイルサイズ（バイト）。存在しない場合は -1。"""
        try:
            return self.file_path.stat().st_size
        except OSError:
            # ENOTDIR なども exists() と同じく不在として扱う
            if not self.file_path.exists():
                return MISSING_FILE_SIZE
            raise

    def delete(self) -> bool:
        """ファイルを削除する。削除後に存在しなければ True。"""
        try:
            self.file_path.unlink()
        except FileNotFoundError:
            pass
        except OSError:
            logger.warning("Failed to delete task file %s", self._path, exc_info=True)
        return not self.file_path.exists()

    def backup(self, suffix: Optional[str]) -> str:
        """現在のファイル内容を ``path + suffix`` へ書き出す

        バイトコピーではなく、読み込んだタスクを新しいファイルとして保存します。

        Returns:
            バックアップファイルのパス

        Raises:
            StorageError: 元ファイルが無い、読み込めない、suffix が空、書き込み失敗の場合
        """
        if not suffix:
            raise StorageError(
                "Cannot create backup: suffix must be a non-empty string", self._path
            )
        if not self.exists():
            raise StorageError(
                f"Cannot create backup: original file does not exist: {self._path}", self._path
            )

        backup_path = self._path + suffix
        try:
            tasks = self.load()
            TaskRepository(backup_path).save(tasks)
        except StorageError as exc:
            raise StorageError(f"Failed to create backup file: {backup_path}", backup_path) from exc

        logger.info("Backed up %d tasks to %s", len(tasks), backup_path)
        return backup_path
