"""
設定管理モジュール

関連クラス:
  - repository.TaskRepository: data_file を使用
  - cli: ログ設定とバックアップsuffixを使用
"""

import os
from dataclasses import dataclass
from pathlib import Path
from typing import Any, Dict, Optional, Union

import yaml

ENV_PREFIX = "TASK_MANAGER"


def _section(yaml_data: Dict[str, Any], name: str, config_path: Path) -> Dict[str, Any]:
    section = yaml_data.get(name) or {}
    if not isinstance(section, dict):
        raise ValueError(f"Config section '{name}' must be a mapping: {config_path}")
    return section


@dataclass
class Config:
    """アプリケーション設定クラス"""

    # 保存先
    data_file: str = "tasks.json"
    backup_suffix: str = ".bak"

    # ログ設定（log_file が None の場合はコンソールのみ）
    log_level: str = "WARNING"
    log_file: Optional[str] = None

    @classmethod
    def from_yaml(cls, config_path: Union[str, Path]) -> "Config":
        """YAMLファイルから設定を読み込む

        Args:
            config_path: 設定ファイルパス

        Returns:
            Config: 設定インスタンス

        Raises:
            FileNotFoundError: 設定ファイルが見つからない場合
            yaml.YAMLError: YAMLとして解析できない場合
            ValueError: トップレベルやセクションがマッピングでない場合
        """
        config_path = Path(config_path)
        if not config_path.exists():
            raise FileNotFoundError(f"Config file not found: {config_path}")

        with open(config_path, "r", encoding="utf-8") as f:
            yaml_data = yaml.safe_load(f) or {}

        if not isinstance(yaml_data, dict):
            raise ValueError(f"Config file must contain a mapping: {config_path}")
        storage_data = _section(yaml_data, "storage", config_path)
        log_data = _section(yaml_data, "log", config_path)
        defaults = cls()

        return cls(
            data_file=str(storage_data.get("data_file", defaults.data_file)),
            backup_suffix=str(storage_data.get("backup_suffix", defaults.backup_suffix)),
            log_level=str(log_data.get("level", defaults.log_level)),
            log_file=log_data.get("file", defaults.log_file),
        )

    @classmethod
    def from_env(cls) -> "Config":
        """環境変数から設定を読み込む"""
        defaults = cls()
        return cls(
            data_file=os.getenv(f"{ENV_PREFIX}_DATA_FILE", defaults.data_file),
            backup_suffix=os.getenv(f"{ENV_PREFIX}_BACKUP_SUFFIX", defaults.backup_suffix),
            log_level=os.getenv(f"{ENV_PREFIX}_LOG_LEVEL", defaults.log_level),
            log_file=os.getenv(f"{ENV_PREFIX}_LOG_FILE") or defaults.log_file,
        )
