"""
ロギング設定モジュール

ライブラリ側はロガーを取得するだけで、ハンドラの設定はCLIからのみ行います。
"""

import logging
from pathlib import Path
from typing import List, Optional


def setup_logger(log_level: str = "WARNING", log_file: Optional[str] = None) -> None:
    """
    ロガーのセットアップ

    Args:
        log_level: ログレベル (DEBUG, INFO, WARNING, ERROR, CRITICAL)
        log_file: ログファイルのパス（None の場合は標準エラーのみ）
    """
    handlers: List[logging.Handler] = [logging.StreamHandler()]
    if log_file:
        # ログディレクトリの作成
        log_path = Path(log_file)
        log_path.parent.mkdir(parents=True, exist_ok=True)
        handlers.append(logging.FileHandler(log_path, encoding="utf-8"))

    logging.basicConfig(
        level=getattr(logging, log_level.upper(), logging.WARNING),
        format="%(asctime)s - %(name)s - %(levelname)s - %(message)s",
        handlers=handlers,
        force=True,
    )
