"""タスク管理CLI実行用エントリポイント

Usage:
    python -m task_manager <command> [options]
"""

from .cli import main

if __name__ == "__main__":
    raise SystemExit(main())
