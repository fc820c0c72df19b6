#!/usr/bin/env python3
"""
タスク管理CLI - TaskService を操作するコマンドラインインターフェース

Usage:
    python -m task_manager list [--format json|text]
    python -m task_manager add --title "タイトル" --due-date YYYY-MM-DD [--description "詳細"] [--category C] [--priority P] [--status S]
    python -m task_manager update --id ID --title "タイトル" --due-date YYYY-MM-DD [--description "詳細"] [--category C] [--priority P] [--status S]
    python -m task_manager status --id ID --value PENDING|IN_PROGRESS|COMPLETED
    python -m task_manager priority --id ID --value LOW|MEDIUM|HIGH|URGENT
    python -m task_manager category --id ID --value "カテゴリ"
    python -m task_manager delete --id ID
    python -m task_manager get --id ID
    python -m task_manager filter (--category C | --priority P | --status S)
    python -m task_manager group --by category|priority|status
    python -m task_manager backup [--suffix .bak]
    python -m task_manager info
"""

from __future__ import annotations

import argparse
import json
import sys
from typing import Any, Dict, List, Optional

import yaml

from .config import Config
from .exceptions import TaskValidationError
from .logger import setup_logger
from .models import Priority, Status, Task
from .repository import TaskRepository
from .schemas import TaskRecord
from .service import UNSET, TaskService


PRIORITY_CHOICES = [p.value for p in Priority]
STATUS_CHOICES = [s.value for s in Status]


def format_task_text(task: Task) -> str:
    """タスクをテキスト形式で整形"""
    description = task.description or "説明なし"
    return (
        f"[{task.id}] {task.status.display_name} | {task.priority.display_name} | "
        f"{task.category} | 期限: {task.due_date} | {task.title} | {description}"
    )


def format_task_json(task: Task) -> Dict[str, Any]:
    """タスクをデータファイルと同じ形の辞書に変換"""
    return TaskRecord.from_task(task).to_json_dict()


def print_task(task: Task, output_format: str, prefix: str = "") -> None:
    if output_format == "json":
        print(json.dumps(format_task_json(task), ensure_ascii=False))
    else:
        print(f"{prefix}{format_task_text(task)}")


def print_tasks(tasks: List[Task], output_format: str) -> None:
    if output_format == "json":
        print(json.dumps([format_task_json(t) for t in tasks], ensure_ascii=False))
    elif not tasks:
        print("タスクは登録されていません。")
    else:
        for task in tasks:
            print(format_task_text(task))


def not_found(task_id: str) -> int:
    print(f"Error: ID {task_id} のタスクが見つかりません。", file=sys.stderr)
    return 1


def cmd_list(service: TaskService, output_format: str) -> int:
    """タスク一覧を表示"""
    print_tasks(service.get_all_tasks(), output_format)
    return 0


def cmd_get(service: TaskService, task_id: str, output_format: str) -> int:
    """特定のタスクを表示"""
    task = service.get_task_by_id(task_id)
    if task is None:
        return not_found(task_id)
    print_task(task, output_format)
    return 0


def cmd_add(service: TaskService, args: argparse.Namespace) -> int:
    """新しいタスクを追加"""
    created = service.create_task(
        args.title,
        args.description,
        args.due_date,
        args.category,
        args.priority,
        args.status,
    )
    print_task(created, args.format, prefix="追加しました: ")
    return 0


def cmd_update(service: TaskService, args: argparse.Namespace) -> int:
    """既存タスクの全フィールドを更新"""
    updated = service.update_task(
        args.id,
        args.title,
        args.description,
        args.due_date,
        category=args.category if args.category is not None else UNSET,
        priority=args.priority if args.priority is not None else UNSET,
        status=args.status if args.status is not None else UNSET,
    )
    if updated is None:
        return not_found(args.id)
    print_task(updated, args.format, prefix="更新しました: ")
    return 0


def cmd_set_field(service: TaskService, args: argparse.Namespace) -> int:
    """status / priority / category の単一フィールド更新"""
    updaters = {
        "status": service.update_task_status,
        "priority": service.update_task_priority,
        "category": service.update_task_category,
    }
    updated = updaters[args.command](args.id, args.value)
    if updated is None:
        return not_found(args.id)
    print_task(updated, args.format, prefix="更新しました: ")
    return 0


def cmd_delete(service: TaskService, task_id: str, output_format: str) -> int:
    """タスクを削除"""
    if not service.delete_task(task_id):
        return not_found(task_id)
    if output_format == "json":
        print(json.dumps({"deleted": True, "id": task_id}, ensure_ascii=False))
    else:
        print(f"削除しました: ID {task_id}")
    return 0


def cmd_filter(service: TaskService, args: argparse.Namespace) -> int:
    """カテゴリ・優先度・ステータスで絞り込み"""
    if args.category is not None:
        tasks = service.get_tasks_by_category(args.category)
    elif args.priority is not None:
        tasks = service.get_tasks_by_priority(Priority(args.priority))
    else:
        tasks = service.get_tasks_by_status(Status(args.status))
    print_tasks(tasks, args.format)
    return 0


def cmd_group(service: TaskService, group_by: str, output_format: str) -> int:
    """カテゴリ・優先度・ステータスでグループ化して表示"""
    if group_by == "category":
        groups: Dict[Any, List[Task]] = service.get_tasks_grouped_by_category()
        labels = {key: key for key in groups}
    elif group_by == "priority":
        by_priority = service.get_tasks_grouped_by_priority()
        groups = {key: by_priority[key] for key in sorted(by_priority, key=lambda p: p.level)}
        labels = {key: key.display_name for key in groups}
    else:
        by_status = service.get_tasks_grouped_by_status()
        groups = {key: by_status[key] for key in Status if key in by_status}
        labels = {key: key.display_name for key in groups}

    if output_format == "json":
        payload = {
            (key.value if isinstance(key, (Priority, Status)) else key): [
                format_task_json(t) for t in tasks
            ]
            for key, tasks in groups.items()
        }
        print(json.dumps(payload, ensure_ascii=False))
        return 0

    if not groups:
        print("タスクは登録されていません。")
    for key, tasks in groups.items():
        print(f"{labels[key]} ({len(tasks)})")
        for task in tasks:
            print(f"  - {task.title} [{task.id}]")
    return 0


def cmd_backup(service: TaskService, suffix: str, output_format: str) -> int:
    """データファイルのバックアップを作成"""
    ok = service.create_backup(suffix)
    backup_path = service.repository.path + suffix
    if output_format == "json":
        print(json.dumps({"backup": ok, "path": backup_path}, ensure_ascii=False))
    elif ok:
        print(f"バックアップを作成しました: {backup_path}")
    if not ok:
        print(f"Error: バックアップの作成に失敗しました: {backup_path}", file=sys.stderr)
        return 1
    return 0


def cmd_info(service: TaskService, output_format: str) -> int:
    """データファイルの情報を表示"""
    repo = service.repository
    if output_format == "json":
        print(
            json.dumps(
                {"path": repo.path, "exists": repo.exists(), "size": repo.size()},
                ensure_ascii=False,
            )
        )
    else:
        print(service.repository_info())
    return 0


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        prog="task_manager",
        description="タスク管理CLI - JSONファイルに保存されるタスクを操作します",
        formatter_class=argparse.RawDescriptionHelpFormatter,
    )
    parser.add_argument("--file", help="タスクJSONファイルのパス（デフォルト: 設定値 / tasks.json）")
    parser.add_argument("--config", help="YAML設定ファイルのパス")
    parser.add_argument("--log-level", help="ログレベル（設定値を上書き）")

    # 全サブコマンド共通の --format
    common = argparse.ArgumentParser(add_help=False)
    common.add_argument(
        "--format",
        choices=["json", "text"],
        default="text",
        help="出力フォーマット（デフォルト: text）",
    )

    subparsers = parser.add_subparsers(dest="command", help="実行するコマンド", required=True)

    subparsers.add_parser("list", parents=[common], help="タスク一覧を表示")

    parser_get = subparsers.add_parser("get", parents=[common], help="特定のタスクを表示")
    parser_get.add_argument("--id", required=True, help="タスクID")

    for name, help_text in (("add", "新しいタスクを追加"), ("update", "既存タスクを更新")):
        sub = subparsers.add_parser(name, parents=[common], help=help_text)
        if name == "update":
            sub.add_argument("--id", required=True, help="更新するタスクのID")
        sub.add_argument("--title", required=True, help="タイトル")
        sub.add_argument("--description", help="詳細説明（update では省略時にクリア）")
        sub.add_argument("--due-date", required=True, help="期限日（YYYY-MM-DD形式）")
        is_add = name == "add"
        sub.add_argument("--category", default="General" if is_add else None, help="カテゴリ")
        sub.add_argument(
            "--priority",
            type=str.upper,
            choices=PRIORITY_CHOICES,
            default=Priority.MEDIUM.value if is_add else None,
            help="優先度",
        )
        sub.add_argument(
            "--status",
            type=str.upper,
            choices=STATUS_CHOICES,
            default=Status.PENDING.value if is_add else None,
            help="ステータス",
        )

    for name, choices in (("status", STATUS_CHOICES), ("priority", PRIORITY_CHOICES), ("category", None)):
        sub = subparsers.add_parser(name, parents=[common], help=f"{name} のみ更新")
        sub.add_argument("--id", required=True, help="更新するタスクのID")
        if choices:
            sub.add_argument(
                "--value", required=True, type=str.upper, choices=choices, help=f"新しい{name}"
            )
        else:
            sub.add_argument("--value", required=True, help=f"新しい{name}")

    parser_delete = subparsers.add_parser("delete", parents=[common], help="タスクを削除")
    parser_delete.add_argument("--id", required=True, help="削除するタスクのID")

    parser_filter = subparsers.add_parser("filter", parents=[common], help="タスクを絞り込み")
    group = parser_filter.add_mutually_exclusive_group(required=True)
    group.add_argument("--category", help="カテゴリ（大文字小文字を区別しない）")
    group.add_argument("--priority", type=str.upper, choices=PRIORITY_CHOICES, help="優先度")
    group.add_argument("--status", type=str.upper, choices=STATUS_CHOICES, help="ステータス")

    parser_group = subparsers.add_parser("group", parents=[common], help="タスクをグループ化")
    parser_group.add_argument("--by", choices=["category", "priority", "status"], required=True)

    parser_backup = subparsers.add_parser("backup", parents=[common], help="バックアップを作成")
    parser_backup.add_argument("--suffix", help="バックアップファイルのsuffix（デフォルト: 設定値 / .bak）")

    subparsers.add_parser("info", parents=[common], help="データファイルの情報を表示")

    return parser


def main(argv: Optional[List[str]] = None) -> int:
    """CLIエントリポイント"""
    parser = build_parser()
    args = parser.parse_args(argv)

    try:
        config = Config.from_yaml(args.config) if args.config else Config.from_env()
    except (OSError, ValueError, yaml.YAMLError) as exc:
        print(f"Error: 設定ファイルを読み込めません: {exc}", file=sys.stderr)
        return 1
    setup_logger(log_level=args.log_level or config.log_level, log_file=config.log_file)

    # サービス初期化（読み込み失敗は警告ログのみで空の状態から開始）
    service = TaskService(TaskRepository(args.file or config.data_file))

    try:
        if args.command == "list":
            return cmd_list(service, args.format)
        elif args.command == "get":
            return cmd_get(service, args.id, args.format)
        elif args.command == "add":
            return cmd_add(service, args)
        elif args.command == "update":
            return cmd_update(service, args)
        elif args.command in ("status", "priority", "category"):
            return cmd_set_field(service, args)
        elif args.command == "delete":
            return cmd_delete(service, args.id, args.format)
        elif args.command == "filter":
            return cmd_filter(service, args)
        elif args.command == "group":
            return cmd_group(service, args.by, args.format)
        elif args.command == "backup":
            return cmd_backup(service, args.suffix or config.backup_suffix, args.format)
        elif args.command == "info":
            return cmd_info(service, args.format)
        else:
            print(f"Error: 不明なコマンド: {args.command}", file=sys.stderr)
            return 1
    except TaskValidationError as exc:
        print(f"Error: {exc}", file=sys.stderr)
        return 1


if __name__ == "__main__":
    sys.exit(main())
