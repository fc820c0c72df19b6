"""TaskService のCRUD・絞り込み・グループ化・永続化連携のテスト"""

import logging
import uuid
from datetime import date, timedelta

import pytest

from task_manager.exceptions import StorageError, TaskValidationError
from task_manager.models import Priority, Status, Task
from task_manager.repository import TaskRepository
from task_manager.service import TaskService

TOMORROW = (date.today() + timedelta(days=1)).isoformat()
NEXT_WEEK = (date.today() + timedelta(days=7)).isoformat()
YESTERDAY = (date.today() - timedelta(days=1)).isoformat()


class CountingRepository(TaskRepository):
    """save 呼び出し回数を数えるリポジトリ"""

    def __init__(self, file_path):
        super().__init__(file_path)
        self.saves = 0

    def save(self, tasks):
        self.saves += 1
        super().save(tasks)


@pytest.fixture
def repo(tmp_path):
    return CountingRepository(tmp_path / "tasks.json")


@pytest.fixture
def service(repo):
    return TaskService(repo)


@pytest.fixture
def sample(service):
    return [
        service.create_task("Write report", "Q3", TOMORROW, "Work", Priority.HIGH, Status.PENDING),
        service.create_task("Groceries", None, TOMORROW, "Personal", Priority.LOW, Status.IN_PROGRESS),
        service.create_task("Review PR", None, NEXT_WEEK, "Work", Priority.HIGH, Status.COMPLETED),
    ]


def test_create_task_appends_and_persists(service, repo):
    task = service.create_task("Buy supplies", "pens", TOMORROW)

    assert task.category == "General"
    assert service.get_all_tasks() == [task]
    assert repo.saves == 1
    assert [t.id for t in repo.load()] == [task.id]


def test_create_task_validation_error_propagates_without_persisting(service, repo):
    with pytest.raises(TaskValidationError):
        service.create_task("", None, TOMORROW)
    with pytest.raises(TaskValidationError):
        service.create_task("Late", None, YESTERDAY)

    assert service.get_all_tasks() == []
    assert repo.saves == 0
    assert not repo.exists()


def test_service_loads_existing_tasks(tmp_path):
    path = tmp_path / "tasks.json"
    TaskRepository(path).save([Task("Persisted", None, TOMORROW)])

    service = TaskService(TaskRepository(path))

    assert [t.title for t in service.get_all_tasks()] == ["Persisted"]


def test_service_starts_empty_when_file_is_corrupt(tmp_path, caplog):
    path = tmp_path / "tasks.json"
    path.write_text("not json", encoding="utf-8")

    with caplog.at_level(logging.ERROR, logger="task_manager.service"):
        service = TaskService(TaskRepository(path))

    assert service.get_all_tasks() == []
    assert "Failed to load tasks" in caplog.text
    assert service.create_task("Still usable", None, TOMORROW) is not None


def test_get_task_by_id(service, sample):
    first = sample[0]

    assert service.get_task_by_id(first.id) is first
    assert service.get_task_by_id(str(first.id)) is first
    assert service.get_task_by_id(None) is None
    assert service.get_task_by_id(uuid.uuid4()) is None
    assert service.get_task_by_id("not-a-uuid") is None


def test_get_all_tasks_returns_independent_copy(service, sample):
    snapshot = service.get_all_tasks()
    snapshot.clear()

    assert len(service.get_all_tasks()) == 3


def test_not_found_operations_do_not_persist(service, repo, sample):
    saves = repo.saves
    missing = uuid.uuid4()

    assert service.update_task(missing, "T", None, TOMORROW) is None
    assert service.update_task_status(missing, Status.COMPLETED) is None
    assert service.update_task_priority(missing, Priority.URGENT) is None
    assert service.update_task_category(missing, "Other") is None
    assert service.delete_task(missing) is False
    assert service.delete_task(None) is False

    assert repo.saves == saves


def test_update_task_changes_fields_and_persists(service, repo, sample):
    task = sample[0]

    updated = service.update_task(
        task.id,
        "Write final report",
        None,
        NEXT_WEEK,
        category="Office",
        priority=Priority.URGENT,
        status=Status.IN_PROGRESS,
    )

    assert updated is task
    assert task.title == "Write final report"
    assert task.description is None
    assert task.due_date == NEXT_WEEK
    assert task.category == "Office"
    assert task.priority is Priority.URGENT
    assert task.status is Status.IN_PROGRESS
    assert repo.load()[0].title == "Write final report"


def test_update_task_without_optional_fields_keeps_them(service, sample):
    task = sample[0]

    service.update_task(task.id, "Renamed", "desc", TOMORROW)

    assert task.category == "Work"
    assert task.priority is Priority.HIGH
    assert task.status is Status.PENDING


def test_update_task_rejects_explicit_none_priority(service, sample):
    with pytest.raises(TaskValidationError):
        service.update_task(sample[0].id, "Renamed", None, TOMORROW, priority=None)


def test_update_task_failure_leaves_task_unchanged(service, repo, sample):
    """不正なフィールドがあれば、先に指定したフィールドも反映しない（一括検証）"""
    task = sample[0]
    saves = repo.saves

    with pytest.raises(TaskValidationError):
        service.update_task(task.id, "Renamed", "changed", YESTERDAY, category="Office")

    assert task.title == "Write report"
    assert task.description == "Q3"
    assert task.category == "Work"
    assert repo.saves == saves


def test_single_field_updates(service, repo, sample):
    task = sample[1]

    assert service.update_task_status(task.id, Status.COMPLETED).status is Status.COMPLETED
    assert service.update_task_priority(task.id, Priority.URGENT).priority is Priority.URGENT
    assert service.update_task_category(task.id, " Home ").category == "Home"

    reloaded = repo.load()[1]
    assert reloaded.status is Status.COMPLETED
    assert reloaded.priority is Priority.URGENT
    assert reloaded.category == "Home"

    with pytest.raises(TaskValidationError):
        service.update_task_status(task.id, None)
    assert task.status is Status.COMPLETED


def test_delete_task(service, repo, sample):
    assert service.delete_task(sample[1].id) is True

    assert [t.title for t in service.get_all_tasks()] == ["Write report", "Review PR"]
    assert len(repo.load()) == 2
    assert service.delete_task(sample[1].id) is False


def test_filter_by_category_is_case_insensitive(service, sample):
    assert [t.title for t in service.get_tasks_by_category("work")] == ["Write report", "Review PR"]
    assert len(service.get_tasks_by_category("WORK")) == 2
    assert service.get_tasks_by_category(None) == []
    assert service.get_tasks_by_category("Missing") == []


def test_filter_by_priority_and_status(service, sample):
    assert [t.title for t in service.get_tasks_by_priority(Priority.HIGH)] == [
        "Write report",
        "Review PR",
    ]
    assert service.get_tasks_by_priority(Priority.URGENT) == []
    assert service.get_tasks_by_priority(None) == []
    assert [t.title for t in service.get_tasks_by_status(Status.IN_PROGRESS)] == ["Groceries"]
    assert service.get_tasks_by_status(None) == []


def test_group_by_category():
    """Work, Personal, Work の3件から Work→2件、Personal→1件 になる"""
    service = TaskService(FakeRepository())
    for category in ("Work", "Personal", "Work"):
        service.create_task(f"{category} task", None, TOMORROW, category=category)

    assert len(service.get_tasks_by_category("WORK")) == 2
    groups = service.get_tasks_grouped_by_category()
    assert set(groups) == {"Work", "Personal"}
    assert len(groups["Work"]) == 2
    assert len(groups["Personal"]) == 1


def test_group_by_status_and_priority_cover_every_task(service, sample):
    extra = service.create_task("Another", None, TOMORROW, "Work", Priority.HIGH, Status.PENDING)
    everything = sample + [extra]

    for groups in (
        service.get_tasks_grouped_by_status(),
        service.get_tasks_grouped_by_priority(),
    ):
        flattened = [task for bucket in groups.values() for task in bucket]
        assert sorted(t.id for t in flattened) == sorted(t.id for t in everything)
        assert all(groups.values())

    by_status = service.get_tasks_grouped_by_status()
    assert set(by_status) == {Status.PENDING, Status.IN_PROGRESS, Status.COMPLETED}
    assert by_status[Status.PENDING] == [sample[0], extra]
    assert Priority.MEDIUM not in service.get_tasks_grouped_by_priority()


def test_grouping_empty_service(service):
    assert service.get_tasks_grouped_by_category() == {}
    assert service.get_tasks_grouped_by_status() == {}


def test_save_failure_keeps_in_memory_change(service, repo, monkeypatch, caplog):
    def failing_save(tasks):
        raise StorageError("disk full", repo.path)

    monkeypatch.setattr(repo, "save", failing_save)

    with caplog.at_level(logging.ERROR, logger="task_manager.service"):
        task = service.create_task("Unsaved", None, TOMORROW)
        assert service.delete_task(uuid.uuid4()) is False
        assert service.update_task_status(task.id, Status.COMPLETED) is task

    assert service.get_task_by_id(task.id) is task
    assert task.status is Status.COMPLETED
    assert "Failed to save tasks" in caplog.text
    assert not repo.exists()


def test_create_backup(service, repo):
    assert service.create_backup(".bak") is False

    service.create_task("Backed up", None, TOMORROW)
    assert service.create_backup(".bak") is True
    assert len(TaskRepository(repo.path + ".bak").load()) == 1

    assert service.create_backup(None) is False


def test_repository_info(service, repo):
    info = service.repository_info()
    assert repo.path in info
    assert "Exists: no" in info
    assert "Size: n/a" in info

    service.create_task("Something", None, TOMORROW)
    info = service.repository_info()
    assert "Exists: yes" in info
    assert f"Size: {repo.size()} bytes" in info


def test_repository_info_when_parent_is_a_file(tmp_path):
    blocker = tmp_path / "blocker"
    blocker.write_text("not a directory", encoding="utf-8")
    target = blocker / "tasks.json"
    service = TaskService(TaskRepository(target))

    service.create_task("Unsaved", None, TOMORROW)

    assert service.repository_info() == f"File: {target} | Exists: no | Size: n/a"


class FakeRepository(TaskRepository):
    """ファイルに触れないインメモリのリポジトリ"""

    def __init__(self):
        super().__init__("fake-tasks.json")
        self.saved = None

    def load(self):
        return []

    def save(self, tasks):
        self.saved = list(tasks)
