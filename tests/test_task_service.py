from datetime import datetime, timezone
from uuid import uuid4

import pytest
from sqlmodel import Session

from taskboard.backend.core.errors import ForbiddenError, NotFoundError, ValidationError
from taskboard.backend.db.session import engine
from taskboard.backend.models.task import Task
from taskboard.backend.services.task_service import TaskService
from taskboard.backend.services.task_store import TaskStore

from .fakes import ExplodingEvents


def _stored(task_id) -> Task:
    with Session(engine) as s:
        return s.get(Task, task_id)


def _utc(value: datetime) -> datetime:
    # SQLite는 tz 정보를 떨어뜨리고 돌려준다
    return value if value.tzinfo else value.replace(tzinfo=timezone.utc)


def test_create_defaults_status_to_pending_and_scopes_list(service, user_a, user_b):
    task = service.create(user_a, {"title": "Buy milk"})

    assert task.status == "pending"
    assert task.owner_id == user_a
    assert [t.id for t in service.list(user_a)] == [task.id]
    assert service.list(user_b) == []


def test_create_trims_title_and_keeps_optional_fields(service, user_a):
    task = service.create(
        user_a,
        {
            "title": "  Write report  ",
            "description": "quarterly",
            "status": "in_progress",
            "due_date": "2030-05-01T09:30:00+02:00",
        },
    )

    assert task.title == "Write report"
    assert task.description == "quarterly"
    assert task.status == "in_progress"
    assert _utc(task.due_date) == datetime(2030, 5, 1, 7, 30, tzinfo=timezone.utc)


@pytest.mark.parametrize("title", [None, "", "   ", "x" * 256])
def test_create_rejects_bad_title_and_persists_nothing(service, user_a, title):
    fields = {} if title is None else {"title": title}

    with pytest.raises(ValidationError) as excinfo:
        service.create(user_a, fields)

    assert "title" in excinfo.value.errors
    assert service.list(user_a) == []


@pytest.mark.parametrize("status", [None, ""])
def test_create_with_null_or_blank_status_falls_back_to_pending(service, user_a, status):
    task = service.create(user_a, {"title": "t", "status": status})

    assert task.status == "pending"
    assert _stored(task.id).status == "pending"


def test_timestamps_are_stored_as_utc(service, user_a):
    before = datetime.now(timezone.utc)
    task = service.create(user_a, {"title": "t", "due_date": "2030-05-01T18:00:00+09:00"})

    stored = _stored(task.id)
    assert _utc(stored.due_date) == datetime(2030, 5, 1, 9, 0, tzinfo=timezone.utc)
    assert _utc(stored.created_at) >= before.replace(microsecond=0)
    assert _utc(stored.updated_at) >= _utc(stored.created_at)


def test_create_accepts_title_at_max_length(service, user_a):
    assert len(service.create(user_a, {"title": "x" * 255}).title) == 255


def test_create_rejects_unknown_status_and_bad_due_date(service, user_a):
    with pytest.raises(ValidationError) as excinfo:
        service.create(user_a, {"title": "t", "status": "done", "due_date": "not a date"})

    assert set(excinfo.value.errors) == {"status", "due_date"}


def test_create_ignores_client_supplied_owner_and_id(service, user_a, user_b):
    forced_id = uuid4()
    task = service.create(user_a, {"title": "t", "owner_id": str(user_b), "id": str(forced_id)})

    assert task.owner_id == user_a
    assert task.id != forced_id


def test_empty_due_date_string_is_treated_as_absent(service, user_a):
    assert service.create(user_a, {"title": "t", "due_date": ""}).due_date is None


def test_list_filters_by_status(service, user_a):
    a = service.create(user_a, {"title": "a"})
    b = service.create(user_a, {"title": "b", "status": "completed"})

    assert [t.id for t in service.list(user_a, "completed")] == [b.id]
    assert [t.id for t in service.list(user_a, "pending")] == [a.id]

    with pytest.raises(ValidationError):
        service.list(user_a, "archived")


def test_get_by_non_owner_is_forbidden(service, user_a, user_b):
    task = service.create(user_a, {"title": "secret"})

    with pytest.raises(ForbiddenError):
        service.get(user_b, task.id)


def test_get_missing_or_malformed_id_is_not_found(service, user_a):
    with pytest.raises(NotFoundError):
        service.get(user_a, uuid4())
    with pytest.raises(NotFoundError):
        service.get(user_a, "nope")


def test_non_owner_cannot_update_or_delete(service, user_a, user_b):
    task = service.create(user_a, {"title": "mine"})

    with pytest.raises(ForbiddenError):
        service.update(user_b, task.id, {"title": "theirs"})
    with pytest.raises(ForbiddenError):
        service.update_status(user_b, task.id, "completed")
    with pytest.raises(ForbiddenError):
        service.delete(user_b, task.id)

    stored = _stored(task.id)
    assert stored.title == "mine"
    assert stored.status == "pending"


def test_partial_update_only_touches_present_fields(service, user_a):
    task = service.create(
        user_a, {"title": "t", "status": "in_progress", "due_date": "2030-01-01T00:00:00"}
    )

    updated = service.update(user_a, task.id, {"description": "x"})

    assert updated.description == "x"
    assert updated.title == "t"
    assert updated.status == "in_progress"
    assert _utc(updated.due_date) == datetime(2030, 1, 1, tzinfo=timezone.utc)


def test_update_with_null_due_date_clears_it(service, user_a):
    task = service.create(user_a, {"title": "t", "due_date": "2030-01-01T00:00:00"})

    assert service.update(user_a, task.id, {"due_date": None}).due_date is None
    assert _stored(task.id).due_date is None


def test_update_rejects_null_title_or_status(service, user_a):
    task = service.create(user_a, {"title": "t"})

    with pytest.raises(ValidationError) as excinfo:
        service.update(user_a, task.id, {"title": None, "status": None})

    assert set(excinfo.value.errors) == {"title", "status"}
    assert _stored(task.id).title == "t"


@pytest.mark.parametrize(
    "fields, field",
    [
        ({"status": "done"}, "status"),
        ({"due_date": "not a date"}, "due_date"),
        ({"title": "x" * 256}, "title"),
    ],
)
def test_update_rejects_invalid_value_and_keeps_stored(service, events, user_a, fields, field):
    task = service.create(
        user_a, {"title": "t", "status": "in_progress", "due_date": "2030-01-01T00:00:00"}
    )

    with pytest.raises(ValidationError) as excinfo:
        service.update(user_a, task.id, fields)

    assert set(excinfo.value.errors) == {field}
    stored = _stored(task.id)
    assert stored.title == "t"
    assert stored.status == "in_progress"
    assert _utc(stored.due_date) == datetime(2030, 1, 1, tzinfo=timezone.utc)
    assert events.kinds() == ["task.created"]


def test_owner_id_is_immutable_across_updates(service, user_a, user_b):
    task = service.create(user_a, {"title": "t"})

    updated = service.update(user_a, task.id, {"owner_id": str(user_b), "title": "t2"})

    assert updated.owner_id == user_a
    assert _stored(task.id).owner_id == user_a


def test_update_status_then_get_reflects_it(service, user_a):
    task = service.create(user_a, {"title": "t"})

    service.update_status(user_a, task.id, "completed")

    assert service.get(user_a, task.id).status == "completed"
    # 어떤 상태로든 되돌릴 수 있다
    assert service.update_status(user_a, task.id, "pending").status == "pending"


@pytest.mark.parametrize("bad", ["done", "", "COMPLETED", None])
def test_update_status_rejects_unknown_value_and_keeps_stored(service, user_a, bad):
    task = service.create(user_a, {"title": "t", "status": "in_progress"})

    with pytest.raises(ValidationError):
        service.update_status(user_a, task.id, bad)

    assert _stored(task.id).status == "in_progress"


def test_delete_twice_second_is_not_found(service, user_a):
    task = service.create(user_a, {"title": "t"})

    service.delete(user_a, task.id)

    with pytest.raises(NotFoundError):
        service.delete(user_a, task.id)
    with pytest.raises(NotFoundError):
        service.get(user_a, task.id)


def test_mutations_publish_events_to_owner(service, events, user_a):
    task = service.create(user_a, {"title": "Buy milk"})
    service.update(user_a, task.id, {"description": "2L"})
    service.update_status(user_a, task.id, "completed")
    service.delete(user_a, task.id)

    assert events.kinds() == ["task.created", "task.updated", "task.updated", "task.deleted"]
    assert {owner for owner, _ in events.published} == {str(user_a)}

    created = events.published[0][1]
    assert created["task"]["id"] == str(task.id)
    assert created["task"]["title"] == "Buy milk"
    assert created["message"]
    assert created["timestamp"]
    assert "owner_id" not in created["task"]


def test_failed_validation_publishes_nothing(service, events, user_a):
    with pytest.raises(ValidationError):
        service.create(user_a, {"title": ""})

    assert events.published == []


def test_event_delivery_failure_does_not_fail_mutation(db, user_a):
    service = TaskService(TaskStore(db), events=ExplodingEvents())

    task = service.create(user_a, {"title": "still saved"})

    assert _stored(task.id).title == "still saved"


def test_owner_needs_no_user_row(service):
    stranger = uuid4()

    assert not Task.__table__.c.owner_id.foreign_keys
    assert service.create(stranger, {"title": "t"}).owner_id == stranger
