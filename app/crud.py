import json
import logging
from datetime import datetime, timedelta, timezone
from typing import List, Optional

from pydantic import TypeAdapter, ValidationError
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.orm import Session

from . import models, schemas
from .seed import SEED_TASKS

logger = logging.getLogger(__name__)

STORAGE_KEY = "meanstack_tasks"

_task_list = TypeAdapter(List[schemas.Task])


def utcnow() -> datetime:
    return schemas.to_millis(datetime.now(timezone.utc))


def _touch(previous: datetime) -> datetime:
    # updatedAt must move forward even when the clock has not
    now = utcnow()
    if now <= previous:
        now = previous + timedelta(milliseconds=1)
    return now


# ------------------------------------------------------------
# Serialization of the collection
# ------------------------------------------------------------

def dump_tasks(tasks: List[schemas.Task]) -> str:
    return json.dumps([t.model_dump(mode="json", by_alias=True) for t in tasks])


def load_tasks(raw: Optional[str]) -> List[schemas.Task]:
    """Decode a stored collection; anything unreadable counts as empty."""
    if not raw:
        return []
    try:
        return _task_list.validate_json(raw)
    except ValidationError as exc:
        logger.warning("Discarding unreadable task collection: %s", exc.errors()[0]["msg"])
        return []


# ------------------------------------------------------------
# Slot access
# ------------------------------------------------------------

def _read_slot(db: Session, key: str) -> Optional[str]:
    slot = db.get(models.StorageSlot, key)
    return slot.value if slot is not None else None


def _write_slot(db: Session, key: str, tasks: List[schemas.Task]) -> None:
    value = dump_tasks(tasks)
    try:
        slot = db.get(models.StorageSlot, key)
        if slot is None:
            db.add(models.StorageSlot(key=key, value=value))
        else:
            slot.value = value
        db.commit()
    except SQLAlchemyError:
        db.rollback()
        raise
    logger.debug("Stored %d tasks under %r", len(tasks), key)


def clear(db: Session, key: str = STORAGE_KEY) -> None:
    slot = db.get(models.StorageSlot, key)
    if slot is not None:
        db.delete(slot)
        db.commit()


# ------------------------------------------------------------
# Task operations
# ------------------------------------------------------------

def initialize(db: Session, key: str = STORAGE_KEY) -> bool:
    if _read_slot(db, key) is not None:
        return False
    _write_slot(db, key, _task_list.validate_python(SEED_TASKS))
    logger.info("Seeded %d sample tasks under %r", len(SEED_TASKS), key)
    return True


def get_tasks(db: Session, key: str = STORAGE_KEY) -> List[schemas.Task]:
    return load_tasks(_read_slot(db, key))


def get_task(db: Session, task_id: int, key: str = STORAGE_KEY) -> Optional[schemas.Task]:
    return next((t for t in get_tasks(db, key) if t.id == task_id), None)


def next_id(tasks: List[schemas.Task]) -> int:
    return max((t.id for t in tasks), default=0) + 1


def create_task(db: Session, task_in: schemas.TaskCreate, key: str = STORAGE_KEY) -> schemas.Task:
    tasks = get_tasks(db, key)
    now = utcnow()
    task = schemas.Task(
        id=next_id(tasks),
        **task_in.model_dump(),
        created_at=now,
        updated_at=now,
    )
    tasks.append(task)
    _write_slot(db, key, tasks)
    return task


def update_task(db: Session, task_id: int, patch: schemas.TaskPatch,
                key: str = STORAGE_KEY) -> Optional[schemas.Task]:
    tasks = get_tasks(db, key)
    for index, task in enumerate(tasks):
        if task.id == task_id:
            changes = patch.changes()
            changes["updated_at"] = _touch(task.updated_at)
            tasks[index] = task.model_copy(update=changes)
            _write_slot(db, key, tasks)
            return tasks[index]
    return None


def toggle_task_status(db: Session, task_id: int, key: str = STORAGE_KEY) -> Optional[schemas.Task]:
    task = get_task(db, task_id, key)
    if task is None:
        return None
    if task.status == schemas.Status.COMPLETED:
        new_status = schemas.Status.PENDING
    else:
        new_status = schemas.Status.COMPLETED
    return update_task(db, task_id, schemas.TaskPatch(status=new_status), key)


def delete_task(db: Session, task_id: int, key: str = STORAGE_KEY) -> bool:
    tasks = get_tasks(db, key)
    _write_slot(db, key, [t for t in tasks if t.id != task_id])
    return True
