"""
Asynchronous task API.

Stands in for a remote REST boundary: every call waits a fixed delay and
answers with an ApiResponse envelope instead of raising. Identifiers and
field payloads are validated here, before the storage layer sees them.
"""

import asyncio
import logging
from typing import Any, Callable, Mapping, Optional, Union

from pydantic import ValidationError
from sqlalchemy.orm import Session

from . import crud, schemas
from .schemas import ApiResponse, ErrorKind

logger = logging.getLogger(__name__)

TaskId = Union[int, str]

MSG_NOT_FOUND = "Task not found"
MSG_INVALID_ID = "Invalid task id"


class InvalidTaskId(ValueError):
    """Raised when a task identifier is not a positive integer."""

    def __init__(self, raw: Any):
        super().__init__(f"Invalid task id: {raw!r}")
        self.raw = raw


def parse_task_id(raw: TaskId) -> int:
    """Accept positive ints and decimal digit strings such as '42' or ' 7 '."""
    if isinstance(raw, bool):
        raise InvalidTaskId(raw)
    if isinstance(raw, int):
        value = raw
    elif isinstance(raw, str) and raw.strip().isdigit() and raw.strip().isascii():
        value = int(raw.strip())
    else:
        raise InvalidTaskId(raw)
    if value < 1:
        raise InvalidTaskId(raw)
    return value


def _first_error(exc: ValidationError) -> str:
    error = exc.errors()[0]
    field = ".".join(str(part) for part in error.get("loc", ()))
    message = error.get("msg", "Invalid value")
    if message.startswith("Value error, "):
        message = message[len("Value error, "):]
    return f"{field}: {message}" if field else message


def _fail(kind: ErrorKind, message: str) -> ApiResponse:
    return ApiResponse(success=False, message=message, error=kind)


class TaskAPI:
    """
    Async CRUD facade over the storage layer.

    Args:
        session_factory: Callable returning a new SQLAlchemy Session
        key: Storage slot holding the task collection
        read_delay: Seconds to wait before answering list/get calls
        write_delay: Seconds to wait before answering create/update/delete calls
    """

    def __init__(
        self,
        session_factory: Callable[[], Session],
        key: str = crud.STORAGE_KEY,
        read_delay: float = 0.05,
        write_delay: float = 0.1,
    ):
        self.session_factory = session_factory
        self.key = key
        self.read_delay = read_delay
        self.write_delay = write_delay

    def initialize(self) -> bool:
        with self.session_factory() as db:
            return crud.initialize(db, self.key)

    async def _delay(self, seconds: float) -> None:
        await asyncio.sleep(seconds)

    # GET /api/tasks
    async def list(self) -> ApiResponse:
        await self._delay(self.read_delay)
        try:
            with self.session_factory() as db:
                tasks = crud.get_tasks(db, self.key)
        except Exception:
            logger.exception("Failed to load tasks")
            return _fail(ErrorKind.OPERATION_FAILED, "Failed to load tasks")
        return ApiResponse(success=True, data=tasks, message="Tasks retrieved successfully")

    # GET /api/tasks/:id
    async def get_one(self, task_id: TaskId) -> ApiResponse:
        await self._delay(self.read_delay)
        try:
            parsed = parse_task_id(task_id)
        except InvalidTaskId:
            return _fail(ErrorKind.INVALID_ID, MSG_INVALID_ID)
        try:
            with self.session_factory() as db:
                task = crud.get_task(db, parsed, self.key)
        except Exception:
            logger.exception("Failed to load task %d", parsed)
            return _fail(ErrorKind.OPERATION_FAILED, "Failed to load task")
        if task is None:
            return _fail(ErrorKind.NOT_FOUND, MSG_NOT_FOUND)
        return ApiResponse(success=True, data=task, message="Task retrieved successfully")

    # POST /api/tasks
    async def create(self, fields: Mapping[str, Any]) -> ApiResponse:
        await self._delay(self.write_delay)
        try:
            task_in = schemas.TaskCreate.model_validate(dict(fields))
        except ValidationError as exc:
            return _fail(ErrorKind.VALIDATION_FAILED, _first_error(exc))
        try:
            with self.session_factory() as db:
                task = crud.create_task(db, task_in, self.key)
        except Exception:
            logger.exception("Failed to create task")
            return _fail(ErrorKind.OPERATION_FAILED, "Failed to create task")
        logger.info("Created task %d", task.id)
        return ApiResponse(success=True, data=task, message="Task created successfully")

    # PUT /api/tasks/:id
    async def update(self, task_id: TaskId, fields: Mapping[str, Any]) -> ApiResponse:
        await self._delay(self.write_delay)
        try:
            parsed = parse_task_id(task_id)
        except InvalidTaskId:
            return _fail(ErrorKind.INVALID_ID, MSG_INVALID_ID)
        try:
            patch = schemas.TaskPatch.model_validate(dict(fields))
        except ValidationError as exc:
            return _fail(ErrorKind.VALIDATION_FAILED, _first_error(exc))
        try:
            with self.session_factory() as db:
                task = crud.update_task(db, parsed, patch, self.key)
        except Exception:
            logger.exception("Failed to update task %d", parsed)
            return _fail(ErrorKind.OPERATION_FAILED, "Failed to update task")
        if task is None:
            return _fail(ErrorKind.NOT_FOUND, MSG_NOT_FOUND)
        logger.info("Updated task %d", task.id)
        return ApiResponse(success=True, data=task, message="Task updated successfully")

    async def toggle_status(self, task_id: TaskId) -> ApiResponse:
        await self._delay(self.write_delay)
        try:
            parsed = parse_task_id(task_id)
        except InvalidTaskId:
            return _fail(ErrorKind.INVALID_ID, MSG_INVALID_ID)
        try:
            with self.session_factory() as db:
                task = crud.toggle_task_status(db, parsed, self.key)
        except Exception:
            logger.exception("Failed to toggle task %d", parsed)
            return _fail(ErrorKind.OPERATION_FAILED, "Failed to update task status")
        if task is None:
            return _fail(ErrorKind.NOT_FOUND, MSG_NOT_FOUND)
        return ApiResponse(
            success=True,
            data=task,
            message=f"Task marked as {task.status.value.lower()}",
        )

    # DELETE /api/tasks/:id
    async def delete(self, task_id: TaskId) -> ApiResponse:
        await self._delay(self.write_delay)
        try:
            parsed = parse_task_id(task_id)
        except InvalidTaskId:
            return _fail(ErrorKind.INVALID_ID, MSG_INVALID_ID)
        try:
            with self.session_factory() as db:
                crud.delete_task(db, parsed, self.key)
        except Exception:
            logger.exception("Failed to delete task %d", parsed)
            return _fail(ErrorKind.OPERATION_FAILED, "Failed to delete task")
        logger.info("Deleted task %d", parsed)
        return ApiResponse(success=True, message="Task deleted successfully")

    async def stats(self) -> ApiResponse:
        await self._delay(self.read_delay)
        try:
            with self.session_factory() as db:
                tasks = crud.get_tasks(db, self.key)
        except Exception:
            logger.exception("Failed to load tasks")
            return _fail(ErrorKind.OPERATION_FAILED, "Failed to load tasks")
        return ApiResponse(success=True, data=compute_stats(tasks), message="Stats retrieved successfully")


def compute_stats(tasks) -> schemas.TaskStats:
    return schemas.TaskStats(
        total=len(tasks),
        pending=sum(1 for t in tasks if t.status == schemas.Status.PENDING),
        completed=sum(1 for t in tasks if t.status == schemas.Status.COMPLETED),
        high_priority=sum(1 for t in tasks if t.priority == schemas.Priority.HIGH),
    )


def build_api(settings, session_factory: Optional[Callable[[], Session]] = None) -> TaskAPI:
    if session_factory is None:
        from .database import SessionLocal
        session_factory = SessionLocal
    return TaskAPI(
        session_factory,
        key=settings.storage_key,
        read_delay=settings.read_delay_ms / 1000,
        write_delay=settings.write_delay_ms / 1000,
    )
