"""
Presentation state and HTML rendering for the task views.

AppState keeps a cached copy of the collection plus the view settings
(page, status filter, search text, edit/delete targets) and turns them into
markup strings. Nothing here touches storage directly; every change goes
through the TaskAPI.
"""

import logging
from datetime import date, datetime, timezone
from html import escape
from typing import Any, Dict, List, Mapping, Optional

from .schemas import ApiResponse, Status, Task, TaskStats
from .service import TaskAPI, compute_stats

logger = logging.getLogger(__name__)

PAGES = ("dashboard", "tasks", "add-task", "edit-task")
FILTERS = ("all", "pending", "completed")

TITLE_REQUIRED = "Task title is required"


def format_date(value) -> str:
    """Short US style, e.g. 'Sep 15, 2025'."""
    if value is None:
        return "No due date"
    if isinstance(value, datetime):
        value = value.astimezone(timezone.utc).date()
    return f"{value:%b} {value.day}, {value.year}"


def filter_by_status(tasks: List[Task], status_filter: str) -> List[Task]:
    if status_filter == "pending":
        return [t for t in tasks if t.status == Status.PENDING]
    if status_filter == "completed":
        return [t for t in tasks if t.status == Status.COMPLETED]
    return list(tasks)


def search_tasks(tasks: List[Task], query: str) -> List[Task]:
    if not query.strip():
        return list(tasks)
    needle = query.lower()
    return [
        t for t in tasks
        if needle in t.title.lower() or needle in t.description.lower()
    ]


def is_overdue(task: Task, today: date) -> bool:
    return task.status == Status.PENDING and task.due_date is not None and task.due_date < today


def render_task_card(task: Task, today: Optional[date] = None) -> str:
    today = today or date.today()
    overdue = " overdue" if is_overdue(task, today) else ""
    toggle = "&#x2705;" if task.status == Status.COMPLETED else "&#x2B55;"
    return (
        f'<div class="task-card {task.status.value.lower()}" data-task-id="{task.id}">'
        f'<div class="task-header">'
        f'<h3 class="task-title">{escape(task.title)}</h3>'
        f'<span class="task-priority {task.priority.value.lower()}">{task.priority.value}</span>'
        f'</div>'
        f'<p class="task-description">{escape(task.description)}</p>'
        f'<div class="task-meta">'
        f'<div class="task-due-date{overdue}">Due: {format_date(task.due_date)}</div>'
        f'<div class="task-created">Created: {format_date(task.created_at)}</div>'
        f'</div>'
        f'<div class="task-actions">'
        f'<div class="task-status">'
        f'<button class="status-toggle" data-task-id="{task.id}" data-action="toggle">{toggle}</button>'
        f'<span>{task.status.value}</span>'
        f'</div>'
        f'<div class="action-buttons">'
        f'<button class="action-btn edit" data-task-id="{task.id}" data-action="edit" title="Edit Task">Edit</button>'
        f'<button class="action-btn delete" data-task-id="{task.id}" data-action="delete" title="Delete Task">Delete</button>'
        f'</div>'
        f'</div>'
        f'</div>'
    )


class AppState:
    def __init__(self, api: TaskAPI):
        self.api = api
        self.current_page: str = "dashboard"
        self.tasks: List[Task] = []
        self.filtered_tasks: List[Task] = []
        self.current_filter: str = "all"
        self.search_query: str = ""
        self.editing_task_id: Optional[int] = None
        self.delete_task_id: Optional[int] = None
        self.last_message: Optional[str] = None

    # -------------------- navigation --------------------
    def navigate_to(self, page: str) -> None:
        if page not in PAGES:
            raise ValueError(f"Unknown page: {page}")
        self.current_page = page
        if page != "edit-task":
            self.editing_task_id = None

    # -------------------- loading --------------------
    async def load_tasks(self) -> bool:
        response = await self.api.list()
        if not response.success:
            logger.error("Failed to load tasks: %s", response.message)
            self.last_message = response.message
            return False
        self.tasks = list(response.data)
        self.apply_current_filter()
        return True

    # -------------------- filtering --------------------
    def set_filter(self, status_filter: str) -> List[Task]:
        if status_filter not in FILTERS:
            raise ValueError(f"Unknown filter: {status_filter}")
        self.current_filter = status_filter
        return self.apply_current_filter()

    def search(self, query: str) -> List[Task]:
        self.search_query = query
        return self.apply_current_filter()

    def apply_current_filter(self) -> List[Task]:
        self.filtered_tasks = search_tasks(
            filter_by_status(self.tasks, self.current_filter), self.search_query
        )
        return self.filtered_tasks

    # -------------------- derived views --------------------
    def calculate_stats(self) -> TaskStats:
        return compute_stats(self.tasks)

    def recent_tasks(self, limit: int = 3) -> List[Task]:
        return sorted(self.tasks, key=lambda t: t.created_at, reverse=True)[:limit]

    def find_task(self, task_id: Any) -> Optional[Task]:
        try:
            wanted = int(task_id)
        except (TypeError, ValueError):
            return None
        return next((t for t in self.tasks if t.id == wanted), None)

    # -------------------- mutations --------------------
    async def _after_write(self, response: ApiResponse, page: Optional[str] = None) -> ApiResponse:
        self.last_message = response.message
        if response.success:
            await self.load_tasks()
            if page:
                self.navigate_to(page)
        return response

    async def submit_new(self, form: Mapping[str, Any]) -> ApiResponse:
        data: Dict[str, Any] = {
            "title": str(form.get("title") or "").strip(),
            "description": str(form.get("description") or "").strip(),
            "priority": form.get("priority") or "Medium",
            "dueDate": form.get("dueDate") or None,
            "status": Status.PENDING.value,
        }
        if not data["title"]:
            self.last_message = TITLE_REQUIRED
            return ApiResponse(success=False, message=TITLE_REQUIRED)
        return await self._after_write(await self.api.create(data), page="tasks")

    def begin_edit(self, task_id: Any) -> Optional[Task]:
        task = self.find_task(task_id)
        if task is not None:
            self.editing_task_id = task.id
            self.navigate_to("edit-task")
        return task

    async def submit_edit(self, form: Mapping[str, Any]) -> ApiResponse:
        if self.editing_task_id is None:
            return ApiResponse(success=False, message="No task is being edited")
        data = {k: form[k] for k in ("title", "description", "priority", "dueDate", "status") if k in form}
        if not str(data.get("title") or "").strip():
            self.last_message = TITLE_REQUIRED
            return ApiResponse(success=False, message=TITLE_REQUIRED)
        response = await self.api.update(self.editing_task_id, data)
        return await self._after_write(response, page="tasks")

    async def toggle_status(self, task_id: Any) -> ApiResponse:
        if self.find_task(task_id) is None:
            return ApiResponse(success=False, message="Task not found")
        return await self._after_write(await self.api.toggle_status(task_id))

    def request_delete(self, task_id: Any) -> None:
        task = self.find_task(task_id)
        self.delete_task_id = task.id if task is not None else None

    def cancel_delete(self) -> None:
        self.delete_task_id = None

    async def confirm_delete(self) -> Optional[ApiResponse]:
        if self.delete_task_id is None:
            return None
        try:
            response = await self.api.delete(self.delete_task_id)
            return await self._after_write(response)
        finally:
            self.delete_task_id = None

    # -------------------- rendering --------------------
    def render_tasks(self, today: Optional[date] = None) -> str:
        if not self.filtered_tasks:
            return (
                '<div id="empty-state" class="empty-state">'
                '<h3>No tasks found</h3>'
                '<p>Create a task or adjust the current filter.</p>'
                '</div>'
            )
        cards = "".join(render_task_card(t, today) for t in self.filtered_tasks)
        return f'<div id="tasks-container">{cards}</div>'

    def render_dashboard(self, today: Optional[date] = None) -> str:
        stats = self.calculate_stats()
        cards = "".join(render_task_card(t, today) for t in self.recent_tasks())
        return (
            '<section id="dashboard-page" class="page active">'
            '<div class="stats">'
            f'<div class="stat"><span id="total-tasks">{stats.total}</span> Total</div>'
            f'<div class="stat"><span id="pending-tasks">{stats.pending}</span> Pending</div>'
            f'<div class="stat"><span id="completed-tasks">{stats.completed}</span> Completed</div>'
            f'<div class="stat"><span id="high-priority-tasks">{stats.high_priority}</span> High Priority</div>'
            '</div>'
            f'<div id="recent-tasks-container">{cards}</div>'
            '</section>'
        )
