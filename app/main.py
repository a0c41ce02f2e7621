from contextlib import asynccontextmanager
from typing import Any, Dict

from fastapi import Body, Depends, FastAPI, Request, status
from fastapi.exceptions import RequestValidationError
from fastapi.responses import HTMLResponse, JSONResponse

from .config import get_settings
from .database import Base, engine
from .logger import setup_logging
from .schemas import ApiResponse, ErrorKind
from .service import TaskAPI, build_api
from .ui import AppState

settings = get_settings()
setup_logging(settings.log_level)

Base.metadata.create_all(bind=engine)

_api = build_api(settings)


def get_api() -> TaskAPI:
    return _api


@asynccontextmanager
async def lifespan(app: FastAPI):
    _api.initialize()
    yield


app = FastAPI(title="Task Manager API", version="1.0.0", lifespan=lifespan)

ERROR_STATUS = {
    ErrorKind.NOT_FOUND: status.HTTP_404_NOT_FOUND,
    ErrorKind.INVALID_ID: status.HTTP_400_BAD_REQUEST,
    ErrorKind.VALIDATION_FAILED: 422,
    ErrorKind.OPERATION_FAILED: status.HTTP_500_INTERNAL_SERVER_ERROR,
}


def _respond(result: ApiResponse, success_code: int = status.HTTP_200_OK) -> JSONResponse:
    code = success_code if result.success else ERROR_STATUS.get(result.error, status.HTTP_400_BAD_REQUEST)
    return JSONResponse(status_code=code, content=result.to_payload())


@app.exception_handler(RequestValidationError)
async def request_validation_handler(request: Request, exc: RequestValidationError):
    errors = exc.errors()
    message = errors[0].get("msg", "Invalid request body") if errors else "Invalid request body"
    return _respond(ApiResponse(success=False, error=ErrorKind.VALIDATION_FAILED, message=message))


@app.get("/health")
def health_check():
    return {"status": "ok"}


@app.get("/api/tasks")
async def list_tasks(api: TaskAPI = Depends(get_api)):
    return _respond(await api.list())


@app.get("/api/stats")
async def task_stats(api: TaskAPI = Depends(get_api)):
    return _respond(await api.stats())


@app.get("/api/tasks/{task_id}")
async def get_task(task_id: str, api: TaskAPI = Depends(get_api)):
    return _respond(await api.get_one(task_id))


@app.post("/api/tasks")
async def create_task(task_in: Dict[str, Any] = Body(...), api: TaskAPI = Depends(get_api)):
    return _respond(await api.create(task_in), status.HTTP_201_CREATED)


@app.put("/api/tasks/{task_id}")
async def update_task(task_id: str, task_in: Dict[str, Any] = Body(...), api: TaskAPI = Depends(get_api)):
    return _respond(await api.update(task_id, task_in))


@app.patch("/api/tasks/{task_id}/toggle")
async def toggle_task(task_id: str, api: TaskAPI = Depends(get_api)):
    return _respond(await api.toggle_status(task_id))


@app.delete("/api/tasks/{task_id}")
async def delete_task(task_id: str, api: TaskAPI = Depends(get_api)):
    return _respond(await api.delete(task_id))


@app.get("/", response_class=HTMLResponse)
async def dashboard(api: TaskAPI = Depends(get_api)):
    state = AppState(api)
    await state.load_tasks()
    return state.render_dashboard()
