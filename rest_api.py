import logging
from typing import Any, Optional

from fastapi import APIRouter, FastAPI, Request
from fastapi.exceptions import RequestValidationError
from fastapi.responses import JSONResponse
from pydantic import BaseModel

from todo_store import Err, PersistenceError, TodoStore

logger = logging.getLogger("todo_app.rest")

API_BASE = "/api/todos"


class TitleRequest(BaseModel):
    title: Optional[str] = None


class IndexRequest(BaseModel):
    index: Optional[int] = None


def _error(status_code: int, message: str) -> JSONResponse:
    return JSONResponse({"error": message}, status_code=status_code)


def _todos(store: TodoStore) -> list[dict[str, Any]]:
    return [t.to_dict() for t in store.list()]


def create_todo_router(store: TodoStore, prefix: str = API_BASE) -> APIRouter:
    """REST routes over `store`. Input is validated here before it reaches the store."""
    router = APIRouter(prefix=prefix, tags=["todos"])

    @router.get("")
    def list_todos() -> dict[str, Any]:
        return {"todos": _todos(store)}

    @router.post("", status_code=201)
    def add_todo(body: Optional[TitleRequest] = None) -> Any:
        title = ((body and body.title) or "").strip()
        if not title:
            return _error(400, "Missing or empty title")
        todo = store.add(title)
        return {"todo": todo.to_dict(), "todos": _todos(store)}

    @router.post("/complete-by-index")
    def complete_by_index(body: Optional[IndexRequest] = None) -> Any:
        index = body.index if body else None
        if index is None or index < 1:
            return _error(400, "Invalid index")
        result = store.complete_by_index(index)
        if isinstance(result, Err):
            return _error(400, "Invalid index")
        return {"todo": result.todo.to_dict(), "index": result.index, "todos": _todos(store)}

    @router.post("/complete-by-title")
    def complete_by_title(body: Optional[TitleRequest] = None) -> Any:
        query = ((body and body.title) or "").strip()
        if not query:
            return _error(400, "Missing search title")
        result = store.complete_by_title(query)
        if isinstance(result, Err):
            return _error(400, "No incomplete todo found matching this title")
        return {"todo": result.todo.to_dict(), "todos": _todos(store)}

    # Registered before /{todo_id} so "completed" is not taken for an id
    @router.delete("/completed")
    def delete_completed() -> dict[str, Any]:
        removed = store.delete_completed()
        return {"deleted": [t.to_dict() for t in removed], "todos": _todos(store)}

    @router.put("/{todo_id}")
    def complete_todo(todo_id: str) -> Any:
        result = store.complete_by_id(todo_id)
        if isinstance(result, Err):
            return _error(404, f"Todo {todo_id} not found")
        return {"todo": result.todo.to_dict(), "todos": _todos(store)}

    @router.delete("/{todo_id}")
    def delete_todo(todo_id: str) -> Any:
        result = store.delete_by_id(todo_id)
        if isinstance(result, Err):
            return _error(404, f"Todo {todo_id} not found")
        return {"todo": result.todo.to_dict(), "todos": _todos(store)}

    return router


def install_error_handlers(app: FastAPI) -> None:
    """Map body validation and persistence failures to JSON error responses."""

    @app.exception_handler(RequestValidationError)
    async def invalid_body(request: Request, exc: RequestValidationError) -> JSONResponse:
        logger.info("rejected body for %s %s: %s", request.method, request.url.path, exc.errors())
        return _error(400, "Invalid request body")

    @app.exception_handler(PersistenceError)
    async def persistence_failed(request: Request, exc: PersistenceError) -> JSONResponse:
        logger.error("persistence failure on %s %s: %s", request.method, request.url.path, exc)
        return _error(500, "Failed to persist todos")
