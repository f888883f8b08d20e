# Import dependencies

import logging
from typing import Any, List, Optional, Sequence

from mcp.server.fastmcp import FastMCP
from mcp.server.transport_security import TransportSecuritySettings

from todo_store import Err, Todo, TodoStore

logger = logging.getLogger("todo_app.server")

SERVER_NAME = "todo-app"


def _plural(count: int, word: str) -> str:
    return f"{count} {word}" if count == 1 else f"{count} {word}s"


def _reply(message: str, tasks: List[Todo]) -> dict[str, Any]:
    return {"message": message, "tasks": [t.to_dict() for t in tasks]}


class TodoTools:
    """Tool handlers bound to one store. Each returns a message plus the full list."""

    def __init__(self, store: TodoStore) -> None:
        self.store = store

    def list_todos(self) -> dict[str, Any]:
        """
        Returns a list of all todos with their IDs and completion status.
        """
        todos = self.store.list()
        if not todos:
            return _reply("No todos yet.", todos)
        completed = sum(1 for t in todos if t.completed)
        summary = (
            f"You have {_plural(len(todos), 'task')} "
            f"({completed} completed, {len(todos) - completed} remaining)"
        )
        return _reply(summary, todos)

    def add_todo(self, title: str) -> dict[str, Any]:
        """
        Creates a todo item with the given title.

        Args:
          title: Todo title (required, non-empty).
        """
        title = (title or "").strip()
        if not title:
            return _reply("Missing title.", self.store.list())
        todo = self.store.add(title)
        return _reply(f'Added "{todo.title}".', self.store.list())

    def complete_todo(self, id: str) -> dict[str, Any]:
        """
        Marks a todo as done by id.

        Args:
          id: The todo id, e.g. "todo-3".
        """
        todo_id = (id or "").strip()
        if not todo_id:
            return _reply("Missing todo id.", self.store.list())
        result = self.store.complete_by_id(todo_id)
        if isinstance(result, Err):
            return _reply(f"Todo {todo_id} was not found.", self.store.list())
        return _reply(f'Completed "{result.todo.title}".', self.store.list())

    def complete_todo_by_index(self, index: int) -> dict[str, Any]:
        """
        Marks a todo as done by its position in the list (1 = first task, 2 = second, etc).

        Args:
          index: 1-based position in the list.
        """
        if not index:
            return _reply("Missing todo index.", self.store.list())
        result = self.store.complete_by_index(index)
        if isinstance(result, Err):
            count = len(self.store.list())
            return _reply(f"Invalid index. There are only {count} todo(s).", self.store.list())
        if not result.changed:
            return _reply(f'"{result.todo.title}" is already completed.', self.store.list())
        return _reply(
            f'Completed "{result.todo.title}" (task #{result.index}).',
            self.store.list(),
        )

    def complete_todo_by_title(self, title: str) -> dict[str, Any]:
        """
        Marks a todo as done by searching for a matching title (partial match supported).

        Args:
          title: Text to look for in incomplete todo titles, case-insensitive.
        """
        query = (title or "").strip()
        if not query:
            return _reply("Missing search title.", self.store.list())
        result = self.store.complete_by_title(query)
        if isinstance(result, Err):
            return _reply(f'No incomplete todo found matching "{query}".', self.store.list())
        return _reply(f'Completed "{result.todo.title}".', self.store.list())

    def delete_todo(self, id: str) -> dict[str, Any]:
        """
        Deletes a todo by id.

        Args:
          id: The todo id, e.g. "todo-3".
        """
        todo_id = (id or "").strip()
        if not todo_id:
            return _reply("Missing todo id.", self.store.list())
        result = self.store.delete_by_id(todo_id)
        if isinstance(result, Err):
            return _reply(f"Todo {todo_id} was not found.", self.store.list())
        return _reply(f'Deleted "{result.todo.title}".', self.store.list())

    def delete_completed(self) -> dict[str, Any]:
        """
        Removes all completed todos from the list.
        """
        removed = self.store.delete_completed()
        if not removed:
            return _reply("No completed todos to clear.", self.store.list())
        return _reply(f"Cleared {_plural(len(removed), 'completed todo')}.", self.store.list())


# tool name, display title
_TOOLS = [
    ("list_todos", "List todos"),
    ("add_todo", "Add todo"),
    ("complete_todo", "Complete todo"),
    ("complete_todo_by_index", "Complete todo by position"),
    ("complete_todo_by_title", "Complete todo by title"),
    ("delete_todo", "Delete todo"),
    ("delete_completed", "Delete completed todos"),
]


def _transport_security(
    allowed_hosts: Optional[Sequence[str]],
    allowed_origins: Optional[Sequence[str]],
) -> TransportSecuritySettings:
    # Host header checks apply only when hosts are configured
    if not allowed_hosts:
        return TransportSecuritySettings(enable_dns_rebinding_protection=False)
    return TransportSecuritySettings(
        enable_dns_rebinding_protection=True,
        allowed_hosts=list(allowed_hosts),
        allowed_origins=list(allowed_origins or []),
    )


def create_mcp_server(
    store: TodoStore,
    allowed_hosts: Optional[Sequence[str]] = None,
    allowed_origins: Optional[Sequence[str]] = None,
) -> FastMCP:
    """
    Set up a FastMCP server whose tools call `store` directly.

    Streamable HTTP runs stateless with plain JSON responses, served at /mcp.
    Any Host header is accepted unless `allowed_hosts` is given, e.g.
    ["todo.example.com", "localhost:*"]; browser clients then also need their
    origin in `allowed_origins`.
    """
    mcp = FastMCP(
        SERVER_NAME,
        stateless_http=True,
        json_response=True,
        transport_security=_transport_security(allowed_hosts, allowed_origins),
    )
    tools = TodoTools(store)
    for name, title in _TOOLS:
        mcp.add_tool(getattr(tools, name), name=name, title=title)
    logger.debug("registered %d tools on %s", len(_TOOLS), SERVER_NAME)
    return mcp


if __name__ == "__main__":
    from config import load_settings

    create_mcp_server(TodoStore.open(load_settings().data_file)).run(transport="stdio")
