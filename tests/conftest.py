import pytest

from todo_store import TodoStore


@pytest.fixture
def data_file(tmp_path):
    return tmp_path / "data" / "todos.json"


@pytest.fixture
def store(data_file):
    return TodoStore.open(str(data_file))
