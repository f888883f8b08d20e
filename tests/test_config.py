import pytest

from config import DEFAULT_DATA_FILE, DEFAULT_PORT, load_settings

_KEYS = ("TODO_DATA_FILE", "PORT", "HOST", "LOG_LEVEL", "MCP_ALLOWED_HOSTS", "MCP_ALLOWED_ORIGINS")


@pytest.fixture
def clean_env(monkeypatch, tmp_path):
    for key in _KEYS:
        # teardown then also undoes whatever load_dotenv writes
        monkeypatch.setenv(key, "")
        monkeypatch.delenv(key)
    # an empty .env keeps the developer's own file out of the way
    env_file = tmp_path / ".env"
    env_file.write_text("", encoding="utf-8")
    return env_file


def test_defaults(clean_env):
    settings = load_settings(str(clean_env))
    assert settings.data_file == DEFAULT_DATA_FILE == "data/todos.json"
    assert settings.port == DEFAULT_PORT == 8787
    assert settings.log_level == "INFO"
    assert settings.allowed_hosts == ()


def test_env_overrides(clean_env, monkeypatch):
    monkeypatch.setenv("TODO_DATA_FILE", "/tmp/other.json")
    monkeypatch.setenv("PORT", "9000")
    monkeypatch.setenv("LOG_LEVEL", "debug")

    settings = load_settings(str(clean_env))
    assert settings.data_file == "/tmp/other.json"
    assert settings.port == 9000
    assert settings.log_level == "DEBUG"


def test_dotenv_file_is_read(clean_env, monkeypatch):
    clean_env.write_text("PORT=9100\nTODO_DATA_FILE=store.json\n", encoding="utf-8")
    settings = load_settings(str(clean_env))
    assert settings.port == 9100
    assert settings.data_file == "store.json"


def test_bad_port(clean_env, monkeypatch):
    monkeypatch.setenv("PORT", "eighty")
    with pytest.raises(ValueError):
        load_settings(str(clean_env))


def test_allowed_hosts_list(clean_env, monkeypatch):
    monkeypatch.setenv("MCP_ALLOWED_HOSTS", " todo.example.com, localhost:*,,")
    monkeypatch.setenv("MCP_ALLOWED_ORIGINS", "https://chatgpt.com")

    settings = load_settings(str(clean_env))
    assert settings.allowed_hosts == ("todo.example.com", "localhost:*")
    assert settings.allowed_origins == ("https://chatgpt.com",)
