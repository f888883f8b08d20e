import os
from dataclasses import dataclass
from typing import Optional, Tuple

from dotenv import load_dotenv

DEFAULT_DATA_FILE = "data/todos.json"
DEFAULT_PORT = 8787


@dataclass(frozen=True)
class Settings:
    data_file: str = DEFAULT_DATA_FILE
    host: str = "0.0.0.0"
    port: int = DEFAULT_PORT
    log_level: str = "INFO"
    # empty means any Host header is accepted on /mcp
    allowed_hosts: Tuple[str, ...] = ()
    allowed_origins: Tuple[str, ...] = ()


def _int_env(name: str, default: int) -> int:
    raw = os.getenv(name, "").strip()
    if not raw:
        return default
    try:
        return int(raw)
    except ValueError:
        raise ValueError(f"{name} must be an integer, got {raw!r}") from None


def _list_env(name: str) -> Tuple[str, ...]:
    raw = os.getenv(name, "")
    return tuple(item.strip() for item in raw.split(",") if item.strip())


def load_settings(env_file: Optional[str] = None) -> Settings:
    """Read settings from the environment, after loading `.env` if present."""
    load_dotenv(env_file, override=False)  # reads .env into environment variables
    return Settings(
        data_file=os.getenv("TODO_DATA_FILE", DEFAULT_DATA_FILE),
        host=os.getenv("HOST", "0.0.0.0"),
        port=_int_env("PORT", DEFAULT_PORT),
        log_level=os.getenv("LOG_LEVEL", "INFO").upper(),
        allowed_hosts=_list_env("MCP_ALLOWED_HOSTS"),
        allowed_origins=_list_env("MCP_ALLOWED_ORIGINS"),
    )
