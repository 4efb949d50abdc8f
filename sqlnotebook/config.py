"""Configuration management for SQL Notebook."""

from pathlib import Path

from pydantic import BaseModel

GETTING_STARTED_TEXT = """\
Welcome to SQL Notebook.

A notebook holds consoles, scripts, and notes. Each one opens in its own
window. Use Save to keep your work; a new notebook lives in a temporary
file until you choose where to save it.
"""


class SessionConfig(BaseModel):
    app_name: str = "SQL Notebook"
    file_extension: str = ".sqlnb"
    busy_delay_ms: int = 25
    temp_dir: str | None = None
    # Prefix that opens a new terminal window, e.g. ["x-terminal-emulator", "-e"].
    terminal_command: list[str] = []


class GettingStartedConfig(BaseModel):
    title: str = "Getting Started"
    text: str = GETTING_STARTED_TEXT


class SqlNotebookConfig(BaseModel):
    session: SessionConfig = SessionConfig()
    getting_started: GettingStartedConfig = GettingStartedConfig()
    log_level: str = "WARNING"


def _config_dir() -> Path:
    return Path.home() / ".sqlnotebook"


def _config_path() -> Path:
    return _config_dir() / "config.json"


def temp_dir(config: SqlNotebookConfig) -> Path:
    """Return the directory that backs untitled notebooks."""
    if config.session.temp_dir:
        return Path(config.session.temp_dir)
    return _config_dir() / "untitled"


def ensure_dirs(config: SqlNotebookConfig) -> None:
    """Create required SQL Notebook directories."""
    _config_dir().mkdir(exist_ok=True)
    temp_dir(config).mkdir(parents=True, exist_ok=True)


def load_config() -> SqlNotebookConfig:
    """Load config from ~/.sqlnotebook/config.json, returning defaults if missing."""
    path = _config_path()
    if not path.exists():
        return SqlNotebookConfig()
    text = path.read_text()
    return SqlNotebookConfig.model_validate_json(text)

