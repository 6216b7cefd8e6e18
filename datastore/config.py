import os
from dataclasses import dataclass, field
from dotenv import load_dotenv

load_dotenv()


def _env(name: str, default: str) -> str:
    return os.getenv(name, default)


@dataclass
class Settings:
    # Location
    home: str = field(default_factory=lambda: _env("DATASTORE_HOME", ""))  # empty: user home
    base: str = field(default_factory=lambda: _env("DATASTORE_BASE", os.path.join(".config", "data-store")))

    # Persistence
    debounce_ms: int = field(default_factory=lambda: int(_env("DATASTORE_DEBOUNCE_MS", "0")))
    indent: int = field(default_factory=lambda: int(_env("DATASTORE_INDENT", "2")))
    write_retries: int = field(default_factory=lambda: int(_env("DATASTORE_WRITE_RETRIES", "3")))

    # Logging
    log_dir: str = field(default_factory=lambda: _env("DATASTORE_LOG_DIR", ""))
    log_level: str = field(default_factory=lambda: _env("DATASTORE_LOG_LEVEL", "WARNING"))


def get_settings() -> Settings:
    return Settings()
