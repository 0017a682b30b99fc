import os
from functools import lru_cache
from pathlib import Path

import yaml

from vector_ingest.exception.custom_exception import ConfigurationError

# will return the root directory of the project (the folder holding vector_ingest/)


def _project_root() -> Path:
    return Path(__file__).resolve().parents[2]


def load_config(config_path: str | None = None) -> dict:
    env_path = os.getenv("CONFIG_PATH", None)

    if config_path is None:
        config_path = env_path or str(
            _project_root() / "vector_ingest" / "config" / "config.yaml"
        )

    path = Path(config_path)

    if not path.is_absolute():
        path = _project_root() / path
    if not path.exists():
        raise ConfigurationError(f"Config file not found at {path}")
    with open(path, "r", encoding="utf-8") as file:
        return yaml.safe_load(file) or {}


@lru_cache(maxsize=1)
def get_config() -> dict:
    """Process-wide parsed config, loaded on first use."""
    return load_config()
