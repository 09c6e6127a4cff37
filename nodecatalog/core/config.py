import os
from pathlib import Path
from typing import Optional

BUNDLED_EXAMPLE_PATH = str(Path(__file__).resolve().parent.parent / "data" / "example_nodes.json")


def _optional_env(name: str) -> Optional[str]:
    value = os.getenv(name, "").strip()
    return value or None


class Settings:
    # API Settings
    PROJECT_NAME: str = "Node Catalog API"
    VERSION: str = "0.3.0"
    HOST: str = os.getenv("HOST", "0.0.0.0")
    PORT: int = int(os.getenv("PORT", 8010))
    DEBUG: bool = os.getenv("DEBUG", "false").lower() == "true"

    # Logging Settings
    LOG_LEVEL: str = os.getenv("LOG_LEVEL", "INFO").upper()
    LOG_DIR: str = os.getenv("LOG_DIR", os.path.join(os.getcwd(), "logs"))

    # Node type document loaded at startup. A URL takes precedence over a path.
    NODE_CONFIG_URL: Optional[str] = _optional_env("NODE_CONFIG_URL")
    NODE_CONFIG_PATH: Optional[str] = _optional_env("NODE_CONFIG_PATH") or BUNDLED_EXAMPLE_PATH

    # Upper bound for fetching a node type document over HTTP (seconds)
    URL_FETCH_TIMEOUT: float = float(os.getenv("URL_FETCH_TIMEOUT", 10.0))


settings = Settings()
