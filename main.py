"""
Node Catalog API Server

Hosts the node type registry behind the workflow editor: loads the node type
document, answers block library / lookup / compatibility queries and creates
node instances.

Environment Variables:
    NODE_CONFIG_PATH: Node type document loaded at startup (default: bundled example)
    NODE_CONFIG_URL: Fetch the startup document from this URL instead
    URL_FETCH_TIMEOUT: Timeout in seconds for URL loads (default: 10)
    LOG_LEVEL: Root log level (default: INFO)
    LOG_DIR: Directory of the rotating log file (default: ./logs)
    HOST: Server host address (default: 0.0.0.0)
    PORT: Server port (default: 8010)
    DEBUG: Enable debug mode with auto-reload (default: false)

CLI Usage:
    python main.py

    # Start with a custom catalog
    NODE_CONFIG_PATH=./nodes.json python main.py
"""

import uvicorn

from nodecatalog.core.config import settings

if __name__ == "__main__":
    # Get configuration from settings
    port = settings.PORT
    host = settings.HOST

    print(f"Starting {settings.PROJECT_NAME} on {host}:{port}")
    print(f"Node types: {settings.NODE_CONFIG_URL or settings.NODE_CONFIG_PATH}")

    # If reload is enabled, restrict watch scope to backend code only.
    reload_enabled = bool(settings.DEBUG)
    reload_dirs = None
    if reload_enabled:
        from pathlib import Path

        repo_root = Path(__file__).resolve().parent
        reload_dirs = [str(repo_root / "nodecatalog")]

    uvicorn.run(
        "nodecatalog.app:app",
        host=host,
        port=port,
        reload=reload_enabled,
        reload_dirs=reload_dirs,
    )
