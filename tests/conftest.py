import copy
import json
import os
import tempfile

import pytest

# Keep the rotating log file out of the working tree
os.environ.setdefault("LOG_DIR", tempfile.mkdtemp(prefix="nodecatalog-logs-"))

from fastapi.testclient import TestClient  # noqa: E402

from nodecatalog.app import create_app  # noqa: E402
from nodecatalog.core.config import BUNDLED_EXAMPLE_PATH  # noqa: E402
from nodecatalog.services.nodes.catalog import NodeCatalog  # noqa: E402
from nodecatalog.services.nodes.validator import ConfigValidator  # noqa: E402


@pytest.fixture
def example_document():
    with open(BUNDLED_EXAMPLE_PATH, encoding="utf-8") as f:
        return json.load(f)


@pytest.fixture
def make_node():
    """Build a minimal valid node type entry, overriding any field."""
    def _make(node_id="node", **overrides):
        node = {
            "id": node_id,
            "name": f"{node_id} name",
            "description": f"{node_id} description",
            "category": "transform",
            "nodeType": f"{node_id}Node",
            "inputTypes": [],
            "outputTypes": [],
        }
        node.update(overrides)
        return node
    return _make


@pytest.fixture
def make_document(make_node):
    def _make(*nodes, version="1.0.0"):
        return {"version": version, "nodes": [copy.deepcopy(n) for n in nodes]}
    return _make


@pytest.fixture
def catalog():
    return NodeCatalog()


@pytest.fixture
def loaded_catalog(example_document):
    catalog = NodeCatalog()
    catalog.registry.replace(ConfigValidator().validate(example_document))
    return catalog


@pytest.fixture
def client(loaded_catalog):
    app = create_app(catalog=loaded_catalog, load_on_startup=False)
    with TestClient(app) as test_client:
        yield test_client


@pytest.fixture
def empty_client(catalog):
    app = create_app(catalog=catalog, load_on_startup=False)
    with TestClient(app) as test_client:
        yield test_client
