"""
Tests for the load pathway: sources, validation, atomic replacement and editing.
"""
import asyncio
import json

import httpx
import pytest

from nodecatalog.core.errors import (
    ConfigIOError,
    NetworkError,
    ParseError,
    UnknownTypeError,
    ValidationError,
)
from nodecatalog.services.nodes.catalog import NodeCatalog
from nodecatalog.services.nodes.sources import ConfigSource


class GatedSource(ConfigSource):
    """Source whose read suspends until the test releases it."""

    def __init__(self, document):
        self.document = document
        self.started = asyncio.Event()
        self.release = asyncio.Event()

    def describe(self):
        return "gated source"

    async def read(self):
        self.started.set()
        await self.release.wait()
        return self.document


def _lookup_state(catalog):
    registry = catalog.registry
    return (
        registry.current_version(),
        [d.id for d in registry.all_definitions()],
        registry.get_by_type_tag("filterNode"),
        catalog.loader.export_current(),
    )


@pytest.mark.asyncio
async def test_load_from_object(catalog, example_document):
    snapshot = await catalog.loader.load_from_object(example_document)

    assert snapshot.version == "1.0.0"
    assert catalog.loader.is_loaded() is True
    assert catalog.loader.current_version() == "1.0.0"
    assert len(catalog.registry.all_definitions()) == 7


@pytest.mark.asyncio
async def test_round_trip(catalog, example_document):
    await catalog.loader.load_from_object(example_document)

    assert catalog.loader.export_current() == example_document


@pytest.mark.asyncio
async def test_round_trip_with_optional_fields(catalog, make_document, make_node):
    document = make_document(
        make_node("a", icon="IconSum", categoryLabel="Math", timeout=2.5,
                  config={"enabled": False, "ratio": 0.25},
                  retryPolicy={"backoff_strategy": "LINEAR", "retry_on_errors": []}),
        make_node("b"),
        version="3.1.4",
    )

    await catalog.loader.load_from_object(document)

    assert catalog.loader.export_current() == document


@pytest.mark.asyncio
async def test_caller_edits_do_not_reach_registry(catalog, example_document):
    await catalog.loader.load_from_object(example_document)

    example_document["nodes"][0]["outputTypes"].append("json")
    exported = catalog.loader.export_current()
    exported["nodes"][0]["name"] = "changed"

    assert catalog.registry.get("csv_upload").output_types == ("dataset",)
    assert catalog.loader.export_current()["nodes"][0]["name"] == "CSV File Upload"


@pytest.mark.asyncio
async def test_invalid_load_keeps_previous_state(loaded_catalog, make_document, make_node):
    before = _lookup_state(loaded_catalog)
    broken = make_document(make_node("a"), version="9.9.9")
    del broken["nodes"][0]["outputTypes"]

    with pytest.raises(ValidationError):
        await loaded_catalog.loader.load_from_object(broken)

    assert _lookup_state(loaded_catalog) == before


@pytest.mark.asyncio
async def test_duplicate_id_fails(loaded_catalog, make_document, make_node):
    document = make_document(make_node("a"), make_node("a", nodeType="other"), version="2.0.0")

    with pytest.raises(ValidationError) as exc_info:
        await loaded_catalog.loader.load_from_object(document)

    assert "duplicate" in str(exc_info.value)
    assert loaded_catalog.loader.current_version() == "1.0.0"


@pytest.mark.asyncio
async def test_duplicate_type_tag_succeeds(catalog, make_document, make_node):
    document = make_document(make_node("a", nodeType="shared"), make_node("b", nodeType="shared"))

    await catalog.loader.load_from_object(document)

    assert catalog.registry.get_by_type_tag("shared").id == "b"
    assert catalog.registry.get("a") is not None


@pytest.mark.asyncio
async def test_failed_load_is_logged_with_source(loaded_catalog, tmp_path, caplog):
    missing = tmp_path / "missing.json"

    with caplog.at_level("WARNING"):
        with pytest.raises(ConfigIOError):
            await loaded_catalog.loader.load_from_file(missing)

    assert "missing.json" in caplog.text
    assert "keeping version 1.0.0" in caplog.text


@pytest.mark.asyncio
async def test_load_from_file(catalog, tmp_path, example_document):
    path = tmp_path / "nodes.json"
    path.write_text(json.dumps(example_document, indent=2), encoding="utf-8")

    await catalog.loader.load_from_file(str(path))

    assert catalog.loader.export_current() == example_document


@pytest.mark.asyncio
async def test_load_from_file_parse_error_keeps_state(loaded_catalog, tmp_path):
    path = tmp_path / "nodes.json"
    path.write_text('{"version": "2.0.0", "nodes": [', encoding="utf-8")
    before = _lookup_state(loaded_catalog)

    with pytest.raises(ParseError):
        await loaded_catalog.loader.load_from_file(path)

    assert _lookup_state(loaded_catalog) == before


@pytest.mark.asyncio
async def test_load_from_upload(catalog, example_document):
    await catalog.loader.load_from_upload("nodes.json", json.dumps(example_document).encode("utf-8"))

    assert catalog.loader.current_version() == "1.0.0"


@pytest.mark.asyncio
async def test_load_from_url(example_document):
    transport = httpx.MockTransport(lambda request: httpx.Response(200, json=example_document))
    catalog = NodeCatalog(http_transport=transport)

    await catalog.loader.load_from_url("https://config.example.test/nodes.json")

    assert catalog.registry.get_by_type_tag("filterNode").id == "data_filter"


@pytest.mark.asyncio
async def test_load_from_url_failure_keeps_state(example_document):
    transport = httpx.MockTransport(lambda request: httpx.Response(503))
    catalog = NodeCatalog(http_transport=transport)
    await catalog.loader.load_from_object(example_document)

    with pytest.raises(NetworkError):
        await catalog.loader.load_from_url("https://config.example.test/nodes.json")

    assert catalog.loader.current_version() == "1.0.0"


@pytest.mark.asyncio
async def test_registry_stays_queryable_during_load(loaded_catalog, make_document, make_node):
    source = GatedSource(make_document(make_node("next"), version="2.0.0"))

    task = asyncio.create_task(loaded_catalog.loader.load(source))
    await source.started.wait()

    assert loaded_catalog.loader.current_version() == "1.0.0"
    assert loaded_catalog.compatibility.is_compatible("fileUploadNode", "filterNode") is True

    source.release.set()
    await task

    assert loaded_catalog.loader.current_version() == "2.0.0"
    assert loaded_catalog.registry.get("csv_upload") is None


@pytest.mark.asyncio
async def test_reset(loaded_catalog):
    loaded_catalog.loader.reset()

    assert loaded_catalog.loader.is_loaded() is False
    assert loaded_catalog.loader.current_version() is None
    assert loaded_catalog.loader.export_current() is None


@pytest.mark.asyncio
async def test_end_to_end_example_scenario(catalog, example_document):
    await catalog.loader.load_from_object(example_document)

    assert catalog.compatibility.is_compatible("fileUploadNode", "filterNode") is True
    instance = catalog.factory.create_instance("filterNode", {"x": 0, "y": 0})
    assert "equals" in instance.data["config"]["supportedOperations"]


class TestCatalogEditing:
    """Editing rebuilds the whole document and goes through validation"""

    @pytest.mark.asyncio
    async def test_add_definition(self, loaded_catalog, make_node):
        await loaded_catalog.loader.upsert_definition(make_node("pivot", nodeType="pivotNode", inputTypes=["dataset"]))

        assert [d.id for d in loaded_catalog.registry.all_definitions()][-1] == "pivot"
        assert loaded_catalog.compatibility.is_compatible("filterNode", "pivotNode") is True

    @pytest.mark.asyncio
    async def test_replace_definition_in_place(self, loaded_catalog):
        node = loaded_catalog.registry.get("data_sort").to_document()
        node["name"] = "Sorter"

        await loaded_catalog.loader.upsert_definition(node)

        ids = [d.id for d in loaded_catalog.registry.all_definitions()]
        assert ids.index("data_sort") == 3
        assert loaded_catalog.registry.get("data_sort").name == "Sorter"

    @pytest.mark.asyncio
    async def test_invalid_edit_keeps_state(self, loaded_catalog, make_node):
        before = _lookup_state(loaded_catalog)

        with pytest.raises(ValidationError):
            await loaded_catalog.loader.upsert_definition(make_node("broken", name=""))

        assert _lookup_state(loaded_catalog) == before

    @pytest.mark.asyncio
    async def test_remove_definition(self, loaded_catalog):
        await loaded_catalog.loader.remove_definition("data_aggregate")

        assert loaded_catalog.registry.get("data_aggregate") is None
        assert loaded_catalog.registry.get_by_type_tag("aggregateNode") is None

    @pytest.mark.asyncio
    async def test_remove_unknown_definition(self, loaded_catalog):
        with pytest.raises(UnknownTypeError):
            await loaded_catalog.loader.remove_definition("ghost")

    @pytest.mark.asyncio
    async def test_edit_on_empty_catalog(self, catalog, make_node):
        await catalog.loader.upsert_definition(make_node("first"))

        assert catalog.loader.current_version() == "1.0.0"
        assert catalog.registry.get("first") is not None

    @pytest.mark.asyncio
    async def test_set_version(self, loaded_catalog):
        await loaded_catalog.loader.set_version("1.1.0")

        assert loaded_catalog.loader.current_version() == "1.1.0"
        assert len(loaded_catalog.registry.all_definitions()) == 7


@pytest.mark.asyncio
async def test_out_of_range_retry_values_load_and_resolve(catalog, make_document, make_node):
    document = make_document(make_node("slow", retryPolicy={"initial_delay": 60000}, timeout=0))

    await catalog.loader.load_from_object(document)

    assert catalog.loader.export_current() == document
    record = catalog.factory.create_policy_backed("slowNode", "slow-1")
    assert record.retry_policy.initial_delay_ms == 60000
    assert record.retry_policy.max_delay_ms == 60000
    assert record.timeout_seconds == 30
