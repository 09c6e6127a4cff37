"""
Node type document endpoints.

Load (inline JSON, uploaded file, URL), export, dry-run validation, reset and
per-node editing. A failed load answers with the source and the reason and
leaves the previously loaded node types in place.
"""
import json
from typing import Any, Dict

from fastapi import APIRouter, Body, Depends, File, HTTPException, Response, UploadFile
from pydantic import BaseModel

from nodecatalog.api.deps import get_catalog
from nodecatalog.core.errors import (
    ConfigIOError,
    ConfigLoadError,
    NetworkError,
    UnknownTypeError,
)
from nodecatalog.services.nodes.catalog import NodeCatalog
from nodecatalog.services.nodes.node_registry import RegistrySnapshot

router = APIRouter()


class UrlLoadRequest(BaseModel):
    url: str


class VersionUpdate(BaseModel):
    version: str


def _raise_load_error(error: ConfigLoadError):
    if isinstance(error, NetworkError):
        status_code = 502
    elif isinstance(error, ConfigIOError):
        status_code = 400
    else:
        # ParseError, ValidationError
        status_code = 422
    raise HTTPException(status_code=status_code, detail=error.to_detail()) from error


def _load_result(snapshot: RegistrySnapshot) -> Dict[str, Any]:
    return {
        "status": "success",
        "version": snapshot.version,
        "nodes": len(snapshot.definitions),
        "categories": list(snapshot.by_category.keys()),
    }


@router.get("/config/status")
def get_status(catalog: NodeCatalog = Depends(get_catalog)):
    return {
        "loaded": catalog.loader.is_loaded(),
        "version": catalog.loader.current_version(),
        "node_count": len(catalog.registry.all_definitions()),
    }


@router.post("/config/load")
async def load_configuration(document: Any = Body(...), catalog: NodeCatalog = Depends(get_catalog)):
    """Replace the node types with an inline JSON document."""
    try:
        snapshot = await catalog.loader.load_from_object(document)
    except ConfigLoadError as e:
        _raise_load_error(e)
    return _load_result(snapshot)


@router.post("/config/upload")
async def upload_configuration(file: UploadFile = File(...), catalog: NodeCatalog = Depends(get_catalog)):
    """Replace the node types with an uploaded nodes.json file."""
    content = await file.read()
    try:
        snapshot = await catalog.loader.load_from_upload(file.filename, content)
    except ConfigLoadError as e:
        _raise_load_error(e)
    return _load_result(snapshot)


@router.post("/config/load-url")
async def load_configuration_from_url(req: UrlLoadRequest, catalog: NodeCatalog = Depends(get_catalog)):
    """Fetch a document over HTTP and replace the node types with it."""
    try:
        snapshot = await catalog.loader.load_from_url(req.url)
    except ConfigLoadError as e:
        _raise_load_error(e)
    return _load_result(snapshot)


@router.get("/config/export")
def export_configuration(catalog: NodeCatalog = Depends(get_catalog)):
    """
    Export the loaded document as a downloadable JSON file.

    The body is accepted back by /config/load unchanged.
    """
    document = catalog.loader.export_current()
    if document is None:
        raise HTTPException(status_code=404, detail="No node type configuration loaded")

    return Response(
        content=json.dumps(document, indent=2),
        media_type="application/json",
        headers={
            "Content-Disposition": "attachment; filename=nodes.json"
        }
    )


@router.post("/config/validate")
def validate_configuration(document: Any = Body(...), catalog: NodeCatalog = Depends(get_catalog)):
    """Validate a document without loading it."""
    return catalog.validator.check(document).to_dict()


@router.delete("/config")
def reset_configuration(catalog: NodeCatalog = Depends(get_catalog)):
    catalog.loader.reset()
    return {"status": "success"}


@router.put("/config/version")
async def set_configuration_version(req: VersionUpdate, catalog: NodeCatalog = Depends(get_catalog)):
    try:
        snapshot = await catalog.loader.set_version(req.version)
    except ConfigLoadError as e:
        _raise_load_error(e)
    return _load_result(snapshot)


@router.put("/config/nodes/{node_id}")
async def upsert_node_type(
    node_id: str,
    node: Dict[str, Any] = Body(...),
    catalog: NodeCatalog = Depends(get_catalog),
):
    """Add a node type or replace the one with this id."""
    node.setdefault("id", node_id)
    if node["id"] != node_id:
        raise HTTPException(status_code=400, detail=f"Body id '{node['id']}' does not match path id '{node_id}'")

    try:
        snapshot = await catalog.loader.upsert_definition(node)
    except ConfigLoadError as e:
        _raise_load_error(e)
    return _load_result(snapshot)


@router.delete("/config/nodes/{node_id}")
async def delete_node_type(node_id: str, catalog: NodeCatalog = Depends(get_catalog)):
    try:
        snapshot = await catalog.loader.remove_definition(node_id)
    except UnknownTypeError:
        raise HTTPException(status_code=404, detail=f"Node type not found: {node_id}")
    except ConfigLoadError as e:
        _raise_load_error(e)
    return _load_result(snapshot)
