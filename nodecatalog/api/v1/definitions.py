from fastapi import APIRouter, Depends, HTTPException, Query

from nodecatalog.api.deps import get_catalog
from nodecatalog.services.nodes.catalog import NodeCatalog

router = APIRouter()


@router.get("/definitions")
def list_definitions(catalog: NodeCatalog = Depends(get_catalog)):
    """All loaded node types in load order"""
    return [d.summary() for d in catalog.registry.all_definitions()]


@router.get("/definitions/categories")
def list_categories(catalog: NodeCatalog = Depends(get_catalog)):
    """Block library: categories with their display label and member node types"""
    return [group.to_dict() for group in catalog.registry.categories().values()]


@router.get("/definitions/{node_id}")
def get_definition(node_id: str, catalog: NodeCatalog = Depends(get_catalog)):
    definition = catalog.registry.get(node_id)
    if definition is None:
        raise HTTPException(status_code=404, detail="Node type not found")
    return definition.to_document()


@router.get("/definitions/types/{type_tag}")
def get_definition_by_type(type_tag: str, catalog: NodeCatalog = Depends(get_catalog)):
    definition = catalog.registry.get_by_type_tag(type_tag)
    if definition is None:
        raise HTTPException(status_code=404, detail="Node type not found")
    return definition.to_document()


@router.get("/definitions/types/{type_tag}/targets")
def list_compatible_targets(type_tag: str, catalog: NodeCatalog = Depends(get_catalog)):
    """Node types that can receive an edge from `type_tag` (used to highlight drop targets)"""
    return [d.summary() for d in catalog.compatibility.compatible_targets(type_tag)]


@router.get("/definitions/types/{type_tag}/sources")
def list_compatible_sources(type_tag: str, catalog: NodeCatalog = Depends(get_catalog)):
    return [d.summary() for d in catalog.compatibility.compatible_sources(type_tag)]


@router.get("/compatibility")
def check_compatibility(
    source: str = Query(..., description="Type tag of the edge source"),
    target: str = Query(..., description="Type tag of the edge target"),
    catalog: NodeCatalog = Depends(get_catalog),
):
    shared = catalog.compatibility.shared_types(source, target)
    return {
        "source": source,
        "target": target,
        "compatible": bool(shared),
        "sharedTypes": shared,
    }
