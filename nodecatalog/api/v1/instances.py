from typing import Any, Dict, Optional

from fastapi import APIRouter, Depends, HTTPException
from pydantic import BaseModel, ConfigDict, Field

from nodecatalog.api.deps import get_catalog
from nodecatalog.services.nodes.catalog import NodeCatalog
from nodecatalog.services.nodes.node_factory import GraphNodeInstance, Position

router = APIRouter()


class PositionModel(BaseModel):
    x: float = 0.0
    y: float = 0.0


class InstanceCreate(BaseModel):
    model_config = ConfigDict(populate_by_name=True)

    type_tag: str = Field(alias="typeTag")
    position: PositionModel = PositionModel()
    data: Dict[str, Any] = {}
    id: Optional[str] = None


class PolicyBackedCreate(BaseModel):
    model_config = ConfigDict(populate_by_name=True)

    type_tag: str = Field(alias="typeTag")
    instance_id: Optional[str] = Field(default=None, alias="instanceId")


class PlacedNode(BaseModel):
    id: str
    type: str


class ConnectionRequest(BaseModel):
    source: PlacedNode
    target: PlacedNode


@router.post("/instances")
def create_instance(req: InstanceCreate, catalog: NodeCatalog = Depends(get_catalog)):
    """Create the node for a block dropped on the canvas"""
    instance = catalog.factory.create_instance(
        req.type_tag,
        Position(x=req.position.x, y=req.position.y),
        custom_data=req.data,
        instance_id=req.id,
    )
    if instance is None:
        raise HTTPException(status_code=404, detail=f"Unknown node type: {req.type_tag}")
    return instance.to_dict()


@router.post("/instances/policy")
def create_policy_backed(req: PolicyBackedCreate, catalog: NodeCatalog = Depends(get_catalog)):
    """Runtime record (config, ports, retry policy, timeout) for an execution engine"""
    record = catalog.factory.create_policy_backed(req.type_tag, req.instance_id)
    if record is None:
        raise HTTPException(status_code=404, detail=f"Unknown node type: {req.type_tag}")
    return record.to_dict()


@router.post("/instances/connect")
def connect_instances(req: ConnectionRequest, catalog: NodeCatalog = Depends(get_catalog)):
    """Check whether an edge may be drawn between two placed nodes"""
    source = GraphNodeInstance(instance_id=req.source.id, type_tag=req.source.type, position=Position())
    target = GraphNodeInstance(instance_id=req.target.id, type_tag=req.target.type, position=Position())

    check = catalog.compatibility.check_connection(source, target)
    result = check.to_dict()
    result["edge"] = None
    if check.allowed:
        result["edge"] = {"source": source.instance_id, "target": target.instance_id}
    return result
