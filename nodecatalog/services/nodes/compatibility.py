"""
Edge legality between node types.

An edge source -> target is legal when at least one output label of the
source type is an input label of the target type. The relation is neither
symmetric nor reflexive, and unknown type tags are never compatible. Every
query below goes through `_shared_labels` so they cannot disagree.
"""
from dataclasses import dataclass, field
from typing import Any, Dict, List, Optional, Tuple

from nodecatalog.core.logging_config import get_logger

from .node_factory import GraphNodeInstance
from .node_registry import NodeTypeRegistry, RegistrySnapshot
from .schema import NodeTypeDefinition

logger = get_logger(__name__)


def _shared_labels(source: NodeTypeDefinition, target: NodeTypeDefinition) -> List[str]:
    accepted = set(target.input_types)
    shared = []
    for label in source.output_types:
        if label in accepted and label not in shared:
            shared.append(label)
    return shared


def _reachable(snapshot: RegistrySnapshot) -> List[NodeTypeDefinition]:
    # Definitions shadowed by a later duplicate type tag cannot be looked up by tag
    return [d for d in snapshot.definitions if snapshot.by_type_tag.get(d.type_tag) is d]


@dataclass(frozen=True)
class Edge:
    source: str
    target: str
    shared_types: Tuple[str, ...] = ()

    def to_dict(self) -> Dict[str, Any]:
        return {"source": self.source, "target": self.target, "sharedTypes": list(self.shared_types)}


@dataclass
class ConnectionCheck:
    allowed: bool
    reason: Optional[str] = None
    shared_types: List[str] = field(default_factory=list)

    def to_dict(self) -> Dict[str, Any]:
        return {"allowed": self.allowed, "reason": self.reason, "sharedTypes": self.shared_types}


class CompatibilityValidator:
    def __init__(self, registry: NodeTypeRegistry):
        self.registry = registry

    def shared_types(self, source_type_tag: str, target_type_tag: str) -> List[str]:
        """Labels carried by an edge between the two types, in source output order."""
        snapshot = self.registry.snapshot()
        source = snapshot.by_type_tag.get(source_type_tag)
        target = snapshot.by_type_tag.get(target_type_tag)
        if source is None or target is None:
            return []
        return _shared_labels(source, target)

    def is_compatible(self, source_type_tag: str, target_type_tag: str) -> bool:
        return bool(self.shared_types(source_type_tag, target_type_tag))

    def compatible_targets(self, source_type_tag: str) -> List[NodeTypeDefinition]:
        """Definitions that can receive an edge from the given type."""
        snapshot = self.registry.snapshot()
        source = snapshot.by_type_tag.get(source_type_tag)
        if source is None:
            return []
        return [d for d in _reachable(snapshot) if _shared_labels(source, d)]

    def compatible_sources(self, target_type_tag: str) -> List[NodeTypeDefinition]:
        """Definitions that can send an edge to the given type."""
        snapshot = self.registry.snapshot()
        target = snapshot.by_type_tag.get(target_type_tag)
        if target is None:
            return []
        return [d for d in _reachable(snapshot) if _shared_labels(d, target)]

    def check_connection(self, source: GraphNodeInstance, target: GraphNodeInstance) -> ConnectionCheck:
        """Decide whether the editor may draw an edge between two placed nodes."""
        if source.instance_id == target.instance_id:
            return ConnectionCheck(allowed=False, reason="A node cannot be connected to itself.")

        snapshot = self.registry.snapshot()
        source_def = snapshot.by_type_tag.get(source.type_tag)
        target_def = snapshot.by_type_tag.get(target.type_tag)
        missing = [tag for tag, d in ((source.type_tag, source_def), (target.type_tag, target_def)) if d is None]
        if missing:
            return ConnectionCheck(
                allowed=False,
                reason=f"Unknown node type(s): {', '.join(missing)}.",
            )

        shared = _shared_labels(source_def, target_def)
        if not shared:
            return ConnectionCheck(
                allowed=False,
                reason=(
                    f"Cannot connect {source_def.name} (outputs: {', '.join(source_def.output_types)}) "
                    f"to {target_def.name} (inputs: {', '.join(target_def.input_types)}). "
                    f"Output and input types must be compatible."
                ),
            )
        return ConnectionCheck(allowed=True, shared_types=shared)

    def connect(self, source: GraphNodeInstance, target: GraphNodeInstance) -> Optional[Edge]:
        """Return the edge when legal, otherwise None."""
        check = self.check_connection(source, target)
        if not check.allowed:
            logger.debug(f"Rejected edge {source.instance_id} -> {target.instance_id}: {check.reason}")
            return None
        return Edge(source=source.instance_id, target=target.instance_id, shared_types=tuple(check.shared_types))
