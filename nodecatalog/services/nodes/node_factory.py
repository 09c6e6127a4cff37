import copy
import time
import uuid
from dataclasses import dataclass, field
from typing import Any, Dict, List, Mapping, Optional

from nodecatalog.core.logging_config import get_logger

from .node_registry import NodeTypeRegistry
from .retry_policy import RetryPolicy, RetryPolicyBuilder

logger = get_logger(__name__)

DEFAULT_TIMEOUT_SECONDS = 30


def _effective_timeout(timeout: Optional[float]) -> float:
    if timeout is None or timeout <= 0:
        return DEFAULT_TIMEOUT_SECONDS
    return timeout


@dataclass
class Position:
    x: float = 0.0
    y: float = 0.0

    @classmethod
    def coerce(cls, value: Any) -> "Position":
        if isinstance(value, Position):
            return value
        if value is None:
            return cls()
        if isinstance(value, Mapping):
            return cls(x=float(value.get("x", 0.0)), y=float(value.get("y", 0.0)))
        x, y = value
        return cls(x=float(x), y=float(y))

    def to_dict(self) -> Dict[str, float]:
        return {"x": self.x, "y": self.y}


@dataclass
class GraphNodeInstance:
    """A node placed on the canvas. Owned and mutated by the editor."""
    instance_id: str
    type_tag: str
    position: Position
    data: Dict[str, Any] = field(default_factory=dict)

    def to_dict(self) -> Dict[str, Any]:
        return {
            "id": self.instance_id,
            "type": self.type_tag,
            "position": self.position.to_dict(),
            "data": self.data,
        }


@dataclass
class PolicyBackedNode:
    """Runtime-facing record handed to an external execution engine."""
    instance_id: str
    type_tag: str
    name: str
    config: Dict[str, Any]
    accepted_inputs: List[str]
    produced_outputs: List[str]
    retry_policy: RetryPolicy
    timeout_seconds: float

    def to_dict(self) -> Dict[str, Any]:
        return {
            "instanceId": self.instance_id,
            "typeTag": self.type_tag,
            "name": self.name,
            "config": self.config,
            "acceptedInputs": self.accepted_inputs,
            "producedOutputs": self.produced_outputs,
            "retryPolicy": self.retry_policy.to_dict(),
            "timeoutSeconds": self.timeout_seconds,
        }


class NodeFactory:
    """Creates graph node instances from the definitions in a registry."""

    def __init__(self, registry: NodeTypeRegistry, policy_builder: Optional[RetryPolicyBuilder] = None):
        self.registry = registry
        self.policy_builder = policy_builder or RetryPolicyBuilder()

    @staticmethod
    def generate_instance_id(type_tag: str) -> str:
        return f"{type_tag}_{int(time.time() * 1000)}_{uuid.uuid4().hex[:8]}"

    def create_instance(
        self,
        type_tag: str,
        position: Any = None,
        custom_data: Optional[Mapping[str, Any]] = None,
        instance_id: Optional[str] = None,
    ) -> Optional[GraphNodeInstance]:
        """
        Build a node for a block dropped on the canvas.

        Returns None when the type tag is not in the registry; dropping an
        unrecognised block is an ordinary editor state.

        The instance owns its data: `config` starts as a copy of the type's
        defaults, with any `config` mapping from `custom_data` merged over it.
        """
        definition = self.registry.get_by_type_tag(type_tag)
        if definition is None:
            logger.debug(f"No node type registered for type tag: {type_tag}")
            return None

        data: Dict[str, Any] = copy.deepcopy(dict(custom_data or {}))
        config = definition.default_config()
        config.update(data.pop("config", None) or {})

        data.update({
            "nodeConfig": definition.to_document(),
            "name": definition.name,
            "description": definition.description,
            "inputTypes": list(definition.input_types),
            "outputTypes": list(definition.output_types),
            "config": config,
        })

        return GraphNodeInstance(
            instance_id=instance_id or self.generate_instance_id(type_tag),
            type_tag=type_tag,
            position=Position.coerce(position),
            data=data,
        )

    def create_policy_backed(self, type_tag: str, instance_id: Optional[str] = None) -> Optional[PolicyBackedNode]:
        definition = self.registry.get_by_type_tag(type_tag)
        if definition is None:
            logger.debug(f"No node type registered for type tag: {type_tag}")
            return None

        return PolicyBackedNode(
            instance_id=instance_id or self.generate_instance_id(type_tag),
            type_tag=definition.type_tag,
            name=definition.name,
            config=definition.default_config(),
            accepted_inputs=list(definition.input_types),
            produced_outputs=list(definition.output_types),
            retry_policy=self.policy_builder.build(definition.retry_policy_overrides),
            timeout_seconds=_effective_timeout(definition.timeout_seconds),
        )
