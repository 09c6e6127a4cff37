"""
Declarative schema of the node type document and the loaded definition type.

The pydantic models below are the single description of the wire format; the
generic ConfigValidator consumes them, so adding a required field is a change
to these models only. Unknown keys are kept (extra="allow") and unset optional
keys are left out on export, which keeps export(load(doc)) equal to doc.
"""
import copy
from dataclasses import dataclass, field
from types import MappingProxyType
from typing import Annotated, Any, Dict, List, Mapping, Optional, Protocol, Tuple, Union

from pydantic import (
    BaseModel,
    ConfigDict,
    Field,
    StrictBool,
    StrictFloat,
    StrictInt,
    StrictStr,
    StringConstraints,
    model_validator,
)

NonEmptyStr = Annotated[StrictStr, StringConstraints(min_length=1)]
Number = Union[StrictInt, StrictFloat]

# Default values a node type may declare for its configuration fields.
# A list of strings is an enumerated choice.
ConfigValue = Union[StrictBool, StrictInt, StrictFloat, StrictStr, List[StrictStr]]

DEFAULT_ICON = "IconHexagon"


class RetryPolicyDoc(BaseModel):
    """Partial retry policy as written in the document (snake_case keys)."""
    model_config = ConfigDict(extra="allow")

    max_retries: Optional[StrictInt] = None
    backoff_strategy: Optional[StrictStr] = None
    initial_delay: Optional[Number] = None
    max_delay: Optional[Number] = None
    backoff_multiplier: Optional[Number] = None
    retry_on_errors: Optional[List[StrictStr]] = None
    no_retry_on_errors: Optional[List[StrictStr]] = None


class NodeTypeDoc(BaseModel):
    """One entry of the document's `nodes` array."""
    model_config = ConfigDict(extra="allow")

    id: NonEmptyStr
    name: NonEmptyStr
    description: NonEmptyStr
    category: NonEmptyStr
    type_tag: NonEmptyStr = Field(alias="nodeType")
    icon: Optional[StrictStr] = None
    category_label: Optional[NonEmptyStr] = Field(default=None, alias="categoryLabel")
    input_types: List[StrictStr] = Field(alias="inputTypes")
    output_types: List[StrictStr] = Field(alias="outputTypes")
    config: Optional[Dict[str, ConfigValue]] = None
    retry_policy: Optional[RetryPolicyDoc] = Field(default=None, alias="retryPolicy")
    timeout: Optional[Number] = None


class NodeTypeConfig(BaseModel):
    """Top level document: `{"version": ..., "nodes": [...]}`."""
    model_config = ConfigDict(extra="allow")

    version: NonEmptyStr
    nodes: List[NodeTypeDoc]

    @model_validator(mode="after")
    def _unique_ids(self):
        seen = set()
        duplicates = []
        for node in self.nodes:
            if node.id in seen and node.id not in duplicates:
                duplicates.append(node.id)
            seen.add(node.id)
        if duplicates:
            raise ValueError(f"duplicate node id(s): {', '.join(duplicates)}")
        return self

    def to_document(self) -> Dict[str, Any]:
        return self.model_dump(by_alias=True, exclude_unset=True)


class IconResolver(Protocol):
    """Supplied by the UI layer; turns a symbolic icon name into something it can render."""

    def resolve(self, symbolic_name: str) -> Any:
        ...


def _freeze(value: Any) -> Any:
    if isinstance(value, list):
        return tuple(value)
    return value


def _thaw(value: Any) -> Any:
    if isinstance(value, tuple):
        return list(value)
    return value


@dataclass(frozen=True, eq=False)
class NodeTypeDefinition:
    """A loaded node type. Immutable, compared and hashed by identity; instances copy what they need from it."""
    id: str
    name: str
    description: str
    category: str
    type_tag: str
    input_types: Tuple[str, ...]
    output_types: Tuple[str, ...]
    config: Mapping[str, Any]
    retry_policy_overrides: Optional[RetryPolicyDoc] = None
    timeout_seconds: Optional[float] = None
    icon: Optional[str] = None
    category_label: Optional[str] = None
    _document: Mapping[str, Any] = field(default_factory=dict, repr=False, compare=False)

    @classmethod
    def from_doc(cls, doc: NodeTypeDoc) -> "NodeTypeDefinition":
        config = {key: _freeze(value) for key, value in (doc.config or {}).items()}
        return cls(
            id=doc.id,
            name=doc.name,
            description=doc.description,
            category=doc.category,
            type_tag=doc.type_tag,
            input_types=tuple(doc.input_types),
            output_types=tuple(doc.output_types),
            config=MappingProxyType(config),
            retry_policy_overrides=doc.retry_policy.model_copy(deep=True) if doc.retry_policy else None,
            timeout_seconds=doc.timeout,
            icon=doc.icon,
            category_label=doc.category_label,
            _document=MappingProxyType(doc.model_dump(by_alias=True, exclude_unset=True)),
        )

    @property
    def icon_name(self) -> str:
        return self.icon or DEFAULT_ICON

    def default_config(self) -> Dict[str, Any]:
        """Fresh, caller-owned copy of the configuration defaults."""
        return {key: _thaw(value) for key, value in self.config.items()}

    def to_document(self) -> Dict[str, Any]:
        """The wire form this definition was loaded from (deep copy)."""
        return copy.deepcopy(dict(self._document))

    def summary(self) -> Dict[str, Any]:
        """Editor-facing view of the definition (block library entry)."""
        return {
            "id": self.id,
            "name": self.name,
            "description": self.description,
            "category": self.category,
            "nodeType": self.type_tag,
            "icon": self.icon_name,
            "inputTypes": list(self.input_types),
            "outputTypes": list(self.output_types),
            "config": self.default_config(),
        }
