"""
In-memory registry of the currently loaded node type definitions.

State lives in an immutable RegistrySnapshot. `replace()` builds the complete
next snapshot first and then swaps a single reference, so a reader holding the
old snapshot (or calling in between) never sees a mix of old and new
definitions, and a failure while building leaves the current state in place.
"""
import copy
from dataclasses import dataclass, field
from types import MappingProxyType
from typing import Any, Dict, List, Mapping, Optional, Tuple

from nodecatalog.core.logging_config import get_logger

from .schema import NodeTypeConfig, NodeTypeDefinition

logger = get_logger(__name__)


def category_display_label(category: str) -> str:
    return category[:1].upper() + category[1:]


@dataclass(frozen=True)
class CategoryGroup:
    key: str
    label: str
    definitions: Tuple[NodeTypeDefinition, ...]

    def to_dict(self) -> Dict[str, Any]:
        return {
            "key": self.key,
            "label": self.label,
            "nodes": [d.summary() for d in self.definitions],
        }


@dataclass(frozen=True)
class RegistrySnapshot:
    version: Optional[str] = None
    definitions: Tuple[NodeTypeDefinition, ...] = ()
    by_id: Mapping[str, NodeTypeDefinition] = field(default_factory=lambda: MappingProxyType({}))
    by_type_tag: Mapping[str, NodeTypeDefinition] = field(default_factory=lambda: MappingProxyType({}))
    by_category: Mapping[str, CategoryGroup] = field(default_factory=lambda: MappingProxyType({}))
    document_extras: Mapping[str, Any] = field(default_factory=lambda: MappingProxyType({}))

    @property
    def loaded(self) -> bool:
        return self.version is not None

    @classmethod
    def build(cls, config: NodeTypeConfig) -> "RegistrySnapshot":
        definitions = tuple(NodeTypeDefinition.from_doc(node) for node in config.nodes)

        by_id: Dict[str, NodeTypeDefinition] = {}
        by_type_tag: Dict[str, NodeTypeDefinition] = {}
        grouped: Dict[str, List[NodeTypeDefinition]] = {}
        labels: Dict[str, str] = {}

        for definition in definitions:
            by_id[definition.id] = definition
            if definition.type_tag in by_type_tag:
                logger.info(
                    f"Type tag '{definition.type_tag}' of '{definition.id}' supersedes "
                    f"'{by_type_tag[definition.type_tag].id}'"
                )
            # Last definition wins for type tag lookups; every one stays reachable by id
            by_type_tag[definition.type_tag] = definition
            grouped.setdefault(definition.category, []).append(definition)
            if definition.category_label and definition.category not in labels:
                labels[definition.category] = definition.category_label

        by_category = {
            category: CategoryGroup(
                key=category,
                label=labels.get(category, category_display_label(category)),
                definitions=tuple(members),
            )
            for category, members in grouped.items()
        }

        extras = config.model_dump(exclude={"version", "nodes"}, exclude_unset=True)
        return cls(
            version=config.version,
            definitions=definitions,
            by_id=MappingProxyType(by_id),
            by_type_tag=MappingProxyType(by_type_tag),
            by_category=MappingProxyType(by_category),
            document_extras=MappingProxyType(extras),
        )

    def to_document(self) -> Optional[Dict[str, Any]]:
        if not self.loaded:
            return None
        document = copy.deepcopy(dict(self.document_extras))
        document["version"] = self.version
        document["nodes"] = [d.to_document() for d in self.definitions]
        return document


_EMPTY = RegistrySnapshot()


class NodeTypeRegistry:
    """Authoritative store of node type definitions with an explicit load/reset lifecycle."""

    def __init__(self):
        self._snapshot: RegistrySnapshot = _EMPTY

    def snapshot(self) -> RegistrySnapshot:
        """The current state; stays consistent even if the registry is replaced afterwards."""
        return self._snapshot

    def replace(self, config: NodeTypeConfig) -> RegistrySnapshot:
        snapshot = RegistrySnapshot.build(config)
        self._snapshot = snapshot
        logger.info(
            f"Node type registry replaced: version {snapshot.version}, "
            f"{len(snapshot.definitions)} definitions in {len(snapshot.by_category)} categories"
        )
        return snapshot

    def reset(self) -> None:
        self._snapshot = _EMPTY
        logger.info("Node type registry reset")

    def get(self, node_id: str) -> Optional[NodeTypeDefinition]:
        return self._snapshot.by_id.get(node_id)

    def get_by_type_tag(self, type_tag: str) -> Optional[NodeTypeDefinition]:
        return self._snapshot.by_type_tag.get(type_tag)

    def all_definitions(self) -> Tuple[NodeTypeDefinition, ...]:
        """All definitions in load order, including ones shadowed by a later type tag."""
        return self._snapshot.definitions

    def categories(self) -> Mapping[str, CategoryGroup]:
        return self._snapshot.by_category

    def available_type_tags(self) -> List[str]:
        return list(self._snapshot.by_type_tag.keys())

    def is_loaded(self) -> bool:
        return self._snapshot.loaded

    def current_version(self) -> Optional[str]:
        return self._snapshot.version

    def export_document(self) -> Optional[Dict[str, Any]]:
        return self._snapshot.to_document()
