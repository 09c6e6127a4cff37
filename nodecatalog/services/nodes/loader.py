"""
Load pathway: source -> validator -> registry.

Every load either replaces the whole registry or leaves it untouched. Reading
may suspend on I/O without holding anything; the previous definitions stay
queryable until the new snapshot is swapped in. Catalog edits go through the
same pathway by rebuilding a full document.
"""
import copy
from pathlib import Path
from typing import Any, Dict, Optional, Union

import httpx

from nodecatalog.core.errors import ConfigLoadError, UnknownTypeError
from nodecatalog.core.logging_config import get_logger

from .node_registry import NodeTypeRegistry, RegistrySnapshot
from .sources import ConfigSource, FileSource, InlineSource, UploadSource, UrlSource
from .validator import ConfigValidator

logger = get_logger(__name__)

EMPTY_DOCUMENT_VERSION = "1.0.0"


class NodeTypeLoader:
    def __init__(
        self,
        registry: NodeTypeRegistry,
        validator: Optional[ConfigValidator] = None,
        url_timeout: float = 10.0,
        http_transport: Optional[httpx.AsyncBaseTransport] = None,
    ):
        self.registry = registry
        self.validator = validator or ConfigValidator()
        self.url_timeout = url_timeout
        self.http_transport = http_transport

    async def load(self, source: ConfigSource) -> RegistrySnapshot:
        """Read, validate and install a document. Raises ConfigLoadError on any failure."""
        label = source.describe()
        try:
            raw = await source.read()
            config = self.validator.validate(raw, source=label)
        except ConfigLoadError as e:
            logger.warning(
                f"Failed to load node types from {label}: {e.reason} "
                f"(keeping version {self.registry.current_version()})"
            )
            raise

        snapshot = self.registry.replace(config)
        logger.info(f"Loaded {len(snapshot.definitions)} node types from {label}")
        return snapshot

    async def load_from_object(self, document: Any) -> RegistrySnapshot:
        return await self.load(InlineSource(document))

    async def load_from_file(self, path: Union[str, Path]) -> RegistrySnapshot:
        return await self.load(FileSource(path))

    async def load_from_upload(self, filename: Optional[str], content: bytes) -> RegistrySnapshot:
        return await self.load(UploadSource(filename, content))

    async def load_from_url(self, url: str) -> RegistrySnapshot:
        return await self.load(UrlSource(url, timeout=self.url_timeout, transport=self.http_transport))

    def export_current(self) -> Optional[Dict[str, Any]]:
        return self.registry.export_document()

    def is_loaded(self) -> bool:
        return self.registry.is_loaded()

    def current_version(self) -> Optional[str]:
        return self.registry.current_version()

    def reset(self) -> None:
        self.registry.reset()

    # --- Catalog editing ---

    def _working_document(self) -> Dict[str, Any]:
        return self.registry.export_document() or {"version": EMPTY_DOCUMENT_VERSION, "nodes": []}

    async def upsert_definition(self, node_document: Dict[str, Any]) -> RegistrySnapshot:
        """Add a node type, or replace the one with the same id in place."""
        document = self._working_document()
        node_document = copy.deepcopy(node_document)
        node_id = node_document.get("id") if isinstance(node_document, dict) else None

        for index, existing in enumerate(document["nodes"]):
            if node_id is not None and existing.get("id") == node_id:
                document["nodes"][index] = node_document
                break
        else:
            document["nodes"].append(node_document)

        return await self.load(InlineSource(document, label=f"edit of node type {node_id}"))

    async def remove_definition(self, node_id: str) -> RegistrySnapshot:
        document = self._working_document()
        remaining = [n for n in document["nodes"] if n.get("id") != node_id]
        if len(remaining) == len(document["nodes"]):
            raise UnknownTypeError(node_id)
        document["nodes"] = remaining
        return await self.load(InlineSource(document, label=f"removal of node type {node_id}"))

    async def set_version(self, version: str) -> RegistrySnapshot:
        document = self._working_document()
        document["version"] = version
        return await self.load(InlineSource(document, label="version change"))
