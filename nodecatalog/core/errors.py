"""
Error taxonomy for node type catalog loading and lookup.

Load failures (ConfigLoadError and subclasses) always name the source that was
being read so the editor can present a readable cause. Lookup misses are not
errors for the factory and compatibility queries; UnknownTypeError is only
raised by explicit editing calls and translated to 404 by the HTTP layer.
"""
from typing import List, Optional


class NodeCatalogError(Exception):
    """Base class for every error raised by the node catalog."""


class ConfigLoadError(NodeCatalogError):
    """A node type document could not be loaded from its source."""

    def __init__(self, source: str, reason: str):
        super().__init__(f"{source}: {reason}")
        self.source = source
        self.reason = reason

    def to_detail(self) -> dict:
        return {"source": self.source, "reason": self.reason}


class ConfigIOError(ConfigLoadError):
    """The document file could not be read."""


class NetworkError(ConfigLoadError):
    """The document URL could not be fetched or answered with a non-2xx status."""

    def __init__(self, source: str, reason: str, status_code: Optional[int] = None):
        super().__init__(source, reason)
        self.status_code = status_code


class ParseError(ConfigLoadError):
    """The document body is not valid JSON."""


class ValidationError(ConfigLoadError):
    """The document is valid JSON but does not match the node type schema."""

    def __init__(self, source: str, errors: List[str]):
        reason = f"{len(errors)} validation error(s): " + "; ".join(errors)
        super().__init__(source, reason)
        self.errors = list(errors)

    def to_detail(self) -> dict:
        detail = super().to_detail()
        detail["errors"] = self.errors
        return detail


class UnknownTypeError(NodeCatalogError, LookupError):
    """A node type id or type tag is not present in the loaded catalog."""

    def __init__(self, key: str, kind: str = "id"):
        super().__init__(f"Unknown node type {kind}: {key}")
        self.key = key
        self.kind = kind
