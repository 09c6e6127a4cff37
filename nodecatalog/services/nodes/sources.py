"""
Where a node type document comes from.

Every source exposes `async read()` returning the parsed (but unvalidated)
JSON document and `describe()` naming the source for error messages. Sources
never touch the registry and never retry; a hung URL fetch is bounded by the
client timeout.
"""
import asyncio
import copy
import json
from pathlib import Path
from typing import Any, Optional, Union

import httpx

from nodecatalog.core.errors import ConfigIOError, NetworkError, ParseError
from nodecatalog.core.logging_config import get_logger

logger = get_logger(__name__)


def parse_document(text: str, source: str) -> Any:
    """Parse a JSON document, reporting the line/column on failure."""
    try:
        return json.loads(text)
    except json.JSONDecodeError as e:
        raise ParseError(source, f"invalid JSON at line {e.lineno} column {e.colno}: {e.msg}") from e


class ConfigSource:
    """Base class for node type document sources."""

    def describe(self) -> str:
        raise NotImplementedError

    async def read(self) -> Any:
        raise NotImplementedError


class InlineSource(ConfigSource):
    """An already-parsed document handed over by the caller."""

    def __init__(self, document: Any, label: str = "inline document"):
        self.document = document
        self.label = label

    def describe(self) -> str:
        return self.label

    async def read(self) -> Any:
        # Copy so later caller edits to the object cannot reach the registry
        return copy.deepcopy(self.document)


class FileSource(ConfigSource):
    """A JSON document on the local filesystem."""

    def __init__(self, path: Union[str, Path], encoding: str = "utf-8"):
        self.path = Path(path)
        self.encoding = encoding

    def describe(self) -> str:
        return f"file {self.path}"

    async def read(self) -> Any:
        try:
            text = await asyncio.to_thread(self.path.read_text, encoding=self.encoding)
        except UnicodeDecodeError as e:
            raise ParseError(self.describe(), f"file is not valid {self.encoding} text: {e}") from e
        except OSError as e:
            raise ConfigIOError(self.describe(), f"read failed: {e.strerror or e}") from e
        return parse_document(text, self.describe())


class UploadSource(ConfigSource):
    """Raw bytes of a document uploaded through the editor."""

    def __init__(self, filename: Optional[str], content: bytes):
        self.filename = filename or "upload"
        self.content = content

    def describe(self) -> str:
        return f"uploaded file {self.filename}"

    async def read(self) -> Any:
        try:
            text = self.content.decode("utf-8-sig")
        except UnicodeDecodeError as e:
            raise ParseError(self.describe(), f"file is not valid UTF-8 text: {e}") from e
        return parse_document(text, self.describe())


class UrlSource(ConfigSource):
    """A JSON document served over HTTP(S)."""

    def __init__(
        self,
        url: str,
        timeout: float = 10.0,
        transport: Optional[httpx.AsyncBaseTransport] = None,
    ):
        self.url = url
        self.timeout = timeout
        self.transport = transport

    def describe(self) -> str:
        return f"url {self.url}"

    async def read(self) -> Any:
        source = self.describe()
        try:
            async with httpx.AsyncClient(timeout=self.timeout, transport=self.transport) as client:
                response = await client.get(self.url)
        except httpx.TimeoutException as e:
            raise NetworkError(source, f"request timed out after {self.timeout}s") from e
        except (httpx.HTTPError, httpx.InvalidURL) as e:
            raise NetworkError(source, f"request failed: {e}") from e

        if not response.is_success:
            raise NetworkError(
                source,
                f"HTTP error status {response.status_code}",
                status_code=response.status_code,
            )

        logger.debug(f"Fetched {len(response.content)} bytes from {self.url}")
        return parse_document(response.text, source)
