from typing import Optional

import httpx

from .compatibility import CompatibilityValidator
from .loader import NodeTypeLoader
from .node_factory import NodeFactory
from .node_registry import NodeTypeRegistry
from .retry_policy import RetryPolicyBuilder
from .validator import ConfigValidator


class NodeCatalog:
    """
    One registry together with the services that read and write it.

    Built explicitly and passed to whoever needs it (the FastAPI app keeps one
    on `app.state`); tests create their own isolated catalogs.
    """

    def __init__(
        self,
        url_timeout: float = 10.0,
        http_transport: Optional[httpx.AsyncBaseTransport] = None,
        policy_builder: Optional[RetryPolicyBuilder] = None,
    ):
        self.policy_builder = policy_builder or RetryPolicyBuilder()
        self.registry = NodeTypeRegistry()
        self.validator = ConfigValidator()
        self.loader = NodeTypeLoader(
            self.registry,
            self.validator,
            url_timeout=url_timeout,
            http_transport=http_transport,
        )
        self.factory = NodeFactory(self.registry, self.policy_builder)
        self.compatibility = CompatibilityValidator(self.registry)
