"""
Node type catalog core.

- schema: wire format models and the loaded NodeTypeDefinition
- sources: where documents come from (inline, file, upload, URL)
- validator: document validation with aggregated errors
- node_registry: atomically replaced registry snapshot
- retry_policy: retry/backoff policy resolution
- node_factory: graph node instances and policy-backed records
- compatibility: edge legality between node types
- loader: load/export/reset and catalog editing
- catalog: container wiring the above around one registry
"""
from .catalog import NodeCatalog
from .compatibility import CompatibilityValidator, ConnectionCheck, Edge
from .loader import NodeTypeLoader
from .node_factory import GraphNodeInstance, NodeFactory, PolicyBackedNode, Position
from .node_registry import CategoryGroup, NodeTypeRegistry, RegistrySnapshot
from .retry_policy import BackoffStrategy, RetryPolicy, RetryPolicyBuilder
from .schema import IconResolver, NodeTypeConfig, NodeTypeDefinition, NodeTypeDoc, RetryPolicyDoc
from .validator import ConfigValidator, ValidationReport

__all__ = [
    'NodeCatalog',
    'CompatibilityValidator',
    'ConnectionCheck',
    'Edge',
    'NodeTypeLoader',
    'GraphNodeInstance',
    'NodeFactory',
    'PolicyBackedNode',
    'Position',
    'CategoryGroup',
    'NodeTypeRegistry',
    'RegistrySnapshot',
    'BackoffStrategy',
    'RetryPolicy',
    'RetryPolicyBuilder',
    'IconResolver',
    'NodeTypeConfig',
    'NodeTypeDefinition',
    'NodeTypeDoc',
    'RetryPolicyDoc',
    'ConfigValidator',
    'ValidationReport',
]
