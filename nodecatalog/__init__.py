"""Runtime-configurable node type catalog for the workflow editor."""
