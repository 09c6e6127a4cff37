"""
Structural validation of node type documents.

The rules live in the pydantic models of `schema.py`; this module runs them
and turns every problem found into one aggregated ValidationError. A document
either passes completely or is rejected; there is no partial load. Retry
policy values are not range-checked here; RetryPolicyBuilder normalizes them
when a policy is resolved.
"""
from dataclasses import dataclass, field
from typing import Any, Dict, List

from pydantic import ValidationError as PydanticValidationError

from nodecatalog.core.errors import ValidationError

from .schema import NodeTypeConfig


def _format_location(loc) -> str:
    parts = []
    for item in loc:
        if isinstance(item, int):
            parts.append(f"[{item}]")
        else:
            parts.append(f".{item}" if parts else str(item))
    return "".join(parts) or "document"


@dataclass
class ValidationReport:
    valid: bool
    errors: List[str] = field(default_factory=list)
    summary: Dict[str, Any] = field(default_factory=dict)

    def to_dict(self) -> Dict[str, Any]:
        return {"valid": self.valid, "errors": self.errors, "summary": self.summary}


class ConfigValidator:
    """Validates raw documents against the NodeTypeConfig schema."""

    def validate(self, raw: Any, source: str = "document") -> NodeTypeConfig:
        """Return the parsed config, or raise ValidationError listing every problem."""
        try:
            return NodeTypeConfig.model_validate(raw)
        except PydanticValidationError as e:
            raise ValidationError(source, self._collect(e)) from e

    def check(self, raw: Any) -> ValidationReport:
        """Dry run: report problems without raising."""
        try:
            config = self.validate(raw)
        except ValidationError as e:
            return ValidationReport(valid=False, errors=e.errors)

        categories = []
        for node in config.nodes:
            if node.category not in categories:
                categories.append(node.category)

        type_tags = [node.type_tag for node in config.nodes]
        shadowed = sorted({tag for tag in type_tags if type_tags.count(tag) > 1})
        return ValidationReport(
            valid=True,
            summary={
                "version": config.version,
                "nodes": len(config.nodes),
                "categories": categories,
                # Shared type tags are allowed; only the last definition is reachable by tag
                "shadowedTypeTags": shadowed,
            },
        )

    @staticmethod
    def _collect(error: PydanticValidationError) -> List[str]:
        messages = []
        for item in error.errors():
            location = _format_location(item.get("loc", ()))
            message = item.get("msg", "invalid value")
            if message.startswith("Value error, "):
                message = message[len("Value error, "):]
            messages.append(f"{location}: {message}")
        return messages
