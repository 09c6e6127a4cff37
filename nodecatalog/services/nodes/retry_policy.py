"""
Retry/backoff policy attached to each node type.

The catalog only resolves the policy; an external execution engine consumes
RetryPolicy.delay_for_attempt() and RetryPolicy.is_retryable().
"""
from dataclasses import dataclass, field
from enum import Enum
from typing import Any, Dict, FrozenSet, Mapping, Optional, Union

from nodecatalog.core.logging_config import get_logger

from .schema import RetryPolicyDoc

logger = get_logger(__name__)


class BackoffStrategy(str, Enum):
    FIXED = "fixed"
    LINEAR = "linear"
    EXPONENTIAL = "exponential"

    @classmethod
    def parse(cls, value: Any) -> "BackoffStrategy":
        """Case-insensitive lookup; anything unrecognised resolves to EXPONENTIAL."""
        if isinstance(value, BackoffStrategy):
            return value
        try:
            return cls(str(value).strip().lower())
        except ValueError:
            logger.warning(f"Unknown backoff strategy {value!r}, using exponential")
            return cls.EXPONENTIAL


DEFAULT_RETRYABLE_ERRORS = frozenset({
    "ConnectionError",
    "TimeoutError",
    "ServiceUnavailableError",
    "RateLimitError",
})

DEFAULT_TERMINAL_ERRORS = frozenset({
    "AuthenticationError",
    "ValidationError",
    "FileNotFoundError",
    "PermissionError",
})


@dataclass(frozen=True)
class RetryPolicy:
    max_retries: int = 3
    backoff_strategy: BackoffStrategy = BackoffStrategy.EXPONENTIAL
    initial_delay_ms: float = 1000
    max_delay_ms: float = 30000
    backoff_multiplier: float = 2
    retryable_error_kinds: FrozenSet[str] = field(default=DEFAULT_RETRYABLE_ERRORS)
    terminal_error_kinds: FrozenSet[str] = field(default=DEFAULT_TERMINAL_ERRORS)

    def __post_init__(self):
        if self.max_retries < 0:
            raise ValueError(f"max_retries must be >= 0, got {self.max_retries}")
        if self.initial_delay_ms < 0:
            raise ValueError(f"initial delay must be >= 0, got {self.initial_delay_ms}")
        if self.initial_delay_ms > self.max_delay_ms:
            raise ValueError(
                f"initial delay ({self.initial_delay_ms}ms) exceeds max delay ({self.max_delay_ms}ms)"
            )
        if self.backoff_multiplier <= 0:
            raise ValueError(f"backoff multiplier must be > 0, got {self.backoff_multiplier}")
        overlap = self.retryable_error_kinds & self.terminal_error_kinds
        if overlap:
            raise ValueError(
                f"error kinds both retryable and terminal: {', '.join(sorted(overlap))}"
            )

    def delay_for_attempt(self, attempt: int) -> float:
        """Delay in milliseconds before retry number `attempt` (1-based)."""
        if attempt < 1:
            raise ValueError(f"attempt must be >= 1, got {attempt}")

        if self.backoff_strategy is BackoffStrategy.FIXED:
            delay = self.initial_delay_ms
        elif self.backoff_strategy is BackoffStrategy.LINEAR:
            delay = self.initial_delay_ms * attempt
        else:
            delay = self.initial_delay_ms * (self.backoff_multiplier ** (attempt - 1))
        return min(delay, self.max_delay_ms)

    def is_retryable(self, error_kind: str) -> bool:
        if error_kind in self.terminal_error_kinds:
            return False
        return error_kind in self.retryable_error_kinds

    def to_dict(self) -> Dict[str, Any]:
        return {
            "maxRetries": self.max_retries,
            "backoffStrategy": self.backoff_strategy.value,
            "initialDelayMs": self.initial_delay_ms,
            "maxDelayMs": self.max_delay_ms,
            "backoffMultiplier": self.backoff_multiplier,
            "retryableErrorKinds": sorted(self.retryable_error_kinds),
            "terminalErrorKinds": sorted(self.terminal_error_kinds),
        }


# Override keys accepted by the builder, mapped to RetryPolicy fields.
# Both the document spelling and the camelCase API spelling are recognised.
_OVERRIDE_KEYS = {
    "max_retries": "max_retries",
    "maxRetries": "max_retries",
    "backoff_strategy": "backoff_strategy",
    "backoffStrategy": "backoff_strategy",
    "initial_delay": "initial_delay_ms",
    "initialDelayMs": "initial_delay_ms",
    "max_delay": "max_delay_ms",
    "maxDelayMs": "max_delay_ms",
    "backoff_multiplier": "backoff_multiplier",
    "backoffMultiplier": "backoff_multiplier",
    "retry_on_errors": "retryable_error_kinds",
    "retryableErrorKinds": "retryable_error_kinds",
    "no_retry_on_errors": "terminal_error_kinds",
    "terminalErrorKinds": "terminal_error_kinds",
}


class RetryPolicyBuilder:
    """Resolves partial overrides into a complete RetryPolicy.

    Merge is per field: a field absent from the overrides (or present as None)
    keeps the builder's default; a present value, including 0 or an empty
    list, replaces it. Values that would break the RetryPolicy invariants are
    adjusted with a warning, so any loaded document resolves to a policy.
    """

    def __init__(self, defaults: Optional[RetryPolicy] = None):
        self.defaults = defaults or RetryPolicy()

    def build(self, overrides: Union[RetryPolicyDoc, Mapping[str, Any], None] = None) -> RetryPolicy:
        values = {
            "max_retries": self.defaults.max_retries,
            "backoff_strategy": self.defaults.backoff_strategy,
            "initial_delay_ms": self.defaults.initial_delay_ms,
            "max_delay_ms": self.defaults.max_delay_ms,
            "backoff_multiplier": self.defaults.backoff_multiplier,
            "retryable_error_kinds": self.defaults.retryable_error_kinds,
            "terminal_error_kinds": self.defaults.terminal_error_kinds,
        }

        for key, value in self._normalize(overrides).items():
            if value is None:
                continue
            target = _OVERRIDE_KEYS.get(key)
            if target is None:
                logger.debug(f"Ignoring unknown retry policy key: {key}")
                continue
            if target == "backoff_strategy":
                value = BackoffStrategy.parse(value)
            elif target in ("retryable_error_kinds", "terminal_error_kinds"):
                value = frozenset(value)
            values[target] = value

        return RetryPolicy(**self._reconcile(values))

    def _reconcile(self, values: Dict[str, Any]) -> Dict[str, Any]:
        """Bring merged values inside the RetryPolicy invariants instead of rejecting them."""
        for key in ("max_retries", "initial_delay_ms", "max_delay_ms"):
            if values[key] < 0:
                logger.warning(f"Retry policy {key}={values[key]} is negative, using 0")
                values[key] = 0

        if values["backoff_multiplier"] <= 0:
            logger.warning(
                f"Retry policy backoff multiplier {values['backoff_multiplier']} is not positive, "
                f"using {self.defaults.backoff_multiplier}"
            )
            values["backoff_multiplier"] = self.defaults.backoff_multiplier

        if values["initial_delay_ms"] > values["max_delay_ms"]:
            logger.warning(
                f"Retry policy initial delay ({values['initial_delay_ms']}ms) exceeds max delay "
                f"({values['max_delay_ms']}ms), raising max delay"
            )
            values["max_delay_ms"] = values["initial_delay_ms"]

        # Terminal wins over retryable
        overlap = values["retryable_error_kinds"] & values["terminal_error_kinds"]
        if overlap:
            logger.warning(f"Error kinds listed as both retryable and terminal: {', '.join(sorted(overlap))}")
            values["retryable_error_kinds"] = values["retryable_error_kinds"] - overlap

        return values

    @staticmethod
    def _normalize(overrides) -> Dict[str, Any]:
        if overrides is None:
            return {}
        if isinstance(overrides, RetryPolicyDoc):
            return overrides.model_dump(exclude_none=True)
        return dict(overrides)
