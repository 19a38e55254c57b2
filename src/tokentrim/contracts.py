"""
TokenTrim — Collaborator Contracts

Interfaces the hosting service implements around the engine. The engine
never calls these itself: key validation gates access before optimize()
is invoked, and usage is reported after it returns.
"""

from abc import ABC, abstractmethod
from enum import Enum

from pydantic import BaseModel, ConfigDict, Field

from .optimizer.models import OptimizationResult


class AccessState(str, Enum):
    """Subscription state of the key owner."""

    ACTIVE = "active"
    TRIALING = "trialing"
    INACTIVE = "inactive"


class KeyValidation(BaseModel):
    """Outcome of validating an API key."""

    valid: bool = Field(..., description="Whether the key exists and is not revoked")
    owner_id: str | None = Field(default=None, description="Opaque identifier of the key owner")
    access_state: AccessState = Field(default=AccessState.INACTIVE, description="Owner's access state")

    model_config = ConfigDict(frozen=True)

    @property
    def allows_optimize(self) -> bool:
        """Valid keys with active or trialing access may optimize."""
        return self.valid and self.access_state in (AccessState.ACTIVE, AccessState.TRIALING)


class UsageRecord(BaseModel):
    """Usage increment reported after an optimization."""

    owner_id: str
    prompts_optimized: int = Field(default=1, ge=0)
    tokens_saved: int = Field(default=0, ge=0)

    model_config = ConfigDict(frozen=True)

    @classmethod
    def from_result(cls, owner_id: str, result: OptimizationResult) -> "UsageRecord":
        """Build the usage increment for one optimization."""
        return cls(owner_id=owner_id, prompts_optimized=1, tokens_saved=result.tokens_saved)


class KeyValidator(ABC):
    """
    Abstract key validator.

    Implemented by the hosting service (API key store, license server).
    """

    @abstractmethod
    def validate(self, key: str) -> KeyValidation:
        """
        Validate an API key.

        Args:
            key: Raw API key presented by the caller

        Returns:
            KeyValidation describing the key and its owner's access
        """
        pass


class UsageSink(ABC):
    """
    Abstract usage sink.

    Recording is fire-and-forget: implementations must not raise into
    the caller for delivery failures.
    """

    @abstractmethod
    def record(self, owner_id: str, prompts_optimized: int, tokens_saved: int) -> None:
        """
        Record a usage increment.

        Args:
            owner_id: Key owner to charge
            prompts_optimized: Number of optimizations performed
            tokens_saved: Tokens saved by those optimizations
        """
        pass

    def record_usage(self, usage: UsageRecord) -> None:
        """Record a prepared UsageRecord."""
        self.record(usage.owner_id, usage.prompts_optimized, usage.tokens_saved)
