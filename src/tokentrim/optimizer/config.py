"""
Optimization Engine Configuration

Typed tuning thresholds for the classifier, rewriter and log condenser.
The defaults are empirically chosen values carried over from the
production rule set; they are calibration knobs, not protocol constants.
"""

from pydantic import BaseModel, ConfigDict, Field, model_validator

# Output must be at least this much shorter than the input to be kept
MIN_SAVINGS_RATIO = 0.05
# Distinct log signatures needed before text is treated as a log
CLASSIFIER_THRESHOLD = 2
# Shorter lines are never deduplicated in conversational text
DEDUP_MIN_LINE_LENGTH = 10
# Stack frames retained per distinct error
STACK_FRAME_CAP = 3
# Supporting lines attached to an error after its declaration
MAX_CONTEXT_LINES = 4
MIN_CONTEXT_LINE_LENGTH = 5
# Exclusive length bounds for extracted requirement/constraint phrases
REQUIREMENT_MIN_LENGTH = 5
REQUIREMENT_MAX_LENGTH = 100
CONSTRAINT_MIN_LENGTH = 3
CONSTRAINT_MAX_LENGTH = 50


class OptimizerConfig(BaseModel):
    """
    Configuration for the optimization engine.

    Instances are frozen: a configured optimizer can be shared between
    callers without copying.
    """

    min_savings_ratio: float = Field(
        default=MIN_SAVINGS_RATIO,
        ge=0.0,
        lt=1.0,
        description="Minimum relative length reduction required to keep a rewrite",
    )

    classifier_threshold: int = Field(
        default=CLASSIFIER_THRESHOLD,
        ge=1,
        description="Number of distinct log signatures that marks input as an error log",
    )

    dedup_min_line_length: int = Field(
        default=DEDUP_MIN_LINE_LENGTH,
        ge=1,
        description="Lines shorter than this are kept even when repeated",
    )

    stack_frame_cap: int = Field(
        default=STACK_FRAME_CAP,
        ge=0,
        description="Maximum stack frames kept per distinct error",
    )

    max_context_lines: int = Field(
        default=MAX_CONTEXT_LINES,
        ge=0,
        description="Maximum supporting context lines kept per error",
    )

    min_context_line_length: int = Field(
        default=MIN_CONTEXT_LINE_LENGTH,
        ge=0,
        description="Context lines must be longer than this after trimming",
    )

    requirement_min_length: int = Field(default=REQUIREMENT_MIN_LENGTH, ge=0)
    requirement_max_length: int = Field(default=REQUIREMENT_MAX_LENGTH, ge=1)
    constraint_min_length: int = Field(default=CONSTRAINT_MIN_LENGTH, ge=0)
    constraint_max_length: int = Field(default=CONSTRAINT_MAX_LENGTH, ge=1)

    model_config = ConfigDict(frozen=True)

    @model_validator(mode="after")
    def validate_phrase_bounds(self) -> "OptimizerConfig":
        """Ensure phrase length windows are not empty."""
        if self.requirement_min_length >= self.requirement_max_length:
            raise ValueError("requirement_min_length must be less than requirement_max_length")
        if self.constraint_min_length >= self.constraint_max_length:
            raise ValueError("constraint_min_length must be less than constraint_max_length")
        return self
