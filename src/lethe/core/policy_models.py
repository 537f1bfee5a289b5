"""Forgetting policy models and evaluation results.

Policies arrive from callers and imported files, so they are Pydantic models
validated on construction. Evaluation results are plain dataclasses built by
the policy manager.
"""

from dataclasses import dataclass, field
from datetime import datetime
from enum import Enum
from typing import Any, Dict, List, Optional

from pydantic import BaseModel, ConfigDict, Field, field_validator

from lethe.core.constants import PROTECTED_CATEGORIES


class RuleAction(str, Enum):
    """Action a rule applies when its conditions hold."""
    ALLOW = "allow"
    DENY = "deny"
    REQUIRE_CONSENT = "require_consent"
    DELAY = "delay"
    MODIFY = "modify"

    @property
    def rank(self) -> int:
        """Position in the conflict resolution order (lower wins)."""
        return _DECISION_RANK[self]


# deny > require_consent > delay > modify > allow
_DECISION_RANK = {
    RuleAction.DENY: 0,
    RuleAction.REQUIRE_CONSENT: 1,
    RuleAction.DELAY: 2,
    RuleAction.MODIFY: 3,
    RuleAction.ALLOW: 4,
}

# Policy outcomes share the rule action vocabulary
PolicyDecision = RuleAction


class ConditionLogic(str, Enum):
    AND = "AND"
    OR = "OR"


class ConditionType(str, Enum):
    """Where a condition reads its actual value from."""
    MEMORY_TYPE = "memory_type"
    # Reads the evaluation's combined score, not a raw importance field
    IMPORTANCE_THRESHOLD = "importance_threshold"
    AGE_DAYS = "age_days"
    ACCESS_FREQUENCY = "access_frequency"
    CONTENT_CATEGORY = "content_category"
    PRIVACY_LEVEL = "privacy_level"
    USER_TAG = "user_tag"


class ConditionOperator(str, Enum):
    EQUALS = "equals"
    NOT_EQUALS = "not_equals"
    GREATER_THAN = "greater_than"
    LESS_THAN = "less_than"
    CONTAINS = "contains"
    NOT_CONTAINS = "not_contains"
    IN = "in"
    NOT_IN = "not_in"


def _enum_value(enum_cls, value: Any, label: str):
    """Coerce to an enum member with a readable error."""
    try:
        return enum_cls(value)
    except ValueError:
        raise ValueError(f"Invalid {label}: {value}") from None


class PolicyModel(BaseModel):
    """Base class for all policy models."""

    model_config = ConfigDict(validate_assignment=True, extra="ignore")


class ForgettingCondition(PolicyModel):
    """A single test against an evaluation or memory metadata."""

    condition_type: ConditionType
    operator: ConditionOperator
    value: Any = Field(default=None, validate_default=True)
    weight: Optional[float] = None

    @field_validator("condition_type", mode="before")
    @classmethod
    def validate_condition_type(cls, v: Any) -> ConditionType:
        return _enum_value(ConditionType, v, "condition type")

    @field_validator("operator", mode="before")
    @classmethod
    def validate_operator(cls, v: Any) -> ConditionOperator:
        return _enum_value(ConditionOperator, v, "condition operator")

    @field_validator("value")
    @classmethod
    def validate_value(cls, v: Any) -> Any:
        if v is None:
            raise ValueError("Condition value is required")
        return v


class ForgettingPolicyRule(PolicyModel):
    """A prioritized conditional clause mapping conditions to an action."""

    rule_id: str
    rule_name: str
    description: str = ""
    priority: int = 0
    conditions: List[ForgettingCondition]
    condition_logic: ConditionLogic = ConditionLogic.AND
    action: RuleAction
    action_parameters: Dict[str, Any] = Field(default_factory=dict)

    @field_validator("rule_name")
    @classmethod
    def validate_rule_name(cls, v: str) -> str:
        if not v.strip():
            raise ValueError("Rule name is required")
        return v

    @field_validator("conditions")
    @classmethod
    def validate_conditions(cls, v: List[ForgettingCondition]) -> List[ForgettingCondition]:
        if not v:
            raise ValueError("Rule must have at least one condition")
        return v

    @field_validator("condition_logic", mode="before")
    @classmethod
    def validate_condition_logic(cls, v: Any) -> ConditionLogic:
        return _enum_value(ConditionLogic, v, "condition logic")

    @field_validator("action", mode="before")
    @classmethod
    def validate_action(cls, v: Any) -> RuleAction:
        return _enum_value(RuleAction, v, "rule action")


class NotificationPreferences(PolicyModel):
    notify_before_forgetting: bool = True
    notification_delay_hours: float = 24
    notify_after_forgetting: bool = True
    notification_methods: List[str] = Field(default_factory=lambda: ["in_app", "log"])


class PrivacyPreferences(PolicyModel):
    default_privacy_level: str = "private"
    secure_deletion_required: bool = True
    audit_encryption_required: bool = True
    data_retention_days: int = 2555  # 7 years


class PolicyUserPreferences(PolicyModel):
    """User preferences attached to a policy."""

    consent_required_by_default: bool = True
    protected_categories: List[str] = Field(
        default_factory=lambda: list(PROTECTED_CATEGORIES)
    )
    max_auto_forget_importance: float = Field(default=0.3, ge=0.0, le=1.0)
    retention_period_days: int = 365
    notification_preferences: NotificationPreferences = Field(
        default_factory=NotificationPreferences
    )
    privacy_preferences: PrivacyPreferences = Field(default_factory=PrivacyPreferences)


class ExecutionSettings(PolicyModel):
    """How a caller should execute decisions allowed by a policy."""

    max_concurrent_operations: int = Field(default=5, ge=1)
    batch_size: int = Field(default=10, ge=1)
    execution_delay_ms: int = Field(default=1000, ge=0)
    retry_attempts: int = Field(default=3, ge=0)
    rollback_enabled: bool = True
    backup_before_deletion: bool = True


class ForgettingPolicy(PolicyModel):
    """A named, versioned, prioritized rule set."""

    policy_id: str = ""
    policy_name: str
    description: str = ""
    created_at: Optional[datetime] = None
    modified_at: Optional[datetime] = None
    active: bool = True
    rules: List[ForgettingPolicyRule]
    user_preferences: PolicyUserPreferences = Field(default_factory=PolicyUserPreferences)
    execution_settings: ExecutionSettings = Field(default_factory=ExecutionSettings)

    @field_validator("policy_name")
    @classmethod
    def validate_policy_name(cls, v: str) -> str:
        if not v.strip():
            raise ValueError("Policy name is required")
        return v

    @field_validator("rules")
    @classmethod
    def validate_rules(cls, v: List[ForgettingPolicyRule]) -> List[ForgettingPolicyRule]:
        if not v:
            raise ValueError("Policy must have at least one rule")
        return v


IDENTITY_FIELDS = frozenset({"policy_id", "created_at", "modified_at"})
"""Fields assigned by the manager and stripped on export."""


@dataclass
class ConditionEvaluationResult:
    """Outcome of one condition, kept for auditability."""

    condition_type: ConditionType
    operator: ConditionOperator
    expected_value: Any
    actual_value: Any
    result: bool
    weight: Optional[float] = None


@dataclass
class RuleEvaluationResult:
    """Outcome of one rule."""

    rule_id: str
    rule_name: str
    conditions_met: bool
    condition_results: List[ConditionEvaluationResult]
    action_applied: bool
    priority: int


@dataclass
class PolicyEvaluationResult:
    """Outcome of evaluating one policy against one memory."""

    policy_id: str
    rule_results: List[RuleEvaluationResult] = field(default_factory=list)
    final_decision: PolicyDecision = PolicyDecision.ALLOW
    decision_confidence: float = 1.0
    applied_modifications: Optional[Dict[str, Any]] = None
    delay_until: Optional[datetime] = None
    consent_required: bool = False
    reasoning: List[str] = field(default_factory=list)
