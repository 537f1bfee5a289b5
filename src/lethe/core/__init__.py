"""Core forgetting evaluation and policy engine."""

from lethe.core.evaluator import ForgettingEvaluationEngine, ForgettingStrategy
from lethe.core.models import (
    EpisodicMemory,
    ForgettingAction,
    ForgettingContext,
    ForgettingDecision,
    ForgettingEvaluation,
    ForgettingImpact,
    ForgettingRecommendation,
    ForgettingScore,
    Memory,
    MemoryKind,
    SemanticMemory,
    UserForgettingPreferences,
)
from lethe.core.policy_manager import ForgettingPolicyManager
from lethe.core.policy_models import (
    ForgettingCondition,
    ForgettingPolicy,
    ForgettingPolicyRule,
    PolicyDecision,
    PolicyEvaluationResult,
)

__all__ = [
    "ForgettingEvaluationEngine",
    "ForgettingStrategy",
    "ForgettingPolicyManager",
    "Memory",
    "MemoryKind",
    "EpisodicMemory",
    "SemanticMemory",
    "ForgettingAction",
    "ForgettingContext",
    "UserForgettingPreferences",
    "ForgettingScore",
    "ForgettingRecommendation",
    "ForgettingImpact",
    "ForgettingEvaluation",
    "ForgettingDecision",
    "ForgettingCondition",
    "ForgettingPolicyRule",
    "ForgettingPolicy",
    "PolicyDecision",
    "PolicyEvaluationResult",
]
