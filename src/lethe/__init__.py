"""Lethe - forgetting decisions for AI memory systems."""

__version__ = "0.1.0"

from lethe.core.evaluator import ForgettingEvaluationEngine, ForgettingStrategy
from lethe.core.models import (
    EpisodicMemory,
    ForgettingContext,
    ForgettingEvaluation,
    ForgettingScore,
    SemanticMemory,
)
from lethe.core.policy_manager import ForgettingPolicyManager

__all__ = [
    "ForgettingEvaluationEngine",
    "ForgettingStrategy",
    "ForgettingPolicyManager",
    "EpisodicMemory",
    "SemanticMemory",
    "ForgettingContext",
    "ForgettingScore",
    "ForgettingEvaluation",
]
