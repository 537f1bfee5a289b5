"""Pytest configuration and fixtures for Lethe tests."""

from dataclasses import dataclass
from datetime import datetime
from typing import Any, Dict, List, Optional

import pytest

from lethe.config.settings import EvaluationSettings
from lethe.core.evaluator import ForgettingEvaluationEngine
from lethe.core.models import (
    ForgettingAction,
    ForgettingContext,
    ForgettingEvaluation,
    ForgettingImpact,
    ForgettingRecommendation,
    ForgettingScore,
    MemoryKind,
    UserForgettingPreferences,
)
from lethe.core.policy_manager import ForgettingPolicyManager

FROZEN_NOW = datetime(2024, 6, 1, 12, 0, 0)


@dataclass
class StubStrategy:
    """Strategy returning a fixed score (or raising) for every memory."""

    name: str
    score: float = 0.5
    confidence: float = 1.0
    error: Optional[Exception] = None

    def evaluate_for_forgetting(self, memory, context) -> ForgettingScore:
        if self.error is not None:
            raise self.error
        return ForgettingScore(
            strategy_name=self.name,
            score=self.score,
            confidence=self.confidence,
        )


@dataclass
class PerMemoryStrategy:
    """Async strategy scoring memories from a lookup table."""

    name: str
    scores: Dict[str, float]
    confidence: float = 1.0

    async def evaluate_for_forgetting(self, memory, context) -> ForgettingScore:
        return ForgettingScore(
            strategy_name=self.name,
            score=self.scores[memory.id],
            confidence=self.confidence,
        )


def make_evaluation(
    combined_score: float = 0.5,
    memory_type: MemoryKind = MemoryKind.EPISODIC,
    memory_id: str = "mem-1",
) -> ForgettingEvaluation:
    """Build a minimal evaluation for policy tests."""
    return ForgettingEvaluation(
        memory_id=memory_id,
        memory_type=memory_type,
        content_summary="test memory",
        strategy_scores=[],
        combined_score=combined_score,
        recommendation=ForgettingRecommendation(
            action=ForgettingAction.ARCHIVE,
            confidence=0.5,
            reasoning="test",
            alternative_actions=[],
        ),
        requires_user_consent=False,
        estimated_impact=ForgettingImpact(),
    )


def make_rule(
    action: str = "allow",
    conditions: Optional[List[Dict[str, Any]]] = None,
    priority: int = 50,
    rule_name: str = "Test Rule",
    condition_logic: str = "AND",
    action_parameters: Optional[Dict[str, Any]] = None,
) -> Dict[str, Any]:
    """Build a rule mapping; matches every memory by default."""
    return {
        "rule_id": rule_name.lower().replace(" ", "_"),
        "rule_name": rule_name,
        "priority": priority,
        "conditions": conditions
        if conditions is not None
        else [{"condition_type": "memory_type", "operator": "in", "value": ["episodic", "semantic"]}],
        "condition_logic": condition_logic,
        "action": action,
        "action_parameters": action_parameters or {},
    }


def make_policy(
    rules: Optional[List[Dict[str, Any]]] = None,
    policy_name: str = "Test Policy",
    consent_required_by_default: bool = False,
    active: bool = True,
) -> Dict[str, Any]:
    """Build a complete, importable policy mapping."""
    return {
        "policy_name": policy_name,
        "description": "Policy used in tests",
        "active": active,
        "rules": rules if rules is not None else [make_rule()],
        "user_preferences": {"consent_required_by_default": consent_required_by_default},
        "execution_settings": {"batch_size": 5},
    }


@pytest.fixture
def frozen_now() -> datetime:
    return FROZEN_NOW


@pytest.fixture
def context() -> ForgettingContext:
    """Context with permissive preferences so only the rule under test flags consent."""
    return ForgettingContext(
        user_preferences=UserForgettingPreferences(
            consent_required=False,
            protected_categories=["medical", "financial"],
            max_auto_forget_importance=1.0,
        ),
        current_time=FROZEN_NOW,
    )


@pytest.fixture
def engine() -> ForgettingEvaluationEngine:
    return ForgettingEvaluationEngine(
        settings=EvaluationSettings(),
        clock=lambda: FROZEN_NOW,
    )


@pytest.fixture
def manager() -> ForgettingPolicyManager:
    return ForgettingPolicyManager(clock=lambda: FROZEN_NOW)


@pytest.fixture
def empty_manager() -> ForgettingPolicyManager:
    return ForgettingPolicyManager(seed_policies=[], clock=lambda: FROZEN_NOW)
