"""Integration tests: evaluation engine feeding the policy manager."""

from datetime import timedelta

import pytest

from lethe.core.models import EpisodicMemory, ForgettingAction, ForgettingDecision
from lethe.core.policy_manager import ForgettingPolicyManager
from lethe.core.policy_models import PolicyDecision

from conftest import FROZEN_NOW, PerMemoryStrategy, StubStrategy

pytestmark = pytest.mark.integration


def episode(memory_id: str, days_old: int, activation: float) -> EpisodicMemory:
    return EpisodicMemory(
        id=memory_id,
        content=f"Episode {memory_id}",
        timestamp=FROZEN_NOW - timedelta(days=days_old),
        activation=activation,
    )


class TestForgettingPipeline:
    """Evaluate memories, then authorize the decisions against policies."""

    @pytest.mark.asyncio
    async def test_high_score_denied_by_every_protective_policy(self, engine, manager, context):
        engine.add_strategy(StubStrategy("temporal_decay", score=0.9))
        engine.add_strategy(StubStrategy("importance_based", score=0.9))
        await manager.apply_preset("aggressive")

        memory = episode("stale", days_old=30, activation=0.3)
        [evaluation] = await engine.evaluate_memories([memory], context)
        assert evaluation.recommendation.action == ForgettingAction.FORGET

        decision = ForgettingDecision.from_evaluation(evaluation)
        metadata = {"timestamp": memory.timestamp, "category": "work"}
        results = await manager.evaluate_policies(decision, evaluation, metadata)
        effective = manager.get_effective_policy_decision(results)

        assert len(results) == 2
        assert effective.final_decision == PolicyDecision.DENY
        assert effective.reasoning == [
            "Denied by rule: Protect High Importance Memories",
            "Denied by rule: Protect Only Critical Memories",
        ]

    @pytest.mark.asyncio
    async def test_low_score_old_memory_allowed_by_balanced_preset(self, engine, empty_manager, context):
        engine.add_strategy(PerMemoryStrategy("temporal_decay", {"old": 0.1, "fresh": 0.1}))
        await empty_manager.apply_preset("balanced")

        memories = [episode("fresh", days_old=2, activation=0.5), episode("old", days_old=90, activation=0.5)]
        evaluations = await engine.evaluate_memories(memories, context)

        outcomes = {}
        for evaluation, memory in zip(evaluations, memories):
            assert evaluation.memory_id == memory.id
            results = await empty_manager.evaluate_policies(
                ForgettingDecision.from_evaluation(evaluation),
                evaluation,
                {"timestamp": memory.timestamp.isoformat()},
            )
            outcomes[memory.id] = empty_manager.get_effective_policy_decision(results)

        assert outcomes["old"].final_decision == PolicyDecision.ALLOW
        assert outcomes["old"].reasoning == ["Allowed by rule: Auto-forget Low Importance"]
        assert outcomes["fresh"].final_decision == PolicyDecision.REQUIRE_CONSENT

    @pytest.mark.asyncio
    async def test_delay_rule_schedules_from_manager_clock(self, engine, context):
        manager = ForgettingPolicyManager(
            seed_policies=[],
            clock=lambda: FROZEN_NOW,
            default_delay_hours=12,
        )
        await manager.create_policy(
            {
                "policy_name": "Cooling Off",
                "rules": [
                    {
                        "rule_id": "cool_off",
                        "rule_name": "Cool Off",
                        "priority": 10,
                        "conditions": [
                            {"condition_type": "memory_type", "operator": "equals", "value": "episodic"}
                        ],
                        "action": "delay",
                    }
                ],
                "user_preferences": {"consent_required_by_default": False},
                "execution_settings": {},
            }
        )

        evaluation = await engine.evaluate_memory(episode("e", days_old=1, activation=0.5), context)
        results = await manager.evaluate_policies(
            ForgettingDecision.from_evaluation(evaluation), evaluation, {}
        )
        effective = manager.get_effective_policy_decision(results)

        assert effective.final_decision == PolicyDecision.DELAY
        assert effective.delay_until == FROZEN_NOW + timedelta(hours=12)
