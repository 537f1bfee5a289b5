"""Forgetting policy registry and rule evaluation."""

import asyncio
import copy
from dataclasses import replace
from datetime import datetime, timedelta
from itertools import count
from typing import Any, Callable, Dict, Iterable, List, Mapping, Optional, Union

from loguru import logger
from pydantic import ValidationError

from lethe.config.settings import PolicySettings
from lethe.core.conditions import compare, resolve_actual_value
from lethe.core.constants import DEFAULT_DELAY_HOURS, DEFAULT_POLICY_ID, DENY_CONFIDENCE_CAP
from lethe.core.models import ForgettingDecision, ForgettingEvaluation
from lethe.core.policy_models import (
    IDENTITY_FIELDS,
    ConditionEvaluationResult,
    ConditionLogic,
    ForgettingCondition,
    ForgettingPolicy,
    ForgettingPolicyRule,
    PolicyDecision,
    PolicyEvaluationResult,
    RuleAction,
    RuleEvaluationResult,
)
from lethe.core.presets import default_conservative_policy, get_preset_by_id
from lethe.utils.exceptions import (
    EmptyPolicyResultsError,
    InvalidPolicyConfigError,
    PolicyNotFoundError,
    PolicyValidationError,
    ProtectedPolicyError,
)

PolicyInput = Union[ForgettingPolicy, Mapping[str, Any]]

REQUIRED_IMPORT_SECTIONS = ("policy_name", "rules", "user_preferences", "execution_settings")


def _format_validation_error(error: ValidationError) -> str:
    """Flatten a Pydantic error into `loc: message` pairs."""
    parts = []
    for item in error.errors():
        loc = ".".join(str(p) for p in item["loc"])
        msg = item["msg"].removeprefix("Value error, ")
        parts.append(f"{loc}: {msg}" if loc else msg)
    return "; ".join(parts)


def _validate_policy(data: Mapping[str, Any]) -> ForgettingPolicy:
    try:
        return ForgettingPolicy.model_validate(dict(data))
    except ValidationError as e:
        raise PolicyValidationError(_format_validation_error(e)) from e


def _policy_body(policy: PolicyInput) -> Dict[str, Any]:
    if isinstance(policy, ForgettingPolicy):
        return policy.model_dump()
    if isinstance(policy, Mapping):
        return copy.deepcopy(dict(policy))
    raise PolicyValidationError(f"Unsupported policy type: {type(policy).__name__}")


class ForgettingPolicyManager:
    """
    Registry of forgetting policies and the rule engine that applies them.

    Every active policy is evaluated independently against a memory's
    evaluation; `get_effective_policy_decision` then resolves conflicts by
    decision rank (deny > require_consent > delay > modify > allow).

    Registry mutations are serialized by a lock and validated in full before
    anything is stored. Readers work on a snapshot.
    """

    def __init__(
        self,
        seed_policies: Optional[Iterable[ForgettingPolicy]] = None,
        clock: Callable[[], datetime] = datetime.now,
        default_delay_hours: float = DEFAULT_DELAY_HOURS,
    ):
        """
        Initialize the manager.

        Args:
            seed_policies: Policies registered at construction and protected
                from deletion. Defaults to the conservative default policy;
                pass an empty list for an empty registry.
            clock: Source of "now" for timestamps, ages and delays
            default_delay_hours: Delay for delay rules without `delay_hours`
        """
        self.clock = clock
        self.default_delay_hours = default_delay_hours
        self._policies: Dict[str, ForgettingPolicy] = {}
        self._sequence = count(1)
        self._lock = asyncio.Lock()

        if seed_policies is None:
            seed_policies = [default_conservative_policy()]

        self._protected_ids = {DEFAULT_POLICY_ID}
        now = self.clock()
        for seed in seed_policies:
            if not seed.policy_id:
                raise PolicyValidationError("Seed policies must carry a policy_id")
            self._policies[seed.policy_id] = seed.model_copy(
                update={
                    "created_at": seed.created_at or now,
                    "modified_at": seed.modified_at or now,
                },
                deep=True,
            )
            self._protected_ids.add(seed.policy_id)
            logger.debug(f"Seeded policy: {seed.policy_name} ({seed.policy_id})")

    @classmethod
    def from_settings(
        cls,
        settings: PolicySettings,
        clock: Callable[[], datetime] = datetime.now,
    ) -> "ForgettingPolicyManager":
        """Build a manager from policy settings."""
        return cls(
            seed_policies=None if settings.seed_default_policy else [],
            clock=clock,
            default_delay_hours=settings.default_delay_hours,
        )

    # -- registry ---------------------------------------------------------

    async def create_policy(self, policy: PolicyInput) -> str:
        """
        Register a new policy.

        Args:
            policy: Policy model or mapping; any id/timestamps are replaced

        Returns:
            The assigned policy id (`policy_<seq>_<epoch_ms>`)

        Raises:
            PolicyValidationError: Policy, rule or condition is malformed
        """
        body = _policy_body(policy)

        async with self._lock:
            now = self.clock()
            # Validate before consuming a sequence number
            new_policy = _validate_policy({**body, "created_at": now, "modified_at": now})
            policy_id = f"policy_{next(self._sequence)}_{int(now.timestamp() * 1000)}"
            new_policy = new_policy.model_copy(update={"policy_id": policy_id})
            self._policies[policy_id] = new_policy

        logger.info(
            f"Created policy: {new_policy.policy_name} ({policy_id}, "
            f"{len(new_policy.rules)} rules, active={new_policy.active})"
        )
        return policy_id

    async def update_policy(self, policy_id: str, updates: Mapping[str, Any]) -> None:
        """
        Merge updates over an existing policy.

        The id and creation time are preserved; the modification time is
        refreshed and the merged policy re-validated.

        Raises:
            PolicyNotFoundError: Unknown policy id
            PolicyValidationError: Merged policy is malformed
        """
        async with self._lock:
            existing = self._policies.get(policy_id)
            if existing is None:
                raise PolicyNotFoundError(f"Policy not found: {policy_id}")

            unknown = set(updates) - set(ForgettingPolicy.model_fields)
            if unknown:
                raise PolicyValidationError(f"Unknown policy fields: {sorted(unknown)}")

            merged = existing.model_dump()
            merged.update(copy.deepcopy(dict(updates)))
            merged.update(
                policy_id=policy_id,
                created_at=existing.created_at,
                modified_at=self.clock(),
            )
            self._policies[policy_id] = _validate_policy(merged)

        logger.info(f"Updated policy: {merged['policy_name']} ({policy_id}, fields={sorted(updates)})")

    async def delete_policy(self, policy_id: str) -> None:
        """
        Remove a policy.

        Raises:
            ProtectedPolicyError: The default (or another seeded) policy
            PolicyNotFoundError: Unknown policy id
        """
        if policy_id in self._protected_ids:
            logger.warning(f"Refused to delete protected policy: {policy_id}")
            raise ProtectedPolicyError(f"Cannot delete protected policy: {policy_id}")

        async with self._lock:
            policy = self._policies.pop(policy_id, None)

        if policy is None:
            raise PolicyNotFoundError(f"Policy not found: {policy_id}")
        logger.info(f"Deleted policy: {policy.policy_name} ({policy_id})")

    async def get_policy(self, policy_id: str) -> Optional[ForgettingPolicy]:
        """Return a copy of the policy, or None if unknown."""
        async with self._lock:
            policy = self._policies.get(policy_id)
        return policy.model_copy(deep=True) if policy else None

    async def list_policies(self, active_only: bool = False) -> List[ForgettingPolicy]:
        """Return policy copies, most recently modified first."""
        policies = await self._snapshot()
        if active_only:
            policies = [p for p in policies if p.active]
        return sorted(policies, key=lambda p: p.modified_at, reverse=True)

    async def apply_preset(self, preset_id: str) -> str:
        """
        Register a policy from a named preset.

        Raises:
            PolicyNotFoundError: Unknown preset id
        """
        preset = get_preset_by_id(preset_id)
        if preset is None:
            raise PolicyNotFoundError(f"Preset not found: {preset_id}")
        return await self.create_policy(preset.policy)

    async def import_policy(self, policy_config: Any) -> str:
        """
        Register a policy from a portable configuration object.

        Raises:
            InvalidPolicyConfigError: Missing a required top-level section
            PolicyValidationError: Sections present but malformed
        """
        if not isinstance(policy_config, Mapping) or any(
            key not in policy_config for key in REQUIRED_IMPORT_SECTIONS
        ):
            raise InvalidPolicyConfigError("Invalid policy configuration format")
        return await self.create_policy(policy_config)

    async def export_policy(self, policy_id: str) -> Dict[str, Any]:
        """
        Return a JSON-compatible policy body without id and timestamps.

        Raises:
            PolicyNotFoundError: Unknown policy id
        """
        policy = await self.get_policy(policy_id)
        if policy is None:
            raise PolicyNotFoundError(f"Policy not found: {policy_id}")
        return policy.model_dump(mode="json", exclude=set(IDENTITY_FIELDS))

    async def _snapshot(self) -> List[ForgettingPolicy]:
        async with self._lock:
            return [p.model_copy(deep=True) for p in self._policies.values()]

    # -- evaluation -------------------------------------------------------

    async def evaluate_policies(
        self,
        decision: ForgettingDecision,
        evaluation: ForgettingEvaluation,
        memory_metadata: Mapping[str, Any],
    ) -> List[PolicyEvaluationResult]:
        """Evaluate every active policy independently."""
        active = [p for p in await self._snapshot() if p.active]
        results = [self.evaluate_policy(p, evaluation, memory_metadata) for p in active]

        logger.debug(
            f"Evaluated {len(active)} policies for memory {decision.memory_id}: "
            f"{[r.final_decision.value for r in results]}"
        )
        return results

    def evaluate_policy(
        self,
        policy: ForgettingPolicy,
        evaluation: ForgettingEvaluation,
        memory_metadata: Mapping[str, Any],
    ) -> PolicyEvaluationResult:
        """
        Walk a policy's rules from highest to lowest priority.

        - deny is final and stops evaluation
        - require_consent applies unless denied
        - delay and modify apply only while the decision is still allow
        - allow is recorded but never overrides another decision

        If no rule fired and the policy requires consent by default, the
        decision becomes require_consent.
        """
        result = PolicyEvaluationResult(policy_id=policy.policy_id)
        rules = sorted(policy.rules, key=lambda r: r.priority, reverse=True)

        for rule in rules:
            rule_result = self.evaluate_rule(rule, evaluation, memory_metadata)
            result.rule_results.append(rule_result)
            if not (rule_result.conditions_met and rule_result.action_applied):
                continue

            if rule.action == RuleAction.DENY:
                result.final_decision = PolicyDecision.DENY
                result.decision_confidence = min(result.decision_confidence, DENY_CONFIDENCE_CAP)
                result.reasoning.append(f"Denied by rule: {rule.rule_name}")
                break

            if rule.action == RuleAction.REQUIRE_CONSENT:
                result.final_decision = PolicyDecision.REQUIRE_CONSENT
                result.consent_required = True
                result.reasoning.append(f"Consent required by rule: {rule.rule_name}")

            elif rule.action == RuleAction.DELAY:
                if result.final_decision not in (PolicyDecision.DENY, PolicyDecision.REQUIRE_CONSENT):
                    hours = rule.action_parameters.get("delay_hours") or self.default_delay_hours
                    result.final_decision = PolicyDecision.DELAY
                    result.delay_until = self.clock() + timedelta(hours=hours)
                    result.reasoning.append(f"Delayed by rule: {rule.rule_name}")

            elif rule.action == RuleAction.MODIFY:
                if result.final_decision == PolicyDecision.ALLOW:
                    result.final_decision = PolicyDecision.MODIFY
                    result.applied_modifications = copy.deepcopy(rule.action_parameters)
                    result.reasoning.append(f"Modified by rule: {rule.rule_name}")

            elif rule.action == RuleAction.ALLOW:
                if result.final_decision == PolicyDecision.ALLOW:
                    result.reasoning.append(f"Allowed by rule: {rule.rule_name}")

        fired = any(r.conditions_met for r in result.rule_results)
        if not fired and policy.user_preferences.consent_required_by_default:
            result.final_decision = PolicyDecision.REQUIRE_CONSENT
            result.consent_required = True
            result.reasoning.append("Default policy requires consent")

        return result

    def evaluate_rule(
        self,
        rule: ForgettingPolicyRule,
        evaluation: ForgettingEvaluation,
        memory_metadata: Mapping[str, Any],
    ) -> RuleEvaluationResult:
        """Evaluate all conditions of a rule and combine them with AND/OR."""
        condition_results = [
            self.evaluate_condition(c, evaluation, memory_metadata) for c in rule.conditions
        ]
        outcomes = [r.result for r in condition_results]
        if rule.condition_logic == ConditionLogic.AND:
            conditions_met = all(outcomes)
        else:
            conditions_met = any(outcomes)

        return RuleEvaluationResult(
            rule_id=rule.rule_id,
            rule_name=rule.rule_name,
            conditions_met=conditions_met,
            condition_results=condition_results,
            action_applied=conditions_met,
            priority=rule.priority,
        )

    def evaluate_condition(
        self,
        condition: ForgettingCondition,
        evaluation: ForgettingEvaluation,
        memory_metadata: Mapping[str, Any],
    ) -> ConditionEvaluationResult:
        """Resolve the actual value for a condition and apply its operator."""
        actual_value = resolve_actual_value(
            condition.condition_type, evaluation, memory_metadata, self.clock()
        )
        return ConditionEvaluationResult(
            condition_type=condition.condition_type,
            operator=condition.operator,
            expected_value=condition.value,
            actual_value=actual_value,
            result=compare(condition.operator, actual_value, condition.value),
            weight=condition.weight,
        )

    def get_effective_policy_decision(
        self, policy_results: List[PolicyEvaluationResult]
    ) -> PolicyEvaluationResult:
        """
        Resolve one decision across policies.

        The result with the strongest decision wins (earliest on ties). The
        returned copy carries the reasoning of every input result, in order.

        Raises:
            EmptyPolicyResultsError: No results were supplied
        """
        if not policy_results:
            raise EmptyPolicyResultsError("No policy results to evaluate")

        effective = policy_results[0]
        for result in policy_results[1:]:
            if result.final_decision.rank < effective.final_decision.rank:
                effective = result

        combined_reasoning = [line for r in policy_results for line in r.reasoning]
        effective = replace(effective, reasoning=combined_reasoning)

        logger.info(
            f"Effective policy decision: {effective.final_decision.value} "
            f"(policy={effective.policy_id}, policies_evaluated={len(policy_results)}, "
            f"consent_required={effective.consent_required})"
        )
        return effective
