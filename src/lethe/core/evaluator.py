"""Multi-strategy forgetting evaluation."""

import asyncio
import inspect
import time
from datetime import datetime
from typing import Awaitable, Callable, Dict, List, Optional, Protocol, Union, runtime_checkable

from loguru import logger

from lethe.config.settings import EvaluationSettings
from lethe.core.conditions import SECONDS_PER_DAY, to_datetime
from lethe.core.constants import (
    ARCHIVE_THRESHOLD,
    CONSENSUS_HIGH_SCORE,
    CONSENSUS_LOW_SCORE,
    CONSENSUS_MIN_STRATEGIES,
    HIGH_IMPORTANCE_THRESHOLD,
    MIN_RECOMMENDATION_CONFIDENCE,
    TEMPORAL_DECAY_STRATEGY,
)
from lethe.core.models import (
    ForgettingAction,
    ForgettingContext,
    ForgettingEvaluation,
    ForgettingImpact,
    ForgettingRecommendation,
    ForgettingScore,
    Memory,
    get_memory_id,
    get_memory_importance,
    get_memory_redundancy,
    get_memory_timestamp,
    get_memory_type,
    get_relation_count,
    summarize_content,
)


@runtime_checkable
class ForgettingStrategy(Protocol):
    """A pluggable heuristic scoring one memory's forgettability."""

    name: str

    def evaluate_for_forgetting(
        self, memory: Memory, context: ForgettingContext
    ) -> Union[ForgettingScore, Awaitable[ForgettingScore]]:
        ...


RelatedMemoryEstimator = Callable[[Memory], int]


def no_related_memories(memory: Memory) -> int:
    """Default estimator for memories without a relations list."""
    return 0


def clamp(value: float, low: float = 0.0, high: float = 1.0) -> float:
    return max(low, min(high, value))


def _move_to_front(actions: List[str], action: ForgettingAction) -> List[str]:
    return [action.value] + [a for a in actions if a != action.value]


class ForgettingEvaluationEngine:
    """
    Scores memories with every registered strategy and turns the combined
    score into a recommendation, an impact estimate and a consent flag.

    Memories are evaluated concurrently (bounded by `max_concurrency`); a
    failing strategy only drops its own score.
    """

    def __init__(
        self,
        settings: Optional[EvaluationSettings] = None,
        related_memory_estimator: RelatedMemoryEstimator = no_related_memories,
        clock: Callable[[], datetime] = datetime.now,
    ):
        """
        Initialize the engine.

        Args:
            settings: Evaluation settings (uses defaults if None)
            related_memory_estimator: Counts related memories for memories that
                carry context but no relations list
            clock: Source of "now" when the context has no current_time
        """
        self.settings = settings or EvaluationSettings()
        self.related_memory_estimator = related_memory_estimator
        self.clock = clock
        self._strategies: Dict[str, ForgettingStrategy] = {}

    # -- registry ---------------------------------------------------------

    def add_strategy(self, strategy: ForgettingStrategy) -> None:
        """Register a strategy; an existing strategy with the same name is replaced.

        Built-in strategy kinds switched off in the settings are skipped.
        """
        if not self.settings.is_strategy_enabled(strategy.name):
            logger.info(f"Skipping disabled forgetting strategy: {strategy.name}")
            return
        if strategy.name in self._strategies:
            logger.debug(f"Replacing forgetting strategy: {strategy.name}")
        self._strategies[strategy.name] = strategy
        logger.info(f"Registered forgetting strategy: {strategy.name}")

    def remove_strategy(self, name: str) -> None:
        """Unregister a strategy by name (no-op if unknown)."""
        if self._strategies.pop(name, None) is not None:
            logger.info(f"Removed forgetting strategy: {name}")

    def get_strategies(self) -> List[ForgettingStrategy]:
        """Return a snapshot of the registered strategies."""
        return list(self._strategies.values())

    # -- evaluation -------------------------------------------------------

    async def evaluate_memories(
        self, memories: List[Memory], context: ForgettingContext
    ) -> List[ForgettingEvaluation]:
        """
        Evaluate a batch of memories.

        Args:
            memories: Memories to evaluate (not mutated)
            context: Forgetting context shared by all evaluations

        Returns:
            One evaluation per memory, sorted by combined score (descending);
            equal scores keep input order
        """
        start_time = time.time()
        strategies = self.get_strategies()
        semaphore = asyncio.Semaphore(self.settings.max_concurrency)

        async def bounded(memory: Memory) -> ForgettingEvaluation:
            async with semaphore:
                return await self.evaluate_memory(memory, context, strategies)

        evaluations = await asyncio.gather(*(bounded(m) for m in memories))

        # sorted() is stable, so ties keep input order
        ranked = sorted(evaluations, key=lambda e: e.combined_score, reverse=True)

        logger.info(
            f"Evaluated {len(ranked)} memories with {len(strategies)} strategies "
            f"in {time.time() - start_time:.2f}s"
        )
        return ranked

    async def evaluate_memory(
        self,
        memory: Memory,
        context: ForgettingContext,
        strategies: Optional[List[ForgettingStrategy]] = None,
    ) -> ForgettingEvaluation:
        """Evaluate a single memory against the given (or registered) strategies."""
        if strategies is None:
            strategies = self.get_strategies()

        memory_id = get_memory_id(memory)
        results = await asyncio.gather(
            *(self._run_strategy(s, memory, context) for s in strategies)
        )
        scores = [score for score in results if score is not None]

        combined_score = self.combine_scores(scores)
        importance = get_memory_importance(memory)
        recommendation = self.recommend(combined_score, importance, scores)
        impact = self.assess_impact(memory, scores, importance, context)
        requires_consent = self.requires_consent(memory, combined_score, importance, context)

        logger.debug(
            f"Memory {memory_id}: combined={combined_score:.3f} "
            f"action={recommendation.action.value} consent={requires_consent} "
            f"({len(scores)}/{len(strategies)} strategies)"
        )

        return ForgettingEvaluation(
            memory_id=memory_id,
            memory_type=get_memory_type(memory),
            content_summary=summarize_content(memory.content),
            strategy_scores=scores,
            combined_score=combined_score,
            recommendation=recommendation,
            requires_user_consent=requires_consent,
            estimated_impact=impact,
        )

    async def _run_strategy(
        self,
        strategy: ForgettingStrategy,
        memory: Memory,
        context: ForgettingContext,
    ) -> Optional[ForgettingScore]:
        """Invoke one strategy; failures are logged and yield None."""
        try:
            result = strategy.evaluate_for_forgetting(memory, context)
            if inspect.isawaitable(result):
                result = await asyncio.wait_for(
                    result, timeout=self.settings.strategy_timeout_seconds
                )
            return result
        except asyncio.TimeoutError:
            logger.warning(
                f"Strategy {strategy.name} timed out on memory {get_memory_id(memory)} "
                f"after {self.settings.strategy_timeout_seconds}s"
            )
        except Exception as e:
            logger.warning(
                f"Strategy {strategy.name} failed on memory {get_memory_id(memory)}: {e}"
            )
        return None

    def combine_scores(self, scores: List[ForgettingScore]) -> float:
        """
        Confidence- and weight-normalized mean of strategy scores.

        combined = sum(score * confidence * weight) / sum(confidence * weight)

        Returns 0.0 when there is nothing to combine.
        """
        weights = self.settings.strategy_weights
        numerator = 0.0
        denominator = 0.0
        for s in scores:
            weight = weights.get(s.strategy_name, 1.0)
            numerator += s.score * s.confidence * weight
            denominator += s.confidence * weight

        if denominator == 0:
            return 0.0
        return clamp(numerator / denominator)

    def recommend(
        self,
        combined_score: float,
        importance: float,
        scores: List[ForgettingScore],
    ) -> ForgettingRecommendation:
        """
        Derive a recommendation from the combined score.

        Decision table:
        - score >= recommendation_threshold: forget (>= high confidence
          threshold) or degrade
        - score >= 0.3: archive
        - otherwise: retain

        Then a high-importance memory is never forgotten outright, and strong
        agreement between strategies adjusts the alternatives or vetoes forget.
        """
        settings = self.settings

        if combined_score >= settings.recommendation_threshold:
            if combined_score >= settings.high_confidence_threshold:
                action = ForgettingAction.FORGET
                confidence = combined_score
                reasoning = f"High forgetting score ({combined_score:.2f}) across strategies"
                alternatives = [ForgettingAction.DEGRADE.value, ForgettingAction.ARCHIVE.value]
            else:
                action = ForgettingAction.DEGRADE
                confidence = combined_score * 0.8
                reasoning = (
                    f"Moderate forgetting score ({combined_score:.2f}); "
                    "gradual degradation preferred"
                )
                alternatives = [ForgettingAction.ARCHIVE.value, ForgettingAction.FORGET.value]
        elif combined_score >= ARCHIVE_THRESHOLD:
            action = ForgettingAction.ARCHIVE
            confidence = 1 - combined_score
            reasoning = f"Low-moderate forgetting score ({combined_score:.2f}); archive for later"
            alternatives = [ForgettingAction.RETAIN.value, ForgettingAction.DEGRADE.value]
        else:
            action = ForgettingAction.RETAIN
            confidence = 1 - combined_score
            reasoning = f"Low forgetting score ({combined_score:.2f}); memory still useful"
            alternatives = [ForgettingAction.ARCHIVE.value]

        if importance > HIGH_IMPORTANCE_THRESHOLD and action == ForgettingAction.FORGET:
            action = ForgettingAction.DEGRADE
            reasoning += f"; downgraded to degrade due to high importance ({importance:.2f})"
            alternatives = [ForgettingAction.ARCHIVE.value, ForgettingAction.FORGET.value]

        high_votes = sum(1 for s in scores if s.score > CONSENSUS_HIGH_SCORE)
        low_votes = sum(1 for s in scores if s.score < CONSENSUS_LOW_SCORE)

        if high_votes >= CONSENSUS_MIN_STRATEGIES and action != ForgettingAction.FORGET:
            alternatives = _move_to_front(alternatives, ForgettingAction.FORGET)

        if low_votes >= CONSENSUS_MIN_STRATEGIES and action == ForgettingAction.FORGET:
            action = ForgettingAction.RETAIN
            reasoning += (
                f"; retained because {low_votes} strategies disagree "
                "with forgetting (scores below 0.3)"
            )
            alternatives = [ForgettingAction.DEGRADE.value, ForgettingAction.ARCHIVE.value]

        return ForgettingRecommendation(
            action=action,
            confidence=clamp(confidence, MIN_RECOMMENDATION_CONFIDENCE, 1.0),
            reasoning=reasoning,
            alternative_actions=alternatives,
        )

    def assess_impact(
        self,
        memory: Memory,
        scores: List[ForgettingScore],
        importance: float,
        context: ForgettingContext,
    ) -> ForgettingImpact:
        """Estimate what forgetting this memory would cost."""
        average_score = sum(s.score for s in scores) / len(scores) if scores else 0.0
        relation_count = get_relation_count(memory)

        if relation_count is not None:
            related = relation_count
        elif memory.context:
            related = max(0, int(self.related_memory_estimator(memory)))
        else:
            related = 0

        redundancy = get_memory_redundancy(memory)

        recovery = 0.5
        timestamp = get_memory_timestamp(memory)
        if timestamp is not None:
            now = context.current_time or self.clock()
            age_days = (now - to_datetime(timestamp, now)).total_seconds() / SECONDS_PER_DAY
            recovery += min(age_days / 365, 0.3)
        if relation_count:
            recovery -= min(relation_count / 10, 0.2)
        for s in scores:
            if s.strategy_name == TEMPORAL_DECAY_STRATEGY:
                recovery += s.score * 0.2
                break

        return ForgettingImpact(
            retrieval_loss_probability=average_score * (1 - importance),
            related_memories_affected=related,
            knowledge_gap_risk=importance * (1 - redundancy),
            recovery_difficulty=clamp(recovery, 0.1, 1.0),
        )

    def requires_consent(
        self,
        memory: Memory,
        combined_score: float,
        importance: float,
        context: ForgettingContext,
    ) -> bool:
        """Whether acting on this memory needs explicit user consent."""
        preferences = context.user_preferences
        protected = set(preferences.protected_categories)

        if preferences.consent_required:
            return True
        if importance > preferences.max_auto_forget_importance:
            return True
        if memory.domain is not None and memory.domain in protected:
            return True
        if protected.intersection(memory.emotional_tags):
            return True
        return combined_score > self.settings.high_confidence_threshold
