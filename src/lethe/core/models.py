"""Core data structures for forgetting evaluation."""

from dataclasses import dataclass, field
from datetime import datetime
from enum import Enum
from typing import Any, Dict, List, Optional, Union

from lethe.core.constants import (
    CONTENT_SUMMARY_LENGTH,
    DEFAULT_MEMORY_IMPORTANCE,
    HIGH_REDUNDANCY,
    LOW_REDUNDANCY,
    REDUNDANT_RELATION_COUNT,
)


class MemoryKind(str, Enum):
    """Discriminant of the memory union."""
    EPISODIC = "episodic"      # Specific events/conversations
    SEMANTIC = "semantic"      # General knowledge/facts


class ForgettingAction(str, Enum):
    """Actions the engine can recommend for a memory."""
    FORGET = "forget"
    RETAIN = "retain"
    DEGRADE = "degrade"
    ARCHIVE = "archive"


@dataclass(frozen=True)
class EpisodicMemory:
    """A specific event, read-only for the engine."""

    id: str
    content: Any = ""
    timestamp: Optional[datetime] = None
    activation: Optional[float] = None
    relations: Optional[List[str]] = None
    emotional_tags: List[str] = field(default_factory=list)
    domain: Optional[str] = None
    context: Dict[str, Any] = field(default_factory=dict)

    @property
    def kind(self) -> MemoryKind:
        return MemoryKind.EPISODIC


@dataclass(frozen=True)
class SemanticMemory:
    """A general fact or concept, read-only for the engine."""

    id: str
    content: Any = ""
    importance: Optional[float] = None
    relations: Optional[List[str]] = None
    emotional_tags: List[str] = field(default_factory=list)
    domain: Optional[str] = None
    context: Dict[str, Any] = field(default_factory=dict)

    @property
    def kind(self) -> MemoryKind:
        return MemoryKind.SEMANTIC


Memory = Union[EpisodicMemory, SemanticMemory]


def _unsupported(memory: Any) -> TypeError:
    return TypeError(f"Unsupported memory type: {type(memory).__name__}")


def get_memory_id(memory: Memory) -> str:
    """Return the identity of a memory."""
    if isinstance(memory, (EpisodicMemory, SemanticMemory)):
        return memory.id
    raise _unsupported(memory)


def get_memory_type(memory: Memory) -> MemoryKind:
    """Return the discriminant of a memory."""
    if isinstance(memory, EpisodicMemory):
        return MemoryKind.EPISODIC
    if isinstance(memory, SemanticMemory):
        return MemoryKind.SEMANTIC
    raise _unsupported(memory)


def get_memory_importance(memory: Memory) -> float:
    """
    Return the importance-like scalar of a memory.

    Semantic memories carry `importance`, episodic memories carry
    `activation`. Either falls back to 0.5 when unset.
    """
    if isinstance(memory, SemanticMemory):
        value = memory.importance
    elif isinstance(memory, EpisodicMemory):
        value = memory.activation
    else:
        raise _unsupported(memory)
    return DEFAULT_MEMORY_IMPORTANCE if value is None else value


def get_relation_count(memory: Memory) -> Optional[int]:
    """Return the number of relations, or None if the memory exposes none."""
    if isinstance(memory, (EpisodicMemory, SemanticMemory)):
        return None if memory.relations is None else len(memory.relations)
    raise _unsupported(memory)


def get_memory_redundancy(memory: Memory) -> float:
    """Estimate how much of a memory survives elsewhere through its relations."""
    count = get_relation_count(memory) or 0
    return HIGH_REDUNDANCY if count > REDUNDANT_RELATION_COUNT else LOW_REDUNDANCY


def get_memory_timestamp(memory: Memory) -> Optional[datetime]:
    """Return the encoding time of an episodic memory (semantic memories have none)."""
    if isinstance(memory, EpisodicMemory):
        return memory.timestamp
    if isinstance(memory, SemanticMemory):
        return None
    raise _unsupported(memory)


def summarize_content(content: Any, length: int = CONTENT_SUMMARY_LENGTH) -> str:
    """Truncate stringified content, marking truncation with an ellipsis."""
    text = str(content)
    if len(text) > length:
        return text[:length] + "..."
    return text


@dataclass
class UserForgettingPreferences:
    """User preferences consulted when flagging consent."""

    consent_required: bool = False
    protected_categories: List[str] = field(default_factory=list)
    max_auto_forget_importance: float = 0.5
    retention_period_days: int = 365


@dataclass
class AccessPattern:
    """A single recorded access to a memory."""

    memory_id: str
    access_time: datetime
    access_type: str = "retrieval"  # retrieval, update, reference
    context_similarity: float = 0.0


@dataclass
class ForgettingContext:
    """Evaluation context. Everything but the user preferences is strategy-specific."""

    user_preferences: UserForgettingPreferences = field(
        default_factory=UserForgettingPreferences
    )
    current_time: Optional[datetime] = None
    memory_pressure: float = 0.0
    recent_access_patterns: List[AccessPattern] = field(default_factory=list)
    system_goals: List[str] = field(default_factory=list)


@dataclass
class ForgettingFactor:
    """A single contribution to a strategy score."""

    name: str
    value: float
    weight: float
    description: str = ""


@dataclass
class ForgettingScore:
    """Result of one strategy scoring one memory (higher = more forgettable)."""

    strategy_name: str
    score: float
    confidence: float
    reasoning: List[str] = field(default_factory=list)
    factors: List[ForgettingFactor] = field(default_factory=list)


@dataclass
class ForgettingRecommendation:
    """The engine's proposed action for a memory."""

    action: ForgettingAction
    confidence: float
    reasoning: str
    alternative_actions: List[str] = field(default_factory=list)


@dataclass
class ForgettingImpact:
    """Estimated cost of forgetting a memory."""

    retrieval_loss_probability: float = 0.0
    related_memories_affected: int = 0
    knowledge_gap_risk: float = 0.0
    recovery_difficulty: float = 0.5


@dataclass
class ForgettingEvaluation:
    """Complete evaluation of one memory."""

    memory_id: str
    memory_type: MemoryKind
    content_summary: str
    strategy_scores: List[ForgettingScore]
    combined_score: float
    recommendation: ForgettingRecommendation
    requires_user_consent: bool
    estimated_impact: ForgettingImpact

    def to_dict(self) -> Dict[str, Any]:
        """Convert to dictionary for JSON serialization."""
        return {
            "memory_id": self.memory_id,
            "memory_type": self.memory_type.value,
            "content_summary": self.content_summary,
            "strategy_scores": [
                {
                    "strategy_name": s.strategy_name,
                    "score": s.score,
                    "confidence": s.confidence,
                    "reasoning": list(s.reasoning),
                }
                for s in self.strategy_scores
            ],
            "combined_score": self.combined_score,
            "recommendation": {
                "action": self.recommendation.action.value,
                "confidence": self.recommendation.confidence,
                "reasoning": self.recommendation.reasoning,
                "alternative_actions": list(self.recommendation.alternative_actions),
            },
            "requires_user_consent": self.requires_user_consent,
            "estimated_impact": {
                "retrieval_loss_probability": self.estimated_impact.retrieval_loss_probability,
                "related_memories_affected": self.estimated_impact.related_memories_affected,
                "knowledge_gap_risk": self.estimated_impact.knowledge_gap_risk,
                "recovery_difficulty": self.estimated_impact.recovery_difficulty,
            },
        }


@dataclass
class ForgettingDecision:
    """A decision handed to the policy layer for authorization."""

    memory_id: str
    action: ForgettingAction
    confidence: float
    reasoning: str
    user_consent_required: bool = False
    user_consent_obtained: Optional[bool] = None
    execution_priority: int = 5  # 1-10, higher executes sooner

    @classmethod
    def from_evaluation(cls, evaluation: ForgettingEvaluation) -> "ForgettingDecision":
        """Take an evaluation's recommendation at face value."""
        # Map combined score onto 1-10
        priority = max(1, min(10, round(evaluation.combined_score * 10)))
        return cls(
            memory_id=evaluation.memory_id,
            action=evaluation.recommendation.action,
            confidence=evaluation.recommendation.confidence,
            reasoning=evaluation.recommendation.reasoning,
            user_consent_required=evaluation.requires_user_consent,
            execution_priority=priority,
        )
