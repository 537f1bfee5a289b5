"""Forgetting decision constants - shared by the engine, policies and settings.

Settings default to these values; tests and callers should import from here
rather than repeating literals.
"""

# Recommendation thresholds
RECOMMENDATION_THRESHOLD = 0.6
"""Minimum combined score before forgetting-style actions are recommended."""

HIGH_CONFIDENCE_THRESHOLD = 0.8
"""Combined score at which `forget` is recommended outright."""

ARCHIVE_THRESHOLD = 0.3
"""Combined score at which `archive` is preferred over `retain`."""

HIGH_IMPORTANCE_THRESHOLD = 0.8
"""Importance above which a `forget` recommendation is downgraded."""

CONSENSUS_HIGH_SCORE = 0.7
CONSENSUS_LOW_SCORE = 0.3
CONSENSUS_MIN_STRATEGIES = 2

MIN_RECOMMENDATION_CONFIDENCE = 0.1

# Strategy weights
DEFAULT_STRATEGY_WEIGHTS = {
    "temporal_decay": 0.3,
    "interference_based": 0.3,
    "importance_based": 0.4,
}
"""Weights for the built-in strategies; unnamed strategies weigh 1.0."""

TEMPORAL_DECAY_STRATEGY = "temporal_decay"

# Memory defaults
DEFAULT_MEMORY_IMPORTANCE = 0.5
HIGH_REDUNDANCY = 0.7
LOW_REDUNDANCY = 0.3
REDUNDANT_RELATION_COUNT = 3

CONTENT_SUMMARY_LENGTH = 100
"""Characters of memory content kept in an evaluation summary."""

# Policies
DEFAULT_POLICY_ID = "default_conservative"
"""Seeded policy that can never be deleted."""

DEFAULT_DELAY_HOURS = 24
"""Delay applied by a `delay` rule without a `delay_hours` parameter."""

DENY_CONFIDENCE_CAP = 0.9

PROTECTED_CATEGORIES = ["personal", "confidential", "medical", "financial"]
