"""Seed and preset forgetting policies.

Presets are ready-made policy bodies a user can pick instead of writing
rules. The default conservative policy is seeded into every policy manager
unless the caller supplies its own seeds.
"""

from dataclasses import dataclass
from typing import Any, Dict, List, Optional

from lethe.core.constants import DEFAULT_POLICY_ID, PROTECTED_CATEGORIES
from lethe.core.policy_models import ForgettingPolicy


@dataclass(frozen=True)
class PolicyPreset:
    """A named policy body with user-facing descriptions."""

    id: str
    name: str
    description: str
    user_friendly_description: str
    risk_level: str  # low, medium, high
    emoji: str
    policy: Dict[str, Any]

    def summary(self) -> Dict[str, str]:
        return {
            "id": self.id,
            "name": self.name,
            "description": self.description,
            "risk_level": self.risk_level,
            "emoji": self.emoji,
        }


def _rule(
    rule_id: str,
    rule_name: str,
    description: str,
    priority: int,
    conditions: List[Dict[str, Any]],
    action: str,
    condition_logic: str = "AND",
) -> Dict[str, Any]:
    return {
        "rule_id": rule_id,
        "rule_name": rule_name,
        "description": description,
        "priority": priority,
        "conditions": conditions,
        "condition_logic": condition_logic,
        "action": action,
    }


def _condition(condition_type: str, operator: str, value: Any) -> Dict[str, Any]:
    return {"condition_type": condition_type, "operator": operator, "value": value}


def _user_preferences(
    consent_required_by_default: bool,
    protected_categories: List[str],
    max_auto_forget_importance: float,
    retention_period_days: int,
    notify_before: bool,
    notification_delay_hours: float,
    notify_after: bool,
    notification_methods: List[str],
    privacy_level: str,
    secure_deletion: bool,
    audit_encryption: bool,
    data_retention_days: int,
) -> Dict[str, Any]:
    return {
        "consent_required_by_default": consent_required_by_default,
        "protected_categories": protected_categories,
        "max_auto_forget_importance": max_auto_forget_importance,
        "retention_period_days": retention_period_days,
        "notification_preferences": {
            "notify_before_forgetting": notify_before,
            "notification_delay_hours": notification_delay_hours,
            "notify_after_forgetting": notify_after,
            "notification_methods": notification_methods,
        },
        "privacy_preferences": {
            "default_privacy_level": privacy_level,
            "secure_deletion_required": secure_deletion,
            "audit_encryption_required": audit_encryption,
            "data_retention_days": data_retention_days,
        },
    }


def _execution_settings(
    max_concurrent_operations: int,
    batch_size: int,
    execution_delay_ms: int,
    retry_attempts: int,
    rollback_enabled: bool,
    backup_before_deletion: bool,
) -> Dict[str, Any]:
    return {
        "max_concurrent_operations": max_concurrent_operations,
        "batch_size": batch_size,
        "execution_delay_ms": execution_delay_ms,
        "retry_attempts": retry_attempts,
        "rollback_enabled": rollback_enabled,
        "backup_before_deletion": backup_before_deletion,
    }


def default_conservative_policy() -> ForgettingPolicy:
    """The policy seeded into a manager by default."""
    return ForgettingPolicy.model_validate(
        {
            "policy_id": DEFAULT_POLICY_ID,
            "policy_name": "Default Conservative Policy",
            "description": "Conservative forgetting policy that requires consent for most operations",
            "active": True,
            "rules": [
                _rule(
                    "high_importance_protect",
                    "Protect High Importance Memories",
                    "Deny forgetting for memories with importance > 0.7",
                    100,
                    [_condition("importance_threshold", "greater_than", 0.7)],
                    "deny",
                ),
                _rule(
                    "recent_memories_consent",
                    "Require Consent for Recent Memories",
                    "Require user consent for memories less than 7 days old",
                    90,
                    [_condition("age_days", "less_than", 7)],
                    "require_consent",
                ),
                _rule(
                    "protected_categories",
                    "Protect Sensitive Categories",
                    "Require consent for protected content categories",
                    95,
                    [_condition("content_category", "in", list(PROTECTED_CATEGORIES))],
                    "require_consent",
                ),
            ],
            "user_preferences": _user_preferences(
                True, list(PROTECTED_CATEGORIES), 0.3, 365,
                True, 24, True, ["in_app", "log"],
                "private", True, True, 2555,
            ),
            "execution_settings": _execution_settings(5, 10, 1000, 3, True, True),
        }
    )


PRESETS: List[PolicyPreset] = [
    PolicyPreset(
        id="conservative",
        name="Conservative",
        description="Keep almost everything, ask permission for any changes",
        user_friendly_description=(
            "Maximum safety - keeps all important memories, asks permission for "
            "everything. Best for important work or personal data."
        ),
        risk_level="low",
        emoji="🛡️",
        policy={
            "policy_name": "Conservative Memory Management",
            "description": "Conservative policy that preserves memories and requires consent",
            "active": True,
            "rules": [
                _rule(
                    "protect_all_important",
                    "Protect All Important Memories",
                    "Never forget memories with importance > 0.5",
                    100,
                    [_condition("importance_threshold", "greater_than", 0.5)],
                    "deny",
                ),
                _rule(
                    "consent_for_all",
                    "Require Consent for Everything",
                    "Ask permission before forgetting any memory",
                    90,
                    [_condition("memory_type", "in", ["episodic", "semantic"])],
                    "require_consent",
                ),
            ],
            "user_preferences": _user_preferences(
                True, PROTECTED_CATEGORIES + ["work"], 0.1, 1095,
                True, 48, True, ["in_app", "log"],
                "private", True, True, 2555,
            ),
            "execution_settings": _execution_settings(1, 5, 5000, 3, True, True),
        },
    ),
    PolicyPreset(
        id="balanced",
        name="Balanced",
        description="Smart cleanup with safety checks",
        user_friendly_description=(
            "Recommended for most users - automatically cleans up unimportant "
            "memories while protecting valuable ones."
        ),
        risk_level="low",
        emoji="⚖️",
        policy={
            "policy_name": "Balanced Memory Management",
            "description": "Balanced policy with smart cleanup and safety checks",
            "active": True,
            "rules": [
                _rule(
                    "protect_high_importance",
                    "Protect High Importance Memories",
                    "Never forget memories with importance > 0.7",
                    100,
                    [_condition("importance_threshold", "greater_than", 0.7)],
                    "deny",
                ),
                _rule(
                    "auto_forget_low_importance",
                    "Auto-forget Low Importance",
                    "Automatically forget memories with importance < 0.2 after 30 days",
                    80,
                    [
                        _condition("importance_threshold", "less_than", 0.2),
                        _condition("age_days", "greater_than", 30),
                    ],
                    "allow",
                ),
                _rule(
                    "consent_for_recent",
                    "Protect Recent Memories",
                    "Require consent for memories less than 7 days old",
                    90,
                    [_condition("age_days", "less_than", 7)],
                    "require_consent",
                ),
            ],
            "user_preferences": _user_preferences(
                False, list(PROTECTED_CATEGORIES), 0.3, 365,
                True, 24, False, ["in_app"],
                "private", True, False, 1095,
            ),
            "execution_settings": _execution_settings(3, 10, 2000, 2, True, True),
        },
    ),
    PolicyPreset(
        id="aggressive",
        name="Aggressive",
        description="Maximum cleanup for performance",
        user_friendly_description=(
            "Performance focused - aggressively removes old and unimportant "
            "memories. Use with caution."
        ),
        risk_level="medium",
        emoji="🚀",
        policy={
            "policy_name": "Aggressive Memory Optimization",
            "description": "Aggressive policy focused on performance optimization",
            "active": True,
            "rules": [
                _rule(
                    "protect_critical_only",
                    "Protect Only Critical Memories",
                    "Only protect memories with importance > 0.8",
                    100,
                    [_condition("importance_threshold", "greater_than", 0.8)],
                    "deny",
                ),
                _rule(
                    "auto_forget_old",
                    "Auto-forget Old Memories",
                    "Automatically forget memories older than 60 days with importance < 0.5",
                    80,
                    [
                        _condition("age_days", "greater_than", 60),
                        _condition("importance_threshold", "less_than", 0.5),
                    ],
                    "allow",
                ),
                _rule(
                    "auto_forget_low_access",
                    "Auto-forget Rarely Accessed",
                    "Forget memories with low access frequency",
                    70,
                    [
                        _condition("access_frequency", "less_than", 0.1),
                        _condition("age_days", "greater_than", 14),
                    ],
                    "allow",
                ),
            ],
            "user_preferences": _user_preferences(
                False, ["confidential", "medical", "financial"], 0.5, 180,
                False, 1, False, ["log"],
                "public", False, False, 365,
            ),
            "execution_settings": _execution_settings(10, 50, 500, 1, False, False),
        },
    ),
    PolicyPreset(
        id="minimal",
        name="Minimal",
        description="Keep only essential memories",
        user_friendly_description=(
            "Ultra-focused - keeps only the most important memories. Ideal when "
            "memory is very limited."
        ),
        risk_level="high",
        emoji="🎯",
        policy={
            "policy_name": "Minimal Memory Footprint",
            "description": "Minimal policy keeping only essential memories",
            "active": True,
            "rules": [
                _rule(
                    "keep_only_critical",
                    "Keep Only Critical Memories",
                    "Only keep memories with importance > 0.9",
                    100,
                    [_condition("importance_threshold", "less_than", 0.9)],
                    "allow",
                ),
            ],
            "user_preferences": _user_preferences(
                False, ["medical", "financial"], 0.8, 30,
                False, 0, False, [],
                "public", False, False, 90,
            ),
            "execution_settings": _execution_settings(20, 100, 100, 1, False, False),
        },
    ),
    PolicyPreset(
        id="privacy_focused",
        name="Privacy Focused",
        description="Enhanced privacy and security controls",
        user_friendly_description=(
            "Privacy first - secure deletion and consent for everything. For "
            "sensitive or confidential information."
        ),
        risk_level="low",
        emoji="🔒",
        policy={
            "policy_name": "Privacy-Focused Memory Management",
            "description": "Privacy-focused policy with enhanced security controls",
            "active": True,
            "rules": [
                _rule(
                    "protect_private_data",
                    "Protect All Private Data",
                    "Never forget private or confidential memories",
                    100,
                    [_condition("privacy_level", "in", ["private", "confidential", "restricted"])],
                    "deny",
                ),
                _rule(
                    "secure_delete_only",
                    "Require Secure Deletion",
                    "All deletions must use secure deletion methods",
                    95,
                    [_condition("memory_type", "in", ["episodic", "semantic"])],
                    "require_consent",
                ),
            ],
            "user_preferences": _user_preferences(
                True, PROTECTED_CATEGORIES + ["work", "private"], 0.0, 2555,
                True, 72, True, ["in_app", "log"],
                "confidential", True, True, 3650,
            ),
            "execution_settings": _execution_settings(1, 1, 10000, 5, True, True),
        },
    ),
]


def get_available_presets() -> List[PolicyPreset]:
    """Return every preset."""
    return list(PRESETS)


def get_preset_by_id(preset_id: str) -> Optional[PolicyPreset]:
    """Return the preset with this id, or None."""
    for preset in PRESETS:
        if preset.id == preset_id:
            return preset
    return None


def get_preset_summary() -> List[Dict[str, str]]:
    """Short descriptions of every preset, for menus."""
    return [preset.summary() for preset in PRESETS]
