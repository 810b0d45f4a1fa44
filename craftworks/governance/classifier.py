# craftworks/governance/classifier.py
"""
Action classification.

Maps agent actions to risk tiers T1-T5. Tier Tn requires dial level n.
Actions missing from the catalog take the unclassified branch and resolve
to T3 (Modify) rather than failing.
"""

from typing import Any, Dict, List, Union

from ..errors import InvalidArgument
from .models import (
    ActionTier,
    Classification,
    ClassificationOrigin,
    TierDetails,
    TierPermission,
    is_valid_dial_level,
)


ACTION_TIERS: Dict[ActionTier, TierDetails] = {
    ActionTier.T1: TierDetails(
        level=1,
        name="Read-Only",
        description="View files, read comments, inspect repository state",
        required_dial_level=1,
    ),
    ActionTier.T2: TierDetails(
        level=2,
        name="Informational",
        description="Post comments, create discussions, add reactions",
        required_dial_level=2,
    ),
    ActionTier.T3: TierDetails(
        level=3,
        name="Modify",
        description="Edit files, create branches, update issues/PRs",
        required_dial_level=3,
    ),
    ActionTier.T4: TierDetails(
        level=4,
        name="Commit",
        description="Push commits, create PRs, request reviews",
        required_dial_level=4,
    ),
    ActionTier.T5: TierDetails(
        level=5,
        name="Merge/Deploy",
        description="Merge PRs, deploy code, delete branches",
        required_dial_level=5,
    ),
}

UNCLASSIFIED_TIER = ActionTier.T3


# ============================================================
# Action catalog. Keys are lowercase action identifiers.
# ============================================================
ACTION_CATALOG: Dict[str, ActionTier] = {
    # --- T1: read-only ---
    "view_file": ActionTier.T1,
    "read_comment": ActionTier.T1,
    "list_files": ActionTier.T1,
    "get_pr": ActionTier.T1,
    "get_issue": ActionTier.T1,
    "get_commit": ActionTier.T1,
    "list_branches": ActionTier.T1,
    "list_commits": ActionTier.T1,
    "view_logs": ActionTier.T1,
    "get_status": ActionTier.T1,
    "inspect_config": ActionTier.T1,
    "read_content": ActionTier.T1,
    "view_diff": ActionTier.T1,
    "get_review": ActionTier.T1,
    "list_reviews": ActionTier.T1,

    # --- T2: informational ---
    "post_comment": ActionTier.T2,
    "create_discussion": ActionTier.T2,
    "add_reaction": ActionTier.T2,
    "update_comment": ActionTier.T2,
    "post_review_comment": ActionTier.T2,
    "suggest_change": ActionTier.T2,
    "add_label": ActionTier.T2,
    "remove_label": ActionTier.T2,
    "ci_lint_fix": ActionTier.T2,
    "ci_issue_file": ActionTier.T2,

    # --- T3: modify ---
    "edit_file": ActionTier.T3,
    "create_file": ActionTier.T3,
    "delete_file": ActionTier.T3,
    "create_branch": ActionTier.T3,
    "update_issue": ActionTier.T3,
    "update_pr": ActionTier.T3,
    "update_title": ActionTier.T3,
    "update_description": ActionTier.T3,
    "create_issue": ActionTier.T3,
    "close_issue": ActionTier.T3,
    "reopen_issue": ActionTier.T3,
    "assign_user": ActionTier.T3,
    "request_changes": ActionTier.T3,
    "ci_type_fix": ActionTier.T3,
    "ci_test_fix": ActionTier.T3,
    "ci_build_fix": ActionTier.T3,

    # --- T4: commit ---
    "push_commit": ActionTier.T4,
    "create_pr": ActionTier.T4,
    "request_review": ActionTier.T4,
    "approve_pr": ActionTier.T4,
    "update_pr_branch": ActionTier.T4,
    "force_push": ActionTier.T4,
    "create_tag": ActionTier.T4,
    "create_release": ActionTier.T4,
    "ci_security_escalate": ActionTier.T4,

    # --- T5: merge/deploy ---
    "merge_pr": ActionTier.T5,
    "delete_branch": ActionTier.T5,
    "deploy": ActionTier.T5,
    "publish_release": ActionTier.T5,
    "revert_commit": ActionTier.T5,
    "cherry_pick": ActionTier.T5,
    "force_merge": ActionTier.T5,
    "emergency_rollback": ActionTier.T5,
}


def _normalize(action_type: Any) -> str:
    if not isinstance(action_type, str) or not action_type.strip():
        raise InvalidArgument("Action type must be a non-empty string")
    return action_type.strip().lower()


def _coerce_tier(tier: Union[ActionTier, str]) -> ActionTier:
    if isinstance(tier, ActionTier):
        return tier
    try:
        return ActionTier(str(tier).strip().upper())
    except ValueError:
        raise InvalidArgument(f"Invalid tier: {tier}. Must be one of T1, T2, T3, T4, T5")


class ActionClassifier:
    """
    Classifies agent actions against the static catalog.

    The catalog is loaded once and never mutated at runtime.
    """

    def __init__(self, catalog: Dict[str, ActionTier] = ACTION_CATALOG):
        self._catalog = dict(catalog)

    def classify_action(self, action_type: str) -> Classification:
        """
        Classify an action into its tier.

        Raises:
            InvalidArgument: If action_type is empty or not a string
        """
        normalized = _normalize(action_type)
        tier = self._catalog.get(normalized)

        if tier is None:
            return Classification(
                action_type=normalized,
                tier=UNCLASSIFIED_TIER,
                tier_details=ACTION_TIERS[UNCLASSIFIED_TIER],
                origin=ClassificationOrigin.UNCLASSIFIED,
            )

        return Classification(
            action_type=normalized,
            tier=tier,
            tier_details=ACTION_TIERS[tier],
            origin=ClassificationOrigin.CATALOG,
        )

    def get_required_dial_level(self, action_type: str) -> int:
        """Minimum dial level required for an action."""
        return self.classify_action(action_type).tier_details.required_dial_level

    def is_action_permitted(self, dial_level: int, action_type: str) -> TierPermission:
        """
        Tier-only permission check, without repository or environment.

        Raises:
            InvalidArgument: If dial_level is not an integer in [1, 5]
        """
        if not is_valid_dial_level(dial_level):
            raise InvalidArgument("Dial level must be an integer between 1 and 5")

        classification = self.classify_action(action_type)
        required_level = classification.tier_details.required_dial_level

        return TierPermission(
            permitted=dial_level >= required_level,
            dial_level=dial_level,
            required_level=required_level,
            tier=classification.tier,
            tier_details=classification.tier_details,
            action_type=classification.action_type,
        )

    def get_actions_by_tier(self, tier: Union[ActionTier, str]) -> List[str]:
        """All catalogued actions in a tier, in catalog order."""
        wanted = _coerce_tier(tier)
        return [action for action, t in self._catalog.items() if t == wanted]

    def get_all_actions(self) -> Dict[str, str]:
        """The whole catalog as action -> tier name."""
        return {action: tier.value for action, tier in self._catalog.items()}

    def get_tier_summary(self) -> Dict[str, Dict[str, Any]]:
        """Tier details with action counts and up to five sample actions."""
        summary = {}
        for tier, details in ACTION_TIERS.items():
            actions = self.get_actions_by_tier(tier)
            entry = details.to_dict()
            entry["action_count"] = len(actions)
            entry["sample_actions"] = actions[:5]
            summary[tier.value] = entry
        return summary

    def is_valid_action_type(self, action_type: Any) -> bool:
        """True if the action is in the catalog."""
        if not isinstance(action_type, str) or not action_type.strip():
            return False
        return action_type.strip().lower() in self._catalog


# Module-level classifier for pure-function consumers
default_classifier = ActionClassifier()


def classify_action(action_type: str) -> Classification:
    """Convenience function to classify an action."""
    return default_classifier.classify_action(action_type)


def get_required_dial_level(action_type: str) -> int:
    """Convenience function for the minimum dial level of an action."""
    return default_classifier.get_required_dial_level(action_type)
