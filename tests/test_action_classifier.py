# tests/test_action_classifier.py
"""
Test action classification.

Verifies tier assignment, the unclassified default and catalog summaries.
"""

import pytest

from craftworks.errors import InvalidArgument
from craftworks.governance import (
    ACTION_CATALOG,
    ACTION_TIERS,
    ActionClassifier,
    ActionTier,
    ClassificationOrigin,
    classify_action,
)


@pytest.fixture
def classifier() -> ActionClassifier:
    return ActionClassifier()


class TestClassifyAction:
    """Tests for classify_action."""

    @pytest.mark.parametrize("action,tier", [
        ("view_file", ActionTier.T1),
        ("post_comment", ActionTier.T2),
        ("edit_file", ActionTier.T3),
        ("push_commit", ActionTier.T4),
        ("merge_pr", ActionTier.T5),
        ("deploy", ActionTier.T5),
    ])
    def test_catalog_actions(self, classifier, action, tier):
        result = classifier.classify_action(action)

        assert result.tier == tier
        assert result.origin == ClassificationOrigin.CATALOG
        assert result.is_known_action

    def test_unknown_action_defaults_to_modify(self, classifier):
        """Unknown actions are neither rejected nor treated as read-only."""
        result = classifier.classify_action("summon_kraken")

        assert result.tier == ActionTier.T3
        assert result.tier_details.name == "Modify"
        assert result.origin == ClassificationOrigin.UNCLASSIFIED
        assert not result.is_known_action

    def test_case_and_whitespace_insensitive(self, classifier):
        result = classifier.classify_action("  Merge_PR ")

        assert result.action_type == "merge_pr"
        assert result.tier == ActionTier.T5

    @pytest.mark.parametrize("bad", ["", "   ", None, 42])
    def test_invalid_action_type(self, classifier, bad):
        with pytest.raises(InvalidArgument):
            classifier.classify_action(bad)

    def test_module_function(self):
        assert classify_action("approve_pr").tier == ActionTier.T4

    def test_to_dict(self, classifier):
        data = classifier.classify_action("view_diff").to_dict()

        assert data["tier"] == "T1"
        assert data["tier_details"]["name"] == "Read-Only"
        assert data["is_known_action"] is True


class TestRequiredLevels:
    """Tests for tier-to-level mapping."""

    def test_tier_n_requires_level_n(self, classifier):
        for action, tier in ACTION_CATALOG.items():
            assert classifier.get_required_dial_level(action) == tier.level

    def test_tier_details_consistent(self):
        for tier, details in ACTION_TIERS.items():
            assert details.level == tier.level
            assert details.required_dial_level == tier.level

    def test_unknown_requires_three(self, classifier):
        assert classifier.get_required_dial_level("something_new") == 3


class TestTierPermission:
    """Tests for the tier-only permission check."""

    def test_permitted_at_exact_level(self, classifier):
        result = classifier.is_action_permitted(4, "create_pr")

        assert result.permitted
        assert result.required_level == 4

    def test_blocked_below_level(self, classifier):
        result = classifier.is_action_permitted(4, "merge_pr")

        assert not result.permitted
        assert result.tier == ActionTier.T5

    def test_monotonic_in_level(self, classifier):
        """Raising the level never revokes a permission."""
        for action in ACTION_CATALOG:
            permitted = [classifier.is_action_permitted(level, action).permitted for level in range(1, 6)]
            assert permitted == sorted(permitted)

    @pytest.mark.parametrize("level", [0, 6, 2.5, "3", True, None])
    def test_invalid_level(self, classifier, level):
        with pytest.raises(InvalidArgument):
            classifier.is_action_permitted(level, "view_file")


class TestCatalogQueries:
    """Tests for catalog listing and summaries."""

    def test_actions_by_tier(self, classifier):
        t5 = classifier.get_actions_by_tier("T5")

        assert "merge_pr" in t5
        assert "deploy" in t5
        assert all(ACTION_CATALOG[a] == ActionTier.T5 for a in t5)

    def test_actions_by_tier_enum(self, classifier):
        assert classifier.get_actions_by_tier(ActionTier.T1) == classifier.get_actions_by_tier("T1")

    def test_unknown_tier(self, classifier):
        with pytest.raises(InvalidArgument):
            classifier.get_actions_by_tier("T9")

    def test_all_actions(self, classifier):
        actions = classifier.get_all_actions()

        assert len(actions) == len(ACTION_CATALOG)
        assert actions["view_file"] == "T1"
        assert actions["merge_pr"] == "T5"

    def test_tier_summary(self, classifier):
        summary = classifier.get_tier_summary()

        assert list(summary) == ["T1", "T2", "T3", "T4", "T5"]
        assert sum(entry["action_count"] for entry in summary.values()) == len(ACTION_CATALOG)
        for entry in summary.values():
            assert 0 < len(entry["sample_actions"]) <= 5

    def test_is_valid_action_type(self, classifier):
        assert classifier.is_valid_action_type("merge_pr")
        assert classifier.is_valid_action_type("MERGE_PR")
        assert not classifier.is_valid_action_type("summon_kraken")
        assert not classifier.is_valid_action_type("")
        assert not classifier.is_valid_action_type(None)
