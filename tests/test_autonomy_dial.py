# tests/test_autonomy_dial.py
"""
Test the autonomy dial.

Verifies per-repository levels, environment caps and the permit/deny
reasons returned to callers.
"""

import pytest

from craftworks.errors import InvalidArgument
from craftworks.governance import ActionTier, resolve_engagement_level
from craftworks.governance.models import map_legacy_dial_level, parse_environment


class TestDialLevels:
    """Tests for reading and setting dial levels."""

    def test_default_is_observer(self, dial):
        config = dial.get_dial_level("octo", "widgets")

        assert config.dial_level == 1
        assert config.is_default is True
        assert config.engagement_level == "observer"
        assert config.updated_by is None
        assert config.created_at is None

    def test_set_and_get(self, dial, clock):
        config = dial.set_dial_level("octo", "widgets", 3, "alice")

        assert config.dial_level == 3
        assert config.is_default is False
        assert config.updated_by == "alice"
        assert config.created_at == clock.now
        assert config.engagement_level == "peer-programmer"
        assert dial.get_dial_level("octo", "widgets").dial_level == 3

    def test_overwrite_keeps_created_at(self, dial, clock):
        first = dial.set_dial_level("octo", "widgets", 2, "alice")
        clock.advance(hours=1)

        second = dial.set_dial_level("octo", "widgets", 4, "bob")

        assert second.created_at == first.created_at
        assert second.updated_at == clock.now
        assert second.updated_by == "bob"

    def test_repos_are_independent(self, dial):
        dial.set_dial_level("octo", "widgets", 5, "alice")
        assert dial.get_dial_level("octo", "gadgets").dial_level == 1

    @pytest.mark.parametrize("level", [0, 6, 2.5, "3", True, None])
    def test_invalid_level_rejected(self, dial, level):
        with pytest.raises(InvalidArgument):
            dial.set_dial_level("octo", "widgets", level, "alice")
        assert dial.get_dial_level("octo", "widgets").is_default

    def test_updated_by_required(self, dial):
        with pytest.raises(InvalidArgument):
            dial.set_dial_level("octo", "widgets", 3, "")

    @pytest.mark.parametrize("owner,repo", [("", "widgets"), ("octo", "")])
    def test_repo_required(self, dial, owner, repo):
        with pytest.raises(InvalidArgument):
            dial.get_dial_level(owner, repo)

    def test_list_and_clear(self, dial):
        dial.set_dial_level("octo", "widgets", 2, "alice")
        dial.set_dial_level("octo", "gadgets", 4, "alice")

        assert sorted(c.repo_name for c in dial.list_dials()) == ["gadgets", "widgets"]

        dial.clear_all()
        assert dial.list_dials() == []


class TestEffectiveLevel:
    """Tests for environment caps."""

    @pytest.mark.parametrize("env,expected", [
        (None, 5),
        ("local", 5),
        ("dev", 5),
        ("staging", 4),
        ("production", 3),
        ("PRODUCTION", 3),
    ])
    def test_caps_at_level_five(self, dial, env, expected):
        dial.set_dial_level("octo", "widgets", 5, "alice")
        assert dial.get_effective_level("octo", "widgets", env) == expected

    def test_cap_never_raises_level(self, dial):
        dial.set_dial_level("octo", "widgets", 2, "alice")
        assert dial.get_effective_level("octo", "widgets", "local") == 2

    def test_unknown_environment(self, dial):
        with pytest.raises(InvalidArgument):
            dial.get_effective_level("octo", "widgets", "moon")

    def test_parse_environment(self):
        assert parse_environment(None) is None
        assert parse_environment("") is None
        assert parse_environment("staging").value == "staging"


class TestIsActionPermitted:
    """Tests for repository-level permission decisions."""

    def test_default_blocks_comments(self, dial):
        result = dial.is_action_permitted("octo", "widgets", "post_comment")

        assert not result.permitted
        assert result.dial_level == 1
        assert result.required_level == 2
        assert result.reason == "Action blocked: effective level 1 insufficient for T2, requires 2"

    def test_default_allows_reads(self, dial):
        result = dial.is_action_permitted("octo", "widgets", "view_file")

        assert result.permitted
        assert result.reason == "Action permitted: effective level 1 meets requirement 1 for T1"

    def test_production_blocks_merge_at_five(self, dial):
        dial.set_dial_level("octo", "widgets", 5, "alice")

        result = dial.is_action_permitted("octo", "widgets", "merge_pr", "production")

        assert not result.permitted
        assert result.dial_level == 5
        assert result.effective_level == 3
        assert result.tier == ActionTier.T5
        assert result.reason == "Action blocked: effective level 3 insufficient for T5, requires 5"

    def test_no_environment_allows_merge_at_five(self, dial):
        dial.set_dial_level("octo", "widgets", 5, "alice")
        assert dial.is_action_permitted("octo", "widgets", "merge_pr").permitted

    def test_unknown_action_needs_three(self, dial):
        dial.set_dial_level("octo", "widgets", 2, "alice")
        assert not dial.is_action_permitted("octo", "widgets", "summon_kraken").permitted

        dial.set_dial_level("octo", "widgets", 3, "alice")
        assert dial.is_action_permitted("octo", "widgets", "summon_kraken").permitted


class TestEngagementLevels:
    """Tests for engagement level names and legacy dial values."""

    @pytest.mark.parametrize("value,expected", [
        ("observer", 1),
        ("Advisor", 2),
        ("peer-programmer", 3),
        ("agent-team", 4),
        ("full-agent-team", 5),
        (4, 4),
        (6, 3),
        (11, 5),
    ])
    def test_resolve(self, value, expected):
        assert resolve_engagement_level(value) == expected

    @pytest.mark.parametrize("value", ["overlord", 0, 12, True, None])
    def test_resolve_invalid(self, value):
        with pytest.raises(InvalidArgument):
            resolve_engagement_level(value)

    @pytest.mark.parametrize("old,new", [(1, 1), (2, 1), (3, 2), (4, 2), (5, 3), (6, 3), (7, 4), (8, 4), (9, 5), (11, 5)])
    def test_legacy_mapping(self, old, new):
        assert map_legacy_dial_level(old) == new
