# tests/test_permission_checker.py
"""
Test the permission checker.

Verifies request validation and that decisions carry full tier metadata.
"""

import pytest

from craftworks.errors import InvalidArgument
from craftworks.governance import ActionRequest, ActionTier


def _request(**overrides) -> ActionRequest:
    values = {
        "repo_owner": "octo",
        "repo_name": "widgets",
        "agent_slug": "@code-reviewer",
        "action_type": "post_comment",
    }
    values.update(overrides)
    return ActionRequest(**values)


class TestCheckActionPermission:
    """Tests for check_action_permission."""

    @pytest.mark.parametrize("field", ["repo_owner", "repo_name", "agent_slug", "action_type"])
    def test_required_fields(self, checker, field):
        with pytest.raises(InvalidArgument):
            checker.check_action_permission(_request(**{field: ""}))

    def test_denied_at_default_level(self, checker):
        result = checker.check_action_permission(_request())

        assert not result.permitted
        assert result.tier == ActionTier.T2
        assert result.tier_details.name == "Informational"
        assert result.action_type == "post_comment"
        assert result.reason.startswith("Action blocked")

    def test_permitted_after_raising_dial(self, checker, dial):
        dial.set_dial_level("octo", "widgets", 2, "alice")

        result = checker.check_action_permission(_request())

        assert result.permitted
        assert result.dial_level == 2
        assert result.effective_level == 2
        assert result.required_level == 2

    def test_environment_cap_applies(self, checker, dial):
        dial.set_dial_level("octo", "widgets", 5, "alice")

        staging = checker.check_action_permission(_request(action_type="deploy", env_tier="staging"))
        local = checker.check_action_permission(_request(action_type="deploy", env_tier="local"))

        assert not staging.permitted
        assert staging.effective_level == 4
        assert local.permitted

    def test_unknown_action_reports_modify_tier(self, checker, dial):
        dial.set_dial_level("octo", "widgets", 3, "alice")

        result = checker.check_action_permission(_request(action_type="Summon_Kraken"))

        assert result.permitted
        assert result.tier == ActionTier.T3
        assert result.action_type == "summon_kraken"

    def test_to_dict(self, checker):
        data = checker.check_action_permission(_request()).to_dict()

        assert data["tier"] == "T2"
        assert data["tier_details"]["required_dial_level"] == 2
        assert data["permitted"] is False

    def test_unknown_environment(self, checker):
        with pytest.raises(InvalidArgument):
            checker.check_action_permission(_request(env_tier="moon"))
