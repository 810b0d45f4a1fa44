# craftworks/governance/permissions.py
"""
Permission checking.

One call site for HTTP and tool-call layers: combines the autonomy dial
with the action classifier into a single permit/deny decision.
"""

from ..errors import InvalidArgument
from ..logging import get_governance_logger
from .dial import AutonomyDial
from .models import ActionRequest, PermissionResult


class PermissionChecker:
    """Composes AutonomyDial and ActionClassifier. Holds no state of its own."""

    def __init__(self, dial: AutonomyDial):
        self.dial = dial

    def check_action_permission(self, request: ActionRequest) -> PermissionResult:
        """
        Decide whether an agent may perform an action.

        Raises:
            InvalidArgument: If repo_owner, repo_name, agent_slug or
                action_type is empty
        """
        if not (request.repo_owner and request.repo_name
                and request.agent_slug and request.action_type):
            raise InvalidArgument(
                "repo_owner, repo_name, agent_slug, and action_type are required"
            )

        decision = self.dial.is_action_permitted(
            request.repo_owner,
            request.repo_name,
            request.action_type,
            request.env_tier,
        )
        classification = self.dial.classifier.classify_action(request.action_type)

        if not decision.permitted:
            get_governance_logger(request.repo_owner, request.repo_name).info(
                "action_denied",
                agent=request.agent_slug,
                action_type=classification.action_type,
                tier=decision.tier.value,
                effective_level=decision.effective_level,
                required_level=decision.required_level,
            )

        return PermissionResult(
            permitted=decision.permitted,
            dial_level=decision.dial_level,
            effective_level=decision.effective_level,
            required_level=decision.required_level,
            tier=decision.tier,
            tier_details=classification.tier_details,
            action_type=classification.action_type,
            reason=decision.reason,
        )
