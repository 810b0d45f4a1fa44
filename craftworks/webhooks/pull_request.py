# craftworks/webhooks/pull_request.py
"""
Pull request event handling.

- opened / reopened / ready_for_review: create a review handoff
- synchronize: create one only if the PR is not tracked yet
- closed: abandon any non-terminal handoff for the PR
- drafts are skipped until ready for review
"""

from typing import Any, Dict, List

from ..handoffs.service import HandoffService
from ..logging import get_handoff_logger, get_logger

logger = get_logger(__name__)


ACTIONABLE_EVENTS = {
    "opened",
    "synchronize",
    "reopened",
    "ready_for_review",
}

REVIEWER_AGENT = "@code-reviewer"
HANDLER_AGENT = "@pull-request-handler"


def handle_pull_request_event(
    payload: Dict[str, Any],
    service: HandoffService,
) -> Dict[str, Any]:
    """
    Handle a pull_request webhook payload.

    Args:
        payload: Parsed webhook body
        service: Handoff service to act on

    Returns:
        Result dict with action, handled, message and optionally handoff_id
    """
    action = payload.get("action", "")
    pr = payload.get("pull_request") or {}
    repo = payload.get("repository") or {}
    repo_full_name = repo.get("full_name", "")
    pr_number = pr.get("number")

    if action == "closed":
        return _handle_closed(action, repo_full_name, pr_number, service)

    if action not in ACTIONABLE_EVENTS:
        return {
            "action": action,
            "handled": False,
            "message": f"Ignored PR action: {action}",
        }

    if pr.get("draft") and action != "ready_for_review":
        return {
            "action": action,
            "handled": False,
            "message": "Draft PR - skipped until ready for review",
        }

    existing = service.get_handoff_by_repo_and_issue(repo_full_name, pr_number)
    if existing and action == "synchronize":
        return {
            "action": action,
            "handled": True,
            "message": f"PR synchronized - existing handoff {existing.handoff_id} tracked",
            "handoff_id": existing.handoff_id,
        }

    user = pr.get("user") or {}
    head = pr.get("head") or {}
    base = pr.get("base") or {}
    installation = payload.get("installation") or {}

    handoff = service.create_handoff(
        {
            "task": f"Review PR #{pr_number}: {pr.get('title', '')}",
            "to_agent": REVIEWER_AGENT,
            "context": (
                f"PR by {user.get('login')} targeting {base.get('ref')} "
                f"from {head.get('ref')}"
            ),
            "priority": "medium",
        },
        {
            "issue_number": pr_number,
            "repository_full_name": repo_full_name,
            "from_agent": HANDLER_AGENT,
            "additional": {
                "installation_id": installation.get("id"),
                "author": user.get("login"),
                "head_sha": head.get("sha"),
                "base_ref": base.get("ref"),
            },
        },
    )

    get_handoff_logger(handoff.handoff_id).info(
        "pull_request_handoff_created",
        repository=repo_full_name,
        pr_number=pr_number,
        action=action,
    )

    return {
        "action": action,
        "handled": True,
        "message": f"Handoff created for PR #{pr_number}",
        "handoff_id": handoff.handoff_id,
    }


def _handle_closed(
    action: str,
    repo_full_name: str,
    pr_number: Any,
    service: HandoffService,
) -> Dict[str, Any]:
    # Without both keys there is no PR to match
    if not repo_full_name or pr_number is None:
        matches = []
    else:
        matches = service.find_by_repo_and_issue(repo_full_name, pr_number)
    if not matches:
        return {
            "action": action,
            "handled": True,
            "message": "PR closed, no active handoff found",
        }

    open_handoffs = [
        h for h in matches
        if not service.state_machine.is_terminal_state(h.status)
    ]
    if not open_handoffs:
        latest = matches[0]
        return {
            "action": action,
            "handled": True,
            "message": (
                f"Handoff {latest.handoff_id} already in terminal state "
                f"{latest.status.value}"
            ),
            "handoff_id": latest.handoff_id,
        }

    abandoned: List[str] = []
    for handoff in open_handoffs:
        service.abandon_handoff(handoff.handoff_id, "PR closed")
        abandoned.append(handoff.handoff_id)

    logger.info(
        "pull_request_handoffs_abandoned",
        repository=repo_full_name,
        pr_number=pr_number,
        count=len(abandoned),
    )

    return {
        "action": action,
        "handled": True,
        "message": f"Handoff {abandoned[0]} abandoned due to PR closure",
        "handoff_id": abandoned[0],
        "abandoned": abandoned,
    }
