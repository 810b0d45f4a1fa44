# craftworks/governance/dial.py
"""
Autonomy dial.

Per-repository governance level (1-5), capped by the deployment
environment when one is given. Repositories without a record sit at the
most restrictive level.
"""

from datetime import datetime, timezone
from typing import Any, Callable, List, Optional

from ..errors import InvalidArgument
from ..logging import get_governance_logger
from .classifier import ActionClassifier, default_classifier
from .models import (
    DEFAULT_DIAL_LEVEL,
    ENV_MAX_LEVELS,
    DialConfig,
    DialPermission,
    DialRecord,
    is_valid_dial_level,
    parse_environment,
)
from .store import DialStore, InMemoryDialStore


def _require_repo(owner: str, repo: str) -> None:
    if not owner or not repo:
        raise InvalidArgument("Repository owner and name are required")


class AutonomyDial:
    """
    Per-(owner, repo) dial levels and permission resolution.
    """

    def __init__(
        self,
        store: Optional[DialStore] = None,
        classifier: Optional[ActionClassifier] = None,
        clock: Callable[[], datetime] = lambda: datetime.now(timezone.utc),
    ):
        self.store = store if store is not None else InMemoryDialStore()
        self.classifier = classifier or default_classifier
        self._now = clock

    def get_dial_level(self, owner: str, repo: str) -> DialConfig:
        """
        Get the dial configuration for a repository.

        Returns a synthetic default (level 1, is_default=True) when the
        repository was never configured.

        Raises:
            InvalidArgument: If owner or repo is empty
        """
        _require_repo(owner, repo)

        record = self.store.get(owner, repo)
        if record is None:
            return DialConfig(
                repo_owner=owner,
                repo_name=repo,
                dial_level=DEFAULT_DIAL_LEVEL,
                updated_by=None,
                updated_at=None,
                created_at=None,
                is_default=True,
            )

        return DialConfig(
            repo_owner=record.repo_owner,
            repo_name=record.repo_name,
            dial_level=record.dial_level,
            updated_by=record.updated_by,
            updated_at=record.updated_at,
            created_at=record.created_at,
            is_default=False,
        )

    def set_dial_level(
        self,
        owner: str,
        repo: str,
        level: Any,
        updated_by: str,
    ) -> DialConfig:
        """
        Set the dial level for a repository.

        Overwrites any existing record, keeping its original created_at.

        Raises:
            InvalidArgument: If owner/repo/updated_by is empty or level is
                not an integer in [1, 5]
        """
        _require_repo(owner, repo)

        if not is_valid_dial_level(level):
            raise InvalidArgument("Dial level must be an integer between 1 and 5")

        if not updated_by:
            raise InvalidArgument("updated_by is required")

        existing = self.store.get(owner, repo)
        now = self._now()

        record = DialRecord(
            repo_owner=owner,
            repo_name=repo,
            dial_level=level,
            updated_by=updated_by,
            created_at=existing.created_at if existing and existing.created_at else now,
            updated_at=now,
        )
        self.store.put(record)

        get_governance_logger(owner, repo).info(
            "dial_level_set",
            dial_level=level,
            previous_level=existing.dial_level if existing else None,
            updated_by=updated_by,
        )
        return self.get_dial_level(owner, repo)

    def get_effective_level(
        self,
        owner: str,
        repo: str,
        env_tier: Optional[str] = None,
    ) -> int:
        """
        Configured level capped at the environment maximum.

        local/dev -> 5, staging -> 4, production -> 3. Uncapped when no
        environment is given.
        """
        config = self.get_dial_level(owner, repo)
        environment = parse_environment(env_tier)
        if environment is None:
            return config.dial_level
        return min(config.dial_level, ENV_MAX_LEVELS[environment])

    def is_action_permitted(
        self,
        owner: str,
        repo: str,
        action_type: str,
        env_tier: Optional[str] = None,
    ) -> DialPermission:
        """
        Check whether an action is permitted for a repository.

        Permitted iff the effective level meets the tier requirement.
        The reason sentence is returned verbatim by the API.
        """
        config = self.get_dial_level(owner, repo)
        effective_level = self.get_effective_level(owner, repo, env_tier)
        classification = self.classifier.classify_action(action_type)
        required_level = classification.tier_details.required_dial_level
        permitted = effective_level >= required_level
        tier = classification.tier.value

        if permitted:
            reason = (
                f"Action permitted: effective level {effective_level} "
                f"meets requirement {required_level} for {tier}"
            )
        else:
            reason = (
                f"Action blocked: effective level {effective_level} "
                f"insufficient for {tier}, requires {required_level}"
            )

        return DialPermission(
            permitted=permitted,
            dial_level=config.dial_level,
            effective_level=effective_level,
            required_level=required_level,
            tier=classification.tier,
            reason=reason,
        )

    def list_dials(self) -> List[DialConfig]:
        """All configured repositories."""
        return [
            self.get_dial_level(record.repo_owner, record.repo_name)
            for record in self.store.list()
        ]

    def clear_all(self) -> None:
        """Remove every dial record."""
        self.store.clear()
