# craftworks/governance/models.py
"""
Governance models for the autonomy dial.

5-level engagement model:
    1 = observer         (T1 - read-only)
    2 = advisor          (T2 - informational)
    3 = peer-programmer  (T3 - modify)
    4 = agent-team       (T4 - commit)
    5 = full-agent-team  (T5 - merge/deploy)
"""

from dataclasses import dataclass, field
from datetime import datetime
from enum import Enum
from typing import Any, Dict, List, Optional

from ..errors import InvalidArgument


MIN_DIAL_LEVEL = 1
MAX_DIAL_LEVEL = 5
DEFAULT_DIAL_LEVEL = 1


class ActionTier(Enum):
    """Risk tier of an agent action, T1 lowest."""
    T1 = "T1"
    T2 = "T2"
    T3 = "T3"
    T4 = "T4"
    T5 = "T5"

    @property
    def level(self) -> int:
        return int(self.value[1:])


class ClassificationOrigin(Enum):
    """Where a classification came from."""
    CATALOG = "catalog"
    UNCLASSIFIED = "unclassified"  # not in the catalog; resolved to the T3 default


class EnvironmentTier(Enum):
    """Deployment environments, increasingly restricted."""
    LOCAL = "local"
    DEV = "dev"
    STAGING = "staging"
    PRODUCTION = "production"


# Maximum effective dial level per environment
ENV_MAX_LEVELS: Dict[EnvironmentTier, int] = {
    EnvironmentTier.LOCAL: 5,
    EnvironmentTier.DEV: 5,
    EnvironmentTier.STAGING: 4,
    EnvironmentTier.PRODUCTION: 3,
}

ENGAGEMENT_LEVEL_NAMES: Dict[int, str] = {
    1: "observer",
    2: "advisor",
    3: "peer-programmer",
    4: "agent-team",
    5: "full-agent-team",
}


@dataclass(frozen=True)
class TierDetails:
    """Static description of a tier."""
    level: int
    name: str
    description: str
    required_dial_level: int

    def to_dict(self) -> Dict[str, Any]:
        return {
            "level": self.level,
            "name": self.name,
            "description": self.description,
            "required_dial_level": self.required_dial_level,
        }


@dataclass(frozen=True)
class Classification:
    """Result of classifying an action."""
    action_type: str
    tier: ActionTier
    tier_details: TierDetails
    origin: ClassificationOrigin

    @property
    def is_known_action(self) -> bool:
        return self.origin == ClassificationOrigin.CATALOG

    def to_dict(self) -> Dict[str, Any]:
        return {
            "action_type": self.action_type,
            "tier": self.tier.value,
            "tier_details": self.tier_details.to_dict(),
            "is_known_action": self.is_known_action,
        }


@dataclass(frozen=True)
class TierPermission:
    """Tier-only permission decision, no repository context."""
    permitted: bool
    dial_level: int
    required_level: int
    tier: ActionTier
    tier_details: TierDetails
    action_type: str


@dataclass
class DialRecord:
    """Stored per-repository dial configuration."""
    repo_owner: str
    repo_name: str
    dial_level: int
    updated_by: Optional[str]
    created_at: Optional[datetime]
    updated_at: Optional[datetime]


@dataclass(frozen=True)
class DialConfig:
    """Dial configuration as returned to callers."""
    repo_owner: str
    repo_name: str
    dial_level: int
    updated_by: Optional[str]
    updated_at: Optional[datetime]
    created_at: Optional[datetime]
    is_default: bool

    @property
    def engagement_level(self) -> str:
        return ENGAGEMENT_LEVEL_NAMES[self.dial_level]

    def to_dict(self) -> Dict[str, Any]:
        return {
            "repo_owner": self.repo_owner,
            "repo_name": self.repo_name,
            "dial_level": self.dial_level,
            "engagement_level": self.engagement_level,
            "updated_by": self.updated_by,
            "updated_at": self.updated_at.isoformat() if self.updated_at else None,
            "created_at": self.created_at.isoformat() if self.created_at else None,
            "is_default": self.is_default,
        }


@dataclass(frozen=True)
class DialPermission:
    """Permission decision for a repository and optional environment."""
    permitted: bool
    dial_level: int
    effective_level: int
    required_level: int
    tier: ActionTier
    reason: str


@dataclass
class ActionRequest:
    """An agent action awaiting a permission decision."""
    repo_owner: str
    repo_name: str
    agent_slug: str
    action_type: str
    env_tier: Optional[str] = None
    action_details: Dict[str, Any] = field(default_factory=dict)
    pr_number: Optional[int] = None
    issue_number: Optional[int] = None
    user_login: Optional[str] = None


@dataclass(frozen=True)
class PermissionResult:
    """Composite permission decision with full tier metadata."""
    permitted: bool
    dial_level: int
    effective_level: int
    required_level: int
    tier: ActionTier
    tier_details: TierDetails
    action_type: str
    reason: str

    def to_dict(self) -> Dict[str, Any]:
        return {
            "permitted": self.permitted,
            "dial_level": self.dial_level,
            "effective_level": self.effective_level,
            "required_level": self.required_level,
            "tier": self.tier.value,
            "tier_details": self.tier_details.to_dict(),
            "action_type": self.action_type,
            "reason": self.reason,
        }


def is_valid_dial_level(level: Any) -> bool:
    """Integer (not bool) in [1, 5]."""
    return (
        isinstance(level, int)
        and not isinstance(level, bool)
        and MIN_DIAL_LEVEL <= level <= MAX_DIAL_LEVEL
    )


def map_legacy_dial_level(old_level: int) -> int:
    """
    Map an 11-level dial value onto the 5 engagement levels.

    1-2 -> 1, 3-4 -> 2, 5-6 -> 3, 7-8 -> 4, 9-11 -> 5
    """
    if old_level <= 2:
        return 1
    if old_level <= 4:
        return 2
    if old_level <= 6:
        return 3
    if old_level <= 8:
        return 4
    return 5


def resolve_engagement_level(value: Any) -> int:
    """
    Resolve a dial level from a number or an engagement level name.

    Numbers 1-5 pass through; other integers use the legacy 1-11 mapping.

    Raises:
        InvalidArgument: If the value is not a known name or integer
    """
    if isinstance(value, bool):
        raise InvalidArgument(f"Unknown engagement level: {value!r}")
    if isinstance(value, int):
        if MIN_DIAL_LEVEL <= value <= MAX_DIAL_LEVEL:
            return value
        if value < 1 or value > 11:
            raise InvalidArgument(
                f"Legacy dial level must be between 1 and 11, got {value}"
            )
        return map_legacy_dial_level(value)
    if isinstance(value, str):
        names = {name: level for level, name in ENGAGEMENT_LEVEL_NAMES.items()}
        level = names.get(value.strip().lower())
        if level:
            return level
    valid: List[str] = list(ENGAGEMENT_LEVEL_NAMES.values())
    raise InvalidArgument(
        f'Unknown engagement level: "{value}". Valid names: {", ".join(valid)}'
    )


def parse_environment(env_tier: Any) -> Optional[EnvironmentTier]:
    """
    Parse an environment tier name.

    Raises:
        InvalidArgument: If the name is not a known environment
    """
    if env_tier is None or env_tier == "":
        return None
    if isinstance(env_tier, EnvironmentTier):
        return env_tier
    try:
        return EnvironmentTier(str(env_tier).strip().lower())
    except ValueError:
        raise InvalidArgument(
            f"Unknown environment: {env_tier!r}. "
            f"Valid environments: {[e.value for e in EnvironmentTier]}"
        )
