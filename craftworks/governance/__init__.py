# Governance module - autonomy dial and action classification
from .models import (
    ActionRequest,
    ActionTier,
    Classification,
    ClassificationOrigin,
    DialConfig,
    DialPermission,
    DialRecord,
    EnvironmentTier,
    PermissionResult,
    TierDetails,
    resolve_engagement_level,
)
from .classifier import ACTION_CATALOG, ACTION_TIERS, ActionClassifier, classify_action
from .store import DialStore, InMemoryDialStore
from .dial import AutonomyDial
from .permissions import PermissionChecker

__all__ = [
    "ActionRequest",
    "ActionTier",
    "Classification",
    "ClassificationOrigin",
    "DialConfig",
    "DialPermission",
    "DialRecord",
    "EnvironmentTier",
    "PermissionResult",
    "TierDetails",
    "resolve_engagement_level",
    "ACTION_CATALOG",
    "ACTION_TIERS",
    "ActionClassifier",
    "classify_action",
    "DialStore",
    "InMemoryDialStore",
    "AutonomyDial",
    "PermissionChecker",
]
