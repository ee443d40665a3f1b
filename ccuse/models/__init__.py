"""Profile models and schemas."""

from .schemas import (
    CURRENT_STORE_VERSION,
    LogLevel,
    LaunchPlan,
    Permissions,
    Profile,
    ProfileSource,
    ProfileStoreDocument,
    validate_profile_name,
)
from .settings_fields import settings_to_fields

__all__ = [
    "CURRENT_STORE_VERSION",
    "LogLevel",
    "LaunchPlan",
    "Permissions",
    "Profile",
    "ProfileSource",
    "ProfileStoreDocument",
    "settings_to_fields",
    "validate_profile_name",
]
