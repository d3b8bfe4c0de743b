from .profile_schema import (
    AuthSpec,
    ConnectionProfile,
    SqlLoginAuth,
    WindowsAuth,
    default_profile,
    load_stored_profile,
    dump_stored_profile,
)

__all__ = [
    "AuthSpec",
    "ConnectionProfile",
    "SqlLoginAuth",
    "WindowsAuth",
    "default_profile",
    "load_stored_profile",
    "dump_stored_profile",
]
