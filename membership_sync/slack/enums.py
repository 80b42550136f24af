# =============================================================================
# File: membership_sync/slack/enums.py
# =============================================================================

from enum import Enum


class Channels:
    """Workspace channels managed by the sync engine"""
    BOARD = "board"


class UserGroups:
    """Workspace user-group handles"""
    THE_BOARD = "theboard"


class MemberRole(str, Enum):
    """Workspace account type of a customer"""
    REGULAR = "regular"
    # Guest limited to public channels (lapsed members)
    PUBLIC_ONLY = "public_only"
    # Guest limited to the id-check channel until identity is verified
    ID_CHECK_ONLY = "id_check_only"
