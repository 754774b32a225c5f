"""Event kinds carried in the ``evt`` field of incoming commands.

The set is closed: a string outside it is a decode failure, never a
silently dropped value.
"""

from __future__ import annotations

from enum import Enum


class EventKind(str, Enum):
    """All event identifiers the desktop service can dispatch."""

    # User / guild
    CURRENT_USER_UPDATE = "CURRENT_USER_UPDATE"
    GUILD_STATUS = "GUILD_STATUS"
    GUILD_CREATE = "GUILD_CREATE"
    CHANNEL_CREATE = "CHANNEL_CREATE"
    RELATIONSHIP_UPDATE = "RELATIONSHIP_UPDATE"

    # Voice
    VOICE_CHANNEL_SELECT = "VOICE_CHANNEL_SELECT"
    VOICE_STATE_CREATE = "VOICE_STATE_CREATE"
    VOICE_STATE_DELETE = "VOICE_STATE_DELETE"
    VOICE_STATE_UPDATE = "VOICE_STATE_UPDATE"
    VOICE_SETTINGS_UPDATE = "VOICE_SETTINGS_UPDATE"
    VOICE_SETTINGS_UPDATE2 = "VOICE_SETTINGS_UPDATE2"
    VOICE_CONNECTION_STATUS = "VOICE_CONNECTION_STATUS"
    SPEAKING_START = "SPEAKING_START"
    SPEAKING_STOP = "SPEAKING_STOP"

    # Games and activities
    GAME_JOIN = "GAME_JOIN"
    GAME_SPECTATE = "GAME_SPECTATE"
    ACTIVITY_JOIN = "ACTIVITY_JOIN"
    ACTIVITY_JOIN_REQUEST = "ACTIVITY_JOIN_REQUEST"
    ACTIVITY_SPECTATE = "ACTIVITY_SPECTATE"
    ACTIVITY_INVITE = "ACTIVITY_INVITE"

    # Notifications and messages
    NOTIFICATION_CREATE = "NOTIFICATION_CREATE"
    MESSAGE_CREATE = "MESSAGE_CREATE"
    MESSAGE_UPDATE = "MESSAGE_UPDATE"
    MESSAGE_DELETE = "MESSAGE_DELETE"

    # Lobbies
    LOBBY_DELETE = "LOBBY_DELETE"
    LOBBY_UPDATE = "LOBBY_UPDATE"
    LOBBY_MEMBER_CONNECT = "LOBBY_MEMBER_CONNECT"
    LOBBY_MEMBER_DISCONNECT = "LOBBY_MEMBER_DISCONNECT"
    LOBBY_MEMBER_UPDATE = "LOBBY_MEMBER_UPDATE"
    LOBBY_MESSAGE = "LOBBY_MESSAGE"

    # Overlay / store
    CAPTURE_SHORTCUT_CHANGE = "CAPTURE_SHORTCUT_CHANGE"
    OVERLAY = "OVERLAY"
    OVERLAY_UPDATE = "OVERLAY_UPDATE"
    ENTITLEMENT_CREATE = "ENTITLEMENT_CREATE"
    ENTITLEMENT_DELETE = "ENTITLEMENT_DELETE"
    USER_ACHIEVEMENT_UPDATE = "USER_ACHIEVEMENT_UPDATE"

    # Session
    READY = "READY"
    ERROR = "ERROR"
