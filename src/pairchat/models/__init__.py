"""Record models for users, messages and typing flags."""

from pairchat.models.conversation import ConversationSummary
from pairchat.models.enums import MessageStatus, PresenceStatus, StatusBadge
from pairchat.models.identity import AuthUser
from pairchat.models.message import Message, sort_messages
from pairchat.models.typing_flag import TypingFlag
from pairchat.models.user import UserRecord

__all__ = [
    "AuthUser",
    "ConversationSummary",
    "Message",
    "MessageStatus",
    "PresenceStatus",
    "StatusBadge",
    "TypingFlag",
    "UserRecord",
    "sort_messages",
]
