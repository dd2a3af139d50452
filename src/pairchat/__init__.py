"""pairchat - async two-party chat with presence, typing and read status."""

from pairchat._version import __version__
from pairchat.core.avatars import AvatarFallbacks, initials
from pairchat.core.badges import compute_badges
from pairchat.core.client import (
    DocumentNotFoundError,
    NotSignedInError,
    PairChat,
    PairChatError,
    SendError,
    SignInError,
    StoreError,
)
from pairchat.core.config import ChatConfig
from pairchat.core.conversation import ConversationView
from pairchat.core.conversation_key import conversation_key, peer_of
from pairchat.core.directory import UserDirectory
from pairchat.core.formatting import format_time
from pairchat.core.presence import PresenceTracker
from pairchat.core.reconciler import StatusReconciler, next_status, plan_transitions
from pairchat.core.sender import MessageSender
from pairchat.core.typing_signaler import TypingSignaler, set_typing
from pairchat.core.unread import last_message, order_users, unread_count
from pairchat.identity import IdentityProvider, MockIdentityProvider
from pairchat.models import (
    AuthUser,
    ConversationSummary,
    Message,
    MessageStatus,
    PresenceStatus,
    StatusBadge,
    TypingFlag,
    UserRecord,
    sort_messages,
)
from pairchat.store import (
    SERVER_TIMESTAMP,
    CollectionPaths,
    DocumentStore,
    InMemoryDocumentStore,
    QuerySnapshot,
)

__all__ = [
    "SERVER_TIMESTAMP",
    "AuthUser",
    "AvatarFallbacks",
    "ChatConfig",
    "CollectionPaths",
    "ConversationSummary",
    "ConversationView",
    "DocumentNotFoundError",
    "DocumentStore",
    "IdentityProvider",
    "InMemoryDocumentStore",
    "Message",
    "MessageSender",
    "MessageStatus",
    "MockIdentityProvider",
    "NotSignedInError",
    "PairChat",
    "PairChatError",
    "PresenceStatus",
    "PresenceTracker",
    "QuerySnapshot",
    "SendError",
    "SignInError",
    "StatusBadge",
    "StatusReconciler",
    "StoreError",
    "TypingFlag",
    "TypingSignaler",
    "UserDirectory",
    "UserRecord",
    "__version__",
    "compute_badges",
    "conversation_key",
    "format_time",
    "initials",
    "last_message",
    "next_status",
    "order_users",
    "peer_of",
    "plan_transitions",
    "set_typing",
    "sort_messages",
    "unread_count",
]
