"""Two users chatting through a shared in-memory store.

Demonstrates the full conversation flow between Alice and Bob:
- sign-in with presence (online flag, last-login stamp)
- the user list with unread counts and "delivered" marking
- typing indicators with auto-clear
- read status moving sent -> delivered -> seen
- sign-out writing the offline flag

Run with:
    uv run python examples/two_user_chat.py
"""

from __future__ import annotations

import asyncio
import logging

from pairchat import (
    AuthUser,
    ConversationView,
    InMemoryDocumentStore,
    MockIdentityProvider,
    PairChat,
)
from pairchat.telemetry import ConsoleTelemetryProvider


def show(label: str, view: ConversationView) -> None:
    badges = view.badges
    print(f"--- {label} ({view.key}) ---")
    for message in view.messages:
        badge = f" [{badges[message.id]}]" if message.id in badges else ""
        print(f"  {message.sender_name}: {message.text}{badge}")
    if view.peer_typing:
        print(f"  {view.peer.display_name} is typing...")


async def settle() -> None:
    for _ in range(20):
        await asyncio.sleep(0)


async def main() -> None:
    logging.basicConfig(level=logging.WARNING)
    store = InMemoryDocumentStore()
    telemetry = ConsoleTelemetryProvider(level=logging.WARNING)

    alice = PairChat(
        store,
        MockIdentityProvider(AuthUser(uid="alice", display_name="Alice Liddell")),
        telemetry=telemetry,
    )
    bob = PairChat(store, MockIdentityProvider(AuthUser(uid="bob", display_name="Bob Stone")))

    await alice.sign_in()
    await bob.sign_in()

    # Bob watches the user list but has not opened the conversation yet
    directory = await bob.open_directory()

    chat = await alice.open_conversation("bob")
    await chat.keystroke()
    await chat.send("hi")
    await chat.send("there")
    await settle()

    for row in directory.summaries():
        last = row.last_message.text if row.last_message else "-"
        print(f"Bob's list: {row.peer.display_name} unread={row.unread_count} last={last!r}")
    show("Alice, before Bob reads", chat)

    # Bob opens the conversation; Alice's messages become seen
    reply = await bob.open_conversation("alice")
    await reply.keystroke()
    await settle()
    show("Alice, Bob is typing", chat)

    await reply.send("hey alice!")
    await settle()
    show("Alice, after Bob reads", chat)
    show("Bob", reply)

    await bob.sign_out()
    await alice.sign_out()
    for user_id in ("alice", "bob"):
        record = await store.get("users", user_id)
        print(f"{user_id}: online={record['online'] if record else None}")
    await store.close()


if __name__ == "__main__":
    asyncio.run(main())
