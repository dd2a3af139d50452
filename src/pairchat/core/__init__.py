"""Conversation state machine and client orchestration."""
