"""Conversation sessions and the chat turn pipeline."""
