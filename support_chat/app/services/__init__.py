"""Conversation services: validation, sessions, context and replies."""
