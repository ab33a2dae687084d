"""
Database entity models.

This package contains all database entity models organized by business domain.

Modules:
- users: Accounts and coach profiles
- connections: User/coach connection lifecycle
- coach_messages: Messages within a connection
- coach_ratings: Ratings users give coaches
- goals: Daily goals
- journal: Journal entries and tags
- quizzes: Quizzes, questions, and responses
- subscriptions: Tiers, subscriptions, exclusions, settings
- usage: Usage counters and storage totals
- device_tokens: Push notification tokens
- resources: Uploaded file metadata
- agent: Agent workflows and action audit log
"""

from . import (
    agent,
    coach_messages,
    coach_ratings,
    connections,
    device_tokens,
    goals,
    journal,
    quizzes,
    resources,
    subscriptions,
    usage,
    users,
)

__all__ = [
    "agent",
    "coach_messages",
    "coach_ratings",
    "connections",
    "device_tokens",
    "goals",
    "journal",
    "quizzes",
    "resources",
    "subscriptions",
    "usage",
    "users",
]
