"""
Database repository layer using SQLModel.

This package contains all repository classes organized by business domain.
Each module provides type-safe data access operations for its corresponding
SQLModel entity models.

Modules:
- base: shared SQL CRUD implementation and QueryBuilder
- bundle: SqlRepoBundle wiring every repository to one session
- users, connections, coach_messages, coach_ratings, goals, journal, quizzes,
  subscriptions, usage, device_tokens, resources, agent: domain repositories
"""

from .bundle import SqlRepoBundle, build_sql_repos_from_session

__all__ = ["SqlRepoBundle", "build_sql_repos_from_session"]
