"""
Repository bundle for dependency injection.

This module provides a convenience bundle of all repository instances
for easy dependency injection in services and application components.
"""

from __future__ import annotations

from dataclasses import dataclass

from sqlalchemy.ext.asyncio import AsyncSession

from .agent import AgentActionRepository, AgentWorkflowRepository
from .coach_messages import CoachMessageRepository
from .coach_ratings import CoachRatingRepository
from .connections import ConnectionRepository
from .device_tokens import DeviceTokenRepository
from .goals import GoalRepository
from .journal import JournalEntryRepository, TagRepository
from .quizzes import QuizRepository, QuizResponseRepository
from .resources import ResourceRepository
from .subscriptions import (
    SubscriptionExclusionRepository,
    SubscriptionSettingsRepository,
    SubscriptionTierRepository,
    UserSubscriptionRepository,
)
from .usage import FileStorageUsageRepository, UsageTrackingRepository
from .users import CoachProfileRepository, UserRepository


@dataclass(frozen=True)
class SqlRepoBundle:
    """Convenience bundle of all SQL repositories sharing one session."""

    session: AsyncSession
    users: UserRepository
    coach_profiles: CoachProfileRepository
    connections: ConnectionRepository
    coach_messages: CoachMessageRepository
    coach_ratings: CoachRatingRepository
    goals: GoalRepository
    journal_entries: JournalEntryRepository
    tags: TagRepository
    quizzes: QuizRepository
    quiz_responses: QuizResponseRepository
    subscription_tiers: SubscriptionTierRepository
    subscriptions: UserSubscriptionRepository
    subscription_exclusions: SubscriptionExclusionRepository
    subscription_settings: SubscriptionSettingsRepository
    usage: UsageTrackingRepository
    file_storage: FileStorageUsageRepository
    device_tokens: DeviceTokenRepository
    resources: ResourceRepository
    agent_workflows: AgentWorkflowRepository
    agent_actions: AgentActionRepository


def build_sql_repos_from_session(*, session: AsyncSession) -> SqlRepoBundle:
    """Build a SqlRepoBundle from an existing session.

    Args:
        session: Existing async session

    Returns:
        Bundle containing all repository instances
    """
    return SqlRepoBundle(
        session=session,
        users=UserRepository(session),
        coach_profiles=CoachProfileRepository(session),
        connections=ConnectionRepository(session),
        coach_messages=CoachMessageRepository(session),
        coach_ratings=CoachRatingRepository(session),
        goals=GoalRepository(session),
        journal_entries=JournalEntryRepository(session),
        tags=TagRepository(session),
        quizzes=QuizRepository(session),
        quiz_responses=QuizResponseRepository(session),
        subscription_tiers=SubscriptionTierRepository(session),
        subscriptions=UserSubscriptionRepository(session),
        subscription_exclusions=SubscriptionExclusionRepository(session),
        subscription_settings=SubscriptionSettingsRepository(session),
        usage=UsageTrackingRepository(session),
        file_storage=FileStorageUsageRepository(session),
        device_tokens=DeviceTokenRepository(session),
        resources=ResourceRepository(session),
        agent_workflows=AgentWorkflowRepository(session),
        agent_actions=AgentActionRepository(session),
    )
