"""Initial schema and seed data for ProjectBrain

Revision ID: 20260301_000000
Revises: None
Create Date: 2026-03-01 00:00:00.000000

This is the initial migration that creates all tables and seeds default data
for the ProjectBrain server. This includes:
- Accounts and coach profiles
- Connections, coach messages and coach ratings
- Goals, journal entries and tags
- Quizzes, questions and responses
- Subscriptions, tiers, exclusions and the global subscription settings row
- Usage tracking, file storage usage, device tokens and resources
- Agent workflows and actions
- Default subscription tiers

Revision format: YYYYMMDD_HHMMSS_description

"""

from datetime import datetime
from typing import Sequence, Union

import sqlalchemy as sa

from alembic import op

# revision identifiers, used by Alembic.
revision: str = "20260301_000000"
down_revision: Union[str, None] = None
branch_labels: Union[str, Sequence[str], None] = None
depends_on: Union[str, Sequence[str], None] = None

UNLIMITED = -1

DEFAULT_TIERS = [
    (
        "Free",
        "user",
        {
            "DailyAIQueries": 50,
            "MonthlyAIQueries": 200,
            "MaxCoachConnections": 3,
            "MonthlyCoachMessages": 200,
            "MaxFiles": 20,
            "MaxFileStorageMB": 100,
            "AllowSpeechInput": False,
            "AllowExternalIntegrations": False,
            "MonthlyResearchReports": 0,
        },
    ),
    (
        "Pro",
        "user",
        {
            "DailyAIQueries": UNLIMITED,
            "MonthlyAIQueries": UNLIMITED,
            "MaxCoachConnections": UNLIMITED,
            "MonthlyCoachMessages": UNLIMITED,
            "MaxFiles": UNLIMITED,
            "MaxFileStorageMB": 500,
            "AllowSpeechInput": True,
            "AllowExternalIntegrations": False,
            "MonthlyResearchReports": 1,
        },
    ),
    (
        "Ultimate",
        "user",
        {
            "DailyAIQueries": UNLIMITED,
            "MonthlyAIQueries": UNLIMITED,
            "MaxCoachConnections": UNLIMITED,
            "MonthlyCoachMessages": UNLIMITED,
            "MaxFiles": UNLIMITED,
            "MaxFileStorageMB": UNLIMITED,
            "AllowSpeechInput": True,
            "AllowExternalIntegrations": True,
            "MonthlyResearchReports": UNLIMITED,
        },
    ),
    ("Free", "coach", {"MaxClientConnections": 3, "MonthlyClientMessages": 10}),
    ("Pro", "coach", {"MaxClientConnections": UNLIMITED, "MonthlyClientMessages": UNLIMITED}),
]


def _timestamps(with_updated: bool = True) -> list:
    columns = [sa.Column("created_at", sa.DateTime(), nullable=False)]
    if with_updated:
        columns.append(sa.Column("updated_at", sa.DateTime(), nullable=False))
    return columns


def upgrade() -> None:
    """Create all tables and seed initial data."""

    # Accounts
    op.create_table(
        "users",
        sa.Column("id", sa.String(255), nullable=False),
        sa.Column("email", sa.String(320), nullable=False),
        sa.Column("full_name", sa.String(255), nullable=False, server_default=""),
        sa.Column("favorite_colour", sa.String(100), nullable=True),
        sa.Column("date_of_birth", sa.Date(), nullable=True),
        sa.Column("is_onboarded", sa.Boolean(), nullable=False, server_default=sa.false()),
        sa.Column("preferred_pronoun", sa.String(50), nullable=True),
        sa.Column("neurodivergent_details", sa.Text(), nullable=True),
        sa.Column("address", sa.Text(), nullable=True),
        sa.Column("city", sa.String(100), nullable=True),
        sa.Column("state_province", sa.String(100), nullable=True),
        sa.Column("country", sa.String(100), nullable=True),
        sa.Column("experience", sa.Text(), nullable=True),
        sa.Column("roles", sa.JSON(), nullable=False),
        sa.Column("last_activity_at", sa.DateTime(), nullable=True),
        *_timestamps(),
        sa.PrimaryKeyConstraint("id"),
        sa.Index("ix_users_email", "email", unique=True),
        sa.Index("ix_users_city", "city"),
        sa.Index("ix_users_last_activity_at", "last_activity_at"),
        sa.Index("ix_users_created_at", "created_at"),
    )

    op.create_table(
        "coach_profiles",
        sa.Column("id", sa.Integer(), autoincrement=True, nullable=False),
        sa.Column("user_id", sa.String(255), sa.ForeignKey("users.id"), nullable=False),
        sa.Column("qualifications", sa.JSON(), nullable=False),
        sa.Column("specialisms", sa.JSON(), nullable=False),
        sa.Column("age_groups", sa.JSON(), nullable=False),
        sa.Column("availability_status", sa.String(20), nullable=False, server_default="available"),
        *_timestamps(),
        sa.PrimaryKeyConstraint("id"),
        sa.Index("ix_coach_profiles_user_id", "user_id", unique=True),
    )

    # Coaching relationships
    op.create_table(
        "connections",
        sa.Column("id", sa.String(64), nullable=False),
        sa.Column("user_id", sa.String(255), sa.ForeignKey("users.id"), nullable=False),
        sa.Column("coach_id", sa.String(255), sa.ForeignKey("users.id"), nullable=False),
        sa.Column("status", sa.String(20), nullable=False),
        sa.Column("requested_by", sa.String(20), nullable=False),
        sa.Column("request_message", sa.String(1000), nullable=True),
        sa.Column("requested_at", sa.DateTime(), nullable=False),
        sa.Column("responded_at", sa.DateTime(), nullable=True),
        *_timestamps(),
        sa.PrimaryKeyConstraint("id"),
        sa.UniqueConstraint("user_id", "coach_id", name="uq_connections_user_coach"),
        sa.Index("ix_connections_user_id", "user_id"),
        sa.Index("ix_connections_coach_id", "coach_id"),
        sa.Index("ix_connections_status", "status"),
        sa.Index("ix_connections_created_at", "created_at"),
    )

    op.create_table(
        "coach_messages",
        sa.Column("id", sa.Integer(), autoincrement=True, nullable=False),
        sa.Column("connection_id", sa.String(64), sa.ForeignKey("connections.id"), nullable=False),
        sa.Column("user_id", sa.String(255), nullable=False),
        sa.Column("coach_id", sa.String(255), nullable=False),
        sa.Column("sender_id", sa.String(255), nullable=False),
        sa.Column("message_type", sa.String(20), nullable=False, server_default="text"),
        sa.Column("content", sa.Text(), nullable=False, server_default=""),
        sa.Column("voice_note_url", sa.Text(), nullable=True),
        sa.Column("voice_note_file_name", sa.Text(), nullable=True),
        sa.Column("status", sa.String(20), nullable=False, server_default="sent"),
        sa.Column("delivered_at", sa.DateTime(), nullable=True),
        sa.Column("read_at", sa.DateTime(), nullable=True),
        sa.Column("created_at", sa.DateTime(), nullable=False),
        sa.PrimaryKeyConstraint("id"),
        sa.Index("ix_coach_messages_connection_id", "connection_id"),
        sa.Index("ix_coach_messages_user_id", "user_id"),
        sa.Index("ix_coach_messages_coach_id", "coach_id"),
        sa.Index("ix_coach_messages_sender_id", "sender_id"),
        sa.Index("ix_coach_messages_created_at", "created_at"),
    )

    op.create_table(
        "coach_ratings",
        sa.Column("id", sa.Integer(), autoincrement=True, nullable=False),
        sa.Column("user_id", sa.String(255), sa.ForeignKey("users.id"), nullable=False),
        sa.Column("coach_id", sa.String(255), sa.ForeignKey("users.id"), nullable=False),
        sa.Column("rating", sa.Integer(), nullable=False),
        sa.Column("feedback", sa.String(2000), nullable=True),
        *_timestamps(),
        sa.PrimaryKeyConstraint("id"),
        sa.UniqueConstraint("user_id", "coach_id", name="uq_coach_ratings_user_coach"),
        sa.CheckConstraint("rating BETWEEN 1 AND 5", name="ck_coach_ratings_rating"),
        sa.Index("ix_coach_ratings_user_id", "user_id"),
        sa.Index("ix_coach_ratings_coach_id", "coach_id"),
        sa.Index("ix_coach_ratings_created_at", "created_at"),
    )

    # Goals and journaling
    op.create_table(
        "goals",
        sa.Column("id", sa.Integer(), autoincrement=True, nullable=False),
        sa.Column("user_id", sa.String(255), sa.ForeignKey("users.id"), nullable=False),
        sa.Column("date", sa.Date(), nullable=False),
        sa.Column("index", sa.Integer(), nullable=False),
        sa.Column("message", sa.String(500), nullable=False, server_default=""),
        sa.Column("completed", sa.Boolean(), nullable=False, server_default=sa.false()),
        sa.Column("completed_at", sa.DateTime(), nullable=True),
        *_timestamps(),
        sa.PrimaryKeyConstraint("id"),
        sa.UniqueConstraint("user_id", "date", "index", name="uq_goals_user_date_index"),
        sa.Index("ix_goals_user_id", "user_id"),
        sa.Index("ix_goals_date", "date"),
    )

    op.create_table(
        "journal_entries",
        sa.Column("id", sa.Integer(), autoincrement=True, nullable=False),
        sa.Column("user_id", sa.String(255), sa.ForeignKey("users.id"), nullable=False),
        sa.Column("content", sa.Text(), nullable=False),
        sa.Column("summary", sa.Text(), nullable=True),
        sa.Column("created_at", sa.DateTime(), nullable=False),
        sa.Column("updated_at", sa.DateTime(), nullable=True),
        sa.PrimaryKeyConstraint("id"),
        sa.Index("ix_journal_entries_user_id", "user_id"),
        sa.Index("ix_journal_entries_created_at", "created_at"),
    )

    op.create_table(
        "tags",
        sa.Column("id", sa.Integer(), autoincrement=True, nullable=False),
        sa.Column("user_id", sa.String(255), sa.ForeignKey("users.id"), nullable=False),
        sa.Column("name", sa.String(100), nullable=False),
        sa.Column("created_at", sa.DateTime(), nullable=False),
        sa.PrimaryKeyConstraint("id"),
        sa.UniqueConstraint("user_id", "name", name="uq_tags_user_name"),
        sa.Index("ix_tags_user_id", "user_id"),
    )

    op.create_table(
        "journal_entry_tags",
        sa.Column("id", sa.Integer(), autoincrement=True, nullable=False),
        sa.Column("journal_entry_id", sa.Integer(), sa.ForeignKey("journal_entries.id"), nullable=False),
        sa.Column("tag_id", sa.Integer(), sa.ForeignKey("tags.id"), nullable=False),
        sa.PrimaryKeyConstraint("id"),
        sa.UniqueConstraint("journal_entry_id", "tag_id", name="uq_journal_entry_tags_pair"),
        sa.Index("ix_journal_entry_tags_journal_entry_id", "journal_entry_id"),
        sa.Index("ix_journal_entry_tags_tag_id", "tag_id"),
    )

    # Quizzes
    op.create_table(
        "quizzes",
        sa.Column("id", sa.Integer(), autoincrement=True, nullable=False),
        sa.Column("title", sa.String(500), nullable=False),
        sa.Column("description", sa.String(2000), nullable=True),
        *_timestamps(),
        sa.PrimaryKeyConstraint("id"),
        sa.Index("ix_quizzes_created_at", "created_at"),
    )

    op.create_table(
        "quiz_questions",
        sa.Column("id", sa.Integer(), autoincrement=True, nullable=False),
        sa.Column("quiz_id", sa.Integer(), sa.ForeignKey("quizzes.id"), nullable=False),
        sa.Column("label", sa.String(1000), nullable=False),
        sa.Column("input_type", sa.String(50), nullable=False, server_default="text"),
        sa.Column("mandatory", sa.Boolean(), nullable=False, server_default=sa.false()),
        sa.Column("visible", sa.Boolean(), nullable=False, server_default=sa.true()),
        sa.Column("min_value", sa.Float(), nullable=True),
        sa.Column("max_value", sa.Float(), nullable=True),
        sa.Column("choices", sa.JSON(), nullable=False),
        sa.Column("placeholder", sa.String(255), nullable=True),
        sa.Column("hint", sa.String(500), nullable=True),
        sa.Column("question_order", sa.Integer(), nullable=False, server_default="0"),
        sa.PrimaryKeyConstraint("id"),
        sa.UniqueConstraint("quiz_id", "question_order", name="uq_quiz_questions_order"),
        sa.Index("ix_quiz_questions_quiz_id", "quiz_id"),
    )

    op.create_table(
        "quiz_responses",
        sa.Column("id", sa.Integer(), autoincrement=True, nullable=False),
        sa.Column("quiz_id", sa.Integer(), sa.ForeignKey("quizzes.id"), nullable=False),
        sa.Column("user_id", sa.String(255), sa.ForeignKey("users.id"), nullable=False),
        sa.Column("answers", sa.JSON(), nullable=False),
        sa.Column("score", sa.Float(), nullable=True),
        sa.Column("completed_at", sa.DateTime(), nullable=False),
        *_timestamps(),
        sa.PrimaryKeyConstraint("id"),
        sa.Index("ix_quiz_responses_quiz_id", "quiz_id"),
        sa.Index("ix_quiz_responses_user_id", "user_id"),
        sa.Index("ix_quiz_responses_completed_at", "completed_at"),
    )

    # Subscriptions
    op.create_table(
        "subscription_tiers",
        sa.Column("id", sa.Integer(), autoincrement=True, nullable=False),
        sa.Column("name", sa.String(50), nullable=False),
        sa.Column("user_type", sa.String(20), nullable=False),
        sa.Column("features", sa.JSON(), nullable=False),
        sa.Column("created_at", sa.DateTime(), nullable=False),
        sa.PrimaryKeyConstraint("id"),
        sa.UniqueConstraint("name", "user_type", name="uq_subscription_tiers_name_type"),
    )

    op.create_table(
        "user_subscriptions",
        sa.Column("id", sa.Integer(), autoincrement=True, nullable=False),
        sa.Column("user_id", sa.String(255), sa.ForeignKey("users.id"), nullable=False),
        sa.Column("user_type", sa.String(20), nullable=False),
        sa.Column("tier_id", sa.Integer(), sa.ForeignKey("subscription_tiers.id"), nullable=False),
        sa.Column("stripe_customer_id", sa.String(255), nullable=True),
        sa.Column("stripe_subscription_id", sa.String(255), nullable=True),
        sa.Column("stripe_price_id", sa.String(255), nullable=True),
        sa.Column("status", sa.String(20), nullable=False, server_default="incomplete"),
        sa.Column("trial_ends_at", sa.DateTime(), nullable=True),
        sa.Column("current_period_start", sa.DateTime(), nullable=False),
        sa.Column("current_period_end", sa.DateTime(), nullable=False),
        sa.Column("canceled_at", sa.DateTime(), nullable=True),
        sa.Column("expired_at", sa.DateTime(), nullable=True),
        *_timestamps(),
        sa.PrimaryKeyConstraint("id"),
        sa.Index("ix_user_subscriptions_user_id", "user_id"),
        sa.Index("ix_user_subscriptions_user_type", "user_type"),
        sa.Index("ix_user_subscriptions_stripe_customer_id", "stripe_customer_id"),
        sa.Index("ix_user_subscriptions_stripe_subscription_id", "stripe_subscription_id"),
        sa.Index("ix_user_subscriptions_status", "status"),
        sa.Index("ix_user_subscriptions_created_at", "created_at"),
    )

    op.create_table(
        "subscription_exclusions",
        sa.Column("id", sa.Integer(), autoincrement=True, nullable=False),
        sa.Column("user_id", sa.String(255), sa.ForeignKey("users.id"), nullable=False),
        sa.Column("user_type", sa.String(20), nullable=False),
        sa.Column("excluded_by", sa.String(255), nullable=False),
        sa.Column("reason", sa.String(1000), nullable=True),
        sa.Column("created_at", sa.DateTime(), nullable=False),
        sa.PrimaryKeyConstraint("id"),
        sa.UniqueConstraint("user_id", "user_type", name="uq_subscription_exclusions_user_type"),
        sa.Index("ix_subscription_exclusions_user_id", "user_id"),
    )

    op.create_table(
        "subscription_settings",
        sa.Column("id", sa.Integer(), nullable=False),
        sa.Column("enable_user_subscriptions", sa.Boolean(), nullable=False, server_default=sa.true()),
        sa.Column("enable_coach_subscriptions", sa.Boolean(), nullable=False, server_default=sa.true()),
        sa.Column("updated_by", sa.String(255), nullable=False, server_default="system"),
        sa.Column("updated_at", sa.DateTime(), nullable=False),
        sa.PrimaryKeyConstraint("id"),
    )

    # Usage and storage
    op.create_table(
        "usage_tracking",
        sa.Column("id", sa.Integer(), autoincrement=True, nullable=False),
        sa.Column("user_id", sa.String(255), sa.ForeignKey("users.id"), nullable=False),
        sa.Column("usage_type", sa.String(50), nullable=False),
        sa.Column("period_type", sa.String(20), nullable=False),
        sa.Column("period_start", sa.DateTime(), nullable=False),
        sa.Column("count", sa.Integer(), nullable=False, server_default="0"),
        *_timestamps(),
        sa.PrimaryKeyConstraint("id"),
        sa.Index("ix_usage_tracking_lookup", "user_id", "usage_type", "period_type", "period_start"),
    )

    op.create_table(
        "file_storage_usage",
        sa.Column("id", sa.Integer(), autoincrement=True, nullable=False),
        sa.Column("user_id", sa.String(255), sa.ForeignKey("users.id"), nullable=False),
        sa.Column("total_bytes", sa.BigInteger(), nullable=False, server_default="0"),
        sa.Column("updated_at", sa.DateTime(), nullable=False),
        sa.PrimaryKeyConstraint("id"),
        sa.Index("ix_file_storage_usage_user_id", "user_id", unique=True),
    )

    op.create_table(
        "device_tokens",
        sa.Column("id", sa.Integer(), autoincrement=True, nullable=False),
        sa.Column("user_id", sa.String(255), sa.ForeignKey("users.id"), nullable=False),
        sa.Column("token", sa.String(4096), nullable=False),
        sa.Column("platform", sa.String(20), nullable=True),
        sa.Column("device_id", sa.String(255), nullable=True),
        sa.Column("is_active", sa.Boolean(), nullable=False, server_default=sa.true()),
        sa.Column("invalid_reason", sa.String(255), nullable=True),
        sa.Column("created_at", sa.DateTime(), nullable=False),
        sa.Column("last_used_at", sa.DateTime(), nullable=True),
        sa.Column("last_validated_at", sa.DateTime(), nullable=True),
        sa.PrimaryKeyConstraint("id"),
        sa.Index("ix_device_tokens_token", "token", unique=True),
        sa.Index("ix_device_tokens_user_active", "user_id", "is_active"),
    )

    op.create_table(
        "resources",
        sa.Column("id", sa.Integer(), autoincrement=True, nullable=False),
        sa.Column("user_id", sa.String(255), sa.ForeignKey("users.id"), nullable=True),
        sa.Column("file_name", sa.String(255), nullable=False),
        sa.Column("location", sa.String(1024), nullable=False),
        sa.Column("size_in_bytes", sa.BigInteger(), nullable=False, server_default="0"),
        sa.Column("content_type", sa.String(255), nullable=True),
        sa.Column("is_shared", sa.Boolean(), nullable=False, server_default=sa.false()),
        *_timestamps(),
        sa.PrimaryKeyConstraint("id"),
        sa.UniqueConstraint("user_id", "file_name", name="uq_resources_user_file"),
        sa.Index("ix_resources_user_id", "user_id"),
        sa.Index("ix_resources_created_at", "created_at"),
    )

    # Agent
    op.create_table(
        "agent_workflows",
        sa.Column("id", sa.String(64), nullable=False),
        sa.Column("user_id", sa.String(255), sa.ForeignKey("users.id"), nullable=False),
        sa.Column("conversation_id", sa.String(255), nullable=True),
        sa.Column("workflow_type", sa.String(100), nullable=False),
        sa.Column("status", sa.String(20), nullable=False, server_default="active"),
        sa.Column("current_state", sa.Text(), nullable=False, server_default="{}"),
        sa.Column("tool_execution_history", sa.Text(), nullable=False, server_default="[]"),
        sa.Column("current_step", sa.Integer(), nullable=False, server_default="0"),
        sa.Column("total_steps", sa.Integer(), nullable=True),
        *_timestamps(),
        sa.Column("completed_at", sa.DateTime(), nullable=True),
        sa.Column("error_message", sa.Text(), nullable=True),
        sa.PrimaryKeyConstraint("id"),
        sa.Index("ix_agent_workflows_user_id", "user_id"),
        sa.Index("ix_agent_workflows_conversation_id", "conversation_id"),
        sa.Index("ix_agent_workflows_status", "status"),
    )

    op.create_table(
        "agent_actions",
        sa.Column("id", sa.Integer(), autoincrement=True, nullable=False),
        sa.Column("user_id", sa.String(255), sa.ForeignKey("users.id"), nullable=False),
        sa.Column("conversation_id", sa.String(255), nullable=True),
        sa.Column("workflow_id", sa.String(64), nullable=True),
        sa.Column("tool_name", sa.String(100), nullable=False),
        sa.Column("tool_parameters", sa.Text(), nullable=False, server_default="{}"),
        sa.Column("tool_result", sa.Text(), nullable=False, server_default="{}"),
        sa.Column("success", sa.Boolean(), nullable=False, server_default=sa.true()),
        sa.Column("error_message", sa.Text(), nullable=True),
        sa.Column("executed_at", sa.DateTime(), nullable=False),
        sa.Column("created_at", sa.DateTime(), nullable=False),
        sa.PrimaryKeyConstraint("id"),
        sa.Index("ix_agent_actions_user_id", "user_id"),
        sa.Index("ix_agent_actions_workflow_id", "workflow_id"),
        sa.Index("ix_agent_actions_tool_name", "tool_name"),
        sa.Index("ix_agent_actions_executed_at", "executed_at"),
    )

    # Seed default tiers and the settings row
    now = datetime.utcnow()
    tiers = sa.table(
        "subscription_tiers",
        sa.column("name", sa.String),
        sa.column("user_type", sa.String),
        sa.column("features", sa.JSON),
        sa.column("created_at", sa.DateTime),
    )
    op.bulk_insert(
        tiers,
        [
            {"name": name, "user_type": user_type, "features": features, "created_at": now}
            for name, user_type, features in DEFAULT_TIERS
        ],
    )

    subscription_settings = sa.table(
        "subscription_settings",
        sa.column("id", sa.Integer),
        sa.column("enable_user_subscriptions", sa.Boolean),
        sa.column("enable_coach_subscriptions", sa.Boolean),
        sa.column("updated_by", sa.String),
        sa.column("updated_at", sa.DateTime),
    )
    op.bulk_insert(
        subscription_settings,
        [
            {
                "id": 1,
                "enable_user_subscriptions": True,
                "enable_coach_subscriptions": True,
                "updated_by": "system",
                "updated_at": now,
            }
        ],
    )


def downgrade() -> None:
    """Drop all tables created in upgrade."""
    op.drop_table("agent_actions")
    op.drop_table("agent_workflows")
    op.drop_table("resources")
    op.drop_table("device_tokens")
    op.drop_table("file_storage_usage")
    op.drop_table("usage_tracking")
    op.drop_table("subscription_settings")
    op.drop_table("subscription_exclusions")
    op.drop_table("user_subscriptions")
    op.drop_table("subscription_tiers")
    op.drop_table("quiz_responses")
    op.drop_table("quiz_questions")
    op.drop_table("quizzes")
    op.drop_table("journal_entry_tags")
    op.drop_table("tags")
    op.drop_table("journal_entries")
    op.drop_table("goals")
    op.drop_table("coach_ratings")
    op.drop_table("coach_messages")
    op.drop_table("connections")
    op.drop_table("coach_profiles")
    op.drop_table("users")
