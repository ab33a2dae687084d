"""
Request Dependencies.

Wires repositories and domain services for API endpoints, and resolves the
calling user from the ``X-User-Id`` header set by the upstream identity
provider.
"""

from typing import Annotated, Optional

from fastapi import Depends, Header
from sqlalchemy.ext.asyncio import AsyncSession

from projectbrain.agent_core.action_tracking import AgentActionTrackingService
from projectbrain.agent_core.orchestrator import AgentOrchestrator
from projectbrain.agent_core.service import AgentService
from projectbrain.core.cache import get_redis
from projectbrain.core.database import get_session
from projectbrain.core.database.entities.users import User, UserRole
from projectbrain.core.database.repositories import SqlRepoBundle, build_sql_repos_from_session
from projectbrain.core.database.session import async_session_maker
from projectbrain.core.errors import AppException, ForbiddenException
from projectbrain.core.logging_config import get_logger
from projectbrain.server.core.config import settings
from projectbrain.services.coach_messages import CoachMessageService
from projectbrain.services.coach_profiles import CoachProfileService
from projectbrain.services.coach_ratings import CoachRatingService
from projectbrain.services.connections import ConnectionService
from projectbrain.services.device_token_cleanup import DeviceTokenCleanupService
from projectbrain.services.email import MailgunEmailService
from projectbrain.services.feature_flags import FeatureFlagService
from projectbrain.services.feature_gate import FeatureGateService
from projectbrain.services.goals import GoalService
from projectbrain.services.journal import JournalEntryService, TagService
from projectbrain.services.push_notifications import DeviceTokenService, PushNotificationService
from projectbrain.services.quizzes import QuizResponseService, QuizService
from projectbrain.services.resources import ResourceService
from projectbrain.services.statistics import StatisticsService
from projectbrain.services.stripe_client import StripeClient
from projectbrain.services.subscriptions import SubscriptionAnalyticsService, SubscriptionService
from projectbrain.services.usage_tracking import UsageTrackingService
from projectbrain.services.user_activity import UserActivityService
from projectbrain.services.users import UserService

logger = get_logger(__name__)


# =====================================================================
# Repositories and identity
# =====================================================================


def get_repos(session: AsyncSession = Depends(get_session)) -> SqlRepoBundle:
    return build_sql_repos_from_session(session=session)


ReposDep = Annotated[SqlRepoBundle, Depends(get_repos)]


def get_caller_id(x_user_id: Optional[str] = Header(default=None, alias="X-User-Id")) -> str:
    """The authenticated identity id, whether or not a user row exists yet."""
    if not x_user_id:
        raise AppException("UNAUTHORIZED", "Missing X-User-Id header", status_code=401)
    return x_user_id


CallerIdDep = Annotated[str, Depends(get_caller_id)]


async def get_current_user(caller_id: CallerIdDep, repos: ReposDep) -> User:
    user = await repos.users.get_by_id(caller_id)
    if user is None:
        raise AppException("USER_NOT_FOUND", "User is not registered", status_code=401)
    return user


CurrentUserDep = Annotated[User, Depends(get_current_user)]


async def require_coach(user: CurrentUserDep) -> User:
    if not user.has_role(UserRole.COACH):
        raise ForbiddenException("Coach role required")
    return user


async def require_admin(user: CurrentUserDep) -> User:
    if not user.has_role(UserRole.ADMIN):
        raise ForbiddenException("Admin role required")
    return user


CoachUserDep = Annotated[User, Depends(require_coach)]
AdminUserDep = Annotated[User, Depends(require_admin)]


# =====================================================================
# Integrations
# =====================================================================


def get_stripe_client() -> StripeClient:
    return StripeClient(settings.stripe)


def build_push_service(repos: SqlRepoBundle) -> Optional[PushNotificationService]:
    """Push service when Firebase is configured, else None."""
    if not settings.firebase.credentials_json:
        return None
    return PushNotificationService(repos, settings.firebase)


def get_push_service(repos: ReposDep) -> Optional[PushNotificationService]:
    return build_push_service(repos)


def get_email_service() -> Optional[MailgunEmailService]:
    """Mailgun sender when an API key, domain and sender address are configured, else None."""
    mailgun = settings.mailgun
    if not (mailgun.api_key and mailgun.domain and mailgun.from_email):
        return None
    return MailgunEmailService(mailgun, settings.feature_flags)


def get_activity_service() -> Optional[UserActivityService]:
    if not settings.activity.tracking_enabled:
        return None
    return UserActivityService(get_redis(), async_session_maker, settings.activity)


StripeClientDep = Annotated[StripeClient, Depends(get_stripe_client)]
PushServiceDep = Annotated[Optional[PushNotificationService], Depends(get_push_service)]
ActivityServiceDep = Annotated[Optional[UserActivityService], Depends(get_activity_service)]
EmailServiceDep = Annotated[Optional[MailgunEmailService], Depends(get_email_service)]


# =====================================================================
# Domain services
# =====================================================================


def get_user_service(repos: ReposDep) -> UserService:
    return UserService(repos)


def get_coach_profile_service(repos: ReposDep) -> CoachProfileService:
    return CoachProfileService(repos)


def get_connection_service(repos: ReposDep) -> ConnectionService:
    return ConnectionService(repos)


def get_coach_rating_service(repos: ReposDep) -> CoachRatingService:
    return CoachRatingService(repos)


def get_goal_service(repos: ReposDep) -> GoalService:
    return GoalService(repos)


def get_journal_service(repos: ReposDep) -> JournalEntryService:
    return JournalEntryService(repos)


def get_tag_service(repos: ReposDep) -> TagService:
    return TagService(repos)


def get_quiz_service(repos: ReposDep) -> QuizService:
    return QuizService(repos)


def get_quiz_response_service(repos: ReposDep) -> QuizResponseService:
    return QuizResponseService(repos)


def get_usage_service(repos: ReposDep) -> UsageTrackingService:
    return UsageTrackingService(repos)


def get_subscription_service(repos: ReposDep, stripe_client: StripeClientDep) -> SubscriptionService:
    return SubscriptionService(repos, stripe_client)


def get_subscription_analytics_service(repos: ReposDep) -> SubscriptionAnalyticsService:
    return SubscriptionAnalyticsService(repos)


def get_feature_gate_service(
    repos: ReposDep, subscriptions: Annotated[SubscriptionService, Depends(get_subscription_service)]
) -> FeatureGateService:
    return FeatureGateService(repos, subscriptions=subscriptions)


def get_coach_message_service(
    repos: ReposDep,
    feature_gate: Annotated[FeatureGateService, Depends(get_feature_gate_service)],
    push: PushServiceDep,
) -> CoachMessageService:
    return CoachMessageService(repos, feature_gate=feature_gate, push=push)


def get_resource_service(
    repos: ReposDep, feature_gate: Annotated[FeatureGateService, Depends(get_feature_gate_service)]
) -> ResourceService:
    return ResourceService(repos, feature_gate=feature_gate)


def get_device_token_service(repos: ReposDep) -> DeviceTokenService:
    return DeviceTokenService(repos)


def get_statistics_service(repos: ReposDep, activity: ActivityServiceDep) -> StatisticsService:
    return StatisticsService(repos, activity)


def get_feature_flag_service() -> FeatureFlagService:
    return FeatureFlagService(settings.feature_flags)


def get_agent_service(repos: ReposDep) -> AgentService:
    return AgentService(repos)


def get_agent_orchestrator(repos: ReposDep) -> AgentOrchestrator:
    return AgentOrchestrator(repos)


def get_agent_action_service(repos: ReposDep) -> AgentActionTrackingService:
    return AgentActionTrackingService(repos)


def build_cleanup_service(repos: SqlRepoBundle) -> Optional[DeviceTokenCleanupService]:
    push = build_push_service(repos)
    if push is None:
        return None
    return DeviceTokenCleanupService(repos, push, settings.push_notifications)


UserServiceDep = Annotated[UserService, Depends(get_user_service)]
CoachProfileServiceDep = Annotated[CoachProfileService, Depends(get_coach_profile_service)]
ConnectionServiceDep = Annotated[ConnectionService, Depends(get_connection_service)]
CoachRatingServiceDep = Annotated[CoachRatingService, Depends(get_coach_rating_service)]
CoachMessageServiceDep = Annotated[CoachMessageService, Depends(get_coach_message_service)]
GoalServiceDep = Annotated[GoalService, Depends(get_goal_service)]
JournalServiceDep = Annotated[JournalEntryService, Depends(get_journal_service)]
TagServiceDep = Annotated[TagService, Depends(get_tag_service)]
QuizServiceDep = Annotated[QuizService, Depends(get_quiz_service)]
QuizResponseServiceDep = Annotated[QuizResponseService, Depends(get_quiz_response_service)]
UsageServiceDep = Annotated[UsageTrackingService, Depends(get_usage_service)]
SubscriptionServiceDep = Annotated[SubscriptionService, Depends(get_subscription_service)]
SubscriptionAnalyticsDep = Annotated[SubscriptionAnalyticsService, Depends(get_subscription_analytics_service)]
FeatureGateDep = Annotated[FeatureGateService, Depends(get_feature_gate_service)]
ResourceServiceDep = Annotated[ResourceService, Depends(get_resource_service)]
DeviceTokenServiceDep = Annotated[DeviceTokenService, Depends(get_device_token_service)]
StatisticsServiceDep = Annotated[StatisticsService, Depends(get_statistics_service)]
FeatureFlagServiceDep = Annotated[FeatureFlagService, Depends(get_feature_flag_service)]
AgentServiceDep = Annotated[AgentService, Depends(get_agent_service)]
AgentOrchestratorDep = Annotated[AgentOrchestrator, Depends(get_agent_orchestrator)]
AgentActionServiceDep = Annotated[AgentActionTrackingService, Depends(get_agent_action_service)]
