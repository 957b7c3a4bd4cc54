"""Subscription lookups: the active plan, its features and the quota anchor."""

from __future__ import annotations

from datetime import datetime

from sqlalchemy import and_, or_, select
from sqlalchemy.ext.asyncio import AsyncSession
from sqlalchemy.orm import selectinload

from examprep.config import ExamPrepSettings, get_settings
from examprep.db.models.core import SubscriptionPlan, User, UserSubscription
from examprep.domain.models import PlanFeature, PlanFeatureList
from examprep.logging import get_logger
from examprep.services.exceptions import SubscriptionError
from examprep.utils.datetime import ensure_utc, utc_now

log = get_logger("subscriptions")


def plan_features(plan: SubscriptionPlan | None) -> list[PlanFeature]:
    """Validate the plan's JSON feature list into typed features."""

    if plan is None or not plan.features:
        return []
    return PlanFeatureList.validate_python(plan.features)


class SubscriptionService:
    def __init__(self, session: AsyncSession, settings: ExamPrepSettings | None = None) -> None:
        self.session = session
        self.settings = settings or get_settings()

    async def get_active_subscription(
        self, user: User, now: datetime | None = None
    ) -> UserSubscription | None:
        now = now or utc_now()
        stmt = (
            select(UserSubscription)
            .options(selectinload(UserSubscription.plan))
            .where(
                and_(
                    UserSubscription.user_id == user.id,
                    UserSubscription.status == "active",
                    or_(
                        UserSubscription.expires_at.is_(None),
                        UserSubscription.expires_at > now,
                    ),
                )
            )
            .order_by(UserSubscription.priority.desc(), UserSubscription.starts_at.desc())
        )
        result = await self.session.execute(stmt)
        return result.scalars().first()

    async def ensure_default_subscription(self, user: User) -> UserSubscription:
        """Make sure the user always has an active default plan record."""

        default_plan = await self._get_default_plan()
        if default_plan is None:
            raise SubscriptionError("No default subscription plan configured.")

        stmt = select(UserSubscription).where(
            UserSubscription.user_id == user.id,
            UserSubscription.plan_id == default_plan.id,
        )
        result = await self.session.execute(stmt)
        subscription = result.scalar_one_or_none()
        now = utc_now()
        if subscription is None:
            subscription = UserSubscription(
                user_id=user.id,
                plan_id=default_plan.id,
                status="active",
                priority=default_plan.priority,
                starts_at=now,
                expires_at=None,
            )
            self.session.add(subscription)
            subscription.plan = default_plan
            log.info("default_subscription_created", user_id=user.id, plan_code=default_plan.code)
        else:
            subscription.priority = default_plan.priority
            if subscription.status != "active":
                subscription.status = "active"
                subscription.starts_at = subscription.starts_at or now
            subscription.expires_at = None
            if subscription.plan is None:
                subscription.plan = default_plan

        await self.session.flush()
        return subscription

    async def get_plan(self, user: User) -> SubscriptionPlan:
        subscription = await self.get_active_subscription(user)
        if subscription is None:
            subscription = await self.ensure_default_subscription(user)
        plan = subscription.plan
        if plan is None:
            plan = await self.session.get(SubscriptionPlan, subscription.plan_id)
        if plan is None:
            raise SubscriptionError("Subscription references a plan that no longer exists.")
        return plan

    async def get_subscription_anchor(self, user: User, now: datetime | None = None) -> datetime:
        """Date periodic quota windows are counted from.

        The active subscription's start wins, then the account creation date,
        then ``now``.
        """

        now = now or utc_now()
        subscription = await self.get_active_subscription(user, now=now)
        if subscription is not None and subscription.starts_at is not None:
            return ensure_utc(subscription.starts_at)
        if user.created_at is not None:
            return ensure_utc(user.created_at)
        return ensure_utc(now)

    async def _get_default_plan(self) -> SubscriptionPlan | None:
        stmt = (
            select(SubscriptionPlan)
            .where(
                SubscriptionPlan.is_default.is_(True),
                SubscriptionPlan.is_active.is_(True),
            )
            .order_by(SubscriptionPlan.priority.desc())
        )
        result = await self.session.execute(stmt)
        return result.scalars().first()


__all__ = ["SubscriptionService", "plan_features"]
