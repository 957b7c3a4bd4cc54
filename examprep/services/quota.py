"""Period-based quota tracking anchored to the user's subscription date."""

from __future__ import annotations

from datetime import datetime, timedelta

from dateutil.relativedelta import relativedelta
from sqlalchemy import func, select
from sqlalchemy.ext.asyncio import AsyncSession

from examprep.config import ExamPrepSettings, get_settings
from examprep.db.models.core import SubscriptionPlan, UsageEvent, User
from examprep.domain.models import (
    PlanFeature,
    QuotaDecision,
    QuotaPeriod,
    QuotaUsage,
    QuotaWindow,
    feature_label,
    feature_name,
)
from examprep.logging import get_logger
from examprep.services.subscriptions import SubscriptionService, plan_features
from examprep.utils.datetime import EPOCH, ensure_utc, start_of_day, utc_now

log = get_logger("quota")

ANCHORED_PERIODS = ("weekly", "monthly", "yearly")


def _boundary(anchor: datetime, period: QuotaPeriod, periods: int) -> datetime:
    if period == "weekly":
        return anchor + timedelta(weeks=periods)
    if period == "monthly":
        return anchor + relativedelta(months=periods)
    if period == "yearly":
        return anchor + relativedelta(years=periods)
    raise ValueError(f"Period '{period}' has no anchored boundaries.")


def _periods_elapsed(anchor: datetime, now: datetime, period: QuotaPeriod) -> int:
    if period == "weekly":
        return (now - anchor) // timedelta(weeks=1)
    if period == "monthly":
        elapsed = (now.year - anchor.year) * 12 + (now.month - anchor.month)
    else:
        elapsed = now.year - anchor.year
    # Calendar difference overshoots by one when now is earlier in its month/year.
    while _boundary(anchor, period, elapsed) > now:
        elapsed -= 1
    return elapsed


def compute_window(period: QuotaPeriod, anchor: datetime | None, now: datetime) -> QuotaWindow:
    """Return the quota window containing ``now``.

    Daily windows follow UTC calendar days. Weekly, monthly and yearly windows
    start on the latest ``anchor + k periods`` boundary not after ``now``; each
    boundary is derived from the anchor itself so month-end anchors clamp per
    month instead of drifting. An anchor in the future yields a negative ``k``.
    Lifetime windows start at the epoch and never reset.
    """

    now = ensure_utc(now)
    if period == "lifetime":
        return QuotaWindow(period=period, window_start=EPOCH, next_reset=None)
    if period == "daily":
        window_start = start_of_day(now)
        return QuotaWindow(
            period=period, window_start=window_start, next_reset=window_start + timedelta(days=1)
        )
    if period not in ANCHORED_PERIODS:
        raise ValueError(f"Unknown quota period: {period!r}")

    base = start_of_day(anchor if anchor is not None else now)
    elapsed = _periods_elapsed(base, now, period)
    return QuotaWindow(
        period=period,
        window_start=_boundary(base, period, elapsed),
        next_reset=_boundary(base, period, elapsed + 1),
    )


class QuotaService:
    """Counts usage events against a plan's quota features and records new ones.

    The user row is locked before counting when ``quota.lock_user_row`` is on,
    which serialises concurrent checks for one user on backends with row
    locks. SQLite has none, so two concurrent calls near the limit can both
    be allowed there.
    """

    def __init__(
        self,
        session: AsyncSession,
        settings: ExamPrepSettings | None = None,
        subscriptions: SubscriptionService | None = None,
    ) -> None:
        self.session = session
        self.settings = settings or get_settings()
        self.subscriptions = subscriptions or SubscriptionService(session, settings=self.settings)

    async def count_usage(self, user_id: int, feature_key: str, since: datetime) -> int:
        stmt = (
            select(func.count())
            .select_from(UsageEvent)
            .where(
                UsageEvent.user_id == user_id,
                UsageEvent.feature_key == feature_key,
                UsageEvent.created_at >= since,
            )
        )
        result = await self.session.execute(stmt)
        return int(result.scalar_one())

    async def check_and_record(
        self,
        user: User,
        feature_key: str,
        subject_id: str | int | None = None,
        *,
        plan: SubscriptionPlan | None = None,
        now: datetime | None = None,
    ) -> QuotaDecision:
        now = ensure_utc(now or utc_now())
        label = feature_label(feature_key)
        plan = plan or await self.subscriptions.get_plan(user)
        features = [f for f in plan_features(plan) if f.key == feature_key]

        if not features:
            log.info("quota_feature_missing", user_id=user.id, feature=feature_key, plan=plan.code)
            return QuotaDecision(
                allowed=False,
                message=f"Your current plan does not include {feature_name(feature_key)}.",
            )

        quota_features = [f for f in features if f.is_quota]
        if not quota_features:
            return QuotaDecision(
                allowed=True, message=f"Your plan includes {feature_name(feature_key)}."
            )

        if self.settings.quota.lock_user_row:
            await self.session.execute(select(User.id).where(User.id == user.id).with_for_update())

        anchor = await self._anchor_for(user, quota_features, now)
        resets: list[datetime] = []
        for feature in quota_features:
            if feature.is_unlimited:
                continue
            limit = feature.limit or 0
            period = self._period_of(feature)
            window = compute_window(period, anchor, now)
            used = await self.count_usage(user.id, feature_key, window.window_start)
            if used >= limit:
                log.info(
                    "quota_denied",
                    user_id=user.id,
                    feature=feature_key,
                    period=period,
                    limit=limit,
                    used=used,
                )
                return QuotaDecision(
                    allowed=False,
                    message=f"You have reached your {period} {label} limit of {limit}.",
                    next_reset=window.next_reset,
                )
            if window.next_reset is not None:
                resets.append(window.next_reset)

        self.session.add(
            UsageEvent(
                user_id=user.id,
                feature_key=feature_key,
                subject_id=str(subject_id) if subject_id is not None else None,
                created_at=now,
            )
        )
        await self.session.flush()
        log.info("quota_recorded", user_id=user.id, feature=feature_key, subject_id=subject_id)
        return QuotaDecision(
            allowed=True,
            message=f"{label[:1].upper()}{label[1:]} recorded.",
            next_reset=min(resets) if resets else None,
        )

    async def usage_summary(
        self,
        user: User,
        feature_key: str,
        *,
        plan: SubscriptionPlan | None = None,
        now: datetime | None = None,
    ) -> list[QuotaUsage]:
        now = ensure_utc(now or utc_now())
        plan = plan or await self.subscriptions.get_plan(user)
        quota_features = [f for f in plan_features(plan) if f.key == feature_key and f.is_quota]
        if not quota_features:
            return []

        anchor = await self._anchor_for(user, quota_features, now)
        summary: list[QuotaUsage] = []
        for feature in quota_features:
            period = self._period_of(feature)
            window = compute_window(period, anchor, now)
            used = await self.count_usage(user.id, feature_key, window.window_start)
            limit = -1 if feature.is_unlimited else (feature.limit or 0)
            summary.append(
                QuotaUsage(
                    key=feature_key,
                    limit=limit,
                    period=period,
                    used=used,
                    remaining=None if limit == -1 else max(0, limit - used),
                    window_start=window.window_start,
                    next_reset=window.next_reset,
                )
            )
        return summary

    def _period_of(self, feature: PlanFeature) -> QuotaPeriod:
        return feature.period or self.settings.quota.default_period

    async def _anchor_for(
        self, user: User, features: list[PlanFeature], now: datetime
    ) -> datetime | None:
        if not any(self._period_of(f) in ANCHORED_PERIODS for f in features):
            return None
        return await self.subscriptions.get_subscription_anchor(user, now=now)


__all__ = ["QuotaService", "compute_window"]
