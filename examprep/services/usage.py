"""Quota-gated actions recorded in the usage event log."""

from __future__ import annotations

from datetime import datetime

from sqlalchemy import select
from sqlalchemy.ext.asyncio import AsyncSession

from examprep.config import ExamPrepSettings
from examprep.db.models.core import SubscriptionPlan, UsageEvent, User
from examprep.domain.models import QuotaDecision, QuotaUsage
from examprep.services.quota import QuotaService

DOWNLOADS = "downloads"
PRIORITY_SUPPORT = "priority_support"


class DownloadService:
    def __init__(self, session: AsyncSession, settings: ExamPrepSettings | None = None) -> None:
        self.quota = QuotaService(session, settings=settings)

    async def check_and_record_download(
        self,
        user: User,
        paper_id: int,
        *,
        plan: SubscriptionPlan | None = None,
        now: datetime | None = None,
    ) -> QuotaDecision:
        return await self.quota.check_and_record(user, DOWNLOADS, paper_id, plan=plan, now=now)

    async def download_quota(self, user: User, now: datetime | None = None) -> list[QuotaUsage]:
        return await self.quota.usage_summary(user, DOWNLOADS, now=now)


class SupportRequestService:
    def __init__(self, session: AsyncSession, settings: ExamPrepSettings | None = None) -> None:
        self.session = session
        self.quota = QuotaService(session, settings=settings)

    async def check_and_record_support_request(
        self,
        user: User,
        submission_id: int | str,
        *,
        plan: SubscriptionPlan | None = None,
        now: datetime | None = None,
    ) -> QuotaDecision:
        return await self.quota.check_and_record(
            user, PRIORITY_SUPPORT, submission_id, plan=plan, now=now
        )

    async def support_quota(self, user: User, now: datetime | None = None) -> list[QuotaUsage]:
        return await self.quota.usage_summary(user, PRIORITY_SUPPORT, now=now)

    async def list_requests(self, user: User) -> list[UsageEvent]:
        stmt = (
            select(UsageEvent)
            .where(UsageEvent.user_id == user.id, UsageEvent.feature_key == PRIORITY_SUPPORT)
            .order_by(UsageEvent.created_at.desc())
        )
        result = await self.session.execute(stmt)
        return list(result.scalars())


__all__ = ["DOWNLOADS", "PRIORITY_SUPPORT", "DownloadService", "SupportRequestService"]
