"""Paper bookmarks capped by the plan's active-bookmark quota."""

from __future__ import annotations

from datetime import datetime

from sqlalchemy import func, select
from sqlalchemy.ext.asyncio import AsyncSession

from examprep.config import ExamPrepSettings, get_settings
from examprep.db.models.core import Bookmark, Paper, SubscriptionPlan, User
from examprep.domain.models import BookmarkToggle
from examprep.logging import get_logger
from examprep.services.subscriptions import SubscriptionService, plan_features
from examprep.utils.datetime import utc_now

log = get_logger("bookmarks")

BOOKMARKS = "bookmarks"


class BookmarkService:
    """Unlike period quotas, the bookmark limit caps how many are active at once."""

    def __init__(self, session: AsyncSession, settings: ExamPrepSettings | None = None) -> None:
        self.session = session
        self.settings = settings or get_settings()
        self.subscriptions = SubscriptionService(session, settings=self.settings)

    async def get_bookmark(self, user: User, paper_id: int) -> Bookmark | None:
        stmt = select(Bookmark).where(
            Bookmark.user_id == user.id,
            Bookmark.paper_id == paper_id,
            Bookmark.active.is_(True),
        )
        result = await self.session.execute(stmt)
        return result.scalars().first()

    async def count_active(self, user: User) -> int:
        stmt = (
            select(func.count())
            .select_from(Bookmark)
            .where(Bookmark.user_id == user.id, Bookmark.active.is_(True))
        )
        result = await self.session.execute(stmt)
        return int(result.scalar_one())

    async def list_bookmarked_papers(self, user: User) -> list[Paper]:
        stmt = (
            select(Paper)
            .join(Bookmark, Bookmark.paper_id == Paper.id)
            .where(Bookmark.user_id == user.id, Bookmark.active.is_(True))
            .order_by(Bookmark.created_at.desc())
        )
        result = await self.session.execute(stmt)
        return list(result.scalars())

    async def toggle(
        self,
        user: User,
        paper_id: int,
        *,
        plan: SubscriptionPlan | None = None,
        now: datetime | None = None,
    ) -> BookmarkToggle:
        now = now or utc_now()
        stmt = select(Bookmark).where(Bookmark.user_id == user.id, Bookmark.paper_id == paper_id)
        existing = (await self.session.execute(stmt)).scalars().first()

        if existing is not None and existing.active:
            existing.active = False
            existing.removed_at = now
            await self.session.flush()
            return BookmarkToggle(success=True, bookmarked=False, message="Bookmark removed.")

        plan = plan or await self.subscriptions.get_plan(user)
        feature = next((f for f in plan_features(plan) if f.key == BOOKMARKS), None)
        if feature is None or not feature.is_quota:
            return BookmarkToggle(
                success=False,
                bookmarked=False,
                message="Your plan doesn't include bookmarking.",
            )

        if not feature.is_unlimited:
            limit = feature.limit or 0
            active = await self.count_active(user)
            if active >= limit:
                log.info("bookmark_limit_reached", user_id=user.id, limit=limit)
                return BookmarkToggle(
                    success=False,
                    bookmarked=False,
                    message=f"You have reached your bookmark limit of {limit}.",
                )

        # A re-added bookmark counts as new for ordering.
        if existing is not None:
            existing.active = True
            existing.removed_at = None
            existing.created_at = now
        else:
            self.session.add(
                Bookmark(user_id=user.id, paper_id=paper_id, active=True, created_at=now)
            )
        await self.session.flush()
        return BookmarkToggle(success=True, bookmarked=True, message="Paper bookmarked!")


__all__ = ["BOOKMARKS", "BookmarkService"]
