"""Startup seed helpers."""

from __future__ import annotations

from sqlalchemy import select
from sqlalchemy.ext.asyncio import AsyncSession

from examprep.db.models.core import SubscriptionPlan
from examprep.domain.models import PlanFeatureList
from examprep.utils.datetime import utc_now

DEFAULT_PLANS = (
    {
        "code": "FREE",
        "name": "Free",
        "description": "Free tier",
        "monthly_price": 0.0,
        "priority": 0,
        "is_default": True,
        "features": [
            {"text": "3 paper downloads per day", "key": "downloads", "is_quota": True,
             "limit": 3, "period": "daily"},
            {"text": "Bookmark up to 5 papers", "key": "bookmarks", "is_quota": True, "limit": 5},
            {"text": "2 practice exams per week", "key": "take_exam", "is_quota": True,
             "limit": 2, "period": "weekly"},
        ],
    },
    {
        "code": "PRO",
        "name": "Pro",
        "description": "Pro tier",
        "monthly_price": 5.0,
        "priority": 50,
        "is_default": False,
        "features": [
            {"text": "50 paper downloads per month", "key": "downloads", "is_quota": True,
             "limit": 50, "period": "monthly"},
            {"text": "Bookmark up to 100 papers", "key": "bookmarks", "is_quota": True,
             "limit": 100},
            {"text": "Unlimited practice exams", "key": "take_exam", "is_quota": True,
             "limit": -1},
            {"text": "2 priority support requests per month", "key": "priority_support",
             "is_quota": True, "limit": 2, "period": "monthly"},
        ],
    },
    {
        "code": "PREMIUM",
        "name": "Premium",
        "description": "Premium tier",
        "monthly_price": 15.0,
        "priority": 100,
        "is_default": False,
        "features": [
            {"text": "Unlimited paper downloads", "key": "downloads", "is_quota": True,
             "limit": -1},
            {"text": "Unlimited bookmarks", "key": "bookmarks", "is_quota": True, "limit": -1},
            {"text": "Unlimited practice exams", "key": "take_exam", "is_quota": True,
             "limit": -1},
            {"text": "Priority support", "key": "priority_support", "is_quota": True,
             "limit": 10, "period": "monthly"},
            {"text": "Early access to new papers", "key": "early_access", "is_quota": False},
        ],
    },
)


async def ensure_subscription_plans(session: AsyncSession) -> None:
    """Ensure default Free/Pro/Premium plans exist and stay in sync."""

    for payload in DEFAULT_PLANS:
        features = [
            feature.model_dump() for feature in PlanFeatureList.validate_python(payload["features"])
        ]
        stmt = select(SubscriptionPlan).where(SubscriptionPlan.code == payload["code"])
        plan = (await session.execute(stmt)).scalar_one_or_none()
        now = utc_now()
        if plan:
            plan.name = payload["name"]
            plan.description = payload["description"]
            plan.features = features
            plan.monthly_price = payload["monthly_price"]
            plan.priority = payload["priority"]
            plan.is_default = payload["is_default"]
            plan.is_active = True
            plan.updated_at = now
        else:
            session.add(
                SubscriptionPlan(
                    code=payload["code"],
                    name=payload["name"],
                    description=payload["description"],
                    features=features,
                    monthly_price=payload["monthly_price"],
                    priority=payload["priority"],
                    is_default=payload["is_default"],
                    is_active=True,
                    created_at=now,
                    updated_at=now,
                )
            )

    await session.commit()


__all__ = ["DEFAULT_PLANS", "ensure_subscription_plans"]
