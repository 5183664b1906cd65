"""
Admin analytics dashboard.

Every figure is computed from stored rows: users, orders and the card scan
ledger. Scans stand in for profile views. A period is the window that ends
now and starts at the period's length before it; growth compares it with the
preceding window of the same length.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from datetime import datetime, timedelta, timezone
from typing import Optional

from api.core.config import Settings, get_settings
from api.core.errors import ValidationError
from api.core.utils import as_utc, utcnow
from api.domain.lifecycle import CardStatus
from api.repositories.sql_repository import SQLRepository

PERIODS = ("7d", "30d", "90d", "1y", "all")
DEFAULT_PERIOD = "30d"
MAX_DAILY_POINTS = 30
EPOCH = datetime(1970, 1, 1, tzinfo=timezone.utc)

COUNTRY_NAMES = {
    "FR": "France",
    "BE": "Belgium",
    "CH": "Switzerland",
    "CA": "Canada",
    "US": "USA",
    "GB": "UK",
    "DE": "Germany",
    "ES": "Spain",
    "IT": "Italy",
}


def parse_period(value: Optional[str]) -> str:
    period = (value or DEFAULT_PERIOD).strip().lower()
    if period not in PERIODS:
        raise ValidationError(f"period must be one of: {', '.join(PERIODS)}")
    return period


def period_start(period: str, now: datetime) -> datetime:
    if period == "all":
        return EPOCH
    if period == "1y":
        try:
            return now.replace(year=now.year - 1)
        except ValueError:  # Feb 29
            return now.replace(year=now.year - 1, day=28)
    return now - timedelta(days=int(period[:-1]))


def growth(current: float, previous: float) -> float:
    if not previous:
        return 100.0 if current > 0 else 0.0
    return round((current - previous) / previous * 100, 1)


def percentage(part: int, total: int) -> float:
    return round(part / (total or 1) * 100, 1)


def country_flag(code: str) -> str:
    if len(code) != 2 or not code.isalpha():
        return "\U0001F30D"
    return "".join(chr(0x1F1E6 + ord(ch) - ord("A")) for ch in code.upper())


@dataclass
class AnalyticsService:
    repository: Optional[SQLRepository] = None
    settings: Optional[Settings] = field(default=None)

    def __post_init__(self):
        self.settings = self.settings or get_settings()
        self.repository = self.repository or SQLRepository()

    def _now(self) -> datetime:
        return utcnow()

    def _window(self, period: Optional[str]) -> tuple[datetime, datetime]:
        now = self._now()
        return period_start(parse_period(period), now), now

    def dashboard(self, period: Optional[str] = None) -> dict:
        start, now = self._window(period)
        previous_start = start - (now - start)
        repo = self.repository

        total_users = repo.count_users()
        total_profiles = repo.count_profiles()
        new_users = repo.count_users(since=start)
        period_scans = repo.count_scans(since=start)
        new_orders = repo.count_orders(since=start)
        period_revenue = repo.completed_revenue(since=start)
        card_holders = repo.count_card_holders(status=CardStatus.ACTIVATED.value)

        return {
            "analytics": {
                "totalUsers": total_users,
                "activeUsers": repo.count_users(active=True),
                "totalViews": period_scans,
                "totalRevenue": round(repo.completed_revenue()),
                "conversionRate": percentage(card_holders, total_users) if total_users else 0.0,
                "newUsers": new_users,
                "returningUsers": repo.count_returning_users(since=start),
                "cardsScanned": period_scans,
                "profilesCreated": repo.count_profiles(since=start),
            },
            "growthMetrics": {
                "users": growth(new_users, repo.count_users(since=previous_start, until=start)),
                "scans": growth(period_scans, repo.count_scans(since=previous_start, until=start)),
                "orders": growth(new_orders, repo.count_orders(since=previous_start, until=start)),
                "revenue": growth(period_revenue, repo.completed_revenue(since=previous_start, until=start)),
            },
            "totalCounts": {
                "totalUsers": total_users,
                "totalProfiles": total_profiles,
                "totalCards": repo.count_cards(),
                "totalOrders": repo.count_orders(),
                "totalScans": repo.count_scans(),
                "activeCards": repo.count_cards(status=CardStatus.ACTIVATED.value),
            },
        }

    def daily(self, period: Optional[str] = None) -> list[dict]:
        start, now = self._window(period)
        if start == EPOCH:
            first = as_utc(self.repository.first_user_created_at())
            start = first or now
        days = max(1, min(MAX_DAILY_POINTS, (now.date() - start.date()).days))
        since = datetime.combine(now.date() - timedelta(days=days - 1), datetime.min.time(), tzinfo=timezone.utc)

        users = dict(self.repository.users_by_day(since=since))
        views = dict(self.repository.scans_by_day(since=since))
        revenue = dict(self.repository.revenue_by_day(since=since))
        result = []
        for offset in range(days):
            day = (since + timedelta(days=offset)).date().isoformat()
            result.append(
                {
                    "date": day,
                    "users": users.get(day, 0),
                    "views": views.get(day, 0),
                    "revenue": round(revenue.get(day, 0)),
                }
            )
        return result

    def top_profiles(self, period: Optional[str] = None, limit: int = 5) -> list[dict]:
        if limit < 1:
            raise ValidationError("limit must be >= 1")
        start, _now = self._window(period)
        ranked = self.repository.scans_by_profile(since=start, limit=limit)
        profiles = self.repository.get_profiles(profile_id for profile_id, _count in ranked)
        result = []
        for profile_id, views in ranked:
            profile = profiles.get(profile_id)
            if profile is None:
                continue
            result.append({"id": profile.id, "name": profile.display_name, "slug": profile.slug, "views": views})
        return result

    def devices(self, period: Optional[str] = None) -> list[dict]:
        start, _now = self._window(period)
        counts = {"mobile": 0, "desktop": 0, "tablet": 0}
        for device, count in self.repository.scans_by_device(since=start):
            # unrecognized agents are reported with desktops
            key = device if device in counts else "desktop"
            counts[key] += count
        total = sum(counts.values())
        return [
            {"device": name.capitalize(), "count": count, "percentage": percentage(count, total)}
            for name, count in counts.items()
        ]

    def countries(self, period: Optional[str] = None, limit: int = 5) -> list[dict]:
        if limit < 1:
            raise ValidationError("limit must be >= 1")
        start, _now = self._window(period)
        total = self.repository.count_scans(since=start)
        return [
            {
                "code": code,
                "country": COUNTRY_NAMES.get(code.upper(), code),
                "flag": country_flag(code),
                "users": count,
                "percentage": percentage(count, total),
            }
            for code, count in self.repository.scans_by_country(since=start, limit=limit)
        ]
