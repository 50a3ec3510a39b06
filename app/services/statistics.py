from typing import Awaitable, Callable, Optional, Tuple
from sqlalchemy.ext.asyncio import AsyncSession
from fastapi.encoders import jsonable_encoder
from redis.asyncio import Redis
from redis.exceptions import RedisError
from datetime import date, timedelta
import calendar
import json
import logging

from app.core.constants import OPEN_VISIT_STATUSES, DEFAULT_EXPIRING_DAYS, DEFAULT_UPCOMING_DAYS
from app.crud import sale as crud_sale, rental as crud_rental, visit as crud_visit, agent as crud_agent
from app.db.redis_client import STATS_CACHE_TTL
from app.schemas.common import SalesStatisticsParams
from app.schemas.result import OperationResult
from app.services.common import operation_boundary

logger = logging.getLogger(__name__)


def _rows(rows) -> list:
    return [dict(row) for row in rows]


def sales_period(params: SalesStatisticsParams, today: Optional[date] = None) -> Tuple[Optional[date], Optional[date]]:
    """Inclusive date range for the requested period; (None, None) means all time."""
    today = today or date.today()
    if params.period == "year":
        year = params.year or today.year
        return date(year, 1, 1), date(year, 12, 31)
    if params.period == "month":
        year = params.year or today.year
        month = params.month or today.month
        return date(year, month, 1), date(year, month, calendar.monthrange(year, month)[1])
    return None, None


async def _cached(redis: Redis, cache_key: str, build: Callable[[], Awaitable[dict]]) -> dict:
    # 1. --- Checking Redis cache ---
    try:
        cached = await redis.get(cache_key)
        if cached:
            return json.loads(cached)
    except RedisError as e:
        logger.warning("Statistics cache unavailable, computing %s uncached: %s", cache_key, e)
        return jsonable_encoder(await build())

    payload = jsonable_encoder(await build())

    # Cache in Redis
    try:
        await redis.set(cache_key, json.dumps(payload), ex=STATS_CACHE_TTL)
    except RedisError as e:
        logger.warning("Could not cache %s: %s", cache_key, e)
    return payload


class StatisticsServices:
    """
    Dashboard aggregates for the sales, rentals and visits modules.

    Each payload is assembled from several aggregate queries and cached in
    Redis for ``STATS_CACHE_TTL`` seconds, keyed by module and parameters.
    When Redis is unreachable the numbers are computed on every call.
    """

    @staticmethod
    @operation_boundary("Error loading sales statistics")
    async def sales_statistics(params: SalesStatisticsParams, db: AsyncSession, redis: Redis) -> OperationResult:
        cache_key = f"statistics:sales:{params.model_dump_json()}"

        async def build() -> dict:
            date_from, date_to = sales_period(params)
            totals = await crud_sale.get_sales_totals(db, date_from, date_to)
            count = totals["count"]
            return {
                "period": params.period,
                "date_from": date_from,
                "date_to": date_to,
                "total_sales": count,
                "total_value": totals["total_value"],
                "total_commission": totals["total_commission"],
                "average_value": (totals["total_value"] / count) if count else 0,
                "top_agents": _rows(await crud_agent.get_top_agents_by_sales(db)),
                "by_property_type": _rows(await crud_sale.get_sales_by_property_type(db)),
            }

        return OperationResult.ok("Sales statistics retrieved successfully", await _cached(redis, cache_key, build))

    @staticmethod
    @operation_boundary("Error loading rental statistics")
    async def rental_statistics(db: AsyncSession, redis: Redis) -> OperationResult:
        cache_key = "statistics:rentals"

        async def build() -> dict:
            today = date.today()
            active = await crud_rental.get_active_rentals_summary(db)
            values = await crud_rental.get_rent_value_stats(db)
            return {
                "by_status": _rows(await crud_rental.get_rentals_by_status(db)),
                "active_rentals": active["active_count"],
                "monthly_income": active["monthly_income"],
                "expiring_soon": await crud_rental.count_expiring_rentals(
                    db, today, today + timedelta(days=DEFAULT_EXPIRING_DAYS)
                ),
                "average_rent": values["avg_rent"] or 0,
                "min_rent": values["min_rent"] or 0,
                "max_rent": values["max_rent"] or 0,
                "top_agents": _rows(await crud_agent.get_top_agents_by_rentals(db)),
                "by_property_type": _rows(await crud_rental.get_rentals_by_property_type(db)),
            }

        return OperationResult.ok("Rental statistics retrieved successfully", await _cached(redis, cache_key, build))

    @staticmethod
    @operation_boundary("Error loading visit statistics")
    async def visit_statistics(db: AsyncSession, redis: Redis) -> OperationResult:
        cache_key = "statistics:visits"

        async def build() -> dict:
            today = date.today()
            week_start = today - timedelta(days=today.weekday())
            return {
                "by_status": _rows(await crud_visit.get_visits_by_status(db)),
                "today": await crud_visit.count_visits_between(db, today, today),
                "this_week": await crud_visit.count_visits_between(db, week_start, week_start + timedelta(days=6)),
                "upcoming": await crud_visit.count_visits_between(
                    db, today, today + timedelta(days=DEFAULT_UPCOMING_DAYS), statuses=OPEN_VISIT_STATUSES
                ),
                "by_interest": _rows(await crud_visit.get_visits_by_interest(db)),
                "top_agents": _rows(await crud_agent.get_top_agents_by_visits(db)),
                "by_property_type": _rows(await crud_visit.get_visits_by_property_type(db)),
            }

        return OperationResult.ok("Visit statistics retrieved successfully", await _cached(redis, cache_key, build))
