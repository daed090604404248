# ecolens/services/aggregation.py
"""
Read-time aggregates over a user's emissions.

Every total here is the emission's full impact, ``carbon_value * quantity``,
so the windowed figures add up to the same numbers as ``User.total_co2``.
Grams are used internally; ``...Kg`` keys are converted on the way out.
"""
import calendar
import math
from datetime import datetime, timedelta
from typing import Dict, Any, List, Optional, Tuple

from sqlalchemy import func
from sqlalchemy.orm import Session

from ecolens.db.crud import find_user_by_id, query_emissions, to_naive_utc
from ecolens.db.models import Emission, Category, utcnow, isoformat_utc
from ecolens.services import insights

PERIOD_DAYS = {"weekly": 7, "monthly": 30, "yearly": 365}
DEFAULT_PERIOD = "weekly"

MIN_DAYS, MAX_DAYS = 1, 365
DEFAULT_LIMIT, MAX_LIMIT = 10, 100

CATEGORY_COLORS = {
    "food": "#10b981",
    "beverage": "#14b8a6",
    "clothing": "#0d9488",
    "electronics": "#059669",
    "transportation": "#047857",
    "household": "#065f46",
    "packaging": "#064e3b",
    "other": "#6b7280",
}

WEEKDAY_ABBR = ("Mon", "Tue", "Wed", "Thu", "Fri", "Sat", "Sun")
MONTH_ABBR = ("Jan", "Feb", "Mar", "Apr", "May", "Jun",
              "Jul", "Aug", "Sep", "Oct", "Nov", "Dec")

_total_expr = func.sum(Emission.carbon_value * Emission.quantity)

# --------------------------------------------------
# Parameter parsing (never fails, falls back instead)
# --------------------------------------------------

def parse_period(value: Optional[str]) -> str:
    value = (value or "").strip().lower()
    return value if value in PERIOD_DAYS else DEFAULT_PERIOD


def _parse_int(value, default: int, lower: int, upper: int) -> int:
    try:
        number = int(str(value).strip())
    except (TypeError, ValueError):
        return default
    return max(lower, min(upper, number))


def parse_days(value, default: int) -> int:
    return _parse_int(value, default, MIN_DAYS, MAX_DAYS)


def parse_limit(value, default: int = DEFAULT_LIMIT) -> int:
    return _parse_int(value, default, 1, MAX_LIMIT)

# --------------------------------------------------
# Helpers
# --------------------------------------------------

def round_half_up(value: float) -> int:
    return int(math.floor(value + 0.5))


def category_color(category: Optional[str]) -> str:
    return CATEGORY_COLORS.get(category or "other", CATEGORY_COLORS["other"])


def _title(category: str) -> str:
    return category[:1].upper() + category[1:]


def _shift_months(value: datetime, months: int) -> datetime:
    index = value.year * 12 + value.month - 1 + months
    year, month = divmod(index, 12)
    month += 1
    day = min(value.day, calendar.monthrange(year, month)[1])
    return value.replace(year=year, month=month, day=day)


def _sum(emissions) -> float:
    return sum(e.total_carbon() for e in emissions)


def _now(now: Optional[datetime]) -> datetime:
    return to_naive_utc(now) if now else utcnow()

# --------------------------------------------------
# Daily
# --------------------------------------------------

def daily_total(db: Session, user_id: str, day: str) -> Dict[str, Any]:
    row = (
        db.query(Emission.date, _total_expr.label("total"), func.count(Emission.id).label("count"))
        .filter(Emission.user_id == user_id, Emission.date == day)
        .group_by(Emission.date)
        .first()
    )
    if not row:
        return {"date": day, "totalCO2": 0.0, "itemCount": 0}
    return {"date": day, "totalCO2": float(row.total or 0), "itemCount": int(row.count)}


def daily_summary(db: Session, user_id: str, day: str) -> Dict[str, Any]:
    user = find_user_by_id(db, user_id)
    summary = daily_total(db, user_id, day)
    goal = user.daily_goal
    summary["goal"] = goal
    summary["percentOfGoal"] = round_half_up(summary["totalCO2"] / goal * 100) if goal else 0
    return summary


def history(db: Session, user_id: str, days: int, now: datetime = None) -> List[Dict[str, Any]]:
    find_user_by_id(db, user_id)
    now = _now(now)
    rows = query_emissions(db, user_id, start=now - timedelta(days=days))

    by_date: Dict[str, Dict[str, Any]] = {}
    for e in rows:
        bucket = by_date.setdefault(e.date, {"date": e.date, "totalCO2": 0.0, "items": []})
        bucket["totalCO2"] += e.total_carbon()
        bucket["items"].append({
            "id": e.id,
            "name": e.object_name,
            "carbonValue": e.carbon_value,
            "quantity": e.quantity,
            "category": e.category,
        })

    return sorted(by_date.values(), key=lambda b: b["date"], reverse=True)


def recent(db: Session, user_id: str, limit: int) -> List[Dict[str, Any]]:
    find_user_by_id(db, user_id)
    return [
        {
            "id": e.id,
            "itemName": e.object_name,
            "category": e.category or Category.other.value,
            "impactKg": e.total_carbon() / 1000,
            "scannedAt": isoformat_utc(e.scanned_at),
            "imageUrl": e.image_url,
        }
        for e in query_emissions(db, user_id, limit=limit)
    ]

# --------------------------------------------------
# Category breakdown
# --------------------------------------------------

def category_breakdown(db: Session, user_id: str, days: int, now: datetime = None) -> List[Dict[str, Any]]:
    find_user_by_id(db, user_id)
    start = _now(now) - timedelta(days=days)

    rows = (
        db.query(Emission.category, _total_expr.label("total"), func.count(Emission.id).label("count"))
        .filter(Emission.user_id == user_id, Emission.scanned_at >= start)
        .group_by(Emission.category)
        .all()
    )
    overall = sum(float(r.total or 0) for r in rows)

    breakdown = []
    for r in rows:
        category = r.category or Category.other.value
        total = float(r.total or 0)
        breakdown.append({
            "category": _title(category),
            "percentage": round_half_up(total / overall * 100) if overall > 0 else 0,
            "totalCO2": total,
            "impactKg": total / 1000,
            "count": int(r.count),
            "color": category_color(category),
        })

    breakdown.sort(key=lambda b: (-b["totalCO2"], b["category"]))
    return breakdown

# --------------------------------------------------
# Period dashboard
# --------------------------------------------------

def top_category_and_item(emissions) -> Tuple[Optional[str], Optional[str]]:
    """
    Highest-CO2 category (first seen wins a tie) and its most scanned object.
    Objects scanned equally often are ordered by name.
    """
    totals: Dict[str, float] = {}
    items: Dict[str, Dict[str, int]] = {}
    for e in emissions:
        category = e.category or Category.other.value
        totals[category] = totals.get(category, 0.0) + e.total_carbon()
        counts = items.setdefault(category, {})
        counts[e.object_name] = counts.get(e.object_name, 0) + 1

    top_category, max_co2 = None, 0.0
    for category, co2 in totals.items():
        if co2 > max_co2:
            top_category, max_co2 = category, co2

    if top_category is None:
        return None, None

    top_item = min(items[top_category].items(), key=lambda kv: (-kv[1], kv[0]))[0]
    return top_category, top_item


def trend_series(emissions, period: str, now: datetime) -> List[Dict[str, Any]]:
    points = []

    if period == "weekly":
        for i in range(6, -1, -1):
            day = (now - timedelta(days=i)).date()
            day_str = day.isoformat()
            co2 = _sum(e for e in emissions if e.date == day_str)
            points.append({"label": WEEKDAY_ABBR[day.weekday()], "value": round(co2 / 1000, 3)})

    elif period == "monthly":
        for i in range(3, -1, -1):
            week_end = now - timedelta(days=i * 7)
            week_start = week_end - timedelta(days=7)
            co2 = _sum(e for e in emissions if week_start < e.scanned_at <= week_end)
            points.append({"label": f"W{4 - i}", "value": round(co2 / 1000, 3)})

    else:
        for i in range(5, -1, -1):
            month_end = _shift_months(now, -i)
            month_start = _shift_months(month_end, -1)
            co2 = _sum(e for e in emissions if month_start < e.scanned_at <= month_end)
            points.append({"label": MONTH_ABBR[month_end.month - 1], "value": round(co2 / 1000, 3)})

    return points


def dashboard_stats(db: Session, user_id: str, period: str, now: datetime = None) -> Dict[str, Any]:
    """
    Period-scoped dashboard: this window against the same-length window
    before it, the leading category and object, and a trend series.

    ``improvementPercent`` is reported clamped at 0, while ``comparisonText``
    is written from the signed value so a regression is still described.
    """
    find_user_by_id(db, user_id)
    period = parse_period(period)
    now = _now(now)
    window = timedelta(days=PERIOD_DAYS[period])
    start = now - window

    current = query_emissions(db, user_id, start=start)
    previous = query_emissions(db, user_id, start=start - window, end=start)

    total_scans = len(current)
    total_co2 = _sum(current)
    previous_co2 = _sum(previous)

    improvement = 0
    if previous_co2 > 0:
        improvement = round_half_up((previous_co2 - total_co2) / previous_co2 * 100)

    top_category, top_item = top_category_and_item(current)

    return {
        "metrics": {
            "label": _title(period),
            "totalScans": total_scans,
            "footprintKg": total_co2 / 1000,
            "previousFootprintKg": previous_co2 / 1000,
            "improvementPercent": max(improvement, 0),
            "topCategory": _title(top_category) if top_category else "None",
            "topItem": top_item or "None",
            "comparisonText": insights.comparison_text(improvement, period, total_scans),
            "tip": insights.category_tip(top_category),
        },
        "trendData": trend_series(current, period, now),
    }
