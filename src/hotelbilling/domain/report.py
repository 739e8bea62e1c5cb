"""Reconciliation reports over the ledger and the booking snapshots.

Reports are read-only and aggregate in Python with ``Decimal`` so the
figures match the stored cents exactly on every backend. Each grouping is a
dict ordered for display: categories, modes and statuses by descending
amount, days ascending.
"""

import logging
from collections import defaultdict
from collections.abc import Callable, Iterable
from datetime import datetime, timedelta, tzinfo
from decimal import Decimal
from operator import attrgetter
from typing import Any, Optional

from dateutil import tz

from hotelbilling.database.base import Database
from hotelbilling.domain.entities import (
    DateRange,
    LedgerTransaction,
    ReportType,
    RoomStatus,
    TransactionFilter,
    TransactionType,
)
from hotelbilling.domain.errors import ValidationError
from hotelbilling.domain.ledger import LedgerService
from hotelbilling.domain.validation import parse_report_type
from hotelbilling.utils.date_parser import get_period_range, localize, start_of_day

logger = logging.getLogger(__name__)

ZERO = Decimal("0.00")
UNKNOWN = "Unknown"
DASHBOARD_DAYS = 30
RECENT_TRANSACTIONS = 10

SECTIONS = {
    ReportType.FINANCIAL: ("financial",),
    ReportType.OCCUPANCY: ("occupancy",),
    ReportType.BOOKINGS: ("bookings",),
    ReportType.SERVICES: ("services",),
    ReportType.ALL: ("financial", "occupancy", "bookings", "services"),
}


def _group(records: Iterable, key: Callable[[Any], str], amount: Callable[[Any], Decimal]) -> dict:
    """Group records into {key: {"count", "total"}} ordered by total, largest first."""
    groups: dict[str, dict] = defaultdict(lambda: {"count": 0, "total": ZERO})
    for record in records:
        group = groups[key(record)]
        group["count"] += 1
        group["total"] += amount(record)
    return dict(sorted(groups.items(), key=lambda item: (-item[1]["total"], item[0])))


def _total(records: Iterable, amount: Callable[[Any], Decimal]) -> Decimal:
    return sum((amount(record) for record in records), ZERO)


class ReportService:
    """Service for financial, occupancy, booking and service reports."""

    def __init__(self, db: Database, timezone: tzinfo = tz.UTC):
        """Initialize report service.

        Args:
            db: Database instance
            timezone: Zone whose calendar defines periods and daily buckets
        """
        self.db = db
        self.timezone = timezone
        self.ledger = LedgerService(db, timezone=timezone)

    def generate_report(
        self,
        report_type="all",
        period: str = "month",
        start: Optional[datetime] = None,
        end: Optional[datetime] = None,
        now: Optional[datetime] = None,
    ) -> dict:
        """Generate one report section, or all of them.

        Args:
            report_type: financial, occupancy, bookings, services or all
            period: today, week, month, year or custom
            start: Start for the custom period
            end: End for the custom period
            now: Reference moment for named periods, defaults to now

        Returns:
            Dict with ``report_type``, ``period``, ``date_range`` and one key
            per generated section

        Raises:
            ValidationError: If the report type is unknown or the custom
                range ends before it starts
        """
        rtype = parse_report_type(report_type)
        try:
            range_start, range_end = get_period_range(period, self.timezone, start, end, now)
        except ValueError as e:
            raise ValidationError(str(e)) from e
        date_range = DateRange(start=range_start, end=range_end)

        report: dict[str, Any] = {
            "report_type": rtype.value,
            "period": period,
            "date_range": date_range,
        }
        builders = {
            "financial": self.financial_report,
            "occupancy": self.occupancy_report,
            "bookings": self.bookings_report,
            "services": self.services_report,
        }
        for section in SECTIONS[rtype]:
            report[section] = builders[section](date_range)

        logger.debug(
            "Generated %s report for %s .. %s", rtype.value, range_start, range_end
        )
        return report

    def financial_report(self, date_range: DateRange) -> dict:
        """Revenue, expenses and profit for a range."""
        transactions = self.ledger.list_all(
            TransactionFilter(start=date_range.start, end=date_range.end)
        )
        revenue = [t for t in transactions if t.type is TransactionType.REVENUE]
        expenses = [t for t in transactions if t.type is TransactionType.EXPENSE]

        revenue_summary = self._summarize(revenue)
        expense_summary = self._summarize(expenses)
        return {
            "revenue": revenue_summary,
            "expenses": expense_summary,
            "profit": {"total": revenue_summary["total"] - expense_summary["total"]},
        }

    def _summarize(self, transactions: list[LedgerTransaction]) -> dict:
        amount = attrgetter("amount")
        daily: dict[str, Decimal] = defaultdict(lambda: ZERO)
        for txn in transactions:
            daily[self._local_day(txn.date)] += txn.amount

        return {
            "total": _total(transactions, amount),
            "count": len(transactions),
            "by_category": _group(transactions, attrgetter("category"), amount),
            "by_payment_mode": _group(transactions, lambda t: t.payment_mode.value, amount),
            "daily": dict(sorted(daily.items())),
        }

    def occupancy_report(self, date_range: DateRange) -> dict:
        """Room status counts and stays overlapping a range."""
        rooms = self.db.list_rooms()
        room_types = {rt.id: rt.name for rt in self.db.list_room_types()}
        room_type_names = {
            room.id: room_types.get(room.room_type_id, UNKNOWN) for room in rooms
        }

        rooms_by_status = {status.value: 0 for status in RoomStatus}
        for room in rooms:
            rooms_by_status[room.status.value] += 1
        total_rooms = len(rooms)
        booked_rooms = rooms_by_status[RoomStatus.BOOKED.value]
        occupancy_rate = round(booked_rooms / total_rooms * 100, 2) if total_rooms else 0.0

        stays = self.db.list_bookings_overlapping(date_range.start, date_range.end)
        by_room_type: dict[str, dict] = defaultdict(lambda: {"bookings": 0, "revenue": ZERO})
        for booking in stays:
            group = by_room_type[room_type_names.get(booking.room_id, UNKNOWN)]
            group["bookings"] += 1
            group["revenue"] += booking.total_amount

        return {
            "total_rooms": total_rooms,
            "rooms_by_status": rooms_by_status,
            "booked_rooms": booked_rooms,
            "occupancy_rate": occupancy_rate,
            "bookings_in_range": len(stays),
            "check_ins": sum(1 for b in stays if date_range.contains(b.check_in)),
            "check_outs": sum(1 for b in stays if date_range.contains(b.check_out)),
            "by_room_type": dict(
                sorted(by_room_type.items(), key=lambda item: (-item[1]["bookings"], item[0]))
            ),
        }

    def bookings_report(self, date_range: DateRange) -> dict:
        """Bookings created within a range."""
        bookings = self.db.list_bookings_created(date_range.start, date_range.end)
        amount = attrgetter("total_amount")
        return {
            "total": len(bookings),
            "total_revenue": _total(bookings, amount),
            "bookings": bookings,
            "by_status": _group(bookings, lambda b: b.status.value, amount),
            "by_payment_status": _group(bookings, lambda b: b.payment_status.value, amount),
        }

    def services_report(self, date_range: DateRange) -> dict:
        """Extra-service bookings created within a range."""
        service_bookings = self.db.list_service_bookings_created(date_range.start, date_range.end)
        categories: dict[int, str] = {}
        for sb in service_bookings:
            if sb.service_id not in categories:
                service = self.db.get_extra_service(sb.service_id)
                categories[sb.service_id] = service.category if service else UNKNOWN

        amount = attrgetter("total_amount")
        return {
            "total": len(service_bookings),
            "total_revenue": _total(service_bookings, amount),
            "service_bookings": service_bookings,
            "by_status": _group(service_bookings, lambda sb: sb.status.value, amount),
            "by_category": _group(service_bookings, lambda sb: categories[sb.service_id], amount),
        }

    def dashboard_summary(self, now: Optional[datetime] = None) -> dict:
        """Headline figures for the accounts dashboard.

        Returns:
            Dict with ``today``, ``month`` and ``year`` totals (revenue,
            expense, profit), ``last_30_days`` daily revenue/expense,
            ``revenue_by_category`` for this month and
            ``recent_transactions``
        """
        now = localize(now, self.timezone) if now is not None else datetime.now(self.timezone)
        ranges = {
            name: DateRange(*get_period_range(name, self.timezone, now=now))
            for name in ("today", "month", "year")
        }
        window_start = start_of_day(now.date() - timedelta(days=DASHBOARD_DAYS - 1), self.timezone)
        transactions = self.ledger.list_all(
            TransactionFilter(
                start=min(window_start, ranges["year"].start),
                end=ranges["year"].end,
            )
        )

        summary: dict[str, Any] = {}
        for name, date_range in ranges.items():
            in_range = [t for t in transactions if date_range.contains(t.date)]
            revenue = _total(
                (t for t in in_range if t.type is TransactionType.REVENUE), attrgetter("amount")
            )
            expense = _total(
                (t for t in in_range if t.type is TransactionType.EXPENSE), attrgetter("amount")
            )
            summary[name] = {"revenue": revenue, "expense": expense, "profit": revenue - expense}

        days = [
            (now.date() - timedelta(days=offset)).isoformat()
            for offset in range(DASHBOARD_DAYS - 1, -1, -1)
        ]
        daily = {day: {"revenue": ZERO, "expense": ZERO} for day in days}
        for txn in transactions:
            day = self._local_day(txn.date)
            if day in daily:
                daily[day][txn.type.value] += txn.amount
        summary["last_30_days"] = daily

        month_revenue = [
            t
            for t in transactions
            if t.type is TransactionType.REVENUE and ranges["month"].contains(t.date)
        ]
        summary["revenue_by_category"] = _group(
            month_revenue, attrgetter("category"), attrgetter("amount")
        )
        summary["recent_transactions"] = list(
            self.ledger.query_transactions(page=1, limit=RECENT_TRANSACTIONS).items
        )
        return summary

    def _local_day(self, moment: datetime) -> str:
        return localize(moment, self.timezone).date().isoformat()
