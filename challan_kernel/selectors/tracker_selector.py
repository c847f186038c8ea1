"""
Module: challan_kernel.selectors.tracker_selector
Responsibility: Read-only queries behind the DC tracker: status queues,
    quick filters, text and date-range search, sorting, dashboard metrics
    and CSV export.
Architecture position: Kernel > Selectors.  Works on a snapshot of
    ``SavedDc`` records handed in by the caller (usually
    ``DcLifecycleService.list_all()``); never mutates or persists anything.

Invariants enforced:
    - Relative filters ("today", "overdue", ...) use the injected Clock.
    - Sorting is stable: records with equal keys keep their input order.
"""

from __future__ import annotations

import calendar
import csv
import io
import math
from dataclasses import dataclass
from datetime import date, datetime, time, timedelta
from enum import Enum, unique
from typing import Sequence

from challan_kernel.domain.challan import DcStatus, SavedDc
from challan_kernel.domain.clock import Clock

DEFAULT_OVERDUE_DAYS = 7

CSV_HEADERS = ("Date", "DC No", "Party", "Status", "Items", "Received By", "Remarks")


@unique
class QuickFilter(str, Enum):
    ALL = "all"
    TODAY = "today"
    WEEK = "week"
    MONTH = "month"
    OVERDUE = "overdue"


@unique
class SortKey(str, Enum):
    DATE = "date"
    DC_NO = "dcNo"
    PARTY = "party"
    ITEMS = "items"
    DAYS = "days"
    STATUS = "status"


@dataclass(frozen=True)
class TrackerQuery:
    """What the tracker table currently shows."""
    queue: DcStatus = DcStatus.PENDING
    quick_filter: QuickFilter = QuickFilter.ALL
    text: str = ""
    date_from: date | None = None
    date_to: date | None = None
    sort_by: SortKey = SortKey.DATE
    descending: bool = True


@dataclass(frozen=True)
class DashboardMetrics:
    total_dcs: int
    pending_dcs: int
    avg_turnaround_days: int
    total_items_out: int


def format_date(value: datetime) -> str:
    return value.strftime("%d/%m/%Y")


def _one_month_back(day: date) -> date:
    year, month = (day.year, day.month - 1) if day.month > 1 else (day.year - 1, 12)
    return date(year, month, min(day.day, calendar.monthrange(year, month)[1]))


class DcTrackerSelector:
    """
    Queries over a snapshot of saved DCs.

    Usage::

        selector = DcTrackerSelector(service.list_all(), clock)
        rows = selector.query(TrackerQuery(queue=DcStatus.RETURNED, text="city"))
        csv_text = selector.export_csv(rows)
    """

    def __init__(
        self,
        dcs: Sequence[SavedDc],
        clock: Clock,
        overdue_days: int = DEFAULT_OVERDUE_DAYS,
    ):
        self._dcs = list(dcs)
        self._clock = clock
        self._overdue_days = overdue_days

    # -----------------------------------------------------------------
    # Counting
    # -----------------------------------------------------------------

    def status_counts(self) -> dict[DcStatus, int]:
        counts = {status: 0 for status in DcStatus}
        for dc in self._dcs:
            counts[dc.status] += 1
        return counts

    def days_pending(self, dc: SavedDc) -> int:
        return dc.days_pending(self._clock.now())

    def is_overdue(self, dc: SavedDc) -> bool:
        return dc.status == DcStatus.PENDING and self.days_pending(dc) > self._overdue_days

    def dashboard(self) -> DashboardMetrics:
        counts = self.status_counts()
        total = len(self._dcs)
        pending = counts[DcStatus.PENDING]
        turnaround = sum(
            self.days_pending(dc) for dc in self._dcs if dc.status != DcStatus.PENDING
        )
        avg = turnaround / ((total - pending) or 1)
        items_out = sum(
            dc.total_qty for dc in self._dcs
            if dc.status in (DcStatus.PENDING, DcStatus.RETURNED)
        )
        return DashboardMetrics(
            total_dcs=total,
            pending_dcs=pending,
            avg_turnaround_days=math.floor(avg + 0.5),
            total_items_out=items_out,
        )

    # -----------------------------------------------------------------
    # Filtering
    # -----------------------------------------------------------------

    def filter_queue(self, status: DcStatus) -> list[SavedDc]:
        return [dc for dc in self._dcs if dc.status == status]

    def apply_quick_filter(
        self, dcs: Sequence[SavedDc], quick_filter: QuickFilter
    ) -> list[SavedDc]:
        now = self._clock.now()
        today = datetime.combine(now.date(), time.min, tzinfo=now.tzinfo)
        if quick_filter == QuickFilter.TODAY:
            since = today
        elif quick_filter == QuickFilter.WEEK:
            since = today - timedelta(days=7)
        elif quick_filter == QuickFilter.MONTH:
            since = datetime.combine(_one_month_back(today.date()), time.min, tzinfo=now.tzinfo)
        elif quick_filter == QuickFilter.OVERDUE:
            return [dc for dc in dcs if self.is_overdue(dc)]
        else:
            return list(dcs)
        return [dc for dc in dcs if dc.saved_at >= since]

    @staticmethod
    def search(dcs: Sequence[SavedDc], text: str) -> list[SavedDc]:
        """Case-insensitive match on hospital name or DC number."""
        term = text.strip().lower()
        if not term:
            return list(dcs)
        return [
            dc for dc in dcs
            if term in dc.hospital_name.lower() or term in dc.dc_no.lower()
        ]

    def filter_date_range(
        self,
        dcs: Sequence[SavedDc],
        date_from: date | None,
        date_to: date | None,
    ) -> list[SavedDc]:
        """Keep DCs whose display date falls within the inclusive day range."""
        tz = self._clock.now().tzinfo
        start = datetime.combine(date_from, time.min, tzinfo=tz) if date_from else None
        end = datetime.combine(date_to, time(23, 59, 59), tzinfo=tz) if date_to else None
        result = []
        for dc in dcs:
            shown = dc.display_date
            if start is not None and shown < start:
                continue
            if end is not None and shown > end:
                continue
            result.append(dc)
        return result

    def sort(
        self, dcs: Sequence[SavedDc], sort_by: SortKey, descending: bool = True
    ) -> list[SavedDc]:
        keys = {
            SortKey.DATE: lambda dc: dc.display_date,
            SortKey.DC_NO: lambda dc: dc.dc_no.lower(),
            SortKey.PARTY: lambda dc: dc.hospital_name.lower(),
            SortKey.ITEMS: lambda dc: dc.total_qty,
            SortKey.DAYS: self.days_pending,
            SortKey.STATUS: lambda dc: dc.status.value,
        }
        return sorted(dcs, key=keys[SortKey(sort_by)], reverse=descending)

    def query(self, query: TrackerQuery) -> list[SavedDc]:
        dcs = self.filter_queue(query.queue)
        dcs = self.apply_quick_filter(dcs, query.quick_filter)
        dcs = self.search(dcs, query.text)
        dcs = self.filter_date_range(dcs, query.date_from, query.date_to)
        return self.sort(dcs, query.sort_by, query.descending)

    # -----------------------------------------------------------------
    # Export
    # -----------------------------------------------------------------

    @staticmethod
    def export_csv(dcs: Sequence[SavedDc]) -> str:
        buffer = io.StringIO()
        writer = csv.writer(buffer, lineterminator="\n")
        writer.writerow(CSV_HEADERS)
        for dc in dcs:
            writer.writerow([
                format_date(dc.display_date),
                dc.dc_no,
                dc.hospital_name,
                dc.status.value.upper(),
                str(dc.total_qty),
                dc.received_by or "-",
                dc.remarks or "-",
            ])
        return buffer.getvalue()
