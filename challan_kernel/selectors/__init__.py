"""Read-only queries over saved DCs."""

from challan_kernel.selectors.tracker_selector import (
    DashboardMetrics,
    DcTrackerSelector,
    QuickFilter,
    SortKey,
    TrackerQuery,
    format_date,
)

__all__ = [
    "DashboardMetrics",
    "DcTrackerSelector",
    "QuickFilter",
    "SortKey",
    "TrackerQuery",
    "format_date",
]
