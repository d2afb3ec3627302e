"""Reporting package."""

from ledgerdash.reports.aggregator import ReportAggregator

__all__ = ["ReportAggregator"]
