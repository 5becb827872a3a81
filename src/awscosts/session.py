"""Top-level data refresh: fetch, retry and aggregate into a dashboard."""

from __future__ import annotations

import logging
import threading
from dataclasses import dataclass
from datetime import date, datetime, timezone

from tenacity import (
    Retrying,
    before_sleep_log,
    retry_if_exception_type,
    stop_after_attempt,
    wait_exponential,
)

from awscosts.aggregator import ColorAssignment, build_trend, summarize
from awscosts.client import CostExplorerClient
from awscosts.errors import CostExplorerError, FetchCancelled, TransientFailure
from awscosts.models import CostReport, DateRange, PeriodSummary, TrendMatrix
from awscosts.navigation import Tab
from awscosts.periods import current_month_range, previous_month_range

logger = logging.getLogger(__name__)

TREND_MONTHS = 6


@dataclass(frozen=True)
class Dashboard:
    """Render-ready view model for the three tabs."""

    current: PeriodSummary | None = None
    previous: PeriodSummary | None = None
    trend: TrendMatrix | None = None
    warnings: tuple[str, ...] = ()

    def row_count(self, tab: Tab) -> int:
        if tab is Tab.CURRENT:
            return len(self.current.services) if self.current else 0
        if tab is Tab.PREVIOUS:
            return len(self.previous.services) if self.previous else 0
        return len(self.trend.top_services) if self.trend else 0


class CostSession:
    """Owns the client, the per-refresh color mapping and the retry policy.

    Transient failures are retried per request with exponential backoff;
    every other error propagates immediately.
    """

    def __init__(
        self,
        client: CostExplorerClient,
        attempts: int = 3,
        backoff: float = 1.0,
        trend_months: int = TREND_MONTHS,
    ) -> None:
        self.client = client
        self.attempts = max(attempts, 1)
        self.backoff = backoff
        self.trend_months = trend_months
        self.colors = ColorAssignment()

    def _retrying(self) -> Retrying:
        return Retrying(
            stop=stop_after_attempt(self.attempts),
            wait=wait_exponential(multiplier=self.backoff, max=30),
            retry=retry_if_exception_type(TransientFailure),
            before_sleep=before_sleep_log(logger, logging.WARNING),
            reraise=True,
        )

    def fetch_with_retry(self, period: DateRange) -> CostReport:
        return self._retrying()(self.client.fetch_report, period)

    def load(
        self,
        today: date | None = None,
        cancel: threading.Event | None = None,
    ) -> Dashboard:
        """Run one full refresh.

        The current month is required; failures there propagate. Previous
        month and trend failures are logged and the tab shows no data.

        Raises:
            CostExplorerError: the current month could not be fetched.
            FetchCancelled: ``cancel`` was set during the trend fetch.
        """
        today = today or datetime.now(timezone.utc).date()
        self.colors = ColorAssignment()
        warnings: list[str] = []

        current = summarize(
            self.fetch_with_retry(current_month_range(today)), self.colors
        )

        if cancel is not None and cancel.is_set():
            raise FetchCancelled("cancelled before previous month")
        previous = None
        try:
            previous = summarize(
                self.fetch_with_retry(previous_month_range(today)), self.colors
            )
        except CostExplorerError as e:
            logger.warning("Failed to load previous month: %s", e)
            warnings.append(f"previous month: {e.kind}: {e}")

        trend = None
        try:
            reports = self.client.fetch_trend(
                self.trend_months,
                today=today,
                fetch=self.fetch_with_retry,
                cancel=cancel,
            )
            trend = build_trend(reports, self.colors)
        except CostExplorerError as e:
            logger.warning("Failed to load monthly trend: %s", e)
            warnings.append(f"monthly trend: {e.kind}: {e}")

        return Dashboard(
            current=current,
            previous=previous,
            trend=trend,
            warnings=tuple(warnings),
        )
