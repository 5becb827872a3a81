"""Reduce cost reports into ranked period summaries and a trend matrix."""

from __future__ import annotations

import logging
from collections.abc import Sequence
from decimal import Decimal
from types import MappingProxyType

from awscosts.models import (
    CostReport,
    MonthlyTotal,
    PeriodSummary,
    RankedService,
    TrendMatrix,
)

logger = logging.getLogger(__name__)

PALETTE_SIZE = 12
TOP_SERVICES = 8
_ZERO = Decimal("0")
_HUNDRED = Decimal("100")


class ColorAssignment:
    """Stable service name -> palette slot mapping for one data refresh.

    Slots are handed out in first-seen order and wrap around once all
    twelve are taken.
    """

    def __init__(self, palette_size: int = PALETTE_SIZE) -> None:
        self.palette_size = palette_size
        self._slots: dict[str, int] = {}

    def color_for(self, service: str) -> int:
        if service not in self._slots:
            self._slots[service] = len(self._slots) % self.palette_size
        return self._slots[service]

    def __contains__(self, service: object) -> bool:
        return service in self._slots

    def __len__(self) -> int:
        return len(self._slots)


def _rank_key(item: tuple[str, Decimal]) -> tuple[Decimal, str]:
    # amount descending, then name ascending
    return (-item[1], item[0])


def summarize(report: CostReport, colors: ColorAssignment | None = None) -> PeriodSummary:
    """Rank a report's services and attach percentages, bars and colors.

    Never fails: a zero total yields zero percentages, an empty report an
    empty service list.
    """
    colors = colors if colors is not None else ColorAssignment()

    amounts: dict[str, Decimal] = {}
    for service in report.services:
        amounts[service.service_name] = (
            amounts.get(service.service_name, _ZERO) + service.amount
        )
    ordered = sorted(amounts.items(), key=_rank_key)

    total = report.total
    max_amount = ordered[0][1] if ordered else _ZERO

    ranked = []
    for rank, (name, amount) in enumerate(ordered, start=1):
        percent = float(amount / total * _HUNDRED) if total else 0.0
        if max_amount > 0:
            bar = float(max(amount, _ZERO) / max_amount)
        else:
            bar = 0.0
        ranked.append(
            RankedService(
                rank=rank,
                name=name,
                amount=amount,
                percent_of_total=percent,
                color_index=colors.color_for(name),
                bar_fraction=bar,
            )
        )

    return PeriodSummary(
        period=report.period,
        total=total,
        currency=report.currency,
        services=tuple(ranked),
    )


def month_over_month(totals: Sequence[Decimal]) -> list[float | None]:
    """Percentage change versus the previous month.

    Absent (None) for the first month and wherever the previous total is 0.
    """
    deltas: list[float | None] = []
    for i, current in enumerate(totals):
        if i == 0 or totals[i - 1] == 0:
            deltas.append(None)
            continue
        previous = totals[i - 1]
        deltas.append(float((current - previous) / previous * _HUNDRED))
    return deltas


def build_trend(
    reports: Sequence[CostReport],
    colors: ColorAssignment | None = None,
    top_n: int = TOP_SERVICES,
) -> TrendMatrix:
    """Build the service-by-month grid for ``reports`` (oldest first).

    The top services are chosen by cost summed across all months, ties broken
    by name. Missing (service, month) pairs read as 0.
    """
    colors = colors if colors is not None else ColorAssignment()
    if not reports:
        return TrendMatrix()

    service_totals: dict[str, Decimal] = {}
    per_month: list[dict[str, Decimal]] = []
    for report in reports:
        month: dict[str, Decimal] = {}
        for service in report.services:
            month[service.service_name] = (
                month.get(service.service_name, _ZERO) + service.amount
            )
            service_totals[service.service_name] = (
                service_totals.get(service.service_name, _ZERO) + service.amount
            )
        per_month.append(month)

    top = [name for name, _ in sorted(service_totals.items(), key=_rank_key)[:top_n]]
    logger.debug("Trend top services: %s", top)

    cells = {
        (name, index): month.get(name, _ZERO)
        for name in top
        for index, month in enumerate(per_month)
    }
    totals = [report.total for report in reports]
    monthly_totals = tuple(
        MonthlyTotal(period=report.period, total=report.total, delta_percent=delta)
        for report, delta in zip(reports, month_over_month(totals))
    )

    return TrendMatrix(
        months=tuple(report.period for report in reports),
        top_services=tuple(top),
        cells=MappingProxyType(cells),
        monthly_totals=monthly_totals,
        colors=MappingProxyType({name: colors.color_for(name) for name in top}),
        currency=reports[-1].currency,
    )
