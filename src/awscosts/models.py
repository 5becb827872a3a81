"""Typed value objects shared by the client, aggregator and renderers."""

from __future__ import annotations

from collections.abc import Mapping
from dataclasses import dataclass, field
from datetime import date
from decimal import Decimal
from types import MappingProxyType


@dataclass(frozen=True)
class Credentials:
    access_key_id: str
    secret_access_key: str
    session_token: str | None = None
    region: str = ""

    def __repr__(self) -> str:
        # secret key omitted
        return (
            f"Credentials(access_key_id={self.access_key_id!r}, "
            f"region={self.region!r}, session_token={'set' if self.session_token else None})"
        )


@dataclass(frozen=True)
class DateRange:
    """Half-open calendar range [start, end) as used by Cost Explorer."""

    start: date
    end: date

    def __post_init__(self) -> None:
        if self.start >= self.end:
            raise ValueError(f"Empty date range: {self.start} >= {self.end}")

    @property
    def label(self) -> str:
        """YYYY-MM label of the month the range starts in."""
        return self.start.strftime("%Y-%m")

    @property
    def title(self) -> str:
        return self.start.strftime("%B %Y")

    def as_time_period(self) -> dict[str, str]:
        return {"Start": self.start.isoformat(), "End": self.end.isoformat()}


@dataclass(frozen=True)
class ServiceCost:
    service_name: str
    amount: Decimal
    unit: str = "USD"


@dataclass(frozen=True)
class CostReport:
    """One GetCostAndUsage result grouped by service."""

    period: DateRange
    services: tuple[ServiceCost, ...] = ()
    total: Decimal = Decimal("0")
    currency: str = "USD"

    @classmethod
    def empty(cls, period: DateRange, currency: str = "USD") -> CostReport:
        return cls(period=period, currency=currency)


@dataclass(frozen=True)
class RankedService:
    rank: int
    name: str
    amount: Decimal
    percent_of_total: float
    color_index: int
    bar_fraction: float


@dataclass(frozen=True)
class PeriodSummary:
    period: DateRange
    total: Decimal
    currency: str
    services: tuple[RankedService, ...] = ()


@dataclass(frozen=True)
class MonthlyTotal:
    period: DateRange
    total: Decimal
    delta_percent: float | None = None


@dataclass(frozen=True)
class TrendMatrix:
    """Service-by-month grid for the multi-period view, oldest month first."""

    months: tuple[DateRange, ...] = ()
    top_services: tuple[str, ...] = ()
    cells: Mapping[tuple[str, int], Decimal] = field(
        default_factory=lambda: MappingProxyType({})
    )
    monthly_totals: tuple[MonthlyTotal, ...] = ()
    colors: Mapping[str, int] = field(default_factory=lambda: MappingProxyType({}))
    currency: str = "USD"

    def amount(self, service: str, month_index: int) -> Decimal:
        return self.cells.get((service, month_index), Decimal("0"))
