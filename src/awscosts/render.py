"""Formatting helpers and the deterministic plain-text rendering."""

from __future__ import annotations

from decimal import Decimal

from awscosts.models import PeriodSummary, TrendMatrix

# RGB palette indexed by RankedService.color_index
SERVICE_COLORS: tuple[tuple[int, int, int], ...] = (
    (255, 107, 107),  # coral red
    (78, 205, 196),  # turquoise
    (255, 230, 109),  # yellow
    (170, 128, 255),  # purple
    (255, 159, 243),  # pink
    (108, 255, 108),  # lime green
    (255, 184, 77),  # orange
    (77, 182, 255),  # sky blue
    (255, 138, 101),  # salmon
    (129, 236, 236),  # cyan
    (162, 155, 254),  # lavender
    (0, 184, 148),  # teal
)

RED = (255, 107, 107)
ORANGE = (255, 184, 77)
YELLOW = (255, 230, 109)
GREEN = (108, 255, 108)

BAR_WIDTH = 20
_RULE = "-" * 66


def service_color(color_index: int) -> tuple[int, int, int]:
    return SERVICE_COLORS[color_index % len(SERVICE_COLORS)]


def cost_color(amount: Decimal | float) -> tuple[int, int, int]:
    """Color band by cost magnitude."""
    if amount > 1000:
        return RED
    if amount > 100:
        return ORANGE
    if amount > 10:
        return YELLOW
    return GREEN


def make_bar(fraction: float, width: int = BAR_WIDTH) -> str:
    filled = min(max(round(fraction * width), 0), width)
    return "█" * filled + "░" * (width - filled)


def short_service_name(name: str, max_len: int, ellipsis: str = "...") -> str:
    """Drop the vendor prefix and truncate to ``max_len`` characters."""
    for prefix in ("Amazon ", "AWS ", "Amazon"):
        name = name.removeprefix(prefix)
    if len(name) > max_len:
        return name[: max_len - len(ellipsis)] + ellipsis
    return name


def format_money(amount: Decimal | float) -> str:
    return f"${amount:,.2f}"


def format_delta(delta: float | None) -> str:
    if delta is None:
        return "-"
    return f"{delta:+.1f}%"


def render_summary_text(summary: PeriodSummary | None, heading: str) -> str:
    """Plain-text table for one period: rank, service, cost, share."""
    lines = [heading, "=" * len(heading)]
    if summary is None:
        lines.append("No data available")
        return "\n".join(lines)

    lines.append(f"Period: {summary.period.title}")
    lines.append(
        f"Total: {format_money(summary.total)} {summary.currency}"
        f"  ({len(summary.services)} services)"
    )
    lines.append("")
    lines.append(f"{'#':>3}  {'Service':<40} {'Cost':>12} {'%':>7}")
    lines.append(_RULE)
    for service in summary.services:
        lines.append(
            f"{service.rank:>3}  {short_service_name(service.name, 38):<40} "
            f"{service.amount:>12,.2f} {service.percent_of_total:>6.1f}%"
        )
    return "\n".join(lines)


def render_trend_text(trend: TrendMatrix | None, heading: str = "6-Month Trend") -> str:
    """Plain-text monthly totals with month-over-month change plus service grid."""
    lines = [heading, "=" * len(heading)]
    if trend is None or not trend.months:
        lines.append("No data available")
        return "\n".join(lines)

    lines.append(f"{'Period':<20} {'Total':>14} {'Change':>9}")
    lines.append(_RULE)
    for month in trend.monthly_totals:
        lines.append(
            f"{month.period.title:<20} {format_money(month.total):>14} "
            f"{format_delta(month.delta_percent):>9}"
        )

    if trend.top_services:
        lines.append("")
        header = f"{'Service':<24}" + "".join(
            f"{m.start.strftime('%b'):>11}" for m in trend.months
        )
        lines.append(header)
        lines.append("-" * len(header))
        for name in trend.top_services:
            row = f"{short_service_name(name, 22):<24}" + "".join(
                f"{trend.amount(name, i):>11,.2f}" for i in range(len(trend.months))
            )
            lines.append(row)
    return "\n".join(lines)


def render_dashboard_text(
    current: PeriodSummary | None,
    previous: PeriodSummary | None,
    trend: TrendMatrix | None,
) -> str:
    sections = [
        render_summary_text(current, "Current Month"),
        render_summary_text(previous, "Previous Month"),
        render_trend_text(trend),
    ]
    return "\n\n".join(sections) + "\n"
