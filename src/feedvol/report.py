"""Plain-text rendering of an EstimationReport."""

from typing import Optional

from .types import EstimationReport

NO_DATA_MESSAGE = "No data available to calculate volatility."


def _fmt(value: Optional[float]) -> str:
    return f"{value:.4f}" if value is not None else "-"


def format_report(report: EstimationReport) -> str:
    """
    Render buckets, feed status and the volatility line.

    Returns:
        Multi-line string ending with the volatility figure or the
        no-data message
    """
    lines = []

    for outcome in report.feeds:
        status = f"{outcome.observations} observations" if outcome.ok else f"FAILED ({outcome.error})"
        lines.append(f"Feed {outcome.feed:<8} [{outcome.slot.field_name}]: {status}")

    for row in report.rows:
        lines.append(
            f"Timestamp: {row.ts:%Y-%m-%d %H:%M:%S}, "
            f"VW: {_fmt(row.feed_a)}, AP: {_fmt(row.feed_b)}, "
            f"KR: {_fmt(row.feed_c)}, CA: {_fmt(row.feed_d)}, "
            f"VOL: {_fmt(row.consolidated)}"
        )

    vol = report.volatility
    if vol.no_data:
        lines.append(NO_DATA_MESSAGE)
    else:
        g = report.granularity.value
        lines.append(
            f"Volatility ({vol.base.value}, {vol.divisor.value}) over last "
            f"{report.no_of_periods} {g} buckets = {vol.value:.6f}"
        )

    return "\n".join(lines)
