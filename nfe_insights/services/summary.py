from __future__ import annotations

from ..models.processed_data import LoadResult

"""SUMMARY line rendering for a finished workbook load."""


def _format_seconds(value: float) -> str:
    if value == 0:
        return "0"
    if value == int(value):
        return str(int(value))
    if value < 0.01:
        # avoid scientific notation for very small numbers
        return f"{value:.6f}".rstrip("0").rstrip(".")
    return f"{value:.2f}".rstrip("0").rstrip(".")


def render_summary_line(result: LoadResult) -> str:
    """Render the SUMMARY line for a load result.

    Format:
    SUMMARY status={status} rejections={n} corrections={n} error_codes={n} elapsed_sec={elapsed}

    Examples:
        >>> from nfe_insights.models import LoadResult, LoadStatus
        >>> render_summary_line(LoadResult(status=LoadStatus.SUCCESS, elapsed_seconds=2.0))
        'SUMMARY status=success rejections=0 corrections=0 error_codes=0 elapsed_sec=2'
    """
    data = result.data
    return (
        f"SUMMARY status={result.status.value} "
        f"rejections={len(data.rejections)} "
        f"corrections={len(data.corrections)} "
        f"error_codes={len(data.error_codes)} "
        f"elapsed_sec={_format_seconds(result.elapsed_seconds)}"
    )
