"""Formatted ASCII table display for model-fit statistics.

Renders one or more :class:`~fitstats._results.FitStatistics` in the
same boxed style as statsmodels summaries: a centred title, one panel
per model headed by its name and result kind, and one
``label  value`` row per statistic.
"""

from __future__ import annotations

import math
import textwrap
from collections.abc import Sequence

from ._results import FitStatistics

_KIND_TITLES = {
    "r2": "R-squared",
    "mixed_r2": "R-squared (mixed model)",
    "pseudo_r2": "Pseudo R-squared",
    "cod": "Coefficient of Discrimination",
}


def _fmt_value(value: float) -> str:
    """Format a statistic value, rendering ``nan`` as ``'N/A'``."""
    if math.isnan(value):
        return "N/A"
    return f"{value:.4f}"


def print_fit_statistics(
    results: FitStatistics | None | Sequence[FitStatistics | None],
    *,
    names: Sequence[str] | None = None,
    title: str = "Model Fit Statistics",
) -> None:
    """Print fit statistics in a formatted ASCII table.

    Args:
        results: A single result or a sequence as returned by the
            batch form of :func:`fitstats.r2`.  ``None`` entries (the
            ``"warn"`` policy's placeholder for unsupported models)
            are shown as "not available".
        names: Optional display name per result.  Defaults to
            ``"Model 1"``, ``"Model 2"``, ...
        title: Title for the output table.

    Raises:
        ValueError: If *names* does not match the number of results.
    """
    W = 60
    lw = 24  # label column width

    if results is None or isinstance(results, FitStatistics):
        entries: list[FitStatistics | None] = [results]
    else:
        entries = list(results)
    if names is None:
        names = [f"Model {i + 1}" for i in range(len(entries))]
    if len(names) != len(entries):
        raise ValueError(
            f"Got {len(names)} names for {len(entries)} results."
        )

    # ── Title ──────────────────────────────────────────────────── #

    print("=" * W)
    for line in textwrap.wrap(title, width=W - 2):
        print(f"{line:^{W}}")
    print("=" * W)

    # ── One panel per model ────────────────────────────────────── #

    for i, (name, result) in enumerate(zip(names, entries)):
        if i:
            print("-" * W)
        if result is None:
            print(f"  {name:<{lw}}{'not available':>{W - lw - 2}}")
            continue
        kind = _KIND_TITLES.get(result.kind, result.kind)
        print(f"  {name:<{lw}}{kind:>{W - lw - 2}}")
        for label, value in result.items():
            print(f"    {label:<{lw - 2}}{_fmt_value(value):>{W - lw - 2}}")

    print("=" * W)
    print()
