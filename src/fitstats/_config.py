"""Runtime configuration for the fitstats package.

Controls what :func:`fitstats.r2` (and :func:`fitstats.pseudo_r2`) do
when handed an object whose regime has no R-squared formula.

Resolution order (first match wins):
    1. Programmatic override via :func:`set_unsupported_policy`.
    2. The ``FITSTATS_UNSUPPORTED_POLICY`` environment variable.
    3. The default, ``"raise"``.

Valid policy names are ``"raise"`` and ``"warn"`` (case-insensitive).
``"warn"`` reproduces the legacy behaviour of emitting a
``UserWarning`` and returning ``None`` for the offending input, which
keeps batch scans over heterogeneous model lists running.

Examples:
    Restore the legacy behaviour from the shell::

        export FITSTATS_UNSUPPORTED_POLICY=warn

    Or programmatically::

        import fitstats
        fitstats.set_unsupported_policy("warn")

    Re-enable the default resolution::

        fitstats.set_unsupported_policy("auto")
"""

from __future__ import annotations

import os

_ENV_VAR = "FITSTATS_UNSUPPORTED_POLICY"

_VALID_POLICIES = {"raise", "warn", "auto"}

# Sentinel indicating "no programmatic override has been set".
_policy_override: str | None = None


def get_unsupported_policy() -> str:
    """Return the active unsupported-model policy (``"raise"`` or ``"warn"``).

    Resolution order:
        1. Value set by :func:`set_unsupported_policy` (unless ``"auto"``).
        2. ``FITSTATS_UNSUPPORTED_POLICY`` environment variable.
        3. ``"raise"``.

    Returns:
        ``"raise"`` or ``"warn"``.
    """
    # 1. Programmatic override
    if _policy_override is not None and _policy_override != "auto":
        return _policy_override

    # 2. Environment variable
    env = os.environ.get(_ENV_VAR, "").strip().lower()
    if env in ("raise", "warn"):
        return env

    # 3. Default
    return "raise"


def set_unsupported_policy(name: str) -> None:
    """Override the unsupported-model policy.

    Args:
        name: One of ``"raise"``, ``"warn"``, or ``"auto"``
            (case-insensitive).  ``"auto"`` restores the default
            resolution order.

    Raises:
        ValueError: If *name* is not a recognised policy.
    """
    global _policy_override
    normalised = name.strip().lower()
    if normalised not in _VALID_POLICIES:
        raise ValueError(
            f"Unknown policy '{name}'. Choose from: {sorted(_VALID_POLICIES)}"
        )
    _policy_override = normalised
