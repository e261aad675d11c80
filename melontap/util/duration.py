"""Listening timeout parsing for the CLI."""

from __future__ import annotations

import argparse
from typing import Any, Optional

_UNIT_SECONDS = {"s": 1.0, "m": 60.0, "h": 3600.0}


def parse_duration_to_seconds(spec: Optional[Any]) -> Optional[float]:
    """'30', '90s', '2m' or '1h' to positive seconds; blank means no timeout."""
    if spec is None:
        return None
    text = str(spec).strip().lower()
    if not text:
        return None
    unit = text[-1] if text[-1].isalpha() else "s"
    number = text[:-1] if text[-1].isalpha() else text
    if unit not in _UNIT_SECONDS:
        raise argparse.ArgumentTypeError(f"Unsupported duration suffix '{unit}'")
    try:
        value = float(number)
    except ValueError as exc:
        raise argparse.ArgumentTypeError(f"Invalid duration '{spec}'") from exc
    if not value > 0:
        raise argparse.ArgumentTypeError(f"Duration must be positive, got '{spec}'")
    return value * _UNIT_SECONDS[unit]
