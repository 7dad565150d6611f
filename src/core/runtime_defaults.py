"""
Runtime defaults for CLI/library processing.

Tuning values are read once from environment variables; anything missing,
unparsable or out of range falls back to the built-in default.
"""

from __future__ import annotations

from dataclasses import dataclass
import math
import os
from typing import Callable, TypeVar

T = TypeVar("T", int, float)

ENV_SMOOTHING_ITERATIONS = "UVUNFOLD_SMOOTHING_ITERATIONS"
ENV_SMOOTHING_ALPHA = "UVUNFOLD_SMOOTHING_ALPHA"
ENV_PIN_BOUNDARY = "UVUNFOLD_PIN_BOUNDARY"
ENV_EXPORT_DPI = "UVUNFOLD_EXPORT_DPI"
ENV_RENDER_RESOLUTION = "UVUNFOLD_RENDER_RESOLUTION"
ENV_COLOR_SEAMS = "UVUNFOLD_COLOR_SEAMS"

_BOOL_WORDS = {
    "1": True, "true": True, "yes": True, "on": True,
    "0": False, "false": False, "no": False, "off": False,
}


@dataclass(frozen=True)
class RuntimeDefaults:
    smoothing_iterations: int = 20
    smoothing_alpha: float = 0.5
    pin_boundary: bool = True
    export_dpi: int = 300
    render_resolution: int = 2048
    color_seams: bool = True


def _read_bounded_env(env_name: str, default: T, parse: Callable[[str], T],
                      min_value: T, max_value: T) -> T:
    raw = os.environ.get(env_name)
    if raw is None:
        return default
    try:
        value = parse(raw.strip())
    except ValueError:
        return default
    if isinstance(value, float) and math.isnan(value):
        return default
    return value if min_value <= value <= max_value else default


def _read_bool_env(env_name: str, default: bool) -> bool:
    raw = os.environ.get(env_name)
    if raw is None:
        return default
    return _BOOL_WORDS.get(raw.strip().lower(), default)


def load_runtime_defaults() -> RuntimeDefaults:
    base = RuntimeDefaults()
    return RuntimeDefaults(
        smoothing_iterations=_read_bounded_env(ENV_SMOOTHING_ITERATIONS, base.smoothing_iterations, int, 0, 10000),
        smoothing_alpha=_read_bounded_env(ENV_SMOOTHING_ALPHA, base.smoothing_alpha, float, 0.0, 1.0),
        pin_boundary=_read_bool_env(ENV_PIN_BOUNDARY, base.pin_boundary),
        export_dpi=_read_bounded_env(ENV_EXPORT_DPI, base.export_dpi, int, 72, 2400),
        render_resolution=_read_bounded_env(ENV_RENDER_RESOLUTION, base.render_resolution, int, 64, 16384),
        color_seams=_read_bool_env(ENV_COLOR_SEAMS, base.color_seams),
    )


DEFAULTS = load_runtime_defaults()
