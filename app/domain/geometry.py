# app/domain/geometry.py
from typing import Tuple

from app.delivery.schemas.card import CardTemplate

PERCENT_DECIMALS = 2


def _check_canvas(canvas_w: float, canvas_h: float) -> None:
    if canvas_w <= 0 or canvas_h <= 0:
        raise ValueError(f"Canvas must have positive size, got {canvas_w}x{canvas_h}")


def to_pixels(percent_x: float, percent_y: float, canvas_w: float, canvas_h: float) -> Tuple[float, float]:
    _check_canvas(canvas_w, canvas_h)
    return (percent_x / 100.0 * canvas_w, percent_y / 100.0 * canvas_h)


def to_percent(delta_px: float, delta_py: float, canvas_w: float, canvas_h: float) -> Tuple[float, float]:
    _check_canvas(canvas_w, canvas_h)
    return (delta_px / canvas_w * 100.0, delta_py / canvas_h * 100.0)


def round_percent(value: float) -> float:
    # Two decimals bound drift across repeated drags
    return round(value, PERCENT_DECIMALS)


def clamp_percent(value: float) -> float:
    return min(100.0, max(0.0, value))


def canvas_box(template: CardTemplate) -> Tuple[float, float]:
    """Pixel box of a face: stored as long x short edge, swapped for portrait."""
    if template.orientation == "portrait":
        return (template.height_px, template.width_px)
    return (template.width_px, template.height_px)


def physical_box(width_mm: float, height_mm: float, orientation: str) -> Tuple[float, float]:
    long_edge, short_edge = max(width_mm, height_mm), min(width_mm, height_mm)
    if orientation == "portrait":
        return (short_edge, long_edge)
    return (long_edge, short_edge)


def mm_to_pixels(mm: float, dpi: int) -> int:
    return int(round(mm / 25.4 * dpi))
