"""
Eisenhower matrix priority calculations.

Importance and urgency are stored on a logarithmic 0-10 scale so that the low
end of the slider gets more resolution; quadrant classification works on the
linear 0-10 scale the user sees.
"""
import math
from typing import Dict, Optional, Tuple

from pydantic import BaseModel, ConfigDict, Field

from .models import Quadrant, TaskNode

SCALE_MIN = 0.0
SCALE_MAX = 10.0
QUADRANT_THRESHOLD = 5.0

# Linear values written when a task is dropped onto a quadrant
QUADRANT_DROP_VALUES: Dict[Quadrant, Tuple[float, float]] = {
    Quadrant.DO_FIRST: (8.0, 8.0),
    Quadrant.SCHEDULE: (8.0, 3.0),
    Quadrant.DELEGATE: (3.0, 8.0),
    Quadrant.ELIMINATE: (3.0, 3.0),
}

SIMPLE_HIGH = 7.0
SIMPLE_LOW = 3.0

_LOG_BASE = math.log10(SCALE_MAX + 1)


def _clamp(value: float) -> float:
    return max(SCALE_MIN, min(SCALE_MAX, value))

def linear_to_log(value: float) -> float:
    """Map a linear 0-10 slider value onto the log 0-10 storage scale."""
    return math.log10(_clamp(value) + 1) / _LOG_BASE * SCALE_MAX

def log_to_linear(log_value: float) -> float:
    """Inverse of :func:`linear_to_log`."""
    normalized = _clamp(log_value) / SCALE_MAX
    return 10 ** (normalized * _LOG_BASE) - 1


def get_quadrant(importance: Optional[float], urgency: Optional[float]) -> Optional[Quadrant]:
    """
    Classify linear-scale importance/urgency into a quadrant.

    Values at or above the threshold count as high. Returns None when either
    dimension is unscored.
    """
    if importance is None or urgency is None:
        return None

    important = importance >= QUADRANT_THRESHOLD
    urgent = urgency >= QUADRANT_THRESHOLD

    if important and urgent:
        return Quadrant.DO_FIRST
    if important:
        return Quadrant.SCHEDULE
    if urgent:
        return Quadrant.DELEGATE
    return Quadrant.ELIMINATE

def get_task_quadrant(node: TaskNode) -> Optional[Quadrant]:
    """Classify a node from its stored (log-scale) priorities."""
    if node.importance is None or node.urgency is None:
        return None
    return get_quadrant(log_to_linear(node.importance), log_to_linear(node.urgency))


class QuadrantInfo(BaseModel):
    model_config = ConfigDict(frozen=True)

    label: str
    description: str
    icon: str
    position: Tuple[int, int] = Field(description="(x, y) cell, x = urgency axis, y = importance axis")

QUADRANT_INFO: Dict[Optional[Quadrant], QuadrantInfo] = {
    Quadrant.DO_FIRST: QuadrantInfo(
        label="Do First",
        description="Important & Urgent - Crisis management",
        icon="🔥",
        position=(1, 1),
    ),
    Quadrant.SCHEDULE: QuadrantInfo(
        label="Schedule",
        description="Important & Not Urgent - Planning & development",
        icon="📅",
        position=(0, 1),
    ),
    Quadrant.DELEGATE: QuadrantInfo(
        label="Delegate",
        description="Not Important & Urgent - Interruptions",
        icon="👥",
        position=(1, 0),
    ),
    Quadrant.ELIMINATE: QuadrantInfo(
        label="Eliminate",
        description="Not Important & Not Urgent - Time wasters",
        icon="🗑️",
        position=(0, 0),
    ),
    None: QuadrantInfo(
        label="Unscored",
        description="Importance or urgency not set yet",
        icon="❔",
        position=(-1, -1),
    ),
}

def get_quadrant_info(quadrant: Optional[Quadrant]) -> QuadrantInfo:
    return QUADRANT_INFO[quadrant]


def quadrant_priority(quadrant: Quadrant) -> Tuple[float, float]:
    """Log-scale (importance, urgency) to store for a task dropped onto a quadrant."""
    importance, urgency = QUADRANT_DROP_VALUES[quadrant]
    return linear_to_log(importance), linear_to_log(urgency)

def position_in_quadrant(importance: Optional[float], urgency: Optional[float]) -> Optional[Tuple[float, float]]:
    """Normalized (x, y) offset of linear-scale values within their quadrant cell."""
    if importance is None or urgency is None:
        return None
    x = (_clamp(urgency) % QUADRANT_THRESHOLD) / QUADRANT_THRESHOLD
    y = (_clamp(importance) % QUADRANT_THRESHOLD) / QUADRANT_THRESHOLD
    return x, y

def simple_to_numeric(is_high: bool) -> float:
    return SIMPLE_HIGH if is_high else SIMPLE_LOW

def numeric_to_simple(value: Optional[float]) -> Optional[bool]:
    if value is None:
        return None
    return value >= QUADRANT_THRESHOLD
