"""Layout value object used by the layout estimator."""

from __future__ import annotations

from pydantic import BaseModel, ConfigDict


class LayoutConfig(BaseModel):
    """Font and geometry inputs for text-position ↔ scroll-offset estimates.

    Frozen: a geometry change produces a new value, which is how the
    estimator notices that its cached line width is stale.
    """

    model_config = ConfigDict(frozen=True)

    font_size: float
    container_width: float
    is_landscape: bool = False
    margin: float = 0.0
