from __future__ import annotations

import base64
import io
import logging
from typing import Sequence

from matplotlib.figure import Figure


logger = logging.getLogger(__name__)

DEMO_XS: tuple[float, ...] = (1, 2, 3, 4, 5)
DEMO_YS: tuple[float, ...] = (1, 2, 1, 3, 4)


def line_chart_png(
    xs: Sequence[float],
    ys: Sequence[float],
    *,
    title: str | None = None,
    dpi: int = 100,
) -> bytes:
    if len(xs) != len(ys):
        raise ValueError(f'xs and ys differ in length: {len(xs)} != {len(ys)}')

    # Figure without pyplot: no global figure registry, safe outside the main thread.
    fig = Figure(figsize=(5, 3), dpi=dpi)
    ax = fig.add_subplot(1, 1, 1)
    ax.plot(list(xs), list(ys), linewidth=1.5)
    if title:
        ax.set_title(title)
    ax.grid(True, alpha=0.3)

    buffer = io.BytesIO()
    fig.savefig(buffer, format='png', facecolor='white', bbox_inches='tight')
    png = buffer.getvalue()
    logger.debug('Rendered line chart: points=%d bytes=%d', len(xs), len(png))
    return png


def line_chart_data_uri(
    xs: Sequence[float] = DEMO_XS,
    ys: Sequence[float] = DEMO_YS,
    *,
    title: str | None = None,
    dpi: int = 100,
) -> str:
    encoded = base64.b64encode(line_chart_png(xs, ys, title=title, dpi=dpi)).decode('ascii')
    return f'data:image/png;base64,{encoded}'
