import logging
import time

import numpy as np

from ..errors import AnalysisCancelled
from ..models import EdgePoint
from ..utils.numba_sobel import sobel_magnitude_kernel
from ..utils.numba_trace import trace_edges_kernel
from .constants import (
    CANCEL_CHECK_INTERVAL,
    MAX_COMPONENT_POINTS,
    MAX_TOTAL_POINTS,
    MIN_COMPONENT_POINTS,
)

logger = logging.getLogger(__name__)


def apply_sobel_filter(gray, token):
    """
    Gradient magnitude (uint8, same shape as ``gray``) with a zero border.
    Raises AnalysisCancelled if ``token`` trips before every row is done.
    """
    start_time = time.perf_counter()
    gray = np.ascontiguousarray(gray, dtype=np.uint8)
    out = np.zeros_like(gray)

    skipped = sobel_magnitude_kernel(gray, out, token.buffer)
    if skipped:
        raise AnalysisCancelled()

    elapsed = (time.perf_counter() - start_time) * 1000
    h, w = gray.shape
    logger.debug(f"Sobel: Size: {w}x{h} | Time: {elapsed:.2f}ms")
    return out


def extract_edge_points(
    magnitude,
    threshold,
    token,
    max_points=MAX_COMPONENT_POINTS,
    check_interval=CANCEL_CHECK_INTERVAL,
):
    """
    Traces 4-connected components of pixels with ``magnitude >= threshold``.

    Returns a list of int32 arrays of shape (n, 2) holding (x, y) in
    visitation order, one per component with more than one point.
    """
    if max_points < 1:
        raise ValueError(f"max_points must be at least 1, got {max_points}")
    magnitude = np.ascontiguousarray(magnitude, dtype=np.uint8)
    capacity = int(np.count_nonzero(magnitude >= threshold))

    xs, ys, offsets, cancelled = trace_edges_kernel(
        magnitude, int(threshold), int(max_points), int(check_interval), capacity, token.buffer
    )
    if cancelled:
        raise AnalysisCancelled()

    points = np.stack((xs, ys), axis=1)
    return [points[offsets[i] : offsets[i + 1]] for i in range(len(offsets) - 1)]


def thin_edges(edges, max_total=MAX_TOTAL_POINTS):
    """
    Drops whole components when the total point count exceeds ``max_total``.

    With ``ratio = max_total / total``, a component survives only if
    ``len * ratio >= 2``; survivors are kept untouched.
    """
    total = sum(len(edge) for edge in edges)
    if total <= max_total:
        return list(edges)

    ratio = max_total / total
    kept = [edge for edge in edges if len(edge) * ratio >= MIN_COMPONENT_POINTS]
    logger.debug(
        f"Thinning: {total} points over budget {max_total}, kept {len(kept)}/{len(edges)} edges"
    )
    return kept


def scale_back_edges(edges, scale, width, height):
    """
    Converts traced components to EdgePoint lists in original image space,
    rounding scaled coordinates and clamping them into the image.
    """
    result = []
    if scale is None:
        for edge in edges:
            result.append([EdgePoint(float(x), float(y)) for x, y in edge])
        return result

    scale_x, scale_y = scale
    logger.debug(f"ScaleBack: x={scale_x:.2f}, y={scale_y:.2f}")
    max_x = float(max(width - 1, 0))
    max_y = float(max(height - 1, 0))
    for edge in edges:
        pts = np.asarray(edge, dtype=np.float64).reshape(-1, 2)
        px = np.clip(np.round(pts[:, 0] * scale_x), 0.0, max_x)
        py = np.clip(np.round(pts[:, 1] * scale_y), 0.0, max_y)
        result.append([EdgePoint(float(x), float(y)) for x, y in zip(px, py)])
    return result
