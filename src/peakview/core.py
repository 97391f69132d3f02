#!/usr/bin/env python3
import logging
import numbers
import os
import time

from .cancellation import CancellationRegistry
from .errors import AnalysisCancelled, InvalidModeError
from .io.image import as_rgb8, load_image
from .models import HistogramResult, LuminanceHistogram, PeakingResult, RgbHistogram
from .processing.constants import DOWNSAMPLE_THRESHOLD, MAX_TOTAL_POINTS
from .processing.downsample import downsample_if_needed, to_grayscale
from .processing.histogram import calculate_luminance_histogram, calculate_rgb_histogram
from .processing.peaking import (
    apply_sobel_filter,
    extract_edge_points,
    scale_back_edges,
    thin_edges,
)

# Configure logger for this module
logger = logging.getLogger(__name__)

HISTOGRAM_MODES = ("rgb", "luminance")

# Separate registries so one correlation id can drive both overlays
PEAKING_REGISTRY = CancellationRegistry("Peaking")
HISTOGRAM_REGISTRY = CancellationRegistry("Histogram")


def _source_key(image):
    if isinstance(image, (str, os.PathLike)):
        return str(image)
    return f"buffer:{id(image)}"


def _load(image):
    if isinstance(image, (str, os.PathLike)):
        return load_image(image)
    return as_rgb8(image)


def _check_cancelled(token, identity, label, stage):
    if token.cancelled:
        logger.debug(f"[{label}] Cancellation detected ({stage}): {identity.request_id}")
        raise AnalysisCancelled(identity.request_id)


def _validate_threshold(threshold):
    # bool is an Integral but never a meaningful threshold
    if isinstance(threshold, bool) or not isinstance(threshold, numbers.Integral):
        raise ValueError(f"Threshold must be an integer in 0-255, got {threshold!r}")
    value = int(threshold)
    if not 0 <= value <= 255:
        raise ValueError(f"Threshold must be in 0-255, got {value}")
    return value


# ---------------- Focus Peaking ----------------
def focus_peaking(
    image,
    threshold,
    request_id=None,
    *,
    registry=None,
    downsample_threshold=DOWNSAMPLE_THRESHOLD,
    max_points=MAX_TOTAL_POINTS,
):
    """
    Edge overlay for an image path or an RGB pixel buffer.

    ``request_id`` is the coalescing key: a newer call with the same key
    cancels this one, which then raises AnalysisCancelled. Without it the
    key is ``"<path>:<threshold>"``.

    Returns a PeakingResult whose width, height and edge coordinates are in
    the original (pre-downsample) image space.
    """
    threshold = _validate_threshold(threshold)
    if registry is None:
        registry = PEAKING_REGISTRY
    base_key = request_id if request_id is not None else f"{_source_key(image)}:{threshold}"

    with registry.request(base_key) as (identity, token):
        total_start = time.perf_counter()
        logger.debug(f"[Peaking] New request: {identity.request_id}")

        load_start = time.perf_counter()
        img = _load(image)
        original_h, original_w = img.shape[:2]
        logger.debug(
            f"[Peaking] Load: {(time.perf_counter() - load_start) * 1000:.2f}ms | Size: {original_w}x{original_h}"
        )
        _check_cancelled(token, identity, "Peaking", "after load")

        working, scale = downsample_if_needed(img, downsample_threshold)
        gray = to_grayscale(working)

        try:
            magnitude = apply_sobel_filter(gray, token)
            _check_cancelled(token, identity, "Peaking", "after sobel")

            extract_start = time.perf_counter()
            edges = extract_edge_points(magnitude, threshold, token)
            logger.debug(
                f"[Peaking] Edge extraction: {(time.perf_counter() - extract_start) * 1000:.2f}ms"
            )
        except AnalysisCancelled:
            logger.debug(f"[Peaking] Cancelled mid-computation: {identity.request_id}")
            raise AnalysisCancelled(identity.request_id) from None

        edges = thin_edges(edges, max_points)
        _check_cancelled(token, identity, "Peaking", "after tracing")

        points = scale_back_edges(edges, scale, original_w, original_h)
        result = PeakingResult(width=original_w, height=original_h, edges=points)

        elapsed = (time.perf_counter() - total_start) * 1000
        logger.debug(
            f"[Peaking] Done: {identity.request_id} | Time: {elapsed:.2f}ms | "
            f"Size: {original_w}x{original_h} | {len(points)} edge groups, {result.total_points} total points"
        )
        return result


# ---------------- Histogram ----------------
def calculate_histogram(image, mode, request_id=None, *, registry=None):
    """
    256-bin histogram of an image path or RGB pixel buffer.

    ``mode`` is ``"rgb"`` (three channels) or ``"luminance"`` (BT.709 luma).
    Coalescing works as in focus_peaking, with ``"<path>:<mode>"`` as the
    default key. Histograms always run at full resolution.
    """
    if registry is None:
        registry = HISTOGRAM_REGISTRY
    base_key = request_id if request_id is not None else f"{_source_key(image)}:{mode}"

    with registry.request(base_key) as (identity, token):
        total_start = time.perf_counter()
        logger.debug(f"[Histogram] New request: {identity.request_id}")

        if mode not in HISTOGRAM_MODES:
            raise InvalidModeError(mode)

        load_start = time.perf_counter()
        img = _load(image)
        height, width = img.shape[:2]
        logger.debug(
            f"[Histogram] Load: {(time.perf_counter() - load_start) * 1000:.2f}ms | Size: {width}x{height}"
        )
        _check_cancelled(token, identity, "Histogram", "after load")

        try:
            if mode == "rgb":
                r, g, b = calculate_rgb_histogram(img, token)
                data = RgbHistogram(r=r, g=g, b=b)
            else:
                data = LuminanceHistogram(y=calculate_luminance_histogram(img, token))
        except AnalysisCancelled:
            logger.debug(f"[Histogram] Cancelled mid-computation: {identity.request_id}")
            raise AnalysisCancelled(identity.request_id) from None

        _check_cancelled(token, identity, "Histogram", "after calculation")

        elapsed = (time.perf_counter() - total_start) * 1000
        logger.debug(
            f"[Histogram] Done: {identity.request_id} | Time: {elapsed:.2f}ms | "
            f"Size: {width}x{height} | Type: {mode}"
        )
        return HistogramResult(width=width, height=height, histogram_type=mode, data=data)

