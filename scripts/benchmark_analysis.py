import argparse
import os
import sys
import time
from pathlib import Path

# Add src to path
sys.path.append(str(Path(__file__).parent.parent / "src"))

import cv2
import numpy as np

from peakview.cancellation import CancellationToken
from peakview.core import calculate_histogram, focus_peaking
from peakview.io.image import load_image
from peakview.processing.downsample import to_grayscale
from peakview.processing.histogram import calculate_rgb_histogram
from peakview.processing.peaking import apply_sobel_filter, extract_edge_points
from peakview.utils.numba_warmup import warmup_kernels


def create_synthetic_image(w, h):
    """Gradient plus a few hard-edged shapes so peaking has something to find."""
    x = np.linspace(0, 255, w, dtype=np.float32)
    img = np.repeat(np.tile(x, (h, 1))[:, :, np.newaxis], 3, axis=2)
    for i in range(8):
        cx, cy = (i + 1) * w // 9, h // 2
        cv2.circle(img, (cx, cy), max(4, min(w, h) // 12), (255, 40 * i, 0), -1)
    return img.astype(np.uint8)


def _time(fn, iterations):
    times = []
    for _ in range(iterations):
        start = time.perf_counter()
        fn()
        times.append(time.perf_counter() - start)
    return np.mean(times) * 1000


def benchmark_sobel(image, iterations=5):
    print(f"\n[Sobel Benchmark] {image.shape}")
    gray = to_grayscale(image)
    token = CancellationToken()

    avg_cv = _time(
        lambda: cv2.magnitude(
            cv2.Sobel(gray, cv2.CV_32F, 1, 0, ksize=3),
            cv2.Sobel(gray, cv2.CV_32F, 0, 1, ksize=3),
        ),
        iterations,
    )
    print(f"OpenCV Sobel:     {avg_cv:.2f} ms")

    avg_numba = _time(lambda: apply_sobel_filter(gray, token), iterations)
    print(f"Numba (rows):     {avg_numba:.2f} ms")
    print(f"Ratio:            {avg_cv / avg_numba:.2f}x")


def benchmark_trace(image, threshold=128, iterations=5):
    print(f"\n[Edge Trace Benchmark] {image.shape} threshold={threshold}")
    token = CancellationToken()
    mag = apply_sobel_filter(to_grayscale(image), token)

    edges = extract_edge_points(mag, threshold, token)
    avg = _time(lambda: extract_edge_points(mag, threshold, token), iterations)
    total = sum(len(e) for e in edges)
    print(f"Trace:            {avg:.2f} ms ({len(edges)} edges, {total} points)")


def benchmark_histogram(image, iterations=5):
    print(f"\n[Histogram Benchmark] {image.shape}")
    token = CancellationToken()

    def numpy_hist():
        for ch in range(3):
            np.bincount(image[:, :, ch].ravel(), minlength=256)

    avg_np = _time(numpy_hist, iterations)
    print(f"NumPy bincount:   {avg_np:.2f} ms")

    avg_numba = _time(lambda: calculate_rgb_histogram(image, token), iterations)
    print(f"Numba (bands):    {avg_numba:.2f} ms")
    print(f"Speedup:          {avg_np / avg_numba:.2f}x")


def benchmark_end_to_end(image, iterations=3):
    print(f"\n[End-to-End Benchmark] {image.shape}")
    avg_peak = _time(lambda: focus_peaking(image, 128), iterations)
    print(f"focus_peaking:        {avg_peak:.2f} ms")
    avg_hist = _time(lambda: calculate_histogram(image, "luminance"), iterations)
    print(f"calculate_histogram:  {avg_hist:.2f} ms")


def main():
    parser = argparse.ArgumentParser()
    parser.add_argument("--size", type=int, default=2000, help="Image size (square)")
    parser.add_argument("--image", help="Path to a real image file")
    args = parser.parse_args()

    is_first_run, elapsed_ms = warmup_kernels()
    print(f"Kernel warmup: {elapsed_ms:.0f} ms (cold cache: {is_first_run})")

    if args.image and os.path.exists(args.image):
        print(f"Loading {args.image}...")
        image = load_image(args.image)
    else:
        print(f"Generated synthetic image {args.size}x{args.size}")
        image = create_synthetic_image(args.size, args.size)

    benchmark_sobel(image)
    benchmark_trace(image)
    benchmark_histogram(image)
    benchmark_end_to_end(image)


if __name__ == "__main__":
    main()
