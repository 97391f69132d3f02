"""Tests for the focus_peaking and calculate_histogram entry points."""

import os
import threading
from unittest.mock import patch

import numpy as np
import pytest
from PIL import Image

import peakview
from peakview.cancellation import CancellationRegistry
from peakview.models import LuminanceHistogram, RgbHistogram


@pytest.fixture
def registry():
    return CancellationRegistry("test")


def _save(tmp_path, name, arr):
    path = tmp_path / name
    Image.fromarray(arr).save(path)
    return path


def _solid(w, h, color):
    arr = np.zeros((h, w, 3), dtype=np.uint8)
    arr[:, :] = color
    return arr


def _step(w, h, split):
    arr = np.zeros((h, w, 3), dtype=np.uint8)
    arr[:, split:] = 255
    return arr


class TestHistogram:
    def test_solid_red_rgb(self, tmp_path, registry):
        path = _save(tmp_path, "red.png", _solid(10, 10, (255, 0, 0)))

        result = peakview.calculate_histogram(str(path), "rgb", registry=registry)

        assert result.width == 10
        assert result.height == 10
        assert result.histogram_type == "rgb"
        assert isinstance(result.data, RgbHistogram)
        assert result.data.r[255] == 100
        assert result.data.r[:255].sum() == 0
        assert result.data.g[0] == 100
        assert result.data.b[0] == 100
        assert len(registry) == 0

    def test_luminance_single_pixel(self, tmp_path, registry):
        path = _save(tmp_path, "px.png", _solid(1, 1, (100, 150, 200)))

        result = peakview.calculate_histogram(path, "luminance", registry=registry)

        assert result.histogram_type == "luminance"
        assert isinstance(result.data, LuminanceHistogram)
        assert result.data.y[142] == 1

    def test_sum_invariant(self, tmp_path, registry):
        rng = np.random.default_rng(0)
        arr = rng.integers(0, 256, (233, 171, 3), dtype=np.uint8)
        path = _save(tmp_path, "noise.png", arr)

        rgb = peakview.calculate_histogram(path, "rgb", registry=registry)
        lum = peakview.calculate_histogram(path, "luminance", registry=registry)

        total = 233 * 171
        assert rgb.data.r.sum() == total
        assert rgb.data.g.sum() == total
        assert rgb.data.b.sum() == total
        assert lum.data.y.sum() == total

    def test_accepts_pixel_buffer(self, registry):
        result = peakview.calculate_histogram(
            _solid(4, 3, (0, 255, 0)), "rgb", registry=registry
        )
        assert (result.width, result.height) == (4, 3)
        assert result.data.g[255] == 12

    def test_invalid_mode_cleans_up(self, tmp_path, registry):
        path = _save(tmp_path, "red.png", _solid(2, 2, (255, 0, 0)))

        with pytest.raises(peakview.InvalidModeError) as exc:
            peakview.calculate_histogram(path, "yuv", registry=registry)

        assert exc.value.kind == "InvalidMode"
        assert exc.value.value == "yuv"
        assert isinstance(exc.value, ValueError)
        assert len(registry) == 0

    def test_numpy_integer_threshold(self, registry):
        result = peakview.focus_peaking(_step(20, 20, 10), np.uint8(100), registry=registry)
        assert result.edges

    def test_missing_file_cleans_up(self, tmp_path, registry):
        with pytest.raises(peakview.ImageNotFoundError):
            peakview.calculate_histogram(tmp_path / "nope.png", "rgb", registry=registry)
        assert len(registry) == 0

    def test_decode_failure_cleans_up(self, tmp_path, registry):
        path = tmp_path / "broken.jpg"
        path.write_bytes(b"garbage")

        with pytest.raises(peakview.ImageDecodeError):
            peakview.calculate_histogram(path, "rgb", registry=registry)
        assert len(registry) == 0

    def test_to_dict_shape(self, registry):
        result = peakview.calculate_histogram(
            _solid(2, 2, (1, 2, 3)), "luminance", registry=registry
        )
        data = result.to_dict()

        assert data["histogram_type"] == "luminance"
        assert data["data"]["type"] == "Luminance"
        assert len(data["data"]["y"]) == 256
        assert sum(data["data"]["y"]) == 4


class TestFocusPeaking:
    def test_uniform_image_has_no_edges(self, tmp_path, registry):
        path = _save(tmp_path, "flat.png", _solid(40, 30, (120, 120, 120)))

        for threshold in (1, 50, 255):
            result = peakview.focus_peaking(path, threshold, registry=registry)
            assert result.edges == []
            assert (result.width, result.height) == (40, 30)

        assert len(registry) == 0

    def test_step_edge_found_in_bounds(self, tmp_path, registry):
        path = _save(tmp_path, "step.png", _step(50, 40, 25))

        result = peakview.focus_peaking(str(path), 100, registry=registry)

        assert len(result.edges) >= 1
        xs = {p.x for edge in result.edges for p in edge}
        assert xs <= {24.0, 25.0}
        for edge in result.edges:
            assert len(edge) > 1
            for p in edge:
                assert 0 <= p.x < 50
                assert 0 <= p.y < 40

    def test_large_image_is_downsampled_and_scaled_back(self, registry):
        arr = _step(2500, 400, 1250)

        with patch(
            "peakview.core.to_grayscale",
            wraps=peakview.core.to_grayscale,
        ) as spy:
            result = peakview.focus_peaking(arr, 100, registry=registry)

        working = spy.call_args[0][0]
        assert working.shape[:2] == (307, 1920)
        assert (result.width, result.height) == (2500, 400)
        assert result.edges
        for edge in result.edges:
            for p in edge:
                assert 0 <= p.x < 2500
                assert 0 <= p.y < 400
                assert abs(p.x - 1250) < 10

    def test_downsample_threshold_override(self, registry):
        arr = _step(300, 200, 150)

        result = peakview.focus_peaking(
            arr, 100, registry=registry, downsample_threshold=100
        )

        assert (result.width, result.height) == (300, 200)
        for edge in result.edges:
            for p in edge:
                assert 0 <= p.x < 300
                assert 0 <= p.y < 200

    def test_point_budget_override(self, registry):
        rng = np.random.default_rng(5)
        arr = rng.integers(0, 256, (120, 120, 3), dtype=np.uint8)

        full = peakview.focus_peaking(arr, 60, registry=registry, max_points=10**9)
        thinned = peakview.focus_peaking(arr, 60, registry=registry, max_points=500)

        assert full.total_points > 500
        assert thinned.total_points <= full.total_points
        assert len(thinned.edges) <= len(full.edges)

    def test_invalid_threshold(self, registry):
        with pytest.raises(ValueError):
            peakview.focus_peaking(_solid(3, 3, (0, 0, 0)), 256, registry=registry)
        with pytest.raises(ValueError):
            peakview.focus_peaking(_solid(3, 3, (0, 0, 0)), "high", registry=registry)
        for bad in (12.7, 12.0, "12", True):
            with pytest.raises(ValueError):
                peakview.focus_peaking(_solid(3, 3, (0, 0, 0)), bad, registry=registry)
        assert len(registry) == 0

    def test_numpy_integer_threshold(self, registry):
        result = peakview.focus_peaking(
            _step(20, 20, 10), np.uint8(100), registry=registry
        )
        assert result.edges

    def test_missing_file(self, tmp_path, registry):
        with pytest.raises(peakview.ImageNotFoundError) as exc:
            peakview.focus_peaking(tmp_path / "nope.png", 128, registry=registry)
        assert exc.value.kind == "FileNotFound"
        assert len(registry) == 0

    def test_to_dict_shape(self, registry):
        result = peakview.focus_peaking(_step(20, 20, 10), 100, registry=registry)
        data = result.to_dict()

        assert data["width"] == 20
        assert data["height"] == 20
        assert data["edges"]
        assert set(data["edges"][0][0]) == {"x", "y"}


class TestCoalescing:
    def test_newer_request_cancels_older(self, registry):
        arr = _step(30, 30, 15)
        first_loading = threading.Event()
        release_first = threading.Event()
        calls = []

        def slow_then_fast_load(path):
            calls.append(path)
            if len(calls) == 1:
                first_loading.set()
                release_first.wait(5)
            return arr.copy()

        outcome = {}

        def first_request():
            try:
                outcome["result"] = peakview.focus_peaking(
                    "a.png", 100, "overlay", registry=registry
                )
            except peakview.AnalysisCancelled as e:
                outcome["error"] = e

        with patch("peakview.core.load_image", side_effect=slow_then_fast_load):
            worker = threading.Thread(target=first_request)
            worker.start()
            assert first_loading.wait(5)

            second = peakview.focus_peaking("a.png", 100, "overlay", registry=registry)

            release_first.set()
            worker.join(5)

        assert second.edges
        assert "result" not in outcome
        assert outcome["error"].kind == "Cancelled"
        assert outcome["error"].request_id.startswith("overlay#")
        assert len(registry) == 0

    def test_different_keys_do_not_interfere(self, registry):
        a = peakview.focus_peaking(_step(20, 20, 10), 100, "left", registry=registry)
        b = peakview.focus_peaking(_step(20, 20, 10), 100, "right", registry=registry)
        assert a.edges and b.edges

    def test_default_registries_are_separate(self):
        assert peakview.core.PEAKING_REGISTRY is not peakview.core.HISTOGRAM_REGISTRY


class TestConcurrentCallers:
    def test_threading_layer_allows_concurrent_callers(self):
        assert os.environ["NUMBA_THREADING_LAYER"] in ("threadsafe", "safe", "tbb", "omp")

    def test_parallel_requests_from_several_threads(self):
        arr = _step(600, 400, 300)
        expected_peaking = peakview.focus_peaking(arr, 60, "solo")
        expected_hist = peakview.calculate_histogram(arr, "luminance", "solo")
        failures = []

        def run(i):
            try:
                for _ in range(3):
                    peaking = peakview.focus_peaking(arr, 60, f"concurrent-{i}")
                    hist = peakview.calculate_histogram(
                        arr, "luminance", f"concurrent-{i}"
                    )
                    assert peaking.total_points == expected_peaking.total_points
                    assert np.array_equal(hist.data.y, expected_hist.data.y)
            except Exception as e:
                failures.append(e)

        threads = [threading.Thread(target=run, args=(i,)) for i in range(4)]
        for t in threads:
            t.start()
        for t in threads:
            t.join(60)

        assert not failures
        assert len(peakview.core.PEAKING_REGISTRY) == 0
        assert len(peakview.core.HISTOGRAM_REGISTRY) == 0
