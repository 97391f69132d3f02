import logging
import os
from importlib.metadata import PackageNotFoundError, version
from pathlib import Path

logger = logging.getLogger(__name__)


def _setup_cache_dirs():
    """Point the OpenCV OpenCL and Numba JIT caches at the user cache dir
    and select a Numba threading layer that allows concurrent callers."""
    from platformdirs import user_cache_dir

    cache_root = Path(user_cache_dir("peakview", ensure_exists=True))
    for env_var, sub_dir in (
        ("OPENCV_OPENCL_CACHE_DIR", "opencv_cl"),
        ("NUMBA_CACHE_DIR", "numba"),
    ):
        if env_var in os.environ:
            continue
        cache_dir = cache_root / sub_dir
        cache_dir.mkdir(parents=True, exist_ok=True)
        os.environ[env_var] = str(cache_dir)
        logger.debug(f"{env_var} set to: {cache_dir}")

    # Overlay workers call parallel kernels from several threads at once
    os.environ.setdefault("NUMBA_THREADING_LAYER", "threadsafe")


# MUST run BEFORE cv2 or numba is imported anywhere
_setup_cache_dirs()

from .core import (  # noqa: E402
    HISTOGRAM_MODES,
    calculate_histogram,
    focus_peaking,
)
from .errors import (  # noqa: E402
    AnalysisCancelled,
    AnalysisError,
    ImageDecodeError,
    ImageNotFoundError,
    InvalidModeError,
)
from .io.image import HEIF_SUPPORTED, SUPPORTED_EXTS, load_image  # noqa: E402
from .models import (  # noqa: E402
    EdgePoint,
    HistogramResult,
    LuminanceHistogram,
    PeakingResult,
    RgbHistogram,
)

__all__ = [
    "focus_peaking",
    "calculate_histogram",
    "load_image",
    "HISTOGRAM_MODES",
    "SUPPORTED_EXTS",
    "HEIF_SUPPORTED",
    "EdgePoint",
    "PeakingResult",
    "HistogramResult",
    "RgbHistogram",
    "LuminanceHistogram",
    "AnalysisError",
    "AnalysisCancelled",
    "ImageNotFoundError",
    "ImageDecodeError",
    "InvalidModeError",
]

try:
    __version__ = version("peakview")
except PackageNotFoundError:
    __version__ = "unknown"
