from .downsample import (
    downsample_if_needed as downsample_if_needed,
    to_grayscale as to_grayscale,
)
from .histogram import (
    calculate_luminance_histogram as calculate_luminance_histogram,
    calculate_rgb_histogram as calculate_rgb_histogram,
)
from .peaking import (
    apply_sobel_filter as apply_sobel_filter,
    extract_edge_points as extract_edge_points,
    scale_back_edges as scale_back_edges,
    thin_edges as thin_edges,
)
