"""
Global constants for image analysis.
"""

# ITU-R BT.709 luma weights in fixed point (sum == LUMA_SCALE) so that truncation is exact
LUMA_R_FIXED = 2126
LUMA_G_FIXED = 7152
LUMA_B_FIXED = 722
LUMA_SCALE = 10000

HISTOGRAM_BINS = 256

# Images with either side at or above this are shrunk before peaking
DOWNSAMPLE_THRESHOLD = 2000
# Longer side after shrinking
DOWNSAMPLE_TARGET = 1920

# Hard cap on points collected by one flood fill
MAX_COMPONENT_POINTS = 5000
# Global point budget for a peaking result
MAX_TOTAL_POINTS = 10000
# Components shorter than this (after budget scaling) are dropped
MIN_COMPONENT_POINTS = 2

# Rows between cancellation checks in the scan and histogram loops
CANCEL_CHECK_INTERVAL = 100

__all__ = [
    "LUMA_R_FIXED",
    "LUMA_G_FIXED",
    "LUMA_B_FIXED",
    "LUMA_SCALE",
    "HISTOGRAM_BINS",
    "DOWNSAMPLE_THRESHOLD",
    "DOWNSAMPLE_TARGET",
    "MAX_COMPONENT_POINTS",
    "MAX_TOTAL_POINTS",
    "MIN_COMPONENT_POINTS",
    "CANCEL_CHECK_INTERVAL",
]
