import os

# Run Qt headless when no platform is configured (e.g. CI without a display).
os.environ.setdefault("QT_QPA_PLATFORM", "offscreen")
