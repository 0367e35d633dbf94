from __future__ import annotations

import os

# Settings read the environment at import time; keep the suite headless and fast
os.environ.setdefault("VISION_MOCK", "1")
os.environ.setdefault("COUNTDOWN_TICK_SECONDS", "0.05")
os.environ.setdefault("MIRROR_RECONCILE_SECONDS", "0.05")
