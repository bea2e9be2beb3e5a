"""Application-wide constants.

Values that depend on the deployment (port, host, log level) can be
overridden through environment variables; everything else is fixed.
"""

from __future__ import annotations

import logging
import os

# ── Engine driving ───────────────────────────────────────────────────

# Upper bound on epochs advanced per engine call.
CHUNK_SIZE = 25

# Distance measurements per node per epoch.  This is a compile-time
# parameter of the estimation engine; the form shows it read-only and
# uses it as the lower bound for the node count.
DEFAULT_N_MEASUREMENTS = 10

# ── Overlay geometry ─────────────────────────────────────────────────

ARC_SEGMENTS = 100
ELLIPSE_POINTS = 72

# ── Web UI ───────────────────────────────────────────────────────────

POLL_INTERVAL_MS = 250

COLORS = {
    "green": "#00ff9f",
    "blue": "#00b8ff",
    "orange": "#ff4f00",
    "pink": "#ff0060",
    "purple": "#8b00ff",
    "grey": "#808080",
    "white": "#ffffff",
}

LAYOUT_DEFAULTS = dict(
    template="plotly_dark",
    paper_bgcolor="#0a0a0f",
    plot_bgcolor="#0a0a0f",
    font=dict(family="Inter, -apple-system, sans-serif", color="#e8eaed"),
    margin=dict(l=20, r=20, t=50, b=20),
    height=600,
    uirevision="stable",
)

# ── Environment ──────────────────────────────────────────────────────

HOST = os.environ.get("HOST", "0.0.0.0")
PORT = int(os.environ.get("PORT", 7860))
LOG_LEVEL = logging.getLevelName(
    os.environ.get("POSITIONING_SIM_LOG_LEVEL", "INFO").upper()
)
if not isinstance(LOG_LEVEL, int):
    LOG_LEVEL = logging.INFO
