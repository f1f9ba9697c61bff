"""Shared style constants for MINDFU."""

COLORS = {
    "bass": "#3f6e8c",
    "primary": "#6fa8c9",
    "highlight": "#a8d5e2",
    "background": "#14181c",
    "surface": "#222a31",
    "muted": "#8a96a0",
    "dim": "#55606a",
    "inactive": "#303a42",
}

COLOR_BASS = COLORS["bass"]
COLOR_PRIMARY = COLORS["primary"]
COLOR_HIGHLIGHT = COLORS["highlight"]
COLOR_BACKGROUND = COLORS["background"]
COLOR_SURFACE = COLORS["surface"]
COLOR_MUTED = COLORS["muted"]
COLOR_DIM = COLORS["dim"]
COLOR_INACTIVE = COLORS["inactive"]
