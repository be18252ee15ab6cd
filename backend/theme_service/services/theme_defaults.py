"""Baseline theme attributes used to seed new records and fill partial writes."""

import copy

DEFAULT_THEME_NAME = "My Theme"
DEFAULT_RADIUS = 0.5

# Ordered: this is also the order in which color variables are rendered
DEFAULT_THEME_COLORS: dict[str, str] = {
    "background": "#ffffff",
    "foreground": "#0a0a0a",
    "primary": "#0a0a0a",
    "primary-foreground": "#ffffff",
    "secondary": "#f5f5f5",
    "secondary-foreground": "#0a0a0a",
    "accent": "#f5f5f5",
    "accent-foreground": "#0a0a0a",
    "muted": "#f5f5f5",
    "muted-foreground": "#737373",
    "card": "#ffffff",
    "card-foreground": "#0a0a0a",
    "border": "#e5e5e5",
    "input": "#e5e5e5",
    "ring": "#a3a3a3",
    "destructive": "#ef4444",
    "destructive-foreground": "#ffffff",
}

REQUIRED_COLOR_ROLES: tuple[str, ...] = tuple(DEFAULT_THEME_COLORS)

DEFAULT_SHADOWS: dict = {
    "enabled": True,
    "opacity": 0.05,
    "blur": 2,
}

DEFAULT_FONTS: dict[str, str] = {
    "sans": "Inter",
    "serif": "Source Serif 4",
    "mono": "JetBrains Mono",
}


def default_theme() -> dict:
    """Return a fresh, fully populated baseline theme.

    Identity fields (user id, scope, timestamps) are not included. The
    result is a deep copy, so callers may mutate it freely.
    """
    return copy.deepcopy(
        {
            "name": DEFAULT_THEME_NAME,
            "colors": DEFAULT_THEME_COLORS,
            "radius": DEFAULT_RADIUS,
            "shadows": DEFAULT_SHADOWS,
            "fonts": DEFAULT_FONTS,
        }
    )
