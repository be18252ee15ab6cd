"""Render a resolved theme into a CSS custom-property stylesheet.

Rendering is pure: the same theme always produces byte-identical CSS, which
is what lets the stylesheet be cached next to the record it came from.
"""

from typing import Any, Mapping, Optional

from theme_service.services.color import format_number, to_oklch
from theme_service.services.theme_defaults import REQUIRED_COLOR_ROLES

# Variables that point at other variables rather than at literal values
COLOR_ALIASES: tuple[tuple[str, str], ...] = (
    ("popover", "var(--card)"),
    ("popover-foreground", "var(--card-foreground)"),
    ("sidebar", "var(--background)"),
    ("sidebar-foreground", "var(--foreground)"),
    ("sidebar-primary", "var(--primary)"),
    ("sidebar-primary-foreground", "var(--primary-foreground)"),
    ("sidebar-accent", "var(--accent)"),
    ("sidebar-accent-foreground", "var(--accent-foreground)"),
    ("sidebar-border", "var(--border)"),
    ("sidebar-ring", "var(--ring)"),
)

CHART_COLORS: tuple[str, ...] = (
    "oklch(0.646 0.222 41.116)",
    "oklch(0.6 0.118 184.704)",
    "oklch(0.398 0.07 227.392)",
    "oklch(0.828 0.189 84.429)",
    "oklch(0.769 0.188 70.08)",
)

FONT_FALLBACKS: dict[str, str] = {
    "sans": "ui-sans-serif, system-ui, sans-serif",
    "serif": "ui-serif, Georgia, serif",
    "mono": "ui-monospace, SFMono-Regular, Menlo, monospace",
}

SHADOW_COLOR = "hsl(0 0% 0%)"
SHADOW_SPREAD = "0px"
SHADOW_OFFSET_X = "0"
SHADOW_OFFSET_Y = "1px"

# (level, alpha multiplier, second layer "offset-y blur spread" or None)
SHADOW_SCALE: tuple[tuple[str, float, Optional[str]], ...] = (
    ("2xs", 0.6, None),
    ("xs", 0.6, None),
    ("sm", 1.0, "1px 2px -1px"),
    ("", 1.0, "1px 2px -1px"),
    ("md", 1.0, "2px 4px -1px"),
    ("lg", 1.0, "4px 6px -1px"),
    ("xl", 1.0, "8px 10px -1px"),
    ("2xl", 2.6, None),
)

LAYOUT_CONSTANTS: tuple[tuple[str, str], ...] = (
    ("letter-spacing", "0em"),
    ("spacing", "0.25rem"),
    ("tracking-normal", "0em"),
)


def _get(theme: Any, field: str) -> Any:
    """Read a field from either a mapping or an attribute-style record."""
    if isinstance(theme, Mapping):
        return theme.get(field)
    return getattr(theme, field, None)


def _plain(value: Any) -> Mapping:
    """Turn a nested pydantic model into a mapping (mappings pass through)."""
    if hasattr(value, "model_dump"):
        return value.model_dump()
    return value


def ordered_color_roles(colors: Mapping[str, str]) -> list[str]:
    """Fixed roles in canonical order, then extension roles sorted by name."""
    fixed = [role for role in REQUIRED_COLOR_ROLES if role in colors]
    extra = sorted(role for role in colors if role not in REQUIRED_COLOR_ROLES)
    return fixed + extra


def _css_string(value: str) -> str:
    """Quote ``value`` as a CSS string; control characters become hex escapes."""
    out = []
    for char in value:
        if char in ("\\", "'"):
            out.append("\\" + char)
        elif ord(char) < 0x20 or ord(char) == 0x7F:
            # Trailing space ends the escape (newline -> "\A ")
            out.append(f"\\{ord(char):X} ")
        else:
            out.append(char)
    return "'" + "".join(out) + "'"


def _shadow_layer(offset_y_blur_spread: str, alpha: str) -> str:
    return f"0 {offset_y_blur_spread} hsl(0 0% 0% / {alpha})"


def render_shadow_scale(shadows: Mapping) -> list[tuple[str, str]]:
    """Build the eight ``--shadow*`` declarations for a shadows setting."""
    declarations = []
    for level, multiplier, second_layer in SHADOW_SCALE:
        name = f"shadow-{level}" if level else "shadow"
        if not shadows["enabled"]:
            declarations.append((name, "none"))
            continue
        alpha = format_number(float(shadows["opacity"]) * multiplier)
        blur = format_number(float(shadows["blur"]))
        value = _shadow_layer(f"{SHADOW_OFFSET_Y} {blur}px {SHADOW_SPREAD}", alpha)
        if second_layer:
            value += ", " + _shadow_layer(second_layer, alpha)
        declarations.append((name, value))
    return declarations


def render_theme_css(theme: Any, *, site: bool = False) -> str:
    """Serialize a fully populated theme into a ``:root`` stylesheet.

    Args:
        theme: Theme record (mapping or schema object) with name, colors,
            radius, shadows, fonts and, for the site theme, logo
        site: Emit the site-wide extras (logo variable, name comment)

    Returns:
        CSS text ending with a newline
    """
    colors = _plain(_get(theme, "colors"))
    shadows = _plain(_get(theme, "shadows"))
    fonts = _plain(_get(theme, "fonts"))

    lines = [":root {"]

    def declare(name: str, value: str) -> None:
        lines.append(f"  --{name}: {value};")

    declare("radius", f"{format_number(float(_get(theme, 'radius')))}rem")

    for role in ordered_color_roles(colors):
        declare(role, to_oklch(colors[role]))

    for name, value in COLOR_ALIASES:
        declare(name, value)
    for index, value in enumerate(CHART_COLORS, start=1):
        declare(f"chart-{index}", value)

    for kind in ("sans", "serif", "mono"):
        declare(f"font-{kind}", f"{_css_string(fonts[kind])}, {FONT_FALLBACKS[kind]}")

    declare("shadow-enabled", "1" if shadows["enabled"] else "0")
    declare("shadow-color", SHADOW_COLOR)
    declare("shadow-opacity", format_number(float(shadows["opacity"])))
    declare("shadow-blur", f"{format_number(float(shadows['blur']))}px")
    declare("shadow-spread", SHADOW_SPREAD)
    declare("shadow-offset-x", SHADOW_OFFSET_X)
    declare("shadow-offset-y", SHADOW_OFFSET_Y)

    for name, value in render_shadow_scale(shadows):
        declare(name, value)

    for name, value in LAYOUT_CONSTANTS:
        declare(name, value)

    if site:
        logo = _get(theme, "logo")
        if logo:
            declare("logo-url", f"url({_css_string(logo)})")
        name = (_get(theme, "name") or "").replace("*/", "* /")
        lines.append(f"  /* Theme: {name} */")

    lines.append("}")
    return "\n".join(lines) + "\n"
