"""CSS color parsing and OKLCH serialization.

Theme colors arrive in whatever notation the client used (hex, rgb(), hsl(),
named colors). Stylesheets are emitted in OKLCH so that every variable uses
one perceptually uniform notation. Parsing is best effort: anything that
cannot be read is passed through untouched.
"""

import colorsys
import logging
import math
import re
from typing import Optional

logger = logging.getLogger(__name__)

_HEX_RE = re.compile(r"^#([0-9a-f]{3,4}|[0-9a-f]{6}|[0-9a-f]{8})$")
_FUNC_RE = re.compile(r"^(rgba?|hsla?|oklch)\(\s*(.*?)\s*\)$")

# CSS Color Module Level 4 named colors
NAMED_COLORS: dict[str, str] = {
    "aliceblue": "#f0f8ff", "antiquewhite": "#faebd7", "aqua": "#00ffff",
    "aquamarine": "#7fffd4", "azure": "#f0ffff", "beige": "#f5f5dc",
    "bisque": "#ffe4c4", "black": "#000000", "blanchedalmond": "#ffebcd",
    "blue": "#0000ff", "blueviolet": "#8a2be2", "brown": "#a52a2a",
    "burlywood": "#deb887", "cadetblue": "#5f9ea0", "chartreuse": "#7fff00",
    "chocolate": "#d2691e", "coral": "#ff7f50", "cornflowerblue": "#6495ed",
    "cornsilk": "#fff8dc", "crimson": "#dc143c", "cyan": "#00ffff",
    "darkblue": "#00008b", "darkcyan": "#008b8b", "darkgoldenrod": "#b8860b",
    "darkgray": "#a9a9a9", "darkgreen": "#006400", "darkgrey": "#a9a9a9",
    "darkkhaki": "#bdb76b", "darkmagenta": "#8b008b", "darkolivegreen": "#556b2f",
    "darkorange": "#ff8c00", "darkorchid": "#9932cc", "darkred": "#8b0000",
    "darksalmon": "#e9967a", "darkseagreen": "#8fbc8f", "darkslateblue": "#483d8b",
    "darkslategray": "#2f4f4f", "darkslategrey": "#2f4f4f", "darkturquoise": "#00ced1",
    "darkviolet": "#9400d3", "deeppink": "#ff1493", "deepskyblue": "#00bfff",
    "dimgray": "#696969", "dimgrey": "#696969", "dodgerblue": "#1e90ff",
    "firebrick": "#b22222", "floralwhite": "#fffaf0", "forestgreen": "#228b22",
    "fuchsia": "#ff00ff", "gainsboro": "#dcdcdc", "ghostwhite": "#f8f8ff",
    "gold": "#ffd700", "goldenrod": "#daa520", "gray": "#808080",
    "green": "#008000", "greenyellow": "#adff2f", "grey": "#808080",
    "honeydew": "#f0fff0", "hotpink": "#ff69b4", "indianred": "#cd5c5c",
    "indigo": "#4b0082", "ivory": "#fffff0", "khaki": "#f0e68c",
    "lavender": "#e6e6fa", "lavenderblush": "#fff0f5", "lawngreen": "#7cfc00",
    "lemonchiffon": "#fffacd", "lightblue": "#add8e6", "lightcoral": "#f08080",
    "lightcyan": "#e0ffff", "lightgoldenrodyellow": "#fafad2", "lightgray": "#d3d3d3",
    "lightgreen": "#90ee90", "lightgrey": "#d3d3d3", "lightpink": "#ffb6c1",
    "lightsalmon": "#ffa07a", "lightseagreen": "#20b2aa", "lightskyblue": "#87cefa",
    "lightslategray": "#778899", "lightslategrey": "#778899", "lightsteelblue": "#b0c4de",
    "lightyellow": "#ffffe0", "lime": "#00ff00", "limegreen": "#32cd32",
    "linen": "#faf0e6", "magenta": "#ff00ff", "maroon": "#800000",
    "mediumaquamarine": "#66cdaa", "mediumblue": "#0000cd", "mediumorchid": "#ba55d3",
    "mediumpurple": "#9370db", "mediumseagreen": "#3cb371", "mediumslateblue": "#7b68ee",
    "mediumspringgreen": "#00fa9a", "mediumturquoise": "#48d1cc",
    "mediumvioletred": "#c71585", "midnightblue": "#191970", "mintcream": "#f5fffa",
    "mistyrose": "#ffe4e1", "moccasin": "#ffe4b5", "navajowhite": "#ffdead",
    "navy": "#000080", "oldlace": "#fdf5e6", "olive": "#808000",
    "olivedrab": "#6b8e23", "orange": "#ffa500", "orangered": "#ff4500",
    "orchid": "#da70d6", "palegoldenrod": "#eee8aa", "palegreen": "#98fb98",
    "paleturquoise": "#afeeee", "palevioletred": "#db7093", "papayawhip": "#ffefd5",
    "peachpuff": "#ffdab9", "peru": "#cd853f", "pink": "#ffc0cb",
    "plum": "#dda0dd", "powderblue": "#b0e0e6", "purple": "#800080",
    "rebeccapurple": "#663399", "red": "#ff0000", "rosybrown": "#bc8f8f",
    "royalblue": "#4169e1", "saddlebrown": "#8b4513", "salmon": "#fa8072",
    "sandybrown": "#f4a460", "seagreen": "#2e8b57", "seashell": "#fff5ee",
    "sienna": "#a0522d", "silver": "#c0c0c0", "skyblue": "#87ceeb",
    "slateblue": "#6a5acd", "slategray": "#708090", "slategrey": "#708090",
    "snow": "#fffafa", "springgreen": "#00ff7f", "steelblue": "#4682b4",
    "tan": "#d2b48c", "teal": "#008080", "thistle": "#d8bfd8",
    "tomato": "#ff6347", "turquoise": "#40e0d0", "violet": "#ee82ee",
    "wheat": "#f5deb3", "white": "#ffffff", "whitesmoke": "#f5f5f5",
    "yellow": "#ffff00", "yellowgreen": "#9acd32",
}


def format_number(value: float, places: int = 4) -> str:
    """Format a number with at most ``places`` decimals, trimming zeros."""
    text = f"{value:.{places}f}".rstrip("0").rstrip(".")
    return "0" if text == "-0" else text


def _split_args(body: str) -> tuple[list[str], Optional[str]]:
    """Split function arguments into channels and an optional alpha."""
    if "," in body:
        parts = [p.strip() for p in body.split(",")]
        if len(parts) == 4:
            return parts[:3], parts[3]
        return parts, None
    alpha = None
    if "/" in body:
        body, alpha = body.split("/", 1)
        alpha = alpha.strip()
    return body.split(), alpha


def _parse_number(raw: str) -> float:
    """Parse a CSS number; nan and infinities are not valid CSS."""
    value = float(raw)
    if not math.isfinite(value):
        raise ValueError(f"Not a finite number: {raw}")
    return value


def _parse_alpha(raw: Optional[str]) -> float:
    if raw is None:
        return 1.0
    if raw.endswith("%"):
        value = _parse_number(raw[:-1]) / 100
    else:
        value = _parse_number(raw)
    return min(max(value, 0.0), 1.0)


def _parse_rgb_channel(raw: str) -> float:
    if raw.endswith("%"):
        value = _parse_number(raw[:-1]) / 100
    else:
        value = _parse_number(raw) / 255
    return min(max(value, 0.0), 1.0)


def _parse_percentage(raw: str) -> float:
    """Parse an hsl() saturation/lightness (percent, or bare number)."""
    value = _parse_number(raw[:-1]) if raw.endswith("%") else _parse_number(raw)
    return min(max(value / 100, 0.0), 1.0)


def _parse_hue(raw: str) -> float:
    """Parse a hue angle into degrees."""
    if raw == "none":
        return 0.0
    for unit, factor in (("deg", 1.0), ("grad", 0.9), ("rad", 180 / math.pi), ("turn", 360.0)):
        if raw.endswith(unit):
            return _parse_number(raw[: -len(unit)]) * factor
    return _parse_number(raw)


def _parse_hex(body: str) -> tuple[float, float, float, float]:
    if len(body) in (3, 4):
        body = "".join(ch * 2 for ch in body)
    r, g, b = (int(body[i : i + 2], 16) / 255 for i in (0, 2, 4))
    a = int(body[6:8], 16) / 255 if len(body) == 8 else 1.0
    return r, g, b, a


def parse_srgb(color: str) -> tuple[float, float, float, float]:
    """Parse a CSS color into normalized sRGB channels plus alpha.

    Raises:
        ValueError: If the color cannot be parsed
    """
    value = color.strip().lower()
    if not value:
        raise ValueError("Empty color")

    if value == "transparent":
        return 0.0, 0.0, 0.0, 0.0
    if value in NAMED_COLORS:
        value = NAMED_COLORS[value]

    hex_match = _HEX_RE.match(value)
    if hex_match:
        return _parse_hex(hex_match.group(1))

    func_match = _FUNC_RE.match(value)
    if not func_match or func_match.group(1) == "oklch":
        raise ValueError(f"Unsupported sRGB color: {color}")

    name, body = func_match.groups()
    channels, alpha = _split_args(body)
    if len(channels) != 3:
        raise ValueError(f"Expected 3 channels in {color}")

    if name.startswith("rgb"):
        r, g, b = (_parse_rgb_channel(c) for c in channels)
    else:
        hue = _parse_hue(channels[0]) % 360
        saturation = _parse_percentage(channels[1])
        lightness = _parse_percentage(channels[2])
        r, g, b = colorsys.hls_to_rgb(hue / 360, lightness, saturation)
    return r, g, b, _parse_alpha(alpha)


def _to_linear(channel: float) -> float:
    if channel <= 0.04045:
        return channel / 12.92
    return ((channel + 0.055) / 1.055) ** 2.4


def srgb_to_oklch(r: float, g: float, b: float) -> tuple[float, float, float]:
    """Convert normalized sRGB channels to OKLCH (L in 0..1, hue in degrees)."""
    lr, lg, lb = _to_linear(r), _to_linear(g), _to_linear(b)

    lms_l = 0.4122214708 * lr + 0.5363325363 * lg + 0.0514459929 * lb
    lms_m = 0.2119034982 * lr + 0.6806995451 * lg + 0.1073969566 * lb
    lms_s = 0.0883024619 * lr + 0.2817188376 * lg + 0.6299787005 * lb

    l_, m_, s_ = (math.copysign(abs(v) ** (1 / 3), v) for v in (lms_l, lms_m, lms_s))

    lightness = 0.2104542553 * l_ + 0.7936177850 * m_ - 0.0040720468 * s_
    a = 1.9779984951 * l_ - 2.4285922050 * m_ + 0.4505937099 * s_
    b_axis = 0.0259040371 * l_ + 0.7827717662 * m_ - 0.8086757660 * s_

    chroma = math.hypot(a, b_axis)
    hue = math.degrees(math.atan2(b_axis, a)) % 360
    return lightness, chroma, hue


def _parse_oklch(body: str) -> tuple[float, float, float, float]:
    channels, alpha = _split_args(body)
    if len(channels) != 3:
        raise ValueError(f"Expected 3 channels in oklch({body})")
    raw_l, raw_c, raw_h = channels
    if raw_l.endswith("%"):
        lightness = _parse_number(raw_l[:-1]) / 100
    else:
        lightness = _parse_number(raw_l)
    if raw_c.endswith("%"):
        chroma = _parse_number(raw_c[:-1]) / 100 * 0.4
    else:
        chroma = _parse_number(raw_c)
    return lightness, chroma, _parse_hue(raw_h) % 360, _parse_alpha(alpha)


def format_oklch(lightness: float, chroma: float, hue: float, alpha: float = 1.0) -> str:
    """Serialize OKLCH components canonically."""
    lightness = min(max(lightness, 0.0), 1.0)
    chroma_text = format_number(max(chroma, 0.0), 4)
    if chroma_text == "0":
        hue = 0.0
    hue = round(hue, 2)
    if hue >= 360:
        hue -= 360
    text = f"{format_number(lightness, 4)} {chroma_text} {format_number(hue, 2)}"
    if alpha < 1:
        text += f" / {format_number(alpha, 4)}"
    return f"oklch({text})"


def to_oklch(color: str) -> str:
    """Convert any parseable CSS color to ``oklch(...)`` notation.

    Returns the input unchanged when it cannot be parsed. Never raises.
    """
    try:
        func_match = _FUNC_RE.match(color.strip().lower())
        if func_match and func_match.group(1) == "oklch":
            return format_oklch(*_parse_oklch(func_match.group(2)))

        r, g, b, alpha = parse_srgb(color)
        return format_oklch(*srgb_to_oklch(r, g, b), alpha)
    except (ValueError, TypeError, AttributeError) as e:
        logger.debug(f"Keeping color {color!r} as-is: {e}")
        return color
