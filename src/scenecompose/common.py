"""scenecompose.common: shared utilities for manifests and rendering.

Contains: palette color resolution, path variable resolution, and font
loading.
"""

import re
from pathlib import Path

from PIL import ImageFont

from .color import parse_color, to_hex


# ── Font paths ─────────────────────────────────────────────────────
# Inter preferred, DejaVu Sans as fallback.

FONT_PATHS = [
    Path.home() / ".local/share/fonts/Inter.ttc",
    Path("/usr/share/fonts/truetype/dejavu/DejaVuSans.ttf"),
]

BOLD_SIZE_BUMP = 2


# ── Color utilities ────────────────────────────────────────────────

def resolve_color(value: str, palette: dict[str, str]) -> str:
    """Resolve a color reference: palette key name or any parseable color.

    Palette keys are tried first and come back as '#rrggbb'. Named colors,
    '#rgb' / '#rrggbb' and 'rgb(r, g, b)' pass through unchanged. Anything
    else raises ValueError.
    """
    if not isinstance(value, str):
        raise ValueError(f"Color must be a string, got {value!r}")
    if value in palette:
        return palette[value]
    if parse_color(value) is not None:
        return value
    raise ValueError(
        f"Unknown color: '{value}'. Not in palette and not a color value."
    )


def normalize_palette(colors: dict) -> dict[str, str]:
    """Parse a palette mapping name -> color into name -> '#rrggbb'."""
    palette = {}
    for name, value in (colors or {}).items():
        rgb = parse_color(value)
        if rgb is None:
            raise ValueError(f"colors.{name}: invalid color '{value}'")
        palette[name] = to_hex(rgb)
    return palette


# ── Path utilities ─────────────────────────────────────────────────

def resolve_path_vars(text: str, paths: dict[str, str]) -> str:
    """Replace ${name} variables in a string using the paths dict."""
    def _replace(match):
        key = match.group(1)
        if key not in paths:
            raise ValueError(f"Unknown path variable: ${{{key}}}")
        return paths[key]
    return re.sub(r"\$\{(\w+)\}", _replace, text)


# ── Font loading ───────────────────────────────────────────────────

def load_font(
    size: float, family: str | None = None, bold: bool = False,
) -> ImageFont.FreeTypeFont | ImageFont.ImageFont:
    """Load a font at the given pixel size.

    `family` may be a path to a font file; otherwise Inter (or DejaVu) is
    used. Inter.ttc has no bold face reachable by index in Pillow, so bold
    text gets a slightly larger size instead.
    """
    px = max(1, round(size + (BOLD_SIZE_BUMP if bold else 0)))
    candidates = list(FONT_PATHS)
    if family and Path(family).exists():
        candidates.insert(0, Path(family))
    for font_path in candidates:
        if font_path.exists():
            try:
                return ImageFont.truetype(str(font_path), size=px, index=0)
            except (OSError, IndexError):
                continue
    # Last resort: Pillow default font.
    return ImageFont.load_default()
