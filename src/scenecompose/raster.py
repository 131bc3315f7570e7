"""Frame rasterizer -- draws evaluated ShapeInstances with Pillow and numpy.

render_frame() takes the flat, z-sorted snapshot list produced by the
render boundary and returns one RGB frame. Every shape is drawn in its
own layer and alpha-composited onto the frame:

  - Vector kinds are polygonized (geometry.outline) and transformed to
    canvas pixels; fills use the even-odd rule, strokes are drawn as
    polylines. Masks are drawn at SUPERSAMPLE x resolution and averaged
    down for anti-aliasing.
  - Text, images and custom drawings are drawn into a local-space RGBA
    patch and warped onto the frame with the shape's affine transform.

The transform order matches a 2D canvas: translate to the frame center
plus position and anchor offset, rotate, skew, then scale.

Time-dependent details that aren't resolved during evaluation (trim
sweeps, per-glyph text fill and opacity) are resolved here from the
instance's own snapshot time.
"""

import math
from dataclasses import dataclass
from functools import lru_cache

import numpy as np
from PIL import Image, ImageDraw, ImageFilter

from .color import parse_color
from .common import load_font
from .diagnostics import Diagnostics
from .geometry import (
    ArcGeom,
    CustomGeom,
    ImageGeom,
    TextGeom,
    Vec2,
    anchor_offset,
    arc_points,
    bounds,
    dash_polyline,
    geom_anchor_offset,
    outline,
    points_bounds,
)
from .shapes import ShapeInstance
from .timing import evaluate_spec, trim_fraction


# ── Constants ────────────────────────────────────────────────────

SUPERSAMPLE = 2                  # mask resolution multiplier
TRIM_RADIUS = 2000               # reach of the trim wedge, in local units
DEFAULT_FILL = (255, 255, 255)   # fill for shapes that never set one
LINE_HEIGHT_FACTOR = 1.2         # default line height / font size
BLEND_MODES = {"source-over", "normal", "multiply", "screen", "lighter", "darken", "lighten"}

# Vertical glyph placement relative to the line's y, by text baseline.
_BASELINE_V = {"top": "top", "hanging": "top", "bottom": "bottom", "ideographic": "bottom"}


@dataclass
class _Frame:
    width: int
    height: int
    pixels: np.ndarray            # (h, w, 3) float, 0..1
    diagnostics: Diagnostics


# ── Color ────────────────────────────────────────────────────────


def _rgb(frame: _Frame, value, default=DEFAULT_FILL) -> np.ndarray:
    """Color string -> float RGB in 0..1. Unparseable colors warn once."""
    if value is None:
        rgb = default
    else:
        rgb = parse_color(value)
        if rgb is None:
            frame.diagnostics.add_once(
                f"color:{value}", "warn", f"Unparseable color '{value}'",
            )
            rgb = default
    return np.clip(np.asarray(rgb, dtype=np.float64), 0, 255) / 255.0


# ── Transforms ───────────────────────────────────────────────────


def local_matrix(inst: ShapeInstance, anchor: Vec2 = Vec2(0.0, 0.0)) -> np.ndarray:
    """3x3 matrix taking shape-local points into the parent's space."""
    t = inst.transform
    translate = np.array([[1, 0, t.x + anchor.x], [0, 1, t.y + anchor.y], [0, 0, 1]], dtype=float)
    c, s = math.cos(t.rotation), math.sin(t.rotation)
    rotate = np.array([[c, -s, 0], [s, c, 0], [0, 0, 1]], dtype=float)
    skew = np.array([[1, math.tan(t.skew_x), 0], [math.tan(t.skew_y), 1, 0], [0, 0, 1]], dtype=float)
    scale = np.diag([t.scale * t.scale_x, t.scale * t.scale_y, 1.0])
    return translate @ rotate @ skew @ scale


def _center_matrix(width: int, height: int) -> np.ndarray:
    return np.array([[1, 0, width / 2], [0, 1, height / 2], [0, 0, 1]], dtype=float)


def _apply(matrix: np.ndarray, points) -> np.ndarray:
    pts = np.asarray(points, dtype=float).reshape(-1, 2)
    return pts @ matrix[:2, :2].T + matrix[:2, 2]


def _linear_scale(matrix: np.ndarray) -> float:
    return math.sqrt(abs(np.linalg.det(matrix[:2, :2])))


def _invertible(matrix: np.ndarray) -> bool:
    return abs(np.linalg.det(matrix[:2, :2])) > 1e-12


# ── Masks ────────────────────────────────────────────────────────


def _downsample(mask: np.ndarray, frame: _Frame) -> np.ndarray:
    return mask.reshape(frame.height, SUPERSAMPLE, frame.width, SUPERSAMPLE).mean(axis=(1, 3))


def _blank_ss(frame: _Frame) -> Image.Image:
    return Image.new("L", (frame.width * SUPERSAMPLE, frame.height * SUPERSAMPLE), 0)


def fill_mask(frame: _Frame, polygons) -> np.ndarray:
    """Coverage (h, w) of canvas-space polygons combined with the even-odd rule."""
    parity = np.zeros((frame.height * SUPERSAMPLE, frame.width * SUPERSAMPLE), dtype=bool)
    for pts in polygons:
        if len(pts) < 3:
            continue
        img = _blank_ss(frame)
        ImageDraw.Draw(img).polygon([tuple(p) for p in np.asarray(pts) * SUPERSAMPLE], fill=255)
        parity ^= np.asarray(img) > 0
    return _downsample(parity.astype(np.float64), frame)


def stroke_mask(frame: _Frame, subpaths, width_px: float, stroke, dash_scale: float) -> np.ndarray:
    """Coverage of stroked canvas-space polylines."""
    img = _blank_ss(frame)
    draw = ImageDraw.Draw(img)
    w = max(1, round(width_px * SUPERSAMPLE))
    joint = "curve" if stroke.join == "round" else None
    dash = [d * dash_scale for d in stroke.dash] if stroke.dash else None
    dash_offset = (stroke.dash_offset or 0.0) * dash_scale

    for pts, closed in subpaths:
        line = [Vec2(float(x), float(y)) for x, y in pts]
        if len(line) < 2:
            continue
        if closed:
            line.append(line[0])
        for run in dash_polyline(line, dash, dash_offset):
            scaled = [(p.x * SUPERSAMPLE, p.y * SUPERSAMPLE) for p in run]
            draw.line(scaled, fill=255, width=w, joint=joint)
            if stroke.cap == "round":
                r = w / 2
                for x, y in (scaled[0], scaled[-1]):
                    draw.ellipse([x - r, y - r, x + r, y + r], fill=255)
    return _downsample(np.asarray(img, dtype=np.float64) / 255.0, frame)


def trim_mask(frame: _Frame, inst: ShapeInstance, matrix: np.ndarray) -> np.ndarray | None:
    """Clockwise wedge from 12 o'clock covering the trimmed fraction."""
    fraction = trim_fraction(inst.trim, inst.time)
    if fraction >= 1:
        return None
    if fraction <= 0:
        return np.zeros((frame.height, frame.width))
    start = -math.pi / 2
    wedge = [Vec2(0.0, 0.0)] + arc_points(TRIM_RADIUS, start, start + 2 * math.pi * fraction)
    return fill_mask(frame, [_apply(matrix, wedge)])


# ── Text layout ──────────────────────────────────────────────────


@dataclass(frozen=True)
class Glyph:
    ch: str
    x: float          # glyph center
    y: float          # line position
    width: float
    index: int
    word_index: int
    line_index: int


@dataclass(frozen=True)
class TextLayout:
    glyphs: tuple[Glyph, ...]
    width: float
    height: float
    line_height: float
    lines: int


def _font_for(options):
    return load_font(options.font_size, options.font_family, bold=options.font_weight == "bold")


def _measure(font, text: str, letter_spacing: float) -> float:
    if not text:
        return 0.0
    return sum(font.getlength(ch) for ch in text) + letter_spacing * (len(text) - 1)


def layout_text(value: str, options, font) -> TextLayout:
    """Place every character of a text block, line by line.

    Lines break on '\\n' and, when wrapping with a max_width, between words.
    Each glyph records its letter, word and line index so per-unit specs
    can be staggered by any of them.
    """
    lines = []
    for raw in value.split("\n"):
        if not options.wrap or not options.max_width:
            lines.append(raw)
            continue
        current = ""
        for word in raw.split(" "):
            test = word if not current else f"{current} {word}"
            if _measure(font, test, options.letter_spacing) <= options.max_width or not current:
                current = test
            else:
                lines.append(current)
                current = word
        lines.append(current)

    line_height = options.line_height or options.font_size * LINE_HEIGHT_FACTOR
    block = len(lines) * line_height
    if options.baseline == "top":
        y0 = 0.0
    elif options.baseline == "bottom":
        y0 = -block + line_height
    else:
        y0 = -block / 2 + line_height / 2

    glyphs = []
    index = 0
    widest = 0.0
    for li, line in enumerate(lines):
        line_w = _measure(font, line, options.letter_spacing)
        widest = max(widest, line_w)
        if options.align in ("left", "start"):
            cursor = 0.0
        elif options.align in ("right", "end"):
            cursor = -line_w
        else:
            cursor = -line_w / 2
        word = -1
        in_word = False
        for ch in line:
            if ch != " " and not in_word:
                in_word = True
                word += 1
            elif ch == " ":
                in_word = False
            w = font.getlength(ch)
            glyphs.append(Glyph(ch, cursor + w / 2, y0 + li * line_height, w,
                                index, max(0, word), li))
            index += 1
            cursor += w + options.letter_spacing

    return TextLayout(tuple(glyphs), widest, block, line_height, len(lines))


def _unit_index(glyph: Glyph, split: str) -> int:
    if split == "line":
        return glyph.line_index
    if split == "word":
        return glyph.word_index
    return glyph.index


def _path_sampler(points, closed: bool):
    """Arc-length parametrization of a polyline: returns (length, sample)."""
    pts = list(points) + ([points[0]] if closed else [])
    lengths = [math.hypot(b[0] - a[0], b[1] - a[1]) for a, b in zip(pts, pts[1:])]
    total = sum(lengths)

    def sample(dist: float) -> tuple[float, float, float]:
        d = max(0.0, min(total, dist))
        acc = 0.0
        seg = 0
        while seg < len(lengths) and acc + lengths[seg] < d:
            acc += lengths[seg]
            seg += 1
        seg = min(seg, len(lengths) - 1)
        a, b = pts[seg], pts[seg + 1]
        t = (d - acc) / (lengths[seg] or 1.0)
        return (a[0] + (b[0] - a[0]) * t, a[1] + (b[1] - a[1]) * t,
                math.atan2(b[1] - a[1], b[0] - a[0]))

    return total, sample


# ── Patch layers (text, image, custom) ───────────────────────────


def _warp(frame: _Frame, patch: Image.Image, matrix: np.ndarray, origin: tuple[float, float]):
    """Warp a local-space RGBA patch onto the frame.

    `origin` is the patch pixel holding local (0, 0). Returns (rgb, alpha)
    float arrays, or None for a degenerate transform.
    """
    if not _invertible(matrix):
        return None
    inv = np.linalg.inv(matrix)
    ox, oy = origin
    data = (inv[0, 0], inv[0, 1], inv[0, 2] + ox, inv[1, 0], inv[1, 1], inv[1, 2] + oy)
    warped = patch.transform((frame.width, frame.height), Image.AFFINE, data, resample=Image.BILINEAR)
    arr = np.asarray(warped, dtype=np.float64) / 255.0
    return arr[:, :, :3], arr[:, :, 3]


def _glyph_image(ch: str, font, rgba, baseline: str, stroke=None, stroke_rgb=None) -> Image.Image:
    """Single glyph drawn around the center of a small transparent image."""
    probe = ImageDraw.Draw(Image.new("RGBA", (1, 1)))
    sw = max(0, round(stroke.width)) if stroke else 0
    l, t, r, b = probe.textbbox((0, 0), ch, font=font, stroke_width=sw)
    size = int(max(r - l, b - t) * 2 + 4)
    img = Image.new("RGBA", (size, size), (0, 0, 0, 0))
    cx = cy = size / 2
    v = _BASELINE_V.get(baseline, "middle")
    y = cy - t if v == "top" else cy - b if v == "bottom" else cy - (t + b) / 2
    ImageDraw.Draw(img).text(
        (cx - (l + r) / 2, y), ch, font=font, fill=rgba,
        stroke_width=sw, stroke_fill=tuple(stroke_rgb) + (rgba[3],) if sw else None,
    )
    return img


def text_layer(frame: _Frame, inst: ShapeInstance, matrix: np.ndarray):
    style = inst.text
    options = style.options
    font = _font_for(options)
    layout = layout_text(style.value, options, font)
    if not layout.glyphs:
        return None

    stroke = inst.stroke if inst.stroke and inst.stroke.width > 0 else None
    stroke_rgb = None
    if stroke:
        stroke_rgb = tuple(int(c * 255) for c in _rgb(frame, stroke.color))

    # (glyph, x, y, angle) placements in local space.
    placements = []
    if style.path is not None:
        if len(style.path.points) < 2:
            return None
        length, sample = _path_sampler(style.path.points, style.path.closed)
        total = sum(g.width for g in layout.glyphs) + options.letter_spacing * (len(layout.glyphs) - 1)
        base = {"center": (length - total) / 2, "end": length - total}.get(style.path.align, 0.0)
        advance = style.path.offset
        for g in layout.glyphs:
            x, y, angle = sample(base + advance + g.width / 2)
            placements.append((g, x, y, angle))
            advance += g.width + options.letter_spacing
    else:
        placements = [(g, g.x, g.y, 0.0) for g in layout.glyphs]

    pad = options.font_size * 2
    box = points_bounds([(x, y) for _, x, y, _ in placements])
    origin = (-box.min_x + pad, -box.min_y + pad)
    patch = Image.new("RGBA", (int(box.width + 2 * pad) + 1, int(box.height + 2 * pad) + 1), (0, 0, 0, 0))

    for g, x, y, angle in placements:
        if g.ch == " ":
            continue
        unit = _unit_index(g, options.split)
        fill = evaluate_spec(style.fill_spec, inst.time, unit) if style.fill_spec else inst.fill
        alpha = evaluate_spec(style.opacity_spec, inst.time, unit) if style.opacity_spec else 1.0
        rgba = tuple(int(c * 255) for c in _rgb(frame, fill)) + (int(max(0.0, min(1.0, alpha)) * 255),)
        glyph = _glyph_image(g.ch, font, rgba, options.baseline, stroke, stroke_rgb)
        if angle:
            glyph = glyph.rotate(-math.degrees(angle), resample=Image.BICUBIC)
        px = round(x + origin[0] - glyph.width / 2)
        py = round(y + origin[1] - glyph.height / 2)
        patch.alpha_composite(glyph, dest=(max(0, px), max(0, py)),
                              source=(max(0, -px), max(0, -py)))

    return _warp(frame, patch, matrix, origin)


@lru_cache(maxsize=64)
def _open_image(src: str) -> Image.Image:
    with Image.open(src) as img:
        return img.convert("RGBA")


def _load_image(src: str) -> Image.Image | None:
    # Failures stay uncached so a file written later is picked up.
    try:
        return _open_image(src)
    except (FileNotFoundError, OSError):
        return None


def image_size(geom: ImageGeom) -> tuple[float, float] | None:
    """Drawn size: explicit width/height, else the file's own size."""
    img = _load_image(geom.src)
    if img is None:
        return None
    w = geom.width if geom.width is not None else img.width
    h = geom.height if geom.height is not None else img.height
    return w, h


def image_layer(frame: _Frame, inst: ShapeInstance, matrix: np.ndarray):
    geom = inst.geom
    img = _load_image(geom.src)
    if img is None:
        frame.diagnostics.add_once(
            f"image:{geom.src}", "warn", f"Image could not be loaded: {geom.src}",
        )
        return None
    w, h = image_size(geom)
    if w <= 0 or h <= 0:
        return None
    patch = img.resize((max(1, round(w)), max(1, round(h))), Image.BILINEAR)

    if inst.fill is not None:
        arr = np.asarray(patch, dtype=np.float64) / 255.0
        tint = _rgb(frame, inst.fill)
        mode = inst.fill_mode or "tint"
        if mode == "multiply":
            arr[:, :, :3] *= tint
        elif mode == "screen":
            arr[:, :, :3] = 1 - (1 - arr[:, :, :3]) * (1 - tint)
        else:
            arr[:, :, :3] = tint
        patch = Image.fromarray((arr * 255).round().astype(np.uint8))

    return _warp(frame, patch, matrix, (patch.width / 2, patch.height / 2))


def custom_layer(frame: _Frame, inst: ShapeInstance, matrix: np.ndarray):
    """Custom callbacks draw on a frame-sized RGBA image whose center is local (0, 0)."""
    patch = Image.new("RGBA", (frame.width, frame.height), (0, 0, 0, 0))
    inst.draw(patch, inst.time)
    return _warp(frame, patch, matrix, (frame.width / 2, frame.height / 2))


# ── Paint ────────────────────────────────────────────────────────


def gradient_paint(frame: _Frame, grad, matrix: np.ndarray) -> np.ndarray | None:
    """Per-pixel colors of a linear or radial gradient in the shape's local space.

    Radial gradients are treated as concentric around `from`, running from
    radius r0 to r1.
    """
    stops = []
    for pos, color in sorted(grad.stops, key=lambda s: s[0]):
        rgb = parse_color(color)
        if rgb is None:
            frame.diagnostics.add_once(
                f"color:{color}", "warn", f"Unparseable color '{color}'",
            )
            continue
        stops.append((min(max(pos, 0.0), 1.0), np.asarray(rgb, dtype=np.float64) / 255.0))
    if not stops or not _invertible(matrix):
        return None

    inv = np.linalg.inv(matrix)
    ys, xs = np.mgrid[0:frame.height, 0:frame.width].astype(np.float64) + 0.5
    lx = inv[0, 0] * xs + inv[0, 1] * ys + inv[0, 2]
    ly = inv[1, 0] * xs + inv[1, 1] * ys + inv[1, 2]
    fx, fy = grad.from_
    if grad.type == "linear":
        dx, dy = grad.to[0] - fx, grad.to[1] - fy
        denom = dx * dx + dy * dy
        t = ((lx - fx) * dx + (ly - fy) * dy) / denom if denom else np.zeros_like(lx)
    else:
        span = grad.r1 - grad.r0
        dist = np.hypot(lx - fx, ly - fy)
        t = (dist - grad.r0) / span if span else np.ones_like(lx)
    t = np.clip(t, 0.0, 1.0)

    positions = [p for p, _ in stops]
    colors = np.stack([c for _, c in stops])
    return np.stack([np.interp(t, positions, colors[:, i]) for i in range(3)], axis=-1)


# ── Compositing ──────────────────────────────────────────────────


def _blend(dst: np.ndarray, src: np.ndarray, mode: str | None) -> np.ndarray:
    if mode == "multiply":
        return dst * src
    if mode == "screen":
        return 1 - (1 - dst) * (1 - src)
    if mode == "lighter":
        return np.minimum(1.0, dst + src)
    if mode == "darken":
        return np.minimum(dst, src)
    if mode == "lighten":
        return np.maximum(dst, src)
    return np.broadcast_to(src, dst.shape)


def _composite(frame: _Frame, paint: np.ndarray, alpha: np.ndarray, mode: str | None) -> None:
    a = np.clip(alpha, 0.0, 1.0)[:, :, None]
    frame.pixels = frame.pixels * (1 - a) + _blend(frame.pixels, paint, mode) * a


def _shadow(frame: _Frame, shadow, alpha: np.ndarray) -> None:
    """Blurred, offset copy of a shape's coverage in the shadow color."""
    mask = Image.fromarray((np.clip(alpha, 0, 1) * 255).astype(np.uint8))
    shifted = Image.new("L", mask.size, 0)
    shifted.paste(mask, (round(shadow.offset_x), round(shadow.offset_y)))
    if shadow.blur > 0:
        shifted = shifted.filter(ImageFilter.GaussianBlur(shadow.blur / 2))
    color = _rgb(frame, shadow.color, default=(0, 0, 0))
    _composite(frame, color, np.asarray(shifted, dtype=np.float64) / 255.0, None)


# ── Shapes ───────────────────────────────────────────────────────


def shape_anchor(inst: ShapeInstance) -> Vec2:
    """Anchor offset, measuring text and loaded images where needed."""
    if not inst.anchor or inst.anchor == "center":
        return Vec2(0.0, 0.0)
    if isinstance(inst.geom, TextGeom) and inst.text is not None:
        layout = layout_text(inst.text.value, inst.text.options, _font_for(inst.text.options))
        return anchor_offset(inst.anchor, layout.width, layout.height)
    if isinstance(inst.geom, ImageGeom):
        size = image_size(inst.geom)
        if size is not None:
            return anchor_offset(inst.anchor, *size)
    return geom_anchor_offset(inst.geom, inst.anchor)


def coverage(frame: _Frame, inst: ShapeInstance, matrix: np.ndarray) -> np.ndarray | None:
    """Area a shape covers, for clipping. None when it covers nothing."""
    geom = inst.geom
    if isinstance(geom, CustomGeom):
        return None
    if isinstance(geom, TextGeom):
        layout = layout_text(inst.text.value, inst.text.options, _font_for(inst.text.options))
        w, h = layout.width, layout.height
        subpaths = [[(-w / 2, -h / 2), (w / 2, -h / 2), (w / 2, h / 2), (-w / 2, h / 2)]] if w > 0 and h > 0 else []
    elif isinstance(geom, ImageGeom):
        size = image_size(geom) or (geom.width or 0, geom.height or 0)
        w, h = size
        subpaths = [[(-w / 2, -h / 2), (w / 2, -h / 2), (w / 2, h / 2), (-w / 2, h / 2)]] if w > 0 and h > 0 else []
    else:
        b = bounds(geom)
        subpaths = [pts for pts, _ in outline(geom)] if b is None or b.width > 0 or b.height > 0 else []
    subpaths = [p for p in subpaths if len(p) >= 3]
    if not subpaths:
        return None
    return fill_mask(frame, [_apply(matrix, p) for p in subpaths])


def _clip_mask(frame: _Frame, inst: ShapeInstance, matrix: np.ndarray) -> np.ndarray | None:
    """Union of the clip shapes, placed in the clipped shape's local space."""
    union = None
    for clip in inst.clip:
        m = matrix @ local_matrix(clip, shape_anchor(clip))
        cov = coverage(frame, clip, m)
        if cov is None:
            continue
        union = cov if union is None else np.maximum(union, cov)
    return union


def _vector_layers(frame: _Frame, inst: ShapeInstance, matrix: np.ndarray):
    layers = []
    stroke = inst.stroke if inst.stroke and inst.stroke.width > 0 else None
    geom = inst.geom

    # An arc with a stroke and no fill is just the stroked curve.
    if isinstance(geom, ArcGeom) and stroke and inst.fill is None and inst.gradient is None:
        subpaths = [(arc_points(geom.radius, geom.start_angle, geom.end_angle, geom.counterclockwise), False)]
        fill = False
    else:
        subpaths = outline(geom)
        fill = True

    canvas_paths = [(_apply(matrix, pts), closed) for pts, closed in subpaths if pts]
    if fill:
        paint = gradient_paint(frame, inst.gradient, matrix) if inst.gradient else None
        if paint is None:
            paint = _rgb(frame, inst.fill)
        layers.append((paint, fill_mask(frame, [p for p, _ in canvas_paths])))
    if stroke:
        paint = gradient_paint(frame, stroke.gradient, matrix) if stroke.gradient else None
        if paint is None:
            paint = _rgb(frame, stroke.color)
        scale = _linear_scale(matrix)
        layers.append((paint, stroke_mask(frame, canvas_paths, stroke.width * scale, stroke, scale)))
    return layers


def draw_instance(frame: _Frame, inst: ShapeInstance) -> None:
    if inst.opacity <= 0:
        return
    matrix = _center_matrix(frame.width, frame.height) @ local_matrix(inst, shape_anchor(inst))

    if isinstance(inst.geom, TextGeom):
        layer = text_layer(frame, inst, matrix) if inst.text else None
        if layer is not None and inst.gradient:
            paint = gradient_paint(frame, inst.gradient, matrix)
            layer = (paint if paint is not None else layer[0], layer[1])
        layers = [layer] if layer else []
    elif isinstance(inst.geom, ImageGeom):
        layer = image_layer(frame, inst, matrix)
        layers = [layer] if layer else []
    elif isinstance(inst.geom, CustomGeom):
        layer = custom_layer(frame, inst, matrix) if inst.draw else None
        layers = [layer] if layer else []
    else:
        layers = _vector_layers(frame, inst, matrix)
    if not layers:
        return

    base = np.full((frame.height, frame.width), float(inst.opacity))
    if inst.clip:
        clip = _clip_mask(frame, inst, matrix)
        if clip is not None:
            base = base * clip
    if inst.trim is not None and not isinstance(inst.geom, (TextGeom, CustomGeom)):
        trim = trim_mask(frame, inst, matrix)
        if trim is not None:
            base = base * trim

    mode = inst.blend_mode
    if mode is not None and mode not in BLEND_MODES:
        frame.diagnostics.add_once(
            f"blend:{mode}", "warn", f"Unsupported blend mode '{mode}', drawing normally",
        )
        mode = None

    if inst.shadow is not None:
        total = np.zeros((frame.height, frame.width))
        for _, alpha in layers:
            total = 1 - (1 - total) * (1 - alpha)
        _shadow(frame, inst.shadow, total * base)

    for paint, alpha in layers:
        _composite(frame, paint, alpha * base, mode)


# ── Frame ────────────────────────────────────────────────────────


def render_frame(
    instances: list[ShapeInstance],
    resolution: tuple[int, int],
    background=(0, 0, 0),
    diagnostics: Diagnostics | None = None,
) -> np.ndarray:
    """Draw instances in order onto a fresh frame.

    Args:
        instances: Snapshots, already sorted by z_index (later draws on top).
        resolution: (width, height) in pixels.
        background: RGB tuple or color string.
        diagnostics: Receives warnings for things that can't be drawn.

    Returns:
        numpy array of shape (h, w, 3), dtype uint8.
    """
    width, height = resolution
    if isinstance(background, str):
        rgb = parse_color(background)
        if rgb is None:
            raise ValueError(f"Invalid background color: '{background}'")
        background = rgb
    frame = _Frame(
        width=width,
        height=height,
        pixels=np.broadcast_to(
            np.asarray(background, dtype=np.float64) / 255.0, (height, width, 3),
        ).copy(),
        diagnostics=diagnostics if diagnostics is not None else Diagnostics(),
    )
    for inst in instances:
        draw_instance(frame, inst)
    return (np.clip(frame.pixels, 0.0, 1.0) * 255).round().astype(np.uint8)
