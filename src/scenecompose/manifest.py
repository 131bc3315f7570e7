"""Manifest loader for scene manifests.

Parses YAML manifests, resolves ${path} variables, replaces palette color
names with '#rrggbb' values, and validates every item by building it.

Manifest schema:
  - video: resolution [w, h], fps, background, optional duration (ms)
    and time_scale.
  - paths: ${name} substitutions for string values.
  - colors: named palette entries, usable wherever a color is expected.
  - items: list of scene items. Each item is exactly one of
      shape: <constructor>   leaf shape with constructor args + modifiers
      sequence: [items]      played one after another
      parallel: [items]      played together
      on: <start>, items     started at a time reference ("scene+200")
      when: <cond>, items    shown while cond holds (bool or {after, before})

Every numeric modifier takes a number or a timing-spec mapping; color
modifiers take a color or a timing-spec mapping over colors.
"""

from pathlib import Path

import yaml

from .color import parse_color
from .common import normalize_palette, resolve_color, resolve_path_vars
from .flow import on, parallel, sequence, when
from .primitives import (
    Arc,
    BezierPath,
    Capsule,
    Circle,
    Compound,
    Ellipse,
    Image,
    Line,
    Path as PathShape,
    Pie,
    Polygon,
    Polyline,
    Rect,
    RegularPolygon,
    RegularStar,
    Ring,
    RoundedRect,
    Spiral,
    Star,
    Text,
    Triangle,
)
from .scene import Scene


# ── Valid item kinds and modifier keys ────────────────────────────

SHAPE_CONSTRUCTORS = {
    "circle": Circle,
    "rect": Rect,
    "ellipse": Ellipse,
    "rounded_rect": RoundedRect,
    "capsule": Capsule,
    "ring": Ring,
    "arc": Arc,
    "pie": Pie,
    "path": PathShape,
    "polygon": Polygon,
    "polyline": Polyline,
    "line": Line,
    "triangle": Triangle,
    "regular_polygon": RegularPolygon,
    "star": Star,
    "regular_star": RegularStar,
    "spiral": Spiral,
    "bezier": BezierPath,
    "compound": Compound,
    "image": Image,
    "text": Text,
}

FLOW_KINDS = ("sequence", "parallel", "on", "when")

MODIFIER_KEYS = {
    "x", "y", "scale", "scale_x", "scale_y", "rotation", "skew_x", "skew_y",
    "opacity", "fill", "fill_mode", "gradient", "stroke", "trim", "clip",
    "distort", "shadow", "blend", "anchor", "z", "on_path",
}

STROKE_KEYS = {"color", "width", "cap", "join", "dash", "dash_offset", "gradient"}
SHADOW_KEYS = {"color", "blur", "offset_x", "offset_y"}
ON_PATH_KEYS = {"path", "align", "offset"}


# ── Manifest loading ──────────────────────────────────────────────


def load_manifest(manifest_path: str | Path) -> dict:
    """Load, validate, and normalize a scene manifest.

    Processing pipeline:
      1. Parse YAML.
      2. Parse video.resolution as tuple, video.background as RGB.
      3. Parse the colors palette to '#rrggbb' strings.
      4. Resolve ${path} variables in all item string values.
      5. Replace palette names in color fields.
      6. Validate each item by building it.

    Args:
        manifest_path: Path to the YAML manifest file.

    Returns:
        Normalized config dict with 'video', 'colors' and 'items'.

    Raises:
        ValueError: Bad video settings, unknown item kind or field,
            invalid timing spec or color.
        FileNotFoundError: Missing manifest file.
    """
    with open(manifest_path) as f:
        raw = yaml.safe_load(f) or {}

    config = {}
    palette = normalize_palette(raw.get("colors", {}))
    config["colors"] = palette
    config["video"] = _parse_video(raw.get("video"), palette)

    paths = raw.get("paths", {}) or {}
    items = raw.get("items", []) or []
    if not isinstance(items, list):
        raise ValueError("'items' must be a list")

    resolved_items = []
    for i, item in enumerate(items):
        prefix = f"Item {i}"
        resolved = _resolve_colors(_resolve_item_paths(item, paths), palette, prefix)
        build_item(resolved, prefix)
        resolved_items.append(resolved)
    config["items"] = resolved_items

    return config


def _parse_video(video, palette: dict) -> dict:
    if not isinstance(video, dict):
        raise ValueError("Manifest needs a 'video' section")
    for key in ("resolution", "fps", "background"):
        if key not in video:
            raise ValueError(f"video: missing required field '{key}'")

    video = dict(video)
    resolution = video["resolution"]
    if (not isinstance(resolution, (list, tuple)) or len(resolution) != 2
            or not all(isinstance(v, int) and v > 0 for v in resolution)):
        raise ValueError(f"video: resolution must be [width, height], got {resolution!r}")
    video["resolution"] = tuple(resolution)

    fps = video["fps"]
    if not isinstance(fps, (int, float)) or fps <= 0:
        raise ValueError(f"video: fps must be a positive number, got {fps!r}")

    background = resolve_color(video["background"], palette)
    video["background"] = parse_color(background)

    duration = video.get("duration")
    if duration is not None and (not isinstance(duration, (int, float)) or duration <= 0):
        raise ValueError(f"video: duration must be a positive number of ms, got {duration!r}")

    time_scale = video.setdefault("time_scale", 1.0)
    if not isinstance(time_scale, (int, float)) or time_scale <= 0:
        raise ValueError(f"video: time_scale must be a positive number, got {time_scale!r}")
    return video


def _resolve_item_paths(obj, paths: dict):
    """Recursively resolve ${var} in all string values within an item."""
    if isinstance(obj, str):
        return resolve_path_vars(obj, paths)
    elif isinstance(obj, dict):
        # YAML 1.1 loads a bare `on:` key as True.
        return {
            ("on" if k is True else k): _resolve_item_paths(v, paths)
            for k, v in obj.items()
        }
    elif isinstance(obj, list):
        return [_resolve_item_paths(item, paths) for item in obj]
    return obj


# ── Palette colors ────────────────────────────────────────────────


def _color_value(value, palette: dict, prefix: str):
    """Resolve a color, or the colors inside a timing-spec mapping."""
    try:
        if isinstance(value, str):
            return resolve_color(value, palette)
        if isinstance(value, dict):
            out = dict(value)
            for key in ("from", "to"):
                if isinstance(out.get(key), str):
                    out[key] = resolve_color(out[key], palette)
            if isinstance(out.get("keyframes"), list):
                out["keyframes"] = [
                    {**kf, "value": resolve_color(kf["value"], palette)}
                    if isinstance(kf, dict) and isinstance(kf.get("value"), str) else kf
                    for kf in out["keyframes"]
                ]
            return out
    except ValueError as exc:
        raise ValueError(f"{prefix}: {exc}") from None
    return value


def _gradient_colors(gradient, palette: dict, prefix: str):
    if not isinstance(gradient, dict):
        return gradient
    stops = gradient.get("stops")
    if not isinstance(stops, list):
        return gradient
    return {
        **gradient,
        "stops": [
            {**s, "color": _color_value(s["color"], palette, prefix)}
            if isinstance(s, dict) and "color" in s else s
            for s in stops
        ],
    }


def _resolve_colors(item, palette: dict, prefix: str):
    """Replace palette names in every color field of an item, recursively."""
    if not isinstance(item, dict):
        return item
    out = dict(item)
    if "fill" in out:
        out["fill"] = _color_value(out["fill"], palette, prefix)
    if "gradient" in out:
        out["gradient"] = _gradient_colors(out["gradient"], palette, prefix)
    if isinstance(out.get("stroke"), str):
        out["stroke"] = _color_value(out["stroke"], palette, prefix)
    elif isinstance(out.get("stroke"), dict):
        stroke = dict(out["stroke"])
        if "color" in stroke:
            stroke["color"] = _color_value(stroke["color"], palette, prefix)
        if "gradient" in stroke:
            stroke["gradient"] = _gradient_colors(stroke["gradient"], palette, prefix)
        out["stroke"] = stroke
    if isinstance(out.get("shadow"), dict) and "color" in out["shadow"]:
        out["shadow"] = {**out["shadow"], "color": _color_value(out["shadow"]["color"], palette, prefix)}

    for key in ("sequence", "parallel", "items", "clip"):
        if isinstance(out.get(key), list):
            out[key] = [
                _resolve_colors(sub, palette, f"{prefix}.{j}")
                for j, sub in enumerate(out[key])
            ]
    return out


# ── Item building ─────────────────────────────────────────────────


def _item_kind(item, prefix: str) -> str:
    if not isinstance(item, dict):
        raise ValueError(f"{prefix}: item must be a mapping, got {item!r}")
    kinds = [k for k in ("shape",) + FLOW_KINDS if k in item]
    if len(kinds) != 1:
        raise ValueError(
            f"{prefix}: item needs exactly one of "
            f"{['shape', *FLOW_KINDS]}, got {kinds or 'none'}"
        )
    return kinds[0]


def _child_items(item: dict, key: str, prefix: str) -> list:
    children = item.get(key)
    if not isinstance(children, list):
        raise ValueError(f"{prefix}: '{key}' must be a list of items")
    return [build_item(sub, f"{prefix}.{j}") for j, sub in enumerate(children)]


def _when_condition(cond, prefix: str):
    if isinstance(cond, bool):
        return cond
    if isinstance(cond, dict):
        unknown = set(cond) - {"after", "before"}
        if unknown:
            raise ValueError(f"{prefix} (when): unknown field(s) {sorted(unknown)}")
        after = cond.get("after", float("-inf"))
        before = cond.get("before", float("inf"))
        return lambda time: after <= time < before
    raise ValueError(
        f"{prefix} (when): condition must be true, false or {{after, before}}, got {cond!r}"
    )


def build_item(item, prefix: str = "Item"):
    """Build one manifest item into a shape builder or flow group.

    Raises:
        ValueError: With a '<prefix> (<kind>): ...' message.
    """
    kind = _item_kind(item, prefix)
    if kind == "sequence":
        extra = set(item) - {"sequence"}
        if extra:
            raise ValueError(f"{prefix} (sequence): unknown field(s) {sorted(extra)}")
        return sequence(*_child_items(item, "sequence", prefix))
    if kind == "parallel":
        extra = set(item) - {"parallel"}
        if extra:
            raise ValueError(f"{prefix} (parallel): unknown field(s) {sorted(extra)}")
        return parallel(*_child_items(item, "parallel", prefix))
    if kind == "on":
        extra = set(item) - {"on", "items"}
        if extra:
            raise ValueError(f"{prefix} (on): unknown field(s) {sorted(extra)}")
        start = item["on"]
        if not isinstance(start, (int, float, str)) or isinstance(start, bool):
            raise ValueError(f"{prefix} (on): start must be a number or time reference, got {start!r}")
        return on(start, *_child_items(item, "items", prefix))
    if kind == "when":
        extra = set(item) - {"when", "items"}
        if extra:
            raise ValueError(f"{prefix} (when): unknown field(s) {sorted(extra)}")
        return when(_when_condition(item["when"], prefix), *_child_items(item, "items", prefix))
    return _build_shape(item, prefix)


def _build_shape(item: dict, prefix: str):
    name = item["shape"]
    if name not in SHAPE_CONSTRUCTORS:
        raise ValueError(
            f"{prefix}: Unknown shape '{name}'. Valid: {sorted(SHAPE_CONSTRUCTORS)}"
        )
    prefix = f"{prefix} ({name})"
    args = {k: v for k, v in item.items() if k != "shape" and k not in MODIFIER_KEYS}
    try:
        if name == "compound":
            paths = args.pop("paths", None)
            if not isinstance(paths, list) or args:
                raise ValueError("compound needs only 'paths' (a list of point lists)")
            builder = Compound(*paths)
        elif name == "text":
            if "text" not in args:
                raise ValueError("missing required field 'text'")
            builder = Text(args.pop("text"), **args)
        else:
            builder = SHAPE_CONSTRUCTORS[name](**args)
        for key, value in item.items():
            if key in MODIFIER_KEYS:
                builder = _apply_modifier(builder, key, value, item, prefix)
    except (TypeError, ValueError, KeyError) as exc:
        raise ValueError(f"{prefix}: {exc}") from None
    return builder


def _check_keys(value, valid: set, what: str) -> dict:
    if not isinstance(value, dict):
        raise ValueError(f"'{what}' must be a mapping, got {value!r}")
    unknown = set(value) - valid
    if unknown:
        raise ValueError(f"'{what}': unknown field(s) {sorted(unknown)}. Valid: {sorted(valid)}")
    return value


def _apply_modifier(builder, key: str, value, item: dict, prefix: str):
    if key in ("x", "y"):
        return builder.at(**{key: value})
    if key == "scale":
        return builder.scale(value)
    if key in ("scale_x", "scale_y"):
        return builder.scale_xy(**{key[-1]: value})
    if key == "rotation":
        return builder.rotate(value)
    if key in ("skew_x", "skew_y"):
        return builder.skew(**{key[-1]: value})
    if key == "opacity":
        return builder.opacity(value)
    if key == "fill":
        return builder.fill(value, item.get("fill_mode"))
    if key == "fill_mode":
        if "fill" not in item:
            raise ValueError("'fill_mode' needs 'fill'")
        return builder
    if key == "gradient":
        return builder.gradient(value)
    if key == "stroke":
        if isinstance(value, str):
            return builder.stroke(value)
        return builder.stroke(**_check_keys(value, STROKE_KEYS, "stroke"))
    if key == "trim":
        return builder.trim(value)
    if key == "clip":
        if not isinstance(value, list):
            raise ValueError("'clip' must be a list of shape items")
        return builder.clip(*(
            build_item(sub, f"{prefix} clip {j}") for j, sub in enumerate(value)
        ))
    if key == "distort":
        return builder.distort(_check_keys(value, {"tl", "tr", "br", "bl"}, "distort"))
    if key == "shadow":
        return builder.shadow(**_check_keys(value, SHADOW_KEYS, "shadow"))
    if key == "blend":
        return builder.blend(value)
    if key == "anchor":
        return builder.anchor(value)
    if key == "z":
        return builder.z(value)
    if key == "on_path":
        spec = _check_keys(value, ON_PATH_KEYS, "on_path")
        path = spec.get("path")
        if isinstance(path, dict):
            path = build_item(path, f"{prefix} on_path")
        elif not isinstance(path, list):
            raise ValueError("'on_path.path' must be a point list or a shape item")
        return builder.on_path(path, spec.get("align", "start"), spec.get("offset", 0.0))
    raise ValueError(f"Unknown modifier '{key}'")


def build_scene(config: dict) -> Scene:
    """Build a Scene from a loaded manifest config.

    Items are built once; builders are immutable, so the scene factory
    returns the same list at every time.
    """
    items = [build_item(item, f"Item {i}") for i, item in enumerate(config["items"])]
    video = config["video"]
    return Scene(
        lambda time: items,
        duration=video.get("duration"),
        time_scale=video.get("time_scale", 1.0),
    )


# ── Path validation ───────────────────────────────────────────────


def validate_paths(config: dict) -> None:
    """Check that every image src in the manifest exists on disk.

    Walks all items recursively (including clip and on_path shapes) and
    reports all missing files at once.

    Raises:
        FileNotFoundError: Lists all missing files.
    """
    missing = []

    def _check(obj):
        if isinstance(obj, dict):
            if obj.get("shape") == "image" and isinstance(obj.get("src"), str):
                if not Path(obj["src"]).exists():
                    missing.append(obj["src"])
            for v in obj.values():
                _check(v)
        elif isinstance(obj, list):
            for item in obj:
                _check(item)

    for item in config["items"]:
        _check(item)

    if missing:
        msg = f"Missing {len(missing)} file(s):\n"
        for p in missing:
            msg += f"  - {p}\n"
        raise FileNotFoundError(msg)
