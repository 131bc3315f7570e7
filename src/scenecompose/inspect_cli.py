"""CLI for inspecting a scene manifest at one point in time.

Evaluates the scene and prints the resolved shape snapshots as YAML, in
draw order. Useful for checking timing without rendering.

Usage:
    python -m scenecompose.inspect_cli --manifest scene.yaml --time 500
"""

import argparse
import dataclasses
import sys

import yaml

from .cli import configure_logging
from .diagnostics import Diagnostics
from .manifest import build_scene, load_manifest
from .render import sample_scene
from .shapes import ShapeInstance, Transform


def _plain(value):
    """Convert snapshot values to YAML-safe builtins."""
    if dataclasses.is_dataclass(value) and not isinstance(value, type):
        out = {}
        kind = getattr(value, "kind", None)
        if isinstance(kind, str):
            out["kind"] = kind
        for f in dataclasses.fields(value):
            out[f.name.rstrip("_")] = _plain(getattr(value, f.name))
        return out
    if isinstance(value, (list, tuple)):
        return [_plain(v) for v in value]
    if isinstance(value, dict):
        return {str(k): _plain(v) for k, v in value.items()}
    if isinstance(value, float):
        return round(value, 3)
    if callable(value):
        return getattr(value, "__name__", "<callable>")
    return value


def snapshot(inst: ShapeInstance) -> dict:
    """A ShapeInstance as a plain dict, leaving out empty and default fields."""
    out = {"kind": inst.kind, "geom": _plain(inst.geom)}
    out["geom"].pop("kind", None)
    if inst.transform != Transform():
        out["transform"] = {
            k: v for k, v in _plain(inst.transform).items()
            if v != _plain(getattr(Transform(), k))
        }
    for f in dataclasses.fields(inst):
        if f.name in ("geom", "transform", "draw", "time"):
            continue
        value = getattr(inst, f.name)
        if value is None or value == () or value == f.default:
            continue
        out[f.name] = _plain(value)
    return out


def inspect_scene(manifest_path: str, time_ms: float) -> list[dict]:
    config = load_manifest(manifest_path)
    diagnostics = Diagnostics()
    # Diagnostics reach stderr through logging; stdout stays pure YAML.
    instances = sample_scene(build_scene(config), time_ms, diagnostics)
    return [snapshot(inst) for inst in instances or []]


def main(args=None):
    parser = argparse.ArgumentParser(
        description="Print the evaluated shapes of a scene manifest at a time.",
    )
    parser.add_argument("--manifest", required=True, help="Path to YAML manifest file")
    parser.add_argument("--time", type=float, default=0.0, help="Scene time in ms")
    parser.add_argument("--verbose", action="store_true", help="Log debug output")
    args = parser.parse_args(args)
    configure_logging(args.verbose)

    shapes = inspect_scene(args.manifest, args.time)
    yaml.safe_dump(
        {"time": args.time, "shapes": shapes},
        sys.stdout, sort_keys=False, default_flow_style=None,
    )


if __name__ == "__main__":
    main()
