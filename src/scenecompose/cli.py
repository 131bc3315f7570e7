"""CLI for rendering a scene manifest to video.

Reads a YAML manifest, validates image paths, builds the scene, renders
every frame and exports as mp4.

Usage:
    # Render the whole scene
    python -m scenecompose.cli \
        --manifest scene.yaml --output /tmp/scene.mp4

    # Render the first 2 seconds only
    python -m scenecompose.cli \
        --manifest scene.yaml --output /tmp/scene.mp4 --preview-duration 2

    # Validate only (no rendering)
    python -m scenecompose.cli \
        --manifest scene.yaml --validate
"""

import argparse
import logging
import time

from .diagnostics import Diagnostics
from .manifest import build_scene, load_manifest, validate_paths
from .render import export_clip, scene_clip


def configure_logging(verbose: bool) -> None:
    """Route library logging (diagnostics included) to stderr."""
    logging.basicConfig(
        level=logging.DEBUG if verbose else logging.WARNING,
        format="%(levelname)s %(name)s: %(message)s",
    )


def scene_duration(scene, video_settings: dict) -> float:
    """Scene length in ms: video.duration if set, else the estimate."""
    duration = video_settings.get("duration")
    if duration is None:
        duration = scene.estimated_duration()
    if duration <= 0:
        raise ValueError(
            "Scene has no animated items to estimate a duration from; "
            "set video.duration (ms) in the manifest"
        )
    return float(duration)


def print_diagnostics(diagnostics: Diagnostics) -> None:
    items = diagnostics.get_all()
    if not items:
        return
    print(f"\n{len(items)} diagnostic(s):")
    for d in items:
        print(f"  {d.level.upper():5s}  {d.message}")


# ── Main rendering ───────────────────────────────────────────────


def render(
    manifest_path: str,
    output_path: str,
    preview_duration: float | None = None,
) -> Diagnostics:
    """Load manifest, validate, render the scene, export mp4.

    Args:
        manifest_path: Path to YAML manifest.
        output_path: Output mp4 path.
        preview_duration: If set, cap the video to this many seconds.

    Returns:
        The diagnostics collected while rendering.
    """
    config = load_manifest(manifest_path)
    validate_paths(config)

    video_settings = config["video"]
    resolution = video_settings["resolution"]
    fps = video_settings["fps"]

    scene = build_scene(config)
    duration = scene_duration(scene, video_settings)
    if preview_duration:
        duration = min(duration, preview_duration * 1000.0)

    diagnostics = Diagnostics()
    clip = scene_clip(
        scene, resolution, fps,
        background=video_settings["background"],
        duration=duration,
        diagnostics=diagnostics,
    )

    print(f"Rendering {len(config['items'])} item(s), {duration / 1000:.1f}s")
    print(f"\nResolution: {resolution[0]}x{resolution[1]}, {fps}fps")
    print(f"Writing to: {output_path}")
    t0 = time.monotonic()
    export_clip(clip, output_path, fps)
    elapsed = time.monotonic() - t0
    print(f"\nDone: {output_path} ({elapsed:.1f}s wall)", flush=True)
    print_diagnostics(diagnostics)
    return diagnostics


# ── CLI entry point ───────────────────────────────────────────────


def main(args=None):
    parser = argparse.ArgumentParser(
        description="Render a YAML scene manifest to mp4.",
    )
    parser.add_argument(
        "--manifest", required=True,
        help="Path to YAML manifest file",
    )
    parser.add_argument(
        "--output",
        help="Output mp4 path",
    )
    parser.add_argument(
        "--preview-duration", type=float, default=None,
        help="Cap the video to N seconds for fast iteration",
    )
    parser.add_argument(
        "--validate", action="store_true",
        help="Validate manifest only: check items and paths, don't render",
    )
    parser.add_argument(
        "--verbose", action="store_true",
        help="Log debug output",
    )
    args = parser.parse_args(args)
    configure_logging(args.verbose)

    if args.validate:
        config = load_manifest(args.manifest)
        validate_paths(config)
        scene = build_scene(config)
        print(f"Manifest valid: {len(config['items'])} item(s)")
        for i, item in enumerate(config["items"]):
            kind = item.get("shape") or next(k for k in ("sequence", "parallel", "on", "when") if k in item)
            print(f"  {i}: {kind}")
        print(f"Estimated duration: {scene.estimated_duration():.0f} ms")
        print("All paths verified.")
        return

    if not args.output:
        parser.error("--output is required (unless using --validate)")

    render(args.manifest, args.output, preview_duration=args.preview_duration)


if __name__ == "__main__":
    main()
