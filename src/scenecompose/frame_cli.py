"""CLI for rendering a single frame of a scene manifest to an image.

Usage:
    python -m scenecompose.frame_cli \
        --manifest scene.yaml --time 1200 --output /tmp/frame.png
"""

import argparse

from .cli import configure_logging, print_diagnostics
from .diagnostics import Diagnostics
from .manifest import build_scene, load_manifest, validate_paths
from .render import render_scene_frame, save_frame


def render_still(manifest_path: str, time_ms: float, output_path: str) -> Diagnostics:
    """Render the scene at `time_ms` and write it to `output_path`."""
    config = load_manifest(manifest_path)
    validate_paths(config)
    video_settings = config["video"]

    diagnostics = Diagnostics()
    frame = render_scene_frame(
        build_scene(config), time_ms,
        video_settings["resolution"], video_settings["background"], diagnostics,
    )
    save_frame(frame, output_path)
    print(f"Done: {output_path} (t={time_ms:g} ms)", flush=True)
    print_diagnostics(diagnostics)
    return diagnostics


def main(args=None):
    parser = argparse.ArgumentParser(
        description="Render one frame of a YAML scene manifest to an image.",
    )
    parser.add_argument("--manifest", required=True, help="Path to YAML manifest file")
    parser.add_argument("--time", type=float, required=True, help="Scene time in ms")
    parser.add_argument("--output", required=True, help="Output image path (.png, .jpg)")
    parser.add_argument("--verbose", action="store_true", help="Log debug output")
    args = parser.parse_args(args)
    configure_logging(args.verbose)

    render_still(args.manifest, args.time, args.output)


if __name__ == "__main__":
    main()
