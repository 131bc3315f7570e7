"""Subcommand dispatcher for scenecompose.

Usage:
    scenecompose render   --manifest ... --output ...
    scenecompose frame    --manifest ... --time 1200 --output frame.png
    scenecompose inspect  --manifest ... --time 500
"""

import argparse
import sys


def main(args=None):
    parser = argparse.ArgumentParser(
        prog="scenecompose",
        description="Declarative, time-parameterized 2D scenes rendered from YAML manifests.",
    )
    subparsers = parser.add_subparsers(dest="command")

    # Register subcommands. Each delegates to its own module's main().
    subparsers.add_parser("render", help="Render a scene manifest to mp4")
    subparsers.add_parser("frame", help="Render one frame of a scene to an image")
    subparsers.add_parser("inspect", help="Print evaluated shapes at a time as YAML")

    # Parse only the subcommand name, pass the rest to the subcommand's parser.
    parsed, remaining = parser.parse_known_args(args)

    if parsed.command is None:
        # No subcommand given at all; show help and exit with error.
        parser.print_help()
        sys.exit(1)

    if parsed.command == "render":
        from .cli import main as render_main
        render_main(remaining)
    elif parsed.command == "frame":
        from .frame_cli import main as frame_main
        frame_main(remaining)
    elif parsed.command == "inspect":
        from .inspect_cli import main as inspect_main
        inspect_main(remaining)


if __name__ == "__main__":
    main()
