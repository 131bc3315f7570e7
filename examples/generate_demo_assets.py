#!/usr/bin/env python3
"""Generate image assets for the scenecompose demo manifest.

Creates a few small badge PNGs in examples/demo-assets/: a colored
rounded square with a white letter, so image placement, tinting and
anchoring are easy to check by eye.

Usage:
    python examples/generate_demo_assets.py
    # Then render:
    scenecompose render --manifest examples/demo_scene.yaml \
        --output examples/demo-renders/demo.mp4
"""

from pathlib import Path

from PIL import Image, ImageDraw, ImageFont

OUTPUT_DIR = Path(__file__).resolve().parent / "demo-assets"
SIZE = (128, 128)

# (name, background color, letter)
BADGES = [
    ("badge-a", (177, 19, 77), "A"),
    ("badge-b", (60, 60, 180), "B"),
    ("badge-white", (255, 255, 255), ""),
]


def _make_badge(color: tuple[int, int, int], letter: str) -> Image.Image:
    """Rounded square in `color` with a centered white letter."""
    img = Image.new("RGBA", SIZE, (0, 0, 0, 0))
    draw = ImageDraw.Draw(img)
    draw.rounded_rectangle([0, 0, SIZE[0] - 1, SIZE[1] - 1], radius=24, fill=color + (255,))
    if letter:
        try:
            font = ImageFont.truetype(
                "/usr/share/fonts/truetype/dejavu/DejaVuSans-Bold.ttf", 72
            )
        except OSError:
            font = ImageFont.load_default()
        draw.text((SIZE[0] / 2, SIZE[1] / 2), letter, fill=(255, 255, 255, 255),
                  font=font, anchor="mm")
    return img


def main():
    OUTPUT_DIR.mkdir(parents=True, exist_ok=True)
    for name, color, letter in BADGES:
        out = OUTPUT_DIR / f"{name}.png"
        if out.exists():
            print(f"  skip {name} (exists)")
            continue
        _make_badge(color, letter).save(out)
        print(f"  wrote {name}")

    print(f"\nDone. {len(BADGES)} badges in {OUTPUT_DIR}")


if __name__ == "__main__":
    main()
