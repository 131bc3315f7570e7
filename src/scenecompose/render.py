"""Render boundary -- samples a scene safely and turns frames into files.

sample_scene() is the only place scene code runs under a guard: errors
raised while the factory builds items or while items evaluate are
classified, reported once per distinct message, and the frame is skipped.
Issues carried by instances are forwarded to the same Diagnostics.

    diagnostics = Diagnostics()
    clip = scene_clip(scene, (640, 360), fps=30, background="#101014",
                      diagnostics=diagnostics)
    export_clip(clip, "out.mp4", fps=30)
"""

import logging
import traceback
from pathlib import Path

import numpy as np
from moviepy import VideoClip
from PIL import Image

from .diagnostics import Diagnostics
from .raster import render_frame
from .shapes import Evaluable, ShapeInstance


logger = logging.getLogger(__name__)

UNDEFINED_NAME_MESSAGE = "Undefined identifier in scene. Did you forget quotes around a string?"
SYNTAX_ERROR_MESSAGE = "Syntax error in scene"
RUNTIME_ERROR_MESSAGE = "Runtime error"


def classify_error(err: BaseException) -> tuple[str, str]:
    """Map an exception to a (message, detail) pair for diagnostics.

    The detail is the formatted traceback.
    """
    detail = "".join(traceback.format_exception(type(err), err, err.__traceback__))
    if isinstance(err, NameError):
        return UNDEFINED_NAME_MESSAGE, detail
    if isinstance(err, SyntaxError):
        return SYNTAX_ERROR_MESSAGE, detail
    return RUNTIME_ERROR_MESSAGE, detail


def _report_issues(instances, diagnostics: Diagnostics) -> None:
    for inst in instances:
        for issue in inst.issues:
            diagnostics.report(issue)
        _report_issues(inst.clip, diagnostics)


def sample_scene(
    scene: Evaluable,
    time: float,
    diagnostics: Diagnostics,
) -> list[ShapeInstance] | None:
    """Evaluate a scene at `time` (ms) and sort the result for drawing.

    Returns:
        Instances stably sorted by z_index, or None if scene code raised.
    """
    try:
        instances = scene.evaluate(time)
    except Exception as err:
        message, detail = classify_error(err)
        diagnostics.add_once(f"runtime:{message}", "error", message, detail)
        return None
    _report_issues(instances, diagnostics)
    return sorted(instances, key=lambda inst: inst.z_index)


def render_scene_frame(
    scene: Evaluable,
    time: float,
    resolution: tuple[int, int],
    background=(0, 0, 0),
    diagnostics: Diagnostics | None = None,
) -> np.ndarray:
    """Sample and draw one frame. A frame whose scene code fails is left blank."""
    if diagnostics is None:
        diagnostics = Diagnostics()
    instances = sample_scene(scene, time, diagnostics)
    if instances is None:
        instances = []
    try:
        return render_frame(instances, resolution, background, diagnostics)
    except Exception as err:
        # Custom draw callbacks run here.
        message, detail = classify_error(err)
        diagnostics.add_once(f"runtime:{message}", "error", message, detail)
        return render_frame([], resolution, background, diagnostics)


# ── Video and image output ────────────────────────────────────────


def scene_clip(
    scene: Evaluable,
    resolution: tuple[int, int],
    fps: int,
    background=(0, 0, 0),
    duration: float | None = None,
    diagnostics: Diagnostics | None = None,
) -> VideoClip:
    """Wrap a scene as a moviepy VideoClip.

    Args:
        scene: Scene or any Evaluable.
        resolution: (width, height) in pixels.
        fps: Frame rate of the clip.
        background: RGB tuple or color string.
        duration: Length in ms; defaults to the scene's estimated duration.
        diagnostics: Collects problems found while rendering.

    Raises:
        ValueError: If the duration is not positive.
    """
    if duration is None:
        duration = scene.estimated_duration()
    if duration <= 0:
        raise ValueError(f"Scene duration must be positive, got {duration} ms")
    if diagnostics is None:
        diagnostics = Diagnostics()

    def make_frame(t):
        return render_scene_frame(scene, t * 1000.0, resolution, background, diagnostics)

    logger.debug("Scene clip: %.0f ms at %s, %d fps", duration, resolution, fps)
    return VideoClip(frame_function=make_frame, duration=duration / 1000.0).with_fps(fps)


def export_clip(clip, output_path, fps, quiet=False):
    """Write a clip to mp4 with standard encoding settings."""
    Path(output_path).parent.mkdir(parents=True, exist_ok=True)
    clip.write_videofile(
        str(output_path),
        fps=fps,
        codec="libx264",
        audio=False,
        preset="medium",
        ffmpeg_params=["-crf", "20", "-pix_fmt", "yuv420p"],
        logger=None if quiet else "bar",
    )


def save_frame(frame: np.ndarray, output_path) -> None:
    """Write an (h, w, 3) uint8 frame as an image (format from the extension)."""
    Path(output_path).parent.mkdir(parents=True, exist_ok=True)
    Image.fromarray(frame).save(str(output_path))
