"""High-level API for facecapture.

    >>> import facecapture as fc
    >>> result = fc.run(0, target="front", output_dir="./captures")
    >>> result.completed, result.saved_paths

All execution goes through a single path:
    fc.run() -> FramePump(source, detector, session | sequencer).run()
"""

import logging
import signal
import threading
from dataclasses import dataclass, field
from pathlib import Path
from typing import Any, Callable, Dict, List, Optional, Union

from facecapture.algorithm.stability import NS_PER_SECOND
from facecapture.config import CaptureConfig
from facecapture.inference.base import LandmarkDetector
from facecapture.pump import FramePump
from facecapture.sequencer import STEP_ORDER, MultiAngleSequencer
from facecapture.session import CaptureSession
from facecapture.sources import FrameSource, OpenCVSource
from facecapture.types import CaptureTargetAngle

logger = logging.getLogger(__name__)

DEFAULT_VIDEO_FPS = 30.0


@dataclass
class Result:
    """Result from fc.run().

    Attributes:
        images: Captured frames keyed by target ("front", "left", "right",
            or "none" for a guidance-only capture).
        saved_paths: Files written to ``output_dir``.
        frame_count: Frames read from the source.
        completed: Every requested capture finished.
    """

    images: Dict[str, Any] = field(default_factory=dict)
    saved_paths: List[Path] = field(default_factory=list)
    frame_count: int = 0
    completed: bool = False


def _open_source(source: Union[int, str, Path, FrameSource]) -> FrameSource:
    if isinstance(source, FrameSource):
        return source
    if isinstance(source, str) and source.isdigit():
        source = int(source)
    if isinstance(source, Path):
        source = str(source)
    return OpenCVSource(source)


def _frame_clock(pump_ref: List[FramePump], fps: float) -> Callable[[], int]:
    """Clock following the video timeline instead of wall time."""
    def clock() -> int:
        frames = pump_ref[0].frames_read if pump_ref else 0
        return int(frames * NS_PER_SECOND / fps)
    return clock


def _save_images(images: Dict[str, Any], output_dir: Union[str, Path]) -> List[Path]:
    import cv2

    out = Path(output_dir)
    out.mkdir(parents=True, exist_ok=True)
    paths = []
    for name, image in images.items():
        if image is None:
            continue
        path = out / f"capture_{name}.jpg"
        if not cv2.imwrite(str(path), image):
            raise RuntimeError(f"Failed to write {path}")
        paths.append(path)
        logger.info("Saved %s", path)
    return paths


def run(
    source: Union[int, str, Path, FrameSource] = 0,
    *,
    target: Optional[Union[CaptureTargetAngle, str]] = CaptureTargetAngle.FRONT,
    multi: bool = False,
    config: Optional[CaptureConfig] = None,
    output_dir: Optional[Union[str, Path]] = None,
    detector: Optional[LandmarkDetector] = None,
    max_frames: Optional[int] = None,
    screen_light: bool = False,
    on_verdict: Optional[Callable] = None,
) -> Result:
    """Run a capture against a camera or video and return the images.

    Args:
        source: Camera index, video path, or a ``FrameSource``.
        target: Target pose for a single capture; None for guidance only.
        multi: Run the front/left/right sequence instead (``target`` ignored).
        config: Engine configuration.
        output_dir: Write captured frames here as JPEG. None = no file output.
        detector: Landmark backend; MediaPipe face mesh by default.
        max_frames: Stop after this many frames.
        screen_light: A supplemental light is active.
        on_verdict: Optional per-frame callback ``(frame, verdict)``.

    Returns:
        Result with images, saved_paths, frame_count, completed.
    """
    config = config or CaptureConfig()
    is_file = isinstance(source, (str, Path)) and not str(source).isdigit()
    frame_source = _open_source(source)

    if detector is None:
        from facecapture.inference.mediapipe_mesh import MediaPipeFaceMeshBackend
        detector = MediaPipeFaceMeshBackend()

    images: Dict[str, Any] = {}
    if multi:
        def on_all_complete(shots):
            images.update({angle.value: img for angle, img in zip(STEP_ORDER, shots)})

        capture_target = MultiAngleSequencer(
            config, on_all_complete=on_all_complete, screen_light=screen_light,
        )
    else:
        name = CaptureTargetAngle(target).value if target is not None else "none"

        def on_captured(image):
            images[name] = image

        capture_target = CaptureSession(
            target=target, config=config, on_captured=on_captured,
            screen_light=screen_light,
        )

    pump_ref: List[FramePump] = []
    clock_kwargs = {}
    if is_file:
        fps = getattr(frame_source, "fps", 0.0) or DEFAULT_VIDEO_FPS
        clock_kwargs["clock"] = _frame_clock(pump_ref, fps)

    pump = FramePump(
        frame_source, detector, capture_target,
        on_verdict=on_verdict, block=is_file, **clock_kwargs,
    )
    pump_ref.append(pump)

    # First Ctrl+C stops the loop gracefully; a second one is passed through
    prev_handler = signal.getsignal(signal.SIGINT)

    def handle_sigint(signum, frame):
        if pump.stopped:
            signal.signal(signal.SIGINT, prev_handler)
            raise KeyboardInterrupt
        logger.info("Interrupted, stopping capture")
        pump.stop()

    install = threading.current_thread() is threading.main_thread()
    if install:
        signal.signal(signal.SIGINT, handle_sigint)
    try:
        pump.run(max_frames=max_frames)
        if is_file and not capture_target.is_done:
            # Let a capture already in progress finish past the last frame
            stage_ns = int((config.stage.scanning_sec + config.stage.processing_sec) * NS_PER_SECOND)
            capture_target.tick(pump.clock() + stage_ns)
    finally:
        if install:
            signal.signal(signal.SIGINT, prev_handler)
        pump.close()

    completed = capture_target.is_done
    saved = _save_images(images, output_dir) if output_dir and images else []
    logger.info("Capture %s after %d frames",
                "completed" if completed else "not completed", pump.frames_read)

    return Result(
        images=images,
        saved_paths=saved,
        frame_count=pump.frames_read,
        completed=completed,
    )


__all__ = ["Result", "run"]
