"""Capture command: guided single or three-angle capture."""

import logging
import sys

from facecapture.cli.commands.info import load_config
from facecapture.cli.utils import BOLD, DIM, RESET
from facecapture.config import ConfigError
from facecapture.inference.base import InferenceError

logger = logging.getLogger(__name__)


class _GuidancePrinter:
    """Prints guidance only when it changes."""

    def __init__(self):
        self._last = None

    def __call__(self, frame, verdict):
        if verdict is None:
            return
        line = verdict.alignment.message
        if verdict.countdown is not None:
            line = f"{line} ({verdict.countdown})"
        if verdict.stage.value != "idle":
            line = f"[{verdict.stage.value}]"
        if line != self._last:
            print(f"  {line}")
            self._last = line


def run_capture(args):
    from facecapture.main import run

    try:
        config = load_config(getattr(args, "config", None))
    except (OSError, ConfigError) as e:
        print(f"Error: {e}", file=sys.stderr)
        sys.exit(1)

    source = args.video if args.video else args.camera
    target = None if args.target == "none" else args.target
    mode = "front/left/right" if args.multi else args.target

    print(f"{BOLD}FaceCapture{RESET} {DIM}source={source} mode={mode}{RESET}")

    try:
        result = run(
            source,
            target=target,
            multi=args.multi,
            config=config,
            output_dir=args.output_dir,
            max_frames=args.max_frames,
            screen_light=args.screen_light,
            on_verdict=_GuidancePrinter(),
        )
    except (InferenceError, RuntimeError) as e:
        print(f"Error: {e}", file=sys.stderr)
        sys.exit(1)

    print()
    print(f"Frames: {result.frame_count}")
    if result.completed:
        print(f"{BOLD}Capture complete{RESET}")
    else:
        print("Capture not completed")
    for path in result.saved_paths:
        print(f"  saved {path}")
    return 0 if result.completed else 2
