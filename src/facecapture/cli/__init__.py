"""Command-line interface for facecapture."""

import argparse
import logging
import sys


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        prog="facecapture",
        description="FaceCapture - guided face photo capture",
        formatter_class=argparse.RawDescriptionHelpFormatter,
        epilog="""
Examples:
  facecapture info                               # Effective configuration
  facecapture info --config capture.yaml         # Configuration from YAML
  facecapture capture                            # Front shot from camera 0
  facecapture capture --target left -o ./shots   # Left shot, save to ./shots
  facecapture capture --multi --video clip.mp4   # Front/left/right from a video
""",
    )
    parser.add_argument(
        "-v", "--verbose", action="store_true", help="Enable verbose logging"
    )
    subparsers = parser.add_subparsers(dest="command", help="Available commands")

    # info command
    info_parser = subparsers.add_parser(
        "info",
        help="Show the effective configuration",
        description="Print every threshold the capture engine will use.",
    )
    info_parser.add_argument("--config", type=str, metavar="PATH", help="YAML config file")

    # capture command
    cap_parser = subparsers.add_parser(
        "capture",
        help="Run a guided capture",
        description="Guide a face into frame and capture automatically.",
    )
    source = cap_parser.add_mutually_exclusive_group()
    source.add_argument("--camera", type=int, default=0, help="Camera index (default: 0)")
    source.add_argument("--video", type=str, metavar="PATH", help="Read frames from a video file")
    cap_parser.add_argument(
        "--target", choices=["front", "left", "right", "none"], default="front",
        help="Target pose for a single shot (default: front; 'none' = guidance only)",
    )
    cap_parser.add_argument(
        "--multi", action="store_true",
        help="Capture front, left and right in sequence (ignores --target)",
    )
    cap_parser.add_argument("--output-dir", "-o", type=str, default="./captures",
                            help="Output directory (default: ./captures)")
    cap_parser.add_argument("--config", type=str, metavar="PATH", help="YAML config file")
    cap_parser.add_argument("--max-frames", type=int, default=None, metavar="N",
                            help="Stop after N frames")
    cap_parser.add_argument("--screen-light", action="store_true",
                            help="A supplemental light is on (skip the darkness check)")
    cap_parser.add_argument(
        "-v", "--verbose", action="store_true",
        default=argparse.SUPPRESS,
        help="Enable verbose logging (per-frame decisions)",
    )

    return parser


def main(argv=None):
    parser = build_parser()
    args = parser.parse_args(argv)

    from facecapture.cli.utils import StderrFilter, configure_log_levels, suppress_thirdparty_noise

    if getattr(args, "verbose", False):
        logging.basicConfig(level=logging.DEBUG)
    else:
        suppress_thirdparty_noise()
        StderrFilter().install()
        logging.basicConfig(level=logging.INFO)
        configure_log_levels()

    from facecapture.cli import commands

    if args.command == "info":
        return commands.run_info(args)

    elif args.command == "capture":
        return commands.run_capture(args)

    else:
        parser.print_help()
        sys.exit(1)


if __name__ == "__main__":
    main()
