"""Info command: print the effective configuration."""

import sys

from facecapture.cli.utils import BOLD, DIM, RESET
from facecapture.config import CaptureConfig, ConfigError


def load_config(path):
    """CaptureConfig from ``path``, or defaults when path is None."""
    if not path:
        return CaptureConfig()
    return CaptureConfig.from_yaml(path)


def run_info(args):
    """Show every threshold, grouped as in the YAML config."""
    try:
        config = load_config(getattr(args, "config", None))
    except (OSError, ConfigError) as e:
        print(f"Error: {e}", file=sys.stderr)
        sys.exit(1)

    print(f"{BOLD}FaceCapture - Configuration{RESET}")
    print("=" * 60)
    source = getattr(args, "config", None) or "defaults"
    print(f"{DIM}source: {source}{RESET}")

    for group, values in config.to_dict().items():
        print()
        print(f"{BOLD}{group}{RESET}")
        for key, value in values.items():
            print(f"  {key:<24} {value}")
    return 0
