"""Configuration and argument parsing for the Bluesky video downloader."""

import argparse
import json
import os
import sys
from typing import Any, Dict, List, Optional

from .models import (
    DEFAULT_FFMPEG,
    DEFAULT_HTTP_TIMEOUT,
    DEFAULT_MAX_POSTS,
    DEFAULT_OUTPUT_DIR,
    DEFAULT_SERVICE,
    ENV_IDENTIFIER,
    ENV_PASSWORD,
    ENV_SERVICE,
)

VALID_CONFIG_KEYS = {
    "output", "max_posts", "service", "identifier", "ffmpeg", "timeout",
    "format", "rate_limit", "cookies_from_browser", "proxy", "yes", "verbose",
}


def positive_int(value: str) -> int:
    """Return *value* parsed as a positive integer for argparse."""

    try:
        parsed = int(value)
    except (TypeError, ValueError) as exc:
        raise argparse.ArgumentTypeError("Expected a positive integer") from exc

    if parsed <= 0:
        raise argparse.ArgumentTypeError("Expected a positive integer")

    return parsed


def load_config_file(config_path: str) -> Dict[str, Any]:
    """Load defaults from a JSON config file.

    Missing or invalid files yield an empty dictionary; unknown keys are
    reported and dropped.
    """
    if not os.path.exists(config_path):
        return {}

    try:
        with open(config_path, "r", encoding="utf-8") as f:
            config = json.load(f)
    except json.JSONDecodeError as exc:
        print(f"Warning: Failed to parse config file {config_path}: {exc}. Ignoring.", file=sys.stderr)
        return {}
    except OSError as exc:
        print(f"Warning: Failed to read config file {config_path}: {exc}. Ignoring.", file=sys.stderr)
        return {}

    if not isinstance(config, dict):
        print(f"Warning: Config file {config_path} must contain a JSON object. Ignoring.", file=sys.stderr)
        return {}

    invalid_keys = set(config.keys()) - VALID_CONFIG_KEYS
    if invalid_keys:
        print(f"Warning: Unknown config keys ignored: {', '.join(sorted(invalid_keys))}", file=sys.stderr)

    return {k: v for k, v in config.items() if k in VALID_CONFIG_KEYS}


def _config_path_from_argv(argv: List[str]) -> str:
    if "--config" in argv:
        idx = argv.index("--config")
        if idx + 1 < len(argv):
            return argv[idx + 1]
    return "config.json"


def build_parser(config: Optional[Dict[str, Any]] = None) -> argparse.ArgumentParser:
    config = config or {}
    parser = argparse.ArgumentParser(
        description="Download the videos from the posts you liked on Bluesky."
    )
    parser.add_argument(
        "--config",
        default="config.json",
        help="Path to JSON configuration file (default: config.json)",
    )
    parser.add_argument(
        "--output",
        default=config.get("output", DEFAULT_OUTPUT_DIR),
        help=f"Directory where videos are stored (default: {DEFAULT_OUTPUT_DIR})",
    )
    parser.add_argument(
        "--max-posts",
        type=positive_int,
        default=config.get("max_posts", DEFAULT_MAX_POSTS),
        help=f"Maximum number of liked posts to scan (default: {DEFAULT_MAX_POSTS})",
    )
    parser.add_argument(
        "--service",
        default=config.get("service"),
        help=f"Bluesky service URL (default: ${ENV_SERVICE} or {DEFAULT_SERVICE})",
    )
    parser.add_argument(
        "--identifier",
        default=config.get("identifier"),
        help=f"Handle or email to log in with (default: ${ENV_IDENTIFIER}, prompted if unset)",
    )
    parser.add_argument(
        "--password",
        default=None,
        help=f"App password (default: ${ENV_PASSWORD}, prompted if unset)",
    )
    parser.add_argument(
        "--ffmpeg",
        default=config.get("ffmpeg", DEFAULT_FFMPEG),
        help="ffmpeg binary used to remux HLS streams (default: ffmpeg)",
    )
    parser.add_argument(
        "--timeout",
        type=float,
        default=config.get("timeout", DEFAULT_HTTP_TIMEOUT),
        help=f"HTTP timeout in seconds (default: {DEFAULT_HTTP_TIMEOUT:g})",
    )
    parser.add_argument("--format", default=config.get("format"), help="Format selector passed to yt-dlp")
    parser.add_argument("--rate-limit", default=config.get("rate_limit"), help="Limit yt-dlp download speed, e.g. 2M or 500K")
    parser.add_argument(
        "--cookies-from-browser",
        default=config.get("cookies_from_browser"),
        help="Let yt-dlp use cookies from your browser (chrome, firefox, safari, ...)",
    )
    parser.add_argument("--proxy", default=config.get("proxy"), help="Proxy URL passed to yt-dlp")
    parser.add_argument(
        "-y",
        "--yes",
        action="store_true",
        default=config.get("yes", False),
        help="Start downloading without asking for confirmation",
    )
    parser.add_argument(
        "--check-tools",
        action="store_true",
        help="Report which external tools are available and exit",
    )
    parser.add_argument(
        "--verbose",
        action="store_true",
        default=config.get("verbose", False),
        help="Print extra diagnostics",
    )
    return parser


def apply_environment_defaults(args, environ: Optional[Dict[str, str]] = None) -> None:
    """Populate login-related args from the environment when missing."""

    if environ is None:
        environ = os.environ

    if not getattr(args, "identifier", None):
        env_identifier = environ.get(ENV_IDENTIFIER, "").strip()
        args.identifier = env_identifier or None

    if not getattr(args, "password", None):
        env_password = environ.get(ENV_PASSWORD, "")
        args.password = env_password or None

    if not getattr(args, "service", None):
        env_service = environ.get(ENV_SERVICE, "").strip()
        args.service = env_service or DEFAULT_SERVICE


def parse_args(argv: Optional[List[str]] = None, environ: Optional[Dict[str, str]] = None) -> argparse.Namespace:
    """Parse command-line arguments, layering flags over config file and environment."""
    raw_argv = list(sys.argv[1:] if argv is None else argv)
    config_path = _config_path_from_argv(raw_argv)
    config = load_config_file(config_path)
    if config:
        print(f"Loaded configuration from {config_path}")

    args = build_parser(config).parse_args(raw_argv)
    apply_environment_defaults(args, environ)
    return args
