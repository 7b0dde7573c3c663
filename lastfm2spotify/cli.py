"""
Command-line interface for lastfm2spotify.

Production-ready CLI with structured logging and colorized output.
"""

import argparse
import asyncio
import os
import sys
from pathlib import Path

from .auth import open_spotify_session
from .cache import PersistentCache
from .config import ConfigError, build_config, format_size, load_config_file
from .logging_utils import SyncLogger, UserErrors, attach_sync_logger
from .sync_engine import SyncEngine


def create_parser() -> argparse.ArgumentParser:
    """Create the argument parser with all CLI options."""
    parser = argparse.ArgumentParser(
        description="Mirror Last.fm station playlists into Spotify",
        formatter_class=argparse.RawDescriptionHelpFormatter,
        epilog="""
Examples:
  lastfm2spotify -u alice                      # alice's library, mix and recommended
  lastfm2spotify -u alice,bob -s mix --blend   # separate + blended mix playlists
  lastfm2spotify -u alice,bob --no-separate --blend -n 50

Tips:
  Settings can also live in config.yml or LASTFM_USERNAMES, LASTFM_PLAYLISTS,
  AMOUNT, ENABLE_SEPARATE, ENABLE_BLEND, CACHE_FILE and CACHE_MAX_SIZE
  Track lookups are cached - reruns only search for new tracks
""",
    )

    parser.add_argument(
        "--config",
        "-c",
        default="config.yml",
        help="Path to config file (default: config.yml)",
    )
    parser.add_argument(
        "--users", "-u", help="Comma-separated Last.fm usernames"
    )
    parser.add_argument(
        "--stations",
        "-s",
        help="Comma-separated station types: library, mix, recommended",
    )
    parser.add_argument(
        "--amount", "-n", type=int, help="Number of tracks per playlist (default: 30)"
    )
    parser.add_argument(
        "--separate",
        action=argparse.BooleanOptionalAction,
        default=None,
        help="Create one playlist per user and station",
    )
    parser.add_argument(
        "--blend",
        action=argparse.BooleanOptionalAction,
        default=None,
        help="Create blended playlists that interleave every user's tracks",
    )
    parser.add_argument("--cache-file", help="Path to the track lookup cache")
    parser.add_argument(
        "--cache-size", help="Maximum cache file size, e.g. 5MB (0 = unlimited)"
    )
    parser.add_argument(
        "--verbose", "-v", action="store_true", help="Enable verbose debug output"
    )
    parser.add_argument(
        "--quiet",
        "-q",
        action="store_true",
        help="Quiet mode - only show errors",
    )
    parser.add_argument(
        "--no-color",
        action="store_true",
        help="Disable colored output",
    )

    return parser


def cli_overrides(args: argparse.Namespace) -> dict:
    """Translate command-line options into environment-style overrides."""
    overrides = {}
    if args.users:
        overrides["LASTFM_USERNAMES"] = args.users
    if args.stations:
        overrides["LASTFM_PLAYLISTS"] = args.stations
    if args.amount is not None:
        overrides["AMOUNT"] = str(args.amount)
    if args.separate is not None:
        overrides["ENABLE_SEPARATE"] = str(args.separate)
    if args.blend is not None:
        overrides["ENABLE_BLEND"] = str(args.blend)
    if args.cache_file:
        overrides["CACHE_FILE"] = args.cache_file
    if args.cache_size:
        overrides["CACHE_MAX_SIZE"] = args.cache_size
    return overrides


def print_header(logger: SyncLogger):
    """Print a styled header."""
    logger.info("━" * 50)
    logger.info("🎵 Last.fm → Spotify Playlists")
    logger.info("━" * 50)


def print_summary(results: dict, logger: SyncLogger) -> int:
    """Print a formatted summary of playlist results. Returns the failure count."""
    logger.info("")
    logger.info("━" * 50)

    failures = 0
    for name, data in results.items():
        if "error" in data:
            failures += 1
            logger.error(f"  {name}: failed ({data['error']})")
        else:
            verb = "created" if data.get("created") else "updated"
            logger.info(f"  {name}: {verb}, {data['added']} tracks")

    logger.info("━" * 50)
    if failures:
        logger.warning(UserErrors.playlists_failed(failures, len(results)))
    else:
        logger.success("Sync Complete!")
    logger.info(logger.format_summary())
    return failures


def main():
    parser = create_parser()
    args = parser.parse_args()

    logger = SyncLogger(
        verbose=args.verbose,
        quiet=args.quiet,
        use_color=not args.no_color,
    )
    attach_sync_logger(logger)

    print_header(logger)

    # Load config
    raw_config = load_config_file(args.config)
    if not raw_config and not Path(args.config).exists():
        if args.config != "config.yml":
            logger.error(UserErrors.config_not_found(args.config))
            sys.exit(1)
        else:
            logger.debug("No config.yml found, using environment variables")

    try:
        config = build_config(raw_config, {**os.environ, **cli_overrides(args)})
    except ConfigError as e:
        logger.error(UserErrors.invalid_config(str(e)))
        sys.exit(1)

    if not config.enable_separate and not config.enable_blend:
        logger.warning("Both separate and blended playlists are disabled, nothing to do.")
        return

    # Connect to Spotify
    logger.progress("Connecting to Spotify...")
    try:
        spotify = open_spotify_session(config.spotify)
        user = spotify.current_user()
        username = user.get("display_name") or user["id"]
        logger.success(f"Connected to Spotify as {username}")
    except ValueError as e:
        logger.error(UserErrors.spotify_auth_failed(str(e)))
        sys.exit(1)
    except Exception as e:
        if "connection" in str(e).lower() or "network" in str(e).lower():
            logger.error(UserErrors.network_error(str(e)))
        else:
            logger.error(UserErrors.spotify_auth_failed(str(e)))
        sys.exit(1)

    cache = PersistentCache(config.cache_file, config.cache_max_size)
    limit = format_size(config.cache_max_size) if config.cache_max_size else "unlimited"
    logger.debug(f"Using cache: {config.cache_file or 'in-memory'} (limit {limit}, {len(cache)} entries)")

    engine = SyncEngine(
        spotify,
        cache=cache,
        rate_limit=config.rate_limit,
        logger=logger,
        show_progress=not args.quiet,
    )

    try:
        results = asyncio.run(
            engine.run(
                config.usernames,
                config.stations,
                config.amount,
                enable_separate=config.enable_separate,
                enable_blend=config.enable_blend,
            )
        )
    except KeyboardInterrupt:
        cache.save()
        logger.warning("Sync cancelled by user")
        logger.info("Track lookups have been cached. Run again to resume.")
        sys.exit(1)

    if print_summary(results, logger):
        sys.exit(1)


if __name__ == "__main__":
    main()
