"""Command-line interface for castremote.

This module provides the `cast-control` command, which discovers the cast
device on the local network and issues one playback command to it using the
public castremote API.
"""

import argparse
import asyncio
import logging
import sys
from typing import NoReturn

import castremote


def _format_status(status: castremote.MediaSession) -> str:
    """Render a media status as a short human readable block.

    :param status: The media status to render.
    :returns: Multi-line string.
    """
    title = status.media.metadata.get("title") or status.media.content_id or "N/A"
    duration = (
        f"{status.media.duration:.1f}s" if status.media.duration is not None else "N/A"
    )
    volume = f"{status.volume.level:.2f}" + (" (muted)" if status.volume.muted else "")
    lines = [
        f"State:    {status.player_state.value}",
        f"Title:    {title}",
        f"Position: {status.current_time:.1f}s / {duration}",
        f"Stream:   {status.media.stream_type.value}",
        f"Volume:   {volume}",
    ]
    return "\n".join(lines)


async def run_command(args: argparse.Namespace) -> None:
    """Connect to the device, run one command and disconnect.

    :param args: Parsed command-line arguments.
    """
    config = castremote.ControllerConfig(discovery_timeout=args.timeout)
    controls = castremote.MediaControls(config=config)

    try:
        device = await controls.initialize()
        print(f"Connected to {device.name} ({device.host})")

        if args.command == "status":
            print(_format_status(await controls.get_status()))
        elif args.command == "pause":
            await controls.pause()
        elif args.command == "resume":
            await controls.resume()
        elif args.command == "stop":
            await controls.stop()
        elif args.command == "seek":
            await controls.seek(args.seconds)
        elif args.command == "volume":
            if args.level is not None or args.muted is not None:
                await controls.set_volume(level=args.level, muted=args.muted)
            volume = await controls.get_volume()
            muted = " (muted)" if volume.muted else ""
            print(f"Volume: {volume.level:.2f}{muted}")
    finally:
        # Always release the connection and the mDNS sockets
        try:
            if controls.state is castremote.ConnectionState.CONNECTED:
                await controls.close_connection()
        finally:
            await controls.discovery.stop()


def build_parser() -> argparse.ArgumentParser:
    """Create the argument parser for cast-control.

    :returns: The configured ArgumentParser.
    """
    parser = argparse.ArgumentParser(
        description="Control media playback on the cast device on this network."
    )
    parser.add_argument(
        "-t",
        "--timeout",
        type=float,
        default=10.0,
        help="Discovery timeout in seconds (default: 10.0)",
    )
    parser.add_argument(
        "-v",
        "--verbose",
        action="count",
        default=0,
        help="Increase output verbosity (e.g., -v for INFO, -vv for DEBUG)",
    )

    commands = parser.add_subparsers(dest="command", required=True)
    commands.add_parser("status", help="Show the playback status")
    commands.add_parser("pause", help="Pause playback")
    commands.add_parser("resume", help="Resume playback")
    commands.add_parser("stop", help="Stop the running application")

    seek = commands.add_parser("seek", help="Seek to an absolute position")
    seek.add_argument("seconds", type=float, help="Position in seconds")

    volume = commands.add_parser("volume", help="Show or change the volume")
    volume.add_argument(
        "level", type=float, nargs="?", default=None, help="New level (0.0 to 1.0)"
    )
    mute = volume.add_mutually_exclusive_group()
    mute.add_argument("--mute", dest="muted", action="store_true", default=None)
    mute.add_argument("--unmute", dest="muted", action="store_false")

    return parser


def main() -> NoReturn:
    """Entry point for cast-control command."""
    args = build_parser().parse_args()

    # Configure logging
    log_level = logging.CRITICAL
    if args.verbose == 1:
        log_level = logging.INFO
    elif args.verbose >= 2:  # noqa: PLR2004
        log_level = logging.DEBUG

    logging.basicConfig(
        level=log_level,
        format="%(asctime)s - %(name)s - %(levelname)s - %(message)s",
        stream=sys.stderr,
    )

    try:
        asyncio.run(run_command(args))
    except KeyboardInterrupt:
        print("\nCancelled by user.")
        sys.exit(130)
    except Exception as e:
        print(f"\nError: {e}", file=sys.stderr)
        sys.exit(1)

    sys.exit(0)


if __name__ == "__main__":
    main()
