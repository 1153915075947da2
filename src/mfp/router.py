"""
Command routing for MFP.

Routes user commands to appropriate handler functions.
"""

from typing import List

from loguru import logger

from mfp.context import AppContext
from mfp.core.errors import MfpError
from mfp.core.output import log

# Import command handlers
from mfp.commands import playback
from mfp.commands import playlist

ALIASES = {
    "previous": "prev",
    "now": "current",
    "vol": "volume",
    "playlists": "list",
    "remove": "delete",
}


def print_help() -> None:
    """Display help information for available commands."""
    help_text = """
MFP - Terminal Music Player for YouTube Playlists

Usage: mfp <command> [arguments]

Playlist Commands:
  add <name> <url>        Add a YouTube playlist under a name
  list, playlists         List stored playlists
  songs [name]            Show a playlist's songs (default: loaded playlist)
  rename <old> <new>      Rename a playlist
  delete, remove <name>   Delete a playlist
  refresh <name>          Re-fetch a playlist from YouTube

Playback Commands:
  play [name]             Play a playlist, or resume the loaded one
  stop                    Stop playback
  next                    Next song
  prev, previous          Previous song
  jump <number>           Jump to song number (see 'songs')
  seek <seconds>          Seek: +10 / -10 relative, 90 absolute

Mode Commands:
  shuffle [on|off]        Toggle or set shuffle mode
  loop [on|off]           Toggle or set playlist looping
  volume, vol [level]     Show volume, set 0-100, or step with up/down

Info Commands:
  current, now            Show the current song
  queue [count]           Show songs around the current one (default 5)
  status                  Show player status
  help                    Show this help message

Examples:
  mfp add chill "https://www.youtube.com/playlist?list=PLxxxxxxxx"
  mfp play chill
  mfp shuffle on
  mfp volume up
  mfp seek +30
"""
    print(help_text.strip())


def handle_command(ctx: AppContext, command: str, args: List[str]) -> AppContext:
    """
    Handle a single command with explicit state passing.

    Domain errors are reported to the user here; they never escape as
    tracebacks.

    Args:
        ctx: Application context
        command: Command name (aliases accepted)
        args: Command arguments

    Returns:
        Updated context
    """
    command = ALIASES.get(command.lower(), command.lower())
    logger.debug(f"Command: {command} {args}")

    try:
        return _dispatch(ctx, command, args)
    except MfpError as e:
        logger.info(f"{command} failed: {type(e).__name__}: {e}")
        log(f"❌ {e}", "error")
        return ctx


def _dispatch(ctx: AppContext, command: str, args: List[str]) -> AppContext:
    if command == "help":
        print_help()
        return ctx

    elif command == "add":
        return playlist.handle_add_command(ctx, args)

    elif command == "list":
        return playlist.handle_list_command(ctx)

    elif command == "songs":
        return playlist.handle_songs_command(ctx, args)

    elif command == "rename":
        return playlist.handle_rename_command(ctx, args)

    elif command == "delete":
        return playlist.handle_delete_command(ctx, args)

    elif command == "refresh":
        return playlist.handle_refresh_command(ctx, args)

    elif command == "play":
        return playback.handle_play_command(ctx, args)

    elif command == "stop":
        return playback.handle_stop_command(ctx)

    elif command == "next":
        return playback.handle_next_command(ctx)

    elif command == "prev":
        return playback.handle_prev_command(ctx)

    elif command == "jump":
        return playback.handle_jump_command(ctx, args)

    elif command == "seek":
        return playback.handle_seek_command(ctx, args)

    elif command == "shuffle":
        return playback.handle_shuffle_command(ctx, args)

    elif command == "loop":
        return playback.handle_loop_command(ctx, args)

    elif command == "volume":
        return playback.handle_volume_command(ctx, args)

    elif command == "current":
        return playback.handle_current_command(ctx)

    elif command == "queue":
        return playback.handle_queue_command(ctx, args)

    elif command == "status":
        return playback.handle_status_command(ctx)

    else:
        log(f"Unknown command: '{command}'", "warning")
        print_help()
        return ctx
