"""
Playlist command handlers for MFP.

Handles: add, list, songs, rename, delete, refresh
"""

from typing import List

from rich.table import Table

from mfp.commands.playback import stop_playback
from mfp.context import AppContext
from mfp.core.console import get_console
from mfp.core.errors import ValidationError
from mfp.core.output import log
from mfp.domain import library
from mfp.domain.playback.navigation import current_index
from mfp.domain.playlists import (
    delete_playlist,
    get_playlist,
    refresh_playlist,
    rename_playlist,
    save_playlist,
)


def _console(ctx: AppContext):
    return ctx.console or get_console()


def _fetch(ctx: AppContext, url: str) -> List[library.Song]:
    playlist_id = library.extract_playlist_id(url)
    log("📥 Fetching playlist information...", "info")
    songs = library.fetch_playlist_songs(
        playlist_id, playlist_end=ctx.config.youtube.playlist_end
    )
    log(f"   Found {len(songs)} songs", "info")
    return songs


def handle_add_command(ctx: AppContext, args: List[str]) -> AppContext:
    """
    Handle add command - fetch a YouTube playlist and store it under a name.

    Args:
        ctx: Application context
        args: [name, url]

    Returns:
        Updated context
    """
    if len(args) < 2:
        raise ValidationError("Usage: mfp add <playlist_name> <youtube_playlist_url>")

    name, url = args[0], args[1]
    if not library.is_valid_playlist_url(url):
        raise ValidationError("Invalid YouTube playlist URL")

    existed = name in ctx.store.read().playlists
    songs = _fetch(ctx, url)

    with ctx.store.transaction() as snap:
        playlist = save_playlist(snap, name, url, songs)

    if existed:
        log(f"✅ Playlist '{playlist.name}' updated with {len(playlist.songs)} songs", "info")
    else:
        log(f"✅ Playlist '{playlist.name}' added with {len(playlist.songs)} songs", "info")
    return ctx


def handle_refresh_command(ctx: AppContext, args: List[str]) -> AppContext:
    """
    Handle refresh command - re-fetch a stored playlist from its source URL.

    A live session keeps its current song list; the refreshed songs are used
    from the next play.
    """
    if not args:
        raise ValidationError("Usage: mfp refresh <playlist_name>")
    name = args[0]

    snap = ctx.store.read()
    url = get_playlist(snap, name).url
    songs = _fetch(ctx, url)

    with ctx.store.transaction() as snap:
        playlist = refresh_playlist(snap, name, songs)
        playing_it = snap.state.is_playing and snap.state.current_playlist == name

    log(f"🔄 Playlist '{name}' refreshed: {len(playlist.songs)} songs", "info")
    if playing_it:
        log("   Changes apply the next time it is played", "info")
    return ctx


def handle_list_command(ctx: AppContext) -> AppContext:
    """Handle list command - show all stored playlists."""
    snap = ctx.store.read()
    if not snap.playlists:
        log("No playlists found. Use 'mfp add <name> <url>' to add a playlist.", "info")
        return ctx

    table = Table(title="Playlists", title_justify="left")
    table.add_column("", width=1)
    table.add_column("Name", style="bold")
    table.add_column("Songs", justify="right")
    table.add_column("Updated")

    for name in sorted(snap.playlists):
        playlist = snap.playlists[name]
        marker = "▶" if name == snap.state.current_playlist else ""
        table.add_row(marker, name, str(len(playlist.songs)), playlist.last_updated)

    _console(ctx).print(table)
    return ctx


def handle_songs_command(ctx: AppContext, args: List[str]) -> AppContext:
    """
    Handle songs command - show a playlist's songs in stored order.

    Args:
        ctx: Application context
        args: Optional playlist name (defaults to the loaded one)

    Returns:
        Updated context
    """
    snap = ctx.store.read()
    name = args[0] if args else snap.state.current_playlist
    if not name:
        raise ValidationError("No playlist specified. Use: mfp songs <playlist_name>")
    playlist = get_playlist(snap, name)

    current = None
    if name == snap.state.current_playlist and playlist.songs:
        current = current_index(snap.state, playlist)

    table = Table(title=f"{playlist.name} ({len(playlist.songs)} songs)", title_justify="left")
    table.add_column("#", justify="right")
    table.add_column("Title")
    table.add_column("Duration", justify="right")

    for i, song in enumerate(playlist.songs):
        style = "bold green" if i == current else None
        table.add_row(str(i + 1), song.title, song.duration, style=style)

    _console(ctx).print(table)
    return ctx


def handle_rename_command(ctx: AppContext, args: List[str]) -> AppContext:
    """Handle rename command."""
    if len(args) < 2:
        raise ValidationError("Usage: mfp rename <old_name> <new_name>")

    with ctx.store.transaction() as snap:
        rename_playlist(snap, args[0], args[1])

    log(f"✅ Playlist renamed from '{args[0]}' to '{args[1]}'", "info")
    return ctx


def handle_delete_command(ctx: AppContext, args: List[str]) -> AppContext:
    """
    Handle delete command. Deleting the playing playlist stops playback first.
    """
    if not args:
        raise ValidationError("Usage: mfp delete <playlist_name>")
    name = args[0]

    snap = ctx.store.read()
    get_playlist(snap, name)
    if snap.state.is_playing and snap.state.current_playlist == name:
        ctx = stop_playback(ctx)
        log("⏹ Playback stopped", "info")

    with ctx.store.transaction() as snap:
        delete_playlist(snap, name)

    log(f"🗑️  Playlist '{name}' deleted", "info")
    return ctx
