"""
Playback command handlers for MFP.

Handles: play, stop, next, prev, jump, shuffle, loop, volume, seek,
current, queue, status

Every handler reads or edits persisted state through a store transaction,
then pushes the matching directive to the player if one is running. A player
that cannot be reached is reported as a warning; the persisted change stands.
"""

from typing import List, Optional, Tuple

from loguru import logger

from mfp.context import AppContext
from mfp.core.errors import LaunchError, MfpError, TransportError, ValidationError
from mfp.core.output import log
from mfp.domain.playback import ipc, navigation, player, shuffle
from mfp.domain.playback.monitor import PlaybackMonitor
from mfp.domain.playback.state import clamp_volume
from mfp.domain.playlists import get_current_playlist, get_playlist, load_playlist
from mfp.helpers import (
    mark_stopped,
    parse_int,
    parse_toggle,
    teardown_session,
    wait_for_release,
)

VOLUME_STEP = 10
DEFAULT_QUEUE_COUNT = 5


def _warn_unreachable(error: MfpError) -> None:
    logger.warning(f"Player directive failed: {error}")
    log(f"⚠️  {error} (saved; applies on next play)", "warning")


def _release_timeout(ctx: AppContext) -> float:
    player_config = ctx.config.player
    return player_config.poll_interval + player_config.ipc_timeout + 1.0


def stop_playback(ctx: AppContext) -> AppContext:
    """Stop any player on the control socket and persist is_playing=False.

    Safe to call when nothing is running. When another invocation owns the
    session, its monitor sees mpv exit and removes the socket; we wait for
    that before taking over, and remove it ourselves if it lingers.
    """
    if player.is_session_alive(ctx.session):
        teardown_session(ctx, ctx.session)
        return ctx.with_session(None)

    socket_path = ctx.socket_path
    try:
        ipc.quit_player(socket_path, timeout=ctx.ipc_timeout)
        delivered = True
    except TransportError as e:
        logger.debug(f"No player answered quit: {e}")
        delivered = False

    if delivered and not wait_for_release(socket_path, _release_timeout(ctx)):
        logger.warning("Player socket still present after quit; removing it")
    player.remove_endpoint(socket_path)

    mark_stopped(ctx)
    return ctx.with_session(None)


def run_session(ctx: AppContext) -> AppContext:
    """Monitor the launched session in the foreground until it ends.

    Ctrl+C (or SIGTERM) stops mpv and records that playback stopped.
    """
    monitor = PlaybackMonitor(ctx.store, ctx.config, ctx.session)
    monitor.start()
    log("Press Ctrl+C to stop playback", "info")

    try:
        while monitor.is_alive():
            monitor.join(0.5)
    except KeyboardInterrupt:
        monitor.stop()
        monitor.join(_release_timeout(ctx))
        teardown_session(ctx, monitor.session)
        log("⏹ Playback stopped", "info")
        return ctx.with_session(None)

    log("Playback finished", "info")
    return ctx.with_session(None)


def handle_play_command(ctx: AppContext, args: List[str]) -> AppContext:
    """Handle play command - resume the loaded playlist or load a new one.

    Args:
        ctx: Application context
        args: Optional playlist name

    Returns:
        Updated context
    """
    name = " ".join(args).strip() if args else ""

    if not player.check_mpv_available(ctx.config.player.mpv_path):
        log("❌ MPV is not installed or not available in PATH", "error")
        return ctx

    if name:
        snap = ctx.store.read()
        get_playlist(snap, name)
        if snap.state.is_playing:
            log("Stopping current playback...", "info")
            ctx = stop_playback(ctx)

    with ctx.store.transaction() as snap:
        state = snap.state
        if state.is_playing:
            if ipc.is_endpoint_alive(ctx.socket_path, timeout=ctx.ipc_timeout):
                log("Already playing. Use 'mfp stop' to stop current playback.", "warning")
                return ctx
            logger.warning("State says playing but no player answers; starting over")

        if name:
            playlist = load_playlist(snap, name)
            log(f"Loading playlist: {name}", "info")
        else:
            if not state.current_playlist:
                raise ValidationError("No playlist specified. Use: mfp play <playlist_name>")
            playlist = get_current_playlist(snap)
            navigation.ensure_shuffle_order(state, playlist)
            log(f"Resuming playlist: {playlist.name}", "info")

        if not playlist.songs:
            raise ValidationError(f"Playlist '{playlist.name}' has no songs")

        # Clamp a hand-edited index so mpv starts on the song announced below
        navigation.apply_position(state, navigation.sequence_position(state, playlist))
        state.is_playing = True
        state.position = 0
        launch_state = state.copy()

    try:
        session = player.launch(ctx.config, playlist, launch_state)
    except (LaunchError, KeyboardInterrupt):
        mark_stopped(ctx)
        raise

    ctx = ctx.with_session(session)
    song = playlist.songs[navigation.current_index(launch_state, playlist)]
    mode = "shuffle" if launch_state.is_shuffle else "sequential"
    log(f"▶ Started playing playlist: {playlist.name} ({mode})", "info")
    log(f"♪ Now playing: {song.title}", "info")

    return run_session(ctx)


def handle_stop_command(ctx: AppContext) -> AppContext:
    """Handle stop command. A no-op when nothing is playing."""
    was_playing = ctx.store.read().state.is_playing
    ctx = stop_playback(ctx)
    if was_playing:
        log("⏹ Playback stopped", "info")
    else:
        log("No music is currently playing", "info")
    return ctx


def _step(ctx: AppContext, direction: int) -> AppContext:
    reloaded_songs = None
    with ctx.store.transaction() as snap:
        state = snap.state
        playlist = get_current_playlist(snap)
        navigation.ensure_shuffle_order(state, playlist)
        step = navigation.advance(state, playlist, direction)
        playing = state.is_playing

        if not step.end_reached:
            if step.wrapped and state.is_shuffle and direction == navigation.NEXT:
                # Each pass through a looping shuffled playlist gets a new order
                shuffle.reshuffle(state, len(playlist.songs))
                reloaded_songs = navigation.resolved_order(state, playlist)
            else:
                navigation.apply_position(state, step.position)
            state.position = 0
            title = playlist.songs[navigation.current_index(state, playlist)].title

    if step.end_reached:
        if direction == navigation.PREVIOUS:
            log("Already at the first song", "info")
        elif playing:
            ctx = stop_playback(ctx)
            log("End of playlist reached; playback stopped", "info")
        else:
            log("End of playlist reached", "info")
        return ctx

    if playing:
        try:
            if reloaded_songs is not None:
                player.write_playlist_file(ctx.config.playlist_file, reloaded_songs)
                ipc.set_shuffle(
                    ctx.socket_path, ctx.config.playlist_file, 0, timeout=ctx.ipc_timeout
                )
            elif direction == navigation.NEXT:
                ipc.playlist_next(ctx.socket_path, timeout=ctx.ipc_timeout)
            else:
                ipc.playlist_prev(ctx.socket_path, timeout=ctx.ipc_timeout)
        except (TransportError, LaunchError) as e:
            _warn_unreachable(e)

    icon = "⏭" if direction == navigation.NEXT else "⏮"
    log(f"{icon} {title}", "info")
    return ctx


def handle_next_command(ctx: AppContext) -> AppContext:
    """Handle next command - move one song forward in playback order."""
    return _step(ctx, navigation.NEXT)


def handle_prev_command(ctx: AppContext) -> AppContext:
    """Handle prev command - move one song back in playback order."""
    return _step(ctx, navigation.PREVIOUS)


def handle_jump_command(ctx: AppContext, args: List[str]) -> AppContext:
    """Handle jump command - make song N (1-based, stored order) current.

    Args:
        ctx: Application context
        args: [song_number]

    Returns:
        Updated context
    """
    if not args:
        raise ValidationError("Usage: mfp jump <song_number>")
    number = parse_int(args[0], "song number")

    with ctx.store.transaction() as snap:
        state = snap.state
        playlist = get_current_playlist(snap)
        position = navigation.jump(state, playlist, number - 1)
        playing = state.is_playing
        title = playlist.songs[number - 1].title

    if playing:
        try:
            ipc.set_playlist_position(ctx.socket_path, position, timeout=ctx.ipc_timeout)
        except TransportError as e:
            _warn_unreachable(e)

    log(f"⏩ Jumped to song {number}: {title}", "info")
    return ctx


def handle_shuffle_command(ctx: AppContext, args: List[str]) -> AppContext:
    """Handle shuffle command - toggle or set shuffle mode.

    Turning shuffle on draws a fresh permutation and starts from its first
    entry. While playing, mpv is reloaded with the playlist in the new order.

    Args:
        ctx: Application context
        args: Optional 'on'/'off'

    Returns:
        Updated context
    """
    reloaded = None
    with ctx.store.transaction() as snap:
        state = snap.state
        enabled = parse_toggle(args, state.is_shuffle, "mfp shuffle [on|off]")
        changed = enabled != state.is_shuffle
        playlist = snap.playlists.get(state.current_playlist)

        if changed:
            if enabled:
                state.is_shuffle = True
                shuffle.reshuffle(state, len(playlist.songs) if playlist else 0)
            else:
                state.current_song_index = navigation.current_index(state, playlist)
                state.is_shuffle = False
            state.position = 0

            if state.is_playing and playlist and playlist.songs:
                reloaded = (
                    navigation.resolved_order(state, playlist),
                    navigation.sequence_position(state, playlist),
                )

    if reloaded is not None:
        songs, start = reloaded
        try:
            player.write_playlist_file(ctx.config.playlist_file, songs)
            ipc.set_shuffle(
                ctx.socket_path, ctx.config.playlist_file, start, timeout=ctx.ipc_timeout
            )
        except (TransportError, LaunchError) as e:
            _warn_unreachable(e)

    if enabled:
        log("🔀 Shuffle mode enabled (random playback)", "info")
    else:
        log("🔁 Sequential mode enabled (play in order)", "info")
    return ctx


def handle_loop_command(ctx: AppContext, args: List[str]) -> AppContext:
    """Handle loop command - toggle or set playlist looping."""
    with ctx.store.transaction() as snap:
        state = snap.state
        enabled = parse_toggle(args, state.is_loop, "mfp loop [on|off]")
        state.is_loop = enabled
        playing = state.is_playing

    if playing:
        try:
            ipc.set_loop(ctx.socket_path, enabled, timeout=ctx.ipc_timeout)
        except TransportError as e:
            _warn_unreachable(e)

    log(f"🔁 Loop {'enabled' if enabled else 'disabled'}", "info")
    return ctx


def parse_volume(arg: str, current: int) -> int:
    """Resolve a volume argument against the current level.

    Raises:
        ValidationError: For anything other than up/down/+/- or 0-100
    """
    word = arg.lower()
    if word in ("up", "+"):
        return clamp_volume(current + VOLUME_STEP)
    if word in ("down", "-"):
        return clamp_volume(current - VOLUME_STEP)

    level = parse_int(arg, "volume")
    if not 0 <= level <= 100:
        raise ValidationError("Volume must be between 0 and 100")
    return level


def handle_volume_command(ctx: AppContext, args: List[str]) -> AppContext:
    """Handle volume command - show, set, or step the volume.

    Args:
        ctx: Application context
        args: Optional level (0-100), 'up'/'+', or 'down'/'-'

    Returns:
        Updated context
    """
    if not args:
        log(f"🔊 Current volume: {ctx.store.read().state.volume}%", "info")
        return ctx

    with ctx.store.transaction() as snap:
        state = snap.state
        state.volume = parse_volume(args[0], state.volume)
        volume = state.volume
        playing = state.is_playing

    if playing:
        try:
            ipc.set_volume(ctx.socket_path, volume, timeout=ctx.ipc_timeout)
        except TransportError as e:
            _warn_unreachable(e)

    log(f"🔊 Volume set to {volume}%", "info")
    return ctx


def parse_seek(arg: str) -> Tuple[int, bool]:
    """Parse a seek argument into (seconds, absolute).

    ``+N``/``-N`` are relative; a bare ``N`` is an absolute position.
    """
    relative = arg.startswith(("+", "-"))
    seconds = parse_int(arg, "seek time")
    if not relative and seconds < 0:
        raise ValidationError(f"Invalid seek time: '{arg}'")
    return seconds, not relative


def handle_seek_command(ctx: AppContext, args: List[str]) -> AppContext:
    """Handle seek command - jump within the current song."""
    if not args:
        raise ValidationError("Usage: mfp seek <seconds>  (+10 / -10 relative, 90 absolute)")
    seconds, absolute = parse_seek(args[0])

    if not ctx.store.read().state.is_playing:
        log("No music is currently playing", "warning")
        return ctx

    try:
        ipc.seek(ctx.socket_path, seconds, absolute=absolute, timeout=ctx.ipc_timeout)
    except TransportError as e:
        log(f"❌ Could not seek: {e}", "error")
        return ctx

    if absolute:
        log(f"⏩ Seeked to {player.format_time(seconds)}", "info")
    else:
        log(f"⏩ Seeked {seconds:+d} seconds", "info")
    return ctx


def _live_position(ctx: AppContext) -> Optional[float]:
    try:
        return ipc.get_time_pos(ctx.socket_path, timeout=ctx.ipc_timeout)
    except TransportError as e:
        logger.debug(f"time-pos unavailable: {e}")
        return None


def handle_current_command(ctx: AppContext) -> AppContext:
    """Handle current command - show the current song."""
    snap = ctx.store.read()
    state = snap.state
    if not state.current_playlist:
        log("No playlist is currently loaded", "info")
        return ctx

    playlist = get_current_playlist(snap)
    if not playlist.songs:
        log(f"Playlist '{playlist.name}' has no songs", "info")
        return ctx

    index = navigation.current_index(state, playlist)
    song = playlist.songs[index]

    log(f"♪ {song.title}", "info")
    log(f"   Song {index + 1} of {len(playlist.songs)} in '{playlist.name}'", "info")
    log(f"   Duration: {song.duration}", "info")

    if state.is_playing:
        elapsed = _live_position(ctx)
        if elapsed is None:
            elapsed = state.position
        log(f"   Position: {player.format_time(elapsed)}", "info")
    elif state.position:
        log(f"   Stopped at: {player.format_time(state.position)}", "info")
    return ctx


def handle_queue_command(ctx: AppContext, args: List[str]) -> AppContext:
    """Handle queue command - songs around the current one in playback order.

    Args:
        ctx: Application context
        args: Optional count of songs to show on each side (default 5)

    Returns:
        Updated context
    """
    count = parse_int(args[0], "count") if args else DEFAULT_QUEUE_COUNT
    if count < 1:
        raise ValidationError("Count must be at least 1")

    snap = ctx.store.read()
    playlist = get_current_playlist(snap)
    previous, current, upcoming = navigation.queue_window(snap.state, playlist, count)
    if current is None:
        log(f"Playlist '{playlist.name}' has no songs", "info")
        return ctx

    mode = "shuffle" if snap.state.is_shuffle else "sequential"
    log(f"Queue for '{playlist.name}' ({mode}):", "info")
    for index, song in previous:
        log(f"     {index + 1:>3}. {song.title}", "info")
    index, song = current
    log(f"  ▶  {index + 1:>3}. {song.title}", "info")
    for index, song in upcoming:
        log(f"     {index + 1:>3}. {song.title}", "info")
    if not upcoming:
        log("     (end of playlist)" if not snap.state.is_loop else "     (loops to start)", "info")
    return ctx


def handle_status_command(ctx: AppContext) -> AppContext:
    """Handle status command - show persisted playback state."""
    snap = ctx.store.read()
    state = snap.state

    log("MFP Status:", "info")
    log("─" * 40, "info")

    if state.current_playlist and state.current_playlist in snap.playlists:
        playlist = snap.playlists[state.current_playlist]
        log(f"♫ Playlist: {playlist.name} ({len(playlist.songs)} songs)", "info")
        if playlist.songs:
            index = navigation.current_index(state, playlist)
            log(f"♪ Song: {index + 1}. {playlist.songs[index].title}", "info")
    else:
        log("♫ Playlist: None", "info")

    log(f"▶ Playing: {'Yes' if state.is_playing else 'No'}", "info")
    log(f"🔀 Shuffle: {'On' if state.is_shuffle else 'Off'}", "info")
    log(f"🔁 Loop: {'On' if state.is_loop else 'Off'}", "info")
    log(f"🔊 Volume: {state.volume}%", "info")

    if state.is_playing and not ipc.is_endpoint_alive(ctx.socket_path, timeout=ctx.ipc_timeout):
        log("⚠️  Player is not responding; state may be stale", "warning")
    if state.last_updated:
        log(f"Last updated: {state.last_updated}", "info")
    return ctx
