from __future__ import annotations

import logging
from dataclasses import replace
from typing import Callable, List, Sequence, Tuple

from .config import ReadingSettings
from .models import PacingState, PlayState, ReadingMode, Token
from .scheduling import TimerHandle, TimerScheduler
from .timing import compute_delay_ms, time_remaining_seconds

logger = logging.getLogger(__name__)

PositionListener = Callable[[int], None]
SessionListener = Callable[[int, int, float], None]

FLOW_LOOKBEHIND = 2
FLOW_LOOKAHEAD = 2


class PacingController:
    """Timed playback over a token sequence.

    The controller owns the read position and at most one pending advance
    timer. Every command that leaves or re-enters ``PLAYING`` cancels that
    timer before (conditionally) scheduling a fresh one, so a stale tick can
    never fire. Listeners are called synchronously, after the controller has
    settled its own state, which lets them issue further commands.

    An empty token sequence leaves the controller ``FINISHED``; every play
    command is then a no-op.
    """

    def __init__(
        self,
        tokens: Sequence[Token],
        settings: ReadingSettings,
        scheduler: TimerScheduler,
        *,
        initial_position: int = 0,
        on_position_changed: PositionListener | None = None,
        on_session_ended: SessionListener | None = None,
    ) -> None:
        self._tokens: Tuple[Token, ...] = tuple(tokens)
        self._settings = replace(settings).validate()
        self._scheduler = scheduler
        self._timer: TimerHandle | None = None
        self._started_at: float | None = None
        self._context_return: PlayState | None = None
        self._position_listeners: List[PositionListener] = []
        self._session_listeners: List[SessionListener] = []
        if on_position_changed is not None:
            self._position_listeners.append(on_position_changed)
        if on_session_ended is not None:
            self._session_listeners.append(on_session_ended)
        if self._tokens:
            self._position = self._clamp(initial_position)
            self._state = PlayState.IDLE
        else:
            self._position = 0
            self._state = PlayState.FINISHED

    # -- listeners -------------------------------------------------------

    def on_position_changed(self, listener: PositionListener) -> None:
        self._position_listeners.append(listener)

    def on_session_ended(self, listener: SessionListener) -> None:
        self._session_listeners.append(listener)

    # -- read-only views -------------------------------------------------

    @property
    def tokens(self) -> Tuple[Token, ...]:
        return self._tokens

    @property
    def token_count(self) -> int:
        return len(self._tokens)

    @property
    def position(self) -> int:
        return self._position

    @property
    def play_state(self) -> PlayState:
        return self._state

    @property
    def settings(self) -> ReadingSettings:
        return replace(self._settings)

    @property
    def has_pending_tick(self) -> bool:
        return self._timer is not None

    @property
    def state(self) -> PacingState:
        return PacingState(
            position=self._position,
            play_state=self._state,
            wpm=self._settings.wpm,
            mode=self._settings.mode,
            chunk_size=self._settings.chunk_size,
            started_at=self._started_at,
            token_count=len(self._tokens),
        )

    @property
    def current_token(self) -> Token | None:
        if not self._tokens:
            return None
        return self._tokens[self._position]

    @property
    def progress(self) -> float:
        """Fraction of the text before the current position."""
        if not self._tokens:
            return 0.0
        return self._position / len(self._tokens)

    @property
    def time_remaining_seconds(self) -> float:
        return time_remaining_seconds(len(self._tokens), self._position, self._settings.wpm)

    def current_delay_ms(self) -> float:
        return compute_delay_ms(self.current_token, self._settings)

    def visible_tokens(self) -> Tuple[Token, ...]:
        """Tokens on screen for the current mode and position."""
        if not self._tokens:
            return ()
        mode = self._settings.mode
        pos = self._position
        if mode is ReadingMode.CHUNK:
            return self._tokens[pos : pos + self._settings.chunk_size]
        if mode is ReadingMode.FLOW:
            return self._tokens[max(0, pos - FLOW_LOOKBEHIND) : pos + FLOW_LOOKAHEAD + 1]
        if mode is ReadingMode.CLASSIC:
            return self._tokens
        return (self._tokens[pos],)

    # -- commands --------------------------------------------------------

    def apply_settings(self, settings: ReadingSettings) -> None:
        """Adopt new settings, or raise InvalidConfiguration and keep the old ones.

        A pending tick is rescheduled with the delay the new settings give
        the current token.
        """
        candidate = replace(settings)
        try:
            candidate.validate()
        except ValueError:
            logger.warning("Rejected reading settings %s; keeping %s", settings, self._settings)
            raise
        self._settings = candidate
        if self._state is PlayState.PLAYING:
            self._cancel()
            self._schedule()

    def start(self, settings: ReadingSettings | None = None) -> None:
        if settings is not None:
            self.apply_settings(settings)
        if self._state is PlayState.CONTEXT_VIEW:
            self._context_return = PlayState.PLAYING
            return
        if self._state not in (PlayState.IDLE, PlayState.PAUSED):
            logger.debug("start ignored in state %s", self._state.value)
            return
        self._play()

    def resume(self, settings: ReadingSettings | None = None) -> None:
        self.start(settings)

    def pause(self) -> None:
        if self._state is PlayState.CONTEXT_VIEW:
            self._context_return = PlayState.PAUSED
            return
        if self._state is not PlayState.PLAYING:
            return
        self._cancel()
        self._state = PlayState.PAUSED
        logger.debug("Paused at %s", self._position)

    def toggle(self) -> None:
        """Play when stopped, pause when playing."""
        if self._state is PlayState.PLAYING:
            self.pause()
        elif self._state is PlayState.CONTEXT_VIEW:
            if self._context_return is PlayState.PLAYING:
                self._context_return = PlayState.PAUSED
            else:
                self._context_return = PlayState.PLAYING
        else:
            self.start()

    def enter_context(self) -> None:
        """Suspend auto-advance while the reader inspects the surrounding text."""
        if self._state not in (PlayState.PLAYING, PlayState.PAUSED, PlayState.IDLE):
            return
        self._cancel()
        self._context_return = self._state
        self._state = PlayState.CONTEXT_VIEW
        logger.debug("Entered context view at %s", self._position)

    def exit_context(self) -> None:
        if self._state is not PlayState.CONTEXT_VIEW:
            return
        target = self._context_return or PlayState.PAUSED
        self._context_return = None
        if target is PlayState.PLAYING:
            self._play()
        else:
            self._state = target
        logger.debug("Left context view into %s", self._state.value)

    def seek(self, index: int, settings: ReadingSettings | None = None) -> None:
        """Jump to ``index``, clamped to the token range."""
        if not self._tokens:
            return
        if settings is not None:
            self.apply_settings(settings)
        self._cancel()
        self._position = self._clamp(index)
        if self._state is PlayState.FINISHED:
            # A seek after the end starts a fresh play run.
            self._state = PlayState.IDLE
            self._started_at = None
        if self._state is PlayState.PLAYING:
            self._schedule()
        self._emit_position()

    def skip(self, delta: int) -> None:
        self.seek(self._position + delta)

    def reset(self) -> None:
        """Return to the first token, stopped, with a fresh play run."""
        if not self._tokens:
            return
        self._cancel()
        self._state = PlayState.IDLE
        self._started_at = None
        self._context_return = None
        self._position = 0
        self._emit_position()

    # -- internals -------------------------------------------------------

    def _play(self) -> None:
        if self._started_at is None:
            self._started_at = self._scheduler.now()
        self._state = PlayState.PLAYING
        self._cancel()
        self._schedule()
        logger.debug("Playing from %s at %s wpm", self._position, self._settings.wpm)

    def _tick(self) -> None:
        self._timer = None
        if self._state is not PlayState.PLAYING:
            return
        next_position = self._position + self._settings.step
        if next_position >= len(self._tokens):
            self._finish()
            return
        self._position = next_position
        self._schedule()
        self._emit_position()

    def _finish(self) -> None:
        self._state = PlayState.FINISHED
        started_at, self._started_at = self._started_at, None
        logger.debug("Finished at %s", self._position)
        if started_at is None:
            return
        duration = self._scheduler.now() - started_at
        for listener in list(self._session_listeners):
            listener(self._settings.wpm, len(self._tokens), duration)

    def _schedule(self) -> None:
        delay = self.current_delay_ms()
        self._timer = self._scheduler.call_later(delay, self._tick)
        logger.debug("Scheduled tick for %s in %.1f ms", self._position, delay)

    def _cancel(self) -> None:
        if self._timer is not None:
            self._timer.cancel()
            self._timer = None

    def _emit_position(self) -> None:
        position = self._position
        for listener in list(self._position_listeners):
            listener(position)

    def _clamp(self, index: int) -> int:
        return min(max(0, index), len(self._tokens) - 1)
