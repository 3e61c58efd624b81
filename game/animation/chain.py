"""Sequenced animation playback with timed cross-fades between stages."""
from __future__ import annotations

import asyncio
from dataclasses import dataclass
from typing import Awaitable, Callable, List, Sequence

from game.assets import Clip
from game.constants import CROSS_FADE_DURATION

from .mixer import ClipMixer, INFINITE, LOOP_ONCE, LOOP_REPEAT, PlaybackHandle

SleepFn = Callable[[float], Awaitable[None]]


def _noop() -> None:
    pass


def _noop_tick(dt: float) -> None:
    pass


@dataclass(frozen=True)
class AnimationLink:
    """
    One stage of a chain: a clip plus its lifecycle hooks.

    ``on_enter`` fires once when the stage becomes current, ``on_tick(dt)``
    every update while it is current, ``on_exit`` once when it is left or
    completes. A loopable link is a terminal idle stage: it never completes
    and never cross-fades onward.
    """
    clip: Clip
    loopable: bool = False
    on_enter: Callable[[], None] = _noop
    on_tick: Callable[[float], None] = _noop_tick
    on_exit: Callable[[], None] = _noop


class AnimationChain:
    """
    Plays a fixed sequence of links on a shared mixer.

    The last link is conventionally the idle stage. The cursor is -1 until
    :meth:`start`; it only moves forward inside one start..completion cycle.
    """

    def __init__(
        self,
        mixer: ClipMixer,
        links: Sequence[AnimationLink],
        cross_fade_to_idle: bool = False,
        cross_fade: float = CROSS_FADE_DURATION,
        sleep: SleepFn = asyncio.sleep,
        name: str = "",
    ) -> None:
        if not links:
            raise ValueError("an animation chain needs at least one link")
        self.name = name
        self.mixer = mixer
        self.links: List[AnimationLink] = list(links)
        self.cross_fade = float(cross_fade)
        self.cross_fade_to_idle = bool(cross_fade_to_idle)
        self._sleep = sleep
        self._cursor = -1
        self._finished = False
        self.handles: List[PlaybackHandle] = [mixer.bind(link.clip) for link in self.links]
        self._prime_handles()

    # ---------- State ----------
    @property
    def cursor(self) -> int:
        return self._cursor

    @property
    def finished(self) -> bool:
        return self._finished

    @property
    def idle_index(self) -> int:
        return len(self.links) - 1

    # ---------- Playback ----------
    def _prime_handles(self) -> None:
        # Handles are shared per clip across chains on the same mixer, so the
        # loop mode is re-applied on every start.
        for link, handle in zip(self.links, self.handles):
            handle.reset().set_effective_time_scale(1.0).set_effective_weight(1.0)
            if link.loopable:
                handle.set_loop(LOOP_REPEAT, INFINITE)
            else:
                handle.set_loop(LOOP_ONCE, 1)

    def start(self) -> None:
        self._prime_handles()
        self._cursor = 0
        self._finished = False
        self.links[0].on_enter()
        self.handles[0].play()

    def update(self, dt: float) -> None:
        if self._cursor < 0:
            return

        self.mixer.advance(dt)

        link = self.links[self._cursor]
        if link.loopable:
            link.on_tick(dt)
            return

        handle = self.handles[self._cursor]
        last = self._cursor == len(self.links) - 1
        if not last and handle.time >= handle.clip_duration - self.cross_fade:
            link.on_tick(dt)
            self._cross_fade_to_next()
        elif last:
            link.on_tick(dt)
            if not self._finished:
                self._finished = True
                link.on_exit()
        else:
            link.on_tick(dt)

    def _cross_fade_to_next(self) -> None:
        current = self.handles[self._cursor]
        self.links[self._cursor].on_exit()
        self._cursor += 1
        self.links[self._cursor].on_enter()
        nxt = self.handles[self._cursor]
        nxt.reset().play()
        current.cross_fade_to(nxt, self.cross_fade, True)

    async def stop(self) -> None:
        """
        Stop the chain. With cross-fade-to-idle configured, blend into the
        idle link and wait the cross-fade duration before returning; the
        wait cannot be cancelled once begun.
        """
        wait = self._begin_stop()
        if wait > 0.0:
            await self._sleep(wait)
        for handle in self.handles:
            handle.stop()

    def halt(self) -> None:
        """Stop at once without blending; the active link still gets on_exit."""
        if self._cursor >= 0 and not self._finished:
            self.links[self._cursor].on_exit()
            self._finished = True
        for handle in self.handles:
            handle.stop()

    def _begin_stop(self) -> float:
        if self._cursor < 0:
            return 0.0
        if not self._finished:
            self.links[self._cursor].on_exit()
            self._finished = True
        if not self.cross_fade_to_idle:
            return 0.0

        idle = self.idle_index
        if self._cursor != idle:
            current = self.handles[self._cursor]
            idle_handle = self.handles[idle]
            idle_handle.reset().play()
            current.cross_fade_to(idle_handle, self.cross_fade, True)
            self._cursor = idle
        return self.cross_fade
