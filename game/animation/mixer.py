"""Headless animation mixer: playback time, looping and weight blending.

The mixer keeps the bookkeeping the chain state machine relies on (clip
time, loop mode, cross-fade weights) independent of any renderer. Render
backends subclass :class:`ClipMixer` and override :meth:`ClipMixer.apply`
to push the resulting poses/weights into their scene graph.
"""
from __future__ import annotations

from dataclasses import dataclass
from typing import Dict, Iterator, Optional

from game.assets import Clip

LOOP_ONCE = "once"
LOOP_REPEAT = "repeat"
INFINITE = float("inf")


@dataclass
class _Ramp:
    """Linear interpolation of a scalar over a fixed duration."""
    start: float
    end: float
    duration: float
    elapsed: float = 0.0

    def step(self, dt: float) -> float:
        self.elapsed += dt
        return self.value()

    def value(self) -> float:
        if self.duration <= 0.0:
            return self.end
        t = min(1.0, self.elapsed / self.duration)
        return self.start + (self.end - self.start) * t

    @property
    def done(self) -> bool:
        return self.elapsed >= self.duration


class PlaybackHandle:
    """Playback state of one clip bound to a mixer."""

    def __init__(self, mixer: "ClipMixer", clip: Clip) -> None:
        self.mixer = mixer
        self.clip = clip
        self.time = 0.0
        self.weight = 1.0
        self.time_scale = 1.0
        self.loop = LOOP_REPEAT
        self.repetitions = INFINITE
        self.running = False
        self.enabled = True
        self._loop_count = 0
        self._fade: Optional[_Ramp] = None
        self._warp: Optional[_Ramp] = None
        self._fade_factor = 1.0

    # ---------- Configuration ----------
    def set_loop(self, mode: str, count: float = INFINITE) -> "PlaybackHandle":
        if mode not in (LOOP_ONCE, LOOP_REPEAT):
            raise ValueError(f"unknown loop mode {mode!r}")
        self.loop = mode
        self.repetitions = count
        return self

    def set_effective_weight(self, weight: float) -> "PlaybackHandle":
        self.weight = float(weight)
        self._fade = None
        self._fade_factor = 1.0
        return self

    def set_effective_time_scale(self, scale: float) -> "PlaybackHandle":
        self.time_scale = float(scale)
        self._warp = None
        return self

    # ---------- Control ----------
    def reset(self) -> "PlaybackHandle":
        self.time = 0.0
        self.enabled = True
        self._loop_count = 0
        self._fade = None
        self._warp = None
        self._fade_factor = 1.0
        return self

    def play(self) -> "PlaybackHandle":
        self.running = True
        return self

    def stop(self) -> "PlaybackHandle":
        self.running = False
        return self.reset()

    def fade_in(self, duration: float) -> "PlaybackHandle":
        self._fade = _Ramp(0.0, 1.0, duration)
        self._fade_factor = 0.0
        return self

    def fade_out(self, duration: float) -> "PlaybackHandle":
        self._fade = _Ramp(self._fade_factor, 0.0, duration)
        return self

    def warp(self, start_scale: float, end_scale: float, duration: float) -> "PlaybackHandle":
        self._warp = _Ramp(self.time_scale * start_scale, self.time_scale * end_scale, duration)
        return self

    def cross_fade_to(self, other: "PlaybackHandle", duration: float, warp: bool = False) -> "PlaybackHandle":
        """Blend from this handle into ``other`` over ``duration`` seconds."""
        self.fade_out(duration)
        other.fade_in(duration)
        if warp and other.clip.duration > 0.0 and self.clip.duration > 0.0:
            out_over_in = self.clip.duration / other.clip.duration
            in_over_out = other.clip.duration / self.clip.duration
            self.warp(1.0, out_over_in, duration)
            other.warp(in_over_out, 1.0, duration)
        return self

    # ---------- Queries ----------
    @property
    def clip_duration(self) -> float:
        return self.clip.duration

    @property
    def effective_weight(self) -> float:
        if not (self.running and self.enabled):
            return 0.0
        return self.weight * self._fade_factor

    # ---------- Mixer internals ----------
    def _advance(self, dt: float) -> None:
        if not (self.running and self.enabled):
            return

        if self._fade is not None:
            self._fade_factor = self._fade.step(dt)
            if self._fade.done:
                self._fade = None
                if self._fade_factor <= 0.0:
                    self.enabled = False
                    return

        scale = self.time_scale
        if self._warp is not None:
            scale = self._warp.step(dt)
            if self._warp.done:
                self.time_scale = self._warp.end
                self._warp = None

        duration = self.clip.duration
        self.time += dt * scale
        if duration <= 0.0:
            self.time = 0.0
            return

        if self.loop == LOOP_ONCE:
            if self.time >= duration:
                self.time = duration
                self.enabled = False
            return

        while self.time >= duration:
            self._loop_count += 1
            if self._loop_count >= self.repetitions:
                self.time = duration
                self.enabled = False
                return
            self.time -= duration


class ClipMixer:
    """Owns one :class:`PlaybackHandle` per bound clip and advances them together."""

    def __init__(self) -> None:
        self.time = 0.0
        self._handles: Dict[str, PlaybackHandle] = {}

    def bind(self, clip: Clip) -> PlaybackHandle:
        """Return the handle for ``clip``, creating it on first use."""
        handle = self._handles.get(clip.name)
        if handle is None:
            handle = PlaybackHandle(self, clip)
            self._handles[clip.name] = handle
        return handle

    def advance(self, dt: float) -> None:
        self.time += dt
        for handle in self._handles.values():
            handle._advance(dt)
        self.apply()

    def apply(self) -> None:
        """Hook for render backends; the headless mixer has nothing to pose."""

    def handles(self) -> Iterator[PlaybackHandle]:
        return iter(self._handles.values())
