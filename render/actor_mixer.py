# render/actor_mixer.py
"""Drive a Panda3D Actor's blended animations from a :class:`ClipMixer`."""
from __future__ import annotations

from typing import Any, Dict

from game.animation.mixer import ClipMixer


class ActorMixer(ClipMixer):
    """
    Mixer backed by a Panda3D ``Actor`` with blending enabled.

    Clip time and weights are kept by :class:`ClipMixer`, so warped
    cross-fades stay in step with the chain. After every advance each bound
    animation is posed at its fractional frame and given its effective
    weight as the control effect. Animations with zero weight are
    switched off so they do not contribute to the pose.
    """

    def __init__(self, actor: Any) -> None:
        super().__init__()
        self.actor = actor
        # Blend between animations and between neighbouring frames.
        self.actor.setBlend(animBlend=True, frameBlend=True)
        self._effects: Dict[str, float] = {}

    def apply(self) -> None:
        for handle in self.handles():
            name = handle.clip.name
            weight = handle.effective_weight
            if weight != self._effects.get(name):
                self.actor.setControlEffect(name, weight)
                self._effects[name] = weight
            if weight <= 0.0:
                continue
            rate = self.actor.getFrameRate(name) or 0.0
            frames = self.actor.getNumFrames(name) or 1
            frame = min(handle.time * rate, float(frames - 1))
            self.actor.pose(name, frame)

    def release(self) -> None:
        """Drop all control effects, e.g. before the actor is removed."""
        for name in list(self._effects):
            self.actor.setControlEffect(name, 0.0)
        self._effects.clear()
        self.actor.disableBlend()
