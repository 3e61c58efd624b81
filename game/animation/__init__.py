"""Animation chaining: mixer bookkeeping, chains and per-entity action tables."""
from .chain import AnimationChain, AnimationLink
from .mixer import INFINITE, LOOP_ONCE, LOOP_REPEAT, ClipMixer, PlaybackHandle
from .table import ActionSpec, AnimationTable, LinkHooks

__all__ = [
    "AnimationChain",
    "AnimationLink",
    "AnimationTable",
    "ActionSpec",
    "LinkHooks",
    "ClipMixer",
    "PlaybackHandle",
    "LOOP_ONCE",
    "LOOP_REPEAT",
    "INFINITE",
]
