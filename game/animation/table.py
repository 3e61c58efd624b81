"""Per-entity table of prebuilt animation chains, one per named action."""
from __future__ import annotations

import asyncio
from dataclasses import dataclass
from typing import Any, Awaitable, Callable, Dict, Iterable, List, Mapping, Optional

from game.assets import AssetRegistry
from game.constants import ACTION_IDLE, CROSS_FADE_DURATION

from .chain import AnimationChain, AnimationLink, SleepFn, _noop, _noop_tick
from .mixer import ClipMixer

Spawn = Callable[[Awaitable[None]], Any]


@dataclass(frozen=True)
class LinkHooks:
    """Side effects an entity attaches to one clip's link."""
    on_enter: Callable[[], None] = _noop
    on_tick: Callable[[float], None] = _noop_tick
    on_exit: Callable[[], None] = _noop


@dataclass(frozen=True)
class ActionSpec:
    """Clips an action plays before falling back to idle."""
    clips: tuple[str, ...] = ()
    cross_fade_to_idle: bool = False

    @classmethod
    def from_config(cls, entry: Mapping[str, Any]) -> "ActionSpec":
        return cls(
            clips=tuple(str(c) for c in entry.get("clips", ())),
            cross_fade_to_idle=bool(entry.get("cross_fade_to_idle", False)),
        )


class AnimationTable:
    """
    Maps action names to chains and keeps exactly one of them live.

    Switching stops the outgoing chain before the incoming one starts, so
    the outgoing link's ``on_exit`` always runs before the incoming
    ``on_enter``. Only leaving idle waits for the idle cross-fade; every
    other switch is immediate.
    """

    def __init__(
        self,
        chains: Dict[str, AnimationChain],
        idle_name: str = ACTION_IDLE,
        spawn: Optional[Spawn] = None,
    ) -> None:
        if idle_name not in chains:
            raise KeyError(f"animation table needs an '{idle_name}' chain")
        self.chains = chains
        self.idle_name = idle_name
        self._spawn = spawn or asyncio.ensure_future
        self.current_name: Optional[str] = None
        self._transition = False
        self._pending: Optional[str] = None

    @classmethod
    def build(
        cls,
        mixer: ClipMixer,
        assets: AssetRegistry,
        actions: Mapping[str, ActionSpec],
        hooks: Optional[Mapping[str, LinkHooks]] = None,
        idle_name: str = ACTION_IDLE,
        cross_fade: float = CROSS_FADE_DURATION,
        sleep: SleepFn = asyncio.sleep,
        spawn: Optional[Spawn] = None,
    ) -> "AnimationTable":
        """
        Build one chain per action. Each chain is the action's clips followed
        by the shared idle link. Actions with a missing clip are skipped.
        """
        hooks = hooks or {}
        idle_link = _make_link(assets, idle_name, hooks)
        if idle_link is None:
            raise KeyError(f"idle clip '{idle_name}' is not loaded")

        chains: Dict[str, AnimationChain] = {}
        for name, action in actions.items():
            links: List[AnimationLink] = []
            for clip_name in action.clips:
                link = _make_link(assets, clip_name, hooks)
                if link is None:
                    print(f"[anim] action '{name}' skipped: clip '{clip_name}' missing")
                    break
                links.append(link)
            else:
                links.append(idle_link)
                chains[name] = AnimationChain(
                    mixer,
                    links,
                    cross_fade_to_idle=action.cross_fade_to_idle,
                    cross_fade=cross_fade,
                    sleep=sleep,
                    name=name,
                )
        if idle_name not in chains:
            chains[idle_name] = AnimationChain(
                mixer, [idle_link], cross_fade_to_idle=True,
                cross_fade=cross_fade, sleep=sleep, name=idle_name,
            )
        return cls(chains, idle_name=idle_name, spawn=spawn)

    # ---------- State ----------
    @property
    def current(self) -> Optional[AnimationChain]:
        if self.current_name is None:
            return None
        return self.chains[self.current_name]

    @property
    def in_transition(self) -> bool:
        return self._transition

    def names(self) -> Iterable[str]:
        return self.chains.keys()

    def has(self, name: str) -> bool:
        return name in self.chains

    # ---------- Switching ----------
    def start_idle(self) -> None:
        """Put the idle chain live without any outgoing chain."""
        self.current_name = self.idle_name
        self.chains[self.idle_name].start()

    def request(self, name: str, restart: bool = False) -> Any:
        """Schedule :meth:`select` on the host's scheduler."""
        return self._spawn(self.select(name, restart=restart))

    async def select(self, name: str, restart: bool = False) -> None:
        """
        Make ``name`` the live chain. Selecting the live chain again is a
        no-op unless ``restart`` is set, which replays it from its first link.
        """
        if name not in self.chains:
            print(f"[anim] unknown action '{name}'; keeping '{self.current_name}'")
            return
        if self._transition:
            # The in-flight switch starts whatever was requested last.
            self._pending = name
            return
        if name == self.current_name and not restart:
            return

        self._transition = True
        self._pending = name
        try:
            outgoing = self.current
            if outgoing is not None:
                if self.current_name == self.idle_name:
                    await outgoing.stop()
                else:
                    outgoing.halt()
            target = self._pending
            self.current_name = target
            self.chains[target].start()
        finally:
            self._transition = False
            self._pending = None

    def update(self, dt: float) -> None:
        chain = self.current
        if chain is not None:
            chain.update(dt)


def _make_link(assets: AssetRegistry, clip_name: str, hooks: Mapping[str, LinkHooks]) -> Optional[AnimationLink]:
    found = assets.get_clip(clip_name)
    if found is None:
        return None
    clip, options = found
    h = hooks.get(clip_name, LinkHooks())
    return AnimationLink(
        clip=clip,
        loopable=options.loopable,
        on_enter=h.on_enter,
        on_tick=h.on_tick,
        on_exit=h.on_exit,
    )
