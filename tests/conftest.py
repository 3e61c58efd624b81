import pytest

from game.assets import AssetRegistry, Clip, ClipOptions
from game.entities import PlayerServices


def run_inline(coro):
    """Drive a coroutine that never truly suspends (the test sleeps return at once)."""
    try:
        coro.send(None)
    except StopIteration:
        return None
    coro.close()
    raise AssertionError("coroutine suspended; use asyncio.run for this case")


class Recorder:
    def __init__(self):
        self.sleeps = []
        self.sent = []

    async def sleep(self, seconds):
        self.sleeps.append(seconds)

    def send(self, msg):
        self.sent.append(msg)

    def types(self):
        return [m["type"] for m in self.sent]


@pytest.fixture
def recorder():
    return Recorder()


@pytest.fixture
def assets():
    reg = AssetRegistry()
    reg.register_clip(Clip("idle", 2.0), ClipOptions(loopable=True))
    reg.register_clip(Clip("slow_run", 0.8), ClipOptions(loopable=True))
    reg.register_clip(Clip("jump", 1.2), ClipOptions(loopable=False, rotation=15.0))
    return reg


@pytest.fixture
def services(assets, recorder):
    return PlayerServices(assets=assets, send=recorder.send, sleep=recorder.sleep, spawn=run_inline)
