from game.animation import LOOP_REPEAT
from game.assets import Clip
from render.actor_mixer import ActorMixer


class _FakeActor:
    def __init__(self):
        self.calls = []
        self.blend = False

    def setBlend(self, animBlend=None, frameBlend=None):
        self.blend = animBlend
        self.frame_blend = frameBlend

    def disableBlend(self):
        self.blend = False

    def setControlEffect(self, name, weight):
        self.calls.append(("effect", name, weight))

    def getFrameRate(self, name):
        return 30.0

    def getNumFrames(self, name):
        return 60

    def pose(self, name, frame):
        self.calls.append(("pose", name, frame))


def test_weights_and_frames_follow_handles():
    actor = _FakeActor()
    mixer = ActorMixer(actor)
    assert actor.blend and actor.frame_blend
    run = mixer.bind(Clip("slow_run", 2.0)).set_loop(LOOP_REPEAT)
    mixer.bind(Clip("jump", 1.0))
    run.play()

    mixer.advance(0.5)
    assert ("effect", "slow_run", 1.0) in actor.calls
    assert ("effect", "jump", 0.0) in actor.calls
    assert ("pose", "slow_run", 15.0) in actor.calls
    assert not any(c[0] == "pose" and c[1] == "jump" for c in actor.calls)

    actor.calls.clear()
    mixer.advance(0.5)
    assert actor.calls == [("pose", "slow_run", 30.0)]


def test_release_clears_effects():
    actor = _FakeActor()
    mixer = ActorMixer(actor)
    mixer.bind(Clip("slow_run", 2.0)).play()
    mixer.advance(0.1)
    mixer.release()
    assert actor.calls[-1] == ("effect", "slow_run", 0.0)
    assert not actor.blend


def test_pose_keeps_fractional_frames_and_clamps_at_end():
    actor = _FakeActor()
    mixer = ActorMixer(actor)
    wave = mixer.bind(Clip("wave", 3.0))
    wave.play()
    mixer.advance(0.25)
    assert actor.calls[-1] == ("pose", "wave", 7.5)

    wave.time = 2.5
    mixer.advance(0.0)
    assert actor.calls[-1] == ("pose", "wave", 59.0)
