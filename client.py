# client.py
import sys, asyncio, json, math, argparse, threading, os
from collections import deque
from concurrent.futures import TimeoutError as FutureTimeout
from typing import Dict, Any, Tuple

from direct.showbase.ShowBase import ShowBase
from direct.actor.Actor import Actor
from direct.gui.OnscreenText import OnscreenText
from direct.task import Task
from panda3d.core import AmbientLight, CardMaker, ClockObject, DirectionalLight, TextNode

from common.net import MessageError, read_json, send_json
from engine.config import get, load_config
from game.animation import ClipMixer
from game.assets import AssetRegistry
from game.event_bus import EventBus
from game.entities import EntityManager, Player, PlayerServices
from game.input_state import InputState
from render.actor_mixer import ActorMixer


def load_manifest(path: str) -> Dict[str, Any]:
    try:
        with open(path, "r") as f:
            return json.load(f)
    except FileNotFoundError:
        print(f"[assets] manifest {path} not found")
        return {}


def to_panda(x: float, y: float, z: float) -> Tuple[float, float, float]:
    """Game space is Y-up with +Z toward the camera; Panda is Z-up with +Y forward."""
    return (x, -z, y)


def facing_to_heading(facing: float) -> float:
    """Game facing (radians about +Y) to Panda H (degrees about +Z)."""
    return 180.0 + math.degrees(facing)


class AsyncRunner:
    def __init__(self):
        self.loop = asyncio.new_event_loop()
        self.thread = threading.Thread(target=self._run, daemon=True)
        self.thread.start()

    def _run(self):
        asyncio.set_event_loop(self.loop)
        self.loop.run_forever()

    def run_coro(self, coro):
        """Schedule a coroutine onto the background loop."""
        return asyncio.run_coroutine_threadsafe(coro, self.loop)


class NetworkClient:
    """
    TCP connection to the relay server. Runs on the AsyncRunner loop; inbound
    messages are queued and applied on the render thread by ``drain``.
    """
    def __init__(self):
        self.reader = None
        self.writer = None
        self.inbox = deque()
        self.connected = False

    async def connect(self, host: str, port: int):
        self.reader, self.writer = await asyncio.open_connection(host, port)
        self.connected = True
        print(f"[net] connected to {host}:{port}")

    async def recv_loop(self):
        if self.reader is None:
            raise RuntimeError("recv_loop called before connect() completed")
        try:
            while True:
                try:
                    msg = await read_json(self.reader)
                except MessageError as e:
                    print(f"[net] dropped malformed message: {e}")
                    continue
                if not msg:
                    break
                self.inbox.append(msg)
        finally:
            self.connected = False
            print("[net] disconnected")

    async def send(self, msg: Dict[str, Any]):
        if self.writer is None or not self.connected:
            return
        try:
            await send_json(self.writer, msg)
        except ConnectionError as e:
            print(f"[net] send failed: {e}")

    def drain(self, bus: EventBus):
        while self.inbox:
            bus.dispatch(self.inbox.popleft())


class GameApp(ShowBase):
    def __init__(self, cfg: Dict[str, Any], host: str, port: int):
        ShowBase.__init__(self)
        self.set_background_color(0.55, 0.75, 0.95, 1)
        self.disableMouse()
        self.cfg = cfg

        cam_cfg = cfg.get("camera", {})
        self.camLens.setNear(float(cam_cfg.get("near", 0.1)))
        self.camLens.setFar(float(cam_cfg.get("far", 500.0)))
        self.cam_distance = float(cam_cfg.get("distance", 12.0))
        self.cam_height = float(cam_cfg.get("height", 6.0))

        # Services owned by the app root and handed to every entity
        self.assets = AssetRegistry()
        self.input = InputState()
        self.bus = EventBus()
        self.client = NetworkClient()
        self.net_runner = AsyncRunner()
        self._load_assets(str(get(cfg, "animation.manifest", "configs/animations.json")))

        services = PlayerServices(
            assets=self.assets,
            send=self._send,
            sleep=Task.pause,
            spawn=lambda coro: self.taskMgr.add(coro, "anim-select"),
            cfg=cfg,
        )
        self.entities = EntityManager(services, make_body=self._make_body, on_despawn=self._remove_body)
        self.entities.bind(self.bus)

        self._build_scene()
        self._bind_keys()

        self._status = OnscreenText(text="", pos=(-1.3, 0.9), scale=0.05, fg=(1, 1, 1, 1),
                                    align=TextNode.ALeft, mayChange=True)

        try:
            self.net_runner.run_coro(self.client.connect(host, port)).result(timeout=5.0)
        except (OSError, FutureTimeout) as e:
            print(f"[net] could not connect to {host}:{port}: {e}")
            sys.exit(1)
        self.net_runner.run_coro(self.client.recv_loop())

        self.taskMgr.add(self.update, "update")

    # ---------- Assets ----------
    def _load_assets(self, manifest_path: str):
        manifest = load_manifest(manifest_path)
        model = manifest.get("models", {}).get("player")
        anims = {name: entry["file"] for name, entry in manifest.get("animations", {}).items()
                 if "file" in entry}
        durations: Dict[str, float] = {}
        if model:
            try:
                actor = Actor(model["file"], anims)
                actor.setScale(float(model.get("scale", 1.0)))
                for name in anims:
                    d = actor.getDuration(name)
                    if d:
                        durations[name] = float(d)
                self.assets.register_mesh("player", actor)
            except (IOError, OSError) as e:
                print(f"[assets] player model failed to load: {e}")
        if manifest:
            self.assets.load_manifest(manifest_path, durations=durations)
        print(f"[assets] clips: {', '.join(self.assets.clip_names()) or 'none'}")

    def _make_body(self, pid: str):
        template = self.assets.get_skinned_entity("player")
        if template is None:
            return None, ClipMixer()
        actor = Actor(other=template)
        actor.reparentTo(self.render)
        return actor, ActorMixer(actor)

    def _remove_body(self, player: Player):
        if isinstance(player.mixer, ActorMixer):
            player.mixer.release()
        if player.mesh is not None:
            player.mesh.cleanup()
            player.mesh.removeNode()

    # ---------- Scene ----------
    def _build_scene(self):
        cm = CardMaker("court")
        cm.setFrame(-9, 9, -18, 18)
        court = self.render.attachNewNode(cm.generate())
        court.setP(-90)
        court.setColor(0.85, 0.7, 0.45, 1)

        net_cm = CardMaker("net")
        net_cm.setFrame(-9, 9, 0, 2.4)
        net = self.render.attachNewNode(net_cm.generate())
        net.setTwoSided(True)
        net.setColor(1, 1, 1, 0.6)

        sun = DirectionalLight("sun")
        sun_np = self.render.attachNewNode(sun)
        sun_np.setHpr(30, -60, 0)
        self.render.setLight(sun_np)
        amb = AmbientLight("ambient")
        amb.setColor((0.4, 0.4, 0.45, 1))
        self.render.setLight(self.render.attachNewNode(amb))

        self.ball_np = self.loader.loadModel("models/misc/sphere")
        self.ball_np.reparentTo(self.render)
        self.ball_np.setScale(self.entities.ball.radius)
        self.ball_np.setColor(1, 0.1, 0.1, 1)
        self.entities.ball.mesh = self.ball_np

    def _bind_keys(self):
        for key in ("w", "a", "s", "d"):
            self.accept(key, self.input.set_key, [key, True])
            self.accept(f"{key}-up", self.input.set_key, [key, False])
        self.accept("space", self.input.set_key, ["space", True])
        self.accept("space-up", self.input.set_key, ["space", False])
        self.accept("escape", sys.exit)

    # ---------- Networking ----------
    def _send(self, msg: Dict[str, Any]):
        self.net_runner.run_coro(self.client.send(msg))

    # ---------- Frame ----------
    def update(self, task):
        dt = ClockObject.getGlobalClock().getDt()
        self.client.drain(self.bus)
        self.entities.update(dt, self.input)

        for player in self.entities.players.values():
            if player.mesh is None:
                continue
            player.mesh.setPos(*to_panda(*player.position.as_tuple()))
            player.mesh.setH(facing_to_heading(player.heading))

        self.ball_np.setPos(*to_panda(*self.entities.ball.position_tuple()))
        self._follow_camera()

        if self.entities.error:
            self._status.setText(self.entities.error)
        elif not self.client.connected:
            self._status.setText("disconnected")
        else:
            me = self.entities.main_player
            self._status.setText(f"{me.pid}  {me.state.value}" if me else "waiting for server")
        return task.cont

    def _follow_camera(self):
        me = self.entities.main_player
        x, y, z = me.position.as_tuple() if me else (0.0, 0.0, 0.0)
        px, py, pz = to_panda(x, y, z)
        self.camera.setPos(px, py - self.cam_distance, pz + self.cam_height)
        self.camera.lookAt(px, py, pz + 1.0)


def main():
    ap = argparse.ArgumentParser()
    ap.add_argument("--config", default="configs/defaults.json")
    ap.add_argument("--host", default="127.0.0.1")
    ap.add_argument("--port", type=int, default=None)
    args = ap.parse_args()
    if not os.path.exists(args.config):
        print(f"Config {args.config} not found.")
        sys.exit(1)
    cfg = load_config(args.config)
    port = args.port or int(get(cfg, "server.port", 50008))

    app = GameApp(cfg, host=args.host, port=port)
    app.run()


if __name__ == "__main__":
    main()
