# server.py: relay server with fixed player slots, event relays
# and a simple per-tick ball integrator started by hits.
import asyncio, math, time, argparse, signal
from typing import Dict, Any, Optional

from common.net import MessageError, make_message, position_fields, position_to_wire, read_json, send_json
from engine.config import get, get_float, load_config
from game.components import Position
from game.constants import BALL_DRAG, BALL_FLOOR, GRAVITY, NUM_PLAYER_SLOTS
from game.jump import HitPayload, JumpPayload
from game.server_state import BallSimulator, PlayerSlotTable

GAME_FULL = "The game is full"

# ---------- Utility ----------
def now() -> float:
    return time.time()


def _finite(*values: float) -> bool:
    return all(math.isfinite(v) for v in values)


# ---------- Server ----------
class VolleyServer:
    def __init__(self, cfg: Dict[str, Any]):
        self.cfg = cfg
        self.next_cid = 1

        self.slots = PlayerSlotTable(int(get(cfg, "server.player_slots", NUM_PLAYER_SLOTS)))
        self.ball = BallSimulator(
            gravity=get_float(cfg, "gameplay.gravity", GRAVITY),
            drag=get_float(cfg, "gameplay.ball_drag", BALL_DRAG),
            floor=get_float(cfg, "gameplay.ball_floor", BALL_FLOOR),
        )
        spawn = get(cfg, "gameplay.spawn", [0.0, 0.0, 0.0])
        self.spawn = Position(*[float(v) for v in spawn])

        # networking
        self.clients: Dict[str, asyncio.StreamWriter] = {}

    # ---------- Players ----------
    def _new_id(self) -> str:
        cid = f"p{self.next_cid}"
        self.next_cid += 1
        return cid

    def add_player(self, cid: str) -> bool:
        if not self.slots.add_player(cid, self.spawn):
            return False
        print(f"[join] id={cid} slot={self.slots.slot_index(cid)} ({len(self.slots)}/{self.slots.capacity})")
        return True

    def remove_player(self, cid: str):
        self.clients.pop(cid, None)
        if cid in self.slots:
            self.slots.remove_player(cid)
            print(f"[leave] id={cid}")

    def initial_players(self) -> Dict[str, Any]:
        return {cid: p.to_wire() for cid, p in self.slots.get_all_players().items()}

    # ---------- Relays ----------
    async def send_to(self, cid: str, msg: Dict[str, Any]):
        w = self.clients.get(cid)
        if w is None:
            return
        try:
            await send_json(w, msg)
        except (ConnectionError, RuntimeError) as e:
            print(f"[net] send to {cid} failed: {e}")
            await self.drop_client(cid)

    async def drop_client(self, cid: str):
        """Forget a connection and tell the others if it held a slot."""
        was_seated = cid in self.slots
        self.remove_player(cid)
        if was_seated:
            await self.broadcast(make_message("player_disconnected", id=cid))

    async def broadcast(self, msg: Dict[str, Any], exclude: Optional[str] = None):
        dead = []
        for cid, w in list(self.clients.items()):
            if cid == exclude:
                continue
            try:
                await send_json(w, msg)
            except (ConnectionError, RuntimeError):
                dead.append(cid)
        for cid in dead:
            await self.drop_client(cid)

    async def handle_message(self, cid: str, msg: Dict[str, Any]):
        kind = msg.get("type")
        if kind == "client_movement":
            x, y, z = position_fields(msg)
            if not _finite(x, y, z):
                raise MessageError("non-finite position")
            pos = Position(x, y, z)
            self.slots.update_player_position(cid, pos)
            await self.broadcast(make_message("position_update", id=cid,
                                              position=position_to_wire(pos)), exclude=cid)
        elif kind == "client_animation":
            name = msg.get("name")
            if not isinstance(name, str):
                raise MessageError("animation name must be a string")
            await self.broadcast(make_message("animation_update", id=cid, name=name), exclude=cid)
        elif kind == "client_jump":
            try:
                jump = JumpPayload.from_wire(msg)
            except (KeyError, TypeError, ValueError) as e:
                raise MessageError(f"bad jump payload: {e}") from e
            await self.broadcast(make_message("player_jump", id=cid, **jump.to_wire()), exclude=cid)
        elif kind == "client_hit_ball":
            try:
                hit = HitPayload.from_wire(msg)
            except (KeyError, TypeError, ValueError) as e:
                raise MessageError(f"bad hit payload: {e}") from e
            if not _finite(*hit.ball_position, *hit.initial_velocity):
                raise MessageError("non-finite hit")
            self.ball.hit(hit.ball_position, hit.initial_velocity)
            print(f"[ball] hit by {cid} v={hit.initial_velocity}")
            await self.broadcast(make_message("player_hit_ball", id=cid, **hit.to_wire()), exclude=cid)
        else:
            raise MessageError(f"unknown message type {kind!r}")

    # ---------- Networking ----------
    async def handle_client(self, reader: asyncio.StreamReader, writer: asyncio.StreamWriter):
        addr = writer.get_extra_info("peername")
        cid = self._new_id()

        if not self.add_player(cid):
            print(f"[join] rejected {addr}: {GAME_FULL}")
            try:
                await send_json(writer, make_message("error", message=GAME_FULL))
            finally:
                writer.close()
                await writer.wait_closed()
            return

        self.clients[cid] = writer
        me = self.slots.get_player(cid)
        try:
            # A failed send drops the client, which ends the handshake early.
            await self.send_to(cid, make_message("player_id", **me.to_wire()))
            if cid in self.clients:
                await self.broadcast(make_message("player_connected", **me.to_wire()), exclude=cid)
                await self.send_to(cid, make_message("initial_players", players=self.initial_players()))

            while cid in self.clients:
                try:
                    msg = await read_json(reader)
                except MessageError as e:
                    print(f"[client] {addr} sent a malformed line: {e}")
                    continue
                if not msg:
                    break
                try:
                    await self.handle_message(cid, msg)
                except MessageError as e:
                    print(f"[client] {addr} error: {e}")
        except (ConnectionError, asyncio.IncompleteReadError) as e:
            print(f"[client] {addr} error: {e}")
        finally:
            await self.drop_client(cid)
            try:
                writer.close()
                await writer.wait_closed()
            except (ConnectionError, RuntimeError):
                pass

    # ---------- Main loop ----------
    def ball_message(self) -> Dict[str, Any]:
        return make_message("ball_position", position=position_to_wire(self.ball.state.position))

    async def run(self):
        tick_dt = 1.0 / float(get(self.cfg, "server.tick_hz", 60))
        while True:
            t0 = now()
            if self.ball.active:
                self.ball.step()
                await self.broadcast(self.ball_message())
            # Tick pacing
            await asyncio.sleep(max(0, tick_dt - (now() - t0)))

# ---------- Entrypoint ----------
async def main_async(args):
    cfg = load_config(args.config)
    server = VolleyServer(cfg)
    port = int(args.port or get(cfg, "server.port", 50008))
    host = str(get(cfg, "server.host", "0.0.0.0"))

    srv = await asyncio.start_server(server.handle_client, host, port)
    print(f"[tcp] listening on {host}:{port} ({server.slots.capacity} slots)")

    loop = asyncio.get_running_loop()
    stop = asyncio.Event()
    for sig in (getattr(signal, "SIGINT", None), getattr(signal, "SIGTERM", None)):
        if sig is not None:
            try:
                loop.add_signal_handler(sig, stop.set)
            except NotImplementedError:
                pass  # e.g., Windows

    run_task = asyncio.create_task(server.run(), name="ball_loop")

    def _report_done(t: asyncio.Task):
        if t.cancelled():
            return
        exc = t.exception()
        if exc:
            print(f"[task:{t.get_name()}] crashed: {exc!r}")
            stop.set()
    run_task.add_done_callback(_report_done)

    async with srv:
        tcp_task = asyncio.create_task(srv.serve_forever(), name="tcp_server")
        try:
            await stop.wait()          # run until a signal or a task fails
        finally:
            tcp_task.cancel()
            run_task.cancel()
            await asyncio.gather(tcp_task, run_task, return_exceptions=True)


def main():
    ap = argparse.ArgumentParser()
    ap.add_argument("--config", default="configs/defaults.json")
    ap.add_argument("--port", type=int, default=None)
    args = ap.parse_args()
    try:
        asyncio.run(main_async(args))
    except KeyboardInterrupt:
        pass

if __name__ == "__main__":
    main()
