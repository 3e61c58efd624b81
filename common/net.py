# common/net.py
import asyncio
import json
from typing import Dict, Any

# Simple newline-delimited JSON protocol helpers.
# Every message is one JSON object whose "type" names the event.


class MessageError(ValueError):
    """Raised for lines that are not a JSON object with a string "type"."""


def make_message(kind: str, **fields: Any) -> Dict[str, Any]:
    msg = {"type": kind}
    msg.update(fields)
    return msg


def encode_message(obj: Dict[str, Any]) -> bytes:
    return (json.dumps(obj) + "\n").encode("utf-8")


def decode_message(line: bytes) -> Dict[str, Any]:
    try:
        obj = json.loads(line.decode("utf-8"))
    except (UnicodeDecodeError, json.JSONDecodeError) as e:
        raise MessageError(f"malformed message: {e}") from e
    if not isinstance(obj, dict) or not isinstance(obj.get("type"), str):
        raise MessageError(f"message without a type: {obj!r}")
    return obj


async def send_json(writer: asyncio.StreamWriter, obj: Dict[str, Any]):
    writer.write(encode_message(obj))
    await writer.drain()


async def read_json(reader: asyncio.StreamReader) -> Dict[str, Any]:
    """Read one message; {} means the peer closed the stream."""
    line = await reader.readline()
    if not line:
        return {}
    return decode_message(line)


def position_to_wire(pos) -> Dict[str, float]:
    return {"x": float(pos.x), "y": float(pos.y), "z": float(pos.z)}


def position_fields(obj: Dict[str, Any]) -> tuple[float, float, float]:
    """Pull x/y/z out of a wire dict; missing keys raise MessageError."""
    try:
        return float(obj["x"]), float(obj["y"]), float(obj["z"])
    except (KeyError, TypeError, ValueError) as e:
        raise MessageError(f"bad position payload: {obj!r}") from e
