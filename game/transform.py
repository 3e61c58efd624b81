# game/transform.py
import math

# ---- Angles ---------------------------------------------------------------

def deg_to_rad(d: float) -> float:
    return math.radians(d)

# ---- Game space (X right, Y up, Z toward the camera) ---------------------
# Facing is a rotation about +Y; facing=0 looks down +Z, facing=pi/2 down +X.

def facing_forward_xz(facing: float) -> tuple[float, float]:
    """Forward unit vector in the XZ ground plane for a facing angle."""
    return (math.sin(facing), math.cos(facing))

def facing_from_delta(dx: float, dz: float) -> float:
    """Facing angle that looks along the (dx, dz) ground delta."""
    return math.atan2(dx, dz)

def move_direction(left: bool, right: bool, forward: bool, back: bool) -> tuple[float, float]:
    """
    Map WASD state to a ground direction (dx, dz) with length 0 or 1.
    W moves toward -Z (away from the default camera), A toward -X.
    Diagonals are normalized so they do not exceed the straight-line speed.
    """
    dx = (1.0 if right else 0.0) - (1.0 if left else 0.0)
    dz = (1.0 if back else 0.0) - (1.0 if forward else 0.0)
    if dx != 0.0 and dz != 0.0:
        k = math.sqrt(2.0) / 2.0
        dx *= k
        dz *= k
    return dx, dz

# ---- Vectors -------------------------------------------------------------

def distance3(a: tuple[float, float, float], b: tuple[float, float, float]) -> float:
    return math.sqrt((a[0] - b[0]) ** 2 + (a[1] - b[1]) ** 2 + (a[2] - b[2]) ** 2)

def unit_toward(src: tuple[float, float, float], dst: tuple[float, float, float]) -> tuple[float, float, float]:
    """Unit vector from src to dst; zero vector when the points coincide."""
    vx, vy, vz = dst[0] - src[0], dst[1] - src[1], dst[2] - src[2]
    mag = math.sqrt(vx * vx + vy * vy + vz * vz)
    if mag < 1e-9:
        return (0.0, 0.0, 0.0)
    return (vx / mag, vy / mag, vz / mag)
