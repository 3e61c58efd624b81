# game/constants.py
# Shared defaults for client and server. configs/defaults.json overrides most
# of these at runtime; the values here are what the game falls back to.

NUM_PLAYER_SLOTS = 2

# Team orientation: slot 0 serves toward -Z, slot 1 toward +Z.
TEAM_DIRECTIONS = (1.0, -1.0)

# Gameplay (world units, per-tick velocities as in the ball integrator)
GRAVITY = 0.015
GROUND_HEIGHT = 0.0
MOVE_SPEED = 6.0               # units per second
MAX_JUMP_VELOCITY = 0.2        # units per tick
JUMP_FORWARD_DISTANCE = 0.5
JUMP_DELAY_FRACTION = 0.25     # share of the jump clip before lift-off
REMOTE_MOVE_EPSILON = 1e-3

# Ball interaction
HIT_RANGE = 2.5
BALL_HEIGHT_CEILING = 4.0
BALL_RADIUS = 0.2
BALL_FLOOR = 0.5
BALL_DRAG = 0.99
BALL_HIT_HORIZONTAL = 0.5
BALL_HIT_VERTICAL = 0.4
BALL_HIT_DEPTH = 0.6

# Animation
CROSS_FADE_DURATION = 0.1
NO_ROTATION = -1               # wire sentinel: keep current facing

ACTION_IDLE = "idle"
ACTION_RUN = "slow_run"
ACTION_JUMP = "jump"
