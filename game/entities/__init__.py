"""Client-side entities and the manager that applies network events to them."""
from .ball import Ball
from .entity_manager import EntityManager
from .player import MoveState, Player, PlayerServices

__all__ = ["Ball", "EntityManager", "MoveState", "Player", "PlayerServices"]
