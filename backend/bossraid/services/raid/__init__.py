"""Raid domain services: rooms, registry, tick scheduling and combat rules.

Everything here is transport-agnostic apart from ``RaidService``, which
publishes through the Socket.IO server it is given. Handlers in
``bossraid.socketio_events`` translate client events into service calls.
"""
from .registry import RoomRegistry
from .room import Room
from .rules import RaidRules
from .scheduler import TickScheduler
from .service import RaidService
from .simulation import Simulation

__all__ = ['RaidRules', 'RaidService', 'Room', 'RoomRegistry', 'Simulation', 'TickScheduler']
