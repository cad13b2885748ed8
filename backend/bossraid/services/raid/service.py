import logging
from functools import partial
from typing import Optional

from bossraid import protocol
from bossraid.errors import DuplicateJoin, PlayerNotFound, RoomNotFound
from bossraid.models import PendingAttack, Player

from .registry import RoomRegistry
from .room import Room
from .rules import RaidRules
from .scheduler import TickScheduler
from .simulation import Simulation


class RaidService:
    """Process-wide owner of the room registry and tick scheduler.

    Constructed once in ``create_app`` and handed to the Socket.IO handlers.
    Every public method corresponds to one inbound client event.
    """

    def __init__(self, socketio, rules: RaidRules, tick_interval: float, namespace: str = '/',
                 logger: Optional[logging.Logger] = None, simulation=None):
        self.socketio = socketio
        self.rules = rules
        self.namespace = namespace
        self.logger = logger or logging.getLogger(__name__)
        self.registry = RoomRegistry()
        self.scheduler = TickScheduler(socketio, tick_interval, logger=self.logger)
        self.simulation = simulation or Simulation(rules)

    @classmethod
    def from_app(cls, app, socketio, simulation=None) -> 'RaidService':
        return cls(
            socketio,
            RaidRules.from_config(app.config),
            tick_interval=int(app.config.get('TICK_INTERVAL_MS', 33)) / 1000.0,
            namespace=app.config.get('SOCKETIO_NAMESPACE', '/'),
            logger=app.logger,
            simulation=simulation,
        )

    # ---- inbound events ----

    def join(self, sid: str, player_name: str, room_code: str) -> Optional[Room]:
        current = self.registry.claim(sid, room_code)
        if current is not None:
            if current == room_code:
                raise DuplicateJoin()
            raise DuplicateJoin(f"You are already in room {current}.")
        try:
            while True:
                room, created = self.registry.get_or_create(room_code, sid)
                with room.lock:
                    # Lost a race with the room being emptied; take a fresh one.
                    if room.closed:
                        continue
                    room.add_player(Player(
                        id=sid,
                        name=player_name,
                        hp=self.rules.player_max_hp,
                        max_hp=self.rules.player_max_hp,
                        speed=self.rules.player_speed,
                    ))
                    if self.registry.room_code_for(sid) != room.code:
                        # Disconnected while joining; undo so no one is left behind.
                        room.remove_player(sid)
                        if not room.players:
                            room.closed = True
                        abandoned = True
                    else:
                        room.publish(protocol.ROOM_UPDATE, room.snapshot_for_lobby())
                        abandoned = False
                    break
        except Exception:
            self.registry.release(sid)
            raise
        if abandoned:
            if room.closed:
                self.registry.discard(room)
            self.logger.info(f"[join-abandoned] room={room.code} player={sid}")
            return None
        if created:
            self.logger.info(f"[room-create] room={room.code} host={sid}")
        self.logger.info(f"[join] room={room.code} player={sid} name={player_name}")
        self.socketio.server.enter_room(sid, room.code, namespace=self.namespace)
        self._emit_to(sid, protocol.JOIN_ROOM_SUCCESS, {'playerId': sid, 'roomCode': room.code})
        self._flush(room)
        return room

    def select_job(self, sid: str, job_id: str) -> None:
        room = self._room_for(sid)
        with room.lock:
            self._ensure_open(room)
            room.select_job(sid, job_id, self.rules)
            room.publish(protocol.ROOM_UPDATE, room.snapshot_for_lobby())
        self.logger.info(f"[job] room={room.code} player={sid} job={job_id}")
        self._flush(room)

    def set_ready(self, sid: str, is_ready: bool) -> None:
        room = self._room_for(sid)
        with room.lock:
            self._ensure_open(room)
            room.set_ready(sid, is_ready)
            room.publish(protocol.ROOM_UPDATE, room.snapshot_for_lobby())
            if room.all_ready():
                room.publish(protocol.GAME_START, room.start_game(self.rules))
                self.logger.info(f"[game-start] room={room.code} players={len(room.players)}")
                self._start_loop(room)
        self._flush(room)

    def move(self, sid: str, vx: float, vy: float) -> None:
        room = self._room_for(sid)
        with room.lock:
            self._ensure_open(room)
            room.set_direction(sid, vx, vy)

    def attack(self, sid: str, attack: PendingAttack) -> None:
        room = self._room_for(sid)
        with room.lock:
            self._ensure_open(room)
            feedback = room.queue_attack(sid, attack, self.rules)
        self._emit_to(sid, protocol.PLAYER_ATTACK_FEEDBACK, feedback)

    def disconnect(self, sid: str) -> None:
        code = self.registry.release(sid)
        if code is None:
            return
        room = self.registry.get(code)
        if room is None:
            return
        with room.lock:
            if room.remove_player(sid) is None:
                return
            emptied = not room.players
            if emptied:
                room.closed = True
                self.scheduler.stop(room.code)
            else:
                room.publish(protocol.ROOM_UPDATE, room.snapshot_for_lobby())
                room.publish(protocol.PLAYER_DISCONNECTED, {'playerId': sid})
                if room.state == protocol.GAME:
                    outcome = room.outcome()
                    if outcome is not None:
                        self._finish(room, outcome)
        self.logger.info(f"[leave] room={code} player={sid}")
        if emptied:
            self.registry.discard(room)
            self.logger.info(f"[room-delete] room={code} reason=empty")
            return
        self._flush(room)

    def shutdown(self) -> None:
        self.scheduler.stop_all()

    # ---- tick ----

    def _start_loop(self, room: Room) -> None:
        self.scheduler.start(
            room.code,
            partial(self._tick, room),
            gate=room.lock,
            on_broadcast=partial(self._flush, room),
        )

    def _tick(self, room: Room, dt: float) -> None:
        """One simulation step. Runs with ``room.lock`` held by the scheduler."""
        if room.state != protocol.GAME:
            self.scheduler.stop(room.code)
            return
        boss_hp = room.boss.hp
        checkpoint = room.checkpoint()
        try:
            outcome = self.simulation.step(room, dt)
        except Exception:
            room.restore(checkpoint)
            raise
        room.publish(protocol.GAME_STATE_UPDATE, room.snapshot_for_game())
        if room.boss.hp < boss_hp:
            room.publish(protocol.BOSS_DAMAGED, {
                'damageAmount': boss_hp - room.boss.hp,
                'remainingHp': room.boss.hp,
            })
        if outcome is not None:
            self._finish(room, outcome)

    def _finish(self, room: Room, result: str) -> None:
        # Caller holds room.lock.
        if not room.finish(result):
            return
        self.scheduler.stop(room.code)
        room.publish(protocol.GAME_OVER, {'result': result})
        self.logger.info(f"[game-over] room={room.code} result={result}")

    # ---- helpers ----

    def _room_for(self, sid: str) -> Room:
        code = self.registry.room_code_for(sid)
        if code is None:
            raise PlayerNotFound()
        room = self.registry.get(code)
        if room is None:
            raise RoomNotFound()
        return room

    @staticmethod
    def _ensure_open(room: Room) -> None:
        if room.closed:
            raise RoomNotFound()

    def _flush(self, room: Room) -> None:
        """Send queued room broadcasts in the order they were produced."""
        with room.emit_lock:
            with room.lock:
                events = room.drain()
            for event, payload in events:
                self.socketio.emit(event, payload, to=room.code, namespace=self.namespace)

    def _emit_to(self, sid: str, event: str, payload) -> None:
        self.socketio.emit(event, payload, to=sid, namespace=self.namespace)
