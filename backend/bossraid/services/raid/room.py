import copy
import threading
from typing import Any, Dict, List, Optional, Tuple

from bossraid import protocol
from bossraid.errors import DuplicateJoin, InvalidState, PlayerNotFound
from bossraid.models import Boss, PendingAttack, Player, Projectile

from .rules import RaidRules


class Room:
    """One raid session: roster, state machine and authoritative entities.

    Callers must hold ``room.lock`` around every read or mutation. Outbound
    broadcasts are queued with ``publish`` while the lock is held and sent
    later by whoever drains the outbox, so socket I/O never happens under
    the lock and events leave in the order they were produced.
    """

    def __init__(self, code: str, host_id: str):
        self.code = code
        self.host_id = host_id
        self.state = protocol.LOBBY
        self.result: Optional[str] = None
        self.players: Dict[str, Player] = {}
        self.boss = Boss()
        self.projectiles: List[Projectile] = []
        # Set once the last player leaves; a closed room is never reused.
        self.closed = False
        self.lock = threading.RLock()
        self.emit_lock = threading.Lock()
        self._outbox: List[Tuple[str, Any]] = []
        self._projectile_seq = 0

    # ---- roster ----

    def add_player(self, player: Player) -> None:
        if player.id in self.players:
            raise DuplicateJoin()
        self.players[player.id] = player

    def remove_player(self, player_id: str) -> Optional[Player]:
        return self.players.pop(player_id, None)

    def get_player(self, player_id: str) -> Player:
        player = self.players.get(player_id)
        if player is None:
            raise PlayerNotFound()
        return player

    def all_ready(self) -> bool:
        if not self.players:
            return False
        return all(p.is_ready and p.job is not None for p in self.players.values())

    # ---- lobby actions ----

    def _require_state(self, state: str, message: str) -> None:
        if self.state != state:
            raise InvalidState(message)

    def select_job(self, player_id: str, job_id: str, rules: RaidRules) -> None:
        self._require_state(protocol.LOBBY, 'Cannot select job at this time.')
        player = self.get_player(player_id)
        rules.job(job_id)
        player.job = job_id

    def set_ready(self, player_id: str, is_ready: bool) -> None:
        self._require_state(protocol.LOBBY, 'Cannot change ready state at this time.')
        self.get_player(player_id).is_ready = is_ready

    # ---- in-game actions ----

    def set_direction(self, player_id: str, vx: float, vy: float) -> None:
        self._require_state(protocol.GAME, 'Cannot move at this time.')
        self.get_player(player_id).direction = (vx, vy)

    def queue_attack(self, player_id: str, attack: PendingAttack, rules: RaidRules) -> Dict[str, Any]:
        """Accept an attack for resolution on the next tick.

        Returns the feedback payload for the attacker. Cooldowns start
        when the attack is accepted, not when it lands.
        """
        self._require_state(protocol.GAME, 'Cannot attack at this time.')
        player = self.get_player(player_id)
        if not player.alive:
            return {'success': False, 'reason': 'Incapacitated'}
        if attack.kind == protocol.ATTACK_SKILL:
            skill = rules.skill_for(player.job, attack.skill_id)
            remaining = player.cooldowns.get(attack.skill_id, 0.0)
            if remaining > 0:
                return {'success': False, 'reason': 'OnCooldown', 'cooldownRemaining': remaining}
            player.cooldowns[attack.skill_id] = skill.cooldown
        player.pending_attacks.append(attack)
        return {'success': True}

    # ---- state machine ----

    def start_game(self, rules: RaidRules) -> Dict[str, Any]:
        """lobby -> game. Resets boss and projectiles and places players."""
        self._require_state(protocol.LOBBY, 'Game already started.')
        if not self.all_ready():
            raise InvalidState('Not every player is ready.')
        self.state = protocol.GAME
        self.boss = Boss(
            hp=rules.boss_max_hp,
            max_hp=rules.boss_max_hp,
            x=rules.width / 2,
            y=rules.height * 0.25,
        )
        self.projectiles = []
        count = len(self.players)
        for index, player in enumerate(self.players.values()):
            player.max_hp = rules.max_hp_for(player.job)
            player.hp = player.max_hp
            player.speed = rules.speed_for(player.job)
            player.x = rules.width * (index + 1) / (count + 1)
            player.y = rules.height * 0.8
            player.cooldowns = {}
            player.direction = (0.0, 0.0)
            player.pending_attacks = []
        return {
            'initialBossState': self.boss.to_dict(),
            'initialPlayerStates': [p.to_initial_dict() for p in self.players.values()],
        }

    def outcome(self) -> Optional[str]:
        if self.boss.hp <= 0:
            return protocol.WIN
        if self.players and all(not p.alive for p in self.players.values()):
            return protocol.LOSE
        return None

    def finish(self, result: str) -> bool:
        """game -> result. Returns False if the game already ended."""
        if self.state != protocol.GAME:
            return False
        self.state = protocol.RESULT
        self.result = result
        return True

    # ---- snapshots ----

    def snapshot_for_lobby(self) -> Dict[str, Any]:
        return {
            'players': [p.to_lobby_dict() for p in self.players.values()],
            'roomCode': self.code,
            'hostId': self.host_id,
        }

    def snapshot_for_game(self) -> Dict[str, Any]:
        return {
            'players': [p.to_tick_dict() for p in self.players.values()],
            'boss': self.boss.to_tick_dict(),
            'projectiles': [b.to_dict() for b in self.projectiles],
        }

    # ---- tick support ----

    def next_projectile_id(self) -> str:
        self._projectile_seq += 1
        return f"p{self._projectile_seq}"

    def checkpoint(self):
        return copy.deepcopy((self.players, self.boss, self.projectiles, self._projectile_seq))

    def restore(self, checkpoint) -> None:
        self.players, self.boss, self.projectiles, self._projectile_seq = checkpoint

    # ---- outbox ----

    def publish(self, event: str, payload: Any) -> None:
        self._outbox.append((event, payload))

    def drain(self) -> List[Tuple[str, Any]]:
        events, self._outbox = self._outbox, []
        return events
