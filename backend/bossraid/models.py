from dataclasses import dataclass, field
from typing import Any, Dict, List, Optional, Tuple

BOSS_OWNER = 'boss'


@dataclass
class PendingAttack:
    kind: str
    aim_x: float
    aim_y: float
    skill_id: Optional[str] = None


@dataclass
class Player:
    id: str
    name: str
    job: Optional[str] = None
    is_ready: bool = False
    x: float = 0.0
    y: float = 0.0
    hp: int = 100
    max_hp: int = 100
    speed: float = 0.0
    cooldowns: Dict[str, float] = field(default_factory=dict)
    # Last normalized direction from client:playerMove; applied every tick.
    direction: Tuple[float, float] = (0.0, 0.0)
    pending_attacks: List[PendingAttack] = field(default_factory=list)

    @property
    def alive(self) -> bool:
        return self.hp > 0

    def to_lobby_dict(self):
        return {
            'id': self.id,
            'name': self.name,
            'job': self.job,
            'isReady': self.is_ready,
        }

    def to_initial_dict(self):
        return {
            'id': self.id,
            'hp': self.hp,
            'maxHp': self.max_hp,
            'x': self.x,
            'y': self.y,
            'job': self.job,
        }

    def to_tick_dict(self):
        return {'id': self.id, 'x': self.x, 'y': self.y, 'hp': self.hp}


@dataclass
class Boss:
    id: str = 'boss1'
    hp: int = 1000
    max_hp: int = 1000
    x: float = 0.0
    y: float = 0.0
    phase: int = 1
    current_attack: Optional[Dict[str, Any]] = None
    # Seconds until the next attack pattern fires.
    attack_timer: float = 0.0
    volleys_fired: int = 0

    def to_dict(self):
        return {
            'id': self.id,
            'hp': self.hp,
            'maxHp': self.max_hp,
            'x': self.x,
            'y': self.y,
            'phase': self.phase,
            'currentAttack': self.current_attack,
        }

    def to_tick_dict(self):
        return {
            'hp': self.hp,
            'x': self.x,
            'y': self.y,
            'currentAttack': self.current_attack,
            'phase': self.phase,
        }


@dataclass
class Projectile:
    id: str
    type: str
    x: float
    y: float
    angle: float
    owner: str
    ttl: float
    speed: float = 0.0
    damage: int = 0
    radius: float = 4.0

    @property
    def from_boss(self) -> bool:
        return self.owner == BOSS_OWNER

    def to_dict(self):
        return {'id': self.id, 'type': self.type, 'x': self.x, 'y': self.y, 'angle': self.angle}
