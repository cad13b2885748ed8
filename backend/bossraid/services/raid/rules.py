"""Balance configuration for a raid.

Nothing in the engine hardcodes combat numbers; everything flows from a
``RaidRules`` built out of the Flask config.
"""
from dataclasses import dataclass, field
from typing import Dict, Optional, Tuple

from bossraid.errors import InvalidJob, InvalidSkill


@dataclass(frozen=True)
class SkillProfile:
    cooldown: float
    damage: int = 0
    heal: int = 0
    speed: float = 400.0
    ttl: float = 1.5
    radius: float = 6.0


@dataclass(frozen=True)
class JobProfile:
    max_hp: Optional[int] = None
    speed: Optional[float] = None
    skills: Tuple[str, ...] = ()


@dataclass(frozen=True)
class BossPattern:
    name: str
    kind: str  # 'radial' or 'aimed'
    interval: float
    count: int
    speed: float
    ttl: float
    damage: int
    spread: float = 0.0
    radius: float = 6.0


DEFAULT_SKILLS = {
    'slash': {'cooldown': 3.0, 'damage': 40, 'speed': 500.0, 'ttl': 0.3, 'radius': 16.0},
    'fireball': {'cooldown': 4.0, 'damage': 60, 'speed': 320.0, 'ttl': 2.5, 'radius': 10.0},
    'dagger': {'cooldown': 1.5, 'damage': 20, 'speed': 600.0, 'ttl': 1.2, 'radius': 5.0},
    'heal': {'cooldown': 8.0, 'heal': 30},
}

DEFAULT_JOBS = {
    'warrior': {'max_hp': 150, 'skills': ('slash',)},
    'mage': {'max_hp': 80, 'skills': ('fireball',)},
    'rogue': {'speed': 200.0, 'skills': ('dagger',)},
    'healer': {'skills': ('heal',)},
}

# Keyed by boss phase; phases past the last entry reuse it.
DEFAULT_BOSS_PATTERNS = {
    1: [
        {'name': 'ring', 'kind': 'radial', 'interval': 2.0, 'count': 8, 'speed': 120.0, 'ttl': 6.0, 'damage': 10},
    ],
    2: [
        {'name': 'ring', 'kind': 'radial', 'interval': 1.5, 'count': 12, 'speed': 140.0, 'ttl': 6.0, 'damage': 10},
        {'name': 'volley', 'kind': 'aimed', 'interval': 1.0, 'count': 3, 'speed': 220.0, 'ttl': 4.0,
         'damage': 15, 'spread': 0.25},
    ],
    3: [
        {'name': 'storm', 'kind': 'radial', 'interval': 1.0, 'count': 16, 'speed': 160.0, 'ttl': 6.0, 'damage': 12},
        {'name': 'volley', 'kind': 'aimed', 'interval': 0.8, 'count': 5, 'speed': 260.0, 'ttl': 4.0,
         'damage': 15, 'spread': 0.2},
    ],
}


@dataclass(frozen=True)
class RaidRules:
    width: float = 800.0
    height: float = 600.0
    player_radius: float = 12.0
    player_max_hp: int = 100
    player_speed: float = 150.0
    boss_radius: float = 40.0
    boss_max_hp: int = 1000
    phase_thresholds: Tuple[float, ...] = (0.66, 0.33)
    normal_attack_range: float = 60.0
    normal_attack_damage: int = 10
    jobs: Dict[str, JobProfile] = field(default_factory=dict)
    skills: Dict[str, SkillProfile] = field(default_factory=dict)
    boss_patterns: Dict[int, Tuple[BossPattern, ...]] = field(default_factory=dict)

    @classmethod
    def from_config(cls, config) -> 'RaidRules':
        jobs = config.get('RAID_JOBS') or DEFAULT_JOBS
        skills = config.get('RAID_SKILLS') or DEFAULT_SKILLS
        patterns = config.get('RAID_BOSS_PATTERNS') or DEFAULT_BOSS_PATTERNS
        return cls(
            width=float(config.get('PLAYFIELD_WIDTH', 800.0)),
            height=float(config.get('PLAYFIELD_HEIGHT', 600.0)),
            player_max_hp=int(config.get('PLAYER_MAX_HP', 100)),
            player_speed=float(config.get('PLAYER_SPEED', 150.0)),
            boss_max_hp=int(config.get('BOSS_MAX_HP', 1000)),
            phase_thresholds=tuple(sorted(config.get('BOSS_PHASE_THRESHOLDS', (0.66, 0.33)), reverse=True)),
            jobs={name: JobProfile(**entry) for name, entry in jobs.items()},
            skills={name: SkillProfile(**entry) for name, entry in skills.items()},
            boss_patterns={
                int(phase): tuple(BossPattern(**entry) for entry in entries)
                for phase, entries in patterns.items()
            },
        )

    def job(self, job_id) -> JobProfile:
        profile = self.jobs.get(job_id)
        if profile is None:
            raise InvalidJob(f"Unknown job '{job_id}'.")
        return profile

    def max_hp_for(self, job_id) -> int:
        profile = self.jobs.get(job_id)
        if profile is None or profile.max_hp is None:
            return self.player_max_hp
        return profile.max_hp

    def speed_for(self, job_id) -> float:
        profile = self.jobs.get(job_id)
        if profile is None or profile.speed is None:
            return self.player_speed
        return profile.speed

    def skill_for(self, job_id, skill_id) -> SkillProfile:
        profile = self.jobs.get(job_id)
        if profile is None or skill_id not in profile.skills or skill_id not in self.skills:
            raise InvalidSkill(f"Skill '{skill_id}' is not available to your job.")
        return self.skills[skill_id]

    def patterns_for(self, phase: int) -> Tuple[BossPattern, ...]:
        if not self.boss_patterns:
            return ()
        known = [p for p in sorted(self.boss_patterns) if p <= phase]
        key = known[-1] if known else min(self.boss_patterns)
        return self.boss_patterns[key]

    def phase_for(self, hp: int, max_hp: int) -> int:
        if max_hp <= 0:
            return 1
        fraction = hp / max_hp
        return 1 + sum(1 for threshold in self.phase_thresholds if fraction <= threshold)
