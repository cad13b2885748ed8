import math
from typing import Optional

from bossraid import protocol
from bossraid.models import BOSS_OWNER, Player, Projectile

from .rules import BossPattern, RaidRules


def clamp(value: float, lo: float, hi: float) -> float:
    return max(lo, min(hi, value))


def distance(ax: float, ay: float, bx: float, by: float) -> float:
    return math.hypot(ax - bx, ay - by)


class Simulation:
    """Default per-tick rule set.

    ``step`` runs the phases in a fixed order: movement, boss AI,
    projectile travel, collisions, cooldowns, then win/lose. Positions
    are final before any hit test. Any object with the same ``step``
    signature can stand in for this one.
    """

    def __init__(self, rules: RaidRules):
        self.rules = rules

    def step(self, room, dt: float) -> Optional[str]:
        self.integrate_movement(room, dt)
        self.update_boss(room, dt)
        self.update_projectiles(room, dt)
        self.resolve_collisions(room)
        self.decay_cooldowns(room, dt)
        return room.outcome()

    # 1
    def integrate_movement(self, room, dt: float) -> None:
        rules = self.rules
        for player in room.players.values():
            vx, vy = player.direction
            if not player.alive or (vx == 0 and vy == 0):
                continue
            player.x = clamp(player.x + vx * player.speed * dt, 0.0, rules.width)
            player.y = clamp(player.y + vy * player.speed * dt, 0.0, rules.height)

    # 2
    def update_boss(self, room, dt: float) -> None:
        boss = room.boss
        phase = self.rules.phase_for(boss.hp, boss.max_hp)
        if phase > boss.phase:
            boss.phase = phase
            boss.volleys_fired = 0
            boss.attack_timer = 0.0
        patterns = self.rules.patterns_for(boss.phase)
        if not patterns:
            boss.current_attack = None
            return
        boss.attack_timer -= dt
        if boss.attack_timer > 0:
            return
        pattern = patterns[boss.volleys_fired % len(patterns)]
        self._fire(room, pattern)
        boss.volleys_fired += 1
        boss.attack_timer = pattern.interval
        boss.current_attack = {'name': pattern.name, 'kind': pattern.kind, 'volley': boss.volleys_fired}

    def _fire(self, room, pattern: BossPattern) -> None:
        boss = room.boss
        if pattern.kind == 'aimed':
            target = self._nearest_alive(room, boss.x, boss.y)
            if target is None:
                return
            base = math.atan2(target.y - boss.y, target.x - boss.x)
            offset = (pattern.count - 1) / 2.0
            angles = [base + (i - offset) * pattern.spread for i in range(pattern.count)]
        else:
            # Rotate successive rings so they do not overlap exactly.
            twist = boss.volleys_fired * math.pi / max(pattern.count, 1)
            angles = [twist + 2 * math.pi * i / pattern.count for i in range(pattern.count)]
        for angle in angles:
            room.projectiles.append(Projectile(
                id=room.next_projectile_id(),
                type=pattern.name,
                x=boss.x,
                y=boss.y,
                angle=angle,
                owner=BOSS_OWNER,
                ttl=pattern.ttl,
                speed=pattern.speed,
                damage=pattern.damage,
                radius=pattern.radius,
            ))

    @staticmethod
    def _nearest_alive(room, x: float, y: float) -> Optional[Player]:
        alive = [p for p in room.players.values() if p.alive]
        if not alive:
            return None
        return min(alive, key=lambda p: distance(p.x, p.y, x, y))

    # 3
    def update_projectiles(self, room, dt: float) -> None:
        rules = self.rules
        kept = []
        for shot in room.projectiles:
            shot.x += math.cos(shot.angle) * shot.speed * dt
            shot.y += math.sin(shot.angle) * shot.speed * dt
            shot.ttl -= dt
            if shot.ttl <= 0:
                continue
            if not (-shot.radius <= shot.x <= rules.width + shot.radius):
                continue
            if not (-shot.radius <= shot.y <= rules.height + shot.radius):
                continue
            kept.append(shot)
        room.projectiles = kept

    # 4
    def resolve_collisions(self, room) -> None:
        rules = self.rules
        boss = room.boss
        boss_damage = 0

        for player in room.players.values():
            attacks, player.pending_attacks = player.pending_attacks, []
            if not player.alive:
                continue
            for attack in attacks:
                if attack.kind == protocol.ATTACK_NORMAL:
                    reach = rules.normal_attack_range + rules.boss_radius
                    if distance(player.x, player.y, boss.x, boss.y) <= reach:
                        boss_damage += rules.normal_attack_damage
                    continue
                skill = rules.skills.get(attack.skill_id)
                if skill is None:
                    continue
                if skill.heal:
                    player.hp = min(player.max_hp, player.hp + skill.heal)
                if skill.damage:
                    if attack.aim_x == player.x and attack.aim_y == player.y:
                        angle = math.atan2(boss.y - player.y, boss.x - player.x)
                    else:
                        angle = math.atan2(attack.aim_y - player.y, attack.aim_x - player.x)
                    room.projectiles.append(Projectile(
                        id=room.next_projectile_id(),
                        type=attack.skill_id,
                        x=player.x,
                        y=player.y,
                        angle=angle,
                        owner=player.id,
                        ttl=skill.ttl,
                        speed=skill.speed,
                        damage=skill.damage,
                        radius=skill.radius,
                    ))

        kept = []
        for shot in room.projectiles:
            if shot.from_boss:
                victim = next(
                    (p for p in room.players.values()
                     if p.alive and distance(p.x, p.y, shot.x, shot.y) <= rules.player_radius + shot.radius),
                    None,
                )
                if victim is not None:
                    victim.hp = int(clamp(victim.hp - shot.damage, 0, victim.max_hp))
                    continue
            else:
                shooter = room.players.get(shot.owner)
                # A downed player's shots in flight fizzle.
                if shooter is not None and not shooter.alive:
                    continue
                if distance(boss.x, boss.y, shot.x, shot.y) <= rules.boss_radius + shot.radius:
                    boss_damage += shot.damage
                    continue
            kept.append(shot)
        room.projectiles = kept

        if boss_damage:
            boss.hp = int(clamp(boss.hp - boss_damage, 0, boss.max_hp))

    # 5
    def decay_cooldowns(self, room, dt: float) -> None:
        for player in room.players.values():
            for skill_id, remaining in player.cooldowns.items():
                player.cooldowns[skill_id] = max(0.0, remaining - dt)
