"""Procedural enemy generation from static templates.

A template is a read-only stat block. Every generated enemy is a fresh,
independent ``Enemy``: level jitter, stat variance, optional elite scaling,
a behaviour picked from the template, a random ability subset with unique
ability ids, and a loot pool with jittered drop chances.
"""
from __future__ import annotations

import logging
import math
import random
import uuid
from typing import Optional

from frostfall.config import combat_setting
from frostfall.content.loader import get_enemy_templates, load_name_prefixes
from frostfall.errors import UnknownTemplate
from frostfall.mechanics.dice import choose, random_variation, roll_percent, roll_range, shuffled
from frostfall.models.combat import Ability, Enemy, EnemyCategory
from frostfall.models.enemy import EnemyTemplate

logger = logging.getLogger(__name__)

PREFIX_CHANCE = 70
LEVEL_STEP = 0.1
STAT_VARIANCE = 0.15
XP_VARIANCE = 0.2
GOLD_VARIANCE = 0.3
ELITE_STAT_MULTIPLIER = 1.5
ELITE_ABILITY_MULTIPLIER = 1.2
ELITE_XP_MULTIPLIER = 2
ELITE_GOLD_MULTIPLIER = 2.5
MAX_NAME_ATTEMPTS = 10

HEALTH_FLOOR = 10
ARMOR_FLOOR = 0
DAMAGE_FLOOR = 5

# Only these enemies carry a magicka pool; everything else casts for free.
MAGICKA_CATEGORIES = frozenset({EnemyCategory.UNDEAD})
MAGICKA_TEMPLATE_KEYWORDS = ("mage", "vampire")


def get_template(template_id: str, templates: dict[str, EnemyTemplate] | None = None) -> EnemyTemplate:
    registry = templates if templates is not None else get_enemy_templates()
    template = registry.get(template_id)
    if template is None:
        raise UnknownTemplate(template_id)
    return template


def list_templates(templates: dict[str, EnemyTemplate] | None = None) -> list[EnemyTemplate]:
    registry = templates if templates is not None else get_enemy_templates()
    return sorted(registry.values(), key=lambda t: (t.category.value, t.level, t.id))


def has_magicka_pool(template: EnemyTemplate) -> bool:
    if template.category in MAGICKA_CATEGORIES:
        return True
    return any(keyword in template.id for keyword in MAGICKA_TEMPLATE_KEYWORDS)


def _display_name(template: EnemyTemplate, force_prefix: bool, rng: random.Random | None) -> str:
    if not force_prefix and not roll_percent(PREFIX_CHANCE, rng):
        return template.name
    pools = load_name_prefixes()
    pool = pools.get(template.category.value) or pools.get("generic") or []
    if not pool:
        return template.name
    return f"{choose(pool, rng)} {template.name}"


def _scaled_abilities(
    template: EnemyTemplate,
    level_scale: float,
    is_elite: bool,
    rng: random.Random | None,
) -> list[Ability]:
    pool = shuffled(template.abilities, rng)
    if not pool:
        return []
    take = roll_range(min(2, len(pool)), min(4, len(pool)), rng)
    multiplier = level_scale * (ELITE_ABILITY_MULTIPLIER if is_elite else 1)
    return [
        ability.model_copy(update={
            "id": f"{ability.id}_{uuid.uuid4().hex[:8]}",
            "damage": math.floor(ability.damage * multiplier),
        })
        for ability in pool[:take]
    ]


def create_enemy(
    template_id: str,
    *,
    level_modifier: int = 0,
    is_elite: bool = False,
    force_unique: bool = True,
    templates: dict[str, EnemyTemplate] | None = None,
    rng: random.Random | None = None,
) -> Enemy:
    """Generate one enemy from a registered template.

    Raises ``UnknownTemplate`` for unregistered ids.
    """
    template = get_template(template_id, templates)

    name = _display_name(template, force_unique, rng)

    jitter = roll_range(-1, 2, rng)
    level = max(1, template.level + level_modifier + jitter)
    # Downward jitter lowers the level number but never the stats below
    # what the requested modifier asks for.
    scale_steps = max(level - template.level, min(level_modifier, 0))
    level_scale = 1 + scale_steps * LEVEL_STEP

    max_health = max(HEALTH_FLOOR, random_variation(template.health * level_scale, STAT_VARIANCE, rng))
    armor = max(ARMOR_FLOOR, random_variation(template.armor * level_scale, STAT_VARIANCE, rng))
    damage = max(DAMAGE_FLOOR, random_variation(template.damage * level_scale, STAT_VARIANCE, rng))

    if is_elite:
        max_health = math.floor(max_health * ELITE_STAT_MULTIPLIER)
        armor = math.floor(armor * ELITE_STAT_MULTIPLIER)
        damage = math.floor(damage * ELITE_STAT_MULTIPLIER)
        name = f"{name} (Elite)"

    behavior = choose(template.behaviors, rng)
    abilities = _scaled_abilities(template, level_scale, is_elite, rng)

    xp_reward = max(0, random_variation(template.xp_reward * level_scale, XP_VARIANCE, rng))
    if is_elite:
        xp_reward *= ELITE_XP_MULTIPLIER

    gold_reward: Optional[int] = None
    if template.gold_reward:
        gold_reward = max(0, random_variation(template.gold_reward * level_scale, GOLD_VARIANCE, rng))
        if is_elite:
            gold_reward = math.floor(gold_reward * ELITE_GOLD_MULTIPLIER)

    loot = [
        entry.model_copy(update={
            "drop_chance": max(0, min(100, entry.drop_chance + roll_range(-10, 15, rng))),
        })
        for entry in template.loot
    ]

    stamina = 50 + 5 * level
    magicka = 40 + 5 * level if has_magicka_pool(template) else None

    enemy = Enemy(
        id=f"{template.id}_{uuid.uuid4().hex[:12]}",
        template_id=template.id,
        name=name,
        category=template.category,
        level=level,
        max_health=max_health,
        current_health=max_health,
        max_magicka=magicka,
        current_magicka=magicka,
        max_stamina=stamina,
        current_stamina=stamina,
        armor=armor,
        damage=damage,
        crit_chance=combat_setting("enemy_crit_chance"),
        behavior=behavior,
        abilities=abilities,
        weaknesses=list(template.weaknesses),
        resistances=list(template.resistances),
        xp_reward=xp_reward,
        gold_reward=gold_reward,
        loot=loot,
        is_elite=is_elite,
        is_boss=template.is_boss,
    )
    logger.debug(
        "Generated %s (level %d, hp %d, armor %d, dmg %d, %s)",
        enemy.name, level, max_health, armor, damage, behavior,
    )
    return enemy


# Public name used by callers that build enemies straight from a template id.
create_enemy_from_template = create_enemy


def generate_enemy_group(
    template_id: str,
    count: int,
    *,
    include_elite: bool = False,
    level_variance: int = 0,
    unique_names: bool = True,
    templates: dict[str, EnemyTemplate] | None = None,
    rng: random.Random | None = None,
) -> list[Enemy]:
    """Generate ``count`` enemies of one template.

    The first member is the elite when ``include_elite`` is set. With
    ``unique_names`` each member gets up to ten tries at a name nobody else in
    the group has.
    """
    get_template(template_id, templates)
    group: list[Enemy] = []
    seen_names: set[str] = set()

    for index in range(max(0, count)):
        is_elite = include_elite and index == 0
        attempts = 0
        while True:
            attempts += 1
            modifier = roll_range(-level_variance, level_variance, rng) if level_variance else 0
            enemy = create_enemy(
                template_id,
                level_modifier=modifier,
                is_elite=is_elite,
                force_unique=unique_names,
                templates=templates,
                rng=rng,
            )
            if not unique_names or enemy.name not in seen_names:
                break
            if attempts >= MAX_NAME_ATTEMPTS:
                logger.debug("Keeping duplicate name %s after %d attempts", enemy.name, attempts)
                break
        seen_names.add(enemy.name)
        group.append(enemy)

    return group


def generate_mixed_encounter(
    main_type: str,
    main_count: int,
    leader_type: str | None = None,
    *,
    templates: dict[str, EnemyTemplate] | None = None,
    rng: random.Random | None = None,
) -> list[Enemy]:
    """A group of ``main_type`` led by one elite of a different template.

    Without an explicit ``leader_type`` the leader is drawn from other templates
    of the same category, or from any other template if there are none.
    """
    registry = templates if templates is not None else get_enemy_templates()
    main = get_template(main_type, registry)

    if leader_type is None:
        others = [t for t in registry.values() if t.id != main.id]
        same_category = [t for t in others if t.category == main.category]
        candidates = same_category or others
        if not candidates:
            raise ValueError(f"No leader template available for {main_type}")
        leader_type = choose(sorted(t.id for t in candidates), rng)
    elif leader_type == main_type:
        raise ValueError("Leader must come from a different template than the group")

    group = generate_enemy_group(
        main_type, main_count, level_variance=1, templates=registry, rng=rng,
    )
    leader = create_enemy(leader_type, level_modifier=2, is_elite=True, templates=registry, rng=rng)
    logger.info("Mixed encounter: %d x %s led by %s", main_count, main_type, leader.name)
    return [*group, leader]
