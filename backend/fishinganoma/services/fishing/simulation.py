"""Round state and the per-frame update for the fishing game.

Everything here is synchronous and side-effect free apart from mutating the
``RoundState`` passed in. Leaderboard traffic, top-score bookkeeping and the
frame clock live in the loop driver (``loop.py``), which owns the state.

A round runs through three phases:

- ``idle``: the hook rests at the surface until the player starts a drop
- ``dropping``: the hook sinks at ``fall_speed`` until it reaches the bottom
- ``rising``: the hook climbs at ``rise_speed``; fish it passes are caught

Reaching the surface while rising finishes the round. A finished round keeps
its phase until the driver builds a fresh one with ``new_round``.
"""

from __future__ import annotations

import logging
import random
from collections import Counter
from dataclasses import dataclass, field
from enum import Enum
from typing import List, Optional

from .catalog import (
    DEFAULT_SETTINGS,
    FISH_TYPES,
    FRAME_MS,
    MAX_FRAME_MS,
    WATER_TOP_Y,
    FishType,
    GameSettings,
)

logger = logging.getLogger(__name__)


class Phase(str, Enum):
    IDLE = 'idle'
    DROPPING = 'dropping'
    RISING = 'rising'


class InvalidPlayerName(ValueError):
    """Raised by the local name gate before a game may start."""


@dataclass
class Fish:
    x: float
    y: float
    vx: float
    fish_type: FishType
    caught: bool = False

    @property
    def value(self) -> int:
        return self.fish_type.value


@dataclass
class RoundState:
    settings: GameSettings = DEFAULT_SETTINGS
    phase: Phase = Phase.IDLE
    hook_x: float = 0.0
    hook_y: float = WATER_TOP_Y
    target_x: float = 0.0
    score: int = 0
    collected: List[Fish] = field(default_factory=list)
    deepest_y: float = WATER_TOP_Y
    fish: List[Fish] = field(default_factory=list)
    finished: bool = False

    @property
    def depth(self) -> int:
        """Depth readout shown under the play field."""
        return int(self.hook_y - WATER_TOP_Y)

    @property
    def active_fish(self) -> List[Fish]:
        return [f for f in self.fish if not f.caught]


@dataclass
class PlayerProfile:
    name: str
    top_score: int = 0

    def record(self, score: int) -> bool:
        """Raise the top score if ``score`` beats it. Returns True on a new best."""
        if score > self.top_score:
            self.top_score = score
            return True
        return False


@dataclass(frozen=True)
class CatchLine:
    fish_type: FishType
    count: int

    @property
    def subtotal(self) -> int:
        return self.count * self.fish_type.value

    def to_dict(self):
        return {
            'key': self.fish_type.key,
            'name': self.fish_type.name,
            'count': self.count,
            'value': self.fish_type.value,
            'subtotal': self.subtotal,
        }


def validate_player_name(name: Optional[str], min_length: int = DEFAULT_SETTINGS.min_name_length) -> str:
    cleaned = (name or '').strip()
    if len(cleaned) < min_length:
        raise InvalidPlayerName(f"Please enter a name (at least {min_length} characters)")
    return cleaned


def frame_delta(elapsed_ms: float) -> float:
    """Convert wall-clock milliseconds since the last frame into 60 Hz ticks.

    Hitches longer than ``MAX_FRAME_MS`` are clamped so the hook never jumps.
    """
    elapsed_ms = min(MAX_FRAME_MS, max(0.0, elapsed_ms))
    return elapsed_ms / FRAME_MS


def ease(current: float, target: float, k: float, dt: float = 1.0) -> float:
    """Exponential smoothing; moves ``k`` of the gap per full tick."""
    if dt <= 0:
        return current
    alpha = 1.0 - (1.0 - k) ** dt
    return current + (target - current) * alpha


def pick_fish_type(depth_ratio: float, rng: random.Random,
                   tolerance: float = DEFAULT_SETTINGS.rarity_tolerance) -> FishType:
    candidates = [ft for ft in FISH_TYPES if depth_ratio >= ft.rarity_depth - tolerance]
    if not candidates:
        return FISH_TYPES[0]
    return candidates[rng.randrange(len(candidates))]


def create_fish_field(settings: GameSettings, rng: random.Random) -> List[Fish]:
    fish: List[Fish] = []
    for _ in range(settings.fish_count):
        depth = rng.uniform(WATER_TOP_Y + settings.spawn_margin, settings.bottom_y)
        ratio = (depth - WATER_TOP_Y) / settings.max_depth
        fish_type = pick_fish_type(ratio, rng, settings.rarity_tolerance)
        speed = settings.fish_speed_unit * fish_type.speed_multiplier
        direction = -1 if rng.random() < 0.5 else 1
        fish.append(Fish(
            x=rng.uniform(settings.spawn_edge, settings.field_width - settings.spawn_edge),
            y=depth,
            vx=direction * speed,
            fish_type=fish_type,
        ))
    return fish


def new_round(settings: GameSettings = DEFAULT_SETTINGS, rng: Optional[random.Random] = None) -> RoundState:
    """Fresh idle round with the hook at the surface and a new fish field."""
    rng = rng or random.Random()
    return RoundState(
        settings=settings,
        hook_x=settings.line_x,
        target_x=settings.line_x,
        fish=create_fish_field(settings, rng),
    )


def start_drop(state: RoundState) -> bool:
    if state.phase is not Phase.IDLE or state.finished:
        return False
    state.phase = Phase.DROPPING
    logger.debug("drop started")
    return True


def set_target_x(state: RoundState, x: float) -> bool:
    """Steer the hook. Ignored unless the hook is in the water."""
    if state.phase not in (Phase.DROPPING, Phase.RISING):
        return False
    lo, hi = state.settings.target_bounds
    state.target_x = min(hi, max(lo, x))
    return True


def move_fish(fish: List[Fish], settings: GameSettings, dt: float) -> None:
    lo, hi = settings.bounce_bounds
    for f in fish:
        if f.caught:
            continue
        f.x += f.vx * dt
        if f.x < lo:
            f.x = lo
            f.vx = -f.vx
        elif f.x > hi:
            f.x = hi
            f.vx = -f.vx


def collect_fish(state: RoundState) -> List[Fish]:
    """Catch every free fish inside the hook's window. Score is added per catch."""
    s = state.settings
    caught = []
    for f in state.fish:
        if f.caught:
            continue
        if abs(f.x - state.hook_x) < s.catch_dx and abs(f.y - state.hook_y) < s.catch_dy:
            f.caught = True
            state.collected.append(f)
            state.score += f.value
            caught.append(f)
    return caught


def step(state: RoundState, dt: float) -> bool:
    """Advance one frame. Returns True on the tick the round finishes."""
    s = state.settings
    move_fish(state.fish, s, dt)
    if state.finished:
        return False

    if state.phase is Phase.DROPPING:
        state.hook_y += s.fall_speed * dt
        state.deepest_y = max(state.deepest_y, state.hook_y)
        state.hook_x = ease(state.hook_x, state.target_x, s.horizontal_smoothing, dt)
        if state.hook_y >= s.bottom_y:
            state.hook_y = s.bottom_y
            state.deepest_y = s.bottom_y
            state.phase = Phase.RISING
        else:
            return False

    # The tick that reaches the bottom also starts reeling in
    if state.phase is Phase.RISING:
        state.hook_y -= s.rise_speed * dt
        state.hook_x = ease(state.hook_x, state.target_x, s.horizontal_smoothing, dt)
        collect_fish(state)
        if state.hook_y <= WATER_TOP_Y:
            state.hook_y = WATER_TOP_Y
            state.finished = True
            return True

    return False


def catch_breakdown(collected: List[Fish]) -> List[CatchLine]:
    """Per-tier catch counts in tier order, skipping tiers with no catches."""
    counts = Counter(f.fish_type.key for f in collected)
    return [CatchLine(ft, counts[ft.key]) for ft in FISH_TYPES if counts[ft.key]]
