"""Fish tiers and world tunables for the fishing round."""

from dataclasses import dataclass
from typing import Optional, Tuple

# World coordinates: y grows downward, the water surface sits at WATER_TOP_Y
WATER_TOP_Y = 80
FRAME_MS = 16.67
MAX_FRAME_MS = 33


@dataclass(frozen=True)
class FishType:
    key: str
    name: str
    color: str
    value: int
    speed_multiplier: float
    # Minimum normalized depth (0 = surface, 1 = bottom) this tier spawns at
    rarity_depth: float


FISH_TYPES: Tuple[FishType, ...] = (
    FishType('white', 'White', '#ffffff', 5, 1.0, 0.00),
    FishType('blue', 'Blue', '#4dabf7', 15, 1.5, 0.40),
    FishType('red', 'Red', '#ff6b6b', 25, 2.0, 0.65),
    FishType('golden', 'Golden', '#ffd43b', 50, 3.0, 0.85),
)

FISH_TYPES_BY_KEY = {ft.key: ft for ft in FISH_TYPES}


def get_fish_type(key: str) -> Optional[FishType]:
    return FISH_TYPES_BY_KEY.get(key)


@dataclass(frozen=True)
class GameSettings:
    """Per-tick speeds are in world units per 60 Hz frame."""
    field_width: float = 960
    max_depth: float = 2000
    fall_speed: float = 3.5
    rise_speed: float = 1.75
    horizontal_smoothing: float = 0.18
    fish_speed_unit: float = 0.5
    fish_count: int = 36
    # Fish spawn no shallower than this below the surface
    spawn_margin: float = 40
    spawn_edge: float = 40
    bounce_edge: float = 30
    target_edge: float = 20
    rarity_tolerance: float = 0.1
    catch_dx: float = 22
    catch_dy: float = 14
    min_name_length: int = 2

    @property
    def line_x(self) -> float:
        return self.field_width / 2

    @property
    def bottom_y(self) -> float:
        return WATER_TOP_Y + self.max_depth

    @property
    def bounce_bounds(self) -> Tuple[float, float]:
        return self.bounce_edge, self.field_width - self.bounce_edge

    @property
    def target_bounds(self) -> Tuple[float, float]:
        return self.target_edge, self.field_width - self.target_edge


DEFAULT_SETTINGS = GameSettings()
