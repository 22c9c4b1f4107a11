"""Fishing round simulation: tiers, state, per-frame update and loop driver.

Nothing in this package touches Flask. The loop driver reaches the
leaderboard only over HTTP through ``LeaderboardClient``.
"""

from .catalog import FISH_TYPES, WATER_TOP_Y, FishType, GameSettings
from .simulation import (
    Fish,
    InvalidPlayerName,
    Phase,
    PlayerProfile,
    RoundState,
    catch_breakdown,
    new_round,
    step,
    validate_player_name,
)
from .client import LeaderboardClient
from .loop import GameLoop, RoundResult, play_headless_round
