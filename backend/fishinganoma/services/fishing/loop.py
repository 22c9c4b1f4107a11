"""Frame driver for a fishing session.

``GameLoop`` owns the player's profile, the current ``RoundState`` and the
cached leaderboard. It runs on a single asyncio event loop: input handlers
and ticks mutate state directly, and leaderboard traffic is pushed onto
background tasks so a tick never waits on the network.
"""

import asyncio
import logging
import random
import time
from dataclasses import dataclass, field
from typing import Any, Callable, Dict, List, Optional, Set

from .catalog import DEFAULT_SETTINGS, FRAME_MS, GameSettings
from .client import LeaderboardClient
from .simulation import (
    CatchLine,
    Phase,
    PlayerProfile,
    RoundState,
    catch_breakdown,
    frame_delta,
    new_round,
    set_target_x,
    start_drop,
    step,
    validate_player_name,
)

logger = logging.getLogger(__name__)


@dataclass
class RoundResult:
    player_name: str
    score: int
    top_score: int
    new_best: bool
    breakdown: List[CatchLine] = field(default_factory=list)

    def to_dict(self):
        return {
            'player_name': self.player_name,
            'score': self.score,
            'top_score': self.top_score,
            'new_best': self.new_best,
            'breakdown': [line.to_dict() for line in self.breakdown],
        }


class GameLoop:
    def __init__(
        self,
        profile: PlayerProfile,
        client: LeaderboardClient,
        settings: GameSettings = DEFAULT_SETTINGS,
        rng: Optional[random.Random] = None,
        on_round_end: Optional[Callable[[RoundResult], None]] = None,
    ):
        # Raises InvalidPlayerName; a round cannot start without a usable name
        profile.name = validate_player_name(profile.name, settings.min_name_length)
        self.profile = profile
        self.client = client
        self.settings = settings
        self._rng = rng or random.Random()
        self._on_round_end = on_round_end
        self.state: RoundState = new_round(settings, self._rng)
        self.leaderboard: List[Dict[str, Any]] = []
        self.last_result: Optional[RoundResult] = None
        self._pointer_down = False
        self._last_ts: Optional[float] = None
        self._tasks: Set[asyncio.Task] = set()

    # ---- input ----

    def click(self) -> bool:
        return start_drop(self.state)

    def pointer_down(self, x: float) -> None:
        if set_target_x(self.state, x):
            self._pointer_down = True

    def pointer_move(self, x: float) -> None:
        if self._pointer_down:
            set_target_x(self.state, x)

    def pointer_up(self) -> None:
        self._pointer_down = False

    # ---- rounds ----

    def reset_round(self) -> RoundState:
        """Throw away the current round and deal a new fish field."""
        self.state = new_round(self.settings, self._rng)
        self._pointer_down = False
        self.last_result = None
        logger.info("New round for %s (%d fish)", self.profile.name, len(self.state.fish))
        return self.state

    def tick(self, ts_ms: float) -> bool:
        """Advance one animation frame stamped ``ts_ms``. Must run on the event loop."""
        elapsed = 0.0 if self._last_ts is None else ts_ms - self._last_ts
        self._last_ts = ts_ms
        ended = step(self.state, frame_delta(elapsed))
        if ended:
            self._finish_round()
        return ended

    def _finish_round(self) -> None:
        score = self.state.score
        new_best = self.profile.record(score)
        result = RoundResult(
            player_name=self.profile.name,
            score=score,
            top_score=self.profile.top_score,
            new_best=new_best,
            breakdown=catch_breakdown(self.state.collected),
        )
        self.last_result = result
        logger.info(
            "Round over for %s: score=%d top=%d caught=%d",
            self.profile.name, score, self.profile.top_score, len(self.state.collected),
        )
        if score > 0:
            self.submit_score(self.profile.name, score)
        else:
            logger.info("Nothing caught, skipping leaderboard submit for %s", self.profile.name)
        if self._on_round_end:
            self._on_round_end(result)

    # ---- leaderboard ----

    def submit_score(self, name: str, score: int) -> asyncio.Task:
        """Fire and forget: the caller never waits on the returned task."""
        return self._spawn('leaderboard-submit', self._submit_and_refresh, name, score)

    def request_leaderboard(self) -> asyncio.Task:
        return self._spawn('leaderboard-fetch', self.refresh_leaderboard)

    async def refresh_leaderboard(self) -> List[Dict[str, Any]]:
        entries = await self.client.fetch_top()
        if entries is not None:
            self.leaderboard = entries
        return self.leaderboard

    async def _submit_and_refresh(self, name: str, score: int) -> None:
        if await self.client.submit(name, score):
            await self.refresh_leaderboard()

    def _spawn(self, name: str, func, *args) -> asyncio.Task:
        task = asyncio.get_running_loop().create_task(self._guarded(name, func, *args), name=name)
        self._tasks.add(task)
        task.add_done_callback(self._tasks.discard)
        return task

    async def _guarded(self, name: str, func, *args) -> None:
        try:
            await func(*args)
        except asyncio.CancelledError:
            raise
        except Exception:
            logger.exception("Background task %s failed", name)

    @property
    def pending_tasks(self) -> int:
        return len(self._tasks)

    async def drain(self) -> None:
        """Wait for in-flight leaderboard calls to settle."""
        if self._tasks:
            await asyncio.gather(*list(self._tasks), return_exceptions=True)

    async def cancel_pending(self) -> None:
        for task in list(self._tasks):
            task.cancel()
        await self.drain()

    # ---- driving ----

    async def run(self, stop: asyncio.Event, fps: int = 60,
                  clock: Callable[[], float] = time.monotonic) -> None:
        """Tick once per frame until ``stop`` is set, then cancel pending calls."""
        interval = 1.0 / fps
        try:
            while not stop.is_set():
                self.tick(clock() * 1000.0)
                await asyncio.sleep(interval)
        finally:
            await self.cancel_pending()


def autopilot_target(state: RoundState, lookahead: float = 240) -> Optional[float]:
    """x of the nearest free fish just above the rising hook, if any."""
    if state.phase is not Phase.RISING:
        return None
    best = None
    for f in state.fish:
        if f.caught:
            continue
        gap = state.hook_y - f.y
        if 0 <= gap <= lookahead and (best is None or gap < state.hook_y - best.y):
            best = f
    return best.x if best else None


async def play_headless_round(
    loop: GameLoop,
    frame_ms: float = FRAME_MS,
    max_frames: int = 10000,
    autopilot: bool = True,
) -> RoundResult:
    """Play one round on a virtual clock, steering with ``autopilot_target``.

    Yields to the event loop between frames so leaderboard calls progress,
    then waits for them before returning.
    """
    loop.click()
    ts = 0.0
    for _ in range(max_frames):
        if autopilot:
            target = autopilot_target(loop.state)
            if target is not None:
                loop.pointer_down(target)
        if loop.tick(ts):
            break
        ts += frame_ms
        await asyncio.sleep(0)
    else:
        raise RuntimeError(f"round did not finish within {max_frames} frames")
    await loop.drain()
    return loop.last_result
