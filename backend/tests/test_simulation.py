import random

import pytest

from fishinganoma.services.fishing.catalog import (
    FISH_TYPES, WATER_TOP_Y, GameSettings, get_fish_type,
)
from fishinganoma.services.fishing.simulation import (
    Fish,
    InvalidPlayerName,
    Phase,
    PlayerProfile,
    RoundState,
    catch_breakdown,
    create_fish_field,
    ease,
    frame_delta,
    move_fish,
    new_round,
    pick_fish_type,
    set_target_x,
    start_drop,
    step,
    validate_player_name,
)

WHITE = get_fish_type('white')
BLUE = get_fish_type('blue')
RED = get_fish_type('red')
GOLDEN = get_fish_type('golden')


def _empty_round(settings=None, phase=Phase.IDLE, hook_y=WATER_TOP_Y, hook_x=500.0):
    settings = settings or GameSettings(field_width=1000)
    return RoundState(settings=settings, phase=phase, hook_x=hook_x, hook_y=hook_y, target_x=hook_x)


def _run_until_finished(state, dt=1.0, max_ticks=5000):
    for _ in range(max_ticks):
        if step(state, dt):
            return
    raise AssertionError('round never finished')


def test_fish_reflects_at_left_bound():
    settings = GameSettings(field_width=1000)
    fish = Fish(x=30.2, y=500, vx=-1.5, fish_type=BLUE)
    move_fish([fish], settings, 1.0)
    assert fish.x == 30
    assert fish.vx == 1.5


def test_fish_reflects_at_right_bound():
    settings = GameSettings(field_width=1000)
    fish = Fish(x=969.5, y=500, vx=2.0, fish_type=RED)
    move_fish([fish], settings, 1.0)
    assert fish.x == 970
    assert fish.vx == -2.0


def test_fish_inside_bounds_moves_by_dt():
    settings = GameSettings(field_width=1000)
    fish = Fish(x=500, y=500, vx=0.5, fish_type=WHITE)
    move_fish([fish], settings, 2.0)
    assert fish.x == pytest.approx(501.0)
    assert fish.vx == 0.5


def test_caught_fish_do_not_move():
    settings = GameSettings(field_width=1000)
    fish = Fish(x=500, y=500, vx=1.0, fish_type=WHITE, caught=True)
    move_fish([fish], settings, 1.0)
    assert fish.x == 500


def test_phase_sequence_is_idle_dropping_rising():
    state = new_round(GameSettings(field_width=1000), random.Random(3))
    seen = [state.phase]
    assert step(state, 1.0) is False
    assert state.phase is Phase.IDLE
    assert state.hook_y == WATER_TOP_Y

    assert start_drop(state)
    assert not start_drop(state)
    for _ in range(5000):
        ended = step(state, 1.0)
        if state.phase is not seen[-1]:
            seen.append(state.phase)
        if ended:
            break
    assert seen == [Phase.IDLE, Phase.DROPPING, Phase.RISING]
    assert state.finished
    assert state.hook_y == WATER_TOP_Y
    # Finished rounds stay put until replaced
    assert not start_drop(state)
    assert step(state, 1.0) is False
    assert state.phase is Phase.RISING


def test_drop_clamps_at_bottom_and_turns_around():
    settings = GameSettings(field_width=1000, max_depth=10, fall_speed=3.5)
    state = _empty_round(settings, phase=Phase.DROPPING)
    for _ in range(2):
        step(state, 1.0)
    assert state.phase is Phase.DROPPING
    step(state, 1.0)
    assert state.phase is Phase.RISING
    # Reeling in starts on the same tick the hook hits bottom
    assert state.hook_y == pytest.approx(WATER_TOP_Y + 10 - 1.75)
    assert state.deepest_y == WATER_TOP_Y + 10
    assert state.depth == 8


def test_fish_at_bottom_is_caught_on_turn_around_tick():
    settings = GameSettings(field_width=1000, max_depth=10, fall_speed=3.5)
    state = _empty_round(settings, phase=Phase.DROPPING, hook_y=WATER_TOP_Y + 8)
    fish = Fish(x=500, y=WATER_TOP_Y + 8, vx=0, fish_type=GOLDEN)
    state.fish = [fish]
    step(state, 1.0)
    assert state.phase is Phase.RISING
    assert fish.caught
    assert state.score == GOLDEN.value


def test_catch_window_is_strict():
    state = _empty_round(phase=Phase.RISING, hook_y=1000.0)
    inside = Fish(x=500 + 21.9, y=1000 - 1.75 + 13.9, vx=0, fish_type=WHITE)
    edge_x = Fish(x=500 + 22, y=1000 - 1.75, vx=0, fish_type=WHITE)
    edge_y = Fish(x=500, y=1000 - 1.75 - 14, vx=0, fish_type=WHITE)
    state.fish = [inside, edge_x, edge_y]
    step(state, 1.0)
    assert inside.caught
    assert not edge_x.caught
    assert not edge_y.caught
    assert state.collected == [inside]
    assert state.score == WHITE.value


def test_no_catching_while_dropping():
    state = _empty_round(phase=Phase.DROPPING, hook_y=500.0)
    fish = Fish(x=500, y=503.5, vx=0, fish_type=GOLDEN)
    state.fish = [fish]
    step(state, 1.0)
    assert not fish.caught
    assert state.score == 0


def test_fish_is_counted_once():
    state = _empty_round(phase=Phase.RISING, hook_y=1000.0)
    fish = Fish(x=500, y=995, vx=0, fish_type=BLUE)
    state.fish = [fish]
    for _ in range(10):
        step(state, 1.0)
    assert state.score == BLUE.value
    assert state.collected == [fish]


def test_example_fish_at_half_depth_is_caught():
    settings = GameSettings(field_width=1000, max_depth=2000, fall_speed=3.5, rise_speed=1.75)
    state = _empty_round(settings, phase=Phase.DROPPING)
    target = Fish(x=500, y=WATER_TOP_Y + 1000, vx=0, fish_type=RED)
    state.fish = [target]
    _run_until_finished(state)
    assert target.caught
    assert state.score == RED.value


def test_score_is_sum_in_catch_order():
    state = _empty_round(phase=Phase.RISING, hook_y=WATER_TOP_Y + 600)
    deep = Fish(x=500, y=WATER_TOP_Y + 500, vx=0, fish_type=GOLDEN)
    mid = Fish(x=505, y=WATER_TOP_Y + 300, vx=0, fish_type=WHITE)
    shallow = Fish(x=495, y=WATER_TOP_Y + 100, vx=0, fish_type=BLUE)
    far = Fish(x=100, y=WATER_TOP_Y + 200, vx=0, fish_type=RED)
    state.fish = [shallow, far, mid, deep]
    _run_until_finished(state)
    assert state.collected == [deep, mid, shallow]
    assert state.score == GOLDEN.value + WHITE.value + BLUE.value
    assert not far.caught


def test_hook_eases_toward_target():
    state = _empty_round(phase=Phase.RISING, hook_y=1000.0, hook_x=500.0)
    assert set_target_x(state, 600)
    step(state, 1.0)
    assert state.hook_x == pytest.approx(500 + 100 * 0.18)


def test_target_is_clamped_and_ignored_when_idle():
    state = _empty_round()
    assert not set_target_x(state, 10)
    assert state.target_x == 500
    state.phase = Phase.DROPPING
    set_target_x(state, -50)
    assert state.target_x == 20
    set_target_x(state, 5000)
    assert state.target_x == 980


def test_ease_matches_smoothing_per_tick():
    assert ease(0, 100, 0.18, 1.0) == pytest.approx(18)
    assert ease(0, 100, 0.18, 2.0) == pytest.approx(ease(ease(0, 100, 0.18, 1.0), 100, 0.18, 1.0))
    assert ease(0, 100, 0.18, 0.0) == 0


def test_frame_delta_clamps_hitches():
    assert frame_delta(16.67) == pytest.approx(1.0)
    assert frame_delta(250) == pytest.approx(33 / 16.67)
    assert frame_delta(-5) == 0


def test_pick_fish_type_respects_rarity_depth():
    rng = random.Random(0)
    shallow = {pick_fish_type(0.1, rng).key for _ in range(200)}
    assert shallow == {'white'}
    mid = {pick_fish_type(0.6, rng).key for _ in range(200)}
    assert mid == {'white', 'blue', 'red'}
    deep = {pick_fish_type(0.95, rng).key for _ in range(400)}
    assert deep == {'white', 'blue', 'red', 'golden'}


def test_pick_fish_type_falls_back_to_white():
    assert pick_fish_type(-1.0, random.Random(0)) is FISH_TYPES[0]


def test_fish_field_layout():
    settings = GameSettings(field_width=800)
    fish = create_fish_field(settings, random.Random(42))
    assert len(fish) == 36
    for f in fish:
        assert 40 <= f.x <= 760
        assert WATER_TOP_Y + 40 <= f.y <= WATER_TOP_Y + 2000
        assert abs(f.vx) == pytest.approx(0.5 * f.fish_type.speed_multiplier)
        assert not f.caught


def test_fish_field_is_reproducible():
    settings = GameSettings()
    a = create_fish_field(settings, random.Random(7))
    b = create_fish_field(settings, random.Random(7))
    assert [(f.x, f.y, f.vx, f.fish_type.key) for f in a] == [(f.x, f.y, f.vx, f.fish_type.key) for f in b]


def test_new_round_starts_idle_at_surface():
    settings = GameSettings(field_width=640)
    state = new_round(settings, random.Random(1))
    assert state.phase is Phase.IDLE
    assert state.hook_x == state.target_x == 320
    assert state.hook_y == WATER_TOP_Y
    assert state.score == 0
    assert state.collected == []
    assert not state.finished


def test_catch_breakdown_groups_by_tier():
    collected = [
        Fish(0, 0, 0, BLUE), Fish(0, 0, 0, WHITE), Fish(0, 0, 0, BLUE), Fish(0, 0, 0, GOLDEN),
    ]
    lines = catch_breakdown(collected)
    assert [(line.fish_type.key, line.count, line.subtotal) for line in lines] == [
        ('white', 1, 5), ('blue', 2, 30), ('golden', 1, 50),
    ]
    assert lines[1].to_dict() == {'key': 'blue', 'name': 'Blue', 'count': 2, 'value': 15, 'subtotal': 30}


def test_player_profile_keeps_best():
    profile = PlayerProfile('Ada')
    assert profile.record(40)
    assert not profile.record(40)
    assert not profile.record(10)
    assert profile.top_score == 40


def test_validate_player_name():
    assert validate_player_name('  Ada ') == 'Ada'
    for bad in ('', ' ', 'A', ' B ', None):
        with pytest.raises(InvalidPlayerName):
            validate_player_name(bad)
