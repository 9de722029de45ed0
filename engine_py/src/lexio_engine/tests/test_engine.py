"""
Tests for room setup and round flow in the Lexio engine.
"""

import random

import pytest

from lexio_engine.constants import PHASE_FINISHED, PHASE_PLAYING, PHASE_WAITING, STARTING_CARD
from lexio_engine.engine import (
    add_bot, create_room, is_ai_turn, join_room, leave_room, remove_bot,
    run_ai_chain, start_round, submit_pass, submit_play, trigger_ai_turn,
)
from lexio_engine.errors import (
    CANNOT_PASS_ON_EMPTY_PILE, GAME_IN_PROGRESS, GAME_NOT_IN_PROGRESS,
    INSUFFICIENT_PLAYERS, INVALID_COMBINATION, INVALID_SEAT_COUNT,
    MUST_BEAT_PILE, MUST_MATCH_PILE_SIZE, NOT_HOST, NOT_YOUR_TURN,
    OWNERSHIP_MISMATCH, PLAYER_NOT_FOUND, ROOM_FULL, GameError,
)
from lexio_engine.shuffle import validate_deck_integrity

from .conftest import rigged_room, seated_room, started_room


def test_create_room():
    """Test room creation."""
    room = create_room("test-room", seat_limit=3)
    assert room.id == "test-room"
    assert room.phase == PHASE_WAITING
    assert room.players == []
    assert room.seat_limit == 3
    assert room.rule_config is not None


def test_create_room_rejects_bad_seat_limit():
    with pytest.raises(GameError) as exc_info:
        create_room("test-room", seat_limit=6)
    assert exc_info.value.code == INVALID_SEAT_COUNT


def test_first_player_is_host():
    state = seated_room(3)
    assert [p.is_host for p in state.players] == [True, False, False]
    assert [p.seat for p in state.players] == [0, 1, 2]
    assert state.host().id == "p0"


def test_room_full():
    """Humans beyond the seat limit are turned away."""
    state = seated_room(3, seat_limit=3)
    result = join_room(state, "late", "Late")
    assert not result.success
    assert result.error_code == ROOM_FULL
    assert len(result.state.players) == 3


def test_join_rejected_once_playing():
    result = join_room(started_room(3), "late", "Late")
    assert result.error_code == GAME_IN_PROGRESS


def test_start_needs_three_players():
    result = start_round(seated_room(2), "p0")
    assert not result.success
    assert result.error_code == INSUFFICIENT_PLAYERS


def test_start_rejects_more_players_than_the_rules_allow():
    state = seated_room(5)
    state.rule_config.max_players = 4
    result = start_round(state, "p0")
    assert not result.success
    assert result.error_code == INVALID_SEAT_COUNT
    assert result.state.phase == PHASE_WAITING


def test_only_host_can_start():
    result = start_round(seated_room(3), "p1")
    assert result.error_code == NOT_HOST


def test_start_deals_and_picks_leader(room):
    assert room.phase == PHASE_PLAYING
    assert room.max_rank == 13
    assert [len(p.hand) for p in room.players] == [13, 13, 13, 13]
    assert validate_deck_integrity(room)
    assert STARTING_CARD in room.players[room.current_turn].hand
    assert room.scores == {0: 100, 1: 100, 2: 100, 3: 100}
    assert room.pile is None
    assert "holds cloud 3" in room.log[0]


def test_seeded_start_is_deterministic():
    a = started_room(4, seed=7)
    b = started_room(4, seed=7)
    assert [p.hand for p in a.players] == [p.hand for p in b.players]


@pytest.mark.parametrize("seats", [3, 4, 5])
@pytest.mark.parametrize("seed", range(20))
def test_cloud_three_holder_always_leads(seats, seed):
    state = started_room(seats, seed=seed)
    assert STARTING_CARD in state.players[state.current_turn].hand
    assert state.pile is None


def test_leader_plays_cloud_three(room):
    leader = room.players[room.current_turn]
    result = submit_play(room, leader.id, ["cloud-3"])

    assert result.success
    state = result.state
    assert state.pile.owner == leader.seat
    assert [c.id for c in state.pile.cards] == ["cloud-3"]
    assert STARTING_CARD not in state.players[leader.seat].hand
    assert state.current_turn == (leader.seat + 1) % 4
    assert state.version == room.version + 1


def test_rejected_play_leaves_state_untouched(room):
    version = room.version
    other = room.players[(room.current_turn + 1) % 4]
    result = submit_play(room, other.id, [other.hand[0].id])

    assert not result.success
    assert result.error_code == NOT_YOUR_TURN
    assert result.state is room
    assert room.version == version


def test_playing_a_card_already_on_the_pile(room):
    leader = room.players[room.current_turn]
    state = submit_play(room, leader.id, ["cloud-3"]).state
    next_player = state.players[state.current_turn]

    result = submit_play(state, next_player.id, ["cloud-3"])
    assert result.error_code == OWNERSHIP_MISMATCH


def test_unknown_card_ids_are_invalid(room):
    leader = room.players[room.current_turn]
    result = submit_play(room, leader.id, ["comet-3"])
    assert result.error_code == INVALID_COMBINATION


def test_play_must_match_pile_size():
    state = rigged_room([
        ["cloud-3", "star-9"],
        ["cloud-4", "star-4", "sun-9"],
        ["moon-5", "sun-5"],
    ])
    state = submit_play(state, "p0", ["cloud-3"]).state
    result = submit_play(state, "p1", ["cloud-4", "star-4"])
    assert result.error_code == MUST_MATCH_PILE_SIZE


def test_play_must_beat_pile():
    state = rigged_room([
        ["cloud-3", "star-9"],
        ["cloud-4", "star-4", "sun-9"],
        ["moon-5", "sun-5"],
    ])
    state = submit_play(state, "p0", ["star-9"]).state
    assert submit_play(state, "p1", ["cloud-4"]).error_code == MUST_BEAT_PILE
    assert submit_play(state, "p1", ["sun-9"]).success


def test_cannot_pass_when_leading(room):
    leader = room.players[room.current_turn]
    result = submit_pass(room, leader.id)
    assert result.error_code == CANNOT_PASS_ON_EMPTY_PILE


@pytest.mark.parametrize("seats", [3, 4, 5])
def test_lead_returns_to_pile_owner_after_everyone_passes(seats):
    hands = [["cloud-3", "star-9"]] + [[f"cloud-{3 + i}", f"sun-{3 + i}"] for i in range(1, seats)]
    state = submit_play(rigged_room(hands), "p0", ["star-9"]).state
    for seat in range(1, seats - 1):
        state = submit_pass(state, f"p{seat}").state
        assert state.pile is not None
        assert state.consecutive_passes == seat
    state = submit_pass(state, f"p{seats - 1}").state

    assert state.pile is None
    assert state.current_turn == 0
    assert state.consecutive_passes == 0
    assert state.log[-1] == "Player 0 becomes leader."


def test_play_resets_pass_count():
    state = rigged_room([
        ["cloud-3", "star-9"],
        ["cloud-4", "sun-9"],
        ["moon-5", "sun-5"],
    ])
    state = submit_play(state, "p0", ["cloud-3"]).state
    state = submit_pass(state, "p1").state
    assert state.consecutive_passes == 1
    state = submit_play(state, "p2", ["moon-5"]).state
    assert state.consecutive_passes == 0
    assert state.pile.owner == 2


def test_emptying_a_hand_settles_the_round():
    state = rigged_room([
        ["cloud-3"],
        ["cloud-4", "sun-2"],
        ["star-5"],
        ["moon-6", "star-2", "sun-2"],
    ])
    result = submit_play(state, "p0", ["cloud-3"])

    assert result.success
    state = result.state
    assert state.phase == PHASE_FINISHED
    assert state.winner == 0
    assert state.current_turn is None
    assert state.last_settlement == {0: 17, 1: -4, 2: -1, 3: -12}
    assert state.scores == {0: 117, 1: 96, 2: 99, 3: 88}
    assert sum(state.scores.values()) == 400
    assert state.round == 2
    assert "Player 0 wins round 1!" in state.log


def test_no_moves_after_settlement():
    state = rigged_room([["cloud-3"], ["cloud-4"], ["star-5"]])
    state = submit_play(state, "p0", ["cloud-3"]).state
    assert submit_play(state, "p1", ["cloud-4"]).error_code == GAME_NOT_IN_PROGRESS


def test_next_round_keeps_scores():
    state = rigged_room([["cloud-3"], ["cloud-4", "sun-2"], ["star-5"]])
    state = submit_play(state, "p0", ["cloud-3"]).state
    scores = dict(state.scores)

    result = start_round(state, "p0", seed=5)
    assert result.success
    assert result.state.phase == PHASE_PLAYING
    assert result.state.scores == scores
    assert result.state.round == 2
    assert result.state.winner is None


def test_leaving_on_turn_moves_the_turn(room):
    leaver = room.players[room.current_turn]
    result = leave_room(room, leaver.id)

    assert result.success
    state = result.state
    assert not state.players[leaver.seat].is_active
    assert state.current_turn != leaver.seat
    assert state.active_count() == 3
    assert leaver.seat not in state.active_seats()


def test_round_abandoned_when_one_player_remains():
    state = started_room(3)
    state = leave_room(state, "p1").state
    state = leave_room(state, "p2").state

    assert state.phase == PHASE_FINISHED
    assert state.current_turn is None
    assert state.winner is None
    assert state.log[-1] == "Round abandoned."


def test_lead_skips_a_departed_pile_owner():
    state = rigged_room([
        ["cloud-3", "star-9"],
        ["cloud-4", "sun-9"],
        ["moon-5", "sun-5"],
        ["moon-6", "sun-6"],
    ])
    state = submit_play(state, "p0", ["star-9"]).state
    state = leave_room(state, "p0").state
    state = submit_pass(state, "p1").state
    state = submit_pass(state, "p2").state

    assert state.pile is None
    assert state.current_turn == 1


def test_leaving_after_passing_does_not_clear_the_pile():
    state = rigged_room([
        ["cloud-3", "star-9"],
        ["cloud-4", "sun-9"],
        ["moon-5", "sun-5"],
        ["moon-6", "sun-2"],
    ])
    state = submit_play(state, "p0", ["star-9"]).state
    state = submit_pass(state, "p1").state
    state = submit_pass(state, "p2").state
    state = leave_room(state, "p1").state

    assert state.pile is not None
    assert state.pile.owner == 0
    assert state.current_turn == 3
    assert state.consecutive_passes == 1

    result = submit_play(state, "p3", ["sun-2"])
    assert result.success
    assert result.state.pile.owner == 3


def test_unanswered_seat_still_acts_after_a_passer_leaves():
    state = rigged_room([
        ["cloud-3", "star-9"],
        ["cloud-4", "sun-4"],
        ["cloud-5", "sun-5"],
        ["cloud-6", "sun-6"],
        ["cloud-7", "sun-11"],
    ])
    state = submit_play(state, "p0", ["star-9"]).state
    state = submit_pass(state, "p1").state
    state = submit_pass(state, "p2").state
    state = leave_room(state, "p1").state
    state = submit_pass(state, "p3").state

    assert state.pile is not None
    assert state.current_turn == 4
    assert submit_play(state, "p4", ["sun-11"]).success


def test_leaving_on_turn_after_the_others_passed_clears_the_pile():
    state = rigged_room([
        ["cloud-3", "star-9"],
        ["cloud-4", "sun-9"],
        ["moon-5", "sun-5"],
        ["moon-6", "sun-6"],
    ])
    state = submit_play(state, "p0", ["star-9"]).state
    state = submit_pass(state, "p1").state
    state = submit_pass(state, "p2").state
    state = leave_room(state, "p3").state

    assert state.pile is None
    assert state.current_turn == 0
    assert state.consecutive_passes == 0


def test_host_moves_on_when_host_leaves_lobby():
    state = leave_room(seated_room(3), "p0").state
    assert [p.id for p in state.players] == ["p1", "p2"]
    assert [p.seat for p in state.players] == [0, 1]
    assert state.host().id == "p1"


def test_host_passes_to_next_seat_in_turn_order(room):
    room.players[0].is_host = False
    room.players[2].is_host = True

    state = leave_room(room, "p2").state
    assert state.host().id == "p3"
    assert not state.players[0].is_host


def test_host_skips_ai_seats_when_moving_on():
    state = seated_room(1, seat_limit=3)
    state = add_bot(state, "p0", "ai-0").state
    state = join_room(state, "p1", "Player 1").state
    state = leave_room(state, "p0").state
    assert state.host().id == "p1"


def test_departed_seats_are_dropped_at_next_deal():
    state = rigged_room([["cloud-3"], ["cloud-4"], ["star-5"], ["moon-6"]])
    state = submit_play(state, "p0", ["cloud-3"]).state
    state = leave_room(state, "p2").state

    result = start_round(state, "p0", seed=1)
    assert result.success
    assert [p.id for p in result.state.players] == ["p0", "p1", "p3"]
    assert result.state.max_rank == 9
    assert set(result.state.scores) == {0, 1, 2}


def test_add_and_remove_bots():
    state = seated_room(1, seat_limit=3)
    for i in range(4):
        result = add_bot(state, "p0", f"ai-{i}")
        assert result.success
        state = result.state
    assert len(state.players) == 5
    assert all(p.is_ai for p in state.players[1:])

    assert add_bot(state, "p0", "ai-extra").error_code == ROOM_FULL

    state = remove_bot(state, "p0", "ai-1").state
    assert [p.id for p in state.players] == ["p0", "ai-0", "ai-2", "ai-3"]
    assert remove_bot(state, "p0", "p0").error_code == PLAYER_NOT_FOUND


def test_only_host_manages_bots():
    state = seated_room(2)
    assert add_bot(state, "p1", "ai-0").error_code == NOT_HOST


def test_stale_ai_trigger_is_discarded(room):
    stale_seat = (room.current_turn + 1) % 4
    result = trigger_ai_turn(room, stale_seat)
    assert result.success
    assert not result.applied
    assert result.state is room


def test_ai_without_an_answer_passes():
    state = rigged_room([
        ["cloud-3", "sun-2"],
        ["cloud-4", "star-5"],
        ["moon-5", "sun-5"],
        ["moon-6", "sun-6"],
    ])
    state = submit_play(state, "p0", ["sun-2"]).state
    state.players[1].is_ai = True

    result = trigger_ai_turn(state, 1)
    assert result.success
    assert result.applied
    assert result.state.consecutive_passes == 1
    assert result.state.current_turn == 2
    assert result.state.log[-1] == "Player 1: pass"
    assert len(result.state.players[1].hand) == 2


def _bot_table(seats: int, seed: int):
    state = create_room("bots", seat_limit=3)
    for i in range(seats):
        state = add_bot(state, None, f"ai-{i}", f"Bot {i}").state
    return start_round(state, None, seed).state


@pytest.mark.parametrize("seats", [3, 4, 5])
def test_ai_table_plays_a_round_to_the_end(seats):
    state = _bot_table(seats, seed=seats)
    rng = random.Random(seats)

    for _ in range(500):
        if state.phase == PHASE_FINISHED:
            break
        assert is_ai_turn(state, state.current_turn)
        result = run_ai_chain(state, rng=rng)
        assert result.applied
        state = result.state

    assert state.phase == PHASE_FINISHED
    assert state.players[state.winner].hand == []
    assert sum(state.scores.values()) == 100 * seats
    assert sum(state.last_settlement.values()) == 0


def test_ai_chain_stops_at_a_human_seat():
    state = seated_room(1, seat_limit=3)
    state = add_bot(state, "p0", "ai-0").state
    state = add_bot(state, "p0", "ai-1").state
    state = start_round(state, "p0", seed=11).state

    result = run_ai_chain(state, rng=random.Random(0))
    assert result.state.current_turn == 0 or result.state.phase == PHASE_FINISHED
