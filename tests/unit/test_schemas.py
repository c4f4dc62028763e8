"""
Unit tests for parsing tournament service records.
"""
import pytest
from shared.errors import MalformedRecord
from shared.schemas import (
    Game,
    GameState,
    Player,
    Tournament,
    as_int,
    parse_records,
)


class TestAsInt:
    """Tests for as_int()."""

    @pytest.mark.parametrize('value,expected', [
        (3, 3),
        (-1, -1),
        (2.0, 2),
        (2.5, None),
        ('2', None),
        (True, None),
        (None, None),
    ])
    def test_values(self, value, expected):
        assert as_int(value) == expected


class TestPlayer:
    """Tests for Player.from_dict()."""

    def test_display_name_prefers_tag(self):
        player = Player.from_dict({'id': 'p1', 'name': 'Alpha', 'profileInfo': {'tag': 'ALF'}})
        assert player.display_name == 'ALF'

    def test_display_name_falls_back_to_name(self):
        player = Player.from_dict({'id': 'p1', 'name': 'Alpha', 'profileInfo': {'tag': ''}})
        assert player.display_name == 'Alpha'

    def test_missing_counters_default_to_zero(self):
        player = Player.from_dict({'id': 'p1'})
        assert (player.wins, player.losses, player.ties) == (0, 0, 0)
        assert player.placement is None
        assert player.is_bye is False

    def test_raw_is_a_copy(self):
        record = {'id': 'p1', 'name': 'Alpha'}
        player = Player.from_dict(record)
        player.raw['extra'] = 1
        assert 'extra' not in record

    def test_non_object_is_malformed(self):
        with pytest.raises(MalformedRecord):
            Player.from_dict(['p1'])


class TestGame:
    """Tests for Game.from_dict()."""

    def test_parses_slots(self):
        game = Game.from_dict({
            'id': 'g1', 'name': 'W1-1', 'round': -2, 'state': 'done',
            'slots': [{'slotIdx': 0, 'playerID': 'p1', 'score': 3}, {'slotIdx': 1, 'playerID': '', 'score': -1}]
        })
        assert game.round == -2
        assert game.state == GameState.DONE
        assert game.slots[0].player_id == 'p1'
        assert game.slots[1].player_id is None
        assert game.slots[0].has_competed
        assert not game.slots[1].has_competed

    def test_unreadable_slot_becomes_none(self):
        game = Game.from_dict({'id': 'g1', 'slots': ['broken', {'slotIdx': 1}]})
        assert game.slots[0] is None
        assert game.slots[1].slot_idx == 1

    def test_unknown_state(self):
        game = Game.from_dict({'id': 'g1', 'state': 'paused'})
        assert game.state is None
        assert not game.is_done
        assert not game.is_active

    @pytest.mark.parametrize('state', ['active', 'called'])
    def test_active_states(self, state):
        assert Game.from_dict({'id': 'g1', 'state': state}).is_active

    def test_missing_name_is_empty(self):
        assert Game.from_dict({'id': 'g1'}).name == ''


class TestTournament:
    """Tests for Tournament.from_dict()."""

    def test_status(self):
        assert Tournament.from_dict({'id': 't'}).status == 'pending'
        assert Tournament.from_dict({'id': 't', 'startTime': 1}).status == 'in_progress'
        assert Tournament.from_dict({'id': 't', 'startTime': 1, 'endTime': 2}).status == 'completed'

    def test_malformed_children_are_skipped(self, tournament_data):
        tournament_data['players'].append('not a player')
        tournament = Tournament.from_dict(tournament_data)
        assert len(tournament.players) == 5
        assert tournament.format_type == 'double_elimination'

    def test_parse_records_of_non_list(self):
        assert parse_records('game', None, Game.from_dict) == []
