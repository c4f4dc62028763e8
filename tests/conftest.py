"""
Pytest configuration and fixtures for bracket view tests.
"""
import os
import sys
import pytest

# Add project root to path
sys.path.insert(0, os.path.join(os.path.dirname(__file__), '..'))

# Set testing environment before importing app
os.environ['FLASK_ENV'] = 'testing'

from bracketview.app import create_app
from bracketview.clients import StatsClient, TrueFinalsClient
from bracketview.facade import EnrichmentService


def make_slot(idx, player_id, score=-1, game_id=None):
    return {'slotIdx': idx, 'gameID': game_id, 'playerID': player_id, 'score': score, 'slotState': 'filled'}


def make_game(game_id, name, round_num, state, first=None, second=None, **extra):
    game = {
        'id': game_id,
        'name': name,
        'round': round_num,
        'bracketID': 'main',
        'state': state,
        'slots': [
            make_slot(0, *(first or (None,)), game_id=game_id),
            make_slot(1, *(second or (None,)), game_id=game_id),
        ],
        'scoreToWin': 1,
    }
    game.update(extra)
    return game


@pytest.fixture
def players_data():
    """Five bots, one of them a bye."""
    return [
        {'id': 'p1', 'name': 'Alpha', 'seed': 1, 'wins': 2, 'losses': 0, 'ties': 0,
         'profileInfo': {'tag': 'ALF', 'pronouns': 'they/them', 'twitchHandle': 'alfbot'}},
        {'id': 'p2', 'name': 'Bravo', 'seed': 4, 'wins': 0, 'losses': 1, 'ties': 0},
        {'id': 'p3', 'name': 'Charlie', 'seed': 3, 'wins': 0, 'losses': 1, 'ties': 0},
        {'id': 'p4', 'name': 'Delta', 'seed': 2, 'wins': 1, 'losses': 0, 'ties': 0},
        {'id': 'p5', 'name': 'BYE', 'isBye': True},
    ]


@pytest.fixture
def locations_data():
    return [
        {'id': 'l1', 'name': 'Cage 1', 'activeGameID': 'g3', 'queue': ['g4']},
        {'id': 'l2', 'name': 'Cage 2', 'activeGameID': None, 'queue': []},
    ]


@pytest.fixture
def games_data():
    """Double elimination in progress: both semifinals done, final running, losers round open."""
    return [
        make_game('g1', 'W1-1', 2, 'done', ('p1', 3), ('p2', 1), locationID='l1'),
        make_game('g2', 'W1-2', 2, 'done', ('p3', 0), ('p4', 3), locationID='l2'),
        make_game('g3', 'W2-1', 1, 'active', ('p1', -1), ('p4', -1), locationID='l1'),
        make_game('g4', 'L1-1', -1, 'available', ('p2', -1), ('p3', -1)),
    ]


@pytest.fixture
def tournament_data(players_data, locations_data, games_data):
    return {
        'id': 'nhrl-3lb-oct',
        'title': 'NHRL October 3lb Championship',
        'format': {'type': 'double_elimination'},
        'startTime': 1760000000,
        'endTime': None,
        'players': players_data,
        'locations': locations_data,
        'games': games_data,
    }


@pytest.fixture
def truefinals(mocker, tournament_data, players_data, locations_data, games_data):
    """TrueFinals client that serves the sample snapshot without any network."""
    client = mocker.MagicMock(spec=TrueFinalsClient)
    games_by_id = {g['id']: g for g in games_data}
    players_by_id = {p['id']: p for p in players_data}
    locations_by_id = {l['id']: l for l in locations_data}

    client.get_tournament.return_value = tournament_data
    client.get_players.return_value = players_data
    client.get_locations.return_value = locations_data
    client.get_games.return_value = games_data
    client.get_game.side_effect = lambda tid, gid: games_by_id[gid]
    client.get_player.side_effect = lambda tid, pid: players_by_id[pid]
    client.get_location.side_effect = lambda tid, lid: locations_by_id[lid]
    return client


@pytest.fixture
def stats(mocker):
    """Statsbook client that only knows Alpha."""
    client = mocker.MagicMock(spec=StatsClient)
    client.get_rank.side_effect = lambda name: {'Alpha': 7}.get(name)
    client.get_fights.side_effect = lambda name: (
        [{'date': '2025-09-14', 'result': 'win'}, {'date': '2025-08-10', 'result': 'loss'}]
        if name == 'Alpha' else []
    )
    client.get_streak_stats.side_effect = lambda name: (
        {'current_streak': 3, 'current_streak_type': 'win'} if name == 'Alpha' else None
    )
    client.get_event_winners.return_value = [
        {'bot_name': 'Alpha', 'event': 'September'},
        {'bot_name': 'Delta', 'event': 'August'},
        {'bot_name': 'Bravo', 'event': 'July'},
        {'bot_name': 'Charlie', 'event': 'June'},
    ]
    return client


@pytest.fixture
def service(truefinals, stats):
    return EnrichmentService(truefinals, stats)


@pytest.fixture
def app(service):
    """Create application for testing."""
    return create_app('testing', service=service)


@pytest.fixture
def client(app):
    """Create test client."""
    return app.test_client()


@pytest.fixture
def game_factory():
    """Build raw game records: game_factory(id, name, round, state, (playerID, score), (playerID, score))."""
    return make_game
