"""
Unit tests for the TrueFinals and Statsbook HTTP clients.
"""
import pytest
import requests
from shared.errors import AnnotationUnavailable, CollaboratorUnavailable
from bracketview.annotator import StatsAnnotator
from bracketview.clients import StatsClient, TrueFinalsClient, normalize_bot_name
from bracketview.config import TestingConfig


def response(mocker, status_code=200, body=None, text='', invalid_json=False):
    resp = mocker.MagicMock(spec=requests.Response)
    resp.status_code = status_code
    resp.text = text
    if invalid_json:
        resp.json.side_effect = ValueError('Expecting value')
    else:
        resp.json.return_value = body
    return resp


@pytest.fixture
def session(mocker):
    return mocker.MagicMock(spec=requests.Session)


class TestTrueFinalsClient:
    """Tests for TrueFinalsClient."""

    @pytest.fixture
    def client(self, session):
        return TrueFinalsClient('http://truefinals.test/api/', 'user-1', 'key-1', timeout=5.0, session=session)

    def test_get_game(self, client, session, mocker):
        session.get.return_value = response(mocker, body={'id': 'g1'})

        assert client.get_game('t1', 'g1') == {'id': 'g1'}
        session.get.assert_called_once_with(
            'http://truefinals.test/api/v1/tournaments/t1/games/g1',
            headers=client.headers,
            timeout=5.0
        )

    def test_auth_headers(self, client):
        assert client.headers['x-api-user-id'] == 'user-1'
        assert client.headers['x-api-key'] == 'key-1'

    def test_api_error_message(self, client, session, mocker):
        session.get.return_value = response(mocker, 404, {'code': 'not_found', 'message': 'No such tournament'})

        with pytest.raises(CollaboratorUnavailable) as exc:
            client.get_tournament('missing')
        assert exc.value.status_code == 404
        assert exc.value.service == 'truefinals'
        assert 'No such tournament' in exc.value.reason

    def test_plain_http_error(self, client, session, mocker):
        session.get.return_value = response(mocker, 503, text='upstream down', invalid_json=True)

        with pytest.raises(CollaboratorUnavailable) as exc:
            client.get_players('t1')
        assert exc.value.reason == 'HTTP error 503: upstream down'

    def test_transport_failure(self, client, session):
        session.get.side_effect = requests.exceptions.Timeout('read timed out')

        with pytest.raises(CollaboratorUnavailable):
            client.get_locations('t1')

    def test_invalid_json(self, client, session, mocker):
        session.get.return_value = response(mocker, invalid_json=True)

        with pytest.raises(CollaboratorUnavailable):
            client.get_games('t1')

    def test_from_config(self, session):
        cfg = {
            'TRUEFINALS_BASE_URL': TestingConfig.TRUEFINALS_BASE_URL,
            'TRUEFINALS_API_KEY': TestingConfig.TRUEFINALS_API_KEY,
            'TRUEFINALS_API_USER_ID': TestingConfig.TRUEFINALS_API_USER_ID,
            'REQUEST_TIMEOUT': TestingConfig.REQUEST_TIMEOUT,
        }
        client = TrueFinalsClient.from_config(cfg, session=session)
        assert client.base_url == 'http://truefinals.test/api'
        assert client.api_key == 'test-key'
        assert client.timeout == 5.0


class TestStatsClient:
    """Tests for StatsClient."""

    @pytest.fixture
    def client(self):
        return StatsClient('http://stats.test/statsbook', timeout=5.0)

    @pytest.fixture
    def http_get(self, mocker):
        return mocker.patch('bracketview.clients.requests.get')

    def test_normalize_bot_name(self):
        assert normalize_bot_name('Big Red Robot') == 'Big_Red_Robot'

    def test_get_rank(self, client, http_get, mocker):
        http_get.return_value = response(mocker, body={'bot_name': 'Big_Red', 'ranking': 12})

        assert client.get_rank('Big Red') == 12
        args, kwargs = http_get.call_args
        assert args[0] == 'http://stats.test/statsbook/get_rank.php'
        assert kwargs['params'] == {'bot_name': 'Big_Red'}

    def test_null_means_not_found(self, client, http_get, mocker):
        http_get.return_value = response(mocker, body=None)

        assert client.get_rank('Nobody') is None
        assert client.get_fights('Nobody') == []
        assert client.get_streak_stats('Nobody') is None
        assert client.get_event_winners('3lb') == []

    def test_event_winners_params(self, client, http_get, mocker):
        http_get.return_value = response(mocker, body=[{'bot_name': 'Alpha'}, 'junk'])

        assert client.get_event_winners('3lb') == [{'bot_name': 'Alpha'}]
        assert http_get.call_args[1]['params'] == {'weight_class': '3lb'}

    def test_http_error(self, client, http_get, mocker):
        http_get.return_value = response(mocker, 500, text='boom')

        with pytest.raises(AnnotationUnavailable) as exc:
            client.get_fights('Alpha')
        assert exc.value.name == 'Alpha'
        assert exc.value.status_code == 500

    def test_transport_failure(self, client, http_get):
        http_get.side_effect = requests.exceptions.ConnectionError('refused')

        with pytest.raises(AnnotationUnavailable):
            client.get_streak_stats('Alpha')

    def test_concurrent_lookups_use_no_shared_session(self, client, http_get, mocker):
        http_get.return_value = response(mocker, body={'ranking': 3})

        annotator = StatsAnnotator(client, workers=4)
        annotator.prefetch(['Alpha', 'Bravo', 'Charlie'])

        assert not hasattr(client, 'session')
        # rank, fights and streak for each bot
        assert http_get.call_count == 9
        assert annotator.lookup('Bravo')['nhrl_rank'] == 3
