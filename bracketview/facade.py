"""
Enrichment facade.

The ``build_*`` functions are pure: raw snapshots in, JSON-serializable
documents out. ``EnrichmentService`` fetches the snapshots a view needs,
validates caller input before any network call, and hands off to the
builders. Nothing is written back to the tournament service.
"""
import logging
import re
from typing import Any, Callable, Dict, List, Optional

from shared.errors import CollaboratorUnavailable, InvalidInput, MalformedRecord
from shared.rounds import round_name, qualification_round, qualification_system
from shared.schemas import Game, Location, Player, Tournament, as_int, as_str, parse_records
from .annotator import StatsAnnotator, annotation_name, detect_weight_class
from .bracket import (
    assemble_bracket, count_active, count_completed, enrich_game, round_view_keys, select_round
)
from .clients import StatsClient, TrueFinalsClient
from .identity import build_location_map, build_player_map, profile_details
from .standings import NOTE as STANDINGS_NOTE, compute_standings

logger = logging.getLogger(__name__)

BRACKET_TYPE_FILTERS = ('winners', 'losers', 'all')

DISPLAY_TIPS = {
    'rounds': "Games are organized by round and bracket type (winners/losers for double elimination)",
    'gameStates': "Game states: 'unavailable' = waiting for previous games, 'available' = ready to play, "
                  "'active' = in progress, 'done' = completed",
    'scores': "Scores of -1 indicate a player hasn't competed yet or was eliminated",
    'navigation': "Use round numbers to focus on specific rounds, negative rounds are losers bracket",
}

GAMES_NOTE = "Player names and location names are included for better readability"
PLAYERS_NOTE = "Player display names and profile details are included for better readability"
LOCATIONS_NOTE = "Active game information with player names is included for better readability"
TOURNAMENT_NOTE = "Player names, display names, and location names are included throughout for better readability"

_INTEGER = re.compile(r'^[+-]?\d+$')


# ==================== Input validation ====================

def require_id(value: Any, field: str) -> str:
    if value is None or (isinstance(value, str) and not value.strip()):
        raise InvalidInput(field)
    if not isinstance(value, str):
        raise InvalidInput(field, f"{field} must be a string")
    return value.strip()


def require_round(value: Any) -> int:
    if value is None or value == '':
        raise InvalidInput('round')
    if isinstance(value, str) and _INTEGER.match(value.strip()):
        return int(value.strip())
    round_num = as_int(value)
    if round_num is None:
        raise InvalidInput('round', "round must be an integer")
    return round_num


def require_bracket_type(value: Any) -> str:
    if value is None or value == '':
        return 'all'
    if value not in BRACKET_TYPE_FILTERS:
        raise InvalidInput('bracket_type', f"bracket_type must be one of {', '.join(BRACKET_TYPE_FILTERS)}")
    return value


# ==================== Builders ====================

def slot_annotations(games: List[Game], players: List[Player], annotator: StatsAnnotator) -> Dict[str, dict]:
    """Statsbook annotations for every player seated in the given games, keyed by player id."""
    by_id = {p.id: p for p in players if p.id}
    seated = []
    for game in games:
        for slot in game.slots:
            if slot and slot.player_id in by_id and slot.player_id not in seated:
                seated.append(slot.player_id)

    names = {pid: annotation_name(by_id[pid].raw) for pid in seated}
    annotator.prefetch(names.values())
    return {pid: annotator.lookup(name) for pid, name in names.items() if name}


def build_game_document(
    game_record: Any,
    players_records: Any = None,
    locations_records: Any = None,
    annotator: StatsAnnotator = None
) -> dict:
    game = Game.from_dict(game_record)
    players = parse_records('player', players_records, Player.from_dict)
    location_map = None
    if locations_records is not None:
        location_map = build_location_map(parse_records('location', locations_records, Location.from_dict))

    annotations = slot_annotations([game], players, annotator) if annotator else None
    return enrich_game(game, build_player_map(players), location_map, annotations)


def build_games_document(
    games_records: Any,
    players_records: Any = None,
    locations_records: Any = None,
    annotator: StatsAnnotator = None
) -> dict:
    players = parse_records('player', players_records, Player.from_dict)
    player_map = build_player_map(players)
    location_map = None
    if locations_records is not None:
        location_map = build_location_map(parse_records('location', locations_records, Location.from_dict))

    records = games_records if isinstance(games_records, list) else []
    parsed = []
    for record in records:
        try:
            parsed.append(Game.from_dict(record))
        except MalformedRecord:
            parsed.append(record)

    games = [g for g in parsed if isinstance(g, Game)]
    annotations = slot_annotations(games, players, annotator) if annotator else None

    enriched = [
        enrich_game(g, player_map, location_map, annotations) if isinstance(g, Game) else g
        for g in parsed
    ]
    return {'games': enriched, 'count': len(enriched), 'note': GAMES_NOTE}


def build_player_document(player_record: Any, annotator: StatsAnnotator = None) -> dict:
    player = Player.from_dict(player_record)
    doc = dict(player.raw)
    for key, value in profile_details(player).items():
        doc.setdefault(key, value)
    if annotator:
        doc = annotator.annotate(doc)
    return doc


def build_players_document(players_records: Any, annotator: StatsAnnotator = None) -> dict:
    records = players_records if isinstance(players_records, list) else []
    if annotator:
        annotator.prefetch(annotation_name(r) for r in records if isinstance(r, dict))

    enriched = []
    for record in records:
        try:
            enriched.append(build_player_document(record, annotator))
        except MalformedRecord:
            enriched.append(record)
    return {'players': enriched, 'count': len(enriched), 'note': PLAYERS_NOTE}


def build_location_document(
    location_record: Any,
    active_game_record: Any = None,
    players_records: Any = None
) -> dict:
    location = Location.from_dict(location_record)
    doc = dict(location.raw)
    if not location.active_game_id or active_game_record is None:
        return doc

    try:
        game = Game.from_dict(active_game_record)
    except MalformedRecord as e:
        logger.warning(f"Active game of location {location.id} is unreadable: {e}")
        return doc

    player_map = build_player_map(parse_records('player', players_records, Player.from_dict))
    game_doc = enrich_game(game, player_map)

    player_names = []
    for slot in game_doc.get('slots') or []:
        if isinstance(slot, dict) and slot.get('displayName'):
            player_names.append(slot['displayName'])

    info = {
        'gameID': location.active_game_id,
        'gameName': game.name,
        'playerNames': player_names,
        'state': game.raw.get('state'),
    }
    qualification = qualification_round(game.name)
    if qualification:
        info['roundName'] = qualification.name
        info['isQualificationRound'] = True

    doc.setdefault('activeGameInfo', info)
    return doc


def build_locations_document(locations_records: Any, games_records: Any = None, players_records: Any = None) -> dict:
    games_by_id = {}
    for record in games_records if isinstance(games_records, list) else []:
        if isinstance(record, dict) and isinstance(record.get('id'), str):
            games_by_id[record['id']] = record

    enriched = []
    for record in locations_records if isinstance(locations_records, list) else []:
        if not isinstance(record, dict):
            enriched.append(record)
            continue
        active = games_by_id.get(as_str(record.get('activeGameID')))
        enriched.append(build_location_document(record, active, players_records))
    return {'locations': enriched, 'count': len(enriched), 'note': LOCATIONS_NOTE}


def build_bracket_document(tournament_record: Any, tournament_id: str = None) -> dict:
    tournament = Tournament.from_dict(tournament_record)
    player_map = build_player_map(tournament.players)
    location_map = build_location_map(tournament.locations)

    doc = {
        'tournamentID': tournament_id or tournament.id,
        'tournamentName': tournament.title,
        'format': tournament.format_type,
        'status': tournament.status,
        'playerCount': len(player_map),
    }
    doc.update(assemble_bracket(tournament.games, player_map, tournament.format_type, location_map))
    doc['standings'] = compute_standings(tournament.players)
    doc['displayTips'] = dict(DISPLAY_TIPS)
    return doc


def build_round_document(
    tournament_record: Any,
    round_num: int,
    bracket_type: str = 'all',
    tournament_id: str = None
) -> dict:
    tournament = Tournament.from_dict(tournament_record)
    player_map = build_player_map(tournament.players)
    location_map = build_location_map(tournament.locations)

    games = select_round(tournament.games, round_num, bracket_type)
    keys = round_view_keys(games, round_num, bracket_type, tournament.format_type)
    return {
        'tournamentID': tournament_id or tournament.id,
        'tournamentName': tournament.title,
        'round': round_num,
        'roundName': ' / '.join(round_name(k, tournament.format_type) for k in keys),
        'bracketType': keys[0].bracket_type.value if len(keys) == 1 else 'all',
        'games': [enrich_game(g, player_map, location_map) for g in games],
        'gameCount': len(games),
        'completedCount': count_completed(games),
        'activeCount': count_active(games),
    }


def build_standings_document(tournament_record: Any, tournament_id: str = None) -> dict:
    tournament = Tournament.from_dict(tournament_record)
    standings = compute_standings(tournament.players)
    return {
        'tournamentID': tournament_id or tournament.id,
        'tournamentName': tournament.title,
        'status': tournament.status,
        'standings': standings,
        'playerCount': len(standings),
        'note': STANDINGS_NOTE,
    }


def build_tournament_document(tournament_record: Any, annotator: StatsAnnotator = None) -> dict:
    tournament = Tournament.from_dict(tournament_record)
    doc = dict(tournament.raw)

    raw_players = doc.get('players')
    if isinstance(raw_players, list):
        doc['players'] = build_players_document(raw_players, annotator)['players']
        doc['playersCount'] = len(raw_players)

    raw_games = doc.get('games')
    if isinstance(raw_games, list):
        player_map = build_player_map(tournament.players)
        location_map = build_location_map(tournament.locations)
        enriched = []
        for record in raw_games:
            try:
                enriched.append(enrich_game(Game.from_dict(record), player_map, location_map))
            except MalformedRecord:
                enriched.append(record)
        doc['games'] = enriched
        doc['gamesCount'] = len(raw_games)

    if isinstance(doc.get('locations'), list):
        doc['locationsCount'] = len(doc['locations'])

    doc['enrichmentNote'] = TOURNAMENT_NOTE

    weight_class = detect_weight_class(tournament.title)
    if weight_class:
        doc['detected_weight_class'] = weight_class
        if annotator:
            champions = annotator.recent_champions(weight_class)
            if champions:
                doc['nhrl_recent_champions'] = champions

    return doc


# ==================== Service ====================

class EnrichmentService:
    """
    Fetches the snapshots each view needs and builds the document.

    The primary snapshot of a view (the tournament, game, player or location
    asked for) must be fetched or ``CollaboratorUnavailable`` propagates.
    Secondary snapshots used only for names fall back to nothing, and
    Statsbook annotation never fails a request.
    """

    def __init__(self, truefinals: TrueFinalsClient, stats: StatsClient = None, stats_workers: int = 1):
        self.truefinals = truefinals
        self.stats = stats
        self.stats_workers = stats_workers

    @classmethod
    def from_config(cls, cfg) -> "EnrichmentService":
        stats = StatsClient.from_config(cfg) if cfg.get('ENABLE_STATS_ANNOTATION', True) else None
        return cls(
            truefinals=TrueFinalsClient.from_config(cfg),
            stats=stats,
            stats_workers=cfg.get('STATS_LOOKUP_WORKERS', 1)
        )

    def _annotator(self) -> Optional[StatsAnnotator]:
        if self.stats is None:
            return None
        return StatsAnnotator(self.stats, workers=self.stats_workers)

    def _secondary(self, what: str, fetch: Callable, *args) -> Any:
        try:
            return fetch(*args)
        except CollaboratorUnavailable as e:
            logger.warning(f"Continuing without {what}: {e}")
            return None

    def _build(self, builder: Callable, *args, **kwargs) -> dict:
        try:
            return builder(*args, **kwargs)
        except MalformedRecord as e:
            raise CollaboratorUnavailable(TrueFinalsClient.SERVICE, f"Unexpected response: {e}")

    # ==================== Tournament views ====================

    def tournament(self, tournament_id: str) -> dict:
        tournament_id = require_id(tournament_id, 'tournament_id')
        record = self.truefinals.get_tournament(tournament_id)
        logger.info(f"Enriching tournament {tournament_id}")
        return self._build(build_tournament_document, record, self._annotator())

    def bracket(self, tournament_id: str) -> dict:
        tournament_id = require_id(tournament_id, 'tournament_id')
        record = self.truefinals.get_tournament(tournament_id)
        return self._build(build_bracket_document, record, tournament_id=tournament_id)

    def bracket_round(self, tournament_id: str, round_num: Any, bracket_type: Any = 'all') -> dict:
        tournament_id = require_id(tournament_id, 'tournament_id')
        round_num = require_round(round_num)
        bracket_type = require_bracket_type(bracket_type)
        record = self.truefinals.get_tournament(tournament_id)
        return self._build(
            build_round_document, record, round_num, bracket_type, tournament_id=tournament_id
        )

    def standings(self, tournament_id: str) -> dict:
        tournament_id = require_id(tournament_id, 'tournament_id')
        record = self.truefinals.get_tournament(tournament_id)
        return self._build(build_standings_document, record, tournament_id=tournament_id)

    # ==================== Games ====================

    def game(self, tournament_id: str, game_id: str) -> dict:
        tournament_id = require_id(tournament_id, 'tournament_id')
        game_id = require_id(game_id, 'game_id')
        record = self.truefinals.get_game(tournament_id, game_id)
        players = self._secondary("players", self.truefinals.get_players, tournament_id)
        locations = self._secondary("locations", self.truefinals.get_locations, tournament_id)
        return self._build(build_game_document, record, players, locations, self._annotator())

    def games(self, tournament_id: str) -> dict:
        tournament_id = require_id(tournament_id, 'tournament_id')
        records = self.truefinals.get_games(tournament_id)
        players = self._secondary("players", self.truefinals.get_players, tournament_id)
        locations = self._secondary("locations", self.truefinals.get_locations, tournament_id)
        return self._build(build_games_document, records, players, locations, self._annotator())

    # ==================== Players ====================

    def player(self, tournament_id: str, player_id: str) -> dict:
        tournament_id = require_id(tournament_id, 'tournament_id')
        player_id = require_id(player_id, 'player_id')
        record = self.truefinals.get_player(tournament_id, player_id)
        return self._build(build_player_document, record, self._annotator())

    def players(self, tournament_id: str) -> dict:
        tournament_id = require_id(tournament_id, 'tournament_id')
        records = self.truefinals.get_players(tournament_id)
        return self._build(build_players_document, records, self._annotator())

    # ==================== Locations ====================

    def location(self, tournament_id: str, location_id: str) -> dict:
        tournament_id = require_id(tournament_id, 'tournament_id')
        location_id = require_id(location_id, 'location_id')
        record = self.truefinals.get_location(tournament_id, location_id)

        active_game = None
        players = None
        active_game_id = record.get('activeGameID') if isinstance(record, dict) else None
        if isinstance(active_game_id, str) and active_game_id:
            active_game = self._secondary("active game", self.truefinals.get_game, tournament_id, active_game_id)
            if active_game is not None:
                players = self._secondary("players", self.truefinals.get_players, tournament_id)

        return self._build(build_location_document, record, active_game, players)

    def locations(self, tournament_id: str) -> dict:
        tournament_id = require_id(tournament_id, 'tournament_id')
        records = self.truefinals.get_locations(tournament_id)
        games = self._secondary("games", self.truefinals.get_games, tournament_id)
        players = self._secondary("players", self.truefinals.get_players, tournament_id)
        return self._build(build_locations_document, records, games, players)

    # ==================== Reference ====================

    @staticmethod
    def qualification(round_code: Optional[str] = None) -> dict:
        return qualification_system(round_code or None)
