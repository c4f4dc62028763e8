import logging
from dataclasses import dataclass, field
from typing import Dict, List, Optional, Tuple

from shared.rounds import (
    DOUBLE_ELIMINATION, BracketType, RoundKey, classify_round, round_name, qualification_round
)
from shared.schemas import Game
from .identity import PlayerIdentity

logger = logging.getLogger(__name__)

# Statsbook keys copied onto a game slot next to the player's names
SLOT_ANNOTATION_KEYS = ('nhrl_rank', 'nhrl_current_streak')


def _extend(target: dict, values: dict):
    """Add keys without touching anything the source record already had."""
    for key, value in values.items():
        target.setdefault(key, value)


def winner_slot_idx(game: Game) -> Optional[int]:
    """
    Index of the slot with the strictly higher score.

    Both slots must hold real scores; a tie, a missing score or the
    not-competed sentinel means there is no winner.
    """
    if len(game.slots) < 2:
        return None
    first, second = game.slots[0], game.slots[1]
    if first is None or second is None:
        return None
    if not (first.has_competed and second.has_competed):
        return None

    if first.score > second.score:
        return 0
    if second.score > first.score:
        return 1
    return None


def enrich_game(
    game: Game,
    players: Dict[str, PlayerIdentity],
    locations: Dict[str, str] = None,
    annotations: Dict[str, dict] = None
) -> dict:
    """
    Build the enriched document for one game.

    Every view of a game (single game, bracket round, location summary) goes
    through here. ``locations`` and ``annotations`` are optional because not
    every caller has fetched them.
    """
    doc = dict(game.raw)

    if 'slots' in game.raw and isinstance(game.raw['slots'], list):
        identities = []
        for slot in game.slots:
            identity = players.get(slot.player_id) if slot and slot.player_id else None
            identities.append(identity)

        enriched_slots = []
        for i, slot in enumerate(game.slots):
            if slot is None:
                # Unreadable slot; pass it through as received
                enriched_slots.append(game.raw['slots'][i])
                continue

            slot_doc = dict(slot.raw)
            identity = identities[i]
            if identity:
                _extend(slot_doc, {
                    'playerName': identity.name,
                    'displayName': identity.display_name,
                })
                if identity.seed is not None:
                    _extend(slot_doc, {'seed': identity.seed})

            if len(identities) == 2:
                opponent = identities[1 - i]
                if opponent:
                    _extend(slot_doc, {'opponentDisplayName': opponent.display_name})

            if annotations and slot.player_id in annotations:
                found = annotations[slot.player_id]
                _extend(slot_doc, {k: found[k] for k in SLOT_ANNOTATION_KEYS if k in found})

            enriched_slots.append(slot_doc)
        doc['slots'] = enriched_slots

    if locations is not None and game.location_id and game.location_id in locations:
        _extend(doc, {'locationName': locations[game.location_id]})

    qualification = qualification_round(game.name)
    if qualification:
        _extend(doc, {
            'roundName': qualification.name,
            'roundDescription': qualification.description,
            'winImplication': qualification.win_implication,
            'loseImplication': qualification.lose_implication,
            'isQualificationRound': True,
        })

    if game.is_done:
        winner = winner_slot_idx(game)
        if winner is not None:
            _extend(doc, {'winnerSlotIdx': winner})

    return doc


@dataclass
class BracketRound:
    round: int
    round_name: str
    bracket_type: str
    games: List[dict] = field(default_factory=list)

    def to_dict(self) -> dict:
        return {
            'round': self.round,
            'roundName': self.round_name,
            'bracketType': self.bracket_type,
            'games': self.games,
        }


def group_rounds(entries: List[Tuple[Game, dict]], format_type: Optional[str]) -> List[BracketRound]:
    """
    Group enriched games into rounds.

    Games are ordered by name within a round (stable, so equal names keep
    input order); winners/main rounds come before losers rounds.
    """
    groups: Dict[RoundKey, List[Tuple[Game, dict]]] = {}
    for game, doc in entries:
        if game.round is None:
            logger.debug(f"Game {game.id} has no readable round; left out of the bracket rounds")
            continue
        key = classify_round(game.round, format_type)
        groups.setdefault(key, []).append((game, doc))

    rounds = []
    for key in sorted(groups, key=lambda k: k.sort_key):
        ordered = sorted(groups[key], key=lambda pair: pair[0].name)
        rounds.append(BracketRound(
            round=key.number,
            round_name=round_name(key, format_type),
            bracket_type=key.bracket_type.value,
            games=[doc for _, doc in ordered]
        ))
    return rounds


def count_completed(games: List[Game]) -> int:
    return sum(1 for g in games if g.is_done)


def count_active(games: List[Game]) -> int:
    return sum(1 for g in games if g.is_active)


def current_round(games: List[Game], format_type: Optional[str]) -> Dict[str, int]:
    """Per side, the highest round that still has an unfinished game."""
    highest: Dict[BracketType, int] = {}
    for game in games:
        if game.state is None or game.is_done or game.round is None:
            continue
        key = classify_round(game.round, format_type)
        if key.number > highest.get(key.bracket_type, 0):
            highest[key.bracket_type] = key.number

    return {
        f"{bracket_type.value}Round": number
        for bracket_type, number in sorted(highest.items(), key=lambda item: item[0] == BracketType.LOSERS)
    }


def find_champions(games: List[Game], players: Dict[str, PlayerIdentity]) -> List[dict]:
    """Every finished game awarding first place that has a decided winner."""
    champions = []
    for game in games:
        if game.winner_placement != 1 or not game.is_done:
            continue

        winner = winner_slot_idx(game)
        if winner is None:
            continue
        player_id = game.slots[winner].player_id
        if not player_id:
            continue

        champion = {
            'playerID': player_id,
            'gameID': game.id,
            'gameName': game.name,
        }
        identity = players.get(player_id)
        if identity:
            champion['displayName'] = identity.display_name
            champion['name'] = identity.name
        champions.append(champion)
    return champions


def select_round(games: List[Game], round_num: int, bracket_type: str = 'all') -> List[Game]:
    """Games whose |round| matches, optionally restricted to one side, ordered by name."""
    selected = []
    for game in games:
        if game.round is None or abs(game.round) != abs(round_num):
            continue
        if bracket_type == 'losers' and game.round >= 0:
            continue
        if bracket_type == 'winners' and game.round < 0:
            continue
        selected.append(game)
    return sorted(selected, key=lambda g: g.name)


def round_view_keys(
    games: List[Game],
    round_num: int,
    bracket_type: str,
    format_type: Optional[str]
) -> List[RoundKey]:
    """
    Bracket sides a single-round view covers, winners/main first.

    A winners or losers filter fixes the side regardless of the sign the
    caller used. Unfiltered double elimination reports every side present
    in the selected games.
    """
    number = abs(round_num)
    if format_type != DOUBLE_ELIMINATION:
        return [RoundKey(BracketType.MAIN, number)]
    if bracket_type == 'losers':
        return [RoundKey(BracketType.LOSERS, number)]
    if bracket_type == 'winners':
        return [RoundKey(BracketType.WINNERS, number)]

    keys = {classify_round(g.round, format_type) for g in games}
    return sorted(keys, key=lambda k: k.sort_key) or [classify_round(round_num, format_type)]


def assemble_bracket(
    games: List[Game],
    players: Dict[str, PlayerIdentity],
    format_type: Optional[str],
    locations: Dict[str, str] = None
) -> dict:
    entries = [(game, enrich_game(game, players, locations)) for game in games]
    return {
        'rounds': [r.to_dict() for r in group_rounds(entries, format_type)],
        'totalGames': len(games),
        'completedGames': count_completed(games),
        'activeGames': count_active(games),
        'currentRound': current_round(games, format_type),
        'champions': find_champions(games, players),
    }
