from typing import Iterable, List

from shared.schemas import Player
from .identity import profile_details

NOTE = "Players are sorted by placement. Players without placement are sorted by record."


def standings_sort_key(entry: dict) -> tuple:
    """
    Total order for standings, best first.

    Placed players come before unplaced ones and sort by placement; unplaced
    players sort by most wins, then fewest losses.
    """
    placement = entry.get('placement')
    if placement is not None:
        return (0, placement, 0, 0)
    return (1, 0, -(entry.get('wins') or 0), entry.get('losses') or 0)


def compare_standings(a: dict, b: dict) -> int:
    key_a, key_b = standings_sort_key(a), standings_sort_key(b)
    return (key_a > key_b) - (key_a < key_b)


def standing_entry(player: Player) -> dict:
    details = profile_details(player)
    entry = {
        'playerID': player.id,
        'displayName': details['displayName'],
        'name': player.name,
        'placement': player.placement,
        'wins': player.wins,
        'losses': player.losses,
        'ties': player.ties,
        'isDisqualified': player.is_disqualified,
        'seed': player.seed,
    }
    if 'tag' in details:
        entry['tag'] = details['tag']
    return entry


def compute_standings(players: Iterable[Player]) -> List[dict]:
    entries = [standing_entry(p) for p in players if not p.is_bye]
    return sorted(entries, key=standings_sort_key)
