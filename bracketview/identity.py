from dataclasses import dataclass
from typing import Dict, Iterable, Optional

from shared.schemas import Location, Player


@dataclass(frozen=True)
class PlayerIdentity:
    name: Optional[str]
    display_name: Optional[str]
    tag: Optional[str] = None
    seed: Optional[int] = None


def build_player_map(players: Iterable[Player]) -> Dict[str, PlayerIdentity]:
    """playerID -> display data. Players without an id cannot be referenced and are skipped."""
    player_map = {}
    for player in players:
        if not player.id:
            continue
        player_map[player.id] = PlayerIdentity(
            name=player.name,
            display_name=player.display_name,
            tag=player.tag,
            seed=player.seed
        )
    return player_map


def build_location_map(locations: Iterable[Location]) -> Dict[str, str]:
    location_map = {}
    for location in locations:
        if location.id and location.name is not None:
            location_map[location.id] = location.name
    return location_map


def profile_details(player: Player) -> dict:
    """Profile fields surfaced at the top level of a player document."""
    details = {}
    profile = player.profile
    if profile:
        if profile.tag:
            details['tag'] = profile.tag
        if profile.pronouns:
            details['pronouns'] = profile.pronouns
        if profile.twitch_handle:
            details['twitchHandle'] = profile.twitch_handle
        if profile.twitter_handle:
            details['twitterHandle'] = profile.twitter_handle
    details['displayName'] = player.display_name
    return details
