"""
Typed views over the records returned by the tournament service.

Records arrive as loosely shaped JSON. Each ``from_dict`` reads the fields it
knows, turns anything missing or of the wrong type into ``None`` and keeps the
untouched original in ``raw`` so enriched documents can be built additively.
Only a record that is not a JSON object at all raises ``MalformedRecord``.
"""
import logging
from enum import Enum
from dataclasses import dataclass, field
from typing import Any, Dict, List, Optional

from .errors import MalformedRecord

logger = logging.getLogger(__name__)

# Slot score meaning "has not competed yet"; never a real result.
SCORE_NOT_COMPETED = -1


class GameState(str, Enum):
    UNAVAILABLE = "unavailable"
    AVAILABLE = "available"
    CALLED = "called"
    ACTIVE = "active"
    HOLD = "hold"
    DONE = "done"

    @classmethod
    def parse(cls, value: Any) -> Optional["GameState"]:
        try:
            return cls(value)
        except ValueError:
            return None


def as_int(value: Any) -> Optional[int]:
    """JSON numbers come back as int or float; bools are not numbers here."""
    if isinstance(value, bool):
        return None
    if isinstance(value, int):
        return value
    if isinstance(value, float) and value.is_integer():
        return int(value)
    return None


def as_str(value: Any) -> Optional[str]:
    if isinstance(value, str):
        return value
    return None


def as_bool(value: Any) -> bool:
    return value is True


def _require_mapping(kind: str, data: Any) -> dict:
    if not isinstance(data, dict):
        raise MalformedRecord(kind, f"Expected a {kind} object, got {type(data).__name__}")
    return data


@dataclass
class ProfileInfo:
    tag: Optional[str] = None
    name: Optional[str] = None
    pronouns: Optional[str] = None
    twitch_handle: Optional[str] = None
    twitter_handle: Optional[str] = None

    @classmethod
    def from_dict(cls, data: Any) -> Optional["ProfileInfo"]:
        if not isinstance(data, dict):
            return None
        return cls(
            tag=as_str(data.get("tag")),
            name=as_str(data.get("name")),
            pronouns=as_str(data.get("pronouns")),
            twitch_handle=as_str(data.get("twitchHandle")),
            twitter_handle=as_str(data.get("twitterHandle")),
        )


@dataclass
class Player:
    id: Optional[str]
    name: Optional[str] = None
    seed: Optional[int] = None
    wins: int = 0
    losses: int = 0
    ties: int = 0
    is_bye: bool = False
    is_disqualified: bool = False
    placement: Optional[int] = None
    profile: Optional[ProfileInfo] = None
    raw: Dict[str, Any] = field(default_factory=dict)

    @property
    def tag(self) -> Optional[str]:
        if self.profile and self.profile.tag:
            return self.profile.tag
        return None

    @property
    def display_name(self) -> Optional[str]:
        return self.tag or self.name

    @classmethod
    def from_dict(cls, data: Any) -> "Player":
        data = _require_mapping("player", data)
        return cls(
            id=as_str(data.get("id")),
            name=as_str(data.get("name")),
            seed=as_int(data.get("seed")),
            wins=as_int(data.get("wins")) or 0,
            losses=as_int(data.get("losses")) or 0,
            ties=as_int(data.get("ties")) or 0,
            is_bye=as_bool(data.get("isBye")),
            is_disqualified=as_bool(data.get("isDisqualified")),
            placement=as_int(data.get("placement")),
            profile=ProfileInfo.from_dict(data.get("profileInfo")),
            raw=dict(data),
        )


@dataclass
class Location:
    id: Optional[str]
    name: Optional[str] = None
    active_game_id: Optional[str] = None
    queue: List[str] = field(default_factory=list)
    raw: Dict[str, Any] = field(default_factory=dict)

    @classmethod
    def from_dict(cls, data: Any) -> "Location":
        data = _require_mapping("location", data)
        queue = data.get("queue")
        return cls(
            id=as_str(data.get("id")),
            name=as_str(data.get("name")),
            active_game_id=as_str(data.get("activeGameID")) or None,
            queue=[q for q in queue if isinstance(q, str)] if isinstance(queue, list) else [],
            raw=dict(data),
        )


@dataclass
class GameSlot:
    slot_idx: Optional[int]
    game_id: Optional[str] = None
    player_id: Optional[str] = None
    score: Optional[int] = None
    slot_state: Optional[str] = None
    prev_game_id: Optional[str] = None
    raw: Dict[str, Any] = field(default_factory=dict)

    @property
    def has_competed(self) -> bool:
        return self.score is not None and self.score != SCORE_NOT_COMPETED

    @classmethod
    def from_dict(cls, data: Any) -> "GameSlot":
        data = _require_mapping("slot", data)
        return cls(
            slot_idx=as_int(data.get("slotIdx")),
            game_id=as_str(data.get("gameID")),
            player_id=as_str(data.get("playerID")) or None,
            score=as_int(data.get("score")),
            slot_state=as_str(data.get("slotState")),
            prev_game_id=as_str(data.get("prevGameID")),
            raw=dict(data),
        )


@dataclass
class Game:
    id: Optional[str]
    name: str = ""
    round: Optional[int] = None
    bracket_id: Optional[str] = None
    state: Optional[GameState] = None
    slots: List[Optional[GameSlot]] = field(default_factory=list)
    score_to_win: Optional[int] = None
    location_id: Optional[str] = None
    result_annotation: Optional[str] = None
    winner_placement: Optional[int] = None
    loser_placement: Optional[int] = None
    raw: Dict[str, Any] = field(default_factory=dict)

    @property
    def is_done(self) -> bool:
        return self.state == GameState.DONE

    @property
    def is_active(self) -> bool:
        return self.state in (GameState.ACTIVE, GameState.CALLED)

    @classmethod
    def from_dict(cls, data: Any) -> "Game":
        data = _require_mapping("game", data)

        slots = []
        raw_slots = data.get("slots")
        if isinstance(raw_slots, list):
            for raw_slot in raw_slots:
                try:
                    slots.append(GameSlot.from_dict(raw_slot))
                except MalformedRecord:
                    slots.append(None)

        return cls(
            id=as_str(data.get("id")),
            name=as_str(data.get("name")) or "",
            round=as_int(data.get("round")),
            bracket_id=as_str(data.get("bracketID")),
            state=GameState.parse(data.get("state")),
            slots=slots,
            score_to_win=as_int(data.get("scoreToWin")),
            location_id=as_str(data.get("locationID")) or None,
            result_annotation=as_str(data.get("resultAnnotation")),
            winner_placement=as_int(data.get("winnerPlacement")),
            loser_placement=as_int(data.get("loserPlacement")),
            raw=dict(data),
        )


def parse_records(kind: str, records: Any, parser) -> list:
    """Parse a collection, skipping (and logging) entries that are not objects."""
    if not isinstance(records, list):
        return []

    parsed = []
    for record in records:
        try:
            parsed.append(parser(record))
        except MalformedRecord as e:
            logger.warning(f"Skipping {kind}: {e}")
    return parsed


@dataclass
class Tournament:
    id: Optional[str]
    title: Optional[str] = None
    format_type: Optional[str] = None
    players: List[Player] = field(default_factory=list)
    locations: List[Location] = field(default_factory=list)
    games: List[Game] = field(default_factory=list)
    start_time: Any = None
    end_time: Any = None
    raw: Dict[str, Any] = field(default_factory=dict)

    @property
    def status(self) -> str:
        if self.end_time is not None:
            return "completed"
        if self.start_time is not None:
            return "in_progress"
        return "pending"

    @classmethod
    def from_dict(cls, data: Any) -> "Tournament":
        data = _require_mapping("tournament", data)
        fmt = data.get("format")
        return cls(
            id=as_str(data.get("id")),
            title=as_str(data.get("title")),
            format_type=as_str(fmt.get("type")) if isinstance(fmt, dict) else None,
            players=parse_records("player", data.get("players"), Player.from_dict),
            locations=parse_records("location", data.get("locations"), Location.from_dict),
            games=parse_records("game", data.get("games"), Game.from_dict),
            start_time=data.get("startTime"),
            end_time=data.get("endTime"),
            raw=dict(data),
        )
