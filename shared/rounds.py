from enum import Enum
from typing import Optional, Dict
from dataclasses import dataclass


DOUBLE_ELIMINATION = "double_elimination"
ROUND_ROBIN = "round_robin"


class BracketType(str, Enum):
    WINNERS = "winners"
    LOSERS = "losers"
    MAIN = "main"


@dataclass(frozen=True)
class RoundKey:
    """A signed round number resolved into its bracket side and local number."""
    bracket_type: BracketType
    number: int

    @property
    def is_losers(self) -> bool:
        return self.bracket_type == BracketType.LOSERS

    @property
    def sort_key(self) -> tuple:
        # Winners/main rounds first, then losers; ascending within a side
        return (1 if self.is_losers else 0, self.number)


def classify_round(round_num: int, format_type: Optional[str]) -> RoundKey:
    if format_type == DOUBLE_ELIMINATION:
        bracket_type = BracketType.LOSERS if round_num < 0 else BracketType.WINNERS
    else:
        bracket_type = BracketType.MAIN
    return RoundKey(bracket_type, abs(round_num))


DEPTH_NAMES = {
    1: "Finals",
    2: "Semifinals",
    3: "Quarterfinals",
}


def round_name(key: RoundKey, format_type: Optional[str]) -> str:
    """
    Human name for a bracket round.

    Winners and main rounds are named by distance from the final. Brackets
    whose size is not a power of two still get the nominal "Round of 2^n"
    label. Round robin has no final, so its rounds are just numbered.
    """
    if key.bracket_type == BracketType.LOSERS:
        return f"Losers Round {key.number}"
    if format_type == ROUND_ROBIN:
        return f"Round {key.number}"
    if key.number in DEPTH_NAMES:
        return DEPTH_NAMES[key.number]
    return f"Round of {1 << key.number}"


# ==================== Qualification rounds ====================

@dataclass(frozen=True)
class QualificationRound:
    code: str
    name: str
    description: str
    win_implication: str
    lose_implication: str

    def to_dict(self) -> dict:
        return {
            "code": self.code,
            "name": self.name,
            "description": self.description,
            "win_result": self.win_implication,
            "lose_result": self.lose_implication,
        }


QUALIFICATION_ROUNDS: Dict[str, QualificationRound] = {
    "Q1": QualificationRound(
        "Q1", "Opening",
        "First qualifying match - all competitors start here",
        "Advances to The Cusp (Q2W)",
        "Drops to Redemption (Q2L)",
    ),
    "Q2W": QualificationRound(
        "Q2W", "The Cusp",
        "Second match for Opening winners - one win away from qualifying",
        "Qualifies for main bracket",
        "Drops to Bubble (Q3) for last chance",
    ),
    "Q2L": QualificationRound(
        "Q2L", "Redemption",
        "Second chance for Opening losers",
        "Advances to Bubble (Q3) for last chance",
        "Eliminated from tournament",
    ),
    "Q3": QualificationRound(
        "Q3", "Bubble",
        "Final qualifying round - last chance to make the bracket",
        "Qualifies for main bracket",
        "Eliminated from tournament",
    ),
}


def qualification_round(game_name: Optional[str]) -> Optional[QualificationRound]:
    """Exact, case-sensitive match of a game name against the qualification codes."""
    if not game_name:
        return None
    return QUALIFICATION_ROUNDS.get(game_name)


def round_info(round_code: str) -> QualificationRound:
    """Lenient lookup used by the explanation view; unknown codes are bracket rounds."""
    found = QUALIFICATION_ROUNDS.get((round_code or "").upper())
    if found:
        return found
    return QualificationRound(
        round_code, round_code,
        "Main bracket round",
        "Advances to next round",
        "Eliminated from tournament",
    )


QUALIFICATION_PATH = """NHRL Tournament Qualification System:

1. OPENING (Q1): All competitors start here
   - Win -> Advance to THE CUSP (Q2W)
   - Lose -> Drop to REDEMPTION (Q2L)

2. THE CUSP (Q2W): For Opening winners
   - Win -> QUALIFY FOR BRACKET
   - Lose -> Drop to BUBBLE (Q3) for last chance

3. REDEMPTION (Q2L): Second chance for Opening losers
   - Win -> Advance to BUBBLE (Q3)
   - Lose -> ELIMINATED

4. BUBBLE (Q3): Final qualifying round
   - Win -> QUALIFY FOR BRACKET
   - Lose -> ELIMINATED

Once qualified, competitors enter the main single-elimination bracket."""


ROUND_CODE_SUMMARIES = {
    "Q1": "Opening - First qualifying match",
    "Q2W": "The Cusp - For Opening winners",
    "Q2L": "Redemption - For Opening losers",
    "Q3": "Bubble - Final qualifying round",
}


def qualification_system(round_code: Optional[str] = None) -> dict:
    result = {"qualification_system": QUALIFICATION_PATH}
    if round_code:
        result["specific_round"] = round_info(round_code).to_dict()
    else:
        result["round_codes"] = dict(ROUND_CODE_SUMMARIES)
    return result
