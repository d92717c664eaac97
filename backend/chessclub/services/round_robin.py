"""
Round Robin Engine: circle-method pairings scheduled one round per week.

Pipeline for one level group:
1. normalize_players: trim names, drop blank entries, sort deterministically
2. generate_rounds: circle method, BYE appended for odd groups
3. schedule_rounds: round r is played on next Thursday + (r - 1) weeks

Everything here is pure. Persistence lives in schedule_builder.
"""

from __future__ import annotations

import logging
from dataclasses import asdict, dataclass
from datetime import date, datetime, timedelta
from itertools import groupby
from typing import Any, Dict, Iterable, List, Optional, Union

logger = logging.getLogger(__name__)

BYE_NAME = "BYE"

# datetime.weekday() numbering (Monday=0)
THURSDAY = 3


@dataclass(frozen=True)
class PlayerSeed:
    """Lightweight struct for pairing input."""
    id: Optional[int]
    name: str
    level: int

    @property
    def is_bye(self) -> bool:
        return self.id is None and self.name == BYE_NAME


@dataclass(frozen=True)
class Pairing:
    level: int
    round_number: int
    player1_id: Optional[int]
    player1_name: str
    player2_id: Optional[int]
    player2_name: str
    is_bye: bool = False


@dataclass(frozen=True)
class ScheduledMatch:
    level: int
    round_number: int
    player1_id: Optional[int]
    player1_name: str
    player2_id: Optional[int]
    player2_name: str
    is_bye: bool
    date: date

    def to_dict(self) -> Dict[str, Any]:
        data = asdict(self)
        data["date"] = self.date.isoformat()
        return data


Round = List[Pairing]


# =============================================================================
# Date Anchor
# =============================================================================


def next_weekday(reference: Union[date, datetime], weekday: int) -> date:
    """
    Return the first date strictly after *reference* falling on *weekday*.

    Time of day is discarded before the offset is computed, so a Thursday
    evening still anchors on the following Thursday.
    """
    if isinstance(reference, datetime):
        reference = reference.date()
    days_ahead = (weekday - reference.weekday()) % 7 or 7
    return reference + timedelta(days=days_ahead)


def next_thursday(reference: Union[date, datetime]) -> date:
    return next_weekday(reference, THURSDAY)


# =============================================================================
# Pairing Generator
# =============================================================================


def _field(entry: Any, name: str) -> Any:
    if isinstance(entry, dict):
        return entry.get(name)
    return getattr(entry, name, None)


def normalize_players(players: Iterable[Any]) -> List[PlayerSeed]:
    """
    Clean raw player entries into sorted PlayerSeed records.

    Accepts PlayerSeed, ORM rows, or plain dicts carrying id/name/level.
    Entries with a missing or blank name are dropped rather than rejected.

    Order:
    1. level ascending
    2. name ascending
    3. id ascending (nulls last)
    """
    cleaned: List[PlayerSeed] = []
    for entry in players:
        raw_name = _field(entry, "name")
        name = raw_name.strip() if isinstance(raw_name, str) else ""
        if not name:
            logger.debug("Dropping player entry without a name: %r", entry)
            continue
        cleaned.append(PlayerSeed(id=_field(entry, "id"), name=name, level=int(_field(entry, "level"))))

    def sort_key(seed: PlayerSeed):
        return (
            seed.level,
            seed.name,
            # id: nulls last, ascending
            (seed.id is None, seed.id if seed.id is not None else 0),
        )

    return sorted(cleaned, key=sort_key)


def _make_pairing(round_number: int, a: PlayerSeed, b: PlayerSeed, swap: bool) -> Pairing:
    if a.is_bye or b.is_bye:
        real = b if a.is_bye else a
        return Pairing(
            level=real.level,
            round_number=round_number,
            player1_id=real.id,
            player1_name=real.name,
            player2_id=None,
            player2_name=BYE_NAME,
            is_bye=True,
        )

    if swap:
        a, b = b, a
    return Pairing(
        level=a.level,
        round_number=round_number,
        player1_id=a.id,
        player1_name=a.name,
        player2_id=b.id,
        player2_name=b.name,
    )


def generate_rounds(players: Iterable[Any], alternate_sides: bool = True) -> List[Round]:
    """
    Round-robin rounds for one level group using the circle method.

    Seat 0 stays fixed; seat i meets seat n-1-i. After each round the last
    rotating seat moves to the front. Odd groups get a BYE seat at the end,
    so n players yield n-1 rounds (even) or n rounds (odd).

    With alternate_sides, non-bye pairings swap sides on odd-numbered rounds
    so nobody is always listed first. Membership is unaffected.
    """
    seats = normalize_players(players)
    if len(seats) < 2:
        return []

    if len(seats) % 2 == 1:
        seats.append(PlayerSeed(id=None, name=BYE_NAME, level=seats[0].level))

    n = len(seats)
    half = n // 2
    rounds: List[Round] = []

    for round_number in range(1, n):
        swap = alternate_sides and round_number % 2 == 1
        round_pairings = [_make_pairing(round_number, seats[i], seats[n - 1 - i], swap) for i in range(half)]
        rounds.append(round_pairings)
        # Rotate: keep seat 0, move last to second, shift others
        seats = [seats[0]] + [seats[-1]] + seats[1:-1]

    return rounds


# =============================================================================
# Weekly Scheduler
# =============================================================================


def schedule_rounds(
    rounds: Iterable[Round], start_date: Union[date, datetime], weekday: int = THURSDAY
) -> List[ScheduledMatch]:
    """Flatten rounds into dated matches, one round per week from the anchor."""
    anchor = next_weekday(start_date, weekday)

    scheduled: List[ScheduledMatch] = []
    for week, round_pairings in enumerate(rounds):
        match_date = anchor + timedelta(weeks=week)
        for pairing in round_pairings:
            scheduled.append(ScheduledMatch(date=match_date, **asdict(pairing)))
    return scheduled


def build_club_schedule(players: Iterable[Any], start_date: Union[date, datetime]) -> List[ScheduledMatch]:
    """Schedule every level group independently and concatenate by level."""
    seeds = normalize_players(players)

    matches: List[ScheduledMatch] = []
    for level, group in groupby(seeds, key=lambda s: s.level):
        level_matches = schedule_rounds(generate_rounds(list(group)), start_date)
        logger.info("Level %d: %d matches scheduled", level, len(level_matches))
        matches.extend(level_matches)
    return matches
