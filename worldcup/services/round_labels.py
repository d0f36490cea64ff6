"""
Round labels keyed by remaining rounds.

remaining_rounds = total_rounds - round + 1 for a match; a round with r
remaining rounds is the "round of 2**r". Zero remaining rounds is the
champion (won the final). Defined for any power of two:
  0 -> champion, 1 -> final, 2 -> semifinal, 3 -> quarterfinal,
  4 -> round of 16, 5 -> round of 32, ...
"""
from __future__ import annotations

from dataclasses import dataclass
from typing import List, Optional

from worldcup.services.errors import InvalidInputError

CHAMPION = 0
FINAL = 1
SEMIFINAL = 2
QUARTERFINAL = 3

_NAMED = {
    CHAMPION: ("champion", "Champion"),
    FINAL: ("final", "Final"),
    SEMIFINAL: ("semifinal", "Semifinal"),
    QUARTERFINAL: ("quarterfinal", "Quarterfinal"),
}


@dataclass(frozen=True)
class RoundLabel:
    remaining_rounds: int

    @property
    def name(self) -> str:
        if self.remaining_rounds in _NAMED:
            return _NAMED[self.remaining_rounds][0]
        return f"round_of_{self.participants}"

    @property
    def title(self) -> str:
        if self.remaining_rounds in _NAMED:
            return _NAMED[self.remaining_rounds][1]
        return f"Round of {self.participants}"

    @property
    def participants(self) -> int:
        """Items still alive when this round is played (1 for the champion)."""
        return 2 ** self.remaining_rounds

    @property
    def priority(self) -> int:
        """Higher is better: champion > final > semifinal > ..."""
        return -self.remaining_rounds

    def __str__(self) -> str:
        return self.name


def round_label(remaining_rounds: int) -> RoundLabel:
    if remaining_rounds < 0:
        raise InvalidInputError(f"remaining_rounds must be >= 0, got {remaining_rounds}")
    return RoundLabel(remaining_rounds)


def label_for_match(round_number: int, total_rounds: int) -> RoundLabel:
    """Label of the round a match is played in."""
    if round_number < 1 or round_number > total_rounds:
        raise InvalidInputError(f"round {round_number} outside 1..{total_rounds}")
    return round_label(total_rounds - round_number + 1)


def label_priority(label: Optional[RoundLabel]) -> int:
    """Sort priority; an item that never played ranks below every real label."""
    if label is None:
        return -(10**9)
    return label.priority


@dataclass
class BracketSizeOption:
    size: int
    title: str
    bye_count: int


def bracket_size_options(item_count: int, min_size: int = 4, max_size: int = 1024) -> List[BracketSizeOption]:
    """Selectable bracket sizes for a pool of item_count items, largest first.

    Sizes are powers of two from min_size up to the smallest power of two that
    holds every item. A size below item_count plays a random subset; a size
    above it is padded with byes.
    """
    options: List[BracketSizeOption] = []
    if item_count < 2:
        return options

    upper = 1
    while upper < item_count:
        upper *= 2
    upper = min(upper, max_size)

    size = 2
    while size <= upper:
        if size >= min_size:
            rounds = size.bit_length() - 1
            options.append(
                BracketSizeOption(
                    size=size,
                    title=RoundLabel(rounds).title,
                    bye_count=max(0, size - item_count),
                )
            )
        size *= 2

    options.reverse()
    return options
