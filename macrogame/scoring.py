"""
Event-based scoring for a macrogame session.

Minigames never touch the score. They report named events ('win', 'lose',
'caught_ball', ...) and the ledger prices each event with the point rules of
the flow entry that is active when the event arrives. Events without a rule
are ignored, so authors may report whatever events they like.

Examples:
    >>> flow = [FlowEntry(id='avoid', name='Avoid', point_rules={'win': 100})]
    >>> ledger = ScoringLedger(flow, lambda: 0)
    >>> ledger.report_event('win')
    100
    >>> ledger.report_event('dodged')
    0
    >>> ledger.redeem(150)
    >>> ledger.score
    -50
"""

from dataclasses import dataclass
from typing import Callable, List, Optional, Sequence, Tuple

from models import FlowEntry
from macrogame.logging import get_logger

log = get_logger('scoring')


@dataclass(frozen=True)
class ScoreEntry:
    """One applied line of the ledger.

    Attributes:
        kind: 'event' for a priced event, 'redeem' for a debit
        name: Event name, or a label for the redemption
        points: Signed delta applied to the score
        game_id: Flow entry that priced the event (None for redemptions)
    """
    kind: str
    name: str
    points: int
    game_id: Optional[str] = None


class ScoringLedger:
    """Running score of one session.

    Args:
        flow: The session's ordered flow entries
        active_index: Returns the index of the flow entry currently being played
    """

    def __init__(self, flow: Sequence[FlowEntry], active_index: Callable[[], int]):
        self._flow = tuple(flow)
        self._active_index = active_index
        self._score = 0
        self._entries: List[ScoreEntry] = []

    @property
    def score(self) -> int:
        """Current total. May be negative after redemptions."""
        return self._score

    @property
    def entries(self) -> Tuple[ScoreEntry, ...]:
        """Every applied line since the last reset, oldest first."""
        return tuple(self._entries)

    def _active_entry(self) -> Optional[FlowEntry]:
        index = self._active_index()
        if 0 <= index < len(self._flow):
            return self._flow[index]
        return None

    def report_event(self, event_name: str) -> int:
        """Price an event with the active entry's point rules.

        Returns:
            Points added (0 when no rule matches)
        """
        entry = self._active_entry()
        if entry is None:
            return 0

        points = entry.point_rules.get(event_name)
        if not isinstance(points, int) or isinstance(points, bool):
            log.trace("no rule for event '%s' in '%s'", event_name, entry.id)
            return 0

        self._score += points
        self._entries.append(ScoreEntry(kind='event', name=event_name, points=points, game_id=entry.id))
        log.debug("event '%s' in '%s': %+d (score %d)", event_name, entry.id, points, self._score)
        return points

    def redeem(self, amount: int, label: str = 'redeem') -> None:
        """Debit the score unconditionally. The score may go negative."""
        self._score -= amount
        self._entries.append(ScoreEntry(kind='redeem', name=label, points=-amount))
        log.debug("redeemed %d (score %d)", amount, self._score)

    def reset(self) -> None:
        """Zero the score at the start of a session."""
        self._score = 0
        self._entries.clear()

    def __repr__(self) -> str:
        return f"ScoringLedger(score={self._score}, entries={len(self._entries)})"
