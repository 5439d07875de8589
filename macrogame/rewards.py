"""
Reward board for the end (conversion) screen.

Each method on the conversion screen may be gated:

- on_success: locked until the referenced method instance is completed
- on_points: a purchase; locked until bought for point_costs[instance_id]
- point_threshold: locked while the score is below point_costs[instance_id]

A point_threshold gate whose cost is missing or 0 stays locked; an on_points
method with no cost is a free purchase. Purchases debit the score through the
ledger, the only mutation path besides reported events.
"""
from dataclasses import dataclass
from typing import Dict, List, Mapping, Optional, Set

from models import ConversionScreen, GateType, ScreenMethod
from macrogame.logging import get_logger
from macrogame.scoring import ScoringLedger

log = get_logger('rewards')


@dataclass(frozen=True)
class MethodStatus:
    """Lock state of one conversion method."""
    instance_id: str
    name: str
    locked: bool
    point_cost: int = 0
    can_afford: bool = False
    completed: bool = False


class RewardBoard:
    """Evaluates conversion method gates against the running score.

    Args:
        screen: The session's conversion screen
        ledger: Ledger holding the score
        point_costs: Method instance id -> point cost
    """

    def __init__(self, screen: ConversionScreen, ledger: ScoringLedger, point_costs: Mapping[str, int]):
        self._screen = screen
        self._ledger = ledger
        self._costs = dict(point_costs)
        self._completed: Set[str] = set()

    @property
    def screen(self) -> ConversionScreen:
        return self._screen

    @property
    def completed(self) -> Set[str]:
        return set(self._completed)

    def _method(self, instance_id: str) -> Optional[ScreenMethod]:
        return next((m for m in self._screen.methods if m.instance_id == instance_id), None)

    def _status(self, method: ScreenMethod) -> MethodStatus:
        score = self._ledger.score
        cost = self._costs.get(method.instance_id, 0)
        done = method.instance_id in self._completed
        gate = method.gate
        can_afford = cost > 0 and score >= cost

        if gate is None:
            locked = False
        elif gate.type == GateType.ON_SUCCESS:
            locked = not gate.method_instance_id or gate.method_instance_id not in self._completed
        elif gate.type == GateType.ON_POINTS:
            locked = not done
            can_afford = score >= cost
        else:
            locked = cost <= 0 or score < cost

        return MethodStatus(
            instance_id=method.instance_id,
            name=method.name,
            locked=locked,
            point_cost=cost,
            can_afford=can_afford,
            completed=done,
        )

    def statuses(self) -> List[MethodStatus]:
        """Status of every method, in screen order."""
        return [self._status(method) for method in self._screen.methods]

    def status(self, instance_id: str) -> Optional[MethodStatus]:
        method = self._method(instance_id)
        return self._status(method) if method is not None else None

    def complete(self, instance_id: str) -> None:
        """Mark a method as completed (unlocks on_success gates that reference it)."""
        if self._method(instance_id) is None:
            log.warning("complete(): no method '%s' on screen '%s'", instance_id, self._screen.id)
            return
        self._completed.add(instance_id)
        log.debug("Method '%s' completed", instance_id)

    def purchase(self, instance_id: str) -> bool:
        """Buy an on_points method. Returns False when unknown or unaffordable."""
        method = self._method(instance_id)
        if method is None or method.gate is None or method.gate.type != GateType.ON_POINTS:
            log.warning("purchase(): '%s' is not a point purchase", instance_id)
            return False
        if instance_id in self._completed:
            return True

        cost = self._costs.get(instance_id, 0)
        if self._ledger.score < cost:
            log.debug("Cannot purchase '%s': cost %d, score %d", instance_id, cost, self._ledger.score)
            return False

        if cost > 0:
            self._ledger.redeem(cost, label=f"purchase:{instance_id}")
        self._completed.add(instance_id)
        log.info("Purchased '%s' for %d points", instance_id, cost)
        return True

    def costs(self) -> Dict[str, int]:
        return dict(self._costs)

    def activate(self, instance_id: str) -> bool:
        """Act on a method the player picked on the end screen.

        on_points methods are purchased; other unlocked methods are marked
        completed. Returns False when nothing happened.
        """
        method = self._method(instance_id)
        if method is None:
            log.warning("activate(): no method '%s' on screen '%s'", instance_id, self._screen.id)
            return False
        if method.gate is not None and method.gate.type == GateType.ON_POINTS:
            return self.purchase(instance_id)
        if self._status(method).locked:
            log.debug("'%s' is locked", instance_id)
            return False
        self.complete(instance_id)
        return True

    def reset(self) -> None:
        """Forget completed methods and purchases (session restart)."""
        self._completed.clear()
