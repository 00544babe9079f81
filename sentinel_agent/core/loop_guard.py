"""Loop guard — bounds how many steps a branching plan may visit."""

from __future__ import annotations

from collections import Counter
from dataclasses import dataclass


@dataclass
class LoopWarning:
    is_loop: bool
    message: str = ""


class LoopGuard:
    """Counts step visits; trips once the visit budget is spent.

    The default budget for a plan of n steps is 2n + 10 visits.
    """

    def __init__(self, limit: int):
        self.limit = limit
        self.visits = 0
        self._per_position: Counter[int] = Counter()

    @classmethod
    def for_plan(cls, plan_length: int) -> LoopGuard:
        return cls(limit=plan_length * 2 + 10)

    @property
    def tripped(self) -> bool:
        return self.visits >= self.limit

    def visit(self, position: int) -> None:
        self.visits += 1
        self._per_position[position] += 1

    def check(self) -> LoopWarning:
        if not self.tripped:
            return LoopWarning(is_loop=False)
        hottest = self._per_position.most_common(1)
        detail = ""
        if hottest:
            position, count = hottest[0]
            detail = f" Step {position} was visited {count} times."
        return LoopWarning(
            is_loop=True,
            message=f"Plan visited {self.visits} steps (limit {self.limit}).{detail}",
        )
