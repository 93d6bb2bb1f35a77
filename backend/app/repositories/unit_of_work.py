"""
repositories/unit_of_work.py — All-or-nothing execution of multi-step writes.

Club approval, leaving a club, deleting a club or an event and replacing an
event's cities each touch several tables. The steps run inside one SAVEPOINT:
if any step raises, every earlier step is rolled back and the exception
propagates unchanged to the caller (and from there to the global error
handler). The outer transaction is still committed by the route.
"""

from __future__ import annotations

import logging
from typing import Any, Callable, Sequence

from sqlalchemy.orm import Session

logger = logging.getLogger(__name__)

Step = Callable[[], Any]


def run_atomically(session: Session, steps: Sequence[Step]) -> list[Any]:
    """
    Runs each zero-argument callable in order inside session.begin_nested().

    Returns the list of step results, in order.
    """
    results: list[Any] = []
    try:
        with session.begin_nested():
            for step in steps:
                results.append(step())
    except Exception:
        logger.warning(
            "Atomic unit rolled back after %d of %d steps.",
            len(results),
            len(steps),
        )
        raise
    return results
