"""
Structured diagnostics.

The engine never logs data-quality problems directly from deep inside the filter
pipeline; it hands a DiagnosticEvent to whatever hook the caller supplied.
"""

import logging
from dataclasses import dataclass, field
from typing import Any, Callable, Dict, List, Optional

logger = logging.getLogger(__name__)

DUAL_TAGGED_SPLIT = "dual_tagged_split"
TIME_BUDGET_UNMET = "time_budget_unmet"
VOLUME_CAP_TRIMMED = "volume_cap_trimmed"


@dataclass(frozen=True)
class DiagnosticEvent:
    code: str
    message: str
    context: Dict[str, Any] = field(default_factory=dict, hash=False)


DiagnosticHook = Callable[[DiagnosticEvent], None]


def log_diagnostic(event: DiagnosticEvent) -> None:
    """Default hook: forward to the module logger as a warning."""
    logger.warning("[%s] %s", event.code, event.message)


class DiagnosticCollector:
    """Hook that keeps every event it receives (handy for callers and tests)."""

    def __init__(self, forward: Optional[DiagnosticHook] = None):
        self.events: List[DiagnosticEvent] = []
        self._forward = forward

    def __call__(self, event: DiagnosticEvent) -> None:
        self.events.append(event)
        if self._forward is not None:
            self._forward(event)

    def codes(self) -> List[str]:
        return [event.code for event in self.events]
