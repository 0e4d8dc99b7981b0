"""Final result of a chip test run."""

from __future__ import annotations

from dataclasses import dataclass, field
from typing import Any

from chipqc.contracts.enums import RunStatus
from chipqc.contracts.types import ChannelID


@dataclass(frozen=True, slots=True)
class ChipTestResult:
    """Success/failure partition of the tested channels.

    Derived from an event log by ``chipqc.reporting.summarize``; never
    built incrementally.

    Attributes:
        status: How the run ended
        success_route: Channels visited successfully, in order (includes reroutes)
        success_electrodes: Unique channels liquid reached (sorted)
        failed_electrodes: Planned channels liquid never reached (sorted).
            For runs that did not complete this is limited to channels
            that failed or were skipped, so untested channels are not
            reported as bad.
        skipped_electrodes: Channels pruned as unreachable (sorted)
        remaining_route: Untraversed route of an interrupted run
    """

    status: RunStatus
    success_route: tuple[ChannelID, ...]
    success_electrodes: tuple[ChannelID, ...]
    failed_electrodes: tuple[ChannelID, ...]
    skipped_electrodes: tuple[ChannelID, ...] = ()
    remaining_route: tuple[ChannelID, ...] = field(default=())

    @property
    def passed(self) -> bool:
        """True when the run completed with no failed channels."""
        return self.status == RunStatus.COMPLETED and not self.failed_electrodes

    def to_dict(self) -> dict[str, Any]:
        return {
            "status": self.status.value,
            "success_route": list(self.success_route),
            "success_electrodes": list(self.success_electrodes),
            "failed_electrodes": list(self.failed_electrodes),
            "skipped_electrodes": list(self.skipped_electrodes),
            "remaining_route": list(self.remaining_route),
        }
