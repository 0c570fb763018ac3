"""Per-connection whitelist state."""

import threading
from dataclasses import dataclass, field
from enum import Enum
from typing import TYPE_CHECKING, Optional

if TYPE_CHECKING:
    from src.services.pending_set import PendingQuerySet


class WhitelistState(Enum):
    """Lifecycle of one connection's whitelist check.

    UNCONFIGURED and EXHAUSTED both mean "no verdict, permanently".
    """

    UNCONFIGURED = "UNCONFIGURED"  # No zones, or nothing could be queried
    DISPATCHED = "DISPATCHED"  # Queries in flight
    RESOLVED = "RESOLVED"  # Verdict recorded
    EXHAUSTED = "EXHAUSTED"  # Every zone answered without a hit


@dataclass
class ConnectionState:
    """Whitelist state carried between the two session hooks.

    Created when the mail session connects and dropped when it ends.
    Only WhitelistSession mutates `state`, `pending` and `verdict`.

    Attributes:
        remote_ip: Address of the connecting client.
        state: Current lifecycle state.
        pending: Outstanding queries; None once resolved or exhausted.
        verdict: Reason string once RESOLVED, else None.
        lock: Serializes the hooks for this connection.
    """

    remote_ip: str
    state: WhitelistState = WhitelistState.UNCONFIGURED
    pending: Optional["PendingQuerySet"] = None
    verdict: Optional[str] = None
    lock: threading.Lock = field(default_factory=threading.Lock, repr=False)

    def is_terminal(self) -> bool:
        """Check whether no further DNS work will ever happen.

        Returns:
            bool: True unless queries are still pending.
        """
        return self.state is not WhitelistState.DISPATCHED

    def is_whitelisted(self) -> bool:
        return self.state is WhitelistState.RESOLVED
