"""Whitelist session state machine.

Turns N pending zone queries for one connection into one cached verdict.
Called at two points of a mail session: on connect (dispatch) and when a
decision is needed (wait, drain, classify).
"""

import logging
from typing import Optional

from src.models.classification import classify_answer
from src.models.connection_state import ConnectionState, WhitelistState
from src.services.logger import NOTICE, log_query_failure, log_verdict
from src.services.pending_set import PendingQuerySet
from src.services.resolver_client import (
    NameNotFoundError,
    QueryFailedError,
    QueryHandle,
    ResolverClient,
    ResourceExhaustedError,
)
from src.utils.ip_utils import build_query_name, is_valid_ipv4


logger = logging.getLogger(__name__)

DEFAULT_WAIT_TIMEOUT = 4.0


class WhitelistSession:
    """Per-deployment controller driving each connection's whitelist check.

    Holds no per-connection data itself; everything lives on the
    ConnectionState passed to each hook.

    Attributes:
        zones: Zone domain to label mapping.
        resolver: Client used to send and read queries.
        wait_timeout: Seconds a single readiness wait may block.
    """

    def __init__(
        self,
        zones: dict[str, str],
        resolver: ResolverClient,
        wait_timeout: float = DEFAULT_WAIT_TIMEOUT,
    ):
        self.zones = dict(zones)
        self.resolver = resolver
        self.wait_timeout = wait_timeout

    def on_connect(self, state: ConnectionState) -> None:
        """Dispatch one TXT query per zone for the connecting client.

        Never blocks on the network. Zones whose query cannot be sent are
        skipped.

        Args:
            state: Fresh state of the connecting session.
        """
        with state.lock:
            if state.state is not WhitelistState.UNCONFIGURED:
                return

            if not self.zones:
                logger.debug("No whitelist zones configured")
                state.state = WhitelistState.UNCONFIGURED
                return

            if not is_valid_ipv4(state.remote_ip):
                logger.debug(f"Skipping whitelist check for non-IPv4 {state.remote_ip}")
                state.state = WhitelistState.UNCONFIGURED
                return

            pending = PendingQuerySet()
            for zone in self.zones:
                qname = build_query_name(state.remote_ip, zone)
                try:
                    handle = self.resolver.send_background(qname, "TXT", zone=zone)
                except ResourceExhaustedError as e:
                    logger.error(f"Could not dispatch whitelist query: {e}")
                    continue
                pending.add(handle)

            if pending.is_empty():
                pending.close()
                state.state = WhitelistState.UNCONFIGURED
                return

            logger.debug(
                f"Dispatched {len(pending)} whitelist queries for {state.remote_ip}"
            )
            state.pending = pending
            state.state = WhitelistState.DISPATCHED

    def on_decision_needed(self, state: ConnectionState) -> Optional[str]:
        """Return the whitelist verdict, resolving it if needed.

        Safe to call any number of times. Once a verdict is found, or every
        zone has answered without one, later calls do no DNS work. A call
        that sees nothing ready within `wait_timeout` returns None but keeps
        the pending queries for the next call.

        Args:
            state: State of the session, as left by `on_connect`.

        Returns:
            Optional[str]: Verdict reason, or None if not whitelisted yet.
        """
        with state.lock:
            if state.state is WhitelistState.RESOLVED:
                return state.verdict
            if state.pending is None:
                return None

            pending = state.pending

            # Each pass either returns or drains at least one handle
            while True:
                ready = pending.wait_ready(self.wait_timeout)
                if not ready:
                    logger.debug(
                        f"No whitelist answers for {state.remote_ip} within "
                        f"{self.wait_timeout}s, {len(pending)} still pending"
                    )
                    return None

                reason = None
                reason_zone = None
                for handle in ready:
                    pending.remove(handle)
                    found = self._read_handle(state, handle)
                    if found is not None and reason is None:
                        reason = found
                        reason_zone = handle.zone

                if reason is not None:
                    abandoned = pending.clear()
                    pending.close()
                    state.pending = None
                    state.verdict = reason
                    state.state = WhitelistState.RESOLVED
                    log_verdict(
                        state.remote_ip,
                        state.state.value,
                        reason,
                        zone=reason_zone,
                        abandoned=abandoned,
                    )
                    return reason

                if pending.is_empty():
                    pending.close()
                    state.pending = None
                    state.state = WhitelistState.EXHAUSTED
                    log_verdict(state.remote_ip, state.state.value, None)
                    return None

    def _read_handle(
        self, state: ConnectionState, handle: QueryHandle
    ) -> Optional[str]:
        """Read one ready handle and classify its answer.

        DNS failures are contained here and never contribute a verdict.
        """
        try:
            answer = self.resolver.read_ready(handle)
        except NameNotFoundError:
            logger.debug(f"{handle.qname} not listed")
            return None
        except QueryFailedError as e:
            log_query_failure(state.remote_ip, handle.qname, str(e))
            return None

        reason = classify_answer(answer)
        if reason is not None:
            logger.log(
                NOTICE, f"{state.remote_ip} whitelisted by {handle.zone}: {reason}"
            )
        return reason
