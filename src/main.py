"""Command-line entry point for the DNS whitelist resolver.

Usage: python -m src.main IP [IP ...]
"""

import logging
import sys
import time
from typing import Optional

from src.config import Config
from src.models.connection_state import ConnectionState
from src.services.logger import setup_logging
from src.services.resolver_client import ResolverClient
from src.services.whitelist_session import WhitelistSession


logger = logging.getLogger(__name__)


def check_ip(session: WhitelistSession, ip: str, attempts: int) -> Optional[str]:
    """Run one simulated connection through both session hooks.

    Args:
        session: Configured whitelist session.
        ip: Connecting client address.
        attempts: Maximum calls to on_decision_needed.

    Returns:
        Optional[str]: Verdict reason, or None if not whitelisted.
    """
    ip_start = time.time()
    state = ConnectionState(remote_ip=ip)
    session.on_connect(state)

    verdict = None
    attempt = 0
    for attempt in range(1, attempts + 1):
        verdict = session.on_decision_needed(state)
        if state.is_terminal():
            break

    logger.info(
        "IP check completed",
        extra={
            "remote_ip": ip,
            "state": state.state.value,
            "verdict": verdict,
            "whitelisted": state.is_whitelisted(),
            "attempts": attempt,
            "duration_ms": int((time.time() - ip_start) * 1000),
        },
    )
    return verdict


def main(argv: Optional[list[str]] = None) -> int:
    """Main execution function.

    Args:
        argv: Addresses to check; defaults to sys.argv[1:].

    Returns:
        int: Exit code (0 for success, 1 for fatal error, 2 for usage error).
    """
    ips = sys.argv[1:] if argv is None else argv
    if not ips:
        print("usage: python -m src.main IP [IP ...]", file=sys.stderr)
        return 2

    try:
        config = Config.from_env()
        setup_logging(config.verbose)
        logger.info(
            f"Configuration loaded: {len(config.zones)} whitelist zones configured"
        )

        resolver = ResolverClient(
            nameservers=config.dns_nameservers or None,
            port=config.dns_port,
            read_timeout=config.dns_read_timeout,
        )
        session = WhitelistSession(
            config.zones, resolver, wait_timeout=config.dns_wait_timeout
        )

        for ip in ips:
            verdict = check_ip(session, ip, config.decision_attempts)
            print(f"{ip} {verdict if verdict is not None else '-'}")

        return 0

    except Exception as e:
        # Fatal error handling
        logger.error(f"Fatal error: {e}", exc_info=True)
        return 1


if __name__ == "__main__":
    sys.exit(main())
