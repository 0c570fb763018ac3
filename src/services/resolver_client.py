"""Background DNS resolver client for whitelist zone queries.

Queries are sent on their own non-blocking UDP socket and read back only
once the caller has seen the socket become readable, so dispatching never
waits on the network.
"""

import itertools
import logging
import socket
import time
from dataclasses import dataclass
from typing import Optional

import dns.exception
import dns.inet
import dns.message
import dns.query
import dns.rcode
import dns.rdatatype
import dns.resolver

from src.models.dns_answer import Answer


logger = logging.getLogger(__name__)


class WhitelistDNSError(Exception):
    """Base class for whitelist DNS failures."""


class ResourceExhaustedError(WhitelistDNSError):
    """A query could not be dispatched (bad name, no socket, send failure)."""


class QueryFailedError(WhitelistDNSError):
    """Transport or server-side failure while reading an answer."""


class NameNotFoundError(WhitelistDNSError):
    """Negative answer (NXDOMAIN): the name is not listed."""


@dataclass(eq=False)
class QueryHandle:
    """One in-flight query.

    Owns its socket until `close()`. Handles compare by identity so they
    can live in sets and be registered with a selector via `fileno()`.

    Attributes:
        qname: Query name that was sent.
        rdtype: Record type text ("TXT" or "A").
        zone: Whitelist zone the query belongs to, if known.
        sock: Non-blocking UDP socket the answer will arrive on.
        query: Outgoing message, used to match the response.
        destination: (nameserver, port) the query was sent to.
    """

    qname: str
    rdtype: str
    zone: Optional[str]
    sock: socket.socket
    query: Optional[dns.message.Message] = None
    destination: Optional[tuple] = None

    def fileno(self) -> int:
        return self.sock.fileno()

    @property
    def closed(self) -> bool:
        return self.sock.fileno() == -1

    def close(self) -> None:
        """Release the socket. Safe to call more than once."""
        self.sock.close()


class ResolverClient:
    """Sends whitelist queries in the background and parses ready answers.

    Does not manage timing across queries; see PendingQuerySet.
    """

    def __init__(
        self,
        nameservers: Optional[list[str]] = None,
        port: int = 53,
        read_timeout: float = 1.0,
    ):
        """Initialize the client.

        Args:
            nameservers: Nameserver addresses; defaults to the system
                resolver configuration.
            port: Nameserver port.
            read_timeout: Seconds allowed to read an already-ready socket.

        Raises:
            ValueError: If no nameserver is configured.
        """
        if not nameservers:
            try:
                nameservers = list(dns.resolver.Resolver().nameservers)
            except dns.resolver.NoResolverConfiguration as e:
                raise ValueError(f"No system resolver configuration: {e}") from e
        if not nameservers:
            raise ValueError("At least one nameserver is required")

        self.nameservers = [str(ns) for ns in nameservers]
        self.port = port
        self.read_timeout = read_timeout
        self._next_nameserver = itertools.cycle(self.nameservers)

    def send_background(
        self, qname: str, rdtype: str = "TXT", zone: Optional[str] = None
    ) -> QueryHandle:
        """Send a query without waiting for the answer.

        Args:
            qname: Name to query.
            rdtype: Record type ("TXT" or "A").
            zone: Whitelist zone, kept on the handle for reporting.

        Returns:
            QueryHandle: Handle owning the socket the answer arrives on.

        Raises:
            ResourceExhaustedError: If the query name is malformed, no
                socket could be opened or the query could not be sent.
        """
        try:
            query = dns.message.make_query(qname, dns.rdatatype.from_text(rdtype))
        except dns.exception.DNSException as e:
            raise ResourceExhaustedError(f"Cannot build query {qname}: {e}") from e

        nameserver = next(self._next_nameserver)
        destination = (nameserver, self.port)

        try:
            sock = socket.socket(dns.inet.af_for_address(nameserver), socket.SOCK_DGRAM)
        except OSError as e:
            raise ResourceExhaustedError(f"Cannot open socket for {qname}: {e}") from e

        try:
            sock.setblocking(False)
            dns.query.send_udp(
                sock, query, destination, expiration=time.time() + self.read_timeout
            )
        except (OSError, dns.exception.Timeout) as e:
            sock.close()
            raise ResourceExhaustedError(f"Cannot send query {qname}: {e}") from e

        logger.debug(f"Sent {rdtype} query for {qname} to {nameserver}")
        return QueryHandle(
            qname=qname,
            rdtype=rdtype,
            zone=zone,
            sock=sock,
            query=query,
            destination=destination,
        )

    def read_ready(self, handle: QueryHandle) -> Answer:
        """Read and parse the answer of a readable handle.

        Consumes the handle: its socket is closed whatever the outcome.

        Args:
            handle: Handle whose socket was reported readable.

        Returns:
            Answer: Parsed answer section (possibly empty).

        Raises:
            NameNotFoundError: On NXDOMAIN.
            QueryFailedError: On any other failure.
        """
        try:
            response, _ = dns.query.receive_udp(
                handle.sock,
                handle.destination,
                expiration=time.time() + self.read_timeout,
                ignore_unexpected=True,
                query=handle.query,
            )
        except (dns.exception.DNSException, OSError) as e:
            raise QueryFailedError(f"{handle.qname}: {type(e).__name__} {e}") from e
        finally:
            handle.close()

        rcode = response.rcode()
        if rcode == dns.rcode.NXDOMAIN:
            raise NameNotFoundError(handle.qname)
        if rcode != dns.rcode.NOERROR:
            raise QueryFailedError(f"{handle.qname}: {dns.rcode.to_text(rcode)}")

        return Answer.from_message(handle.qname, response)
