"""pytest fixtures for testing."""

import socket

import pytest

from src.models.dns_answer import Answer, RecordType, ResourceRecord
from src.services.resolver_client import QueryHandle, ResourceExhaustedError


class FakeResolver:
    """Resolver double backed by socketpairs.

    Each dispatched query gets a real socket so PendingQuerySet can select
    on it; `respond()` scripts the outcome and makes the socket readable.
    """

    def __init__(self, fail_dispatch=()):
        self.fail_dispatch = set(fail_dispatch)
        self.sent: list[QueryHandle] = []
        self.reads: list[str] = []
        self._outcomes = {}
        self._peers = {}

    def send_background(self, qname, rdtype="TXT", zone=None):
        if qname in self.fail_dispatch:
            raise ResourceExhaustedError(f"Cannot open socket for {qname}")

        ours, peer = socket.socketpair()
        ours.setblocking(False)
        handle = QueryHandle(qname=qname, rdtype=rdtype, zone=zone, sock=ours)
        self.sent.append(handle)
        self._peers[qname] = peer
        return handle

    def respond(self, qname, outcome):
        """Script the outcome for qname and wake its handle."""
        self._outcomes[qname] = outcome
        self._peers[qname].send(b"\x00")

    def read_ready(self, handle):
        self.reads.append(handle.qname)
        handle.close()
        outcome = self._outcomes[handle.qname]
        if isinstance(outcome, Exception):
            raise outcome
        return outcome

    def handle_for(self, qname):
        return next(h for h in self.sent if h.qname == qname)

    def close(self):
        for peer in self._peers.values():
            peer.close()
        for handle in self.sent:
            handle.close()


def txt_answer(qname, text):
    """Answer holding a single TXT record."""
    return Answer(
        qname=qname,
        records=[ResourceRecord(name=qname, rtype=RecordType.TXT, text=text)],
    )


def a_answer(qname, name=None):
    """Answer holding a single A record."""
    return Answer(
        qname=qname,
        records=[ResourceRecord(name=name or qname, rtype=RecordType.A)],
    )


@pytest.fixture
def fake_resolver():
    """Socketpair-backed resolver double."""
    resolver = FakeResolver()
    yield resolver
    resolver.close()


@pytest.fixture
def sample_zones():
    """Two whitelist zones, in file order."""
    return {"a.example": "zone-a", "b.example": "zone-b"}


@pytest.fixture(name="txt_answer")
def txt_answer_fixture():
    """Builder for single-TXT answers."""
    return txt_answer


@pytest.fixture(name="a_answer")
def a_answer_fixture():
    """Builder for single-A answers."""
    return a_answer


@pytest.fixture
def resolver_factory():
    """Build FakeResolvers with scripted dispatch failures."""
    created = []

    def make(fail_dispatch=()):
        resolver = FakeResolver(fail_dispatch=fail_dispatch)
        created.append(resolver)
        return resolver

    yield make
    for resolver in created:
        resolver.close()
