"""Unit tests for the pending query set."""

import socket

import pytest

from src.services.pending_set import PendingQuerySet
from src.services.resolver_client import QueryHandle


@pytest.fixture
def pairs():
    """Socketpair-backed handles; yields (handle, peer) tuples."""
    created = []

    def make(qname):
        ours, peer = socket.socketpair()
        ours.setblocking(False)
        handle = QueryHandle(qname=qname, rdtype="TXT", zone=None, sock=ours)
        created.append((handle, peer))
        return handle, peer

    yield make
    for handle, peer in created:
        handle.close()
        peer.close()


@pytest.fixture
def pending():
    pending = PendingQuerySet()
    yield pending
    pending.close()


def test_empty_set(pending):
    """Test a new set is empty and waits return nothing immediately."""
    assert pending.is_empty() is True
    assert len(pending) == 0
    assert pending.wait_ready(0.01) == set()


def test_add_and_contains(pending, pairs):
    handle, _ = pairs("4.3.2.1.a.example")

    pending.add(handle)

    assert handle in pending
    assert len(pending) == 1
    assert pending.is_empty() is False


def test_add_duplicate_raises(pending, pairs):
    """Test a handle cannot be held twice."""
    handle, _ = pairs("4.3.2.1.a.example")
    pending.add(handle)

    with pytest.raises(ValueError, match="already pending"):
        pending.add(handle)


def test_wait_ready_times_out_with_nothing_ready(pending, pairs):
    handle, _ = pairs("4.3.2.1.a.example")
    pending.add(handle)

    assert pending.wait_ready(0.05) == set()
    assert handle in pending


def test_wait_ready_returns_every_ready_handle(pending, pairs):
    """Test one wait surfaces all readable handles at once."""
    first, first_peer = pairs("4.3.2.1.a.example")
    second, second_peer = pairs("4.3.2.1.b.example")
    idle, _ = pairs("4.3.2.1.c.example")
    for handle in (first, second, idle):
        pending.add(handle)

    first_peer.send(b"\x00")
    second_peer.send(b"\x00")

    assert pending.wait_ready(1.0) == {first, second}


def test_removed_handles_are_never_returned(pending, pairs):
    """Test repeated waits against a shrinking set."""
    first, first_peer = pairs("4.3.2.1.a.example")
    second, second_peer = pairs("4.3.2.1.b.example")
    pending.add(first)
    pending.add(second)
    first_peer.send(b"\x00")

    assert pending.wait_ready(1.0) == {first}
    pending.remove(first)

    # first is still readable but no longer held
    assert pending.wait_ready(0.05) == set()

    second_peer.send(b"\x00")
    assert pending.wait_ready(1.0) == {second}


def test_remove_does_not_close(pending, pairs):
    handle, _ = pairs("4.3.2.1.a.example")
    pending.add(handle)

    pending.remove(handle)
    pending.remove(handle)  # no-op

    assert pending.is_empty() is True
    assert handle.closed is False


def test_clear_abandons_and_closes(pending, pairs):
    """Test abandoning outstanding handles releases their sockets."""
    first, _ = pairs("4.3.2.1.a.example")
    second, _ = pairs("4.3.2.1.b.example")
    pending.add(first)
    pending.add(second)

    assert pending.clear() == 2

    assert pending.is_empty() is True
    assert first.closed is True
    assert second.closed is True


def test_iteration_is_a_snapshot(pending, pairs):
    handle, _ = pairs("4.3.2.1.a.example")
    pending.add(handle)

    for held in pending:
        pending.remove(held)

    assert pending.is_empty() is True
