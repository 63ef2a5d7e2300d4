"""Tests for PeerNode session lifecycle with a mocked tracker."""

from unittest.mock import AsyncMock, Mock

import pytest

from common.types import FileAdvertisement, PeerAddress
from peer.exceptions import NoSourceError, PeerError, TrackerUnavailableError
from peer.heartbeat_service import HeartbeatService
from peer.node import PeerNode
from peer.tracker_client import TrackerClient
from peer.transfer_client import TransferClient
from peer.transfer_session import TransferResult

LOOPBACK = "127.0.0.1"


@pytest.fixture
def tracker():
    mock = AsyncMock(spec=TrackerClient)
    mock.base_url = "http://tracker:5001"
    mock.login.side_effect = lambda username, password, address: username
    mock.publish.side_effect = lambda username, filenames, address: len(filenames)
    mock.disconnect.return_value = True
    return mock


@pytest.fixture
def heartbeats():
    created = []

    def factory(username, address):
        heartbeat = AsyncMock(spec=HeartbeatService)
        heartbeat.username = username
        heartbeat.address = address
        created.append(heartbeat)
        return heartbeat

    return created, factory


@pytest.fixture
def node(tracker, heartbeats, make_storage):
    _, factory = heartbeats
    return PeerNode(
        tracker,
        make_storage("alice"),
        listen_host=LOOPBACK,
        listen_port=0,
        advertise_ip=LOOPBACK,
        heartbeat_factory=factory,
    )


@pytest.mark.asyncio
async def test_login_publishes_shared_dir_and_starts_heartbeat(node, tracker, heartbeats):
    (node.storage.shared_dir / "a.txt").write_text("a")
    (node.storage.shared_dir / "b.txt").write_text("b")

    try:
        count = await node.login("alice", "secret")
    finally:
        await node.listener.stop()

    assert count == 2
    address = PeerAddress(LOOPBACK, node.listener.port)
    tracker.login.assert_awaited_once_with("alice", "secret", address)
    tracker.publish.assert_awaited_once_with("alice", ["a.txt", "b.txt"], address)

    created, _ = heartbeats
    assert len(created) == 1
    created[0].start.assert_awaited_once()
    assert created[0].address == address


@pytest.mark.asyncio
async def test_register_advertises_listener_address(node, tracker):
    try:
        address = await node.register("alice", "secret")
    finally:
        await node.listener.stop()

    assert address.port != 0
    tracker.register.assert_awaited_once_with("alice", "secret", address)
    assert not node.logged_in


@pytest.mark.asyncio
async def test_share_copies_and_republishes(node, tracker, sample_file):
    try:
        await node.login("alice", "secret")
        names = await node.share([sample_file])
    finally:
        await node.listener.stop()

    assert names == ["notes.txt"]
    assert (node.storage.shared_dir / "notes.txt").exists()
    assert tracker.publish.await_args_list[-1].args[1] == ["notes.txt"]


@pytest.mark.asyncio
async def test_share_requires_login(node, sample_file):
    with pytest.raises(PeerError):
        await node.share([sample_file])


@pytest.mark.asyncio
async def test_logout_stops_heartbeat_and_disconnects(node, tracker, heartbeats):
    try:
        await node.login("alice", "secret")
        await node.logout()
    finally:
        await node.listener.stop()

    created, _ = heartbeats
    created[0].stop.assert_awaited_once()
    tracker.disconnect.assert_awaited_once_with("alice")
    assert not node.logged_in


@pytest.mark.asyncio
async def test_logout_survives_unreachable_tracker(node, tracker):
    tracker.disconnect.side_effect = TrackerUnavailableError("down")
    try:
        await node.login("alice", "secret")
        await node.logout()
    finally:
        await node.listener.stop()

    assert not node.logged_in


@pytest.mark.asyncio
async def test_stop_closes_everything(node, tracker):
    await node.login("alice", "secret")
    await node.stop()

    assert not node.listener.is_serving
    tracker.disconnect.assert_awaited_once_with("alice")
    tracker.close.assert_awaited_once()


@pytest.mark.asyncio
async def test_download_without_source(node, tracker):
    tracker.query.return_value = []
    with pytest.raises(NoSourceError):
        await node.download("missing.txt")


@pytest.mark.asyncio
async def test_download_uses_exact_name_and_owner(tracker, make_storage, heartbeats):
    _, factory = heartbeats
    transfers = Mock(spec=TransferClient)
    transfers.fetch = AsyncMock(return_value=TransferResult("a.txt", None, 1, 0.1, 10.0))
    node = PeerNode(
        tracker, make_storage("bob"),
        advertise_ip=LOOPBACK, heartbeat_factory=factory, transfer_client=transfers,
    )
    tracker.query.return_value = [
        FileAdvertisement("a.txt.bak", "carol", PeerAddress("10.0.0.3", 6003), 1.0),
        FileAdvertisement("a.txt", "alice", PeerAddress("10.0.0.1", 6001), 1.0),
        FileAdvertisement("a.txt", "carol", PeerAddress("10.0.0.3", 6003), 1.0),
    ]

    await node.download("a.txt", owner="carol")

    tracker.query.assert_awaited_once_with("a.txt", "carol")
    transfers.fetch.assert_awaited_once()
    assert transfers.fetch.await_args.args[:3] == ("10.0.0.3", 6003, "a.txt")
