"""Integration tests for the tracker's SQLite repositories."""

import pytest

from common.types import PeerAddress
from tracker.database import get_db_connection
from tracker.exceptions import (
    InvalidCredentialsError,
    PeerAlreadyExistsError,
    PeerNotFoundError,
)

ALICE_ADDR = PeerAddress("10.0.0.1", 6001)
BOB_ADDR = PeerAddress("10.0.0.2", 6002)
NOW = 1_700_000_000.0


class TestDatabase:
    def test_init_creates_tables(self, db_path):
        with get_db_connection(db_path) as conn:
            rows = conn.execute(
                "SELECT name FROM sqlite_master WHERE type = 'table'"
            ).fetchall()
        names = {row["name"] for row in rows}
        assert {"accounts", "peers", "file_advertisements"} <= names

    def test_init_is_idempotent(self, db_path):
        from tracker.database import init_database
        init_database(db_path)
        init_database(db_path)


class TestPeerRepository:
    def test_register_creates_account_and_presence(self, peer_repo):
        peer = peer_repo.register("alice", "secret", ALICE_ADDR, NOW)

        assert peer.username == "alice"
        assert peer.address == ALICE_ADDR
        assert peer_repo.get_account("alice") is not None
        stored = peer_repo.get("alice")
        assert stored.address == ALICE_ADDR
        assert stored.last_heartbeat == NOW

    def test_password_is_hashed(self, peer_repo):
        peer_repo.register("alice", "secret", ALICE_ADDR, NOW)
        account = peer_repo.get_account("alice")
        assert account.password_hash != "secret"
        assert account.password_hash.startswith("$2")

    def test_duplicate_register_rejected(self, peer_repo):
        peer_repo.register("alice", "secret", ALICE_ADDR, NOW)
        with pytest.raises(PeerAlreadyExistsError):
            peer_repo.register("alice", "other", BOB_ADDR, NOW + 1)

        # original record untouched
        assert peer_repo.get("alice").address == ALICE_ADDR
        peer_repo.authenticate("alice", "secret")

    def test_authenticate_succeeds_only_with_matching_password(self, peer_repo):
        peer_repo.register("alice", "secret", ALICE_ADDR, NOW)

        assert peer_repo.authenticate("alice", "secret").username == "alice"
        with pytest.raises(InvalidCredentialsError):
            peer_repo.authenticate("alice", "Secret")
        with pytest.raises(InvalidCredentialsError):
            peer_repo.authenticate("alice", "")

    def test_authenticate_unknown_user(self, peer_repo):
        with pytest.raises(PeerNotFoundError):
            peer_repo.authenticate("ghost", "secret")

    def test_touch_login_updates_address(self, peer_repo):
        peer_repo.register("alice", "secret", ALICE_ADDR, NOW)
        new_addr = PeerAddress("10.0.0.9", 7000)

        peer = peer_repo.touch_login("alice", new_addr, NOW + 5)

        assert peer.address == new_addr
        assert peer.last_seen == NOW + 5
        # login alone does not count as a heartbeat for an existing record
        assert peer.last_heartbeat == NOW

    def test_touch_login_recreates_removed_presence(self, peer_repo):
        peer_repo.register("alice", "secret", ALICE_ADDR, NOW)
        peer_repo.remove("alice")
        assert peer_repo.get("alice") is None

        peer = peer_repo.touch_login("alice", BOB_ADDR, NOW + 100)

        assert peer.address == BOB_ADDR
        assert peer.last_heartbeat == NOW + 100

    def test_touch_login_without_account(self, peer_repo):
        with pytest.raises(PeerNotFoundError):
            peer_repo.touch_login("ghost", ALICE_ADDR, NOW)

    def test_touch_heartbeat(self, peer_repo):
        peer_repo.register("alice", "secret", ALICE_ADDR, NOW)
        peer = peer_repo.touch_heartbeat("alice", ALICE_ADDR, NOW + 30)
        assert peer.last_heartbeat == NOW + 30

    def test_touch_heartbeat_requires_presence(self, peer_repo):
        peer_repo.register("alice", "secret", ALICE_ADDR, NOW)
        peer_repo.remove("alice")
        with pytest.raises(PeerNotFoundError):
            peer_repo.touch_heartbeat("alice", ALICE_ADDR, NOW + 1)

    def test_remove_absent_peer(self, peer_repo):
        with pytest.raises(PeerNotFoundError):
            peer_repo.remove("ghost")

    def test_liveness_window(self, peer_repo):
        peer_repo.register("alice", "secret", ALICE_ADDR, NOW)
        peer_repo.register("bob", "secret", BOB_ADDR, NOW - 61)

        assert peer_repo.live_usernames(NOW, 60) == {"alice"}
        assert peer_repo.stale_usernames(NOW, 60) == ["bob"]
        assert peer_repo.is_live("alice", NOW, 60)
        assert not peer_repo.is_live("bob", NOW, 60)
        assert not peer_repo.is_live("ghost", NOW, 60)

    def test_exactly_at_window_edge_is_live(self, peer_repo):
        peer_repo.register("alice", "secret", ALICE_ADDR, NOW - 60)
        assert peer_repo.is_live("alice", NOW, 60)
        assert peer_repo.live_usernames(NOW, 60) == {"alice"}
        assert peer_repo.stale_usernames(NOW, 60) == []

    def test_list_peers_sorted(self, peer_repo):
        peer_repo.register("bob", "secret", BOB_ADDR, NOW)
        peer_repo.register("alice", "secret", ALICE_ADDR, NOW)
        assert [p.username for p in peer_repo.list_peers()] == ["alice", "bob"]


class TestFileRepository:
    def test_replace_sets_exact_advertisements(self, file_repo):
        file_repo.replace_advertisements("alice", ["a.txt", "b.txt"], ALICE_ADDR, NOW)
        file_repo.replace_advertisements("alice", ["c.txt"], ALICE_ADDR, NOW + 1)

        names = [ad.filename for ad in file_repo.list_for("alice")]
        assert names == ["c.txt"]

    def test_replace_with_empty_list_clears(self, file_repo):
        file_repo.replace_advertisements("alice", ["a.txt"], ALICE_ADDR, NOW)
        file_repo.replace_advertisements("alice", [], ALICE_ADDR, NOW + 1)
        assert file_repo.list_for("alice") == []

    def test_replace_collapses_duplicates(self, file_repo):
        ads = file_repo.replace_advertisements("alice", ["a.txt", "a.txt", "b.txt"], ALICE_ADDR, NOW)
        assert [ad.filename for ad in ads] == ["a.txt", "b.txt"]
        assert len(file_repo.list_for("alice")) == 2

    def test_replace_does_not_touch_other_owners(self, file_repo):
        file_repo.replace_advertisements("alice", ["a.txt"], ALICE_ADDR, NOW)
        file_repo.replace_advertisements("bob", ["b.txt"], BOB_ADDR, NOW)
        file_repo.replace_advertisements("alice", [], ALICE_ADDR, NOW + 1)

        assert [ad.filename for ad in file_repo.list_for("bob")] == ["b.txt"]

    def test_remove_all_returns_count(self, file_repo):
        file_repo.replace_advertisements("alice", ["a.txt", "b.txt"], ALICE_ADDR, NOW)
        assert file_repo.remove_all("alice") == 2
        assert file_repo.remove_all("alice") == 0

    def test_search_filters_by_live_owners(self, file_repo):
        file_repo.replace_advertisements("alice", ["report.pdf"], ALICE_ADDR, NOW)
        file_repo.replace_advertisements("bob", ["report.pdf"], BOB_ADDR, NOW)

        results = file_repo.search("", "", {"alice"})
        assert [(ad.filename, ad.owner) for ad in results] == [("report.pdf", "alice")]

    def test_search_with_no_live_owners(self, file_repo):
        file_repo.replace_advertisements("alice", ["a.txt"], ALICE_ADDR, NOW)
        assert file_repo.search("", "", set()) == []

    def test_search_is_case_sensitive_substring(self, file_repo):
        file_repo.replace_advertisements("alice", ["Report.pdf", "notes.txt", "report-2.pdf"], ALICE_ADDR, NOW)

        names = [ad.filename for ad in file_repo.search("report", "", {"alice"})]
        assert names == ["report-2.pdf"]

    def test_search_by_owner_substring(self, file_repo):
        file_repo.replace_advertisements("alice", ["a.txt"], ALICE_ADDR, NOW)
        file_repo.replace_advertisements("malice", ["m.txt"], BOB_ADDR, NOW)
        file_repo.replace_advertisements("bob", ["b.txt"], BOB_ADDR, NOW)

        owners = [ad.owner for ad in file_repo.search("", "lice", {"alice", "malice", "bob"})]
        assert owners == ["alice", "malice"]

    def test_search_orders_by_filename_then_owner(self, file_repo):
        file_repo.replace_advertisements("bob", ["x.txt", "a.txt"], BOB_ADDR, NOW)
        file_repo.replace_advertisements("alice", ["x.txt"], ALICE_ADDR, NOW)

        results = file_repo.search("", "", {"alice", "bob"})
        assert [(ad.filename, ad.owner) for ad in results] == [
            ("a.txt", "bob"),
            ("x.txt", "alice"),
            ("x.txt", "bob"),
        ]

    def test_search_treats_like_wildcards_literally(self, file_repo):
        file_repo.replace_advertisements("alice", ["100%.txt", "1000.txt", "a_b.txt", "axb.txt"], ALICE_ADDR, NOW)

        assert [ad.filename for ad in file_repo.search("%", "", {"alice"})] == ["100%.txt"]
        assert [ad.filename for ad in file_repo.search("_", "", {"alice"})] == ["a_b.txt"]
