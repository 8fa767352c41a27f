"""Tests for the follow graph."""

import pytest
from sqlalchemy import insert
from sqlalchemy.orm import Session

from recipe_hub.models import UserFollow
from recipe_hub.services import social_graph_service, user_service
from recipe_hub.services.dto import AuthInfo
from recipe_hub.services.exceptions import AuthFailure, DatabaseError


class TestToggleFollow:
    """Tests for toggle_follow."""

    def test_follow_then_unfollow(self, alice, bob):
        assert social_graph_service.toggle_follow(alice, bob.author_id) is True
        assert social_graph_service.count_followers(bob.author_id) == 1

        assert social_graph_service.toggle_follow(alice, bob.author_id) is False
        assert social_graph_service.count_followers(bob.author_id) == 0

    def test_double_toggle_restores_state(self, test_db, alice, bob):
        social_graph_service.toggle_follow(alice, bob.author_id)
        social_graph_service.toggle_follow(alice, bob.author_id)
        social_graph_service.toggle_follow(alice, bob.author_id)
        assert test_db().query(UserFollow).count() == 1

    def test_follow_is_directed(self, alice, bob):
        social_graph_service.toggle_follow(alice, bob.author_id)
        assert social_graph_service.list_following_ids(alice.author_id) == [bob.author_id]
        assert social_graph_service.list_following_ids(bob.author_id) == []
        assert social_graph_service.list_follower_ids(bob.author_id) == [alice.author_id]

    def test_self_follow_rejected(self, alice):
        with pytest.raises(AuthFailure):
            social_graph_service.toggle_follow(alice, alice.author_id)

    def test_unknown_followee_rejected(self, alice):
        with pytest.raises(AuthFailure):
            social_graph_service.toggle_follow(alice, 9999)

    def test_deleted_followee_rejected(self, alice, bob):
        user_service.delete_account(bob, bob.author_id)
        with pytest.raises(AuthFailure):
            social_graph_service.toggle_follow(alice, bob.author_id)

    def test_invalid_follower_rejected(self, alice):
        with pytest.raises(AuthFailure):
            social_graph_service.toggle_follow(AuthInfo(0), alice.author_id)
        with pytest.raises(AuthFailure):
            social_graph_service.toggle_follow(None, alice.author_id)

    def test_concurrent_duplicate_follow_absorbed(self, test_db, monkeypatch, alice, bob):
        original = Session.begin_nested

        def racing_begin_nested(self):
            # another writer lands the same edge between the read and the insert
            self.execute(
                insert(UserFollow).values(follower_id=alice.author_id, followee_id=bob.author_id)
            )
            return original(self)

        monkeypatch.setattr(Session, "begin_nested", racing_begin_nested)

        assert social_graph_service.toggle_follow(alice, bob.author_id) is True
        monkeypatch.undo()
        assert social_graph_service.count_followers(bob.author_id) == 1
        assert test_db().query(UserFollow).count() == 1


class TestDerivedCounts:
    """Counts always equal the number of edges."""

    def test_counts_match_edges(self, test_db, register_user):
        users = [register_user(f"user{i}") for i in range(5)]
        hub = users[0]
        for other in users[1:]:
            social_graph_service.toggle_follow(other, hub.author_id)
        social_graph_service.toggle_follow(hub, users[1].author_id)
        social_graph_service.toggle_follow(users[2], hub.author_id)

        session = test_db()
        for user in users:
            followers = (
                session.query(UserFollow).filter(UserFollow.followee_id == user.author_id).count()
            )
            following = (
                session.query(UserFollow).filter(UserFollow.follower_id == user.author_id).count()
            )
            assert social_graph_service.count_followers(user.author_id) == followers
            assert social_graph_service.count_following(user.author_id) == following

        assert social_graph_service.count_followers(hub.author_id) == 3


class TestStorageFailures:
    """Storage failures surface as DatabaseError."""

    @pytest.mark.parametrize(
        "read",
        [
            social_graph_service.count_followers,
            social_graph_service.count_following,
            social_graph_service.list_follower_ids,
            social_graph_service.list_following_ids,
        ],
    )
    def test_read_wraps_sqlalchemy_error(self, test_db, alice, read):
        UserFollow.__table__.drop(test_db.get_bind())
        with pytest.raises(DatabaseError):
            read(alice.author_id)

    def test_toggle_wraps_sqlalchemy_error(self, test_db, alice, bob):
        UserFollow.__table__.drop(test_db.get_bind())
        with pytest.raises(DatabaseError):
            social_graph_service.toggle_follow(alice, bob.author_id)
