"""Tests for Import Service.

Tests cover:
- Dependency-ordered import of users, recipes, reviews, likes and follows
- Re-import is a no-op
- Rows with unknown parents are skipped
- Imported counters are ignored and aggregates recomputed
"""

from datetime import datetime, timedelta, timezone

import pytest

from recipe_hub.models import Recipe, RecipeIngredient, Review, ReviewLike, User, UserFollow
from recipe_hub.services import (
    import_service,
    recipe_service,
    review_service,
    social_graph_service,
    user_service,
)
from recipe_hub.services.dto import (
    AuthInfo,
    RecipeImportRecord,
    ReviewImportRecord,
    UserImportRecord,
)


@pytest.fixture
def dataset():
    """Three users, two recipes, three reviews."""
    users = [
        UserImportRecord(
            author_id=10,
            author_name="dana",
            gender="Female",
            age=34,
            password="pw10",
            following_users=[11, 12, 10],
            followers=999,
        ),
        UserImportRecord(
            author_id=11,
            author_name="eli",
            gender="Male",
            age=28,
            password="pw11",
            follower_users=[10],
        ),
        UserImportRecord(
            author_id=12,
            author_name="fay",
            gender="Female",
            age=51,
            is_deleted=True,
            following_users=[10],
        ),
    ]
    recipes = [
        RecipeImportRecord(
            recipe_id=100,
            name="Pancakes",
            author_id=10,
            cook_time="PT10M",
            prep_time="PT5M",
            total_time="PT3H",
            date_published=datetime(2023, 3, 1, tzinfo=timezone.utc),
            category="Breakfast",
            ingredient_parts=["milk", "egg", "flour", "egg"],
            aggregated_rating=1.0,
            review_count=40,
            calories=220.0,
        ),
        RecipeImportRecord(
            recipe_id=101,
            name="Porridge",
            author_id=11,
            cook_time="ten minutes",
            ingredient_parts=["oats"],
        ),
        RecipeImportRecord(recipe_id=102, name="Orphan", author_id=77),
    ]
    reviews = [
        ReviewImportRecord(
            review_id=1000, recipe_id=100, author_id=11, rating=5, likes=[10, 11, 12, 99]
        ),
        ReviewImportRecord(review_id=1001, recipe_id=100, author_id=12, rating=4.0),
        ReviewImportRecord(review_id=1002, recipe_id=555, author_id=11, rating=3),
    ]
    return users, recipes, reviews


class TestImportData:
    """Tests for import_data."""

    def test_imports_in_dependency_order(self, test_db, dataset):
        users, recipes, reviews = dataset
        result = import_service.import_data(reviews=reviews, users=users, recipes=recipes)

        assert result.imported("user") == 3
        assert result.imported("recipe") == 2
        assert result.imported("review") == 2
        assert result.imported("recipe_ingredient") == 4

        session = test_db()
        assert session.query(User).count() == 3
        assert session.query(Recipe).count() == 2
        assert session.query(Review).count() == 2

    def test_unknown_parents_skipped(self, test_db, dataset):
        users, recipes, reviews = dataset
        result = import_service.import_data(reviews=reviews, users=users, recipes=recipes)

        assert result.skipped_count("recipe") == 1
        assert result.skipped_count("review") == 1
        session = test_db()
        assert session.query(Recipe).filter(Recipe.id == 102).count() == 0
        assert session.query(Review).filter(Review.id == 1002).count() == 0

    def test_likes_skip_self_and_unknown(self, test_db, dataset):
        users, recipes, reviews = dataset
        import_service.import_data(reviews=reviews, users=users, recipes=recipes)

        likers = sorted(
            row[0]
            for row in test_db().query(ReviewLike.user_id).filter(ReviewLike.review_id == 1000)
        )
        assert likers == [10, 12]

    @pytest.mark.usefixtures("test_db")
    def test_follow_edges(self, dataset):
        users, recipes, reviews = dataset
        result = import_service.import_data(reviews=reviews, users=users, recipes=recipes)

        # 10->11 appears twice, 10->10 is a self-follow, 10->12 and 12->10 touch a deleted user
        assert result.imported("user_follow") == 1
        assert social_graph_service.list_following_ids(10) == [11]
        assert social_graph_service.list_follower_ids(11) == [10]
        assert social_graph_service.count_followers(10) == 0

    @pytest.mark.usefixtures("test_db")
    def test_counters_recomputed(self, dataset):
        users, recipes, reviews = dataset
        result = import_service.import_data(reviews=reviews, users=users, recipes=recipes)

        record = recipe_service.get_recipe(100)
        assert record.review_count == 2
        assert record.aggregated_rating == 4.5
        assert record.total_time == "PT15M"
        assert record.ingredient_parts == ["egg", "flour", "milk"]
        assert result.recomputed_recipes == 2

        untouched = recipe_service.get_recipe(101)
        assert untouched.review_count == 0
        assert untouched.aggregated_rating is None

    @pytest.mark.usefixtures("test_db")
    def test_invalid_duration_dropped_with_warning(self, dataset):
        users, recipes, reviews = dataset
        result = import_service.import_data(reviews=reviews, users=users, recipes=recipes)

        record = recipe_service.get_recipe(101)
        assert record.cook_time is None
        assert record.total_time is None
        assert any(w["record_name"] == "101" for w in result.warnings)

    def test_passwords_hashed_and_usable(self, test_db, dataset):
        users, recipes, reviews = dataset
        import_service.import_data(reviews=reviews, users=users, recipes=recipes)

        stored = test_db().query(User).filter(User.id == 10).one()
        assert stored.password_hash != "pw10"
        assert user_service.login(AuthInfo(10, "pw10")) == 10
        assert user_service.login(AuthInfo(10, "wrong")) is None

    def test_reimport_is_noop(self, test_db, dataset):
        users, recipes, reviews = dataset
        import_service.import_data(reviews=reviews, users=users, recipes=recipes)
        result = import_service.import_data(reviews=reviews, users=users, recipes=recipes)

        assert result.successful == 0
        assert result.skipped_count("user") == 3
        assert result.skipped_count("review") == 3
        assert result.recomputed_recipes == 0

        session = test_db()
        assert session.query(User).count() == 3
        assert session.query(RecipeIngredient).count() == 4
        assert session.query(ReviewLike).count() == 2
        assert session.query(UserFollow).count() == 1

    def test_invalid_rows_reported(self, test_db):
        users = [
            UserImportRecord(author_id=1, author_name="ok", gender="Male", age=30),
            UserImportRecord(author_id=2, author_name="ok", gender="Male", age=30),
            UserImportRecord(author_id=3, author_name="x", gender="other", age=30),
        ]
        recipes = [RecipeImportRecord(recipe_id=5, name="Soup", author_id=1)]
        reviews = [ReviewImportRecord(review_id=9, recipe_id=5, author_id=1, rating=7)]

        result = import_service.import_data(reviews=reviews, users=users, recipes=recipes)

        assert result.imported("user") == 1
        assert result.failed == 3
        assert test_db().query(Review).count() == 0
        assert "Failed:        3" in result.get_summary()

    def test_offset_dates_stored_as_utc(self, test_db):
        plus8 = timezone(timedelta(hours=8))
        users = [
            UserImportRecord(author_id=1, author_name="gus", gender="Male", age=40),
            UserImportRecord(author_id=2, author_name="hal", gender="Male", age=41),
        ]
        recipes = [
            RecipeImportRecord(
                recipe_id=5,
                name="Dumplings",
                author_id=1,
                date_published=datetime(2024, 2, 1, 9, 30, tzinfo=plus8),
            )
        ]
        reviews = [
            ReviewImportRecord(
                review_id=9,
                recipe_id=5,
                author_id=2,
                rating=5,
                date_submitted=datetime(2024, 2, 2, 8, 0, tzinfo=plus8),
                date_modified=datetime(2024, 2, 3, 8, 0, tzinfo=plus8),
            )
        ]
        import_service.import_data(reviews=reviews, users=users, recipes=recipes)

        record = recipe_service.get_recipe(5)
        assert record.date_published == datetime(2024, 2, 1, 1, 30, tzinfo=timezone.utc)
        review = review_service.list_reviews(5, 1, 10).items[0]
        assert review.date_submitted == datetime(2024, 2, 2, 0, 0, tzinfo=timezone.utc)
        assert review.date_modified == datetime(2024, 2, 3, 0, 0, tzinfo=timezone.utc)

    def test_oversized_secret_reported_not_fatal(self, test_db):
        users = [
            UserImportRecord(
                author_id=1, author_name="ivy", gender="Female", age=22, password="z" * 80
            ),
            UserImportRecord(author_id=2, author_name="jon", gender="Male", age=23, password="pw"),
        ]
        result = import_service.import_data(users=users)

        assert result.imported("user") == 1
        assert result.failed == 1
        assert "Password" in result.errors[0]["message"]
        assert test_db().query(User).filter(User.id == 1).count() == 0

    def test_empty_import(self, test_db):
        result = import_service.import_data()
        assert result.total_records == 0
        assert result.recomputed_recipes == 0
