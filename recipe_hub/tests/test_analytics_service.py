"""Tests for Analytics Service."""

import pytest

from recipe_hub.services import analytics_service, recipe_service, social_graph_service
from recipe_hub.services import user_service


def _recipe(auth, name, calories=None, parts=None):
    return recipe_service.create_recipe(
        {"name": name, "calories": calories, "ingredient_parts": parts or []}, auth
    )


class TestClosestCaloriePair:
    """Tests for closest_calorie_pair."""

    def test_adjacent_minimum(self, alice):
        ids = [_recipe(alice, f"r{c}", calories=c) for c in (10.0, 50.0, 52.0, 100.0)]
        pair = analytics_service.closest_calorie_pair()
        assert (pair.recipe_a, pair.recipe_b) == (ids[1], ids[2])
        assert (pair.calories_a, pair.calories_b) == (50.0, 52.0)
        assert pair.difference == pytest.approx(2.0)

    def test_insertion_order_irrelevant(self, alice):
        high = _recipe(alice, "high", calories=300.0)
        low = _recipe(alice, "low", calories=299.5)
        _recipe(alice, "far", calories=10.0)
        pair = analytics_service.closest_calorie_pair()
        assert (pair.recipe_a, pair.recipe_b) == (high, low)
        assert (pair.calories_a, pair.calories_b) == (300.0, 299.5)

    def test_tie_broken_by_smaller_ids(self, alice):
        a = _recipe(alice, "a", calories=100.0)
        b = _recipe(alice, "b", calories=105.0)
        _recipe(alice, "c", calories=200.0)
        _recipe(alice, "d", calories=205.0)
        pair = analytics_service.closest_calorie_pair()
        assert (pair.recipe_a, pair.recipe_b) == (a, b)

    def test_equal_calories(self, alice):
        first = _recipe(alice, "x", calories=42.0)
        second = _recipe(alice, "y", calories=42.0)
        _recipe(alice, "z", calories=42.0)
        pair = analytics_service.closest_calorie_pair()
        assert (pair.recipe_a, pair.recipe_b) == (first, second)
        assert pair.difference == 0.0

    def test_null_calories_ignored(self, alice):
        _recipe(alice, "none1")
        _recipe(alice, "none2")
        _recipe(alice, "only", calories=10.0)
        assert analytics_service.closest_calorie_pair() is None

    def test_empty(self, test_db):
        assert analytics_service.closest_calorie_pair() is None


class TestTopRecipesByIngredientCount:
    """Tests for top_recipes_by_ingredient_count."""

    def test_ranking(self, alice):
        small = _recipe(alice, "small", parts=["a"])
        big = _recipe(alice, "big", parts=["a", "b", "c", "d"])
        mid1 = _recipe(alice, "mid1", parts=["a", "b"])
        mid2 = _recipe(alice, "mid2", parts=["x", "y"])
        _recipe(alice, "empty")

        result = analytics_service.top_recipes_by_ingredient_count()
        assert [(r.recipe_id, r.ingredient_count) for r in result] == [
            (big, 4),
            (mid1, 2),
            (mid2, 2),
        ]
        assert result[0].name == "big"
        assert small not in [r.recipe_id for r in result]

    def test_recipes_without_ingredients_excluded(self, alice):
        _recipe(alice, "empty")
        only = _recipe(alice, "one", parts=["salt"])
        result = analytics_service.top_recipes_by_ingredient_count()
        assert [r.recipe_id for r in result] == [only]

    def test_empty(self, test_db):
        assert analytics_service.top_recipes_by_ingredient_count() == []


class TestHighestFollowRatio:
    """Tests for highest_follow_ratio."""

    def test_ratio(self, register_user):
        a, b, c, d = (register_user(n) for n in ("ua", "ub", "uc", "ud"))
        # a: 3 followers, follows 1 -> 3.0
        for follower in (b, c, d):
            social_graph_service.toggle_follow(follower, a.author_id)
        social_graph_service.toggle_follow(a, b.author_id)

        result = analytics_service.highest_follow_ratio()
        assert result.author_id == a.author_id
        assert result.author_name == "ua"
        assert result.ratio == pytest.approx(3.0)

    def test_tie_smallest_id(self, register_user):
        a, b = register_user("ta"), register_user("tb")
        social_graph_service.toggle_follow(a, b.author_id)
        social_graph_service.toggle_follow(b, a.author_id)
        assert analytics_service.highest_follow_ratio().author_id == min(a.author_id, b.author_id)

    def test_requires_following(self, register_user):
        a, b = register_user("fa"), register_user("fb")
        social_graph_service.toggle_follow(a, b.author_id)
        # b has followers but follows nobody, so only a is eligible with ratio 0
        result = analytics_service.highest_follow_ratio()
        assert result.author_id == a.author_id
        assert result.ratio == 0.0

    def test_deleted_users_excluded(self, register_user):
        a, b, c = register_user("da"), register_user("db"), register_user("dc")
        social_graph_service.toggle_follow(a, b.author_id)
        social_graph_service.toggle_follow(c, a.author_id)
        user_service.delete_account(a, a.author_id)
        assert analytics_service.highest_follow_ratio() is None

    def test_no_edges(self, test_db):
        assert analytics_service.highest_follow_ratio() is None
