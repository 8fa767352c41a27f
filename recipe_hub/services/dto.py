"""Data Transfer Objects for the service layer.

Every value handed across the service boundary is one of these dataclasses;
ORM instances never leave a session scope. Datetimes are timezone-aware UTC.
"""

from dataclasses import dataclass, field
from datetime import datetime
from typing import Generic, List, Optional, TypeVar

T = TypeVar("T")


@dataclass
class AuthInfo:
    """Actor credential reference.

    Attributes:
        author_id: The acting user's id
        password: Secret, only consulted by login
    """

    author_id: int
    password: Optional[str] = None


@dataclass
class RegisterUserRequest:
    """Registration request.

    Attributes:
        name: Unique display name
        gender: "Male" or "Female"
        birthday: ISO date (YYYY-MM-DD); age is derived from it
        password: Plain secret, hashed before storage
    """

    name: Optional[str]
    gender: Optional[str]
    birthday: Optional[str]
    password: Optional[str] = None


@dataclass
class UserRecord:
    """Public user profile with derived follow counts."""

    author_id: int
    author_name: str
    gender: Optional[str]
    age: Optional[int]
    followers: int = 0
    following: int = 0
    follower_users: List[int] = field(default_factory=list)
    following_users: List[int] = field(default_factory=list)
    is_deleted: bool = False


@dataclass
class RecipeRecord:
    """Full recipe record, ingredients in case-insensitive order."""

    recipe_id: int
    name: str
    author_id: int
    author_name: Optional[str] = None
    cook_time: Optional[str] = None
    prep_time: Optional[str] = None
    total_time: Optional[str] = None
    date_published: Optional[datetime] = None
    description: Optional[str] = None
    category: Optional[str] = None
    ingredient_parts: List[str] = field(default_factory=list)
    aggregated_rating: Optional[float] = None
    review_count: int = 0
    calories: Optional[float] = None
    fat_content: Optional[float] = None
    saturated_fat_content: Optional[float] = None
    cholesterol_content: Optional[float] = None
    sodium_content: Optional[float] = None
    carbohydrate_content: Optional[float] = None
    fiber_content: Optional[float] = None
    sugar_content: Optional[float] = None
    protein_content: Optional[float] = None
    servings: Optional[int] = None
    recipe_yield: Optional[str] = None


@dataclass
class ReviewRecord:
    """Review with its liker ids (ascending)."""

    review_id: int
    recipe_id: int
    author_id: int
    author_name: Optional[str]
    rating: int
    text: Optional[str]
    date_submitted: Optional[datetime]
    date_modified: Optional[datetime]
    likes: List[int] = field(default_factory=list)


@dataclass
class FeedItem:
    """One entry of a user's timeline."""

    recipe_id: int
    name: str
    author_id: int
    author_name: str
    date_published: Optional[datetime]
    aggregated_rating: Optional[float]
    review_count: int


@dataclass
class CaloriePair:
    """Two recipes with the closest calorie values; recipe_a has the smaller id."""

    recipe_a: int
    recipe_b: int
    calories_a: float
    calories_b: float
    difference: float


@dataclass
class IngredientComplexity:
    """Recipe ranked by number of distinct ingredient parts."""

    recipe_id: int
    name: str
    ingredient_count: int


@dataclass
class FollowRatio:
    """Active user with the highest follower/following ratio."""

    author_id: int
    author_name: str
    ratio: float


@dataclass
class PageResult(Generic[T]):
    """Generic paginated result container.

    ``page`` and ``size`` echo the (possibly clamped) request; ``total`` is
    the full filtered count, not the length of ``items``.

    Examples:
        result = PageResult(items=page_items, page=2, size=50, total=1000)
        print(f"Page {result.page} of {result.pages}")
        if result.has_next:
            print("More results available")
    """

    items: List[T]
    page: int
    size: int
    total: int

    @property
    def pages(self) -> int:
        """Calculate total number of pages (minimum 1, even for empty results).

        Examples:
            >>> PageResult(items=[], page=1, size=50, total=100).pages
            2
            >>> PageResult(items=[], page=1, size=50, total=101).pages
            3
            >>> PageResult(items=[], page=1, size=50, total=0).pages
            1
        """
        if self.total == 0:
            return 1
        return (self.total + self.size - 1) // self.size

    @property
    def has_next(self) -> bool:
        """True if current page is not the last page."""
        return self.page < self.pages

    @property
    def has_prev(self) -> bool:
        """True if current page is not the first page."""
        return self.page > 1

    def offset(self) -> int:
        """SQL OFFSET for this page: (page - 1) * size."""
        return (self.page - 1) * self.size


# ============================================================================
# Bulk import records
# ============================================================================


@dataclass
class UserImportRecord:
    """User row as supplied to import_data().

    followers/following are accepted for completeness but ignored; the
    follow edges come from follower_users and following_users.
    """

    author_id: int
    author_name: str
    gender: Optional[str]
    age: Optional[int]
    password: Optional[str] = None
    is_deleted: bool = False
    follower_users: List[int] = field(default_factory=list)
    following_users: List[int] = field(default_factory=list)
    followers: int = 0
    following: int = 0


@dataclass
class RecipeImportRecord:
    """Recipe row as supplied to import_data().

    total_time, aggregated_rating and review_count are ignored: the total is
    derived from cook + prep and the aggregate is recomputed from reviews.
    """

    recipe_id: int
    name: str
    author_id: int
    cook_time: Optional[str] = None
    prep_time: Optional[str] = None
    total_time: Optional[str] = None
    date_published: Optional[datetime] = None
    description: Optional[str] = None
    category: Optional[str] = None
    ingredient_parts: List[str] = field(default_factory=list)
    aggregated_rating: Optional[float] = None
    review_count: int = 0
    calories: Optional[float] = None
    fat_content: Optional[float] = None
    saturated_fat_content: Optional[float] = None
    cholesterol_content: Optional[float] = None
    sodium_content: Optional[float] = None
    carbohydrate_content: Optional[float] = None
    fiber_content: Optional[float] = None
    sugar_content: Optional[float] = None
    protein_content: Optional[float] = None
    servings: Optional[int] = None
    recipe_yield: Optional[str] = None


@dataclass
class ReviewImportRecord:
    """Review row as supplied to import_data(), with its liker ids."""

    review_id: int
    recipe_id: int
    author_id: int
    rating: int
    text: Optional[str] = None
    date_submitted: Optional[datetime] = None
    date_modified: Optional[datetime] = None
    likes: List[int] = field(default_factory=list)
