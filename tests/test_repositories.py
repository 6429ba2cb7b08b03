"""
Tests for repository classes.
Covers slug assignment, tag and rating aggregations, hearts, search and nearby lookups.
"""

import pytest
from datetime import timedelta

from storefront.database import utc_now
from storefront.models.user import User
from storefront.repositories.user import UserRepository
from storefront.repositories.store import StoreRepository, SlugConflictError
from storefront.repositories.review import ReviewRepository
from tests.conftest import UserFactory, StoreFactory, ReviewFactory


class TestUserRepository:
    """Test UserRepository functionality."""

    @pytest.mark.asyncio
    async def test_create_user(self, user_repository: UserRepository):
        user = await UserFactory.create_user(user_repository, email="Jane@Example.com", name=" Jane ")

        assert user.id is not None
        assert user.email == "jane@example.com"
        assert user.name == "Jane"
        assert user.hashed_password != "testpassword123"
        assert user.verify_password("testpassword123")

    @pytest.mark.asyncio
    async def test_create_user_duplicate_email(self, user_repository: UserRepository):
        await UserFactory.create_user(user_repository, email="dup@example.com")

        with pytest.raises(ValueError, match="already exists"):
            await UserFactory.create_user(user_repository, email="DUP@example.com")

    @pytest.mark.asyncio
    async def test_authenticate_user(self, user_repository: UserRepository, test_user: User):
        assert await user_repository.authenticate_user("owner@example.com", "testpassword123") is not None
        assert await user_repository.authenticate_user("owner@example.com", "wrong") is None
        assert await user_repository.authenticate_user("nobody@example.com", "testpassword123") is None

    @pytest.mark.asyncio
    async def test_update_account_rejects_taken_email(
        self,
        user_repository: UserRepository,
        test_user: User,
        other_user: User
    ):
        with pytest.raises(ValueError, match="already exists"):
            await user_repository.update_account(test_user.id, "Owner", other_user.email)

        updated = await user_repository.update_account(test_user.id, "New Name", "new@example.com")
        assert updated.name == "New Name"
        assert updated.email == "new@example.com"

    @pytest.mark.asyncio
    async def test_reset_token_lookup_respects_expiry(self, user_repository: UserRepository, test_user: User):
        now = utc_now()
        await user_repository.set_reset_token(test_user.id, "a" * 40, now + timedelta(hours=1))

        assert (await user_repository.get_by_reset_token("a" * 40, now)).id == test_user.id
        assert await user_repository.get_by_reset_token("a" * 40, now + timedelta(hours=2)) is None
        assert await user_repository.get_by_reset_token("b" * 40, now) is None

    @pytest.mark.asyncio
    async def test_consume_reset_token_once(self, user_repository: UserRepository, test_user: User):
        now = utc_now()
        await user_repository.set_reset_token(test_user.id, "c" * 40, now + timedelta(hours=1))

        user = await user_repository.consume_reset_token("c" * 40, User.hash_password("newpass"), now)
        assert user is not None
        assert user.verify_password("newpass")
        assert user.reset_password_token is None
        assert user.reset_password_expires is None

        assert await user_repository.consume_reset_token("c" * 40, User.hash_password("again"), now) is None

    @pytest.mark.asyncio
    async def test_toggle_heart(self, user_repository: UserRepository, test_user: User, test_store):
        assert await user_repository.toggle_heart(test_user.id, test_store.id) is True
        user = await user_repository.get_with_hearts(test_user.id)
        assert [store.id for store in user.hearts] == [test_store.id]

        assert await user_repository.toggle_heart(test_user.id, test_store.id) is False
        user = await user_repository.get_with_hearts(test_user.id)
        assert user.hearts == []

    @pytest.mark.asyncio
    async def test_user_dict_lists_hearts_only_when_loaded(
        self,
        user_repository: UserRepository,
        test_user: User,
        test_store
    ):
        assert "hearts" not in test_user.to_dict()

        await user_repository.toggle_heart(test_user.id, test_store.id)
        user = await user_repository.get_with_hearts(test_user.id)
        assert user.to_dict()["hearts"] == [str(test_store.id)]


class TestStoreRepository:
    """Test StoreRepository functionality."""

    @pytest.mark.asyncio
    async def test_create_store_with_tags(self, store_repository: StoreRepository, test_user: User):
        store = await StoreFactory.create_store(
            store_repository,
            test_user.id,
            tags=("Wifi", "Family Friendly", "Wifi")
        )

        assert store.slug == "coffee-shop"
        assert sorted(store.tags) == ["Family Friendly", "Wifi"]
        assert store.location == {
            "type": "Point",
            "coordinates": [-79.3832, 43.6532],
            "address": "1 Main Street"
        }

    @pytest.mark.asyncio
    async def test_duplicate_names_get_numbered_slugs(self, store_repository: StoreRepository, test_user: User):
        first = await StoreFactory.create_store(store_repository, test_user.id, name="Coffee Shop")
        second = await StoreFactory.create_store(store_repository, test_user.id, name="Coffee Shop")
        third = await StoreFactory.create_store(store_repository, test_user.id, name="coffee shop!")

        assert first.slug == "coffee-shop"
        assert second.slug == "coffee-shop-2"
        assert third.slug == "coffee-shop-3"

    @pytest.mark.asyncio
    async def test_rename_regenerates_slug(self, store_repository: StoreRepository, test_user: User):
        await StoreFactory.create_store(store_repository, test_user.id, name="Tea House")
        store = await StoreFactory.create_store(store_repository, test_user.id, name="Coffee Shop")

        renamed = await store_repository.update_store(store, {"name": "Tea House"})
        assert renamed.slug == "tea-house-2"

    @pytest.mark.asyncio
    async def test_taken_slug_retries_next_suffix(self, store_repository: StoreRepository, test_user: User):
        await StoreFactory.create_store(store_repository, test_user.id, name="Coffee Shop")
        second = await StoreFactory.create_store(store_repository, test_user.id, name="Coffee Shop")
        await StoreFactory.create_store(store_repository, test_user.id, name="Coffee Shop")

        # Frees coffee-shop-2 while coffee-shop-3 stays taken
        bakery = await store_repository.update_store(second, {"name": "Bakery"})
        bakery_id = bakery.id
        assert bakery.slug == "bakery"

        fourth = await StoreFactory.create_store(store_repository, test_user.id, name="Coffee Shop")
        assert fourth.slug == "coffee-shop-4"

        bakery = await store_repository.get_store(bakery_id)
        renamed = await store_repository.update_store(bakery, {"name": "Coffee Shop"})
        assert renamed.slug == "coffee-shop-5"

    @pytest.mark.asyncio
    async def test_slug_retries_exhausted(self, store_repository: StoreRepository, test_user: User):
        await StoreFactory.create_store(store_repository, test_user.id, name="Coffee Shop")
        second = await StoreFactory.create_store(store_repository, test_user.id, name="Coffee Shop")
        await StoreFactory.create_store(store_repository, test_user.id, name="Coffee Shop")
        bakery_id = (await store_repository.update_store(second, {"name": "Bakery"})).id

        with pytest.raises(SlugConflictError):
            await store_repository.create_store(
                StoreFactory.create_store_data(test_user.id, name="Coffee Shop"),
                max_attempts=1
            )

        bakery = await store_repository.get_store(bakery_id)
        with pytest.raises(SlugConflictError):
            await store_repository.update_store(bakery, {"name": "Coffee Shop"}, max_attempts=1)

        bakery = await store_repository.get_store(bakery_id)
        assert bakery.slug == "bakery"
        assert bakery.name == "Bakery"
        assert await store_repository.count() == 3

    @pytest.mark.asyncio
    async def test_update_without_rename_keeps_slug(self, store_repository: StoreRepository, test_user: User):
        await StoreFactory.create_store(store_repository, test_user.id, name="Coffee Shop")
        store = await StoreFactory.create_store(store_repository, test_user.id, name="Coffee Shop")
        assert store.slug == "coffee-shop-2"

        updated = await store_repository.update_store(
            store,
            {"name": "Coffee Shop", "description": "New roaster"},
            tags=["Espresso"]
        )
        assert updated.slug == "coffee-shop-2"
        assert updated.description == "New roaster"
        assert list(updated.tags) == ["Espresso"]

    @pytest.mark.asyncio
    async def test_get_page(self, store_repository: StoreRepository, test_user: User):
        for i in range(5):
            await StoreFactory.create_store(store_repository, test_user.id, name=f"Store {i}")

        first_page, count = await store_repository.get_page(1, 4)
        second_page, _ = await store_repository.get_page(2, 4)
        empty_page, _ = await store_repository.get_page(3, 4)

        assert count == 5
        assert [store.name for store in first_page] == ["Store 0", "Store 1", "Store 2", "Store 3"]
        assert [store.name for store in second_page] == ["Store 4"]
        assert empty_page == []

    @pytest.mark.asyncio
    async def test_tags_list_counts_and_orders(self, store_repository: StoreRepository, test_user: User):
        await StoreFactory.create_store(store_repository, test_user.id, name="A", tags=("Wifi", "Vegan"))
        await StoreFactory.create_store(store_repository, test_user.id, name="B", tags=("Wifi",))
        await StoreFactory.create_store(store_repository, test_user.id, name="C", tags=("Licensed", "Wifi"))
        await StoreFactory.create_store(store_repository, test_user.id, name="D")

        tags = await store_repository.get_tags_list()
        assert tags == [("Wifi", 3), ("Licensed", 1), ("Vegan", 1)]

        tagged = await store_repository.get_by_tag("Vegan")
        assert [store.name for store in tagged] == ["A"]

        any_tag = await store_repository.get_by_tag(None)
        assert [store.name for store in any_tag] == ["A", "B", "C"]

    @pytest.mark.asyncio
    async def test_search_ranks_name_hits_first(self, store_repository: StoreRepository, test_user: User):
        await StoreFactory.create_store(
            store_repository, test_user.id, name="Book Nook", description="We sell coffee too"
        )
        await StoreFactory.create_store(
            store_repository, test_user.id, name="Coffee Corner", description="Espresso bar"
        )
        await StoreFactory.create_store(
            store_repository, test_user.id, name="Hardware Shop", description="Tools"
        )

        results = await store_repository.search("coffee")
        assert [store.name for store in results] == ["Coffee Corner", "Book Nook"]

    @pytest.mark.asyncio
    async def test_search_limit(self, store_repository: StoreRepository, test_user: User):
        for i in range(7):
            await StoreFactory.create_store(store_repository, test_user.id, name=f"Bakery {i}")

        assert len(await store_repository.search("bakery", limit=5)) == 5
        assert await store_repository.search("   ") == []

    @pytest.mark.asyncio
    async def test_get_near(self, store_repository: StoreRepository, test_user: User):
        # About 1.1 km and 5.5 km north of the origin, then one out of range
        await StoreFactory.create_store(store_repository, test_user.id, name="Far", latitude=43.70, longitude=-79.38)
        await StoreFactory.create_store(store_repository, test_user.id, name="Near", latitude=43.66, longitude=-79.38)
        await StoreFactory.create_store(store_repository, test_user.id, name="Away", latitude=44.00, longitude=-79.38)

        nearby = await store_repository.get_near(43.65, -79.38, max_distance_m=10000, limit=10)

        assert [store.name for store, _ in nearby] == ["Near", "Far"]
        assert nearby[0][1] < nearby[1][1] <= 10000

    @pytest.mark.asyncio
    async def test_get_near_limit(self, store_repository: StoreRepository, test_user: User):
        for i in range(12):
            await StoreFactory.create_store(
                store_repository, test_user.id, name=f"Kiosk {i}", latitude=43.65 + i * 0.001, longitude=-79.38
            )

        nearby = await store_repository.get_near(43.65, -79.38, max_distance_m=10000, limit=10)
        assert len(nearby) == 10
        assert nearby[0][0].name == "Kiosk 0"

    @pytest.mark.asyncio
    async def test_top_stores(
        self,
        store_repository: StoreRepository,
        review_repository: ReviewRepository,
        test_user: User,
        other_user: User
    ):
        good = await StoreFactory.create_store(store_repository, test_user.id, name="Good")
        great = await StoreFactory.create_store(store_repository, test_user.id, name="Great")
        lonely = await StoreFactory.create_store(store_repository, test_user.id, name="Lonely")

        await ReviewFactory.create_review(review_repository, test_user.id, good.id, rating=3)
        await ReviewFactory.create_review(review_repository, other_user.id, good.id, rating=4)
        await ReviewFactory.create_review(review_repository, test_user.id, great.id, rating=5)
        await ReviewFactory.create_review(review_repository, other_user.id, great.id, rating=4)
        await ReviewFactory.create_review(review_repository, other_user.id, lonely.id, rating=5)

        top = await store_repository.get_top_stores(min_reviews=2, limit=10)

        assert [entry["name"] for entry in top] == ["Great", "Good"]
        assert top[0]["averageRating"] == pytest.approx(4.5)
        assert top[1]["averageRating"] == pytest.approx(3.5)
        assert len(top[0]["reviews"]) == 2
        assert top[0]["reviews"][0]["author"]["name"] in ("Owner", "Other")

    @pytest.mark.asyncio
    async def test_hearted_by_user(
        self,
        store_repository: StoreRepository,
        user_repository: UserRepository,
        test_user: User
    ):
        kept = await StoreFactory.create_store(store_repository, test_user.id, name="Kept")
        await StoreFactory.create_store(store_repository, test_user.id, name="Skipped")

        await user_repository.toggle_heart(test_user.id, kept.id)

        hearted = await store_repository.get_hearted_by_user(test_user.id)
        assert [store.name for store in hearted] == ["Kept"]

    @pytest.mark.asyncio
    async def test_detail_loads_author_and_reviews(
        self,
        store_repository: StoreRepository,
        review_repository: ReviewRepository,
        test_store,
        other_user: User
    ):
        await ReviewFactory.create_review(review_repository, other_user.id, test_store.id, content="Lovely")

        store = await store_repository.get_by_slug(test_store.slug, include_author=True, include_reviews=True)
        data = store.to_dict(include_author=True, include_reviews=True)

        assert data["author"]["email"] == "owner@example.com"
        assert [review["content"] for review in data["reviews"]] == ["Lovely"]
        assert data["reviews"][0]["author"]["name"] == "Other"
