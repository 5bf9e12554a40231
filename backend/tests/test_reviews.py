"""
Review endpoint tests.

Tests cover:
- Creating reviews (with and without images)
- Ownership checks on edit view and PATCH
- Rating validation
"""

import pytest
import pytest_asyncio
from httpx import AsyncClient
from sqlalchemy.exc import OperationalError
from sqlalchemy.ext.asyncio import AsyncSession

from models import Restaurant, Review

from conftest import PNG_BYTES


@pytest_asyncio.fixture
async def restaurant(db_session, user) -> Restaurant:
    db_restaurant = Restaurant(
        name="Bistro",
        address="Main street 1",
        latitude=52.37,
        longitude=4.89,
        categories=["french"],
        added_by=user.id,
    )
    db_session.add(db_restaurant)
    await db_session.commit()
    await db_session.refresh(db_restaurant)
    return db_restaurant


@pytest_asyncio.fixture
async def review(db_session, user, restaurant) -> Review:
    db_review = Review(text="Lovely", rating=4.0, restaurant_id=restaurant.id, added_by=user.id)
    db_session.add(db_review)
    await db_session.commit()
    await db_session.refresh(db_review)
    return db_review


class TestCreateReview:

    @pytest.mark.asyncio
    async def test_create_review(self, async_client: AsyncClient, auth_headers, restaurant):
        response = await async_client.post(
            "/api/v1/reviews",
            data={"restaurantId": restaurant.id, "rating": "4.5", "review": "Excellent soup"},
            files=[("images", ("soup.png", PNG_BYTES, "image/png"))],
            headers=auth_headers,
        )

        assert response.status_code == 201
        review_id = response.json()["id"]

        detail = await async_client.get(f"/api/v1/restaurants/{restaurant.id}", headers=auth_headers)
        reviews = detail.json()["reviews"]
        assert [r["id"] for r in reviews] == [review_id]
        assert reviews[0]["text"] == "Excellent soup"
        assert reviews[0]["images"][0].startswith("/uploads/reviews/")

    @pytest.mark.asyncio
    async def test_create_review_without_text(self, async_client: AsyncClient, auth_headers, restaurant):
        response = await async_client.post(
            "/api/v1/reviews",
            data={"restaurantId": restaurant.id, "rating": "3"},
            headers=auth_headers,
        )
        assert response.status_code == 201

    @pytest.mark.asyncio
    @pytest.mark.parametrize("rating", ["0", "5.5"])
    async def test_rating_out_of_range(self, async_client: AsyncClient, auth_headers, restaurant, rating):
        response = await async_client.post(
            "/api/v1/reviews",
            data={"restaurantId": restaurant.id, "rating": rating},
            headers=auth_headers,
        )
        assert response.status_code == 422
        assert "rating" in {e["field"] for e in response.json()["errors"]}

    @pytest.mark.asyncio
    async def test_unknown_restaurant(self, async_client: AsyncClient, auth_headers):
        response = await async_client.post(
            "/api/v1/reviews",
            data={"restaurantId": "missing", "rating": "4"},
            headers=auth_headers,
        )
        assert response.status_code == 404

    @pytest.mark.asyncio
    async def test_requires_auth(self, async_client: AsyncClient, restaurant):
        response = await async_client.post(
            "/api/v1/reviews",
            data={"restaurantId": restaurant.id, "rating": "4"},
        )
        assert response.status_code == 401


class TestEditReview:

    @pytest.mark.asyncio
    async def test_edit_view_own_review(self, async_client: AsyncClient, auth_headers, review):
        response = await async_client.get(f"/api/v1/edit/reviews/{review.id}", headers=auth_headers)

        assert response.status_code == 200
        assert response.json() == {"text": "Lovely", "rating": 4.0}

    @pytest.mark.asyncio
    async def test_edit_view_other_users_review(self, async_client: AsyncClient, other_auth_headers, review):
        response = await async_client.get(
            f"/api/v1/edit/reviews/{review.id}", headers=other_auth_headers
        )
        assert response.status_code == 404

    @pytest.mark.asyncio
    async def test_patch_review(self, async_client: AsyncClient, auth_headers, review):
        response = await async_client.patch(
            "/api/v1/reviews",
            data={"id": review.id, "rating": "2.5", "review": "Went downhill"},
            headers=auth_headers,
        )

        assert response.status_code == 200
        data = response.json()
        assert data["text"] == "Went downhill"
        assert data["rating"] == 2.5
        assert data["editedAt"] is not None

    @pytest.mark.asyncio
    async def test_patch_keeps_text_when_omitted(self, async_client: AsyncClient, auth_headers, review):
        response = await async_client.patch(
            "/api/v1/reviews",
            data={"id": review.id, "rating": "5"},
            headers=auth_headers,
        )

        assert response.status_code == 200
        assert response.json()["text"] == "Lovely"
        assert response.json()["rating"] == 5.0

    @pytest.mark.asyncio
    async def test_patch_other_users_review(self, async_client: AsyncClient, other_auth_headers, review):
        response = await async_client.patch(
            "/api/v1/reviews",
            data={"id": review.id, "rating": "1"},
            headers=other_auth_headers,
        )
        assert response.status_code == 404

    @pytest.mark.asyncio
    async def test_failed_patch_discards_new_images(
        self, async_client: AsyncClient, auth_headers, review, image_store, monkeypatch
    ):
        async def failing_commit(self):
            raise OperationalError("COMMIT", {}, Exception("database is locked"))

        monkeypatch.setattr(AsyncSession, "commit", failing_commit)

        with pytest.raises(OperationalError):
            await async_client.patch(
                "/api/v1/reviews",
                data={"id": review.id, "rating": "3"},
                files=[("images", ("plate.png", PNG_BYTES, "image/png"))],
                headers=auth_headers,
            )

        assert list((image_store.root / "reviews").iterdir()) == []
