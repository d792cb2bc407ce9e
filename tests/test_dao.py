"""Tests for the table DAOs."""

from datetime import datetime

import pytest

from catalog_api.dao.product_dao import product_dao
from catalog_api.dao.user_dao import user_dao


def product_data(**overrides) -> dict:
    data = {
        "name": "Vespa",
        "description": "scooter",
        "category": "Bike",
        "price": 3500.0,
        "image1": "https://media.test/a.png",
        "image2": "https://media.test/b.png",
    }
    data.update(overrides)
    return data


class TestUpdate:

    @pytest.mark.asyncio
    async def test_none_clears_a_column(self, db_session):
        product = await product_dao.create(db_session, obj_in=product_data())

        updated = await product_dao.update(db_session, db_obj=product, obj_in={"image2": None})

        assert updated.image1 == "https://media.test/a.png"
        assert updated.image2 is None

    @pytest.mark.asyncio
    async def test_omitted_fields_are_kept(self, db_session):
        product = await product_dao.create(db_session, obj_in=product_data())

        updated = await product_dao.update(db_session, db_obj=product, obj_in={"price": 3000.0})

        assert updated.price == 3000.0
        assert updated.name == "Vespa"
        assert updated.image2 == "https://media.test/b.png"

    @pytest.mark.asyncio
    async def test_stamps_updated_at(self, db_session):
        product = await product_dao.create(db_session, obj_in=product_data())
        assert product.updated_at is None

        updated = await product_dao.update(db_session, db_obj=product, obj_in={"name": "Vespa GTS"})

        assert isinstance(updated.updated_at, datetime)

    @pytest.mark.asyncio
    async def test_unknown_field_is_rejected_before_writing(self, db_session):
        product = await product_dao.create(db_session, obj_in=product_data())

        with pytest.raises(ValueError, match="colour"):
            await product_dao.update(
                db_session, db_obj=product, obj_in={"name": "Renamed", "colour": "red"}
            )

        stored = await product_dao.get_by_id(db_session, product.id)
        assert stored.name == "Vespa"


class TestFindOne:

    @pytest.mark.asyncio
    async def test_matches_on_every_filter(self, db_session):
        await product_dao.create(db_session, obj_in=product_data())
        await product_dao.create(db_session, obj_in=product_data(name="Model T", category="Car"))

        found = await product_dao.find_one(db_session, name="Model T", category="Car")
        missing = await product_dao.find_one(db_session, name="Model T", category="Bike")

        assert found.category == "Car"
        assert missing is None

    @pytest.mark.asyncio
    async def test_user_lookup_by_email_ignores_case(self, db_session):
        await user_dao.create(
            db_session, obj_in={"name": "Ada", "email": "ada@example.com", "password": "hash"}
        )

        user = await user_dao.get_by_email(db_session, "Ada@Example.com")

        assert user.name == "Ada"
        assert isinstance(user.createdAt, datetime)
