"""
Thingful Backend — Thing Service Unit Tests
===========================================

What:  Tests for serialization, HTML sanitization and the thing/review queries.
How:   Transient ORM objects (never added to a session) and a mock session.

What we test:
    ✅ Stored markup is sanitized on the way out
    ✅ Serialized users never carry the password hash
    ✅ Review statistics are passed through as count / mean / null
    ✅ Unknown thing → NotFoundError("Thing doesn't exist")
    ✅ Query failures → DatabaseError
"""

from datetime import datetime, timezone
from unittest.mock import MagicMock

import pytest

from thingful.exceptions import DatabaseError, NotFoundError
from thingful.models.thing import Review, Thing
from thingful.models.user import User
from thingful.schemas.thing import ReviewCreate
from thingful.services.thing_service import ThingService, sanitize_html

CREATED = datetime(2029, 1, 22, 16, 28, 32, tzinfo=timezone.utc)


def make_user(**overrides):
    fields = {
        "id": 1,
        "user_name": "alice",
        "full_name": "Alice Example",
        "nickname": "al",
        "password": "$2b$04$abcdefghijklmnopqrstuuvwxyzABCDEFGHIJKLMNOPQRSTUVWXYZ01",
        "date_created": CREATED,
    }
    fields.update(overrides)
    return User(**fields)


def make_thing(user=None, **overrides):
    fields = {
        "id": 1,
        "title": "First test thing!",
        "image": "http://placehold.it/500x500",
        "content": "Lorem ipsum dolor sit amet.",
        "date_created": CREATED,
        "user_id": 1,
    }
    fields.update(overrides)
    thing = Thing(**fields)
    thing.user = user if user is not None else make_user()
    return thing


class TestSanitizeHtml:

    def test_script_tags_are_escaped(self):
        cleaned = sanitize_html("<script>alert(1)</script>")
        assert "<script>" not in cleaned
        assert "&lt;script&gt;" in cleaned

    def test_event_handler_attributes_are_removed(self):
        cleaned = sanitize_html('<img src="https://url.to.file.which/does-not.exist" onerror="alert(1)">')
        assert "onerror" not in cleaned
        assert 'src="https://url.to.file.which/does-not.exist"' in cleaned

    def test_allowed_markup_is_kept(self):
        assert sanitize_html("<strong>bold</strong>") == "<strong>bold</strong>"

    def test_plain_text_is_unchanged(self):
        assert sanitize_html("Put a bird on it!") == "Put a bird on it!"

    def test_none_passes_through(self):
        assert sanitize_html(None) is None


class TestSerialization:

    def setup_method(self):
        self.service = ThingService()

    def test_serialize_thing_with_statistics(self):
        result = self.service.serialize_thing(make_thing(), 3, 2.0)

        assert result.id == 1
        assert result.number_of_reviews == 3
        assert result.average_review_rating == 2.0
        assert result.user.user_name == "alice"

    def test_thing_without_reviews_has_null_average(self):
        result = self.service.serialize_thing(make_thing(), 0, None)

        assert result.number_of_reviews == 0
        assert result.average_review_rating is None

    def test_thing_text_is_sanitized(self):
        thing = make_thing(
            title='Naughty naughty very naughty <script>alert("xss");</script>',
            content="Bad image <img src=\"x\" onerror=\"alert(document.cookie);\">. <strong>Good</strong>",
        )

        result = self.service.serialize_thing(thing, 0, None)

        assert "<script>" not in result.title
        assert "onerror" not in result.content
        assert "<strong>Good</strong>" in result.content

    def test_serialized_user_has_no_password(self):
        result = self.service.serialize_thing(make_thing(), 0, None)

        dumped = result.model_dump()
        assert "password" not in dumped["user"]
        assert "$2b$" not in result.model_dump_json()

    def test_serialize_review_uses_given_author(self):
        review = Review(id=7, text="Nice", rating=4, thing_id=1, user_id=2, date_created=CREATED)
        author = make_user(id=2, user_name="b.deboop")

        result = self.service.serialize_review(review, user=author)

        assert result.user.id == 2
        assert result.text == "Nice"

    def test_serialize_review_sanitizes_text(self):
        review = Review(
            id=8, text="<script>alert(1)</script>", rating=1, thing_id=1,
            user_id=1, date_created=CREATED,
        )
        review.user = make_user()

        result = self.service.serialize_review(review)

        assert "<script>" not in result.text


class TestThingQueries:

    def setup_method(self):
        self.service = ThingService()

    @pytest.mark.asyncio
    async def test_list_things(self, mock_db_session):
        mock_result = MagicMock()
        mock_result.all.return_value = [
            (make_thing(id=1), 3, 2.0),
            (make_thing(id=2), 0, None),
        ]
        mock_db_session.execute.return_value = mock_result

        things = await self.service.list_things(mock_db_session)

        assert [thing.id for thing in things] == [1, 2]
        assert things[0].number_of_reviews == 3
        assert things[1].average_review_rating is None

    @pytest.mark.asyncio
    async def test_list_things_failure(self, mock_db_session):
        mock_db_session.execute.side_effect = ConnectionError("database is down")

        with pytest.raises(DatabaseError):
            await self.service.list_things(mock_db_session)

    @pytest.mark.asyncio
    async def test_get_thing(self, mock_db_session):
        mock_result = MagicMock()
        mock_result.first.return_value = (make_thing(id=2), 1, 5.0)
        mock_db_session.execute.return_value = mock_result

        thing = await self.service.get_thing(mock_db_session, 2)

        assert thing.id == 2
        assert thing.average_review_rating == 5.0

    @pytest.mark.asyncio
    async def test_get_missing_thing(self, mock_db_session):
        mock_result = MagicMock()
        mock_result.first.return_value = None
        mock_db_session.execute.return_value = mock_result

        with pytest.raises(NotFoundError) as exc_info:
            await self.service.get_thing(mock_db_session, 999)

        assert exc_info.value.message == "Thing doesn't exist"

    @pytest.mark.asyncio
    async def test_get_thing_failure(self, mock_db_session):
        mock_db_session.execute.side_effect = ConnectionError("database is down")

        with pytest.raises(DatabaseError):
            await self.service.get_thing(mock_db_session, 1)

    @pytest.mark.asyncio
    async def test_get_missing_review(self, mock_db_session):
        mock_result = MagicMock()
        mock_result.scalar_one_or_none.return_value = None
        mock_db_session.execute.return_value = mock_result

        with pytest.raises(NotFoundError):
            await self.service.get_review(mock_db_session, 999)


class TestCreateReview:

    def setup_method(self):
        self.service = ThingService()

    @pytest.mark.asyncio
    async def test_review_is_authored_by_given_user(self, mock_db_session):
        mock_result = MagicMock()
        mock_result.first.return_value = (make_thing(id=1), 0, None)
        mock_db_session.execute.return_value = mock_result

        def assign_id():
            added = mock_db_session.add.call_args.args[0]
            added.id = 42
            added.date_created = CREATED

        mock_db_session.flush.side_effect = assign_id
        author = make_user(id=3, user_name="c.bloggs")

        review = await self.service.create_review(
            mock_db_session, author, ReviewCreate(thing_id=1, rating=4, text="Solid thing")
        )

        added = mock_db_session.add.call_args.args[0]
        assert added.user_id == 3
        assert review.id == 42
        assert review.user.user_name == "c.bloggs"

    @pytest.mark.asyncio
    async def test_review_for_missing_thing(self, mock_db_session):
        mock_result = MagicMock()
        mock_result.first.return_value = None
        mock_db_session.execute.return_value = mock_result

        with pytest.raises(NotFoundError):
            await self.service.create_review(
                mock_db_session, make_user(), ReviewCreate(thing_id=999, rating=4, text="Hm")
            )
        mock_db_session.add.assert_not_called()
