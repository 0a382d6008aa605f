"""
Unit tests for UserService and the sign-in recorder.
"""

import pytest

from teamgate.src.models import User
from teamgate.src.services.exceptions import NotFoundError
from teamgate.src.services.user_service import UserService, record_sign_in


@pytest.fixture
def user_service(test_db_session):
    """Create a UserService instance for testing."""
    return UserService(test_db_session)


class TestFindOrCreateByServiceId:

    def test_creates_user(self, user_service, sample_team):
        team = sample_team()

        user, created = user_service.find_or_create_by_service_id(
            service="google",
            service_id="1234",
            team_id=team.id,
            name="Jane Doe",
            email="jane@acme.com",
            avatar_url="https://lh3.googleusercontent.com/a/jane.jpg",
            is_admin=True,
        )

        assert created is True
        assert user.guid.startswith("usr_")
        assert user.team_id == team.id
        assert user.name == "Jane Doe"
        assert user.email == "jane@acme.com"
        assert user.is_admin is True
        assert user.is_suspended is False

    def test_existing_user_returned_unchanged(self, user_service, sample_team, test_db_session):
        team = sample_team()
        first, _ = user_service.find_or_create_by_service_id(
            "google", "1234", team.id, name="Jane Doe", email="jane@acme.com"
        )

        second, created = user_service.find_or_create_by_service_id(
            "google", "1234", team.id, name="Jane Renamed", email="new@acme.com", is_admin=True
        )

        assert created is False
        assert second.id == first.id
        assert second.name == "Jane Doe"
        assert second.email == "jane@acme.com"
        assert second.is_admin is False
        assert test_db_session.query(User).count() == 1

    def test_same_identity_in_another_team(self, user_service, sample_team):
        acme = sample_team()
        globex = sample_team(name="Globex", external_tenant_id="globex.com")

        in_acme, _ = user_service.find_or_create_by_service_id("google", "1234", acme.id)
        in_globex, created = user_service.find_or_create_by_service_id("google", "1234", globex.id)

        assert created is True
        assert in_globex.id != in_acme.id

    def test_insert_conflict_recovers_as_lookup(self, user_service, sample_team, sample_user, mocker):
        team = sample_team()
        existing = sample_user(team, service_id="1234")
        mocker.patch.object(user_service, "get_by_service_id", side_effect=[None, existing])

        user, created = user_service.find_or_create_by_service_id("google", "1234", team.id)

        assert created is False
        assert user.id == existing.id


class TestUserLookups:

    def test_get_by_guid(self, user_service, sample_team, sample_user):
        user = sample_user(sample_team())
        assert user_service.get_by_guid(user.guid).id == user.id

    def test_get_by_guid_unknown(self, user_service):
        with pytest.raises(NotFoundError):
            user_service.get_by_guid("usr_" + "a" * 26)

    def test_get_by_id_unknown(self, user_service):
        with pytest.raises(NotFoundError):
            user_service.get_by_id(42)


class TestRecordSignIn:

    def test_records_timestamp_and_ip(self, test_session_factory, test_db_session, sample_team, sample_user):
        user = sample_user(sample_team())

        record_sign_in(test_session_factory, user.id, "203.0.113.7")

        test_db_session.expire_all()
        reloaded = test_db_session.get(User, user.id)
        assert reloaded.last_signed_in_at is not None
        assert reloaded.last_signed_in_ip == "203.0.113.7"

    def test_unknown_user_is_logged_not_raised(self, test_session_factory):
        record_sign_in(test_session_factory, 9999, "203.0.113.7")
