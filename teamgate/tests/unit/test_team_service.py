"""
Unit tests for TeamService.

Tests cover:
- Find-or-create by external tenant (idempotency, race recovery)
- Best-effort provisioning of new teams (default collection, subdomain)
- Subdomain claims
- Avatar re-hosting before save and the post-sign-in avatar refresh
- Admin operations (last admin guard, self suspension)
"""

import pytest
from sqlalchemy.exc import IntegrityError, OperationalError

from teamgate.src.models import Collection, CollectionType, Team, User
from teamgate.src.services.avatar_storage import AvatarStorage, AvatarUploadResult
from teamgate.src.services.exceptions import (
    LastAdminError,
    NotFoundError,
    SelfSuspensionError,
    SubdomainConflict,
    ValidationError,
)
from teamgate.src.services.avatar_service import AvatarResolver
from teamgate.src.services.team_service import TeamService, refresh_team_avatar


# ============================================================================
# Fixtures
# ============================================================================


@pytest.fixture
def team_service(test_db_session):
    """Create a TeamService instance without avatar storage."""
    return TeamService(test_db_session)


# ============================================================================
# Lookup Tests
# ============================================================================


class TestTeamServiceLookups:

    def test_get_by_id_not_found(self, team_service):
        with pytest.raises(NotFoundError):
            team_service.get_by_id(9999)

    def test_get_by_external_id(self, team_service, sample_team):
        team = sample_team(external_tenant_id="globex.com")
        assert team_service.get_by_external_id("google", "globex.com").id == team.id
        assert team_service.get_by_external_id("google", "other.com") is None

    def test_get_by_subdomain(self, team_service, sample_team):
        team = sample_team(subdomain="acme")
        assert team_service.get_by_subdomain("acme").id == team.id
        assert team_service.get_by_subdomain("nope") is None


# ============================================================================
# Find-or-create Tests
# ============================================================================


class TestFindOrCreateByExternalId:

    def test_creates_team(self, team_service):
        team, created = team_service.find_or_create_by_external_id(
            provider="google",
            external_tenant_id="acme.com",
            name="Acme",
            avatar_url="https://logo.clearbit.com/acme.com",
        )

        assert created is True
        assert team.id is not None
        assert team.guid.startswith("ten_")
        assert team.name == "Acme"
        assert team.external_provider == "google"
        assert team.external_tenant_id == "acme.com"
        assert team.avatar_url == "https://logo.clearbit.com/acme.com"
        assert team.subdomain is None

    def test_second_call_returns_existing(self, team_service, test_db_session):
        first, created_first = team_service.find_or_create_by_external_id(
            "google", "acme.com", "Acme"
        )
        second, created_second = team_service.find_or_create_by_external_id(
            "google", "acme.com", "Something Else", avatar_url="https://other/avatar.png"
        )

        assert created_first is True
        assert created_second is False
        assert second.id == first.id
        assert second.name == "Acme"
        assert second.avatar_url is None
        assert test_db_session.query(Team).count() == 1

    def test_same_domain_other_provider_is_another_team(self, team_service):
        google, _ = team_service.find_or_create_by_external_id("google", "acme.com", "Acme")
        other, created = team_service.find_or_create_by_external_id("slack", "acme.com", "Acme")

        assert created is True
        assert other.id != google.id

    def test_insert_conflict_recovers_as_lookup(self, team_service, sample_team, mocker):
        """A concurrent insert of the same tenant is treated as a lookup."""
        existing = sample_team(external_tenant_id="acme.com")
        # Simulate the race: the pre-insert lookup misses the concurrent row
        mocker.patch.object(
            team_service,
            "get_by_external_id",
            side_effect=[None, existing],
        )

        team, created = team_service.find_or_create_by_external_id("google", "acme.com", "Acme")

        assert created is False
        assert team.id == existing.id

    def test_rehosts_avatar_before_insert(self, test_db_session, mocker):
        storage = mocker.Mock(spec=AvatarStorage)
        storage.rehost.return_value = AvatarUploadResult(
            success=True, url="https://s3.test/uploads/avatars/x/1"
        )
        service = TeamService(test_db_session, storage)

        team, _ = service.find_or_create_by_external_id(
            "google", "acme.com", "Acme", avatar_url="https://logo.clearbit.com/acme.com"
        )

        storage.rehost.assert_called_once_with("https://logo.clearbit.com/acme.com", team.guid)
        assert team.avatar_url == "https://s3.test/uploads/avatars/x/1"

    def test_failed_rehost_keeps_avatar(self, test_db_session, mocker):
        storage = mocker.Mock(spec=AvatarStorage)
        storage.rehost.return_value = AvatarUploadResult(
            success=False,
            url="https://logo.clearbit.com/acme.com",
            error_code="rehost_failed",
        )
        service = TeamService(test_db_session, storage)

        team, created = service.find_or_create_by_external_id(
            "google", "acme.com", "Acme", avatar_url="https://logo.clearbit.com/acme.com"
        )

        assert created is True
        assert team.avatar_url == "https://logo.clearbit.com/acme.com"


# ============================================================================
# Provisioning Tests
# ============================================================================


class TestProvisionNewTeam:

    def test_seeds_collection_and_claims_subdomain(self, team_service, sample_team, sample_user, test_db_session):
        team = sample_team(external_tenant_id="acme.com")
        user = sample_user(team, is_admin=True)

        result = team_service.provision_new_team(team, user)

        assert result.success is True
        assert team.subdomain == "acme"
        collection = test_db_session.query(Collection).filter(Collection.team_id == team.id).one()
        assert collection.name == "General"
        assert collection.description == "Your first Collection"
        assert collection.type == CollectionType.ATLAS
        assert collection.creator_id == user.id

    def test_invalid_subdomain_is_skipped(self, team_service, sample_team, sample_user, test_db_session):
        """'ab.com' would claim 'ab', which is too short; the team stays valid."""
        team = sample_team(external_tenant_id="ab.com")
        user = sample_user(team, is_admin=True)

        result = team_service.provision_new_team(team, user)

        assert result.success is False
        assert result.error_code == "invalid"
        assert team.subdomain is None
        assert test_db_session.query(Collection).count() == 1

    def test_taken_subdomain_is_skipped(self, team_service, sample_team, sample_user):
        sample_team(name="Acme Inc", external_tenant_id="acme.io", subdomain="acme")
        team = sample_team(external_tenant_id="acme.com")
        user = sample_user(team, is_admin=True)

        result = team_service.provision_new_team(team, user)

        assert result.success is False
        assert result.error_code == "taken"
        assert team.subdomain is None

    def test_collection_failure_does_not_abort(self, team_service, sample_team, sample_user, mocker):
        team = sample_team(external_tenant_id="acme.com")
        user = sample_user(team, is_admin=True)
        mocker.patch.object(
            team_service,
            "create_first_collection",
            side_effect=IntegrityError("INSERT", {}, Exception("boom")),
        )

        result = team_service.provision_new_team(team, user)

        assert result.success is True
        assert team.subdomain == "acme"


# ============================================================================
# Subdomain Tests
# ============================================================================


class TestSubdomains:

    def test_claim_valid_subdomain(self, team_service, sample_team):
        team = sample_team()

        result = team_service.claim_subdomain(team, "acme-team")

        assert result.success is True
        assert result.subdomain == "acme-team"
        assert team.subdomain == "acme-team"

    def test_claim_too_short(self, team_service, sample_team):
        team = sample_team()

        result = team_service.claim_subdomain(team, "ab")

        assert result.success is False
        assert result.error_code == "invalid"
        assert result.error == "Must be between 4 and 32 characters"
        assert team.subdomain is None

    def test_claim_taken_keeps_previous(self, team_service, sample_team):
        sample_team(name="Other", external_tenant_id="other.com", subdomain="taken")
        team = sample_team(subdomain="mine")

        result = team_service.claim_subdomain(team, "taken")

        assert result.success is False
        assert result.error_code == "taken"
        assert team.subdomain == "mine"

    def test_claim_database_error_keeps_previous(self, team_service, sample_team, mocker):
        team = sample_team(subdomain="mine")
        mocker.patch.object(
            team_service,
            "get_by_subdomain",
            side_effect=OperationalError("SELECT", {}, Exception("database unavailable")),
        )

        result = team_service.claim_subdomain(team, "acme-team")

        assert result.success is False
        assert result.error_code == "error"
        assert result.subdomain == "mine"
        assert team.subdomain == "mine"

    def test_update_subdomain_raises_on_invalid(self, team_service, sample_team):
        with pytest.raises(ValidationError):
            team_service.update_subdomain(sample_team(), "Not_Valid")

    def test_update_subdomain_raises_on_conflict(self, team_service, sample_team):
        sample_team(name="Other", external_tenant_id="other.com", subdomain="taken")
        with pytest.raises(SubdomainConflict):
            team_service.update_subdomain(sample_team(), "taken")

    def test_update_subdomain_rehosts_avatar(self, test_db_session, sample_team, mocker):
        team = sample_team(avatar_url="https://logo.clearbit.com/acme.com")
        storage = mocker.Mock(spec=AvatarStorage)
        storage.rehost.return_value = AvatarUploadResult(
            success=True, url="https://s3.test/uploads/avatars/x/2"
        )

        TeamService(test_db_session, storage).update_subdomain(team, "acme")

        assert team.subdomain == "acme"
        assert team.avatar_url == "https://s3.test/uploads/avatars/x/2"


class TestRefreshAvatar:

    def test_refresh_with_new_url(self, team_service, sample_team):
        team = sample_team(avatar_url="https://old/avatar.png")

        team_service.refresh_avatar(team, "https://new/avatar.png")

        assert team.avatar_url == "https://new/avatar.png"

    def test_refresh_retries_rehost(self, test_db_session, sample_team, mocker):
        team = sample_team(avatar_url="https://logo.clearbit.com/acme.com")
        storage = mocker.Mock(spec=AvatarStorage)
        storage.rehost.return_value = AvatarUploadResult(
            success=True, url="https://s3.test/uploads/avatars/x/3"
        )

        TeamService(test_db_session, storage).refresh_avatar(team)

        assert team.avatar_url == "https://s3.test/uploads/avatars/x/3"


class TestRefreshTeamAvatar:

    @pytest.mark.asyncio
    async def test_logo_replaces_generated_avatar(
        self, test_session_factory, test_db_session, sample_team, app_settings, logo_transport
    ):
        team = sample_team(avatar_url="https://tiley.herokuapp.com/avatar/abc/A.png")
        logo_transport.state["status"] = 200
        resolver = AvatarResolver(app_settings, transport=logo_transport)

        await refresh_team_avatar(test_session_factory, resolver, None, team.id, "acme.com")

        test_db_session.expire_all()
        assert test_db_session.get(Team, team.id).avatar_url == "https://logo.clearbit.com/acme.com"
        assert logo_transport.state["requests"] == ["https://logo.clearbit.com/acme.com"]

    @pytest.mark.asyncio
    async def test_rehosts_resolved_logo(
        self, test_session_factory, test_db_session, sample_team, app_settings, logo_transport, mocker
    ):
        team = sample_team()
        logo_transport.state["status"] = 200
        storage = mocker.Mock(spec=AvatarStorage)
        storage.rehost.return_value = AvatarUploadResult(
            success=True, url="https://s3.test/uploads/avatars/x/4"
        )
        resolver = AvatarResolver(app_settings, transport=logo_transport)

        await refresh_team_avatar(test_session_factory, resolver, storage, team.id, "acme.com")

        storage.rehost.assert_called_once_with("https://logo.clearbit.com/acme.com", team.guid)
        test_db_session.expire_all()
        assert test_db_session.get(Team, team.id).avatar_url == "https://s3.test/uploads/avatars/x/4"

    @pytest.mark.asyncio
    async def test_unknown_team_is_logged_not_raised(self, test_session_factory, app_settings, logo_transport):
        resolver = AvatarResolver(app_settings, transport=logo_transport)

        await refresh_team_avatar(test_session_factory, resolver, None, 9999, "acme.com")

        assert logo_transport.state["requests"] == []


# ============================================================================
# Admin Operation Tests
# ============================================================================


class TestAdminOperations:

    def test_add_admin(self, team_service, sample_team, sample_user):
        team = sample_team()
        user = sample_user(team)

        team_service.add_admin(user)

        assert user.is_admin is True
        assert team_service.count_admins(team.id) == 1

    def test_remove_admin_with_other_admin(self, team_service, sample_team, sample_user):
        team = sample_team()
        first = sample_user(team, is_admin=True)
        second = sample_user(team, is_admin=True)

        team_service.remove_admin(second)

        assert second.is_admin is False
        assert team_service.count_admins(team.id) == 1
        assert team_service.count_admins(team.id, exclude_user_id=first.id) == 0

    def test_remove_last_admin_is_refused(self, team_service, sample_team, sample_user, test_db_session):
        team = sample_team()
        admin = sample_user(team, is_admin=True)
        sample_user(team, is_admin=False)

        with pytest.raises(LastAdminError) as exc_info:
            team_service.remove_admin(admin)

        assert exc_info.value.message == "At least one admin is required"
        test_db_session.expire_all()
        assert test_db_session.get(User, admin.id).is_admin is True

    def test_admin_in_other_team_does_not_count(self, team_service, sample_team, sample_user):
        team = sample_team()
        other_team = sample_team(name="Globex", external_tenant_id="globex.com")
        admin = sample_user(team, is_admin=True)
        sample_user(other_team, is_admin=True)

        with pytest.raises(LastAdminError):
            team_service.remove_admin(admin)

    def test_suspend_user(self, team_service, sample_team, sample_user):
        team = sample_team()
        admin = sample_user(team, is_admin=True)
        user = sample_user(team)

        team_service.suspend_user(user, admin)

        assert user.is_suspended is True
        assert user.suspended_at is not None
        assert user.suspended_by_id == admin.id

    def test_self_suspension_is_refused(self, team_service, sample_team, sample_user, test_db_session):
        team = sample_team()
        admin = sample_user(team, is_admin=True)

        with pytest.raises(SelfSuspensionError) as exc_info:
            team_service.suspend_user(admin, admin)

        assert exc_info.value.message == "Unable to suspend the current user"
        test_db_session.expire_all()
        reloaded = test_db_session.get(User, admin.id)
        assert reloaded.suspended_at is None
        assert reloaded.suspended_by_id is None

    def test_activate_user(self, team_service, sample_team, sample_user):
        team = sample_team()
        admin = sample_user(team, is_admin=True)
        user = sample_user(team)
        team_service.suspend_user(user, admin)

        team_service.activate_user(user, admin)

        assert user.is_suspended is False
        assert user.suspended_at is None
        assert user.suspended_by_id is None
