"""
Tests for GUID generation and parsing on models.
"""

import re
import uuid

import pytest

from teamgate.src.models import Collection, Team, User


GUID_PATTERN = re.compile(r"^(ten|usr|col)_[a-z2-7]{26}$")


class TestGuid:

    def test_none_before_uuid_assigned(self):
        assert Team(name="Acme").guid is None

    def test_ensure_uuid_assigns_version_7(self):
        team = Team(name="Acme")

        value = team.ensure_uuid()

        assert value.version == 7
        assert team.ensure_uuid() == value

    @pytest.mark.parametrize("model,prefix", [(Team, "ten"), (User, "usr"), (Collection, "col")])
    def test_prefixed_base32(self, model, prefix):
        entity = model()
        entity.ensure_uuid()

        assert GUID_PATTERN.match(entity.guid)
        assert entity.guid.startswith(f"{prefix}_")

    def test_parse_round_trip(self):
        team = Team(name="Acme")
        team.uuid = uuid.UUID("018f4f5e-2c3a-7b1c-9d2e-0123456789ab")

        assert Team.parse_guid(team.guid) == team.uuid
        assert Team.parse_guid(team.guid.upper()) == team.uuid

    def test_generated_on_insert(self, sample_team):
        assert GUID_PATTERN.match(sample_team().guid)


class TestParseGuid:

    def test_wrong_prefix(self):
        user = User()
        user.ensure_uuid()

        with pytest.raises(ValueError, match="Invalid prefix"):
            Team.parse_guid(user.guid)

    def test_wrong_length(self):
        with pytest.raises(ValueError, match="Invalid GUID length"):
            Team.parse_guid("ten_abc")

    def test_invalid_characters(self):
        with pytest.raises(ValueError, match="Invalid GUID encoding"):
            Team.parse_guid("ten_" + "1" * 26)

    def test_empty(self):
        with pytest.raises(ValueError):
            Team.parse_guid("")
