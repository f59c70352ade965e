"""Tests for input validation and background normalisation."""

import pytest

from user_directory_api.app.core.errors import BadRequestError
from user_directory_api.app.schemas.user import ColorBackground, ImageBackground, UserCreate, UserUpdate
from user_directory_api.app.schemas.zone import ZoneCreate
from user_directory_api.app.services.validation import (
    raise_for_violations,
    validate_user_create,
    validate_user_update,
    validate_zone,
)


def _fields(violations):
    return {violation.field for violation in violations}


class TestUserCreate:

    def test_valid_payload_has_no_violations(self):
        data = UserCreate(
            login="stylesam",
            password="secret123",
            name="Sam",
            email="stylesam@yandex.ru",
            phone="+79991234567",
            socials=[{"name": "VK", "url": "https://vk.com/stylesams"}],
        )
        assert validate_user_create(data) == []

    def test_all_violations_are_collected(self):
        data = UserCreate(
            login="x",
            password="123",
            name="  ",
            email="not-an-email",
            phone="12",
            socials=[{"name": "", "url": "vk.com"}],
        )
        assert _fields(validate_user_create(data)) == {
            "login",
            "password",
            "name",
            "email",
            "phone",
            "socials[0].name",
            "socials[0].url",
        }

    @pytest.mark.parametrize("email", ["sam@exa..mple..com", "sam@", "sam yandex.ru", "@yandex.ru"])
    def test_malformed_email_rejected(self, email):
        data = UserCreate(login="stylesam", password="secret123", name="Sam", email=email)
        assert _fields(validate_user_create(data)) == {"email"}

    @pytest.mark.parametrize(
        "url",
        ["https://exa mple.com/<script>", "ftp://vk.com/stylesams", "javascript:alert(1)", "https://"],
    )
    def test_malformed_social_link_rejected(self, url):
        data = UserCreate(
            login="stylesam", password="secret123", name="Sam", socials=[{"name": "VK", "url": url}]
        )
        assert _fields(validate_user_create(data)) == {"socials[0].url"}

    def test_patch_contacts_checked_with_same_rules(self):
        patch = UserUpdate(
            email="sam@exa..mple..com", socials=[{"name": "VK", "url": "https://exa mple.com/<script>"}]
        )
        assert _fields(validate_user_update(patch)) == {"email", "socials[0].url"}

    def test_empty_background_colour_rejected(self):
        data = UserCreate(login="stylesam", password="secret123", name="Sam", background="")
        assert _fields(validate_user_create(data)) == {"background.value"}


class TestBackground:

    def test_string_is_normalised_to_colour(self):
        data = UserCreate(login="stylesam", password="secret123", name="Sam", background="#ff8800")
        assert data.background == ColorBackground(value="#ff8800")

    def test_tagged_image(self):
        data = UserCreate(
            login="stylesam",
            password="secret123",
            name="Sam",
            background={"type": "image", "reference": "files/bg.png"},
        )
        assert isinstance(data.background, ImageBackground)
        assert data.background.reference == "files/bg.png"

    def test_patch_background_normalised(self):
        patch = UserUpdate(background="blue")
        assert patch.background == ColorBackground(value="blue")


class TestUserUpdate:

    def test_only_sent_fields_are_checked(self):
        assert validate_user_update(UserUpdate(name="New")) == []
        assert validate_user_update(UserUpdate()) == []

    def test_required_fields_can_not_be_cleared(self):
        patch = UserUpdate(name=None, login=None)
        assert _fields(validate_user_update(patch)) == {"name", "login"}

    def test_optional_contacts_can_be_cleared(self):
        assert validate_user_update(UserUpdate(email=None, phone=None)) == []

    def test_changed_fields_reflect_payload(self):
        assert UserUpdate(name="X", role_id=2).changed_fields() == {"name", "role_id"}


class TestZone:

    def test_presence_only(self):
        assert validate_zone(ZoneCreate(name="Home", geometry={"anything": 1})) == []

    def test_missing_name_and_geometry(self):
        assert _fields(validate_zone(ZoneCreate(name=" ", geometry={}))) == {"name", "geometry"}


def test_raise_for_violations_carries_the_list():
    violations = validate_zone(ZoneCreate(name="", geometry={}))
    with pytest.raises(BadRequestError) as exc_info:
        raise_for_violations(violations, "Invalid zone data")
    assert exc_info.value.violations == violations
    raise_for_violations([])
