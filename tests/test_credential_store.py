"""Tests for password hashing and account persistence."""

import pytest

from app.core.errors import AccountNotFoundError, DuplicateEmailError, ValidationAppError
from app.services.credential_store import (
    hash_password,
    missing_required_fields,
    normalize_email,
    verify_password,
)


class TestPasswordHashing:
    def test_default_work_factor_is_ten(self) -> None:
        hashed = hash_password("p1")

        assert hashed.startswith("$2b$10$")
        assert "p1" not in hashed

    def test_hash_is_salted(self) -> None:
        assert hash_password("same", rounds=4) != hash_password("same", rounds=4)

    def test_verify_matches_only_original_password(self) -> None:
        hashed = hash_password("correct horse", rounds=4)

        assert verify_password("correct horse", hashed) is True
        assert verify_password("correct horsE", hashed) is False

    def test_verify_rejects_malformed_hash(self) -> None:
        assert verify_password("anything", "not-a-bcrypt-hash") is False


class TestHelpers:
    def test_normalize_email(self) -> None:
        assert normalize_email("  A@X.com ") == "a@x.com"
        assert normalize_email(None) == ""

    def test_missing_required_fields_treats_blank_as_missing(self) -> None:
        missing = missing_required_fields(
            {"email": "a@x.com", "password": "  ", "full_name": None}
        )

        assert missing == ["password", "full_name", "phone_number"]


class TestCreateAccount:
    @pytest.mark.asyncio
    async def test_stores_hash_not_plaintext(self, credential_store) -> None:
        account = await credential_store.create_account(
            email="a@x.com", password="p1", full_name="A", phone_number="123"
        )

        assert account.id is not None
        assert account.password_hash != "p1"
        assert await credential_store.verify("p1", account.password_hash) is True
        assert account.is_agency is False
        assert account.profile_image_url is None

    @pytest.mark.asyncio
    async def test_duplicate_email_rejected(self, credential_store) -> None:
        await credential_store.create_account(
            email="a@x.com", password="p1", full_name="A", phone_number="123"
        )

        with pytest.raises(DuplicateEmailError) as exc_info:
            await credential_store.create_account(
                email="a@x.com",
                password="other",
                full_name="B",
                phone_number="999",
                company_name="Acme",
                is_agency=True,
            )

        assert exc_info.value.message == "Email already registered"

    @pytest.mark.asyncio
    async def test_duplicate_detection_ignores_case(self, credential_store) -> None:
        await credential_store.create_account(
            email="a@x.com", password="p1", full_name="A", phone_number="123"
        )

        with pytest.raises(DuplicateEmailError):
            await credential_store.create_account(
                email="A@X.COM", password="p1", full_name="A", phone_number="123"
            )

    @pytest.mark.asyncio
    @pytest.mark.parametrize("missing", ["email", "password", "full_name", "phone_number"])
    async def test_required_fields(self, credential_store, missing) -> None:
        fields = {
            "email": "a@x.com",
            "password": "p1",
            "full_name": "A",
            "phone_number": "123",
        }
        fields[missing] = ""

        with pytest.raises(ValidationAppError) as exc_info:
            await credential_store.create_account(**fields)

        assert exc_info.value.details["missing_fields"] == [missing]

    @pytest.mark.asyncio
    async def test_overlong_password_rejected(self, credential_store) -> None:
        with pytest.raises(ValidationAppError) as exc_info:
            await credential_store.create_account(
                email="a@x.com", password="x" * 73, full_name="A", phone_number="1"
            )

        assert exc_info.value.code == "password_too_long"


class TestLookups:
    @pytest.mark.asyncio
    async def test_find_by_email(self, credential_store, account) -> None:
        found = await credential_store.find_by_email("OWNER@example.com")

        assert found is not None
        assert found.id == account.id

    @pytest.mark.asyncio
    async def test_find_by_email_unknown(self, credential_store) -> None:
        assert await credential_store.find_by_email("nobody@example.com") is None
        assert await credential_store.find_by_email(None) is None

    @pytest.mark.asyncio
    async def test_get_by_id(self, credential_store, account) -> None:
        assert (await credential_store.get_by_id(account.id)).email == "owner@example.com"
        assert await credential_store.get_by_id(account.id + 1000) is None


class TestCheckPassword:
    @pytest.mark.asyncio
    async def test_missing_account_never_matches(self, credential_store) -> None:
        assert await credential_store.check_password("anything", None) is False

    @pytest.mark.asyncio
    async def test_existing_account(self, credential_store, account) -> None:
        assert await credential_store.check_password("s3cret", account) is True
        assert await credential_store.check_password("wrong", account) is False


class TestRotatePassword:
    @pytest.mark.asyncio
    async def test_rotation_replaces_hash(self, credential_store, account) -> None:
        await credential_store.rotate_password(account.id, "n3w")

        reloaded = await credential_store.get_by_id(account.id)
        assert await credential_store.check_password("n3w", reloaded) is True
        assert await credential_store.check_password("s3cret", reloaded) is False

    @pytest.mark.asyncio
    async def test_rotation_for_unknown_account(self, credential_store) -> None:
        with pytest.raises(AccountNotFoundError):
            await credential_store.rotate_password(4242, "n3w")

    @pytest.mark.asyncio
    async def test_rotation_requires_password(self, credential_store, account) -> None:
        with pytest.raises(ValidationAppError):
            await credential_store.rotate_password(account.id, " ")
