import pytest
from sqlalchemy import text

from app.models import Applicant, Income
from app.models.types import EncryptedString
from conftest import make_applicant


def test_encrypted_string_round_trip() -> None:
    column_type = EncryptedString(secret="test-field-key")
    token = column_type.process_bind_param("ABCDE1234F", None)
    assert token is not None
    assert b"ABCDE1234F" not in token
    assert column_type.process_result_value(token, None) == "ABCDE1234F"
    assert column_type.process_bind_param(None, None) is None


def test_encrypted_string_rejects_foreign_key() -> None:
    token = EncryptedString(secret="key-one").process_bind_param("123412341234", None)
    with pytest.raises(ValueError):
        EncryptedString(secret="key-two").process_result_value(token, None)


def test_active_uniqueness_indexes_are_partial() -> None:
    indexes = {index.name: index for index in Applicant.__table__.indexes}
    email_index = indexes["uq_applicants_bank_email_active"]
    assert email_index.unique
    assert [column.name for column in email_index.columns] == ["bank_id", "email"]
    assert "deleted_at IS NULL" in str(email_index.dialect_options["postgresql"]["where"])

    income_index = next(index for index in Income.__table__.indexes if index.name == "uq_incomes_applicant_year_type_active")
    assert [column.name for column in income_index.columns] == ["applicant_id", "year", "income_type"]


@pytest.mark.asyncio
async def test_national_identifiers_are_stored_encrypted(db) -> None:
    applicant = await make_applicant(db, pan_number="ABCDE1234F")
    raw = await db.scalar(text("SELECT pan_number FROM applicants WHERE email = :email"), {"email": applicant.email})
    assert raw is not None
    assert b"ABCDE1234F" not in bytes(raw)


def test_rotated_keys_still_decrypt_old_values() -> None:
    old_token = EncryptedString(secret="old-key").process_bind_param("123412341234", None)
    rotated = EncryptedString(secret="new-key,old-key")
    assert rotated.process_result_value(old_token, None) == "123412341234"
    new_token = rotated.process_bind_param("123412341234", None)
    assert EncryptedString(secret="new-key").process_result_value(new_token, None) == "123412341234"
