from decimal import Decimal

from app.services.mutation_pipeline import build_change_set
from app.services.subjects import applicants, incomes
from app.services.visibility import action_map, read_map, shape, write_map

APPLICANT = applicants.DEFINITION
INCOME = incomes.DEFINITION


def test_identity_and_tenant_fields_are_never_writable(saas_admin):
    writable = write_map(saas_admin, APPLICANT)
    assert writable["id"] is False
    assert writable["bank_id"] is False
    assert writable["created_at"] is False
    assert writable["first_name"] is True


def test_derived_fields_are_readable_via_sources_but_never_writable(officer):
    readable = read_map(officer, APPLICANT)
    writable = write_map(officer, APPLICANT)
    assert readable["full_name"] is True
    assert readable["verification_status"] is True
    assert writable["full_name"] is False
    assert writable["verification_status"] is False


def test_officer_write_map_excludes_verification(officer):
    writable = write_map(officer, APPLICANT)
    assert writable["address_city"] is True
    assert writable["aadhar_number"] is True
    assert writable["pan_verification_status"] is False
    assert writable["photo_url"] is False


def test_action_map(inspector):
    assert action_map(inspector, APPLICANT) == {
        "create": False,
        "read": True,
        "update": True,
        "delete": False,
    }


def test_shape_drops_unreadable_and_derives_from_visible_values(inspector):
    readable = read_map(inspector, INCOME)
    values = {
        "id": "i-1",
        "bank_id": "bank-1",
        "year": 2024,
        "gross_income": Decimal("900000"),
        "tax_paid": Decimal("90000"),
        "taxable_income": Decimal("700000"),
    }
    shaped = shape(values, readable, INCOME)
    assert "tax_paid" not in shaped
    assert "taxable_income" not in shaped
    assert shaped["gross_income"] == Decimal("900000")
    # net_income is readable through gross_income but must not reveal tax_paid.
    assert shaped["net_income"] is None


def test_shape_computes_derived_when_all_sources_visible(bank_admin):
    readable = read_map(bank_admin, INCOME)
    shaped = shape(
        {"gross_income": Decimal("900000"), "tax_paid": Decimal("90000")},
        readable,
        INCOME,
    )
    assert shaped["net_income"] == Decimal("810000")


def test_shape_applicant_derived_values(bank_admin):
    shaped = shape(
        {
            "first_name": "Asha",
            "last_name": "Rao",
            "address_city": "Pune",
            "address_state": "Maharashtra",
            "aadhar_verification_status": True,
            "pan_verification_status": False,
        },
        read_map(bank_admin, APPLICANT),
        APPLICANT,
    )
    assert shaped["full_name"] == "Asha Rao"
    assert shaped["full_address"] == "Pune, Maharashtra"
    assert shaped["verification_status"] == "PARTIALLY_VERIFIED"


def test_build_change_set_drops_unwritable_and_protected_keys(officer):
    writable = write_map(officer, APPLICANT)
    payload = {
        "id": "00000000-0000-0000-0000-000000000000",
        "bank_id": "bank-2",
        "address_city": "Pune",
        "pan_verification_status": True,
        "full_name": "Nope",
        "unknown": 1,
    }
    assert build_change_set(payload, writable) == {"address_city": "Pune"}


def test_build_change_set_ignores_writable_map_for_protected_keys():
    assert build_change_set({"id": 1, "bank_id": "x"}, {"id": True, "bank_id": True}) == {}
