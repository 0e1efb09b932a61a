"""Tests for BusinessProfileService."""

import re
from uuid import UUID

import psycopg2.errors
import pytest

from core.audit import AuditAction
from core.exceptions import BusinessProfileExistsError
from core.models import BusinessProfileCreate, BusinessProfileUpdate, ImageKind
from core.services.business_profile_service import BusinessProfileService

PROFILE_ID = UUID("22222222-2222-2222-2222-222222222222")


def _echo_insert(sql, params):
    columns = sql[sql.index("(") + 1:sql.index(")")].split(", ")
    return [dict(zip(columns, params))]


def _set_values(sql, params) -> dict:
    columns = re.findall(r"(\w+) = %s", sql.split("WHERE")[0])
    return dict(zip(columns, params))


@pytest.fixture
def service(db, audit, invoice_config):
    return BusinessProfileService(db, audit, invoice_config)


class TestGetForOwner:

    def test_returns_profile(self, service, db, profile_row, as_test_owner):
        db.execute_single.return_value = profile_row

        profile = service.get_for_owner()

        assert profile.business_name == "Acme Studio"
        assert db.execute_single.call_args.args[1] == (as_test_owner,)

    def test_none_when_missing(self, service, db, as_test_owner):
        db.execute_single.return_value = None

        assert service.get_for_owner() is None


class TestGetById:

    def test_owned(self, service, db, profile_row, as_test_owner):
        db.execute_single.return_value = profile_row

        assert service.get_by_id(PROFILE_ID).id == PROFILE_ID

    def test_other_owner_forbidden(self, service, db, as_test_owner):
        db.execute_single.return_value = None
        db.execute_scalar.return_value = True

        with pytest.raises(PermissionError):
            service.get_by_id(PROFILE_ID)

    def test_missing_not_found(self, service, db, as_test_owner):
        db.execute_single.return_value = None
        db.execute_scalar.return_value = False

        with pytest.raises(ValueError, match="not found"):
            service.get_by_id(PROFILE_ID)


class TestCreate:

    def test_defaults_from_config(self, service, db, audit, as_test_owner):
        db.execute_single.return_value = None
        db.execute_returning.side_effect = _echo_insert

        profile = service.create(BusinessProfileCreate())

        assert profile.business_name == "ABC Solutions"
        assert profile.default_tax_percent == 18
        assert profile.owner_id == as_test_owner
        assert profile.email == ""
        assert audit.log_change.call_args.kwargs["action"] == AuditAction.CREATE

    def test_supplied_values(self, service, db, as_test_owner):
        db.execute_single.return_value = None
        db.execute_returning.side_effect = _echo_insert

        profile = service.create(BusinessProfileCreate(
            business_name="Acme Studio", email="billing@acme.test", default_tax_percent=0,
        ))

        assert profile.business_name == "Acme Studio"
        assert profile.email == "billing@acme.test"
        assert profile.default_tax_percent == 0

    def test_second_profile_rejected(self, service, db, profile_row, as_test_owner):
        db.execute_single.return_value = profile_row

        with pytest.raises(ValueError, match="already exists"):
            service.create(BusinessProfileCreate())

        db.execute_returning.assert_not_called()

    def test_concurrent_insert_reported_as_existing(self, service, db, audit, as_test_owner):
        db.execute_single.return_value = None
        db.execute_returning.side_effect = psycopg2.errors.UniqueViolation()

        with pytest.raises(BusinessProfileExistsError):
            service.create(BusinessProfileCreate())

        audit.log_change.assert_not_called()


class TestUpdate:

    def test_only_present_fields_written(self, service, db, profile_row, make_profile_row, as_test_owner):
        db.execute_single.return_value = profile_row
        db.execute_returning.return_value = [make_profile_row(phone="123")]

        profile = service.update(PROFILE_ID, BusinessProfileUpdate(phone="123"))

        sql, params = db.execute_returning.call_args.args
        written = _set_values(sql, params)
        assert set(written) == {"phone", "updated_at"}
        assert written["phone"] == "123"
        assert params[-2:] == (PROFILE_ID, as_test_owner)
        assert profile.phone == "123"

    def test_null_clears_image(self, service, db, profile_row, make_profile_row, as_test_owner):
        db.execute_single.return_value = profile_row
        db.execute_returning.return_value = [make_profile_row(logo_url=None)]

        service.update(PROFILE_ID, BusinessProfileUpdate(logo_url=None))

        assert _set_values(*db.execute_returning.call_args.args)["logo_url"] is None

    def test_null_text_becomes_empty(self, service, db, profile_row, as_test_owner):
        db.execute_single.return_value = profile_row
        db.execute_returning.return_value = [profile_row]

        service.update(PROFILE_ID, BusinessProfileUpdate(gst=None, business_name=None))

        written = _set_values(*db.execute_returning.call_args.args)
        assert written["gst"] == ""
        assert written["business_name"] == "ABC Solutions"

    def test_blank_email_clears_it(self, service, db, profile_row, as_test_owner):
        db.execute_single.return_value = profile_row
        db.execute_returning.return_value = [profile_row]

        service.update(PROFILE_ID, BusinessProfileUpdate(email=""))

        assert _set_values(*db.execute_returning.call_args.args)["email"] == ""

    def test_empty_update_is_noop(self, service, db, audit, profile_row, as_test_owner):
        db.execute_single.return_value = profile_row

        profile = service.update(PROFILE_ID, BusinessProfileUpdate())

        assert profile.id == PROFILE_ID
        db.execute_returning.assert_not_called()
        audit.log_change.assert_not_called()

    def test_other_owner_forbidden(self, service, db, as_test_owner):
        db.execute_single.return_value = None
        db.execute_scalar.return_value = True

        with pytest.raises(PermissionError):
            service.update(PROFILE_ID, BusinessProfileUpdate(phone="1"))

        db.execute_returning.assert_not_called()

    def test_audits_changes(self, service, db, audit, profile_row, make_profile_row, as_test_owner):
        db.execute_single.return_value = profile_row
        db.execute_returning.return_value = [make_profile_row(gst="NEW")]

        service.update(PROFILE_ID, BusinessProfileUpdate(gst="NEW"))

        kwargs = audit.log_change.call_args.kwargs
        assert kwargs["action"] == AuditAction.UPDATE
        assert kwargs["changes"] == {"gst": {"old": "29ABCDE1234F1Z5", "new": "NEW"}}


class TestSave:

    def test_creates_first_time(self, service, db, as_test_owner):
        db.execute_single.return_value = None
        db.execute_returning.side_effect = _echo_insert

        profile = service.save(BusinessProfileUpdate(business_name="New Co"))

        assert profile.business_name == "New Co"
        assert "INSERT INTO business_profiles" in db.execute_returning.call_args.args[0]

    def test_updates_existing(self, service, db, profile_row, as_test_owner):
        db.execute_single.return_value = profile_row
        db.execute_returning.return_value = [profile_row]

        service.save(BusinessProfileUpdate(phone="9"))

        assert db.execute_returning.call_args.args[0].strip().startswith("UPDATE business_profiles")

    def test_concurrent_first_save_becomes_update(
        self, service, db, profile_row, make_profile_row, as_test_owner
    ):
        # Not found twice (save, create), then the row the other request inserted
        db.execute_single.side_effect = [None, None, profile_row, profile_row]
        db.execute_returning.side_effect = [
            psycopg2.errors.UniqueViolation(),
            [make_profile_row(phone="9")],
        ]

        profile = service.save(BusinessProfileUpdate(phone="9"))

        assert profile.phone == "9"
        assert db.execute_returning.call_args.args[0].strip().startswith("UPDATE business_profiles")


class TestSetImage:

    def test_sets_column_for_kind(self, service, db, profile_row, as_test_owner):
        db.execute_single.return_value = profile_row
        db.execute_returning.return_value = [profile_row]

        service.set_image(PROFILE_ID, ImageKind.SIGNATURE, "https://cdn.test/sig.png")

        written = _set_values(*db.execute_returning.call_args.args)
        assert written["signature_url"] == "https://cdn.test/sig.png"
