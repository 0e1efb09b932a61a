"""Tests for domain models."""

from datetime import date

import pytest
from pydantic import ValidationError

from core.models import (
    BusinessProfileCreate,
    BusinessProfileUpdate,
    ClientInfo,
    ImageKind,
    Invoice,
    InvoiceDraft,
    InvoiceStatus,
    InvoiceSummary,
    InvoiceUpdate,
    LineItem,
)


class TestInvoiceStatus:

    @pytest.mark.parametrize("value,expected", [
        ("paid", InvoiceStatus.PAID),
        ("Paid", InvoiceStatus.PAID),
        (" OVERDUE ", InvoiceStatus.OVERDUE),
        ("sent", InvoiceStatus.SENT),
        (InvoiceStatus.UNPAID, InvoiceStatus.UNPAID),
    ])
    def test_recognized(self, value, expected):
        assert InvoiceStatus.normalize(value) == expected

    @pytest.mark.parametrize("value", [None, "", "Partially paid", "cancelled", 3])
    def test_unrecognized_is_draft(self, value):
        assert InvoiceStatus.normalize(value) == InvoiceStatus.DRAFT


class TestLineItemFromRaw:

    def test_key_aliases(self):
        assert LineItem.from_raw({"description": " a ", "qty": "2", "unitPrice": "3.5"}) == LineItem(
            description="a", quantity=2, unit_price=3.5
        )

    def test_snake_case_keys_win(self):
        item = LineItem.from_raw({"quantity": 4, "qty": 9, "unit_price": 1, "unitPrice": 8})

        assert (item.quantity, item.unit_price) == (4, 1)

    def test_missing_quantity_uses_default(self):
        assert LineItem.from_raw({"description": "x"}).quantity == 0
        assert LineItem.from_raw({"description": "x"}, default_quantity=1).quantity == 1

    def test_non_mapping(self):
        assert LineItem.from_raw(None) is None
        assert LineItem.from_raw("item") is None

    def test_line_item_passthrough(self):
        item = LineItem(description="x", quantity=1, unit_price=1)

        assert LineItem.from_raw(item) is item

    def test_amount(self):
        assert LineItem(quantity=3, unit_price=2.5).amount == 7.5


class TestLineItemFromRawList:

    def test_json_string(self):
        items = LineItem.from_raw_list('[{"description": "x", "qty": 1, "unitPrice": 5}]')

        assert items == [LineItem(description="x", quantity=1, unit_price=5)]

    def test_bad_json_string(self):
        assert LineItem.from_raw_list("[{not json") == []

    def test_drops_non_items(self):
        assert len(LineItem.from_raw_list([None, 1, {"description": "x"}])) == 1

    def test_keep_invalid_holds_positions(self):
        items = LineItem.from_raw_list([None, {"description": "x"}, "junk"], keep_invalid=True)

        assert items == [None, LineItem(description="x"), None]

    def test_none_and_non_list(self):
        assert LineItem.from_raw_list(None) == []
        assert LineItem.from_raw_list({"description": "x"}) == []


class TestInvoiceDraft:

    def test_defaults(self):
        draft = InvoiceDraft()

        assert draft.status == InvoiceStatus.DRAFT
        assert draft.items == []
        assert draft.client == ClientInfo()
        assert draft.currency is None
        assert draft.tax_percent is None

    def test_loose_input(self):
        draft = InvoiceDraft(
            items='[{"description": "x", "qty": "2", "unitPrice": "3"}]',
            status="PAID",
            tax_percent="18",
            issue_date="2026-10-19T10:00:00Z",
            due_date="not a date",
            notes=None,
            client=None,
        )

        assert draft.items == [LineItem(description="x", quantity=2, unit_price=3)]
        assert draft.status == InvoiceStatus.PAID
        assert draft.tax_percent == 18
        assert draft.issue_date == date(2026, 10, 19)
        assert draft.due_date is None
        assert draft.notes == ""
        assert draft.client == ClientInfo()

    def test_blank_tax_is_none(self):
        assert InvoiceDraft(tax_percent="  ").tax_percent is None

    def test_client_fields_stripped(self):
        assert InvoiceDraft(client={"name": "  Globex "}).client.name == "Globex"

    def test_non_item_entries_become_placeholders(self):
        draft = InvoiceDraft(items=[None, {"description": "x", "qty": 1}])

        assert draft.items == [None, LineItem(description="x", quantity=1)]


class TestInvoiceUpdate:

    def test_only_set_fields_tracked(self):
        update = InvoiceUpdate(notes="hi", logo_url=None)

        assert update.model_fields_set == {"notes", "logo_url"}

    def test_items_adapted(self):
        update = InvoiceUpdate(items=[{"description": "x", "qty": 1, "unitPrice": 2}])

        assert update.items == [LineItem(description="x", quantity=1, unit_price=2)]

    def test_none_status_kept_none(self):
        assert InvoiceUpdate(status=None).status is None


class TestInvoice:

    def test_from_row(self, invoice_row):
        invoice = Invoice.model_validate(invoice_row)

        assert invoice.invoice_number == "INV-20261019-000123"
        assert invoice.items[0].amount == 1000
        assert invoice.client.name == "Globex"
        assert invoice.status == InvoiceStatus.DRAFT

    def test_unknown_stored_status_reads_as_draft(self, make_invoice_row):
        assert Invoice.model_validate(make_invoice_row(status="legacy")).status == InvoiceStatus.DRAFT


class TestInvoiceSummary:

    def test_paid_percentage(self):
        summary = InvoiceSummary(currency="INR", paid_total=300, unpaid_total=100)

        assert summary.paid_percentage == 75
        assert summary.model_dump()["paid_percentage"] == 75

    def test_paid_percentage_empty(self):
        assert InvoiceSummary(currency="INR").paid_percentage == 0


class TestBusinessProfileModels:

    def test_invalid_email_rejected(self):
        with pytest.raises(ValidationError):
            BusinessProfileCreate(email="not-an-email")

    @pytest.mark.parametrize("email", ["", "   "])
    def test_blank_email_is_none(self, email):
        assert BusinessProfileCreate(email=email).email is None
        assert BusinessProfileUpdate(email=email).model_dump(exclude_unset=True) == {"email": None}

    @pytest.mark.parametrize("tax", [-1, 101])
    def test_tax_range(self, tax):
        with pytest.raises(ValidationError):
            BusinessProfileUpdate(default_tax_percent=tax)

    def test_exclude_unset(self):
        update = BusinessProfileUpdate(phone="123", stamp_url=None)

        assert update.model_dump(exclude_unset=True) == {"phone": "123", "stamp_url": None}


class TestImageKind:

    @pytest.mark.parametrize("kind,folder,column", [
        (ImageKind.LOGO, "logos", "logo_url"),
        (ImageKind.STAMP, "stamps", "stamp_url"),
        (ImageKind.SIGNATURE, "signatures", "signature_url"),
    ])
    def test_folder_and_column(self, kind, folder, column):
        assert kind.folder == folder
        assert kind.column == column
