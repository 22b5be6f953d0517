"""Value reconciliation: owner values by id + submission values by label."""
from __future__ import annotations

from contracts.enum.field_type import FieldType
from contracts.enum.signer_party import SignerParty
from contracts.logic.reconciliation import build_export_payload, label_index, rekey_by_label, resolve_values
from contracts.tests.conftest import make_field

OWNER = SignerParty.OWNER
COUNTER = SignerParty.COUNTERPARTY


def test_owner_and_submission_values_resolve_by_id():
    fields = [
        make_field("f1", label="Owner Name", party=OWNER, order=0),
        make_field("f2", label="Signature", type=FieldType.SIGNATURE, party=COUNTER, order=1),
    ]
    raster = "data:image/png;base64,iVBORw0KGgo="

    resolved = resolve_values(fields, {"f1": "Alice"}, {"Signature": raster})
    assert resolved == {"f1": "Alice", "f2": raster}

    payload = build_export_payload(fields, resolved)
    assert [(e.type, e.value) for e in payload] == [
        (FieldType.TEXT, "Alice"),
        (FieldType.SIGNATURE, raster),
    ]
    assert payload[0].page == 1


def test_duplicate_label_goes_to_first_field_only():
    fields = [
        make_field("f1", label="Name", party=COUNTER, order=0),
        make_field("f2", label="Name", party=COUNTER, order=1),
    ]
    resolved = resolve_values(fields, {}, {"Name": "Bob"})
    assert resolved == {"f1": "Bob"}

    payload = build_export_payload(fields, resolved)
    assert payload[0].value == "Bob"
    assert payload[1].value is None
    assert label_index(fields)["Name"].id == "f1"


def test_unknown_labels_are_dropped():
    fields = [make_field("f1", label="Company", party=COUNTER)]
    assert resolve_values(fields, None, {"Renamed": "ACME"}) == {}


def test_no_submission_keeps_owner_values():
    fields = [make_field("f1", party=OWNER), make_field("f2", party=COUNTER, order=1)]
    payload = build_export_payload(fields, resolve_values(fields, {"f1": "Alice"}))
    assert [e.has_value for e in payload] == [True, False]


def test_rekey_by_label_first_wins():
    fields = [
        make_field("a", label="Name", party=COUNTER),
        make_field("b", label="Name", party=COUNTER, order=1),
        make_field("c", label="Email", party=COUNTER, order=2),
    ]
    assert rekey_by_label(fields, {"a": "Bob", "b": "Robert", "c": "bob@x.org"}) == {
        "Name": "Bob",
        "Email": "bob@x.org",
    }
