"""SigningWorkflow: owner phase, share link and counterparty submissions."""
from __future__ import annotations

import threading

import pytest

from contracts.enum.contract_status import ContractStatus
from contracts.enum.field_type import FieldType
from contracts.enum.signer_party import SignerParty
from contracts.exceptions.errors import (
    ContractValidationError,
    InvalidFieldValueError,
    MissingFieldValueError,
    OperationInProgressError,
    ShareLinkNotFoundError,
)
from contracts.logic.signing_workflow import SigningWorkflow
from contracts.tests.conftest import make_field

OWNER = SignerParty.OWNER
COUNTER = SignerParty.COUNTERPARTY


@pytest.fixture
def two_party(contract_with_fields):
    return contract_with_fields([
        make_field("o-name", label="Owner Name", party=OWNER),
        make_field("o-sig", label="Owner Signature", type=FieldType.SIGNATURE, party=OWNER,
                   width=25, height=8, order=1),
        make_field("c-name", label="Name", party=COUNTER, order=2),
        make_field("c-sig", label="Signature", type=FieldType.SIGNATURE, party=COUNTER,
                   page=2, width=25, height=8, order=3),
    ])


# -------- owner phase ----------------------------------------------------------
def test_owner_commit_activates_contract(workflow, two_party, signature_url, audit):
    assert [f.id for f in workflow.owner_fields(two_party)] == ["o-name", "o-sig"]

    c = workflow.commit_owner_signing(two_party, {"o-name": "Alice", "o-sig": signature_url})

    assert c.status == ContractStatus.ACTIVE
    assert c.owner_signed_at is not None
    assert c.owner_field_values == {"o-name": "Alice", "o-sig": signature_url}
    assert audit.query(reference_id=two_party, event="owner_signed")


def test_owner_commit_lists_missing_labels(workflow, contracts, two_party):
    with pytest.raises(MissingFieldValueError) as exc:
        workflow.commit_owner_signing(two_party, {"o-name": "  "})
    assert exc.value.labels == ["Owner Name", "Owner Signature"]
    assert "Please fill in: Owner Name, Owner Signature" in str(exc.value)

    c = contracts.get_contract(two_party)
    assert c.status == ContractStatus.DRAFT
    assert c.owner_signed_at is None


def test_owner_commit_rejects_foreign_and_typed_signature_values(workflow, two_party, signature_url):
    with pytest.raises(InvalidFieldValueError):
        workflow.commit_owner_signing(two_party, {"o-name": "A", "o-sig": signature_url, "c-name": "B"})
    with pytest.raises(InvalidFieldValueError):
        workflow.commit_owner_signing(two_party, {"o-name": "A", "o-sig": "Alice"})


def test_second_owner_commit_while_running_is_rejected(repo, two_party, signature_url):
    entered, release = threading.Event(), threading.Event()

    class SlowRepo:
        def __getattr__(self, name):
            return getattr(repo, name)

        def commit_owner_signing(self, *args):
            entered.set()
            release.wait(5)
            repo.commit_owner_signing(*args)

    wf = SigningWorkflow(repository=SlowRepo())
    values = {"o-name": "Alice", "o-sig": signature_url}
    worker = threading.Thread(target=wf.commit_owner_signing, args=(two_party, values))
    worker.start()
    try:
        assert entered.wait(5)
        with pytest.raises(OperationInProgressError):
            wf.commit_owner_signing(two_party, values)
    finally:
        release.set()
        worker.join(5)
    assert repo.get_contract(two_party).status == ContractStatus.ACTIVE


# -------- share link -----------------------------------------------------------
def test_share_link_requires_active_contract(workflow, contracts, two_party, signature_url):
    token = contracts.get_contract(two_party).share_token
    with pytest.raises(ShareLinkNotFoundError):
        workflow.open_share_link(token)

    workflow.commit_owner_signing(two_party, {"o-name": "Alice", "o-sig": signature_url})
    view = workflow.open_share_link(token)
    assert [f.id for f in view.counterparty_fields] == ["c-name", "c-sig"]
    assert view.owner_values["o-name"] == "Alice"
    assert [f.id for f in view.all_fields] == ["o-name", "o-sig", "c-name", "c-sig"]

    contracts.set_status(two_party, ContractStatus.EXPIRED)
    with pytest.raises(ShareLinkNotFoundError):
        workflow.open_share_link(token)
    with pytest.raises(ShareLinkNotFoundError):
        workflow.open_share_link("unknown")


def test_share_link_by_title_slug(workflow, two_party, signature_url):
    workflow.commit_owner_signing(two_party, {"o-name": "Alice", "o-sig": signature_url})
    assert workflow.open_share_link("service-agreement").contract.id == two_party


# -------- counterparty phase ---------------------------------------------------
@pytest.fixture
def active(workflow, contracts, two_party, signature_url):
    workflow.commit_owner_signing(two_party, {"o-name": "Alice", "o-sig": signature_url})
    return contracts.get_contract(two_party).share_token


def test_submission_is_keyed_by_label(workflow, active, two_party, signature_url):
    sub = workflow.submit_counterparty(active, " Bob ", "bob@example.com",
                                       {"c-name": "Bob Builder", "c-sig": signature_url},
                                       user_agent="Mozilla/5.0")
    assert sub.contract_id == two_party
    assert sub.signer_name == "Bob"
    assert sub.field_values == {"Name": "Bob Builder", "Signature": signature_url}
    assert sub.user_agent == "Mozilla/5.0"
    assert workflow.list_submissions(two_party) == [sub]


def test_submissions_are_all_kept_newest_first(workflow, active, two_party, signature_url):
    first = workflow.submit_counterparty(active, "Bob", "bob@example.com", {"c-name": "1", "c-sig": signature_url})
    second = workflow.submit_counterparty(active, "Bob", "bob@example.com", {"c-name": "2", "c-sig": signature_url})
    assert [s.id for s in workflow.list_submissions(two_party)] == [second.id, first.id]


@pytest.mark.parametrize("name, email", [("", "bob@example.com"), ("Bob", ""), ("Bob", "bob.example.com")])
def test_submission_needs_name_and_email(workflow, active, two_party, name, email, signature_url):
    with pytest.raises(ContractValidationError):
        workflow.submit_counterparty(active, name, email, {"c-name": "Bob", "c-sig": signature_url})
    assert workflow.list_submissions(two_party) == []


def test_submission_needs_every_counterparty_field(workflow, active, two_party):
    with pytest.raises(MissingFieldValueError) as exc:
        workflow.submit_counterparty(active, "Bob", "bob@example.com", {"c-name": "Bob"})
    assert exc.value.labels == ["Signature"]
    assert workflow.list_submissions(two_party) == []


def test_submission_cannot_touch_owner_fields(workflow, active, signature_url):
    with pytest.raises(InvalidFieldValueError):
        workflow.submit_counterparty(active, "Bob", "bob@example.com",
                                     {"c-name": "Bob", "c-sig": signature_url, "o-name": "Mallory"})
