"""Shared fixtures for the contracts feature tests."""
from __future__ import annotations

import io
from datetime import datetime, timedelta, timezone
from typing import Callable, List

import pytest
from PIL import Image
from reportlab.lib.pagesizes import A4
from reportlab.pdfgen import canvas

from core.audit.logic.audit_logger import AuditLogger
from core.models.user import User
from contracts.adapters.filesystem_storage_adapter import FilesystemStorageAdapter
from contracts.enum.field_type import FieldType
from contracts.enum.signer_party import SignerParty
from contracts.logic.contract_service import ContractService
from contracts.logic.export_service import ExportService
from contracts.logic.signing_workflow import SigningWorkflow
from contracts.models.field import Field
from contracts.repository.sqlite_contract_repository import SQLiteContractRepository
from signature.logic.raster import to_data_url


def make_pdf(pages: int = 2) -> bytes:
    buf = io.BytesIO()
    c = canvas.Canvas(buf, pagesize=A4)
    for n in range(1, pages + 1):
        c.setFont("Helvetica", 14)
        c.drawString(72, 760, f"Service agreement - page {n}")
        c.showPage()
    c.save()
    return buf.getvalue()


def make_png(size=(120, 40), color=(10, 20, 200, 255)) -> bytes:
    img = Image.new("RGBA", size, (0, 0, 0, 0))
    for x in range(10, size[0] - 10):
        img.putpixel((x, size[1] // 2), color)
    buf = io.BytesIO()
    img.save(buf, format="PNG")
    return buf.getvalue()


def make_field(
    field_id: str,
    *,
    label: str = "",
    type: FieldType = FieldType.TEXT,
    party: SignerParty = SignerParty.OWNER,
    page: int = 1,
    x: float = 10.0,
    y: float = 10.0,
    width: float = 20.0,
    height: float = 4.0,
    order: int = 0,
) -> Field:
    return Field(
        id=field_id,
        type=type,
        label=label or field_id,
        page_number=page,
        x=x,
        y=y,
        width=width,
        height=height,
        signer_party=party,
        display_order=order,
    )


class FakeClock:
    """Monotonic clock so 'newest first' orderings are deterministic."""

    def __init__(self) -> None:
        self._now = datetime(2024, 5, 1, 9, 0, tzinfo=timezone.utc)

    def __call__(self) -> datetime:
        self._now += timedelta(seconds=1)
        return self._now


@pytest.fixture
def pdf_bytes() -> bytes:
    return make_pdf(2)


@pytest.fixture
def signature_url() -> str:
    return to_data_url(make_png())


@pytest.fixture
def clock() -> FakeClock:
    return FakeClock()


@pytest.fixture
def user() -> User:
    return User(id="u-1", username="owner", email="owner@example.com", full_name="Olivia Owner")


@pytest.fixture
def repo(tmp_path):
    r = SQLiteContractRepository(tmp_path / "contracts.db")
    yield r
    r.close()


@pytest.fixture
def audit(tmp_path):
    a = AuditLogger(tmp_path / "audit.db")
    yield a
    a.close()


@pytest.fixture
def storage(tmp_path) -> FilesystemStorageAdapter:
    return FilesystemStorageAdapter(tmp_path / "storage")


@pytest.fixture
def contracts(repo, storage, audit, clock) -> ContractService:
    return ContractService(repository=repo, storage=storage, audit=audit,
                           base_url="https://sign.example.com", now=clock)


@pytest.fixture
def workflow(repo, audit, clock) -> SigningWorkflow:
    return SigningWorkflow(repository=repo, audit=audit, now=clock)


@pytest.fixture
def exports(repo, storage, audit, clock) -> ExportService:
    return ExportService(repository=repo, storage=storage, audit=audit, now=clock)


@pytest.fixture
def contract_with_fields(contracts, pdf_bytes, user) -> Callable[[List[Field]], str]:
    """Create a contract on a two-page PDF and save the given fields; returns the id."""

    def _create(fields: List[Field], title: str = "Service Agreement") -> str:
        contract = contracts.create_contract(title, "Yearly service", "agreement.pdf", pdf_bytes, user)
        contracts.save_fields(contract.id, fields, user)
        return contract.id

    return _create
