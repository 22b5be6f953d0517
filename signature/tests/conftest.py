"""Shared fixtures for the signature feature tests."""
from __future__ import annotations

import io

import pytest
from PIL import Image

from core.audit.logic.audit_logger import AuditLogger
from core.models.user import User
from signature.logic.encryption import SignatureCipher
from signature.logic.signature_service import SignatureService
from signature.models.signature_config import SignatureConfig
from signature.repository.saved_signature_repository import SavedSignatureRepository


def image_bytes(fmt: str = "PNG", size=(60, 20)) -> bytes:
    mode = "RGB" if fmt == "JPEG" else "RGBA"
    img = Image.new(mode, size, (255, 255, 255) if mode == "RGB" else (0, 0, 0, 0))
    for x in range(5, size[0] - 5):
        img.putpixel((x, size[1] // 2), (0, 0, 0) if mode == "RGB" else (0, 0, 0, 255))
    buf = io.BytesIO()
    img.save(buf, format=fmt)
    return buf.getvalue()


@pytest.fixture
def user() -> User:
    return User(id="u-42", username="alice", email="alice@example.com")


@pytest.fixture
def cipher(tmp_path) -> SignatureCipher:
    return SignatureCipher(tmp_path / "keys" / "signature.key")


@pytest.fixture
def library_repo(tmp_path, cipher):
    repo = SavedSignatureRepository(tmp_path / "signatures.db", cipher)
    yield repo
    repo.close()


@pytest.fixture
def audit(tmp_path):
    a = AuditLogger(tmp_path / "audit.db")
    yield a
    a.close()


@pytest.fixture
def service(library_repo, audit) -> SignatureService:
    return SignatureService(
        repository=library_repo,
        config=SignatureConfig(canvas_width=200, canvas_height=80, max_upload_bytes=64 * 1024),
        audit=audit,
    )
