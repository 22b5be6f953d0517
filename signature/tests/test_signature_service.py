"""SignatureService library operations and encryption at rest."""
from __future__ import annotations

import sqlite3
from contextlib import closing

import pytest

from core.models.user import User
from signature.exceptions.errors import (
    SavedSignatureNotFoundError,
    SignatureNameRequiredError,
    UnsupportedFileTypeError,
)
from signature.logic.encryption import SignatureCipher
from signature.logic.raster import to_data_url
from signature.repository.saved_signature_repository import SavedSignatureRepository
from signature.tests.conftest import image_bytes


@pytest.fixture
def png_url() -> str:
    return to_data_url(image_bytes("PNG"))


def test_save_and_get_round_trip_is_byte_identical(service, user, png_url):
    saved = service.save(user, "  Initials ", png_url)
    assert saved.name == "Initials"
    assert service.get(user, saved.id).signature_data == png_url


def test_library_is_scoped_per_user(service, user, png_url):
    saved = service.save(user, "Mine", png_url)
    other = User(id="u-99", username="mallory")
    assert service.list_for_user(other) == []
    with pytest.raises(SavedSignatureNotFoundError):
        service.get(other, saved.id)
    with pytest.raises(SavedSignatureNotFoundError):
        service.delete(other, saved.id)


def test_single_default_per_user(service, user, png_url):
    first = service.save(user, "First", png_url, make_default=True)
    second = service.save(user, "Second", png_url, make_default=True)
    assert service.get_default(user).id == second.id

    service.set_default(user, first.id)
    listed = service.list_for_user(user)
    assert listed[0].id == first.id
    assert [s.is_default for s in listed] == [True, False]
    with pytest.raises(SavedSignatureNotFoundError):
        service.set_default(user, "missing")


@pytest.mark.parametrize("name, data, error", [
    ("", None, SignatureNameRequiredError),
    ("Bad", "plain text", UnsupportedFileTypeError),
    ("Bad", "data:image/png;base64,aGVsbG8=", UnsupportedFileTypeError),
])
def test_save_validation(service, user, png_url, name, data, error):
    with pytest.raises(error):
        service.save(user, name, data or png_url)
    assert service.list_for_user(user) == []


def test_values_are_encrypted_at_rest(library_repo, service, user, png_url):
    service.save(user, "Secret", png_url)
    with closing(sqlite3.connect(library_repo.db_path)) as raw:
        (blob,) = raw.execute("SELECT signature_data FROM saved_signatures").fetchone()
    assert png_url.encode("ascii") not in bytes(blob)


def test_rotated_key_hides_undecryptable_rows(tmp_path, service, user, png_url, library_repo):
    service.save(user, "Old key", png_url)
    fresh = SavedSignatureRepository(library_repo.db_path, SignatureCipher(tmp_path / "other.key"))
    assert fresh.list_for_user(user.id) == []
    fresh.close()


def test_library_changes_are_audited(service, user, png_url, audit):
    saved = service.save(user, "Audit me", png_url)
    service.delete(user, saved.id)
    assert [e.event for e in audit.query(user_id=user.id)] == ["delete_signature", "save_signature"]
