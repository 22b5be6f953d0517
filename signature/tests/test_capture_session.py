"""CaptureSession: draw, upload and saved paths plus session lifecycle."""
from __future__ import annotations

import pytest

from signature.exceptions.errors import (
    CaptureClosedError,
    EmptySignatureError,
    SavedSignatureNotFoundError,
    SignatureNameRequiredError,
    UnsupportedFileTypeError,
    UploadTooLargeError,
)
from signature.logic.capture_session import CaptureSession
from signature.logic.raster import decode_data_url, to_data_url
from signature.models.signature_enums import CapturePath, CaptureState, ImageFormat
from signature.tests.conftest import image_bytes


class Sink:
    def __init__(self) -> None:
        self.calls = []

    def __call__(self, field_id: str, value: str) -> None:
        self.calls.append((field_id, value))


def _draw(session: CaptureSession) -> None:
    session.begin_stroke(10, 10)
    session.extend_stroke(60, 40)
    session.extend_stroke(120, 20)
    session.end_stroke()


@pytest.fixture
def sink() -> Sink:
    return Sink()


def test_draw_commit_writes_png_into_one_field(service, user, sink):
    session = service.open_capture("f-sig", user, sink)
    _draw(session)
    value = session.commit()

    assert sink.calls == [("f-sig", value)]
    mime, _ = decode_data_url(value)
    assert mime == "image/png"
    assert session.state == CaptureState.COMMITTED
    assert session.path == CapturePath.DRAW


def test_empty_canvas_is_rejected_and_session_stays_open(service, user, sink):
    session = service.open_capture("f-sig", user, sink)
    with pytest.raises(EmptySignatureError):
        session.commit()
    _draw(session)
    session.clear()
    with pytest.raises(EmptySignatureError):
        session.commit()
    assert session.is_open
    assert sink.calls == []


def test_commit_and_save_to_library(service, user, sink):
    session = service.open_capture("f-sig", user, sink)
    _draw(session)
    with pytest.raises(SignatureNameRequiredError):
        session.commit(save_to_library=True, name="  ")
    assert session.is_open

    value = session.commit(save_to_library=True, name="Everyday", make_default=True)
    saved = service.get_default(user)
    assert saved.name == "Everyday"
    assert saved.signature_data == value


def test_drawn_signature_reused_from_library_is_byte_identical(service, user, sink):
    first = service.open_capture("owner-sig", user, sink)
    _draw(first)
    drawn = first.commit(save_to_library=True, name="Initials")

    second = service.open_capture("witness-sig", user, sink)
    [saved] = second.saved_signatures()
    reused = second.use_saved(saved.id)

    assert reused == drawn
    assert decode_data_url(reused)[1] == decode_data_url(drawn)[1]
    assert sink.calls == [("owner-sig", drawn), ("witness-sig", drawn)]


def test_upload_keeps_bytes_as_uploaded(service, user, sink):
    raw = image_bytes("JPEG")
    session = service.open_capture("f-sig", user, sink)
    value = session.upload("scan.jpg", raw)
    assert value == to_data_url(raw, ImageFormat.JPEG)
    assert session.path == CapturePath.UPLOAD


@pytest.mark.parametrize("name, data", [
    ("signature.pdf", b"%PDF-1.4 not an image"),
    ("signature.png", b"renamed text file"),
])
def test_upload_rejects_non_images(service, user, sink, name, data):
    session = service.open_capture("f-sig", user, sink)
    with pytest.raises(UnsupportedFileTypeError):
        session.upload(name, data)
    assert session.is_open
    assert sink.calls == []


def test_upload_size_limit(service, user, sink):
    session = service.open_capture("f-sig", user, sink)
    with pytest.raises(UploadTooLargeError):
        session.upload("huge.png", b"\x89PNG" + b"0" * (64 * 1024))


def test_saved_signature_is_copied_byte_for_byte(service, user, sink):
    stored = service.save(user, "Formal", to_data_url(image_bytes("PNG")))
    session = service.open_capture("f-sig", user, sink)
    assert [s.id for s in session.saved_signatures()] == [stored.id]

    value = session.use_saved(stored.id)
    assert value == stored.signature_data
    assert session.path == CapturePath.SAVED

    # later library changes do not reach the field value
    service.delete(user, stored.id)
    assert sink.calls == [("f-sig", stored.signature_data)]


def test_saved_path_unavailable_for_anonymous_signer(service, sink):
    session = service.open_capture("f-sig", None, sink)
    assert session.saved_signatures() == []
    with pytest.raises(SavedSignatureNotFoundError):
        session.use_saved("anything")


def test_cancel_discards_and_closes(service, user, sink):
    session = service.open_capture("f-sig", user, sink)
    _draw(session)
    session.cancel()

    assert session.state == CaptureState.CANCELLED
    assert sink.calls == []
    with pytest.raises(CaptureClosedError):
        session.begin_stroke(1, 1)
    with pytest.raises(CaptureClosedError):
        session.upload("a.png", image_bytes())


def test_committed_session_rejects_second_commit(service, user, sink):
    session = service.open_capture("f-sig", user, sink)
    session.upload("a.png", image_bytes())
    with pytest.raises(CaptureClosedError):
        session.upload("b.png", image_bytes())
    assert len(sink.calls) == 1
