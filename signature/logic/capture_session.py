# signature/logic/capture_session.py
from __future__ import annotations

import logging
from typing import TYPE_CHECKING, Callable, List, Optional, Tuple

from core.models.user import User

from ..exceptions.errors import (
    CaptureClosedError,
    EmptySignatureError,
    SavedSignatureNotFoundError,
    SignatureNameRequiredError,
    UnsupportedFileTypeError,
    UploadTooLargeError,
)
from ..models.saved_signature import SavedSignature
from ..models.signature_config import SignatureConfig
from ..models.signature_enums import CapturePath, CaptureState, ImageFormat
from .raster import is_blank_png, render_png_from_strokes, sniff_image_format, to_data_url

if TYPE_CHECKING:
    from .signature_service import SignatureService

logger = logging.getLogger(__name__)

Point = Tuple[int, int]


class CaptureSession:
    """
    One signature capture bound to exactly one signature field.

    Three ways to finish: draw + ``commit``, ``upload`` or ``use_saved``.
    Each writes one raster data URL through *on_commit* and closes the
    session. ``cancel`` closes it without writing. Any call on a closed
    session raises CaptureClosedError.
    """

    def __init__(
        self,
        *,
        field_id: str,
        on_commit: Callable[[str, str], None],
        library: Optional["SignatureService"] = None,
        user: Optional[User] = None,
        config: Optional[SignatureConfig] = None,
    ) -> None:
        self.field_id = field_id
        self._on_commit = on_commit
        self._library = library
        self._user = user
        self._config = config or SignatureConfig()
        self._strokes: List[List[Point]] = []
        self._current: List[Point] = []
        self.state = CaptureState.OPEN
        self.path: Optional[CapturePath] = None
        self.value: Optional[str] = None

    # -------- State -----------------------------------------------------------
    @property
    def is_open(self) -> bool:
        return self.state == CaptureState.OPEN

    @property
    def strokes(self) -> List[List[Point]]:
        return [list(s) for s in self._strokes]

    @property
    def has_strokes(self) -> bool:
        return any(self._strokes) or bool(self._current)

    def _ensure_open(self) -> None:
        if not self.is_open:
            raise CaptureClosedError(f"Capture session for field {self.field_id} is {self.state.value}.")

    def _finish(self, value: str, path: CapturePath) -> str:
        self._on_commit(self.field_id, value)
        self.value = value
        self.path = path
        self.state = CaptureState.COMMITTED
        self._strokes.clear()
        self._current = []
        logger.info(f"Signature captured for field {self.field_id} via {path.value}")
        return value

    # -------- Draw path ---------------------------------------------------------
    def begin_stroke(self, x: int, y: int) -> None:
        self._ensure_open()
        if self._current:
            self._strokes.append(self._current)
        self._current = [(int(x), int(y))]

    def extend_stroke(self, x: int, y: int) -> None:
        self._ensure_open()
        if self._current:
            self._current.append((int(x), int(y)))

    def end_stroke(self) -> None:
        self._ensure_open()
        if self._current:
            self._strokes.append(self._current)
            self._current = []

    def clear(self) -> None:
        """Reset the canvas; the session stays open."""
        self._ensure_open()
        self._strokes.clear()
        self._current = []

    def render_png(self) -> bytes:
        strokes = self._strokes + ([self._current] if self._current else [])
        return render_png_from_strokes(
            strokes,
            size=(self._config.canvas_width, self._config.canvas_height),
            stroke_width=self._config.stroke_width,
        )

    def commit(self, *, save_to_library: bool = False, name: Optional[str] = None,
               make_default: bool = False) -> str:
        """
        Serialize the canvas into the target field.

        With *save_to_library* a SavedSignature copy is stored first; if that
        fails the session stays open and the field is untouched.
        """
        self._ensure_open()
        if save_to_library:
            if self._library is None or self._user is None:
                raise SignatureNameRequiredError("Saving to the library requires a signed-in user.")
            if not (name or "").strip():
                raise SignatureNameRequiredError("A name is required to save a signature.")
        if not self.has_strokes:
            raise EmptySignatureError("Nothing drawn.")
        png = self.render_png()
        if is_blank_png(png):
            raise EmptySignatureError("Nothing drawn.")

        value = to_data_url(png, ImageFormat.PNG)
        if save_to_library:
            self._library.save(self._user, name, value, make_default=make_default)
        return self._finish(value, CapturePath.DRAW)

    # -------- Upload path -------------------------------------------------------
    def upload(self, filename: str, data: bytes) -> str:
        """Assign an uploaded raster image as-is (no canvas involved)."""
        self._ensure_open()
        if len(data) > self._config.max_upload_bytes:
            raise UploadTooLargeError(
                f"'{filename}' exceeds the upload limit of {self._config.max_upload_bytes} bytes."
            )
        fmt = sniff_image_format(data)
        if fmt is None:
            raise UnsupportedFileTypeError(f"'{filename}' is not a supported image file.")
        return self._finish(to_data_url(data, fmt), CapturePath.UPLOAD)

    # -------- Saved path --------------------------------------------------------
    def saved_signatures(self) -> List[SavedSignature]:
        self._ensure_open()
        if self._library is None or self._user is None:
            return []
        return self._library.list_for_user(self._user)

    def use_saved(self, signature_id: str) -> str:
        self._ensure_open()
        if self._library is None or self._user is None:
            raise SavedSignatureNotFoundError("No signature library available for anonymous signers.")
        sig = self._library.get(self._user, signature_id)
        return self._finish(sig.signature_data, CapturePath.SAVED)

    # -------- Cancel ------------------------------------------------------------
    def cancel(self) -> None:
        """Discard all canvas state and close without writing."""
        self._ensure_open()
        self._strokes.clear()
        self._current = []
        self.state = CaptureState.CANCELLED
