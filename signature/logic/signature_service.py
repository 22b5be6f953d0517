# signature/logic/signature_service.py
from __future__ import annotations

import logging
import uuid
from typing import Callable, List, Optional

from core.audit.logic.audit_logger import AuditLogger
from core.models.user import User

from ..exceptions.errors import (
    SavedSignatureNotFoundError,
    SignatureNameRequiredError,
    UnsupportedFileTypeError,
)
from ..models.saved_signature import SavedSignature
from ..models.signature_config import SignatureConfig
from ..repository.saved_signature_repository import SavedSignatureRepository
from .capture_session import CaptureSession
from .raster import decode_data_url, is_image_data_url, sniff_image_format

logger = logging.getLogger(__name__)

_FEATURE_ID = "core_signature"


class SignatureService:
    """
    Signature library and entry point for capture sessions (no UI).

    Library entries are scoped by ``User.id``. Values handed out are copies:
    callers write them into field values and keep no link to the entry.
    """

    def __init__(
        self,
        *,
        repository: SavedSignatureRepository,
        config: Optional[SignatureConfig] = None,
        audit: Optional[AuditLogger] = None,
    ) -> None:
        self._repo = repository
        self._config = config or SignatureConfig()
        self._audit = audit

    @property
    def config(self) -> SignatureConfig:
        return self._config

    def _log(self, event: str, user: User, reference_id: Optional[str], message: Optional[str] = None) -> None:
        if self._audit is not None:
            self._audit.log(_FEATURE_ID, event, user_id=user.id, reference_id=reference_id, message=message)

    # -------- Library --------------------------------------------------------
    def save(self, user: User, name: str, signature_data: str, *, make_default: bool = False) -> SavedSignature:
        """Store a copy of *signature_data* under *name* in the user's library."""
        name = (name or "").strip()
        if not name:
            raise SignatureNameRequiredError("A name is required to save a signature.")
        if not is_image_data_url(signature_data):
            raise UnsupportedFileTypeError("Signature data must be an image data URL.")
        try:
            _, raw = decode_data_url(signature_data)
        except ValueError as ex:
            raise UnsupportedFileTypeError(str(ex)) from ex
        if sniff_image_format(raw) is None:
            raise UnsupportedFileTypeError("Signature data is not a supported raster image.")

        sig = SavedSignature(
            id=uuid.uuid4().hex,
            user_id=user.id,
            name=name,
            signature_data=signature_data,
            is_default=make_default,
        )
        self._repo.add(sig)
        logger.info(f"Saved signature '{name}' ({sig.id}) for user {user.id}")
        self._log("save_signature", user, sig.id, name)
        return sig

    def list_for_user(self, user: User) -> List[SavedSignature]:
        return self._repo.list_for_user(user.id)

    def get(self, user: User, signature_id: str) -> SavedSignature:
        sig = self._repo.get(user.id, signature_id)
        if sig is None:
            raise SavedSignatureNotFoundError(f"Saved signature {signature_id} not found.")
        return sig

    def get_default(self, user: User) -> Optional[SavedSignature]:
        for sig in self._repo.list_for_user(user.id):
            if sig.is_default:
                return sig
        return None

    def set_default(self, user: User, signature_id: str) -> None:
        if not self._repo.set_default(user.id, signature_id):
            raise SavedSignatureNotFoundError(f"Saved signature {signature_id} not found.")
        self._log("set_default_signature", user, signature_id)

    def delete(self, user: User, signature_id: str) -> None:
        if not self._repo.delete(user.id, signature_id):
            raise SavedSignatureNotFoundError(f"Saved signature {signature_id} not found.")
        logger.info(f"Deleted signature {signature_id} for user {user.id}")
        self._log("delete_signature", user, signature_id)

    # -------- Capture --------------------------------------------------------
    def open_capture(
        self,
        field_id: str,
        user: Optional[User],
        on_commit: Callable[[str, str], None],
    ) -> CaptureSession:
        """
        Start a capture session for one signature field.

        *on_commit(field_id, data_url)* is called exactly once if the session
        commits. *user* may be None for anonymous signers (share link); the
        saved path and save-to-library are then unavailable.
        """
        return CaptureSession(
            field_id=field_id,
            on_commit=on_commit,
            library=self,
            user=user,
            config=self._config,
        )
