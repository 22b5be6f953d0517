"""
FieldOverlayController – placement, editing and filling of fields over a page.

The controller holds the working set as a FieldDraft value object. Every
edit produces a new draft; nothing is persisted here. The caller hands the
final draft to ``ContractService.save_fields`` which replaces the stored
field list in one transaction.
"""
from __future__ import annotations

import logging
import uuid
from collections import Counter
from dataclasses import dataclass
from datetime import date
from typing import Callable, Dict, Iterable, Iterator, List, Optional, Tuple

from core.models.user import User
from signature.logic.capture_session import CaptureSession
from signature.logic.signature_service import SignatureService

from contracts.enum.field_type import FieldType
from contracts.enum.overlay_mode import OverlayMode
from contracts.enum.signer_party import SignerParty
from contracts.exceptions.errors import (
    FieldNotFoundError,
    InvalidFieldValueError,
    InvalidModeError,
)
from contracts.logic.coordinates import (
    ContainerRect,
    PercentPoint,
    PixelPoint,
    clamp,
    clamp_page,
    clamp_scale,
    to_percent,
)
from contracts.models.field import Field

logger = logging.getLogger(__name__)

# (width %, height %) of a freshly placed field
DEFAULT_SIZES: Dict[FieldType, Tuple[float, float]] = {
    FieldType.TEXT: (20.0, 4.0),
    FieldType.DATE: (20.0, 4.0),
    FieldType.SIGNATURE: (25.0, 8.0),
}
MIN_FIELD_SIZE = 1.0


# --------------------------------------------------------------------------- #
#  Working set                                                                #
# --------------------------------------------------------------------------- #
@dataclass(frozen=True)
class FieldDraft:
    """Immutable, ordered field list. ``display_order`` follows list order."""

    fields: Tuple[Field, ...] = ()

    @classmethod
    def of(cls, fields: Iterable[Field]) -> "FieldDraft":
        ordered = sorted(fields, key=lambda f: f.display_order)
        return cls(tuple(f.with_changes(display_order=i) if f.display_order != i else f
                         for i, f in enumerate(ordered)))

    def __iter__(self) -> Iterator[Field]:
        return iter(self.fields)

    def __len__(self) -> int:
        return len(self.fields)

    def get(self, field_id: str) -> Field:
        for f in self.fields:
            if f.id == field_id:
                return f
        raise FieldNotFoundError(f"Field {field_id} not found.")

    def append(self, new: Field) -> "FieldDraft":
        return FieldDraft(self.fields + (new.with_changes(display_order=len(self.fields)),))

    def replace(self, updated: Field) -> "FieldDraft":
        self.get(updated.id)
        return FieldDraft(tuple(updated if f.id == updated.id else f for f in self.fields))

    def remove(self, field_id: str) -> "FieldDraft":
        self.get(field_id)
        return FieldDraft.of(f for f in self.fields if f.id != field_id)

    def on_page(self, page_number: int) -> List[Field]:
        return [f for f in self.fields if f.page_number == page_number]

    def for_party(self, party: SignerParty) -> List[Field]:
        return [f for f in self.fields if f.signer_party == party]

    def duplicate_labels(self) -> List[str]:
        counts = Counter(f.label for f in self.fields)
        return [label for label, n in counts.items() if n > 1]


@dataclass
class _DragState:
    field_id: str
    offset: PercentPoint
    origin: Field
    moved: bool = False


@dataclass(frozen=True)
class ScaleLimits:
    minimum: float = 0.5
    maximum: float = 2.0
    step: float = 0.25

    @classmethod
    def from_settings(cls, viewer) -> "ScaleLimits":
        return cls(float(viewer.min_scale), float(viewer.max_scale), float(viewer.scale_step))


# --------------------------------------------------------------------------- #
#  Controller                                                                 #
# --------------------------------------------------------------------------- #
class FieldOverlayController:
    """
    Modes
    -----
    edit : place / drag / resize / relabel / delete, all parties visible
    sign : fill values of *actor_party*'s fields only
    view : read-only
    """

    def __init__(
        self,
        *,
        fields: Iterable[Field] | FieldDraft = (),
        page_count: int,
        mode: OverlayMode = OverlayMode.VIEW,
        actor_party: Optional[SignerParty] = None,
        values: Optional[Dict[str, str]] = None,
        scale_limits: ScaleLimits = ScaleLimits(),
        id_factory: Callable[[], str] = lambda: uuid.uuid4().hex,
    ) -> None:
        if mode == OverlayMode.SIGN and actor_party is None:
            raise InvalidModeError("Sign mode needs the acting party.")
        self._draft = fields if isinstance(fields, FieldDraft) else FieldDraft.of(fields)
        self._page_count = max(1, int(page_count))
        self._mode = mode
        self._actor_party = actor_party
        self._values: Dict[str, str] = dict(values or {})
        self._limits = scale_limits
        self._new_id = id_factory

        self._page = 1
        self._scale = 1.0
        self._armed: Optional[Tuple[FieldType, SignerParty]] = None
        self._drag: Optional[_DragState] = None

    # ------------------------------------------------------------------ #
    #  State                                                             #
    # ------------------------------------------------------------------ #
    @property
    def mode(self) -> OverlayMode:
        return self._mode

    @property
    def actor_party(self) -> Optional[SignerParty]:
        return self._actor_party

    @property
    def draft(self) -> FieldDraft:
        return self._draft

    @property
    def values(self) -> Dict[str, str]:
        return dict(self._values)

    @property
    def current_page(self) -> int:
        return self._page

    @property
    def page_count(self) -> int:
        return self._page_count

    @property
    def scale(self) -> float:
        return self._scale

    @property
    def armed(self) -> Optional[Tuple[FieldType, SignerParty]]:
        return self._armed

    @property
    def is_dragging(self) -> bool:
        return self._drag is not None

    def _require(self, mode: OverlayMode) -> None:
        if self._mode != mode:
            raise InvalidModeError(f"Operation requires {mode.value} mode (current: {self._mode.value}).")

    # ------------------------------------------------------------------ #
    #  Navigation / zoom                                                 #
    # ------------------------------------------------------------------ #
    def go_to_page(self, page: int) -> int:
        self._page = clamp_page(page, self._page_count)
        return self._page

    def next_page(self) -> int:
        return self.go_to_page(self._page + 1)

    def previous_page(self) -> int:
        return self.go_to_page(self._page - 1)

    def set_scale(self, scale: float) -> float:
        self._scale = clamp_scale(scale, self._limits.minimum, self._limits.maximum)
        return self._scale

    def zoom_in(self) -> float:
        return self.set_scale(self._scale + self._limits.step)

    def zoom_out(self) -> float:
        return self.set_scale(self._scale - self._limits.step)

    # ------------------------------------------------------------------ #
    #  Display filters                                                   #
    # ------------------------------------------------------------------ #
    def is_editable(self, f: Field) -> bool:
        if self._mode == OverlayMode.EDIT:
            return True
        if self._mode == OverlayMode.SIGN:
            return f.signer_party == self._actor_party
        return False

    def visible_fields(self) -> List[Field]:
        """Fields on the current page; a sign session only sees its own party."""
        page_fields = self._draft.on_page(self._page)
        if self._mode == OverlayMode.SIGN:
            return [f for f in page_fields if f.signer_party == self._actor_party]
        return page_fields

    def editable_fields(self) -> List[Field]:
        """All fields (every page) the current actor may fill, in display order."""
        if self._mode != OverlayMode.SIGN:
            return []
        return self._draft.for_party(self._actor_party)

    def unfilled_fields(self) -> List[Field]:
        return [f for f in self.editable_fields() if not self._values.get(f.id)]

    def progress(self) -> Tuple[int, int]:
        """(filled, total) over the actor's fields."""
        editable = self.editable_fields()
        return len(editable) - len(self.unfilled_fields()), len(editable)

    def next_unfilled(self) -> Optional[Field]:
        """Jump to the page of the first unfilled field and return it."""
        pending = self.unfilled_fields()
        if not pending:
            return None
        self.go_to_page(pending[0].page_number)
        return pending[0]

    # ------------------------------------------------------------------ #
    #  Edit mode                                                         #
    # ------------------------------------------------------------------ #
    def arm(self, field_type: FieldType, party: SignerParty = SignerParty.OWNER) -> None:
        """Arm the single-shot placement tool."""
        self._require(OverlayMode.EDIT)
        self._armed = (field_type, party)

    def disarm(self) -> None:
        self._armed = None

    def place(self, click: PixelPoint, rect: ContainerRect) -> Field:
        self._require(OverlayMode.EDIT)
        if self._armed is None:
            raise InvalidModeError("No placement tool armed.")
        if self._drag is not None:
            raise InvalidModeError("Cannot place while dragging.")
        field_type, party = self._armed
        width, height = DEFAULT_SIZES[field_type]
        p = to_percent(click, rect)
        new = clamp(Field(
            id=self._new_id(),
            type=field_type,
            label=field_type.default_label,
            page_number=self._page,
            x=p.x - width / 2,
            y=p.y - height / 2,
            width=width,
            height=height,
            signer_party=party,
        ))
        self._draft = self._draft.append(new)
        self._armed = None
        logger.debug(f"Placed {field_type.value} field {new.id} on page {self._page}")
        return self._draft.get(new.id)

    def begin_drag(self, field_id: str, pointer: PixelPoint, rect: ContainerRect) -> None:
        self._require(OverlayMode.EDIT)
        f = self._draft.get(field_id)
        p = to_percent(pointer, rect)
        self._drag = _DragState(field_id=field_id, offset=PercentPoint(p.x - f.x, p.y - f.y), origin=f)

    def drag_to(self, pointer: PixelPoint, rect: ContainerRect) -> Field:
        """Move the dragged field with the pointer, clamped every frame."""
        self._require(OverlayMode.EDIT)
        if self._drag is None:
            raise InvalidModeError("No drag in progress.")
        p = to_percent(pointer, rect)
        f = self._draft.get(self._drag.field_id)
        moved = clamp(f.with_changes(x=p.x - self._drag.offset.x, y=p.y - self._drag.offset.y))
        self._draft = self._draft.replace(moved)
        self._drag.moved = True
        return moved

    def end_drag(self) -> Field:
        """Pointer release: commit the current position."""
        if self._drag is None:
            raise InvalidModeError("No drag in progress.")
        f = self._draft.get(self._drag.field_id)
        self._drag = None
        return f

    def cancel_drag(self) -> Field:
        """Abort the drag and restore the last committed position."""
        if self._drag is None:
            raise InvalidModeError("No drag in progress.")
        origin = self._drag.origin
        self._draft = self._draft.replace(origin)
        self._drag = None
        return origin

    def resize(self, field_id: str, width: float, height: float) -> Field:
        self._require(OverlayMode.EDIT)
        f = self._draft.get(field_id)
        resized = clamp(f.with_changes(width=max(MIN_FIELD_SIZE, width), height=max(MIN_FIELD_SIZE, height)))
        self._draft = self._draft.replace(resized)
        return resized

    def delete(self, field_id: str) -> None:
        self._require(OverlayMode.EDIT)
        if self._drag is not None and self._drag.field_id == field_id:
            self._drag = None
        self._draft = self._draft.remove(field_id)
        self._values.pop(field_id, None)

    def relabel(self, field_id: str, label: str) -> Field:
        """Free-text rename; labels need not be unique (see duplicate_labels)."""
        self._require(OverlayMode.EDIT)
        updated = self._draft.get(field_id).with_changes(label=label)
        self._draft = self._draft.replace(updated)
        return updated

    def toggle_party(self, field_id: str) -> Field:
        self._require(OverlayMode.EDIT)
        f = self._draft.get(field_id)
        updated = f.with_changes(signer_party=f.signer_party.other)
        self._draft = self._draft.replace(updated)
        return updated

    def duplicate_labels(self) -> List[str]:
        return self._draft.duplicate_labels()

    # ------------------------------------------------------------------ #
    #  Sign mode                                                         #
    # ------------------------------------------------------------------ #
    def _own_field(self, field_id: str) -> Field:
        self._require(OverlayMode.SIGN)
        f = self._draft.get(field_id)
        if f.signer_party != self._actor_party:
            raise InvalidFieldValueError(f"Field '{f.label}' belongs to the {f.signer_party.value}.")
        return f

    def fill(self, field_id: str, value: str) -> None:
        """Set a text/date value. An empty value clears the field."""
        f = self._own_field(field_id)
        if f.type == FieldType.SIGNATURE:
            raise InvalidFieldValueError(f"Field '{f.label}' takes a captured signature, not typed text.")
        if value:
            self._values[field_id] = value
        else:
            self._values.pop(field_id, None)

    def _set_signature(self, field_id: str, data_url: str) -> None:
        self._values[field_id] = data_url

    def request_signature(
        self,
        field_id: str,
        *,
        signatures: Optional[SignatureService] = None,
        user: Optional[User] = None,
    ) -> CaptureSession:
        """Open a capture session whose commit writes into *field_id*."""
        f = self._own_field(field_id)
        if f.type != FieldType.SIGNATURE:
            raise InvalidFieldValueError(f"Field '{f.label}' is not a signature field.")
        if signatures is not None:
            return signatures.open_capture(field_id, user, self._set_signature)
        return CaptureSession(field_id=field_id, on_commit=self._set_signature)

    def autofill_dates(self, today: Optional[date] = None) -> List[str]:
        """Pre-fill the actor's empty date fields with today's ISO date."""
        self._require(OverlayMode.SIGN)
        iso = (today or date.today()).isoformat()
        filled: List[str] = []
        for f in self.editable_fields():
            if f.type == FieldType.DATE and not self._values.get(f.id):
                self._values[f.id] = iso
                filled.append(f.id)
        return filled
