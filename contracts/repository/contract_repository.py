"""Contract repository protocol (interface).

Defines the contract for contract/field/submission data access without
implementation details. Multi-record writes (field replace, owner signing,
contract duplication) are single operations here so that implementations
can make them atomic.
"""

from __future__ import annotations
from datetime import datetime
from typing import Dict, List, Optional, Protocol, Sequence

from contracts.enum.contract_status import ContractStatus
from contracts.models.contract import Contract
from contracts.models.field import Field
from contracts.models.submission import Submission


class ContractRepository(Protocol):
    """Protocol for contract data access."""

    # ===== Contracts =====

    def add_contract(self, contract: Contract, fields: Sequence[Field] = ()) -> None:
        """Insert a contract together with an initial field list (one unit)."""
        ...

    def get_contract(self, contract_id: str) -> Optional[Contract]:
        ...

    def list_contracts(self, *, status: Optional[ContractStatus] = None) -> List[Contract]:
        """Newest first."""
        ...

    def find_by_share_token(self, token: str) -> Optional[Contract]:
        ...

    def update_status(self, contract_id: str, status: ContractStatus, updated_at: datetime) -> bool:
        ...

    def set_completed_artifact(self, contract_id: str, artifact_ref: str, updated_at: datetime) -> bool:
        ...

    def delete_contract(self, contract_id: str) -> bool:
        """Delete contract, its fields and its submissions."""
        ...

    # ===== Fields =====

    def list_fields(self, contract_id: str) -> List[Field]:
        """Ordered by display_order."""
        ...

    def replace_fields(self, contract_id: str, fields: Sequence[Field], updated_at: datetime) -> None:
        """Replace the whole field list atomically."""
        ...

    # ===== Owner signing =====

    def commit_owner_signing(
        self,
        contract_id: str,
        values: Dict[str, str],
        signed_at: datetime,
    ) -> None:
        """Write owner values, signed-at and status=active as one unit."""
        ...

    # ===== Submissions =====

    def add_submission(self, submission: Submission) -> None:
        ...

    def get_submission(self, submission_id: str) -> Optional[Submission]:
        ...

    def list_submissions(self, contract_id: str) -> List[Submission]:
        """Newest first."""
        ...

    def count_submissions(self, contract_id: str) -> int:
        ...
