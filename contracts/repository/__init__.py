"""Repository layer for contracts module.

Provides data access abstractions.
"""

from contracts.repository.contract_repository import ContractRepository
from contracts.repository.sqlite_contract_repository import SQLiteContractRepository

__all__ = [
    "ContractRepository",
    "SQLiteContractRepository",
]
