# core/common/app_context.py
"""
Runtime context & service registry.

Services are built lazily from the layered configuration on first access,
so importing this module opens no database and touches no storage. Feature
imports happen inside the accessors to keep ``core`` free of import cycles.

Tests and embedding applications either pass their own ConfigService to
``AppContext.configure`` or register ready-made instances with
``register_service``.
"""

from __future__ import annotations

import logging
from threading import RLock
from typing import Any, Callable, Dict, Optional

from core.config.config_service import ConfigService, config_service

logger = logging.getLogger(__name__)


class AppContext:
    """Central runtime context (no UI state)."""

    _config: ConfigService = config_service
    _lock = RLock()

    # ---------- Service registry for DI -------------------------------
    services: Dict[str, object] = {}

    @classmethod
    def configure(cls, config: ConfigService) -> None:
        """Switch configuration; already built services are dropped."""
        with cls._lock:
            cls.reset()
            cls._config = config

    @classmethod
    def config(cls) -> ConfigService:
        return cls._config

    @classmethod
    def register_service(cls, name: str, instance: object) -> None:
        with cls._lock:
            cls.services[name] = instance

    @classmethod
    def reset(cls) -> None:
        """Close owned connections and forget every service."""
        with cls._lock:
            for name, svc in list(cls.services.items()):
                close = getattr(svc, "close", None)
                if callable(close):
                    close()
                    logger.debug(f"Closed service '{name}'")
            cls.services.clear()

    @classmethod
    def _get(cls, name: str, factory: Callable[[], Any]) -> Any:
        with cls._lock:
            if name not in cls.services:
                cls.services[name] = factory()
                logger.debug(f"Service '{name}' created")
            return cls.services[name]

    # ---------- Infrastructure ----------------------------------------
    @classmethod
    def audit(cls):
        from core.audit.logic.audit_logger import AuditLogger  # lazy import
        return cls._get("audit", lambda: AuditLogger(cls._config.database.audit))

    @classmethod
    def contract_repository(cls):
        from contracts.repository.sqlite_contract_repository import SQLiteContractRepository  # lazy import
        return cls._get("contract_repository", lambda: SQLiteContractRepository(cls._config.database.contracts))

    @classmethod
    def storage(cls):
        from contracts.adapters.filesystem_storage_adapter import FilesystemStorageAdapter  # lazy import
        return cls._get("storage", lambda: FilesystemStorageAdapter(cls._config.storage.root))

    # ---------- Signature ---------------------------------------------
    @classmethod
    def signatures(cls):
        """SignatureService over the encrypted library next to the contracts DB."""
        from signature.logic.encryption import SignatureCipher  # lazy import
        from signature.logic.signature_service import SignatureService
        from signature.models.signature_config import SignatureConfig
        from signature.repository.saved_signature_repository import SavedSignatureRepository

        def _build() -> SignatureService:
            settings = cls._config.signature
            repo = cls._get(
                "signature_repository",
                lambda: SavedSignatureRepository(cls._config.database.contracts, SignatureCipher(settings.key_file)),
            )
            return SignatureService(
                repository=repo,
                config=SignatureConfig.from_settings(settings),
                audit=cls.audit(),
            )

        return cls._get("signatures", _build)

    # ---------- Contracts ---------------------------------------------
    @classmethod
    def contracts(cls):
        from contracts.logic.contract_service import ContractService  # lazy import
        return cls._get("contracts", lambda: ContractService(
            repository=cls.contract_repository(),
            storage=cls.storage(),
            audit=cls.audit(),
            base_url=cls._config.sharing.base_url,
        ))

    @classmethod
    def signing(cls):
        from contracts.logic.signing_workflow import SigningWorkflow  # lazy import
        return cls._get("signing", lambda: SigningWorkflow(
            repository=cls.contract_repository(),
            audit=cls.audit(),
        ))

    @classmethod
    def exports(cls):
        from contracts.logic.export_service import ExportService  # lazy import
        return cls._get("exports", lambda: ExportService(
            repository=cls.contract_repository(),
            storage=cls.storage(),
            audit=cls.audit(),
        ))

    @classmethod
    def scale_limits(cls):
        from contracts.logic.overlay_controller import ScaleLimits  # lazy import
        return ScaleLimits.from_settings(cls._config.viewer)

    @classmethod
    def get(cls, name: str) -> Optional[object]:
        return cls.services.get(name)
