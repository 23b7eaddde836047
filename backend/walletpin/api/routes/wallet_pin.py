"""Wallet PIN Routes — HTTP surface over PinCredentialManager.

Invariants:
    - Every request names the calling device (X-Device-Id); the local secure store is
      scoped to that device and the path user
    - PIN outcomes are returned as 200 with a boolean envelope, never as error statuses,
      including when the secure-store key is missing or malformed
    - Only reconcile can surface a storage failure (503 via the global handler)

Design Decisions:
    - One manager per request, sharing a process-wide UserLocks registry
      (ADR: single-process uvicorn; cross-process races remain last-writer-wins)
    - Stores are built in dependencies so tests override get_settings/get_db_manager only
"""

import logging

from fastapi import APIRouter, Depends, Header, Path

from walletpin.config import Settings, get_settings
from walletpin.core.domain_types import DeviceId, UserId
from walletpin.infrastructure.database import DatabaseSessionManager, get_db_manager
from walletpin.infrastructure.secure_store import device_secure_stores
from walletpin.infrastructure.wallet_document_store import SqlWalletDocumentStore
from walletpin.schemas.wallet_pin import (
    PinBody, PinChangeBody, ProtectionStatusResponse, ReconcileResponse,
    SuccessResponse, VerifyResponse,
)
from walletpin.services.pin_credential_manager import PinCredentialManager, UserLocks

logger = logging.getLogger(__name__)
router = APIRouter(prefix="/api/v1/wallets/{user_id}/pin", tags=["wallet-pin"])

_user_locks = UserLocks()


def get_pin_manager(
    user_id: str = Path(min_length=1, max_length=128),
    x_device_id: str = Header(min_length=1, max_length=128),
    settings: Settings = Depends(get_settings),
    db_manager: DatabaseSessionManager = Depends(get_db_manager),
) -> PinCredentialManager:
    """Build a manager for the calling device over the configured stores."""
    secure_stores = device_secure_stores(
        settings.secure_store_dir, settings.secure_store_key, DeviceId(x_device_id),
    )
    return PinCredentialManager(
        secure_stores,
        SqlWalletDocumentStore(db_manager),
        scheme=settings.pin_scheme,
        scrypt_params=settings.scrypt_params,
        pin_min_length=settings.pin_min_length,
        pin_max_length=settings.pin_max_length,
        locks=_user_locks,
    )


@router.put("", response_model=SuccessResponse)
async def set_pin(
    user_id: str, body: PinBody,
    manager: PinCredentialManager = Depends(get_pin_manager),
):
    """Set or rotate the wallet PIN."""
    return SuccessResponse(success=await manager.set_pin(UserId(user_id), body.pin))


@router.post("/verify", response_model=VerifyResponse)
async def verify_pin(
    user_id: str, body: PinBody,
    manager: PinCredentialManager = Depends(get_pin_manager),
):
    return VerifyResponse(matched=await manager.verify_pin(UserId(user_id), body.pin))


@router.post("/change", response_model=SuccessResponse)
async def change_pin(
    user_id: str, body: PinChangeBody,
    manager: PinCredentialManager = Depends(get_pin_manager),
):
    success = await manager.change_pin(
        UserId(user_id), body.current_pin, body.new_pin,
    )
    return SuccessResponse(success=success)


@router.delete("", response_model=SuccessResponse)
async def remove_pin(
    user_id: str, manager: PinCredentialManager = Depends(get_pin_manager),
):
    return SuccessResponse(success=await manager.remove_pin(UserId(user_id)))


@router.get("/status", response_model=ProtectionStatusResponse)
async def pin_status(
    user_id: str, manager: PinCredentialManager = Depends(get_pin_manager),
):
    return ProtectionStatusResponse(
        protected=await manager.is_pin_protected(UserId(user_id)),
    )


@router.post("/reconcile", response_model=ReconcileResponse)
async def reconcile_pin(
    user_id: str, manager: PinCredentialManager = Depends(get_pin_manager),
):
    """Align this device's secure store with the remote record."""
    record = await manager.reconcile(UserId(user_id))
    if record is None:
        return ReconcileResponse(protected=False)
    return ReconcileResponse(
        protected=True, scheme=record.scheme.value, updated_at=record.updated_at,
    )
