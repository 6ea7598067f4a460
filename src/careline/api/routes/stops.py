"""Stop lifecycle endpoints: status changes and proof of delivery."""

from __future__ import annotations

import random
import time
from pathlib import Path

from fastapi import APIRouter, Depends, File, Form, HTTPException, UploadFile, status

from ...schemas.tracking import ProofReferenceRequest, StatusUpdateRequest, StopModel, UploadResponse
from ...services.registry import ServiceRegistry
from ..dependencies import get_services, raise_http_error, record_audit, stop_model

router = APIRouter(tags=["stops"])


@router.get("/stops/{stop_id}", response_model=StopModel, status_code=status.HTTP_200_OK)
def get_stop(stop_id: str, services: ServiceRegistry = Depends(get_services)) -> StopModel:
    try:
        return stop_model(services.tracking.find_stop_by_id(stop_id).stop)
    except Exception as exc:
        raise_http_error(exc, "load stop")


@router.post("/stops/{stop_id}/status", response_model=StopModel, status_code=status.HTTP_200_OK)
def update_status(
    stop_id: str,
    payload: StatusUpdateRequest,
    services: ServiceRegistry = Depends(get_services),
) -> StopModel:
    try:
        stop = services.lifecycle.update_stop_status(
            stop_id, payload.status, reason=payload.reason, actor=payload.actor
        )
    except Exception as exc:
        raise_http_error(exc, "update stop status")
    record_audit(services, "STOP_STATUS", {"stopId": stop.stop_id, "status": stop.status}, actor=payload.actor)
    return stop_model(stop)


@router.post("/stops/{stop_id}/proof", response_model=StopModel, status_code=status.HTTP_200_OK)
def attach_proof(
    stop_id: str,
    payload: ProofReferenceRequest,
    services: ServiceRegistry = Depends(get_services),
) -> StopModel:
    try:
        stop = services.lifecycle.attach_proof_of_delivery(stop_id, payload.file, actor=payload.actor)
    except Exception as exc:
        raise_http_error(exc, "attach proof of delivery")
    record_audit(services, "PROOF_ATTACHED", {"stopId": stop.stop_id, "file": payload.file}, actor=payload.actor)
    return stop_model(stop)


def _unique_filename(original: str | None) -> str:
    suffix = Path(original or "").suffix.lower()
    return f"{int(time.time() * 1000)}-{random.randint(0, 10**9)}{suffix}"


@router.post("/upload", response_model=UploadResponse, status_code=status.HTTP_200_OK)
def upload_proof(
    stop_id: str = Form(..., alias="stopId"),
    photo: UploadFile | None = File(None),
    services: ServiceRegistry = Depends(get_services),
) -> UploadResponse:
    """Store a proof-of-delivery photo and mark the stop delivered.

    Runs in the worker thread pool since the storage locks are blocking.
    """
    if photo is None:
        raise HTTPException(status_code=status.HTTP_400_BAD_REQUEST, detail="No photo uploaded")
    target: Path | None = None
    try:
        services.tracking.find_stop_by_id(stop_id)
        filename = _unique_filename(photo.filename)
        content = photo.file.read()
        target = services.config.upload_dir / filename
        services.repository.storage.write_bytes(target, content)
        stop = services.lifecycle.attach_proof_of_delivery(stop_id, filename)
    except Exception as exc:
        if target is not None:
            target.unlink(missing_ok=True)
        raise_http_error(exc, "upload proof of delivery")
    record_audit(services, "PROOF_UPLOADED", {"stopId": stop_id, "file": filename, "bytes": len(content)})
    return UploadResponse(success=True, file=filename, stop=stop_model(stop))
