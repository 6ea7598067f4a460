"""Stop, driver and tracking request/response schemas."""

from __future__ import annotations

from typing import Optional

from pydantic import BaseModel, ConfigDict, Field


class StatusUpdateRequest(BaseModel):
    status: str = Field(..., min_length=1, description="New stop status, e.g. OutForDelivery or Delivered.")
    reason: Optional[str] = Field(default=None, description="Why the stop failed, when relevant.")
    actor: Optional[str] = Field(default=None, description="Driver or dispatcher making the change.")


class ProofReferenceRequest(BaseModel):
    file: str = Field(..., min_length=1, description="Reference of an already stored proof-of-delivery file.")
    actor: Optional[str] = None


class GpsPingRequest(BaseModel):
    model_config = ConfigDict(populate_by_name=True)

    driver_id: str = Field(..., min_length=1, alias="driverId")
    lat: float = Field(..., ge=-90, le=90)
    lng: float = Field(..., ge=-180, le=180)
    speed: Optional[float] = None
    heading: Optional[float] = None
    accuracy: Optional[float] = None


class StopModel(BaseModel):
    stop_id: str
    route_id: str
    patient: Optional[str] = None
    facility: Optional[str] = None
    latitude: Optional[float] = None
    longitude: Optional[float] = None
    status: str
    proof_file: Optional[str] = None
    reason: Optional[str] = None
    updated_at: Optional[str] = None


class DriverModel(BaseModel):
    driver_id: str
    name: str


class LivePositionModel(BaseModel):
    driver_id: str
    lat: float
    lng: float
    speed: Optional[float] = None
    heading: Optional[float] = None
    accuracy: Optional[float] = None
    updated_at: str


class TrackingSnapshotModel(BaseModel):
    stop: StopModel
    driver: Optional[DriverModel] = None
    live_location: Optional[LivePositionModel] = None
    eta_minutes: Optional[int] = None
    tracking_url: str


class ProofRecordModel(BaseModel):
    model_config = ConfigDict(populate_by_name=True)

    stop_id: Optional[str] = Field(None, alias="stopId")
    file: Optional[str] = None
    uploaded_at: Optional[str] = Field(None, alias="uploadedAt")


class UploadResponse(BaseModel):
    success: bool
    file: str
    stop: StopModel
