import uuid
from datetime import date
from typing import Annotated, Optional

from fastapi import APIRouter, Depends, HTTPException, Query, status
from sqlalchemy.ext.asyncio import AsyncSession

from rentdesk.common.activity import record_activity
from rentdesk.common.pagination import PageQuery, PageSizeQuery, PaginatedResponse
from rentdesk.config import settings
from rentdesk.database import get_db
from rentdesk.dependencies import get_actor
from rentdesk.reservations.service import count_reservations_for_vehicle
from rentdesk.vehicles.models import AvailabilityStatus
from rentdesk.vehicles.schemas import VehicleCreate, VehicleResponse, VehicleUpdate
from rentdesk.vehicles.service import (
    create_vehicle,
    delete_vehicle,
    get_apk_expiring,
    get_vehicle,
    get_vehicle_by_plate,
    get_vehicles,
    get_warranty_expiring,
    update_vehicle,
)

router = APIRouter()


@router.get("", response_model=PaginatedResponse)
async def list_vehicles(
    db: Annotated[AsyncSession, Depends(get_db)],
    page: PageQuery = 1,
    page_size: PageSizeQuery = 25,
    search: Optional[str] = None,
    availability_status: Optional[AvailabilityStatus] = None,
):
    vehicles, total = await get_vehicles(db, page, page_size, search, availability_status)
    items = [VehicleResponse.model_validate(v).model_dump(mode="json") for v in vehicles]
    return PaginatedResponse.create(items=items, total=total, page=page, page_size=page_size)


@router.get("/apk-expiring", response_model=list[VehicleResponse])
async def apk_expiring(
    db: Annotated[AsyncSession, Depends(get_db)],
    within_days: Annotated[int, Query(ge=1, le=365)] = settings.expiry_warning_days,
    as_of: Optional[date] = None,
):
    """Vehicles whose APK inspection is due soon."""
    return await get_apk_expiring(db, as_of or date.today(), within_days)


@router.get("/warranty-expiring", response_model=list[VehicleResponse])
async def warranty_expiring(
    db: Annotated[AsyncSession, Depends(get_db)],
    within_days: Annotated[int, Query(ge=1, le=365)] = settings.expiry_warning_days,
    as_of: Optional[date] = None,
):
    return await get_warranty_expiring(db, as_of or date.today(), within_days)


@router.get("/{vehicle_id}", response_model=VehicleResponse)
async def get_vehicle_detail(
    vehicle_id: uuid.UUID,
    db: Annotated[AsyncSession, Depends(get_db)],
):
    vehicle = await get_vehicle(db, vehicle_id)
    if vehicle is None:
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail="Vehicle not found")
    return vehicle


@router.post("", response_model=VehicleResponse, status_code=status.HTTP_201_CREATED)
async def create_new_vehicle(
    data: VehicleCreate,
    db: Annotated[AsyncSession, Depends(get_db)],
    actor: Annotated[str, Depends(get_actor)],
):
    if await get_vehicle_by_plate(db, data.license_plate) is not None:
        raise HTTPException(
            status_code=status.HTTP_409_CONFLICT,
            detail=f"A vehicle with license plate {data.license_plate} already exists",
        )
    vehicle = await create_vehicle(db, data)
    await record_activity(db, "vehicle", vehicle.id, "create", data.model_dump(), actor)
    return vehicle


@router.put("/{vehicle_id}", response_model=VehicleResponse)
async def update_existing_vehicle(
    vehicle_id: uuid.UUID,
    data: VehicleUpdate,
    db: Annotated[AsyncSession, Depends(get_db)],
    actor: Annotated[str, Depends(get_actor)],
):
    vehicle = await get_vehicle(db, vehicle_id)
    if vehicle is None:
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail="Vehicle not found")

    if data.license_plate and data.license_plate != vehicle.license_plate:
        if await get_vehicle_by_plate(db, data.license_plate) is not None:
            raise HTTPException(
                status_code=status.HTTP_409_CONFLICT,
                detail=f"A vehicle with license plate {data.license_plate} already exists",
            )

    updated = await update_vehicle(db, vehicle, data)
    await record_activity(db, "vehicle", vehicle_id, "update", data.model_dump(exclude_unset=True), actor)
    return updated


@router.delete("/{vehicle_id}", status_code=status.HTTP_204_NO_CONTENT)
async def delete_existing_vehicle(
    vehicle_id: uuid.UUID,
    db: Annotated[AsyncSession, Depends(get_db)],
    actor: Annotated[str, Depends(get_actor)],
):
    vehicle = await get_vehicle(db, vehicle_id)
    if vehicle is None:
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail="Vehicle not found")
    if await count_reservations_for_vehicle(db, vehicle_id) > 0:
        raise HTTPException(
            status_code=status.HTTP_409_CONFLICT,
            detail="Vehicle has reservations and cannot be deleted",
        )

    await delete_vehicle(db, vehicle)
    await record_activity(db, "vehicle", vehicle_id, "delete", actor=actor)
