"""
HTTP routes for the listings API.
"""

from __future__ import annotations

import logging
from typing import Any

from fastapi import APIRouter, Body, Depends, HTTPException

from listings.dependencies import get_storage
from listings.schemas import HealthResponse, PropertyResponse, UserResponse
from listings.storage import HybridStorage

logger = logging.getLogger(__name__)

router = APIRouter()


@router.get("/health", response_model=HealthResponse)
def health(storage: HybridStorage = Depends(get_storage)):
    return HealthResponse(status="ok", backend=storage.active_backend_name())


@router.get("/properties", response_model=list[PropertyResponse])
def list_properties(storage: HybridStorage = Depends(get_storage)):
    return [
        PropertyResponse.model_validate(record)
        for record in storage.list_properties()
    ]


@router.get("/properties/{property_id}", response_model=PropertyResponse)
def get_property(property_id: str, storage: HybridStorage = Depends(get_storage)):
    record = storage.get_property(property_id)
    if record is None:
        raise HTTPException(status_code=404, detail="Property not found")
    return PropertyResponse.model_validate(record)


@router.post("/properties", response_model=PropertyResponse, status_code=201)
def create_property(
    payload: Any = Body(...), storage: HybridStorage = Depends(get_storage)
):
    record = storage.create_property(payload)
    logger.info("Created property %s", record.id)
    return PropertyResponse.model_validate(record)


@router.api_route(
    "/properties/{property_id}",
    methods=["PATCH", "PUT"],
    response_model=PropertyResponse,
)
def update_property(
    property_id: str,
    payload: Any = Body(...),
    storage: HybridStorage = Depends(get_storage),
):
    record = storage.update_property(property_id, payload)
    if record is None:
        raise HTTPException(status_code=404, detail="Property not found")
    return PropertyResponse.model_validate(record)


@router.delete("/properties/{property_id}")
def delete_property(property_id: str, storage: HybridStorage = Depends(get_storage)):
    if not storage.delete_property(property_id):
        raise HTTPException(status_code=404, detail="Property not found")
    return {"deleted": True}


@router.post("/users", response_model=UserResponse, status_code=201)
def create_user(payload: Any = Body(...), storage: HybridStorage = Depends(get_storage)):
    user = storage.create_user(payload)
    logger.info("Created user %s", user.id)
    return UserResponse.model_validate(user)


@router.get("/users/{user_id}", response_model=UserResponse)
def get_user(user_id: str, storage: HybridStorage = Depends(get_storage)):
    user = storage.get_user(user_id)
    if user is None:
        raise HTTPException(status_code=404, detail="User not found")
    return UserResponse.model_validate(user)
