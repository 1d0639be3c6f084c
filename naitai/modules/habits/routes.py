from fastapi import APIRouter, Depends
from naitai.core.dependencies import get_current_user, get_user_supabase
from naitai.core.errors import ApiError
from naitai.modules.habits.schemas import (
    HabitCreate, HabitEnvelope, HabitListEnvelope,
    HabitDeleted, HabitDeletedEnvelope
)
from naitai.modules.habits.service import HabitService
from supabase import Client
from typing import Dict, Optional

router = APIRouter(prefix="/habits", tags=["habits"])


def get_habit_service(supabase: Client = Depends(get_user_supabase)) -> HabitService:
    return HabitService(supabase)


@router.get("", response_model=HabitListEnvelope)
async def list_habits(
    user_data: Dict = Depends(get_current_user),
    service: HabitService = Depends(get_habit_service)
):
    """List the current user's habits, newest first"""
    return {"data": service.list_habits()}


@router.post("", response_model=HabitEnvelope, status_code=201)
async def create_habit(
    habit_data: Optional[HabitCreate] = None,
    user_data: Dict = Depends(get_current_user),
    service: HabitService = Depends(get_habit_service)
):
    """Create a habit for the current user"""
    # A request without a body is treated like an empty object
    habit_data = habit_data or HabitCreate()
    if not habit_data.name or not habit_data.name.strip():
        raise ApiError(400, "Habit name is required")
    return {"data": service.create_habit(habit_data, user_data["id"])}


@router.patch("/{habit_id}/toggle", response_model=HabitEnvelope)
async def toggle_habit(
    habit_id: str,
    user_data: Dict = Depends(get_current_user),
    service: HabitService = Depends(get_habit_service)
):
    """Flip a habit's completed flag"""
    return {"data": service.toggle_habit(habit_id)}


@router.delete("/{habit_id}", response_model=HabitDeletedEnvelope)
async def delete_habit(
    habit_id: str,
    user_data: Dict = Depends(get_current_user),
    service: HabitService = Depends(get_habit_service)
):
    """Delete a habit"""
    return {"data": HabitDeleted(id=service.delete_habit(habit_id))}
