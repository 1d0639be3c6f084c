import logging
from datetime import datetime, timezone
from supabase import Client
from naitai.core.errors import ApiError
from naitai.modules.habits.schemas import HabitCreate, HabitResponse
from typing import List, Optional

logger = logging.getLogger(__name__)


class HabitService:
    """Habit rows accessed through a client carrying the caller's token; RLS scopes every query."""

    def __init__(self, supabase: Client):
        self.supabase = supabase

    def list_habits(self) -> List[HabitResponse]:
        """List the caller's habits, newest first"""
        try:
            result = self.supabase.table("habits")\
                .select("*")\
                .order("created_at", desc=True)\
                .execute()
            return [HabitResponse(**habit) for habit in result.data or []]
        except Exception as e:
            logger.error(f"Supabase error fetching habits: {e}")
            raise ApiError(500, "Failed to fetch habits", details=str(e))

    def create_habit(self, habit_data: HabitCreate, user_id: str) -> HabitResponse:
        """Create a habit owned by user_id"""
        try:
            result = self.supabase.table("habits").insert({
                "name": habit_data.name,
                "description": habit_data.description or "",
                "completed": False,
                "user_id": user_id
            }).execute()
        except Exception as e:
            logger.error(f"Supabase error creating habit: {e}")
            raise ApiError(500, "Failed to create habit", details=str(e))

        if not result.data:
            raise ApiError(500, "Failed to create habit", details="No row returned")
        return HabitResponse(**result.data[0])

    def get_habit(self, habit_id: str) -> Optional[HabitResponse]:
        try:
            result = self.supabase.table("habits")\
                .select("*")\
                .eq("id", habit_id)\
                .limit(1)\
                .execute()
        except Exception as e:
            logger.error(f"Supabase error fetching habit {habit_id}: {e}")
            raise ApiError(500, "Failed to fetch habit", details=str(e))
        if not result.data:
            return None
        return HabitResponse(**result.data[0])

    def toggle_habit(self, habit_id: str) -> HabitResponse:
        """Flip completed and return the updated row"""
        habit = self.get_habit(habit_id)
        if habit is None:
            raise ApiError(404, "Habit not found")
        try:
            result = self.supabase.table("habits")\
                .update({
                    "completed": not habit.completed,
                    "updated_at": datetime.now(timezone.utc).isoformat()
                })\
                .eq("id", habit_id)\
                .execute()
        except Exception as e:
            logger.error(f"Supabase error toggling habit {habit_id}: {e}")
            raise ApiError(500, "Failed to update habit", details=str(e))

        if not result.data:
            raise ApiError(404, "Habit not found")
        return HabitResponse(**result.data[0])

    def delete_habit(self, habit_id: str) -> str:
        try:
            result = self.supabase.table("habits")\
                .delete()\
                .eq("id", habit_id)\
                .execute()
        except Exception as e:
            logger.error(f"Supabase error deleting habit {habit_id}: {e}")
            raise ApiError(500, "Failed to delete habit", details=str(e))

        if not result.data:
            raise ApiError(404, "Habit not found")
        return habit_id
