# 칼로리 계산 API (인증 불필요)
from typing import Literal

from fastapi import APIRouter
from pydantic import BaseModel, Field

from app.schemas.common import ok
from app.services.calories import calculate_bmr, calculate_tdee, daily_goal

router = APIRouter(prefix="/calories", tags=["Calories"])


class CalorieProfile(BaseModel):
    gender: Literal["male", "female"]
    weight_kg: float = Field(..., gt=0, le=400)
    height_cm: float = Field(..., gt=0, le=260)
    age: int = Field(..., gt=0, le=120)
    activity_level: Literal["sedentary", "light", "moderate", "active", "very_active"] = "moderate"
    goal: Literal["lose", "maintain", "gain"] = "maintain"


@router.post("/estimate")
def post_estimate(body: CalorieProfile):
    """BMR(반올림), TDEE, 목표별 하루 권장 칼로리."""
    bmr = calculate_bmr(body.gender, body.weight_kg, body.height_cm, body.age)
    tdee = calculate_tdee(bmr, body.activity_level)
    return ok({"bmr": round(bmr), "tdee": tdee, "daily_goal": daily_goal(tdee, body.goal)})
