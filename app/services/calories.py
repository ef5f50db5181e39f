# 칼로리 계산: Mifflin-St Jeor BMR → TDEE → 목표 칼로리

from typing import Dict

ACTIVITY_MULTIPLIERS: Dict[str, float] = {
    "sedentary": 1.2,
    "light": 1.375,
    "moderate": 1.55,
    "active": 1.725,
    "very_active": 1.9,
}

# 감량 -500kcal, 증량 +300kcal
GOAL_ADJUSTMENTS: Dict[str, int] = {
    "lose": -500,
    "maintain": 0,
    "gain": 300,
}


def calculate_bmr(gender: str, weight_kg: float, height_cm: float, age: int) -> float:
    """기초대사량. male: +5, female: -161."""
    base = 10 * weight_kg + 6.25 * height_cm - 5 * age
    return base + 5 if gender == "male" else base - 161


def calculate_tdee(bmr: float, activity_level: str) -> int:
    return round(bmr * ACTIVITY_MULTIPLIERS[activity_level])


def daily_goal(tdee: int, goal: str) -> int:
    return tdee + GOAL_ADJUSTMENTS[goal]
