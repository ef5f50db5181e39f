"""
Tests for the Mifflin-St Jeor calorie calculator
"""

import pytest

from app.services.calories import calculate_bmr, calculate_tdee, daily_goal


def test_bmr_male_and_female():
    assert calculate_bmr("male", 70, 175, 30) == pytest.approx(1648.75)
    assert calculate_bmr("female", 60, 165, 25) == pytest.approx(1345.25)


def test_tdee_and_goal():
    tdee = calculate_tdee(1648.75, "moderate")

    assert tdee == 2556
    assert daily_goal(tdee, "lose") == 2056
    assert daily_goal(tdee, "gain") == 2856
    assert daily_goal(tdee, "maintain") == 2556


def test_estimate_endpoint(client):
    resp = client.post(
        "/api/calories/estimate",
        json={"gender": "female", "weight_kg": 60, "height_cm": 165, "age": 25, "activity_level": "active", "goal": "lose"},
    )

    assert resp.status_code == 200
    assert resp.json()["data"] == {"bmr": 1345, "tdee": 2321, "daily_goal": 1821}


def test_estimate_rejects_unknown_activity(client):
    resp = client.post(
        "/api/calories/estimate",
        json={"gender": "male", "weight_kg": 70, "height_cm": 175, "age": 30, "activity_level": "couch"},
    )

    assert resp.status_code == 400
