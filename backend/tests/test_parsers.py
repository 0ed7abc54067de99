from __future__ import annotations

import pytest

from clinicbot_core.calories import CalorieEstimate, parse_calorie_estimate
from clinicbot_core.metrics import extract_metrics
from clinicbot_core.routing import RoutingPolicy


@pytest.mark.parametrize(
    ("text", "expected"),
    [
        ("approximately 650 kcal, well done", CalorieEstimate(650, True)),
        ("約800kcalです。よく頑張りました！", CalorieEstimate(800, True)),
        ("Roughly 1,200 kcal for the full set", CalorieEstimate(1200, True)),
        ("between 400 and 500 kcal", CalorieEstimate(400, True)),
        ("I can't tell what this is.", CalorieEstimate(0, False)),
        ("", CalorieEstimate(0, False)),
        (None, CalorieEstimate(0, False)),
    ],
)
def test_parse_calorie_estimate_takes_first_integer(text, expected):
    assert parse_calorie_estimate(text) == expected


def test_zero_from_text_is_a_parsed_value():
    assert parse_calorie_estimate("0 kcal, that's just water") == CalorieEstimate(0, True)


@pytest.mark.parametrize(
    ("text", "expected"),
    [
        ("My weight is 68.4kg today", {"weight": 68.4}),
        ("体重 65.2", {"weight": 65.2}),
        ("I'm 72 kg now", {"weight": 72.0}),
        ("body fat 21%", {"fat": 21.0}),
        ("体脂肪率は22.5%でした", {"fat": 22.5}),
        ("walked 30 minutes after lunch", {"exercise": 30.0}),
        ("運動 45分", {"exercise": 45.0}),
        ("weight 70kg, body fat 20%, exercised 20 min", {"weight": 70.0, "fat": 20.0, "exercise": 20.0}),
    ],
)
def test_extract_metrics_reads_self_reports(text, expected):
    assert extract_metrics(text) == expected


@pytest.mark.parametrize("text", ["", "My back hurts", "weight 2", "body fat 95", "I ran 3000 minutes"])
def test_extract_metrics_ignores_missing_or_implausible_values(text):
    assert extract_metrics(text) == {}


@pytest.mark.parametrize(
    ("text", "code"),
    [
        ("What is your phone number?", "call"),
        ("Can I call you tomorrow?", "call"),
        ("Please give me the clinic's phone number", "call"),
        ("電話番号を教えてください", "call"),
        ("Can I book an appointment on Monday?", "booking"),
        ("It's an emergency", "urgent"),
    ],
)
def test_routing_matches_contact_requests(text, code):
    decision = RoutingPolicy(clinic_phone="03-1234-5678").match(text)
    assert decision is not None
    assert decision.code == code
    assert "03-1234-5678" in decision.reply


@pytest.mark.parametrize(
    "text",
    [
        "My phone died yesterday, but my back still hurts",
        "I was on the phone all day and my neck is stiff",
        "スマホの電池が切れました",
        "",
    ],
)
def test_routing_leaves_passing_mentions_to_the_model(text):
    assert RoutingPolicy(clinic_phone="03-1234-5678").match(text) is None
