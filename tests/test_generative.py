"""Tests for the generative AI service."""

import asyncio
from types import SimpleNamespace

import pytest

from coconut_nutrition.domain.nutrition import HealthLabel
from coconut_nutrition.services.generative import (
    GenerativeAI,
    QuotaExceededError,
    is_quota_error,
    to_data_url,
)
from tests.conftest import FakeGenerativeClient


def test_estimate_nutrition_returns_structured_estimate(
    generative_ai: GenerativeAI, generative_client: FakeGenerativeClient
) -> None:
    estimate = asyncio.run(
        generative_ai.estimate_nutrition(
            "Berry oatmeal", ["oats", "milk"], ["Cook.", "Serve."]
        )
    )

    assert estimate is not None
    assert estimate.calories_kcal == 420
    assert estimate.health_label is HealthLabel.FAVORABLE
    schema_name, prompt = generative_client.json_calls[0]
    assert schema_name == "recipe_nutrition"
    assert "Title: Berry oatmeal" in prompt
    assert "Ingredients: oats, milk" in prompt
    assert "Steps: Cook. Serve." in prompt


def test_estimate_nutrition_omits_steps_when_absent(
    generative_ai: GenerativeAI, generative_client: FakeGenerativeClient
) -> None:
    asyncio.run(generative_ai.estimate_nutrition("Toast", ["bread"]))

    assert "Steps:" not in generative_client.json_calls[0][1]


@pytest.mark.parametrize(
    "error",
    [
        RuntimeError("Error code: 429 - Too Many Requests"),
        RuntimeError("You exceeded your current QUOTA"),
        type("RateLimit", (Exception,), {"status_code": 429})("slow down"),
    ],
)
def test_estimate_nutrition_raises_on_quota(
    generative_ai: GenerativeAI,
    generative_client: FakeGenerativeClient,
    error: Exception,
) -> None:
    generative_client.json_failures["Toast"] = error

    with pytest.raises(QuotaExceededError):
        asyncio.run(generative_ai.estimate_nutrition("Toast", ["bread"]))


def test_estimate_nutrition_returns_none_on_other_failures(
    generative_ai: GenerativeAI, generative_client: FakeGenerativeClient
) -> None:
    generative_client.json_failures["Toast"] = RuntimeError("connection reset")

    assert asyncio.run(generative_ai.estimate_nutrition("Toast", ["bread"])) is None


def test_estimate_nutrition_returns_none_on_malformed_payload(
    generative_ai: GenerativeAI, generative_client: FakeGenerativeClient
) -> None:
    generative_client.payloads["recipe_nutrition"] = {"calories_kcal": 100}

    assert asyncio.run(generative_ai.estimate_nutrition("Toast", ["bread"])) is None


def test_estimate_nutrition_returns_none_on_non_finite_numbers(
    generative_ai: GenerativeAI, generative_client: FakeGenerativeClient
) -> None:
    payload = dict(generative_client.payloads["recipe_nutrition"])
    payload["health_score_0_10"] = float("nan")
    generative_client.payloads["recipe_nutrition"] = payload

    assert asyncio.run(generative_ai.estimate_nutrition("Toast", ["bread"])) is None


def test_analyze_photo_returns_none_on_infinite_calories(
    generative_ai: GenerativeAI, generative_client: FakeGenerativeClient
) -> None:
    payload = dict(generative_client.payloads["meal_photo"])
    payload["calories_kcal"] = float("inf")
    generative_client.payloads["meal_photo"] = payload

    assert asyncio.run(generative_ai.analyze_photo(b"photo", "image/jpeg")) is None


def test_generate_image_returns_data_uri(
    generative_ai: GenerativeAI, generative_client: FakeGenerativeClient
) -> None:
    image = asyncio.run(
        generative_ai.generate_image("Baked salmon", "Dinners", ["salmon", "lemon"])
    )

    assert image == "data:image/png;base64,aW1hZ2U="
    prompt = generative_client.image_calls[0]
    assert "Dish name: Baked salmon" in prompt
    assert "Category: Dinners" in prompt
    assert "Key ingredients: salmon, lemon" in prompt


def test_generate_image_returns_none_on_failure(
    generative_ai: GenerativeAI, generative_client: FakeGenerativeClient
) -> None:
    generative_client.image_failures["Baked salmon"] = RuntimeError("429")

    image = asyncio.run(generative_ai.generate_image("Baked salmon", "Dinners", []))

    assert image is None


def test_analyze_photo_sends_declared_media_type(
    generative_ai: GenerativeAI, generative_client: FakeGenerativeClient
) -> None:
    result = asyncio.run(generative_ai.analyze_photo(b"photo", "image/webp"))

    assert result is not None
    assert result.dish_name == "Caesar salad"
    assert result.tips == ["Ask for dressing on the side."]
    data_url = generative_client.image_data_urls[0]
    assert data_url is not None
    assert data_url.startswith("data:image/webp;base64,")


def test_analyze_photo_returns_none_on_malformed_payload(
    generative_ai: GenerativeAI, generative_client: FakeGenerativeClient
) -> None:
    generative_client.payloads["meal_photo"] = {"dish_name": "Soup"}

    assert asyncio.run(generative_ai.analyze_photo(b"photo", "image/jpeg")) is None


def test_analyze_photo_returns_none_on_client_error(
    generative_ai: GenerativeAI, generative_client: FakeGenerativeClient
) -> None:
    generative_client.payloads.pop("meal_photo")

    assert asyncio.run(generative_ai.analyze_photo(b"photo")) is None


def test_describe_meal_parses_result(generative_ai: GenerativeAI) -> None:
    result = asyncio.run(generative_ai.describe_meal("banana smoothie with milk"))

    assert result is not None
    assert result.name == "Banana smoothie"
    assert result.emoji == "🍌"


def test_is_quota_error_checks_response_status() -> None:
    error = RuntimeError("rejected")
    error.response = SimpleNamespace(status_code=429)  # type: ignore[attr-defined]

    assert is_quota_error(error)
    assert not is_quota_error(RuntimeError("bad gateway"))


def test_to_data_url_uses_png_header() -> None:
    data = b"\x89PNG\r\n\x1a\n" + b"rest"
    url = to_data_url(data)

    assert url.startswith("data:image/png;base64,")


def test_to_data_url_ignores_non_image_media_type() -> None:
    url = to_data_url(b"unknown", "application/octet-stream")

    assert url.startswith("data:image/jpeg;base64,")
