"""OpenAI client for structured outputs and image generation."""

import json
from dataclasses import dataclass

import httpx
from openai import AsyncOpenAI

from coconut_nutrition.services.generative import GenerativeClient

_IMAGE_SIZE = "1024x1024"
_IMAGE_MIME_TYPE = "image/png"


@dataclass
class OpenAIGenerativeClient(GenerativeClient):
    """Generative client backed by the OpenAI Responses and Images APIs."""

    client: AsyncOpenAI

    @classmethod
    def create(cls, api_key: str) -> "OpenAIGenerativeClient":
        """Create an OpenAI client with its own HTTP session."""
        http_client = httpx.AsyncClient(timeout=httpx.Timeout(120.0, connect=10.0))
        return cls(client=AsyncOpenAI(api_key=api_key, http_client=http_client))

    async def generate_json(  # noqa: PLR0913
        self,
        *,
        model: str,
        reasoning_effort: str | None,
        store: bool,
        prompt: str,
        schema: dict[str, object],
        schema_name: str,
        image_data_url: str | None = None,
    ) -> dict[str, object]:
        """Call OpenAI Responses API with structured outputs."""
        content: list[dict[str, object]] = [{"type": "input_text", "text": prompt}]
        if image_data_url:
            content.append({"type": "input_image", "image_url": image_data_url})
        request_payload: dict[str, object] = {
            "model": model,
            "input": [{"role": "user", "content": content}],
            "text": {
                "format": {
                    "type": "json_schema",
                    "name": schema_name,
                    "strict": True,
                    "schema": schema,
                }
            },
            "store": store,
        }
        if reasoning_effort:
            request_payload["reasoning"] = {"effort": reasoning_effort}

        response = await self.client.responses.create(**request_payload)
        output_text = response.output_text
        if not output_text:
            raise RuntimeError("OpenAI returned an empty response")
        return json.loads(output_text, parse_constant=_reject_non_finite)

    async def generate_image(self, *, model: str, prompt: str) -> tuple[str, str]:
        """Generate a square image and return its base64 payload."""
        response = await self.client.images.generate(
            model=model,
            prompt=prompt,
            size=_IMAGE_SIZE,
            n=1,
        )
        if not response.data or not response.data[0].b64_json:
            raise RuntimeError("OpenAI returned no image data")
        return response.data[0].b64_json, _IMAGE_MIME_TYPE

    async def close(self) -> None:
        """Close the underlying HTTP session."""
        await self.client.close()


def _reject_non_finite(constant: str) -> float:
    raise ValueError(f"OpenAI returned a non-finite number: {constant}")
