"""OpenAI Responses API client for photo captions."""

from dataclasses import dataclass

from openai import AsyncOpenAI

from moment_composer.services.captions import CaptionClient


@dataclass
class OpenAICaptionClient(CaptionClient):
    """Caption client backed by the OpenAI Responses API."""

    client: AsyncOpenAI

    @classmethod
    def create(cls, api_key: str) -> "OpenAICaptionClient":
        """Create an OpenAI caption client."""
        return cls(client=AsyncOpenAI(api_key=api_key))

    async def describe(
        self,
        *,
        model: str,
        image_data_url: str,
        prompt: str,
        max_output_tokens: int,
    ) -> str | None:
        """Ask the model for a short description of the image."""
        response = await self.client.responses.create(
            model=model,
            input=[
                {
                    "role": "user",
                    "content": [
                        {"type": "input_image", "image_url": image_data_url},
                        {"type": "input_text", "text": prompt},
                    ],
                }
            ],
            max_output_tokens=max_output_tokens,
            store=False,
        )
        return response.output_text or None

    async def close(self) -> None:
        """Close the underlying OpenAI HTTP client."""
        await self.client.close()
