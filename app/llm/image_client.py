"""
Cover image generation through OpenAI's images API (not OpenRouter).
"""
import logging
from typing import Optional

import requests
from openai import OpenAI, APIError

from app.config import settings
from app.llm.errors import ImageGenerationError

logger = logging.getLogger(__name__)


class ImageClient:
    def __init__(self, api_key: Optional[str] = None):
        api_key = api_key or settings.openai_api_key
        if not api_key:
            raise ImageGenerationError("OpenAI API key is required for image generation")
        self.client = OpenAI(api_key=api_key, timeout=settings.llm_timeout_sec)
        self.model = settings.image_model
        self.size = settings.image_size

    def generate_image_url(self, prompt: str) -> str:
        """Generate one image and return the provider's temporary URL."""
        try:
            response = self.client.images.generate(
                model=self.model,
                prompt=prompt,
                n=1,
                size=self.size,
                quality="standard",
                style="natural",
            )
        except APIError as e:
            # Provider detail stays in the logs, callers only see a generic failure
            logger.error(f"Image API error: {e}")
            raise ImageGenerationError("Failed to generate image")

        image_url = response.data[0].url if response.data else None
        if not image_url:
            logger.error("No image URL returned from image API")
            raise ImageGenerationError("No image URL returned")
        return image_url

    def download(self, url: str) -> bytes:
        try:
            response = requests.get(url, timeout=60)
            response.raise_for_status()
            return response.content
        except requests.RequestException as e:
            logger.error(f"Failed to download generated image: {e}")
            raise ImageGenerationError("Failed to download generated image")

    def generate_image(self, prompt: str) -> bytes:
        """Generate an image and return its PNG bytes."""
        return self.download(self.generate_image_url(prompt))


_image_client: Optional[ImageClient] = None


def get_image_client() -> ImageClient:
    global _image_client
    if _image_client is None:
        _image_client = ImageClient()
    return _image_client
