"""
OpenRouter chat client.

Chat completions go through the openai SDK pointed at the OpenRouter base URL;
the OpenRouter-only endpoints (model catalogue, key credits) use requests.
"""
import json
import logging
import time
from typing import Any, Dict, List, Optional

import requests
from openai import OpenAI, APIError, APIStatusError

from app.config import settings
from app.llm.errors import OpenRouterError
from app.utils.json_extract import extract_json, strip_code_fence, looks_truncated

logger = logging.getLogger(__name__)

VALIDATION_REQUIRED_FIELDS = [
    "is_valid",
    "confidence",
    "triggers",
    "processes",
    "tools_needed",
    "complexity",
    "estimated_time",
    "suggestions",
]

WORKFLOW_MAX_RETRIES = 2
WORKFLOW_RETRY_DELAY_SEC = 1.0
WORKFLOW_MAX_TOKENS = 16000


def validation_defaults(suggestion: str) -> Dict[str, Any]:
    return {
        "is_valid": False,
        "confidence": 0.1,
        "triggers": [],
        "processes": [],
        "tools_needed": [],
        "complexity": "complex",
        "estimated_time": 8,
        "suggestions": [suggestion],
    }


class OpenRouterClient:
    def __init__(self, api_key: Optional[str] = None, base_url: Optional[str] = None):
        self.api_key = (api_key or settings.openrouter_api_key or "").strip()
        if not self.api_key:
            raise OpenRouterError("OpenRouter API key is required")
        self.base_url = (base_url or settings.openrouter_base_url).rstrip("/")
        self.default_headers = {
            "HTTP-Referer": settings.site_url,
            "X-Title": settings.app_title,
        }
        self.client = OpenAI(
            api_key=self.api_key,
            base_url=self.base_url,
            default_headers=self.default_headers,
            timeout=settings.llm_timeout_sec,
        )

    def chat_completion(
        self,
        messages: List[Dict[str, str]],
        model: Optional[str] = None,
        max_tokens: Optional[int] = None,
        temperature: Optional[float] = None,
        **options: Any,
    ) -> str:
        """Send a chat completion request and return the first choice's text ("" when empty)."""
        model = model or settings.default_model
        logger.info(
            f"OpenRouter request: model={model} messages={len(messages)} max_tokens={max_tokens}"
        )
        kwargs: Dict[str, Any] = {"model": model, "messages": messages, **options}
        if max_tokens is not None:
            kwargs["max_tokens"] = max_tokens
        if temperature is not None:
            kwargs["temperature"] = temperature
        try:
            response = self.client.chat.completions.create(**kwargs)
        except APIStatusError as e:
            logger.error(f"OpenRouter API error ({e.status_code}): {e.message}")
            raise OpenRouterError(f"OpenRouter API error: {e.message}", status_code=e.status_code)
        except APIError as e:
            logger.error(f"OpenRouter request failed: {e}")
            raise OpenRouterError(f"OpenRouter API error: {e}")

        choices = response.choices or []
        logger.info(
            f"OpenRouter success: choices={len(choices)} "
            f"finish_reason={choices[0].finish_reason if choices else None}"
        )
        if not choices or not choices[0].message:
            return ""
        return choices[0].message.content or ""

    def complete(self, prompt: str, model: Optional[str] = None, **options: Any) -> str:
        """Single user-message completion"""
        options.setdefault("max_tokens", 1000)
        options.setdefault("temperature", 0.7)
        return self.chat_completion([{"role": "user", "content": prompt}], model, **options)

    def complete_with_system(
        self, system_prompt: str, user_input: str, model: Optional[str] = None, **options: Any
    ) -> str:
        """System prompt + user input completion"""
        options.setdefault("max_tokens", 2000)
        options.setdefault("temperature", 0.3)
        messages = [
            {"role": "system", "content": system_prompt},
            {"role": "user", "content": user_input},
        ]
        return self.chat_completion(messages, model, **options)

    def generate_text(self, prompt: str, model: Optional[str] = None, **options: Any) -> str:
        options.setdefault("max_tokens", WORKFLOW_MAX_TOKENS)
        options.setdefault("temperature", 0.2)
        return self.complete(prompt, model, **options)

    def generate_json(self, prompt: str, model: Optional[str] = None, **options: Any) -> Any:
        """Completion whose answer must be a JSON document. Raises OpenRouterError when it is not."""
        options.setdefault("temperature", 0.3)
        text = self.complete(prompt, model, **options)
        parsed = extract_json(text)
        if parsed is None:
            raise OpenRouterError("AI returned invalid JSON")
        return parsed

    def validate_workflow(
        self, workflow_description: str, system_prompt: str, model: Optional[str] = None
    ) -> Dict[str, Any]:
        """
        Ask the model whether a description is automatable.
        Unparseable answers give the fallback result; missing keys are filled with defaults.
        """
        logger.info(f"Starting workflow validation with model: {model or settings.default_model}")
        try:
            response = self.complete_with_system(
                system_prompt, workflow_description, model, temperature=0.2, max_tokens=1500
            )
        except OpenRouterError as e:
            raise OpenRouterError(f"Failed to validate workflow: {e}", status_code=e.status_code)

        logger.info(f"Raw AI validation response received: {len(response)} chars")
        try:
            parsed = json.loads(response)
        except ValueError:
            parsed = extract_json(response)
            if parsed is None:
                if -1 < response.find("{") < response.rfind("}"):
                    raise OpenRouterError("Failed to validate workflow: AI returned invalid JSON")
                logger.warning("No JSON found in response, returning fallback validation result")
                return validation_defaults(
                    "The workflow description could not be processed. "
                    "Please try rephrasing your description more clearly."
                )

        if not isinstance(parsed, dict):
            raise OpenRouterError("Failed to validate workflow: response is not a JSON object")

        missing = [field for field in VALIDATION_REQUIRED_FIELDS if field not in parsed]
        if missing:
            logger.warning(f"Validation response missing required fields: {missing}")
            defaults = validation_defaults(
                "The workflow validation returned incomplete information. Please try again."
            )
            for field in missing:
                parsed[field] = defaults[field]
        return parsed

    def generate_workflow_json(
        self,
        workflow_description: str,
        validation_results: Any,
        system_prompt: str,
        model: Optional[str] = None,
        max_retries: int = WORKFLOW_MAX_RETRIES,
    ) -> Dict[str, Any]:
        """Generate workflow JSON, retrying when the answer looks cut off."""
        user_input = (
            f"Workflow: {workflow_description}\n\n"
            f"Validation Results: {json.dumps(validation_results, indent=2)}"
        )
        last_error: Optional[Exception] = None

        for attempt in range(1, max_retries + 1):
            try:
                response = self.complete_with_system(
                    system_prompt, user_input, model, temperature=0.1, max_tokens=WORKFLOW_MAX_TOKENS
                )
                logger.info(f"Attempt {attempt}: response length {len(response)} characters")
                json_string = strip_code_fence(response)
                try:
                    parsed = json.loads(json_string)
                except ValueError as parse_error:
                    if looks_truncated(json_string):
                        logger.warning(f"Attempt {attempt}: detected truncated JSON, retrying")
                        last_error = OpenRouterError(
                            f"Response appears truncated (attempt {attempt}/{max_retries})"
                        )
                        continue
                    raise OpenRouterError(f"Invalid JSON response: {parse_error}")

                if not isinstance(parsed, dict):
                    raise OpenRouterError("Response is not a valid JSON object")
                logger.info(f"Attempt {attempt}: successfully generated and parsed JSON")
                return parsed
            except OpenRouterError as e:
                logger.error(f"Attempt {attempt} failed: {e}")
                last_error = e
                if attempt == max_retries:
                    break
                time.sleep(WORKFLOW_RETRY_DELAY_SEC)

        raise OpenRouterError(
            f"Failed to generate workflow JSON after {max_retries} attempts: {last_error or 'Unknown error'}"
        )

    def test_model(self, model_id: str) -> bool:
        """Connectivity probe: True when the model answers "OK"."""
        try:
            response = self.complete(
                'Respond with just the word "OK" if you can see this message.',
                model_id,
                max_tokens=10,
                temperature=0,
            )
            return "ok" in response.lower()
        except OpenRouterError as e:
            logger.warning(f"Model test failed for {model_id}: {e}")
            return False

    def _get(self, path: str) -> requests.Response:
        response = requests.get(
            f"{self.base_url}{path}",
            headers={"Authorization": f"Bearer {self.api_key}"},
            timeout=30,
        )
        response.raise_for_status()
        return response

    def get_available_models(self) -> List[Dict[str, Any]]:
        """Model catalogue from OpenRouter; empty list on failure."""
        try:
            return self._get("/models").json().get("data") or []
        except (requests.RequestException, ValueError) as e:
            logger.error(f"Error fetching OpenRouter models: {e}")
            return []

    def get_credits(self) -> Optional[Dict[str, Any]]:
        """Usage/limit information for the configured key; None on failure."""
        try:
            return self._get("/auth/key").json()
        except (requests.RequestException, ValueError) as e:
            logger.error(f"Error fetching OpenRouter credits: {e}")
            return None


_openrouter_client: Optional[OpenRouterClient] = None


def get_openrouter_client() -> OpenRouterClient:
    """Lazily build the shared client so a missing key only fails the routes that need it."""
    global _openrouter_client
    if _openrouter_client is None:
        _openrouter_client = OpenRouterClient()
    return _openrouter_client
