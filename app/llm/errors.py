class LLMError(Exception):
    """Base error for calls to the model providers."""


class OpenRouterError(LLMError):
    def __init__(self, message: str, status_code: int = None):
        super().__init__(message)
        self.status_code = status_code


class ImageGenerationError(LLMError):
    pass
