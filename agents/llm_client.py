# agents/llm_client.py
import google.generativeai as genai
from google.api_core import exceptions as google_exceptions

from errors import ErrorKind, TransportError


class LLMClient:
    """
    Thin async wrapper over a Gemini model. API failures are re-raised as
    TransportError so the retry layer can tell transient ones apart.
    """

    def __init__(self, api_key: str, model: str = "gemini-2.0-flash", temperature: float = 0.0):
        if not api_key:
            raise ValueError("GEMINI_API_KEY is missing")
        genai.configure(api_key=api_key)
        self.model_name = model
        self.temperature = temperature
        self._model = genai.GenerativeModel(model)

    async def complete(self, prompt: str, max_tokens: int = 2048) -> str:
        try:
            response = await self._model.generate_content_async(
                prompt,
                generation_config=genai.types.GenerationConfig(
                    max_output_tokens=max_tokens,
                    temperature=self.temperature,
                ),
            )
        except google_exceptions.GoogleAPICallError as e:
            status = e.code if isinstance(e.code, int) else None
            kind = ErrorKind.from_status(status) if status else ErrorKind.SERVER_ERROR
            raise TransportError(f"Gemini returned {status}: {e.message}", kind, status) from e

        return response.text.strip()
