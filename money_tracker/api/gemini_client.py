"""
Gemini extraction backend.

This module wraps ``google-generativeai`` behind the small ``ExtractionBackend``
protocol: a prompt (and optionally one JPEG image) goes in, the raw text of
every response candidate comes out. Decoding the text is left to the caller.
"""

import logging
from typing import Any, Dict, List, Optional, Protocol

import google.generativeai as genai
from google.api_core import exceptions as google_exceptions

from ..errors import AppError, ExtractionBackendError, OperationTimeoutError
from ..utils.circuit_breaker import CircuitBreaker

logger = logging.getLogger(__name__)

DEFAULT_MODEL = "gemini-2.0-flash"
IMAGE_MIME_TYPE = "image/jpeg"


class ExtractionBackend(Protocol):
    """Anything that can turn a prompt (and an image) into candidate texts"""

    def generate(self, prompt: str, image: Optional[bytes] = None) -> List[List[str]]:
        """
        Returns:
            One list of text fragments per response candidate, in backend order
        """
        ...


class GeminiBackend:
    """
    Extraction backend backed by a Gemini generative model.

    Every call is bounded by ``timeout`` seconds and goes through a circuit
    breaker; failures are raised as ``ExtractionBackendError`` or
    ``OperationTimeoutError`` so the breaker can retry them.
    """

    def __init__(self,
                 api_key: str,
                 model_name: str = DEFAULT_MODEL,
                 temperature: float = 0.1,
                 timeout: float = 60,
                 circuit_breaker: Optional[CircuitBreaker] = None):
        """
        Initialize the Gemini backend.

        Args:
            api_key: Gemini API key
            model_name: Generative model name
            temperature: Sampling temperature, kept low for consistent JSON
            timeout: Per-request timeout in seconds
            circuit_breaker: Breaker wrapping each request
        """
        genai.configure(api_key=api_key)
        self.model_name = model_name
        self.timeout = timeout
        self.model = genai.GenerativeModel(
            model_name,
            generation_config=genai.types.GenerationConfig(temperature=temperature)
        )
        self.circuit_breaker = circuit_breaker or CircuitBreaker(name="gemini", max_failures=5)
        logger.info(f"Initialized Gemini backend with model {model_name}")

    def _build_contents(self, prompt: str, image: Optional[bytes]) -> List[Any]:
        if image is None:
            return [prompt]
        image_part: Dict[str, Any] = {"mime_type": IMAGE_MIME_TYPE, "data": image}
        return [image_part, prompt]

    def _request(self, contents: List[Any]) -> Any:
        try:
            return self.model.generate_content(
                contents,
                request_options={"timeout": self.timeout}
            )
        except AppError:
            raise
        except google_exceptions.DeadlineExceeded as e:
            raise OperationTimeoutError(
                f"Gemini request exceeded {self.timeout}s", e, component="gemini"
            ).with_context("model", self.model_name)
        except Exception as e:
            raise ExtractionBackendError(
                "Gemini request failed", e
            ).with_context("model", self.model_name)

    @staticmethod
    def _candidate_texts(response: Any) -> List[List[str]]:
        candidates: List[List[str]] = []
        for candidate in getattr(response, "candidates", None) or []:
            content = getattr(candidate, "content", None)
            parts = getattr(content, "parts", None) if content is not None else None
            if not parts:
                continue
            texts = [part.text for part in parts if getattr(part, "text", "")]
            candidates.append(texts)
        return candidates

    def generate(self, prompt: str, image: Optional[bytes] = None) -> List[List[str]]:
        """
        Send the prompt (with the image first, when given) and collect the
        text fragments of each candidate.

        Raises:
            ExtractionBackendError: If the request fails
            OperationTimeoutError: If the request runs out of time
        """
        contents = self._build_contents(prompt, image)
        response = self.circuit_breaker.call(self._request, contents)
        candidates = self._candidate_texts(response)
        logger.debug(f"Gemini returned {len(candidates)} usable candidate(s)")
        return candidates
