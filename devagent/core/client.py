# devagent/core/client.py
"""
Generation with per-candidate fallback.

Candidates are tried strictly in rank order, one attempt each. The first
response that carries text wins; when every candidate fails the caller gets
a single ``GenerationFailure`` describing all attempts.
"""

from dataclasses import replace
from typing import Any, List, Optional, Sequence, Union

from .errors import TransportError
from .models import (
    GenerationAttempt,
    GenerationFailure,
    GenerationRequest,
    GenerationResponse,
    ModelCandidate,
)
from ..utils.console import info, success, warning

ERROR_PREVIEW = 100


class GenerationClient:

    def __init__(self, transport, temperature: float = 0.2, response_mime_type: Optional[str] = "application/json"):
        self.transport = transport
        self.temperature = temperature
        self.response_mime_type = response_mime_type

    def generate(
        self,
        candidates: Sequence[ModelCandidate],
        system_instructions: str,
        user_payload: str,
        credential: str,
    ) -> Union[GenerationResponse, GenerationFailure]:
        """
        Run the generation call against each candidate until one succeeds.

        Args:
            candidates: Ranked model candidates; tried in ascending rank.
            system_instructions: Fixed instruction text.
            user_payload: Rendered context and task.
            credential: API key handed to the transport.

        Returns:
            GenerationResponse from the first successful candidate, or
            GenerationFailure(all_models_exhausted) with one attempt per candidate.
        """
        ordered = sorted(candidates, key=lambda c: c.rank)
        base_request = GenerationRequest(
            model_id="",
            system_instructions=system_instructions,
            user_payload=user_payload,
            temperature=self.temperature,
            response_mime_type=self.response_mime_type,
        )
        attempts: List[GenerationAttempt] = []

        for candidate in ordered:
            request = replace(base_request, model_id=candidate.id)
            info(f"Trying model {candidate.id} (rank {candidate.rank}, {candidate.source})")
            try:
                envelope = self.transport.generate_content(request, credential)
            except TransportError as e:
                message = str(e)
                warning(f"{candidate.id} failed: {message[:ERROR_PREVIEW]}")
                attempts.append(GenerationAttempt(model_id=candidate.id, ok=False, error=message))
                continue

            text = extract_text(envelope)
            if not text:
                warning(f"{candidate.id} returned no text content")
                attempts.append(GenerationAttempt(model_id=candidate.id, ok=False, error="empty response"))
                continue

            attempts.append(GenerationAttempt(model_id=candidate.id, ok=True))
            success(f"Response received from {candidate.id}")
            return GenerationResponse(text=text, model_id=candidate.id, attempts=attempts)

        return GenerationFailure(reason=GenerationFailure.ALL_MODELS_EXHAUSTED, attempts=attempts)


def extract_text(envelope: Any) -> Optional[str]:
    """Concatenated text parts of the first candidate, or None."""
    if not isinstance(envelope, dict):
        return None
    candidates = envelope.get("candidates")
    if not isinstance(candidates, list) or not candidates:
        return None
    first = candidates[0]
    if not isinstance(first, dict):
        return None
    content = first.get("content")
    parts = content.get("parts") if isinstance(content, dict) else None
    if not isinstance(parts, list):
        return None
    texts = [p["text"] for p in parts if isinstance(p, dict) and isinstance(p.get("text"), str)]
    text = "".join(texts)
    return text if text.strip() else None
