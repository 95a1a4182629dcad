# devagent/core/transport.py
"""
Backend transports for the Gemini generative language API.

Two interchangeable transports expose the same operations:

* ``list_models(credential)`` returns ``{"models": [{"name", "supportedGenerationMethods"}]}``
* ``generate_content(request, credential)`` returns
  ``{"candidates": [{"content": {"parts": [{"text": ...}]}}]}``

``GeminiRestTransport`` talks HTTP directly through requests;
``GeminiSdkTransport`` goes through the google-generativeai client library
and converts its objects into the same envelopes. Every failure surfaces as
``TransportError`` with the credential redacted from the message.
"""

from typing import Any, Dict, List, Optional

import google.generativeai as genai
import requests

from .errors import TransportError
from .models import GenerationRequest
from .utils import redact

GENERATE_METHOD = "generateContent"
MAX_LIST_PAGES = 20


def build_generate_body(request: GenerationRequest) -> Dict[str, Any]:
    """JSON body for ``POST models/{id}:generateContent``."""
    generation_config: Dict[str, Any] = {"temperature": request.temperature}
    if request.response_mime_type:
        generation_config["responseMimeType"] = request.response_mime_type
    return {
        "contents": [{
            "parts": [
                {"text": request.system_instructions},
                {"text": request.user_payload},
            ]
        }],
        "generationConfig": generation_config,
    }


class GeminiRestTransport:
    """Direct HTTP transport (``sendJSON``) built on a requests session."""

    def __init__(
        self,
        base_url: str = "https://generativelanguage.googleapis.com",
        api_version: str = "v1beta",
        timeout: float = 120,
        session: Optional[requests.Session] = None,
    ):
        self.base_url = base_url.rstrip("/")
        self.api_version = api_version.strip("/")
        self.timeout = timeout
        self.session = session or requests.Session()

    def send_json(
        self,
        method: str,
        path: str,
        body: Optional[Dict[str, Any]] = None,
        credential: Optional[str] = None,
        params: Optional[Dict[str, Any]] = None,
    ) -> Dict[str, Any]:
        """
        Issue one JSON request and return the decoded response object.

        Raises:
            TransportError: connection problem, timeout, non-2xx status or a
                body that is not a JSON object.
        """
        url = f"{self.base_url}/{self.api_version}/{path.lstrip('/')}"
        query = dict(params or {})
        if credential:
            query["key"] = credential
        try:
            response = self.session.request(
                method,
                url,
                params=query or None,
                json=body,
                headers={"Content-Type": "application/json"},
                timeout=self.timeout,
            )
        except requests.RequestException as e:
            raise TransportError(redact(f"{method} {path} failed: {e}", credential)) from e

        if not 200 <= response.status_code < 300:
            detail = _error_detail(response)
            raise TransportError(
                redact(f"{method} {path} returned HTTP {response.status_code}: {detail}", credential),
                status_code=response.status_code,
            )
        try:
            data = response.json()
        except ValueError as e:
            raise TransportError(f"{method} {path} returned a non-JSON body") from e
        if not isinstance(data, dict):
            raise TransportError(f"{method} {path} returned {type(data).__name__}, expected an object")
        return data

    def list_models(self, credential: str) -> Dict[str, Any]:
        """All pages of the model listing, merged into one ``models`` array."""
        first = self.send_json("GET", "models", credential=credential)
        models = first.get("models")
        if not isinstance(models, list):
            return first
        models = list(models)
        token = first.get("nextPageToken")
        for _ in range(MAX_LIST_PAGES - 1):
            if not token:
                break
            page = self.send_json("GET", "models", credential=credential, params={"pageToken": token})
            batch = page.get("models")
            if not isinstance(batch, list):
                break
            models.extend(batch)
            token = page.get("nextPageToken")
        return {"models": models}

    def generate_content(self, request: GenerationRequest, credential: str) -> Dict[str, Any]:
        path = f"models/{request.model_id}:{GENERATE_METHOD}"
        return self.send_json("POST", path, body=build_generate_body(request), credential=credential)


def _error_detail(response: requests.Response) -> str:
    try:
        data = response.json()
    except ValueError:
        return (response.text or "")[:200]
    if isinstance(data, dict) and isinstance(data.get("error"), dict):
        return str(data["error"].get("message", ""))[:200]
    return str(data)[:200]


class GeminiSdkTransport:
    """Client-library transport using google-generativeai."""

    def __init__(self, timeout: float = 120):
        self.timeout = timeout
        self._configured_key: Optional[str] = None

    def _configure(self, credential: str) -> None:
        if credential != self._configured_key:
            genai.configure(api_key=credential)
            self._configured_key = credential

    def list_models(self, credential: str) -> Dict[str, Any]:
        self._configure(credential)
        try:
            models = [
                {
                    "name": m.name,
                    "supportedGenerationMethods": list(getattr(m, "supported_generation_methods", []) or []),
                }
                for m in genai.list_models()
            ]
        except Exception as e:
            raise TransportError(redact(f"list_models failed: {e}", credential)) from e
        return {"models": models}

    def generate_content(self, request: GenerationRequest, credential: str) -> Dict[str, Any]:
        self._configure(credential)
        config_kwargs: Dict[str, Any] = {"temperature": request.temperature}
        if request.response_mime_type:
            config_kwargs["response_mime_type"] = request.response_mime_type
        try:
            model = genai.GenerativeModel(
                model_name=request.model_id,
                system_instruction=request.system_instructions,
                generation_config=genai.GenerationConfig(**config_kwargs),
            )
            response = model.generate_content(
                request.user_payload,
                request_options={"timeout": self.timeout},
            )
        except Exception as e:
            raise TransportError(redact(f"generate_content({request.model_id}) failed: {e}", credential)) from e
        return {"candidates": _sdk_candidates(response)}


def _sdk_candidates(response: Any) -> List[Dict[str, Any]]:
    candidates = []
    for candidate in getattr(response, "candidates", None) or []:
        content = getattr(candidate, "content", None)
        parts = getattr(content, "parts", None) or []
        candidates.append({
            "content": {"parts": [{"text": getattr(p, "text", "")} for p in parts]}
        })
    return candidates


def create_transport(config):
    """Transport selected by ``config.transport``."""
    if config.transport == "sdk":
        return GeminiSdkTransport(timeout=config.timeout)
    return GeminiRestTransport(
        base_url=config.api_base_url,
        api_version=config.api_version,
        timeout=config.timeout,
    )
