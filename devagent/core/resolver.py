# devagent/core/resolver.py
"""
Model resolution: which backend model ids to try, and in what order.

Discovery asks the backend for its model listing and keeps the models that
support ``generateContent``; the ranking comes from a static family
preference, never from the order the backend returns. When discovery is
unavailable the hardcoded fallback list is used instead, so ``resolve``
never comes back empty.
"""

from typing import Any, List, Optional, Sequence

from .errors import ModelResolutionError, TransportError
from .models import ModelCandidate
from .transport import GENERATE_METHOD
from ..utils.console import debug, info, warning

DEFAULT_FAMILIES = ("flash", "pro")
DEFAULT_FALLBACK_MODELS = ("gemini-2.0-flash", "gemini-1.5-flash", "gemini-1.5-pro")
MODEL_NAME_PREFIX = "models/"


class ModelResolver:

    def __init__(
        self,
        transport,
        fallback_models: Sequence[str] = DEFAULT_FALLBACK_MODELS,
        families: Sequence[str] = DEFAULT_FAMILIES,
    ):
        self.transport = transport
        self.fallback_models = list(fallback_models)
        self.families = [f.lower() for f in families]

    @classmethod
    def from_config(cls, transport, config) -> "ModelResolver":
        return cls(transport, fallback_models=config.fallback_models, families=config.model_families)

    def resolve(self, credential: str, preferred: Optional[str] = None) -> List[ModelCandidate]:
        """
        Ranked candidates, best first. ``preferred`` (if any) is placed at rank 0.

        Raises:
            ModelResolutionError: discovery failed and the fallback list is empty.
        """
        ids = self.discover(credential)
        source = "discovery"
        if not ids:
            ids = self.fallback()
            source = "fallback"
            info(f"Using fallback model list: {', '.join(ids)}")
        else:
            info(f"Discovered {len(ids)} usable model(s)")

        ordered = []
        if preferred:
            ordered.append((preferred, "preferred"))
        ordered.extend((model_id, source) for model_id in ids)

        candidates: List[ModelCandidate] = []
        seen = set()
        for model_id, origin in ordered:
            if model_id in seen:
                continue
            seen.add(model_id)
            candidates.append(ModelCandidate(id=model_id, rank=len(candidates), source=origin))
        return candidates

    def discover(self, credential: str) -> List[str]:
        """Usable model ids from the backend, ranked; empty list on any failure."""
        try:
            payload = self.transport.list_models(credential)
        except TransportError as e:
            warning(f"Model discovery failed: {e}")
            return []
        return self.rank(_generation_models(payload))

    def rank(self, model_ids: Sequence[str]) -> List[str]:
        """Sort by static family preference; ties keep their incoming order."""
        def family_index(model_id: str) -> int:
            lowered = model_id.lower()
            for index, family in enumerate(self.families):
                if family in lowered:
                    return index
            return len(self.families)

        indexed = list(enumerate(model_ids))
        indexed.sort(key=lambda pair: (family_index(pair[1]), pair[0]))
        return [model_id for _, model_id in indexed]

    def fallback(self) -> List[str]:
        if not self.fallback_models:
            raise ModelResolutionError("Model discovery failed and no fallback models are configured.")
        return list(self.fallback_models)


def _generation_models(payload: Any) -> List[str]:
    if not isinstance(payload, dict):
        debug("Model listing is not a JSON object")
        return []
    models = payload.get("models")
    if not isinstance(models, list):
        debug("Model listing has no 'models' array")
        return []

    ids: List[str] = []
    for entry in models:
        if not isinstance(entry, dict):
            continue
        name = entry.get("name")
        methods = entry.get("supportedGenerationMethods") or []
        if not isinstance(name, str) or not name or GENERATE_METHOD not in methods:
            continue
        model_id = name[len(MODEL_NAME_PREFIX):] if name.startswith(MODEL_NAME_PREFIX) else name
        if model_id not in ids:
            ids.append(model_id)
    return ids
