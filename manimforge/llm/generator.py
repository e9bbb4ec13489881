"""
Generador de scripts Manim con salida estructurada.
Un intento principal con el schema completo y, si la salida no cumple
el schema, un único intento de respaldo con un schema reducido.
"""

import logging
from typing import Optional, Protocol, Type, TypeVar

from pydantic import BaseModel

from ..config import DEFAULT_PROMPTS_PATH, load_prompts
from ..domain.errors import SchemaViolation
from ..domain.models import ManimCodeSchema, SimplifiedManimSchema

logger = logging.getLogger(__name__)

SchemaT = TypeVar("SchemaT", bound=BaseModel)


class GenerationBackend(Protocol):
    """Contrato mínimo del backend generativo."""

    def invoke(self, prompt: str, schema: Type[SchemaT]) -> SchemaT:
        ...


class ConstrainedGenerator:
    """Genera el texto crudo del script para un tema."""

    TARGET_SECONDS = 28
    MIN_SECONDS = 26
    MAX_SECONDS = 30

    def __init__(self, backend: GenerationBackend, prompts_path: Optional[str] = None):
        """
        Args:
            backend: Adaptador con invoke(prompt, schema)
            prompts_path: YAML con primary_prompt y fallback_prompt
        """
        self.backend = backend
        self.prompts = load_prompts(prompts_path or str(DEFAULT_PROMPTS_PATH))

    def _render(self, name: str, topic: str) -> str:
        template = self.prompts.get(name)
        if not template:
            raise KeyError(f"Prompt '{name}' no encontrado")
        return template.format(
            topic=topic,
            target_seconds=self.TARGET_SECONDS,
            min_seconds=self.MIN_SECONDS,
            max_seconds=self.MAX_SECONDS
        )

    def primary_prompt(self, topic: str) -> str:
        return self._render("primary_prompt", topic)

    def fallback_prompt(self, topic: str) -> str:
        return self._render("fallback_prompt", topic)

    def generate(self, topic: str) -> str:
        """
        Genera el script crudo.

        Args:
            topic: Tema del video

        Returns:
            El campo complete_script del intento que tuvo éxito

        Raises:
            SchemaViolation: Si ambos intentos no cumplen el schema
            GenerationBackendFailure: Si falla el backend (sin reintentos)
        """
        try:
            result = self.backend.invoke(self.primary_prompt(topic), ManimCodeSchema)
        except SchemaViolation as e:
            logger.warning(f"Salida inválida en el intento principal: {e}")
            logger.info("Reintentando con schema y prompt simplificados...")
            try:
                result = self.backend.invoke(self.fallback_prompt(topic), SimplifiedManimSchema)
            except SchemaViolation as fallback_error:
                raise SchemaViolation(
                    f"Ambos intentos fallaron el schema: {fallback_error.message}",
                    topic=topic,
                    stage="generation"
                ) from fallback_error

        logger.info(f"Script generado para '{topic}' (clase {result.class_name})")
        return result.complete_script
