"""
Cliente para OpenRouter API.
Compatible con el SDK de OpenAI. Pide salida JSON con el schema
de un modelo pydantic y la valida antes de devolverla.
"""

import json
import logging
import re
from typing import Optional, Type, TypeVar

import openai
from openai import OpenAI
from pydantic import BaseModel, ValidationError

from ..config import Settings
from ..domain.errors import GenerationBackendFailure, SchemaViolation

logger = logging.getLogger(__name__)

SchemaT = TypeVar("SchemaT", bound=BaseModel)

OPENROUTER_BASE_URL = "https://openrouter.ai/api/v1"


class OpenRouterClient:
    """Adaptador del backend generativo sobre OpenRouter."""

    def __init__(self, settings: Optional[Settings] = None, client: Optional[OpenAI] = None):
        """
        Inicializa el cliente de OpenRouter.

        Args:
            settings: Configuración (se lee del entorno si no se pasa)
            client: Cliente OpenAI ya construido (útil para tests)
        """
        self.settings = settings or Settings.from_env()
        self.model = self.settings.model

        if client is not None:
            self.client = client
        elif not self.settings.api_key:
            logger.warning("OPENROUTER_API_KEY no configurada")
            self.client = None
        else:
            self.client = OpenAI(
                base_url=OPENROUTER_BASE_URL,
                api_key=self.settings.api_key,
                timeout=self.settings.timeout_seconds,
                max_retries=0,
            )

    def _extract_json(self, text: str) -> Optional[dict]:
        """
        Extrae JSON de la respuesta del LLM.
        Maneja casos donde el JSON está envuelto en markdown o texto.
        """
        try:
            return json.loads(text)
        except json.JSONDecodeError:
            pass

        json_patterns = [
            r"```json\s*([\s\S]*?)\s*```",
            r"```\s*([\s\S]*?)\s*```",
            r"\{[\s\S]*\}",
        ]

        for pattern in json_patterns:
            for match in re.findall(pattern, text):
                clean = match.strip()
                if not clean.startswith("{"):
                    continue
                try:
                    return json.loads(clean)
                except json.JSONDecodeError:
                    continue

        return None

    def _response_format(self, schema: Type[BaseModel]) -> dict:
        return {
            "type": "json_schema",
            "json_schema": {
                "name": schema.__name__,
                "schema": schema.model_json_schema(),
            },
        }

    def _complete(self, prompt: str, schema: Type[BaseModel]) -> str:
        """Hace una única llamada al modelo y devuelve el texto de la respuesta."""
        if not self.client:
            raise GenerationBackendFailure("Cliente OpenRouter no configurado (falta OPENROUTER_API_KEY)")

        try:
            response = self.client.chat.completions.create(
                model=self.model,
                messages=[{"role": "user", "content": prompt}],
                temperature=self.settings.temperature,
                max_tokens=self.settings.max_tokens,
                response_format=self._response_format(schema),
                extra_headers={
                    "HTTP-Referer": "https://github.com/manimforge",
                    "X-Title": "manimforge"
                }
            )
        except openai.APIError as e:
            logger.error(f"Error llamando a {self.model}: {e}")
            raise GenerationBackendFailure(f"{type(e).__name__}: {e}") from e

        if not response.choices:
            raise SchemaViolation(f"{self.model} no devolvió ninguna respuesta")
        content = response.choices[0].message.content
        if not content:
            raise SchemaViolation(f"{self.model} devolvió una respuesta vacía")
        return content

    def invoke(self, prompt: str, schema: Type[SchemaT]) -> SchemaT:
        """
        Genera una salida estructurada.

        Args:
            prompt: Prompt completo
            schema: Modelo pydantic que debe cumplir la respuesta

        Returns:
            Instancia validada del schema

        Raises:
            SchemaViolation: Si la respuesta no es JSON o no cumple el schema
            GenerationBackendFailure: Si falla la llamada al backend
        """
        content = self._complete(prompt, schema)

        data = self._extract_json(content)
        if data is None:
            logger.error("No se pudo extraer JSON de la respuesta")
            raise SchemaViolation(f"La respuesta de {self.model} no contiene JSON válido")

        try:
            return schema.model_validate(data)
        except ValidationError as e:
            raise SchemaViolation(f"La respuesta no cumple {schema.__name__}: {e}") from e
