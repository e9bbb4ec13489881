"""
Pipeline principal: tema → script Manim listo para renderizar.
Coordina cache → generación → validación → reparación → indentación → ritmo.
"""

import logging
import re
from typing import Optional

from .config import Settings
from .director import DurationBalancer, IndentationNormalizer, RepairEngine
from .domain.errors import GenerationFailure, StructuralError
from .llm import ConstrainedGenerator, OpenRouterClient, StructuralValidator
from .llm.generator import GenerationBackend
from .utils import ScriptCache

logger = logging.getLogger(__name__)

_CODE_FENCE = re.compile(r"^\s*```(?:python|py)?\s*\n([\s\S]*?)\n?```\s*$")


class ScriptPipeline:
    """Orquestador del pipeline de generación de scripts."""

    def __init__(
        self,
        settings: Optional[Settings] = None,
        backend: Optional[GenerationBackend] = None,
        cache: Optional[ScriptCache] = None
    ):
        """
        Inicializa el pipeline.

        Args:
            settings: Configuración (se lee del entorno si no se pasa)
            backend: Backend generativo (OpenRouter por defecto, creado al usarse)
            cache: Cache de scripts
        """
        self.settings = settings or Settings.from_env()
        self.cache = cache or ScriptCache(
            cache_dir=self.settings.cache_dir,
            ttl_hours=self.settings.cache_ttl_hours
        )

        self.validator = StructuralValidator()
        self.repairer = RepairEngine()
        self.normalizer = IndentationNormalizer()
        self.balancer = DurationBalancer()

        # Componentes lazy-loaded
        self._backend = backend
        self._generator = None

    @property
    def backend(self) -> GenerationBackend:
        if self._backend is None:
            self._backend = OpenRouterClient(self.settings)
        return self._backend

    @property
    def generator(self) -> ConstrainedGenerator:
        if self._generator is None:
            self._generator = ConstrainedGenerator(self.backend, self.settings.prompts_path)
        return self._generator

    def _strip_fences(self, text: str) -> str:
        match = _CODE_FENCE.match(text)
        return match.group(1) if match else text

    def process(self, raw_text: str, topic: Optional[str] = None) -> str:
        """
        Valida, repara, re-indenta y ajusta el ritmo de un script.

        Args:
            raw_text: Script crudo
            topic: Tema (solo para el contexto de los errores)

        Returns:
            Script validado

        Raises:
            MissingSceneClass, MissingEntryMethod: Si falta estructura mínima
        """
        text = self._strip_fences(raw_text)

        try:
            self.validator.validate(text)
        except StructuralError as e:
            e.with_context(topic=topic, stage="validation")
            logger.error(f"Script rechazado: {e}")
            raise

        text = self.repairer.repair(text)

        report = self.validator.inspect(text)
        for warning in report.warnings:
            logger.warning(warning)

        text = self.normalizer.reflow(text)
        return self.balancer.normalize(text)

    def run(self, topic: str) -> str:
        """
        Devuelve el script para un tema, generándolo si no está en cache.

        Args:
            topic: Tema del video (no vacío)

        Returns:
            Script validado listo para renderizar
        """
        if not topic or not topic.strip():
            raise ValueError("El tema no puede estar vacío")

        def produce() -> tuple[str, str]:
            logger.info(f"Generando script para: {topic}")
            try:
                raw_text = self.generator.generate(topic)
            except GenerationFailure as e:
                e.with_context(topic=topic, stage="generation")
                logger.error(f"Falló la generación: {e}")
                raise
            return raw_text, self.process(raw_text, topic)

        return self.cache.get_or_create(topic, produce)
