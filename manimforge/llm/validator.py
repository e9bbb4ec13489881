"""
Validador estructural de scripts generados por el LLM.
Verifica que existan la clase Scene y el método construct antes de
intentar reparar el resto del script.
"""

import logging
import re
from dataclasses import dataclass

from ..domain.errors import MissingEntryMethod, MissingSceneClass

logger = logging.getLogger(__name__)

SCENE_CLASS_PATTERN = re.compile(r"class\s+\w+\(\s*Scene\s*\)\s*:")
ENTRY_METHOD_PATTERN = re.compile(r"def\s+construct\(\s*self\s*\)\s*(?:->\s*None\s*)?:")


@dataclass
class ValidationResult:
    """Resultado de la validación."""
    is_valid: bool
    errors: list[str]
    warnings: list[str]

    def __bool__(self):
        return self.is_valid


class StructuralValidator:
    """Validador de la estructura mínima de un script Manim."""

    MIN_TEXT_ELEMENTS = 2
    MIN_WAIT_ELEMENTS = 3

    def validate(self, text: str) -> str:
        """
        Verifica los dos marcadores estructurales obligatorios.

        Args:
            text: Script a validar

        Returns:
            El mismo texto si es válido

        Raises:
            MissingSceneClass: Si no hay una clase que herede de Scene
            MissingEntryMethod: Si no hay un método construct(self)
        """
        if not SCENE_CLASS_PATTERN.search(text):
            raise MissingSceneClass("No valid Scene class found in the generated code")
        if not ENTRY_METHOD_PATTERN.search(text):
            raise MissingEntryMethod("No construct method found in the Scene class")
        return text

    def _count(self, text: str, pattern: str) -> int:
        return len(re.findall(pattern, text))

    def inspect(self, text: str) -> ValidationResult:
        """
        Valida sin lanzar excepciones y agrega advertencias informativas.

        Args:
            text: Script a inspeccionar

        Returns:
            ValidationResult con errores y advertencias
        """
        errors = []
        warnings = []

        try:
            self.validate(text)
        except (MissingSceneClass, MissingEntryMethod) as e:
            errors.append(str(e))

        text_elements = self._count(text, r"(?<![\w.])Text\(")
        wait_elements = self._count(text, r"self\.wait\(")

        if text_elements < self.MIN_TEXT_ELEMENTS:
            warnings.append(f"Too few text elements ({text_elements}, recommended {self.MIN_TEXT_ELEMENTS})")
        if wait_elements < self.MIN_WAIT_ELEMENTS:
            warnings.append(f"Few wait calls ({wait_elements}), pacing may be rushed")

        return ValidationResult(
            is_valid=len(errors) == 0,
            errors=errors,
            warnings=warnings
        )
