"""
Jerarquía de errores del pipeline.
Cada error lleva el tema y la etapa donde ocurrió para poder diagnosticarlo.
"""

from typing import Optional


class ManimForgeError(Exception):
    """Error base del pipeline."""

    def __init__(
        self,
        message: str,
        topic: Optional[str] = None,
        stage: Optional[str] = None
    ):
        super().__init__(message)
        self.message = message
        self.topic = topic
        self.stage = stage

    def with_context(self, topic: Optional[str] = None, stage: Optional[str] = None) -> "ManimForgeError":
        """Completa tema y etapa sin pisar los que ya existan."""
        if self.topic is None:
            self.topic = topic
        if self.stage is None:
            self.stage = stage
        return self

    def __str__(self) -> str:
        context = []
        if self.stage:
            context.append(f"etapa={self.stage}")
        if self.topic is not None:
            context.append(f"tema={self.topic!r}")
        if not context:
            return self.message
        return f"{self.message} ({', '.join(context)})"


class GenerationFailure(ManimForgeError):
    """No se pudo obtener un script del modelo."""
    pass


class SchemaViolation(GenerationFailure):
    """La salida del modelo no cumple el schema estructurado."""
    pass


class GenerationBackendFailure(GenerationFailure):
    """Falla del backend (red, autenticación, HTTP)."""
    pass


class StructuralError(ManimForgeError):
    """El script no tiene la estructura mínima para ejecutarse."""
    pass


class MissingSceneClass(StructuralError):
    """No hay clase que herede de Scene."""
    pass


class MissingEntryMethod(StructuralError):
    """No hay método construct(self)."""
    pass
