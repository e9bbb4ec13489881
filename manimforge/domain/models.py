"""
Modelos de Dominio
Contrato estructurado que debe cumplir la salida del modelo generativo
y registros derivados del texto del script.
"""
from dataclasses import dataclass
from typing import List, Optional

from pydantic import BaseModel, Field


class MethodDefinition(BaseModel):
    """Un método de la clase Scene generada."""
    name: str
    parameters: List[str] = Field(default_factory=list)
    body: str = Field(..., description="Complete method body with proper 4-space indentation")
    docstring: Optional[str] = None


class ClassDefinition(BaseModel):
    name: str
    docstring: Optional[str] = None
    methods: List[MethodDefinition] = Field(default_factory=list)


class ManimCodeSchema(BaseModel):
    """
    Schema completo para el intento principal.
    Solo complete_script se usa después de la generación; el resto
    existe para forzar una salida bien estructurada.
    """
    imports: List[str] = Field(..., description="All necessary import statements for Manim")
    class_name: str = Field(..., description="Name of the Scene class (e.g., 'PythagoreanTheorem')")
    class_definition: ClassDefinition
    complete_script: str = Field(..., description="Full executable Manim Python script with proper PEP 8 formatting")


class SimplifiedManimSchema(BaseModel):
    """Schema reducido para el intento de respaldo."""
    class_name: str = Field("EducationalScene", description="Name of the Scene class")
    complete_script: str = Field(..., description="Full executable Manim Python script")


class CacheEntry(BaseModel):
    """Registro del cache: texto crudo del modelo y texto validado."""
    topic: str
    raw_text: str
    validated_text: str
    created_at: str


@dataclass(frozen=True)
class PacingDirective:
    """Una llamada self.wait(...) encontrada en el script."""
    line_index: int
    column: int
    call: str
    seconds: float
    indent: str


@dataclass(frozen=True)
class AnimationCall:
    """Una sentencia self.play(...), posiblemente de varias líneas."""
    start_line: int
    end_line: int
    end_column: int
    text: str
    indent: str


@dataclass(frozen=True)
class DurationEstimate:
    """Estimación de duración de un script."""
    animation_count: int
    animation_seconds: float
    wait_seconds: float
    min_seconds: float
    max_seconds: float

    @property
    def total(self) -> float:
        return self.wait_seconds + self.animation_seconds

    @property
    def in_band(self) -> bool:
        return self.min_seconds <= self.total <= self.max_seconds
