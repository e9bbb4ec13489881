"""
Re-indentación de scripts Manim.
Una sola pasada por líneas con una pequeña máquina de estados:
nivel superior → dentro de la clase Scene → dentro de un método.
"""
import logging
from enum import Enum

from ..llm.validator import SCENE_CLASS_PATTERN

logger = logging.getLogger(__name__)

INDENT = "    "


class IndentState(Enum):
    TOP_LEVEL = 0
    IN_CLASS = 1
    IN_METHOD = 2


def is_scene_class(line: str) -> bool:
    return SCENE_CLASS_PATTERN.match(line) is not None


def is_method(line: str) -> bool:
    return line.startswith("def ")


class IndentationNormalizer:
    """
    Corrige el ancho de la indentación, no el anidamiento.
    Supone que el modelo emitió el contenido en el orden correcto.
    """

    def transition(self, state: IndentState, line: str) -> tuple[IndentState, int]:
        """
        Clasifica una línea (ya sin espacios) y devuelve el nuevo estado
        junto con el nivel de indentación con que se emite.
        """
        if is_scene_class(line):
            return IndentState.IN_CLASS, 0
        if state is not IndentState.TOP_LEVEL and is_method(line):
            return IndentState.IN_METHOD, 1
        return state, state.value

    def reflow(self, text: str) -> str:
        """
        Re-indenta el script completo.

        Args:
            text: Script a re-indentar

        Returns:
            Script con indentación de 4 espacios por nivel
        """
        state = IndentState.TOP_LEVEL
        lines = []

        for line in text.split("\n"):
            stripped = line.strip()
            if not stripped:
                lines.append("")
                continue

            state, level = self.transition(state, stripped)
            lines.append(INDENT * level + stripped)

        return "\n".join(lines)
