"""
Motor de reparación de scripts Manim.
Lista ordenada de reglas texto → texto que corrigen defectos conocidos
del modelo generativo sin parsear el script.
"""
import logging
import re
from dataclasses import dataclass
from typing import Callable, Iterable, List, Optional

logger = logging.getLogger(__name__)

MANIM_IMPORT = "from manim import *"

# Paleta educativa. Hoy set_color se deja igual; aquí se aplicaría la paleta.
PALETTE = ("BLUE", "GREEN", "RED", "PURPLE", "ORANGE")

LONG_TEXT_THRESHOLD = 20
LONG_TEXT_FONT_SIZE = 32
SHORT_TEXT_FONT_SIZE = 36
LABEL_BUFF = 0.3


@dataclass(frozen=True)
class RepairRule:
    """Una regla de reparación con nombre."""
    name: str
    apply: Callable[[str], str]


def _as_raw(body: str) -> str:
    """Contenido de un string normal reescrito para un string r"..."."""
    return body.replace("\\\\", "\\")


def ensure_manim_import(text: str) -> str:
    if MANIM_IMPORT in text:
        return text
    return f"{MANIM_IMPORT}\n\n{text}"


def fix_duplicated_math_prefix(text: str) -> str:
    """MathMathTex → MathTex"""
    return re.sub(r"(?:Math)+MathTex", "MathTex", text)


_LINE_LABEL = re.compile(
    r"^([ \t]*)(\w+) = Line\(([^)]*)\)\.label\(([^,)]+),?\s*buff=([^)]+)\)",
    re.MULTILINE,
)


def rewrite_label_calls(text: str) -> str:
    """Line no tiene .label(): se construye un MathTex posicionado."""
    def _split(m: re.Match) -> str:
        indent, name, args, tex, buff = m.groups()
        return (
            f"{indent}{name} = Line({args})\n"
            f"{indent}{name}_label = MathTex({tex}).next_to({name}, UP, buff={buff})"
        )

    text = _LINE_LABEL.sub(_split, text)
    return re.sub(r"(\w+)\.label\(([^)]+)\)", r"MathTex(\2).next_to(\1, UP)", text)


def promote_tex_with_math(text: str) -> str:
    """Tex con ^, _ o \\ es matemática."""
    return re.sub(
        r"""(?<![\w.])Tex\(("[^"]*[\\^_][^"]*"|'[^']*[\\^_][^']*')\)""",
        r"MathTex(\1)",
        text,
    )


_ZERO_ARG_DEFAULTS = [
    (re.compile(r"\.set_opacity\(\)"), ".set_opacity(0.5)"),
    (re.compile(r"(?<![\w.])Vector\(\)"), "Vector(RIGHT)"),
    (re.compile(r"(?<![\w.])ValueTracker\(\)"), "ValueTracker(0)"),
]


def supply_default_arguments(text: str) -> str:
    for pattern, replacement in _ZERO_ARG_DEFAULTS:
        text = pattern.sub(replacement, text)
    return text


def positional_geometry_arguments(text: str) -> str:
    text = re.sub(r"(?<![\w.])Square\(side_length=", "Square(", text)
    return re.sub(r"(?<![\w.])Circle\(radius=", "Circle(", text)


def raw_prefix_fractions(text: str) -> str:
    return re.sub(
        r'MathTex\("([^"]*\\frac\{[^"]*)"',
        lambda m: f'MathTex(r"{_as_raw(m.group(1))}"',
        text,
    )


def raw_prefix_math_markup(text: str) -> str:
    return re.sub(
        r'MathTex\("([^"]*[\\^_{}][^"]*)"\)',
        lambda m: f'MathTex(r"{_as_raw(m.group(1))}")',
        text,
    )


def unwrap_text_markup(text: str) -> str:
    """MathTex(r"\\text{...}") es texto plano."""
    return re.sub(r'MathTex\(r?"\\text\{([^}]+)\}"\)', r'Text("\1")', text)


def space_labels(text: str) -> str:
    return re.sub(
        r"MathTex\(([^)]+)\)\.next_to\(([^,]+),\s*UP\)",
        rf"MathTex(\1).next_to(\2, UP, buff={LABEL_BUFF})",
        text,
    )


def size_text(text: str) -> str:
    def _sized(m: re.Match) -> str:
        content = m.group(1)
        if len(content) > LONG_TEXT_THRESHOLD:
            size = LONG_TEXT_FONT_SIZE
        else:
            size = SHORT_TEXT_FONT_SIZE
        return f'Text("{content}", font_size={size})'

    return re.sub(r'(?<![\w.])Text\("([^"]+)"\)', _sized, text)


def canonicalize_colors(text: str) -> str:
    return re.sub(
        r"\.set_color\((%s)\)" % "|".join(PALETTE),
        lambda m: f".set_color({m.group(1)})",
        text,
    )


_DUPLICATE_ENTRY = re.compile(r"def construct\(self\):\s*\n\s*def construct\(self\):")


def collapse_duplicate_entry(text: str) -> str:
    while True:
        collapsed = _DUPLICATE_ENTRY.sub("def construct(self):", text)
        if collapsed == text:
            return collapsed
        text = collapsed


# El orden importa: p. ej. el prefijo r general corre después de las fracciones
DEFAULT_RULES: List[RepairRule] = [
    RepairRule("ensure_manim_import", ensure_manim_import),
    RepairRule("fix_duplicated_math_prefix", fix_duplicated_math_prefix),
    RepairRule("rewrite_label_calls", rewrite_label_calls),
    RepairRule("promote_tex_with_math", promote_tex_with_math),
    RepairRule("supply_default_arguments", supply_default_arguments),
    RepairRule("positional_geometry_arguments", positional_geometry_arguments),
    RepairRule("raw_prefix_fractions", raw_prefix_fractions),
    RepairRule("raw_prefix_math_markup", raw_prefix_math_markup),
    RepairRule("unwrap_text_markup", unwrap_text_markup),
    RepairRule("space_labels", space_labels),
    RepairRule("size_text", size_text),
    RepairRule("canonicalize_colors", canonicalize_colors),
    RepairRule("collapse_duplicate_entry", collapse_duplicate_entry),
]


class RepairEngine:
    """Aplica las reglas de reparación en orden. Nunca falla."""

    def __init__(self, rules: Optional[Iterable[RepairRule]] = None):
        self.rules: List[RepairRule] = list(DEFAULT_RULES if rules is None else rules)

    def add_rule(self, rule: RepairRule, before: Optional[str] = None) -> None:
        """
        Agrega una regla al final, o antes de la regla indicada.

        Args:
            rule: Regla a agregar
            before: Nombre de una regla existente
        """
        if before is None:
            self.rules.append(rule)
            return
        names = [r.name for r in self.rules]
        if before not in names:
            raise KeyError(f"Regla desconocida: {before}")
        self.rules.insert(names.index(before), rule)

    def repair(self, text: str) -> str:
        """
        Reescribe los defectos conocidos del script.

        Args:
            text: Script a reparar

        Returns:
            Script reparado (igual al de entrada si ninguna regla aplica)
        """
        applied = []
        for rule in self.rules:
            fixed = rule.apply(text)
            if fixed != text:
                applied.append(rule.name)
                text = fixed

        if applied:
            logger.info(f"Reglas de reparación aplicadas: {', '.join(applied)}")
        return text
