"""
Balanceo de duración de scripts Manim.

Estima la duración a partir de las llamadas self.wait(...) y self.play(...)
y agrega, extiende o recorta pausas para acercarse a la duración objetivo.
Es una heurística: el resultado puede quedar fuera de la banda aceptada.
"""
import logging
import re
from typing import List, Optional

from ..domain.models import AnimationCall, DurationEstimate, PacingDirective

logger = logging.getLogger(__name__)

WAIT_PATTERN = re.compile(r"self\.wait\(([^)]*)\)")
PLAY_TOKEN = "self.play("
ENTRY_PATTERN = re.compile(r"^(\s*)def\s+construct\(\s*self\s*\)")
SECONDS_PATTERN = re.compile(r"(?:duration\s*=\s*)?(\d+(?:\.\d*)?|\.\d+)")

# Pausa tras cada animación según su tipo (primera coincidencia gana)
PAUSE_BY_CATEGORY = [
    (("animate", "Transform", "ReplacementTransform"), 2.8),
    (("FadeIn", "Write"), 2.4),
    (("Create", "DrawBorderThenFill"), 3.2),
    (("FadeOut", "Uncreate"), 1.6),
]
DEFAULT_PAUSE = 2.2


def _indent_of(line: str) -> str:
    return line[:len(line) - len(line.lstrip())]


def _is_code(line: str) -> bool:
    stripped = line.strip()
    return bool(stripped) and not stripped.startswith("#")


def _code_part(line: str) -> str:
    """
    La línea sin comentario final y con el contenido de los strings en blanco.
    Las columnas del código que queda coinciden con las de la línea original.
    """
    chars = []
    quote = None
    j = 0
    while j < len(line):
        char = line[j]
        if quote:
            if char == "\\" and j + 1 < len(line):
                chars.append("  ")
                j += 2
                continue
            if char == quote:
                quote = None
                chars.append(char)
            else:
                chars.append(" ")
        elif char in "\"'":
            quote = char
            chars.append(char)
        elif char == "#":
            break
        else:
            chars.append(char)
        j += 1
    return "".join(chars)


def _parse_seconds(argument: str) -> Optional[float]:
    argument = argument.strip()
    if not argument:
        return 1.0  # Scene.wait() dura 1 segundo por defecto
    match = SECONDS_PATTERN.fullmatch(argument)
    if not match:
        return None
    return float(match.group(1))


def _fmt(seconds: float) -> str:
    return f"{seconds:.1f}"


def pause_for(call_text: str) -> float:
    """Pausa recomendada después de una animación."""
    for markers, seconds in PAUSE_BY_CATEGORY:
        if any(marker in call_text for marker in markers):
            return seconds
    return DEFAULT_PAUSE


def _statement_end(lines: List[str], line_index: int, column: int) -> tuple[int, int]:
    """
    Busca el paréntesis que cierra la llamada que abre en (línea, columna).
    Devuelve (línea, columna siguiente al cierre).
    """
    depth = 0
    quote = None
    for i in range(line_index, len(lines)):
        line = lines[i]
        j = column if i == line_index else 0
        while j < len(line):
            char = line[j]
            if quote:
                if char == "\\":
                    j += 1
                elif char == quote:
                    quote = None
            elif char in "\"'":
                quote = char
            elif char == "#":
                break
            elif char == "(":
                depth += 1
            elif char == ")":
                depth -= 1
                if depth == 0:
                    return i, j + 1
            j += 1
        quote = None
    # Sin cierre: la sentencia llega hasta el final del texto
    return len(lines) - 1, len(lines[-1])


class DurationBalancer:
    """Ajusta las pausas de un script para acercarlo a la duración objetivo."""

    ANIMATION_SECONDS = 1.5
    MIN_SECONDS = 26.0
    MAX_SECONDS = 32.0
    TARGET_SECONDS = 28.0
    WAIT_CAP = 4.0
    SPREAD_RATIO = 0.3
    SPREAD_MAX = 2.0
    TRIM_THRESHOLD = 4.0
    TRIM_FACTOR = 0.7
    TRIM_FLOOR = 2.0
    FINAL_HOLD = 2

    # --- Escaneo -----------------------------------------------------------

    def pacing_directives(self, text: str) -> List[PacingDirective]:
        """Pausas con duración numérica, en orden de aparición."""
        return self._directives(text.split("\n"))

    def animation_calls(self, text: str) -> List[AnimationCall]:
        """Sentencias self.play(...), en orden de aparición."""
        return self._calls(text.split("\n"))

    def estimate(self, text: str) -> DurationEstimate:
        """Duración estimada: pausas + 1.5s por animación."""
        return self._estimate(text.split("\n"))

    def _directives(self, lines: List[str]) -> List[PacingDirective]:
        directives = []
        for i, line in enumerate(lines):
            if not _is_code(line):
                continue
            for match in WAIT_PATTERN.finditer(_code_part(line)):
                seconds = _parse_seconds(match.group(1))
                if seconds is None:
                    continue
                directives.append(PacingDirective(
                    line_index=i,
                    column=match.start(),
                    call=line[match.start():match.end()],
                    seconds=seconds,
                    indent=_indent_of(line)
                ))
        return directives

    def _calls(self, lines: List[str]) -> List[AnimationCall]:
        calls = []
        for i, line in enumerate(lines):
            if not _is_code(line):
                continue
            code = _code_part(line)
            column = code.find(PLAY_TOKEN)
            while column != -1:
                end_line, end_column = _statement_end(lines, i, column + len(PLAY_TOKEN) - 1)
                if end_line == i:
                    call_text = line[column:end_column]
                else:
                    call_text = "\n".join(
                        [line[column:]] + lines[i + 1:end_line] + [lines[end_line][:end_column]]
                    )
                calls.append(AnimationCall(
                    start_line=i,
                    end_line=end_line,
                    end_column=end_column,
                    text=call_text,
                    indent=_indent_of(line)
                ))
                column = code.find(PLAY_TOKEN, column + len(PLAY_TOKEN))
        return calls

    def _estimate(self, lines: List[str]) -> DurationEstimate:
        calls = self._calls(lines)
        waits = sum(d.seconds for d in self._directives(lines))
        return DurationEstimate(
            animation_count=len(calls),
            animation_seconds=len(calls) * self.ANIMATION_SECONDS,
            wait_seconds=waits,
            min_seconds=self.MIN_SECONDS,
            max_seconds=self.MAX_SECONDS
        )

    # --- Pasos -------------------------------------------------------------

    def _has_pacing(self, lines: List[str]) -> bool:
        return any("self.wait(" in _code_part(line) for line in lines)

    def _append_final_hold(self, lines: List[str]) -> List[str]:
        """Agrega self.wait(2) al final del cuerpo de construct."""
        return self._append_to_body(lines, [f"self.wait({self.FINAL_HOLD})"])

    def _append_to_body(self, lines: List[str], statements: List[str]) -> List[str]:
        """Agrega sentencias al final del cuerpo de construct, con su indentación."""
        entry = next((i for i, line in enumerate(lines) if ENTRY_PATTERN.match(line)), None)
        if entry is None:
            logger.warning("Sin método construct: las pausas se agregan al final del script")
            return lines + statements

        def_indent = _indent_of(lines[entry])
        body_indent = None
        last = entry
        for j in range(entry + 1, len(lines)):
            if not lines[j].strip():
                continue
            indent = _indent_of(lines[j])
            if len(indent) <= len(def_indent):
                break
            if body_indent is None:
                body_indent = indent
            last = j

        if body_indent is None:
            body_indent = def_indent + "    "
        return lines[:last + 1] + [body_indent + statement for statement in statements] + lines[last + 1:]

    def _is_followed_by_pacing(self, lines: List[str], call: AnimationCall) -> bool:
        if "self.wait(" in _code_part(lines[call.end_line])[call.end_column:]:
            return True
        for line in lines[call.end_line + 1:]:
            if _is_code(line):
                return _code_part(line).strip().startswith("self.wait(")
        return False

    def _insert_pauses(self, lines: List[str]) -> List[str]:
        """Inserta una pausa tras cada animación que no tenga una inmediatamente después."""
        # Si varias animaciones terminan en la misma línea, cuenta la última
        by_end_line = {}
        for call in self._calls(lines):
            by_end_line[call.end_line] = call

        lines = list(lines)
        inserted = 0
        for end_line in sorted(by_end_line, reverse=True):
            call = by_end_line[end_line]
            if self._is_followed_by_pacing(lines, call):
                continue
            pause = f"{call.indent}self.wait({_fmt(pause_for(call.text))})"
            lines.insert(end_line + 1, pause)
            inserted += 1

        if inserted:
            logger.info(f"Pausas insertadas tras animaciones: {inserted}")
        return lines

    def _rewrite(self, lines: List[str], updates: dict) -> List[str]:
        """Reescribe pausas existentes: {PacingDirective: segundos}."""
        lines = list(lines)
        ordered = sorted(updates.items(), key=lambda item: (item[0].line_index, item[0].column), reverse=True)
        for directive, seconds in ordered:
            line = lines[directive.line_index]
            start = directive.column
            end = start + len(directive.call)
            lines[directive.line_index] = f"{line[:start]}self.wait({_fmt(seconds)}){line[end:]}"
        return lines

    def _extend(self, lines: List[str], total: float) -> List[str]:
        """Reparte el déficit entre las pausas existentes."""
        deficit = self.TARGET_SECONDS - total
        directives = self._directives(lines)
        logger.info(f"Extendiendo duración {deficit:.1f}s para llegar a {self.TARGET_SECONDS:.0f}s")
        if not directives:
            # Solo hay pausas no numéricas: todo el déficit va al final de construct
            return self._append_to_body(lines, self._holds(deficit))

        step = min(deficit * self.SPREAD_RATIO, self.SPREAD_MAX)
        absorbed = 0.0
        updates = {}
        for k, directive in enumerate(directives):
            if k < len(directives) - 1:
                extra = step
            else:
                extra = max(deficit - absorbed, 0.0)
            seconds = round(min(directive.seconds + extra, self.WAIT_CAP), 1)
            absorbed += seconds - directive.seconds
            updates[directive] = seconds
        lines = self._rewrite(lines, updates)

        residual = round(deficit - absorbed, 1)
        if residual > 0:
            last = directives[-1]
            holds = [last.indent + hold for hold in self._holds(residual)]
            lines = lines[:last.line_index + 1] + holds + lines[last.line_index + 1:]
        return lines

    def _holds(self, seconds: float) -> List[str]:
        """Pausas de hasta 4 segundos que suman la duración pedida."""
        holds = []
        remaining = round(seconds, 1)
        while remaining > 0:
            chunk = min(remaining, self.WAIT_CAP)
            holds.append(f"self.wait({_fmt(chunk)})")
            remaining = round(remaining - chunk, 1)
        logger.info(f"Pausas adicionales al final: {len(holds)}")
        return holds

    def _trim(self, lines: List[str]) -> List[str]:
        """Recorta las pausas largas un 30%, sin bajar de 2 segundos."""
        updates = {
            d: max(self.TRIM_FLOOR, d.seconds * self.TRIM_FACTOR)
            for d in self._directives(lines)
            if d.seconds >= self.TRIM_THRESHOLD
        }
        logger.info(f"Video muy largo: recortando {len(updates)} pausas")
        return self._rewrite(lines, updates)

    def normalize(self, text: str) -> str:
        """
        Ajusta las pausas del script hacia la duración objetivo.

        Args:
            text: Script ya reparado e indentado

        Returns:
            Script con pausas ajustadas (nunca falla)
        """
        lines = text.split("\n")

        if not self._has_pacing(lines):
            lines = self._append_final_hold(lines)

        lines = self._insert_pauses(lines)

        estimate = self._estimate(lines)
        logger.info(
            f"Duración estimada: {estimate.animation_count} animaciones "
            f"({estimate.animation_seconds:.1f}s) + {estimate.wait_seconds:.1f}s de pausas "
            f"= {estimate.total:.1f}s"
        )

        if estimate.total < self.MIN_SECONDS:
            lines = self._extend(lines, estimate.total)
        elif estimate.total > self.MAX_SECONDS:
            lines = self._trim(lines)

        result = "\n".join(lines)
        final = self.estimate(result)
        status = "OK" if final.in_band else "FUERA DE RANGO"
        logger.info(f"Duración final estimada: {final.total:.1f}s [{status}]")
        return result
