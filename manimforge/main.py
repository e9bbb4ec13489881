"""
Entrada principal de manimforge.
"""
import argparse
import logging
import sys
from pathlib import Path
from typing import Optional

from rich.console import Console
from rich.panel import Panel
from rich.syntax import Syntax
from rich.table import Table

from .config import Settings
from .domain.errors import ManimForgeError
from .pipeline import ScriptPipeline


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(description="Generador de scripts Manim educativos")
    parser.add_argument("topic", nargs="?", help="Tema del video")
    parser.add_argument("--file", type=str, help="Reparar y ajustar un script local sin llamar al LLM")
    parser.add_argument("--output", type=str, help="Guardar el script resultante en este archivo")
    parser.add_argument("--config", type=str, help="Archivo YAML de configuración")
    parser.add_argument("--list", action="store_true", help="Listar temas en cache")
    parser.add_argument("--stats", action="store_true", help="Estadísticas del cache")
    parser.add_argument("--clear", action="store_true", help="Vaciar el cache")
    parser.add_argument("--verbose", "-v", action="store_true", help="Logging detallado")
    return parser


def _show_script(console: Console, script: str, title: str, output: Optional[str]) -> None:
    console.print(Panel(Syntax(script, "python", line_numbers=True), title=title))

    if output:
        Path(output).write_text(script, encoding="utf-8")
        console.print(f"[green]✓ Script guardado en {output}[/green]")


def main(argv: Optional[list[str]] = None) -> int:
    """Función principal."""
    args = build_parser().parse_args(argv)

    logging.basicConfig(level=logging.DEBUG if args.verbose else logging.INFO)
    console = Console()

    settings = Settings.from_env(args.config)
    pipeline = ScriptPipeline(settings=settings)

    try:
        if args.clear:
            pipeline.cache.clear_all()
            console.print("[green]✓ Cache vaciado[/green]")
            return 0

        if args.stats:
            stats = pipeline.cache.get_stats()
            for key, value in stats.items():
                console.print(f"[cyan]{key}[/cyan]: {value}")
            return 0

        if args.list:
            entries = pipeline.cache.list_entries()
            if not entries:
                console.print("[yellow]No hay scripts guardados[/yellow]")
                return 0
            table = Table(title="Scripts en cache")
            table.add_column("Tema", style="cyan")
            table.add_column("Creado")
            table.add_column("Duración estimada", justify="right")
            for entry in entries:
                estimate = pipeline.balancer.estimate(entry.validated_text)
                table.add_row(entry.topic, entry.created_at[:19], f"{estimate.total:.1f}s")
            console.print(table)
            return 0

        if args.file:
            source = Path(args.file).read_text(encoding="utf-8")
            script = pipeline.process(source)
            _show_script(console, script, args.file, args.output)
            return 0

        if not args.topic:
            console.print("[red]Indica un tema o usa --file[/red]")
            return 2

        console.print(f"[cyan]Generando script para: {args.topic}[/cyan]")
        script = pipeline.run(args.topic)
        _show_script(console, script, args.topic, args.output)
        return 0

    except ManimForgeError as e:
        console.print(f"[red]✗ {e}[/red]")
        return 1
    except ValueError as e:
        console.print(f"[red]✗ {e}[/red]")
        return 2
    except KeyError as e:
        console.print(f"[red]✗ {e.args[0]}[/red]")
        return 1
    finally:
        pipeline.cache.close()


if __name__ == "__main__":
    sys.exit(main())
