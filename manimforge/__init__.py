"""
manimforge: genera scripts Manim educativos a partir de un tema.
Generación con schema → validación → reparación → ritmo → cache.
"""

__version__ = "0.1.0"
