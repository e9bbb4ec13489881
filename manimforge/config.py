"""
Configuración del generador.
Variables de entorno (.env) con un YAML opcional encima.
"""

import logging
import os
from dataclasses import dataclass, fields
from pathlib import Path
from typing import Optional

import yaml
from dotenv import load_dotenv

logger = logging.getLogger(__name__)

DEFAULT_PROMPTS_PATH = Path(__file__).parent / "prompts.yaml"
DEFAULT_CONFIG_PATH = "./config/config.yaml"


@dataclass
class Settings:
    """Parámetros del backend, del cache y de los prompts."""
    api_key: Optional[str] = None
    model: str = "anthropic/claude-3.5-sonnet"
    temperature: float = 0.7
    max_tokens: int = 4000
    timeout_seconds: float = 120.0
    cache_dir: str = "./cache"
    cache_ttl_hours: Optional[int] = None
    prompts_path: str = str(DEFAULT_PROMPTS_PATH)

    @classmethod
    def from_env(cls, config_path: Optional[str] = None) -> "Settings":
        """
        Carga la configuración.

        Args:
            config_path: YAML opcional; sus claves pisan las del entorno

        Returns:
            Settings listos para usar
        """
        load_dotenv()

        settings = cls(
            api_key=os.getenv("OPENROUTER_API_KEY"),
            model=os.getenv("LLM_MODEL_PRIMARY", cls.model),
            temperature=float(os.getenv("LLM_TEMPERATURE", cls.temperature)),
            max_tokens=int(os.getenv("LLM_MAX_TOKENS", cls.max_tokens)),
            timeout_seconds=float(os.getenv("LLM_TIMEOUT_SECONDS", cls.timeout_seconds)),
            cache_dir=os.getenv("MANIMFORGE_CACHE_DIR", cls.cache_dir),
            prompts_path=os.getenv("MANIMFORGE_PROMPTS", cls.prompts_path),
        )

        path = config_path or os.getenv("MANIMFORGE_CONFIG", DEFAULT_CONFIG_PATH)
        return settings.merge_yaml(path)

    def merge_yaml(self, path: str) -> "Settings":
        """Aplica las claves conocidas de un archivo YAML."""
        config_file = Path(path)
        if not config_file.exists():
            return self

        with open(config_file, "r", encoding="utf-8") as f:
            data = yaml.safe_load(f) or {}

        known = {f.name for f in fields(self)}
        for key, value in data.items():
            if key in known:
                setattr(self, key, value)
            else:
                logger.warning(f"Clave de configuración desconocida: {key}")
        return self


def load_prompts(path: str) -> dict:
    """Carga los prompts desde YAML."""
    try:
        with open(path, "r", encoding="utf-8") as f:
            return yaml.safe_load(f) or {}
    except FileNotFoundError:
        logger.warning(f"Archivo de prompts no encontrado: {path}")
        return {}
