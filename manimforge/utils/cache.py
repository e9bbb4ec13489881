"""
Cache persistente en disco para scripts generados.
Evita regenerar el mismo tema y coordina peticiones concurrentes
para que un tema en curso se genere una sola vez.
"""

import logging
import threading
from concurrent.futures import Future
from datetime import datetime, timedelta
from pathlib import Path
from typing import Callable, Optional

from diskcache import Cache

from ..domain.models import CacheEntry

logger = logging.getLogger(__name__)


class ScriptCache:
    """Cache en disco de scripts Manim, indexado por tema."""

    INDEX_KEY = "scripts:index"
    INDEX_LIMIT = 50

    def __init__(self, cache_dir: str = "./cache", ttl_hours: Optional[int] = None):
        """
        Inicializa el cache.

        Args:
            cache_dir: Directorio para almacenar el cache
            ttl_hours: Tiempo de vida en horas (None = sin expiración)
        """
        self.cache_dir = Path(cache_dir)
        self.cache_dir.mkdir(parents=True, exist_ok=True)
        self.cache = Cache(str(self.cache_dir))
        self.ttl = timedelta(hours=ttl_hours) if ttl_hours else None

        self._lock = threading.Lock()
        self._in_flight: dict[str, Future] = {}

    def _key(self, topic: str) -> str:
        # El tema se usa tal cual: sin normalizar espacios ni mayúsculas
        return f"manim:{topic}"

    def _set(self, key: str, value) -> None:
        expire = self.ttl.total_seconds() if self.ttl else None
        self.cache.set(key, value, expire=expire)

    def get_entry(self, topic: str) -> Optional[CacheEntry]:
        """Obtiene la entrada completa de un tema, o None."""
        data = self.cache.get(self._key(topic))
        if data is None:
            return None
        return CacheEntry(**data)

    def lookup(self, topic: str) -> Optional[str]:
        """
        Busca el script validado de un tema.

        Args:
            topic: Tema exacto

        Returns:
            Texto validado o None si no existe
        """
        entry = self.get_entry(topic)
        if entry is None:
            logger.info(f"Cache MISS: {topic}")
            return None
        logger.info(f"Cache HIT: {topic}")
        return entry.validated_text

    def store(self, topic: str, raw_text: str, validated_text: str) -> None:
        """
        Almacena un script. Una escritura posterior reemplaza a la anterior.

        Args:
            topic: Tema exacto
            raw_text: Script tal como lo emitió el modelo
            validated_text: Script reparado y normalizado
        """
        entry = CacheEntry(
            topic=topic,
            raw_text=raw_text,
            validated_text=validated_text,
            created_at=datetime.now().isoformat()
        )
        self._set(self._key(topic), entry.model_dump())

        # Mantener índice de temas (lectura y escritura en una misma transacción)
        with self.cache.transact():
            index = [i for i in self.get_index() if i["topic"] != topic]
            index.append({"topic": topic, "created_at": entry.created_at})
            self._set(self.INDEX_KEY, index[-self.INDEX_LIMIT:])
        logger.info(f"Script guardado en cache: {topic}")

    def get_or_create(self, topic: str, producer: Callable[[], tuple[str, str]]) -> str:
        """
        Devuelve el script del tema, generándolo una sola vez.

        Si otra llamada ya está generando el mismo tema, espera su
        resultado en lugar de lanzar una segunda generación.

        Args:
            topic: Tema exacto
            producer: Función que devuelve (texto_crudo, texto_validado)

        Returns:
            Texto validado
        """
        cached = self.lookup(topic)
        if cached is not None:
            return cached

        with self._lock:
            future = self._in_flight.get(topic)
            leader = future is None
            if leader:
                future = Future()
                self._in_flight[topic] = future

        if not leader:
            logger.info(f"Generación en curso para '{topic}', esperando resultado...")
            return future.result()

        try:
            # Otro hilo pudo terminar entre la búsqueda y el registro
            entry = self.get_entry(topic)
            if entry is not None:
                future.set_result(entry.validated_text)
                return entry.validated_text

            raw_text, validated_text = producer()
            self.store(topic, raw_text, validated_text)
        except BaseException as e:
            future.set_exception(e)
            raise
        else:
            future.set_result(validated_text)
            return validated_text
        finally:
            with self._lock:
                self._in_flight.pop(topic, None)

    def get_index(self) -> list[dict]:
        """Obtiene la lista de temas almacenados (más reciente al final)."""
        return self.cache.get(self.INDEX_KEY) or []

    def list_entries(self) -> list[CacheEntry]:
        """Entradas vigentes según el índice."""
        entries = []
        for item in self.get_index():
            entry = self.get_entry(item["topic"])
            if entry is not None:
                entries.append(entry)
        return entries

    def clear_all(self) -> None:
        """Limpia todo el cache."""
        self.cache.clear()

    def get_stats(self) -> dict:
        """Obtiene estadísticas del cache."""
        return {
            "size_bytes": self.cache.volume(),
            "items_count": len(self.cache),
            "scripts_count": len(self.get_index()),
            "directory": str(self.cache_dir)
        }

    def close(self) -> None:
        """Cierra la conexión al cache."""
        self.cache.close()
