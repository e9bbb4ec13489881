import pytest

from manimforge.config import Settings
from manimforge.pipeline import ScriptPipeline
from manimforge.utils.cache import ScriptCache

from .helpers import FakeBackend


@pytest.fixture
def settings(tmp_path):
    return Settings(cache_dir=str(tmp_path / "cache"))


@pytest.fixture
def cache(tmp_path):
    script_cache = ScriptCache(cache_dir=str(tmp_path / "cache"))
    yield script_cache
    script_cache.close()


@pytest.fixture
def make_pipeline(settings, cache):
    def _make(*responses):
        backend = FakeBackend(*responses)
        return ScriptPipeline(settings=settings, backend=backend, cache=cache), backend
    return _make
