import pytest

from manimforge.director.pacing import DurationBalancer
from manimforge.domain.errors import (
    GenerationBackendFailure,
    MissingEntryMethod,
    MissingSceneClass,
    SchemaViolation,
)

from .helpers import PYTHAGORAS_SCRIPT, dedent


def test_pythagorean_theorem_end_to_end(make_pipeline):
    pipeline, backend = make_pipeline(PYTHAGORAS_SCRIPT)

    script = pipeline.run("Pythagorean theorem")

    estimate = DurationBalancer().estimate(script)
    assert "self.wait(" in script
    assert 26.0 <= estimate.total <= 32.0
    assert 'Text("a^2 + b^2 = c^2 explained", font_size=32)' in script
    assert pipeline.cache.lookup("Pythagorean theorem") == script

    assert pipeline.run("Pythagorean theorem") == script
    assert len(backend.calls) == 1


def test_seeded_cache_skips_generation(make_pipeline):
    pipeline, backend = make_pipeline()
    pipeline.cache.store("Pythagorean theorem", "raw", "cached script")

    assert pipeline.run("Pythagorean theorem") == "cached script"
    assert pipeline.run("Pythagorean theorem") == "cached script"
    assert backend.calls == []


def test_raw_text_is_kept_in_cache(make_pipeline):
    pipeline, _ = make_pipeline(PYTHAGORAS_SCRIPT)
    pipeline.run("Pythagorean theorem")

    entry = pipeline.cache.get_entry("Pythagorean theorem")
    assert entry.raw_text == PYTHAGORAS_SCRIPT
    assert entry.validated_text != PYTHAGORAS_SCRIPT


@pytest.mark.parametrize("topic", ["", "   "])
def test_empty_topic_rejected(make_pipeline, topic):
    pipeline, backend = make_pipeline()

    with pytest.raises(ValueError):
        pipeline.run(topic)
    assert backend.calls == []


def test_missing_entry_method_is_fatal_and_not_cached(make_pipeline):
    broken = "from manim import *\n\nclass Demo(Scene):\n    def setup(self):\n        pass"
    pipeline, backend = make_pipeline(broken)

    with pytest.raises(MissingEntryMethod) as exc_info:
        pipeline.run("Limits")

    assert exc_info.value.topic == "Limits"
    assert exc_info.value.stage == "validation"
    assert pipeline.cache.lookup("Limits") is None
    assert len(backend.calls) == 1


def test_missing_scene_class_is_fatal(make_pipeline):
    pipeline, _ = make_pipeline("print('hello')")

    with pytest.raises(MissingSceneClass):
        pipeline.run("Limits")


def test_backend_failure_surfaces_with_context(make_pipeline):
    pipeline, _ = make_pipeline(GenerationBackendFailure("connection reset"))

    with pytest.raises(GenerationBackendFailure) as exc_info:
        pipeline.run("Limits")

    assert exc_info.value.topic == "Limits"
    assert exc_info.value.stage == "generation"
    assert "connection reset" in str(exc_info.value)


def test_fallback_result_flows_through_pipeline(make_pipeline):
    pipeline, backend = make_pipeline(SchemaViolation("bad json"), PYTHAGORAS_SCRIPT)

    script = pipeline.run("Pythagorean theorem")

    assert "class PythagoreanTheorem(Scene):" in script
    assert len(backend.calls) == 2


def test_process_strips_code_fences(make_pipeline):
    pipeline, _ = make_pipeline()
    fenced = f"```python\n{PYTHAGORAS_SCRIPT}\n```"

    script = pipeline.process(fenced)

    assert "```" not in script
    assert script.startswith("from manim import *")


def test_process_repairs_and_reindents(make_pipeline):
    pipeline, _ = make_pipeline()
    raw = dedent("""
        class Demo(Scene):
          def construct(self):
           sq = Square(side_length=2)
           eq = MathMathTex("x^2")
           self.play(Create(sq))
    """)

    script = pipeline.process(raw).split("\n")

    assert script[0] == "from manim import *"
    assert "class Demo(Scene):" in script
    assert "    def construct(self):" in script
    assert "        sq = Square(2)" in script
    assert '        eq = MathTex(r"x^2")' in script
    play = script.index("        self.play(Create(sq))")
    assert script[play + 1].startswith("        self.wait(")
