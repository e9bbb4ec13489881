import textwrap


class FakeBackend:
    """Backend generativo en memoria: responde con una cola de resultados."""

    def __init__(self, *responses):
        self.responses = list(responses)
        self.calls = []

    def invoke(self, prompt, schema):
        self.calls.append((prompt, schema))
        response = self.responses.pop(0)
        if isinstance(response, Exception):
            raise response
        if isinstance(response, str):
            return schema.model_validate(payload_for(response))
        return response


def payload_for(script: str) -> dict:
    return {
        "imports": ["from manim import *"],
        "class_name": "PythagoreanTheorem",
        "class_definition": {
            "name": "PythagoreanTheorem",
            "methods": [{"name": "construct", "parameters": ["self"], "body": "pass"}],
        },
        "complete_script": script,
    }


def dedent(text: str) -> str:
    return textwrap.dedent(text).strip("\n")


PYTHAGORAS_SCRIPT = dedent("""
    from manim import *

    class PythagoreanTheorem(Scene):
        def construct(self):
            title = Text("a^2 + b^2 = c^2 explained")
            self.play(Write(title))
""")
