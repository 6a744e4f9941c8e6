"""
Pytest fixtures and configuration.

The OpenAI and Gemini SDK clients are replaced by in-process fakes that
follow the call shapes the service uses.
"""

import asyncio
import io
from types import SimpleNamespace
from typing import Callable, List, Optional

import pytest
from PIL import Image

from thumbnail_service import settings
from thumbnail_service.prompts import VARIANT_SEPARATOR

_real_sleep = asyncio.sleep


def make_image_bytes(size=(800, 600), color=(30, 30, 30), fmt="PNG", square=None) -> bytes:
    """Solid image, optionally with a bright square (x0, y0, x1, y1)."""
    img = Image.new("RGB", size, color)
    if square:
        img.paste((250, 250, 250), square)
    buf = io.BytesIO()
    img.save(buf, format=fmt)
    return buf.getvalue()


def image_chunk(data: bytes, mime: Optional[str] = "image/png"):
    inline = SimpleNamespace(data=data, mime_type=mime)
    part = SimpleNamespace(inline_data=inline, text=None)
    return SimpleNamespace(candidates=[SimpleNamespace(content=SimpleNamespace(parts=[part]))])


def text_chunk(text: str = "thinking..."):
    part = SimpleNamespace(inline_data=None, text=text)
    return SimpleNamespace(candidates=[SimpleNamespace(content=SimpleNamespace(parts=[part]))])


async def _aiter(items):
    for item in items:
        yield item


def default_reply(messages) -> str:
    system = messages[0]["content"]
    if "Art Director" in system:
        return "Teal and orange rim light, bold yellow type."
    if "EXACTLY" in system:
        n = int(system.split("EXACTLY ")[1].split()[0])
        return f" {VARIANT_SEPARATOR} ".join(f"Concept {i}" for i in range(1, n + 1))
    return "Single concept with dramatic lighting."


class FakeCompletions:
    def __init__(self, reply: Callable = default_reply):
        self.reply = reply
        self.calls: List[dict] = []

    async def create(self, **kwargs):
        self.calls.append(kwargs)
        content = self.reply(kwargs["messages"])
        if isinstance(content, Exception):
            raise content
        return SimpleNamespace(choices=[SimpleNamespace(message=SimpleNamespace(content=content))])


class FakeOpenAI:
    def __init__(self, reply: Callable = default_reply):
        self.chat = SimpleNamespace(completions=FakeCompletions(reply))

    @property
    def calls(self):
        return self.chat.completions.calls


class FakeModels:
    """Mimics client.aio.models.generate_content_stream.

    `behavior(index, prompt)` returns a list of chunks or an Exception to raise.
    """

    def __init__(self, behavior: Callable):
        self.behavior = behavior
        self.calls: List[dict] = []
        self.in_flight = 0
        self.max_in_flight = 0

    async def generate_content_stream(self, *, model, contents, config):
        prompt = contents[0].parts[0].text
        index = len(self.calls)
        self.calls.append({"model": model, "contents": contents, "config": config, "prompt": prompt})
        self.in_flight += 1
        self.max_in_flight = max(self.max_in_flight, self.in_flight)
        try:
            await _real_sleep(0.01)
        finally:
            self.in_flight -= 1
        outcome = self.behavior(index, prompt)
        if isinstance(outcome, Exception):
            raise outcome
        return _aiter(outcome)


class FakeGenai:
    def __init__(self, behavior: Optional[Callable] = None):
        png = make_image_bytes((64, 36))
        self.models = FakeModels(behavior or (lambda i, prompt: [text_chunk(), image_chunk(png)]))
        self.aio = SimpleNamespace(models=self.models)

    @property
    def calls(self):
        return self.models.calls


def is_horizontal(prompt: str) -> bool:
    return "horizontal 16:9" in prompt


@pytest.fixture(autouse=True)
def fast_backoff(monkeypatch):
    """No real sleeping between retries."""
    monkeypatch.setattr(settings, "GENERATION_BACKOFF_S", 0.0)
    monkeypatch.setattr(settings, "POSTPROCESS_OUTPUTS", False)


@pytest.fixture
def fake_openai():
    return FakeOpenAI()


@pytest.fixture
def fake_genai():
    return FakeGenai()


@pytest.fixture
def photo_bytes():
    return make_image_bytes((1200, 900), square=(500, 200, 800, 600))
