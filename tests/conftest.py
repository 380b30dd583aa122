"""
Shared fakes and fixtures
"""
import asyncio
import copy
import re
from collections import defaultdict, deque
from pathlib import Path

import pytest
from PIL import Image

from src.config import AdapterConfig, TranslationConfig
from src.core.chain import CritiqueResult, TranslateResult
from src.core.llm import LLMProvider, ProviderError
from src.core.rendering import PageRenderer
from src.core.exceptions import RenderError
from src.models import Page
from src.persistence import SqliteProcessRepository
from src.services import ListenerRegistry, ProcessService


def page_html(page_number=1, body=None, lang="es", style="p { margin: 0; }"):
    body = body if body is not None else f'<page id="page-{page_number}"><p>Página {page_number}</p></page>'
    return (
        "<!DOCTYPE html>\n"
        f'<html lang="{lang}">\n'
        "<head>\n"
        '<meta charset="UTF-8">\n'
        f"<title>Page {page_number}</title>\n"
        f"<style>{style}</style>\n"
        "</head>\n"
        "<body>\n"
        f"{body}\n"
        "</body>\n"
        "</html>\n"
    )


class FakeProvider(LLMProvider):
    """
    Scripted provider.

    `script` maps an output model name to a list of answers (model instances,
    or exceptions to raise). When a list is exhausted the provider answers
    with a valid page and a review that needs no correction.
    """

    name = "fake"

    def __init__(self, script=None, delays=None, translate_html=None):
        super().__init__(model="fake-model", api_key="", api_endpoint="")
        self.script = defaultdict(deque)
        for key, answers in (script or {}).items():
            self.script[key].extend(answers)
        self.delays = delays or {}
        self.translate_html = translate_html or (lambda page_number: page_html(page_number))
        self.calls = []
        self.closed = False

    async def _build_request(self, messages, schema):
        return "", {}, {}

    def _extract_object(self, response_json):
        return response_json

    async def generate_object(self, messages, schema):
        self.calls.append((schema.__name__, copy.deepcopy(messages)))
        page_number = _page_number_from(messages)
        delay = self.delays.get(page_number)
        if delay:
            await asyncio.sleep(delay)

        queue = self.script.get(schema.__name__)
        if queue:
            answer = queue.popleft()
            if isinstance(answer, Exception):
                raise answer
            return answer
        if schema is TranslateResult:
            return TranslateResult(html=self.translate_html(page_number))
        if schema is CritiqueResult:
            return CritiqueResult(reasoning="Looks right", need_correction=False)
        raise ProviderError(self.name, f"no scripted answer for {schema.__name__}")

    async def close(self):
        self.closed = True

    def schemas_called(self):
        return [name for name, _ in self.calls]


def _page_number_from(messages):
    """Page number announced by the system prompt"""
    match = re.search(r"page (\d+)", messages[0]["content"][0]["text"])
    return int(match.group(1)) if match else None


class FakeRenderer(PageRenderer):
    """Writes a stub screenshot; `fail_after` N successful renders makes the next ones fail"""

    def __init__(self, fail=False, fail_after=None):
        self.fail = fail
        self.fail_after = fail_after
        self.renders = []

    async def render(self, html, width, height, output_path):
        if self.fail or (self.fail_after is not None and len(self.renders) >= self.fail_after):
            raise RenderError("rendering service unreachable")
        output_path = Path(output_path)
        output_path.write_bytes(b"\x89PNG fake")
        self.renders.append((html, width, height, output_path))
        return output_path


def make_page_images(directory, count, size=(120, 160)):
    directory = Path(directory)
    directory.mkdir(parents=True, exist_ok=True)
    paths = []
    for index in range(1, count + 1):
        path = directory / f"page-{index}.png"
        Image.new("RGB", size, "white").save(path)
        paths.append(path)
    return paths


def make_pages(directory, count, size=(120, 160)):
    return [
        Page(image_path=str(path), page_number=index, width=size[0], height=size[1])
        for index, path in enumerate(make_page_images(directory, count, size), start=1)
    ]


@pytest.fixture
def fake_provider():
    return FakeProvider()


@pytest.fixture
def fake_renderer():
    return FakeRenderer()


@pytest.fixture
def translation_config():
    return TranslationConfig.from_request({'adapter': 'openai', 'language': 'spanish', 'cycles': 0})


@pytest.fixture
def adapter_config():
    return AdapterConfig(name="fake", model="fake-model", api_key="", simultaneous_requests=2,
                         default_cycles=1, max_cycles=5, max_retries=0)


@pytest.fixture
def repository():
    repo = SqliteProcessRepository(":memory:")
    yield repo
    repo.close()


@pytest.fixture
def listeners():
    return ListenerRegistry()


@pytest.fixture
def service(repository, listeners):
    return ProcessService(repository, listeners)
