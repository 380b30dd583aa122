"""
Tests for the per-page translate/critique chain
"""
import asyncio

import httpx
import pytest

from src.config import TranslationConfig
from src.core.chain import (ChainSignal, ChainState, CritiqueResult, CritiqueStage, TranslateResult,
                            TranslateStage, WorkerChain, build_default_stages)
from src.core.chain.stages import strip_code_fences
from src.core.exceptions import StageError
from src.core.llm import ProviderError
from src.core.rendering import HttpPageRenderer
from src.models import Page

from conftest import FakeProvider, FakeRenderer, make_pages, page_html


def _config(cycles):
    return TranslationConfig.from_request({'adapter': 'openai', 'language': 'spanish', 'cycles': cycles})


def _run_chain(provider, renderer, page, tmp_path, cycles):
    stages = build_default_stages(_config(cycles), renderer, tmp_path)
    return asyncio.run(WorkerChain(provider, stages, page, cycles=cycles).run())


def test_zero_cycles_runs_translate_only(tmp_path, fake_renderer):
    page = make_pages(tmp_path / "pages", 1)[0]
    provider = FakeProvider()

    result = _run_chain(provider, fake_renderer, page, tmp_path, cycles=0)

    assert provider.schemas_called() == ["TranslateResult"]
    assert fake_renderer.renders == []
    assert result.html == page_html(1).strip()
    assert result.page_info == page.page_info


def test_critique_without_correction_stops_after_first_pass(tmp_path, fake_renderer):
    page = make_pages(tmp_path / "pages", 1)[0]
    provider = FakeProvider()

    _run_chain(provider, fake_renderer, page, tmp_path, cycles=3)

    assert provider.schemas_called() == ["TranslateResult", "CritiqueResult"]
    assert len(fake_renderer.renders) == 1


def test_cycles_bound_the_number_of_passes(tmp_path, fake_renderer):
    page = make_pages(tmp_path / "pages", 1)[0]
    always_wrong = [CritiqueResult(reasoning="Table misaligned", need_correction=True)] * 10
    answers = [TranslateResult(html=page_html(1, body=f"<p>v{i}</p>")) for i in range(10)]
    provider = FakeProvider(script={"CritiqueResult": always_wrong, "TranslateResult": answers})

    result = _run_chain(provider, fake_renderer, page, tmp_path, cycles=2)

    # translate, critique, translate, critique, translate (cycle 2 == cycles)
    assert provider.schemas_called() == ["TranslateResult", "CritiqueResult"] * 2 + ["TranslateResult"]
    assert "<p>v2</p>" in result.html


def test_correction_loop_history_is_append_only(tmp_path, fake_renderer):
    page = make_pages(tmp_path / "pages", 1)[0]
    provider = FakeProvider(script={
        "CritiqueResult": [CritiqueResult(reasoning="Missing signature block", need_correction=True)],
    })

    _run_chain(provider, fake_renderer, page, tmp_path, cycles=1)

    histories = [messages[1:] for _, messages in provider.calls]
    for earlier, later in zip(histories, histories[1:]):
        assert later[:len(earlier)] == earlier
        assert len(later) > len(earlier)

    last_history = histories[-1]
    assert [m["role"] for m in last_history] == ["user", "assistant", "user", "assistant", "user"]
    assert last_history[0]["content"][0] == {"type": "image", "path": page.image_path}
    assert last_history[3]["content"][0]["text"] == "Missing signature block. Need correction: True"
    assert last_history[4]["content"][0]["type"] == "text"


def test_every_call_starts_with_its_stage_system_prompt(tmp_path, fake_renderer):
    page = make_pages(tmp_path / "pages", 1)[0]
    provider = FakeProvider()

    _run_chain(provider, fake_renderer, page, tmp_path, cycles=1)

    translate_messages = provider.calls[0][1]
    critique_messages = provider.calls[1][1]
    assert translate_messages[0]["role"] == "system"
    assert "legal translator" in translate_messages[0]["content"][0]["text"]
    assert "quality reviewer" in critique_messages[0]["content"][0]["text"]


def test_render_failure_keeps_last_translation(tmp_path):
    page = make_pages(tmp_path / "pages", 1)[0]
    provider = FakeProvider()

    result = _run_chain(provider, FakeRenderer(fail=True), page, tmp_path, cycles=2)

    assert provider.schemas_called() == ["TranslateResult"]
    assert result.html == page_html(1).strip()


def test_later_render_failure_keeps_last_corrected_translation(tmp_path):
    page = make_pages(tmp_path / "pages", 1)[0]
    provider = FakeProvider(script={
        "CritiqueResult": [CritiqueResult(reasoning="Stamp missing", need_correction=True)],
        "TranslateResult": [TranslateResult(html=page_html(1, body=f'<page id="page-1"><p>v{i}</p></page>'))
                            for i in range(2)],
    })
    renderer = FakeRenderer(fail_after=1)

    result = _run_chain(provider, renderer, page, tmp_path, cycles=2)

    # translate v0, critique asks for a fix, translate v1, second render fails
    assert provider.schemas_called() == ["TranslateResult", "CritiqueResult", "TranslateResult"]
    assert len(renderer.renders) == 1
    assert "<p>v1</p>" in result.html


@pytest.mark.parametrize("reply", [b"not json", b"[]"])
def test_unusable_render_reply_is_not_fatal(tmp_path, reply):
    page = make_pages(tmp_path / "pages", 1)[0]
    provider = FakeProvider()

    def handler(request):
        return httpx.Response(200, content=reply, headers={"content-type": "application/json"})

    renderer = HttpPageRenderer(endpoint="http://renderer.test/api/html-to-image")
    renderer._client = httpx.AsyncClient(transport=httpx.MockTransport(handler))

    result = _run_chain(provider, renderer, page, tmp_path, cycles=1)

    assert provider.schemas_called() == ["TranslateResult"]
    assert result.html == page_html(1).strip()


def test_critique_artifacts_are_written(tmp_path, fake_renderer):
    page = make_pages(tmp_path / "pages", 1)[0]

    _run_chain(FakeProvider(), fake_renderer, page, tmp_path, cycles=1)

    step_dir = tmp_path / "critique" / "page-1"
    assert (step_dir / "0.png").exists()
    assert (step_dir / "0.html").read_text(encoding="utf-8") == page_html(1).strip()
    _, width, height, _ = fake_renderer.renders[0]
    assert (width, height) == (page.width, page.height)


def test_missing_image_path_is_fatal(tmp_path, fake_renderer):
    page = Page(image_path="", page_number=3, width=10, height=10)

    with pytest.raises(StageError) as excinfo:
        _run_chain(FakeProvider(), fake_renderer, page, tmp_path, cycles=0)

    assert excinfo.value.stage_name == "translate"
    assert excinfo.value.page_number == 3


def test_empty_html_answer_is_fatal(tmp_path, fake_renderer):
    page = make_pages(tmp_path / "pages", 1)[0]
    provider = FakeProvider(script={"TranslateResult": [TranslateResult(html="   ")]})

    with pytest.raises(StageError, match="did not generate html"):
        _run_chain(provider, fake_renderer, page, tmp_path, cycles=0)


def test_provider_failure_becomes_stage_error(tmp_path, fake_renderer):
    page = make_pages(tmp_path / "pages", 1)[0]
    provider = FakeProvider(script={"TranslateResult": [ProviderError("fake", "HTTP 500: boom", 500)]})

    with pytest.raises(StageError, match="HTTP 500"):
        _run_chain(provider, fake_renderer, page, tmp_path, cycles=0)


def test_translate_finish_signals():
    page = Page(image_path="p.png", page_number=1, width=10, height=10)
    stage = TranslateStage(_config(1))

    state = ChainState(page=page, cycles=1)
    assert stage.finish(state, TranslateResult(html="<p>a</p>")) is ChainSignal.CONTINUE
    state.cycle_index = 1
    assert stage.finish(state, TranslateResult(html="<p>b</p>")) is ChainSignal.STOP
    assert state.answer == "<p>b</p>"


def test_critique_finish_signals(tmp_path):
    page = Page(image_path="p.png", page_number=1, width=10, height=10)
    stage = CritiqueStage(_config(1), FakeRenderer(), tmp_path)
    state = ChainState(page=page, cycles=1)

    assert stage.finish(state, CritiqueResult(reasoning="fine", need_correction=False)) is ChainSignal.STOP
    assert state.history == ()
    assert stage.finish(state, CritiqueResult(reasoning="fix", need_correction=True)) is ChainSignal.CONTINUE
    assert len(state.history) == 1


def test_strip_code_fences():
    assert strip_code_fences("```html\n<p>x</p>\n```") == "<p>x</p>"
    assert strip_code_fences("<p>x</p>") == "<p>x</p>"
