"""
Translate and critique stages of the page chain.
"""
import logging
import re
from pathlib import Path
from typing import List, Optional, Union

import aiofiles
from pydantic import BaseModel, Field

from prompts.prompts import (PageContext, generate_correction_request,
                             generate_critique_prompt, generate_translation_prompt)
from src.config import TranslationConfig
from src.core.exceptions import AssemblyError, RenderError
from src.core.html import HtmlAssembler
from src.core.llm import assistant_message, user_message
from src.core.rendering import PageRenderer
from src.models import PageTranslation
from .worker_chain import ChainSignal, ChainState, WorkerStage

logger = logging.getLogger(__name__)

_CODE_FENCE = re.compile(r"^\s*```[a-zA-Z]*\s*\n?|\n?\s*```\s*$")

CRITIQUE_DIR = "critique"


class TranslateResult(BaseModel):
    """Translated page"""
    html: str = Field(description="Pure HTML response")


class CritiqueResult(BaseModel):
    """Quality review of the rendered translation"""
    reasoning: str = Field(description="Quality review of the rendered page")
    need_correction: bool


def strip_code_fences(html: str) -> str:
    """Remove a markdown fence wrapped around the whole answer"""
    return _CODE_FENCE.sub("", html).strip()


def page_context(state: ChainState, config: TranslationConfig) -> PageContext:
    document_type = config.document_type or {}
    return PageContext(
        page_number=state.page.page_number,
        width=state.page.width,
        height=state.page.height,
        language=config.language,
        user_prompt=config.prompt,
        glossary=document_type.get('glossary'),
        style_guidance=document_type.get('styleGuidance'),
        examples=document_type.get('examples'),
    )


class TranslateStage(WorkerStage):
    """Scan image in, translated page HTML out"""

    name = "translate"
    output_model = TranslateResult

    def __init__(self, config: TranslationConfig):
        self.config = config

    def build_system_prompt(self, state: ChainState) -> str:
        return generate_translation_prompt(page_context(state, self.config))

    async def prepare(self, state: ChainState) -> ChainSignal:
        if not state.page.image_path:
            raise self.fail(state, "Image of the page is required")
        if state.cycle_index == 0:
            state.append(user_message(image=state.page.image_path))
        else:
            state.append(user_message(text=generate_correction_request(state.cycle_index)))
        return ChainSignal.CONTINUE

    def finish(self, state: ChainState, result: TranslateResult) -> ChainSignal:
        html = strip_code_fences(result.html or "")
        if not html:
            raise self.fail(state, "The model did not generate html")

        state.answer = html
        state.append(assistant_message(html))

        if state.cycles == 0 or state.cycle_index == state.cycles:
            return ChainSignal.STOP
        return ChainSignal.CONTINUE


class CritiqueStage(WorkerStage):
    """
    Renders the current answer at the page size and asks the model whether it
    needs another correction round.

    Screenshots and the HTML they were rendered from are kept under
    <process_dir>/critique/page-N/<cycle>.png|.html.
    """

    name = "critique"
    output_model = CritiqueResult

    def __init__(self, config: TranslationConfig, renderer: PageRenderer,
                 process_dir: Union[str, Path], assembler: Optional[HtmlAssembler] = None):
        self.config = config
        self.renderer = renderer
        self.process_dir = Path(process_dir)
        self.assembler = assembler or HtmlAssembler()

    def build_system_prompt(self, state: ChainState) -> str:
        return generate_critique_prompt(page_context(state, self.config))

    def step_dir(self, state: ChainState) -> Path:
        return self.process_dir / CRITIQUE_DIR / f"page-{state.page.page_number}"

    async def prepare(self, state: ChainState) -> ChainSignal:
        page = state.page
        step_dir = self.step_dir(state)
        screenshot_path = step_dir / f"{state.cycle_index}.png"
        try:
            step_dir.mkdir(parents=True, exist_ok=True)
            document = self.assembler.join([PageTranslation(html=state.answer or "", page_info=page.page_info)])
            image_path = await self.renderer.render(document, page.width, page.height, screenshot_path)
            async with aiofiles.open(step_dir / f"{state.cycle_index}.html", "w", encoding="utf-8") as f:
                await f.write(state.answer or "")
        except (RenderError, AssemblyError, OSError) as e:
            logger.warning(f"Page {page.page_number}: could not render the answer for review ({e}), "
                           f"keeping the last translation")
            return ChainSignal.STOP

        state.append(user_message(image=str(image_path)))
        return ChainSignal.CONTINUE

    def finish(self, state: ChainState, result: CritiqueResult) -> ChainSignal:
        if not result.need_correction:
            return ChainSignal.STOP
        logger.info(f"Page {state.page.page_number}: review asked for corrections (cycle {state.cycle_index})")
        state.append(assistant_message(f"{result.reasoning}. Need correction: True"))
        return ChainSignal.CONTINUE


def build_default_stages(config: TranslationConfig, renderer: PageRenderer,
                         process_dir: Union[str, Path]) -> List[WorkerStage]:
    """Translate then critique, the stage list used for every page"""
    return [TranslateStage(config), CritiqueStage(config, renderer, process_dir)]
