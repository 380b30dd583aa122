"""
Per-page worker chain.

A chain drives one page through an ordered list of stages. Each stage prepares
the conversation, makes one structured model call and inspects the answer;
either hook can end the chain with ChainSignal.STOP. A full pass over the stage
list is one cycle. Hard failures are raised as StageError and end the chain
(and the document run) immediately.
"""
import logging
from abc import ABC, abstractmethod
from dataclasses import dataclass
from enum import Enum
from typing import List, Optional, Sequence, Tuple, Type

from pydantic import BaseModel

from src.core.exceptions import StageError
from src.core.llm import LLMProvider, ProviderError, system_message
from src.core.llm.messages import Message
from src.models import Page, PageTranslation

logger = logging.getLogger(__name__)


class ChainSignal(Enum):
    CONTINUE = "continue"
    STOP = "stop"


@dataclass
class ChainState:
    """
    State of one chain run, created fresh for every page.

    The history is a tuple that only ever grows through append(); turns are
    never edited once added.
    """
    page: Page
    cycles: int
    history: Tuple[Message, ...] = ()
    cycle_index: int = 0
    answer: Optional[str] = None

    def append(self, message: Message):
        self.history = self.history + (message,)


class WorkerStage(ABC):
    """One named step of a chain with its own prompt and output schema"""

    name: str = "stage"
    output_model: Type[BaseModel]

    @abstractmethod
    def build_system_prompt(self, state: ChainState) -> str:
        ...

    @abstractmethod
    async def prepare(self, state: ChainState) -> ChainSignal:
        """Append the turn(s) for this stage's model call, or STOP before calling"""

    @abstractmethod
    def finish(self, state: ChainState, result: BaseModel) -> ChainSignal:
        """Inspect the validated answer and update the state"""

    def fail(self, state: ChainState, message: str) -> StageError:
        return StageError(self.name, state.page.page_number, message)


class WorkerChain:
    """
    Runs the stages of one page until a stage stops the chain.

    Args:
        provider: Model provider used for every stage call
        stages: Ordered stage list; the first stage must produce the answer
        page: Page to process
        cycles: Number of correction cycles allowed after the first answer
    """

    def __init__(self, provider: LLMProvider, stages: Sequence[WorkerStage], page: Page, cycles: int = 0):
        if not stages:
            raise ValueError("A worker chain needs at least one stage")
        self.provider = provider
        self.stages: List[WorkerStage] = list(stages)
        self.page = page
        self.cycles = max(0, cycles)

    async def run(self) -> PageTranslation:
        """
        Returns:
            The last successful answer with the page info

        Raises:
            StageError: If a stage precondition failed or the model gave no usable answer
        """
        state = ChainState(page=self.page, cycles=self.cycles)
        page_number = self.page.page_number

        while True:
            for stage in self.stages:
                signal = await stage.prepare(state)
                if signal is ChainSignal.STOP:
                    logger.debug(f"Page {page_number}: {stage.name} stopped the chain before its call "
                                 f"(cycle {state.cycle_index})")
                    return self._result(state)

                messages = [system_message(stage.build_system_prompt(state))] + list(state.history)
                try:
                    result = await self.provider.generate_object(messages, stage.output_model)
                except ProviderError as e:
                    raise StageError(stage.name, page_number, str(e)) from e

                signal = stage.finish(state, result)
                if signal is ChainSignal.STOP:
                    logger.debug(f"Page {page_number}: chain done after {stage.name} (cycle {state.cycle_index})")
                    return self._result(state)

            state.cycle_index += 1
            logger.info(f"Page {page_number}: starting correction cycle {state.cycle_index}")

    def _result(self, state: ChainState) -> PageTranslation:
        if state.answer is None:
            raise StageError(self.stages[0].name, state.page.page_number, "chain stopped without an answer")
        return PageTranslation(html=state.answer, page_info=state.page.page_info)
