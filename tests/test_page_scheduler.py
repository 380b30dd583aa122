"""
Tests for chunked page scheduling
"""
import asyncio
import math

import pytest

from src.config import AdapterConfig
from src.core.exceptions import InputError, StageError
from src.core.page_scheduler import PageScheduler, chunk_pages, validate_pages
from src.models import Page, PageTranslation


class RecordingChain:
    """Chain double that records start/end order and can fail or sleep"""

    def __init__(self, page, events, delay=0.0, fail=False):
        self.page = page
        self.events = events
        self.delay = delay
        self.fail = fail

    async def run(self):
        self.events.append(("start", self.page.page_number))
        await asyncio.sleep(self.delay)
        if self.fail:
            raise StageError("translate", self.page.page_number, "no html")
        self.events.append(("end", self.page.page_number))
        return PageTranslation(html=f"<p>{self.page.page_number}</p>", page_info=self.page.page_info)


def _pages(count):
    return [Page(image_path=f"page-{i}.png", page_number=i, width=100, height=100) for i in range(1, count + 1)]


def _adapter(size):
    return AdapterConfig(name="fake", model="m", api_key="", simultaneous_requests=size,
                         default_cycles=0, max_cycles=1, max_retries=0)


@pytest.mark.parametrize("count,size", [(1, 1), (5, 2), (6, 3), (7, 50)])
def test_chunk_count(count, size):
    chunks = chunk_pages(_pages(count), size)
    assert len(chunks) == math.ceil(count / size)
    assert [p.page_number for chunk in chunks for p in chunk] == list(range(1, count + 1))


def test_chunks_run_strictly_in_sequence():
    events = []
    delays = {1: 0.03, 2: 0.0, 3: 0.0, 4: 0.01}
    scheduler = PageScheduler(_adapter(2), lambda page: RecordingChain(page, events, delays[page.page_number]))

    asyncio.run(scheduler.run(_pages(4)))

    last_end_of_first_chunk = max(i for i, e in enumerate(events) if e in (("end", 1), ("end", 2)))
    first_start_of_second_chunk = min(i for i, e in enumerate(events) if e in (("start", 3), ("start", 4)))
    assert last_end_of_first_chunk < first_start_of_second_chunk


def test_order_is_preserved_when_later_pages_finish_first():
    events = []
    delays = {1: 0.05, 2: 0.0, 3: 0.02}
    scheduler = PageScheduler(_adapter(3), lambda page: RecordingChain(page, events, delays[page.page_number]))

    results = asyncio.run(scheduler.run(_pages(3)))

    assert [r.page_number for r in results] == [1, 2, 3]
    assert events.index(("end", 2)) < events.index(("end", 1))


def test_progress_after_each_chunk():
    messages = []
    scheduler = PageScheduler(_adapter(2), lambda page: RecordingChain(page, []), messages.append)

    asyncio.run(scheduler.run(_pages(5)))

    assert messages == ["Translate 2/5", "Translate 4/5", "Translate 5/5"]


def test_failure_stops_remaining_chunks():
    events = []
    scheduler = PageScheduler(
        _adapter(2), lambda page: RecordingChain(page, events, fail=page.page_number == 2))

    with pytest.raises(StageError):
        asyncio.run(scheduler.run(_pages(6)))

    started = {number for kind, number in events if kind == "start"}
    assert started == {1, 2}


def test_progress_callback_errors_do_not_abort():
    def broken_callback(message):
        raise RuntimeError("listener gone")

    scheduler = PageScheduler(_adapter(1), lambda page: RecordingChain(page, []), broken_callback)
    results = asyncio.run(scheduler.run(_pages(2)))
    assert len(results) == 2


@pytest.mark.parametrize("pages", [
    [],
    [Page(image_path="a.png", page_number=2, width=1, height=1)],
    [Page(image_path="a.png", page_number=1, width=1, height=1),
     Page(image_path="b.png", page_number=3, width=1, height=1)],
    [Page(image_path="", page_number=1, width=1, height=1)],
])
def test_malformed_page_lists_are_rejected_before_scheduling(pages):
    started = []
    scheduler = PageScheduler(_adapter(2), lambda page: started.append(page))
    with pytest.raises(InputError):
        asyncio.run(scheduler.run(pages))
    assert started == []


def test_validate_pages_accepts_contiguous_list():
    validate_pages(_pages(3))
