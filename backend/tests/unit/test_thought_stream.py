"""Unit tests for the thought stream controller."""

from __future__ import annotations

import asyncio
import json
from pathlib import Path
from typing import Any, Callable, List, Optional, Sequence

import pytest

from backend.src.models.thought import StreamEvent, StreamState
from backend.src.services.generation import GenerationError, GenerationResult
from backend.src.services.thought_stream import (
    GENERATION_STOPPED,
    StreamSession,
    ThoughtStreamController,
    normalize_entry,
)

FILE_PATH = Path("/sandbox/proj1/README.md")


def batch(*contents: str, kinds: Sequence[str] = ("analysis", "suggestion", "question")) -> str:
    entries = [
        {"type": kinds[i % len(kinds)], "content": content} for i, content in enumerate(contents)
    ]
    return "Here you go:\n" + json.dumps(entries)


class ScriptedGenerator:
    """Returns canned outputs and records prompts; hooks run per call number."""

    def __init__(
        self,
        outputs: Optional[Callable[[int], str]] = None,
        on_call: Optional[Callable[[int], Any]] = None,
    ) -> None:
        self.outputs = outputs or (lambda n: batch(f"a{n}", f"s{n}", f"q{n}"))
        self.on_call = on_call
        self.prompts: List[str] = []

    @property
    def calls(self) -> int:
        return len(self.prompts)

    async def generate(self, prompt: str) -> GenerationResult:
        self.prompts.append(prompt)
        if self.on_call is not None:
            outcome = self.on_call(self.calls)
            if asyncio.iscoroutine(outcome):
                await outcome
        return GenerationResult(stdout=self.outputs(self.calls))


class RecordingBuilder:
    """Prompt builder stub that snapshots the history it was given."""

    def __init__(self) -> None:
        self.histories: List[List[dict]] = []

    def build(self, file_path, history) -> str:
        self.histories.append([dict(entry) for entry in history][-3:])
        return f"prompt {len(self.histories)}"


class Disconnect:
    def __init__(self) -> None:
        self.gone = False

    async def __call__(self) -> bool:
        return self.gone


async def no_sleep(_: float) -> None:
    return None


def make_controller(generator, **kwargs) -> ThoughtStreamController:
    kwargs.setdefault("prompt_builder", RecordingBuilder())
    kwargs.setdefault("sleep", no_sleep)
    return ThoughtStreamController(generator, **kwargs)


async def collect(controller, session, is_disconnected=None) -> List[StreamEvent]:
    return [event async for event in controller.stream(session, is_disconnected)]


def thoughts_of(events: List[StreamEvent]):
    return [event.thought for event in events if event.thought is not None]


class TestFullSession:
    @pytest.mark.asyncio
    async def test_ten_iterations_then_done(self) -> None:
        generator = ScriptedGenerator()
        controller = make_controller(generator)
        session = controller.open_session(FILE_PATH)

        events = await collect(controller, session)

        thoughts = thoughts_of(events)
        assert len(thoughts) == 30
        assert generator.calls == 10
        assert events[-1].model_dump(exclude_none=True) == {"done": True}
        assert [e for e in events if e.done] == [events[-1]]
        assert session.state is StreamState.COMPLETED
        assert session.iteration == 10
        assert [t.iteration for t in thoughts] == [i for i in range(1, 11) for _ in range(3)]

    @pytest.mark.asyncio
    async def test_ids_are_contiguous_across_uneven_batches(self) -> None:
        sizes = {1: 1, 2: 4, 3: 2}
        generator = ScriptedGenerator(
            outputs=lambda n: batch(*[f"t{n}.{i}" for i in range(sizes[n])])
        )
        controller = make_controller(generator, max_iterations=3)
        session = controller.open_session(FILE_PATH)

        thoughts = thoughts_of(await collect(controller, session))

        assert [t.id for t in thoughts] == list(range(1, 8))
        assert [t.iteration for t in thoughts] == [1, 2, 2, 2, 2, 3, 3]

    @pytest.mark.asyncio
    async def test_batch_order_is_preserved(self) -> None:
        generator = ScriptedGenerator(
            outputs=lambda n: batch("third", "first", "second", kinds=("question", "analysis", "suggestion"))
        )
        controller = make_controller(generator, max_iterations=1)

        thoughts = thoughts_of(await collect(controller, controller.open_session(FILE_PATH)))

        assert [(t.type, t.content) for t in thoughts] == [
            ("question", "third"),
            ("analysis", "first"),
            ("suggestion", "second"),
        ]

    @pytest.mark.asyncio
    async def test_unparseable_output_emits_single_fallback_thought(self) -> None:
        generator = ScriptedGenerator(outputs=lambda n: "" if n == 1 else "plain words")
        controller = make_controller(generator, max_iterations=2)

        thoughts = thoughts_of(await collect(controller, controller.open_session(FILE_PATH)))

        assert [(t.id, t.type, t.content) for t in thoughts] == [
            (1, "analysis", "Continuing analysis..."),
            (2, "analysis", "plain words"),
        ]

    @pytest.mark.asyncio
    async def test_thought_event_shape(self) -> None:
        controller = make_controller(ScriptedGenerator(), max_iterations=1)

        events = await collect(controller, controller.open_session(FILE_PATH))

        payload = json.loads(events[0].to_json())
        assert set(payload) == {"thought"}
        assert set(payload["thought"]) == {"id", "type", "content", "timestamp", "iteration"}
        assert payload["thought"]["content"] == "a1"


class TestHistory:
    @pytest.mark.asyncio
    async def test_prompts_see_only_previous_iterations(self) -> None:
        builder = RecordingBuilder()
        controller = make_controller(ScriptedGenerator(), prompt_builder=builder, max_iterations=3)
        session = controller.open_session(FILE_PATH)

        await collect(controller, session)

        assert builder.histories[0] == []
        assert [e["content"] for e in builder.histories[1]] == ["a1", "s1", "q1"]
        assert [e["content"] for e in builder.histories[2]] == ["a2", "s2", "q2"]
        assert len(session.history) == 9
        assert session.history[-1] == {"type": "question", "content": "q3"}

    @pytest.mark.asyncio
    async def test_prompt_builder_output_reaches_generator(self) -> None:
        generator = ScriptedGenerator()
        controller = make_controller(generator, max_iterations=2)

        await collect(controller, controller.open_session(FILE_PATH))

        assert generator.prompts == ["prompt 1", "prompt 2"]


class TestPacing:
    @pytest.mark.asyncio
    async def test_pauses_between_thoughts_and_iterations(self) -> None:
        delays: List[float] = []

        async def record_sleep(delay: float) -> None:
            delays.append(delay)

        controller = make_controller(
            ScriptedGenerator(),
            max_iterations=2,
            thought_delay=0.5,
            iteration_delay=2.0,
            sleep=record_sleep,
        )

        await collect(controller, controller.open_session(FILE_PATH))

        assert delays == [0.5, 0.5, 0.5, 2.0, 0.5, 0.5, 0.5]

    @pytest.mark.asyncio
    async def test_zero_delays_skip_sleeping(self) -> None:
        delays: List[float] = []

        async def record_sleep(delay: float) -> None:
            delays.append(delay)

        controller = make_controller(
            ScriptedGenerator(), max_iterations=2, thought_delay=0, iteration_delay=0,
            sleep=record_sleep,
        )

        await collect(controller, controller.open_session(FILE_PATH))

        assert delays == []


class TestFailures:
    @pytest.mark.asyncio
    async def test_generation_failure_aborts_without_retry(self) -> None:
        def fail_third(n: int) -> None:
            if n == 3:
                raise GenerationError("boom", {"returncode": 1})

        generator = ScriptedGenerator(on_call=fail_third)
        controller = make_controller(generator)
        session = controller.open_session(FILE_PATH)

        events = await collect(controller, session)

        assert len(thoughts_of(events)) == 6
        assert events[-1].model_dump(exclude_none=True) == {
            "error": GENERATION_STOPPED,
            "done": True,
        }
        assert generator.calls == 3
        assert session.state is StreamState.ABORTED

    @pytest.mark.asyncio
    async def test_unexpected_error_is_contained(self) -> None:
        def exploding_parser(text: str):
            raise RuntimeError("parser bug")

        controller = make_controller(ScriptedGenerator(), parser=exploding_parser)
        session = controller.open_session(FILE_PATH)

        events = await collect(controller, session)

        assert [e.model_dump(exclude_none=True) for e in events] == [
            {"error": "Generation stopped", "done": True}
        ]
        assert session.state is StreamState.ABORTED


class TestDisconnect:
    @pytest.mark.asyncio
    async def test_disconnect_during_second_generation_stops_before_third(self) -> None:
        disconnect = Disconnect()

        def drop_on_second(n: int) -> None:
            if n == 2:
                disconnect.gone = True

        generator = ScriptedGenerator(on_call=drop_on_second)
        controller = make_controller(generator)
        session = controller.open_session(FILE_PATH)

        events = await collect(controller, session, disconnect)

        assert [t.iteration for t in thoughts_of(events)] == [1, 1, 1]
        assert not any(e.done for e in events)
        assert generator.calls == 2
        assert session.state is StreamState.DISCONNECTED

    @pytest.mark.asyncio
    async def test_disconnect_during_iteration_pause(self) -> None:
        disconnect = Disconnect()

        async def sleep(delay: float) -> None:
            if delay == 2.0 and session.iteration == 2:
                disconnect.gone = True

        generator = ScriptedGenerator()
        controller = make_controller(generator, sleep=sleep)
        session = controller.open_session(FILE_PATH)

        events = await collect(controller, session, disconnect)

        assert max(t.iteration for t in thoughts_of(events)) == 2
        assert len(events) == 6
        assert generator.calls == 2
        assert session.state is StreamState.DISCONNECTED

    @pytest.mark.asyncio
    async def test_disconnect_mid_batch_stops_emitting(self) -> None:
        disconnect = Disconnect()

        async def sleep(delay: float) -> None:
            if session.emitted == 2:
                disconnect.gone = True

        controller = make_controller(ScriptedGenerator(), sleep=sleep)
        session = controller.open_session(FILE_PATH)

        events = await collect(controller, session, disconnect)

        assert [t.id for t in thoughts_of(events)] == [1, 2]
        assert session.state is StreamState.DISCONNECTED

    @pytest.mark.asyncio
    async def test_aclose_marks_session_disconnected(self) -> None:
        generator = ScriptedGenerator()
        controller = make_controller(generator)
        session = controller.open_session(FILE_PATH)

        stream = controller.stream(session)
        first = await stream.__anext__()
        await stream.aclose()

        assert first.thought.id == 1
        assert session.state is StreamState.DISCONNECTED
        assert generator.calls == 1

    @pytest.mark.asyncio
    async def test_cancellation_while_generating(self) -> None:
        started = asyncio.Event()

        async def hang(n: int) -> None:
            started.set()
            await asyncio.Event().wait()

        controller = make_controller(ScriptedGenerator(on_call=hang))
        session = controller.open_session(FILE_PATH)
        task = asyncio.create_task(collect(controller, session))

        await asyncio.wait_for(started.wait(), timeout=2)
        task.cancel()

        with pytest.raises(asyncio.CancelledError):
            await task
        assert session.state is StreamState.DISCONNECTED


class TestSessions:
    @pytest.mark.asyncio
    async def test_concurrent_sessions_are_isolated(self) -> None:
        async def yield_control(_: float) -> None:
            await asyncio.sleep(0)

        controller = make_controller(ScriptedGenerator(), max_iterations=3, sleep=yield_control)
        first = controller.open_session(Path("/p/a.md"))
        second = controller.open_session(Path("/p/b.md"))

        events_a, events_b = await asyncio.gather(
            collect(controller, first), collect(controller, second)
        )

        assert [t.id for t in thoughts_of(events_a)] == list(range(1, 10))
        assert [t.id for t in thoughts_of(events_b)] == list(range(1, 10))
        assert first.history is not second.history

    def test_new_session_starts_idle(self) -> None:
        session = StreamSession(file_path=FILE_PATH)

        assert session.state is StreamState.IDLE
        assert session.iteration == 0
        assert session.next_id == 1
        assert session.history == []


@pytest.mark.parametrize(
    "entry, expected",
    [
        ({"type": "question", "content": "Why?"}, {"type": "question", "content": "Why?"}),
        ({"type": "rant", "content": "x"}, {"type": "analysis", "content": "x"}),
        ({"content": "no type"}, {"type": "analysis", "content": "no type"}),
        ({"type": "suggestion"}, {"type": "suggestion", "content": ""}),
        ({"type": "analysis", "content": 42}, {"type": "analysis", "content": "42"}),
        ("bare string", {"type": "analysis", "content": "bare string"}),
        ([1, 2], {"type": "analysis", "content": "[1, 2]"}),
    ],
)
def test_normalize_entry(entry, expected) -> None:
    assert normalize_entry(entry) == expected
