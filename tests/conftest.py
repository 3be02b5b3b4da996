import pytest

import state
from audio_context import AudioContext, AudioParam
from audio_engine import AudioVoiceEngine


class FakeBackend:
    """Stands in for the PyAudio stream; tests pull blocks with render()."""

    def __init__(self, fail_on_open=False):
        self.fail_on_open = fail_on_open
        self.render = None
        self.started = False
        self.closed = False

    def open(self, render):
        if self.fail_on_open:
            raise OSError("No Default Output Device Available")
        self.render = render

    def start(self):
        self.started = True

    def stop(self):
        self.started = False

    def close(self):
        self.started = False
        self.closed = True


class RecordingParam(AudioParam):
    """Keeps every timeline the render thread could have picked up."""

    def __init__(self, default_value):
        self.published = []
        super().__init__(default_value)

    def __setattr__(self, name, value):
        if name == "_events":
            self.published.append(list(value))
        super().__setattr__(name, value)

    def value_in(self, timeline, when):
        snapshot = AudioParam(self.default_value)
        for event in timeline:
            snapshot._insert(event)
        return snapshot.value_at(when)


@pytest.fixture(autouse=True)
def fresh_state():
    state.shared = state.AppState()
    yield state.shared


@pytest.fixture
def backend():
    return FakeBackend()


@pytest.fixture
def context(backend):
    return AudioContext(backend=backend)


@pytest.fixture
def make_backend():
    return FakeBackend


@pytest.fixture
def engine():
    contexts = []

    def factory():
        ctx = AudioContext(backend=FakeBackend())
        contexts.append(ctx)
        return ctx

    eng = AudioVoiceEngine(context_factory=factory)
    eng.created_contexts = contexts
    return eng


@pytest.fixture
def advance():
    def _advance(context, seconds):
        """Render enough frames to move the context clock forward."""
        return context.render(int(round(seconds * context.sample_rate)))

    return _advance


@pytest.fixture
def recording_param():
    return RecordingParam
