# audio_context.py
"""Block-rendering audio graph on top of a PyAudio output stream.

Everything is scheduled against the context clock (seconds of audio rendered
so far). Control code schedules parameter automation and source start/stop
times; the stream callback renders whatever is connected, one block at a time.
"""

import logging
import threading
from collections import namedtuple

import numpy as np

import state

logger = logging.getLogger(__name__)

SUSPENDED = "suspended"
RUNNING = "running"
CLOSED = "closed"

SET = "set"
LINEAR = "linear"
EXPONENTIAL = "exponential"

Event = namedtuple("Event", "kind value time")


class AudioUnavailableError(RuntimeError):
    """The platform could not provide an audio output."""


class AudioParam:
    """A value automated over time by an ordered list of events.

    Ramp events describe the value *reached* at their time, starting from the
    event before them, so a ramp always needs an earlier anchor.
    """

    def __init__(self, default_value):
        self.default_value = float(default_value)
        self._events = []

    @property
    def events(self):
        return list(self._events)

    def _insert(self, event):
        # Copy-on-write: the render thread may be iterating the old list
        events = self._events + [event]
        events.sort(key=lambda e: e.time)
        self._events = events

    def _anchor(self, when):
        value = self.default_value
        for event in self._events:
            if event.time >= when:
                break
            value = event.value
        return value

    def set_value_at_time(self, value, when):
        self._insert(Event(SET, float(value), float(when)))

    def linear_ramp_to_value_at_time(self, value, when):
        self._insert(Event(LINEAR, float(value), float(when)))

    def exponential_ramp_to_value_at_time(self, value, when):
        if value <= 0:
            raise ValueError(f"Exponential ramp target must be positive, got {value}")
        anchor = self._anchor(when)
        if anchor <= 0:
            raise ValueError(f"Exponential ramp must start from a positive value, got {anchor}")
        self._insert(Event(EXPONENTIAL, float(value), float(when)))

    def cancel_scheduled_values(self, when):
        self._events = [e for e in self._events if e.time < when]

    def cancel_and_hold_at_time(self, when):
        held = self.value_at(when)
        self._events = [e for e in self._events if e.time < when] + [Event(SET, held, float(when))]
        return held

    def ramp_from(self, when, start, kind, value, end):
        """Replace the whole timeline with ``start`` at ``when`` ramping to ``value`` at ``end``.

        Nothing before ``when`` is kept, so repeated retunes never grow the
        timeline. The new timeline is published in a single assignment.
        """
        if kind == EXPONENTIAL and (start <= 0 or value <= 0):
            raise ValueError(f"Exponential ramp needs positive values, got {start} -> {value}")
        self._events = [Event(SET, float(start), float(when)), Event(kind, float(value), float(end))]

    def hold_then_ramp(self, when, kind, value, end):
        held = self.value_at(when)
        self.ramp_from(when, held, kind, value, end)
        return held

    def value_at(self, when):
        return float(self.values(np.array([float(when)]))[0])

    def values(self, times):
        events = self._events
        out = np.full(len(times), self.default_value, dtype=np.float64)
        if not events:
            return out

        event_times = np.array([e.time for e in events])
        # Index of the last event at or before each sample
        index = np.searchsorted(event_times, times, side="right") - 1

        for i, anchor in enumerate(events):
            mask = index == i
            if not mask.any():
                continue
            following = events[i + 1] if i + 1 < len(events) else None
            if following is None or following.kind == SET:
                out[mask] = anchor.value
                continue

            frac = (times[mask] - anchor.time) / (following.time - anchor.time)
            if following.kind == LINEAR:
                out[mask] = anchor.value + (following.value - anchor.value) * frac
            else:
                out[mask] = anchor.value * (following.value / anchor.value) ** frac
        return out


class Oscillator:
    """Phase-continuous sine source."""

    def __init__(self, frequency):
        self.frequency = AudioParam(frequency)
        self.start_time = None
        self.stop_time = None
        self._phase = 0.0

    def start(self, when):
        self.start_time = when

    def stop(self, when):
        self.stop_time = when

    def render(self, times, sample_rate):
        if self.start_time is None or len(times) == 0:
            return np.zeros(len(times))

        active = times >= self.start_time
        if self.stop_time is not None:
            active &= times < self.stop_time

        phase_inc = 2 * np.pi * self.frequency.values(times) / sample_rate * active
        phases = self._phase + np.cumsum(phase_inc) - phase_inc
        self._phase = float((phases[-1] + phase_inc[-1]) % (2 * np.pi))

        return np.sin(phases) * active


class StereoPanner:
    """Equal-power pan of a mono signal: -1 is hard left, +1 hard right."""

    def __init__(self, pan):
        self.pan = pan

    def process(self, mono):
        norm_pan = (self.pan + 1) / 2.0
        angle = norm_pan * (np.pi / 2)

        stereo = np.empty((len(mono), 2))
        stereo[:, 0] = mono * np.cos(angle)
        stereo[:, 1] = mono * np.sin(angle)
        return stereo


class GainStage:
    def __init__(self, gain=1.0):
        self.gain = AudioParam(gain)

    def process(self, stereo, times):
        return stereo * self.gain.values(times)[:, np.newaxis]


class PyAudioBackend:
    """Float32 stereo output stream pulling blocks from a render function."""

    def __init__(self, sample_rate, buffer_size):
        self.sample_rate = sample_rate
        self.buffer_size = buffer_size
        self.p = None
        self.stream = None

    def open(self, render):
        import pyaudio

        def callback(in_data, frame_count, time_info, status):
            return (render(frame_count).tobytes(), pyaudio.paContinue)

        self.p = pyaudio.PyAudio()
        self.stream = self.p.open(
            format=pyaudio.paFloat32,
            channels=2,
            rate=self.sample_rate,
            output=True,
            frames_per_buffer=self.buffer_size,
            stream_callback=callback,
            start=False,
        )

    def start(self):
        self.stream.start_stream()

    def stop(self):
        self.stream.stop_stream()

    def close(self):
        if self.stream is not None:
            self.stream.stop_stream()
            self.stream.close()
        if self.p is not None:
            self.p.terminate()


class AudioContext:
    """Owns the output stream, the clock, and the set of connected sources.

    A source is anything with ``render(times, sample_rate)`` returning a
    ``(frames, 2)`` array and ``finished(when)``. Finished sources are
    disconnected after the block in which they end.
    """

    def __init__(self, backend=None, sample_rate=None, buffer_size=None):
        s = state.shared
        self.sample_rate = sample_rate or s.sample_rate
        self.buffer_size = buffer_size or s.buffer_size
        self.state = SUSPENDED

        self._frames = 0
        self._sources = []
        self._lock = threading.Lock()
        self.last_samples = np.zeros(self.buffer_size)

        if backend is None:
            backend = PyAudioBackend(self.sample_rate, self.buffer_size)
        self._backend = backend
        try:
            self._backend.open(self.render)
        except (ImportError, OSError) as exc:
            raise AudioUnavailableError(f"Audio output unavailable: {exc}") from exc

        logger.info("Audio context opened (%d Hz, %d frame buffer)", self.sample_rate, self.buffer_size)

    @property
    def current_time(self):
        return self._frames / self.sample_rate

    @property
    def sources(self):
        with self._lock:
            return list(self._sources)

    def resume(self):
        if self.state == CLOSED:
            raise AudioUnavailableError("Audio context is closed")
        if self.state == RUNNING:
            return
        try:
            self._backend.start()
        except OSError as exc:
            raise AudioUnavailableError(f"Audio output could not start: {exc}") from exc
        self.state = RUNNING
        logger.info("Audio context resumed at %.3fs", self.current_time)

    def suspend(self):
        if self.state != RUNNING:
            return
        self._backend.stop()
        self.state = SUSPENDED
        logger.info("Audio context suspended at %.3fs", self.current_time)

    def close(self):
        if self.state == CLOSED:
            return
        self._backend.close()
        self.state = CLOSED
        with self._lock:
            self._sources = []
        logger.info("Audio context closed")

    def connect(self, source):
        with self._lock:
            self._sources = self._sources + [source]

    def disconnect(self, source):
        with self._lock:
            self._sources = [s for s in self._sources if s is not source]

    def render(self, frame_count):
        times = (self._frames + np.arange(frame_count)) / self.sample_rate
        with self._lock:
            sources = self._sources

        mix = np.zeros((frame_count, 2))
        for source in sources:
            mix += source.render(times, self.sample_rate)

        self._frames += frame_count
        end = self.current_time
        with self._lock:
            self._sources = [s for s in self._sources if not s.finished(end)]

        # Save for Visuals
        self.last_samples = mix.mean(axis=1)

        return np.clip(mix, -1.0, 1.0).astype(np.float32)
