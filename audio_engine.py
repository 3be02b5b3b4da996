# audio_engine.py
import logging

import state
from audio_context import (
    CLOSED,
    EXPONENTIAL,
    LINEAR,
    SUSPENDED,
    AudioContext,
    GainStage,
    Oscillator,
    StereoPanner,
)

logger = logging.getLogger(__name__)

IDLE = "idle"
ACTIVE = "active"
FADING_OUT = "fading_out"


class Voice:
    """Binaural voice: base tone hard left, base + beat hard right."""

    def __init__(self, pair, when):
        self.pair = pair
        self.left = Oscillator(pair.base)
        self.right = Oscillator(pair.right)
        self.left_pan = StereoPanner(-1.0)
        self.right_pan = StereoPanner(1.0)
        self.output = GainStage(0.0)
        self.stop_time = None

        self.left.frequency.set_value_at_time(pair.base, when)
        self.right.frequency.set_value_at_time(pair.right, when)

    def fade_in(self, when, level, duration):
        gain = self.output.gain
        gain.set_value_at_time(0.0, when)
        gain.linear_ramp_to_value_at_time(level, when + duration)

    def start(self, when):
        self.left.start(when)
        self.right.start(when)

    def retune(self, pair, when, ramp):
        self.pair = pair
        for osc, frequency in ((self.left, pair.base), (self.right, pair.right)):
            # Glide on from wherever the previous glide got to
            osc.frequency.hold_then_ramp(when, LINEAR, frequency, when + ramp)

    def release(self, when, duration, floor):
        gain = self.output.gain
        held = max(gain.value_at(when), floor)
        gain.ramp_from(when, held, EXPONENTIAL, floor, when + duration)

        self.stop_time = when + duration
        self.left.stop(self.stop_time)
        self.right.stop(self.stop_time)

    def render(self, times, sample_rate):
        mix = self.left_pan.process(self.left.render(times, sample_rate))
        mix += self.right_pan.process(self.right.render(times, sample_rate))
        return self.output.process(mix, times)

    def finished(self, when):
        return self.stop_time is not None and when >= self.stop_time


class AudioVoiceEngine:
    """Starts, retunes and stops the one live voice.

    The audio context is created on the first start and reused afterwards.
    ``context_factory`` lets callers provide a context with another backend.
    """

    def __init__(self, context_factory=AudioContext):
        self._context_factory = context_factory
        self._context = None
        self._voice = None
        self._released = []

    @property
    def context(self):
        return self._context

    @property
    def voice(self):
        return self._voice

    @property
    def is_playing(self):
        return self._voice is not None

    @property
    def state(self):
        if self._voice is not None:
            return ACTIVE
        if self._context is not None:
            now = self._context.current_time
            if any(not v.finished(now) for v in self._released):
                return FADING_OUT
        return IDLE

    @property
    def last_samples(self):
        if self._context is None:
            return None
        return self._context.last_samples

    def _ensure_context(self):
        if self._context is None or self._context.state == CLOSED:
            self._context = self._context_factory()
        if self._context.state == SUSPENDED:
            self._context.resume()
        return self._context

    def start(self, pair):
        context = self._ensure_context()
        self._replace_voice(context, pair)

    def _replace_voice(self, context, pair):
        s = state.shared
        now = context.current_time

        previous, self._voice = self._voice, None
        stale = [v for v in self._released + [previous] if v is not None]
        self._released = []
        try:
            if previous is not None:
                previous.release(now, s.release, s.gain_floor)
        except Exception:
            logger.exception("Release failed, dropping previous voice")
            raise
        finally:
            # Old voices keep their scheduled stop but leave the graph now
            for voice in stale:
                context.disconnect(voice)

        voice = Voice(pair, now)
        voice.fade_in(now, s.master_gain, s.fade_in)
        voice.start(now)
        context.connect(voice)
        self._voice = voice

        logger.info("Voice started: L %.2f Hz / R %.2f Hz (beat %.2f Hz)", pair.base, pair.right, pair.beat)

    def retune(self, pair):
        voice = self._voice
        if voice is None:
            return
        try:
            voice.retune(pair, self._context.current_time, state.shared.retune_ramp)
        except Exception:
            logger.exception("Retune failed, dropping voice")
            self._abandon(voice)
            raise
        logger.debug("Retune: L %.2f Hz / R %.2f Hz", pair.base, pair.right)

    def stop(self):
        voice, self._voice = self._voice, None
        if voice is None:
            return
        s = state.shared
        try:
            voice.release(self._context.current_time, s.release, s.gain_floor)
        except Exception:
            logger.exception("Release failed, dropping voice")
            self._abandon(voice)
            raise
        now = self._context.current_time
        self._released = [v for v in self._released if not v.finished(now)] + [voice]
        logger.info("Voice released over %.2fs", s.release)

    def _abandon(self, voice):
        self._voice = None
        self._context.disconnect(voice)

    def shutdown(self):
        if self._context is not None:
            self._context.close()
        self._context = None
        self._voice = None
        self._released = []
