# player.py
import logging
import random
import time
from dataclasses import dataclass

import state
from gesture import GestureMapper, GestureState, pointer_angle
from presets import FrequencyPair, inspiration_word, random_preset

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class Track:
    pair: FrequencyPair
    inspiration: str


class BinauralPlayer:
    """Session controller between the knob UI and the voice engine.

    Pointer coordinates are in any space, as long as the knob centre is given
    in the same one. Dragging is only possible while the voice is playing.
    """

    def __init__(self, engine, mapper=None, rng=None, clock=time.monotonic):
        s = state.shared
        self.engine = engine
        self.mapper = mapper or GestureMapper(s.min_octave_offset, s.max_octave_offset, s.rotation_sensitivity)
        self.rng = rng or random.Random()
        self.clock = clock

        self.gesture = GestureState()
        self.drag_angle = None
        self.track = None
        self._inspiration_shown_at = None

        self.new_session()

    def new_session(self):
        preset = random_preset(self.rng)
        self._set_track(preset.pair)
        logger.info("Session preset: %s (%s)", preset.name, preset.description)

    def _set_track(self, pair):
        self.track = Track(pair, inspiration_word(self.rng))
        self._inspiration_shown_at = self.clock()

    # --- Playback ---

    @property
    def is_playing(self):
        return self.engine.is_playing

    def toggle_play(self):
        if self.is_playing:
            self._drop_drag()
            self.engine.stop()
        else:
            self.engine.start(self.track.pair)
        return self.is_playing

    # --- Tuning gesture ---

    @property
    def is_tuning(self):
        return self.gesture.is_dragging

    def _drop_drag(self):
        self.gesture.reset()
        self.drag_angle = None

    def pointer_down(self, x, y, center_x, center_y):
        if not self.is_playing:
            return False
        angle = pointer_angle(x, y, center_x, center_y)
        self.gesture.begin(angle, self.track.pair)
        self.drag_angle = angle
        return True

    def pointer_move(self, x, y, center_x, center_y):
        if not self.gesture.is_dragging:
            return None
        angle = pointer_angle(x, y, center_x, center_y)
        self.drag_angle = angle

        total = self.gesture.move(angle)
        pair = self.mapper.frequencies(self.gesture.baseline, total)
        try:
            self.engine.retune(pair)
        except Exception:
            # The engine has dropped the voice, so there is nothing left to tune
            self._drop_drag()
            raise
        return pair

    def pointer_up(self):
        if not self.gesture.is_dragging:
            return None
        baseline = self.gesture.baseline
        pair = self.mapper.frequencies(baseline, self.gesture.end())
        self.drag_angle = None

        self.engine.retune(pair)
        self._set_track(pair)
        logger.info("Tuned to %.2f Hz (beat %.2f Hz)", pair.base, pair.beat)
        return pair

    pointer_cancel = pointer_up

    # --- Display ---

    @property
    def octave_offset(self):
        if not self.is_tuning:
            return 0.0
        return self.mapper.octave_offset(self.gesture.accumulated_angle)

    @property
    def ring_scale(self):
        return 1 + abs(self.octave_offset) / 5

    def inspiration_opacity(self, now=None):
        s = state.shared
        if now is None:
            now = self.clock()
        elapsed = now - self._inspiration_shown_at
        if elapsed <= s.inspiration_hold:
            return 1.0
        return max(0.0, 1.0 - (elapsed - s.inspiration_hold) / s.inspiration_fade)
