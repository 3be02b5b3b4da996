# gesture.py
"""Circular drag gesture -> octave offset -> frequency pair.

Rotation accumulates without bound in either direction. It is folded through a
sine so that ``sensitivity`` full turns sweep one low -> high -> low cycle
between ``min_offset`` and ``max_offset`` octaves, with no jump anywhere.
"""

import math


def pointer_angle(x, y, center_x, center_y):
    """Angle of the pointer around the knob centre, in degrees (-180, 180]."""
    return math.degrees(math.atan2(y - center_y, x - center_x))


def unwrap_delta(previous, current):
    """Signed rotation between two atan2 samples, taking the short way round."""
    delta = current - previous
    if delta > 180:
        delta -= 360
    if delta < -180:
        delta += 360
    return delta


class GestureMapper:
    def __init__(self, min_offset=-2.0, max_offset=2.0, sensitivity=4.0):
        self.min_offset = min_offset
        self.max_offset = max_offset
        self.sensitivity = sensitivity

    @property
    def midpoint(self):
        return (self.max_offset + self.min_offset) / 2

    @property
    def range(self):
        return self.max_offset - self.min_offset

    def octave_offset(self, total_angle):
        cycle = 360 * self.sensitivity
        # fmod is exact, so whole cycles land back on 0 with no rounding drift
        cycle_radians = (math.fmod(total_angle, cycle) / cycle) * 2 * math.pi
        return self.midpoint + math.sin(cycle_radians) * (self.range / 2)

    def multiplier(self, total_angle):
        return 2 ** self.octave_offset(total_angle)

    def frequencies(self, baseline, total_angle):
        return baseline.scaled(self.multiplier(total_angle))


class GestureState:
    """Accumulator for one drag, from pointer-down to pointer-up."""

    def __init__(self):
        self.reset()

    def reset(self):
        self.is_dragging = False
        self.start_angle = 0.0
        self.accumulated_angle = 0.0
        self.baseline = None

    def begin(self, angle, baseline):
        self.is_dragging = True
        self.start_angle = angle
        self.accumulated_angle = 0.0
        self.baseline = baseline

    def move(self, angle):
        self.accumulated_angle += unwrap_delta(self.start_angle, angle)
        self.start_angle = angle
        return self.accumulated_angle

    def end(self):
        total = self.accumulated_angle
        self.reset()
        return total
