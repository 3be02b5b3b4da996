# presets.py
import random
from dataclasses import dataclass


@dataclass(frozen=True)
class FrequencyPair:
    """Left tone (base) and the offset of the right tone (beat), in Hz."""

    base: float
    beat: float

    @property
    def right(self) -> float:
        return self.base + self.beat

    def scaled(self, multiplier: float) -> "FrequencyPair":
        # Both tones move together so the beat/base ratio never changes
        return FrequencyPair(self.base * multiplier, self.beat * multiplier)


@dataclass(frozen=True)
class Preset:
    name: str
    pair: FrequencyPair
    description: str


# Brainwave bands
BINAURAL_PRESETS = [
    Preset("Delta", FrequencyPair(136.1, 3.0), "Deep Sleep & Restoration"),
    Preset("Theta", FrequencyPair(140.25, 6.0), "Meditation & Intuition"),
    Preset("Alpha", FrequencyPair(126.22, 10.0), "Relaxed Focus & Calm"),
    Preset("Beta", FrequencyPair(132.0, 18.0), "Alertness & Concentration"),
    Preset("Gamma", FrequencyPair(144.72, 35.0), "Peak Awareness & Insight"),
]

INSPIRATION_WORDS = [
    "Stillness", "Flow", "Source", "Unfold", "Listen", "Breathe", "Resonance",
    "Echo", "Bloom", "Drift", "Calm", "Deep", "Quiet", "Aware", "Present",
    "Open", "Release", "Emerge", "Reflect", "Wander", "Center", "Ground",
    "Peace", "Clarity", "Expand", "Surrender", "Balance", "Harmony", "Ripple",
    "Linger", "Gentle", "Vast", "Infinite", "Serene", "Luminous", "Silence",
    "Grace", "Abide", "Witness", "Space",
]


def preset_by_name(name):
    for preset in BINAURAL_PRESETS:
        if preset.name.lower() == name.lower():
            return preset
    raise KeyError(name)


def random_preset(rng=random):
    return rng.choice(BINAURAL_PRESETS)


def inspiration_word(rng=random):
    return rng.choice(INSPIRATION_WORDS)
