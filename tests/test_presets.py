import random

import pytest

from presets import (
    BINAURAL_PRESETS,
    INSPIRATION_WORDS,
    FrequencyPair,
    inspiration_word,
    preset_by_name,
    random_preset,
)


class TestFrequencyPair:
    def test_right_channel_is_base_plus_beat(self):
        assert FrequencyPair(126.22, 10.0).right == pytest.approx(136.22)

    def test_scaled_moves_both_tones(self):
        pair = FrequencyPair(100.0, 4.0).scaled(2.0)
        assert pair == FrequencyPair(200.0, 8.0)

    def test_is_immutable(self):
        pair = FrequencyPair(100.0, 4.0)
        with pytest.raises(AttributeError):
            pair.base = 50.0


class TestPresets:
    def test_all_bands_present(self):
        assert [p.name for p in BINAURAL_PRESETS] == ["Delta", "Theta", "Alpha", "Beta", "Gamma"]

    def test_lookup_is_case_insensitive(self):
        alpha = preset_by_name("alpha")
        assert alpha.pair == FrequencyPair(126.22, 10.0)
        assert alpha.description == "Relaxed Focus & Calm"

    def test_unknown_preset(self):
        with pytest.raises(KeyError):
            preset_by_name("Epsilon")

    def test_presets_are_positive(self):
        for preset in BINAURAL_PRESETS:
            assert preset.pair.base > 0
            assert preset.pair.beat > 0

    def test_random_choices(self):
        rng = random.Random(3)
        for _ in range(20):
            assert random_preset(rng) in BINAURAL_PRESETS
            assert inspiration_word(rng) in INSPIRATION_WORDS
