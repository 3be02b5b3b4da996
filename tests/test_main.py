import random

import pytest

pytest.importorskip("dearpygui")

import main  # noqa: E402
from player import BinauralPlayer  # noqa: E402
from presets import FrequencyPair  # noqa: E402


class FakeDpg:
    """Records what the handlers push to the UI; the knob sits at the origin."""

    def __init__(self, fail_render=False):
        self.pos = [0.0, 0.0]
        self.values = {}
        self.frames = 0
        self.fail_render = fail_render
        self.destroyed = False

    def get_mouse_pos(self, local=True):
        return list(self.pos)

    def get_item_rect_min(self, item):
        return [0.0, 0.0]

    def set_value(self, item, value):
        self.values[item] = value

    def configure_item(self, item, **kwargs):
        pass

    def create_context(self):
        pass

    def configure_app(self, **kwargs):
        pass

    def create_viewport(self, **kwargs):
        pass

    def setup_dearpygui(self):
        pass

    def set_primary_window(self, window, value):
        pass

    def show_viewport(self):
        pass

    def is_dearpygui_running(self):
        return self.frames < 3

    def get_callback_queue(self):
        return []

    def run_callbacks(self, jobs):
        pass

    def render_dearpygui_frame(self):
        self.frames += 1
        if self.fail_render:
            raise RuntimeError("viewport lost")

    def destroy_context(self):
        self.destroyed = True


@pytest.fixture
def fake_dpg(monkeypatch):
    fake = FakeDpg()
    monkeypatch.setattr(main, "dpg", fake)
    monkeypatch.setattr(main, "build_ui", lambda: None)
    monkeypatch.setattr(main, "update_frame", lambda: None)
    return fake


@pytest.fixture
def app(fake_dpg, engine, monkeypatch):
    monkeypatch.setattr(main, "engine", engine)
    monkeypatch.setattr(main, "player", BinauralPlayer(engine, rng=random.Random(3)))
    return main


def click(fake, x, y):
    fake.pos = [x, y]
    main.on_mouse_down(None, None)


class TestHandlers:
    def test_click_on_button_toggles_play(self, app, fake_dpg):
        centre = main.KNOB_SIZE / 2
        click(fake_dpg, centre, centre)
        assert app.player.is_playing
        assert fake_dpg.values["status"] == ""

        click(fake_dpg, centre, centre)
        assert not app.player.is_playing

    def test_click_on_ring_starts_drag(self, app, fake_dpg):
        centre = main.KNOB_SIZE / 2
        click(fake_dpg, centre, centre)
        click(fake_dpg, centre + 80, centre)
        assert app.player.is_tuning

    def test_failed_retune_is_reported_not_raised(self, app, fake_dpg, monkeypatch):
        centre = main.KNOB_SIZE / 2
        click(fake_dpg, centre, centre)
        click(fake_dpg, centre + 80, centre)

        def broken(*args):
            raise RuntimeError("scheduler gone")

        monkeypatch.setattr(app.engine.voice, "retune", broken)
        fake_dpg.pos = [centre, centre + 80]
        main.on_mouse_move(None, None)

        assert "scheduler gone" in fake_dpg.values["status"]
        assert not app.player.is_playing
        assert not app.player.is_tuning

    def test_failed_start_is_reported(self, app, fake_dpg, monkeypatch):
        def blocked(pair):
            raise RuntimeError("device busy")

        monkeypatch.setattr(app.engine, "start", blocked)
        centre = main.KNOB_SIZE / 2
        click(fake_dpg, centre, centre)
        assert fake_dpg.values["status"] == "Audio error: device busy"
        assert not app.player.is_playing


class TestMainLoop:
    def test_clean_exit_releases_audio(self, app, fake_dpg, fresh_state):
        app.engine.start(FrequencyPair(126.22, 10.0))
        context = app.engine.context
        main.main()

        assert fake_dpg.frames == 3
        assert fake_dpg.destroyed
        assert context.state == "closed"
        assert not fresh_state.running

    def test_frame_error_still_releases_audio(self, app, fake_dpg, fresh_state):
        fake_dpg.fail_render = True
        app.engine.start(FrequencyPair(126.22, 10.0))
        context = app.engine.context

        with pytest.raises(RuntimeError):
            main.main()
        assert fake_dpg.destroyed
        assert context.state == "closed"
        assert app.engine.context is None
        assert not fresh_state.running
