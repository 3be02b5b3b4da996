import logging
import math

import dearpygui.dearpygui as dpg
import numpy as np

import state
from audio_engine import AudioVoiceEngine
from player import BinauralPlayer

logger = logging.getLogger(__name__)

# --- SETTINGS ---
W_WIDTH = 520
W_HEIGHT = 720
KNOB_SIZE = 300  # Drawlist is square, knob centred in it

BACKGROUND = (255, 251, 235)
INK = (0, 0, 0)
CREAM = (255, 251, 235, 255)
RING = (252, 211, 77)

engine = AudioVoiceEngine()
player = BinauralPlayer(engine)


# --- GEOMETRY ---

def knob_center():
    """Knob centre in viewport coordinates."""
    x, y = dpg.get_item_rect_min("knob")
    return x + KNOB_SIZE / 2, y + KNOB_SIZE / 2


def mouse_pos():
    return dpg.get_mouse_pos(local=False)


# --- INPUT HANDLERS ---

def report_error(exc):
    logger.error("Audio error: %s", exc)
    dpg.set_value("status", f"Audio error: {exc}")


def on_mouse_down(sender, app_data):
    x, y = mouse_pos()
    cx, cy = knob_center()
    distance = math.hypot(x - cx, y - cy)

    if distance <= state.shared.button_radius:
        try:
            player.toggle_play()
            dpg.set_value("status", "")
        except Exception as exc:
            report_error(exc)
    elif distance <= state.shared.knob_radius:
        player.pointer_down(x, y, cx, cy)


def on_mouse_move(sender, app_data):
    if not player.is_tuning:
        return
    x, y = mouse_pos()
    cx, cy = knob_center()
    try:
        player.pointer_move(x, y, cx, cy)
    except Exception as exc:
        report_error(exc)


def on_mouse_up(sender, app_data):
    try:
        player.pointer_up()
    except Exception as exc:
        report_error(exc)


# --- DRAWING ---

def update_frame():
    s = state.shared
    c = KNOB_SIZE / 2

    # Play / pause glyph
    dpg.configure_item("play_icon", show=not player.is_playing)
    dpg.configure_item("pause_left", show=player.is_playing)
    dpg.configure_item("pause_right", show=player.is_playing)

    # Tuning ring grows with the octave offset
    ring_alpha = 255 if player.is_tuning else 0
    dpg.configure_item(
        "tuning_ring",
        radius=s.knob_radius * player.ring_scale,
        color=(*RING, ring_alpha),
    )

    # Handle follows the pointer around the rim
    if player.drag_angle is not None and player.is_playing:
        a = math.radians(player.drag_angle)
        r = s.knob_radius - 10
        dpg.configure_item("drag_handle", center=[c + r * math.cos(a), c + r * math.sin(a)], show=True)
    else:
        dpg.configure_item("drag_handle", show=False)

    # Inspiration word
    opacity = player.inspiration_opacity()
    dpg.set_value("inspiration_text", player.track.inspiration)
    dpg.configure_item("inspiration_text", color=(*INK, int(255 * opacity)))

    dpg.configure_item("hint", show=player.is_playing)
    dpg.set_value("tuning_text", f"{player.track.pair.base:.2f} Hz / beat {player.track.pair.beat:.2f} Hz")

    # --- OSCILLOSCOPE ---
    signal = engine.last_samples
    if signal is not None and len(signal) > 0:
        x_data = np.arange(len(signal))
        dpg.set_value("scope_series", [x_data.tolist(), signal.tolist()])


def build_ui():
    s = state.shared
    c = KNOB_SIZE / 2

    with dpg.theme() as theme:
        with dpg.theme_component(dpg.mvAll):
            dpg.add_theme_color(dpg.mvThemeCol_WindowBg, BACKGROUND, category=dpg.mvThemeCat_Core)
            dpg.add_theme_color(dpg.mvThemeCol_Text, INK, category=dpg.mvThemeCat_Core)
    dpg.bind_theme(theme)

    with dpg.window(tag="Primary Window"):
        dpg.add_spacer(height=30)
        dpg.add_text("", tag="inspiration_text")
        dpg.add_spacer(height=20)

        # --- KNOB ---
        with dpg.drawlist(width=KNOB_SIZE, height=KNOB_SIZE, tag="knob"):
            dpg.draw_circle([c, c], s.knob_radius, color=(*INK, 255), fill=(*INK, 255))
            dpg.draw_circle([c, c], s.knob_radius, color=(*RING, 0), thickness=4, tag="tuning_ring")
            dpg.draw_circle([c, c], s.button_radius, color=CREAM, fill=(*INK, 255), thickness=2)

            dpg.draw_triangle([c - 10, c - 16], [c - 10, c + 16], [c + 16, c], color=CREAM, fill=CREAM, tag="play_icon")
            dpg.draw_rectangle([c - 14, c - 16], [c - 4, c + 16], color=CREAM, fill=CREAM, tag="pause_left", show=False)
            dpg.draw_rectangle([c + 4, c - 16], [c + 14, c + 16], color=CREAM, fill=CREAM, tag="pause_right", show=False)

            dpg.draw_circle([c, c], 8, color=CREAM, fill=CREAM, tag="drag_handle", show=False)

        dpg.add_spacer(height=10)
        dpg.add_text("Click and drag to tune the sound.", tag="hint", show=False)
        dpg.add_text("", tag="tuning_text")
        dpg.add_text("", tag="status", color=(180, 30, 30))

        # Oscilloscope Plot
        dpg.add_spacer(height=10)
        dpg.add_text("Waveform")
        with dpg.plot(height=150, width=-1, no_menus=True):
            dpg.add_plot_axis(dpg.mvXAxis, no_tick_labels=True)
            y_axis = dpg.add_plot_axis(dpg.mvYAxis, label="Amp")
            dpg.add_line_series([], [], tag="scope_series", parent=y_axis)
            dpg.set_axis_limits(y_axis, -0.3, 0.3)

    with dpg.handler_registry():
        dpg.add_mouse_click_handler(button=dpg.mvMouseButton_Left, callback=on_mouse_down)
        dpg.add_mouse_move_handler(callback=on_mouse_move)
        dpg.add_mouse_release_handler(button=dpg.mvMouseButton_Left, callback=on_mouse_up)


def main():
    logging.basicConfig(level=logging.INFO, format="%(asctime)s %(levelname)s %(name)s: %(message)s")

    dpg.create_context()
    dpg.configure_app(manual_callback_management=True)
    build_ui()

    dpg.create_viewport(title="Binaural Tuner", width=W_WIDTH, height=W_HEIGHT)
    dpg.setup_dearpygui()
    dpg.set_primary_window("Primary Window", True)
    dpg.show_viewport()

    # Callbacks and drawing share the main thread
    try:
        while dpg.is_dearpygui_running() and state.shared.running:
            dpg.run_callbacks(dpg.get_callback_queue())
            update_frame()
            dpg.render_dearpygui_frame()
    finally:
        # --- CLEANUP ---
        state.shared.running = False
        engine.shutdown()
        dpg.destroy_context()


if __name__ == "__main__":
    main()
