# state.py
class AppState:
    def __init__(self):
        # --- Audio Output ---
        self.sample_rate = 44100
        self.buffer_size = 256

        # --- Voice Envelope ---
        self.master_gain = 0.15   # Resting volume of a voice
        self.fade_in = 1.0        # Seconds, linear attack
        self.release = 0.5        # Seconds, exponential release
        self.retune_ramp = 0.05   # Seconds per frequency glide
        self.gain_floor = 0.0001  # Exponential ramps can't reach 0

        # --- Tuning Gesture ---
        self.min_octave_offset = -2.0
        self.max_octave_offset = 2.0
        self.rotation_sensitivity = 4.0  # Full turns per low->high->low cycle

        # --- Visuals ---
        self.inspiration_hold = 3.5  # Seconds before the word fades
        self.inspiration_fade = 1.0
        self.knob_radius = 100
        self.button_radius = 50

        # --- Global Flags ---
        self.running = True

# Create a single shared instance
shared = AppState()
