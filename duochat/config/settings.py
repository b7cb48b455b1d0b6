"""
DuoChat - Application Settings
All configurable parameters for the application.
"""

# ─── Network ────────────────────────────────────────────────────
HOST = 'localhost'
LISTEN_HOST = '0.0.0.0'
PORT = 2023
BUFFER_SIZE = 8192
CONNECTION_TIMEOUT = 30     # seconds, dial only

# ─── UI ─────────────────────────────────────────────────────────
PROMPT = '> '
INDICATOR = '> '            # drawn before the first row of a peer message
BAR_MARKER = '*'
BAR_CHAR = '█'         # full block
RESIZE_POLL_INTERVAL = 0.25  # seconds, only used without SIGWINCH

# ─── Debug ──────────────────────────────────────────────────────
DEBUG_LOG_FILE = 'duochat-debug.log'
DEBUG_LOG_FORMAT = '[%(asctime)s] %(name)s %(levelname)s: %(message)s'
