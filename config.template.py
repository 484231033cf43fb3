# Stream Sorter Configuration Template
# Copy this file to config.py and update with your settings
# (without config.py, settings are read from the environment and .env)

# ========== SPOTIFY APP CREDENTIALS ==========
# From https://developer.spotify.com/dashboard -> your app -> Settings
SPOTIFY_ID = "YOUR_CLIENT_ID_HERE"
SPOTIFY_SECRET = "YOUR_CLIENT_SECRET_HERE"

# ========== INPUT FILES ==========
INPUT_DIR = "."                 # Folder holding the extracted export

# "sequence": endsong_0.json, endsong_1.json, ... (stops at first gap)
# "glob":     every Streaming_History_Audio_*.json file
DISCOVERY_MODE = "sequence"
INPUT_PREFIX = None             # None = endsong / Streaming_History_Audio_
ALLOW_EMPTY_INPUT = False       # Exit 0 instead of failing when nothing is found

# ========== OUTPUT ==========
OUTPUT_FILE = "sorted_streams.json"

# ========== API RATE LIMITING ==========
# Adjust these if you experience API issues

REQUEST_DELAY = 0.0             # Seconds between Spotify API requests
MAX_RETRIES = 3                 # Attempts per request on 429/5xx/connection errors
RETRY_DELAY = 2.0               # Base delay for exponential backoff
REQUEST_TIMEOUT = 30            # Seconds

# ========== LOGGING SETTINGS ==========
LOG_LEVEL = "INFO"              # DEBUG, INFO, WARNING, ERROR
