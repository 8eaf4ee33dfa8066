"""Default configuration settings for the lmchat package."""

from __future__ import annotations

from pathlib import Path

# --- Server Defaults ---
DEFAULT_BASE_URL = "http://127.0.0.1:1234"  # LM Studio
DEFAULT_TEMPERATURE = 0.7
DEFAULT_REQUEST_TIMEOUT = 120.0

# --- Server-Sent Events ---
SSE_DATA_PREFIX = "data:"
SSE_DONE_PAYLOAD = "[DONE]"

# --- Reasoning Markers ---
THINK_OPEN_TAG = "<think>"
THINK_CLOSE_TAG = "</think>"

# --- Files ---
CONFIG_DIR = Path.home() / ".config" / "lmchat"
CONFIG_PATH = CONFIG_DIR / "config.toml"
CONFIG_PATH_2 = Path("lmchat-config.toml")
STATE_PATH = CONFIG_DIR / "state.json"

NO_CONTENT_MESSAGE = "No content returned."
ERROR_HINT = "Ensure the inference server is running and the model is loaded."
ABORTED_MESSAGE = "Error: The request was aborted."
