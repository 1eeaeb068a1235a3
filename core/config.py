"""Editor settings: which backend to use and how the tree behaves on load."""

import os
import json
from pathlib import Path

SETTINGS_FILE = "menu_editor.json"
DEFAULT_STORE_FILE = "menus.json"
DEFAULT_API_URL = "http://localhost:4000"
REQUEST_TIMEOUT = 10
API_URL_ENV = "MENU_API_URL"

BACKENDS = ("local", "http")

# Global variable to hold the base path for testing
_TESTING_BASE_PATH = None


def set_testing_mode(temp_dir):
    """Sets the base path for testing purposes."""
    global _TESTING_BASE_PATH
    _TESTING_BASE_PATH = temp_dir


def _base_dir(base_path=None) -> Path:
    if _TESTING_BASE_PATH:
        return Path(_TESTING_BASE_PATH).resolve()
    if base_path:
        return Path(base_path).resolve()
    return Path.cwd()


def get_settings_file_path(base_path=None) -> Path:
    return _base_dir(base_path) / SETTINGS_FILE


def get_default_settings():
    """Get complete default settings structure."""
    return {
        "backend": "local",
        "api_base_url": DEFAULT_API_URL,
        "store_file": DEFAULT_STORE_FILE,
        "request_timeout": REQUEST_TIMEOUT,
        "expand_all_on_load": False,
        "watch_store": True,
    }


def ensure_complete_settings(settings):
    """Ensure settings has all required fields with proper types; bad values fall back to defaults."""
    defaults = get_default_settings()
    if not settings or not isinstance(settings, dict):
        return defaults

    complete = {}

    backend = settings.get("backend")
    complete["backend"] = backend if backend in BACKENDS else defaults["backend"]

    api_base_url = settings.get("api_base_url")
    complete["api_base_url"] = api_base_url if isinstance(api_base_url, str) and api_base_url.strip() else defaults["api_base_url"]

    store_file = settings.get("store_file")
    complete["store_file"] = store_file if isinstance(store_file, str) and store_file.strip() else defaults["store_file"]

    timeout = settings.get("request_timeout")
    if isinstance(timeout, (int, float)) and not isinstance(timeout, bool) and timeout > 0:
        complete["request_timeout"] = timeout
    else:
        complete["request_timeout"] = defaults["request_timeout"]

    for flag in ("expand_all_on_load", "watch_store"):
        value = settings.get(flag)
        complete[flag] = value if isinstance(value, bool) else defaults[flag]

    return complete


def load_settings(base_path=None):
    """Loads settings from the JSON file; a missing or unreadable file yields defaults."""
    settings_path = get_settings_file_path(base_path)
    raw = None
    try:
        if settings_path.exists():
            with open(settings_path, 'r', encoding='utf-8') as f:
                raw = json.load(f)
            print(f"[CONFIG] 📂 Loaded settings from {settings_path}")
        else:
            print(f"[CONFIG] 📄 Settings file not found: {settings_path}. Using defaults.")
    except (json.JSONDecodeError, IOError) as e:
        print(f"[CONFIG] ⚠️ Could not load settings file '{settings_path}': {e}. Using defaults.")
        raw = None

    settings = ensure_complete_settings(raw)

    env_url = os.environ.get(API_URL_ENV)
    if env_url:
        settings["api_base_url"] = env_url
    return settings


def save_settings(settings, base_path=None):
    """Saves settings, normalised, to the JSON file."""
    settings_path = get_settings_file_path(base_path)
    try:
        with open(settings_path, 'w', encoding='utf-8') as f:
            json.dump(ensure_complete_settings(settings), f, indent=4)
        print(f"[CONFIG] 💾 Settings saved to {settings_path}")
    except (IOError, TypeError) as e:
        print(f"[CONFIG] ❌ Error saving settings: {e}")


def get_store_path(settings, base_path=None) -> Path:
    store_file = Path(settings["store_file"])
    if store_file.is_absolute():
        return store_file
    return _base_dir(base_path) / store_file


def create_api(settings, base_path=None):
    """Builds the configured MenuApi backend."""
    if settings["backend"] == "http":
        from core.menu_api import HttpMenuApi
        print(f"[CONFIG] 🌐 Using menu service at {settings['api_base_url']}")
        return HttpMenuApi(settings["api_base_url"], timeout=settings["request_timeout"])

    from core.menu_store import JsonMenuStore
    store_path = get_store_path(settings, base_path)
    print(f"[CONFIG] 💽 Using local menu store {store_path}")
    return JsonMenuStore(store_path)
