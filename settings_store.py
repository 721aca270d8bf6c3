import json
import logging
import os


logger = logging.getLogger(__name__)

SETTINGS_FILE = "app_settings.json"


DEFAULT_SETTINGS = {
    "public_base_url": "",
    "auto_detect_ip": True,
    "flask_host": "0.0.0.0",
    "flask_port": 5000,
    "database_url": "feedback.db",
    "jwt_secret": "",
    "qr_code_dir": "qr_codes",
    "bcrypt_rounds": 10,
    "log_level": "INFO",
}

# environment variable -> (settings key, converter)
ENV_OVERRIDES = {
    "FLASK_HOST": ("flask_host", str),
    "FLASK_PORT": ("flask_port", int),
    "PORT": ("flask_port", int),
    "DATABASE_URL": ("database_url", str),
    "JWT_SECRET": ("jwt_secret", str),
    "PUBLIC_BASE_URL": ("public_base_url", str),
    "QR_CODE_DIR": ("qr_code_dir", str),
    "BCRYPT_ROUNDS": ("bcrypt_rounds", int),
    "LOG_LEVEL": ("log_level", str),
}


def _read_settings_file(path):
    if not os.path.exists(path):
        return {}
    try:
        with open(path, "r", encoding="utf-8") as file_obj:
            data = json.load(file_obj)
    except (OSError, ValueError) as exc:
        logger.warning("Ignoring unreadable settings file %s: %s", path, exc)
        return {}
    if not isinstance(data, dict):
        logger.warning("Ignoring settings file %s: expected a JSON object", path)
        return {}
    return data


def load_settings(path=None, environ=None):
    """Build the runtime settings.

    Defaults are overlaid by the JSON settings file and then by environment
    variables, so a deployment never has to edit files to change the port,
    database, signing secret or public base URL.
    """
    environ = os.environ if environ is None else environ
    path = path or environ.get("SETTINGS_FILE", SETTINGS_FILE)

    settings = DEFAULT_SETTINGS.copy()
    settings.update(_read_settings_file(path))

    for env_name, (key, convert) in ENV_OVERRIDES.items():
        raw = environ.get(env_name)
        if raw is None or raw.strip() == "":
            continue
        try:
            settings[key] = convert(raw.strip())
        except ValueError:
            logger.warning("Ignoring invalid value for %s: %r", env_name, raw)
    return settings


def database_path(settings):
    """Turn the configured database URL into a sqlite file path."""
    url = (settings.get("database_url") or "").strip()
    if url.startswith("sqlite:///"):
        return url[len("sqlite:///"):]
    return url or DEFAULT_SETTINGS["database_url"]
