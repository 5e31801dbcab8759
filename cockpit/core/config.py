import os
import json
import logging
from dotenv import load_dotenv
from cryptography.fernet import Fernet, InvalidToken

from cockpit.core.errors import ConfigurationError

load_dotenv()

logger = logging.getLogger(__name__)


def load_encrypted_config(enc_file_path: str = "config.enc", fernet_key: str = None) -> dict:
    """Load and decrypt the optional configuration overlay.

    The overlay is only read when a Fernet key is available. A present but
    undecryptable file is a configuration error, not something to skip.
    """
    fernet_key = fernet_key if fernet_key is not None else os.getenv("FERNET_KEY")
    if not fernet_key:
        return {}
    if not os.path.exists(enc_file_path):
        # Fallback if running from a different directory (e.g. cockpit/)
        parent_path = os.path.join("..", enc_file_path)
        if not os.path.exists(parent_path):
            return {}
        enc_file_path = parent_path

    with open(enc_file_path, "rb") as f:
        encrypted_bytes = f.read()
    try:
        decrypted_bytes = Fernet(fernet_key).decrypt(encrypted_bytes)
        return json.loads(decrypted_bytes.decode("utf-8"))
    except (InvalidToken, ValueError) as e:
        raise ConfigurationError(f"Could not decrypt {enc_file_path}: {e.__class__.__name__}")


config = load_encrypted_config(os.getenv("CONFIG_ENC_PATH", "config.enc"))


def _setting(name: str, default=None):
    value = os.getenv(name)
    if value is None or value == "":
        value = config.get(name, default)
    if isinstance(value, str):
        value = value.strip()
    return value


# General
LOG_LEVEL = str(_setting("LOG_LEVEL", "INFO")).upper()
LOG_DIR = _setting("LOG_DIR", "logs")
CORS_ALLOW_ORIGINS = [o.strip() for o in (_setting("CORS_ALLOW_ORIGINS", "*") or "*").split(",")]

# Session tokens
SECRET_KEY = _setting("SECRET_KEY", "")
ALGORITHM = _setting("ALGORITHM", "HS256")
ACCESS_TOKEN_EXPIRE_MINUTES = int(_setting("ACCESS_TOKEN_EXPIRE_MINUTES", 60))
SESSION_EXPIRE_HOURS = float(_setting("SESSION_EXPIRE_HOURS", 8))

# Metabase embedding
METABASE_SITE_URL = (_setting("METABASE_SITE_URL", "") or "").rstrip("/")
METABASE_SECRET_KEY = _setting("METABASE_SECRET_KEY", "")
METABASE_EMBED_MINUTES = float(_setting("METABASE_EMBED_MINUTES", 10))

# LLM providers
OPENAI_API_KEY = _setting("OPENAI_API_KEY", "")
LANGDOCK_API_KEY = _setting("LANGDOCK_API_KEY", "")
LANGDOCK_REGION = _setting("LANGDOCK_REGION", "eu")
DEFAULT_MODEL = _setting("DEFAULT_MODEL", "gpt-4.1")

# Azure Speech
SPEECH_KEY = _setting("AZURE_SPEECH_KEY", "")
SPEECH_REGION = _setting("AZURE_SPEECH_REGION", "")

# Database
DATABASE_URL = _setting("DATABASE_URL", "sqlite:///./cockpit.db")

REQUIRED_SETTINGS = ("SECRET_KEY", "METABASE_SITE_URL", "METABASE_SECRET_KEY")


def check_required_config():
    """Raise ConfigurationError naming every required setting that is empty."""
    missing = [name for name in REQUIRED_SETTINGS if not globals().get(name)]
    if missing:
        raise ConfigurationError(f"Missing required configuration: {', '.join(missing)}")
    logger.info("Configuration check passed")
