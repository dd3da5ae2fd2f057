import logging
import os

logger = logging.getLogger(__name__)

BASE_DIR = os.path.dirname(os.path.abspath(__file__))


def _int_env(name, default):
    raw = os.getenv(name)
    if raw is None or raw.strip() == "":
        return default
    try:
        return int(raw)
    except ValueError:
        logger.warning("Ignoring invalid %s=%r, using %s", name, raw, default)
        return default


def _float_env(name, default):
    raw = os.getenv(name)
    if raw is None or raw.strip() == "":
        return default
    try:
        return float(raw)
    except ValueError:
        logger.warning("Ignoring invalid %s=%r, using %s", name, raw, default)
        return default


# --------------------------
# BACKEND
# --------------------------

HOST = os.getenv("HOST", "0.0.0.0")
PORT = _int_env("PORT", 3000)

# Audit log of every dispatch attempt (JSON array)
SOS_LOG_PATH = os.getenv("SOS_LOG_PATH", os.path.join(BASE_DIR, "logs.json"))

# Twilio credentials - leave unset locally to use the console gateway
TWILIO_ACCOUNT_SID = os.getenv("TWILIO_ACCOUNT_SID")
TWILIO_AUTH_TOKEN = os.getenv("TWILIO_AUTH_TOKEN")
TWILIO_FROM = os.getenv("TWILIO_FROM", "+14155238886")  # Twilio WhatsApp sandbox
TWILIO_CHANNEL = os.getenv("TWILIO_CHANNEL", "whatsapp")  # whatsapp or sms

# Number of contacts notified at once; 1 keeps the gateway calls strictly sequential
SOS_DISPATCH_CONCURRENCY = _int_env("SOS_DISPATCH_CONCURRENCY", 1)
if SOS_DISPATCH_CONCURRENCY < 1:
    logger.warning("SOS_DISPATCH_CONCURRENCY must be at least 1, using 1")
    SOS_DISPATCH_CONCURRENCY = 1

# --------------------------
# DEVICE CLIENT
# --------------------------

SOS_API_URL = os.getenv("SOS_API_URL", "http://localhost:3000/sos")
SOS_REQUEST_TIMEOUT = _float_env("SOS_REQUEST_TIMEOUT", 15.0)
SOS_PROFILE_PATH = os.getenv("SOS_PROFILE_PATH", os.path.join(BASE_DIR, "user_data.json"))
SOS_EMERGENCY_TYPE = os.getenv("SOS_EMERGENCY_TYPE", "Send an ambulance")
SOS_COUNTDOWN_SECONDS = _int_env("SOS_COUNTDOWN_SECONDS", 5)

LOG_LEVEL = os.getenv("LOG_LEVEL", "INFO")


def configure_logging(level=None):
    """Sets up root logging once for the server or the CLI."""
    logging.basicConfig(
        level=(level or LOG_LEVEL).upper(),
        format="%(asctime)s %(levelname)s [%(name)s] %(message)s",
    )
