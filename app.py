import logging

from flask import Flask, request, jsonify
from flask_cors import CORS

import config
from alert_log import AlertLog
from dispatch import DispatchPolicy, ValidationError, submit_alert
from messaging import build_gateway

logger = logging.getLogger(__name__)

app = Flask(__name__)
CORS(app)

# Collaborators are kept in app.config so tests (or a WSGI wrapper) can swap them
app.config["ALERT_LOG"] = AlertLog(config.SOS_LOG_PATH)
app.config["DISPATCH_POLICY"] = DispatchPolicy(max_concurrency=config.SOS_DISPATCH_CONCURRENCY)
app.config["MESSAGING_GATEWAY"] = None


# --------------------------
# HELPER FUNCTIONS
# --------------------------
def get_gateway():
    """Returns the messaging gateway, building it on first use."""
    gateway = app.config.get("MESSAGING_GATEWAY")
    if gateway is None:
        gateway = app.config["MESSAGING_GATEWAY"] = build_gateway()
    return gateway


def get_alert_log():
    return app.config["ALERT_LOG"]


# --------------------------
# SOS ROUTES
# --------------------------


@app.get("/")
def index():
    """Liveness probe."""
    return "✅ SOS API is running. Use POST /sos to send alerts."


@app.post("/sos")
def sos():
    """Relays an SOS alert to every listed contact and logs the attempt."""
    data = request.get_json(silent=True)
    try:
        result = submit_alert(data, get_gateway(), get_alert_log(), app.config["DISPATCH_POLICY"])
    except ValidationError as e:
        logger.info("Rejected SOS request: %s", e.message)
        return jsonify({"error": e.message}), 400

    return jsonify(result), 200


# --------------------------
# HISTORY
# --------------------------


@app.get("/logs")
def get_logs():
    """Logged dispatch attempts, newest first. Optional ?limit=N."""
    limit = request.args.get("limit")
    if limit is not None:
        try:
            limit = int(limit)
        except ValueError:
            return jsonify({"error": "limit must be an integer"}), 400
        if limit < 0:
            return jsonify({"error": "limit must not be negative"}), 400

    entries = list(reversed(get_alert_log().entries()))
    if limit is not None:
        entries = entries[:limit]
    return jsonify(entries)


if __name__ == "__main__":
    config.configure_logging()
    print("\n" + "=" * 50)
    print("🚀 SOS API Starting...")
    print(f"📡 Running on http://{config.HOST}:{config.PORT}")
    print(f"📝 Logging alerts to {config.SOS_LOG_PATH}")
    print("=" * 50 + "\n")
    app.run(host=config.HOST, port=config.PORT, debug=False)
