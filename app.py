import os
import random
import logging
from flask import Flask, request, jsonify
from flask_cors import CORS
from werkzeug.exceptions import RequestEntityTooLarge

from analysis import AnalysisService, InputError

logging.basicConfig(
    level=os.environ.get("LOG_LEVEL", "INFO"),
    format="%(asctime)s %(levelname)s %(name)s: %(message)s",
)
logger = logging.getLogger(__name__)

MAX_UPLOAD_MB = int(os.environ.get("MAX_UPLOAD_MB", 100))
FALLBACK_SEED = os.environ.get("FALLBACK_SEED")

app = Flask(__name__)
app.config["MAX_CONTENT_LENGTH"] = MAX_UPLOAD_MB * 1024 * 1024
CORS(app, expose_headers=["X-Analysis-Source"])

service = AnalysisService(
    rng=random.Random(int(FALLBACK_SEED)) if FALLBACK_SEED else None
)


@app.errorhandler(RequestEntityTooLarge)
def too_large(e):
    return jsonify({"error": f"video exceeds {MAX_UPLOAD_MB} MB limit"}), 413


@app.route("/", methods=["GET"])
def health():
    return jsonify({"status": "presentation-analyzer-ready"})


@app.route("/analyze", methods=["POST"])
@app.route("/analyze-video", methods=["POST"])
def analyze_video():
    try:
        if "video" not in request.files:
            return jsonify({"error": "No video file provided"}), 400

        video_file = request.files["video"]
        video_bytes = video_file.read()
        mime_type = video_file.mimetype or "video/mp4"

        result, source = service.analyze(video_bytes, mime_type)

        del video_bytes

        response = jsonify(result.to_dict())
        response.headers["X-Analysis-Source"] = source
        return response

    except InputError as e:
        return jsonify({"error": str(e)}), 400

    except RequestEntityTooLarge:
        raise

    except Exception as e:
        logger.exception("Error in analyze-video")
        return jsonify({"error": str(e)}), 500


if __name__ == "__main__":
    port = int(os.environ.get("PORT", 5000))
    app.run(host="0.0.0.0", port=port)
