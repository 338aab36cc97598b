import logging

from flask import Flask, jsonify
from tinydb import TinyDB

from certificate_routes import certificates_bp, init_certificates_bp
from zkthumb.config import AppConfig


def create_app(config=None):
    config = config if config is not None else AppConfig.from_env()

    app = Flask(__name__)
    app.secret_key = config.secret_key
    app.config["MAX_CONTENT_LENGTH"] = config.max_upload_bytes

    db = TinyDB(config.store_path, create_dirs=True)
    init_certificates_bp(db)
    app.register_blueprint(certificates_bp)

    @app.route("/")
    def index():
        return jsonify({"service": "zkthumb", "certificates": "/certificates/"})

    return app


if __name__ == "__main__":
    logging.basicConfig(level=logging.INFO)
    create_app().run(debug=True)
