"""
썸네일 인증서 Flask Blueprint
==============================

  GET  /certificates/              인증서 목록 (요약)
  GET  /certificates/<id>          인증서 요약
  POST /certificates/<id>/verify   multipart "thumbnail" 업로드 → {"verified": bool}

응답 코드: 없는 id 404, 업로드 누락/디코딩 불가/격자 불일치 400,
저장된 인증서를 해석할 수 없으면 422.
"""

import logging

from flask import Blueprint, jsonify, request

from zkthumb.certificates import CertificateStore, certificate_summary, verify_certificate
from zkthumb.errors import (
    CertificateDecodeError,
    GeometryError,
    ImageDecodeError,
    VerificationError,
)
from zkthumb.thumbnail import imaging

logger = logging.getLogger(__name__)

certificates_bp = Blueprint("certificates", __name__, url_prefix="/certificates")

# DB는 app.py에서 주입
STORE = None


def init_certificates_bp(db):
    """app.py에서 TinyDB를 주입받는다."""
    global STORE
    STORE = CertificateStore(db)


def _error(message, status):
    return jsonify({"error": message}), status


@certificates_bp.route("/")
def list_certificates():
    """해석할 수 없는 문서는 건너뛰고 나머지를 요약한다."""
    try:
        certs = STORE.all()
    except CertificateDecodeError as exc:
        logger.error("인증서 저장소 읽기 실패: %s", exc)
        return _error(str(exc), 422)

    summaries = []
    for cert in certs:
        try:
            summaries.append(certificate_summary(cert))
        except CertificateDecodeError as exc:
            logger.warning("손상된 인증서를 목록에서 제외: %s", exc)
    return jsonify(summaries)


@certificates_bp.route("/<cert_id>")
def get_certificate(cert_id):
    try:
        cert = STORE.get(cert_id)
        if cert is None:
            return _error(f"인증서를 찾을 수 없습니다: {cert_id}", 404)
        return jsonify(certificate_summary(cert))
    except CertificateDecodeError as exc:
        logger.error("인증서 %s 해석 불가: %s", cert_id, exc)
        return _error(str(exc), 422)


@certificates_bp.route("/<cert_id>/verify", methods=["POST"])
def verify_thumbnail(cert_id):
    """업로드된 썸네일을 인증서로 검증한다."""
    try:
        cert = STORE.get(cert_id)
    except CertificateDecodeError as exc:
        logger.error("인증서 저장소 읽기 실패: %s", exc)
        return _error(str(exc), 422)
    if cert is None:
        return _error(f"인증서를 찾을 수 없습니다: {cert_id}", 404)

    upload = request.files.get("thumbnail")
    if upload is None or upload.filename == "":
        return _error("thumbnail 파일이 필요합니다", 400)

    try:
        thumbnail = imaging.load_image(upload.stream)
        verified = verify_certificate(cert, thumbnail)
    except (ImageDecodeError, GeometryError) as exc:
        return _error(str(exc), 400)
    except VerificationError as exc:
        logger.error("인증서 %s 검증 불가: %s", cert_id, exc)
        return _error(str(exc), 422)

    return jsonify({"id": cert_id, "verified": bool(verified)})
