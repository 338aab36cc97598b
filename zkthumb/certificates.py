"""
썸네일 인증서 직렬화와 저장소
==============================

인증서 = 검증에 필요한 모든 것 (원본 이미지는 제외):
  {
    "id": 내용 해시 앞 16자,
    "ratio": n, "position": p, "hiding": bool,
    "grid": {"width", "height", "new_x", "new_y"},
    "degree": N,
    "verifying_key": {...},
    "proof": {...},
    "verified": 생성 시점의 검증 결과,
    "created_at": ISO 8601 (UTC)
  }

스칼라와 좌표는 "0x" 16진 문자열이다. G1은 [x, y], G2는 [x.c0, x.c1, y.c0, y.c1]
평탄 리스트이고 무한원점은 None이다. 읽을 때 곡선 위의 점인지 확인한다.

저장소는 TinyDB "certificates" 테이블이며 문서 하나가 인증서 하나이다.
id 필드로 찾고 같은 id는 upsert로 덮어쓴다.
"""

import hashlib
import json
import logging
import re
from contextlib import contextmanager
from datetime import datetime, timezone

from py_ecc import bn128
from tinydb import Query, TinyDB

from zkthumb.clink.field import FR
from zkthumb.clink.kzg import VerifyingKey
from zkthumb.clink.prover import Proof
from zkthumb.clink.verifier import verify_proof
from zkthumb.config import ThumbnailConfig
from zkthumb.errors import CertificateDecodeError, ConfigError, IoError
from zkthumb.thumbnail import batch

logger = logging.getLogger(__name__)

_ID_PATTERN = re.compile(r"^[0-9a-f]{16}$")

TABLE_NAME = "certificates"

CERT = Query()


# ── 1. 스칼라 ──

def _hex(value):
    return hex(int(value))


def _unhex(text):
    if not isinstance(text, str) or not text.startswith("0x"):
        raise ValueError(f"16진 문자열이 아닙니다: {text!r}")
    return int(text, 16)


def serialize_fr(val):
    return _hex(val)


def deserialize_fr(text):
    value = _unhex(text)
    if value >= FR.field_modulus:
        raise ValueError(f"스칼라가 체의 위수 이상입니다: {text}")
    return FR(value)


def serialize_fr_list(values):
    return [serialize_fr(v) for v in values]


def deserialize_fr_list(data):
    return [deserialize_fr(text) for text in data]


# ── 2. 곡선 점 ──

def _checked(point, b):
    if not bn128.is_on_curve(point, b):
        raise ValueError("곡선 위의 점이 아닙니다")
    return point


def serialize_g1(point):
    if point is None:
        return None
    return [_hex(c) for c in point]


def deserialize_g1(data):
    if data is None:
        return None
    x, y = (bn128.FQ(_unhex(c)) for c in data)
    return _checked((x, y), bn128.b)


def serialize_g2(point):
    if point is None:
        return None
    return [_hex(c) for coord in point for c in coord.coeffs]


def deserialize_g2(data):
    if data is None:
        return None
    x0, x1, y0, y1 = (_unhex(c) for c in data)
    return _checked((bn128.FQ2([x0, x1]), bn128.FQ2([y0, y1])), bn128.b2)


# ── 3. 검증 키 / 증명 ──

def serialize_vk(vk):
    return {
        "g1": serialize_g1(vk.g1),
        "g2_powers": [serialize_g2(p) for p in vk.g2_powers],
        "max_degree": vk.max_degree,
    }


def deserialize_vk(data):
    g2_powers = [deserialize_g2(p) for p in data["g2_powers"]]
    if len(g2_powers) != 2:
        raise ValueError(f"검증 키에는 G2 원소가 2개 있어야 합니다: {len(g2_powers)}")
    return VerifyingKey(deserialize_g1(data["g1"]), g2_powers, int(data["max_degree"]))


_PROOF_POINTS = ("h_comm", "opening_comm")


def serialize_proof(proof):
    data = {name: serialize_g1(getattr(proof, name)) for name in _PROOF_POINTS}
    data.update(
        witness_indices=list(proof.witness_indices),
        witness_comms=[serialize_g1(c) for c in proof.witness_comms],
        witness_evals=serialize_fr_list(proof.witness_evals),
        h_eval=serialize_fr(proof.h_eval),
    )
    return data


def deserialize_proof(data):
    proof = Proof()
    for name in _PROOF_POINTS:
        setattr(proof, name, deserialize_g1(data[name]))
    proof.witness_indices = [int(i) for i in data["witness_indices"]]
    proof.witness_comms = [deserialize_g1(c) for c in data["witness_comms"]]
    proof.witness_evals = deserialize_fr_list(data["witness_evals"])
    proof.h_eval = deserialize_fr(data["h_eval"])
    return proof


# ── 4. 인증서 ──

def build_certificate(config, report):
    """실행 결과(RunReport)에서 인증서 dict를 만든다."""
    grid = report.grid
    body = {
        "ratio": config.ratio,
        "position": config.position,
        "hiding": config.hiding,
        "grid": {
            "width": grid.width,
            "height": grid.height,
            "new_x": grid.new_x,
            "new_y": grid.new_y,
        },
        "degree": report.degree,
        "verifying_key": serialize_vk(report.verifying_key),
        "proof": serialize_proof(report.proof),
    }
    canonical = json.dumps(body, sort_keys=True, separators=(",", ":")).encode()
    body["id"] = hashlib.sha256(canonical).hexdigest()[:16]
    body["verified"] = bool(report.verified)
    body["created_at"] = datetime.now(timezone.utc).isoformat()
    return body


def certificate_summary(cert):
    """목록/조회 응답용 요약 (키와 증명 원소 제외).

    Raises:
        CertificateDecodeError: 필수 필드가 없거나 형식이 잘못되었을 때
    """
    try:
        return {
            "id": cert["id"],
            "ratio": cert["ratio"],
            "position": cert["position"],
            "hiding": cert["hiding"],
            "grid": dict(cert["grid"]),
            "block_count": cert["grid"]["new_x"] * cert["grid"]["new_y"],
            "degree": cert["degree"],
            "verified": cert.get("verified"),
            "created_at": cert.get("created_at"),
        }
    except (KeyError, TypeError, ValueError, AttributeError) as exc:
        raise CertificateDecodeError(f"인증서 요약을 만들 수 없습니다: {exc}") from exc


def verify_certificate(cert, thumbnail):
    """인증서와 썸네일 이미지로 Verifier 측 검증만 수행한다.

    원본 이미지 없이 저장된 (n, p)로 구조를 다시 만들고, 썸네일 픽셀을
    다시 인코딩해 공개 입력을 만든다.

    Returns:
        bool

    Raises:
        GeometryError: 썸네일 크기가 인증서의 격자와 다를 때
        CertificateDecodeError: 인증서 내용이 손상되어 검증을 수행할 수 없을 때
    """
    try:
        config = ThumbnailConfig(ratio=int(cert["ratio"]), position=int(cert["position"]))
        g = cert["grid"]
        grid = batch.BlockGrid(
            int(g["width"]), int(g["height"]), config.ratio, int(g["new_x"]), int(g["new_y"])
        )
        vk = deserialize_vk(cert["verifying_key"])
        proof = deserialize_proof(cert["proof"])
    except (KeyError, TypeError, ValueError, IndexError, ConfigError) as exc:
        raise CertificateDecodeError(f"인증서를 해석할 수 없습니다: {exc}") from exc

    io = batch.public_inputs_from_thumbnail(thumbnail, grid)
    verifier_pa = batch.build_verifier_statement(config)
    return verify_proof(verifier_pa, vk, proof, io)


@contextmanager
def _storage_errors(action):
    try:
        yield
    except OSError as exc:
        raise IoError(f"인증서 {action} 실패: {exc}") from exc
    except (ValueError, TypeError, KeyError, AttributeError) as exc:
        raise CertificateDecodeError(f"인증서 저장소를 해석할 수 없습니다: {exc}") from exc


class CertificateStore:
    """TinyDB "certificates" 테이블 위의 인증서 저장소.

    DB는 바깥에서 만들어 넘긴다 (app.py는 하나를 열어 Blueprint에 주입하고,
    CLI는 명령 하나 동안 open으로 연다).
    """

    def __init__(self, db):
        self.db = db
        self.table = db.table(TABLE_NAME)

    @classmethod
    def open(cls, path):
        """path의 TinyDB JSON 파일을 연다. 없으면 상위 디렉터리까지 만든다.

        Raises:
            IoError: 파일을 만들거나 열 수 없을 때
        """
        with _storage_errors("저장소 열기"):
            return cls(TinyDB(path, create_dirs=True))

    def close(self):
        self.db.close()

    def __enter__(self):
        return self

    def __exit__(self, *exc_info):
        self.close()

    def save(self, cert):
        """인증서를 저장하고 id를 돌려준다. 같은 id의 문서는 덮어쓴다.

        Raises:
            IoError: 쓰기 실패
            CertificateDecodeError: 기존 저장소 파일이 손상되었을 때
        """
        cert_id = cert["id"]
        with _storage_errors("저장"):
            self.table.upsert(dict(cert), CERT.id == cert_id)
        logger.info("인증서 저장: %s", cert_id)
        return cert_id

    def get(self, cert_id):
        """id로 인증서를 찾는다. 없거나 형식이 잘못된 id이면 None.

        Raises:
            CertificateDecodeError: 저장소 파일이 손상되었을 때
        """
        if not isinstance(cert_id, str) or not _ID_PATTERN.match(cert_id):
            return None
        with _storage_errors("조회"):
            docs = self.table.search(CERT.id == cert_id)
        return dict(docs[0]) if docs else None

    def all(self):
        """저장된 모든 인증서 (id 순)."""
        with _storage_errors("조회"):
            docs = self.table.all()
        return sorted((dict(doc) for doc in docs), key=lambda cert: str(cert.get("id")))
