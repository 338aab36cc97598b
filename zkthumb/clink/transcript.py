"""
Fiat-Shamir 트랜스크립트

Prover와 Verifier가 같은 순서로 메시지를 흡수하면 같은 챌린지를 얻는다.
흡수 순서: 도메인 크기, 인스턴스 수, 공개 입력 → [w]₁ → η → [h]₁ → ζ
→ h(ζ), w(ζ) → ν.

모든 항목은 (라벨, 데이터) 각각에 4바이트 길이 접두사를 붙여 하나의
SHA-256 상태에 누적하므로 라벨과 데이터 경계가 섞이지 않는다.
"""

import hashlib

from zkthumb.clink.field import FR, CURVE_ORDER, FR_BYTE_WIDTH

PROTOCOL_LABEL = b"zkthumb/clink/v1"


class Transcript:

    def __init__(self, label=PROTOCOL_LABEL):
        self._hasher = hashlib.sha256()
        self._absorb(b"protocol", label)

    def _absorb(self, label, data):
        for chunk in (label, data):
            self._hasher.update(len(chunk).to_bytes(4, "big"))
            self._hasher.update(chunk)

    def append_scalar(self, label, value):
        self._absorb(label, (int(value) % CURVE_ORDER).to_bytes(FR_BYTE_WIDTH, "big"))

    def append_point(self, label, point):
        """G1 점의 아핀 좌표를 흡수한다. 무한원점(None)은 빈 데이터로 남긴다."""
        if point is None:
            data = b""
        else:
            data = b"".join(int(c).to_bytes(FR_BYTE_WIDTH, "big") for c in point)
        self._absorb(label, data)

    def challenge_scalar(self, label):
        """현재 상태에서 챌린지를 뽑고, 뽑은 값도 다시 흡수한다."""
        self._absorb(label, b"")
        digest = self._hasher.copy().digest()
        self._absorb(b"challenge", digest)
        return FR(int.from_bytes(digest, "big") % CURVE_ORDER)
