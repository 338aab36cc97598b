"""
zkthumb 설정
=============

원래 전역 상수였던 값(비율 n, 위치 p, 블록 용량 100)을 명시적인 불변 설정
객체로 묶는다. Batch Assembler와 Block Circuit은 생성 시점에 이 객체를 받는다.

  | 필드             | 의미                              | 기본값    |
  |------------------|-----------------------------------|-----------|
  | ratio            | 다운샘플링 비율 n (≥ 1)           | 10        |
  | position         | 블록 내 선택 인덱스 p (0 ≤ p < n²)| 5         |
  | source           | 원본 이미지 경로                  | demo.jpg  |
  | output           | 썸네일 저장 경로                  | test.png  |
  | seed             | rng 스트림 시드 (None이면 무작위) | None      |
  | hiding           | 하이딩 커밋먼트 사용              | False     |
  | allow_truncation | 나머지 행/열을 버리는 것을 허용   | False     |
  | workers          | 블록 인코딩 병렬 작업자 수        | 1         |
"""

import os
from dataclasses import dataclass

from zkthumb.errors import ConfigError

DEFAULT_RATIO = 10
DEFAULT_POSITION = 5
DEFAULT_SOURCE = "demo.jpg"
DEFAULT_OUTPUT = "test.png"


@dataclass(frozen=True)
class ThumbnailConfig:
    ratio: int = DEFAULT_RATIO
    position: int = DEFAULT_POSITION
    source: str = DEFAULT_SOURCE
    output: str = DEFAULT_OUTPUT
    seed: int = None
    hiding: bool = False
    allow_truncation: bool = False
    workers: int = 1

    def __post_init__(self):
        if isinstance(self.ratio, bool) or not isinstance(self.ratio, int) or self.ratio < 1:
            raise ConfigError(f"비율 n은 1 이상의 정수여야 합니다: {self.ratio!r}")
        if (
            isinstance(self.position, bool)
            or not isinstance(self.position, int)
            or not 0 <= self.position < self.capacity
        ):
            raise ConfigError(
                f"위치 p는 0 ≤ p < {self.capacity} 이어야 합니다: {self.position!r}"
            )
        if not isinstance(self.workers, int) or self.workers < 1:
            raise ConfigError(f"workers는 1 이상이어야 합니다: {self.workers!r}")
        if self.seed is not None and not isinstance(self.seed, int):
            raise ConfigError(f"seed는 정수여야 합니다: {self.seed!r}")

    @property
    def capacity(self):
        """블록 하나의 픽셀 수 (= witness 슬롯 수) n²."""
        return self.ratio * self.ratio


@dataclass(frozen=True)
class AppConfig:
    """웹 인터페이스 설정 (환경 변수에서 읽음)."""

    store_path: str = "certificates.json"
    secret_key: str = "key"
    max_upload_bytes: int = 16 * 1024 * 1024

    @classmethod
    def from_env(cls, environ=None):
        environ = os.environ if environ is None else environ
        try:
            max_upload = int(environ.get("ZKTHUMB_MAX_UPLOAD", cls.max_upload_bytes))
        except ValueError as exc:
            raise ConfigError(f"ZKTHUMB_MAX_UPLOAD가 정수가 아닙니다: {exc}") from exc
        return cls(
            store_path=environ.get("ZKTHUMB_STORE", cls.store_path),
            secret_key=environ.get("ZKTHUMB_SECRET_KEY", cls.secret_key),
            max_upload_bytes=max_upload,
        )
