"""
zkthumb 예외 계층
==================

모든 단계(stage) 오류는 실행 전체를 즉시 중단시킨다. 유일한 비치명적 결과는
"검증이 False를 반환함"이며, 이는 예외가 아니라 일반 반환값으로 전달된다.

  ZkThumbError
  ├── ConfigError          잘못된 설정 (n, p 범위 등)
  ├── GeometryError        이미지 크기가 블록 격자와 맞지 않음
  ├── ImageDecodeError     원본/썸네일 이미지를 읽을 수 없음
  ├── EncodingError        픽셀 바이트 폭이 필드 인코딩과 맞지 않음
  ├── SynthesisError       제약 시스템 구성 순서 오류
  │   └── AssignmentMissing Prover 경로에서 필요한 값이 없음 (내부 순서 버그)
  ├── SetupError           신뢰 설정 또는 키 유도 실패 (차수 초과 등)
  ├── ProofGenerationError 증명 생성 실패
  ├── VerificationError    검증 계산 자체의 실패 (False 결과와 구별됨)
  │   └── CertificateDecodeError 저장된 인증서나 저장소를 해석할 수 없음
  ├── IoError              썸네일/인증서 저장 실패
  └── ProtocolStateError   프로토콜 단계를 순서에 맞지 않게 호출
"""


class ZkThumbError(Exception):
    """zkthumb의 모든 오류의 기반 클래스."""


class ConfigError(ZkThumbError, ValueError):
    pass


class GeometryError(ZkThumbError, ValueError):
    pass


class ImageDecodeError(ZkThumbError):
    pass


class EncodingError(ZkThumbError, ValueError):
    pass


class SynthesisError(ZkThumbError):
    """제약 시스템 구성 순서가 잘못됨 (인스턴스 인덱스 건너뜀 등)."""


class AssignmentMissing(SynthesisError):
    pass


class SetupError(ZkThumbError):
    pass


class ProofGenerationError(ZkThumbError):
    pass


class VerificationError(ZkThumbError):
    pass


class CertificateDecodeError(VerificationError):
    pass


class IoError(ZkThumbError):
    pass


class ProtocolStateError(ZkThumbError):
    pass
