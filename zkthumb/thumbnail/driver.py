"""
프로토콜 드라이버 (Protocol Driver)
====================================

원본 이미지 → 썸네일 인증서 생성 → 검증까지의 전체 흐름을 단계(stage)
상태 기계로 조율한다.

  INIT
   │ load()                     원본 디코딩, 블록 격자 계산
   ▼
  LOADED
   │ setup()                    KZG10.setup(N) + trim, N = next_pow2(블록 수)
   ▼
  SETUP_DONE
   │ build_prover_statement()   블록별 회로 조립 + 썸네일 버퍼 채우기
   ▼
  PROVER_STATEMENT_BUILT
   │ prove()                    증명 생성 + 썸네일 저장
   ▼
  PROVED
   │ build_verifier_statement() 인스턴스 0 구조만 등록
   ▼
  VERIFIER_STATEMENT_BUILT
   │ verify()                   저장된 썸네일을 다시 읽어 공개 입력 조립 후 검증
   ▼
  VERIFIED

되돌아가는 전이는 없고 한 번의 실행만 가능하다. 순서에 맞지 않는 호출은
ProtocolStateError. 각 단계의 오류는 실행 전체를 중단시키며, 검증 결과
False만이 일반 반환값으로 전달된다.

**rng 스트림**:
  seed가 주어지면 random.Random(seed) 하나를 setup과 증명 생성이 순서대로
  공유한다. seed가 없으면 secrets 모듈을 쓴다.
"""

import enum
import logging
import random
import time
from dataclasses import dataclass, field

from zkthumb.clink.kzg import KZG10
from zkthumb.clink.prover import create_random_proof
from zkthumb.clink.domain import next_power_of_2
from zkthumb.clink.verifier import verify_proof
from zkthumb.errors import ProtocolStateError
from zkthumb.thumbnail import batch, imaging

logger = logging.getLogger(__name__)


class Stage(enum.IntEnum):
    INIT = 0
    LOADED = 1
    SETUP_DONE = 2
    PROVER_STATEMENT_BUILT = 3
    PROVED = 4
    VERIFIER_STATEMENT_BUILT = 5
    VERIFIED = 6


@dataclass
class RunReport:
    """한 번의 실행 결과."""

    verified: bool
    block_count: int
    degree: int
    thumbnail_path: str
    grid: batch.BlockGrid
    proof: object
    verifying_key: object
    public_inputs: list
    timings: dict = field(default_factory=dict)


class ThumbnailProtocol:
    """썸네일 인증 프로토콜의 단일 실행.

    Args:
        config: ThumbnailConfig
        rng: random.Random 스트림 (None이면 config.seed로 만들거나 secrets 사용)
    """

    def __init__(self, config, rng=None):
        self.config = config
        if rng is None and config.seed is not None:
            rng = random.Random(config.seed)
        self.rng = rng
        self.stage = Stage.INIT
        self.timings = {}

        self.image = None
        self.grid = None
        self.degree = None
        self.ck = None
        self.vk = None
        self.prover_pa = None
        self.thumbnail = None
        self.proof = None
        self.verifier_pa = None
        self.public_inputs = None
        self.verified = None

    def _advance(self, expected, target):
        if self.stage is not expected:
            raise ProtocolStateError(
                f"{target.name} 단계는 {expected.name} 다음에만 실행할 수 있습니다 "
                f"(현재: {self.stage.name})"
            )
        self.stage = target
        logger.debug("단계 전이: %s → %s", expected.name, target.name)

    @property
    def block_count(self):
        return self.grid.block_count if self.grid is not None else 0

    # ── 1. 로드 ──
    def load(self, image=None):
        """원본 이미지를 읽고 블록 격자를 계산한다.

        Args:
            image: 이미 디코딩된 RGBA 이미지 (None이면 config.source에서 읽음)
        """
        if self.stage is not Stage.INIT:
            raise ProtocolStateError(f"이미 실행된 프로토콜입니다 (현재: {self.stage.name})")
        if image is None:
            image = imaging.load_image(self.config.source)
        width, height = imaging.dimensions(image)
        grid = batch.BlockGrid.from_dimensions(
            width, height, self.config.ratio, self.config.allow_truncation
        )
        self.image = image
        self.grid = grid
        self._advance(Stage.INIT, Stage.LOADED)
        logger.info(
            "원본 %dx%d, n=%d → 썸네일 %dx%d (블록 %d개)",
            width, height, grid.ratio, grid.new_x, grid.new_y, grid.block_count,
        )
        return grid

    # ── 2. 신뢰 설정 ──
    def setup(self):
        self._advance(Stage.LOADED, Stage.SETUP_DONE)
        start = time.perf_counter()
        self.degree = next_power_of_2(self.grid.block_count)
        pp = KZG10.setup(self.degree, self.config.hiding, self.rng)
        self.ck, self.vk = KZG10.trim(pp, self.degree)
        self.timings["setup"] = time.perf_counter() - start
        return self.vk

    # ── 3. Prover 명제 ──
    def build_prover_statement(self):
        self._advance(Stage.SETUP_DONE, Stage.PROVER_STATEMENT_BUILT)
        self.prover_pa, pixels = batch.build_prover_statement(self.image, self.config, self.grid)
        self.thumbnail = batch.render_thumbnail(pixels, self.grid)
        return self.prover_pa

    # ── 4. 증명 + 썸네일 저장 ──
    def prove(self):
        self._advance(Stage.PROVER_STATEMENT_BUILT, Stage.PROVED)
        start = time.perf_counter()
        self.proof = create_random_proof(self.prover_pa, self.ck, self.rng)
        self.timings["prove"] = time.perf_counter() - start
        imaging.save_image(self.thumbnail, self.config.output)
        logger.info("썸네일 저장: %s", self.config.output)
        return self.proof

    # ── 5. Verifier 명제 ──
    def build_verifier_statement(self):
        self._advance(Stage.PROVED, Stage.VERIFIER_STATEMENT_BUILT)
        self.verifier_pa = batch.build_verifier_statement(self.config)
        return self.verifier_pa

    # ── 6. 검증 ──
    def verify(self):
        """저장된 썸네일을 다시 읽어 공개 입력을 만들고 검증한다.

        메모리의 썸네일 값이 아니라 저장된 파일을 쓰므로 직렬화 왕복 오류도
        검증 실패로 드러난다.
        """
        self._advance(Stage.VERIFIER_STATEMENT_BUILT, Stage.VERIFIED)
        start = time.perf_counter()
        saved = imaging.load_image(self.config.output)
        self.public_inputs = batch.public_inputs_from_thumbnail(saved, self.grid)
        self.verified = verify_proof(self.verifier_pa, self.vk, self.proof, self.public_inputs)
        self.timings["verify"] = time.perf_counter() - start
        if not self.verified:
            logger.warning("썸네일 인증서 검증 실패")
        return self.verified

    def run(self, image=None):
        """모든 단계를 순서대로 실행한다."""
        self.load(image)
        self.setup()
        self.build_prover_statement()
        self.prove()
        self.build_verifier_statement()
        self.verify()
        return self.report()

    def report(self):
        if self.stage is not Stage.VERIFIED:
            raise ProtocolStateError(f"검증이 끝나지 않았습니다 (현재: {self.stage.name})")
        return RunReport(
            verified=self.verified,
            block_count=self.grid.block_count,
            degree=self.degree,
            thumbnail_path=self.config.output,
            grid=self.grid,
            proof=self.proof,
            verifying_key=self.vk,
            public_inputs=self.public_inputs,
            timings=dict(self.timings),
        )
