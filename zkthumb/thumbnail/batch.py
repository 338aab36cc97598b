"""
일괄 조립기 (Batch Assembler)
==============================

이미지의 모든 블록에 대해 블록 회로를 한 번씩 실행하여 하나의 일괄 명제
(Batched Statement)를 만든다.

**순회 순서 (인스턴스 인덱스가 곧 연결 키)**:
  바깥 루프: 블록 x 좌표 bx = 0 .. new_x-1
  안쪽 루프: 블록 y 좌표 by = 0 .. new_y-1
  인스턴스 인덱스 = bx · new_y + by

  블록 내부 픽셀 (i, j) (x 오프셋 i, y 오프셋 j)의 평탄화 인덱스는 i·n + j,
  원본 좌표는 (bx·n + i, by·n + j) 이다.

  같은 순서를 다음 세 곳에서 쓴다:
    1. Prover 명제 조립 (build_prover_statement)
    2. 썸네일 버퍼 쓰기 (render_thumbnail)
    3. 공개 입력 벡터 조립 (public_inputs_from_thumbnail)
  하나라도 어긋나면 증명이 항상 거부되거나 엉뚱한 블록끼리 연결된다.

**Verifier 명제**:
  인스턴스 0 하나만 값 없이 등록한다. 블록 수만큼의 복제는 공개 입력
  벡터의 길이로 정해진다.

**병렬 인코딩**:
  workers > 1이면 블록별 픽셀 인코딩을 스레드 풀에서 수행한다. 각 블록은
  원본 이미지를 읽기만 하므로 독립적이다. 결과는 인스턴스 인덱스 순으로
  다시 모은 뒤 제약 시스템에 순차적으로 할당한다.
"""

import logging
from concurrent.futures import ThreadPoolExecutor
from dataclasses import dataclass

from zkthumb.clink.field import FR
from zkthumb.clink.r1cs import ProveAssignment, VerifyAssignment
from zkthumb.errors import GeometryError
from zkthumb.thumbnail.circuit import BlockCircuit
from zkthumb.thumbnail.encoding import encode_pixel
from zkthumb.thumbnail import imaging

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class BlockGrid:
    """원본 이미지 위의 n×n 블록 격자."""

    width: int
    height: int
    ratio: int
    new_x: int
    new_y: int

    @property
    def block_count(self):
        return self.new_x * self.new_y

    @property
    def truncated(self):
        return (self.new_x * self.ratio, self.new_y * self.ratio) != (self.width, self.height)

    @classmethod
    def from_dimensions(cls, width, height, ratio, allow_truncation=False):
        """원본 크기와 비율 n으로 격자를 만든다.

        new_x = width // n, new_y = height // n

        Raises:
            GeometryError: 크기가 n의 배수가 아닌데 allow_truncation이 False일 때,
                           또는 블록이 하나도 없을 때
        """
        if ratio < 1:
            raise GeometryError(f"비율 n은 1 이상이어야 합니다: {ratio}")
        new_x, new_y = width // ratio, height // ratio
        if new_x == 0 or new_y == 0:
            raise GeometryError(
                f"이미지 {width}x{height}는 {ratio}x{ratio} 블록을 하나도 담지 못합니다"
            )
        grid = cls(width, height, ratio, new_x, new_y)
        if grid.truncated:
            if not allow_truncation:
                raise GeometryError(
                    f"이미지 크기 {width}x{height}가 n={ratio}의 배수가 아닙니다"
                )
            logger.warning(
                "이미지 %dx%d에서 나머지 %d열, %d행을 버립니다",
                width, height, width - new_x * ratio, height - new_y * ratio,
            )
        return grid


@dataclass(frozen=True)
class Block:
    index: int
    bx: int
    by: int
    ratio: int

    def source_coords(self):
        """블록 픽셀의 원본 좌표를 평탄화 순서(i·n + j)로 돌려준다."""
        n = self.ratio
        return [
            (self.bx * n + i, self.by * n + j)
            for i in range(n)
            for j in range(n)
        ]


def iter_blocks(grid):
    """블록을 인스턴스 인덱스 순서로 생성한다."""
    for bx in range(grid.new_x):
        for by in range(grid.new_y):
            yield Block(bx * grid.new_y + by, bx, by, grid.ratio)


def encode_block(image, block, position):
    """블록 픽셀을 인코딩한다.

    Returns:
        (inputs, selected_pixel): FR 리스트와 선택 위치의 원래 픽셀
    """
    pixels = [imaging.get_pixel(image, x, y) for x, y in block.source_coords()]
    return [encode_pixel(pixel) for pixel in pixels], pixels[position]


def _encode_all(image, blocks, config):
    if config.workers <= 1:
        return [encode_block(image, block, config.position) for block in blocks]

    with ThreadPoolExecutor(max_workers=config.workers) as executor:
        futures = {
            executor.submit(encode_block, image, block, config.position): block.index
            for block in blocks
        }
        results = {}
        for future, index in futures.items():
            results[index] = future.result()
    return [results[block.index] for block in blocks]


def build_prover_statement(image, config, grid=None):
    """Prover 명제를 조립한다.

    Args:
        image: RGBA 원본 이미지
        config: ThumbnailConfig
        grid: BlockGrid (None이면 이미지 크기에서 계산)

    Returns:
        (ProveAssignment, thumbnail_pixels): thumbnail_pixels는 인스턴스 인덱스
        순서의 선택 픽셀 리스트
    """
    if grid is None:
        width, height = imaging.dimensions(image)
        grid = BlockGrid.from_dimensions(width, height, config.ratio, config.allow_truncation)

    blocks = list(iter_blocks(grid))
    encoded = _encode_all(image, blocks, config)

    cs = ProveAssignment()
    thumbnail_pixels = []
    for block, (inputs, selected) in zip(blocks, encoded):
        circuit = BlockCircuit(config, inputs, encode_pixel(selected))
        circuit.generate_constraints(cs, block.index)
        thumbnail_pixels.append(selected)

    logger.info("Prover 명제 조립 완료: 블록 %d개 (%dx%d)", len(blocks), grid.new_x, grid.new_y)
    return cs, thumbnail_pixels


def build_verifier_statement(config):
    """Verifier 명제: 인스턴스 0 구조만 값 없이 등록한다."""
    cs = VerifyAssignment()
    BlockCircuit(config).generate_constraints(cs, 0)
    return cs


def render_thumbnail(thumbnail_pixels, grid):
    """선택 픽셀을 (bx, by) 위치에 써서 썸네일 이미지를 만든다."""
    thumbnail = imaging.new_image(grid.new_x, grid.new_y)
    for block, pixel in zip(iter_blocks(grid), thumbnail_pixels):
        imaging.put_pixel(thumbnail, block.bx, block.by, pixel)
    return thumbnail


def public_inputs_from_thumbnail(thumbnail, grid):
    """썸네일에서 공개 입력 벡터를 만든다.

    Returns:
        [[1, 1, ...], [encode(썸네일 픽셀) ...]]  (각 그룹 길이 = 블록 수)

    Raises:
        GeometryError: 썸네일 크기가 격자 (new_x, new_y)와 다를 때
    """
    size = imaging.dimensions(thumbnail)
    if tuple(size) != (grid.new_x, grid.new_y):
        raise GeometryError(
            f"썸네일 크기 {size[0]}x{size[1]}가 격자 {grid.new_x}x{grid.new_y}와 다릅니다"
        )
    outputs = [
        encode_pixel(imaging.get_pixel(thumbnail, block.bx, block.by))
        for block in iter_blocks(grid)
    ]
    return [[FR(1)] * grid.block_count, outputs]
