"""
픽셀 인코더 (Pixel Encoder)
============================

이미지 픽셀 하나를 스칼라 필드 원소 하나로 사상한다.

**바이트 직렬화 규칙 (RGBA8)**:
  채널 순서 R, G, B, A, 채널당 1바이트, 총 4바이트.
  바이트열을 리틀엔디안 정수로 읽고 r(곡선 위수)로 축소한다.

    (r, g, b, a) → r + g·2⁸ + b·2¹⁶ + a·2²⁴  (mod r)

  4바이트 값은 2³² < r 이므로 축소가 실제로 일어나지 않고, 인코딩은 단사이다.
  폭이 필드 바이트 폭(32)에 가까운 형식에서는 축소로 인한 충돌 가능성이
  생기므로 PixelFormat은 폭을 31바이트 이하로 제한한다.

사용 예시:
    >>> encode_pixel((255, 0, 0, 255))
    >>> encode_pixel(b"\\xff\\x00\\x00\\xff")  # 같은 값
"""

from zkthumb.clink.field import FR, FR_BYTE_WIDTH
from zkthumb.errors import EncodingError


class PixelFormat:
    """픽셀 바이트 형식: 채널 이름과 채널당 바이트 수."""

    def __init__(self, channels, bytes_per_channel=1):
        self.channels = channels
        self.bytes_per_channel = bytes_per_channel
        if self.width >= FR_BYTE_WIDTH:
            raise EncodingError(
                f"픽셀 폭 {self.width}바이트는 필드 폭 {FR_BYTE_WIDTH}바이트보다 작아야 합니다"
            )

    @property
    def width(self):
        return len(self.channels) * self.bytes_per_channel

    @property
    def max_sample(self):
        return (1 << (8 * self.bytes_per_channel)) - 1

    def __repr__(self):
        return f"PixelFormat({self.channels!r}, {self.bytes_per_channel})"


RGBA8 = PixelFormat("RGBA")


def pixel_to_bytes(pixel, pixel_format=RGBA8):
    """픽셀을 형식에 맞는 고정 폭 바이트열로 직렬화한다.

    Args:
        pixel: bytes/bytearray (정확히 형식 폭) 또는 채널 정수의 tuple/list

    Returns:
        bytes: 채널 순서대로 이어 붙인 바이트열 (채널 내부는 리틀엔디안)

    Raises:
        EncodingError: 폭이나 채널 수가 맞지 않거나 샘플 값이 범위를 벗어날 때
    """
    if isinstance(pixel, (bytes, bytearray)):
        if len(pixel) != pixel_format.width:
            raise EncodingError(
                f"픽셀 바이트 폭 {len(pixel)}가 {pixel_format!r}의 폭 {pixel_format.width}와 다릅니다"
            )
        return bytes(pixel)

    if not isinstance(pixel, (tuple, list)):
        raise EncodingError(f"지원하지 않는 픽셀 표현입니다: {type(pixel).__name__}")
    if len(pixel) != len(pixel_format.channels):
        raise EncodingError(
            f"채널 수 {len(pixel)}가 {pixel_format!r}의 채널 수 {len(pixel_format.channels)}와 다릅니다"
        )

    out = bytearray()
    for sample in pixel:
        if isinstance(sample, bool) or not isinstance(sample, int):
            raise EncodingError(f"채널 값은 정수여야 합니다: {sample!r}")
        if not 0 <= sample <= pixel_format.max_sample:
            raise EncodingError(
                f"채널 값 {sample}가 범위 0..{pixel_format.max_sample}를 벗어납니다"
            )
        out.extend(sample.to_bytes(pixel_format.bytes_per_channel, "little"))
    return bytes(out)


def encode_pixel(pixel, pixel_format=RGBA8):
    """픽셀을 FR 원소로 인코딩한다 (순수 함수)."""
    raw = pixel_to_bytes(pixel, pixel_format)
    return FR(int.from_bytes(raw, "little"))
