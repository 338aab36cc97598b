"""
이미지 코덱 어댑터 (Pillow)
============================

원본 이미지 읽기, 썸네일 쓰기, 크기/픽셀 조회를 Pillow 위에 얇게 감싼다.
모든 이미지는 RGBA 모드로 변환해서 다루므로 get_pixel은 항상
(r, g, b, a) 4-튜플을 돌려준다.

썸네일은 PNG처럼 무손실 형식으로 저장해야 한다. 손실 압축 형식으로 저장하면
다시 읽은 픽셀이 증명에 쓰인 픽셀과 달라져 검증이 실패한다.
"""

import logging

from PIL import Image, UnidentifiedImageError

from zkthumb.errors import ImageDecodeError, IoError

logger = logging.getLogger(__name__)

MODE = "RGBA"


def load_image(source):
    """이미지를 읽어 RGBA 이미지로 돌려준다.

    Args:
        source: 파일 경로 또는 바이너리 파일 객체 (업로드 스트림 등)

    Raises:
        ImageDecodeError: 파일이 없거나 읽을 수 없는 이미지일 때, 또는 픽셀 수가
                          Pillow의 압축 폭탄 한도를 넘을 때
    """
    try:
        with Image.open(source) as img:
            image = img.convert(MODE)
    except (FileNotFoundError, UnidentifiedImageError) as exc:
        raise ImageDecodeError(f"이미지를 읽을 수 없습니다: {source!r} ({exc})") from exc
    except (OSError, ValueError, Image.DecompressionBombError) as exc:
        raise ImageDecodeError(f"이미지 디코딩 실패: {source!r} ({exc})") from exc
    logger.debug("이미지 로드: %r %dx%d", source, image.width, image.height)
    return image


def save_image(image, path):
    """이미지를 저장한다. 형식은 확장자로 정해진다.

    Raises:
        IoError: 저장 실패 (경로 없음, RGBA를 지원하지 않는 형식 등)
    """
    try:
        image.save(path)
    except (OSError, ValueError, KeyError) as exc:
        raise IoError(f"썸네일 저장 실패: {path!r} ({exc})") from exc
    logger.debug("이미지 저장: %r", path)


def new_image(width, height):
    return Image.new(MODE, (width, height))


def dimensions(image):
    """(width, height)"""
    return image.size


def get_pixel(image, x, y):
    return tuple(image.getpixel((x, y)))


def put_pixel(image, x, y, pixel):
    image.putpixel((x, y), tuple(pixel))
