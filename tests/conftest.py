import sys
import os
import pytest

# 프로젝트 루트를 sys.path에 추가
project_root = os.path.abspath(os.path.join(os.path.dirname(__file__), '..'))
if project_root not in sys.path:
    sys.path.insert(0, project_root)

from PIL import Image


def pixel_at(x, y):
    """좌표마다 서로 다른 RGBA 픽셀 (x < 36, y < 20 범위에서 단사)."""
    return ((x * 7) % 256, (y * 13) % 256, (x + y) * 3 % 256, 255)


def make_source(path, width, height):
    """pixel_at 패턴으로 채운 PNG 원본 이미지를 만든다."""
    image = Image.new("RGBA", (width, height))
    for x in range(width):
        for y in range(height):
            image.putpixel((x, y), pixel_at(x, y))
    image.save(path)
    return image


@pytest.fixture
def source_factory(tmp_path):
    """tmp_path 아래에 원본 이미지를 만드는 factory."""
    def factory(width, height, name="source.png"):
        path = tmp_path / name
        make_source(path, width, height)
        return str(path)
    return factory


@pytest.fixture(name="pixel_at")
def pixel_at_fixture():
    return pixel_at


@pytest.fixture(scope="module")
def module_source(tmp_path_factory):
    """모듈 범위 fixture에서 쓰는 원본 이미지 factory."""
    directory = tmp_path_factory.mktemp("images")

    def factory(width, height, name="source.png"):
        path = directory / name
        make_source(path, width, height)
        return str(path), directory
    return factory
