"""
CLINK 대수 기반: 스칼라체 FR과 bn128 곡선 연산

FR은 bn128 곡선의 위수 r 위의 소수체이다. 픽셀 값, 열 다항식 계수,
챌린지가 모두 이 체의 원소이다. r - 1 = 2^28 · (홀수) 이므로 2^28 이하의
2의 거듭제곱 크기 도메인만 만들 수 있고, 이것이 한 증명에 담을 수 있는
블록 수의 상한이다.

곡선 점은 py_ecc.bn128의 아핀 좌표 튜플이며, 무한원점은 None이다.
"""

from py_ecc import bn128
from py_ecc.fields import bn128_FQ as FQ

CURVE_ORDER = bn128.curve_order

# 254비트 원소의 빅엔디언 직렬화 폭
FR_BYTE_WIDTH = (CURVE_ORDER.bit_length() + 7) // 8

# r - 1 의 2-adicity
MAX_DOMAIN_LOG = 28

G1 = bn128.G1
G2 = bn128.G2


class FR(FQ):
    """bn128 스칼라체 원소. +, -, *, /, ** 는 py_ecc FQ가 mod r로 처리한다."""
    field_modulus = CURVE_ORDER


# FR(5)는 FR*의 생성원이므로 이 값은 위수가 정확히 2^28 이다.
_TWO_ADIC_ROOT = FR(5) ** ((CURVE_ORDER - 1) >> MAX_DOMAIN_LOG)


# ── 곡선 연산 ──

def ec_mul(point, scalar):
    """scalar·point. 스칼라는 int 또는 FR이며 mod r로 줄인 값이 0이면 None."""
    k = int(scalar) % CURVE_ORDER
    if point is None or k == 0:
        return None
    return bn128.multiply(point, k)


ec_add = bn128.add
ec_neg = bn128.neg


def ec_lincomb(points, scalars):
    """Σ sᵢ·Pᵢ. 커밋먼트를 ν 거듭제곱으로 묶을 때 쓴다."""
    acc = None
    for point, scalar in zip(points, scalars):
        acc = ec_add(acc, ec_mul(point, scalar))
    return acc


def ec_pairing(g2_point, g1_point):
    """e(P, Q). py_ecc와 같은 (G2, G1) 인자 순서.

    곡선 위에 있지 않은 점이 들어오면 py_ecc가 ValueError를 낸다.
    """
    return bn128.pairing(g2_point, g1_point)


# ── 단위근 ──

def get_root_of_unity(n):
    """위수가 정확히 n인 단위근 ω.

    Raises:
        ValueError: n이 2의 거듭제곱이 아니거나 2^28을 넘을 때
    """
    if n < 1 or n & (n - 1):
        raise ValueError(f"도메인 크기는 2의 거듭제곱이어야 합니다: {n}")
    log_n = n.bit_length() - 1
    if log_n > MAX_DOMAIN_LOG:
        raise ValueError(f"도메인 크기는 2^{MAX_DOMAIN_LOG} 이하여야 합니다: {n}")
    return _TWO_ADIC_ROOT ** (1 << (MAX_DOMAIN_LOG - log_n))
