"""
CLINK Prover: 일괄 R1CS 증명 생성
===================================

  ┌──────────────────────────────────────────────────────────┐
  │  1. 열 보간: 각 변수의 값 벡터 → 열 다항식 w(x)            │
  │  2. Prover → Verifier: [w_j]₁ (제약이 참조하는 witness 열) │
  │     Verifier → Prover: η                                │
  │  3. Prover → Verifier: [h]₁,  h = Σ ηᵏ(AₖBₖ - Cₖ) / Z_H   │
  │     Verifier → Prover: ζ                                │
  │  4. Prover → Verifier: w_j(ζ), h(ζ)                      │
  │     Verifier → Prover: ν                                │
  │  5. Prover → Verifier: [W]₁ (ζ에서의 일괄 열기 증명)        │
  └──────────────────────────────────────────────────────────┘

**왜 Z_H로 나누어 떨어지는가?**
  i번째 인스턴스의 값은 ωⁱ에서의 열 다항식 값이다. 모든 인스턴스에서
  Aₖ·Bₖ = Cₖ 가 성립하면 P(x) = Σ ηᵏ(Aₖ(x)Bₖ(x) - Cₖ(x)) 는 H의 모든 점에서
  0이므로 Z_H(x) = x^N - 1 의 배수가 된다.

**패딩**:
  인스턴스 수 m이 2의 거듭제곱이 아니면 N까지 0으로 채운다.
  상수 1 열도 0이 되므로 패딩 행의 제약은 0·0 = 0으로 자동 만족된다.

**하이딩(hiding)**:
  키가 hiding이면 w(x) + r·Z_H(x) 로 블라인딩한다. H 위의 값은 변하지 않고
  ζ에서의 평가값이 witness를 드러내지 않는다.

**참조되지 않는 witness 열**:
  어떤 제약에도 나타나지 않는 witness 열은 제약을 받지 않으므로
  커밋하지 않는다 (예: 썸네일 회로에서 선택 위치 p 이외의 픽셀).

사용 예시:
    >>> proof = create_random_proof(prover_pa, ck, random.Random(7))
"""

import logging
import secrets

from zkthumb.clink.domain import Domain
from zkthumb.clink.field import FR, CURVE_ORDER
from zkthumb.clink.polynomial import Polynomial
from zkthumb.clink.kzg import commit, create_batch_witness
from zkthumb.clink.transcript import Transcript
from zkthumb.clink.r1cs import Variable
from zkthumb.errors import ProofGenerationError, SynthesisError

logger = logging.getLogger(__name__)


class Proof:
    """CLINK 증명 데이터 컨테이너.

    속성:
        witness_indices: 커밋된 witness 변수 인덱스 (오름차순)
        witness_comms: [w_j]₁ 리스트 (witness_indices와 같은 순서)
        h_comm: 몫 다항식 커밋먼트 [h]₁
        witness_evals: w_j(ζ) 리스트
        h_eval: h(ζ)
        opening_comm: ζ에서의 일괄 열기 증명 [W]₁
    """

    def __init__(self):
        self.witness_indices = []
        self.witness_comms = []
        self.h_comm = None
        self.witness_evals = []
        self.h_eval = None
        self.opening_comm = None

    def __eq__(self, other):
        if not isinstance(other, Proof):
            return False
        return (
            self.witness_indices == other.witness_indices
            and self.witness_comms == other.witness_comms
            and self.h_comm == other.h_comm
            and self.witness_evals == other.witness_evals
            and _same_scalar(self.h_eval, other.h_eval)
            and self.opening_comm == other.opening_comm
        )


def _same_scalar(a, b):
    if a is None or b is None:
        return a is b
    return a == b


def _random_scalar(rng):
    if rng is None:
        return FR(secrets.randbelow(CURVE_ORDER))
    return FR(rng.randrange(CURVE_ORDER))


def absorb_public_inputs(transcript, n, columns):
    """도메인 크기와 공개 입력 전체를 트랜스크립트에 추가한다.

    Prover와 Verifier가 같은 순서로 호출해야 한다.
    """
    transcript.append_scalar(b"domain", FR(n))
    transcript.append_scalar(b"instances", FR(len(columns[0]) if columns else 0))
    for column in columns:
        for value in column:
            transcript.append_scalar(b"io", value)


def create_random_proof(prover_pa, ck, rng=None):
    """일괄 R1CS에 대한 증명을 생성한다.

    Args:
        prover_pa: ProveAssignment (모든 인스턴스의 값이 채워진 상태)
        ck: ProvingKey (KZG10.trim의 결과)
        rng: random.Random 인스턴스 (블라인딩용, None이면 secrets)

    Returns:
        Proof

    Raises:
        ProofGenerationError: 인스턴스 없음, 도메인이 키 차수를 초과,
                              제약 불만족, 커밋 실패
    """
    try:
        prover_pa.finalize()
    except SynthesisError as exc:
        raise ProofGenerationError(f"증명할 수 없는 제약 시스템: {exc}") from exc

    m = prover_pa.instance_count
    domain = Domain.for_instances(m)
    n = domain.size
    if n > ck.max_degree:
        raise ProofGenerationError(
            f"도메인 크기 {n}가 증명 키 차수 {ck.max_degree}를 초과합니다"
        )

    unsatisfied = prover_pa.which_is_unsatisfied()
    if unsatisfied is not None:
        instance, label = unsatisfied
        raise ProofGenerationError(
            f"인스턴스 {instance}에서 제약 {label!r}이 만족되지 않습니다"
        )

    logger.info(
        "증명 생성: 인스턴스 %d, 도메인 %d, 공개 변수 %d, witness 변수 %d, 제약 %d",
        m, n, prover_pa.num_public, prover_pa.num_witness, len(prover_pa.constraints),
    )

    transcript = Transcript()
    proof = Proof()

    # ── 1. 공개 입력 흡수 + 열 보간 ──
    absorb_public_inputs(transcript, n, prover_pa.public_columns)
    public_polys = [domain.interpolate(column) for column in prover_pa.public_columns]

    # ── 2. witness 열 커밋 ──
    zh = Polynomial.vanishing(n)
    witness_polys = {}
    try:
        for j in prover_pa.referenced_witnesses():
            poly = domain.interpolate(prover_pa.witness_columns[j])
            if ck.hiding:
                poly = poly + zh * _random_scalar(rng)
            witness_polys[j] = poly
            comm = commit(poly, ck)
            proof.witness_indices.append(j)
            proof.witness_comms.append(comm)
            transcript.append_point(b"w_comm", comm)

        eta = transcript.challenge_scalar(b"eta")

        # ── 3. 몫 다항식 ──
        extension = 4 if ck.hiding else 2
        h_poly = _quotient_polynomial(
            prover_pa.constraints, public_polys, witness_polys, n, eta, extension
        )
        proof.h_comm = commit(h_poly, ck)
        transcript.append_point(b"h_comm", proof.h_comm)

        zeta = transcript.challenge_scalar(b"zeta")

        # ── 4. ζ에서 평가 ──
        opened = [h_poly] + [witness_polys[j] for j in proof.witness_indices]
        proof.h_eval = h_poly.evaluate(zeta)
        transcript.append_scalar(b"h_eval", proof.h_eval)
        for j in proof.witness_indices:
            value = witness_polys[j].evaluate(zeta)
            proof.witness_evals.append(value)
            transcript.append_scalar(b"w_eval", value)

        nu = transcript.challenge_scalar(b"nu")

        # ── 5. 일괄 열기 증명 ──
        proof.opening_comm = create_batch_witness(opened, zeta, nu, ck)
    except ValueError as exc:
        raise ProofGenerationError(f"커밋/열기 실패: {exc}") from exc

    return proof


def _quotient_polynomial(constraints, public_polys, witness_polys, n, eta, extension):
    """h(x) = Σ ηᵏ(Aₖ(x)Bₖ(x) - Cₖ(x)) / Z_H(x) 를 코셋 위에서 계산한다.

    크기 e·N 확장 도메인의 코셋에서 각 열 다항식을 평가해 점별로 결합하고
    Z_H 값으로 나눈 뒤 코셋 역변환으로 계수를 복원한다.
    """
    extended = Domain(n * extension)
    size = extended.size
    cache = {}

    def column_evals(var):
        key = (var.kind, var.index)
        if key not in cache:
            if var.kind == Variable.PUBLIC:
                poly = public_polys[var.index]
            else:
                poly = witness_polys[var.index]
            cache[key] = extended.coset_evaluate(poly)
        return cache[key]

    def lc_evals(lc):
        result = [FR(0)] * size
        for coeff, var in lc.terms:
            evals = column_evals(var)
            for i in range(size):
                result[i] = result[i] + coeff * evals[i]
        return result

    combined = [FR(0)] * size
    eta_power = FR(1)
    for constraint in constraints:
        a = lc_evals(constraint.a)
        b = lc_evals(constraint.b)
        c = lc_evals(constraint.c)
        for i in range(size):
            combined[i] = combined[i] + eta_power * (a[i] * b[i] - c[i])
        eta_power = eta_power * eta

    zh_inv = extended.vanishing_on_coset_inverses(n)
    h_evals = [combined[i] * zh_inv[i % extension] for i in range(size)]
    return extended.coset_interpolate(h_evals)
