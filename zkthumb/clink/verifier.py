"""
CLINK Verifier
================

일괄 R1CS 증명을 검증한다.

**검증 과정**:
  1. 공개 입력 모양 확인: 공개 변수 하나당 그룹 하나, 모든 그룹의 길이 m이 같음
  2. Fiat-Shamir 트랜스크립트 재생 → η, ζ, ν 복원
  3. 공개 열을 ζ에서 Lagrange 평가: w_pub(ζ) = Σ vᵢ · Lᵢ(ζ)
  4. 제약 등식: Σ ηᵏ(Aₖ(ζ)Bₖ(ζ) - Cₖ(ζ)) == h(ζ) · Z_H(ζ)
  5. 일괄 KZG 검사:
       F = [h]₁ + Σ νⁱ⁺¹·[w_i]₁,  E = h(ζ) + Σ νⁱ⁺¹·w_i(ζ)
       e(F - E·G1, G2) == e(W, [τ - ζ]₂)

**False와 예외의 구분**:
  증명이 틀렸으면 False를 반환한다. 공개 입력의 모양이 Verifier 구조와
  맞지 않는 등 검증 자체를 수행할 수 없을 때만 VerificationError를 던진다.

사용 예시:
    >>> from zkthumb.clink.verifier import verify_proof
    >>> ok = verify_proof(verifier_pa, vk, proof, io)
"""

import logging

from zkthumb.clink.domain import Domain
from zkthumb.clink.field import FR, ec_lincomb
from zkthumb.clink.kzg import verify_opening
from zkthumb.clink.prover import absorb_public_inputs
from zkthumb.clink.r1cs import Variable
from zkthumb.clink.transcript import Transcript
from zkthumb.errors import VerificationError

logger = logging.getLogger(__name__)


def _normalize_io(verifier_pa, io):
    if len(io) != verifier_pa.num_public:
        raise VerificationError(
            f"공개 입력 그룹 수 {len(io)}가 공개 변수 수 {verifier_pa.num_public}와 다릅니다"
        )
    if not io:
        raise VerificationError("공개 입력이 비어 있습니다")
    m = len(io[0])
    if m == 0:
        raise VerificationError("공개 입력 그룹이 비어 있습니다")
    columns = []
    for group in io:
        if len(group) != m:
            raise VerificationError("공개 입력 그룹의 길이가 서로 다릅니다")
        try:
            columns.append([v if isinstance(v, FR) else FR(v) for v in group])
        except TypeError as exc:
            raise VerificationError(f"공개 입력을 필드 원소로 변환할 수 없습니다: {exc}") from exc
    return columns


def verify_proof(verifier_pa, vk, proof, io):
    """증명을 검증한다.

    Args:
        verifier_pa: VerifyAssignment (인스턴스 0의 구조)
        vk: VerifyingKey
        proof: Proof
        io: 공개 입력 벡터 [[그룹 0 값들], [그룹 1 값들], ...]

    Returns:
        bool: 검증 성공 여부

    Raises:
        VerificationError: 공개 입력 모양 오류, 도메인이 키 차수를 초과,
                           증명 원소가 곡선 위의 점이 아님
    """
    columns = _normalize_io(verifier_pa, io)
    m = len(columns[0])
    domain = Domain.for_instances(m)
    n = domain.size
    if n > vk.max_degree:
        raise VerificationError(
            f"도메인 크기 {n}가 검증 키 차수 {vk.max_degree}를 초과합니다"
        )

    referenced = verifier_pa.referenced_witnesses()
    if (
        list(proof.witness_indices) != referenced
        or len(proof.witness_comms) != len(referenced)
        or len(proof.witness_evals) != len(referenced)
        or proof.h_eval is None
    ):
        logger.info("증명의 witness 구성이 검증 구조와 다릅니다")
        return False

    # ── 1. 트랜스크립트 재생 ──
    transcript = Transcript()
    absorb_public_inputs(transcript, n, columns)
    for comm in proof.witness_comms:
        transcript.append_point(b"w_comm", comm)
    eta = transcript.challenge_scalar(b"eta")
    transcript.append_point(b"h_comm", proof.h_comm)
    zeta = transcript.challenge_scalar(b"zeta")
    transcript.append_scalar(b"h_eval", proof.h_eval)
    for value in proof.witness_evals:
        transcript.append_scalar(b"w_eval", value)
    nu = transcript.challenge_scalar(b"nu")

    # ── 2. ζ에서의 열 값 ──
    public_at_zeta = {}
    witness_at_zeta = dict(zip(proof.witness_indices, proof.witness_evals))

    def lookup(var):
        if var.kind == Variable.WITNESS:
            return witness_at_zeta[var.index]
        if var.index not in public_at_zeta:
            public_at_zeta[var.index] = domain.evaluate_interpolant(columns[var.index], zeta)
        return public_at_zeta[var.index]

    # ── 3. 제약 등식 ──
    combined = FR(0)
    eta_power = FR(1)
    for constraint in verifier_pa.constraints:
        a = constraint.a.evaluate(lookup)
        b = constraint.b.evaluate(lookup)
        c = constraint.c.evaluate(lookup)
        combined = combined + eta_power * (a * b - c)
        eta_power = eta_power * eta

    if combined != proof.h_eval * domain.vanishing_at(zeta):
        logger.info("제약 등식 불일치: 공개 입력 또는 평가값이 증명과 맞지 않습니다")
        return False

    # ── 4. 일괄 KZG 검사 ──
    scalars = []
    nu_power = FR(1)
    e_scalar = FR(0)
    for value in [proof.h_eval] + list(proof.witness_evals):
        scalars.append(nu_power)
        e_scalar = e_scalar + nu_power * value
        nu_power = nu_power * nu

    try:
        f_comm = ec_lincomb([proof.h_comm] + list(proof.witness_comms), scalars)
        result = verify_opening(f_comm, proof.opening_comm, zeta, e_scalar, vk)
    except (ValueError, TypeError) as exc:
        raise VerificationError(f"페어링 계산 실패: {exc}") from exc

    if not result:
        logger.info("KZG 열기 검사 실패")
    return result
