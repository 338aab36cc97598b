"""
블록 회로 (Block Circuit)
==========================

블록 하나에 대해 "선택 위치 p의 입력 픽셀 == 출력 썸네일 픽셀"을 표현한다.

**변수 배치 (인스턴스마다 같은 순서)**:
  | 순서 | 종류    | 레이블      | 값                            |
  |------|---------|-------------|-------------------------------|
  | 0    | public  | one         | 1                             |
  | 1..  | witness | input_k     | 블록의 k번째 픽셀 (k < n²)      |
  | 끝   | public  | output      | 썸네일 픽셀                     |

**제약**:
  input[p] · 1 = output

  제약은 인스턴스 0에서만 등록한다. 구조는 모든 인스턴스가 공유하고,
  일괄 처리 계층이 인스턴스별 값만 열(column)에 쌓는다.

**Prover/Verifier 공용**:
  generate_constraints는 하나뿐이다. 제약 시스템의 mode가
  Mode.WITH_WITNESS이면 값을 묶고, Mode.STRUCTURE_ONLY이면 값 없이
  같은 변수와 제약을 등록한다. 두 경로의 구조가 어긋날 수 없다.
"""

from zkthumb.clink.field import FR
from zkthumb.clink.r1cs import Mode
from zkthumb.errors import AssignmentMissing


class BlockCircuit:
    """블록 인스턴스 하나.

    Args:
        config: ThumbnailConfig (ratio, position)
        inputs: 블록 픽셀의 FR 값 리스트 (평탄화 순서 i*n+j), Verifier는 None
        output: 썸네일 픽셀의 FR 값, Verifier는 None
    """

    def __init__(self, config, inputs=None, output=None):
        self.config = config
        self.inputs = inputs
        self.output = output

    def _check_values(self):
        capacity = self.config.capacity
        if self.inputs is None or len(self.inputs) != capacity:
            got = "없음" if self.inputs is None else len(self.inputs)
            raise AssignmentMissing(f"블록 입력은 {capacity}개여야 합니다 (받은 값: {got})")
        if self.output is None:
            raise AssignmentMissing("블록 출력 값이 없습니다")

    def generate_constraints(self, cs, index):
        """제약 시스템 cs에 인스턴스 index의 변수와 (index 0이면) 제약을 등록한다.

        Returns:
            (input_vars, output_var)
        """
        with_values = cs.mode is Mode.WITH_WITNESS
        if with_values:
            self._check_values()

        one = cs.alloc_public("one", FR(1), index)

        input_vars = []
        for k in range(self.config.capacity):
            value = self.inputs[k] if with_values else None
            input_vars.append(cs.alloc_witness(f"input_{k}", value, index))

        output_var = cs.alloc_public("output", self.output if with_values else None, index)

        if index == 0:
            selected = input_vars[self.config.position]
            cs.enforce(
                "input[p] * 1 = output",
                lambda lc: lc + selected,
                lambda lc: lc + one,
                lambda lc: lc + output_var,
                index,
            )
        return input_vars, output_var
