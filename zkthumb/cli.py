"""
zkthumb 명령행 인터페이스
==========================

실행:
    zkthumb run --source demo.jpg --ratio 10 --position 5
    zkthumb certify --source demo.jpg --store certificates.json
    zkthumb check --certificate <id> --thumbnail test.png

종료 코드: 0 검증 성공, 1 검증 실패, 2 오류
"""

import argparse
import logging
import sys

from zkthumb.certificates import CertificateStore, build_certificate, verify_certificate
from zkthumb.config import (
    DEFAULT_OUTPUT,
    DEFAULT_POSITION,
    DEFAULT_RATIO,
    DEFAULT_SOURCE,
    AppConfig,
    ThumbnailConfig,
)
from zkthumb.errors import ZkThumbError
from zkthumb.thumbnail import imaging
from zkthumb.thumbnail.driver import ThumbnailProtocol

EXIT_OK = 0
EXIT_REJECTED = 1
EXIT_ERROR = 2


def _add_pipeline_args(p):
    p.add_argument("--ratio", "-n", type=int, default=DEFAULT_RATIO, help="다운샘플링 비율 n")
    p.add_argument("--position", "-p", type=int, default=DEFAULT_POSITION,
                   help="블록 내 선택 인덱스 p (0 <= p < n*n)")
    p.add_argument("--source", default=DEFAULT_SOURCE, help="원본 이미지 경로")
    p.add_argument("--output", default=DEFAULT_OUTPUT, help="썸네일 저장 경로 (무손실 형식)")
    p.add_argument("--seed", type=int, default=None, help="rng 시드 (재현용)")
    p.add_argument("--hiding", action="store_true", help="하이딩 커밋먼트 사용")
    p.add_argument("--truncate", action="store_true",
                   help="n의 배수가 아닌 나머지 행/열을 버림")
    p.add_argument("--workers", type=int, default=1, help="블록 인코딩 작업자 수")


def build_parser():
    parser = argparse.ArgumentParser(
        prog="zkthumb", description="썸네일이 원본 이미지에서 추출되었음을 증명"
    )
    parser.add_argument("--verbose", "-v", action="store_true", help="디버그 로그 출력")
    subparsers = parser.add_subparsers(dest="command", required=True)

    run_p = subparsers.add_parser("run", help="썸네일 생성 + 증명 + 검증")
    _add_pipeline_args(run_p)

    certify_p = subparsers.add_parser("certify", help="run 후 인증서를 저장")
    _add_pipeline_args(certify_p)
    certify_p.add_argument("--store", default=None, help="인증서 저장소 (TinyDB JSON 파일)")

    check_p = subparsers.add_parser("check", help="저장된 인증서로 썸네일 검증")
    check_p.add_argument("--certificate", required=True, help="인증서 id")
    check_p.add_argument("--thumbnail", required=True, help="썸네일 이미지 경로")
    check_p.add_argument("--store", default=None, help="인증서 저장소 (TinyDB JSON 파일)")
    return parser


def _config_from_args(args):
    return ThumbnailConfig(
        ratio=args.ratio,
        position=args.position,
        source=args.source,
        output=args.output,
        seed=args.seed,
        hiding=args.hiding,
        allow_truncation=args.truncate,
        workers=args.workers,
    )


def _store_path(args):
    return args.store if args.store is not None else AppConfig.from_env().store_path


def _run_pipeline(config):
    print(f"[1] 원본 로드: {config.source} (n={config.ratio}, p={config.position})")
    report = ThumbnailProtocol(config).run()
    grid = report.grid
    print(f"    썸네일 {grid.new_x}x{grid.new_y}, 블록 {report.block_count}개, 차수 {report.degree}")
    print(f"[2] Generating CRS time: {report.timings['setup']:.3f}s")
    print(f"[3] Proving time: {report.timings['prove']:.3f}s")
    print(f"    썸네일 저장: {report.thumbnail_path}")
    print(f"[4] Verifying time: {report.timings['verify']:.3f}s")
    print(f"    검증 결과: {'성공 ✓' if report.verified else '실패 ✗'}")
    return report


def cmd_run(args):
    report = _run_pipeline(_config_from_args(args))
    return EXIT_OK if report.verified else EXIT_REJECTED


def cmd_certify(args):
    config = _config_from_args(args)
    report = _run_pipeline(config)
    cert = build_certificate(config, report)
    with CertificateStore.open(_store_path(args)) as store:
        cert_id = store.save(cert)
    print(f"[5] 인증서 저장: {cert_id}")
    return EXIT_OK if report.verified else EXIT_REJECTED


def cmd_check(args):
    with CertificateStore.open(_store_path(args)) as store:
        cert = store.get(args.certificate)
    if cert is None:
        print(f"인증서를 찾을 수 없습니다: {args.certificate}", file=sys.stderr)
        return EXIT_ERROR
    thumbnail = imaging.load_image(args.thumbnail)
    result = verify_certificate(cert, thumbnail)
    print(f"검증 결과: {'성공 ✓' if result else '실패 ✗'}")
    return EXIT_OK if result else EXIT_REJECTED


COMMANDS = {
    "run": cmd_run,
    "certify": cmd_certify,
    "check": cmd_check,
}


def main(argv=None):
    args = build_parser().parse_args(argv)
    logging.basicConfig(
        level=logging.DEBUG if args.verbose else logging.WARNING,
        format="%(levelname)s %(name)s: %(message)s",
    )
    try:
        return COMMANDS[args.command](args)
    except ZkThumbError as exc:
        print(f"오류: {exc}", file=sys.stderr)
        return EXIT_ERROR


if __name__ == "__main__":
    sys.exit(main())
