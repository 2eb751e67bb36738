"""
origin-guard 관리자 CLI 도구

argparse 기반 stdlib only 관리 CLI.
서브커맨드: check, origins, config, validate

사용법:
    python admin_cli.py check https://app.example.com
    python admin_cli.py check https://evil.example.com --preflight --json
    python admin_cli.py origins
    python admin_cli.py config show
    python admin_cli.py validate
"""

from __future__ import annotations

import argparse
import dataclasses
import json
import sys


def build_parser() -> argparse.ArgumentParser:
    """argparse 파서 구성"""
    parser = argparse.ArgumentParser(
        prog="origin-guard-admin",
        description="origin-guard 관리자 CLI",
        formatter_class=argparse.RawDescriptionHelpFormatter,
    )
    subparsers = parser.add_subparsers(dest="command", help="서브커맨드")

    # ========== check ==========
    check_parser = subparsers.add_parser("check", help="Origin 허용 여부 판정")
    check_parser.add_argument("origin", help="요청 Origin 헤더 값")
    check_parser.add_argument("--preflight", action="store_true",
                              help="OPTIONS preflight 응답 헤더 표시")
    check_parser.add_argument("--json", action="store_true", help="JSON 형식 출력")

    # ========== origins ==========
    subparsers.add_parser("origins", help="허용 Origin 목록")

    # ========== config ==========
    config_parser = subparsers.add_parser("config", help="설정 관리")
    config_sub = config_parser.add_subparsers(dest="config_action", help="config 액션")
    config_sub.add_parser("show", help="전체 설정 JSON 출력")

    # ========== validate ==========
    subparsers.add_parser("validate", help="시작 시 검증 실행")

    return parser


# ============================================================
# check
# ============================================================

def cmd_check(args) -> int:
    """Origin 판정 결과와 응답 헤더 출력"""
    from config import get_config
    from cors import cors_config_from_config, evaluate, respond_actual, respond_preflight
    from originguard.allowlist import allow_list_from_config

    cfg = get_config()
    cors_cfg = cors_config_from_config(cfg)
    decision = evaluate(args.origin, allow_list_from_config(cfg), cors_cfg.credentials)
    respond = respond_preflight if args.preflight else respond_actual
    headers = respond(decision, cors_cfg.credentials, cors_cfg)

    if args.json:
        print(json.dumps({
            "origin": args.origin,
            "allowed": decision.allowed,
            "headers": headers,
        }, indent=2, ensure_ascii=False))
    else:
        print(f"{args.origin}: {'ALLOWED' if decision.allowed else 'DENIED'}")
        for key, value in headers.items():
            print(f"  {key}: {value}")
    return 0 if decision.allowed else 1


# ============================================================
# origins
# ============================================================

def cmd_origins(args) -> int:
    """허용 Origin 목록 출력"""
    from config import get_config
    from originguard.allowlist import allow_list_from_config

    allow_list = allow_list_from_config(get_config())
    if not len(allow_list):
        print("허용된 Origin이 없습니다.")
        return 0
    for origin in allow_list:
        print(origin)
    return 0


# ============================================================
# config
# ============================================================

def cmd_config(args) -> int:
    """설정 출력"""
    from config import get_config

    if args.config_action == "show":
        print(json.dumps(dataclasses.asdict(get_config()), indent=2, ensure_ascii=False))
        return 0
    print("사용법: admin_cli.py config show", file=sys.stderr)
    return 1


# ============================================================
# validate
# ============================================================

def cmd_validate(args) -> int:
    """설정 검증 (실패 시 종료 코드 1)"""
    from config import get_config
    from originguard.allowlist import allow_list_from_config
    from originguard.validate import ConfigurationError, validate_on_boot

    cfg = get_config()
    try:
        validate_on_boot(cfg, allow_list_from_config(cfg))
    except ConfigurationError as e:
        print(f"Error: {e}", file=sys.stderr)
        return 1
    print("OK")
    return 0


_COMMANDS = {
    "check": cmd_check,
    "origins": cmd_origins,
    "config": cmd_config,
    "validate": cmd_validate,
}


def main(argv=None):
    """메인 엔트리포인트"""
    from dotenv import load_dotenv

    parser = build_parser()
    args = parser.parse_args(argv)

    if not args.command:
        parser.print_help()
        sys.exit(1)

    load_dotenv()
    sys.exit(_COMMANDS[args.command](args))


if __name__ == "__main__":
    main()
