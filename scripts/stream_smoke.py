#!/usr/bin/env python
"""
생성 스트림 스모크 테스트 스크립트.

실제 Anthropic API로 생성 1회를 돌리고 outbound 이벤트를 요약 출력한다.

실행:
    uv run python scripts/stream_smoke.py "a pomodoro timer"
    uv run python scripts/stream_smoke.py --cancel-after 5 "a todo list"
"""

import argparse
import asyncio
import os
import sys
from pathlib import Path

# 프로젝트 루트를 path에 추가
sys.path.insert(0, str(Path(__file__).parent.parent))

# .env 파일 로드
from dotenv import load_dotenv
load_dotenv()


async def run_once(prompt: str, cancel_after: int | None) -> bool:
    """생성 1회 실행. complete/cancelled로 끝나면 True."""
    print("\n" + "=" * 60)
    print("🧪 Dreamware 생성 스트림 테스트")
    print("=" * 60)

    api_key = os.environ.get("MY_ANTHROPIC_KEY") or os.environ.get("ANTHROPIC_API_KEY")
    if not api_key or api_key.startswith("sk-ant-api03-..."):
        print("❌ MY_ANTHROPIC_KEY가 설정되지 않았습니다.")
        print("   .env 파일에 실제 API 키를 입력하세요.")
        return False

    from src.app.dependencies import build_backend, build_classifier
    from src.app.main import load_config
    from src.core.generation import GenerationController
    from src.core.sessions import SessionRegistry

    config = load_config()
    registry = SessionRegistry()
    controller = GenerationController(
        registry,
        build_backend(config),
        build_classifier(config),
    )
    session_id = registry.create(channel="cli")

    print(f"📤 요청: {prompt}")
    last_type = None
    code_events = 0
    terminal = None

    async for event in controller.start(session_id, prompt):
        if event.type == "code":
            code_events += 1
            if cancel_after is not None and code_events >= cancel_after:
                registry.cancel(session_id)
        elif event.type != last_type or event.type != "analysis":
            print(f"📥 {event.to_json()[:160]}")
        last_type = event.type
        if event.type in ("complete", "cancelled", "error"):
            terminal = event

    print(f"   code 이벤트 수: {code_events}")
    if terminal is None:
        print("❌ 종료 이벤트 없음")
        return False
    if terminal.type == "error":
        print(f"❌ 생성 실패: {terminal.to_dict().get('message')}")
        return False

    print(f"✅ 종료: {terminal.type}")
    return True


def main() -> int:
    parser = argparse.ArgumentParser(description="Dreamware stream smoke test")
    parser.add_argument("prompt", nargs="?", default="a minimal pomodoro timer")
    parser.add_argument(
        "--cancel-after",
        type=int,
        default=None,
        help="code 이벤트 N개 수신 후 취소",
    )
    args = parser.parse_args()

    passed = asyncio.run(run_once(args.prompt, args.cancel_after))
    print("=" * 60)
    print("🎉 스트림 테스트 통과!" if passed else "⚠️ 스트림 테스트 실패. .env 파일을 확인하세요.")
    return 0 if passed else 1


if __name__ == "__main__":
    sys.exit(main())
