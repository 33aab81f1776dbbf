"""
App layer: 전송 셸 (FastAPI).

역할:
- WebSocket / SSE 전송, 세션 연결/해제
- 백엔드 provider (Anthropic) 조립
- ⚠️ 분류/취소 로직 없음 (core에 위임)
"""
