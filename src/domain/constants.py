"""
Domain Constants: 생성 relay 전역 상수.

fence 마커, 상태 메시지, 프롬프트 등 시스템 전반에서 사용되는 값들.
"""

# =============================================================================
# Fence Markers (코드 영역 구분자)
# =============================================================================
# 백엔드 출력 형식:
#   <분석 텍스트>
#   ```html
#   <완전한 HTML 파일>
#   ```

DEFAULT_OPENING_FENCE = "```html"
DEFAULT_CLOSING_FENCE = "```"

# =============================================================================
# Status Phases (상태 이벤트)
# =============================================================================

PHASE_CONNECTING = "connecting"
PHASE_THINKING = "thinking"
PHASE_GENERATING = "generating"

STATUS_MESSAGES = {
    PHASE_CONNECTING: "Dreamware is waking up...",
    PHASE_THINKING: "Dreamware is dreaming...",
    PHASE_GENERATING: "Dreamware is imagining your app...",
}

# =============================================================================
# Inbound Message Types (WebSocket)
# =============================================================================

INBOUND_GENERATE = "generate"
INBOUND_CANCEL = "cancel"

# =============================================================================
# Prompts
# =============================================================================

USER_PROMPT_PREFIX = "Create an app: "

SYSTEM_PROMPT = """You are Dreamware, an expert app generator that creates beautiful, functional web applications.

When given an app description, you will:
1. First, briefly analyze what the user wants (1-2 sentences)
2. Then generate a complete, working HTML file with embedded CSS and JavaScript

IMPORTANT OUTPUT FORMAT:
- Start your code output with exactly: ```html
- End your code output with exactly: ```
- The code block must contain a complete, self-contained HTML file
- Include all CSS in a <style> tag
- Include all JavaScript in a <script> tag

DESIGN PRINCIPLES:
- Modern, clean UI with glassmorphism effects
- Smooth animations and transitions
- Mobile-responsive design
- Beautiful gradients and shadows
- Professional typography
- Dark mode friendly color schemes

TECHNICAL REQUIREMENTS:
- Pure HTML/CSS/JavaScript (no external dependencies)
- Self-contained in a single file
- Functional interactions where applicable
- Accessible and semantic HTML

Be creative and make the app visually stunning while being fully functional."""
