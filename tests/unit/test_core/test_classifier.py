"""
test_classifier.py - 누적 버퍼 / 영역 분류 테스트

DoD:
- 마커가 fragment 경계에 걸쳐도 재조립되어 진입 판정
- 닫는 fence가 없으면 마커 이후 전부가 code
- 첫 closing fence에서 payload 종료 (non-greedy)
- 한번 진입하면 append만으로는 되돌아가지 않음
"""

import pytest

from src.core.classifier import FenceSpec, RegionClassifier, append

# =============================================================================
# append 테스트
# =============================================================================


class TestAppend:
    """append 함수 테스트."""

    def test_concatenates(self):
        """그대로 이어 붙임."""
        assert append("Intro ", "text") == "Intro text"

    @pytest.mark.parametrize("fragment", ["", None])
    def test_empty_fragment_is_noop(self, fragment):
        """빈 fragment → 버퍼 그대로."""
        assert append("abc", fragment) == "abc"

    def test_no_normalization(self):
        """공백/개행 정규화 없음."""
        assert append("a\n", "  b\t") == "a\n  b\t"


# =============================================================================
# RegionClassifier 테스트
# =============================================================================


class TestRegionClassifier:
    """RegionClassifier.classify 테스트."""

    @pytest.fixture
    def classifier(self):
        return RegionClassifier()

    def test_not_entered(self, classifier):
        """마커 없음 → analysis는 trim된 전체, code는 빈 문자열."""
        result = classifier.classify("  Building a timer.\n")

        assert result.entered is False
        assert result.analysis == "Building a timer."
        assert result.code == ""

    def test_full_region(self, classifier):
        """분석 + 닫힌 코드 블록."""
        result = classifier.classify("Building a ___ tool.\n```html\n<div>hi</div>\n```")

        assert result.entered is True
        assert result.analysis == "Building a ___ tool."
        assert result.code == "<div>hi</div>\n"

    def test_missing_closing_fence(self, classifier):
        """닫는 fence 없음 → 마커 이후 전부."""
        result = classifier.classify("Intro\n```html\n<p>partial")

        assert result.entered is True
        assert result.code == "<p>partial"

    @pytest.mark.parametrize("buffer", ["Intro ```html", "Intro ```html\n"])
    def test_empty_payload(self, classifier, buffer):
        """마커 직후 → 진입했지만 code는 빈 문자열."""
        result = classifier.classify(buffer)

        assert result.entered is True
        assert result.code == ""

    def test_newline_after_marker_optional(self, classifier):
        """마커 뒤 개행 없이 바로 payload."""
        result = classifier.classify("```html<p>x</p>```")

        assert result.code == "<p>x</p>"

    def test_only_one_newline_skipped(self, classifier):
        """마커 뒤 개행은 1개만 건너뜀."""
        result = classifier.classify("```html\n\n<p>")

        assert result.code == "\n<p>"

    def test_first_closing_fence_terminates(self, classifier):
        """첫 번째 closing fence에서 종료."""
        result = classifier.classify("```html\na\n```\nmore text\n```")

        assert result.code == "a\n"

    def test_marker_split_across_fragments(self, classifier):
        """마커가 두 fragment에 나뉘어 도착."""
        buffer = append("Intro ``", "`ht")
        assert classifier.classify(buffer).entered is False

        buffer = append(buffer, "ml\n<p>")
        result = classifier.classify(buffer)

        assert result.entered is True
        assert result.analysis == "Intro"
        assert result.code == "<p>"

    def test_other_fence_language_not_entered(self, classifier):
        """다른 언어 fence는 코드 영역 아님."""
        result = classifier.classify("Example:\n```js\nlet a = 1;\n```")

        assert result.entered is False

    def test_idempotent(self, classifier):
        """같은 버퍼 → 같은 결과."""
        buffer = "Plan\n```html\n<b>"

        assert classifier.classify(buffer) == classifier.classify(buffer)

    def test_monotonic_over_prefixes(self, classifier):
        """버퍼 prefix가 길어지는 동안 한번 진입하면 계속 진입 상태."""
        text = "Let me sketch it.\n```html\n<main>app</main>\n```\nDone."
        entered_seen = False

        for end in range(len(text) + 1):
            entered = classifier.classify(text[:end]).entered
            if entered_seen:
                assert entered is True
            entered_seen = entered_seen or entered

        assert entered_seen is True

    def test_custom_fence(self):
        """설정으로 fence 교체."""
        classifier = RegionClassifier(FenceSpec(opening="<<<", closing=">>>"))

        result = classifier.classify("notes <<<body>>> tail")

        assert result.entered is True
        assert result.analysis == "notes"
        assert result.code == "body"

    def test_fence_special_characters_escaped(self):
        """정규식 특수문자 fence도 문자 그대로 매칭."""
        classifier = RegionClassifier(FenceSpec(opening="[code]", closing="[/code]"))

        result = classifier.classify("x [code]a.b[/code]")

        assert result.code == "a.b"
