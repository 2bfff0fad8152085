"""StateClassifier for deriving a session's state from its pane text.

Pure and deterministic: the same captured lines always produce the same
state. Rules, in order:

1. Scan backward for the agent's prompt line. Blank, separator and footer
   lines are transparent to the scan; other lines count against the search
   depth. A prompt whose box shows activity (spinner status above it, or an
   interrupt hint below it) is busy and counts as not found.
2. Prompt found: a free-form question at/after the prompt -> WAITING,
   a yes/no request at/after the prompt -> APPROVAL.
3. Prompt found, nothing pending -> IDLE.
4. No prompt: a progress indicator anywhere in the window -> RUNNING.
5. A termination marker -> STOPPED.
6. Anything else -> UNKNOWN.
"""

import re
from dataclasses import dataclass
from enum import Enum

from claudeye.models.config import PatternConfig
from claudeye.models.session import CapturedContent, SessionState

BOX_DRAWING_START = "─"
BOX_DRAWING_END = "╿"


class ClassificationRule(str, Enum):
    """Which rule decided the state."""

    EMPTY = "empty"
    PROMPT_WAITING = "prompt_waiting"
    PROMPT_APPROVAL = "prompt_approval"
    PROMPT_IDLE = "prompt_idle"
    RUNNING = "running"
    STOPPED = "stopped"
    NO_MATCH = "no_match"


@dataclass(frozen=True)
class Classification:
    """Result of classifying captured content."""

    state: SessionState
    rule: ClassificationRule
    prompt_index: int | None = None  # Line index of the prompt, if one was found
    pattern: str | None = None  # Pattern that decided the state, if any


@dataclass(frozen=True)
class _PromptScan:
    index: int | None = None
    busy: bool = False


def is_separator_line(line: str) -> bool:
    """True if every character is a box-drawing character (U+2500-U+257F)."""
    stripped = line.strip()
    return bool(stripped) and all(BOX_DRAWING_START <= c <= BOX_DRAWING_END for c in stripped)


def _is_blank_or_separator(line: str) -> bool:
    stripped = line.strip()
    return not stripped or is_separator_line(stripped)


class StateClassifier:
    """Classifies captured pane content into a SessionState.

    Patterns come from PatternConfig so wording changes in the agent CLI can
    be followed without touching the rules.
    """

    def __init__(
        self,
        patterns: PatternConfig | None = None,
        prompt_search_depth: int = 12,
        status_block_lines: int = 12,
    ):
        """Initialize the classifier.

        Args:
            patterns: Recognition patterns. Defaults to PatternConfig().
            prompt_search_depth: Content lines the backward prompt scan may cross.
            status_block_lines: Lines of the status paragraph above the prompt
                box that are checked for activity.
        """
        patterns = patterns or PatternConfig()
        self.prompt_search_depth = prompt_search_depth
        self.status_block_lines = status_block_lines

        self._prompt = [re.compile(p) for p in patterns.prompt]
        self._footer = [re.compile(p) for p in patterns.footer]
        self._approval = [re.compile(p, re.MULTILINE) for p in patterns.approval]
        self._waiting = [re.compile(p, re.MULTILINE) for p in patterns.waiting]
        self._running = [re.compile(p) for p in patterns.running]
        self._stopped = [re.compile(p) for p in patterns.stopped]

    def classify(self, content: CapturedContent | str) -> SessionState:
        """Classify captured content.

        Args:
            content: Captured pane content (raw text is accepted too).

        Returns:
            The SessionState.
        """
        return self.interpret(content).state

    def interpret(self, content: CapturedContent | str) -> Classification:
        """Classify captured content and report which rule decided it."""
        if isinstance(content, str):
            content = CapturedContent.from_text(content)
        lines = content.lines

        if content.is_blank():
            return Classification(state=SessionState.UNKNOWN, rule=ClassificationRule.EMPTY)

        scan = self._find_prompt(lines)
        if scan.index is not None and not scan.busy:
            pending = "\n".join(lines[scan.index :])

            pattern = self._first_search(self._waiting, pending)
            if pattern is not None:
                return Classification(
                    state=SessionState.WAITING,
                    rule=ClassificationRule.PROMPT_WAITING,
                    prompt_index=scan.index,
                    pattern=pattern,
                )

            pattern = self._first_search(self._approval, pending)
            if pattern is not None:
                return Classification(
                    state=SessionState.APPROVAL,
                    rule=ClassificationRule.PROMPT_APPROVAL,
                    prompt_index=scan.index,
                    pattern=pattern,
                )

            return Classification(
                state=SessionState.IDLE,
                rule=ClassificationRule.PROMPT_IDLE,
                prompt_index=scan.index,
            )

        pattern = self._first_line_match(self._running, lines)
        if pattern is not None:
            return Classification(
                state=SessionState.RUNNING,
                rule=ClassificationRule.RUNNING,
                prompt_index=scan.index,
                pattern=pattern,
            )

        pattern = self._first_line_match(self._stopped, lines)
        if pattern is not None:
            return Classification(
                state=SessionState.STOPPED,
                rule=ClassificationRule.STOPPED,
                pattern=pattern,
            )

        return Classification(state=SessionState.UNKNOWN, rule=ClassificationRule.NO_MATCH)

    def is_prompt_line(self, line: str) -> bool:
        return any(p.search(line.strip()) for p in self._prompt)

    def is_footer_line(self, line: str) -> bool:
        return any(p.search(line.strip()) for p in self._footer)

    def _find_prompt(self, lines: tuple[str, ...]) -> _PromptScan:
        """Scan backward for the most recent prompt line.

        Footer lines are skipped and the scan keeps going past them; only
        ordinary content lines use up the search depth.
        """
        crossed = 0
        for index in range(len(lines) - 1, -1, -1):
            line = lines[index]
            if _is_blank_or_separator(line):
                continue
            if self.is_prompt_line(line):
                return _PromptScan(index=index, busy=self._prompt_is_busy(lines, index))
            if self.is_footer_line(line):
                continue
            crossed += 1
            if crossed >= self.prompt_search_depth:
                break
        return _PromptScan()

    def _prompt_is_busy(self, lines: tuple[str, ...], index: int) -> bool:
        """Check the prompt's surroundings for an active-processing indicator.

        Looks at every line from the prompt to the end, and at the status
        paragraph directly above the prompt box.
        """
        if self._first_line_match(self._running, lines[index:]) is not None:
            return True
        return self._first_line_match(self._running, self._status_block(lines, index)) is not None

    def _status_block(self, lines: tuple[str, ...], index: int) -> list[str]:
        above = index - 1
        while above >= 0 and _is_blank_or_separator(lines[above]):
            above -= 1

        block = []
        while above >= 0 and len(block) < self.status_block_lines:
            if _is_blank_or_separator(lines[above]):
                break
            block.append(lines[above])
            above -= 1
        return block

    @staticmethod
    def _first_search(patterns: list[re.Pattern], text: str) -> str | None:
        for pattern in patterns:
            if pattern.search(text):
                return pattern.pattern
        return None

    @staticmethod
    def _first_line_match(patterns: list[re.Pattern], lines) -> str | None:
        for pattern in patterns:
            for line in lines:
                if pattern.search(line):
                    return pattern.pattern
        return None


_default_classifier: StateClassifier | None = None


def classify(content: CapturedContent | str) -> SessionState:
    """Classify content with the default patterns."""
    global _default_classifier
    if _default_classifier is None:
        _default_classifier = StateClassifier()
    return _default_classifier.classify(content)
