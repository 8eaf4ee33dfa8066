"""Separate a leading `<think>` reasoning span from the visible answer.

`split_reasoning` is re-run on the whole accumulated text after every delta.
It holds no state, so calling it on a longer prefix of the same text always
extends the previous result.
"""

from __future__ import annotations

from dataclasses import dataclass

from lmchat.constants import THINK_CLOSE_TAG, THINK_OPEN_TAG


@dataclass(frozen=True)
class SplitResult:
    """Reasoning and answer parts of an assistant turn."""

    answer_text: str
    reasoning_text: str | None = None
    reasoning_complete: bool = False

    @property
    def has_reasoning(self) -> bool:
        """Whether the text contains a reasoning span."""
        return self.reasoning_text is not None


def _is_partial_tag(text: str, tag: str) -> bool:
    stripped = text.lstrip()
    return bool(stripped) and len(stripped) < len(tag) and tag.startswith(stripped)


def _trim_partial_suffix(text: str, tag: str) -> str:
    """Drop a trailing fragment that may grow into `tag`."""
    for size in range(len(tag) - 1, 0, -1):
        if text.endswith(tag[:size]):
            return text[:-size]
    return text


def split_reasoning(
    text: str,
    *,
    streaming: bool,
    open_tag: str = THINK_OPEN_TAG,
    close_tag: str = THINK_CLOSE_TAG,
) -> SplitResult:
    """Split accumulated assistant text into reasoning and answer.

    Args:
        text: The text accumulated so far.
        streaming: Whether more text may still arrive.
        open_tag: Marker opening the reasoning span.
        close_tag: Marker closing the reasoning span.

    Returns:
        A `SplitResult`. Without an opening marker the whole text is the
        answer. An unclosed span runs to the end of the text. The reasoning
        is complete once the closing marker appears, or once streaming has
        stopped with nothing left to show as an answer.

    """
    start = text.find(open_tag)
    if start == -1:
        if streaming and _is_partial_tag(text, open_tag):
            return SplitResult(answer_text="")
        return SplitResult(answer_text=text)

    body_start = start + len(open_tag)
    end = text.find(close_tag, body_start)
    if end == -1:
        reasoning = text[body_start:]
        if streaming:
            reasoning = _trim_partial_suffix(reasoning, close_tag)
        remainder = text[:start]
        closed = False
    else:
        reasoning = text[body_start:end]
        remainder = text[:start] + text[end + len(close_tag) :]
        closed = True

    answer = remainder.strip()
    return SplitResult(
        answer_text=answer,
        reasoning_text=reasoning.strip(),
        reasoning_complete=closed or (not streaming and not answer),
    )


@dataclass
class ReasoningPanelState:
    """Expanded/collapsed state of a reasoning panel.

    The panel is open while reasoning is in progress and closes by itself
    the first time completion is observed. Once the user toggles it, the
    automatic behaviour stops.
    """

    expanded: bool = True
    auto_collapsed: bool = False
    user_override: bool = False

    def observe(self, result: SplitResult) -> None:
        """Update the automatic state from a fresh split."""
        if not result.has_reasoning or self.user_override:
            return
        if not result.reasoning_complete:
            self.expanded = True
        elif not self.auto_collapsed:
            self.expanded = False
            self.auto_collapsed = True

    def toggle(self) -> bool:
        """Flip the panel and return the new state."""
        self.expanded = not self.expanded
        self.user_override = True
        return self.expanded
