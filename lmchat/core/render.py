"""Rich renderables for transcript turns."""

from __future__ import annotations

from dataclasses import dataclass, field
from typing import TYPE_CHECKING

from rich.console import Group
from rich.markdown import Markdown
from rich.panel import Panel
from rich.spinner import Spinner
from rich.text import Text

from lmchat.core.reasoning import ReasoningPanelState, SplitResult, split_reasoning

if TYPE_CHECKING:
    from rich.console import RenderableType

    from lmchat.core.preferences import Theme
    from lmchat.core.transcript import ConversationTurn, Transcript

STYLES: dict[str, dict[str, str]] = {
    "dark": {
        "user": "cyan",
        "assistant": "green",
        "reasoning": "grey62",
        "error": "red",
    },
    "light": {
        "user": "blue",
        "assistant": "dark_green",
        "reasoning": "grey35",
        "error": "red3",
    },
}


@dataclass
class TranscriptView:
    """Renders a transcript and remembers each reasoning panel's state."""

    theme: Theme = "dark"
    panels: dict[int, ReasoningPanelState] = field(default_factory=dict)

    def reset(self) -> None:
        """Forget all panel states, e.g. after the transcript was cleared."""
        self.panels.clear()

    def split(self, index: int, turn: ConversationTurn) -> SplitResult:
        """Split a turn and feed the result to its panel state."""
        result = split_reasoning(turn.text, streaming=turn.streaming)
        if result.has_reasoning:
            self.panels.setdefault(index, ReasoningPanelState()).observe(result)
        return result

    def latest_panel_index(self) -> int | None:
        """Index of the most recent turn with a reasoning panel."""
        return max(self.panels, default=None)

    def toggle_latest(self) -> bool | None:
        """Toggle the most recent reasoning panel. None if there is none."""
        index = self.latest_panel_index()
        if index is None:
            return None
        return self.panels[index].toggle()

    def render_turn(self, index: int, turn: ConversationTurn) -> RenderableType:
        """Render one turn."""
        styles = STYLES[self.theme]
        if turn.role == "user":
            body = Text(turn.text)
            if turn.attachments:
                body.append(f"\n📎 {len(turn.attachments)} image(s)", style="dim")
            return Panel(body, title="👤 You", title_align="left", border_style=styles["user"])
        if turn.role == "system":
            style = styles["error"] if turn.is_error else "dim"
            return Panel(Text(turn.text), title="⚠ System", title_align="left", border_style=style)
        return self._render_assistant(index, turn)

    def render_turns(self, transcript: Transcript, start: int = 0) -> RenderableType:
        """Render the turns from `start` onwards."""
        return Group(
            *(self.render_turn(i, t) for i, t in enumerate(transcript.turns) if i >= start),
        )

    def _render_assistant(self, index: int, turn: ConversationTurn) -> RenderableType:
        styles = STYLES[self.theme]
        result = self.split(index, turn)
        parts: list[RenderableType] = []
        if result.has_reasoning:
            parts.append(self._render_reasoning(result, self.panels[index], styles["reasoning"]))
        if result.answer_text:
            parts.append(Markdown(result.answer_text))
        elif turn.streaming and not result.has_reasoning:
            parts.append(Spinner("dots", text="Waiting for the model..."))
        subtitle = "[dim]streaming...[/dim]" if turn.streaming else None
        return Panel(
            Group(*parts),
            title="🤖 AI",
            title_align="left",
            subtitle=subtitle,
            border_style=styles["assistant"],
        )

    @staticmethod
    def _render_reasoning(
        result: SplitResult,
        state: ReasoningPanelState,
        style: str,
    ) -> RenderableType:
        reasoning = result.reasoning_text or ""
        title = "💭 Thought" if result.reasoning_complete else "💭 Thinking..."
        if not state.expanded:
            words = len(reasoning.split())
            return Text(f"{title} ({words} words, /think to expand)", style=style)
        return Panel(
            Text(reasoning, style=f"italic {style}"),
            title=title,
            title_align="left",
            border_style=style,
        )
