from __future__ import annotations

from dataclasses import dataclass
from typing import List, Tuple

from rich.style import Style
from rich.text import Text

from .dispatch import SPINNER_FRAMES, Dispatcher
from .engine import DonePhase, Failure, Phase, StateError

MENU_HINT = "Use arrow keys to select..."
TOGGLE_HINT = "Press SPACE to toggle Logs"
EXIT_HINT = "Press Enter to Exit."
MENU_BACK_HINT = "Press R to return to the menu."


@dataclass(frozen=True)
class Palette:
    void: str
    purple: str
    blue: str
    grey: str
    brown: str
    green: str
    red: str
    white: str
    term_text: str
    rainbow: Tuple[str, ...]

    def fg(self, color: str, *, bold: bool = False) -> Style:
        return Style(color=color, bgcolor=self.void, bold=bold)


# TIC-80 DB16 colours.
DB16 = Palette(
    void="#140c1c",
    purple="#442434",
    blue="#30346d",
    grey="#4e4a4e",
    brown="#854c30",
    green="#346524",
    red="#d04648",
    white="#deeed6",
    term_text="#666666",
    rainbow=("#d04648", "#d27d2c", "#dad45e", "#6daa2c", "#597dce", "#574290"),
)


def rainbow(text: str, palette: Palette) -> Text:
    out = Text()
    for i, ch in enumerate(text):
        out.append(ch, palette.fg(palette.rainbow[i % len(palette.rainbow)]))
    return out


def _hint(out: Text, text: str, palette: Palette) -> None:
    out.append("\n  ")
    out.append(text, palette.fg(palette.grey))


def _render_menu(d: Dispatcher, out: Text, p: Palette) -> None:
    for i, choice in enumerate(d.choices):
        if i == d.machine.cursor:
            out.append(" ")
            out.append(">█ ", p.fg(p.red))
            out.append(f" {choice} ", p.fg(p.white, bold=True))
        else:
            out.append("    ")
            out.append(f" {choice} ", p.fg(p.blue))
        out.append("\n")
    out.append("\n")
    _hint(out, MENU_HINT, p)
    _hint(out, TOGGLE_HINT, p)


def _render_running(d: Dispatcher, out: Text, p: Palette) -> None:
    m = d.machine
    step = m.running_step
    out.append(" ")
    out.append(SPINNER_FRAMES[d.spinner_frame % len(SPINNER_FRAMES)], p.fg(p.red))
    out.append(" ")
    out.append(f" {step.description if step else ''} ", p.fg(p.blue))
    out.append("\n\n")
    out.append(f"  Step {m.current_step + 1} of {len(m.steps)}", p.fg(p.grey))
    _hint(out, TOGGLE_HINT, p)


def _render_done(d: Dispatcher, out: Text, p: Palette) -> None:
    st = d.machine.state
    if not isinstance(st, DonePhase):
        raise StateError(f"cannot draw the result screen in {d.machine.phase.name}")
    if isinstance(st.outcome, Failure):
        out.append(" ")
        out.append("FAILED", p.fg(p.red, bold=True))
        detail = st.outcome.diagnostic
    else:
        out.append(" ")
        out.append("SUCCESS", p.fg(p.green, bold=True))
        detail = st.outcome.message
    for line in detail.splitlines() or [""]:
        _hint(out, line, p)
    out.append("\n")
    _hint(out, EXIT_HINT, p)
    _hint(out, MENU_BACK_HINT, p)


def viewport_lines(d: Dispatcher) -> List[str]:
    lines = d.log_lines
    h = d.viewport_height
    start = max(0, len(lines) - h) if d.viewport.follow else d.viewport.offset
    window = lines[start : start + h]
    return window + [""] * (h - len(window))


def _render_viewport(d: Dispatcher, out: Text, p: Palette) -> None:
    w = max(10, d.viewport_width)
    inner = w - 4
    border = p.fg(p.grey)
    out.append("╭" + "─" * (w - 2) + "╮\n", border)
    for line in viewport_lines(d):
        clipped = line.expandtabs(4)[:inner]
        out.append("│ ", border)
        out.append(clipped.ljust(inner), p.fg(p.term_text))
        out.append(" │\n", border)
    out.append("╰" + "─" * (w - 2) + "╯", border)


def render(d: Dispatcher, palette: Palette = DB16) -> Text:
    """Build one full frame from the dispatcher's current state.

    Pure: reads state only, so equal inputs render equal frames.
    """
    out = Text(style=Style(color=palette.white, bgcolor=palette.void))
    out.append("\n ")
    out.append_text(rainbow(d.cfg.title, palette))
    out.append("\n ")
    out.append(f" {d.cfg.version_label}", palette.fg(palette.grey))
    out.append("\n\n")

    phase = d.machine.phase
    if phase is Phase.MENU:
        _render_menu(d, out, palette)
    elif phase is Phase.RUNNING:
        _render_running(d, out, palette)
    else:
        _render_done(d, out, palette)

    if d.viewport.visible:
        out.append("\n\n")
        _render_viewport(d, out, palette)
    return out
