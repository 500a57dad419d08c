"""Terminal styling and ANSI-aware layout helpers for the dashboard panels."""

from __future__ import annotations

import re
from dataclasses import dataclass

from wcwidth import wcwidth

_ANSI_PATTERN = r"\x1b\[[0-9;?]*[ -/]*[@-~]|\x1b\][^\x07\x1b]*(?:\x07|\x1b\\)"
_ANSI_RE = re.compile(_ANSI_PATTERN)
_ANSI_SPLIT_RE = re.compile(f"({_ANSI_PATTERN})")
_RESET = "\x1b[0m"


def _char_width(ch: str) -> int:
    return max(wcwidth(ch), 0)


def visible_width(text: str) -> int:
    """Number of terminal cells ``text`` occupies, ignoring ANSI escapes."""
    return sum(_char_width(ch) for ch in _ANSI_RE.sub("", text))


def ansi_truncate(text: str, width: int) -> str:
    """Cut ``text`` to at most ``width`` visible cells, keeping every escape sequence."""
    out: list[str] = []
    used = 0
    cut = False
    for index, part in enumerate(_ANSI_SPLIT_RE.split(text)):
        if index % 2:
            out.append(part)
            continue
        for ch in part:
            if cut:
                break
            w = _char_width(ch)
            if used + w > width:
                cut = True
                break
            used += w
            out.append(ch)
    return "".join(out)


def truncate(text: str, limit: int) -> str:
    """Shorten ``text`` to ``limit`` characters, ending in "..." when there is room."""
    if limit < 0:
        raise ValueError(f"truncate limit must not be negative, got {limit}")
    if len(text) <= limit:
        return text
    if limit < 3:
        return text[:limit]
    return text[: limit - 3] + "..."


def split_pad(text: str, width: int, count: int) -> list[str]:
    """Split ``text`` into exactly ``count`` lines, each exactly ``width`` cells wide."""
    width = max(width, 1)
    lines = (text.split("\n") + [""] * count)[:count]
    result = []
    for line in lines:
        line = ansi_truncate(line, width)
        result.append(line + " " * (width - visible_width(line)))
    return result


def place_center(width: int, height: int, block: str) -> str:
    """Centre ``block`` in a ``width`` x ``height`` area filled with spaces."""
    lines = block.split("\n")
    block_width = max(visible_width(line) for line in lines)
    lines = [line + " " * (block_width - visible_width(line)) for line in lines]

    gap = width - block_width
    if gap > 0:
        left = gap // 2
        lines = [" " * left + line + " " * (gap - left) for line in lines]
        block_width = width

    vgap = height - len(lines)
    if vgap > 0:
        top = vgap // 2
        blank = " " * block_width
        lines = [blank] * top + lines + [blank] * (vgap - top)
    return "\n".join(lines)


@dataclass(frozen=True)
class Style:
    """Text attributes using 256-colour palette indexes, with padding and minimum width."""

    bold: bool = False
    foreground: int | None = None
    background: int | None = None
    strikethrough: bool = False
    padding: tuple[int, int] = (0, 0)
    width: int = 0

    def _prefix(self) -> str:
        codes = []
        if self.bold:
            codes.append("1")
        if self.strikethrough:
            codes.append("9")
        if self.foreground is not None:
            codes.append(f"38;5;{self.foreground}")
        if self.background is not None:
            codes.append(f"48;5;{self.background}")
        return f"\x1b[{';'.join(codes)}m" if codes else ""

    def render(self, text: str) -> str:
        """Apply padding, width and attributes to every line of ``text``."""
        pad_y, pad_x = self.padding
        side = " " * pad_x
        lines = [f"{side}{line}{side}" for line in text.split("\n")]
        target = max([self.width, *(visible_width(line) for line in lines)])
        lines = [line + " " * (target - visible_width(line)) for line in lines]
        blank = " " * target
        lines = [blank] * pad_y + lines + [blank] * pad_y

        prefix = self._prefix()
        if not prefix:
            return "\n".join(lines)
        return "\n".join(f"{prefix}{line}{_RESET}" if line else line for line in lines)


def boxed(block: str, color: int, pad_y: int, pad_x: int) -> str:
    """Surround ``block`` with padding and a rounded border in ``color``."""
    inner = Style(padding=(pad_y, pad_x)).render(block).split("\n")
    inner_width = max(visible_width(line) for line in inner)
    edge = Style(foreground=color)
    side = edge.render("│")
    rows = [
        edge.render("╭" + "─" * inner_width + "╮"),
        *(side + line + side for line in inner),
        edge.render("╰" + "─" * inner_width + "╯"),
    ]
    return "\n".join(rows)


def format_number(n: int) -> str:
    """Format a count with thousands separators."""
    if n < 1000:
        return str(n)
    if n < 1_000_000:
        return f"{n // 1000},{n % 1000:03d}"
    return f"{n // 1_000_000},{(n // 1000) % 1000:03d},{n % 1000:03d}"


SECTION = Style(bold=True, foreground=99)
LIST_TITLE = Style(bold=True, foreground=99)
DIM = Style(foreground=243)
HTTP_OK = Style(foreground=42)
HTTP_ERR = Style(foreground=196)
MQTT_MSG = Style(foreground=220)
SELECTED_ITEM = Style(bold=True, foreground=15, background=57)
ACTIVE = Style(foreground=42)
ERROR = Style(foreground=196)
INIT = Style(foreground=243)
DONE = Style(foreground=240)
HEADER = Style(bold=True, foreground=15, background=57)
FOOTER = Style(foreground=240, background=235)
DIVIDER = Style(foreground=240)
HELP_BORDER_COLOR = 99