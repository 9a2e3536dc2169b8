"""Markdown renderer — text in, HTML out.

Uses markdown-it-py with a fixed extension pipeline, applied in order:

1. markdown-it base rules with inline HTML passthrough and linkify
2. task-list checkboxes (``- [ ]`` / ``- [x]``)
3. emoji shortcodes (``:tada:``)
4. heading anchors (``<h1 id="title">``, de-duplicated per document)

The pipeline is assembled once per ``Renderer`` and never mutated after,
so rendering is a pure function of the input text.
"""

from __future__ import annotations

import functools
from typing import TYPE_CHECKING

import emoji
from markdown_it import MarkdownIt
from mdit_py_plugins.anchors import anchors_plugin
from mdit_py_plugins.tasklists import tasklists_plugin

if TYPE_CHECKING:
    from markdown_it.rules_core import StateCore


def _emoji_rule(state: StateCore) -> None:
    """Core rule: substitute emoji shortcodes in inline text tokens.

    Text inside autolinks is left alone so URLs containing ``:word:`` survive.
    """
    for token in state.tokens:
        if token.type != "inline" or not token.children:
            continue
        autolink_depth = 0
        for child in token.children:
            if child.type == "link_open" and child.info == "auto":
                autolink_depth += 1
            elif child.type == "link_close" and child.info == "auto":
                autolink_depth -= 1
            elif child.type == "text" and autolink_depth == 0 and ":" in child.content:
                child.content = emoji.emojize(child.content, language="alias")


def emoji_plugin(md: MarkdownIt) -> None:
    """Register the emoji shortcode rule at the current end of the core chain."""
    md.core.ruler.push("emoji", _emoji_rule)


class Renderer:
    """Renders Markdown text to an HTML fragment.

    Never raises on malformed Markdown: invalid syntax is emitted as literal
    text.  A Session creates one Renderer and keeps it for its lifetime.

    """

    __slots__ = ("_md",)

    def __init__(self) -> None:
        md = MarkdownIt("js-default", {"html": True, "linkify": True})
        md.use(tasklists_plugin)
        md.use(emoji_plugin)
        md.use(anchors_plugin, min_level=1, max_level=6)
        self._md = md

    def render(self, text: str) -> str:
        """Render ``text`` to HTML. Empty input renders to an empty string."""
        return self._md.render(text or "")


@functools.cache
def _default_renderer() -> Renderer:
    return Renderer()


def render(text: str) -> str:
    """Render with a shared default Renderer."""
    return _default_renderer().render(text)
