"""
markdown_parse.py - Markdown to HTML with annotation injection

    tokens = md.parse(text)          # markdown-it-py token stream
    tokens = inject(tokens, ...)     # @annotations replaced
    html = md.renderer.render(...)
"""

from markdown_it import MarkdownIt

from coursegraph.inject import InjectState, TagRegistry, inject


def make_parser() -> MarkdownIt:
    """CommonMark plus GitHub-style tables and strikethrough."""
    return MarkdownIt("commonmark").enable(["table", "strikethrough"])


def parse_md(text: str, registry: TagRegistry, state: InjectState) -> str:
    """Render ``text`` to HTML, running annotations through ``registry``."""
    md = state.md
    env: dict = {}
    tokens = md.parse(text, env)
    tokens = inject(tokens, registry, state)
    return md.renderer.render(tokens, md.options, env)
