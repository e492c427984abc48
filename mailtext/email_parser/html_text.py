"""
mailtext/email_parser/html_text.py
----------------------------------
Best-effort HTML -> plain text fallback.

This is a heuristic, not an HTML parser: script/style bodies and comments
are not recognised and leak through as visible text.
"""

import html


def strip_html_tags(markup: str) -> str:
    """
    Single pass over the characters, dropping everything between '<' and '>'.
    Entities are left untouched.
    """
    out = []
    in_tag = False
    for ch in markup:
        if ch == "<":
            in_tag = True
        elif ch == ">":
            in_tag = False
        elif not in_tag:
            out.append(ch)
    return "".join(out)


def html_to_text(markup: str) -> str:
    return html.unescape(strip_html_tags(markup)).strip()
