"""
Local widget synthesis for trivial requests.

Requests like "h1 blinthe" or "<h2>Hello</h2>" can be answered without calling
a text-generation service. Everything else is routed to the service, after
optionally being rewritten into an explicit generation instruction.
"""

import re
from typing import Optional

from .models import DisplayConfig, DisplayType, WidgetDescriptor

MAX_SIMPLE_PROMPT_LENGTH = 100
MAX_TITLE_LENGTH = 50
MAX_DESCRIPTION_HTML = 80

# Words implying the widget needs external data or computation
REMOTE_ACTION_WORDS = ("calculate", "analyze", "fetch", "search", "query")

HTML_PAIR = re.compile(r"<[a-z1-6]+[^>]*>.*</[a-z1-6]+>", re.IGNORECASE)
FIRST_HTML_PAIR = re.compile(r"<[a-z1-6][^>]*>.*?</[a-z1-6]+>", re.IGNORECASE)
HEADING_INTENT = re.compile(
    r"^(h[1-6]|heading|title|display.*heading|show.*heading|create.*heading)",
    re.IGNORECASE,
)
LEADING_HEADING = re.compile(r"^h([1-3])\s+(.+?)$", re.IGNORECASE)
GENERIC_HEADING = re.compile(r"(?:heading|title|display|show)\s*:?\s*(.+?)$", re.IGNORECASE)
ANY_TAG = re.compile(r"</?[^>]+>")
LEADING_TAG_NAME = re.compile(r"^\s*(h[1-6])\s+", re.IGNORECASE)
INLINE_TEXT = re.compile(r">([^<]+)<")

# Prompts already phrased as a question or a request pass through untouched
INSTRUCTION_START = re.compile(
    r"^(how|what|when|where|why|create|build|show|display|make|generate)",
    re.IGNORECASE,
)
UI_ELEMENT_START = re.compile(r"^(card|button|list|table|chart|dialog|menu)", re.IGNORECASE)


def is_eligible_for_local_synthesis(prompt: str) -> bool:
    """True for inline HTML, or a short heading request with no data-fetching verbs."""
    lower_prompt = prompt.lower().strip()

    if HTML_PAIR.search(prompt):
        return True

    is_heading_request = HEADING_INTENT.match(lower_prompt) is not None
    is_simple = len(prompt) < MAX_SIMPLE_PROMPT_LENGTH and not any(
        word in lower_prompt for word in REMOTE_ACTION_WORDS
    )
    return is_heading_request and is_simple


def extract_html_content(prompt: str) -> str:
    """Inline HTML verbatim if present, otherwise a heading built from the prompt."""
    html_match = FIRST_HTML_PAIR.search(prompt)
    if html_match:
        return html_match.group(0)

    heading_match = LEADING_HEADING.match(prompt)
    if heading_match:
        level, text = heading_match.groups()
        return f"<h{level}>{text}</h{level}>"

    content_match = GENERIC_HEADING.search(prompt)
    if content_match:
        content = ANY_TAG.sub("", content_match.group(1)).strip()
        return f"<h1>{content}</h1>"

    content = LEADING_TAG_NAME.sub("", ANY_TAG.sub("", prompt)).strip()
    return f"<h1>{content or 'Widget'}</h1>"


def synthesize_locally(prompt: str) -> Optional[WidgetDescriptor]:
    """Build a widget without any remote call, or None if the prompt needs one."""
    if not is_eligible_for_local_synthesis(prompt):
        return None

    html_content = extract_html_content(prompt)

    title = "Widget"
    title_match = INLINE_TEXT.search(html_content)
    if title_match:
        title = title_match.group(1).strip()[:MAX_TITLE_LENGTH] or "Widget"

    return WidgetDescriptor(
        title=title,
        description=f"Displays: {html_content[:MAX_DESCRIPTION_HTML]}",
        display_logic=DisplayConfig(type=DisplayType.HTML.value, content=html_content),
    )


def should_use_remote_service(prompt: str) -> bool:
    """Whether the text-generation service has to be called for this prompt."""
    return not is_eligible_for_local_synthesis(prompt)


def reformulate(prompt: str) -> str:
    """
    Rewrite a terse request as an explicit component-generation instruction.

    Questions and prompts that already start with a request verb are returned
    unchanged.
    """
    if prompt.endswith("?") or INSTRUCTION_START.match(prompt):
        return prompt

    heading_match = LEADING_HEADING.match(prompt)
    if heading_match:
        level, text = heading_match.groups()
        reformulated = (
            "Generate Vue 3 code for a modular Blinthe dashboard widget that displays "
            f'an h{level} heading with the text "{text.strip()}". Return only the complete '
            "<template>, <script setup>, and <style> sections."
        )
        # Top-level headings also forbid prose around the component
        if level == "1":
            reformulated += " No explanations, only valid .vue component code."
        return reformulated

    if UI_ELEMENT_START.match(prompt.lower().strip()):
        return (
            f"Generate Vue 3 code for a modular Blinthe dashboard widget that {prompt}. "
            "Return only valid .vue component code with <template>, <script setup>, "
            "and <style> sections."
        )

    return (
        f"Generate Vue 3 code for a modular Blinthe dashboard widget that {prompt}. "
        "Output only the complete <template>, <script setup>, and <style> sections. "
        "No explanations."
    )
