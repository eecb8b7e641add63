"""
Recover a widget payload from free text returned by a text-generation service.

Responses often wrap the JSON we want in prose, markdown fences, or a full
component template. The payload is usually the last JSON object, so candidates
are tried from the end backwards.
"""

import json

from pydantic import ValidationError as PayloadShapeError

from ..errors import ExtractionFailure
from ..logging import get_logger
from .models import WidgetDescriptor

logger = get_logger("widgets.extractor")

# Generated components end with a style block; the metadata follows it
TEMPLATE_END_MARKER = "</style>"
PREVIEW_LENGTH = 300


def _reject_constant(name: str) -> None:
    # NaN and Infinity are not JSON
    raise ValueError(f"Invalid JSON constant: {name}")


def strip_template(content: str) -> str:
    """Drop everything up to and including the last `</style>` tag."""
    template_end = content.rfind(TEMPLATE_END_MARKER)
    if template_end > 0:
        return content[template_end + len(TEMPLATE_END_MARKER):]
    return content


def find_json_candidates(content: str) -> list[str]:
    """
    Every maximal balanced `{...}` span at depth 0, in order of appearance.

    Purely lexical: braces inside JSON string values are counted too, so a
    literal `{` or `}` in a string can shift or merge spans. The strict parse
    that follows rejects any span that comes out malformed.
    """
    candidates = []
    depth = 0
    start = -1

    for i, char in enumerate(content):
        if char == "{":
            if depth == 0:
                start = i
            depth += 1
        elif char == "}":
            depth -= 1
            if depth == 0 and start >= 0:
                candidates.append(content[start:i + 1])
                start = -1

    return candidates


def extract_widget_descriptor(content: str) -> WidgetDescriptor:
    """
    Parse generated text into a WidgetDescriptor.

    Raises:
        ExtractionFailure with the number of candidates found and a preview of
        the cleaned text when no candidate is a valid widget payload
    """
    clean_content = strip_template(content)
    candidates = find_json_candidates(clean_content)

    for candidate in reversed(candidates):
        try:
            parsed = json.loads(candidate, parse_constant=_reject_constant)
        except (ValueError, RecursionError):
            continue

        if not isinstance(parsed, dict):
            continue

        try:
            return WidgetDescriptor.model_validate(parsed)
        except PayloadShapeError as e:
            logger.debug("Skipping candidate: %d validation error(s)", e.error_count())
            continue

    preview = clean_content[:PREVIEW_LENGTH]
    logger.warning("No valid widget JSON in response (%d candidate(s))", len(candidates))
    raise ExtractionFailure(
        candidate_count=len(candidates),
        preview=preview,
        truncated=len(clean_content) > PREVIEW_LENGTH,
    )
