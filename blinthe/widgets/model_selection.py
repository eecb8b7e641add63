"""
Perplexity model routing.

- sonar: fast and cheap, for simple queries
- sonar-pro: advanced search and analysis, used for widget creation
- sonar-reasoning-pro: reasoning with search
"""

import re

SONAR = "sonar"
SONAR_PRO = "sonar-pro"
SONAR_REASONING_PRO = "sonar-reasoning-pro"

LONG_QUERY_LENGTH = 150

COMPLEXITY_PATTERNS = (
    re.compile(r"create|design|build|implement|analyze|evaluate|compare|contrast", re.IGNORECASE),
    re.compile(r"explain.*why|how|reasoning|logic|mechanism|process", re.IGNORECASE),
    re.compile(r"and|or|also|additionally|moreover", re.IGNORECASE),
    re.compile(r"algorithm|architecture|strategy|framework|methodology", re.IGNORECASE),
)

MODEL_INFO = {
    SONAR: {"name": "Sonar (Basic)", "tier": "basic"},
    SONAR_PRO: {"name": "Sonar Pro (Advanced)", "tier": "advanced"},
    SONAR_REASONING_PRO: {"name": "Sonar Reasoning Pro (Reasoning)", "tier": "reasoning"},
}


def detect_complexity(query: str) -> bool:
    """True if any complexity indicator fires."""
    if len(query) > LONG_QUERY_LENGTH:
        return True
    return any(pattern.search(query) for pattern in COMPLEXITY_PATTERNS)


def select_model(
    query: str,
    *,
    force_advanced: bool = False,
    requires_reasoning: bool = False,
    is_widget_creation: bool = False,
    is_simple_query: bool = False,
) -> str:
    """Pick a Perplexity model. Explicit options win over auto-detection."""
    if requires_reasoning:
        return SONAR_REASONING_PRO
    if force_advanced or is_widget_creation:
        return SONAR_PRO
    if is_simple_query:
        return SONAR
    return SONAR_PRO if detect_complexity(query) else SONAR


def get_model_info(model: str) -> dict[str, str]:
    return MODEL_INFO.get(model, {"name": "Unknown", "tier": "basic"})
