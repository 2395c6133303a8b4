"""Menu answer parsing for the interactive prompts.

Each parser maps the raw text typed by the operator onto a decision, with the
empty answer selecting the documented default.
"""

from __future__ import annotations

from dataclasses import dataclass
from enum import Enum


class DomainChoice(Enum):
    SKIP = '1'
    PURCHASE = '2'
    ATTACH_EXISTING = '3'


@dataclass(frozen=True, slots=True)
class AIProvider:
    key: str
    name: str
    env_key: str
    label: str


AI_PROVIDERS: dict[str, AIProvider] = {
    '1': AIProvider('1', 'openai', 'OPENAI_API_KEY', 'OpenAI'),
    '2': AIProvider('2', 'anthropic', 'ANTHROPIC_API_KEY', 'Anthropic'),
    '3': AIProvider('3', 'google', 'GOOGLE_GENERATIVE_AI_API_KEY', 'Google'),
    '4': AIProvider('4', 'groq', 'GROQ_API_KEY', 'Groq'),
}
ALL_PROVIDERS_CHOICE = '5'


def parse_visibility(answer: str) -> bool:
    """Return True for a private repository. Only ``2`` selects public."""
    return answer.strip() != '2'


def parse_domain_choice(answer: str) -> DomainChoice:
    """``2`` purchase, ``3`` attach existing, anything else skips."""
    value = answer.strip()
    if value == DomainChoice.PURCHASE.value:
        return DomainChoice.PURCHASE
    if value == DomainChoice.ATTACH_EXISTING.value:
        return DomainChoice.ATTACH_EXISTING
    return DomainChoice.SKIP


def parse_provider_selection(answer: str) -> list[AIProvider]:
    """Comma-separated menu numbers; empty or ``5`` selects every provider.

    Unknown entries are ignored and duplicates collapse, keeping first-seen
    order.
    """
    value = answer.strip()
    if not value or value == ALL_PROVIDERS_CHOICE:
        return list(AI_PROVIDERS.values())

    selected: list[AIProvider] = []
    for part in value.split(','):
        provider = AI_PROVIDERS.get(part.strip())
        if provider is not None and provider not in selected:
            selected.append(provider)
    return selected


def parse_yes_no(answer: str) -> bool:
    return answer.strip().lower() in ('y', 'yes')
