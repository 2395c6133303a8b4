from __future__ import annotations

import pytest

from onesaas.provisioning import (
    DomainChoice,
    parse_domain_choice,
    parse_provider_selection,
    parse_visibility,
    parse_yes_no,
)


@pytest.mark.parametrize('answer, private', [('', True), ('1', True), ('2', False), (' 2 ', False), ('x', True)])
def test_parse_visibility(answer: str, private: bool):
    assert parse_visibility(answer) is private


@pytest.mark.parametrize(
    'answer, choice',
    [
        ('', DomainChoice.SKIP),
        ('1', DomainChoice.SKIP),
        ('2', DomainChoice.PURCHASE),
        ('3', DomainChoice.ATTACH_EXISTING),
        ('9', DomainChoice.SKIP),
    ],
)
def test_parse_domain_choice(answer: str, choice: DomainChoice):
    assert parse_domain_choice(answer) is choice


def test_empty_or_five_selects_all_providers():
    all_names = ['openai', 'anthropic', 'google', 'groq']
    assert [p.name for p in parse_provider_selection('')] == all_names
    assert [p.name for p in parse_provider_selection('5')] == all_names


def test_provider_selection_ignores_unknown_and_duplicates():
    selected = parse_provider_selection('2, 9, 1,2,abc')
    assert [p.name for p in selected] == ['anthropic', 'openai']


def test_provider_env_keys():
    selected = parse_provider_selection('3,4')
    assert [p.env_key for p in selected] == ['GOOGLE_GENERATIVE_AI_API_KEY', 'GROQ_API_KEY']


@pytest.mark.parametrize('answer, expected', [('y', True), ('YES', True), (' yes ', True), ('', False), ('n', False), ('sure', False)])
def test_parse_yes_no(answer: str, expected: bool):
    assert parse_yes_no(answer) is expected
