"""Unit tests for the easy-item policy."""

from __future__ import annotations

import pytest

from ecobingo.bingo.easy_policy import EasyItemPolicy
from ecobingo.bingo.types import BingoItem, Category
from ecobingo.config import Settings


@pytest.fixture
def easy() -> EasyItemPolicy:
    return EasyItemPolicy.build("v1", ["DIGITAL", "ENERGY"], ["Paperless", "cloud"])


class TestMatches:
    def test_category_match(self, easy: EasyItemPolicy):
        assert easy.matches(BingoItem(id="a", text="Anything", category=Category.ENERGY))

    def test_keyword_is_case_insensitive_substring(self, easy: EasyItemPolicy):
        assert easy.matches(BingoItem(id="a", text="Go PAPERLESS this week", category=Category.WASTE))
        assert easy.matches(BingoItem(id="b", text="Move to Cloudflare", category=Category.GENERAL))

    def test_no_match(self, easy: EasyItemPolicy):
        assert not easy.matches(BingoItem(id="a", text="Plant a tree", category=Category.COMMUNITY))


class TestBuild:
    def test_keywords_lowercased_and_empty_dropped(self):
        policy = EasyItemPolicy.build("v", [], ["Online", ""])
        assert policy.keywords == ("online",)

    def test_unknown_category_rejected(self):
        with pytest.raises(ValueError):
            EasyItemPolicy.build("v", ["SPACE"], [])

    def test_from_settings_defaults(self):
        policy = EasyItemPolicy.from_settings(Settings())
        assert policy.categories == frozenset({Category.DIGITAL, Category.ENERGY})
        assert "paperless" in policy.keywords
        assert policy.version == Settings().easy_policy_version
