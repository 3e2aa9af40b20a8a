"""Tests for the hybrid LLM/heuristic listing tagger."""

import asyncio
import sys
from pathlib import Path

# Add parent directory to path for imports
sys.path.insert(0, str(Path(__file__).parent.parent))

import pytest
from llm.classifier import ClassificationResult, ClassifierSchemaError
from llm.hybrid import HybridClassifier
from models.constants import (
    HEURISTIC_FALLBACK_RECOMMENDATION,
    HEURISTIC_NO_KEY_RECOMMENDATION,
    LLM_DEFAULT_RECOMMENDATION,
    NO_DESCRIPTION_RECOMMENDATION,
)
from models.listing import Listing
from utils.keyword_tagger import heuristic_tags


class FakeClient:
    """Classifier client returning a fixed result or raising."""

    def __init__(self, result=None, error=None):
        self.result = result
        self.error = error
        self.calls = []

    async def classify(self, description, allowed_damage, allowed_sale):
        self.calls.append(description)
        if self.error:
            raise self.error
        return self.result


class CountingFactory:
    def __init__(self, client):
        self.client = client
        self.created = 0

    def __call__(self):
        self.created += 1
        return self.client


def tag(classifier, **fields):
    return asyncio.run(classifier.tag_listing(Listing(link="https://x/1", **fields)))


class TestNoDescription:
    """Blank descriptions never produce tags."""

    @pytest.mark.parametrize("description", [None, "", "   \n\t"])
    def test_blank_description(self, description):
        """Test blank descriptions give no tags and never build a client."""
        factory = CountingFactory(FakeClient(ClassificationResult(damage=["mold"])))
        tagged = tag(HybridClassifier(api_key="k", client_factory=factory), description=description)

        assert tagged.damage_tags == []
        assert tagged.saletype_tags == []
        assert tagged.recommendation == NO_DESCRIPTION_RECOMMENDATION
        assert factory.created == 0


class TestHeuristicOnly:
    """No credential means heuristic tags without touching the client."""

    def test_no_key(self):
        """Test heuristic tags without a key, client untouched."""
        factory = CountingFactory(FakeClient())
        classifier = HybridClassifier(api_key=None, client_factory=factory)
        description = "water damage, needs repair"

        tagged = tag(classifier, description=description)

        expected = heuristic_tags(description)
        assert tagged.damage_tags == expected["damage_tags"]
        assert tagged.damage_tags
        assert tagged.saletype_tags == expected["saletype_tags"]
        assert "Heuristic" in tagged.recommendation
        assert tagged.recommendation == HEURISTIC_NO_KEY_RECOMMENDATION
        assert factory.created == 0

    def test_from_config_without_key(self):
        """Test from_config with no key disables the LLM."""
        classifier = HybridClassifier.from_config({"llm_settings": {}})
        assert not classifier.llm_enabled
        tagged = tag(classifier, description="Probate sale")
        assert tagged.saletype_tags == ["probate"]


class TestLlmMode:
    """Successful classification is unioned with heuristics."""

    def test_union_with_heuristics(self):
        """Test LLM tags are unioned with heuristic tags."""
        client = FakeClient(
            ClassificationResult(damage=["mold"], sale_types=["short sale"], rationale="Mold noted.")
        )
        classifier = HybridClassifier(api_key="k", client_factory=CountingFactory(client))

        tagged = tag(classifier, description="Fire damage. Sold as-is.")

        assert set(tagged.damage_tags) == {"mold", "fire damage", "damage"}
        assert set(tagged.saletype_tags) == {"short sale", "as-is"}
        assert tagged.recommendation == "Mold noted."
        assert client.calls == ["Fire damage. Sold as-is."]

    def test_empty_rationale_uses_default(self):
        """Test an empty rationale gives the default recommendation."""
        client = FakeClient(ClassificationResult(rationale=""))
        classifier = HybridClassifier(api_key="k", client_factory=CountingFactory(client))
        assert tag(classifier, description="Nice").recommendation == LLM_DEFAULT_RECOMMENDATION

    def test_client_created_once(self):
        """Test concurrent tagging builds the client once."""
        factory = CountingFactory(FakeClient(ClassificationResult()))
        classifier = HybridClassifier(api_key="k", client_factory=factory)

        async def tag_many():
            listings = [Listing(link=f"L{i}", description="text") for i in range(5)]
            return await asyncio.gather(*(classifier.tag_listing(l) for l in listings))

        asyncio.run(tag_many())
        assert factory.created == 1

    def test_input_listing_not_modified(self):
        """Test tagging returns a copy and leaves the input alone."""
        client = FakeClient(ClassificationResult(damage=["mold"], rationale="r"))
        classifier = HybridClassifier(api_key="k", client_factory=CountingFactory(client))
        untagged = Listing(link="L1", description="text", sources=["a"])

        tagged = asyncio.run(classifier.tag_listing(untagged))

        assert tagged is not untagged
        assert untagged.damage_tags == []
        assert tagged.sources == ["a"]


class TestFallback:
    """Any provider failure degrades to heuristic tags."""

    @pytest.mark.parametrize(
        "error",
        [ClassifierSchemaError("bad enum"), asyncio.TimeoutError(), RuntimeError("network")],
    )
    def test_failure_falls_back(self, error):
        """Test provider errors fall back to heuristic tags."""
        classifier = HybridClassifier(api_key="k", client_factory=CountingFactory(FakeClient(error=error)))
        description = "Foreclosure with mold"

        tagged = tag(classifier, description=description)

        expected = heuristic_tags(description)
        assert tagged.damage_tags == expected["damage_tags"]
        assert tagged.saletype_tags == expected["saletype_tags"]
        assert tagged.recommendation == HEURISTIC_FALLBACK_RECOMMENDATION

    def test_factory_failure_falls_back(self):
        """Test a failing client factory falls back to heuristic tags."""
        def broken_factory():
            raise ValueError("no client")

        classifier = HybridClassifier(api_key="k", client_factory=broken_factory)
        tagged = tag(classifier, description="needs TLC")
        assert tagged.saletype_tags == ["needs tlc"]
        assert "Heuristic" in tagged.recommendation


class TestSourceTags:
    """Description tags are unioned with source-derived tags."""

    def test_sources_add_tags_without_description(self):
        """Test sources tag a listing that has no description."""
        classifier = HybridClassifier()
        listing = Listing(link="L1", sources=["foreclosure", "repair"])

        tagged = asyncio.run(classifier.tag_listing_with_sources(listing))

        assert tagged.saletype_tags == ["foreclosure"]
        assert tagged.damage_tags == ["repair"]
        assert tagged.recommendation == NO_DESCRIPTION_RECOMMENDATION

    def test_sources_merge_with_description_tags(self):
        """Test source tags follow description tags."""
        classifier = HybridClassifier()
        listing = Listing(link="L1", description="Mold in attic", sources=["fire"])

        tagged = asyncio.run(classifier.tag_listing_with_sources(listing))

        assert tagged.damage_tags == ["mold", "fire damage"]
