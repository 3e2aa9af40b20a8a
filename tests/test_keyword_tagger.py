"""Unit tests for keyword vocabularies, heuristic tagging and source mapping."""

import sys
from pathlib import Path

# Add parent directory to path for imports
sys.path.insert(0, str(Path(__file__).parent.parent))

import pytest
from models.constants import (
    DAMAGE_CANON,
    DAMAGE_KEYWORDS,
    DAMAGE_SEARCH_KEYWORDS,
    SALE_CANON,
    SALE_TYPE_KEYWORDS,
    SEARCH_TERMS,
    canonicalize_keywords,
)
from utils.keyword_tagger import heuristic_tags, map_sources_to_tags, merge_unique


class TestKeywordCanon:
    """Test vocabulary construction."""

    def test_canon_is_lowercase_and_unique(self):
        """Test both canons are lower-case without repeats."""
        for canon in (DAMAGE_CANON, SALE_CANON):
            assert all(keyword == keyword.lower() for keyword in canon)
            assert len(set(canon)) == len(canon)

    def test_canon_matches_maintained_lists(self):
        """Test the canons follow the maintained lists in order."""
        assert list(DAMAGE_CANON) == [k.lower() for k in DAMAGE_KEYWORDS]
        assert list(SALE_CANON) == [k.lower() for k in SALE_TYPE_KEYWORDS]
        assert "tlc" in DAMAGE_CANON

    def test_canonicalize_is_idempotent(self):
        """Test canonicalizing twice changes nothing."""
        once = canonicalize_keywords(["Mold", " TLC ", "mold", "", "Short Sale"])
        assert once == ["mold", "tlc", "short sale"]
        assert canonicalize_keywords(once) == once


class TestHeuristicTags:
    """Test substring tagging of descriptions."""

    @pytest.mark.parametrize("keyword", list(DAMAGE_CANON))
    def test_every_damage_keyword_is_found(self, keyword):
        """Test each damage keyword is found regardless of case."""
        description = f"Great lot. {keyword.upper()} noted by inspector."
        assert keyword in heuristic_tags(description)["damage_tags"]

    @pytest.mark.parametrize("keyword", list(SALE_CANON))
    def test_every_sale_keyword_is_found(self, keyword):
        """Test each sale keyword is found regardless of case."""
        description = f"Listed as {keyword.title()} by owner."
        assert keyword in heuristic_tags(description)["saletype_tags"]

    def test_needs_tlc_adds_synthetic_tags(self):
        """Test needs TLC adds both synthetic tags."""
        tags = heuristic_tags("Seller says property needs TLC")
        assert "tlc" in tags["damage_tags"]
        assert "needs tlc" in tags["saletype_tags"]

    def test_needs_tlc_tolerates_extra_whitespace(self):
        """Test needs TLC matches across repeated spaces."""
        tags = heuristic_tags("Needs   tlc throughout")
        assert tags["saletype_tags"] == ["needs tlc"]
        assert tags["damage_tags"].count("tlc") == 1

    def test_plain_tlc_is_not_needs_tlc(self):
        """Test TLC alone is only a damage tag."""
        tags = heuristic_tags("Some TLC required")
        assert "tlc" in tags["damage_tags"]
        assert "needs tlc" not in tags["saletype_tags"]

    def test_substring_matches_overlap(self):
        """Test "water damage" also matches "damage"."""
        tags = heuristic_tags("Water damage in basement, sold as-is")
        assert set(tags["damage_tags"]) == {"water damage", "damage"}
        assert tags["saletype_tags"] == ["as-is"]

    def test_empty_or_none(self):
        """Test None and blank descriptions give no tags."""
        assert heuristic_tags(None) == {"damage_tags": [], "saletype_tags": []}
        assert heuristic_tags("") == {"damage_tags": [], "saletype_tags": []}

    def test_no_matches(self):
        """Test a clean description gives no tags."""
        tags = heuristic_tags("Beautifully updated home with new kitchen")
        assert tags == {"damage_tags": [], "saletype_tags": []}


class TestMapSourcesToTags:
    """Test provenance token mapping."""

    def test_exact_sale_match(self):
        """Test an exact sale type maps to that sale tag."""
        assert map_sources_to_tags(["foreclosure"]) == {
            "damage_tags": [],
            "saletype_tags": ["foreclosure"],
        }

    def test_short_source_matches_longer_keyword(self):
        """Test a short source matches the keyword containing it."""
        assert "fire damage" in map_sources_to_tags(["fire"])["damage_tags"]

    def test_longer_source_contains_keyword(self):
        """Test a long source matches the keyword it contains."""
        tags = map_sources_to_tags(["roof repair needed"])
        assert tags["damage_tags"] == ["repair"]

    def test_sale_match_skips_damage_scan(self):
        """Test "short sale" is a sale type and never scanned against damage keywords."""
        tags = map_sources_to_tags(["Short Sale "])
        assert tags == {"damage_tags": [], "saletype_tags": ["short sale"]}

    def test_search_keywords_all_map_to_damage(self):
        """Test every short damage search keyword maps to a damage tag."""
        for keyword in DAMAGE_SEARCH_KEYWORDS:
            assert map_sources_to_tags([keyword])["damage_tags"], keyword

    @pytest.mark.parametrize("term", list(SEARCH_TERMS))
    def test_every_search_term_maps_to_a_tag(self, term):
        """Test every default search term yields at least one tag."""
        tags = map_sources_to_tags([term])
        assert tags["damage_tags"] or tags["saletype_tags"]

    def test_deduplicated_across_sources(self):
        """Test repeated sources add each tag once."""
        tags = map_sources_to_tags(["probate", "PROBATE", "mold", "mold"])
        assert tags == {"damage_tags": ["mold"], "saletype_tags": ["probate"]}

    def test_empty_inputs(self):
        """Test None, empty and blank sources give no tags."""
        empty = {"damage_tags": [], "saletype_tags": []}
        assert map_sources_to_tags(None) == empty
        assert map_sources_to_tags([]) == empty
        assert map_sources_to_tags(["", "   ", None]) == empty

    def test_city_path_maps_to_nothing(self):
        """Test a city path is not a tag source."""
        assert map_sources_to_tags(["/city/12766/GA/Marietta"]) == {
            "damage_tags": [],
            "saletype_tags": [],
        }


def test_merge_unique_keeps_first_seen_order():
    """Test merge_unique skips None and keeps first-seen order."""
    assert merge_unique(["a", "b"], None, ["b", "c", "a"]) == ["a", "b", "c"]
