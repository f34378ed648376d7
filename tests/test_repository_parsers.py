"""
Tests for infrastructure/repository/parsers.py.

Covers: Atom search feed, spectrum links, object view page, spectrum CSV.
"""

import pytest

from refmat_search.domain.entities import SpectrumDataset
from refmat_search.infrastructure.repository.parsers import (
    NO_SUMMARY,
    parse_detail_page,
    parse_search_feed,
    parse_spectrum_csv,
    parse_spectrum_links,
)
from refmat_search.shared.exceptions import ParseError

# ============================================================
# Search feed
# ============================================================


class TestParseSearchFeed:
    def test_skips_feed_entry_and_untitled(self, atom_feed):
        summaries = parse_search_feed(atom_feed)
        assert [s.id for s in summaries] == ["urn:uuid:1111-aaaa", "urn:uuid:2222-bbbb"]

    def test_name_split(self, atom_feed):
        dorm = parse_search_feed(atom_feed)[1]
        assert dorm.display_name == "DORM-5"
        assert dorm.searchable_name == "DORM-5: Fish protein certified reference material"
        assert dorm.material_type == "Fish protein certified reference material"
        assert dorm.abstract_text == "Trace metals in fish protein."

    def test_only_feed_entry_is_empty(self, empty_feed):
        assert parse_search_feed(empty_feed) == []

    def test_feed_without_namespace(self):
        feed = (
            "<feed><entry><title>self</title></entry>"
            "<entry><title>SRM-1</title><id>urn:uuid:9</id></entry></feed>"
        )
        summaries = parse_search_feed(feed)
        assert summaries[0].display_name == "SRM-1"
        assert summaries[0].material_type == ""

    def test_invalid_xml(self):
        with pytest.raises(ParseError):
            parse_search_feed("<feed><entry>")

    def test_entity_expansion_rejected(self):
        evil = (
            '<?xml version="1.0"?><!DOCTYPE feed [<!ENTITY a "aaaa">]>'
            "<feed><entry><title>&a;</title></entry></feed>"
        )
        with pytest.raises(ParseError):
            parse_search_feed(evil)


class TestParseSpectrumLinks:
    def test_csv_spectrum_links_only(self, spectra_feed):
        datasets = parse_spectrum_links(spectra_feed)
        assert [d.href for d in datasets] == [
            "https://example.org/caffeine-ms.csv",
            "https://example.org/caffeine-nmr.csv",
        ]
        assert [d.kind for d in datasets] == ["mass", "nmr"]

    def test_no_links(self, empty_feed):
        assert parse_spectrum_links(empty_feed) == []


# ============================================================
# Object view page
# ============================================================


class TestParseDetailPage:
    def test_full_page(self, detail_html, dorm_summary):
        detail = parse_detail_page(detail_html, dorm_summary)
        assert detail.title == "DORM-5: Fish protein certified reference material"
        assert detail.abstract_text == "Trace metals in fish protein."
        assert detail.material_type == "Fish protein certified reference material"
        assert detail.doi == "https://doi.org/10.4224/crm.2020.dorm-5"
        assert detail.publication_date == "2020-06-01"

    def test_analyte_rows_from_second_table(self, detail_html, dorm_summary):
        analytes = parse_detail_page(detail_html, dorm_summary).analytes
        assert [a.name for a in analytes] == ["Arsenic", "Lead"]
        arsenic, lead = analytes
        assert arsenic.quantity == "Mass fraction"
        assert arsenic.value == "6.8"
        assert arsenic.uncertainty == "0.6"
        assert arsenic.unit == "mg/kg"
        assert arsenic.category == "Certified"
        assert lead.value == "<0.05"
        assert lead.uncertainty == ""
        assert lead.origin_material_name is None

    def test_single_table_used_when_alone(self, dorm_summary):
        html = (
            '<div class="table-viewobject"><table class="table table-condensed"><tbody>'
            "<tr><td>Mercury</td><td>Mass fraction</td><td>0.4</td><td>0.1</td><td>mg/kg</td><td>Certified</td></tr>"
            "</tbody></table></div>"
        )
        analytes = parse_detail_page(html, dorm_summary).analytes
        assert [a.name for a in analytes] == ["Mercury"]

    def test_fallbacks(self, dorm_summary):
        detail = parse_detail_page("<html><body><p>Nothing here</p></body></html>", dorm_summary)
        assert detail.title == "DORM-5"
        assert detail.abstract_text == NO_SUMMARY
        assert detail.doi is None
        assert detail.publication_date is None
        assert detail.analytes == []
        assert not detail.has_analyte_data


# ============================================================
# Spectrum CSV
# ============================================================


class TestParseSpectrumCsv:
    @pytest.fixture
    def dataset(self):
        return SpectrumDataset(title="Caffeine mass spectrum", href="https://example.org/caffeine-ms.csv")

    def test_metadata_and_points(self, spectrum_csv, dataset):
        spectrum = parse_spectrum_csv(spectrum_csv, dataset)
        assert spectrum.metadata["Title"] == "Caffeine mass spectrum"
        assert spectrum.metadata["Instrument"] == "Orbitrap"
        assert [(p.x, p.intensity) for p in spectrum.points] == [(138.0, 12.5), (194.08, 100.0), (195.1, 11.2)]
        assert spectrum.max_intensity == 100.0
        assert spectrum.x_range == (138.0, 195.1)

    def test_no_numeric_rows(self, dataset):
        spectrum = parse_spectrum_csv("Title,Empty\nm/z,Intensity\n", dataset)
        assert spectrum.is_empty
        assert spectrum.max_intensity is None
        assert spectrum.x_range is None
        assert spectrum.metadata == {"Title": "Empty", "m/z": "Intensity"}

