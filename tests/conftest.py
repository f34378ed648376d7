"""
Pytest configuration and shared fixtures.
"""

from __future__ import annotations

from unittest.mock import AsyncMock, MagicMock

import pytest

from refmat_search.domain.entities import Analyte, ChemicalIdentity, MaterialDetail, MaterialSummary


def _response(status_code: int = 200, *, json_data=None, text: str = "", headers=None):
    """Mock httpx.Response for clients whose ``_client`` is replaced."""
    response = MagicMock()
    response.status_code = status_code
    response.reason_phrase = "OK" if status_code < 400 else "Error"
    response.text = text
    response.headers = headers or {}
    if json_data is None:
        response.json.side_effect = ValueError("No JSON")
    else:
        response.json.return_value = json_data
    return response


@pytest.fixture
def make_response():
    """Factory for mock httpx responses."""
    return _response


# ============================================================
# Repository responses
# ============================================================


@pytest.fixture
def atom_feed():
    """Atom search feed: feed-level entry, two CRMs, one untitled entry."""
    return """<?xml version="1.0" encoding="UTF-8"?>
<feed xmlns="http://www.w3.org/2005/Atom">
  <title>Search results</title>
  <entry>
    <title>Search: aspirin</title>
    <id>urn:uuid:feed-self</id>
  </entry>
  <entry>
    <title>ASPR-1: Acetylsalicylic acid certified reference material</title>
    <id>urn:uuid:1111-aaaa</id>
    <summary>Certified purity of acetylsalicylic acid.</summary>
  </entry>
  <entry>
    <title>DORM-5: Fish protein certified reference material</title>
    <id>urn:uuid:2222-bbbb</id>
    <summary>Trace metals in fish protein.</summary>
  </entry>
  <entry>
    <title></title>
    <id>urn:uuid:3333-cccc</id>
  </entry>
</feed>
"""


@pytest.fixture
def empty_feed():
    return """<?xml version="1.0" encoding="UTF-8"?>
<feed xmlns="http://www.w3.org/2005/Atom">
  <entry><title>Search: xyz123</title><id>urn:uuid:feed-self</id></entry>
</feed>
"""


@pytest.fixture
def spectra_feed():
    return """<?xml version="1.0" encoding="UTF-8"?>
<feed xmlns="http://www.w3.org/2005/Atom">
  <entry>
    <title>Caffeine spectra</title>
    <link rel="related" type="text/csv" title="Caffeine mass spectrum" href="https://example.org/caffeine-ms.csv"/>
    <link rel="related" type="text/csv" title="Caffeine 1H NMR spectrum" href="https://example.org/caffeine-nmr.csv"/>
    <link rel="related" type="text/csv" title="Certificate values" href="https://example.org/values.csv"/>
    <link rel="alternate" type="text/html" title="Spectrum page" href="https://example.org/page"/>
    <link rel="related" type="text/csv" title="Caffeine mass spectrum" href="https://example.org/caffeine-ms.csv"/>
  </entry>
</feed>
"""


@pytest.fixture
def detail_html():
    """Object view page with a description table and an analyte table."""
    return """<html><body>
<h1 id="wb-cont"><span class="citation_title">DORM-5: Fish protein certified reference material</span></h1>
<div class="metadata-abstract"><span itemprop="description">Trace metals in fish protein.</span></div>
<a itemprop="sameAs" href="https://doi.org/10.4224/crm.2020.dorm-5">DOI</a>
<span itemprop="datePublished">2020-06-01</span>
<div class="table-viewobject">
  <table class="table table-condensed">
    <tbody><tr><td>Format</td><td>Powder</td></tr></tbody>
  </table>
  <table class="table table-condensed">
    <thead><tr><th>Analyte</th><th>Quantity</th><th>Value</th><th>Uncertainty</th><th>Unit</th><th>Type</th></tr></thead>
    <tbody>
      <tr><td>Arsenic</td><td>Mass fraction</td><td>6.8</td><td>0.6</td><td>mg/kg</td><td>Certified</td></tr>
      <tr><td>Lead</td><td>Mass fraction</td><td>&lt;0.05</td><td></td><td>mg/kg</td><td>Indicative</td></tr>
      <tr><td>Incomplete</td><td>Mass fraction</td></tr>
    </tbody>
  </table>
</div>
</body></html>
"""


@pytest.fixture
def spectrum_csv():
    return (
        "Title,Caffeine mass spectrum\n"
        "Instrument,Orbitrap\n"
        "m/z,Intensity\n"
        "138.0,12.5\n"
        "194.08,100.0\n"
        "bad\n"
        "195.1,11.2\n"
    )


# ============================================================
# Identity service responses
# ============================================================


@pytest.fixture
def pubchem_cids():
    return {"IdentifierList": {"CID": [2244]}}


@pytest.fixture
def pubchem_properties():
    return {
        "PropertyTable": {
            "Properties": [
                {
                    "CID": 2244,
                    "Title": "Aspirin",
                    "IUPACName": "2-acetyloxybenzoic acid",
                    "MolecularFormula": "C9H8O4",
                    "MolecularWeight": "180.16",
                    "InChIKey": "BSYNRYMUTXBXSQ-UHFFFAOYSA-N",
                    "SMILES": "CC(=O)OC1=CC=CC=C1C(=O)O",
                    "ExactMass": "180.04225873",
                    "TPSA": 63.6,
                    "XLogP": 1.2,
                }
            ]
        }
    }


@pytest.fixture
def pubchem_synonyms():
    names = ["aspirin", "Acetylsalicylic acid", "ASA"] + [f"synonym-{i}" for i in range(12)]
    return {"InformationList": {"Information": [{"CID": 2244, "Synonym": names}]}}


# ============================================================
# Domain objects
# ============================================================


@pytest.fixture
def aspirin_identity():
    return ChemicalIdentity(
        canonical_name="Aspirin",
        iupac_name="2-acetyloxybenzoic acid",
        formula="C9H8O4",
        molecular_weight=180.16,
        log_p=1.2,
        compound_id=2244,
        synonyms=("aspirin", "Acetylsalicylic acid", "ASA"),
    )


@pytest.fixture
def aspr_summary():
    return MaterialSummary(
        id="urn:uuid:1111-aaaa",
        display_name="ASPR-1",
        searchable_name="ASPR-1: Acetylsalicylic acid certified reference material",
    )


@pytest.fixture
def dorm_summary():
    return MaterialSummary(
        id="urn:uuid:2222-bbbb",
        display_name="DORM-5",
        searchable_name="DORM-5: Fish protein certified reference material",
    )


@pytest.fixture
def lead():
    return Analyte(name="Lead", quantity="Mass fraction", value="<0.05", unit="mg/kg", category="Indicative")


@pytest.fixture
def arsenic():
    return Analyte(name="Arsenic", quantity="Mass fraction", value="6.8", uncertainty="0.6", unit="mg/kg")


@pytest.fixture
def mock_resolver(aspirin_identity):
    resolver = MagicMock()
    resolver.resolve = AsyncMock(return_value=aspirin_identity)
    return resolver


@pytest.fixture
def mock_repository(aspr_summary):
    repository = MagicMock()
    repository.search = AsyncMock(return_value=[aspr_summary])
    repository.fetch_detail = AsyncMock(
        return_value=MaterialDetail(
            title="ASPR-1",
            material_type=aspr_summary.material_type,
            analytes=[Analyte(name="Acetylsalicylic acid", value="99.6", unit="%")],
        )
    )
    return repository
