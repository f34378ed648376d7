"""
NRC Digital Repository response parsers.

- Atom search feed -> MaterialSummary list / SpectrumDataset list
- Object view HTML page -> MaterialDetail
- Spectrum CSV attachment -> Spectrum
"""

from __future__ import annotations

import csv
import io
import logging
from xml.etree.ElementTree import Element

import defusedxml.ElementTree as ET  # Security: prevent XML attacks
from defusedxml import DefusedXmlException
from bs4 import BeautifulSoup

from refmat_search.domain.entities import (
    Analyte,
    MaterialDetail,
    MaterialSummary,
    Spectrum,
    SpectrumDataset,
    SpectrumPoint,
)
from refmat_search.shared.exceptions import ParseError

logger = logging.getLogger(__name__)

TITLE_SELECTOR = "h1#wb-cont span.citation_title"
ANALYTE_TABLE_SELECTOR = ".table-viewobject .table.table-condensed"
ABSTRACT_SELECTOR = 'div.metadata-abstract span[itemprop="description"]'
DOI_SELECTOR = 'a[itemprop="sameAs"]'
DATE_SELECTOR = 'span[itemprop="datePublished"]'

NO_SUMMARY = "No summary available"
ANALYTE_COLUMNS = 6
METADATA_ROWS = 20


# =============================================================================
# Atom feed
# =============================================================================


def _local_name(element: Element) -> str:
    """Tag name without the XML namespace."""
    return element.tag.rsplit("}", 1)[-1] if isinstance(element.tag, str) else ""


def _child_text(element: Element, name: str) -> str:
    for child in element:
        if _local_name(child) == name:
            return "".join(child.itertext()).strip()
    return ""


def _parse_feed(xml_text: str) -> Element:
    try:
        return ET.fromstring(xml_text)
    except (ET.ParseError, DefusedXmlException) as e:
        raise ParseError(f"Invalid Atom feed: {e}", source="NRC repository") from e


def parse_search_feed(xml_text: str) -> list[MaterialSummary]:
    """
    Map Atom entries to MaterialSummary.

    The first entry describes the feed itself and is skipped. Entries without
    a title are dropped.
    """
    root = _parse_feed(xml_text)
    entries = [el for el in root.iter() if _local_name(el) == "entry"]

    summaries: list[MaterialSummary] = []
    for entry in entries[1:]:
        title = _child_text(entry, "title")
        if not title:
            continue
        summaries.append(
            MaterialSummary(
                id=_child_text(entry, "id"),
                display_name=title.split(":", 1)[0].strip(),
                searchable_name=title,
                abstract_text=_child_text(entry, "summary"),
            )
        )
    return summaries


def parse_spectrum_links(xml_text: str) -> list[SpectrumDataset]:
    """Collect CSV links whose title mentions "spectrum", in feed order."""
    root = _parse_feed(xml_text)
    datasets: list[SpectrumDataset] = []
    seen: set[str] = set()
    for link in root.iter():
        if _local_name(link) != "link" or link.get("type") != "text/csv":
            continue
        title = link.get("title")
        href = link.get("href")
        if not title or not href or "spectrum" not in title.lower():
            continue
        if href in seen:
            continue
        seen.add(href)
        datasets.append(SpectrumDataset(title=title, href=href))
    return datasets


# =============================================================================
# Object view page
# =============================================================================


def _select_text(soup: BeautifulSoup, selector: str) -> str | None:
    element = soup.select_one(selector)
    if element is None:
        return None
    return element.get_text(strip=True)


def parse_analyte_rows(soup: BeautifulSoup) -> list[Analyte]:
    """
    Read the certified-values table.

    The page carries several condensed tables; the analyte table is the
    second one, or the first when only one exists. No table means the
    material has no published analyte data.
    """
    tables = soup.select(ANALYTE_TABLE_SELECTOR)
    if not tables:
        return []
    table = tables[1] if len(tables) > 1 else tables[0]

    analytes: list[Analyte] = []
    for row in table.select("tbody tr"):
        cells = [cell.get_text(strip=True) for cell in row.find_all("td")]
        if len(cells) < ANALYTE_COLUMNS:
            continue
        name, quantity, value, uncertainty, unit, category = cells[:ANALYTE_COLUMNS]
        analytes.append(
            Analyte(
                name=name,
                quantity=quantity,
                value=value,
                uncertainty=uncertainty,
                unit=unit,
                category=category,
            )
        )
    return analytes


def parse_detail_page(html: str, summary: MaterialSummary) -> MaterialDetail:
    """Build a MaterialDetail from the object view page of ``summary``."""
    soup = BeautifulSoup(html, "html.parser")

    doi_link = soup.select_one(DOI_SELECTOR)
    doi = doi_link.get("href") if doi_link is not None else None

    return MaterialDetail(
        title=_select_text(soup, TITLE_SELECTOR) or summary.display_name,
        abstract_text=_select_text(soup, ABSTRACT_SELECTOR) or NO_SUMMARY,
        material_type=summary.material_type,
        doi=str(doi) if doi else None,
        publication_date=_select_text(soup, DATE_SELECTOR),
        analytes=parse_analyte_rows(soup),
    )


# =============================================================================
# Spectrum CSV
# =============================================================================


def _as_float(cell: str) -> float | None:
    try:
        return float(cell.strip())
    except ValueError:
        return None


def _is_data_row(row: list[str]) -> bool:
    return len(row) >= 2 and _as_float(row[0]) is not None and _as_float(row[1]) is not None


def parse_spectrum_csv(csv_text: str, dataset: SpectrumDataset) -> Spectrum:
    """
    Parse a spectrum attachment.

    Leading rows are ``key,value`` metadata; data starts at the first row
    whose first two cells are both numeric.
    """
    rows = list(csv.reader(io.StringIO(csv_text)))

    metadata: dict[str, str] = {}
    for row in rows[:METADATA_ROWS]:
        if len(row) >= 2 and _as_float(row[0]) is None:
            metadata[row[0].strip()] = row[1].strip()

    start = next((i for i, row in enumerate(rows) if _is_data_row(row)), None)
    if start is None:
        logger.warning(f"No numeric data rows in spectrum {dataset.title!r}")
        return Spectrum(dataset=dataset, metadata=metadata)

    points = [
        SpectrumPoint(x=float(row[0]), intensity=float(row[1]))
        for row in rows[start:]
        if _is_data_row(row)
    ]
    return Spectrum(dataset=dataset, points=points, metadata=metadata)
