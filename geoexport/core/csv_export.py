"""Serialize search documents to a dynamic-column CSV."""
import json
from typing import Any, Dict, Iterable, List, Set, Tuple

import pandas as pd

from geoexport.core.models import SearchDocument

INDEX_NAME = "pelias"

ID = "id"
INDEX = "index"
TYPE = "type"
NAME = "name"
ALIAS = "alias"
LATITUDE = "lat"
LONGITUDE = "lon"
ADDRESS_STREET = "street"
ADDRESS_NUMBER = "number"
ADDRESS_ZIP = "zipcode"
POPULARITY = "popularity"
CATEGORY = "category"
DESCRIPTION = "description"
SOURCE = "source"
SOURCE_ID = "source_id"
LAYER = "layer"
PARENT = "parent"

LEADING_COLUMNS = [ID, INDEX, TYPE, NAME]
MIDDLE_COLUMNS = [LATITUDE, LONGITUDE, ADDRESS_STREET, ADDRESS_NUMBER, ADDRESS_ZIP, POPULARITY]
TRAILING_COLUMNS = [CATEGORY, DESCRIPTION, SOURCE, SOURCE_ID, LAYER, PARENT]


def _json(value: Any) -> str:
    return json.dumps(value, ensure_ascii=False)


def _text(value: Any) -> str:
    return "" if value is None else str(value)


def sort_by_popularity(documents: Iterable[SearchDocument]) -> List[SearchDocument]:
    """Descending popularity, None counted as 1; ties keep encounter order."""
    return sorted(
        documents,
        key=lambda document: document.popularity if document.popularity is not None else 1,
        reverse=True,
    )


def document_to_row(document: SearchDocument) -> Tuple[Dict[str, str], Set[str], Set[str]]:
    """
    Flatten one document into column -> cell text.

    Returns:
        The row plus the name_<lang> and alias_<lang> columns it uses
    """
    row: Dict[str, str] = {
        ID: document.source_id,
        INDEX: INDEX_NAME,
        TYPE: document.layer,
        NAME: _text(document.default_name),
        SOURCE: document.source,
        SOURCE_ID: document.source_id,
        LAYER: document.layer,
        POPULARITY: _text(document.popularity),
        CATEGORY: _json(document.categories),
        DESCRIPTION: _json(document.descriptions),
    }
    name_columns: Set[str] = set()
    alias_columns: Set[str] = set()

    for lang, value in document.names.items():
        if lang == "default":
            continue
        column = f"{NAME}_{lang}"
        name_columns.add(column)
        row[column] = value
    if document.display_name is not None:
        name_columns.add(f"{NAME}_display")
        row[f"{NAME}_display"] = document.display_name

    if document.default_alias is not None:
        row[ALIAS] = _json([document.default_alias])
    for lang, value in document.aliases.items():
        if lang == "default":
            continue
        column = f"{ALIAS}_{lang}"
        alias_columns.add(column)
        row[column] = _json([value])

    if document.center_point is not None:
        row[LATITUDE] = _text(document.center_point.lat)
        row[LONGITUDE] = _text(document.center_point.lon)

    if document.address_parts is not None:
        row[ADDRESS_STREET] = _text(document.address_parts.street)
        row[ADDRESS_NUMBER] = _text(document.address_parts.number)
        row[ADDRESS_ZIP] = _text(document.address_parts.zip)

    if document.parent is not None:
        row[PARENT] = _json(document.parent.to_dict())

    return row, name_columns, alias_columns


def build_headers(name_columns: Set[str], alias_columns: Set[str]) -> List[str]:
    return (
        LEADING_COLUMNS
        + sorted(name_columns)
        + [ALIAS]
        + sorted(alias_columns)
        + MIDDLE_COLUMNS
        + TRAILING_COLUMNS
    )


def create_csv(documents: Iterable[SearchDocument]) -> bytes:
    """
    Serialize documents to CSV bytes.

    The first pass flattens each document and collects every per-language
    column; the second renders all rows against the full header set, with
    empty cells where a document has no value.

    Args:
        documents: Valid search documents

    Returns:
        UTF-8 encoded CSV with a header row
    """
    rows: List[Dict[str, str]] = []
    name_columns: Set[str] = set()
    alias_columns: Set[str] = set()
    for document in sort_by_popularity(documents):
        row, names, aliases = document_to_row(document)
        rows.append(row)
        name_columns |= names
        alias_columns |= aliases

    headers = build_headers(name_columns, alias_columns)
    frame = pd.DataFrame(rows, columns=headers, dtype=object).fillna("")
    return frame.to_csv(index=False, lineterminator="\n").encode("utf-8")
