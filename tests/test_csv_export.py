"""Tests for CSV serialization."""
import io
import json

import pandas as pd

from geoexport.core.csv_export import create_csv, sort_by_popularity
from geoexport.core.models import AddressParts, GeoPoint, Parent, ParentField, ParentFieldKind, SearchDocument


def _document(source_id, popularity=1, **kwargs):
    document = SearchDocument(
        layer="stop_place",
        source="nsr",
        source_id=source_id,
        center_point=GeoPoint(lat=59.91, lon=10.75),
        address_parts=AddressParts(street=f"NOT_AN_ADDRESS-{source_id}"),
        popularity=popularity,
    )
    for key, value in kwargs.items():
        setattr(document, key, value)
    return document


def _read(data: bytes) -> pd.DataFrame:
    return pd.read_csv(io.BytesIO(data), dtype=str, keep_default_na=False)


def test_headers_include_every_dynamic_column():
    documents = [
        _document("A", names={"default": "Oslo S", "eng": "Oslo Central"}, aliases={"default": "OSL"}),
        _document("B", names={"default": "Bergen", "nor": "Bergen"}, aliases={"default": "BGO", "nno": "Bjørgvin"}),
        _document("C", names={"default": "Trondheim"}, display_name="Trondheim S"),
    ]

    frame = _read(create_csv(documents))

    assert list(frame.columns) == [
        "id", "index", "type", "name", "name_display", "name_eng", "name_nor",
        "alias", "alias_nno",
        "lat", "lon", "street", "number", "zipcode", "popularity",
        "category", "description", "source", "source_id", "layer", "parent",
    ]
    assert len(frame) == 3


def test_row_values():
    parent = (
        Parent()
        .with_field(ParentFieldKind.LOCALITY, ParentField("KVE:TopographicPlace:0301", "Oslo"))
        .with_field(ParentFieldKind.COUNTRY, ParentField("NO"))
    )
    document = _document(
        "NSR:StopPlace:337",
        popularity=4000,
        names={"default": "Oslo S", "eng": "Oslo Central"},
        aliases={"default": "OSL", "eng": "Oslo Central Station"},
        descriptions={"nor": "Hovedstasjon"},
        categories=["railStation"],
        parent=parent,
    )

    row = _read(create_csv([document])).iloc[0]

    assert row["id"] == "NSR:StopPlace:337"
    assert row["index"] == "pelias"
    assert row["type"] == "stop_place"
    assert row["name"] == "Oslo S"
    assert row["name_eng"] == "Oslo Central"
    assert json.loads(row["alias"]) == ["OSL"]
    assert json.loads(row["alias_eng"]) == ["Oslo Central Station"]
    assert float(row["lat"]) == 59.91
    assert float(row["lon"]) == 10.75
    assert row["street"] == "NOT_AN_ADDRESS-NSR:StopPlace:337"
    assert row["number"] == ""
    assert row["zipcode"] == ""
    assert row["popularity"] == "4000"
    assert json.loads(row["category"]) == ["railStation"]
    assert json.loads(row["description"]) == {"nor": "Hovedstasjon"}
    assert row["source"] == "nsr"
    assert row["source_id"] == "NSR:StopPlace:337"
    assert row["layer"] == "stop_place"
    assert json.loads(row["parent"]) == {
        "country": {"id": "NO"},
        "locality": {"id": "KVE:TopographicPlace:0301", "name": "Oslo"},
    }


def test_missing_values_are_empty_cells():
    documents = [
        _document("A", names={"default": "Oslo S", "eng": "Oslo Central"}),
        _document("B", names={"default": "Bergen"}),
    ]

    frame = _read(create_csv(documents)).set_index("id")

    assert frame.loc["B", "name_eng"] == ""
    assert frame.loc["B", "alias"] == ""
    assert frame.loc["B", "parent"] == ""


def test_rows_sorted_by_descending_popularity():
    documents = [
        _document("low", popularity=10),
        _document("none", popularity=None),
        _document("high", popularity=1000),
        _document("one", popularity=1),
    ]

    frame = _read(create_csv(documents))

    assert list(frame["id"]) == ["high", "low", "none", "one"]
    assert list(frame["popularity"]) == ["1000", "10", "", "1"]


def test_sort_is_stable_for_equal_popularity():
    documents = [_document(str(i), popularity=5) for i in range(5)]

    assert [d.source_id for d in sort_by_popularity(documents)] == ["0", "1", "2", "3", "4"]


def test_non_ascii_text_round_trips():
    document = _document("A", names={"default": "Tromsø lufthavn", "sme": "Romsa girdišillju"})

    frame = _read(create_csv([document]))

    assert frame.loc[0, "name"] == "Tromsø lufthavn"
    assert frame.loc[0, "name_sme"] == "Romsa girdišillju"


def test_empty_input_writes_header_only():
    frame = _read(create_csv([]))

    assert len(frame) == 0
    assert "name" in frame.columns
