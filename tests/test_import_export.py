"""Tests for CSV import and export."""
import csv
import io

import pytest
from sqlalchemy.exc import OperationalError

from app.models.product import Product
from app.models.stock_log import StockLogEntry
from app.services.exceptions import BulkImportError
from app.services.export_service import ProductExporter
from app.services.import_service import ProductImporter


def upload(client, text, filename="products.csv"):
    return client.post(
        "/api/v1/products/import",
        files={"file": (filename, text.encode("utf-8"), "text/csv")}
    )


def test_import_duplicate_within_batch(db_session):
    """Test that a repeated name in one batch references the first row's ID."""
    report = ProductImporter(db_session).import_rows([
        {"name": "X", "stock": "5"},
        {"name": "X", "stock": "3"},
    ])

    products = db_session.query(Product).all()
    assert report.added == 1
    assert report.skipped == 1
    assert len(products) == 1
    assert products[0].stock == 5
    assert len(report.duplicates) == 1
    assert report.duplicates[0].name == "X"
    assert report.duplicates[0].existing_id == products[0].id


def test_import_blank_name_is_skipped(db_session):
    """Test that a row without a name is skipped, not reported as duplicate."""
    report = ProductImporter(db_session).import_rows([{"name": "", "stock": "5"}])

    assert report.added == 0
    assert report.skipped == 1
    assert report.duplicates == []
    assert db_session.query(Product).count() == 0


def test_import_row_defaults(db_session):
    """Test defaults for missing fields, bad stock and status derivation."""
    report = ProductImporter(db_session).import_rows([
        {"name": "  Plain  "},
        {"name": "Bad Stock", "stock": "many"},
        {"name": "Negative", "stock": "-4"},
        {"name": "Stocked", "stock": "7", "brand": "Acme", "unit": "box"},
        {"name": "Labelled", "stock": "7", "status": "Discontinued"},
    ])

    assert report.added == 5
    products = {p.name: p for p in db_session.query(Product).all()}
    assert products["Plain"].stock == 0
    assert products["Plain"].status == "Out of Stock"
    assert products["Plain"].unit == ""
    assert products["Plain"].image == ""
    assert products["Bad Stock"].stock == 0
    assert products["Negative"].stock == 0
    assert products["Stocked"].status == "In Stock"
    assert products["Stocked"].brand == "Acme"
    assert products["Labelled"].status == "Discontinued"


def test_import_duplicate_of_existing_product_ignores_case(db_session):
    """Test that names already in the catalog are matched case-insensitively."""
    db_session.add(Product(name="Widget", stock=1, status="In Stock"))
    db_session.commit()
    existing_id = db_session.query(Product).one().id

    report = ProductImporter(db_session).import_rows([{"name": "WIDGET ", "stock": "9"}])

    assert report.added == 0
    assert report.skipped == 1
    assert report.duplicates[0].existing_id == existing_id
    assert db_session.query(Product).one().stock == 1


def test_import_does_not_log_stock(db_session):
    """Test that imported stock is not written to the stock history."""
    ProductImporter(db_session).import_rows([{"name": "Bulk", "stock": "40"}])

    assert db_session.query(StockLogEntry).count() == 0


def test_import_consumes_rows_lazily(db_session):
    """Test that rows may come from a generator."""
    def rows():
        for i in range(3):
            yield {"name": f"Gen {i}", "stock": str(i)}

    report = ProductImporter(db_session).import_rows(rows())

    assert report.added == 3


def test_import_store_failure_keeps_earlier_rows(db_session, monkeypatch):
    """Test that a store failure aborts the batch but keeps committed rows."""
    real_commit = db_session.commit
    calls = []

    def flaky_commit():
        calls.append(1)
        if len(calls) > 1:
            raise OperationalError("INSERT", {}, Exception("connection lost"))
        real_commit()

    monkeypatch.setattr(db_session, "commit", flaky_commit)

    with pytest.raises(BulkImportError) as exc_info:
        ProductImporter(db_session).import_rows([
            {"name": "First"},
            {"name": "Second"},
            {"name": "Third"},
        ])

    assert exc_info.value.report.added == 1
    assert exc_info.value.report.skipped == 0
    assert [p.name for p in db_session.query(Product).all()] == ["First"]


def test_import_endpoint(client, create_product):
    """Test uploading a CSV file."""
    existing = create_product(name="Bananas", stock=2)
    text = (
        "name,unit,category,brand,stock,status,image\n"
        "Apples,kg,Groceries,Orchard,12,,\n"
        "bananas,kg,Groceries,Dole,4,,\n"
        ",pcs,,,3,,\n"
    )

    response = upload(client, text)

    assert response.status_code == 200
    assert response.json() == {
        "added": 1,
        "skipped": 2,
        "duplicates": [{"name": "bananas", "existingId": existing["id"]}],
    }
    names = [p["name"] for p in client.get("/api/v1/products/").json()]
    assert names == ["Apples", "Bananas"]


def test_import_endpoint_strips_bom(client):
    """Test that a UTF-8 byte order mark does not hide the name column."""
    response = client.post(
        "/api/v1/products/import",
        files={"file": ("bom.csv", "\ufeffname,stock\nCherries,3\n".encode("utf-8"), "text/csv")}
    )

    assert response.json()["added"] == 1


def test_import_endpoint_requires_file(client):
    """Test that a request without a file is rejected."""
    response = client.post("/api/v1/products/import")

    assert response.status_code == 400
    assert response.json()["detail"] == "No file uploaded"


def test_export_rows_oldest_first(db_session):
    """Test the exported projection and its order."""
    db_session.add_all([
        Product(name="First", unit="pcs", category="A", brand="B", stock=1, status="In Stock", image="a.png"),
        Product(name="Second", unit="kg", category="C", brand="D", stock=0, status="Out of Stock", image=""),
    ])
    db_session.commit()

    rows = ProductExporter(db_session).rows()

    assert rows == [
        {"name": "First", "unit": "pcs", "category": "A", "brand": "B", "stock": 1, "status": "In Stock", "image": "a.png"},
        {"name": "Second", "unit": "kg", "category": "C", "brand": "D", "stock": 0, "status": "Out of Stock", "image": ""},
    ]


def test_export_empty_catalog_has_header(client):
    """Test that exporting nothing still yields the header row."""
    response = client.get("/api/v1/products/export")

    assert response.status_code == 200
    assert response.text.strip() == "name,unit,category,brand,stock,status,image"


def test_export_endpoint(client, create_product):
    """Test downloading the catalog as CSV."""
    create_product(name="Comma, Inc. Widget", unit="pcs", stock=3)
    create_product(name="Plain", stock=0)

    response = client.get("/api/v1/products/export")

    assert response.status_code == 200
    assert response.headers["content-type"].startswith("text/csv")
    assert 'filename="products_export.csv"' in response.headers["content-disposition"]

    rows = list(csv.DictReader(io.StringIO(response.text)))
    assert [row["name"] for row in rows] == ["Comma, Inc. Widget", "Plain"]
    assert rows[0]["stock"] == "3"
    assert rows[0]["status"] == "In Stock"
    assert rows[1]["status"] == "Out of Stock"


def test_export_then_import_is_idempotent(client, create_product):
    """Test that re-importing an export adds nothing and skips every row."""
    for name in ("One", "Two", "Three"):
        create_product(name=name, stock=1)

    exported = client.get("/api/v1/products/export").text
    response = upload(client, exported)

    assert response.json()["added"] == 0
    assert response.json()["skipped"] == 3
    assert len(response.json()["duplicates"]) == 3
    assert len(client.get("/api/v1/products/").json()) == 3


def test_import_out_of_range_stock_defaults_to_zero(db_session):
    """Test that oversized stock imports as 0 and the batch carries on."""
    report = ProductImporter(db_session).import_rows([
        {"name": "Exponent", "stock": "1e30"},
        {"name": "Digits", "stock": "99999999999999999999"},
        {"name": "Giant", "stock": "1e999999999"},
        {"name": "After", "stock": "7"},
    ])

    stocks = {p.name: p.stock for p in db_session.query(Product).all()}
    assert report.added == 4
    assert stocks == {"Exponent": 0, "Digits": 0, "Giant": 0, "After": 7}


def test_import_duplicate_folds_non_ascii(db_session):
    """Test that an accented name in another case is reported as a duplicate."""
    db_session.add(Product(name="Éclair", stock=1, status="In Stock"))
    db_session.commit()
    existing_id = db_session.query(Product).one().id

    report = ProductImporter(db_session).import_rows([
        {"name": "éclair"},
        {"name": "crème brûlée"},
        {"name": "CRÈME BRÛLÉE"},
    ])

    assert report.added == 1
    assert report.skipped == 2
    assert report.duplicates[0].existing_id == existing_id
    assert db_session.query(Product).count() == 2
