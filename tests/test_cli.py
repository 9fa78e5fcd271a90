# tests/test_cli.py
import pandas as pd

from storefront.model import Inventory, User


def test_create_admin(app):
    runner = app.test_cli_runner()
    result = runner.invoke(args=["create-admin", "--email", " Boss@Example.com ", "--password", "pw", "--name", "Boss"])
    assert "Admin created" in result.output
    assert User.query.filter_by(email="boss@example.com").one().role == "admin"

    again = runner.invoke(args=["create-admin", "--email", "boss@example.com", "--password", "pw", "--name", "Boss"])
    assert "Email already exists" in again.output

def test_import_creates_and_updates_by_sku(app, make_product, make_inventory, tmp_path):
    tea, cup = make_product(name="Green Tea"), make_product(name="Clay Cup")
    make_inventory(tea, sku="TEA-1", quantity=5)

    sheet = tmp_path / "stock.csv"
    pd.DataFrame([
        {"Product ID": tea.id, "SKU": "TEA-1", "Quantity": 40, "Warehouse": "PNH-1"},
        {"Product ID": cup.id, "SKU": "CUP-1", "Quantity": 8, "Warehouse": None},
        {"Product ID": 999, "SKU": "GHOST", "Quantity": 1, "Warehouse": None},
    ]).to_csv(sheet, index=False)

    result = app.test_cli_runner().invoke(args=["import-inventory", str(sheet)])
    assert result.exit_code == 0, result.output
    assert "1 created, 1 updated, 1 skipped" in result.output

    assert Inventory.query.filter_by(sku="TEA-1").one().quantity == 40
    assert Inventory.query.filter_by(sku="TEA-1").one().warehouse == "PNH-1"
    assert Inventory.query.filter_by(sku="CUP-1").one().product_id == cup.id
    assert Inventory.query.filter_by(sku="GHOST").first() is None

def test_import_rejects_sheet_without_required_columns(app, tmp_path):
    sheet = tmp_path / "bad.csv"
    pd.DataFrame([{"SKU": "X"}]).to_csv(sheet, index=False)
    result = app.test_cli_runner().invoke(args=["import-inventory", str(sheet)])
    assert result.exit_code != 0
    assert "missing columns" in result.output

def test_export_writes_availability(app, make_product, make_inventory, tmp_path):
    make_inventory(make_product(name="Green Tea"), sku="TEA-1", quantity=7, reserved_quantity=2)
    out = tmp_path / "export.csv"

    result = app.test_cli_runner().invoke(args=["export-inventory", str(out)])
    assert result.exit_code == 0, result.output

    df = pd.read_csv(out)
    row = df.iloc[0]
    assert row["SKU"] == "TEA-1"
    assert row["Product Name"] == "Green Tea"
    assert row["Available Quantity"] == 5
    assert bool(row["Low Stock"]) is True

def _write(tmp_path, rows):
    sheet = tmp_path / "stock.csv"
    pd.DataFrame(rows).to_csv(sheet, index=False)
    return str(sheet)

def test_import_refuses_quantity_below_reserved(app, make_product, make_inventory, tmp_path):
    tea = make_product(name="Green Tea")
    make_inventory(tea, sku="TEA-1", quantity=10, reserved_quantity=8)
    sheet = _write(tmp_path, [{"Product ID": tea.id, "SKU": "TEA-1", "Quantity": 2}])

    result = app.test_cli_runner().invoke(args=["import-inventory", sheet])
    assert result.exit_code != 0
    assert "row 2 (SKU TEA-1)" in result.output
    assert "reserved quantity" in result.output

    inv = Inventory.query.filter_by(sku="TEA-1").one()
    assert (inv.quantity, inv.available_quantity) == (10, 2)

def test_import_rejects_non_numeric_cells_and_writes_nothing(app, make_product, tmp_path):
    tea, cup = make_product(name="Green Tea"), make_product(name="Clay Cup")
    sheet = _write(tmp_path, [
        {"Product ID": tea.id, "SKU": "TEA-1", "Quantity": "12"},
        {"Product ID": cup.id, "SKU": "CUP-1", "Quantity": "lots"},
    ])

    result = app.test_cli_runner().invoke(args=["import-inventory", sheet])
    assert result.exit_code != 0
    assert "row 3 (SKU CUP-1)" in result.output
    assert "quantity must be an integer" in result.output
    assert Inventory.query.count() == 0

def test_import_rejects_negative_quantity(app, make_product, tmp_path):
    tea = make_product(name="Green Tea")
    sheet = _write(tmp_path, [{"Product ID": tea.id, "SKU": "TEA-1", "Quantity": -3}])

    result = app.test_cli_runner().invoke(args=["import-inventory", sheet])
    assert result.exit_code != 0
    assert "quantity must be an integer >= 0" in result.output
    assert Inventory.query.count() == 0
