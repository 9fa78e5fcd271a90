# storefront/cli.py
import click
import pandas as pd
from werkzeug.security import generate_password_hash

from .errors import ConstraintViolation
from .extensions import db
from .model import Inventory, Product, User
from .services import store
from .services.inventory_service import apply_inventory_payload
from .utils.parsing import parse_int

# spreadsheet column -> Inventory attribute
INVENTORY_COLUMNS = {
    "Product ID": "product_id",
    "SKU": "sku",
    "Quantity": "quantity",
    "Reserved Quantity": "reserved_quantity",
    "Low Stock Threshold": "low_stock_threshold",
    "Warehouse": "warehouse",
    "Aisle": "aisle",
    "Shelf": "shelf",
    "Bin": "bin",
}

def _read_frame(path: str) -> pd.DataFrame:
    if path.lower().endswith((".xlsx", ".xls")):
        df = pd.read_excel(path)
    else:
        df = pd.read_csv(path)
    # Clean column names (remove extra spaces)
    df.columns = df.columns.str.strip()
    return df

def _cell(row, column, default=None):
    value = row.get(column, default)
    return default if pd.isna(value) else value

@click.command("create-admin")
@click.option("--email", required=True)
@click.option("--password", required=True)
@click.option("--name", required=True)
def create_admin(email, password, name):
    email = email.strip().lower()
    if User.query.filter_by(email=email).first():
        click.echo("Email already exists"); return
    u = User(email=email, name=name, password_hash=generate_password_hash(password), role="admin")
    db.session.add(u); db.session.commit()
    click.echo(f"Admin created: {u.id} {u.email}")

def _row_payload(row, columns) -> dict:
    """Sheet row -> apply_inventory_payload body; blank cells are left out."""
    data, location = {}, {}
    for column, attr in INVENTORY_COLUMNS.items():
        if column not in columns or column in ("SKU", "Reserved Quantity"):
            continue
        value = _cell(row, column)
        if value is None:
            continue
        if attr in ("warehouse", "aisle", "shelf", "bin"):
            location[attr] = str(value)
        else:
            data[attr] = value
    if location:
        data["location"] = location
    return data

@click.command("import-inventory")
@click.argument("path", type=click.Path(exists=True, dir_okay=False))
def import_inventory(path):
    """
    Create or update inventory rows from a CSV/Excel sheet keyed by SKU.

    Rows without a SKU or pointing at an unknown product are skipped. Any
    other invalid row aborts the import and nothing is written.
    """
    df = _read_frame(path)
    missing = [c for c in ("Product ID", "SKU", "Quantity") if c not in df.columns]
    if missing:
        raise click.ClickException(f"missing columns: {', '.join(missing)}")

    created = updated = skipped = 0
    for index, row in df.iterrows():
        line = index + 2  # header is line 1
        sku = str(_cell(row, "SKU", "")).strip()
        product_id = parse_int(_cell(row, "Product ID"))
        if not sku or not product_id or not db.session.get(Product, product_id):
            skipped += 1
            continue

        inv = Inventory.query.filter_by(sku=sku).first()
        is_new = inv is None
        if is_new:
            inv = Inventory(sku=sku, reserved_quantity=0, low_stock_threshold=10, variants=[])
        try:
            apply_inventory_payload(inv, _row_payload(row, df.columns), partial=True)
            if "Reserved Quantity" in df.columns and _cell(row, "Reserved Quantity") is not None:
                reserved = parse_int(_cell(row, "Reserved Quantity"))
                if reserved is None or reserved < 0:
                    raise ValueError("reserved_quantity must be an integer >= 0")
                inv.reserved_quantity = reserved
            if (inv.quantity or 0) < (inv.reserved_quantity or 0):
                raise ValueError("quantity cannot drop below the reserved quantity")
        except ValueError as e:
            db.session.rollback()
            raise click.ClickException(f"row {line} (SKU {sku}): {e}")

        if is_new:
            db.session.add(inv)
            created += 1
        else:
            updated += 1

    try:
        store.commit()
    except ConstraintViolation as e:
        raise click.ClickException(f"import rejected: {e.message}")
    click.echo(f"inventory import: {created} created, {updated} updated, {skipped} skipped")

@click.command("export-inventory")
@click.argument("path", type=click.Path(dir_okay=False))
def export_inventory(path):
    """Write every inventory row (with availability) to a CSV/Excel sheet."""
    rows = [
        {
            **{column: getattr(inv, attr) for column, attr in INVENTORY_COLUMNS.items()},
            "Product Name": inv.product.name if inv.product else None,
            "Available Quantity": inv.available_quantity,
            "Low Stock": bool(inv.is_low_stock),
            "Last Restocked": inv.last_restocked,
        }
        for inv in Inventory.query.order_by(Inventory.id.asc()).all()
    ]
    df = pd.DataFrame(rows)
    if path.lower().endswith((".xlsx", ".xls")):
        df.to_excel(path, index=False)
    else:
        df.to_csv(path, index=False)
    click.echo(f"{len(rows)} inventory rows exported to {path}")

def register_cli(app):
    app.cli.add_command(create_admin)
    app.cli.add_command(import_inventory)
    app.cli.add_command(export_inventory)
