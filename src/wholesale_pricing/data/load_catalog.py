"""
Seed Loader - builds store documents from product and vendor CSV exports.

The in-memory store is seeded from two flat files:
- products.csv: one row per product, tier entries as ``label:price;label:price``
- vendors.csv: one row per vendor, portal users as ``a@x.com;b@x.com``

Returns the documents together with a build report (input hashes, metrics,
warnings, errors).
"""
import hashlib
import logging
from datetime import datetime
from pathlib import Path
from typing import Optional

import pandas as pd

from ..config.settings import get_settings, Settings

logger = logging.getLogger(__name__)

PRODUCT_COLUMNS = [
    'id', 'title', 'slug', 'sku', 'price',
    'wholesalePriceStandard', 'wholesalePricePreferred', 'wholesalePricePlatinum',
    'pricingTiers', 'availableForWholesale', 'status', 'availability', 'categoryIds',
]

VENDOR_COLUMNS = [
    'id', 'companyName', 'pricingTier', 'customDiscountPercentage',
    'portalEnabled', 'portalEmail', 'primaryContactEmail', 'email', 'portalUsers',
    'status', 'paymentTerms', 'creditLimit', 'currentBalance', 'totalOrders', 'totalRevenue',
]

NAMED_TIER_COLUMNS = {
    'standard': 'wholesalePriceStandard',
    'preferred': 'wholesalePricePreferred',
    'platinum': 'wholesalePricePlatinum',
}


def get_file_hash(path: Path) -> str:
    """Get SHA256 hash of a file."""
    if not path.exists():
        return ""
    with open(path, 'rb') as f:
        return hashlib.sha256(f.read()).hexdigest()[:12]


def _text(value: str) -> Optional[str]:
    return value or None


def _number(value: str) -> Optional[float]:
    if not value:
        return None
    try:
        return float(value.replace('$', '').replace(',', ''))
    except ValueError:
        return None


def _flag(value: str) -> Optional[bool]:
    if not value:
        return None
    return value.lower() in ('true', 'yes', '1', 'y')


def _split(value: str) -> list[str]:
    return [part.strip() for part in value.split(';') if part.strip()] if value else []


def parse_tier_entries(value: str) -> list[dict]:
    """Parse ``label:price;label:price`` into tier price entries."""
    entries = []
    for part in _split(value):
        label, _, price = part.partition(':')
        entries.append({'label': label.strip() or None, 'price': _number(price.strip())})
    return entries


def _read_frame(path: Path, columns: list[str], report: dict, key: str) -> Optional[pd.DataFrame]:
    if not path.exists():
        report["errors"].append(f"{path} not found")
        return None

    report["input_files"][key] = {"path": str(path), "hash": get_file_hash(path)}
    df = pd.read_csv(path, dtype=str).fillna('')
    df.columns = [c.strip() for c in df.columns]
    for col in df.columns:
        df[col] = df[col].astype(str).str.strip()

    missing = [c for c in columns if c not in df.columns]
    for col in missing:
        df[col] = ''
    if missing:
        report["warnings"].append(f"{path.name} is missing columns: {', '.join(missing)}")

    df = df[df['id'] != '']
    duplicates = int(df['id'].duplicated().sum())
    if duplicates:
        report["warnings"].append(f"{duplicates} duplicate ids removed from {path.name}")
    report["metrics"][f"{key}_duplicates_removed"] = duplicates
    return df.drop_duplicates('id', keep='first')


def product_documents(df: pd.DataFrame) -> list[dict]:
    docs = []
    for row in df.to_dict(orient='records'):
        docs.append({
            '_id': row['id'],
            '_type': 'product',
            'title': _text(row['title']),
            'slug': {'current': row['slug']} if row['slug'] else None,
            'sku': _text(row['sku']),
            'price': _number(row['price']),
            'wholesalePriceStandard': _number(row['wholesalePriceStandard']),
            'wholesalePricePreferred': _number(row['wholesalePricePreferred']),
            'wholesalePricePlatinum': _number(row['wholesalePricePlatinum']),
            'pricingTiers': parse_tier_entries(row['pricingTiers']),
            'availableForWholesale': _flag(row['availableForWholesale']),
            'status': _text(row['status'].lower()),
            'availability': _text(row['availability'].lower()),
            'categoryIds': _split(row['categoryIds']),
        })
    return docs


def vendor_documents(df: pd.DataFrame) -> list[dict]:
    docs = []
    for row in df.to_dict(orient='records'):
        doc = {
            '_id': row['id'],
            '_type': 'vendor',
            'companyName': _text(row['companyName']),
            'pricingTier': _text(row['pricingTier'].lower()),
            'customDiscountPercentage': _number(row['customDiscountPercentage']),
            'portalAccess': {
                'enabled': _flag(row['portalEnabled']),
                'email': _text(row['portalEmail']),
            },
            'primaryContact': {'email': _text(row['primaryContactEmail'])},
            'email': _text(row['email']),
            'portalUsers': [{'email': e} for e in _split(row['portalUsers'])],
            'status': _text(row['status']),
            'paymentTerms': _text(row['paymentTerms']),
            'creditLimit': _number(row['creditLimit']),
        }
        # Ledger fields stay unset unless the export carries them
        for col in ('currentBalance', 'totalOrders', 'totalRevenue'):
            value = _number(row[col])
            if value is not None:
                doc[col] = int(value) if col == 'totalOrders' else value
        docs.append(doc)
    return docs


def build_seed_documents(settings: Optional[Settings] = None, verbose: bool = True) -> tuple[list[dict], dict]:
    """
    Build store seed documents from the product and vendor CSV files.

    Args:
        settings: Optional settings override
        verbose: Log progress messages

    Returns:
        (documents, build report)
    """
    settings = settings or get_settings()

    report = {
        "timestamp": datetime.now().isoformat(),
        "status": "pending",
        "input_files": {},
        "metrics": {},
        "warnings": [],
        "errors": []
    }
    documents = []

    products = _read_frame(settings.products_csv, PRODUCT_COLUMNS, report, 'products')
    if products is not None:
        product_docs = product_documents(products)
        documents.extend(product_docs)
        report["metrics"]["product_count"] = len(product_docs)
        report["metrics"]["wholesale_product_count"] = sum(
            1 for d in product_docs if d['availableForWholesale'] is True and d['status'] == 'active'
        )

        missing_price = sum(1 for d in product_docs if d['price'] is None)
        report["metrics"]["missing_price"] = missing_price
        if missing_price:
            report["warnings"].append(f"{missing_price} products have no base price")

        tier_coverage = {}
        for tier, column in NAMED_TIER_COLUMNS.items():
            priced = sum(1 for d in product_docs if d[column] is not None)
            tier_coverage[tier] = {
                "priced_skus": priced,
                "coverage_pct": round(priced / len(product_docs) * 100, 1) if product_docs else 0.0,
            }
        report["metrics"]["tier_coverage"] = tier_coverage

    vendors = _read_frame(settings.vendors_csv, VENDOR_COLUMNS, report, 'vendors')
    if vendors is not None:
        vendor_docs = vendor_documents(vendors)
        documents.extend(vendor_docs)
        report["metrics"]["vendor_count"] = len(vendor_docs)
        report["metrics"]["portal_enabled_vendors"] = sum(
            1 for d in vendor_docs if d['portalAccess']['enabled'] is True
        )

    report["status"] = "failed" if report["errors"] else "success"

    if verbose:
        for msg in report["errors"]:
            logger.error("Seed load: %s", msg)
        for msg in report["warnings"]:
            logger.warning("Seed load: %s", msg)
        logger.info("Seed load %s: %d documents", report["status"], len(documents))

    return documents, report


if __name__ == "__main__":
    build_seed_documents()
