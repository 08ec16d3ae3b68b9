#!/usr/bin/env python
"""
Build pipeline - validates the seed catalog, smoke-prices it and runs the tests.

Usage:
    python scripts/build_all.py
"""
import asyncio
import subprocess
import sys
from pathlib import Path

# Add src to path
src_path = Path(__file__).parent.parent / 'src'
sys.path.insert(0, str(src_path))

from wholesale_pricing.data.load_catalog import build_seed_documents
from wholesale_pricing.engine.models import CartItemInput
from wholesale_pricing.engine.pricing_engine import PricingEngine, calculate_totals
from wholesale_pricing.store.memory import InMemoryStore
from wholesale_pricing.utils.logger import setup_logging


async def smoke_price(documents: list[dict]) -> dict:
    """Price one unit of every wholesale product under each named tier."""
    store = InMemoryStore(documents)
    engine = PricingEngine(store)
    products = await store.list_wholesale_products()
    items = [CartItemInput(p['_id'], 1) for p in products]
    subtotals = {}
    for tier in ('standard', 'preferred', 'platinum'):
        cart = await engine.price_cart(items, tier)
        subtotals[tier] = calculate_totals(cart).subtotal
    return subtotals


def main():
    setup_logging("INFO")
    print("=" * 60)
    print("WHOLESALE PRICING BUILD PIPELINE")
    print("=" * 60)

    print("\n[1/3] Loading seed catalog...")
    documents, report = build_seed_documents(verbose=True)
    if report["status"] != "success":
        print("\n❌ BUILD FAILED")
        for error in report["errors"]:
            print(f"  ERROR: {error}")
        sys.exit(1)

    print("\n[2/3] Pricing seed catalog...")
    subtotals = asyncio.run(smoke_price(documents))

    print("\n[3/3] Running tests...")
    test_result = subprocess.run(
        [sys.executable, '-m', 'pytest', '-q'],
        cwd=Path(__file__).parent.parent
    )
    if test_result.returncode != 0:
        print("\n❌ TESTS FAILED")
        sys.exit(1)

    metrics = report['metrics']
    print("\n✅ BUILD COMPLETE")
    print(f"  Products: {metrics.get('product_count', 0)} ({metrics.get('wholesale_product_count', 0)} wholesale)")
    print(f"  Vendors: {metrics.get('vendor_count', 0)} ({metrics.get('portal_enabled_vendors', 0)} with portal access)")
    for tier, stats in metrics.get('tier_coverage', {}).items():
        print(f"  {tier}: {stats['coverage_pct']}% explicit prices, one-of-each subtotal ${subtotals[tier]:,.2f}")
    for warning in report["warnings"]:
        print(f"  WARNING: {warning}")


if __name__ == "__main__":
    main()
