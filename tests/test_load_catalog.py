"""
Seed loader and settings tests.
"""
import pytest
from pydantic import ValidationError as PydanticValidationError

from wholesale_pricing.config.settings import Settings
from wholesale_pricing.data.load_catalog import build_seed_documents, parse_tier_entries
from wholesale_pricing.store.memory import InMemoryStore

PRODUCTS_CSV = """id,title,slug,sku,price,wholesalePriceStandard,wholesalePricePreferred,wholesalePricePlatinum,pricingTiers,availableForWholesale,status,availability,categoryIds
p1,Intake, intake ,CAI-1,"$1,049.50",839.60,,,Platinum:600;custom:700,TRUE,Active,IN_STOCK,cat-a;cat-b
p2,Gauge,gauge,BG-2,,,,,,false,active,in_stock,
p1,Intake Duplicate,intake-dup,CAI-1,1,,,,,true,active,in_stock,
,No Id,no-id,X,1,,,,,true,active,in_stock,
"""

VENDORS_CSV = """id,companyName,pricingTier,customDiscountPercentage,portalEnabled,portalEmail,primaryContactEmail,email,portalUsers,status,paymentTerms,creditLimit,currentBalance,totalOrders,totalRevenue
v1,Speed Shop,Preferred,,yes,orders@shop.example,,,a@shop.example; b@shop.example,active,net_30,5000,250.5,3,900
v2,Trackday,custom,12.5,no,portal@trackday.example,,,,pending,,,,,
"""


def write_settings(tmp_path, products=PRODUCTS_CSV, vendors=VENDORS_CSV):
    products_csv = tmp_path / 'products.csv'
    vendors_csv = tmp_path / 'vendors.csv'
    if products is not None:
        products_csv.write_text(products)
    if vendors is not None:
        vendors_csv.write_text(vendors)
    return Settings(project_root=tmp_path, products_csv=products_csv, vendors_csv=vendors_csv)


def by_id(documents):
    return {d['_id']: d for d in documents}


def test_product_documents(tmp_path):
    documents, report = build_seed_documents(write_settings(tmp_path), verbose=False)
    docs = by_id(documents)

    p1 = docs['p1']
    assert p1['_type'] == 'product'
    assert p1['title'] == 'Intake'
    assert p1['slug'] == {'current': 'intake'}
    assert p1['price'] == 1049.5
    assert p1['wholesalePriceStandard'] == 839.6
    assert p1['wholesalePricePreferred'] is None
    assert p1['pricingTiers'] == [{'label': 'Platinum', 'price': 600.0}, {'label': 'custom', 'price': 700.0}]
    assert p1['availableForWholesale'] is True
    assert p1['status'] == 'active'
    assert p1['availability'] == 'in_stock'
    assert p1['categoryIds'] == ['cat-a', 'cat-b']

    assert docs['p2']['availableForWholesale'] is False
    assert docs['p2']['price'] is None

    assert report['status'] == 'success'
    assert report['metrics']['product_count'] == 2
    assert report['metrics']['wholesale_product_count'] == 1
    assert report['metrics']['missing_price'] == 1
    assert report['metrics']['products_duplicates_removed'] == 1
    assert report['metrics']['tier_coverage']['standard'] == {'priced_skus': 1, 'coverage_pct': 50.0}
    assert any('duplicate' in w for w in report['warnings'])


def test_vendor_documents(tmp_path):
    documents, report = build_seed_documents(write_settings(tmp_path), verbose=False)
    docs = by_id(documents)

    v1 = docs['v1']
    assert v1['pricingTier'] == 'preferred'
    assert v1['portalAccess'] == {'enabled': True, 'email': 'orders@shop.example'}
    assert v1['portalUsers'] == [{'email': 'a@shop.example'}, {'email': 'b@shop.example'}]
    assert v1['totalOrders'] == 3
    assert v1['currentBalance'] == 250.5

    v2 = docs['v2']
    assert v2['customDiscountPercentage'] == 12.5
    assert v2['portalAccess']['enabled'] is False
    assert 'totalOrders' not in v2

    assert report['metrics']['vendor_count'] == 2
    assert report['metrics']['portal_enabled_vendors'] == 1
    assert set(report['input_files']) == {'products', 'vendors'}


def test_missing_file_fails_report(tmp_path):
    documents, report = build_seed_documents(write_settings(tmp_path, vendors=None), verbose=False)
    assert report['status'] == 'failed'
    assert any('vendors.csv' in e for e in report['errors'])
    assert all(d['_type'] == 'product' for d in documents)


def test_missing_columns_are_warned(tmp_path):
    settings = write_settings(tmp_path, products="id,title,price\np1,Intake,10\n")
    documents, report = build_seed_documents(settings, verbose=False)
    assert by_id(documents)['p1']['pricingTiers'] == []
    assert any('missing columns' in w for w in report['warnings'])


def test_parse_tier_entries():
    assert parse_tier_entries('') == []
    assert parse_tier_entries('gold:1,200.50; :5; vip') == [
        {'label': 'gold', 'price': 1200.5},
        {'label': None, 'price': 5.0},
        {'label': 'vip', 'price': None},
    ]


@pytest.mark.asyncio
async def test_packaged_seed_is_queryable():
    documents, report = build_seed_documents(Settings(), verbose=False)
    assert report['status'] == 'success'

    store = InMemoryStore(documents)
    vendor = await store.find_vendor(None, 'BUYER@speedshop.example')
    assert vendor['_id'] == 'vendor-speedshop'
    products = await store.list_wholesale_products()
    assert products
    assert all(p['availableForWholesale'] is True for p in products)


def test_settings_from_environment(monkeypatch, tmp_path):
    monkeypatch.setenv('WHOLESALE_DATA_DIR', str(tmp_path))
    monkeypatch.setenv('WHOLESALE_ORDER_NUMBER_PREFIX', 'WH')
    monkeypatch.setenv('WHOLESALE_REQUEST_TIMEOUT_SECONDS', '2.5')
    monkeypatch.setenv('WHOLESALE_API_RELOAD', 'yes')
    monkeypatch.setenv('WHOLESALE_LOG_LEVEL', 'debug')
    monkeypatch.setenv('WHOLESALE_CORS_ORIGINS', 'https://a.example, https://b.example')
    settings = Settings()
    assert settings.products_csv == tmp_path / 'products.csv'
    assert settings.vendors_csv == tmp_path / 'vendors.csv'
    assert settings.order_number_prefix == 'WH'
    assert settings.request_timeout_seconds == 2.5
    assert settings.api_reload is True
    assert settings.log_level == 'DEBUG'
    assert settings.cors_origins == ['https://a.example', 'https://b.example']


def test_explicit_seed_file_wins_over_data_dir(monkeypatch, tmp_path):
    monkeypatch.setenv('WHOLESALE_DATA_DIR', str(tmp_path))
    monkeypatch.setenv('WHOLESALE_PRODUCTS_CSV', str(tmp_path / 'export.csv'))
    settings = Settings()
    assert settings.products_csv == tmp_path / 'export.csv'
    assert settings.vendors_csv == tmp_path / 'vendors.csv'


@pytest.mark.parametrize("name,value", [
    ('WHOLESALE_ORDER_NUMBER_ATTEMPTS', 'many'),
    ('WHOLESALE_ORDER_NUMBER_ATTEMPTS', '0'),
    ('WHOLESALE_REQUEST_TIMEOUT_SECONDS', '-1'),
])
def test_settings_reject_invalid_values(monkeypatch, name, value):
    monkeypatch.setenv(name, value)
    with pytest.raises(PydanticValidationError):
        Settings()
