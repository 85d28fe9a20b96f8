import pytest

from apps.catalog.services.normalizer import (
    map_category, normalize_capacity, normalize_cable_length, normalize_connector, extract_brand,
)


@pytest.mark.parametrize('code, expected', [
    ('1', 1001), ('3', 1001), (14, 1002), ('16', 1002), ('99', None), (None, None), ('abc', None),
])
def test_map_category(code, expected):
    assert map_category(code) == expected


@pytest.mark.parametrize('raw, expected', [
    ('20 000 mAh', 20000),
    ('10000', 10000),
    ('5000.6 мАг', 5001),
    ('немає', None),
])
def test_normalize_capacity(raw, expected):
    assert normalize_capacity(raw) == expected


@pytest.mark.parametrize('raw, expected', [
    ('1,5 м', '1.5'),
    ('1.0m', '1'),
    ('2', '2'),
    ('0.25', '0.25'),
])
def test_normalize_cable_length(raw, expected):
    assert normalize_cable_length(raw) == expected


@pytest.mark.parametrize('raw, expected', [
    ('USB Type-C', 'Type-C'),
    ('usb-c', 'Type-C'),
    ('Lightning (Apple)', 'Lightning'),
    ('micro usb', 'Micro-USB'),
    ('Mini-USB', 'Mini-USB'),
    ('USB', 'USB-A'),
    ('usb-a', 'USB-A'),
    ('бездротовий', 'Бездротовий'),
])
def test_normalize_connector(raw, expected):
    assert normalize_connector(raw) == expected


def test_brand_prefers_vendor():
    assert extract_brand('Xiaomi Mi Power Bank', 'ZMI') == 'ZMI'


def test_brand_falls_back_to_first_word():
    assert extract_brand('Baseus Blade 20000', '') == 'Baseus'


def test_brand_unknown_without_letters():
    assert extract_brand('20000 mAh', None) == 'Unknown'
