from decimal import Decimal
from io import StringIO
from unittest import mock

import pytest
import requests
from django.core.management import call_command, CommandError

from apps.catalog.models import Category, Product, ImportLog, CAPACITY_KEY
from apps.catalog.services.feed_importer import FeedImporter
from apps.catalog.services.feed_parser import FeedImportError, parse_feed

pytestmark = pytest.mark.django_db


def offer(offer_id, category='1', quantity=5, price='499.00', picture=True, params=''):
    return """
    <offer id="{id}" available="true">
      <name>Baseus Power Bank {id}</name>
      <description>Опис</description>
      <priceuah>{price}</priceuah>
      <categoryId>{category}</categoryId>
      {picture}
      <vendor>Baseus</vendor>
      <vendorCode>BS-{id}</vendorCode>
      <quantity>{quantity}</quantity>
      {params}
    </offer>""".format(
        id=offer_id, price=price, category=category, quantity=quantity, params=params,
        picture='<picture>https://img.example.com/{}.jpg</picture>'.format(offer_id) if picture else '',
    )


def feed(*offers):
    return '<?xml version="1.0" encoding="UTF-8"?><yml_catalog><shop><offers>{}</offers></shop></yml_catalog>'.format(
        ''.join(offers)
    ).encode('utf-8')


def run_import(content, **kwargs):
    with mock.patch('apps.catalog.services.feed_importer.fetch_feed', return_value=content):
        return FeedImporter(**kwargs).run()


def test_category_three_maps_to_power_banks():
    result = run_import(feed(offer('a1', category='3')))

    assert result.success
    assert result.imported == 1
    assert Product.objects.get(external_id='a1').category_id == Category.POWER_BANKS


def test_unmapped_category_is_skipped():
    result = run_import(feed(offer('a1', category='99'), offer('a2', category='14')))

    assert result.skipped == 1
    assert not Product.objects.filter(external_id='a1').exists()
    assert Product.objects.get(external_id='a2').category_id == Category.CHARGERS_CABLES


def test_items_without_image_or_with_low_price_are_skipped():
    result = run_import(feed(
        offer('a1', picture=False),
        offer('a2', price='0.50'),
        offer('a3'),
    ))

    assert result.skipped == 2
    assert list(Product.objects.values_list('external_id', flat=True)) == ['a3']


def test_products_missing_from_feed_are_deleted(categories):
    kept = Product.objects.create(external_id='keep', name='Old name', price=Decimal('10'), quantity=1)
    Product.objects.create(external_id='gone', name='Gone', price=Decimal('10'), quantity=1)
    manual = Product.objects.create(external_id=None, name='Manual', price=Decimal('10'), quantity=1)

    result = run_import(feed(offer('keep'), offer('new')))

    assert result.deleted == 1
    assert result.updated == 1
    assert result.imported == 1
    assert set(Product.objects.values_list('external_id', flat=True)) == {'keep', 'new', None}
    kept.refresh_from_db()
    assert kept.name == 'Baseus Power Bank keep'
    assert Product.objects.filter(id=manual.id).exists()


def test_zero_stock_product_is_zeroed_not_deleted(categories):
    Product.objects.create(external_id='a1', name='Stocked', price=Decimal('10'), quantity=7)

    result = run_import(feed(offer('a1', quantity=0), offer('a2')))

    assert result.deleted == 0
    assert Product.objects.get(external_id='a1').quantity == 0


def test_characteristics_are_normalised():
    params = (
        '<param name="Ємність акумулятора, mah">20 000 mAh</param>'
        '<param name="Вихід (Тип коннектора)">usb type-c</param>'
        '<param name="Вихід (Тип коннектора)">USB</param>'
        '<param name="Довжина кабелю, м">1,50 м</param>'
    )
    run_import(feed(offer('a1', params=params)))

    characteristics = Product.objects.get(external_id='a1').characteristics
    assert characteristics[CAPACITY_KEY] == 20000
    assert characteristics['Вихід (Тип коннектора)'] == ['Type-C', 'USB-A']
    assert characteristics['Довжина кабелю, м'] == '1.5'


def test_batches_are_inserted():
    result = run_import(feed(*[offer('b{}'.format(i)) for i in range(5)]), batch_size=2)

    assert result.imported == 5
    assert Product.objects.count() == 5


def test_import_is_logged():
    run_import(feed(offer('a1'), offer('a2', category='99')))

    log = ImportLog.objects.get()
    assert log.success
    assert log.imported == 1
    assert log.skipped == 1
    assert log.total_processed == 2


def test_repeated_id_keeps_first_occurrence():
    result = run_import(feed(offer('a1', price='100.00'), offer('a1', price='200.00'), offer('b2')))

    assert result.success
    assert result.imported == 2
    assert result.errors == 0
    assert result.skipped == 1
    assert Product.objects.get(external_id='a1').price == Decimal('100.00')
    assert Product.objects.filter(external_id='b2').exists()


def test_non_finite_numbers_are_skipped():
    result = run_import(feed(offer('nan', price='NaN'), offer('inf', quantity='Infinity'), offer('a1')))

    assert result.success
    assert result.imported == 1
    assert result.skipped == 2
    assert list(Product.objects.values_list('external_id', flat=True)) == ['a1']
    assert ImportLog.objects.get().success


def test_non_finite_values_parse_as_missing():
    items = parse_feed(feed(offer('a1', price='Infinity', quantity='NaN')))

    assert items[0].price is None
    assert items[0].quantity == 0


def test_fetch_failure_is_logged_and_reported():
    with mock.patch('apps.catalog.services.feed_parser.requests.get', side_effect=requests.ConnectionError('down')):
        result = FeedImporter(url='https://feed.example.com/feed.xml').run()

    assert not result.success
    assert 'down' in result.error
    log = ImportLog.objects.get()
    assert not log.success
    assert Product.objects.count() == 0


def test_invalid_xml_raises():
    with pytest.raises(FeedImportError):
        parse_feed(b'<not xml')


def test_feed_without_offers_raises():
    with pytest.raises(FeedImportError):
        parse_feed(b'<yml_catalog><shop/></yml_catalog>')


def test_import_endpoint(api_client):
    with mock.patch('apps.catalog.services.feed_importer.fetch_feed', return_value=feed(offer('a1'))):
        response = api_client.post('/api/import', {}, format='json')

    assert response.status_code == 200
    assert response.json()['stats']['imported'] == 1

    stats = api_client.get('/api/import').json()
    assert stats['stats']['total'] == 1
    assert stats['recentImports'][0]['imported'] == 1


def test_import_endpoint_failure_is_500(api_client):
    with mock.patch('apps.catalog.services.feed_importer.fetch_feed', side_effect=FeedImportError('boom')):
        response = api_client.post('/api/import', {}, format='json')

    assert response.status_code == 500
    assert response.json()['error'] == 'boom'


def test_import_endpoint_ignores_url_in_body(api_client):
    with mock.patch('apps.catalog.services.feed_importer.fetch_feed', return_value=feed(offer('a1'))) as fetch:
        response = api_client.post('/api/import', {'url': 'http://10.0.0.1/feed.xml'}, format='json')

    assert response.status_code == 200
    fetch.assert_called_once_with(None)


def test_management_command():
    with mock.patch('apps.catalog.services.feed_importer.fetch_feed', return_value=feed(offer('a1'))):
        call_command('import_products', '--batch-size', '10', stdout=StringIO())

    assert Product.objects.filter(external_id='a1').exists()


def test_management_command_failure():
    with mock.patch('apps.catalog.services.feed_importer.fetch_feed', side_effect=FeedImportError('boom')):
        with pytest.raises(CommandError):
            call_command('import_products', stdout=StringIO())
