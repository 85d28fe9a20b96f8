import logging
from decimal import Decimal

from django.conf import settings
from django.db import DatabaseError, transaction
from django.utils import timezone

from ..models import Product, ImportLog
from .feed_parser import FeedImportError, fetch_feed, parse_feed
from .normalizer import (
    map_category, normalize_characteristics, extract_brand, ensure_canonical_categories,
)
from .product_catalog import invalidate_catalog

logger = logging.getLogger(__name__)

MIN_PRICE = Decimal('1')

SKIP_NO_ID = 'missing id or name'
SKIP_NO_IMAGE = 'no image'
SKIP_NO_STOCK = 'out of stock'
SKIP_LOW_PRICE = 'price below minimum'
SKIP_CATEGORY = 'unmapped category'
SKIP_DUPLICATE = 'duplicate id'


class ImportResult:
    def __init__(self, success, imported=0, updated=0, deleted=0, skipped=0, errors=0,
                 total=0, error=None):
        self.success = success
        self.imported = imported
        self.updated = updated
        self.deleted = deleted
        self.skipped = skipped
        self.errors = errors
        self.total = total
        self.error = error

    def as_dict(self):
        return {
            'total': self.total,
            'imported': self.imported,
            'updated': self.updated,
            'deleted': self.deleted,
            'skipped': self.skipped,
            'errors': self.errors,
        }


def skip_reason(item):
    """Return why a feed item cannot be sold, or None if it is valid."""
    if not item.external_id or not item.name:
        return SKIP_NO_ID
    if not item.pictures:
        return SKIP_NO_IMAGE
    if item.quantity <= 0:
        return SKIP_NO_STOCK
    if item.price is None or item.price < MIN_PRICE:
        return SKIP_LOW_PRICE
    if map_category(item.category_code) is None:
        return SKIP_CATEGORY
    return None


def product_fields(item):
    return {
        'name': item.name,
        'description': item.description,
        'price': item.price,
        'quantity': item.quantity,
        'brand': extract_brand(item.name, item.vendor),
        'category_id': map_category(item.category_code),
        'image_url': item.pictures[0],
        'images': item.pictures,
        'vendor_code': item.vendor_code,
        'characteristics': normalize_characteristics(item.params),
    }


class FeedImporter:
    """Reconciles the stored catalogue against one pull of the supplier feed."""

    def __init__(self, url=None, batch_size=None):
        self.url = url
        self.batch_size = batch_size or settings.FEED_IMPORT_BATCH_SIZE

    def run(self):
        logger.info("━" * 60)
        logger.info("IMPORT — starting")
        try:
            items = parse_feed(fetch_feed(self.url))
            result = self.reconcile(items)
        except FeedImportError as e:
            logger.error("IMPORT — failed: %s", e)
            result = ImportResult(success=False, error=str(e))
        except DatabaseError as e:
            logger.exception("IMPORT — database error: %s", e)
            result = ImportResult(success=False, error=str(e))

        self._log(result)
        logger.info("━" * 60)
        return result

    def reconcile(self, items):
        ensure_canonical_categories()

        feed_ids = {item.external_id for item in items if item.external_id}
        valid = []
        out_of_stock_ids = set()
        skipped = 0
        seen = set()
        for item in items:
            reason = skip_reason(item)
            if reason is None and item.external_id in seen:
                reason = SKIP_DUPLICATE
            if reason is None:
                seen.add(item.external_id)
                valid.append(item)
                continue
            skipped += 1
            if reason == SKIP_NO_STOCK:
                out_of_stock_ids.add(item.external_id)
            logger.debug("IMPORT — skipping %s: %s", item.external_id or '?', reason)

        logger.info("IMPORT — %d items in feed, %d valid, %d skipped", len(items), len(valid), skipped)

        known = dict(
            Product.objects.filter(external_id__in=[i.external_id for i in valid])
            .values_list('external_id', 'id')
        )
        new_items = [i for i in valid if i.external_id not in known]
        existing_items = [i for i in valid if i.external_id in known]

        imported, insert_errors = self._insert(new_items)
        updated, update_errors = self._update(existing_items, known)
        self._zero_out_stock(out_of_stock_ids - seen)
        deleted = self._delete_missing(feed_ids)

        invalidate_catalog()

        result = ImportResult(
            success=True,
            imported=imported,
            updated=updated,
            deleted=deleted,
            skipped=skipped,
            errors=insert_errors + update_errors,
            total=len(items),
        )
        logger.info(
            "IMPORT — done: %d imported, %d updated, %d deleted, %d errors",
            result.imported, result.updated, result.deleted, result.errors,
        )
        return result

    def _insert(self, items):
        imported = 0
        errors = 0
        total_batches = (len(items) + self.batch_size - 1) // self.batch_size
        for start in range(0, len(items), self.batch_size):
            batch = items[start:start + self.batch_size]
            number = start // self.batch_size + 1
            try:
                with transaction.atomic():
                    Product.objects.bulk_create([
                        Product(external_id=item.external_id, **product_fields(item))
                        for item in batch
                    ])
            except DatabaseError as e:
                logger.error("IMPORT — batch %d/%d failed: %s", number, total_batches, e)
                errors += len(batch)
                continue
            imported += len(batch)
            logger.info("IMPORT — inserted batch %d/%d (%d/%d)", number, total_batches, imported, len(items))
        return imported, errors

    def _update(self, items, known):
        updated = 0
        errors = 0
        for item in items:
            try:
                with transaction.atomic():
                    Product.objects.filter(id=known[item.external_id]).update(
                        updated_at=timezone.now(), **product_fields(item)
                    )
            except DatabaseError as e:
                logger.error("IMPORT — failed to update %s: %s", item.external_id, e)
                errors += 1
                continue
            updated += 1
        return updated, errors

    def _zero_out_stock(self, external_ids):
        if not external_ids:
            return 0
        count = Product.objects.filter(external_id__in=external_ids, quantity__gt=0).update(quantity=0)
        if count:
            logger.info("IMPORT — %d products marked out of stock", count)
        return count

    def _delete_missing(self, feed_ids):
        stale = Product.objects.filter(external_id__isnull=False).exclude(external_id__in=feed_ids)
        _, per_model = stale.delete()
        deleted = per_model.get(Product._meta.label, 0)
        if deleted:
            logger.info("IMPORT — deleted %d products missing from the feed", deleted)
        return deleted

    def _log(self, result):
        try:
            ImportLog.objects.create(
                success=result.success,
                imported=result.imported,
                updated=result.updated,
                deleted=result.deleted,
                skipped=result.skipped,
                errors=result.errors,
                total_processed=result.total,
                error_message=result.error,
            )
        except DatabaseError as e:
            logger.error("IMPORT — could not write import log: %s", e)
