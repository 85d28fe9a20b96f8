from django.core.management.base import BaseCommand, CommandError

from apps.catalog.services.feed_importer import FeedImporter


class Command(BaseCommand):
    help = 'Import products from the supplier XML feed'

    def add_arguments(self, parser):
        parser.add_argument('--url', help='Feed URL (defaults to SUPPLIER_FEED_URL)')
        parser.add_argument('--batch-size', type=int, help='Rows per bulk insert')

    def handle(self, *args, **options):
        importer = FeedImporter(url=options['url'], batch_size=options['batch_size'])
        result = importer.run()
        if not result.success:
            raise CommandError('Import failed: {}'.format(result.error))

        self.stdout.write(self.style.SUCCESS(
            'Import done: {imported} imported, {updated} updated, {deleted} deleted, '
            '{skipped} skipped, {errors} errors (of {total})'.format(**result.as_dict())
        ))
