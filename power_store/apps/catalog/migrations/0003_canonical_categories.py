from django.db import migrations

CANONICAL_CATEGORIES = [
    (1001, 'Портативні батареї', 'power-banks'),
    (1002, 'Зарядки та кабелі', 'chargers-cables'),
]


def create_categories(apps, schema_editor):
    Category = apps.get_model('catalog', 'Category')
    for pk, name, slug in CANONICAL_CATEGORIES:
        Category.objects.update_or_create(id=pk, defaults={'name': name, 'slug': slug})


def remove_categories(apps, schema_editor):
    Category = apps.get_model('catalog', 'Category')
    Category.objects.filter(id__in=[pk for pk, _, _ in CANONICAL_CATEGORIES]).delete()


class Migration(migrations.Migration):

    dependencies = [
        ('catalog', '0002_add_indexes'),
    ]

    operations = [
        migrations.RunPython(create_categories, remove_categories),
    ]
