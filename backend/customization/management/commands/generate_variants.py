"""
Management command to list the image variants of a customizable item
"""
from django.core.management.base import BaseCommand, CommandError
from backend.catalog.models import JewelryItem
from backend.customization.variant_generator import VariantGenerator, VariantGenerationError


class Command(BaseCommand):
    help = "Generates every image variant of a jewelry item and reports which pictures are missing"

    def add_arguments(self, parser):
        parser.add_argument('item', help='Jewelry item id or slug')
        parser.add_argument(
            '--missing-only',
            action='store_true',
            help='Only list variants whose picture is not uploaded',
        )

    def handle(self, *args, **options):
        identifier = options['item']
        lookup = {'pk': int(identifier)} if identifier.isdigit() else {'slug': identifier}
        try:
            item = JewelryItem.objects.get(**lookup)
        except JewelryItem.DoesNotExist:
            raise CommandError(f"Jewelry item '{identifier}' not found")

        try:
            result = VariantGenerator().generate_variants_for_product(item.id, item.type)
        except VariantGenerationError as e:
            raise CommandError(str(e))

        for variant in result.variants:
            if options['missing_only'] and variant.exists:
                continue
            marker = self.style.SUCCESS('OK     ') if variant.exists else self.style.WARNING('MISSING')
            self.stdout.write(f"{marker} {variant.filename}  ({variant.name})")

        self.stdout.write("")
        self.stdout.write(self.style.SUCCESS(
            f"{item.name}: {result.total_variants} variants, "
            f"{result.existing_images} with pictures, {result.missing_images} missing"
        ))
