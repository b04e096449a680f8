"""
Management command to reload the filename mappings of variant images
"""
from django.core.management.base import BaseCommand, CommandError
from backend.catalog.models import JewelryItem
from backend.customization.filename_service import get_filename_service


class Command(BaseCommand):
    help = "Clears and reloads cached filename mappings for one or all jewelry types"

    def add_arguments(self, parser):
        parser.add_argument(
            'jewelry_type',
            nargs='?',
            help='Jewelry type to refresh (necklace, bracelet, ring, earring). Omit for all types.',
        )

    def handle(self, *args, **options):
        jewelry_type = options['jewelry_type']
        known_types = [choice for choice, _ in JewelryItem.TYPE_CHOICES]

        if jewelry_type and jewelry_type not in known_types:
            raise CommandError(f"Unknown jewelry type '{jewelry_type}'. Choose from: {', '.join(known_types)}")

        service = get_filename_service()
        for current_type in ([jewelry_type] if jewelry_type else known_types):
            mappings = service.refresh_after_db_change(current_type)
            self.stdout.write(self.style.SUCCESS(f"{current_type}: {len(mappings)} filename mappings loaded"))
            if options['verbosity'] > 1:
                for mapping in mappings:
                    self.stdout.write(f"  {mapping.setting_id}/{mapping.option_id} -> {mapping.filename_slug}")
