import json
from pathlib import Path

from django.core.management.base import BaseCommand, CommandError
from django.db import transaction

from navigation.models import NavigationItem

SEED_FILE = Path(__file__).resolve().parents[2] / "seed" / "navigation.json"

ITEM_FIELDS = {
    "label": "label",
    "url": "url",
    "type": "type",
    "icon": "icon",
    "imageUrl": "image_url",
    "description": "description",
    "badge": "badge",
    "isActive": "is_active",
}


class Command(BaseCommand):
    help = "Seed header and footer navigation trees from a JSON file"

    def add_arguments(self, parser):
        parser.add_argument(
            "--file",
            help=f"Path to the navigation JSON file (default: {SEED_FILE})",
        )
        parser.add_argument(
            "--scope",
            choices=[value for value, _ in NavigationItem.SCOPE_CHOICES],
            help="Only seed this scope",
        )
        parser.add_argument(
            "--keep",
            action="store_true",
            help="Keep existing items instead of replacing the scope",
        )

    def handle(self, *args, **options):
        path = Path(options.get("file") or SEED_FILE)
        if not path.exists():
            raise CommandError(f"File not found: {path}")

        data = json.loads(path.read_text(encoding="utf-8"))
        if not isinstance(data, dict):
            raise CommandError("Navigation seed must be an object keyed by scope")

        scopes = [options["scope"]] if options.get("scope") else list(data)

        for scope in scopes:
            if scope not in NavigationItem.SCOPE_TYPES:
                self.stdout.write(self.style.WARNING(f"Skipping unknown scope '{scope}'"))
                continue

            entries = data.get(scope) or []
            with transaction.atomic():
                if not options["keep"]:
                    # children go with their parents
                    NavigationItem.objects.filter(scope=scope, parent__isnull=True).delete()
                created = self._create_many(entries, scope, parent=None)

            self.stdout.write(self.style.SUCCESS(f"Seeded {created} {scope} navigation item(s)"))

        self.stdout.write(self.style.SUCCESS("Navigation seeded successfully"))

    def _create_many(self, entries, scope, parent):
        offset = 0
        if parent is None:
            # append after any roots kept with --keep
            offset = NavigationItem.objects.filter(scope=scope, parent__isnull=True).count()

        created = 0
        position = offset
        for index, entry in enumerate(entries):
            if not isinstance(entry, dict) or not entry.get("label"):
                self.stdout.write(self.style.WARNING(f"Skipping invalid entry #{index} in {scope}"))
                continue

            fields = {
                field: entry[key] for key, field in ITEM_FIELDS.items() if key in entry
            }
            item = NavigationItem.objects.create(
                scope=scope, parent=parent, position=position, **fields
            )
            position += 1
            created += 1 + self._create_many(entry.get("children") or [], scope, parent=item)
        return created
