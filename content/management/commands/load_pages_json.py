import json
from pathlib import Path

from django.core.exceptions import ValidationError
from django.core.management.base import BaseCommand, CommandError

from content.blocks import decode_content, validate_blocks
from content.models import Page

CONTENT_DIR = Path(__file__).resolve().parents[2] / "seed" / "pages"


class Command(BaseCommand):
    help = "Load/replace pages from JSON files ({slug, title, content})"

    def add_arguments(self, parser):
        parser.add_argument(
            "--slug",
            help="Only load the JSON file whose slug matches",
        )
        parser.add_argument(
            "--file",
            help="Path to a single JSON file to load (overrides --dir)",
        )
        parser.add_argument(
            "--dir",
            help=f"Folder of page JSON files (default: {CONTENT_DIR})",
        )

    def handle(self, *args, **options):
        target_slug = options.get("slug")

        if options.get("file"):
            files = [Path(options["file"])]
        else:
            folder = Path(options.get("dir") or CONTENT_DIR)
            if not folder.exists():
                raise CommandError(f"Folder not found: {folder}")
            files = sorted(folder.glob("*.json"))

        if not files:
            self.stdout.write(self.style.WARNING("No page JSON files found"))
            return

        loaded = 0
        for f in files:
            if not f.exists():
                self.stdout.write(self.style.WARNING(f"File not found: {f}"))
                continue

            try:
                data = json.loads(f.read_text(encoding="utf-8"))
            except json.JSONDecodeError as exc:
                self.stdout.write(self.style.WARNING(f"Skipping {f.name}: invalid JSON ({exc})"))
                continue

            slug = data.get("slug") if isinstance(data, dict) else None
            if not slug:
                self.stdout.write(self.style.WARNING(f"Skipping {f.name}: missing 'slug'"))
                continue
            if target_slug and slug != target_slug:
                continue

            try:
                content = validate_blocks(decode_content(data.get("content")))
            except (ValueError, ValidationError) as exc:
                messages = exc.messages if isinstance(exc, ValidationError) else [str(exc)]
                self.stdout.write(self.style.WARNING(f"Skipping {slug}: {'; '.join(messages)}"))
                continue

            _, created = Page.objects.update_or_create(
                slug=slug,
                defaults={"title": data.get("title") or slug, "content": content},
            )
            loaded += 1
            self.stdout.write(
                self.style.SUCCESS(f"{'Created' if created else 'Updated'} page: {slug} ({len(content)} blocks)")
            )

        if target_slug and not loaded:
            self.stdout.write(self.style.WARNING(f"No page found for slug '{target_slug}'"))
            return

        self.stdout.write(self.style.SUCCESS(f"{loaded} page(s) loaded successfully"))
