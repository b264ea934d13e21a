from django.core.management.base import BaseCommand, CommandError

from navigation.models import NavigationItem
from navigation.tree import find_cycles, find_orphans


class Command(BaseCommand):
    help = "Report navigation items with missing parents or looping parent chains"

    def add_arguments(self, parser):
        parser.add_argument(
            "--fail",
            action="store_true",
            help="Exit with an error when problems are found",
        )

    def handle(self, *args, **options):
        rows = list(NavigationItem.objects.values("id", "label", "parent_id", "scope"))

        problems = 0
        for row in find_orphans(rows):
            problems += 1
            self.stdout.write(
                self.style.WARNING(
                    f"Orphan: {row['label']} (#{row['id']}) points at missing parent #{row['parent_id']}"
                )
            )

        for cycle in find_cycles(rows):
            problems += 1
            self.stdout.write(
                self.style.WARNING(f"Loop: items {', '.join(f'#{pk}' for pk in cycle)}")
            )

        # sibling groups should be numbered 0..n-1
        groups = {}
        for row in NavigationItem.objects.values("id", "parent_id", "scope", "position"):
            groups.setdefault((row["scope"], row["parent_id"]), []).append(row["position"])
        for (scope, parent_id), positions in sorted(groups.items(), key=lambda kv: (kv[0][0], kv[0][1] or 0)):
            if sorted(positions) != list(range(len(positions))):
                problems += 1
                self.stdout.write(
                    self.style.WARNING(
                        f"Positions in {scope} group under #{parent_id} are not contiguous: {sorted(positions)}"
                    )
                )

        if problems and options["fail"]:
            raise CommandError(f"{problems} navigation problem(s) found")

        if problems:
            self.stdout.write(self.style.WARNING(f"{problems} problem(s) found"))
        else:
            self.stdout.write(self.style.SUCCESS("Navigation tree is consistent"))
