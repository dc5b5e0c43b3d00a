from django.core.management.base import BaseCommand

from events.importers import auto_import_scraped_events


class Command(BaseCommand):
    help = "Promote pending scraped events into published events"

    def add_arguments(self, parser):
        parser.add_argument("--batch-size", type=int, default=500)

    def handle(self, *args, **options):
        totals = auto_import_scraped_events(batch_size=options["batch_size"])
        processed = totals["imported"] + totals["skipped"] + totals["failed"]
        self.stdout.write(self.style.SUCCESS("Auto-import completed"))
        self.stdout.write(f"Imported: {totals['imported']}")
        self.stdout.write(f"Skipped: {totals['skipped']}")
        if totals["failed"]:
            self.stdout.write(self.style.ERROR(f"Failed: {totals['failed']}"))
        self.stdout.write(f"Processed: {processed}")
