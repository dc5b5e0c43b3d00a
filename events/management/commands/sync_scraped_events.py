from django.core.management.base import BaseCommand

from events.importers import sync_scraped_events


class Command(BaseCommand):
    help = "Link pending scraped events to events that already exist"

    def add_arguments(self, parser):
        parser.add_argument("--batch-size", type=int, default=1000)
        parser.add_argument("--chunk-size", type=int, default=100)

    def handle(self, *args, **options):
        synced = sync_scraped_events(batch_size=options["batch_size"], chunk_size=options["chunk_size"])
        self.stdout.write(self.style.SUCCESS(f"Synced {synced} scraped events"))
