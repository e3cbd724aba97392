from django.core.management.base import BaseCommand
from django.utils import timezone

from clinic.models import Hospital
from clinic.services import catalog


class Command(BaseCommand):
    help = "Drop and re-warm the cached catalog lists."

    def handle(self, *args, **options):
        dropped = catalog.invalidate()
        catalog.list_hospitals()
        catalog.list_departments()
        catalog.list_doctors()
        catalog.list_insurances()
        catalog.list_lab_test_templates()
        catalog.list_medications()
        catalog.list_pharmacies()
        for hospital_id in Hospital.objects.values_list('id', flat=True):
            catalog.list_departments(hospital_id=hospital_id)
            catalog.list_doctors(hospital_id=hospital_id)
        self.stdout.write(self.style.SUCCESS(f"Dropped {dropped} keys and refreshed catalog at {timezone.now()}"))
