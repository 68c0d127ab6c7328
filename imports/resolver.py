"""
Reference resolution for CSV imports.

CSV rows name their developer, city, district and banks in plain text.
ReferenceTables maps lower-cased, trimmed names to model instances, built
from one read of each table at the start of a job and discarded with it.
Reference data can change between jobs, so nothing here is cached globally.
"""

import logging
from dataclasses import dataclass, field
from typing import Dict, Optional, Tuple

from listings.models import Bank, City, Developer, District

logger = logging.getLogger(__name__)


def normalize_name(value: Optional[str]) -> str:
    """Lookup key for a human-readable name."""
    return (value or '').strip().lower()


@dataclass
class ReferenceTables:
    """Job-scoped name -> instance maps. A missing key means "not found"."""

    developers: Dict[str, Developer] = field(default_factory=dict)
    cities: Dict[str, City] = field(default_factory=dict)
    districts: Dict[str, District] = field(default_factory=dict)
    banks: Dict[str, Bank] = field(default_factory=dict)
    city_districts: Dict[Tuple[int, str], District] = field(default_factory=dict)

    def developer(self, name):
        return self.developers.get(normalize_name(name))

    def city(self, name):
        return self.cities.get(normalize_name(name))

    def district(self, name, city=None):
        """
        District by name. With a city, a same-named district of that city
        wins over one elsewhere, since district names repeat across cities.
        """
        key = normalize_name(name)
        if city is not None:
            found = self.city_districts.get((city.id, key))
            if found is not None:
                return found
        return self.districts.get(key)

    def bank(self, name):
        return self.banks.get(normalize_name(name))


def _by_name(queryset):
    # Later rows win on duplicate names, matching insertion order by id
    return {normalize_name(obj.name): obj for obj in queryset.order_by('id')}


def build_reference_tables() -> ReferenceTables:
    """
    Read developers, cities, districts and banks once.

    Soft-deleted developers and banks are left out so imports cannot
    attach new projects to them.
    """
    districts = list(District.objects.order_by('id'))
    tables = ReferenceTables(
        developers=_by_name(Developer.objects.alive()),
        cities=_by_name(City.objects.all()),
        districts={normalize_name(d.name): d for d in districts},
        banks=_by_name(Bank.objects.alive()),
        city_districts={(d.city_id, normalize_name(d.name)): d for d in districts},
    )
    logger.info(
        f"Reference tables built: {len(tables.developers)} developers, "
        f"{len(tables.cities)} cities, {len(tables.districts)} districts, "
        f"{len(tables.banks)} banks"
    )
    return tables
