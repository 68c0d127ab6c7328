"""
CSV export helpers for admin directory downloads.
"""

import csv
import io
from typing import Iterable, List, Sequence


def rows_to_csv(rows: Iterable[dict], columns: Sequence[str]) -> str:
    """
    Render dictionaries as CSV text with a header row.

    Missing or None values become empty cells; quoting follows the csv module.
    """
    buffer = io.StringIO()
    writer = csv.writer(buffer, lineterminator='\n')
    writer.writerow(columns)
    for row in rows:
        writer.writerow(['' if row.get(col) is None else row.get(col) for col in columns])
    return buffer.getvalue()


def project_export_rows(projects) -> List[dict]:
    return [
        {
            'id': project.id,
            'name': project.name,
            'developerName': project.developer.name,
            'cityName': project.city.name,
            'districtName': project.district.name,
            'address': project.address,
            'priceFrom': project.price_from,
            'currency': project.currency,
            'shortDescription': project.short_description,
        }
        for project in projects
    ]


PROJECT_EXPORT_COLUMNS = [
    'id', 'name', 'developerName', 'cityName', 'districtName',
    'address', 'priceFrom', 'currency', 'shortDescription',
]

DIRECTORY_EXPORT_COLUMNS = ['id', 'name', 'logo_url', 'description']
