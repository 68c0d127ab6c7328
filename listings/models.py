"""
Listings models for the realty back office.

This module implements the core business entities:
- Developer, Bank: directory entries, importable and soft-deletable
- City, District: geographic reference data (read-only to imports)
- Project: a residential project listing, the main import target

Design Philosophy: rows created by a CSV import are never hard-deleted by
the import pipeline. Undo marks them with deleted_at so they can be restored.
"""

import logging

from django.db import models
from django.core.validators import MinValueValidator
from django.utils import timezone

logger = logging.getLogger(__name__)


# =============================================================================
# SOFT DELETE SUPPORT
# =============================================================================

class SoftDeleteQuerySet(models.QuerySet):
    """QuerySet helpers for models carrying a deleted_at timestamp."""

    def alive(self):
        return self.filter(deleted_at__isnull=True)

    def deleted(self):
        return self.filter(deleted_at__isnull=False)


class SoftDeleteModel(models.Model):
    """
    Abstract base for rows that are hidden rather than removed.

    A non-null deleted_at means the row is deleted; restore() clears it.
    """

    deleted_at = models.DateTimeField(
        blank=True,
        null=True,
        db_index=True,
        help_text="Set when the row is soft-deleted"
    )

    objects = SoftDeleteQuerySet.as_manager()

    class Meta:
        abstract = True

    @property
    def is_deleted(self):
        return self.deleted_at is not None

    def soft_delete(self):
        """Mark the row deleted. Already deleted rows keep their timestamp."""
        if self.deleted_at is None:
            self.deleted_at = timezone.now()
            self.save(update_fields=['deleted_at'])

    def restore(self):
        """Clear the deletion mark."""
        if self.deleted_at is not None:
            self.deleted_at = None
            self.save(update_fields=['deleted_at'])


# =============================================================================
# DIRECTORY ENTITIES
# =============================================================================

class Developer(SoftDeleteModel):
    """Construction company / developer behind one or more projects."""

    name = models.CharField(max_length=255)
    logo_url = models.CharField(max_length=500, blank=True, null=True)
    description = models.TextField(blank=True, null=True)

    created_at = models.DateTimeField(auto_now_add=True)
    updated_at = models.DateTimeField(auto_now=True)

    class Meta:
        db_table = 'developers'
        ordering = ['name']
        indexes = [
            models.Index(fields=['name'], name='developers_name_7c1f0a_idx'),
        ]

    def __str__(self):
        return self.name

    def __repr__(self):
        return f"<Developer: {self.name}>"


class Bank(SoftDeleteModel):
    """Mortgage partner bank that can be linked to projects."""

    name = models.CharField(max_length=255)
    logo_url = models.CharField(max_length=500, blank=True, null=True)
    description = models.TextField(blank=True, null=True)

    created_at = models.DateTimeField(auto_now_add=True)
    updated_at = models.DateTimeField(auto_now=True)

    class Meta:
        db_table = 'banks'
        ordering = ['name']
        indexes = [
            models.Index(fields=['name'], name='banks_name_2b5e4c_idx'),
        ]

    def __str__(self):
        return self.name

    def __repr__(self):
        return f"<Bank: {self.name}>"


# =============================================================================
# GEOGRAPHY
# =============================================================================

class City(models.Model):
    name = models.CharField(max_length=255, unique=True)

    class Meta:
        db_table = 'cities'
        ordering = ['name']
        verbose_name_plural = 'Cities'

    def __str__(self):
        return self.name


class District(models.Model):
    """A district always belongs to exactly one city."""

    city = models.ForeignKey(
        City,
        on_delete=models.CASCADE,
        related_name='districts'
    )
    name = models.CharField(max_length=255)

    class Meta:
        db_table = 'districts'
        ordering = ['city__name', 'name']
        constraints = [
            models.UniqueConstraint(fields=['city', 'name'], name='unique_district_per_city'),
        ]

    def __str__(self):
        return f"{self.name} ({self.city.name})"


# =============================================================================
# PROJECT MODEL
# =============================================================================

class Project(SoftDeleteModel):
    """
    Represents a residential real-estate project listing.

    Core Principle: this model stores normalized data only. CSV parsing and
    name resolution happen in the imports app before a row reaches here.
    """

    # Identification
    name = models.CharField(max_length=255)

    # Relationships
    developer = models.ForeignKey(
        Developer,
        on_delete=models.PROTECT,
        related_name='projects'
    )
    city = models.ForeignKey(
        City,
        on_delete=models.PROTECT,
        related_name='projects'
    )
    district = models.ForeignKey(
        District,
        on_delete=models.PROTECT,
        related_name='projects'
    )
    banks = models.ManyToManyField(
        Bank,
        through='ProjectBank',
        related_name='projects',
        blank=True
    )

    # Location
    address = models.CharField(max_length=500, blank=True, null=True)
    latitude = models.DecimalField(
        max_digits=9,
        decimal_places=6,
        blank=True,
        null=True,
        help_text="Decimal degrees, -90 to 90"
    )
    longitude = models.DecimalField(
        max_digits=9,
        decimal_places=6,
        blank=True,
        null=True,
        help_text="Decimal degrees, -180 to 180"
    )

    # Descriptions
    short_description = models.TextField(blank=True, null=True)
    description = models.TextField(blank=True, null=True)
    cover_image_url = models.CharField(max_length=1000, blank=True, null=True)

    # Commercial
    price_from = models.BigIntegerField(
        blank=True,
        null=True,
        validators=[MinValueValidator(0)],
        help_text="Starting price in whole currency units"
    )
    currency = models.CharField(max_length=3, default='USD')
    completion_date = models.DateField(blank=True, null=True)

    # Metadata
    created_at = models.DateTimeField(auto_now_add=True)
    updated_at = models.DateTimeField(auto_now=True)

    class Meta:
        db_table = 'projects'
        ordering = ['name']
        indexes = [
            models.Index(fields=['name'], name='projects_name_4e8d21_idx'),
            models.Index(fields=['city', 'district'], name='projects_city_id_9a3b6f_idx'),
        ]

    def __str__(self):
        return self.name

    def __repr__(self):
        return f"<Project: {self.name}>"

    @property
    def has_coordinates(self):
        return self.latitude is not None and self.longitude is not None


class ProjectBank(models.Model):
    """Association between a project and a partner bank."""

    project = models.ForeignKey(Project, on_delete=models.CASCADE)
    bank = models.ForeignKey(Bank, on_delete=models.CASCADE)
    created_at = models.DateTimeField(auto_now_add=True)

    class Meta:
        db_table = 'project_banks'
        constraints = [
            models.UniqueConstraint(fields=['project', 'bank'], name='unique_project_bank'),
        ]

    def __str__(self):
        return f"{self.project_id} -> {self.bank_id}"
