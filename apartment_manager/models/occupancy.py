"""
Core Data Models for Apartment Manager

These models define the schemas for everything the store persists and
everything the bulk transfer engine reads or writes.

DESIGN DECISION: We use Pydantic v2 models for records and credentials.
Models do not strip or otherwise rewrite names: an import must persist
exactly what the file contained (after the Vacant/owner rules), so
whitespace is kept as-is.
"""

from pydantic import BaseModel, ConfigDict, Field


# Resident placeholder used when nobody lives in the unit
VACANT = "Vacant"

# Column header shared by CSV and Excel files
TRANSFER_HEADER = ["ID", "Owner", "Resident", "Same"]


def derive_same_flag(owner: str, resident: str) -> bool:
    """
    The "owner is resident" rule.

    True only when there is an owner and the resident is that owner.
    """
    return owner != "" and owner == resident


# =============================================================================
# OCCUPANCY
# =============================================================================

class OccupancyRecord(BaseModel):
    """
    One apartment unit's owner/resident state.

    `owner_is_resident` is derived: it must equal
    `derive_same_flag(owner, resident)`. Build records through
    `apartment_manager.reconcile.build_record` rather than by hand;
    the store re-derives the flag before every write regardless.
    """
    model_config = ConfigDict(frozen=True)

    unit_id: str = Field(
        ...,
        description="Apartment identifier (primary key)"
    )
    owner: str = Field(
        default="",
        description="Owner name"
    )
    resident: str = Field(
        default="",
        description="Resident name (Vacant when nobody lives there)"
    )
    owner_is_resident: bool = Field(
        default=False,
        description="Derived: owner is non-empty and equals resident"
    )

    @property
    def is_consistent(self) -> bool:
        """Check the stored flag against the owner/resident fields."""
        return self.owner_is_resident == derive_same_flag(self.owner, self.resident)

    def to_transfer_row(self) -> list:
        """Row for export: ID, Owner, Resident, Same."""
        return [self.unit_id, self.owner, self.resident, self.owner_is_resident]

    def display_label(self) -> str:
        """One-line summary used in list views."""
        return f"{self.unit_id}: {self.owner} - {self.resident}"


# =============================================================================
# CREDENTIALS
# =============================================================================

class Credential(BaseModel):
    """
    A user account allowed to log in.

    `id == 0` means "not saved yet"; the store assigns the real id on insert.
    Passwords are compared verbatim (no hashing).
    """

    id: int = Field(
        default=0,
        ge=0,
        description="Store-assigned identifier, 0 until first save"
    )
    username: str = Field(
        ...,
        description="Login name, unique across all users"
    )
    password: str = Field(
        ...,
        repr=False,
        description="Password, compared verbatim"
    )

    @property
    def is_new(self) -> bool:
        return self.id == 0

    def display_label(self) -> str:
        return f"ID: {self.id} - Username: {self.username}"


# =============================================================================
# TRANSFER RESULTS
# =============================================================================

class ImportSummary(BaseModel):
    """Outcome of a successful bulk import."""

    source: str = Field(
        ...,
        description="Path of the imported file"
    )
    file_format: str = Field(
        ...,
        description="Codec used (csv or xlsx)"
    )
    rows_imported: int = Field(
        ...,
        ge=0,
        description="Number of data rows upserted"
    )


class ExportSummary(BaseModel):
    """Outcome of a successful export."""

    destination: str
    file_format: str
    rows_exported: int = Field(ge=0)
