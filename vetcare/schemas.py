"""Request and response payloads exchanged with the presentation layer."""

from __future__ import annotations

from datetime import date, datetime
from typing import Annotated, Optional, Union
from uuid import UUID

from pydantic import (
    BaseModel,
    ConfigDict,
    Field,
    StrictBool,
    StrictFloat,
    StrictInt,
    StrictStr,
    StringConstraints,
)

from vetcare.models import (
    AppointmentSource,
    AppointmentStatus,
    ClinicRole,
    EncounterStatus,
    GlobalRole,
    MessageDirection,
    MessageStatus,
    Sex,
    Species,
)

NonBlankStr = Annotated[str, StringConstraints(strip_whitespace=True, min_length=1)]

# Open key/value document: clinics extend it freely, only leaves are checked.
ClinicalDocument = dict[str, Union[StrictStr, StrictInt, StrictFloat, StrictBool, None]]


class ORMModel(BaseModel):
    model_config = ConfigDict(from_attributes=True)


# ---------------------------------------------------------------- users


class UserRead(ORMModel):
    id: str
    email: Optional[str] = None
    name: str
    first_name: Optional[str] = None
    last_name: Optional[str] = None
    profile_image_url: Optional[str] = None
    phone: Optional[str] = None
    timezone: Optional[str] = None
    global_role: GlobalRole
    created_at: Optional[datetime] = None


class GlobalRoleUpdate(BaseModel):
    global_role: GlobalRole


# ---------------------------------------------------------------- clinics


class ClinicCreate(BaseModel):
    name: NonBlankStr
    legal_name: Optional[str] = None
    whatsapp_number: Optional[str] = Field(default=None, max_length=30)
    feedback_form_url: Optional[str] = None
    country: Optional[str] = Field(default=None, max_length=2)
    state: Optional[str] = Field(default=None, max_length=64)
    city: Optional[str] = Field(default=None, max_length=64)
    address_line: Optional[str] = None
    zip: Optional[str] = Field(default=None, max_length=20)
    active: bool = True
    owner_id: Optional[str] = None


class ClinicUpdate(BaseModel):
    name: Optional[NonBlankStr] = None
    legal_name: Optional[str] = None
    whatsapp_number: Optional[str] = Field(default=None, max_length=30)
    feedback_form_url: Optional[str] = None
    country: Optional[str] = Field(default=None, max_length=2)
    state: Optional[str] = Field(default=None, max_length=64)
    city: Optional[str] = Field(default=None, max_length=64)
    address_line: Optional[str] = None
    zip: Optional[str] = Field(default=None, max_length=20)
    active: Optional[bool] = None
    owner_id: Optional[str] = None


class ClinicRead(ORMModel):
    id: UUID
    name: str
    legal_name: Optional[str] = None
    whatsapp_number: Optional[str] = None
    feedback_form_url: Optional[str] = None
    country: Optional[str] = None
    state: Optional[str] = None
    city: Optional[str] = None
    address_line: Optional[str] = None
    zip: Optional[str] = None
    active: bool
    owner_id: Optional[str] = None
    created_at: Optional[datetime] = None
    updated_at: Optional[datetime] = None


# ---------------------------------------------------------------- memberships


class MembershipCreate(BaseModel):
    clinic_id: UUID
    user_id: NonBlankStr
    role: ClinicRole


class MembershipUpdate(BaseModel):
    role: Optional[ClinicRole] = None
    active: Optional[bool] = None


class MembershipRead(ORMModel):
    id: UUID
    clinic_id: UUID
    user_id: str
    role: ClinicRole
    active: bool
    created_at: Optional[datetime] = None
    updated_at: Optional[datetime] = None


# ---------------------------------------------------------------- owners


class OwnerCreate(BaseModel):
    clinic_id: UUID
    name: NonBlankStr
    phone: Optional[str] = Field(default=None, max_length=30)
    email: Optional[str] = None
    notes: Optional[str] = None
    whatsapp_opt_in: bool = True


class OwnerUpdate(BaseModel):
    name: Optional[NonBlankStr] = None
    phone: Optional[str] = Field(default=None, max_length=30)
    email: Optional[str] = None
    notes: Optional[str] = None
    whatsapp_opt_in: Optional[bool] = None


class OwnerRead(ORMModel):
    id: UUID
    clinic_id: UUID
    name: str
    phone: Optional[str] = None
    email: Optional[str] = None
    notes: Optional[str] = None
    whatsapp_opt_in: bool
    created_at: Optional[datetime] = None
    updated_at: Optional[datetime] = None


# ---------------------------------------------------------------- patients


class PatientCreate(BaseModel):
    clinic_id: UUID
    owner_id: UUID
    name: NonBlankStr
    species: Species
    sex: Sex = Sex.UNKNOWN
    breed: Optional[str] = None
    color: Optional[str] = None
    birth_date: Optional[date] = None
    microchip: Optional[str] = Field(default=None, max_length=64)
    notes: Optional[str] = None


class PatientUpdate(BaseModel):
    owner_id: Optional[UUID] = None
    name: Optional[NonBlankStr] = None
    species: Optional[Species] = None
    sex: Optional[Sex] = None
    breed: Optional[str] = None
    color: Optional[str] = None
    birth_date: Optional[date] = None
    microchip: Optional[str] = Field(default=None, max_length=64)
    notes: Optional[str] = None


class PatientRead(ORMModel):
    id: UUID
    clinic_id: UUID
    owner_id: UUID
    name: str
    species: Species
    sex: Sex
    breed: Optional[str] = None
    color: Optional[str] = None
    birth_date: Optional[date] = None
    microchip: Optional[str] = None
    notes: Optional[str] = None
    created_at: Optional[datetime] = None
    updated_at: Optional[datetime] = None


# ---------------------------------------------------------------- appointments


class AppointmentCreate(BaseModel):
    clinic_id: UUID
    patient_id: UUID
    owner_id: UUID
    provider_id: NonBlankStr
    starts_at: datetime
    ends_at: datetime
    status: AppointmentStatus = AppointmentStatus.PENDING
    source: AppointmentSource = AppointmentSource.MANUAL
    notes: Optional[str] = None


class AppointmentUpdate(BaseModel):
    patient_id: Optional[UUID] = None
    owner_id: Optional[UUID] = None
    provider_id: Optional[NonBlankStr] = None
    starts_at: Optional[datetime] = None
    ends_at: Optional[datetime] = None
    status: Optional[AppointmentStatus] = None
    source: Optional[AppointmentSource] = None
    notes: Optional[str] = None
    version: Optional[int] = None


class AppointmentRead(ORMModel):
    id: UUID
    clinic_id: UUID
    patient_id: UUID
    owner_id: UUID
    provider_id: str
    created_by_id: Optional[str] = None
    starts_at: datetime
    ends_at: datetime
    status: AppointmentStatus
    source: AppointmentSource
    notes: Optional[str] = None
    version: int
    created_at: Optional[datetime] = None
    updated_at: Optional[datetime] = None


# ---------------------------------------------------------------- encounters


class EncounterCreate(BaseModel):
    clinic_id: UUID
    patient_id: UUID
    provider_id: NonBlankStr
    appointment_id: Optional[UUID] = None
    status: EncounterStatus = EncounterStatus.DRAFT
    chief_complaint: Optional[ClinicalDocument] = None
    history_present: Optional[ClinicalDocument] = None
    physical_exam: Optional[ClinicalDocument] = None
    diagnosis: Optional[ClinicalDocument] = None
    plan: Optional[ClinicalDocument] = None
    vitals: Optional[ClinicalDocument] = None
    raw_text: Optional[str] = None


class EncounterUpdate(BaseModel):
    appointment_id: Optional[UUID] = None
    status: Optional[EncounterStatus] = None
    chief_complaint: Optional[ClinicalDocument] = None
    history_present: Optional[ClinicalDocument] = None
    physical_exam: Optional[ClinicalDocument] = None
    diagnosis: Optional[ClinicalDocument] = None
    plan: Optional[ClinicalDocument] = None
    vitals: Optional[ClinicalDocument] = None
    raw_text: Optional[str] = None
    version: Optional[int] = None


class EncounterConfirm(BaseModel):
    version: Optional[int] = None


class EncounterRead(ORMModel):
    id: UUID
    clinic_id: UUID
    appointment_id: Optional[UUID] = None
    patient_id: UUID
    provider_id: str
    status: EncounterStatus
    signed_at: Optional[datetime] = None
    chief_complaint: Optional[ClinicalDocument] = None
    history_present: Optional[ClinicalDocument] = None
    physical_exam: Optional[ClinicalDocument] = None
    diagnosis: Optional[ClinicalDocument] = None
    plan: Optional[ClinicalDocument] = None
    vitals: Optional[ClinicalDocument] = None
    raw_text: Optional[str] = None
    version: int
    created_at: Optional[datetime] = None
    updated_at: Optional[datetime] = None


class AddendumCreate(BaseModel):
    content: Optional[ClinicalDocument] = None
    note: Optional[str] = None


class AddendumRead(ORMModel):
    id: UUID
    encounter_id: UUID
    clinic_id: UUID
    author_id: str
    content: Optional[ClinicalDocument] = None
    note: Optional[str] = None
    created_at: Optional[datetime] = None


# ---------------------------------------------------------------- prescriptions


class PrescriptionItemFields(BaseModel):
    drug_name: NonBlankStr
    dosage: Optional[str] = None
    frequency: Optional[str] = None
    duration: Optional[str] = None
    route: Optional[str] = None
    notes: Optional[str] = None


class PrescriptionItemCreate(PrescriptionItemFields):
    prescription_id: UUID


class PrescriptionItemRead(ORMModel):
    id: UUID
    prescription_id: UUID
    drug_name: str
    dosage: Optional[str] = None
    frequency: Optional[str] = None
    duration: Optional[str] = None
    route: Optional[str] = None
    notes: Optional[str] = None


class PrescriptionCreate(BaseModel):
    clinic_id: UUID
    encounter_id: UUID
    patient_id: UUID
    provider_id: Optional[NonBlankStr] = None
    notes: Optional[str] = None
    send_to_whatsapp: bool = True
    items: list[PrescriptionItemFields] = Field(min_length=1)


class PrescriptionUpdate(BaseModel):
    notes: Optional[str] = None
    pdf_url: Optional[str] = None
    send_to_whatsapp: Optional[bool] = None


class PrescriptionRead(ORMModel):
    id: UUID
    clinic_id: UUID
    encounter_id: UUID
    patient_id: UUID
    provider_id: str
    notes: Optional[str] = None
    pdf_url: Optional[str] = None
    send_to_whatsapp: bool
    items: list[PrescriptionItemRead] = []
    created_at: Optional[datetime] = None
    updated_at: Optional[datetime] = None


class MessageLogRead(ORMModel):
    id: UUID
    clinic_id: UUID
    prescription_id: Optional[UUID] = None
    owner_id: Optional[UUID] = None
    direction: MessageDirection
    channel: str
    recipient: Optional[str] = None
    status: MessageStatus
    sent_at: Optional[datetime] = None
    error: Optional[str] = None


class CurrentUserRead(UserRead):
    memberships: list[MembershipRead] = []
