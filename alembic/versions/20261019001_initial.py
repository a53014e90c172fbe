"""Initial VetCare schema."""

from alembic import op
import sqlalchemy as sa
from sqlalchemy.dialects import postgresql

revision = "20261019001"
down_revision = None
branch_labels = None
depends_on = None

GLOBAL_ROLE = sa.Enum("ADMIN_MASTER", "USER", name="global_role")
CLINIC_ROLE = sa.Enum("CLINIC_ADMIN", "RECEPTIONIST", "VETERINARIAN", name="clinic_role")
SPECIES = sa.Enum("DOG", "CAT", "BIRD", "RABBIT", "REPTILE", "OTHER", name="species")
SEX = sa.Enum("MALE", "FEMALE", "UNKNOWN", name="sex")
APPOINTMENT_STATUS = sa.Enum(
    "PENDING", "CONFIRMED", "CANCELLED", "COMPLETED", "NO_SHOW", name="appointment_status"
)
APPOINTMENT_SOURCE = sa.Enum("MANUAL", "WHATSAPP", name="appointment_source")
ENCOUNTER_STATUS = sa.Enum("DRAFT", "CONFIRMED", name="encounter_status")
MESSAGE_DIRECTION = sa.Enum("INBOUND", "OUTBOUND", name="message_direction")
MESSAGE_STATUS = sa.Enum(
    "QUEUED", "SENT", "DELIVERED", "READ", "FAILED", name="message_status"
)


def _timestamps() -> list[sa.Column]:
    return [
        sa.Column(
            "created_at", sa.DateTime(timezone=True), server_default=sa.text("now()"), nullable=False
        ),
        sa.Column(
            "updated_at", sa.DateTime(timezone=True), server_default=sa.text("now()"), nullable=False
        ),
    ]


def _uuid_pk() -> sa.Column:
    return sa.Column("id", postgresql.UUID(as_uuid=True), primary_key=True, nullable=False)


def _clinic_fk() -> list:
    return [
        sa.Column("clinic_id", postgresql.UUID(as_uuid=True), nullable=False),
        sa.ForeignKeyConstraint(["clinic_id"], ["clinics.id"], ondelete="RESTRICT"),
    ]


def upgrade() -> None:
    op.create_table(
        "users",
        sa.Column("id", sa.String(length=128), primary_key=True, nullable=False),
        *_timestamps(),
        sa.Column("email", sa.String(length=255), nullable=True),
        sa.Column("name", sa.String(length=255), nullable=False),
        sa.Column("first_name", sa.String(length=255), nullable=True),
        sa.Column("last_name", sa.String(length=255), nullable=True),
        sa.Column("profile_image_url", sa.String(length=512), nullable=True),
        sa.Column("phone", sa.String(length=30), nullable=True),
        sa.Column("timezone", sa.String(length=64), nullable=True),
        sa.Column("global_role", GLOBAL_ROLE, nullable=False, server_default="USER"),
        sa.UniqueConstraint("email", name="uq_users_email"),
    )

    op.create_table(
        "clinics",
        _uuid_pk(),
        *_timestamps(),
        sa.Column("name", sa.String(length=255), nullable=False),
        sa.Column("legal_name", sa.String(length=255), nullable=True),
        sa.Column("whatsapp_number", sa.String(length=30), nullable=True),
        sa.Column("feedback_form_url", sa.String(length=512), nullable=True),
        sa.Column("country", sa.String(length=2), nullable=True),
        sa.Column("state", sa.String(length=64), nullable=True),
        sa.Column("city", sa.String(length=64), nullable=True),
        sa.Column("address_line", sa.String(length=255), nullable=True),
        sa.Column("zip", sa.String(length=20), nullable=True),
        sa.Column("active", sa.Boolean(), nullable=False, server_default=sa.text("true")),
        sa.Column("owner_id", sa.String(length=128), nullable=True),
        sa.ForeignKeyConstraint(["owner_id"], ["users.id"], ondelete="SET NULL"),
    )
    op.create_index("ix_clinics_active", "clinics", ["active"], unique=False)

    op.create_table(
        "clinic_memberships",
        _uuid_pk(),
        *_timestamps(),
        sa.Column("clinic_id", postgresql.UUID(as_uuid=True), nullable=False),
        sa.Column("user_id", sa.String(length=128), nullable=False),
        sa.Column("role", CLINIC_ROLE, nullable=False),
        sa.Column("active", sa.Boolean(), nullable=False, server_default=sa.text("true")),
        sa.ForeignKeyConstraint(["clinic_id"], ["clinics.id"], ondelete="RESTRICT"),
        sa.ForeignKeyConstraint(["user_id"], ["users.id"], ondelete="CASCADE"),
    )
    op.create_index(
        "ix_clinic_memberships_user_role", "clinic_memberships", ["user_id", "role"]
    )
    op.create_index(
        "ix_clinic_memberships_clinic_role", "clinic_memberships", ["clinic_id", "role"]
    )
    op.create_index(
        "uq_clinic_memberships_active_pair",
        "clinic_memberships",
        ["clinic_id", "user_id"],
        unique=True,
        postgresql_where=sa.text("active"),
    )

    op.create_table(
        "owners",
        _uuid_pk(),
        *_timestamps(),
        *_clinic_fk(),
        sa.Column("name", sa.String(length=255), nullable=False),
        sa.Column("phone", sa.String(length=30), nullable=True),
        sa.Column("email", sa.String(length=255), nullable=True),
        sa.Column("notes", sa.Text(), nullable=True),
        sa.Column(
            "whatsapp_opt_in", sa.Boolean(), nullable=False, server_default=sa.text("true")
        ),
    )
    op.create_index("ix_owners_clinic_id", "owners", ["clinic_id"])
    op.create_index("ix_owners_phone", "owners", ["phone"])

    op.create_table(
        "patients",
        _uuid_pk(),
        *_timestamps(),
        *_clinic_fk(),
        sa.Column("owner_id", postgresql.UUID(as_uuid=True), nullable=False),
        sa.Column("name", sa.String(length=255), nullable=False),
        sa.Column("species", SPECIES, nullable=False),
        sa.Column("sex", SEX, nullable=False, server_default="UNKNOWN"),
        sa.Column("breed", sa.String(length=255), nullable=True),
        sa.Column("color", sa.String(length=255), nullable=True),
        sa.Column("birth_date", sa.Date(), nullable=True),
        sa.Column("microchip", sa.String(length=64), nullable=True),
        sa.Column("notes", sa.Text(), nullable=True),
        sa.ForeignKeyConstraint(["owner_id"], ["owners.id"], ondelete="RESTRICT"),
    )
    op.create_index("ix_patients_clinic_id", "patients", ["clinic_id"])
    op.create_index("ix_patients_clinic_owner", "patients", ["clinic_id", "owner_id"])
    op.create_index("ix_patients_name", "patients", ["name"])

    op.create_table(
        "appointments",
        _uuid_pk(),
        *_timestamps(),
        *_clinic_fk(),
        sa.Column("patient_id", postgresql.UUID(as_uuid=True), nullable=False),
        sa.Column("owner_id", postgresql.UUID(as_uuid=True), nullable=False),
        sa.Column("provider_id", sa.String(length=128), nullable=False),
        sa.Column("created_by_id", sa.String(length=128), nullable=True),
        sa.Column("starts_at", sa.DateTime(timezone=True), nullable=False),
        sa.Column("ends_at", sa.DateTime(timezone=True), nullable=False),
        sa.Column("status", APPOINTMENT_STATUS, nullable=False, server_default="PENDING"),
        sa.Column("source", APPOINTMENT_SOURCE, nullable=False, server_default="MANUAL"),
        sa.Column("notes", sa.Text(), nullable=True),
        sa.Column("version", sa.Integer(), nullable=False, server_default=sa.text("1")),
        sa.ForeignKeyConstraint(["patient_id"], ["patients.id"], ondelete="RESTRICT"),
        sa.ForeignKeyConstraint(["owner_id"], ["owners.id"], ondelete="RESTRICT"),
        sa.ForeignKeyConstraint(["provider_id"], ["users.id"], ondelete="RESTRICT"),
        sa.ForeignKeyConstraint(["created_by_id"], ["users.id"], ondelete="SET NULL"),
        sa.CheckConstraint(
            "ends_at > starts_at", name="ck_appointments_ends_after_start"
        ),
    )
    op.create_index("ix_appointments_clinic_id", "appointments", ["clinic_id"])
    op.create_index(
        "ix_appointments_clinic_starts", "appointments", ["clinic_id", "starts_at"]
    )
    op.create_index(
        "ix_appointments_provider_starts", "appointments", ["provider_id", "starts_at"]
    )
    op.create_index("ix_appointments_owner", "appointments", ["owner_id"])
    op.create_index("ix_appointments_status", "appointments", ["status"])

    op.create_table(
        "encounters",
        _uuid_pk(),
        *_timestamps(),
        *_clinic_fk(),
        sa.Column("appointment_id", postgresql.UUID(as_uuid=True), nullable=True),
        sa.Column("patient_id", postgresql.UUID(as_uuid=True), nullable=False),
        sa.Column("provider_id", sa.String(length=128), nullable=False),
        sa.Column("status", ENCOUNTER_STATUS, nullable=False, server_default="DRAFT"),
        sa.Column("signed_at", sa.DateTime(timezone=True), nullable=True),
        sa.Column("chief_complaint", postgresql.JSONB(), nullable=True),
        sa.Column("history_present", postgresql.JSONB(), nullable=True),
        sa.Column("physical_exam", postgresql.JSONB(), nullable=True),
        sa.Column("diagnosis", postgresql.JSONB(), nullable=True),
        sa.Column("plan", postgresql.JSONB(), nullable=True),
        sa.Column("vitals", postgresql.JSONB(), nullable=True),
        sa.Column("raw_text", sa.Text(), nullable=True),
        sa.Column("version", sa.Integer(), nullable=False, server_default=sa.text("1")),
        sa.ForeignKeyConstraint(
            ["appointment_id"], ["appointments.id"], ondelete="RESTRICT"
        ),
        sa.ForeignKeyConstraint(["patient_id"], ["patients.id"], ondelete="RESTRICT"),
        sa.ForeignKeyConstraint(["provider_id"], ["users.id"], ondelete="RESTRICT"),
    )
    op.create_index("ix_encounters_clinic_id", "encounters", ["clinic_id"])
    op.create_index(
        "ix_encounters_clinic_patient", "encounters", ["clinic_id", "patient_id"]
    )
    op.create_index("ix_encounters_provider", "encounters", ["provider_id"])
    op.create_index("ix_encounters_status", "encounters", ["status"])

    op.create_table(
        "encounter_addenda",
        _uuid_pk(),
        *_clinic_fk(),
        sa.Column("encounter_id", postgresql.UUID(as_uuid=True), nullable=False),
        sa.Column("author_id", sa.String(length=128), nullable=False),
        sa.Column("content", postgresql.JSONB(), nullable=True),
        sa.Column("note", sa.Text(), nullable=True),
        sa.Column(
            "created_at", sa.DateTime(timezone=True), server_default=sa.text("now()"), nullable=False
        ),
        sa.ForeignKeyConstraint(["encounter_id"], ["encounters.id"], ondelete="RESTRICT"),
        sa.ForeignKeyConstraint(["author_id"], ["users.id"], ondelete="RESTRICT"),
    )
    op.create_index("ix_encounter_addenda_clinic_id", "encounter_addenda", ["clinic_id"])
    op.create_index(
        "ix_encounter_addenda_encounter_id", "encounter_addenda", ["encounter_id"]
    )

    op.create_table(
        "prescriptions",
        _uuid_pk(),
        *_timestamps(),
        *_clinic_fk(),
        sa.Column("encounter_id", postgresql.UUID(as_uuid=True), nullable=False),
        sa.Column("patient_id", postgresql.UUID(as_uuid=True), nullable=False),
        sa.Column("provider_id", sa.String(length=128), nullable=False),
        sa.Column("notes", sa.Text(), nullable=True),
        sa.Column("pdf_url", sa.String(length=1024), nullable=True),
        sa.Column(
            "send_to_whatsapp", sa.Boolean(), nullable=False, server_default=sa.text("true")
        ),
        sa.ForeignKeyConstraint(["encounter_id"], ["encounters.id"], ondelete="RESTRICT"),
        sa.ForeignKeyConstraint(["patient_id"], ["patients.id"], ondelete="RESTRICT"),
        sa.ForeignKeyConstraint(["provider_id"], ["users.id"], ondelete="RESTRICT"),
    )
    op.create_index("ix_prescriptions_clinic_id", "prescriptions", ["clinic_id"])
    op.create_index("ix_prescriptions_provider", "prescriptions", ["provider_id"])

    op.create_table(
        "prescription_items",
        _uuid_pk(),
        sa.Column("prescription_id", postgresql.UUID(as_uuid=True), nullable=False),
        sa.Column("drug_name", sa.String(length=255), nullable=False),
        sa.Column("dosage", sa.String(length=255), nullable=True),
        sa.Column("frequency", sa.String(length=255), nullable=True),
        sa.Column("duration", sa.String(length=255), nullable=True),
        sa.Column("route", sa.String(length=255), nullable=True),
        sa.Column("notes", sa.Text(), nullable=True),
        sa.ForeignKeyConstraint(
            ["prescription_id"], ["prescriptions.id"], ondelete="CASCADE"
        ),
    )
    op.create_index(
        "ix_prescription_items_prescription_id", "prescription_items", ["prescription_id"]
    )

    op.create_table(
        "message_logs",
        _uuid_pk(),
        *_timestamps(),
        *_clinic_fk(),
        sa.Column("prescription_id", postgresql.UUID(as_uuid=True), nullable=True),
        sa.Column("owner_id", postgresql.UUID(as_uuid=True), nullable=True),
        sa.Column("direction", MESSAGE_DIRECTION, nullable=False, server_default="OUTBOUND"),
        sa.Column("channel", sa.String(length=32), nullable=False),
        sa.Column("recipient", sa.String(length=255), nullable=True),
        sa.Column("payload", sa.Text(), nullable=True),
        sa.Column("metadata", postgresql.JSONB(), nullable=True),
        sa.Column("status", MESSAGE_STATUS, nullable=False, server_default="QUEUED"),
        sa.Column("sent_at", sa.DateTime(timezone=True), nullable=True),
        sa.Column("error", sa.Text(), nullable=True),
        sa.ForeignKeyConstraint(
            ["prescription_id"], ["prescriptions.id"], ondelete="SET NULL"
        ),
        sa.ForeignKeyConstraint(["owner_id"], ["owners.id"], ondelete="SET NULL"),
    )
    op.create_index("ix_message_logs_clinic_id", "message_logs", ["clinic_id"])
    op.create_index("ix_message_logs_prescription_id", "message_logs", ["prescription_id"])

    op.create_table(
        "audit_logs",
        _uuid_pk(),
        *_timestamps(),
        sa.Column("clinic_id", postgresql.UUID(as_uuid=True), nullable=True),
        sa.Column("actor", sa.String(length=255), nullable=True),
        sa.Column("action", sa.String(length=255), nullable=False),
        sa.Column("resource", sa.String(length=255), nullable=True),
        sa.Column("occurred_at", sa.DateTime(timezone=True), nullable=False),
        sa.Column("metadata", postgresql.JSONB(), nullable=True),
        sa.ForeignKeyConstraint(["clinic_id"], ["clinics.id"], ondelete="RESTRICT"),
    )
    op.create_index("ix_audit_logs_clinic_id", "audit_logs", ["clinic_id"])


def downgrade() -> None:
    op.drop_index("ix_audit_logs_clinic_id", table_name="audit_logs")
    op.drop_table("audit_logs")
    op.drop_index("ix_message_logs_prescription_id", table_name="message_logs")
    op.drop_index("ix_message_logs_clinic_id", table_name="message_logs")
    op.drop_table("message_logs")
    op.drop_index("ix_prescription_items_prescription_id", table_name="prescription_items")
    op.drop_table("prescription_items")
    op.drop_index("ix_prescriptions_provider", table_name="prescriptions")
    op.drop_index("ix_prescriptions_clinic_id", table_name="prescriptions")
    op.drop_table("prescriptions")
    op.drop_index("ix_encounter_addenda_encounter_id", table_name="encounter_addenda")
    op.drop_index("ix_encounter_addenda_clinic_id", table_name="encounter_addenda")
    op.drop_table("encounter_addenda")
    op.drop_index("ix_encounters_status", table_name="encounters")
    op.drop_index("ix_encounters_provider", table_name="encounters")
    op.drop_index("ix_encounters_clinic_patient", table_name="encounters")
    op.drop_index("ix_encounters_clinic_id", table_name="encounters")
    op.drop_table("encounters")
    op.drop_index("ix_appointments_status", table_name="appointments")
    op.drop_index("ix_appointments_owner", table_name="appointments")
    op.drop_index("ix_appointments_provider_starts", table_name="appointments")
    op.drop_index("ix_appointments_clinic_starts", table_name="appointments")
    op.drop_index("ix_appointments_clinic_id", table_name="appointments")
    op.drop_table("appointments")
    op.drop_index("ix_patients_name", table_name="patients")
    op.drop_index("ix_patients_clinic_owner", table_name="patients")
    op.drop_index("ix_patients_clinic_id", table_name="patients")
    op.drop_table("patients")
    op.drop_index("ix_owners_phone", table_name="owners")
    op.drop_index("ix_owners_clinic_id", table_name="owners")
    op.drop_table("owners")
    op.drop_index("uq_clinic_memberships_active_pair", table_name="clinic_memberships")
    op.drop_index("ix_clinic_memberships_clinic_role", table_name="clinic_memberships")
    op.drop_index("ix_clinic_memberships_user_role", table_name="clinic_memberships")
    op.drop_table("clinic_memberships")
    op.drop_index("ix_clinics_active", table_name="clinics")
    op.drop_table("clinics")
    op.drop_table("users")

    bind = op.get_bind()
    for enum_type in (
        MESSAGE_STATUS,
        MESSAGE_DIRECTION,
        ENCOUNTER_STATUS,
        APPOINTMENT_SOURCE,
        APPOINTMENT_STATUS,
        SEX,
        SPECIES,
        CLINIC_ROLE,
        GLOBAL_ROLE,
    ):
        enum_type.drop(bind, checkfirst=True)
