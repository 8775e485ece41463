"""Create core tables

Revision ID: 001
Revises: None
Create Date: 2024-09-01 00:00:00.000000+00:00

What:  Accounts, entreprises, missions and their slots, templates,
       invoices, unavailabilities, client contacts and CV tables.

Rollback: downgrade() drops every table (destructive).
"""

from typing import Sequence, Union
from alembic import op
import sqlalchemy as sa

# revision identifiers
revision: str = "001"
down_revision: Union[str, None] = None
branch_labels: Union[str, Sequence[str], None] = None
depends_on: Union[str, Sequence[str], None] = None

NOW = sa.text("CURRENT_TIMESTAMP")


def upgrade() -> None:
    # ── Accounts ──────────────────────────────────────────────────────────
    op.create_table(
        "users",
        sa.Column("id", sa.Uuid(), nullable=False, comment="Account identifier, reused as profile id"),
        sa.Column("email", sa.String(255), nullable=False, comment="Login e-mail, stored lowercase"),
        sa.Column("password_hash", sa.String(255), nullable=False, comment="bcrypt hash (passlib)"),
        sa.Column("created_at", sa.DateTime(timezone=True), server_default=NOW, nullable=False),
        sa.PrimaryKeyConstraint("id"),
        sa.UniqueConstraint("email"),
    )
    op.create_index("ix_users_email", "users", ["email"])

    op.create_table(
        "profiles",
        sa.Column("id", sa.Uuid(), nullable=False),
        sa.Column("email", sa.String(255), nullable=True),
        sa.Column("first_name", sa.String(120), nullable=True),
        sa.Column("last_name", sa.String(120), nullable=True),
        sa.Column("phone", sa.String(40), nullable=True),
        sa.Column(
            "role",
            sa.String(20),
            server_default=sa.text("'client'"),
            nullable=False,
            comment="freelance | entreprise | client | admin",
        ),
        sa.Column("created_at", sa.DateTime(timezone=True), server_default=NOW, nullable=False),
        sa.ForeignKeyConstraint(["id"], ["users.id"], ondelete="CASCADE"),
        sa.PrimaryKeyConstraint("id"),
    )

    op.create_table(
        "clients",
        sa.Column("id", sa.Uuid(), nullable=False),
        sa.Column("role", sa.String(20), server_default=sa.text("'client'"), nullable=False),
        sa.Column("created_at", sa.DateTime(timezone=True), server_default=NOW, nullable=False),
        sa.ForeignKeyConstraint(["id"], ["profiles.id"], ondelete="CASCADE"),
        sa.PrimaryKeyConstraint("id"),
    )

    # ── Entreprise ────────────────────────────────────────────────────────
    op.create_table(
        "entreprise",
        sa.Column("id", sa.Integer(), autoincrement=True, nullable=False),
        sa.Column("user_id", sa.Uuid(), nullable=True, comment="Owning account"),
        sa.Column(
            "slug",
            sa.String(160),
            nullable=False,
            comment="Human-readable unique identifier used in public URLs",
        ),
        sa.Column("nom", sa.String(120), server_default=sa.text("''"), nullable=False),
        sa.Column("prenom", sa.String(120), server_default=sa.text("''"), nullable=False),
        sa.Column("adresse_ligne1", sa.String(255), server_default=sa.text("''"), nullable=False),
        sa.Column("adresse_ligne2", sa.String(255), nullable=True),
        sa.Column("ville", sa.String(120), server_default=sa.text("''"), nullable=False),
        sa.Column("code_postal", sa.String(20), server_default=sa.text("''"), nullable=False),
        sa.Column("pays", sa.String(80), server_default=sa.text("'France'"), nullable=False),
        sa.Column("email", sa.String(255), nullable=True),
        sa.Column("telephone", sa.String(40), nullable=True),
        sa.Column("siret", sa.String(20), server_default=sa.text("''"), nullable=False),
        sa.Column(
            "statut_juridique",
            sa.String(80),
            server_default=sa.text("'micro-entreprise'"),
            nullable=False,
        ),
        sa.Column("tva_intracom", sa.String(40), nullable=True),
        sa.Column(
            "mention_tva",
            sa.Text(),
            server_default=sa.text("'TVA non applicable, art. 293 B du CGI'"),
            nullable=False,
        ),
        sa.Column("iban", sa.String(40), server_default=sa.text("''"), nullable=False),
        sa.Column("bic", sa.String(20), server_default=sa.text("''"), nullable=False),
        sa.Column(
            "taux_horaire",
            sa.Float(),
            server_default=sa.text("20"),
            nullable=False,
            comment="Hourly rate",
        ),
        sa.Column("devise", sa.String(3), server_default=sa.text("'EUR'"), nullable=False),
        sa.Column(
            "conditions_paiement",
            sa.Text(),
            server_default=sa.text("'Paiement comptant à réception'"),
            nullable=False,
        ),
        sa.Column(
            "penalites_retard",
            sa.Text(),
            server_default=sa.text("'Taux BCE + 10 pts, indemnité forfaitaire 40 €'"),
            nullable=False,
        ),
        sa.Column("stripe_account_id", sa.String(64), nullable=True),
        sa.Column("created_at", sa.DateTime(timezone=True), server_default=NOW, nullable=False),
        sa.Column("updated_at", sa.DateTime(timezone=True), server_default=NOW, nullable=True),
        sa.ForeignKeyConstraint(["user_id"], ["users.id"], ondelete="SET NULL"),
        sa.PrimaryKeyConstraint("id"),
        sa.UniqueConstraint("slug"),
    )
    op.create_index("idx_entreprise_user_id", "entreprise", ["user_id"])
    op.create_index("idx_entreprise_created_at", "entreprise", [sa.text("created_at DESC")])

    # ── Missions, slots, templates ────────────────────────────────────────
    op.create_table(
        "missions",
        sa.Column("id", sa.Integer(), autoincrement=True, nullable=False),
        sa.Column("client_id", sa.Uuid(), nullable=True),
        sa.Column("entreprise_id", sa.Integer(), nullable=True),
        sa.Column("freelance_id", sa.Uuid(), nullable=True),
        sa.Column("contact_email", sa.String(255), nullable=True),
        sa.Column("contact_name", sa.String(255), nullable=True),
        sa.Column("contact_phone", sa.String(40), nullable=True),
        sa.Column("devis_url", sa.Text(), nullable=True),
        sa.Column("etablissement", sa.String(255), nullable=True),
        sa.Column("etablissement_adresse_ligne1", sa.String(255), nullable=True),
        sa.Column("etablissement_adresse_ligne2", sa.String(255), nullable=True),
        sa.Column("etablissement_code_postal", sa.String(20), nullable=True),
        sa.Column("etablissement_ville", sa.String(120), nullable=True),
        sa.Column("etablissement_pays", sa.String(80), nullable=True),
        sa.Column("instructions", sa.Text(), nullable=True),
        sa.Column(
            "mode",
            sa.String(20),
            server_default=sa.text("'freelance'"),
            nullable=False,
            comment="freelance | salarié",
        ),
        sa.Column(
            "status",
            sa.String(30),
            server_default=sa.text("'proposed'"),
            nullable=False,
            comment="proposed, validated, pending_payment, paid, completed, refused, realized",
        ),
        sa.Column("created_at", sa.DateTime(timezone=True), server_default=NOW, nullable=False),
        sa.ForeignKeyConstraint(["client_id"], ["profiles.id"], ondelete="SET NULL"),
        sa.ForeignKeyConstraint(["entreprise_id"], ["entreprise.id"], ondelete="CASCADE"),
        sa.PrimaryKeyConstraint("id"),
    )
    op.create_index(
        "idx_missions_entreprise_created",
        "missions",
        ["entreprise_id", sa.text("created_at DESC")],
    )
    op.create_index("idx_missions_client_id", "missions", ["client_id"])

    op.create_table(
        "slots",
        sa.Column("id", sa.Integer(), autoincrement=True, nullable=False),
        sa.Column("start", sa.DateTime(timezone=True), nullable=False),
        sa.Column("end", sa.DateTime(timezone=True), nullable=False),
        sa.Column("title", sa.String(255), nullable=True),
        sa.Column("mission_id", sa.Integer(), nullable=True),
        sa.Column("entreprise_id", sa.Integer(), nullable=True),
        sa.Column("created_at", sa.DateTime(timezone=True), server_default=NOW, nullable=False),
        sa.ForeignKeyConstraint(["mission_id"], ["missions.id"], ondelete="CASCADE"),
        sa.ForeignKeyConstraint(["entreprise_id"], ["entreprise.id"], ondelete="CASCADE"),
        sa.PrimaryKeyConstraint("id"),
    )
    op.create_index("idx_slots_entreprise_start", "slots", ["entreprise_id", "start"])
    op.create_index("idx_slots_mission_id", "slots", ["mission_id"])

    op.create_table(
        "mission_templates",
        sa.Column("id", sa.Integer(), autoincrement=True, nullable=False),
        sa.Column("client_id", sa.Uuid(), nullable=False),
        sa.Column("nom", sa.String(255), nullable=False),
        sa.Column("etablissement", sa.String(255), nullable=False),
        sa.Column("etablissement_adresse_ligne1", sa.String(255), nullable=True),
        sa.Column("etablissement_adresse_ligne2", sa.String(255), nullable=True),
        sa.Column("etablissement_code_postal", sa.String(20), nullable=True),
        sa.Column("etablissement_ville", sa.String(120), nullable=True),
        sa.Column("etablissement_pays", sa.String(80), nullable=True),
        sa.Column("contact_name", sa.String(255), nullable=True),
        sa.Column("contact_email", sa.String(255), nullable=True),
        sa.Column("contact_phone", sa.String(40), nullable=True),
        sa.Column("instructions", sa.Text(), nullable=True),
        sa.Column("mode", sa.String(20), server_default=sa.text("'freelance'"), nullable=False),
        sa.Column("created_at", sa.DateTime(timezone=True), server_default=NOW, nullable=False),
        sa.ForeignKeyConstraint(["client_id"], ["profiles.id"], ondelete="CASCADE"),
        sa.PrimaryKeyConstraint("id"),
    )
    op.create_index("ix_mission_templates_client_id", "mission_templates", ["client_id"])

    # ── Invoices ──────────────────────────────────────────────────────────
    op.create_table(
        "factures",
        sa.Column("id", sa.Integer(), autoincrement=True, nullable=False),
        sa.Column("numero", sa.String(64), nullable=False, comment="Invoice number, globally unique"),
        sa.Column("entreprise_id", sa.Integer(), nullable=False),
        sa.Column("mission_id", sa.Integer(), nullable=True),
        sa.Column("client_name", sa.String(255), nullable=True),
        sa.Column("client_address_ligne1", sa.String(255), nullable=True),
        sa.Column("client_address_ligne2", sa.String(255), nullable=True),
        sa.Column("client_code_postal", sa.String(20), nullable=True),
        sa.Column("client_ville", sa.String(120), nullable=True),
        sa.Column("client_pays", sa.String(80), nullable=True),
        sa.Column("contact_email", sa.String(255), nullable=True),
        sa.Column("contact_name", sa.String(255), nullable=True),
        sa.Column("contact_phone", sa.String(40), nullable=True),
        sa.Column("date_emission", sa.Date(), server_default=sa.text("CURRENT_DATE"), nullable=False),
        sa.Column("description", sa.Text(), nullable=True),
        sa.Column("hours", sa.Float(), nullable=True),
        sa.Column("rate", sa.Float(), nullable=True),
        sa.Column("montant_ht", sa.Float(), server_default=sa.text("0"), nullable=False),
        sa.Column("montant_ttc", sa.Float(), server_default=sa.text("0"), nullable=False),
        sa.Column("tva", sa.Float(), server_default=sa.text("0"), nullable=False),
        sa.Column("mention_tva", sa.Text(), nullable=True),
        sa.Column("conditions_paiement", sa.Text(), nullable=True),
        sa.Column("penalites_retard", sa.Text(), nullable=True),
        sa.Column("payment_link", sa.Text(), nullable=True),
        sa.Column(
            "status",
            sa.String(30),
            server_default=sa.text("'pending_payment'"),
            nullable=False,
            comment="pending_payment, paid, canceled",
        ),
        sa.Column("stripe_session_id", sa.String(255), nullable=True),
        sa.Column("stripe_payment_intent", sa.String(255), nullable=True),
        sa.Column("url", sa.Text(), nullable=True, comment="Rendered PDF URL"),
        sa.Column("created_at", sa.DateTime(timezone=True), server_default=NOW, nullable=False),
        sa.ForeignKeyConstraint(["entreprise_id"], ["entreprise.id"], ondelete="CASCADE"),
        sa.ForeignKeyConstraint(["mission_id"], ["missions.id"], ondelete="SET NULL"),
        sa.PrimaryKeyConstraint("id"),
        sa.UniqueConstraint("numero"),
    )
    op.create_index(
        "idx_factures_entreprise_emission",
        "factures",
        ["entreprise_id", sa.text("date_emission DESC")],
    )

    # ── Calendar rules ────────────────────────────────────────────────────
    op.create_table(
        "unavailabilities",
        sa.Column("id", sa.Integer(), autoincrement=True, nullable=False),
        sa.Column("entreprise_id", sa.Integer(), nullable=False),
        sa.Column(
            "title",
            sa.String(255),
            server_default=sa.text("'Unavailability'"),
            nullable=False,
        ),
        sa.Column("start_date", sa.Date(), nullable=False),
        sa.Column("start_time", sa.Time(), nullable=False),
        sa.Column("end_time", sa.Time(), nullable=False),
        sa.Column("recurrence_type", sa.String(10), server_default=sa.text("'none'"), nullable=False),
        sa.Column("recurrence_end", sa.Date(), nullable=True),
        sa.Column("weekday", sa.Integer(), nullable=True, comment="0 = Sunday ... 6 = Saturday"),
        sa.Column(
            "exceptions",
            sa.JSON(),
            server_default=sa.text("'[]'"),
            nullable=False,
            comment="ISO dates skipped by the recurrence",
        ),
        sa.Column("created_at", sa.DateTime(timezone=True), server_default=NOW, nullable=False),
        sa.Column("updated_at", sa.DateTime(timezone=True), server_default=NOW, nullable=False),
        sa.ForeignKeyConstraint(["entreprise_id"], ["entreprise.id"], ondelete="CASCADE"),
        sa.PrimaryKeyConstraint("id"),
    )
    op.create_index("ix_unavailabilities_entreprise_id", "unavailabilities", ["entreprise_id"])

    # ── Address book ──────────────────────────────────────────────────────
    op.create_table(
        "client_contacts",
        sa.Column("id", sa.Integer(), autoincrement=True, nullable=False),
        sa.Column("client_id", sa.Uuid(), nullable=False),
        sa.Column("entreprise_id", sa.Integer(), nullable=False),
        sa.Column("created_at", sa.DateTime(timezone=True), server_default=NOW, nullable=False),
        sa.ForeignKeyConstraint(["client_id"], ["profiles.id"], ondelete="CASCADE"),
        sa.ForeignKeyConstraint(["entreprise_id"], ["entreprise.id"], ondelete="CASCADE"),
        sa.PrimaryKeyConstraint("id"),
        sa.UniqueConstraint("client_id", "entreprise_id", name="uq_client_contacts_pair"),
    )
    op.create_index("ix_client_contacts_client_id", "client_contacts", ["client_id"])
    op.create_index("ix_client_contacts_entreprise_id", "client_contacts", ["entreprise_id"])

    # ── CV ────────────────────────────────────────────────────────────────
    op.create_table(
        "cv_profiles",
        sa.Column("id", sa.Integer(), autoincrement=True, nullable=False),
        sa.Column("entreprise_id", sa.Integer(), nullable=False),
        sa.Column("job_title", sa.String(255), nullable=True),
        sa.Column("location", sa.String(255), nullable=True),
        sa.Column("bio", sa.Text(), nullable=True),
        sa.Column("photo_url", sa.Text(), nullable=True),
        sa.Column("updated_at", sa.DateTime(timezone=True), server_default=NOW, nullable=False),
        sa.ForeignKeyConstraint(["entreprise_id"], ["entreprise.id"], ondelete="CASCADE"),
        sa.PrimaryKeyConstraint("id"),
        sa.UniqueConstraint("entreprise_id"),
    )

    op.create_table(
        "cv_skills",
        sa.Column("id", sa.Integer(), autoincrement=True, nullable=False),
        sa.Column("entreprise_id", sa.Integer(), nullable=False),
        sa.Column("name", sa.String(120), nullable=False),
        sa.ForeignKeyConstraint(["entreprise_id"], ["entreprise.id"], ondelete="CASCADE"),
        sa.PrimaryKeyConstraint("id"),
    )
    op.create_index("ix_cv_skills_entreprise_id", "cv_skills", ["entreprise_id"])

    op.create_table(
        "cv_experiences",
        sa.Column("id", sa.Integer(), autoincrement=True, nullable=False),
        sa.Column("entreprise_id", sa.Integer(), nullable=False),
        sa.Column("title", sa.String(255), nullable=False),
        sa.Column("company", sa.String(255), nullable=True),
        sa.Column("start_date", sa.Date(), nullable=True),
        sa.Column("end_date", sa.Date(), nullable=True),
        sa.Column("is_current", sa.Boolean(), server_default=sa.false(), nullable=False),
        sa.Column("description", sa.Text(), nullable=True),
        sa.ForeignKeyConstraint(["entreprise_id"], ["entreprise.id"], ondelete="CASCADE"),
        sa.PrimaryKeyConstraint("id"),
    )
    op.create_index("ix_cv_experiences_entreprise_id", "cv_experiences", ["entreprise_id"])

    op.create_table(
        "cv_education",
        sa.Column("id", sa.Integer(), autoincrement=True, nullable=False),
        sa.Column("entreprise_id", sa.Integer(), nullable=False),
        sa.Column("title", sa.String(255), nullable=False),
        sa.Column("school", sa.String(255), nullable=True),
        sa.Column("year", sa.Integer(), nullable=True),
        sa.ForeignKeyConstraint(["entreprise_id"], ["entreprise.id"], ondelete="CASCADE"),
        sa.PrimaryKeyConstraint("id"),
    )
    op.create_index("ix_cv_education_entreprise_id", "cv_education", ["entreprise_id"])


def downgrade() -> None:
    """Drop every table, children first. All data is lost."""
    for table in (
        "cv_education",
        "cv_experiences",
        "cv_skills",
        "cv_profiles",
        "client_contacts",
        "unavailabilities",
        "factures",
        "mission_templates",
        "slots",
        "missions",
        "entreprise",
        "clients",
        "profiles",
        "users",
    ):
        op.drop_table(table)
