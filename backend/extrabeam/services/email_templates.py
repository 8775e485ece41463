"""
ExtraBeam Backend - E-mail Templates
====================================

Pure functions returning (subject, html) for each notification event.
All interpolated values are HTML-escaped; every body is wrapped in the same
minimal inline-styled layout with the "Envoyé par ExtraBeam" footer.
"""

from datetime import datetime
from html import escape
from typing import Iterable, NamedTuple, Optional

from extrabeam.models.entreprise import Entreprise
from extrabeam.models.facture import Facture
from extrabeam.models.mission import Mission, Slot

PLACEHOLDER = "—"


class RenderedEmail(NamedTuple):
    subject: str
    html: str


def _text(value: Optional[object], default: str = PLACEHOLDER) -> str:
    if value is None or value == "":
        return escape(default)
    return escape(str(value))


def _fmt_datetime(value: Optional[datetime]) -> str:
    return value.strftime("%d/%m/%Y %H:%M") if value else PLACEHOLDER


def _slots_block(slots: Iterable[Slot]) -> str:
    items = []
    for slot in slots:
        title = f" {PLACEHOLDER} {_text(slot.title)}" if slot.title else ""
        items.append(
            f"<li>📅 {_fmt_datetime(slot.start)} → {_fmt_datetime(slot.end)}{title}</li>"
        )
    return "".join(items)


def _payment_link(facture: Facture, label: Optional[str] = None) -> str:
    link = escape(facture.payment_link or "", quote=True)
    return f'<a href="{link}">{escape(label) if label else link}</a>'


def wrap(title: str, body: str) -> str:
    return f"""
  <div style="font-family:Inter,Arial,sans-serif;max-width:640px;margin:0 auto;padding:16px;">
    <h2 style="margin:0 0 12px 0;">{escape(title)}</h2>
    <div style="font-size:14px;line-height:1.6;color:#111;">
      {body}
    </div>
    <hr style="margin:24px 0;border:none;border-top:1px solid #e5e5e5;" />
    <p style="font-size:12px;color:#666;">Envoyé par <b>ExtraBeam</b></p>
  </div>
"""


def _entreprise_name(entreprise: Optional[Entreprise]) -> str:
    return _text(entreprise.nom if entreprise else None, "l'entreprise")


# ══════════════════════════════════════════════════════════════════════════
# To the entreprise
# ══════════════════════════════════════════════════════════════════════════

def mission_created_by_client(
    entreprise: Entreprise, mission: Mission, client_name: Optional[str]
) -> RenderedEmail:
    subject = f"📢 Nouvelle mission proposée par {client_name or 'un client'}"
    body = f"""
      <p>Bonjour {_text(entreprise.nom, '')},</p>
      <p>Un client vient de proposer une mission.</p>
      <ul>
        <li><b>Etablissement :</b> {_text(mission.etablissement)}</li>
        <li><b>Contact :</b> {_text(mission.contact_name)} ({_text(mission.contact_email)} / {_text(mission.contact_phone)})</li>
        <li><b>Instructions :</b> {_text(mission.instructions)}</li>
        <li><b>Statut :</b> {_text(mission.status)}</li>
      </ul>
      <p><b>Créneaux :</b></p>
      <ul>{_slots_block(mission.slots)}</ul>
    """
    return RenderedEmail(subject, wrap("Nouvelle mission", body))


def mission_created_by_visitor(entreprise: Entreprise, mission: Mission) -> RenderedEmail:
    subject = f"📢 Demande entrante (visiteur) – {mission.etablissement or 'Mission'}"
    body = f"""
      <p>Bonjour {_text(entreprise.nom, '')},</p>
      <p>Un visiteur sans compte a soumis une demande de mission :</p>
      <ul>
        <li><b>Contact :</b> {_text(mission.contact_name)} ({_text(mission.contact_email)} / {_text(mission.contact_phone)})</li>
        <li><b>Instructions :</b> {_text(mission.instructions)}</li>
        <li><b>Statut :</b> {_text(mission.status)}</li>
      </ul>
      <p><b>Créneaux :</b></p>
      <ul>{_slots_block(mission.slots)}</ul>
    """
    return RenderedEmail(subject, wrap("Nouvelle demande entrante", body))


def company_bookmarked(entreprise: Entreprise, client_name: Optional[str]) -> RenderedEmail:
    who = client_name or "Un client"
    subject = f"⭐ {who} a ajouté votre entreprise en contact"
    body = f"""
      <p>Bonjour {_text(entreprise.nom, '')},</p>
      <p>{_text(who)} vient d'ajouter votre entreprise à ses contacts.</p>
      <p>Vous pouvez envisager de le recontacter rapidement.</p>
    """
    return RenderedEmail(subject, wrap("Nouveau contact", body))


def billing_status_changed(entreprise: Entreprise, facture: Facture) -> RenderedEmail:
    subject = f"💳 Facture {facture.numero} → {facture.status}"
    link = ""
    if facture.status == "pending_payment" and facture.payment_link:
        link = f"<p>🧾 Lien de paiement : {_payment_link(facture)}</p>"
    body = f"""
      <p>Bonjour {_text(entreprise.nom, '')},</p>
      <p>Le statut de la facture <b>{_text(facture.numero)}</b> a changé : <b>{_text(facture.status)}</b>.</p>
      {link}
    """
    return RenderedEmail(subject, wrap("Mise à jour de facture", body))


# ══════════════════════════════════════════════════════════════════════════
# To the client (or visitor)
# ══════════════════════════════════════════════════════════════════════════

def mission_ack_to_client(
    client_name: Optional[str], mission: Mission, entreprise: Optional[Entreprise]
) -> RenderedEmail:
    subject = "✅ Votre demande de mission a bien été envoyée"
    body = f"""
      <p>Bonjour {_text(client_name, '')},</p>
      <p>Votre demande de mission a été transmise à <b>{_entreprise_name(entreprise)}</b>.</p>
      <p><b>Récapitulatif :</b></p>
      <ul>
        <li><b>Etablissement :</b> {_text(mission.etablissement)}</li>
        <li><b>Instructions :</b> {_text(mission.instructions)}</li>
      </ul>
      <p><b>Créneaux :</b></p>
      <ul>{_slots_block(mission.slots)}</ul>
    """
    return RenderedEmail(subject, wrap("Demande envoyée", body))


def mission_status_changed(mission: Mission, entreprise: Optional[Entreprise]) -> RenderedEmail:
    subject = f"🔔 Mise à jour de votre mission – {mission.status}"
    body = f"""
      <p>Bonjour,</p>
      <p>Votre mission avec <b>{_entreprise_name(entreprise)}</b> est passée à l'état <b>{_text(mission.status)}</b>.</p>
      <p>Créneaux :</p>
      <ul>{_slots_block(mission.slots)}</ul>
    """
    return RenderedEmail(subject, wrap("Mise à jour mission", body))


def mission_slots_rescheduled(mission: Mission, entreprise: Optional[Entreprise]) -> RenderedEmail:
    name = entreprise.nom if entreprise and entreprise.nom else "Entreprise"
    subject = f"🗓️ Créneaux mis à jour – {name}"
    body = f"""
      <p>Bonjour,</p>
      <p>Les créneaux de votre mission ont été mis à jour :</p>
      <ul>{_slots_block(mission.slots)}</ul>
    """
    return RenderedEmail(subject, wrap("Créneaux mis à jour", body))


def invoice_created(facture: Facture, entreprise: Optional[Entreprise]) -> RenderedEmail:
    subject = f"🧾 Nouvelle facture {facture.numero}"
    link = ""
    if facture.payment_link:
        link = f"<p>Vous pouvez la régler ici : {_payment_link(facture)}</p>"
    body = f"""
      <p>Bonjour,</p>
      <p>Une facture a été émise par <b>{_entreprise_name(entreprise)}</b>.</p>
      {link}
    """
    return RenderedEmail(subject, wrap("Facture créée", body))


def payment_link(facture: Facture, entreprise: Optional[Entreprise]) -> RenderedEmail:
    subject = f"💳 Paiement en ligne – Facture {facture.numero}"
    if facture.payment_link:
        link = f"<p>➡️ {_payment_link(facture, f'Payer la facture {facture.numero}')}</p>"
    else:
        link = "<p>(Lien de paiement indisponible)</p>"
    body = f"""
      <p>Bonjour,</p>
      <p>Votre facture est prête au paiement.</p>
      {link}
    """
    return RenderedEmail(subject, wrap("Lien de paiement", body))


def payment_succeeded(facture: Facture, entreprise: Optional[Entreprise]) -> RenderedEmail:
    subject = f"✅ Paiement confirmé – Facture {facture.numero}"
    body = f"""
      <p>Bonjour,</p>
      <p>Nous confirmons la réception du paiement pour la facture <b>{_text(facture.numero)}</b>.</p>
      <p>Merci pour votre confiance.</p>
    """
    return RenderedEmail(subject, wrap("Paiement confirmé", body))


def payment_failed(facture: Facture, entreprise: Optional[Entreprise]) -> RenderedEmail:
    subject = f"⚠️ Paiement échoué – Facture {facture.numero}"
    retry_link = ""
    if facture.payment_link:
        retry_link = f"<p>{_payment_link(facture, 'Réessayer le paiement')}</p>"
    body = f"""
      <p>Bonjour,</p>
      <p>Le paiement de votre facture <b>{_text(facture.numero)}</b> a échoué. Vous pouvez réessayer via le lien ci-dessous :</p>
      {retry_link}
    """
    return RenderedEmail(subject, wrap("Paiement échoué", body))
