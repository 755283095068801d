"""
MJML Email Templates
Booking, cancellation, reminder and contact emails sent to coworking customers
"""

from html import escape
from typing import Optional

from .config import FRONTEND_URL

# Café brand colors
THEME = {
    "primary": "#142220",
    "accent": "#f2d381",
    "background": "#f7f5f0",
    "text_primary": "#142220",
    "text_secondary": "#374151",
    "text_muted": "#6b7280",
    "border": "#e5e7eb",
    "danger": "#b91c1c",
}

BRAND_NAME = "CoworKing Café"


def get_base_template(
    title: str,
    preview_text: str,
    content_sections: str,
    cta_url: Optional[str] = None,
    cta_label: Optional[str] = None,
) -> str:
    """Base MJML template wrapper for all emails"""

    cta_section = ""
    if cta_url and cta_label:
        cta_section = f"""
        <mj-section padding="20px 0">
          <mj-column>
            <mj-button href="{cta_url}" background-color="{THEME['primary']}" color="{THEME['accent']}"
              font-weight="600" border-radius="8px" padding="18px 40px" font-size="16px">
              {cta_label}
            </mj-button>
          </mj-column>
        </mj-section>
        """

    return f"""
    <mjml>
      <mj-head>
        <mj-title>{title}</mj-title>
        <mj-preview>{preview_text}</mj-preview>
        <mj-attributes>
          <mj-all font-family="'Helvetica Neue', Arial, sans-serif" />
          <mj-text font-size="16px" line-height="1.6" color="{THEME['text_secondary']}" />
        </mj-attributes>
      </mj-head>
      <mj-body background-color="{THEME['background']}">
        <mj-section background-color="{THEME['primary']}" padding="24px 20px">
          <mj-column>
            <mj-text align="center" font-size="22px" font-weight="700" color="{THEME['accent']}">
              {BRAND_NAME}
            </mj-text>
          </mj-column>
        </mj-section>

        <mj-section background-color="#ffffff" padding="32px 40px 40px 40px">
          <mj-column>
            <mj-text font-size="24px" font-weight="600" color="{THEME['text_primary']}" padding="0 0 16px 0">
              {title}
            </mj-text>
            {content_sections}
          </mj-column>
        </mj-section>

        {cta_section}

        <mj-section padding="32px 20px">
          <mj-column>
            <mj-text align="center" font-size="13px" color="{THEME['text_muted']}" padding="0">
              {BRAND_NAME} · <a href="{FRONTEND_URL}" style="color: {THEME['text_muted']};">{FRONTEND_URL}</a>
            </mj-text>
          </mj-column>
        </mj-section>
      </mj-body>
    </mjml>
    """


def _booking_details_table(
    space_name: str, date: str, start_time: Optional[str], end_time: Optional[str], people: int, total: float
) -> str:
    slot = f"{start_time} - {end_time}" if start_time and end_time else "Journée"
    return f"""
    <mj-table padding="8px 0 24px 0">
      <tr><td style="padding: 4px 0; color: {THEME['text_muted']};">Espace</td><td>{escape(space_name)}</td></tr>
      <tr><td style="padding: 4px 0; color: {THEME['text_muted']};">Date</td><td>{date}</td></tr>
      <tr><td style="padding: 4px 0; color: {THEME['text_muted']};">Horaire</td><td>{slot}</td></tr>
      <tr><td style="padding: 4px 0; color: {THEME['text_muted']};">Personnes</td><td>{people}</td></tr>
      <tr><td style="padding: 4px 0; color: {THEME['text_muted']};">Total</td><td>{total:.2f} €</td></tr>
    </mj-table>
    """


def booking_received_template(
    contact_name: str,
    space_name: str,
    date: str,
    start_time: Optional[str],
    end_time: Optional[str],
    people: int,
    total: float,
) -> str:
    content = f"""
    <mj-text>Bonjour {escape(contact_name)},</mj-text>
    <mj-text>
      Nous avons bien reçu votre demande de réservation. Elle sera confirmée dès validation de votre empreinte bancaire.
    </mj-text>
    {_booking_details_table(space_name, date, start_time, end_time, people, total)}
    """
    return get_base_template(
        title="Demande de réservation reçue",
        preview_text=f"Votre réservation du {date} est en attente de confirmation",
        content_sections=content,
    )


def admin_new_booking_template(
    contact_name: str,
    contact_email: str,
    space_name: str,
    date: str,
    start_time: Optional[str],
    end_time: Optional[str],
    people: int,
    total: float,
) -> str:
    content = f"""
    <mj-text>Nouvelle réservation de <strong>{escape(contact_name)}</strong> ({escape(contact_email)}).</mj-text>
    {_booking_details_table(space_name, date, start_time, end_time, people, total)}
    """
    return get_base_template(
        title="Nouvelle réservation",
        preview_text=f"{contact_name} a réservé {space_name} le {date}",
        content_sections=content,
    )


def booking_confirmed_template(
    contact_name: str,
    space_name: str,
    date: str,
    start_time: Optional[str],
    end_time: Optional[str],
    people: int,
    total: float,
) -> str:
    content = f"""
    <mj-text>Bonjour {escape(contact_name)},</mj-text>
    <mj-text>Votre réservation est confirmée. À très bientôt au café !</mj-text>
    {_booking_details_table(space_name, date, start_time, end_time, people, total)}
    """
    return get_base_template(
        title="Réservation confirmée",
        preview_text=f"Votre réservation du {date} est confirmée",
        content_sections=content,
        cta_url=f"{FRONTEND_URL}/mon-compte/reservations",
        cta_label="Voir mes réservations",
    )


def booking_cancelled_template(
    contact_name: str,
    space_name: str,
    date: str,
    charge_percentage: int,
    cancellation_fee: float,
    refund_amount: float,
    reason: Optional[str] = None,
) -> str:
    if charge_percentage == 0:
        fee_text = "Aucun frais ne vous sera facturé."
    else:
        fee_text = (
            f"Des frais d'annulation de <strong>{cancellation_fee:.2f} €</strong> "
            f"({charge_percentage}%) ont été retenus."
        )
    refund_text = (
        f"<mj-text>Un remboursement de {refund_amount:.2f} € sera effectué sous 5 à 10 jours.</mj-text>"
        if refund_amount > 0
        else ""
    )
    reason_text = f"<mj-text color=\"{THEME['text_muted']}\">Motif : {escape(reason)}</mj-text>" if reason else ""
    content = f"""
    <mj-text>Bonjour {escape(contact_name)},</mj-text>
    <mj-text>Votre réservation de <strong>{escape(space_name)}</strong> du {date} a été annulée.</mj-text>
    <mj-text>{fee_text}</mj-text>
    {refund_text}
    {reason_text}
    """
    return get_base_template(
        title="Réservation annulée",
        preview_text=f"Annulation de votre réservation du {date}",
        content_sections=content,
    )


def booking_reminder_template(
    contact_name: str,
    space_name: str,
    date: str,
    start_time: Optional[str],
    end_time: Optional[str],
    people: int,
    total: float,
) -> str:
    content = f"""
    <mj-text>Bonjour {escape(contact_name)},</mj-text>
    <mj-text>Petit rappel : nous vous attendons demain !</mj-text>
    {_booking_details_table(space_name, date, start_time, end_time, people, total)}
    """
    return get_base_template(
        title="Rappel de votre réservation",
        preview_text=f"Votre réservation de demain ({date})",
        content_sections=content,
    )


def contact_reply_template(name: str, original_subject: str, reply: str) -> str:
    reply_html = escape(reply).replace("\n", "<br />")
    content = f"""
    <mj-text>Bonjour {escape(name)},</mj-text>
    <mj-text>{reply_html}</mj-text>
    <mj-divider border-color="{THEME['border']}" border-width="1px" />
    <mj-text font-size="13px" color="{THEME['text_muted']}">En réponse à : {escape(original_subject)}</mj-text>
    """
    return get_base_template(
        title=f"Re: {escape(original_subject)}",
        preview_text="Réponse à votre message",
        content_sections=content,
    )
