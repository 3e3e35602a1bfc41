"""{{placeholder}} tokens used by sponsorship emails."""

import re

from pydantic import BaseModel

_TOKEN = re.compile(r"\{\{(\w+)\}\}")


class PlaceholderDefinition(BaseModel):
    key: str
    label: str
    description: str


PLACEHOLDERS: list[PlaceholderDefinition] = [
    PlaceholderDefinition(key="club_name", label="Nom du club", description="Nom complet du club"),
    PlaceholderDefinition(key="campaign_title", label="Titre de la campagne", description="Titre de la campagne de sponsoring"),
    PlaceholderDefinition(key="invite_link", label="Lien d'invitation", description="URL unique pour répondre"),
    PlaceholderDefinition(key="deadline", label="Date limite", description="Date limite (AAAA-MM-JJ)"),
    PlaceholderDefinition(key="sponsor_name", label="Nom du contact sponsor", description="Nom complet du contact"),
    PlaceholderDefinition(key="sponsor_company", label="Raison sociale sponsor", description="Nom de l'entreprise"),
    PlaceholderDefinition(key="amount_hint", label="Prix indicatif/an", description="Montant annuel suggéré (€)"),
    PlaceholderDefinition(key="footfall", label="Passages estimés/jour", description="Nombre de passages quotidiens"),
    PlaceholderDefinition(key="screen_type", label="Type d'écran", description="Type d'affichage (LED, borne, etc.)"),
    PlaceholderDefinition(key="campaign_objective", label="Objectif (€)", description="Objectif financier de la campagne"),
    PlaceholderDefinition(key="pledge_amount", label="Montant promis (€)", description="Montant engagé par le sponsor"),
    PlaceholderDefinition(key="club_contact_name", label="Nom contact club", description="Nom du contact du club"),
    PlaceholderDefinition(key="club_contact_email", label="Email contact club", description="Email de contact du club"),
    PlaceholderDefinition(key="club_contact_phone", label="Téléphone contact club", description="Téléphone du club"),
]

DEFAULT_EXAMPLE_VALUES: dict[str, str] = {
    "club_name": "FC Exemple",
    "campaign_title": "Campagne Écrans LED 2024",
    "invite_link": "https://app.example.com/invite/abc123",
    "deadline": "2024-12-31",
    "sponsor_name": "Jean Dupont",
    "sponsor_company": "Entreprise ABC",
    "amount_hint": "2500",
    "footfall": "5000",
    "screen_type": "LED Extérieur",
    "campaign_objective": "50000",
    "pledge_amount": "3000",
    "club_contact_name": "Marie Martin",
    "club_contact_email": "contact@fcexemple.fr",
    "club_contact_phone": "+33 6 12 34 56 78",
}


def apply_placeholders(text: str, values: dict[str, str | int | float]) -> str:
    """Replace {{token}} by its value; unknown tokens are blanked."""
    return _TOKEN.sub(lambda m: str(values[m.group(1)]) if m.group(1) in values else "", text)


def extract_placeholders(text: str) -> list[str]:
    seen: dict[str, None] = {}
    for m in _TOKEN.finditer(text or ""):
        seen.setdefault(m.group(1), None)
    return list(seen)


def html_to_text(html: str) -> str:
    text = re.sub(r"<style[\s\S]*?</style>", "", html, flags=re.IGNORECASE)
    text = re.sub(r"<script[\s\S]*?</script>", "", text, flags=re.IGNORECASE)
    text = re.sub(r"<br\s*/?>", "\n", text, flags=re.IGNORECASE)
    text = re.sub(r"</p>", "\n\n", text, flags=re.IGNORECASE)
    text = re.sub(r"<[^>]+>", "", text)
    text = re.sub(r"\n{3,}", "\n\n", text)
    return text.strip()
