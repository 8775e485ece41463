"""Payloads shared by the route tests."""

FREELANCE_PAYLOAD = {
    "email": "jeanne@example.com",
    "password": "secret123",
    "role": "freelance",
    "entreprise": {"nom": "Dupont", "prenom": "Jeanne", "taux_horaire": 30},
}

SLOT_MORNING = {"start": "2030-05-06T09:00:00Z", "end": "2030-05-06T12:00:00Z", "title": "Matin"}
SLOT_AFTERNOON = {"start": "2030-05-06T14:00:00Z", "end": "2030-05-06T18:00:00Z"}
