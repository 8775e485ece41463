# Routes package init
"""
ExtraBeam Backend - API Routes Package
======================================

What:  HTTP route handlers. Each module owns one resource and stays thin:
       read path/query/body, resolve the caller through the auth
       dependencies, call one service method, return its schema.

Route Inventory:
    - health.py            GET  /health, GET /api/health
    - auth.py              /api/auth/login|register|me|logout, POST /api/login
    - profiles.py          /api/profiles/me
    - entreprises.py       /api/entreprises (directory, detail, overview,
                           connect-stripe, public mission requests)
    - slots.py             /api/entreprises/{ref}/slots
    - unavailabilities.py  /api/entreprises/{ref}/unavailabilities
    - cv.py                /api/entreprises/{ref}/cv
    - missions.py          /api/missions
    - factures.py          /api/factures
    - payments.py          /api/payments (checkout session, Stripe webhook)
    - clients.py           /api/clients
    - templates.py         /api/mission-templates
    - notifications.py     /api/notifications, /api/mail/send
    - uploads.py           /api/uploads, /api/files
"""
