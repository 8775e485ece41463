# Services package init
"""
ExtraBeam Backend - Services Layer
==================================

What:  Business rules between the routes (HTTP) and the models (persistence).
How:   One class per concern, exposed as a module-level singleton. Services
       take an AsyncSession and the caller's AuthUser, raise ExtraBeamError
       subclasses, and return response schemas.

Service Inventory:
    - AccessService:          entreprise references and ownership rule
    - AuthService:            login, registration, token → AuthUser
    - ProfileService:         /api/profiles/me
    - EntrepriseService:      directory, detail, overview, deletion
    - SlotService:            calendar slots and their visibility
    - UnavailabilityService:  recurrence rules and their expansion
    - CvService:              public CV page
    - MissionService:         missions and their slots
    - FactureService:         invoices and their amounts
    - PaymentService:         Stripe checkout, Connect and webhook
    - ClientService:          client contacts, both sides
    - TemplateService:        clients' mission templates
    - NotificationService:    who receives which e-mail
    - MailerService:          Brevo delivery (retry + circuit breaker)
    - FileService:            signed uploads and file storage
"""
