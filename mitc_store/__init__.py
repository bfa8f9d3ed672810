# MITC Store - Warranty & Review Back Office
# ===========================================
# Customer warranty lifecycle, review moderation and outbound message
# templates for the MITC laptop store, using Layered Architecture:
#
# ARCHITECTURE LAYERS:
# - Presentation:   FastAPI JSON API and the campaign runner script
# - Application:    Customer/review managers, site settings, warranty campaign
# - Domain:         Pure business rules (warranty dates, templates, validation)
# - Infrastructure: External services (SQLite document store, WhatsApp, Excel)
#
# The document store and messaging provider are swappable without touching
# the domain or application layers.
