# Infrastructure Layer
# ====================
# Contains all external service integrations:
# - persistence/: SQLite-backed document store
# - whatsapp/: WhatsApp Web (Selenium) and Cloud API messaging providers
# - importer/: Excel/CSV sales sheet import
# - config/: Environment and settings management
#
# This layer can be replaced entirely without affecting domain/application layers.
