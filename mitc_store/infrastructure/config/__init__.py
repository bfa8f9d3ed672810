from .settings import Settings, WhatsAppSettings, CampaignSettings, get_settings

__all__ = ["Settings", "WhatsAppSettings", "CampaignSettings", "get_settings"]
