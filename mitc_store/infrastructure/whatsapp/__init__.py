from .messaging_provider import MessagingProvider, SeleniumProvider, CloudAPIProvider, create_provider

__all__ = ["MessagingProvider", "SeleniumProvider", "CloudAPIProvider", "create_provider"]
