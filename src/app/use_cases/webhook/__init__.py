"""Gateway webhook use cases"""
from .handle_gateway_event import HandleGatewayEvent
from .dtos import WebhookResultDTO

__all__ = ["HandleGatewayEvent", "WebhookResultDTO"]
