from .client import GatewayError, SurveyGateway

__all__ = ["GatewayError", "SurveyGateway"]
