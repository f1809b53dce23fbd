from .link import LinkCreate, LinkResponse, LinkUpdate
from .analytics import LinkAnalytics
from .response import Envelope

__all__ = ["LinkCreate", "LinkResponse", "LinkUpdate", "LinkAnalytics", "Envelope"]
