"""Order Assembly Service: authenticate, validate, enrich and publish orders."""

__version__ = "1.0.0"
SERVICE_NAME = "order-assembly-service"
