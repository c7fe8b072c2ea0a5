"""AWS Lambda handler for the Marketing Dashboard Proxy.

Wraps the FastAPI application with the Mangum adapter so the same app
serves API Gateway events. Every invocation resolves its own settings and
opens its own upstream clients; nothing is carried between invocations.
"""

from mangum import Mangum

from src.config import settings
from src.main import app

# api_gateway_base_path strips the stage or custom-domain prefix from paths
handler = Mangum(app, lifespan="off", api_gateway_base_path=settings.api_base_path)


def lambda_handler(event: dict, context: object) -> dict:
    """
    AWS Lambda function handler.

    Args:
        event: API Gateway event containing request details
        context: Lambda context object with runtime information

    Returns:
        API Gateway response dict with statusCode, headers, and body
    """
    return handler(event, context)
