from .handler import NotificationHandler, build_handler, lambda_handler

__all__ = ["NotificationHandler", "build_handler", "lambda_handler"]
