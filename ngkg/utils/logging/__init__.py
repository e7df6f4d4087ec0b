from ngkg.utils.logging.default import Logger, get_logger

__all__ = ["Logger", "get_logger"]
