import logging


def get_logger(name: str) -> logging.Logger:
    """Return the stdlib logger for ``name``.

    Handlers and levels are left to the embedding application.
    """
    return logging.getLogger(name)


class Logger:
    """
    Logger that keeps parse context information in every record.

    This class wraps a stdlib logger and provides methods for different logging
    levels while merging a fixed context dict (project root, current file, ...)
    into the ``extra`` of each log call.

    Args:
        name (str): The name of the logger instance
        context (dict, optional): Context information attached to every record
    """

    def __init__(self, name: str, context: dict | None = None):
        self.base_logger: logging.Logger = get_logger(name)
        self.context = context

    def bind(self, **context) -> "Logger":
        """Return a new Logger whose context also includes ``context``."""
        merged = dict(self.context or {})
        merged.update(context)
        return Logger(self.base_logger.name, merged)

    def __add_context_to_extra(self, extra: dict | None) -> dict | None:
        """
        Merges the logger context with additional extra information.

        Args:
            extra (dict): Additional context information to be added to the log

        Returns:
            dict: Merged dictionary of context and extra information
        """
        if not extra:
            return self.context

        if not self.context:
            return extra

        extra = extra.copy()
        extra.update(self.context)
        return extra

    def debug(self, message, extra=None):
        self.base_logger.debug(message, extra=self.__add_context_to_extra(extra))

    def info(self, message, extra=None):
        self.base_logger.info(message, extra=self.__add_context_to_extra(extra))

    def warning(self, message, extra=None):
        self.base_logger.warning(message, extra=self.__add_context_to_extra(extra))

    def error(self, message, extra=None):
        self.base_logger.error(message, extra=self.__add_context_to_extra(extra))

    def critical(self, message, extra=None):
        self.base_logger.critical(message, extra=self.__add_context_to_extra(extra))
