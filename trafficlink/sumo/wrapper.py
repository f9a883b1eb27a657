"""
Shared plumbing for the per-domain façade classes.

Each public accessor returns a documented sentinel instead of raising:
the session not being ready, invalid input, and operation faults all
degrade to the sentinel, while connection faults are first reported to
the session owner.
"""

import logging
from typing import Any, TypeVar

from .faults import ConnectionFault, OperationFault
from .session import TraCISession

T = TypeVar("T")


class SessionWrapper:
    """Base class binding a façade to one TraCISession."""

    _logger = logging.getLogger(__name__)

    def __init__(self, session: TraCISession):
        if session is None:
            raise TypeError("session must not be None")
        self.session = session

    def is_ready(self) -> bool:
        return self.session.is_ready()

    def _read(
        self,
        default: T,
        domain: str,
        method: str,
        *args,
        connection_default: Any = ...,
    ) -> T | Any:
        """
        Run a getter, mapping every failure to a sentinel.

        Args:
            default: Value returned when not ready or on operation fault
            domain: TraCI domain ('vehicle', 'edge', ...)
            method: Getter name
            *args: Getter arguments
            connection_default: Value returned on connection fault
                                (defaults to ``default``)
        """
        if connection_default is ...:
            connection_default = default
        if not self.is_ready():
            return default
        try:
            return self.session.execute_read(domain, method, *args)
        except ConnectionFault as e:
            self.session.report_connection_fault(e)
            return connection_default
        except OperationFault as e:
            self._logger.debug("%s.%s%s failed: %s", domain, method, args, e)
            return default

    def _write(self, domain: str, method: str, *args) -> bool:
        """
        Run a setter, absorbing failures.

        Returns:
            True if the command was accepted, False otherwise
        """
        if not self.is_ready():
            self._logger.debug("%s.%s ignored: not connected", domain, method)
            return False
        try:
            self.session.execute_write(domain, method, *args)
            return True
        except ConnectionFault as e:
            self.session.report_connection_fault(e)
            return False
        except OperationFault as e:
            self._logger.warning("%s.%s%s failed: %s", domain, method, args, e)
            return False
