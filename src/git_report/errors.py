from __future__ import annotations


class ReportError(Exception):
    """Base class for every fatal or recorded failure of a report run."""


class ConfigurationError(ReportError):
    pass


class InvalidTimeExpression(ReportError):
    pass


class RepositoryAccessError(ReportError):
    pass


class RemoteQueryError(ReportError):
    pass


class EmptyReportError(ReportError):
    pass


class DeliveryError(ReportError):
    pass
