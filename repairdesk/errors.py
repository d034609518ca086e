class RepairDeskError(Exception):
    """Base class for errors reported back to the operator."""


class FormError(RepairDeskError):
    """Input rejected before anything was sent to the sheet."""


class InvariantViolation(RepairDeskError):
    """A domain rule (unique serial, workshop in use, protected admin) would break."""


class NotFound(RepairDeskError):
    pass


class SheetError(RepairDeskError):
    """The remote sheet API failed or answered with a non-2xx status."""


class PermissionDenied(RepairDeskError):
    pass
