class PlanPersistenceError(RuntimeError):
    """Raised when the plan store cannot load or save (I/O errors, corrupt records)."""
    pass


class EnquiryDispatchError(RuntimeError):
    """Raised when an enquiry cannot be delivered to the supplier (timeouts, network errors, rejected requests)."""
    pass


class SupplierNotFoundError(LookupError):
    """Raised when the supplier directory has no record for the requested id."""
    pass


class MutationInProgressError(RuntimeError):
    """Raised when a second plan mutation starts while one is still outstanding."""
    pass
