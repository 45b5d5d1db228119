"""Error taxonomy for the SLA engine.

Configuration gaps (a missing policy or status row) are not errors: the
documented defaults apply. Unknown type/status keys are logged as warnings.
Only the two exceptions below cross a function boundary.
"""


class TransientStoreError(Exception):
    """A read or write against the case/policy/status/notification store failed.

    Contained at the smallest unit (one case, else one shop); the run continues.
    """

    def __init__(self, operation: str, detail: str = ""):
        self.operation = operation
        self.detail = detail
        super().__init__(f"{operation} failed: {detail}" if detail else f"{operation} failed")


class SystemicFailure(Exception):
    """The alerting shop list could not be loaded; the whole run is aborted."""
