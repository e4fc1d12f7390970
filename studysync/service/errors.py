"""
The failure taxonomy shared by all service modules. Each service raises its
own subclasses of these so that callers can either catch precisely or map
whole families (e.g. to HTTP status codes).
"""


class CoordinatorError(Exception):
    pass


class InvalidArgument(CoordinatorError):
    """
    Malformed or missing input.
    """


class Conflict(CoordinatorError):
    """
    The operation would break a uniqueness rule.
    """


class InvalidOperation(Conflict):
    """
    The operation makes no sense for these parties (e.g. befriending yourself).
    """


class NotFound(CoordinatorError):
    """
    The referenced record does not exist, or does not exist for this caller.
    """


class Forbidden(CoordinatorError):
    """
    The caller lacks the membership or role the operation requires.
    """


class CapacityExceeded(CoordinatorError):
    pass
