class DataServiceError(Exception):
    """
    Raised by any data service call that could not be completed.
    Callers show a generic message and keep their state unchanged.
    """


class AssetPolicyError(DataServiceError):
    """
    Raised when an uploaded asset is refused by the storage policy
    (wrong file type, too large), as opposed to a storage failure.
    """


class AuthError(DataServiceError):
    """
    Raised by the identity provider for bad credentials or a taken email.
    """
