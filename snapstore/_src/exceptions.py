class SnapstoreError(Exception):
    """Base class for errors surfaced to the user."""


class UsageError(SnapstoreError):
    def __init__(self, msg):
        self.msg = msg
        super().__init__(self.msg)


class ResolutionError(SnapstoreError):
    def __init__(self, reference, reason):
        self.reference = reference
        self.msg = f"cannot resolve '{reference}': {reason}"
        super().__init__(self.msg)


class StoreError(SnapstoreError):
    def __init__(self, msg, path=None):
        self.path = path
        self.msg = msg
        super().__init__(self.msg)


class StoreCapabilityError(StoreError):
    def __init__(self, store_uri, operation):
        self.msg = f"{operation} is not supported for the store '{store_uri}'"
        super().__init__(self.msg)


class AmbiguousResultError(SnapstoreError):
    def __init__(self, profile, paths):
        self.paths = paths
        self.msg = (
            f"profile '{profile}' requires that the arguments produce a single store path,"
            f" but there are {len(paths)}:"
            + "".join(f"\n  {p}" for p in paths)
        )
        super().__init__(self.msg)


class EmptyResultError(SnapstoreError):
    def __init__(self, profile):
        self.msg = (
            f"profile '{profile}' requires that the arguments produce a single store path,"
            " but there are none"
        )
        super().__init__(self.msg)
