class ToolError(Exception):
    """Base class for failures surfaced to the user as a short message."""


class ShellError(ToolError):
    pass


class InvalidBootImage(ToolError):
    pass


class HashMismatch(ToolError):
    pass


class AlreadyPatched(ToolError):
    pass


class BackupCommitFailed(ToolError):
    pass


class ExportWriteFailed(ToolError):
    pass


class SourceUnavailable(ToolError):
    pass


class SlotNotReady(ToolError):
    pass


class DeviceStateUnusable(ToolError):
    pass
