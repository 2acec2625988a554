class CaptureError(Exception):
    pass


class NotFound(CaptureError):
    def __init__(self, label, patterns=()):
        self.label = label
        self.patterns = tuple(patterns)
        super().__init__(f"no visible element for {label!r} (tried {len(self.patterns)} patterns)")


class ActionFailed(CaptureError):
    def __init__(self, label, action, last_error=None):
        self.label = label
        self.action = action
        self.last_error = last_error
        msg = f"{action} failed for {label!r}"
        if last_error is not None:
            msg += f": {last_error}"
        super().__init__(msg)


class Obstructed(CaptureError):
    pass


class FormatUndetected(CaptureError):
    pass


class DownloadFailed(CaptureError):
    pass


class ParseFailed(CaptureError):
    pass
